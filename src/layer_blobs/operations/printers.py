"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands stay thin.
"""
from __future__ import annotations

import typer

from ..compression import CompressionType
from .facade import ReconcileReport

UNTRUSTED = "-"


def print_detected(digest: str, media_type: str, compression: CompressionType, verbose: bool = False) -> None:
    """Print the media type detected for a blob."""
    if verbose:
        typer.echo(f"Blob: {digest}")
        typer.echo(f"Compression: {compression}")
        typer.echo(f"Media type: {media_type}")
        return
    typer.echo(media_type)


def print_converted(media_type: str) -> None:
    typer.echo(media_type)


def print_reconcile_report(report: ReconcileReport, verbose: bool = False) -> None:
    """
    Print one line per layer, root first.
    
    Layers whose media type cannot be trusted are shown as "-".
    """
    typer.echo(f"Expected: {report.expected}")
    typer.echo(f"Cached: {report.cached}")
    for i, (pair, media_type) in enumerate(zip(report.pairs, report.media_types)):
        label = media_type or UNTRUSTED
        if verbose:
            typer.echo(f"  [{i}] {pair.blobsum} diff_id={pair.diff_id} {label}")
        else:
            typer.echo(f"  [{i}] {pair.blobsum} {label}")
    typer.echo(f"Trusted: {report.trusted}/{len(report.pairs)}")
