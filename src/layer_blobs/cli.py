"""
layer-blobs CLI

Implements 3 CLI verbs with Operations facade integration:
- detect: Detect the media type of a layer blob from its content
- convert: Convert a layer media type between OCI and Docker naming
- reconcile: Recover trusted layer media types from a cached image
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_converted, print_detected, print_reconcile_report
from .storage.layout import OCILayoutStore

app = typer.Typer(name="layer-blobs", help="Layer blob media type CLI")

OCI_OPTION = typer.Option(
    True, "--oci/--docker", envvar="LAYER_BLOBS_OCI",
    help="Use OCI media types (default) or Docker schema2 media types",
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show detailed output and debug logs")


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def detect(
    digest: str = typer.Argument(..., help="Blob digest (sha256:...)"),
    layout: Optional[Path] = typer.Option(
        None, "--layout", help="OCI image layout directory (default: registry from LAYER_BLOBS_* env)"
    ),
    oci: bool = OCI_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Detect the media type of a layer blob from its first bytes."""
    _configure_logging(verbose)
    
    def _run():
        store = OCILayoutStore(layout) if layout is not None else None
        with Operations(OpsConfig(oci=oci, verbose=verbose), store=store) as ops:
            detected = ops.detect(digest)
        print_detected(detected.digest, detected.media_type, detected.compression, verbose=verbose)
    
    run_and_exit(_run)


@app.command()
def convert(
    media_type: str = typer.Argument(..., help="Layer media type to convert"),
    oci: bool = OCI_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Convert a layer media type to OCI or Docker naming (unknown types pass through)."""
    _configure_logging(verbose)
    
    def _run():
        ops = Operations(OpsConfig(oci=oci, verbose=verbose))
        print_converted(ops.convert(media_type))
    
    run_and_exit(_run)


@app.command()
def reconcile(
    layout: Path = typer.Argument(..., help="OCI image layout directory"),
    expected: str = typer.Argument(..., help="Manifest digest or ref name of the image to label"),
    cached: str = typer.Argument(..., help="Manifest digest or ref name of the cached image"),
    oci: bool = OCI_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show which cached layer media types can be trusted for an image."""
    _configure_logging(verbose)
    
    def _run():
        ops = Operations(OpsConfig(oci=oci, verbose=verbose))
        report = ops.reconcile(OCILayoutStore(layout), expected, cached)
        print_reconcile_report(report, verbose=verbose)
    
    run_and_exit(_run)


def main():
    app()


if __name__ == "__main__":
    main()
