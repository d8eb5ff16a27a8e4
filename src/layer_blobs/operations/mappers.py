"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

T = TypeVar('T')

EXIT_CODES = {
    "BlobNotFoundError": 1,
    "ValidationError": 2,
    "ValueError": 2,
    "BlobDownloadError": 3,
    "CompressionDetectionError": 4,
}

FALLBACK_EXIT_CODE = 3


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.
    
    Returns:
    - 1: Blob or manifest not found (BlobNotFoundError)
    - 2: Invalid input (ValidationError, ValueError)
    - 3: Download/read error (BlobDownloadError, OSError) or unknown error
    - 4: Layer compression could not be classified (CompressionDetectionError)
    
    Args:
        exc: Exception to map
        
    Returns:
        Exit code (3 as fallback for unknown exceptions)
    """
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.
    
    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, printing the error to stderr. This
    centralizes error handling so CLI commands don't need individual
    try/except blocks.
    
    Args:
        func: Function to execute
        
    Returns:
        Function result if successful
        
    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
