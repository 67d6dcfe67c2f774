"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command
wrapper so every Typer command handles errors the same way.
"""
from __future__ import annotations

from typing import Any, Callable, TypeVar

import typer

T = TypeVar('T')

EXIT_CODES = {
    "NotFoundError": 1,
    "ReferenceParseError": 2,
    "ManifestParseError": 2,
    "ValueError": 2,
    "RegistryError": 3,
    "SignatureUnavailableError": 4,
    "BlobWriteError": 5,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns exit codes:
    - 0: Success
    - 1: Subject or manifest not found (NotFoundError)
    - 2: Invalid input (ReferenceParseError, ManifestParseError, ValueError)
    - 3: Registry/network error (RegistryError and subclasses) or unknown error
    - 4: No signatures available (SignatureUnavailableError)
    - 5: Blob upload failed (BlobWriteError)

    Subclasses map through their closest listed base class.

    Args:
        exc: Exception to map

    Returns:
        Exit code (1-5, with 3 as fallback for unknown exceptions)
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in EXIT_CODES:
            return EXIT_CODES[cls.__name__]
    return 3


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exception to an exit code
    via typer.Exit, after printing the error message to stderr.

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
