"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

import typer

from .printers import print_error

logger = logging.getLogger(__name__)

T = TypeVar('T')

EXIT_CODES = {
    "ValueError": 2,
    "NotImplementedError": 2,
    "FileNotFoundError": 2,
    "IsADirectoryError": 2,
    "PermissionError": 2,
    "TransportError": 3,
    "UnexpectedStatusError": 3,
    "IndexDocumentError": 3,
    "ImageResolveError": 4,
    "AuthChallengeParseError": 5,
    "AuthTokenError": 5,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    - 0: Success (including metadata not found)
    - 2: Invalid input or configuration
    - 3: Registry or network error, and unknown errors
    - 4: Image could not be resolved by the image collaborator
    - 5: Registry authentication failed

    Args:
        exc: Exception to map

    Returns:
        Exit code, with 3 as fallback for unknown exceptions
    """
    return EXIT_CODES.get(type(exc).__name__, 3)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function, reports any exception on stderr and maps
    it to an exit code using typer.Exit, so commands don't need their own
    try/except blocks.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
