"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands stay thin. Metadata
payloads go to stdout untouched; everything else is rendered with Rich.
"""
from __future__ import annotations

from typing import List

import typer
from rich.console import Console
from rich.markup import escape

from ..storage.base import PutResult

_console = Console(soft_wrap=True, highlight=False)
_err_console = Console(stderr=True, soft_wrap=True, highlight=False)


def print_metadata(data: bytes) -> None:
    """Write raw metadata bytes to stdout."""
    typer.echo(data)


def print_not_found(image_name: str, metadata_type: str) -> None:
    _console.print(f"Could not find '{metadata_type}' metadata for image '{image_name}'", markup=False)


def print_metadata_types(image_name: str, types: List[str]) -> None:
    """
    Print the metadata types stored for an image.

    Args:
        image_name: Resolved image name
        types: Stored metadata types, possibly empty
    """
    if not types:
        _console.print(f"No metadata stored for image '{image_name}'", markup=False)
        return

    _console.print(f"Metadata types stored for image '{image_name}':", markup=False)
    for metadata_type in types:
        _console.print(f"    {metadata_type}", markup=False)


def print_put_summary(result: PutResult, metadata_type: str) -> None:
    action = "Updated" if result.replaced else "Added"
    _console.print(
        f"{action} '{metadata_type}' metadata for image '{result.image_name}' stored at {result.digest}",
        markup=False,
    )


def print_error(exc: BaseException) -> None:
    _err_console.print(f"[bold red]Error:[/] {escape(str(exc))}")
