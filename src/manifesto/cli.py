"""
manifesto CLI

Store, retrieve and list pieces of metadata alongside container images in
the registry. Metadata is associated with specific images by digest.

- get: Show one piece of metadata for an image
- list: List the metadata types stored for an image
- put: Store a file as metadata for an image
"""
from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import (
    print_metadata, print_metadata_types, print_not_found, print_put_summary
)

app = typer.Typer(
    name="manifesto",
    help="Manage metadata associated with your container images",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Registry username (env: REGISTRY_USERNAME)"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Registry password (env: REGISTRY_PASSWORD)"),
    storage: Optional[str] = typer.Option(None, "--storage", "-s", help="Storage type to use (env: MANIFESTO_STORAGE)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Send debug output to stderr (env: MANIFESTO_VERBOSE)"),
) -> None:
    """Manage metadata associated with your container images."""

    def _init() -> CLIContext:
        return CLIContext.from_options(
            registry_user=username,
            registry_pass=password,
            storage=storage,
            verbose=verbose or None,
        )

    context = run_and_exit(_init)
    _configure_logging(context.settings.verbose)
    ctx.obj = context


@app.command()
def get(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image reference"),
    metadata_type: str = typer.Argument(..., help="Metadata type"),
) -> None:
    """Show metadata for the container image."""

    def _get() -> None:
        data, image_name = ctx.obj.storage.get_metadata(image, metadata_type)
        if data is None:
            print_not_found(image_name, metadata_type)
        else:
            print_metadata(data)

    run_and_exit(_get)


@app.command("list")
def list_metadata(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image reference"),
) -> None:
    """List currently stored metadata for the container image."""

    def _list() -> None:
        types, image_name = ctx.obj.storage.list_metadata(image)
        print_metadata_types(image_name, types)

    run_and_exit(_list)


@app.command()
def put(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image reference"),
    metadata_type: str = typer.Argument(..., help="Metadata type"),
    datafile: str = typer.Argument(..., help="File holding the metadata"),
) -> None:
    """Store datafile as metadata associated with the image."""

    def _put() -> None:
        result = ctx.obj.storage.put_metadata(image, metadata_type, datafile)
        print_put_summary(result, metadata_type)

    run_and_exit(_put)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
