"""Typer CLI for fetching, pinning, and inspecting cached HTTPS modules.

Example:
    $ https-loader fetch https://example.test/a.mjs --output a.mjs
    $ https-loader integrity a.mjs --algorithm sha384
    $ https-loader cache-path https://example.test/a.mjs
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import __version__
from .cache import CacheStore, locate_cache_directory
from .errors import HttpsLoaderError
from .integrity import format_integrity
from .loader import HttpsLoader, LoadContext
from .logging_config import setup_logging
from .settings import CacheMode, get_settings

_console = Console(stderr=True)

app = typer.Typer(
    name="https-loader",
    help="HttpsLoader CLI - fetch, verify, and cache modules served over HTTPS",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"https-loader {__version__}")
        raise typer.Exit(0)


@app.callback(invoke_without_command=False)
def main(
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Global options apply to all subcommands."""
    logger = setup_logging(get_settings())
    if verbosity >= 2:
        logger.setLevel(logging.DEBUG)
    elif verbosity == 1:
        logger.setLevel(logging.INFO)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Module URL to load"),
    integrity: Optional[str] = typer.Option(
        None,
        "--integrity",
        "-i",
        help="Expected digest as <algorithm>-<base64 hash>",
    ),
    declared_type: Optional[str] = typer.Option(
        None,
        "--type",
        "-t",
        help="Declared module type (module, commonjs, json, wasm, ...)",
    ),
    cache_mode: Optional[CacheMode] = typer.Option(
        None,
        "--cache-mode",
        case_sensitive=False,
        help="Override the configured cache mode",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write module content to this file instead of stdout",
    ),
) -> None:
    """Load URL through the cache/verify pipeline and emit its content."""
    attributes = {}
    if integrity:
        attributes["integrity"] = integrity
    if declared_type:
        attributes["type"] = declared_type

    loader = HttpsLoader(get_settings(), cache_mode=cache_mode)
    try:
        result = asyncio.run(loader.load(url, LoadContext(import_attributes=attributes)))
    except HttpsLoaderError as exc:
        _console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1) from exc

    source = "cache" if result.from_cache else "network"
    if output is not None:
        output.write_bytes(result.content)
        _console.print(
            f"[green]✓[/green] {url} -> {output} ({len(result.content)} bytes, "
            f"format={result.format.value}, from {source})"
        )
    else:
        typer.echo(result.content, nl=False)


@app.command()
def integrity(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    algorithm: str = typer.Option("sha384", "--algorithm", "-a", help="hashlib algorithm name"),
) -> None:
    """Print the integrity declaration a local file satisfies."""
    try:
        typer.echo(format_integrity(path.read_bytes(), algorithm))
    except HttpsLoaderError as exc:
        _console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1) from exc


@app.command("cache-path")
def cache_path(url: str = typer.Argument(..., help="Module URL")) -> None:
    """Print the cache file that backs URL for the current project."""
    cache = get_settings().cache
    try:
        directory = locate_cache_directory(
            cache.name,
            markers=cache.root_markers,
            namespace=cache.namespace,
        )
    except OSError as exc:
        _console.print(f"[red]✗ Cache directory could not be created: {exc}[/red]")
        raise typer.Exit(1) from exc
    if directory is None:
        _console.print(
            f"[red]✗ No project root found (looked for {', '.join(cache.root_markers)})[/red]"
        )
        raise typer.Exit(1)
    typer.echo(str(CacheStore(directory).path_for(url)))


@app.command("version")
def version_cmd() -> None:
    """Show version information."""
    typer.echo(f"https-loader {__version__}")


__all__ = ["app", "main"]
