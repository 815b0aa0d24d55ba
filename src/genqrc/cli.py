"""
CLI entry point for genqrc.

Packs resource directories into a generated Python module that loads them at
import time.
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .config import PACKAGE_ENV_VAR, REPACK_ENV_VAR
from .config_loader import ConfigError, load_config, merge_cli_with_config
from .packer import pack_entries
from .renderer import generate_module
from .scanner import scan_resources
from .utils import format_size

HELP = f"""
Pack all resource files under the given subdirectories into a single
generated module (qrc.py by default).

Bundled files may then be read under the URL "qrc:///some/path", where
"some/path" matches the original path of the resource file locally.

Importing the generated module loads the embedded resources. During
development, set {REPACK_ENV_VAR}=1 to repack the filesystem content at import
time instead; run genqrc again afterwards to update the embedded content.

The {PACKAGE_ENV_VAR} environment variable, when set, overrides --package.
"""

# Initialize CLI app
app = typer.Typer(
    name="genqrc",
    help=HELP,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def print_error(message: object) -> None:
    """Print an error message with the "error: " prefix to stderr."""
    err_console.print(
        f"error: {message}", style="red", markup=False, highlight=False, soft_wrap=True
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"genqrc version {__version__}")
        raise typer.Exit()


@app.command(help=HELP)
def generate(
    ctx: typer.Context,
    dirs: Optional[List[str]] = typer.Argument(
        None,
        metavar="SUBDIR...",
        help="Directories whose files are packed.",
        show_default=False,
    ),
    package: Optional[str] = typer.Option(
        None,
        "--package", "-package",
        help=f"Package name the generated module is declared under (default: main; {PACKAGE_ENV_VAR} wins).",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path of the generated module (default: qrc.py).",
        dir_okay=False,
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude", "-e",
        help="Gitignore-style pattern of resource paths to leave out. May be repeated.",
    ),
    compress: Optional[bool] = typer.Option(
        None,
        "--compress/--no-compress",
        help="DEFLATE-compress packed resources (default: off, or the config file value).",
        show_default=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Config file to use instead of genqrc.toml / genqrc.yml in the working directory.",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="List packed files and show tracebacks on errors.",
    ),
    version: bool = typer.Option(
        False,
        "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """
    Pack resource directories into a generated module.

    Examples:

        # Pack ./code and ./images into ./qrc.py
        genqrc code images

        # Declare the module under a specific package
        genqrc --package widgets code images
    """
    try:
        project_config = load_config(Path.cwd(), config)
    except ConfigError as e:
        print_error(e)
        raise typer.Exit(1)

    if not dirs and not project_config.dirs:
        err_console.print(ctx.get_usage(), markup=False, highlight=False, soft_wrap=True)
        print_error("must provide at least one subdirectory path")
        raise typer.Exit(2)

    try:
        options = merge_cli_with_config(
            project_config,
            dirs=dirs,
            package=package,
            output=output,
            exclude=exclude,
            compress=compress,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Scanning resources...", total=None)
            entries, stats = scan_resources(options.subdirs, options.exclude_globs)

            progress.add_task("Packing resources...", total=None)
            resources_data = pack_entries(entries, compress=options.compress).bytes()
            stats.packed_bytes = len(resources_data)

            progress.add_task("Rendering module...", total=None)
            output_path = generate_module(options, resources_data)

    except Exception as e:
        print_error(e)
        if verbose:
            err_console.print(traceback.format_exc(), markup=False, highlight=False)
        raise typer.Exit(1)

    if verbose:
        if project_config.config_file is not None:
            console.print(f"[dim]Config: {project_config.config_file}[/dim]")
        for entry in entries:
            console.print(
                f"  {entry.virtual_path} ({format_size(entry.size_bytes)})",
                markup=False,
                highlight=False,
            )

    console.print(f"[green]✓ Generated {output_path} (package {options.package_name})[/green]")
    console.print(
        f"  Files packed: {stats.files_packed}, "
        f"total {format_size(stats.total_bytes)}, "
        f"packed {format_size(stats.packed_bytes)}"
    )
    if stats.duplicates_skipped:
        console.print(f"[yellow]  Duplicates skipped: {stats.duplicates_skipped}[/yellow]")
    if stats.files_excluded:
        console.print(f"[dim]  Files excluded: {stats.files_excluded}[/dim]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
