"""Main CLI application for pici."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from pici import __version__
from pici.config.parser import ConfigError
from pici.core.installer import InstallError, PackageInstaller, SubprocessExitError
from pici.core.project import Project
from pici.core.resolver import (
    PackageNotFoundError,
    add_package,
    format_specifier,
    get_install_list,
    get_package_version,
)
from pici.utils.filesystem import StashError

# Create the main Typer app
app = typer.Typer(
    name="pici",
    help="Install packages from a custom package file without touching package.json",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the pici package
logger = logging.getLogger("pici")

FATAL_ERRORS = (ConfigError, PackageNotFoundError, InstallError, StashError)


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}", highlight=False, soft_wrap=True)


def get_project(path: Path | None = None) -> Project:
    """Get the project, raising an error if it cannot be loaded."""
    try:
        return Project.load(path)
    except (FileNotFoundError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e


def parse_fields(value: str) -> list[str]:
    """Parse a comma-separated --fields value."""
    fields = [f.strip() for f in value.split(",") if f.strip()]
    if not fields:
        raise typer.BadParameter("At least one field is required", param_hint="--fields")
    return fields


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """pici - install extra packages listed in a custom package file."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the pici version."""
    console.print(f"pici {__version__}")


@app.command()
def install(
    target: Annotated[
        str | None,
        typer.Argument(
            help="Custom package file (*.json) to install from, or a single package "
            "name to install with the version declared in package.json",
        ),
    ] = None,
    fields: Annotated[
        str | None,
        typer.Option(
            "--fields",
            help="Comma-separated package.json fields to look versions up in "
            "(e.g. 'dependencies,devDependencies')",
        ),
    ] = None,
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Project directory (defaults to current directory)",
        ),
    ] = None,
) -> None:
    """Install packages without changing package.json or lockfiles.

    Without arguments, installs every package listed in package.custom.json.
    Packages with an empty version use the version from package.json.

    With a package name, installs just that package at the version declared
    in package.json.
    """
    project = get_project(path)
    field_list = parse_fields(fields) if fields is not None else project.fields

    try:
        if target and not target.endswith(".json"):
            found = get_package_version(target, project.manifest_path, field_list)
            if found is None:
                raise PackageNotFoundError(target, project.manifest_path)
            specifiers = [format_specifier(target, found)]
        else:
            custom_path = project.resolve_path(target) if target else project.custom_file_path
            specifiers = get_install_list(custom_path, project.manifest_path, field_list).specifiers

        if not specifiers:
            console.print("No packages to install.")
            return

        console.print(f"Installing {len(specifiers)} package(s)...")
        PackageInstaller(project).install(specifiers)
    except SubprocessExitError as e:
        print_error(str(e))
        code = e.exit_code if e.exit_code is not None and e.exit_code > 0 else 1
        raise typer.Exit(code) from e
    except FATAL_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_success(f"Installed {', '.join(specifiers)}")


@app.command()
def add(
    package: Annotated[
        str,
        typer.Argument(help="Package to add"),
    ],
    file: Annotated[
        str | None,
        typer.Argument(help="Custom package file (defaults to package.custom.json)"),
    ] = None,
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Project directory (defaults to current directory)",
        ),
    ] = None,
) -> None:
    """Add a package to the custom package file.

    The package is added with an empty version, so the version declared in
    package.json is used at install time.
    """
    project = get_project(path)
    custom_path = project.resolve_path(file) if file else project.custom_file_path

    try:
        add_package(package, custom_path)
    except FATAL_ERRORS as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_success(f"Added {package} to {file or project.config.custom_file}")


if __name__ == "__main__":
    app()
