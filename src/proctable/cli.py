"""Command-line interface for proctable.

Usage:
    proctable                  # Capture once and browse the table
    proctable --refresh 2      # Re-capture every 2 seconds
    proctable --log-file p.log # Write debug logs while the UI runs
"""

from importlib import metadata
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from proctable.app import ProctableApp
from proctable.settings import Settings, SettingsError, build_settings, configure_logging

app = typer.Typer(
    name="proctable",
    help="Browse running processes in a terminal table",
    no_args_is_help=False,
    add_completion=False,
    rich_markup_mode="rich",
)

# Errors are printed after the UI has released the terminal
err_console = Console(stderr=True)


def get_version() -> str:
    """Get the installed package version."""
    try:
        return metadata.version("proctable")
    except metadata.PackageNotFoundError:
        return "unknown"


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        typer.echo(f"proctable version {get_version()}")
        raise typer.Exit()


RefreshOption = Annotated[
    float | None,
    typer.Option(
        "--refresh",
        "-r",
        help="Seconds between captures (0 captures once at startup)",
        envvar="PROCTABLE_REFRESH",
    ),
]

TitleOption = Annotated[
    str | None,
    typer.Option(
        "--title",
        "-t",
        help="Title shown on the table border",
        envvar="PROCTABLE_TITLE",
    ),
]

LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Log level: DEBUG, INFO, WARNING or ERROR",
        envvar="PROCTABLE_LOG_LEVEL",
    ),
]

LogFileOption = Annotated[
    Path | None,
    typer.Option(
        "--log-file",
        help="Write logs to this file",
        envvar="PROCTABLE_LOG_FILE",
        dir_okay=False,
    ),
]

VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
]


def run_app(settings: Settings) -> int:
    """Run the dashboard until it quits and report any fatal error.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    tui = ProctableApp(settings=settings)
    tui.run()
    if tui.error is not None:
        err_console.print(f"[red]Error:[/red] {tui.error}")
        return 1
    return tui.return_code or 0


@app.command()
def main(
    refresh: RefreshOption = None,
    title: TitleOption = None,
    log_level: LogLevelOption = None,
    log_file: LogFileOption = None,
    version: VersionOption = None,
) -> None:
    """Show running processes; use the arrow keys to move and q to quit."""
    try:
        settings = build_settings(
            refresh_interval=refresh,
            title=title,
            log_level=log_level,
            log_file=log_file,
        )
    except SettingsError as e:
        err_console.print(f"[red]Invalid option:[/red] {e}")
        raise typer.Exit(2) from e

    configure_logging(settings)
    code = run_app(settings)
    if code:
        raise typer.Exit(code)


def cli_main() -> None:
    """Entry point for the proctable console script."""
    app()
