"""
Defines the command-line interface for the application using Typer.
Links are taken from the command line or, when none are given, from stdin.
"""

import asyncio
import logging
import os
import sys
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from spot_export import __version__
from spot_export.api.auth import Credentials, build_provider_chain, resolve_credentials
from spot_export.api.session import SessionClient
from spot_export.core.export_manager import ExportManager
from spot_export.core.link_parser import read_links
from spot_export.exceptions import SpotExportError
from spot_export.media.downloader import close_connection_pool
from spot_export.models.config import ExportConfig
from spot_export.models.items import ParsedLink
from spot_export.storage.config_manager import ConfigManager
from spot_export.utils.structured_logger import create_export_logger

from .formatters import (
    format_error_with_suggestions,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("spot_export")

app = typer.Typer(
    name="spot-export",
    help=(
        "Resolve Spotify links into tracks and episodes and export their audio."
        " Use 'spot-export <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "spot-export"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Spotify link exporter CLI"""
    if version:
        console.print(f"[bold]spot-export[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    logging.getLogger("spot_export").setLevel("DEBUG" if verbose else "INFO")

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    username: str | None = typer.Option(
        None, "--username", "-u", help="Account username used for cached logins."
    ),
    output_dir: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Directory receiving exported audio."
    ),
    helper: str | None = typer.Option(
        None, "--helper", "-H", help="Tagging helper executable (helper mode)."
    ),
    group: bool = typer.Option(
        False, "--group/--flat", help="Group output by source container."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Write a configuration file with the given defaults."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        key: value
        for key, value in {
            "username": username,
            "output_dir": output_dir,
            "helper_path": helper,
            "group_by_container": group,
        }.items()
        if value is not None
    }
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except SpotExportError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(
        f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]"
    )


def _read_links_from_stdin() -> list[ParsedLink]:
    """Reads links from stdin until `done` or end of input."""
    if sys.stdin.isatty():
        console.print(
            "[dim]Enter links, one per line. Finish with [cyan]done[/cyan] or"
            " Ctrl-D.[/dim]"
        )
    try:
        return read_links(sys.stdin)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Input interrupted.[/yellow]")
        raise typer.Exit(code=1) from None


async def _connect_session(
    credentials: Credentials, config: ExportConfig
) -> SessionClient:
    # Imported here so commands that never connect do not load librespot.
    from spot_export.api.librespot_client import LibrespotSessionClient

    return await LibrespotSessionClient.connect(credentials, config.credentials_file)


def _reject_empty(value: str | None, flag: str) -> None:
    if value is not None and not value.strip():
        console.print(f"[red]✗ {flag} cannot be empty.[/red]")
        raise typer.Exit(code=1)


@app.command(name="export")
def export_command(
    links: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Spotify links or URIs. Read from stdin when omitted."
    ),
    username: str | None = typer.Option(
        None, "--username", "-u", help="Username for cached or interactive login."
    ),
    access_token: str | None = typer.Option(
        None, "--access-token", "-k", help="Log in with an OAuth access token."
    ),
    helper: str | None = typer.Option(
        None,
        "--helper",
        "-H",
        help="Pipe audio to this executable instead of writing files directly.",
    ),
    output_dir: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Directory receiving exported audio."
    ),
    group: bool | None = typer.Option(
        None,
        "--group/--flat",
        help="Place items under a directory named after their container.",
    ),
    cover: bool | None = typer.Option(
        None, "--cover/--no-cover", help="Stage cover art for the helper."
    ),
    pacing: float | None = typer.Option(
        None, "--pacing", help="Seconds to wait between items (default 10)."
    ),
    verify: bool | None = typer.Option(
        None,
        "--verify/--no-verify",
        help="Check written Ogg files with mutagen (direct mode only).",
    ),
    json_log: Path | None = typer.Option(  # noqa: B008
        None, "--json-log", help="Also write item events as JSON lines to this dir."
    ),
):
    """Export every track and episode reachable from the given links."""
    _reject_empty(username, "--username")
    _reject_empty(access_token, "--access-token")

    cli_options = {
        key: value
        for key, value in {
            "source_links": links,
            "username": username,
            "access_token": access_token,
            "helper_path": helper,
            "output_dir": output_dir,
            "group_by_container": group,
            "fetch_cover": cover,
            "pacing_seconds": pacing,
            "verify_ogg": verify,
            "json_log_dir": json_log,
        }.items()
        if value is not None
    }

    try:
        config = ConfigManager(CONFIG_FILE).load_config(cli_options)
        credentials = resolve_credentials(
            build_provider_chain(
                config.access_token, config.username, config.credentials_file
            )
        )
    except SpotExportError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    async def _export_async():
        session = None
        events = create_export_logger(config.json_log_dir)
        try:
            session = await _connect_session(credentials, config)

            if config.source_links:
                parsed = read_links(config.source_links)
            else:
                parsed = await asyncio.to_thread(_read_links_from_stdin)

            manager = ExportManager(config, session, events=events)
            console.print("[bold cyan]🎵 Starting export session...[/bold cyan]")
            start_time = time.monotonic()
            stats = await manager.execute(parsed)
            return stats, time.monotonic() - start_time
        finally:
            await close_connection_pool()
            if session:
                await session.close()
            events.close()

    try:
        stats, duration = asyncio.run(_export_async())
    except SpotExportError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    print_summary_panel(stats, duration)


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config()
        print_validation_table(config)
    except SpotExportError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
