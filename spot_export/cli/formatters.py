"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from spot_export.models.config import ExportConfig
from spot_export.models.stats import ExportStats
from spot_export.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Pass a valid token with --access-token.",
            "• Or omit --username in a terminal to log in through the browser.",
            "• Delete a stale credentials.json from the config directory.",
        ],
        "ConnectionFailedError": [
            "• Check your internet connection.",
            "• Your access token may have expired; request a new one.",
            "• A free account cannot stream; a Premium account is required.",
        ],
        "ConfigurationError": [
            "• Check the values in config.ini.",
            "• Run `spot-export validate` to see the resolved settings.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The CDN might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
        "TimeoutError": [
            "• A download timed out, which may indicate network throttling.",
            "• Raise --pacing to space out requests.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_validation_table(config: ExportConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if config.access_token:
        auth_method = "Access token"
    elif config.username:
        auth_method = f"Cached / interactive ({config.username})"
    else:
        auth_method = "Cached / interactive"

    table.add_row("Auth Method:", f"[green]{auth_method}[/green]")
    table.add_row("Credentials File:", f"[dim]{config.credentials_file}[/dim]")
    table.add_row("Delivery Mode:", config.delivery_mode.value)
    if config.helper_path:
        table.add_row("Helper:", f"[dim]{config.helper_path}[/dim]")
    table.add_row("Output Directory:", f"[dim]{config.output_dir}[/dim]")
    table.add_row(
        "Group by Container:",
        "✓ Enabled" if config.group_by_container else "✗ Disabled",
    )
    table.add_row("Cover Art:", "✓ Enabled" if config.fetch_cover else "✗ Disabled")
    table.add_row("Verify Ogg:", "✓ Enabled" if config.verify_ogg else "✗ Disabled")
    table.add_row("Pacing:", f"{config.pacing_seconds:g}s")
    if config.json_log_dir:
        table.add_row("JSON Log Dir:", f"[dim]{config.json_log_dir}[/dim]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(stats: ExportStats, duration_s: float):
    """Displays the final summary of the export session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "Links:",
        f"{stats.links_read}"
        + (f" [red]({stats.links_failed} failed)[/red]" if stats.links_failed else ""),
    )
    stats_table.add_row("Queued:", str(stats.items_queued))
    stats_table.add_row(
        "✓ Delivered:", f"[bold green]{stats.items_delivered}[/bold green]"
    )

    if stats.items_skipped_exists > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.items_skipped_exists} (exists)[/yellow]"
        )

    if stats.items_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.items_failed}[/bold red]")
        for reason, count in stats.failure_reasons.most_common():
            stats_table.add_row("", f"[red]{count} × {reason}[/red]")

    stats_table.add_row("", "")  # Spacer

    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_delivered)}[/cyan]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if stats.items_failed:
        title = "⚠ [bold]Export Finished with Failures[/bold]"
        border_color = "yellow"
    else:
        title = "🎵 [bold]Export Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )

    if stats.failed_items:
        console.print("[dim]Failed items:[/dim]")
        for uri in stats.failed_items:
            console.print(f"  [red]✗[/red] [dim]{uri}[/dim]")

    console.print()
