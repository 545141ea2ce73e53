"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from coursera_scraper.exceptions import DownloadError
from coursera_scraper.models.outcome import RunOutcome
from coursera_scraper.models.stats import RunStats
from coursera_scraper.utils.formatting import format_duration, format_size

_SUGGESTIONS = {
    "AuthenticationError": [
        "• The CAUTH value may have expired. Log in to www.coursera.org again.",
        "• Copy the value of the 'CAUTH' cookie, not the whole cookie header.",
    ],
    "TreeFetchError": [
        "• Check the course slug in the course URL (/learn/<slug>/...).",
        "• Make sure this account is enrolled in the course.",
    ],
    "MalformedTreeError": [
        "• The course outline did not have the expected week/module layout.",
        "• Run with -vv and check the event log for the raw response.",
    ],
    "ModuleFetchError": [
        "• A module's lecture data could not be fetched.",
        "• Re-run with --continue-on-error to download the remaining modules.",
    ],
    "MissingResolutionError": [
        "• The lecture video has no 720p source.",
        "• Re-run with --continue-on-error to skip it and keep going.",
    ],
    "AssetResolutionError": [
        "• The asset may have been removed from the course.",
        "• Re-run with --continue-on-error to download the remaining files.",
    ],
    "DownloadError": [
        "• Check your internet connection and free disk space.",
        "• Raise --timeout for very large files.",
        "• Reduce --workers if transfers are being throttled.",
    ],
    "ConfigurationError": [
        "• Check the values passed on the command line.",
        "• Run `coursera-scraper --show-config` to inspect the stored settings.",
    ],
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__

    suggestions = _SUGGESTIONS.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )
    if isinstance(error, DownloadError) and error.destination:
        context = {**(context or {}), "file": error.destination}

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(str(error))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the stored configuration, hiding the session token."""
    console = Console()
    lines = []
    for key, value in config_data.items():
        if key == "cauth":
            value = "[hidden]" if value else ""
        lines.append(f"{key} = {value}")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_summary_panel(
    stats: RunStats, outcome: RunOutcome, progress_stats: dict | None = None
):
    """Displays the final summary of a run."""
    console = Console()
    duration_s = stats.elapsed_seconds

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right", width=20)
    table.add_column(style="white", justify="left")

    table.add_row("Weeks:", str(stats.weeks_walked))
    table.add_row("Modules:", str(stats.modules_scraped))
    if stats.modules_without_video:
        table.add_row(
            "No Video:", f"[yellow]{stats.modules_without_video} modules[/yellow]"
        )
    if stats.modules_without_assets:
        table.add_row(
            "No Assets:", f"[yellow]{stats.modules_without_assets} modules[/yellow]"
        )
    table.add_row("", "")

    label = "○ Planned:" if stats.dry_run else "✓ Downloaded:"
    count = stats.leaves_planned if stats.dry_run else stats.leaves_downloaded
    table.add_row(label, f"[bold green]{count}[/bold green]")
    if stats.leaves_skipped:
        table.add_row("○ Skipped:", f"[yellow]{stats.leaves_skipped}[/yellow]")
    if stats.leaves_failed or stats.modules_failed:
        table.add_row(
            "✗ Failed:",
            f"[bold red]{stats.leaves_failed} files, "
            f"{stats.modules_failed} modules[/bold red]",
        )
    table.add_row("", "")

    if not stats.dry_run:
        table.add_row(
            "Total Size:", f"[cyan]{format_size(stats.total_size_downloaded)}[/cyan]"
        )
        avg_speed = stats.total_size_downloaded / duration_s if duration_s > 0 else 0
        table.add_row(
            "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
        )
    table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats and progress_stats.get("peak_concurrent"):
        table.add_row(
            "Peak Concurrent:", f"[green]{progress_stats['peak_concurrent']}[/green]"
        )

    if not outcome.ok:
        title = "✗ [bold]Run Failed[/bold]"
        border_color = "red"
    elif stats.dry_run:
        title = "🔍 [bold]Dry Run Summary[/bold]"
        border_color = "yellow"
    else:
        title = "🎓 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
        )
    )
