"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from coursera_scraper import __version__
from coursera_scraper.api.client import MetadataClient
from coursera_scraper.core.orchestrator import Orchestrator
from coursera_scraper.media.downloader import Downloader
from coursera_scraper.models.course import CredentialContext
from coursera_scraper.models.outcome import RunOutcome
from coursera_scraper.storage.config_manager import ConfigManager
from coursera_scraper.utils.structured_logger import create_event_logger

from .formatters import print_config, print_summary_panel
from .progress_manager import ProgressManager

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
log = logging.getLogger("coursera_scraper")

app = typer.Typer(
    name="coursera-scraper",
    help=(
        "Downloads the lecture videos and course files of a Coursera course. Use"
        " 'coursera-scraper <command> --help' for more info."
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
    return base_dir.expanduser() / "coursera-scraper"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the stored configuration."
    ),
):
    """Coursera course downloader CLI"""
    if version:
        console.print(
            f"[bold]coursera-scraper[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("coursera_scraper").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]coursera-scraper "
                "download --save[/cyan] first."
            )
            raise typer.Exit(code=1)
        print_config(CONFIG_FILE, ConfigManager(CONFIG_FILE).read())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _prompt_missing(cli_options: dict, stored: dict) -> None:
    """
    Asks for the session token and course when they are not given as flags.

    The remembered values are offered as defaults, so pressing Enter reuses them.
    """
    if not cli_options.get("cauth"):
        cli_options["cauth"] = typer.prompt(
            "CAUTH value",
            default=stored.get("cauth") or None,
            hide_input=True,
            show_default=False,
        )
    if not cli_options.get("course_id"):
        cli_options["course_id"] = typer.prompt(
            "Course ID (e.g. neural-networks-deep-learning)",
            default=stored.get("course_id") or None,
        )


@app.command(name="download")
def download_command(
    cauth: str | None = typer.Option(
        None,
        "--cauth",
        envvar="COURSERA_CAUTH",
        help="Value of the CAUTH cookie of a logged-in www.coursera.org session.",
        show_default=False,
    ),
    course_id: str | None = typer.Option(
        None,
        "-c",
        "--course",
        help="Course slug, as in coursera.org/learn/<slug>.",
    ),
    output_dir: str | None = typer.Option(
        None,
        "-o",
        "--output",
        help="Directory under which the '<course>/Week NN/...' tree is created.",
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default 8).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Seconds allowed for each file transfer (default 300).",
    ),
    sanitize_names: bool | None = typer.Option(
        None,
        "--sanitize/--no-sanitize",
        help="Replace characters that are not valid in file names.",
    ),
    fail_fast: bool | None = typer.Option(
        None,
        "--fail-fast/--continue-on-error",
        help="Stop at the first failed module, or attempt every module.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List what would be downloaded without writing any files.",
    ),
    log_dir: str | None = typer.Option(
        None,
        "--log-dir",
        help="Write a JSON-lines event log of the run to this directory.",
    ),
    save: bool = typer.Option(
        True,
        "--save/--no-save",
        help="Remember the CAUTH value and course for the next run.",
    ),
):
    """Download every lecture video and file of a course."""
    cli_options = {
        key: value
        for key, value in {
            "cauth": cauth,
            "course_id": course_id,
            "output_dir": output_dir,
            "max_workers": workers,
            "download_timeout": timeout,
            "sanitize_names": sanitize_names,
            "fail_fast": fail_fast,
            "log_dir": log_dir,
        }.items()
        if value is not None
    }

    config_manager = ConfigManager(CONFIG_FILE)
    _prompt_missing(cli_options, config_manager.read())
    config = config_manager.load_config({**cli_options, "dry_run": dry_run})

    if save:
        config_manager.save_settings(
            {"cauth": config.cauth, "course_id": config.course_id}
        )
        log.debug(f"Remembered CAUTH and course in '{CONFIG_FILE}'.")

    async def _download_async() -> RunOutcome:
        base_logger, events = create_event_logger(
            Path(config.log_dir) if config.log_dir else None
        )
        client = MetadataClient(config.max_workers)
        downloader = Downloader(config.download_timeout, config.max_workers)

        try:
            async with ProgressManager(
                console=console, dry_run=config.dry_run
            ) as progress_manager:
                orchestrator = Orchestrator(
                    config, client, downloader, progress_manager, events
                )
                if config.dry_run:
                    console.print("[bold cyan]🎓 Starting dry run...[/bold cyan]")
                else:
                    console.print("[bold cyan]🎓 Starting download session...[/bold cyan]")

                credential = CredentialContext(session_token=config.cauth)
                outcome = await orchestrator.run(credential, config.course_id)
                progress_stats = progress_manager.get_statistics()
        finally:
            await downloader.close()
            await client.close()
            base_logger.close()

        print_summary_panel(orchestrator.stats, outcome, progress_stats)
        if base_logger.json_log_path:
            console.print(f"[dim]Event log: {base_logger.json_log_path}[/dim]")
        return outcome

    outcome = asyncio.run(_download_async())
    if not outcome.ok:
        raise typer.Exit(code=1)
