"""
Reports scrape progress: course/week/module headers, one line per leaf outcome,
and a Rich progress bar for every active transfer.
"""

import logging
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from coursera_scraper.models.course import LeafJob, LeafKind

log = logging.getLogger("coursera_scraper")

_LEAF_LABELS = {LeafKind.VIDEO: "Video", LeafKind.ASSET: "Asset"}


def _leaf_prefix(kind: LeafKind, sequence_number: int) -> str:
    return f"      [white]{_LEAF_LABELS[kind]}[/white] #{sequence_number:02d} -"


class ProgressManager:
    """
    Console progress for a run.

    Usable with or without ``async with``: inside the context a live progress bar
    is shown for transfers, outside it only the text lines are printed.
    """

    def __init__(self, console: Console, dry_run: bool = False):
        self.console = console
        self.dry_run = dry_run

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=20),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=True,
        )
        self._live = False
        self._active_tasks: dict[TaskID, LeafJob] = {}
        self._stats = {
            "completed": 0,
            "failed": 0,
            "skipped": 0,
            "active_downloads": 0,
            "peak_concurrent": 0,
        }

    # Hierarchy headers

    def course_started(self, content_id: str) -> None:
        self.console.print(f"\n[white]Course[/white] '[yellow]{escape(content_id)}[/yellow]'")

    def week_started(self, week_index: int) -> None:
        self.console.print(f"\n  [white]Week[/white] [yellow]#{week_index:02d}[/yellow]")

    def module_started(self, module_index: int, module_name: str) -> None:
        self.console.print(
            f"\n    [white]Module[/white] "
            f"[yellow]#{module_index:02d} - {escape(module_name)}[/yellow]"
        )

    def module_empty(self, category: str) -> None:
        self.console.print(
            f"      [dim]Module does not have any downloadable {category}.[/dim]"
        )

    def module_failed(self, error: Exception) -> None:
        self.console.print(f"      [red]✗ {escape(str(error))}[/red]")

    # Leaf lines

    def leaf_skipped(
        self, sequence_number: int, kind: LeafKind, name: str, reason: str
    ) -> None:
        self._stats["skipped"] += 1
        self.console.print(
            f"{_leaf_prefix(kind, sequence_number)} "
            f"[yellow]{escape(reason)} {escape(name)}[/yellow]"
        )

    def leaf_downloading(self, sequence_number: int, kind: LeafKind, name: str) -> None:
        self.console.print(
            f"{_leaf_prefix(kind, sequence_number)} "
            f"[yellow]Downloading {escape(name)}[/yellow]"
        )

    def leaf_saved(self, sequence_number: int, kind: LeafKind, filename: str) -> None:
        self._stats["completed"] += 1
        self.console.print(
            f"{_leaf_prefix(kind, sequence_number)} "
            f"[green]Saved '{escape(filename)}'[/green]"
        )

    def leaf_failed(
        self, sequence_number: int, kind: LeafKind, name: str, error: Exception
    ) -> None:
        self._stats["failed"] += 1
        self.console.print(
            f"{_leaf_prefix(kind, sequence_number)} "
            f"[red]✗ {escape(name)} ({escape(str(error))})[/red]"
        )

    # Transfers

    def add_transfer(self, job: LeafJob) -> Optional[TaskID]:
        if self.dry_run:
            return None
        description = job.filename
        if len(description) > 48:
            description = description[:45] + "..."
        task_id = self.progress.add_task(escape(description), total=None, start=True)
        self._active_tasks[task_id] = job
        self._stats["active_downloads"] = len(self._active_tasks)
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], self._stats["active_downloads"]
        )
        return task_id

    def update_transfer(
        self, task_id: Optional[TaskID], completed: int, total: Optional[int] = None
    ) -> None:
        if task_id is None:
            return
        self.progress.update(task_id, completed=completed, total=total)

    def finish_transfer(
        self,
        task_id: Optional[TaskID],
        job: LeafJob,
        error: Optional[Exception] = None,
    ) -> None:
        if task_id is not None and task_id in self._active_tasks:
            self.progress.remove_task(task_id)
            del self._active_tasks[task_id]
            self._stats["active_downloads"] = len(self._active_tasks)

        if error is None:
            self.leaf_saved(job.sequence_number, job.kind, job.filename)
        else:
            self.leaf_failed(job.sequence_number, job.kind, job.filename, error)

    # Run level

    def run_failed(self, error: Exception) -> None:
        log.error(f"[red]✗ {escape(type(error).__name__)}: {escape(str(error))}[/red]")

    def get_statistics(self) -> dict[str, Any]:
        return self._stats.copy()

    async def __aenter__(self):
        if not self.dry_run:
            self.progress.start()
            self._live = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            self.progress.stop()
            self._live = False
