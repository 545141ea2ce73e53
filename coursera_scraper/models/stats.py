"""
Dataclass for tracking run statistics.
"""

import time
from dataclasses import dataclass, field

from .outcome import LeafStatus, ModuleOutcome


@dataclass
class RunStats:
    """Tracks statistics for a scrape run."""

    weeks_walked: int = 0
    modules_scraped: int = 0
    modules_failed: int = 0
    modules_without_assets: int = 0
    modules_without_video: int = 0
    leaves_downloaded: int = 0
    leaves_planned: int = 0
    leaves_skipped: int = 0
    leaves_failed: int = 0
    total_size_downloaded: int = 0
    dry_run: bool = False
    _weeks_seen: set[int] = field(default_factory=set, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def __post_init__(self):
        self._start_time = time.monotonic()

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._start_time

    def record_module(self, outcome: ModuleOutcome) -> None:
        """Folds one module's outcome into the totals."""
        self._weeks_seen.add(outcome.context.week_index)
        self.weeks_walked = len(self._weeks_seen)
        self.modules_scraped += 1
        if outcome.failed:
            self.modules_failed += 1
        if outcome.assets_empty:
            self.modules_without_assets += 1
        if outcome.video_empty:
            self.modules_without_video += 1

        for leaf in outcome.leaves:
            if leaf.status == LeafStatus.SUCCESS:
                self.leaves_downloaded += 1
                self.total_size_downloaded += leaf.bytes_written
            elif leaf.status == LeafStatus.SKIPPED and leaf.job is not None:
                # Dry run: the transfer was planned but not performed.
                self.leaves_planned += 1
            elif leaf.status == LeafStatus.SKIPPED:
                self.leaves_skipped += 1
            else:
                self.leaves_failed += 1
