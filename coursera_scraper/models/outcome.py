"""
Tagged outcome values produced by the concurrent parts of a run.

Leaves and modules report success or failure as values; only the orchestrator
decides what a failure means for the rest of the run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from coursera_scraper.exceptions import CourseraScraperError

from .course import LeafJob, LeafKind, ModuleContext


class LeafStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class LeafOutcome:
    """The result of handling one leaf (a video or an asset) of a module."""

    sequence_number: int
    kind: LeafKind
    name: str
    status: LeafStatus
    job: Optional[LeafJob] = None
    bytes_written: int = 0
    reason: str = ""
    error: Optional[CourseraScraperError] = None

    @classmethod
    def success(cls, job: LeafJob, bytes_written: int) -> "LeafOutcome":
        return cls(
            sequence_number=job.sequence_number,
            kind=job.kind,
            name=job.filename,
            status=LeafStatus.SUCCESS,
            job=job,
            bytes_written=bytes_written,
        )

    @classmethod
    def skipped(
        cls,
        sequence_number: int,
        kind: LeafKind,
        name: str,
        reason: str,
        job: Optional[LeafJob] = None,
    ) -> "LeafOutcome":
        return cls(
            sequence_number=sequence_number,
            kind=kind,
            name=name,
            status=LeafStatus.SKIPPED,
            job=job,
            reason=reason,
        )

    @classmethod
    def failed(
        cls,
        sequence_number: int,
        kind: LeafKind,
        name: str,
        error: CourseraScraperError,
        job: Optional[LeafJob] = None,
    ) -> "LeafOutcome":
        return cls(
            sequence_number=sequence_number,
            kind=kind,
            name=name,
            status=LeafStatus.FAILED,
            job=job,
            reason=str(error),
            error=error,
        )

    @property
    def ok(self) -> bool:
        return self.status != LeafStatus.FAILED


@dataclass
class ModuleOutcome:
    """
    The result of scraping one module.

    ``error`` is set either by a failed metadata lookup (no leaves are attempted)
    or by the first failed leaf in sequence order.
    """

    context: ModuleContext
    leaves: list[LeafOutcome] = field(default_factory=list)
    assets_empty: bool = False
    video_empty: bool = False
    fetch_error: Optional[CourseraScraperError] = None

    @property
    def failures(self) -> list[LeafOutcome]:
        return [leaf for leaf in self.leaves if leaf.status == LeafStatus.FAILED]

    @property
    def error(self) -> Optional[CourseraScraperError]:
        if self.fetch_error is not None:
            return self.fetch_error
        failures = sorted(self.failures, key=lambda leaf: leaf.sequence_number)
        return failures[0].error if failures else None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def jobs(self) -> list[LeafJob]:
        return [leaf.job for leaf in self.leaves if leaf.job is not None]


class RunState(Enum):
    """Lifecycle of a run: INIT -> AUTHENTICATED -> TREE_LOADED -> WALKING -> DONE|FAILED."""

    INIT = "init"
    AUTHENTICATED = "authenticated"
    TREE_LOADED = "tree_loaded"
    WALKING = "walking"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunOutcome:
    state: RunState
    error: Optional[CourseraScraperError] = None
    failures: list[CourseraScraperError] = field(default_factory=list)
    modules: list[ModuleOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == RunState.DONE
