"""
Structured event log for scrape runs.
Writes one JSON object per line so a run can be analysed after the fact.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from coursera_scraper.models.course import ContentTree, LeafJob, ModuleContext
from coursera_scraper.models.outcome import LeafOutcome, LeafStatus, RunOutcome
from coursera_scraper.models.stats import RunStats


class StructuredLogger:
    """
    Emits named events with key/value context to the standard logger and,
    when a log directory is configured, to a JSON-lines file.

    Usage:
        logger = StructuredLogger("coursera_scraper", log_dir=Path("logs"))
        logger.info("leaf_saved", module_id="abc", sequence=2, size_bytes=1024)
    """

    def __init__(
        self,
        name: str,
        log_dir: Optional[Path] = None,
        enable_json: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.json_log_path: Optional[Path] = None

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_log_path = log_dir / f"coursera_scraper_{timestamp}.jsonl"
            self._json_file = open(self.json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        parts = [f"[{event}]"]
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except OSError as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        # The console already shows progress; events only reach it at debug level.
        self._logger.debug(self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def info(self, event: str, **context) -> None:
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class RunEventLogger:
    """Run, module and leaf events on top of a StructuredLogger."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def run_started(self, content_id: str, max_workers: int, dry_run: bool) -> None:
        self.logger.set_session_context(content_id=content_id)
        self.logger.info(
            "run_started",
            content_id=content_id,
            max_workers=max_workers,
            dry_run=dry_run,
        )

    def tree_loaded(self, tree: ContentTree) -> None:
        self.logger.info(
            "tree_loaded",
            course_id=tree.course_id,
            weeks=len(tree.weeks),
            modules=tree.module_count,
        )

    def module_started(self, context: ModuleContext) -> None:
        self.logger.info(
            "module_started",
            week=context.week_index,
            module=context.module_index,
            module_id=context.module_id,
            module_name=context.module_name,
        )

    def module_empty(self, context: ModuleContext, category: str) -> None:
        self.logger.info(
            "module_empty",
            module_id=context.module_id,
            category=category,
        )

    def leaf_planned(self, context: ModuleContext, job: LeafJob) -> None:
        self.logger.info(
            "leaf_planned",
            module_id=context.module_id,
            sequence=job.sequence_number,
            kind=job.kind.value,
            destination=str(job.destination_path),
        )

    def leaf_finished(self, context: ModuleContext, outcome: LeafOutcome) -> None:
        context_fields = {
            "module_id": context.module_id,
            "sequence": outcome.sequence_number,
            "kind": outcome.kind.value,
            "name": outcome.name,
        }
        if outcome.status == LeafStatus.SUCCESS:
            self.logger.info(
                "leaf_saved", size_bytes=outcome.bytes_written, **context_fields
            )
        elif outcome.status == LeafStatus.SKIPPED:
            self.logger.info("leaf_skipped", reason=outcome.reason, **context_fields)
        else:
            self.logger.error(
                "leaf_failed",
                error_type=type(outcome.error).__name__,
                error=outcome.reason,
                **context_fields,
            )

    def run_finished(self, outcome: RunOutcome, stats: RunStats) -> None:
        fields = {
            "state": outcome.state.value,
            "duration_s": round(stats.elapsed_seconds, 2),
            "modules_scraped": stats.modules_scraped,
            "leaves_downloaded": stats.leaves_downloaded,
            "leaves_planned": stats.leaves_planned,
            "leaves_skipped": stats.leaves_skipped,
            "leaves_failed": stats.leaves_failed,
            "total_size_bytes": stats.total_size_downloaded,
        }
        if outcome.error is not None:
            self.logger.error(
                "run_failed",
                error_type=type(outcome.error).__name__,
                error=str(outcome.error),
                **fields,
            )
        else:
            self.logger.info("run_completed", **fields)


def create_event_logger(
    log_dir: Optional[Path] = None,
) -> tuple[StructuredLogger, RunEventLogger]:
    """
    Create the structured logger and its run-event facade.

    Returns:
        Tuple of (base_logger, run_event_logger)
    """
    base = StructuredLogger(
        "coursera_scraper.events", log_dir=log_dir, enable_json=log_dir is not None
    )
    return base, RunEventLogger(base)
