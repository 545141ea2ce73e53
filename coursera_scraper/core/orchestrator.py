"""
The top-level driver of a run: authenticate, load the content tree, walk it,
and decide what failures mean for the rest of the run.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.markup import escape

from coursera_scraper.api.client import MetadataClient
from coursera_scraper.cli.progress_manager import ProgressManager
from coursera_scraper.exceptions import CourseraScraperError
from coursera_scraper.media import Downloader
from coursera_scraper.models.config import ScraperConfig
from coursera_scraper.models.course import CredentialContext
from coursera_scraper.models.outcome import RunOutcome, RunState
from coursera_scraper.models.stats import RunStats
from coursera_scraper.utils.path import PathNamer
from coursera_scraper.utils.structured_logger import RunEventLogger, create_event_logger

from .module_scraper import ModuleScraper
from .tree_walker import TreeWalker
from .worker_pool import DownloadPool

log = logging.getLogger(__name__)


class Orchestrator:
    """
    Orchestrates a complete scrape of one course.

    The run moves through INIT -> AUTHENTICATED -> TREE_LOADED -> WALKING and
    ends in DONE or FAILED; there is no way back from FAILED. This class is the
    only place that recovers from errors: with ``config.fail_fast`` the first
    failed module ends the walk, otherwise every module is attempted and all
    failures are collected.
    """

    def __init__(
        self,
        config: ScraperConfig,
        client: MetadataClient,
        downloader: Downloader,
        progress: ProgressManager,
        events: Optional[RunEventLogger] = None,
    ):
        self.config = config
        self.client = client
        self.downloader = downloader
        self.progress = progress
        self.events = events or create_event_logger()[1]
        self.path_namer = PathNamer(sanitize=config.sanitize_names)
        self.stats = RunStats(dry_run=config.dry_run)
        self.state = RunState.INIT

    def _transition(self, state: RunState) -> None:
        log.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, credential: CredentialContext, content_id: str) -> RunOutcome:
        """
        Scrapes ``content_id`` with the session in ``credential``.

        Never raises for application errors; the returned RunOutcome carries the
        final state and the originating error.
        """
        self.events.run_started(content_id, self.config.max_workers, self.config.dry_run)
        outcome = RunOutcome(state=RunState.INIT)

        try:
            account_id = await self.client.resolve_identity(credential)
            self._transition(RunState.AUTHENTICATED)
            context = credential.bind(account_id=account_id, root_content_id=content_id)

            tree = await self.client.fetch_content_tree(context, content_id, account_id)
            self._transition(RunState.TREE_LOADED)
            self.events.tree_loaded(tree)

            await self._walk(context, tree, outcome)
        except CourseraScraperError as e:
            outcome.error = e
            outcome.failures.append(e)

        if outcome.error is not None:
            self._transition(RunState.FAILED)
            self.progress.run_failed(outcome.error)
            if len(outcome.failures) > 1:
                log.error(
                    f"[red]{len(outcome.failures)} modules failed; "
                    f"the first error is shown above.[/red]"
                )
        else:
            self._transition(RunState.DONE)

        outcome.state = self.state
        self.events.run_finished(outcome, self.stats)
        return outcome

    async def _walk(self, context: CredentialContext, tree, outcome: RunOutcome) -> None:
        async with DownloadPool(
            self.downloader, self.config.max_workers, self.progress
        ) as pool:
            scraper = ModuleScraper(
                self.client,
                pool,
                self.path_namer,
                self.progress,
                output_dir=Path(self.config.output_dir),
                dry_run=self.config.dry_run,
                events=self.events,
            )
            walker = TreeWalker(scraper, self.progress)
            self._transition(RunState.WALKING)

            modules = walker.walk(context, tree)
            try:
                async for module_outcome in modules:
                    outcome.modules.append(module_outcome)
                    self.stats.record_module(module_outcome)
                    if not module_outcome.failed:
                        continue

                    outcome.failures.append(module_outcome.error)
                    if outcome.error is None:
                        outcome.error = module_outcome.error
                    if self.config.fail_fast:
                        ctx = module_outcome.context
                        log.debug(
                            f"Stopping after week {ctx.week_index:02d}, module "
                            f"{ctx.module_index:02d} ({escape(ctx.module_name)})."
                        )
                        break
            finally:
                await modules.aclose()
