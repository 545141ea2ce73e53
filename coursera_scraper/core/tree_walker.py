"""
Walks a content tree week by week, module by module.
"""

import logging
from typing import AsyncIterator

from coursera_scraper.cli.progress_manager import ProgressManager
from coursera_scraper.models.course import ContentTree, CredentialContext, ModuleContext
from coursera_scraper.models.outcome import ModuleOutcome

from .module_scraper import ModuleScraper

log = logging.getLogger(__name__)


class TreeWalker:
    """
    Visits every module of a tree strictly in listing order.

    Each module is scraped to completion before the next one starts, which keeps
    the console output coherent. Outcomes are yielded as they complete; a caller
    that stops iterating stops the walk before the next module begins.
    """

    def __init__(self, scraper: ModuleScraper, progress: ProgressManager):
        self.scraper = scraper
        self.progress = progress

    async def walk(
        self, credential: CredentialContext, tree: ContentTree
    ) -> AsyncIterator[ModuleOutcome]:
        self.progress.course_started(tree.content_id)

        for week_index, week in enumerate(tree.weeks, start=1):
            self.progress.week_started(week_index)
            if not week.modules:
                log.debug(f"Week {week_index:02d} has no modules.")

            for module_index, module in enumerate(week.modules, start=1):
                context = ModuleContext(
                    content_id=tree.content_id,
                    course_id=tree.course_id,
                    module_id=module.id,
                    module_name=module.name,
                    week_index=week_index,
                    module_index=module_index,
                )
                yield await self.scraper.scrape(credential, context)
