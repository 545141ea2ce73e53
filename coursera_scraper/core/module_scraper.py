"""
Scrapes a single module: looks up its video and assets, numbers the leaves,
and hands every downloadable leaf to the shared download pool.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from coursera_scraper.api.client import MetadataClient
from coursera_scraper.cli.progress_manager import ProgressManager
from coursera_scraper.exceptions import (
    AssetResolutionError,
    MissingResolutionError,
    ModuleFetchError,
)
from coursera_scraper.models.course import (
    VIDEO_RESOLUTION,
    Asset,
    AssetLookup,
    CredentialContext,
    LeafJob,
    LeafKind,
    ModuleContext,
    VideoDescriptor,
    VideoLookup,
)
from coursera_scraper.models.outcome import LeafOutcome, ModuleOutcome
from coursera_scraper.utils.path import VIDEO_LEAF_NAME, PathNamer
from coursera_scraper.utils.structured_logger import RunEventLogger, create_event_logger

from .worker_pool import DownloadPool

log = logging.getLogger(__name__)

Leaf = Union[VideoDescriptor, Asset]


def assign_sequence_numbers(
    video: VideoLookup, assets: AssetLookup
) -> list[tuple[int, Leaf]]:
    """
    Numbers a module's leaves from 1.

    The video, when present, is always 1. Assets follow in listing order and
    every listed asset takes a number, including link assets that are never
    downloaded.
    """
    leaves: list[Leaf] = []
    if not video.is_empty:
        leaves.append(video.video)
    if not assets.is_empty:
        leaves.extend(assets.assets)
    return list(enumerate(leaves, start=1))


class ModuleScraper:
    """Turns one module into LeafJobs and collects their outcomes."""

    def __init__(
        self,
        client: MetadataClient,
        pool: DownloadPool,
        path_namer: PathNamer,
        progress: ProgressManager,
        output_dir: Path = Path("."),
        dry_run: bool = False,
        events: Optional[RunEventLogger] = None,
    ):
        self.client = client
        self.pool = pool
        self.path_namer = path_namer
        self.progress = progress
        self.output_dir = Path(output_dir)
        self.dry_run = dry_run
        self.events = events or create_event_logger()[1]

    async def scrape(
        self, credential: CredentialContext, context: ModuleContext
    ) -> ModuleOutcome:
        """
        Scrapes one module.

        The asset and video lookups run concurrently; once both are in, all of
        the module's leaves are processed concurrently. Failures come back as
        values on the returned ModuleOutcome.
        """
        self.progress.module_started(context.module_index, context.module_name)
        self.events.module_started(context)
        outcome = ModuleOutcome(context=context)

        assets, video = await asyncio.gather(
            self.client.fetch_module_assets(
                credential, context.course_id, context.module_id
            ),
            self.client.fetch_module_video(
                credential, context.course_id, context.module_id
            ),
            return_exceptions=True,
        )
        errors = [r for r in (assets, video) if isinstance(r, BaseException)]
        for error in errors:
            if not isinstance(error, ModuleFetchError):
                raise error
        if errors:
            log.debug(f"Lookups for module {context.module_id} failed: {errors[0]!r}")
            outcome.fetch_error = errors[0]
            self.progress.module_failed(errors[0])
            return outcome

        if assets.is_empty:
            outcome.assets_empty = True
            self.progress.module_empty("assets")
            self.events.module_empty(context, "assets")
        if video.is_empty:
            outcome.video_empty = True
            self.progress.module_empty("videos")
            self.events.module_empty(context, "videos")

        tasks = []
        for sequence_number, leaf in assign_sequence_numbers(video, assets):
            if isinstance(leaf, VideoDescriptor):
                tasks.append(self._video_leaf(context, sequence_number, leaf))
            else:
                tasks.append(
                    self._asset_leaf(credential, context, sequence_number, leaf)
                )

        outcome.leaves = list(await asyncio.gather(*tasks))
        for leaf_outcome in outcome.leaves:
            self.events.leaf_finished(context, leaf_outcome)
        return outcome

    async def _video_leaf(
        self, context: ModuleContext, sequence_number: int, video: VideoDescriptor
    ) -> LeafOutcome:
        self.progress.leaf_downloading(
            sequence_number, LeafKind.VIDEO, f"{VIDEO_RESOLUTION} lecture video"
        )
        try:
            url = video.url_for(VIDEO_RESOLUTION)
        except MissingResolutionError as e:
            self.progress.leaf_failed(sequence_number, LeafKind.VIDEO, VIDEO_LEAF_NAME, e)
            return LeafOutcome.failed(sequence_number, LeafKind.VIDEO, VIDEO_LEAF_NAME, e)

        destination = self.output_dir / self.path_namer.video_path(
            context.content_id,
            context.week_index,
            context.module_index,
            context.module_name,
            sequence_number,
        )
        job = LeafJob(
            sequence_number=sequence_number,
            kind=LeafKind.VIDEO,
            source_url=url,
            destination_path=destination,
        )
        return await self._dispatch(context, job)

    async def _asset_leaf(
        self,
        credential: CredentialContext,
        context: ModuleContext,
        sequence_number: int,
        asset: Asset,
    ) -> LeafOutcome:
        if asset.is_link:
            self.progress.leaf_skipped(
                sequence_number, LeafKind.ASSET, asset.name, "Skipping URL"
            )
            return LeafOutcome.skipped(
                sequence_number, LeafKind.ASSET, asset.name, "link asset"
            )

        self.progress.leaf_downloading(sequence_number, LeafKind.ASSET, asset.name)
        try:
            resolved = await self.client.resolve_asset_download_url(credential, asset.id)
        except AssetResolutionError as e:
            self.progress.leaf_failed(sequence_number, LeafKind.ASSET, asset.name, e)
            return LeafOutcome.failed(sequence_number, LeafKind.ASSET, asset.name, e)

        destination = self.output_dir / self.path_namer.leaf_path(
            context.content_id,
            context.week_index,
            context.module_index,
            context.module_name,
            sequence_number,
            resolved.display_name,
        )
        job = LeafJob(
            sequence_number=sequence_number,
            kind=LeafKind.ASSET,
            source_url=resolved.url,
            destination_path=destination,
        )
        return await self._dispatch(context, job)

    async def _dispatch(self, context: ModuleContext, job: LeafJob) -> LeafOutcome:
        self.events.leaf_planned(context, job)
        if self.dry_run:
            self.progress.leaf_skipped(
                job.sequence_number,
                job.kind,
                str(job.destination_path),
                "(Dry Run) Would save to",
            )
            return LeafOutcome.skipped(
                job.sequence_number, job.kind, job.filename, "dry run", job
            )
        return await self.pool.submit(job)
