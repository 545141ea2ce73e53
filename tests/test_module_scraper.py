import asyncio
from pathlib import Path

from coursera_scraper.core.module_scraper import ModuleScraper, assign_sequence_numbers
from coursera_scraper.core.worker_pool import DownloadPool
from coursera_scraper.exceptions import AssetResolutionError, ModuleFetchError
from coursera_scraper.models.course import (
    Asset,
    AssetKind,
    AssetLookup,
    LeafKind,
    ModuleContext,
    VideoLookup,
)
from coursera_scraper.models.outcome import LeafStatus
from coursera_scraper.utils.path import PathNamer

from .conftest import VIDEO_URL, FakeClient, FakeDownloader, asset_lookup, video_lookup

CONTEXT = ModuleContext(
    content_id="ml-course",
    course_id="C123",
    module_id="m1",
    module_name="Welcome",
    week_index=1,
    module_index=1,
)
MODULE_DIR = Path("out/ml-course/Week 01/01 - Welcome")

FORUM = Asset(id="a1", name="Forum", kind=AssetKind.URL_LINK)
SLIDES = Asset(id="a2", name="Slides", kind=AssetKind.DOWNLOADABLE)


def scrape(client, downloader, progress, credential, dry_run=False):
    async def _run():
        async with DownloadPool(downloader, max_workers=4, progress=progress) as pool:
            scraper = ModuleScraper(
                client,
                pool,
                PathNamer(),
                progress,
                output_dir=Path("out"),
                dry_run=dry_run,
            )
            return await scraper.scrape(credential, CONTEXT)

    return asyncio.run(_run())


class TestSequenceNumbers:
    def test_video_first_then_assets(self):
        numbered = assign_sequence_numbers(video_lookup(), asset_lookup(FORUM, SLIDES))
        assert [n for n, _ in numbered] == [1, 2, 3]
        assert numbered[1][1] == FORUM
        assert numbered[2][1] == SLIDES

    def test_assets_start_at_one_without_video(self):
        numbered = assign_sequence_numbers(VideoLookup.empty(), asset_lookup(SLIDES))
        assert numbered == [(1, SLIDES)]

    def test_nothing_to_number(self):
        assert assign_sequence_numbers(VideoLookup.empty(), AssetLookup.empty()) == []


class TestModuleScraper:
    def test_video_link_and_file(self, progress, credential, resolved_slides):
        client = FakeClient(
            modules={"m1": (asset_lookup(FORUM, SLIDES), video_lookup())},
            resolved={"a2": resolved_slides},
        )
        downloader = FakeDownloader()

        outcome = scrape(client, downloader, progress, credential)

        assert not outcome.failed
        assert [leaf.status for leaf in outcome.leaves] == [
            LeafStatus.SUCCESS,
            LeafStatus.SKIPPED,
            LeafStatus.SUCCESS,
        ]
        assert sorted(downloader.downloads) == sorted(
            [
                (VIDEO_URL, MODULE_DIR / "01 - Lecture video (720p).mp4"),
                (resolved_slides.url, MODULE_DIR / "03 - Slides.pdf"),
            ]
        )
        # Link assets are never resolved.
        assert ("resolve", "a1") not in client.calls

    def test_both_empty_produces_no_jobs(self, progress, credential):
        client = FakeClient(modules={"m1": (AssetLookup.empty(), VideoLookup.empty())})
        downloader = FakeDownloader()

        outcome = scrape(client, downloader, progress, credential)

        assert not outcome.failed
        assert outcome.assets_empty and outcome.video_empty
        assert outcome.leaves == []
        assert downloader.downloads == []

    def test_lookup_failure_fails_module(self, progress, credential):
        error = ModuleFetchError("Unable to fetch lecture video (HTTP 500).")
        client = FakeClient(modules={"m1": (asset_lookup(SLIDES), error)})
        downloader = FakeDownloader()

        outcome = scrape(client, downloader, progress, credential)

        assert outcome.error is error
        assert outcome.leaves == []
        assert downloader.downloads == []

    def test_missing_720p_fails_video_leaf(
        self, progress, credential, resolved_slides
    ):
        client = FakeClient(
            modules={"m1": (asset_lookup(SLIDES), video_lookup(label="360p"))},
            resolved={"a2": resolved_slides},
        )
        downloader = FakeDownloader()

        outcome = scrape(client, downloader, progress, credential)

        assert outcome.failed
        assert outcome.leaves[0].kind == LeafKind.VIDEO
        assert outcome.leaves[0].status == LeafStatus.FAILED
        # The asset keeps its number and still downloads.
        assert downloader.downloads == [
            (resolved_slides.url, MODULE_DIR / "02 - Slides.pdf")
        ]

    def test_unresolvable_asset_fails_leaf(self, progress, credential):
        client = FakeClient(
            modules={"m1": (asset_lookup(SLIDES), VideoLookup.empty())},
            resolved={"a2": AssetResolutionError("Unable to resolve asset a2.")},
        )

        outcome = scrape(client, FakeDownloader(), progress, credential)

        assert isinstance(outcome.error, AssetResolutionError)

    def test_failed_transfer_fails_module(self, progress, credential):
        client = FakeClient(modules={"m1": (AssetLookup.empty(), video_lookup())})

        outcome = scrape(client, FakeDownloader(failing={VIDEO_URL}), progress, credential)

        assert outcome.failed
        assert outcome.leaves[0].error.reason.value == "http"

    def test_dry_run_plans_without_downloading(
        self, progress, credential, resolved_slides
    ):
        client = FakeClient(
            modules={"m1": (asset_lookup(SLIDES), video_lookup())},
            resolved={"a2": resolved_slides},
        )
        downloader = FakeDownloader()

        outcome = scrape(client, downloader, progress, credential, dry_run=True)

        assert downloader.downloads == []
        assert [job.filename for job in outcome.jobs] == [
            "01 - Lecture video (720p).mp4",
            "02 - Slides.pdf",
        ]
