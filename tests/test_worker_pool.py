import asyncio
from pathlib import Path

import pytest

from coursera_scraper.core.worker_pool import DownloadPool
from coursera_scraper.models.course import LeafJob, LeafKind
from coursera_scraper.models.outcome import LeafStatus

from .conftest import FakeDownloader


def job(n: int) -> LeafJob:
    return LeafJob(
        sequence_number=n,
        kind=LeafKind.ASSET,
        source_url=f"https://cdn/{n}",
        destination_path=Path(f"out/{n:02d} - file"),
    )


class TestDownloadPool:
    def test_never_exceeds_worker_count(self, progress):
        downloader = FakeDownloader(delay=0.01)

        async def _run():
            async with DownloadPool(downloader, max_workers=3, progress=progress) as pool:
                futures = [pool.submit(job(n)) for n in range(1, 11)]
                return await asyncio.gather(*futures), pool.peak_active

        outcomes, peak = asyncio.run(_run())

        assert len(outcomes) == 10
        assert all(o.status == LeafStatus.SUCCESS for o in outcomes)
        assert downloader.peak_active == 3
        assert peak == 3

    def test_transfer_failure_is_a_value(self, progress):
        downloader = FakeDownloader(failing={"https://cdn/2"})

        async def _run():
            async with DownloadPool(downloader, max_workers=2, progress=progress) as pool:
                return await asyncio.gather(pool.submit(job(1)), pool.submit(job(2)))

        first, second = asyncio.run(_run())

        assert first.ok
        assert second.status == LeafStatus.FAILED
        assert second.job == job(2)

    def test_submit_requires_start(self, progress):
        pool = DownloadPool(FakeDownloader(), max_workers=1, progress=progress)

        async def _run():
            pool.submit(job(1))

        with pytest.raises(RuntimeError):
            asyncio.run(_run())
