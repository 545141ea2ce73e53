"""
A bounded pool of download workers shared by every module of a run.
"""

import asyncio
import logging
from typing import Optional

from coursera_scraper.cli.progress_manager import ProgressManager
from coursera_scraper.exceptions import DownloadError
from coursera_scraper.media import Downloader
from coursera_scraper.models.course import LeafJob
from coursera_scraper.models.outcome import LeafOutcome

log = logging.getLogger(__name__)


class DownloadPool:
    """
    Runs leaf downloads on a fixed number of worker tasks fed by a queue.

    A module submits all of its jobs at once and awaits them together, so its
    leaves still download concurrently, but no more than ``max_workers``
    transfers are ever in flight across the whole run.
    """

    def __init__(
        self,
        downloader: Downloader,
        max_workers: int = 8,
        progress: Optional[ProgressManager] = None,
    ):
        self.downloader = downloader
        self.max_workers = max_workers
        self.progress = progress
        self._queue: asyncio.Queue[tuple[LeafJob, asyncio.Future]] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self.active = 0
        self.peak_active = 0

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"download-worker-{n}")
            for n in range(1, self.max_workers + 1)
        ]
        log.debug(f"Started {self.max_workers} download workers.")

    async def close(self) -> None:
        """Stops the workers; jobs still queued are cancelled."""
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()

    async def __aenter__(self) -> "DownloadPool":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def submit(self, job: LeafJob) -> "asyncio.Future[LeafOutcome]":
        """Queues a job; the returned future resolves to the job's LeafOutcome."""
        if not self._workers:
            raise RuntimeError("DownloadPool.submit() called before start().")
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((job, future))
        return future

    async def _worker(self, worker_id: int) -> None:
        while True:
            job, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                outcome = await self._run(job)
                if not future.done():
                    future.set_result(outcome)
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as e:
                # Not a transfer failure: hand it to whoever awaits the job.
                log.debug(f"Worker {worker_id} hit an unexpected error: {e!r}")
                if not future.done():
                    future.set_exception(e)
            finally:
                self._queue.task_done()

    async def _run(self, job: LeafJob) -> LeafOutcome:
        task_id = self.progress.add_transfer(job) if self.progress else None

        def on_progress(completed: int, total: Optional[int]) -> None:
            if self.progress:
                self.progress.update_transfer(task_id, completed, total)

        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            bytes_written = await self.downloader.download(
                job.source_url, job.destination_path, on_progress=on_progress
            )
        except DownloadError as e:
            if self.progress:
                self.progress.finish_transfer(task_id, job, error=e)
            return LeafOutcome.failed(
                job.sequence_number, job.kind, job.filename, e, job
            )
        finally:
            self.active -= 1

        if self.progress:
            self.progress.finish_transfer(task_id, job)
        return LeafOutcome.success(job, bytes_written)
