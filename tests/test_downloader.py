import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from coursera_scraper.exceptions import DownloadError, DownloadFailureReason
from coursera_scraper.media.downloader import Downloader

PAYLOAD = b"lecture-bytes" * 1000


async def _file(request):
    return web.Response(body=PAYLOAD)


async def _slow(request):
    await asyncio.sleep(1)
    return web.Response(body=b"late")


def run_download(tmp_path, route, timeout=5.0, progress=None):
    destination = tmp_path / "Week 01" / "01 - Intro" / "01 - Lecture video (720p).mp4"

    async def _run():
        app = web.Application()
        app.router.add_get("/file", _file)
        app.router.add_get("/slow", _slow)
        server = test_utils.TestServer(app)
        await server.start_server()
        downloader = Downloader(timeout=timeout)
        try:
            return await downloader.download(
                str(server.make_url(route)), destination, on_progress=progress
            )
        finally:
            await downloader.close()
            await server.close()

    return destination, lambda: asyncio.run(_run())


class TestDownloader:
    def test_writes_file_and_creates_directories(self, tmp_path):
        destination, run = run_download(tmp_path, "/file")
        assert run() == len(PAYLOAD)
        assert destination.read_bytes() == PAYLOAD
        assert not destination.with_name(destination.name + ".part").exists()

    def test_overwrites_existing_file(self, tmp_path):
        destination, run = run_download(tmp_path, "/file")
        destination.parent.mkdir(parents=True)
        destination.write_bytes(b"stale")
        run()
        assert destination.read_bytes() == PAYLOAD

    def test_reports_progress(self, tmp_path):
        seen = []
        _, run = run_download(
            tmp_path, "/file", progress=lambda done, total: seen.append((done, total))
        )
        run()
        assert seen[-1] == (len(PAYLOAD), len(PAYLOAD))

    def test_http_error(self, tmp_path):
        destination, run = run_download(tmp_path, "/missing")
        with pytest.raises(DownloadError) as excinfo:
            run()
        assert excinfo.value.reason == DownloadFailureReason.HTTP
        assert not destination.exists()

    def test_timeout(self, tmp_path):
        destination, run = run_download(tmp_path, "/slow", timeout=0.2)
        with pytest.raises(DownloadError) as excinfo:
            run()
        assert excinfo.value.reason == DownloadFailureReason.TIMEOUT
        assert not destination.with_name(destination.name + ".part").exists()

    def test_unwritable_name_is_a_download_error(self, tmp_path):
        destination = tmp_path / ("y" * 252 + ".pdf")

        async def _run():
            app = web.Application()
            app.router.add_get("/file", _file)
            server = test_utils.TestServer(app)
            await server.start_server()
            downloader = Downloader(timeout=5.0)
            try:
                return await downloader.download(str(server.make_url("/file")), destination)
            finally:
                await downloader.close()
                await server.close()

        with pytest.raises(DownloadError) as excinfo:
            asyncio.run(_run())
        assert excinfo.value.reason == DownloadFailureReason.IO
