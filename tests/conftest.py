"""
Shared fixtures and in-memory fakes for the coursera_scraper tests.
"""

import asyncio
import io
from pathlib import Path

import pytest
from rich.console import Console

from coursera_scraper.cli.progress_manager import ProgressManager
from coursera_scraper.exceptions import DownloadError, DownloadFailureReason
from coursera_scraper.models.course import (
    AssetLookup,
    ContentTree,
    CredentialContext,
    LookupStatus,
    Module,
    ResolvedAsset,
    VideoDescriptor,
    VideoLookup,
    Week,
)

VIDEO_URL = "https://cdn.example.com/video/720p.mp4"


def video_lookup(url: str = VIDEO_URL, label: str = "720p") -> VideoLookup:
    return VideoLookup(
        status=LookupStatus.FOUND, video=VideoDescriptor(resolutions={label: url})
    )


def asset_lookup(*assets) -> AssetLookup:
    return AssetLookup(status=LookupStatus.FOUND, assets=tuple(assets))


def make_tree(*weeks: list[tuple[str, str]], content_id: str = "ml-course") -> ContentTree:
    return ContentTree(
        content_id=content_id,
        course_id="C123",
        weeks=tuple(
            Week(modules=tuple(Module(id=mid, name=name) for mid, name in week))
            for week in weeks
        ),
    )


class FakeClient:
    """
    Stands in for MetadataClient.

    ``modules`` maps a module id to an (assets, video) pair; either side may be
    an exception instance, which is raised from the matching lookup.
    """

    def __init__(self, tree=None, modules=None, resolved=None, identity="42"):
        self.tree = tree
        self.modules = modules or {}
        self.resolved = resolved or {}
        self.identity = identity
        self.calls: list[tuple] = []

    async def resolve_identity(self, credential):
        self.calls.append(("identity",))
        if isinstance(self.identity, Exception):
            raise self.identity
        return self.identity

    async def fetch_content_tree(self, credential, content_id, account_id):
        self.calls.append(("tree", content_id, account_id))
        if isinstance(self.tree, Exception):
            raise self.tree
        return self.tree

    def _lookup(self, module_id, index):
        value = self.modules.get(module_id, (AssetLookup.empty(), VideoLookup.empty()))[
            index
        ]
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_module_assets(self, credential, course_id, module_id):
        self.calls.append(("assets", course_id, module_id))
        return self._lookup(module_id, 0)

    async def fetch_module_video(self, credential, course_id, module_id):
        self.calls.append(("video", course_id, module_id))
        return self._lookup(module_id, 1)

    async def resolve_asset_download_url(self, credential, asset_id):
        self.calls.append(("resolve", asset_id))
        value = self.resolved[asset_id]
        if isinstance(value, Exception):
            raise value
        return value

    def module_ids(self, kind: str) -> list[str]:
        return [call[2] for call in self.calls if call[0] == kind]


class FakeDownloader:
    """Records transfers instead of performing them; URLs in ``failing`` fail."""

    def __init__(self, failing=(), delay: float = 0.0, size: int = 100):
        self.failing = set(failing)
        self.delay = delay
        self.size = size
        self.downloads: list[tuple[str, Path]] = []
        self.active = 0
        self.peak_active = 0

    async def download(self, url, destination_path, on_progress=None):
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failing:
                raise DownloadError(
                    f"Download of '{Path(destination_path).name}' failed with HTTP 404.",
                    DownloadFailureReason.HTTP,
                    url,
                    str(destination_path),
                )
            self.downloads.append((url, Path(destination_path)))
            if on_progress:
                on_progress(self.size, self.size)
            return self.size
        finally:
            self.active -= 1

    async def close(self):
        pass


@pytest.fixture
def credential():
    return CredentialContext(session_token="secret-token")


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def progress(console):
    return ProgressManager(console=console)


@pytest.fixture
def resolved_slides():
    return ResolvedAsset(
        url="https://cdn.example.com/slides.pdf",
        display_name="Slides.pdf",
        file_extension="pdf",
    )
