"""
Async client for the read-only Coursera metadata endpoints a scrape needs.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

import aiohttp

from coursera_scraper.exceptions import (
    AssetResolutionError,
    MalformedTreeError,
    ModuleFetchError,
    TreeFetchError,
)
from coursera_scraper.models.course import (
    Asset,
    AssetKind,
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

from .auth import IdentityResolver

log = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE_PREFIX = "Wrong content type for item StoredItem"
VIDEO_FIELDS = "onDemandVideos.v1(sources,subtitles,subtitlesVtt,subtitlesTxt)"
TREE_FAILURE_HINT = (
    "Unable to fetch course details. Make sure you set the course ID and CAUTH "
    "value correctly and that you have access to this course."
)


def is_empty_content_response(status: int, payload: Dict[str, Any]) -> bool:
    """
    Decides whether an error response means "this module has nothing of that kind".

    The platform reports a module without linked assets (or without a video) as an
    error whose message starts with a fixed phrase. There is no dedicated status or
    error code for it, so this predicate matches the message prefix. It is the only
    place that knows the wording, and the client accepts a replacement.
    """
    if 200 <= status < 300 or not isinstance(payload, dict):
        return False
    message = payload.get("message")
    return isinstance(message, str) and message.startswith(EMPTY_CONTENT_MESSAGE_PREFIX)


def _first_element(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    elements = payload.get("elements")
    if isinstance(elements, list) and elements and isinstance(elements[0], dict):
        return elements[0]
    return None


def _error_message(status: int, payload: Dict[str, Any]) -> str:
    message = payload.get("message") if isinstance(payload, dict) else None
    return f"HTTP {status}: {message}" if message else f"HTTP {status}"


def _linked_items(payload: Dict[str, Any], key: str) -> Optional[list]:
    linked = payload.get("linked")
    if not isinstance(linked, dict):
        return None
    items = linked.get(key)
    return items if isinstance(items, list) else None


def parse_content_tree(content_id: str, details: Dict[str, Any]) -> ContentTree:
    """
    Builds a ContentTree from a week-cards element.

    Each week's modules come from exactly one nested collection, ``modules[0].items``.
    Any other shape is a structural error rather than an empty week.
    """
    course_id = details.get("courseId")
    weeks_raw = details.get("weeks")
    if not course_id or not isinstance(weeks_raw, list):
        raise MalformedTreeError(
            "Course details are missing 'courseId' or the 'weeks' listing."
        )

    weeks = []
    for week_number, week in enumerate(weeks_raw, start=1):
        groups = week.get("modules") if isinstance(week, dict) else None
        if (
            not isinstance(groups, list)
            or not groups
            or not isinstance(groups[0], dict)
            or not isinstance(groups[0].get("items"), list)
        ):
            raise MalformedTreeError(
                f"Week {week_number:02d} does not have the expected "
                "'modules[0].items' structure."
            )

        modules = []
        for item in groups[0]["items"]:
            if not isinstance(item, dict) or not item.get("id") or "name" not in item:
                raise MalformedTreeError(
                    f"Week {week_number:02d} lists a module without an id or name."
                )
            modules.append(Module(id=str(item["id"]), name=str(item["name"])))
        weeks.append(Week(modules=tuple(modules)))

    return ContentTree(content_id=content_id, course_id=str(course_id), weeks=tuple(weeks))


def _parse_asset(item: Dict[str, Any]) -> Asset:
    definition = item.get("definition") or {}
    kind = AssetKind.URL_LINK if item.get("typeName") == "url" else AssetKind.DOWNLOADABLE
    asset_id = definition.get("assetId") or item.get("id") or ""
    return Asset(id=str(asset_id), name=str(definition.get("name", "")), kind=kind)


def _parse_video(item: Dict[str, Any]) -> VideoDescriptor:
    by_resolution = (item.get("sources") or {}).get("byResolution") or {}
    resolutions = {
        label: source["mp4VideoUrl"]
        for label, source in by_resolution.items()
        if isinstance(source, dict) and source.get("mp4VideoUrl")
    }
    return VideoDescriptor(resolutions=resolutions)


class MetadataClient:
    """
    Async client for the Coursera metadata API.

    Every call is an authenticated read; the session token travels in the
    credential context passed to each method, never in client state.
    """

    BASE_URL = "https://www.coursera.org/api/"

    def __init__(
        self,
        max_workers: int = 8,
        empty_predicate: Callable[[int, Dict[str, Any]], bool] = is_empty_content_response,
    ):
        """
        Initializes the API client.

        Args:
            max_workers: The number of concurrent workers, used to tune the connection pool.
            empty_predicate: Classifies an error response as EMPTY.
        """
        self.max_workers = max_workers
        self.is_empty_response = empty_predicate
        self._session: Optional[aiohttp.ClientSession] = None
        self._identity = IdentityResolver(self)

    @property
    def authenticator(self) -> IdentityResolver:
        """Provides access to the identity lookup helper."""
        return self._identity

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_workers * 2,
                limit_per_host=self.max_workers,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={
                    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
                    "Accept": "application/json",
                },
                # Only transfers have a time budget; lookups are bounded at connect.
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=30),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "MetadataClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def api_call(
        self, endpoint: str, credential: CredentialContext, **params: Any
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Makes an authenticated GET and returns the status with the decoded JSON body.

        Non-2xx responses are returned, not raised, so that callers can classify
        them. Transport failures propagate as aiohttp/asyncio exceptions.
        """
        await self._initialize_session()
        start_time = time.monotonic()

        async with self._session.get(
            self.BASE_URL + endpoint,
            params=params or None,
            headers={"Cookie": f"CAUTH={credential.session_token}"},
        ) as r:
            duration_ms = (time.monotonic() - start_time) * 1000
            log.debug(f"GET {endpoint} -> {r.status} ({duration_ms:.0f} ms)")
            try:
                payload = await r.json(content_type=None)
            except ValueError:
                payload = None
            return r.status, payload if isinstance(payload, dict) else {}

    async def resolve_identity(self, credential: CredentialContext) -> str:
        return await self._identity.resolve_identity(credential)

    async def fetch_content_tree(
        self, credential: CredentialContext, content_id: str, account_id: str
    ) -> ContentTree:
        """
        Fetches the week -> module tree of a course.

        Raises:
            TreeFetchError: If no tree element is returned (invalid id or no access).
            MalformedTreeError: If the tree does not have the expected shape.
        """
        try:
            status, payload = await self.api_call(
                "guidedCourseWeekCards.v1",
                credential,
                ids=f"{account_id}~{content_id}",
                fields="courseId,id,weeks",
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TreeFetchError(f"{e}. {TREE_FAILURE_HINT}") from e

        details = _first_element(payload) if 200 <= status < 300 else None
        if not details:
            log.debug(f"Tree lookup failed: {_error_message(status, payload)}")
            raise TreeFetchError(TREE_FAILURE_HINT)

        tree = parse_content_tree(content_id, details)
        log.debug(
            f"Loaded tree for '{content_id}': {len(tree.weeks)} weeks, "
            f"{tree.module_count} modules."
        )
        return tree

    async def fetch_module_assets(
        self, credential: CredentialContext, course_id: str, module_id: str
    ) -> AssetLookup:
        """
        Lists a module's supplementary assets.

        Returns an EMPTY lookup when the module has no linked assets.

        Raises:
            ModuleFetchError: For any other error response or transport failure.
        """
        try:
            status, payload = await self.api_call(
                f"onDemandLectureAssets.v1/{course_id}~{module_id}/",
                credential,
                includes="openCourseAssets",
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ModuleFetchError(f"Unable to fetch lecture assets: {e}") from e

        if self.is_empty_response(status, payload):
            return AssetLookup.empty()
        if not 200 <= status < 300:
            raise ModuleFetchError(
                f"Unable to fetch lecture assets ({_error_message(status, payload)})."
            )

        items = _linked_items(payload, "openCourseAssets.v1")
        if items is None:
            raise ModuleFetchError(
                "Lecture asset response has no 'openCourseAssets.v1' listing."
            )
        assets = tuple(_parse_asset(item) for item in items if isinstance(item, dict))
        return AssetLookup(status=LookupStatus.FOUND, assets=assets)

    async def fetch_module_video(
        self, credential: CredentialContext, course_id: str, module_id: str
    ) -> VideoLookup:
        """
        Fetches a module's lecture video descriptor.

        Returns an EMPTY lookup when the module has no video.

        Raises:
            ModuleFetchError: For any other error response or transport failure.
        """
        try:
            status, payload = await self.api_call(
                f"onDemandLectureVideos.v1/{course_id}~{module_id}",
                credential,
                includes="video",
                fields=VIDEO_FIELDS,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ModuleFetchError(f"Unable to fetch lecture video: {e}") from e

        if self.is_empty_response(status, payload):
            return VideoLookup.empty()
        if not 200 <= status < 300:
            raise ModuleFetchError(
                f"Unable to fetch lecture video ({_error_message(status, payload)})."
            )

        items = _linked_items(payload, "onDemandVideos.v1")
        if items is None:
            raise ModuleFetchError(
                "Lecture video response has no 'onDemandVideos.v1' listing."
            )
        if not items or not isinstance(items[0], dict):
            return VideoLookup.empty()
        return VideoLookup(status=LookupStatus.FOUND, video=_parse_video(items[0]))

    async def resolve_asset_download_url(
        self, credential: CredentialContext, asset_id: str
    ) -> ResolvedAsset:
        """
        Resolves an asset id to its download URL and display name.

        Raises:
            AssetResolutionError: If no element (or no URL) is returned.
        """
        try:
            status, payload = await self.api_call(
                f"assets.v1/{asset_id}", credential, fields="fileExtension"
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AssetResolutionError(f"Unable to resolve asset {asset_id}: {e}") from e

        element = _first_element(payload) if 200 <= status < 300 else None
        url = (element or {}).get("url")
        download_url = url.get("url") if isinstance(url, dict) else None
        if not element or not download_url or not element.get("name"):
            raise AssetResolutionError(
                f"Unable to resolve asset {asset_id} "
                f"({_error_message(status, payload)})."
            )

        return ResolvedAsset(
            url=download_url,
            display_name=str(element["name"]),
            file_extension=str(element.get("fileExtension") or ""),
        )
