"""
Pydantic models describing a course's content tree and the leaves derived from it.

Every model here is frozen: once the tree has been fetched, everything below the
tree-fetch stage works on read-only snapshots.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from coursera_scraper.exceptions import MissingResolutionError

VIDEO_RESOLUTION = "720p"


class CredentialContext(BaseModel):
    """The session credential threaded through every API call."""

    model_config = ConfigDict(frozen=True)

    session_token: str = Field(..., repr=False)
    account_id: Optional[str] = None
    root_content_id: Optional[str] = None

    def bind(self, account_id: str, root_content_id: str) -> "CredentialContext":
        """Returns a new context carrying the resolved account and target course."""
        return self.model_copy(
            update={"account_id": account_id, "root_content_id": root_content_id}
        )


class Module(BaseModel):
    """A lecture module, the unit against which assets and videos are looked up."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class Week(BaseModel):
    model_config = ConfigDict(frozen=True)

    modules: tuple[Module, ...] = ()


class ContentTree(BaseModel):
    """
    The week -> module structure of a course.

    Attributes:
        content_id: The course slug supplied by the user; names the output root.
        course_id: The platform's internal course id, used for module lookups.
        weeks: Weeks in listing order.
    """

    model_config = ConfigDict(frozen=True)

    content_id: str
    course_id: str
    weeks: tuple[Week, ...] = ()

    @property
    def module_count(self) -> int:
        return sum(len(week.modules) for week in self.weeks)


class AssetKind(str, Enum):
    URL_LINK = "url_link"
    DOWNLOADABLE = "downloadable"


class Asset(BaseModel):
    """A supplementary lecture asset as listed by the module asset lookup."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: AssetKind = AssetKind.DOWNLOADABLE

    @property
    def is_link(self) -> bool:
        return self.kind == AssetKind.URL_LINK


class ResolvedAsset(BaseModel):
    """The final download location of an asset."""

    model_config = ConfigDict(frozen=True)

    url: str
    display_name: str
    file_extension: str = ""


class VideoDescriptor(BaseModel):
    """Maps resolution labels (e.g. '720p') to mp4 media URLs."""

    model_config = ConfigDict(frozen=True)

    resolutions: dict[str, str] = Field(default_factory=dict)

    def url_for(self, label: str = VIDEO_RESOLUTION) -> str:
        """Returns the media URL for ``label``; a missing label is an error."""
        try:
            return self.resolutions[label]
        except KeyError:
            available = ", ".join(sorted(self.resolutions)) or "none"
            raise MissingResolutionError(
                f"Lecture video has no {label} source (available: {available})."
            ) from None


class LookupStatus(str, Enum):
    FOUND = "found"
    EMPTY = "empty"


class AssetLookup(BaseModel):
    """Result of a module asset lookup: a listing, or EMPTY."""

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    assets: tuple[Asset, ...] = ()

    @classmethod
    def empty(cls) -> "AssetLookup":
        return cls(status=LookupStatus.EMPTY)

    @property
    def is_empty(self) -> bool:
        return self.status == LookupStatus.EMPTY


class VideoLookup(BaseModel):
    """Result of a module video lookup: a descriptor, or EMPTY."""

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    video: Optional[VideoDescriptor] = None

    @classmethod
    def empty(cls) -> "VideoLookup":
        return cls(status=LookupStatus.EMPTY)

    @property
    def is_empty(self) -> bool:
        return self.status == LookupStatus.EMPTY or self.video is None


class ModuleContext(BaseModel):
    """Everything a module scrape needs to know about where the module sits."""

    model_config = ConfigDict(frozen=True)

    content_id: str
    course_id: str
    module_id: str
    module_name: str
    week_index: PositiveInt
    module_index: PositiveInt


class LeafKind(str, Enum):
    VIDEO = "video"
    ASSET = "asset"


class LeafJob(BaseModel):
    """A single planned transfer; built per module and consumed immediately."""

    model_config = ConfigDict(frozen=True)

    sequence_number: PositiveInt
    kind: LeafKind
    source_url: str
    destination_path: Path

    @property
    def filename(self) -> str:
        return self.destination_path.name
