"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures: the course content tree, configuration, tagged outcomes and
run statistics.
"""

from .config import ScraperConfig
from .course import (
    Asset,
    AssetKind,
    AssetLookup,
    ContentTree,
    CredentialContext,
    LeafJob,
    LeafKind,
    LookupStatus,
    Module,
    ModuleContext,
    ResolvedAsset,
    VideoDescriptor,
    VideoLookup,
    Week,
)
from .outcome import LeafOutcome, LeafStatus, ModuleOutcome, RunOutcome, RunState
from .stats import RunStats

__all__ = [
    "Asset",
    "AssetKind",
    "AssetLookup",
    "ContentTree",
    "CredentialContext",
    "LeafJob",
    "LeafKind",
    "LeafOutcome",
    "LeafStatus",
    "LookupStatus",
    "Module",
    "ModuleContext",
    "ModuleOutcome",
    "ResolvedAsset",
    "RunOutcome",
    "RunState",
    "RunStats",
    "ScraperConfig",
    "VideoDescriptor",
    "VideoLookup",
    "Week",
]
