"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from enum import Enum


class CourseraScraperError(Exception):
    """Base exception for all application-specific errors."""


class AuthenticationError(CourseraScraperError):
    """Raised when the CAUTH session token does not resolve to an account."""


class TreeFetchError(CourseraScraperError):
    """Raised when the course content tree cannot be fetched (bad id or no access)."""


class MalformedTreeError(TreeFetchError):
    """Raised when the content tree does not have the expected week/module shape."""


class ModuleFetchError(CourseraScraperError):
    """Raised when a module's asset list or video descriptor cannot be fetched."""


class MissingResolutionError(ModuleFetchError):
    """Raised when a lecture video has no source for the requested resolution."""


class AssetResolutionError(CourseraScraperError):
    """Raised when an asset's download URL cannot be resolved."""


class DownloadFailureReason(str, Enum):
    """Why a transfer failed."""

    TIMEOUT = "timeout"
    HTTP = "http"
    NETWORK = "network"
    IO = "io"


class DownloadError(CourseraScraperError):
    """Raised when a file transfer fails or exceeds its time budget."""

    def __init__(
        self,
        message: str,
        reason: DownloadFailureReason,
        url: str = "",
        destination: str = "",
    ):
        super().__init__(message)
        self.reason = reason
        self.url = url
        self.destination = destination


class ConfigurationError(CourseraScraperError):
    """Raised for issues related to configuration loading or validation."""
