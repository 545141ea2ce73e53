"""
Coursera API Layer.

This package handles all communication with the Coursera metadata API.
"""

from .auth import IdentityResolver
from .client import MetadataClient, is_empty_content_response

__all__ = ["IdentityResolver", "MetadataClient", "is_empty_content_response"]
