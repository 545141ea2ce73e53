"""
Media Transfer Layer.

This package is responsible for moving bytes from the platform's CDN to disk.
"""

from .downloader import Downloader

__all__ = ["Downloader"]
