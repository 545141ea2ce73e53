"""
Handles the low-level downloading of files over HTTP.
"""

import asyncio
import contextlib
import logging
import os
from pathlib import Path
from typing import Callable, Optional

import aiofiles
import aiohttp

from coursera_scraper.exceptions import DownloadError, DownloadFailureReason
from coursera_scraper.models.config import DEFAULT_DOWNLOAD_TIMEOUT
from coursera_scraper.utils.path import create_dir

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Optional[int]], None]


class Downloader:
    """
    Streams a URL to a file within a fixed time budget.

    Transfers are not retried and not resumable. Data goes to a ``.part`` file
    next to the destination which replaces the destination once complete, so
    re-running a download overwrites the previous file and a failed run leaves
    no partial file behind.
    """

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(
        self, timeout: float = DEFAULT_DOWNLOAD_TIMEOUT, max_connections: int = 8
    ):
        self.timeout = timeout
        self.max_connections = max_connections
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections * 2,
                limit_per_host=self.max_connections,
                ttl_dns_cache=600,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(connector=connector)
            log.debug(f"Created download pool with limit_per_host={self.max_connections}")
        return self._session

    async def close(self) -> None:
        """Closes the underlying connection pool."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("Downloader connection pool closed.")
        self._session = None

    async def download(
        self,
        url: str,
        destination_path: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Downloads ``url`` to ``destination_path``, creating parent directories.

        Args:
            url: The source URL.
            destination_path: Where the file ends up; an existing file is replaced.
            on_progress: Called with (bytes so far, total bytes or None).

        Returns:
            The number of bytes written.

        Raises:
            DownloadError: On HTTP errors, network errors, I/O errors or timeout.
        """
        destination_path = Path(destination_path)
        temp_path = destination_path.with_name(destination_path.name + ".part")
        name = destination_path.name

        try:
            create_dir(destination_path.parent)
            session = await self._get_session()
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with session.get(url, allow_redirects=True, timeout=timeout) as response:
                response.raise_for_status()
                total = response.content_length

                bytes_written = 0
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        bytes_written += len(chunk)
                        if on_progress:
                            on_progress(bytes_written, total)

            os.replace(temp_path, destination_path)
            log.debug(f"Wrote {bytes_written} bytes to '{destination_path}'.")
            return bytes_written

        except asyncio.TimeoutError as e:
            raise DownloadError(
                f"Download of '{name}' exceeded {self.timeout:.0f}s.",
                DownloadFailureReason.TIMEOUT,
                url,
                str(destination_path),
            ) from e
        except aiohttp.ClientResponseError as e:
            raise DownloadError(
                f"Download of '{name}' failed with HTTP {e.status}.",
                DownloadFailureReason.HTTP,
                url,
                str(destination_path),
            ) from e
        except aiohttp.ClientError as e:
            raise DownloadError(
                f"Download of '{name}' failed: {e}",
                DownloadFailureReason.NETWORK,
                url,
                str(destination_path),
            ) from e
        except OSError as e:
            raise DownloadError(
                f"Could not write '{destination_path}': {e}",
                DownloadFailureReason.IO,
                url,
                str(destination_path),
            ) from e
        finally:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
