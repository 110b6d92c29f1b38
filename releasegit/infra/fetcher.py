"""
Archive fetcher infrastructure for releasegit.

Downloads release archives into a local cache keyed by filename:
- A cached file is reused as-is; only a missing file is downloaded
- Downloads stream to a temp file, then rename atomically
- prefetch() downloads ahead on a small thread pool while commits are
  built sequentially
"""

import logging
import os
import tempfile
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Optional

import requests

from ..domain.release import Release
from ..errors import ArchiveFetchError

logger = logging.getLogger(__name__)


def default_cache_dir() -> Path:
    return Path(tempfile.gettempdir()) / "releasegit-cache"


class ArchiveFetcher:
    """
    Downloads archives once and caches them by filename.

    Example:
        with ArchiveFetcher("~/.cache/releasegit", max_workers=2) as fetcher:
            fetcher.prefetch(releases)
            path = fetcher.fetch(release.archive_url, release.filename)
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 300,
        max_workers: int = 2,
        chunk_size: int = 64 * 1024,
        user_agent: Optional[str] = None
    ):
        """
        Initialize ArchiveFetcher.

        Args:
            cache_dir: Directory holding cached archives (default: system temp dir)
            session: requests session (creates one if None)
            timeout: Per-request timeout in seconds
            max_workers: Prefetch pool size; 1 or less disables prefetch
            chunk_size: Download chunk size in bytes
            user_agent: User-Agent header sent with downloads
        """
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else default_cache_dir()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.user_agent = user_agent
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> 'ArchiveFetcher':
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def cache_path(self, filename: str) -> Path:
        """Location of a cached archive. Only the basename is used."""
        name = os.path.basename(filename.replace('\\', '/'))
        if name in ('', '.', '..'):
            raise ArchiveFetchError(f"Invalid archive filename: {filename!r}", filename=filename)
        return self.cache_dir / name

    def is_cached(self, filename: str) -> bool:
        return self.cache_path(filename).exists()

    def fetch(self, url: str, filename: str) -> Path:
        """
        Return the local path of an archive, downloading it if needed.

        Waits for an in-flight prefetch of the same filename instead of
        downloading twice.

        Raises:
            ArchiveFetchError: If the download or cache write fails
        """
        with self._lock:
            pending = self._pending.pop(filename, None)
        if pending is not None:
            return pending.result()
        return self._fetch(url, filename)

    def _fetch(self, url: str, filename: str) -> Path:
        target = self.cache_path(filename)
        if target.exists():
            logger.debug(f"Using cached {target}")
            return target

        logger.info(f"Downloading {url}")
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveFetchError(f"Cannot create cache dir {self.cache_dir}: {e}", url, filename) from e

        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.cache_dir,
                prefix=f".{target.name}.",
                suffix=".part"
            )
        except OSError as e:
            raise ArchiveFetchError(f"Cannot write to cache dir {self.cache_dir}: {e}", url, filename) from e
        headers = {'User-Agent': self.user_agent} if self.user_agent else {}
        try:
            with os.fdopen(fd, 'wb') as f:
                with self.session.get(url, stream=True, timeout=self.timeout, headers=headers) as response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)

            # Atomic rename
            os.replace(temp_path, target)

        except (requests.RequestException, OSError) as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise ArchiveFetchError(f"Failed to download {url}: {e}", url, filename) from e

        logger.debug(f"Cached {url} as {target}")
        return target

    def prefetch(self, releases: Iterable[Release]) -> int:
        """
        Start background downloads for releases not yet cached.

        Returns:
            Number of downloads scheduled
        """
        if self.max_workers <= 1:
            return 0

        scheduled = 0
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="releasegit-fetch"
                )
            for release in releases:
                if release.filename in self._pending or self.is_cached(release.filename):
                    continue
                self._pending[release.filename] = self._executor.submit(
                    self._fetch, release.archive_url, release.filename
                )
                scheduled += 1

        if scheduled:
            logger.debug(f"Prefetching {scheduled} archives with {self.max_workers} workers")
        return scheduled

    def close(self) -> None:
        """Cancel queued prefetches and shut the pool down."""
        with self._lock:
            executor, self._executor = self._executor, None
            pending, self._pending = self._pending, {}
        for future in pending.values():
            future.cancel()
        if executor is not None:
            executor.shutdown(wait=True)
