"""Staleness-gated feed downloads.

A feed is kept as one local file. The file is downloaded again only when it
is missing or its modification time is older than the allowed age, and the
new copy replaces the old one atomically. Download failures are reported,
never raised: a stale local copy is better than none.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import tempfile
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

import requests

from satar.utils.constants import DEFAULT_DOWNLOAD_TIMEOUT_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of :func:`ensure_fresh`.

    Attributes:
        path: Local feed file.
        downloaded: True if a new copy was written.
        error: The download failure, if one occurred.
    """

    path: Path
    downloaded: bool = False
    error: Exception | None = None

    @property
    def exists(self) -> bool:
        return self.path.exists()


def modification_time(path: Path) -> datetime | None:
    """Last modification time of ``path`` in UTC, or None if it does not exist."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    except FileNotFoundError:
        return None


def is_stale(path: str | Path, max_age: timedelta, now: datetime | None = None) -> bool:
    """Return True if ``path`` is missing or at least ``max_age`` old."""
    last = modification_time(Path(path))
    if last is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - last >= max_age


def download(
    url: str,
    path: str | Path,
    timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_S,
    session: requests.Session | None = None,
) -> Path:
    """Download ``url`` and atomically replace ``path`` with the body.

    Args:
        url: Feed URL.
        path: Destination file.
        timeout: Request timeout in seconds.
        session: Optional ``requests`` session to reuse.

    Returns:
        The destination path.

    Raises:
        requests.RequestException: If the request fails or is not HTTP 200.
        OSError: If the file cannot be written.
    """
    path = Path(path)
    logger.info("Downloading %s -> %s", url, path)

    getter = session.get if session is not None else requests.get
    response = getter(url, timeout=timeout)
    response.raise_for_status()
    if response.status_code != 200:
        raise requests.HTTPError(
            f"Unexpected HTTP {response.status_code} for {url}", response=response
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(response.content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("Wrote %d bytes to %s", len(response.content), path)
    return path


async def ensure_fresh(
    url: str,
    path: str | Path,
    max_age: timedelta,
    timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_S,
    session: requests.Session | None = None,
    executor: Executor | None = None,
) -> FetchResult:
    """Download ``url`` to ``path`` if the local copy is missing or stale.

    The blocking download runs in a worker thread and is bounded by
    ``timeout``. Failures are logged and returned in the result; the
    existing local file, if any, is left untouched.

    Args:
        url: Feed URL.
        path: Local feed file.
        max_age: Maximum acceptable age of the local copy.
        timeout: Upper bound on the download in seconds.
        session: Optional ``requests`` session to reuse.
        executor: Runs the blocking download; the loop's default
            executor when None.

    Returns:
        A :class:`FetchResult` describing what happened.
    """
    path = Path(path)
    if not is_stale(path, max_age):
        logger.debug("%s is fresh, skipping download", path)
        return FetchResult(path=path)

    loop = asyncio.get_running_loop()
    try:
        await asyncio.wait_for(
            loop.run_in_executor(
                executor, functools.partial(download, url, path, timeout, session)
            ),
            timeout=timeout,
        )
    except (requests.RequestException, OSError, asyncio.TimeoutError) as e:
        logger.warning(
            "Download of %s failed (%s: %s); using %s",
            url, type(e).__name__, e,
            "existing local copy" if path.exists() else "no local copy",
        )
        return FetchResult(path=path, error=e)

    return FetchResult(path=path, downloaded=True)
