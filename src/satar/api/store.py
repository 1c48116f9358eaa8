"""Catalog store: refreshes the feeds and serves the current catalog.

One store owns the published :class:`~satar.core.catalog.Catalog` and its
:class:`~satar.core.propagation.PropagatorCache`. A refresh fetches and
parses both feeds concurrently, merges them once both are done, and then
publishes the new catalog and a fresh propagator cache in one swap. Readers
always see a complete catalog: the previous one until the swap, the new one
after.

Example::

    store = CatalogStore(SatarConfig.from_env())
    report = store.refresh_sync()
    vector = store.look(40014, GeodeticPosition(52.0, 4.4))
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

import requests
from sgp4.api import Satrec

from satar.config import SatarConfig
from satar.core.catalog import Catalog, ReconcileReport, reconcile
from satar.core.propagation import PropagatorCache
from satar.core.tle import TLE, load_tle_file
from satar.core.topocentric import GeodeticPosition, Vector, look
from satar.data.fetch import FetchResult, ensure_fresh
from satar.data.radio import RadioParseResult, load_radio_file

logger = logging.getLogger(__name__)


class RefreshError(RuntimeError):
    """A refresh could not produce a new catalog; the previous one is kept."""


@dataclass(frozen=True)
class RefreshReport:
    """Summary of a successful refresh.

    Attributes:
        orbital_fetch: Download outcome for the orbital feed.
        radio_fetch: Download outcome for the radio feed.
        element_count: Element sets parsed from the orbital feed.
        radio: Radio parse outcome (empty if the radio feed was unusable).
        radio_error: Why the radio feed was unusable, if it was.
        reconcile: Merge diagnostics.
        catalog_size: Objects in the merged catalog.
        duration_s: Wall-clock duration of the refresh.
        published: False if a refresh started later had already published
            its catalog, in which case this one was discarded.
    """

    orbital_fetch: FetchResult
    radio_fetch: FetchResult
    element_count: int
    radio: RadioParseResult
    radio_error: Exception | None
    reconcile: ReconcileReport
    catalog_size: int
    duration_s: float
    published: bool = True


class CatalogStore:
    """Owner of the current catalog and its propagators.

    Args:
        config: Feed locations and refresh policy.
        session: Optional ``requests`` session shared by both downloads.
    """

    def __init__(
        self,
        config: SatarConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or SatarConfig()
        self.session = session
        self._propagators = PropagatorCache(Catalog())
        self._report: RefreshReport | None = None
        self._lock = threading.Lock()
        self._generations = itertools.count(1)
        self._published = 0

    @property
    def catalog(self) -> Catalog:
        """Last successfully merged catalog (empty before the first refresh)."""
        return self._propagators.catalog

    @property
    def propagators(self) -> PropagatorCache:
        return self._propagators

    @property
    def report(self) -> RefreshReport | None:
        return self._report

    def propagator(self, norad_id: int) -> Satrec:
        """Memoized propagator for ``norad_id`` in the current catalog.

        Raises:
            UnknownCatalogNumberError: If ``norad_id`` is not cataloged.
        """
        return self._propagators.get(norad_id)

    def look(
        self,
        norad_id: int,
        observer: GeodeticPosition,
        when: datetime | None = None,
    ) -> Vector:
        """Topocentric vector from ``observer`` to ``norad_id`` at ``when`` (default now).

        Raises:
            UnknownCatalogNumberError: If ``norad_id`` is not cataloged.
            ValueError: If SGP4 propagation fails.
        """
        return look(self.propagator(norad_id), observer, when)

    async def _orbital_pipeline(self, executor: Executor) -> tuple[FetchResult, list[TLE]]:
        cfg = self.config
        fetched = await ensure_fresh(
            cfg.orbital_url, cfg.orbital_path, cfg.max_age,
            timeout=cfg.download_timeout_s, session=self.session, executor=executor,
        )
        tles = await asyncio.to_thread(load_tle_file, fetched.path)
        return fetched, tles

    async def _radio_pipeline(self, executor: Executor) -> tuple[FetchResult, RadioParseResult]:
        cfg = self.config
        fetched = await ensure_fresh(
            cfg.radio_url, cfg.radio_path, cfg.max_age,
            timeout=cfg.download_timeout_s, session=self.session, executor=executor,
        )
        radio = await asyncio.to_thread(
            load_radio_file, fetched.path, active_only=cfg.active_only
        )
        return fetched, radio

    async def refresh(self) -> RefreshReport:
        """Fetch, parse and merge both feeds, then publish the new catalog.

        The radio feed is best-effort: if it cannot be read the merge runs
        with no radio records. The orbital feed is required.

        Returns:
            The refresh report. ``published`` is False when an overlapping
            refresh that started later has already published.

        Raises:
            RefreshError: If the orbital feed is missing or malformed. The
                previously published catalog stays in place.
        """
        start = time.perf_counter()
        generation = next(self._generations)
        # Downloads get their own pool so an abandoned one cannot hold up
        # the loop shutdown in refresh_sync().
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="satar-fetch")
        try:
            orbital, radio = await asyncio.gather(
                self._orbital_pipeline(executor),
                self._radio_pipeline(executor),
                return_exceptions=True,
            )
        finally:
            executor.shutdown(wait=False)

        if isinstance(orbital, BaseException):
            if not isinstance(orbital, Exception):
                raise orbital
            logger.error("Orbital feed unusable, keeping previous catalog: %s", orbital)
            raise RefreshError(f"Orbital feed unusable: {orbital}") from orbital
        orbital_fetch, tles = orbital

        radio_error: Exception | None = None
        if isinstance(radio, BaseException):
            if not isinstance(radio, Exception):
                raise radio
            logger.warning("Radio feed unusable, merging without transponders: %s", radio)
            radio_error = radio
            radio_fetch = FetchResult(path=self.config.radio_path)
            radio_result = RadioParseResult(records=())
        else:
            radio_fetch, radio_result = radio

        catalog, diagnostics = reconcile(tles, radio_result.records, self.config.merge_policy)
        with self._lock:
            # Never replace the catalog of a refresh that started later.
            published = generation > self._published
            report = RefreshReport(
                orbital_fetch=orbital_fetch,
                radio_fetch=radio_fetch,
                element_count=len(tles),
                radio=radio_result,
                radio_error=radio_error,
                reconcile=diagnostics,
                catalog_size=len(catalog),
                duration_s=time.perf_counter() - start,
                published=published,
            )
            if published:
                # The cache carries its catalog, so one assignment publishes both.
                self._propagators = PropagatorCache(catalog)
                self._report = report
                self._published = generation

        if published:
            logger.info(
                "Published catalog of %d objects in %.2f s", len(catalog), report.duration_s
            )
        else:
            logger.warning(
                "Discarding refresh %d: a later refresh already published", generation
            )
        return report

    def refresh_sync(self) -> RefreshReport:
        """Run :meth:`refresh` to completion from synchronous code."""
        return asyncio.run(self.refresh())
