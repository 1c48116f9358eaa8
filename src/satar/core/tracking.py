"""Consumer-side tracking selection and periodic topocentric batches."""
from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from satar.core.topocentric import GeodeticPosition, Vector
from satar.utils.constants import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_PROPAGATION_TIMEOUT_S,
    DEFAULT_TICK_INTERVAL_S,
)

if TYPE_CHECKING:
    from satar.api.store import CatalogStore
    from satar.core.catalog import Catalog

logger = logging.getLogger(__name__)


class TrackingSelection:
    """The set of catalog numbers a user has chosen to track.

    Owned and updated by the consumer; the catalog and store never touch it.
    """

    def __init__(self, norad_ids: Iterable[int] = ()) -> None:
        self._ids: set[int] = set(norad_ids)

    def __contains__(self, norad_id: object) -> bool:
        return norad_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def is_tracked(self, norad_id: int) -> bool:
        return norad_id in self._ids

    def track(self, norad_id: int) -> None:
        self._ids.add(norad_id)

    def untrack(self, norad_id: int) -> None:
        self._ids.discard(norad_id)

    def toggle(self, norad_id: int) -> bool:
        """Flip tracking for ``norad_id`` and return the new state."""
        if norad_id in self._ids:
            self._ids.remove(norad_id)
            return False
        self._ids.add(norad_id)
        return True

    def prune(self, catalog: Catalog) -> list[int]:
        """Drop catalog numbers missing from ``catalog``; return the dropped ones."""
        dropped = sorted(n for n in self._ids if n not in catalog)
        self._ids.difference_update(dropped)
        return dropped


@dataclass
class TickResult:
    """Output of one :meth:`Tracker.tick`.

    Attributes:
        vectors: Topocentric vector per tracked catalog number.
        failed: Reason per catalog number that produced no vector.
        duration_s: Wall-clock duration of the batch.
    """

    vectors: dict[int, Vector] = field(default_factory=dict)
    failed: dict[int, str] = field(default_factory=dict)
    duration_s: float = 0.0


class Tracker:
    """Recompute topocentric vectors for all tracked objects in one batch.

    The tick timer belongs to the caller. Each tick fans out over a thread
    pool and waits at most ``propagation_timeout`` for the batch; objects not
    done by then are reported as timed out.

    Args:
        store: Source of the current catalog and propagators.
        selection: The consumer's tracked set.
        tick_interval: Nominal tick interval, used to flag overruns.
        propagation_timeout: Upper bound on one batch in seconds.
        max_workers: Thread pool size.
    """

    def __init__(
        self,
        store: CatalogStore,
        selection: TrackingSelection,
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL_S,
        propagation_timeout: float = DEFAULT_PROPAGATION_TIMEOUT_S,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.store = store
        self.selection = selection
        self.tick_interval = tick_interval
        self.propagation_timeout = propagation_timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="satar-tick")

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> Tracker:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def tick(self, observer: GeodeticPosition, when: datetime | None = None) -> TickResult:
        """Compute vectors for every tracked object present in the catalog."""
        when = when or datetime.now(timezone.utc)
        start = time.perf_counter()
        result = TickResult()

        catalog = self.store.catalog
        futures = {}
        for norad_id in self.selection:
            if norad_id not in catalog:
                result.failed[norad_id] = "not in catalog"
                continue
            futures[self._executor.submit(self.store.look, norad_id, observer, when)] = norad_id

        done, pending = wait(futures, timeout=self.propagation_timeout)
        for future in done:
            norad_id = futures[future]
            try:
                result.vectors[norad_id] = future.result()
            except (ValueError, KeyError) as e:
                result.failed[norad_id] = str(e)
        for future in pending:
            future.cancel()
            result.failed[futures[future]] = "timed out"

        result.duration_s = time.perf_counter() - start
        logger.debug(
            "Tick computed %d vectors (%d failed) in %.3f s",
            len(result.vectors), len(result.failed), result.duration_s,
        )
        if result.duration_s > self.tick_interval:
            logger.warning(
                "Tick took %.3f s, longer than the %.3f s interval",
                result.duration_s, self.tick_interval,
            )
        return result
