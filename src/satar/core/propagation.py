"""Orbital propagation via SGP4 and the per-object propagator cache."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import NDArray
from sgp4.api import Satrec, WGS72, jday
from satar.core.tle import TLE

if TYPE_CHECKING:
    from satar.core.catalog import Catalog


class UnknownCatalogNumberError(KeyError):
    """A propagator was requested for a catalog number not in the catalog.

    This means the caller and the catalog have gone out of sync; it is a
    programming error, not a data problem.
    """


@dataclass
class StateVector:
    """Position and velocity in TEME frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Time of this state vector.
        jd: Julian date (whole part) of ``epoch``.
        fr: Julian date fraction of ``epoch``.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime
    jd: float
    fr: float

    @property
    def julian_date(self) -> float:
        return self.jd + self.fr


def julian_date(t: datetime) -> tuple[float, float]:
    """Split Julian date of ``t`` as ``(jd, fr)``; naive datetimes are UTC."""
    if t.tzinfo is not None:
        t = t.astimezone(timezone.utc)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def satrec_from_tle(tle: TLE) -> Satrec:
    """Build an SGP4 propagator seeded from ``tle``."""
    return Satrec.twoline2rv(tle.line1, tle.line2, WGS72)


def propagate(satrec: Satrec, t: datetime) -> StateVector:
    """Propagate a satellite to a single time using SGP4.

    Args:
        satrec: SGP4 propagator (see :class:`PropagatorCache`).
        t: UTC datetime to propagate to.

    Returns:
        The TEME state at ``t``.

    Raises:
        ValueError: If SGP4 propagation fails (error code != 0).
    """
    jd, fr = julian_date(t)
    error_code, pos, vel = satrec.sgp4(jd, fr)

    if error_code != 0:
        logger.warning("SGP4 propagation failed for NORAD %s at %s: error code %d", satrec.satnum, t, error_code)
        raise ValueError(
            f"SGP4 propagation failed for NORAD {satrec.satnum} at {t}: error code {error_code}"
        )

    return StateVector(
        position_km=np.array(pos, dtype=np.float64),
        velocity_km_s=np.array(vel, dtype=np.float64),
        epoch=t,
        jd=jd,
        fr=fr,
    )


class PropagatorCache:
    """Lazily built, memoized SGP4 propagators for one catalog.

    Each catalog number gets at most one propagator for the lifetime of the
    cache. Lookups are safe from multiple threads; construction happens under
    the cache lock so racing first lookups build exactly one instance. A new
    catalog needs a new cache.

    Args:
        catalog: The catalog this cache serves.
        factory: Builds a propagator from an element set.
    """

    def __init__(
        self,
        catalog: Catalog,
        factory: Callable[[TLE], Satrec] = satrec_from_tle,
    ) -> None:
        self._catalog = catalog
        self._factory = factory
        self._entries: dict[int, Satrec] = {}
        self._lock = threading.Lock()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, norad_id: object) -> bool:
        with self._lock:
            return norad_id in self._entries

    def get(self, norad_id: int) -> Satrec:
        """Return the propagator for ``norad_id``, building it on first use.

        Raises:
            UnknownCatalogNumberError: If ``norad_id`` is not in the catalog.
        """
        with self._lock:
            satrec = self._entries.get(norad_id)
            if satrec is not None:
                return satrec

            obj = self._catalog.get(norad_id)
            if obj is None:
                logger.error("Propagator requested for NORAD %s, which is not in the catalog", norad_id)
                raise UnknownCatalogNumberError(norad_id)

            satrec = self._factory(obj.tle)
            self._entries[norad_id] = satrec
            logger.debug("Built propagator for NORAD %d (%s)", norad_id, obj.name)
            return satrec
