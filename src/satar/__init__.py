"""SatAR - amateur satellite catalog and pointing for Python.

Keeps a local, staleness-gated copy of the CelesTrak amateur element sets
and the JE9PEL transponder list, merges them into one catalog keyed by
NORAD number, and computes where to look for any cataloged object from a
ground observer.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from satar.core.tle import TLE, parse_tle
from satar.core.propagation import propagate, PropagatorCache, StateVector, UnknownCatalogNumberError
from satar.core.catalog import Catalog, MergePolicy, ReconcileReport, TrackableObject, reconcile
from satar.core.topocentric import GeodeticPosition, Vector, topocentric
from satar.core.tracking import Tracker, TrackingSelection
from satar.data.radio import RadioRecord, parse_radio
from satar.data.fetch import ensure_fresh, FetchResult
from satar.config import SatarConfig
from satar.api.store import CatalogStore, RefreshError, RefreshReport

__all__ = [
    "__version__",
    "TLE",
    "parse_tle",
    "propagate",
    "PropagatorCache",
    "StateVector",
    "UnknownCatalogNumberError",
    "Catalog",
    "MergePolicy",
    "ReconcileReport",
    "TrackableObject",
    "reconcile",
    "GeodeticPosition",
    "Vector",
    "topocentric",
    "Tracker",
    "TrackingSelection",
    "RadioRecord",
    "parse_radio",
    "ensure_fresh",
    "FetchResult",
    "SatarConfig",
    "CatalogStore",
    "RefreshError",
    "RefreshReport",
]
