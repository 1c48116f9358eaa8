"""Tests for propagation and the propagator cache."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from satar.core.catalog import Catalog, reconcile
from satar.core.propagation import (
    PropagatorCache,
    UnknownCatalogNumberError,
    julian_date,
    propagate,
    satrec_from_tle,
)
from satar.core.tle import TLE, parse_tle

from conftest import ORBITAL_FEED

ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592"


@pytest.fixture
def iss_tle() -> TLE:
    return TLE.from_lines(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)")


@pytest.fixture
def catalog() -> Catalog:
    catalog, _ = reconcile(parse_tle(ORBITAL_FEED), ())
    return catalog


def test_julian_date_j2000():
    jd, fr = julian_date(datetime(2000, 1, 1, 12, tzinfo=timezone.utc))
    assert jd + fr == pytest.approx(2451545.0)


def test_julian_date_naive_is_utc():
    aware = julian_date(datetime(2024, 2, 14, 6, 30, tzinfo=timezone.utc))
    naive = julian_date(datetime(2024, 2, 14, 6, 30))
    assert sum(aware) == pytest.approx(sum(naive))


def test_julian_date_converts_timezone():
    plus_two = timezone(timedelta(hours=2))
    local = julian_date(datetime(2024, 2, 14, 8, 30, tzinfo=plus_two))
    utc = julian_date(datetime(2024, 2, 14, 6, 30, tzinfo=timezone.utc))
    assert sum(local) == pytest.approx(sum(utc))


def test_propagate_iss_in_leo(iss_tle: TLE):
    state = propagate(satrec_from_tle(iss_tle), iss_tle.epoch + timedelta(hours=1))
    r = np.linalg.norm(state.position_km)
    v = np.linalg.norm(state.velocity_km_s)
    assert 6500 < r < 7000
    assert 7.0 < v < 8.0
    assert state.julian_date == pytest.approx(state.jd + state.fr)


def test_propagation_stale_tle(iss_tle: TLE):
    """Far beyond epoch SGP4 may fail; that must surface as ValueError."""
    far_future = iss_tle.epoch + timedelta(days=365 * 50)
    try:
        state = propagate(satrec_from_tle(iss_tle), far_future)
        assert state.position_km.shape == (3,)
    except ValueError as e:
        assert "SGP4 propagation failed" in str(e)


class TestPropagatorCache:
    def test_get_builds_once(self, catalog: Catalog):
        cache = PropagatorCache(catalog)
        first = cache.get(100)
        second = cache.get(100)
        assert first is second
        assert first.satnum == 100
        assert len(cache) == 1
        assert 100 in cache
        assert 200 not in cache

    def test_separate_entries(self, catalog: Catalog):
        cache = PropagatorCache(catalog)
        assert cache.get(100) is not cache.get(200)
        assert len(cache) == 2

    def test_unknown_catalog_number_fails_loudly(self, catalog: Catalog):
        cache = PropagatorCache(catalog)
        with pytest.raises(UnknownCatalogNumberError):
            cache.get(300)
        assert len(cache) == 0

    def test_unknown_is_key_error(self, catalog: Catalog):
        with pytest.raises(KeyError):
            PropagatorCache(catalog).get(999)

    def test_empty_catalog(self):
        with pytest.raises(UnknownCatalogNumberError):
            PropagatorCache(Catalog()).get(100)

    def test_catalog_property(self, catalog: Catalog):
        assert PropagatorCache(catalog).catalog is catalog

    def test_concurrent_get_constructs_one_instance(self, catalog: Catalog):
        built = []

        def slow_factory(tle: TLE):
            built.append(tle.norad_id)
            time.sleep(0.05)
            return satrec_from_tle(tle)

        cache = PropagatorCache(catalog, factory=slow_factory)
        n_threads = 8
        barrier = threading.Barrier(n_threads)
        results = [None] * n_threads

        def worker(i: int) -> None:
            barrier.wait()
            results[i] = cache.get(100)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert built == [100]
        assert all(r is results[0] for r in results)
        assert results[0] is not None
