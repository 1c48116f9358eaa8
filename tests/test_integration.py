"""Integration test: parse, reconcile, propagate and look, no network."""
from __future__ import annotations

from datetime import timedelta

import numpy as np
import pytest

from satar.core.catalog import MergePolicy, reconcile
from satar.core.propagation import PropagatorCache, propagate
from satar.core.tle import parse_tle
from satar.core.topocentric import GeodeticPosition, eci_to_geodetic, topocentric
from satar.data.radio import parse_radio

# Hardcoded real TLEs (no network calls)
AMATEUR_TLE_TEXT = """\
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592
BUGSAT 1
1 40014U 14033E   20046.14221677 -.00000307  00000-0 -21767-4 0  9991
2 40014  98.0475   4.5247 0031640 343.2517  16.7681 14.95391601308587
NOAA 18
1 28654U 05018A   24045.52083333  .00000149  00000-0  10834-3 0  9994
2 28654  98.9710 100.7890 0014048 313.6230  46.3750 14.12905012970120
"""

SATSLIST_TEXT = """\
ISS;25544;145.990;437.800;;FM;ARISS;active
ISS;25544;145.825;145.825;;APRS;RS0ISS;active
BUGSAT-1;40014;;437.445;;CW;;inactive
"""


@pytest.fixture
def catalog():
    catalog, _ = reconcile(parse_tle(AMATEUR_TLE_TEXT), parse_radio(SATSLIST_TEXT).records)
    return catalog


def test_catalog_membership(catalog):
    assert catalog.norad_ids == [25544, 40014, 28654]
    assert [r.callsign for r in catalog[25544].radios] == ["ARISS", "RS0ISS"]
    assert catalog[28654].radios == ()


def test_strict_active_only():
    catalog, report = reconcile(
        parse_tle(AMATEUR_TLE_TEXT),
        parse_radio(SATSLIST_TEXT, active_only=True).records,
        MergePolicy.STRICT,
    )
    assert catalog.norad_ids == [25544]
    assert report.orphan_elements == 2


def test_iss_altitude_over_a_day(catalog):
    """Propagate ISS 24 hours and verify its sub-satellite altitude stays in LEO."""
    cache = PropagatorCache(catalog)
    iss = catalog[25544]
    for h in range(0, 25, 6):
        state = propagate(cache.get(25544), iss.tle.epoch + timedelta(hours=h))
        sub = eci_to_geodetic(state.julian_date, state.position_km)
        assert 350 < sub.alt_km < 450, f"ISS altitude {sub.alt_km:.1f} km out of expected range"
        assert -52.0 < sub.lat_deg < 52.0


def test_overhead_pass_geometry(catalog):
    """An observer under the ISS sees it at zenith; one far away sees it below the horizon."""
    cache = PropagatorCache(catalog)
    state = propagate(cache.get(25544), catalog[25544].tle.epoch)
    jd = state.julian_date
    sub = eci_to_geodetic(jd, state.position_km)

    overhead = topocentric(jd, state.position_km, GeodeticPosition(sub.lat_deg, sub.lon_deg))
    assert overhead.elevation_deg > 89.9
    assert overhead.magnitude == pytest.approx(sub.alt_km, abs=1e-3)

    antipode = GeodeticPosition(-sub.lat_deg, sub.lon_deg + 180.0)
    far = topocentric(jd, state.position_km, antipode)
    assert far.elevation_deg < -80.0
    assert far.magnitude > 12000.0
    assert np.isfinite(far.azimuth_deg)
