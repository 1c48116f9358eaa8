"""Tests for the inertial to topocentric transform."""
from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
import pytest

from satar.core.propagation import julian_date, propagate, satrec_from_tle
from satar.core.tle import TLE
from satar.core.topocentric import (
    GeodeticPosition,
    Vector,
    eci_to_geodetic,
    geodetic_to_eci,
    local_sidereal_time,
    look,
    topocentric,
)
from satar.utils.constants import EARTH_RADIUS_KM

# BUGSAT 1, catalog number 40014
BUGSAT_LINE1 = "1 40014U 14033E   20046.14221677 -.00000307  00000-0 -21767-4 0  9991"
BUGSAT_LINE2 = "2 40014  98.0475   4.5247 0031640 343.2517  16.7681 14.95391601308587"

WHEN = datetime(2020, 2, 15, 12, 0, tzinfo=timezone.utc)
J2000 = 2451545.0


@pytest.fixture
def bugsat() -> TLE:
    return TLE.from_lines(BUGSAT_LINE1, BUGSAT_LINE2, "BUGSAT 1")


@pytest.fixture
def state(bugsat: TLE):
    return propagate(satrec_from_tle(bugsat), WHEN)


class TestSiderealTime:
    def test_gmst_at_j2000(self):
        assert math.degrees(local_sidereal_time(J2000, 0.0)) == pytest.approx(280.46062, abs=1e-3)

    def test_longitude_offset(self):
        east = local_sidereal_time(J2000, 90.0)
        greenwich = local_sidereal_time(J2000, 0.0)
        assert (east - greenwich) % (2 * math.pi) == pytest.approx(math.pi / 2)

    def test_range(self):
        for lon in (-180.0, -45.0, 0.0, 179.9):
            lst = local_sidereal_time(J2000 + 0.37, lon)
            assert 0.0 <= lst < 2 * math.pi


class TestGeodetic:
    def test_equator_observer_radius(self):
        obs = geodetic_to_eci(J2000, GeodeticPosition(0.0, 0.0))
        assert np.linalg.norm(obs) == pytest.approx(EARTH_RADIUS_KM)
        assert obs[2] == pytest.approx(0.0)

    def test_pole_observer_is_on_axis(self):
        obs = geodetic_to_eci(J2000, GeodeticPosition(90.0, 0.0))
        assert obs[0] == pytest.approx(0.0, abs=1e-9)
        assert obs[1] == pytest.approx(0.0, abs=1e-9)
        # Polar radius is shorter than equatorial
        assert 6356.0 < obs[2] < 6358.0

    @pytest.mark.parametrize("point", [
        GeodeticPosition(45.0, 10.0, 500.0),
        GeodeticPosition(-33.9, 151.2, 0.0),
        GeodeticPosition(78.2, -15.6, 35786.0),
    ])
    def test_round_trip(self, point: GeodeticPosition):
        jd = J2000 + 123.456
        back = eci_to_geodetic(jd, geodetic_to_eci(jd, point))
        assert back.lat_deg == pytest.approx(point.lat_deg, abs=1e-7)
        assert back.lon_deg == pytest.approx(point.lon_deg, abs=1e-7)
        assert back.alt_km == pytest.approx(point.alt_km, abs=1e-6)


class TestTopocentric:
    def test_sub_satellite_observer_sees_straight_up(self, state):
        jd = state.julian_date
        sub = eci_to_geodetic(jd, state.position_km)
        observer = GeodeticPosition(sub.lat_deg, sub.lon_deg, 0.0)

        v = topocentric(jd, state.position_km, observer)

        assert abs(v.south) < 1e-3
        assert abs(v.east) < 1e-3
        assert v.up == pytest.approx(sub.alt_km, abs=1e-3)
        assert v.elevation_deg == pytest.approx(90.0, abs=1e-3)

    def test_magnitude_is_straight_line_distance(self, state):
        jd = state.julian_date
        observer = GeodeticPosition(0.0, 0.0)

        v = topocentric(jd, state.position_km, observer)

        expected = np.linalg.norm(state.position_km - geodetic_to_eci(jd, observer))
        assert v.magnitude == pytest.approx(expected, rel=1e-12)
        # Low Earth orbit seen from somewhere on Earth
        assert 400.0 < v.magnitude < 2 * EARTH_RADIUS_KM + 1000.0

    def test_equator_axes(self):
        jd = J2000
        observer = GeodeticPosition(0.0, 0.0)
        obs = geodetic_to_eci(jd, observer)
        lst = local_sidereal_time(jd, 0.0)

        north = topocentric(jd, obs + np.array([0.0, 0.0, 100.0]), observer)
        assert north == pytest.approx(Vector(-100.0, 0.0, 0.0), abs=1e-9)

        east_dir = np.array([-math.sin(lst), math.cos(lst), 0.0])
        east = topocentric(jd, obs + 50.0 * east_dir, observer)
        assert east == pytest.approx(Vector(0.0, 50.0, 0.0), abs=1e-9)

        radial = obs / np.linalg.norm(obs)
        up = topocentric(jd, obs + 25.0 * radial, observer)
        assert up == pytest.approx(Vector(0.0, 0.0, 25.0), abs=1e-9)

    def test_north_pole_up_is_z(self):
        observer = GeodeticPosition(90.0, 0.0)
        obs = geodetic_to_eci(J2000, observer)
        v = topocentric(J2000, obs + np.array([0.0, 0.0, 10.0]), observer)
        assert v.up == pytest.approx(10.0)
        assert abs(v.south) < 1e-9

    def test_pure_function(self, state):
        observer = GeodeticPosition(52.0, 4.4)
        a = topocentric(state.julian_date, state.position_km, observer)
        b = topocentric(state.julian_date, state.position_km.copy(), observer)
        assert a == b

    def test_look_matches_manual_pipeline(self, bugsat: TLE):
        observer = GeodeticPosition(-34.6, -58.4)
        satrec = satrec_from_tle(bugsat)
        v = look(satrec, observer, WHEN)
        jd, fr = julian_date(WHEN)
        _, pos, _ = satrec.sgp4(jd, fr)
        assert v == pytest.approx(topocentric(jd + fr, pos, observer))


class TestVector:
    def test_magnitude(self):
        assert Vector(3.0, 4.0, 12.0).magnitude == pytest.approx(13.0)

    def test_unit(self):
        u = Vector(3.0, 4.0, 12.0).unit()
        assert u.magnitude == pytest.approx(1.0)
        assert u.up == pytest.approx(12.0 / 13.0)

    def test_unit_of_zero_raises(self):
        with pytest.raises(ValueError):
            Vector(0.0, 0.0, 0.0).unit()

    @pytest.mark.parametrize("vector, azimuth", [
        (Vector(-1.0, 0.0, 0.0), 0.0),
        (Vector(0.0, 1.0, 0.0), 90.0),
        (Vector(1.0, 0.0, 0.0), 180.0),
        (Vector(0.0, -1.0, 0.0), 270.0),
    ])
    def test_azimuth(self, vector: Vector, azimuth: float):
        assert vector.azimuth_deg == pytest.approx(azimuth)

    def test_elevation(self):
        assert Vector(-1.0, 0.0, 1.0).elevation_deg == pytest.approx(45.0)
        assert Vector(0.0, 1.0, -1.0).elevation_deg == pytest.approx(-45.0)
