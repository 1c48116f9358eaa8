"""Earth-centered inertial to observer-centered (topocentric) coordinates.

Satellite positions from SGP4 are in an Earth-centered inertial frame. To
point at a satellite from the ground, the observer is placed in the same
frame using the local sidereal time, and the displacement is rotated into
the observer's south/east/up axes.

The rotation in :func:`topocentric` corrects the signs of the south and up
rows of SatelliteKit's ``eci2top``.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from sgp4.api import Satrec
from sgp4.propagation import gstime

from satar.core.propagation import propagate
from satar.utils.constants import EARTH_ECCENTRICITY_SQ, EARTH_RADIUS_KM

TWO_PI = 2.0 * math.pi


class GeodeticPosition(NamedTuple):
    """A point on or above the reference ellipsoid."""

    lat_deg: float
    lon_deg: float
    alt_km: float = 0.0


class Vector(NamedTuple):
    """Topocentric displacement in km: x south, y east, z up."""

    south: float
    east: float
    up: float

    @property
    def magnitude(self) -> float:
        """Straight-line distance (range) in km."""
        return math.sqrt(self.south ** 2 + self.east ** 2 + self.up ** 2)

    def unit(self) -> Vector:
        """Direction only, scaled to length 1.

        Raises:
            ValueError: For the zero vector.
        """
        m = self.magnitude
        if m == 0.0:
            raise ValueError("Cannot normalize a zero-length vector")
        return Vector(self.south / m, self.east / m, self.up / m)

    @property
    def elevation_deg(self) -> float:
        """Angle above the local horizon in degrees."""
        return math.degrees(math.atan2(self.up, math.hypot(self.south, self.east)))

    @property
    def azimuth_deg(self) -> float:
        """Bearing clockwise from north in degrees, in [0, 360)."""
        return math.degrees(math.atan2(self.east, -self.south)) % 360.0


def local_sidereal_time(jd: float, lon_deg: float) -> float:
    """Local mean sidereal time in radians, in [0, 2π).

    Args:
        jd: Julian date (UT1, taken as UTC).
        lon_deg: Observer longitude in degrees, east positive.
    """
    return (gstime(jd) + math.radians(lon_deg)) % TWO_PI


def geodetic_to_eci(jd: float, observer: GeodeticPosition) -> NDArray[np.float64]:
    """Inertial-frame position of a ground observer at ``jd`` in km."""
    lat = math.radians(observer.lat_deg)
    theta = local_sidereal_time(jd, observer.lon_deg)
    sin_lat = math.sin(lat)

    c = 1.0 / math.sqrt(1.0 - EARTH_ECCENTRICITY_SQ * sin_lat ** 2)
    s = (1.0 - EARTH_ECCENTRICITY_SQ) * c
    r_xy = (EARTH_RADIUS_KM * c + observer.alt_km) * math.cos(lat)

    return np.array(
        [
            r_xy * math.cos(theta),
            r_xy * math.sin(theta),
            (EARTH_RADIUS_KM * s + observer.alt_km) * sin_lat,
        ],
        dtype=np.float64,
    )


def eci_to_geodetic(jd: float, position_km: ArrayLike, tol: float = 1e-12) -> GeodeticPosition:
    """Geodetic point directly beneath (or at) an inertial position.

    Latitude is found by fixed-point iteration on the ellipsoid normal,
    which converges in a handful of steps for orbital altitudes.

    Args:
        jd: Julian date of the position.
        position_km: Inertial [x, y, z] in km.
        tol: Convergence tolerance on latitude in radians.
    """
    x, y, z = (float(v) for v in position_km)
    r_xy = math.hypot(x, y)

    lon = (math.atan2(y, x) - gstime(jd)) % TWO_PI
    if lon > math.pi:
        lon -= TWO_PI

    lat = math.atan2(z, r_xy)
    c = 1.0
    for _ in range(50):
        prev = lat
        c = 1.0 / math.sqrt(1.0 - EARTH_ECCENTRICITY_SQ * math.sin(prev) ** 2)
        lat = math.atan2(z + EARTH_RADIUS_KM * c * EARTH_ECCENTRICITY_SQ * math.sin(prev), r_xy)
        if abs(lat - prev) < tol:
            break

    c = 1.0 / math.sqrt(1.0 - EARTH_ECCENTRICITY_SQ * math.sin(lat) ** 2)
    if abs(math.cos(lat)) > 1e-10:
        alt = r_xy / math.cos(lat) - EARTH_RADIUS_KM * c
    else:
        # Over a pole
        alt = abs(z) / abs(math.sin(lat)) - EARTH_RADIUS_KM * c * (1.0 - EARTH_ECCENTRICITY_SQ)

    return GeodeticPosition(math.degrees(lat), math.degrees(lon), alt)


def topocentric(jd: float, satellite_km: ArrayLike, observer: GeodeticPosition) -> Vector:
    """Rotate the observer-to-satellite displacement into south/east/up.

    Args:
        jd: Julian date of the satellite position.
        satellite_km: Satellite inertial [x, y, z] in km at ``jd``.
        observer: Observer location.

    Returns:
        The topocentric vector; its magnitude is the range in km.
    """
    lat = math.radians(observer.lat_deg)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)

    lst = local_sidereal_time(jd, observer.lon_deg)
    sin_lst = math.sin(lst)
    cos_lst = math.cos(lst)

    dx, dy, dz = np.asarray(satellite_km, dtype=np.float64) - geodetic_to_eci(jd, observer)

    south = sin_lat * cos_lst * dx + sin_lat * sin_lst * dy - cos_lat * dz
    east = -sin_lst * dx + cos_lst * dy
    up = cos_lat * cos_lst * dx + cos_lat * sin_lst * dy + sin_lat * dz

    return Vector(float(south), float(east), float(up))


def look(satrec: Satrec, observer: GeodeticPosition, when: datetime | None = None) -> Vector:
    """Propagate ``satrec`` to ``when`` (default now) and return the topocentric vector.

    Raises:
        ValueError: If SGP4 propagation fails.
    """
    state = propagate(satrec, when or datetime.now(timezone.utc))
    return topocentric(state.julian_date, state.position_km, observer)
