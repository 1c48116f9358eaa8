from __future__ import annotations

"""Physical constants, feed locations and default refresh settings.

Distances in km, angles in degrees unless noted otherwise.
"""

# --- Earth parameters (WGS-72, the model SGP4 propagates with) ---
EARTH_RADIUS_KM: float = 6378.135
"""Equatorial radius of Earth in km."""

EARTH_FLATTENING: float = 1.0 / 298.26
"""Flattening of the WGS-72 reference ellipsoid."""

EARTH_ECCENTRICITY_SQ: float = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)
"""First eccentricity squared of the reference ellipsoid."""

# --- Feeds ---
ORBITAL_FEED_URL: str = "https://celestrak.org/NORAD/elements/amateur.txt"
"""CelesTrak amateur-radio satellite element sets (3-line TLE groups)."""

RADIO_FEED_URL: str = "http://www.ne.jp/asahi/hamradio/je9pel/satslist.csv"
"""JE9PEL amateur satellite frequency list (semicolon-delimited)."""

ORBITAL_FEED_FILENAME: str = "amateur.txt"
RADIO_FEED_FILENAME: str = "satslist.csv"

RADIO_FEED_DELIMITER: str = ";"
RADIO_FEED_FIELD_COUNT: int = 8

# --- Refresh and tracking defaults ---
DEFAULT_MAX_AGE_HOURS: float = 12.0
"""Local feed copies older than this are downloaded again."""

DEFAULT_DOWNLOAD_TIMEOUT_S: float = 30.0
"""Upper bound on a single feed download in seconds."""

DEFAULT_TICK_INTERVAL_S: float = 5.0
"""Nominal interval between topocentric recompute ticks in seconds."""

DEFAULT_PROPAGATION_TIMEOUT_S: float = 1.0
"""Upper bound on one tick's propagation batch in seconds."""

DEFAULT_MAX_WORKERS: int = 4
"""Worker threads used for a tick's propagation batch."""
