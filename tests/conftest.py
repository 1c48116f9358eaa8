"""Shared feed fixtures: two element sets (100, 200) and a mixed radio feed."""
from __future__ import annotations

from pathlib import Path

import pytest

ORBITAL_FEED = """\
TEST 100
1 00100U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9998
2 00100  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439593
TEST 200
1 00200U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9997
2 00200  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872919
"""

# Two active rows for 100, one for a catalog number with no element set,
# one inactive row for 200, plus two malformed rows.
RADIO_FEED = """\
TEST-100;100;145.900;435.800;435.790;FM;AB1CD;active
TEST-100 B;100;;437.100;;BPSK 1200;;Active

GHOST;300;145.850;29.400;;SSB;;active
TEST-200;200;;145.825;;APRS;;inactive
BROKEN;row
NO-NUMBER;n/a;;145.000;;FM;;active
"""


@pytest.fixture
def feed_dir(tmp_path: Path) -> Path:
    """Cache directory holding fresh copies of both feeds."""
    (tmp_path / "amateur.txt").write_text(ORBITAL_FEED)
    (tmp_path / "satslist.csv").write_text(RADIO_FEED)
    return tmp_path
