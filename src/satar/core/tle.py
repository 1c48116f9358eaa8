"""TLE (Two-Line Element) parsing for the orbital element feed.

The orbital feed is authoritative: a malformed group aborts the whole parse
rather than yielding a partial catalog. Element sets are decoded with the
sgp4 library; propagators are built separately by
:class:`satar.core.propagation.PropagatorCache`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sgp4.api import Satrec, WGS72

logger = logging.getLogger(__name__)

# Fixed numeric columns of line 2; eccentricity carries an implied "0." prefix.
_LINE2_FIELDS = (
    ("inclination", slice(8, 16)),
    ("right ascension", slice(17, 25)),
    ("eccentricity", slice(26, 33)),
    ("argument of perigee", slice(34, 42)),
    ("mean anomaly", slice(43, 51)),
    ("mean motion", slice(52, 63)),
)


def checksum(line: str) -> int:
    """Modulo-10 checksum of a TLE line: digits count their value, minus signs 1."""
    total = 0
    for c in line[:68]:
        if c.isdigit():
            total += int(c)
        elif c == "-":
            total += 1
    return total % 10


@dataclass(frozen=True)
class TLE:
    """A parsed Two-Line Element set.

    Attributes:
        name: Satellite common name (line 0).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        bstar: BSTAR drag term.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    bstar: float

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> TLE:
        """Parse a TLE from its two element lines and optional name.

        Args:
            line1: TLE line 1 (69 characters).
            line2: TLE line 2 (69 characters).
            name: Optional satellite name (line 0).

        Returns:
            A parsed TLE object.

        Raises:
            ValueError: If the TLE lines are malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != 69 or not line1.startswith("1 "):
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != 69 or not line2.startswith("2 "):
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        try:
            norad_id = int(line1[2:7])
            other_id = int(line2[2:7])
        except ValueError:
            raise ValueError(f"Invalid catalog number in TLE: {line1[2:7]!r}") from None
        if norad_id != other_id:
            raise ValueError(
                f"TLE lines disagree on catalog number: {norad_id} vs {other_id}"
            )

        # twoline2rv reads unparseable columns as zero instead of failing
        for field, columns in _LINE2_FIELDS:
            text = line2[columns]
            try:
                float("0." + text if field == "eccentricity" else text)
            except ValueError:
                raise ValueError(
                    f"Invalid {field} in TLE for NORAD {norad_id}: {text!r}"
                ) from None

        for number, line in ((1, line1), (2, line2)):
            if not line[68].isdigit() or int(line[68]) != checksum(line):
                raise ValueError(
                    f"Checksum mismatch on TLE line {number} for NORAD {norad_id}"
                )

        try:
            year = int(line1[18:20])
            day_of_year = float(line1[20:32])
            sat = Satrec.twoline2rv(line1, line2, WGS72)
        except ValueError as e:
            raise ValueError(f"Malformed TLE for NORAD {norad_id}: {e}") from e
        if sat.error != 0:
            raise ValueError(
                f"SGP4 rejected elements for NORAD {norad_id} (error code {sat.error})"
            )

        year = year + 2000 if year < 57 else year + 1900
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(
            days=day_of_year - 1
        )

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=norad_id,
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            arg_perigee_deg=math.degrees(sat.argpo),
            mean_anomaly_deg=math.degrees(sat.mo),
            mean_motion_rev_per_day=sat.no_kozai * 1440 / (2 * math.pi),
            bstar=sat.bstar,
        )

    def __str__(self) -> str:
        return f"{self.name}\n{self.line1}\n{self.line2}"


def parse_tle(text: str) -> list[TLE]:
    """Parse a 3-line TLE feed (name, line 1, line 2, repeated).

    Blank lines are ignored. When a catalog number appears more than once
    the first occurrence is kept.

    Args:
        text: Raw feed text.

    Returns:
        Parsed TLEs in feed order.

    Raises:
        ValueError: If any group is malformed or the feed ends mid-group.
    """
    lines = [l.rstrip() for l in text.splitlines() if l.strip()]
    if len(lines) % 3:
        raise ValueError(
            f"TLE feed has {len(lines)} non-blank lines, not a multiple of 3"
        )

    tles: list[TLE] = []
    seen: set[int] = set()
    for group, i in enumerate(range(0, len(lines), 3)):
        try:
            tle = TLE.from_lines(lines[i + 1], lines[i + 2], name=lines[i])
        except ValueError as e:
            logger.error("Malformed TLE group %d (line %d): %s", group, i + 1, e)
            raise ValueError(f"Malformed TLE group {group} at line {i + 1}: {e}") from e

        if tle.norad_id in seen:
            logger.warning(
                "Duplicate NORAD %d (%s) in TLE feed, keeping first occurrence",
                tle.norad_id, tle.name,
            )
            continue
        seen.add(tle.norad_id)
        tles.append(tle)

    logger.debug("Parsed %d TLEs from text", len(tles))
    return tles


def load_tle_file(path: str | Path) -> list[TLE]:
    """Read and parse a local copy of the orbital feed.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the feed is malformed.
    """
    text = Path(path).read_text(encoding="utf-8")
    return parse_tle(text)
