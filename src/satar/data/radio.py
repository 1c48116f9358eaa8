"""Amateur-radio transponder metadata parser.

The radio feed is a semicolon-delimited list with one row per transponder::

    AO-7;7530;145.850-145.950;29.400-29.500;29.502;SSB/CW;;active

Columns are name, catalog number, uplink, downlink, beacon, mode, callsign
and status. The feed is hand-maintained, so parsing is best-effort: rows with
the wrong field count or a non-numeric catalog number are skipped and counted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from satar.utils.constants import RADIO_FEED_DELIMITER, RADIO_FEED_FIELD_COUNT

logger = logging.getLogger(__name__)


def _catalog_number(text: str) -> int:
    # int() would also take "+100", "1_00" and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"Invalid catalog number: {text!r}")
    return int(text)


@dataclass(frozen=True)
class RadioRecord:
    """One transponder row from the radio feed.

    Attributes:
        name: Display name used by the radio feed (may differ from the TLE name).
        norad_id: NORAD catalog number, or None when the feed omits it.
        uplink: Uplink frequency or range (free text, MHz).
        downlink: Downlink frequency or range (free text, MHz).
        beacon: Beacon frequency (free text, MHz).
        mode: Modulation / operating mode.
        callsign: Callsign, often empty.
        status: Operational status as published (e.g. ``active``).
    """

    name: str
    norad_id: int | None
    uplink: str
    downlink: str
    beacon: str
    mode: str
    callsign: str
    status: str

    @property
    def is_active(self) -> bool:
        return self.status.strip().casefold() == "active"

    @classmethod
    def from_row(cls, fields: Sequence[str]) -> RadioRecord:
        """Build a record from the 8 fields of a feed row.

        Raises:
            ValueError: If the field count is wrong or the catalog number is
                not an integer.
        """
        if len(fields) != RADIO_FEED_FIELD_COUNT:
            raise ValueError(
                f"Expected {RADIO_FEED_FIELD_COUNT} fields, got {len(fields)}"
            )
        name, norad, uplink, downlink, beacon, mode, callsign, status = (
            f.strip() for f in fields
        )
        return cls(
            name=name,
            norad_id=_catalog_number(norad),
            uplink=uplink,
            downlink=downlink,
            beacon=beacon,
            mode=mode,
            callsign=callsign,
            status=status,
        )


@dataclass(frozen=True)
class RadioParseResult:
    """Outcome of parsing a radio feed.

    Attributes:
        records: Accepted records in feed order.
        skipped: Rows rejected as malformed.
        inactive: Well-formed rows dropped because they are not active
            (only non-zero when parsing with ``active_only``).
    """

    records: tuple[RadioRecord, ...]
    skipped: int = 0
    inactive: int = 0

    def __len__(self) -> int:
        return len(self.records)


def parse_radio(
    text: str,
    *,
    active_only: bool = False,
    delimiter: str = RADIO_FEED_DELIMITER,
) -> RadioParseResult:
    """Parse radio feed text.

    Args:
        text: Raw feed text.
        active_only: Drop rows whose status is not ``active`` (strict feed
            filtering). When False, such rows are kept with their status.
        delimiter: Field separator.

    Returns:
        The accepted records with skip counters.
    """
    records: list[RadioRecord] = []
    skipped = 0
    inactive = 0

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = RadioRecord.from_row(line.split(delimiter))
        except ValueError as e:
            logger.debug("Skipping radio row %d: %s", lineno, e)
            skipped += 1
            continue
        if active_only and not record.is_active:
            inactive += 1
            continue
        records.append(record)

    logger.info(
        "Parsed %d radio records (%d malformed rows skipped, %d inactive dropped)",
        len(records), skipped, inactive,
    )
    return RadioParseResult(records=tuple(records), skipped=skipped, inactive=inactive)


def load_radio_file(path: str | Path, *, active_only: bool = False) -> RadioParseResult:
    """Read and parse a local copy of the radio feed.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_radio(text, active_only=active_only)
