"""Catalog of trackable objects, reconciled from the orbital and radio feeds.

Every object in the catalog has an element set; radio records only ever
attach to one. The catalog is rebuilt in full on each refresh and is never
mutated once built.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

from satar.core.tle import TLE
from satar.data.radio import RadioRecord

logger = logging.getLogger(__name__)


class MergePolicy(Enum):
    """Which element sets become catalog entries.

    PERMISSIVE keeps every element set, with or without transponders.
    STRICT keeps only element sets with at least one matching radio record.
    """

    PERMISSIVE = "permissive"
    STRICT = "strict"


@dataclass(frozen=True)
class TrackableObject:
    """A cataloged object: its element set plus known transponders.

    Attributes:
        norad_id: NORAD catalog number (the catalog key).
        name: Common name from the orbital feed.
        tle: Element set used to seed the propagator.
        radios: Matching radio records, in radio feed order.
    """

    norad_id: int
    name: str
    tle: TLE = field(repr=False)
    radios: tuple[RadioRecord, ...] = ()

    def describe(self) -> str:
        """Multi-line transponder summary for display."""
        parts = [f"{self.name} ({self.norad_id})", "", ""]
        for radio in self.radios:
            parts.extend([
                f"callsign: {radio.callsign}",
                f"mode: {radio.mode}",
                f"beacon: {radio.beacon}",
                f"downlink: {radio.downlink}",
                f"uplink: {radio.uplink}",
                "",
                "",
            ])
        return "\n".join(parts)


class Catalog(Mapping[int, TrackableObject]):
    """Read-only, catalog-number-keyed collection in orbital feed order."""

    def __init__(self, objects: Iterable[TrackableObject] = ()) -> None:
        entries: dict[int, TrackableObject] = {}
        for obj in objects:
            if obj.norad_id in entries:
                raise ValueError(f"Duplicate NORAD {obj.norad_id} in catalog")
            entries[obj.norad_id] = obj
        self._entries = entries

    def __getitem__(self, norad_id: int) -> TrackableObject:
        return self._entries[norad_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Catalog({len(self)} objects)"

    @property
    def norad_ids(self) -> list[int]:
        return list(self._entries)

    @property
    def objects(self) -> list[TrackableObject]:
        return list(self._entries.values())

    def search(self, text: str) -> list[TrackableObject]:
        """Objects whose name contains ``text`` (case-insensitive) or whose
        catalog number equals it. Empty text matches everything."""
        needle = text.strip().casefold()
        if not needle:
            return self.objects
        return [
            obj for obj in self._entries.values()
            if needle in obj.name.casefold() or needle == str(obj.norad_id)
        ]


@dataclass(frozen=True)
class ReconcileReport:
    """Diagnostics from :func:`reconcile`.

    Attributes:
        policy: Merge policy used.
        orphan_radios: Radio records matching no element set.
        orphan_elements: Element sets matching no radio record.
    """

    policy: MergePolicy
    orphan_radios: int
    orphan_elements: int


def reconcile(
    elements: Iterable[TLE],
    radios: Iterable[RadioRecord],
    policy: MergePolicy = MergePolicy.PERMISSIVE,
) -> tuple[Catalog, ReconcileReport]:
    """Join element sets and radio records on catalog number.

    Args:
        elements: Element sets in orbital feed order.
        radios: Radio records in radio feed order.
        policy: Whether element sets without radios are kept.

    Returns:
        The new catalog and its reconciliation diagnostics.
    """
    by_norad: dict[int, list[RadioRecord]] = {}
    unnumbered = 0
    for radio in radios:
        if radio.norad_id is None:
            unnumbered += 1
            continue
        by_norad.setdefault(radio.norad_id, []).append(radio)

    objects: list[TrackableObject] = []
    seen: set[int] = set()
    orphan_elements = 0
    for tle in elements:
        if tle.norad_id in seen:
            logger.warning("Duplicate NORAD %d in element sets, keeping first", tle.norad_id)
            continue
        seen.add(tle.norad_id)

        matched = tuple(by_norad.get(tle.norad_id, ()))
        if not matched:
            orphan_elements += 1
            if policy is MergePolicy.STRICT:
                continue
        objects.append(TrackableObject(tle.norad_id, tle.name, tle, matched))

    orphan_radios = unnumbered + sum(
        len(records) for norad_id, records in by_norad.items() if norad_id not in seen
    )

    report = ReconcileReport(
        policy=policy,
        orphan_radios=orphan_radios,
        orphan_elements=orphan_elements,
    )
    logger.info(
        "Reconciled %d objects (%s): %d orphan radios, %d orphan elements",
        len(objects), policy.value, orphan_radios, orphan_elements,
    )
    return Catalog(objects), report
