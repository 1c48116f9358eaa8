"""SatAR tracking - refresh the amateur catalog and run a few ticks.

Downloads the CelesTrak and JE9PEL feeds into ~/.cache/satar on first run
(or when they are more than 12 hours old).
"""

import logging
import time

from satar import CatalogStore, GeodeticPosition, SatarConfig, Tracker, TrackingSelection

logging.basicConfig(level=logging.INFO, format="%(name)s - %(message)s")

store = CatalogStore(SatarConfig.from_env())
report = store.refresh_sync()
print(f"{report.catalog_size} objects, {report.reconcile.orphan_radios} orphan radio rows")

# Track everything with a FM transponder
selection = TrackingSelection(
    obj.norad_id for obj in store.catalog.objects
    if any("FM" in radio.mode for radio in obj.radios)
)

observer = GeodeticPosition(lat_deg=51.48, lon_deg=0.0)
with Tracker(store, selection) as tracker:
    for _ in range(3):
        result = tracker.tick(observer)
        visible = {n: v for n, v in result.vectors.items() if v.elevation_deg > 0}
        for norad_id, v in visible.items():
            print(f"{store.catalog[norad_id].name:20s} az {v.azimuth_deg:6.1f}  el {v.elevation_deg:5.1f}")
        print(f"-- {len(visible)} above horizon, tick took {result.duration_s * 1000:.0f} ms")
        time.sleep(5)
