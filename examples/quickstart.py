"""SatAR Quickstart - parse a TLE and find where to look for it."""

from datetime import timedelta

from satar import GeodeticPosition, parse_tle
from satar.core.propagation import satrec_from_tle
from satar.core.topocentric import look

# BUGSAT 1 TLE
tle_text = """
BUGSAT 1
1 40014U 14033E   20046.14221677 -.00000307  00000-0 -21767-4 0  9991
2 40014  98.0475   4.5247 0031640 343.2517  16.7681 14.95391601308587
""".strip()

# Parse it
tles = parse_tle(tle_text)
sat = tles[0]

print(f"Satellite: {sat.name}")
print(f"NORAD ID:  {sat.norad_id}")
print(f"Epoch:     {sat.epoch}")
print(f"Incl:      {sat.inclination_deg:.4f}°")
print(f"Period:    {1440 / sat.mean_motion_rev_per_day:.1f} min")

# Point at it from Buenos Aires one hour after epoch
observer = GeodeticPosition(lat_deg=-34.6, lon_deg=-58.4)
when = sat.epoch + timedelta(hours=1)
v = look(satrec_from_tle(sat), observer, when)

print(f"South/East/Up: {v.south:.1f} / {v.east:.1f} / {v.up:.1f} km")
print(f"Range:         {v.magnitude:.1f} km")
print(f"Az/El:         {v.azimuth_deg:.1f}° / {v.elevation_deg:.1f}°")
