"""
Sun position and the heading-indexed solar table.

Positions come from the NOAA solar-position equations (fractional-year
series for the equation of time and declination, with the standard
atmospheric refraction correction), evaluated with numpy over a whole day
at one-minute resolution.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from common.types import SolarPosition

TABLE_SIZE = 360
MINUTES_PER_DAY = 24 * 60


def _as_utc(when: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def _refraction_degrees(elevation: np.ndarray) -> np.ndarray:
    """Approximate atmospheric refraction (degrees) for apparent elevation."""
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        tan_e = np.tan(np.radians(elevation))
        arcsec = np.select(
            [elevation > 85.0, elevation > 5.0, elevation > -0.575],
            [
                np.zeros_like(elevation),
                58.1 / tan_e - 0.07 / tan_e**3 + 0.000086 / tan_e**5,
                1735.0 + elevation * (-518.2 + elevation * (103.4 + elevation * (-12.79 + elevation * 0.711))),
            ],
            default=-20.772 / tan_e,
        )
    return arcsec / 3600.0


def sun_positions(latitude: float, longitude: float, times: Sequence[datetime]) -> Tuple[np.ndarray, np.ndarray]:
    """Return (azimuth, elevation) in degrees for each instant in ``times``.

    Azimuth is measured clockwise from true north in [0, 360); elevation
    includes refraction.
    """
    utc = [_as_utc(t) for t in times]
    day_of_year = np.array([t.timetuple().tm_yday for t in utc], dtype=float)
    minutes = np.array([t.hour * 60.0 + t.minute + (t.second + t.microsecond / 1e6) / 60.0 for t in utc])

    gamma = 2.0 * math.pi / 365.0 * (day_of_year - 1.0 + (minutes / 60.0 - 12.0) / 24.0)
    eqtime = 229.18 * (
        0.000075
        + 0.001868 * np.cos(gamma)
        - 0.032077 * np.sin(gamma)
        - 0.014615 * np.cos(2 * gamma)
        - 0.040849 * np.sin(2 * gamma)
    )
    declination = (
        0.006918
        - 0.399912 * np.cos(gamma)
        + 0.070257 * np.sin(gamma)
        - 0.006758 * np.cos(2 * gamma)
        + 0.000907 * np.sin(2 * gamma)
        - 0.002697 * np.cos(3 * gamma)
        + 0.00148 * np.sin(3 * gamma)
    )

    true_solar_time = minutes + eqtime + 4.0 * longitude
    hour_angle = np.radians(true_solar_time / 4.0 - 180.0)
    lat = math.radians(latitude)

    cos_zenith = np.clip(
        math.sin(lat) * np.sin(declination) + math.cos(lat) * np.cos(declination) * np.cos(hour_angle),
        -1.0,
        1.0,
    )
    elevation = 90.0 - np.degrees(np.arccos(cos_zenith))
    azimuth = np.degrees(
        np.arctan2(
            np.sin(hour_angle),
            np.cos(hour_angle) * math.sin(lat) - np.tan(declination) * math.cos(lat),
        )
    )
    azimuth = np.mod(azimuth + 180.0, 360.0)
    return azimuth, elevation + _refraction_degrees(elevation)


def sun_position(latitude: float, longitude: float, when: datetime) -> Tuple[float, float]:
    azimuth, elevation = sun_positions(latitude, longitude, [when])
    return float(azimuth[0]), float(elevation[0])


class SolarTable:
    """Sun time and elevation indexed by whole compass degree.

    Buckets the sun never crosses during the day hold None.
    """

    def __init__(self, entries: Sequence[Optional[SolarPosition]]):
        if len(entries) != TABLE_SIZE:
            raise ValueError(f"solar table needs {TABLE_SIZE} entries, got {len(entries)}")
        self._entries: List[Optional[SolarPosition]] = list(entries)

    @classmethod
    def generate(cls, latitude: float, longitude: float, start: Optional[datetime] = None) -> "SolarTable":
        return generate_solar_table(latitude, longitude, start)

    def __len__(self) -> int:
        return TABLE_SIZE

    def __getitem__(self, index: int) -> Optional[SolarPosition]:
        return self._entries[index]

    def __iter__(self) -> Iterator[Optional[SolarPosition]]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SolarTable):
            return NotImplemented
        return self._entries == other._entries

    def lookup(self, heading: float) -> Optional[SolarPosition]:
        """Entry for ``floor(heading) mod 360``; None when unset or heading is not finite."""
        if not math.isfinite(heading):
            return None
        return self._entries[int(math.floor(heading)) % TABLE_SIZE]

    def coverage(self) -> int:
        """Number of buckets holding a position."""
        return sum(1 for entry in self._entries if entry is not None)


def generate_solar_table(latitude: float, longitude: float, start: Optional[datetime] = None) -> SolarTable:
    """Sample one day of sun positions, minute by minute, from ``start``.

    When the sun revisits an azimuth bucket within the day the later
    sample wins.
    """
    if not -90.0 <= latitude <= 90.0:
        raise ValueError("latitude must be within [-90, 90]")
    if not math.isfinite(longitude):
        raise ValueError("longitude must be finite")
    start = _as_utc(start) if start is not None else datetime.now(timezone.utc)
    times = [start + timedelta(minutes=m) for m in range(MINUTES_PER_DAY)]
    azimuths, elevations = sun_positions(latitude, longitude, times)

    entries: List[Optional[SolarPosition]] = [None] * TABLE_SIZE
    for when, azimuth, elevation in zip(times, azimuths, elevations):
        bucket = int(math.floor(azimuth)) % TABLE_SIZE
        # Half-up rounding
        entries[bucket] = SolarPosition(time=when, elevation=int(math.floor(elevation + 0.5)))
    return SolarTable(entries)


__all__ = [
    "MINUTES_PER_DAY",
    "SolarTable",
    "TABLE_SIZE",
    "generate_solar_table",
    "sun_position",
    "sun_positions",
]
