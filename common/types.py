"""
Shared data structures passed between sensor sources, estimators, and the pipeline.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class SensorReading:
    """One raw three-axis sample.

    Units depend on the source: gyroscope rad/s, accelerometer g,
    magnetometer µT.
    """

    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)


@dataclass(frozen=True)
class EulerAngles:
    """Heading, pitch and roll produced by one estimator step."""

    heading: float
    pitch: float
    roll: float

    def is_finite(self) -> bool:
        return math.isfinite(self.heading) and math.isfinite(self.pitch) and math.isfinite(self.roll)

    def to_degrees(self) -> "EulerAngles":
        return EulerAngles(
            heading=math.degrees(self.heading),
            pitch=math.degrees(self.pitch),
            roll=math.degrees(self.roll),
        )


@dataclass(frozen=True)
class Orientation:
    """Externally visible orientation in degrees.

    heading is kept in [0, 360) and pitch in [-90, 90] by the code that
    builds it; roll is unbounded.
    """

    heading: float
    pitch: float
    roll: float = 0.0


@dataclass(frozen=True)
class CalibrationState:
    """Snapshot of the heading correction currently in effect."""

    heading_offset: float = 0.0
    last_calibration: Optional[float] = None
    in_progress: bool = False


@dataclass(frozen=True)
class SolarPosition:
    """Sun elevation (whole degrees) at the instant it crosses a bearing."""

    time: datetime
    elevation: int


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)
