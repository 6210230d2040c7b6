"""
Interface definitions for sensors, heading references, and attitude estimators.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from common.types import EulerAngles, SensorReading


class Sensor(ABC):
    """Abstract base for sensor implementations."""

    def read(self) -> Any:
        """Read data from the sensor."""
        raise NotImplementedError


class HeadingReference(Sensor):
    """Independent compass heading used to calibrate the filter.

    ``read`` may block (it is called off the update path) and returns a
    heading in degrees, or ``None`` when no heading is available.
    """

    @abstractmethod
    def read(self) -> Optional[float]:
        """Return the current reference heading in degrees, or None."""


class AttitudeEstimator(ABC):
    """Abstract base for gyro/accel/mag fusion filters.

    Gain and sample interval are fixed at construction; changing them goes
    through ``reinitialize`` which discards all filter state.
    """

    def __init__(self, gain: float, sample_interval: float):
        self._configure(gain, sample_interval)

    @property
    def gain(self) -> float:
        return self._gain

    @property
    def sample_interval(self) -> float:
        return self._sample_interval

    def reinitialize(self, gain: float, sample_interval: float) -> None:
        """Replace all filter state, optionally with a new gain/interval."""
        self._configure(gain, sample_interval)

    def _configure(self, gain: float, sample_interval: float) -> None:
        if sample_interval <= 0.0:
            raise ValueError("sample_interval must be positive")
        if not math.isfinite(gain) or gain < 0.0:
            raise ValueError("gain must be a finite, non-negative number")
        self._gain = float(gain)
        self._sample_interval = float(sample_interval)
        self._reset_state()

    @abstractmethod
    def _reset_state(self) -> None:
        """Create fresh internal filter state."""

    @abstractmethod
    def update(self, gyro: SensorReading, accel: SensorReading, mag: SensorReading) -> None:
        """Advance the filter by one sample interval."""

    @abstractmethod
    def get_euler_angles(self) -> EulerAngles:
        """Return heading, pitch and roll in radians without mutating state."""
