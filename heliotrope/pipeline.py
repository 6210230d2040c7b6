"""
Orientation pipeline: sensor gating, filter stepping, failure recovery and smoothing.

Sensor callbacks arrive independently at their own rates. Each one stores
the latest reading for its sensor and runs one cycle; the filter only
advances once a reading from every sensor is present. A run of non-finite
filter outputs resets the filter instead of surfacing garbage.
"""

from __future__ import annotations

import math
import threading
from enum import Enum
from typing import Callable, Optional

from common.interface import AttitudeEstimator, HeadingReference
from common.logger import get_logger
from common.realtime import monotonic_time
from common.types import EulerAngles, Orientation, SensorReading
from heliotrope.angles import apply_declination, convert_euler_to_orientation, smooth_orientation
from heliotrope.calibration import CalibrationController
from heliotrope.estimate import MadgwickEstimator

logger = get_logger("pipeline")

FAILURE_THRESHOLD = 10
DEFAULT_SMOOTHING = 0.2


class PipelineState(Enum):
    WAITING_FOR_SENSORS = "waiting_for_sensors"
    RUNNING = "running"
    DEGRADED = "degraded"


def has_all_sensor_readings(
    gyro: Optional[SensorReading],
    accel: Optional[SensorReading],
    mag: Optional[SensorReading],
) -> bool:
    return gyro is not None and accel is not None and mag is not None


def is_valid_sensor_reading(reading: Optional[SensorReading]) -> bool:
    """False for a missing reading or one with a NaN/infinite component."""
    return reading is not None and reading.is_finite()


class OrientationPipeline:
    """Turns three asynchronous sensor streams into a smoothed Orientation.

    Args:
        estimator: Attitude filter to drive (defaults to Madgwick).
        reference: Independent compass used for periodic calibration. With
            no reference the heading offset stays at zero.
        calibration: Controller owning the heading offset.
        smoothing: Weight kept from the previous orientation, in [0, 1].
        declination: Degrees (east positive) added to the filter heading.
        clock: Monotonic time source in seconds.
        on_orientation: Called with every new Orientation, outside the lock.
        failure_threshold: Consecutive non-finite outputs before a reset.
    """

    def __init__(
        self,
        estimator: AttitudeEstimator | None = None,
        reference: HeadingReference | None = None,
        calibration: CalibrationController | None = None,
        smoothing: float = DEFAULT_SMOOTHING,
        declination: float = 0.0,
        clock: Callable[[], float] = monotonic_time,
        on_orientation: Callable[[Orientation], None] | None = None,
        failure_threshold: int = FAILURE_THRESHOLD,
    ):
        if not 0.0 <= smoothing <= 1.0:
            raise ValueError("smoothing must be within [0, 1]")
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.estimator = estimator or MadgwickEstimator()
        self.reference = reference
        self.calibration = calibration or CalibrationController(clock=clock)
        self.smoothing = float(smoothing)
        self.declination = float(declination)
        self.failure_threshold = int(failure_threshold)
        self._clock = clock
        self._on_orientation = on_orientation
        self._lock = threading.Lock()

        self._gyro: Optional[SensorReading] = None
        self._accel: Optional[SensorReading] = None
        self._mag: Optional[SensorReading] = None
        self._orientation: Optional[Orientation] = None

        self.failure_count = 0
        self.reset_count = 0
        self.skipped_count = 0
        self.update_count = 0

    # -- Sensor callbacks --------------------------------------------------

    def on_gyroscope(self, reading: SensorReading) -> Optional[Orientation]:
        return self._receive(gyro=reading)

    def on_accelerometer(self, reading: SensorReading) -> Optional[Orientation]:
        return self._receive(accel=reading)

    def on_magnetometer(self, reading: SensorReading) -> Optional[Orientation]:
        return self._receive(mag=reading)

    def _receive(self, gyro=None, accel=None, mag=None) -> Optional[Orientation]:
        with self._lock:
            if gyro is not None:
                self._gyro = gyro
            if accel is not None:
                self._accel = accel
            if mag is not None:
                self._mag = mag
            orientation = self._cycle()
        if orientation is not None and self._on_orientation is not None:
            self._on_orientation(orientation)
        return orientation

    # -- State -------------------------------------------------------------

    @property
    def orientation(self) -> Optional[Orientation]:
        with self._lock:
            return self._orientation

    @property
    def state(self) -> PipelineState:
        with self._lock:
            if not has_all_sensor_readings(self._gyro, self._accel, self._mag):
                return PipelineState.WAITING_FOR_SENSORS
            if self.failure_count > 0:
                return PipelineState.DEGRADED
            return PipelineState.RUNNING

    @property
    def gain(self) -> float:
        return self.estimator.gain

    def set_gain(self, gain: float) -> bool:
        """Swap the filter gain; the filter restarts from scratch."""
        if not math.isfinite(gain) or gain < 0.0:
            logger.warning(f"Ignoring invalid filter gain {gain!r}")
            return False
        with self._lock:
            self.estimator.reinitialize(gain, self.estimator.sample_interval)
            self.failure_count = 0
        logger.info(f"Filter reinitialized with gain {gain:.2f}")
        return True

    def restart(self) -> None:
        """Drop every reading, the orientation and the calibration offset."""
        with self._lock:
            self.estimator.reinitialize(self.estimator.gain, self.estimator.sample_interval)
            self._gyro = self._accel = self._mag = None
            self._orientation = None
            self.failure_count = 0
            self.calibration.reset()
        logger.info("Pipeline restarted; waiting for sensors")

    # -- Update cycle (called with the lock held) --------------------------

    def _cycle(self) -> Optional[Orientation]:
        if not has_all_sensor_readings(self._gyro, self._accel, self._mag):
            return None

        if not (
            is_valid_sensor_reading(self._gyro)
            and is_valid_sensor_reading(self._accel)
            and is_valid_sensor_reading(self._mag)
        ):
            self.skipped_count += 1
            logger.debug("Skipping update: non-finite sensor reading")
            return None

        self.estimator.update(self._gyro, self._accel, self._mag)
        euler = self.estimator.get_euler_angles()
        if not euler.is_finite():
            self.failure_count += 1
            logger.warning(f"Filter produced non-finite output ({self.failure_count}/{self.failure_threshold})")
            if self.failure_count >= self.failure_threshold:
                self._reset_filter()
            return None
        self.failure_count = 0

        degrees = euler.to_degrees()
        heading = apply_declination(degrees.heading, self.declination)
        if self.reference is not None and self.calibration.should_calibrate(self._clock(), degrees.pitch):
            self.calibration.calibrate(heading, degrees.pitch, self.reference, now=self._clock())

        measured = convert_euler_to_orientation(
            EulerAngles(heading=self.calibration.apply(heading), pitch=degrees.pitch, roll=degrees.roll)
        )
        if self._orientation is None:
            orientation = measured
        else:
            orientation = smooth_orientation(self._orientation, measured, self.smoothing)
        self._orientation = orientation
        self.update_count += 1
        return orientation

    def _reset_filter(self) -> None:
        self.estimator.reinitialize(self.estimator.gain, self.estimator.sample_interval)
        self.failure_count = 0
        self.reset_count += 1
        logger.warning(f"Filter reset after {self.failure_threshold} consecutive failures")


__all__ = [
    "DEFAULT_SMOOTHING",
    "FAILURE_THRESHOLD",
    "OrientationPipeline",
    "PipelineState",
    "has_all_sensor_readings",
    "is_valid_sensor_reading",
]
