"""Complementary attitude filter sharing the AttitudeEstimator contract."""

from __future__ import annotations

import math

import numpy as np

from common.interface import AttitudeEstimator
from common.math import wrap_angle
from common.types import EulerAngles, SensorReading
from heliotrope.estimate import FilterConfig, earth_axes

__all__ = ["ComplementaryEstimator"]


class ComplementaryEstimator(AttitudeEstimator):
    """Gyro-integrating complementary filter with accel tilt and compass correction.

    Each update integrates body rates, then moves every angle toward the
    accelerometer/magnetometer solution by ``gain`` of the remaining error.
    """

    name = "complementary"

    def __init__(self, config: FilterConfig | None = None):
        config = config or FilterConfig()
        super().__init__(config.gain, config.sample_interval)

    def _reset_state(self) -> None:
        self._roll = 0.0
        self._pitch = 0.0
        self._heading = 0.0
        self._initialized = False

    def update(self, gyro: SensorReading, accel: SensorReading, mag: SensorReading) -> None:
        self._integrate_gyro(gyro.x, gyro.y, gyro.z, self._sample_interval)
        self._apply_correction(accel.as_array(), mag.as_array())

    def get_euler_angles(self) -> EulerAngles:
        return EulerAngles(heading=self._heading, pitch=self._pitch, roll=self._roll)

    def _integrate_gyro(self, gx: float, gy: float, gz: float, dt: float) -> None:
        # Small-angle body-rate integration; positive z spin turns the nose west
        self._roll += gx * dt
        self._pitch -= gy * dt
        self._heading = wrap_angle(self._heading - gz * dt)

    def _apply_correction(self, accel: np.ndarray, mag: np.ndarray) -> None:
        north, west, up = earth_axes(accel, mag)

        roll_ref = math.atan2(up[1], up[2])
        pitch_ref = math.atan2(up[0], math.hypot(up[1], up[2]))
        heading_ref = -math.atan2(west[0], north[0])

        if not self._initialized:
            self._roll = roll_ref
            self._pitch = pitch_ref
            self._heading = heading_ref
            self._initialized = True
            return

        weight = self._gain
        self._roll = wrap_angle(self._roll + weight * wrap_angle(roll_ref - self._roll))
        self._pitch += weight * (pitch_ref - self._pitch)
        self._heading = wrap_angle(self._heading + weight * wrap_angle(heading_ref - self._heading))
