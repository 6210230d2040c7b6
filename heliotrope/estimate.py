"""Gradient-descent (Madgwick) MARG attitude estimation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from common.interface import AttitudeEstimator
from common.math import Quaternion, Vector3D
from common.types import EulerAngles, SensorReading
from heliotrope.settings import DEFAULT_GAIN

DEFAULT_SAMPLE_INTERVAL = 0.02  # 50 Hz sensor streams


@dataclass
class FilterConfig:
    gain: float = DEFAULT_GAIN
    sample_interval: float = DEFAULT_SAMPLE_INTERVAL


def earth_axes(accel: np.ndarray, mag: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return magnetic north, west and up expressed in the sensor frame.

    ``accel`` is the specific force (points up at rest). Zero-length inputs
    yield NaN axes.
    """
    with np.errstate(invalid="ignore", divide="ignore"):
        up = accel / np.linalg.norm(accel)
        west = np.cross(up, mag)
        west = west / np.linalg.norm(west)
        north = np.cross(west, up)
    return north, west, up


def quaternion_to_euler(q: Quaternion) -> EulerAngles:
    """Compass heading, pitch and roll (radians) of the sensor x axis.

    The quaternion maps sensor vectors into the north-west-up earth frame.
    """
    w, x, y, z = q.q
    heading = -math.atan2(2.0 * (x * y + w * z), 1.0 - 2.0 * (y * y + z * z))
    # Rounding can push the sine just past +/-1 near vertical; NaN must survive.
    sin_pitch = float(np.clip(2.0 * (x * z - w * y), -1.0, 1.0))
    pitch = math.asin(sin_pitch) if math.isfinite(sin_pitch) else float("nan")
    roll = math.atan2(2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y))
    return EulerAngles(heading=heading, pitch=pitch, roll=roll)


class MadgwickEstimator(AttitudeEstimator):
    """Madgwick AHRS: gyro integration corrected by a gradient step on accel+mag.

    ``gain`` is the filter beta: the rate (rad/s) at which the gradient step
    pulls the quaternion toward the accelerometer/magnetometer solution.
    Degenerate accelerometer or magnetometer vectors are not guarded against
    and leave the state non-finite.
    """

    name = "madgwick"

    def __init__(self, config: FilterConfig | None = None):
        config = config or FilterConfig()
        super().__init__(config.gain, config.sample_interval)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def quaternion(self) -> Quaternion:
        return Quaternion(*self._q.q)

    def _reset_state(self) -> None:
        self._q = Quaternion()
        self._initialized = False

    def update(self, gyro: SensorReading, accel: SensorReading, mag: SensorReading) -> None:
        omega = gyro.as_array()
        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            a = accel.as_array()
            a = a / np.linalg.norm(a)
            m = mag.as_array()
            m = m / np.linalg.norm(m)

            if not self._initialized:
                # Seed from gravity and the magnetic field so the first heading is meaningful
                north, west, up = earth_axes(a, m)
                self._q = Quaternion.from_rotation_matrix(np.vstack([north, west, up]))
                self._initialized = True

            q = self._q
            w, x, y, z = q.q

            # Reference field: measured field in the earth frame, folded onto the north-up plane
            h = q.rotate(Vector3D(*m)).v
            bx = math.hypot(h[0], h[1])
            bz = h[2]

            f = np.array(
                [
                    2.0 * (x * z - w * y) - a[0],
                    2.0 * (w * x + y * z) - a[1],
                    1.0 - 2.0 * (x * x + y * y) - a[2],
                    bx * (1.0 - 2.0 * (y * y + z * z)) + 2.0 * bz * (x * z - w * y) - m[0],
                    2.0 * bx * (x * y - w * z) + 2.0 * bz * (w * x + y * z) - m[1],
                    2.0 * bx * (w * y + x * z) + bz * (1.0 - 2.0 * (x * x + y * y)) - m[2],
                ]
            )
            jacobian = np.array(
                [
                    [-2.0 * y, 2.0 * z, -2.0 * w, 2.0 * x],
                    [2.0 * x, 2.0 * w, 2.0 * z, 2.0 * y],
                    [0.0, -4.0 * x, -4.0 * y, 0.0],
                    [-2.0 * bz * y, 2.0 * bz * z, -4.0 * bx * y - 2.0 * bz * w, -4.0 * bx * z + 2.0 * bz * x],
                    [-2.0 * bx * z + 2.0 * bz * x, 2.0 * bx * y + 2.0 * bz * w, 2.0 * bx * x + 2.0 * bz * z, -2.0 * bx * w + 2.0 * bz * y],
                    [2.0 * bx * y, 2.0 * bx * z - 4.0 * bz * x, 2.0 * bx * w - 4.0 * bz * y, 2.0 * bx * x],
                ]
            )
            step = jacobian.T @ f
            step_norm = np.linalg.norm(step)
            if step_norm > 0.0:
                step = step / step_norm

            # q_dot = 0.5 * q ⊗ ω - beta * ∇f
            q_dot = (q * Quaternion(0.0, *omega)).q * 0.5 - self._gain * step
            updated = Quaternion(*(q.q + q_dot * self._sample_interval))
            updated.normalize()
        self._q = updated

    def get_euler_angles(self) -> EulerAngles:
        return quaternion_to_euler(self._q)


__all__ = [
    "DEFAULT_SAMPLE_INTERVAL",
    "FilterConfig",
    "MadgwickEstimator",
    "earth_axes",
    "quaternion_to_euler",
]
