"""
Simulated handheld device: synthetic gyro/accel/mag streams and a noisy
platform compass, driven by a scripted sweep of heading and pitch.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from common.interface import HeadingReference, Sensor
from common.math import Quaternion, Vector3D
from common.types import SensorReading

# Earth field in the north-west-up frame: 50 µT total with a 60° dip
FIELD_STRENGTH = 50.0
FIELD_DIP = math.radians(60.0)


def attitude_quaternion(heading_deg: float, pitch_deg: float, roll_deg: float = 0.0) -> Quaternion:
    """Sensor-to-earth rotation for a compass heading and nose-up pitch in degrees."""
    return Quaternion.from_euler(math.radians(roll_deg), -math.radians(pitch_deg), -math.radians(heading_deg))


class SimDevice:
    """Device that turns at a constant rate while nodding its nose up and down."""

    def __init__(
        self,
        dt: float = 0.02,
        heading: float = 0.0,
        turn_rate: float = 6.0,
        pitch_amplitude: float = 10.0,
        pitch_period: float = 20.0,
        gyro_noise: float = 0.002,
        accel_noise: float = 0.005,
        mag_noise: float = 0.3,
        seed: Optional[int] = None,
    ):
        if dt <= 0.0:
            raise ValueError("dt must be positive")
        self.dt = dt
        self.heading0 = heading
        self.turn_rate = turn_rate
        self.pitch_amplitude = pitch_amplitude
        self.pitch_period = pitch_period
        self.gyro_noise = gyro_noise
        self.accel_noise = accel_noise
        self.mag_noise = mag_noise
        self._rng = np.random.default_rng(seed)
        self.time = 0.0
        self._earth_field = Vector3D(FIELD_STRENGTH * math.cos(FIELD_DIP), 0.0, -FIELD_STRENGTH * math.sin(FIELD_DIP))

    def true_attitude(self, t: Optional[float] = None) -> Tuple[float, float]:
        """(heading, pitch) in degrees at time ``t`` (defaults to now)."""
        t = self.time if t is None else t
        heading = (self.heading0 + self.turn_rate * t) % 360.0
        pitch = 0.0
        if self.pitch_period > 0.0:
            pitch = self.pitch_amplitude * math.sin(2.0 * math.pi * t / self.pitch_period)
        return heading, pitch

    def _quaternion(self, t: float) -> Quaternion:
        return attitude_quaternion(*self.true_attitude(t))

    def step(self) -> Tuple[SensorReading, SensorReading, SensorReading]:
        """Advance one period and return (gyro, accel, mag) readings."""
        q_prev = self._quaternion(self.time)
        self.time += self.dt
        q = self._quaternion(self.time)

        # Body rate from the incremental rotation between samples
        delta = q_prev.conjugate() * q
        if delta.q[0] < 0.0:
            delta = delta * -1.0
        omega = 2.0 * delta.q[1:] / self.dt

        to_body = q.conjugate()
        accel = to_body.rotate(Vector3D(0.0, 0.0, 1.0)).v
        mag = to_body.rotate(self._earth_field).v

        omega = omega + self._rng.normal(0.0, self.gyro_noise, 3)
        accel = accel + self._rng.normal(0.0, self.accel_noise, 3)
        mag = mag + self._rng.normal(0.0, self.mag_noise, 3)
        return SensorReading(*omega), SensorReading(*accel), SensorReading(*mag)


class SimCompass(HeadingReference):
    """Platform compass reading the simulated device's true heading."""

    def __init__(self, device: SimDevice, noise: float = 1.0, bias: float = 0.0, seed: Optional[int] = None):
        self._device = device
        self.noise = noise
        self.bias = bias
        self._rng = np.random.default_rng(seed)

    def read(self) -> Optional[float]:
        heading, _pitch = self._device.true_attitude()
        return (heading + self.bias + float(self._rng.normal(0.0, self.noise))) % 360.0


class SimSensor(Sensor):
    """Single-stream view over a SimDevice, the way a platform sensor API hands out readings."""

    def __init__(self, device: SimDevice):
        self._device = device

    def read(self) -> Tuple[SensorReading, SensorReading, SensorReading]:
        return self._device.step()


__all__ = ["SimCompass", "SimDevice", "SimSensor", "attitude_quaternion"]
