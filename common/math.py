"""
Vector and quaternion primitives shared by the estimators and the simulator.
Quaternions are stored scalar-first (w, x, y, z).
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def wrap_angle(angle: float) -> float:
    """Wrap an angle in radians into [-pi, pi)."""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi


class Vector3D:
    """Thin wrapper around a length-3 numpy array."""

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self.v = np.array([x, y, z], dtype=float)

    def __add__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(*(self.v + other.v))

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(*(self.v - other.v))

    def __mul__(self, scalar: float) -> "Vector3D":
        return Vector3D(*(self.v * scalar))

    def cross(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(*np.cross(self.v, other.v))

    def norm(self) -> float:
        return float(np.linalg.norm(self.v))

    def normalized(self) -> "Vector3D":
        # Zero vectors become NaN; callers decide whether that is fatal.
        with np.errstate(invalid="ignore", divide="ignore"):
            return Vector3D(*(self.v / np.linalg.norm(self.v)))

    def __repr__(self) -> str:
        return f"Vector3D({self.v[0]:.6g}, {self.v[1]:.6g}, {self.v[2]:.6g})"


class Quaternion:
    """Unit quaternion (w, x, y, z) describing a rotation."""

    def __init__(self, w: float = 1.0, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self.q = np.array([w, x, y, z], dtype=float)

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> "Quaternion":
        """Build from extrinsic x-y-z (roll, pitch, yaw) angles in radians."""
        cr, sr = math.cos(roll * 0.5), math.sin(roll * 0.5)
        cp, sp = math.cos(pitch * 0.5), math.sin(pitch * 0.5)
        cy, sy = math.cos(yaw * 0.5), math.sin(yaw * 0.5)
        return cls(
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        )

    @classmethod
    def from_axis_angle(cls, axis: Sequence[float], angle: float) -> "Quaternion":
        axis = np.asarray(axis, dtype=float)
        axis = axis / np.linalg.norm(axis)
        half = 0.5 * angle
        s = math.sin(half)
        return cls(math.cos(half), axis[0] * s, axis[1] * s, axis[2] * s)

    @classmethod
    def from_rotation_matrix(cls, m: np.ndarray) -> "Quaternion":
        """Convert a 3x3 rotation matrix using Shepperd's method."""
        m = np.asarray(m, dtype=float)
        trace = m[0, 0] + m[1, 1] + m[2, 2]
        if trace > 0.0:
            s = 2.0 * math.sqrt(trace + 1.0)
            quat = cls(
                0.25 * s,
                (m[2, 1] - m[1, 2]) / s,
                (m[0, 2] - m[2, 0]) / s,
                (m[1, 0] - m[0, 1]) / s,
            )
        elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
            s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
            quat = cls(
                (m[2, 1] - m[1, 2]) / s,
                0.25 * s,
                (m[0, 1] + m[1, 0]) / s,
                (m[0, 2] + m[2, 0]) / s,
            )
        elif m[1, 1] > m[2, 2]:
            s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
            quat = cls(
                (m[0, 2] - m[2, 0]) / s,
                (m[0, 1] + m[1, 0]) / s,
                0.25 * s,
                (m[1, 2] + m[2, 1]) / s,
            )
        else:
            arg = 1.0 + m[2, 2] - m[0, 0] - m[1, 1]
            # NaN input lands here; keep it flowing instead of raising from sqrt.
            s = 2.0 * math.sqrt(arg) if arg >= 0.0 else float("nan")
            quat = cls(
                (m[1, 0] - m[0, 1]) / s,
                (m[0, 2] + m[2, 0]) / s,
                (m[1, 2] + m[2, 1]) / s,
                0.25 * s,
            )
        quat.normalize()
        return quat

    def __mul__(self, other):
        if isinstance(other, Quaternion):
            w1, x1, y1, z1 = self.q
            w2, x2, y2, z2 = other.q
            return Quaternion(
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            )
        return Quaternion(*(self.q * float(other)))

    def conjugate(self) -> "Quaternion":
        w, x, y, z = self.q
        return Quaternion(w, -x, -y, -z)

    def normalize(self) -> None:
        with np.errstate(invalid="ignore", divide="ignore"):
            self.q = self.q / np.linalg.norm(self.q)

    def rotate(self, vector: Vector3D) -> Vector3D:
        """Rotate a vector from the body frame into the reference frame."""
        p = Quaternion(0.0, *vector.v)
        rotated = self * p * self.conjugate()
        return Vector3D(*rotated.q[1:])

    def as_rotation_matrix(self) -> np.ndarray:
        w, x, y, z = self.q
        return np.array(
            [
                [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
                [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
                [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
            ]
        )

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.q)))

    def __repr__(self) -> str:
        w, x, y, z = self.q
        return f"Quaternion({w:.6g}, {x:.6g}, {y:.6g}, {z:.6g})"


__all__ = ["Quaternion", "Vector3D", "wrap_angle"]
