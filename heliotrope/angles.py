"""
Angle helpers for compass headings and device tilt, all in degrees.

Headings are cyclic in [0, 360); pitch is a bounded, non-cyclic angle in
[-90, 90]; roll is passed through untouched.
"""

from __future__ import annotations

import math

from common.types import EulerAngles, Orientation

__all__ = [
    "COMPASS_POINTS",
    "apply_declination",
    "clamp_pitch",
    "compass_point",
    "convert_euler_to_orientation",
    "heading_difference",
    "normalize_heading",
    "smooth_orientation",
    "smooth_value",
]

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def normalize_heading(heading: float) -> float:
    """Reduce a heading into [0, 360)."""
    heading = heading % 360.0
    # Tiny negative inputs round up to exactly 360.0
    if heading >= 360.0:
        heading -= 360.0
    # Adding 0.0 turns -0.0 into 0.0
    return heading + 0.0


def heading_difference(heading1: float, heading2: float) -> float:
    """Shortest signed rotation from ``heading1`` to ``heading2``, in (-180, 180]."""
    diff = (heading2 - heading1) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff + 0.0


def clamp_pitch(pitch: float) -> float:
    return max(-90.0, min(90.0, pitch))


def smooth_value(prior: float, next_value: float, smoothing: float = 0.2) -> float:
    """Exponentially smooth an angle, taking the short way around the circle.

    ``smoothing`` is the weight kept from ``prior``: 0 returns ``next_value``
    and 1 returns ``prior``. The result is not normalized; headings must be
    passed through :func:`normalize_heading` afterwards.
    """
    if next_value > prior + 180.0:
        next_value -= 360.0
    if next_value < prior - 180.0:
        next_value += 360.0
    return prior * smoothing + next_value * (1.0 - smoothing)


def smooth_orientation(prior: Orientation, next_value: Orientation, smoothing: float = 0.2) -> Orientation:
    # Roll is smoothed like the other axes but never wrapped or clamped.
    return Orientation(
        heading=normalize_heading(smooth_value(prior.heading, next_value.heading, smoothing)),
        pitch=clamp_pitch(smooth_value(prior.pitch, next_value.pitch, smoothing)),
        roll=smooth_value(prior.roll, next_value.roll, smoothing),
    )


def apply_declination(magnetic_heading: float, declination: float) -> float:
    """Convert a magnetic heading to a true heading (declination positive east)."""
    return normalize_heading(magnetic_heading + declination)


def convert_euler_to_orientation(
    euler: EulerAngles,
    heading_offset: float = 0.0,
    invert_pitch: bool = False,
) -> Orientation:
    """Map estimator angles (degrees) onto an :class:`Orientation`.

    Args:
        euler: Heading, pitch and roll in degrees.
        heading_offset: Degrees added to the heading before normalization.
        invert_pitch: Negate pitch for devices whose axis points the other way.
    """
    pitch = -euler.pitch if invert_pitch else euler.pitch
    return Orientation(
        heading=normalize_heading(euler.heading + heading_offset),
        pitch=clamp_pitch(pitch),
        roll=euler.roll,
    )


def compass_point(heading: float) -> str:
    """Return the 16-wind abbreviation for a heading, e.g. ``"NNE"``."""
    heading = normalize_heading(heading)
    sector = 360.0 / len(COMPASS_POINTS)
    index = int(math.floor(heading / sector)) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]
