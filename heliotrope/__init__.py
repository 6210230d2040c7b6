"""
Heliotrope: device orientation fusion, compass calibration and sun lookup.
"""

from heliotrope.angles import (
    apply_declination,
    clamp_pitch,
    compass_point,
    convert_euler_to_orientation,
    heading_difference,
    normalize_heading,
    smooth_orientation,
    smooth_value,
)
from heliotrope.calibration import CalibrationController
from heliotrope.estimate import FilterConfig, MadgwickEstimator
from heliotrope.filters import ComplementaryEstimator
from heliotrope.pipeline import OrientationPipeline, PipelineState
from heliotrope.settings import GainStore
from heliotrope.solar import SolarTable, generate_solar_table
from heliotrope.tracker import SunTracker

__all__ = [
    "CalibrationController",
    "ComplementaryEstimator",
    "FilterConfig",
    "GainStore",
    "MadgwickEstimator",
    "OrientationPipeline",
    "PipelineState",
    "SolarTable",
    "SunTracker",
    "apply_declination",
    "clamp_pitch",
    "compass_point",
    "convert_euler_to_orientation",
    "generate_solar_table",
    "heading_difference",
    "normalize_heading",
    "smooth_orientation",
    "smooth_value",
]
