"""
Top-level facade tying the orientation pipeline, the persisted gain and the
solar table together for one observer location.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from common.interface import HeadingReference
from common.logger import get_logger
from common.realtime import monotonic_time
from common.types import Location, Orientation, SolarPosition
from heliotrope.calibration import CalibrationController
from heliotrope.estimate import DEFAULT_SAMPLE_INTERVAL, FilterConfig, MadgwickEstimator
from heliotrope.pipeline import OrientationPipeline
from heliotrope.settings import GainStore
from heliotrope.solar import SolarTable, generate_solar_table

logger = get_logger("tracker")


class SunTracker:
    """Where is the device pointing, and where along that bearing is the sun?"""

    def __init__(
        self,
        reference: Optional[HeadingReference] = None,
        store: Optional[GainStore] = None,
        declination: float = 0.0,
        sample_interval: float = DEFAULT_SAMPLE_INTERVAL,
        clock: Callable[[], float] = monotonic_time,
        calibration: Optional[CalibrationController] = None,
        on_orientation: Callable[[Orientation], None] | None = None,
    ):
        self.store = store or GainStore()
        gain = self.store.load()
        logger.info(f"Using filter gain {gain:.2f} from {self.store.path}")
        self.pipeline = OrientationPipeline(
            estimator=MadgwickEstimator(FilterConfig(gain=gain, sample_interval=sample_interval)),
            reference=reference,
            calibration=calibration,
            declination=declination,
            clock=clock,
            on_orientation=on_orientation,
        )
        self._location: Optional[Location] = None
        self._table: Optional[SolarTable] = None

    # Sensor entry points forward straight to the pipeline
    def on_gyroscope(self, reading):
        return self.pipeline.on_gyroscope(reading)

    def on_accelerometer(self, reading):
        return self.pipeline.on_accelerometer(reading)

    def on_magnetometer(self, reading):
        return self.pipeline.on_magnetometer(reading)

    @property
    def orientation(self) -> Optional[Orientation]:
        return self.pipeline.orientation

    @property
    def location(self) -> Optional[Location]:
        return self._location

    @property
    def solar_table(self) -> Optional[SolarTable]:
        return self._table

    def set_location(self, latitude: float, longitude: float, start: Optional[datetime] = None) -> SolarTable:
        """Set the observer position; the table is only rebuilt when it moves."""
        location = Location(float(latitude), float(longitude))
        if self._table is not None and location == self._location:
            return self._table
        self._table = generate_solar_table(location.latitude, location.longitude, start)
        self._location = location
        logger.info(
            f"Solar table built for {location.latitude:.4f}, {location.longitude:.4f} "
            f"({self._table.coverage()}/360 bearings)"
        )
        return self._table

    def solar_position(self) -> Optional[SolarPosition]:
        """Table entry for the current heading, if both are known."""
        orientation = self.pipeline.orientation
        if orientation is None or self._table is None:
            return None
        return self._table.lookup(orientation.heading)

    def set_gain(self, gain: float) -> Optional[float]:
        """Persist a new gain (clamped into range) and restart the filter with it."""
        stored = self.store.save(gain)
        if stored is None:
            return None
        self.pipeline.set_gain(stored)
        return stored


__all__ = ["SunTracker"]
