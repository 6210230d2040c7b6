#!/usr/bin/env python3
"""
Entry point: replay the simulated device through the tracker at a fixed rate.
"""
import os

from common.logger import get_logger
from common.realtime import RateKeeper
from heliotrope.angles import compass_point
from heliotrope.settings import GainStore
from heliotrope.tracker import SunTracker
from target.simulator import SimCompass, SimDevice, SimSensor

logger = get_logger("main")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class Tracking:
    """Tracking loop: update() -> publish() -> run()."""

    def __init__(self, rate_hz: float = 50.0, declination: float = 0.0):
        if rate_hz <= 0.0:
            raise ValueError("rate_hz must be positive")
        self.rate_hz = float(rate_hz)
        self.dt = 1.0 / self.rate_hz

        self.device = SimDevice(dt=self.dt)
        self.sensor = SimSensor(self.device)
        self.tracker = SunTracker(
            reference=SimCompass(self.device),
            store=GainStore(),
            declination=declination,
            # Each of the three sensor callbacks advances the filter
            sample_interval=self.dt / 3.0,
        )
        logger.info(f"Simulated device initialized at {self.rate_hz:.0f} Hz")

    def update(self):
        """Deliver one sample from each sensor stream."""
        gyro, accel, mag = self.sensor.read()
        self.tracker.on_gyroscope(gyro)
        self.tracker.on_accelerometer(accel)
        return self.tracker.on_magnetometer(mag)

    def publish(self) -> None:
        orientation = self.tracker.orientation
        if orientation is None:
            logger.info(f"Waiting for sensors ({self.tracker.pipeline.state.value})")
            return
        true_heading, true_pitch = self.device.true_attitude()
        message = (
            f"heading {orientation.heading:6.1f}° {compass_point(orientation.heading):>3} "
            f"pitch {orientation.pitch:+5.1f}° (true {true_heading:6.1f}° / {true_pitch:+5.1f}°)"
        )
        sun = self.tracker.solar_position()
        if sun is not None:
            message += f" sun {sun.elevation:+d}° at {sun.time:%H:%M} UTC"
        logger.info(message)

    def run(self, duration: float = 0.0) -> None:
        logger.info("Starting tracking loop")
        rk = RateKeeper(rate_hz=self.rate_hz)
        frames_per_report = max(1, int(round(self.rate_hz)))
        while duration <= 0.0 or rk.elapsed() < duration:
            self.update()
            if rk.frame % frames_per_report == 0:
                self.publish()
            rk.keep_time()
        pipeline = self.tracker.pipeline
        logger.info(
            f"Stopped after {pipeline.update_count} updates "
            f"({pipeline.reset_count} resets, {pipeline.skipped_count} skipped, {rk.lagged_frames} late frames)"
        )


def main():
    rate_hz = _env_float("HELIOTROPE_RATE_HZ", 50.0)
    duration = _env_float("HELIOTROPE_DURATION", 10.0)
    tracking = Tracking(rate_hz=rate_hz, declination=_env_float("HELIOTROPE_DECLINATION", 0.0))

    latitude = os.environ.get("HELIOTROPE_LATITUDE")
    longitude = os.environ.get("HELIOTROPE_LONGITUDE")
    if latitude and longitude:
        tracking.tracker.set_location(float(latitude), float(longitude))
    else:
        logger.info("HELIOTROPE_LATITUDE/HELIOTROPE_LONGITUDE not set; solar lookup disabled")

    try:
        tracking.run(duration)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
