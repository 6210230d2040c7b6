"""
Fixed-rate loop timing for sensor replay, after openpilot's common.realtime.
"""

from __future__ import annotations

import time

from common.logger import get_logger

logger = get_logger("realtime")


def monotonic_time() -> float:
    """Return monotonic time in seconds."""
    return time.monotonic()


class RateKeeper:
    """
    Pace a loop at ``rate_hz``.

    - tick(): advance one frame and return the slack in seconds (negative when late)
    - keep_time(): tick() and sleep off any remaining slack
    - elapsed(): seconds since the keeper was created
    """

    def __init__(self, rate_hz: float, clock=monotonic_time, lag_threshold: float | None = 0.01):
        if rate_hz <= 0.0:
            raise ValueError("rate_hz must be positive")
        self.period = 1.0 / rate_hz
        self.clock = clock
        self.lag_threshold = lag_threshold
        self.frame = 0
        self.lagged_frames = 0
        self._start = self.clock()
        self._deadline = self._start + self.period

    def tick(self) -> float:
        now = self.clock()
        slack = self._deadline - now
        if self.lag_threshold is not None and slack < -self.lag_threshold:
            self.lagged_frames += 1
            logger.debug(f"Frame {self.frame} late by {-slack * 1000:.2f} ms")
        self._deadline += self.period
        self.frame += 1
        return slack

    def keep_time(self) -> None:
        slack = self.tick()
        if slack > 0.0:
            time.sleep(slack)

    def elapsed(self) -> float:
        return self.clock() - self._start


__all__ = ["RateKeeper", "monotonic_time"]
