"""
Periodic alignment of the filter heading with an independent compass.

The attitude filter has no notion of true north beyond the magnetometer it
fuses, so its heading drifts from what the platform compass reports. The
controller samples that reference now and then, turns the disagreement into
a heading offset, and leaves the filter itself untouched.
"""

from __future__ import annotations

import math
import threading
from typing import Callable, Optional

from common.interface import HeadingReference
from common.logger import get_logger
from common.realtime import monotonic_time
from common.types import CalibrationState
from heliotrope.angles import heading_difference, normalize_heading

logger = get_logger("calibration")

CALIBRATION_INTERVAL = 30.0  # seconds between refreshes
LEVEL_PITCH_THRESHOLD = 15.0  # only refresh while |pitch| is below this
FLIP_PITCH_THRESHOLD = 45.0  # reference reads 180° off above this pitch


def _start_thread(target: Callable[..., None], *args) -> threading.Thread:
    thread = threading.Thread(target=target, args=args, name="heliotrope-calibration", daemon=True)
    thread.start()
    return thread


class CalibrationController:
    """Owns the heading offset and decides when to refresh it.

    At most one reference read is in flight at a time. A read that finishes
    after the filter was reset is still applied; only :meth:`reset` (a full
    restart) makes a pending result stale.
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_time,
        interval: float = CALIBRATION_INTERVAL,
        level_threshold: float = LEVEL_PITCH_THRESHOLD,
        flip_threshold: float = FLIP_PITCH_THRESHOLD,
        spawn: Callable[..., Optional[threading.Thread]] = _start_thread,
    ):
        self._clock = clock
        self.interval = float(interval)
        self.level_threshold = float(level_threshold)
        self.flip_threshold = float(flip_threshold)
        self._spawn = spawn
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._epoch = 0
        self._clear()

    def _clear(self) -> None:
        self._offset = 0.0
        self._last_calibration: Optional[float] = None
        self._bootstrap_time: Optional[float] = None
        self._in_progress = False

    # -- State -------------------------------------------------------------

    @property
    def heading_offset(self) -> float:
        with self._lock:
            return self._offset

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return self._in_progress

    @property
    def state(self) -> CalibrationState:
        with self._lock:
            return CalibrationState(
                heading_offset=self._offset,
                last_calibration=self._last_calibration,
                in_progress=self._in_progress,
            )

    def apply(self, heading: float) -> float:
        """Add the current offset to a filter heading."""
        return normalize_heading(heading + self.heading_offset)

    def reset(self) -> None:
        """Forget the offset and bootstrap again; pending reads are discarded."""
        with self._lock:
            self._epoch += 1
            self._clear()

    # -- Scheduling --------------------------------------------------------

    def should_calibrate(self, now: float, pitch_degrees: float) -> bool:
        with self._lock:
            if self._bootstrap_time is None:
                return True
            if self._in_progress:
                return False
            anchor = self._last_calibration if self._last_calibration is not None else self._bootstrap_time
            return (now - anchor) > self.interval and abs(pitch_degrees) < self.level_threshold

    def calibrate(
        self,
        filter_heading: float,
        pitch_degrees: float,
        reference: HeadingReference,
        now: Optional[float] = None,
    ) -> Optional[threading.Thread]:
        """Start one reference read; returns the worker, or None if one is already pending."""
        with self._lock:
            if self._in_progress:
                logger.debug("Calibration already in progress; ignoring trigger")
                return None
            self._in_progress = True
            if self._bootstrap_time is None:
                self._bootstrap_time = self._clock() if now is None else now
            epoch = self._epoch
        self._thread = self._spawn(self._run, filter_heading, pitch_degrees, reference, epoch)
        return self._thread

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the pending reference read (if any) finishes."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return not self.in_progress

    # -- Worker ------------------------------------------------------------

    def _run(self, filter_heading: float, pitch_degrees: float, reference: HeadingReference, epoch: int) -> None:
        offset: Optional[float] = None
        applied = False
        try:
            offset = self._measure(filter_heading, pitch_degrees, reference)
        finally:
            with self._lock:
                if epoch != self._epoch:
                    logger.debug("Discarding calibration result from before restart")
                else:
                    if offset is not None:
                        self._offset = offset
                        self._last_calibration = self._clock()
                        applied = True
                    self._in_progress = False

        if applied:
            logger.info(f"Calibrated heading offset {offset:+.1f}°")

    def _measure(self, filter_heading: float, pitch_degrees: float, reference: HeadingReference) -> Optional[float]:
        try:
            heading = reference.read()
        except Exception as exc:
            logger.warning(f"Heading reference read failed: {exc}")
            return None
        if heading is None or not math.isfinite(heading):
            logger.warning("Heading reference unavailable; keeping previous offset")
            return None
        if pitch_degrees > self.flip_threshold:
            heading = normalize_heading(heading + 180.0)
        return heading_difference(filter_heading, heading)


__all__ = [
    "CALIBRATION_INTERVAL",
    "CalibrationController",
    "FLIP_PITCH_THRESHOLD",
    "LEVEL_PITCH_THRESHOLD",
]
