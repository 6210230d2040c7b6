import math
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from heliotrope.angles import heading_difference
from heliotrope.estimate import FilterConfig
from heliotrope.settings import MAX_GAIN, GainStore
from heliotrope.tracker import SunTracker
from target.simulator import SimDevice

START = datetime(2024, 6, 21, 0, 0, tzinfo=timezone.utc)


class TestSunTracker(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = GainStore(Path(self._tmp.name) / "settings.json")

    def tearDown(self):
        self._tmp.cleanup()

    def feed(self, tracker, device, steps):
        for _ in range(steps):
            gyro, accel, mag = device.step()
            tracker.on_gyroscope(gyro)
            tracker.on_accelerometer(accel)
            tracker.on_magnetometer(mag)

    def test_loads_persisted_gain(self):
        self.store.save(0.2)
        tracker = SunTracker(store=self.store)
        self.assertEqual(tracker.pipeline.gain, 0.2)

    def test_default_gain_without_settings(self):
        tracker = SunTracker(store=self.store)
        self.assertEqual(tracker.pipeline.gain, FilterConfig().gain)

    def test_set_gain_clamps_persists_and_applies(self):
        tracker = SunTracker(store=self.store)
        self.assertEqual(tracker.set_gain(0.5), MAX_GAIN)
        self.assertEqual(tracker.pipeline.gain, MAX_GAIN)
        self.assertEqual(self.store.load(), MAX_GAIN)

    def test_set_gain_ignores_non_finite(self):
        tracker = SunTracker(store=self.store)
        with self.assertLogs("heliotrope.settings", level="WARNING"):
            self.assertIsNone(tracker.set_gain(float("nan")))
        self.assertEqual(tracker.pipeline.gain, 0.1)

    def test_set_location_rebuilds_only_on_change(self):
        tracker = SunTracker(store=self.store)
        self.assertIsNone(tracker.solar_table)
        first = tracker.set_location(45.0, 0.0, START)
        self.assertIs(tracker.set_location(45.0, 0.0, START), first)
        moved = tracker.set_location(46.0, 0.0, START)
        self.assertIsNot(moved, first)
        self.assertIs(tracker.solar_table, moved)
        self.assertEqual(tracker.location.as_tuple(), (46.0, 0.0))

    def test_solar_position_requires_table_and_orientation(self):
        device = SimDevice(heading=180.0, turn_rate=0.0, pitch_amplitude=0.0, seed=0)
        tracker = SunTracker(store=self.store, sample_interval=device.dt / 3.0)
        self.assertIsNone(tracker.solar_position())

        self.feed(tracker, device, 10)
        self.assertIsNone(tracker.solar_position())

        table = tracker.set_location(45.0, 0.0, START)
        position = tracker.solar_position()
        self.assertIsNotNone(position)
        self.assertEqual(position, table.lookup(tracker.orientation.heading))

    def test_tracks_simulated_device(self):
        device = SimDevice(heading=120.0, turn_rate=0.0, pitch_amplitude=0.0, seed=1)
        tracker = SunTracker(store=self.store, sample_interval=device.dt / 3.0)
        self.feed(tracker, device, 200)
        orientation = tracker.orientation
        self.assertLess(abs(heading_difference(orientation.heading, 120.0)), 3.0)
        self.assertLess(abs(orientation.pitch), 3.0)
        self.assertTrue(math.isfinite(orientation.roll))


if __name__ == '__main__':
    unittest.main()
