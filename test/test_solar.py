import math
import unittest
from datetime import datetime, timedelta, timezone

from common.types import SolarPosition
from heliotrope.solar import TABLE_SIZE, SolarTable, generate_solar_table, sun_position

SOLSTICE_NOON = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)
SOLSTICE_MIDNIGHT = datetime(2024, 6, 21, 0, 0, tzinfo=timezone.utc)


class TestSunPosition(unittest.TestCase):
    def test_northern_midsummer_noon(self):
        azimuth, elevation = sun_position(45.0, 0.0, SOLSTICE_NOON)
        self.assertAlmostEqual(azimuth, 180.0, delta=2.0)
        self.assertAlmostEqual(elevation, 68.4, delta=0.5)

    def test_southern_midwinter_noon_faces_north(self):
        azimuth, elevation = sun_position(-45.0, 0.0, SOLSTICE_NOON)
        self.assertLess(min(azimuth, 360.0 - azimuth), 2.0)
        self.assertAlmostEqual(elevation, 21.6, delta=0.5)

    def test_morning_sun_is_east_of_south(self):
        azimuth, elevation = sun_position(45.0, 0.0, datetime(2024, 6, 21, 7, 0, tzinfo=timezone.utc))
        self.assertGreater(azimuth, 45.0)
        self.assertLess(azimuth, 135.0)
        self.assertGreater(elevation, 0.0)

    def test_midnight_sun_below_horizon(self):
        _azimuth, elevation = sun_position(45.0, 0.0, SOLSTICE_MIDNIGHT)
        self.assertLess(elevation, 0.0)

    def test_naive_datetime_is_utc(self):
        naive = sun_position(10.0, 20.0, datetime(2024, 3, 1, 9, 30))
        aware = sun_position(10.0, 20.0, datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc))
        self.assertEqual(naive, aware)

    def test_timezone_is_converted(self):
        local = datetime(2024, 6, 21, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(sun_position(45.0, 0.0, local), sun_position(45.0, 0.0, SOLSTICE_NOON))


class TestSolarTable(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.table = generate_solar_table(45.0, 0.0, SOLSTICE_MIDNIGHT)

    def test_shape(self):
        self.assertEqual(len(self.table), TABLE_SIZE)
        for entry in self.table:
            if entry is not None:
                self.assertIsInstance(entry, SolarPosition)
                self.assertIsInstance(entry.elevation, int)
                self.assertIsNotNone(entry.time.tzinfo)

    def test_mid_latitude_covers_almost_every_bearing(self):
        self.assertGreater(self.table.coverage(), 350)

    def test_noon_bucket(self):
        entry = self.table[179]
        self.assertIsNotNone(entry)
        self.assertGreaterEqual(entry.time, datetime(2024, 6, 21, 11, 0, tzinfo=timezone.utc))
        self.assertLessEqual(entry.time, datetime(2024, 6, 21, 13, 0, tzinfo=timezone.utc))
        self.assertAlmostEqual(entry.elevation, 68, delta=1)

    def test_entries_sampled_within_the_day(self):
        end = SOLSTICE_MIDNIGHT + timedelta(days=1)
        for entry in self.table:
            if entry is not None:
                self.assertGreaterEqual(entry.time, SOLSTICE_MIDNIGHT)
                self.assertLess(entry.time, end)
                self.assertEqual(entry.time.second, 0)

    def test_lookup_floors_heading(self):
        self.assertEqual(self.table.lookup(180.7), self.table[180])
        self.assertEqual(self.table.lookup(-0.5), self.table[359])
        self.assertEqual(self.table.lookup(360.2), self.table[0])

    def test_lookup_non_finite_heading(self):
        self.assertIsNone(self.table.lookup(float("nan")))
        self.assertIsNone(self.table.lookup(float("inf")))

    def test_unset_bucket_returns_none(self):
        table = SolarTable([None] * TABLE_SIZE)
        self.assertIsNone(table.lookup(42.0))
        self.assertEqual(table.coverage(), 0)

    def test_fast_sun_near_zenith_leaves_gaps(self):
        table = generate_solar_table(20.0, 0.0, SOLSTICE_MIDNIGHT)
        self.assertLess(table.coverage(), TABLE_SIZE)

    def test_generate_classmethod(self):
        self.assertEqual(SolarTable.generate(45.0, 0.0, SOLSTICE_MIDNIGHT), self.table)

    def test_rejects_bad_latitude(self):
        with self.assertRaises(ValueError):
            generate_solar_table(95.0, 0.0, SOLSTICE_MIDNIGHT)

    def test_rejects_non_finite_longitude(self):
        for longitude in (float("nan"), float("inf"), float("-inf")):
            with self.subTest(longitude=longitude):
                with self.assertRaisesRegex(ValueError, "longitude"):
                    generate_solar_table(10.0, longitude, SOLSTICE_MIDNIGHT)

    def test_rejects_wrong_size(self):
        with self.assertRaises(ValueError):
            SolarTable([None] * 10)

    def test_default_start_is_now(self):
        before = datetime.now(timezone.utc)
        table = generate_solar_table(45.0, 0.0)
        times = [entry.time for entry in table if entry is not None]
        self.assertTrue(times)
        self.assertGreaterEqual(min(times), before - timedelta(seconds=1))
        self.assertTrue(all(math.isfinite(entry.elevation) for entry in table if entry is not None))


if __name__ == '__main__':
    unittest.main()
