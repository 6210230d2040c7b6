import math
import unittest

from common.types import SensorReading
from heliotrope.estimate import FilterConfig
from heliotrope.filters import ComplementaryEstimator

DIP = math.radians(60.0)
LEVEL = SensorReading(0.0, 0.0, 1.0)
STILL = SensorReading(0.0, 0.0, 0.0)


def mag_at_heading(heading_deg):
    h = math.radians(heading_deg)
    return SensorReading(math.cos(DIP) * math.cos(h), math.cos(DIP) * math.sin(h), -math.sin(DIP))


class TestComplementaryEstimator(unittest.TestCase):
    def test_first_update_takes_reference_angles(self):
        estimator = ComplementaryEstimator()
        p = math.radians(25.0)
        estimator.update(STILL, SensorReading(math.sin(p), 0.0, math.cos(p)), mag_at_heading(0.0))
        euler = estimator.get_euler_angles().to_degrees()
        self.assertAlmostEqual(euler.pitch, 25.0, places=6)
        self.assertAlmostEqual(euler.roll, 0.0, places=6)

        estimator = ComplementaryEstimator()
        estimator.update(STILL, LEVEL, mag_at_heading(30.0))
        self.assertAlmostEqual(estimator.get_euler_angles().to_degrees().heading, 30.0, places=6)

    def test_gyro_integration_without_correction(self):
        estimator = ComplementaryEstimator(FilterConfig(gain=0.0))
        mag = mag_at_heading(0.0)
        estimator.update(STILL, LEVEL, mag)
        spin = SensorReading(0.0, 0.0, 0.5)
        for _ in range(50):
            estimator.update(spin, LEVEL, mag)
        self.assertAlmostEqual(estimator.get_euler_angles().heading, -0.5, places=9)

    def test_converges_across_north(self):
        estimator = ComplementaryEstimator()
        estimator.update(STILL, LEVEL, mag_at_heading(350.0))
        for _ in range(200):
            estimator.update(STILL, LEVEL, mag_at_heading(20.0))
        heading = math.degrees(estimator.get_euler_angles().heading)
        self.assertAlmostEqual(heading, 20.0, places=3)

    def test_reinitialize_forgets_seed(self):
        estimator = ComplementaryEstimator()
        estimator.update(STILL, LEVEL, mag_at_heading(90.0))
        estimator.reinitialize(0.2, 0.02)
        self.assertEqual(estimator.get_euler_angles().heading, 0.0)
        estimator.update(STILL, LEVEL, mag_at_heading(45.0))
        self.assertAlmostEqual(math.degrees(estimator.get_euler_angles().heading), 45.0, places=6)


if __name__ == '__main__':
    unittest.main()
