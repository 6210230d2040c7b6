"""
Plot filter heading/pitch against the simulated truth while the device sweeps.

Needs the ``plot`` extra (matplotlib).
"""
from collections import deque

import matplotlib.pyplot as plt

from common.realtime import RateKeeper
from heliotrope.estimate import FilterConfig, MadgwickEstimator
from heliotrope.pipeline import OrientationPipeline
from target.simulator import SimCompass, SimDevice

RATE_HZ = 50.0


class LivePlot:
    def __init__(self, window=500):
        self.heading = deque([0.0] * window, maxlen=window)
        self.heading_true = deque([0.0] * window, maxlen=window)
        self.pitch = deque([0.0] * window, maxlen=window)
        self.pitch_true = deque([0.0] * window, maxlen=window)

        plt.ion()
        self.fig, (self.ax_heading, self.ax_pitch) = plt.subplots(2, 1, sharex=True)

        self.ax_heading.set_ylabel("Heading (°)")
        self.ax_heading.set_ylim(0, 360)
        self.ax_heading.grid(True, linestyle=":")
        self.line_heading, = self.ax_heading.plot(self.heading, label="filter")
        self.line_heading_true, = self.ax_heading.plot(self.heading_true, label="true", linestyle="--")
        self.ax_heading.legend(loc="upper right")

        self.ax_pitch.set_ylabel("Pitch (°)")
        self.ax_pitch.set_xlabel("Samples")
        self.ax_pitch.grid(True, linestyle=":")
        self.line_pitch, = self.ax_pitch.plot(self.pitch, label="filter")
        self.line_pitch_true, = self.ax_pitch.plot(self.pitch_true, label="true", linestyle="--")
        self.ax_pitch.legend(loc="upper right")

    def update(self, heading, pitch, heading_true, pitch_true):
        self.heading.append(heading); self.heading_true.append(heading_true)
        self.pitch.append(pitch); self.pitch_true.append(pitch_true)

        self.line_heading.set_ydata(self.heading)
        self.line_heading_true.set_ydata(self.heading_true)
        self.line_pitch.set_ydata(self.pitch)
        self.line_pitch_true.set_ydata(self.pitch_true)

        self.ax_pitch.relim(); self.ax_pitch.autoscale_view()

        plt.pause(0.001)


def main():
    device = SimDevice(dt=1.0 / RATE_HZ, turn_rate=15.0, pitch_amplitude=20.0, seed=0)
    estimator = MadgwickEstimator(FilterConfig(sample_interval=device.dt / 3.0))
    pipeline = OrientationPipeline(estimator=estimator, reference=SimCompass(device, seed=1))
    plot = LivePlot()
    rk = RateKeeper(rate_hz=RATE_HZ)
    try:
        while True:
            gyro, accel, mag = device.step()
            pipeline.on_gyroscope(gyro)
            pipeline.on_accelerometer(accel)
            orientation = pipeline.on_magnetometer(mag)
            if orientation is not None and rk.frame % 5 == 0:
                plot.update(orientation.heading, orientation.pitch, *device.true_attitude())
            rk.keep_time()
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
