from dataclasses import replace

import matplotlib

matplotlib.use("Agg")

import pytest

from dead_reckoning.config import DEFAULT_TRACKER_CONFIG
from dead_reckoning.estimator import PositionEstimator
from dead_reckoning.sensor_types import MotionSample

GRAVITY = 9.81


def build_config(conditioning=None, stillness=None, zupt=None, history=None, calibration=None):
    base = DEFAULT_TRACKER_CONFIG
    return replace(
        base,
        calibration=replace(base.calibration, **(calibration or {})),
        conditioning=replace(base.conditioning, **(conditioning or {})),
        stillness=replace(base.stillness, **(stillness or {})),
        zupt=replace(base.zupt, **(zupt or {})),
        history=replace(base.history, **(history or {})),
    )


class SampleFeeder:
    """Feeds device-frame samples at a fixed period, tracking the clock."""

    def __init__(self, estimator, period_ms=20.0, start_ms=1000.0):
        self.estimator = estimator
        self.period_ms = period_ms
        self.now_ms = start_ms

    def feed(self, ax=0.0, ay=0.0, az=GRAVITY, count=1):
        outcomes = []
        for _ in range(count):
            outcomes.append(self.estimator.ingest_motion(MotionSample(ax, ay, az, self.now_ms)))
            self.now_ms += self.period_ms
        return outcomes

    def calibrate_flat(self):
        """Prime the clock, then run a full calibration window with the device flat."""
        self.feed()
        return self.feed(count=self.estimator.config.calibration.sample_count)


@pytest.fixture
def estimator():
    return PositionEstimator()


@pytest.fixture
def feeder(estimator):
    return SampleFeeder(estimator)
