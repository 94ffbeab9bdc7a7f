from __future__ import annotations

import logging

import numpy as np

from .config import DEFAULT_TRACKER_CONFIG, CalibrationParams

logger = logging.getLogger(__name__)


class BiasCalibrator:
    """
    Static bias estimate from an initial stationary window.

    Averages world-frame, gravity-subtracted acceleration over the first
    ``sample_count`` samples. Whatever remains (sensor DC offset plus residual
    gravity from the orientation transform) becomes the bias removed from every
    later sample.
    """

    def __init__(self, params: CalibrationParams = DEFAULT_TRACKER_CONFIG.calibration):
        self.params = params
        self.accumulator = np.zeros(3)
        self.sample_count = 0
        self.bias = np.zeros(3)
        self.is_complete = False

    def reset(self):
        self.accumulator = np.zeros(3)
        self.sample_count = 0
        self.bias = np.zeros(3)
        self.is_complete = False

    def add_sample(self, accel_world: np.ndarray) -> bool:
        """
        Accumulate one sample.

        Returns:
            True exactly once, on the sample that completes calibration.
        """
        if self.is_complete:
            return False

        self.accumulator = self.accumulator + np.asarray(accel_world, dtype=float)
        self.sample_count += 1

        if self.sample_count >= self.params.sample_count:
            self.bias = self.accumulator / self.sample_count
            self.is_complete = True
            logger.info(
                "Calibration complete after %d samples: bias=[%.4f, %.4f, %.4f] m/s²",
                self.sample_count,
                *self.bias,
            )
            return True
        return False

    def correct(self, accel_world: np.ndarray) -> np.ndarray:
        return np.asarray(accel_world, dtype=float) - self.bias
