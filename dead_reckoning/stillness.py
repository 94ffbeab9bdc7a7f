from __future__ import annotations

from collections import deque
from typing import Deque

import numpy as np

from .config import DEFAULT_TRACKER_CONFIG, StillnessParams


class StillnessDetector:
    """
    Sliding-window stillness test over filtered acceleration magnitudes.

    The device counts as still only once the window is full, its population
    variance is below ``variance_threshold`` and its mean is below
    ``mean_threshold``.
    """

    def __init__(self, params: StillnessParams = DEFAULT_TRACKER_CONFIG.stillness):
        self.params = params
        self.window: Deque[float] = deque(maxlen=params.window_size)

    def reset(self):
        self.window.clear()

    def push(self, accel_magnitude: float):
        self.window.append(float(accel_magnitude))

    def is_still(self) -> bool:
        if len(self.window) < self.params.window_size:
            return False
        values = np.fromiter(self.window, dtype=float)
        mean = values.mean()
        variance = np.mean((values - mean) ** 2)
        return bool(variance < self.params.variance_threshold and mean < self.params.mean_threshold)

    def update(self, accel_magnitude: float) -> bool:
        self.push(accel_magnitude)
        return self.is_still()
