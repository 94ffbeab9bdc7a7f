from __future__ import annotations

import numpy as np

from .config import DEFAULT_TRACKER_CONFIG, ConditioningParams


class SignalConditioner:
    """Exponential low-pass followed by a per-axis dead zone."""

    def __init__(self, params: ConditioningParams = DEFAULT_TRACKER_CONFIG.conditioning):
        self.params = params
        self.filtered = np.zeros(3)
        self._floor = np.array([params.deadzone_xy, params.deadzone_xy, params.deadzone_z])

    def reset(self):
        self.filtered = np.zeros(3)

    def low_pass(self, corrected: np.ndarray) -> np.ndarray:
        alpha = self.params.low_pass_alpha
        self.filtered = alpha * np.asarray(corrected, dtype=float) + (1.0 - alpha) * self.filtered
        return self.filtered.copy()

    def dead_zone(self, accel: np.ndarray) -> np.ndarray:
        """Axes at or below their noise floor become exactly zero."""
        accel = np.asarray(accel, dtype=float)
        return np.where(np.abs(accel) > self._floor, accel, 0.0)

    def condition(self, corrected: np.ndarray) -> np.ndarray:
        """
        Args:
            corrected: bias-corrected world-frame acceleration [3] (m/s²)

        Returns:
            Acceleration to integrate [3] (m/s²). The smoothed, pre-dead-zone
            value stays available as ``filtered``.
        """
        return self.dead_zone(self.low_pass(corrected))
