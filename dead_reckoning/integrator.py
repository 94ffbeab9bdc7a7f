"""
Double integration of conditioned acceleration with drift countermeasures.

Integrating noisy, biased acceleration twice makes position error grow with
the square of elapsed time. Bias removal and conditioning happen upstream;
this stage adds the remaining two countermeasures:

- continuous velocity damping on every accepted sample
- zero-velocity update (ZUPT) snapping when the device looks motionless

None of them removes drift on its own; together they keep it bounded over a
session of a few minutes.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import DEFAULT_TRACKER_CONFIG, ZuptParams
from .math_utils import vector_norm

logger = logging.getLogger(__name__)


class Integrator:
    def __init__(self, params: ZuptParams = DEFAULT_TRACKER_CONFIG.zupt):
        self.params = params
        self.velocity = np.zeros(3)
        self.position = np.zeros(3)
        self.zupt_count = 0

    def reset(self):
        self.velocity = np.zeros(3)
        self.position = np.zeros(3)
        self.zupt_count = 0

    def accepts_dt(self, dt: float) -> bool:
        return 0.0 < dt <= self.params.max_dt_s

    def should_zero_velocity(self, filtered_magnitude: float, is_still: bool) -> bool:
        if is_still:
            return True
        return (
            vector_norm(self.velocity) < self.params.velocity_threshold
            and filtered_magnitude < self.params.accel_threshold
        )

    def step(
        self,
        accel: np.ndarray,
        filtered_magnitude: float,
        is_still: bool,
        dt: float,
    ) -> bool:
        """
        Advance velocity and position by one sample.

        Args:
            accel: Conditioned world-frame acceleration [3] (m/s²)
            filtered_magnitude: |low-passed acceleration| used by the ZUPT test
            is_still: Stillness detector verdict for this sample
            dt: Sample period (s), already validated with accepts_dt

        Returns:
            True when ZUPT snapped velocity to zero.
        """
        # Euler integration, then decay
        self.velocity = (self.velocity + np.asarray(accel, dtype=float) * dt) * self.params.velocity_damping

        zupt_applied = self.should_zero_velocity(filtered_magnitude, is_still)
        if zupt_applied:
            self.velocity = np.zeros(3)
            self.zupt_count += 1

        self.position = self.position + self.velocity * dt
        return zupt_applied
