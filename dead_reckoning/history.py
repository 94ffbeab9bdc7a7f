from __future__ import annotations

from collections import deque
from typing import Deque, Tuple

from .config import DEFAULT_TRACKER_CONFIG, HistoryParams
from .sensor_types import HeightPoint, TrailPoint


class HistoryBuffers:
    """Bounded XY trail and Z history kept for display only."""

    def __init__(self, params: HistoryParams = DEFAULT_TRACKER_CONFIG.history):
        self.params = params
        self.trail: Deque[TrailPoint] = deque(maxlen=params.trail_capacity)
        self.height: Deque[HeightPoint] = deque(maxlen=params.height_capacity)

    def reset(self):
        self.trail.clear()
        self.height.clear()

    def append_trail(self, x: float, y: float, timestamp_ms: float) -> bool:
        """Append unless the previous trail point is within the throttle interval."""
        if self.trail and (timestamp_ms - self.trail[-1].timestamp_ms) <= self.params.trail_interval_ms:
            return False
        self.trail.append(TrailPoint(x=float(x), y=float(y), timestamp_ms=timestamp_ms))
        return True

    def append_height(self, timestamp_ms: float, z: float):
        self.height.append(HeightPoint(timestamp_ms=timestamp_ms, z=float(z)))

    def record(self, position, timestamp_ms: float):
        self.append_trail(position[0], position[1], timestamp_ms)
        self.append_height(timestamp_ms, position[2])

    def copy_trail(self) -> Tuple[TrailPoint, ...]:
        return tuple(self.trail)

    def copy_height(self) -> Tuple[HeightPoint, ...]:
        return tuple(self.height)
