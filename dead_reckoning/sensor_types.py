from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


def _as_float(value: Optional[float]) -> float:
    """Missing or NaN sensor readings count as zero."""
    if value is None:
        return 0.0
    value = float(value)
    return 0.0 if math.isnan(value) else value


class EstimatorMode(Enum):
    CALIBRATING = "calibrating"
    ACTIVE = "active"

    def __str__(self) -> str:
        return self.value


class StepOutcome(Enum):
    """What a single motion sample did to the estimator."""
    FIRST_SAMPLE = "first_sample"
    DROPPED = "dropped"
    CALIBRATING = "calibrating"
    CALIBRATED = "calibrated"
    INTEGRATED = "integrated"
    ZUPT = "zupt"

    def __str__(self) -> str:
        return self.value

    @property
    def moved(self) -> bool:
        return self in (StepOutcome.INTEGRATED, StepOutcome.ZUPT)


@dataclass(frozen=True)
class OrientationAngles:
    """Device attitude in radians (alpha = heading, beta = front-back, gamma = left-right)"""
    alpha: float = 0.0
    beta: float = 0.0
    gamma: float = 0.0

    @classmethod
    def from_degrees(
        cls,
        alpha: Optional[float],
        beta: Optional[float],
        gamma: Optional[float],
    ) -> "OrientationAngles":
        return cls(
            alpha=math.radians(_as_float(alpha)),
            beta=math.radians(_as_float(beta)),
            gamma=math.radians(_as_float(gamma)),
        )


@dataclass(frozen=True)
class MotionSample:
    """Accelerometer reading including gravity, device frame (m/s²)"""
    ax: Optional[float]
    ay: Optional[float]
    az: Optional[float]
    timestamp_ms: float

    def as_vector(self) -> np.ndarray:
        return np.array([_as_float(self.ax), _as_float(self.ay), _as_float(self.az)])


@dataclass(frozen=True)
class TrailPoint:
    x: float
    y: float
    timestamp_ms: float


@dataclass(frozen=True)
class HeightPoint:
    timestamp_ms: float
    z: float
