from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .calibration import BiasCalibrator
from .conditioning import SignalConditioner
from .config import DEFAULT_TRACKER_CONFIG, TrackerConfig, validate_config
from .history import HistoryBuffers
from .integrator import Integrator
from .math_utils import device_to_world, gravity_vector, vector_norm
from .sensor_types import (
    EstimatorMode,
    HeightPoint,
    MotionSample,
    OrientationAngles,
    StepOutcome,
    TrailPoint,
)
from .stillness import StillnessDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimatorState:
    """Copy of every mutable field of a PositionEstimator."""
    position: np.ndarray
    velocity: np.ndarray
    filtered_accel: np.ndarray
    bias: np.ndarray
    accel_magnitude_window: Tuple[float, ...]
    calibration_accumulator: np.ndarray
    calibration_sample_count: int
    mode: EstimatorMode
    last_timestamp_ms: Optional[float]


@dataclass(frozen=True)
class EstimatorSnapshot:
    """Read-only view handed to renderers."""
    position: np.ndarray
    velocity: np.ndarray
    mode: EstimatorMode
    trail: Tuple[TrailPoint, ...]
    height: Tuple[HeightPoint, ...]


class PositionEstimator:
    """
    Relative 3-D position from orientation and gravity-inclusive acceleration.

    Orientation samples only replace the rotation used for the device-to-world
    transform. Each motion sample runs the full pipeline: world-frame rotation,
    gravity removal, bias calibration or conditioning, stillness detection,
    integration and history recording.

    Ingestion and snapshots are serialized by an internal lock, so a renderer
    may poll ``snapshot()`` from another thread.
    """

    def __init__(self, config: TrackerConfig = DEFAULT_TRACKER_CONFIG):
        self.config = validate_config(config)
        self._lock = threading.Lock()
        self._gravity = gravity_vector(config.calibration.gravity)

        self.orientation = OrientationAngles()
        self.calibrator = BiasCalibrator(config.calibration)
        self.conditioner = SignalConditioner(config.conditioning)
        self.stillness = StillnessDetector(config.stillness)
        self.integrator = Integrator(config.zupt)
        self.history = HistoryBuffers(config.history)

        self.mode = EstimatorMode.CALIBRATING
        self.last_timestamp_ms: Optional[float] = None

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------
    def ingest_orientation(self, alpha_deg, beta_deg, gamma_deg) -> OrientationAngles:
        """Store the latest attitude; angles arrive in degrees."""
        angles = OrientationAngles.from_degrees(alpha_deg, beta_deg, gamma_deg)
        with self._lock:
            self.orientation = angles
        return angles

    def ingest_motion(self, sample: MotionSample) -> StepOutcome:
        with self._lock:
            return self._process_motion(sample)

    def _process_motion(self, sample: MotionSample) -> StepOutcome:
        now = float(sample.timestamp_ms)
        if self.last_timestamp_ms is None:
            self.last_timestamp_ms = now
            return StepOutcome.FIRST_SAMPLE

        dt = (now - self.last_timestamp_ms) / 1000.0
        self.last_timestamp_ms = now
        if not self.integrator.accepts_dt(dt):
            logger.debug("Dropped motion sample at t=%.1f ms: dt=%.4f s", now, dt)
            return StepOutcome.DROPPED

        accel_world = device_to_world(sample.as_vector(), self.orientation) - self._gravity

        if self.mode is EstimatorMode.CALIBRATING:
            if self.calibrator.add_sample(accel_world):
                self.mode = EstimatorMode.ACTIVE
                return StepOutcome.CALIBRATED
            return StepOutcome.CALIBRATING

        corrected = self.calibrator.correct(accel_world)
        effective = self.conditioner.condition(corrected)
        filtered_magnitude = vector_norm(self.conditioner.filtered)
        is_still = self.stillness.update(filtered_magnitude)

        zupt_applied = self.integrator.step(effective, filtered_magnitude, is_still, dt)
        if zupt_applied:
            logger.debug("ZUPT at t=%.1f ms (still=%s)", now, is_still)

        self.history.record(self.integrator.position, now)
        return StepOutcome.ZUPT if zupt_applied else StepOutcome.INTEGRATED

    # ------------------------------------------------------------------
    # Reset / read access
    # ------------------------------------------------------------------
    def reset(self):
        """Return to the initial state and start a new calibration cycle."""
        with self._lock:
            self.calibrator.reset()
            self.conditioner.reset()
            self.stillness.reset()
            self.integrator.reset()
            self.history.reset()
            self.mode = EstimatorMode.CALIBRATING
            self.last_timestamp_ms = None
        logger.info("Position estimator reset; recalibrating")

    @property
    def position(self) -> np.ndarray:
        return self.integrator.position.copy()

    @property
    def velocity(self) -> np.ndarray:
        return self.integrator.velocity.copy()

    @property
    def state(self) -> EstimatorState:
        with self._lock:
            return EstimatorState(
                position=self.integrator.position.copy(),
                velocity=self.integrator.velocity.copy(),
                filtered_accel=self.conditioner.filtered.copy(),
                bias=self.calibrator.bias.copy(),
                accel_magnitude_window=tuple(self.stillness.window),
                calibration_accumulator=self.calibrator.accumulator.copy(),
                calibration_sample_count=self.calibrator.sample_count,
                mode=self.mode,
                last_timestamp_ms=self.last_timestamp_ms,
            )

    def snapshot(self) -> EstimatorSnapshot:
        with self._lock:
            return EstimatorSnapshot(
                position=self.integrator.position.copy(),
                velocity=self.integrator.velocity.copy(),
                mode=self.mode,
                trail=self.history.copy_trail(),
                height=self.history.copy_height(),
            )
