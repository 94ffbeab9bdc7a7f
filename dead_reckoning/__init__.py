"""
Inertial dead-reckoning package for phone orientation and motion streams.

Modules:
    - config: tunable parameters grouped by pipeline stage, YAML loading.
    - sensor_types: orientation, motion sample and history point records.
    - math_utils: device-to-world (ZXY) rotation helpers.
    - calibration: static accelerometer bias estimation.
    - conditioning: low-pass filter and per-axis dead zone.
    - stillness: variance-based stillness detection.
    - integrator: velocity/position integration with damping and ZUPT.
    - history: bounded trail and height buffers for display.
    - estimator: PositionEstimator tying the stages together.
    - data_loading: read exported CSV/JSON recordings.
    - plotting: radar and height plots.
    - replay: CLI entry point replaying recordings offline.
"""

from .config import DEFAULT_TRACKER_CONFIG, TrackerConfig, load_config
from .estimator import EstimatorSnapshot, EstimatorState, PositionEstimator
from .sensor_types import EstimatorMode, MotionSample, OrientationAngles, StepOutcome

__all__ = [
    "DEFAULT_TRACKER_CONFIG",
    "TrackerConfig",
    "load_config",
    "PositionEstimator",
    "EstimatorState",
    "EstimatorSnapshot",
    "EstimatorMode",
    "MotionSample",
    "OrientationAngles",
    "StepOutcome",
]
