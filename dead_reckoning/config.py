from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PACKAGE_ROOT / "data"
RECORDINGS_DIR = DATA_DIR / "recordings"
OUTPUT_DIR = DATA_DIR / "outputs"


@dataclass(frozen=True)
class CalibrationParams:
    """Initial stationary window used to estimate accelerometer bias"""
    sample_count: int = 50  # Samples averaged before integration starts
    gravity: float = 9.81  # Subtracted from world-frame Z


@dataclass(frozen=True)
class ConditioningParams:
    """Low-pass smoothing and per-axis noise floor"""
    low_pass_alpha: float = 0.15  # Lower = smoother, more lag
    deadzone_xy: float = 0.4  # m/s² - horizontal noise floor
    deadzone_z: float = 0.6  # m/s² - higher, carries gravity residual


@dataclass(frozen=True)
class StillnessParams:
    """Variance-based stillness detection over filtered accel magnitude"""
    window_size: int = 20
    variance_threshold: float = 0.1
    mean_threshold: float = 0.6  # m/s²


@dataclass(frozen=True)
class ZuptParams:
    """Drift countermeasures applied during integration"""
    velocity_threshold: float = 0.08  # m/s
    accel_threshold: float = 0.6  # m/s²
    velocity_damping: float = 0.97  # Per-sample decay
    max_dt_s: float = 0.5  # Larger gaps are dropped


@dataclass(frozen=True)
class HistoryParams:
    trail_capacity: int = 500
    height_capacity: int = 500
    trail_interval_ms: float = 50.0


@dataclass(frozen=True)
class TrackerConfig:
    calibration: CalibrationParams = field(default_factory=CalibrationParams)
    conditioning: ConditioningParams = field(default_factory=ConditioningParams)
    stillness: StillnessParams = field(default_factory=StillnessParams)
    zupt: ZuptParams = field(default_factory=ZuptParams)
    history: HistoryParams = field(default_factory=HistoryParams)


DEFAULT_TRACKER_CONFIG = TrackerConfig()

_SECTIONS = {
    "calibration": CalibrationParams,
    "conditioning": ConditioningParams,
    "stillness": StillnessParams,
    "zupt": ZuptParams,
    "history": HistoryParams,
}

_INTEGER_FIELDS = (
    ("calibration", "sample_count"),
    ("stillness", "window_size"),
    ("history", "trail_capacity"),
    ("history", "height_capacity"),
)


def validate_config(config: TrackerConfig) -> TrackerConfig:
    """
    Check every tunable against its admissible range.

    Raises:
        ValueError: listing every offending parameter.
    """
    errors = []
    cond = config.conditioning
    still = config.stillness
    zupt = config.zupt
    hist = config.history

    for section, name in _INTEGER_FIELDS:
        value = getattr(getattr(config, section), name)
        if not isinstance(value, int) or isinstance(value, bool):
            errors.append(f"{section}.{name} must be an integer, got {value!r}")
        elif value < 1:
            errors.append(f"{section}.{name} must be >= 1, got {value}")
    if not 0.0 < cond.low_pass_alpha <= 1.0:
        errors.append(f"conditioning.low_pass_alpha must be in (0, 1], got {cond.low_pass_alpha}")
    for name in ("deadzone_xy", "deadzone_z"):
        if getattr(cond, name) < 0.0:
            errors.append(f"conditioning.{name} must be >= 0, got {getattr(cond, name)}")
    for name in ("variance_threshold", "mean_threshold"):
        if getattr(still, name) < 0.0:
            errors.append(f"stillness.{name} must be >= 0, got {getattr(still, name)}")
    for name in ("velocity_threshold", "accel_threshold"):
        if getattr(zupt, name) < 0.0:
            errors.append(f"zupt.{name} must be >= 0, got {getattr(zupt, name)}")
    if not 0.0 < zupt.velocity_damping <= 1.0:
        errors.append(f"zupt.velocity_damping must be in (0, 1], got {zupt.velocity_damping}")
    if zupt.max_dt_s <= 0.0:
        errors.append(f"zupt.max_dt_s must be > 0, got {zupt.max_dt_s}")
    if hist.trail_interval_ms < 0.0:
        errors.append(f"history.trail_interval_ms must be >= 0, got {hist.trail_interval_ms}")

    if errors:
        for message in errors:
            logger.error("Invalid configuration: %s", message)
        raise ValueError("Invalid tracker configuration: " + "; ".join(errors))
    return config


def config_from_dict(raw: Dict[str, Any] | None) -> TrackerConfig:
    """Build a config from a nested mapping; missing keys keep their defaults."""
    raw = raw or {}
    unknown = set(raw) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    sections = {}
    for name, params_cls in _SECTIONS.items():
        values = raw.get(name)
        if values is None:
            values = {}
        elif not isinstance(values, dict):
            raise ValueError(f"Configuration section '{name}' must be a mapping, got {type(values).__name__}")
        allowed = {f.name for f in fields(params_cls)}
        extra = set(values) - allowed
        if extra:
            raise ValueError(f"Unknown keys in '{name}': {sorted(extra)}")
        sections[name] = replace(params_cls(), **values)

    return validate_config(TrackerConfig(**sections))


def load_config(config_path: str | Path) -> TrackerConfig:
    """
    Load tracker tunables from a YAML file.

    Args:
        config_path: YAML file with optional sections calibration, conditioning,
            stillness, zupt and history.

    Returns:
        Validated TrackerConfig.
    """
    with open(config_path, "r", encoding="utf-8") as file:
        raw = yaml.safe_load(file)
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")
    config = config_from_dict(raw)
    logger.info("Configuration loaded from %s", config_path)
    return config


def ensure_output_dir(output_dir: Path | None = None) -> Path:
    output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir
