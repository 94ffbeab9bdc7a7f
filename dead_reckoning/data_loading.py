from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .config import RECORDINGS_DIR
from .sensor_types import MotionSample

logger = logging.getLogger(__name__)


TIME_COLUMN = "timestamp_ms"
ACCEL_COLUMNS = ["accel_gravity_x", "accel_gravity_y", "accel_gravity_z"]
ORIENTATION_COLUMNS = ["orient_alpha", "orient_beta", "orient_gamma"]
RECORDING_SUFFIXES = (".csv", ".json")

# (kind, payload): ("orientation", (alpha, beta, gamma) in degrees) or ("motion", MotionSample)
Event = Tuple[str, Union[Tuple[float, float, float], MotionSample]]


@dataclass
class Recording:
    name: str
    frame: pd.DataFrame

    @property
    def motion_count(self) -> int:
        return int(self.frame[ACCEL_COLUMNS].notna().any(axis=1).sum())

    @property
    def duration_s(self) -> float:
        if self.frame.empty:
            return 0.0
        times = self.frame[TIME_COLUMN]
        return float(times.iloc[-1] - times.iloc[0]) / 1000.0


def list_recordings(input_dir: Path | None = None) -> List[Path]:
    input_dir = Path(input_dir) if input_dir is not None else RECORDINGS_DIR
    if not input_dir.is_dir():
        return []
    return sorted(p for p in input_dir.iterdir() if p.suffix.lower() in RECORDING_SUFFIXES)


def _normalize_frame(df: pd.DataFrame, source: Path) -> pd.DataFrame:
    if TIME_COLUMN not in df.columns:
        # JSON exports name the relative time "t"
        if "t" in df.columns:
            df = df.rename(columns={"t": TIME_COLUMN})
        else:
            raise ValueError(f"{source}: a '{TIME_COLUMN}' column is required.")

    if not set(ACCEL_COLUMNS).intersection(df.columns):
        raise ValueError(f"{source}: gravity-inclusive acceleration columns are required ({', '.join(ACCEL_COLUMNS)}).")

    for col in ACCEL_COLUMNS + ORIENTATION_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    ordered_cols = [TIME_COLUMN] + ACCEL_COLUMNS + ORIENTATION_COLUMNS
    frame = df[ordered_cols].apply(pd.to_numeric, errors="coerce")
    frame = frame.dropna(subset=[TIME_COLUMN])
    return frame.sort_values(TIME_COLUMN, kind="stable").reset_index(drop=True)


def _read_json_samples(path: Path) -> pd.DataFrame:
    with open(path, "r", encoding="utf-8") as file:
        payload = json.load(file)
    samples = payload.get("samples", []) if isinstance(payload, dict) else payload
    return pd.DataFrame(samples)


def load_recording(path: str | Path) -> Recording:
    """
    Read an exported recording (CSV or JSON) into a time-ordered frame.

    Columns other than the timestamp, gravity-inclusive acceleration and
    orientation are ignored; blank cells become NaN.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    suffix = path.suffix.lower()
    if suffix == ".csv":
        raw = pd.read_csv(path)
    elif suffix == ".json":
        raw = _read_json_samples(path)
    else:
        raise ValueError(f"Unsupported recording format: {path.suffix}")

    frame = _normalize_frame(raw, path)
    recording = Recording(name=path.stem, frame=frame)
    logger.info(
        "Loaded recording %s: %d rows, %d motion samples, %.1f s",
        recording.name,
        len(frame),
        recording.motion_count,
        recording.duration_s,
    )
    return recording


def _optional(value) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def iter_events(recording: Recording) -> Iterator[Event]:
    """
    Yield orientation and motion events in recording order.

    Within a row, the orientation event comes first so that the motion sample
    is rotated with the attitude recorded alongside it.
    """
    for row in recording.frame.itertuples(index=False):
        values = row._asdict()
        orientation = [values[c] for c in ORIENTATION_COLUMNS]
        if not all(pd.isna(v) for v in orientation):
            yield "orientation", tuple(_optional(v) for v in orientation)

        accel = [values[c] for c in ACCEL_COLUMNS]
        if not all(pd.isna(v) for v in accel):
            ax, ay, az = (_optional(v) for v in accel)
            yield "motion", MotionSample(ax=ax, ay=ay, az=az, timestamp_ms=float(values[TIME_COLUMN]))
