from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .config import DEFAULT_TRACKER_CONFIG, TrackerConfig, ensure_output_dir, load_config
from .data_loading import Recording, iter_events, list_recordings, load_recording
from .estimator import PositionEstimator
from .plotting import generate_replay_plots
from .sensor_types import StepOutcome

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "timestamp_ms",
    "time_s",
    "outcome",
    "mode",
    "pos_x_m",
    "pos_y_m",
    "pos_z_m",
    "vel_x_m_s",
    "vel_y_m_s",
    "vel_z_m_s",
]


@dataclass
class ReplayArtifacts:
    csv: Path
    plots: List[Path]
    estimator: PositionEstimator


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Console handler (INFO, or DEBUG when verbose) plus an optional detailed file log."""
    root = logging.getLogger("dead_reckoning")
    root.setLevel(logging.DEBUG)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        detailed_formatter = logging.Formatter(
            "%(asctime)s | %(name)s | %(levelname)-8s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root.addHandler(file_handler)
        root.info("Log file created: %s", log_file)

    return root


def replay_recording(
    recording: Recording,
    config: TrackerConfig = DEFAULT_TRACKER_CONFIG,
) -> Tuple[pd.DataFrame, PositionEstimator]:
    """
    Feed a recording through a fresh estimator.

    Returns:
        One result row per motion event, and the estimator in its final state.
    """
    estimator = PositionEstimator(config)
    rows: List[Dict[str, object]] = []
    outcomes: Dict[StepOutcome, int] = {outcome: 0 for outcome in StepOutcome}
    first_timestamp: Optional[float] = None

    for kind, payload in iter_events(recording):
        if kind == "orientation":
            estimator.ingest_orientation(*payload)
            continue

        outcome = estimator.ingest_motion(payload)
        outcomes[outcome] += 1
        if first_timestamp is None:
            first_timestamp = payload.timestamp_ms

        position = estimator.position
        velocity = estimator.velocity
        rows.append(
            {
                "timestamp_ms": payload.timestamp_ms,
                "time_s": (payload.timestamp_ms - first_timestamp) / 1000.0,
                "outcome": str(outcome),
                "mode": str(estimator.mode),
                "pos_x_m": position[0],
                "pos_y_m": position[1],
                "pos_z_m": position[2],
                "vel_x_m_s": velocity[0],
                "vel_y_m_s": velocity[1],
                "vel_z_m_s": velocity[2],
            }
        )

    moved = sum(count for outcome, count in outcomes.items() if outcome.moved)
    logger.info(
        "Replayed %s: %d of %d motion samples moved the estimate (%s)",
        recording.name,
        moved,
        len(rows),
        ", ".join(f"{outcome}={count}" for outcome, count in outcomes.items() if count),
    )
    if outcomes[StepOutcome.DROPPED]:
        logger.warning("%d motion samples dropped for invalid dt", outcomes[StepOutcome.DROPPED])

    return pd.DataFrame(rows, columns=RESULT_COLUMNS), estimator


def run_recording(
    path: Path,
    config: TrackerConfig = DEFAULT_TRACKER_CONFIG,
    output_dir: Optional[Path] = None,
    make_plots: bool = False,
    scale_m: float = 5.0,
) -> ReplayArtifacts:
    recording = load_recording(path)
    results, estimator = replay_recording(recording, config)
    output_dir = ensure_output_dir(output_dir)

    output_path = output_dir / f"{recording.name}_positions.csv"
    results.to_csv(output_path, index=False)

    plots: List[Path] = []
    if make_plots:
        snapshot = estimator.snapshot()
        plots = generate_replay_plots(
            snapshot.trail,
            snapshot.height,
            snapshot.position,
            recording.name,
            output_dir,
            scale_m=scale_m,
        )

    final = estimator.position
    logger.info(
        "Final position for %s: X=%.2f m  Y=%.2f m  Z=%.2f m (%d ZUPT)",
        recording.name,
        final[0],
        final[1],
        final[2],
        estimator.integrator.zupt_count,
    )
    return ReplayArtifacts(csv=output_path, plots=plots, estimator=estimator)


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Dead-reckoning position replay for exported sensor recordings.")
    parser.add_argument("recordings", nargs="*", type=Path, help="Recording files (.csv or .json).")
    parser.add_argument("--dir", type=Path, default=None, help="Directory searched when no recording is given.")
    parser.add_argument("--list", action="store_true", help="List recordings in --dir and exit; takes precedence over every other option.")
    parser.add_argument("--all", action="store_true", help="Process every recording in the directory.")
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding tracker tunables.")
    parser.add_argument("--output-dir", type=Path, default=None, help="Where result CSVs and plots are written.")
    parser.add_argument("--plot", action="store_true", help="Generate radar and height plots.")
    parser.add_argument("--scale", type=float, default=5.0, help="Radar radius in metres (default: 5).")
    parser.add_argument("--log-file", type=Path, default=None, help="Write a detailed DEBUG log here.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show DEBUG messages on the console.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    config = load_config(args.config) if args.config else DEFAULT_TRACKER_CONFIG

    if args.list:
        available = list_recordings(args.dir)
        print("Available recordings:")
        for path in available:
            print(f"  - {path.name}")
        if not available:
            print("  (none)")
        return

    if args.recordings:
        targets = list(args.recordings)
    else:
        available = list_recordings(args.dir)
        if not available:
            raise SystemExit("No recordings found.")
        targets = available if args.all else [available[-1]]

    for path in targets:
        artifacts = run_recording(
            path,
            config=config,
            output_dir=args.output_dir,
            make_plots=args.plot,
            scale_m=args.scale,
        )
        print(f"[REPLAY] {path.name} processed -> {artifacts.csv}")
        for plot_path in artifacts.plots:
            print(f"   Plot saved: {plot_path}")


if __name__ == "__main__":
    main()
