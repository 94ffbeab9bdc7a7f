import json
import logging

import numpy as np
import pandas as pd
import pytest

from dead_reckoning.config import DEFAULT_TRACKER_CONFIG
from dead_reckoning.data_loading import iter_events, list_recordings, load_recording
from dead_reckoning.plotting import plot_height, plot_radar
from dead_reckoning.replay import RESULT_COLUMNS, main, replay_recording, run_recording
from dead_reckoning.sensor_types import HeightPoint, MotionSample, StepOutcome, TrailPoint


@pytest.fixture(autouse=True)
def detach_log_handlers():
    yield
    logger = logging.getLogger("dead_reckoning")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def generate_recording_frame(n_still=80, n_push=40, n_rest=60, period_ms=20.0, push=1.5):
    """Flat device: rest, push along device X, then rest again."""
    n = n_still + n_push + n_rest
    t = np.arange(n) * period_ms
    ax = np.zeros(n)
    ax[n_still:n_still + n_push] = push
    return pd.DataFrame(
        {
            "timestamp_ms": t,
            "accel_gravity_x": ax,
            "accel_gravity_y": np.zeros(n),
            "accel_gravity_z": np.full(n, 9.81),
            "rot_alpha": np.zeros(n),
            "orient_alpha": np.zeros(n),
            "orient_beta": np.zeros(n),
            "orient_gamma": np.zeros(n),
        }
    )


@pytest.fixture
def csv_recording(tmp_path):
    path = tmp_path / "walk.csv"
    generate_recording_frame().to_csv(path, index=False)
    return path


def test_load_csv_recording(csv_recording):
    recording = load_recording(csv_recording)
    assert recording.name == "walk"
    assert recording.motion_count == 180
    assert recording.duration_s == pytest.approx(179 * 0.02)
    assert "rot_alpha" not in recording.frame.columns


def test_load_json_recording_with_missing_values(tmp_path):
    path = tmp_path / "session.json"
    payload = {
        "id": "abc",
        "title": "session",
        "sensorTypes": ["accelerationIncludingGravity", "orientation"],
        "samples": [
            {"t": 40, "accel_gravity_x": 0.1, "accel_gravity_y": None, "accel_gravity_z": 9.8},
            {"t": 0, "orient_alpha": 10.0, "orient_beta": 0.0, "orient_gamma": None},
            {"t": 20, "accel_gravity_x": None, "accel_gravity_y": None, "accel_gravity_z": None},
        ],
    }
    path.write_text(json.dumps(payload))

    events = list(iter_events(load_recording(path)))

    assert events[0] == ("orientation", (10.0, 0.0, None))
    assert len(events) == 2
    kind, sample = events[1]
    assert kind == "motion"
    assert sample == MotionSample(ax=0.1, ay=None, az=9.8, timestamp_ms=40.0)


def test_orientation_precedes_motion_within_row(csv_recording):
    events = list(iter_events(load_recording(csv_recording)))
    assert [kind for kind, _ in events[:4]] == ["orientation", "motion", "orientation", "motion"]


def test_load_recording_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_recording(tmp_path / "missing.csv")

    bad = tmp_path / "bad.csv"
    pd.DataFrame({"timestamp_ms": [0, 1], "latitude": [1.0, 2.0]}).to_csv(bad, index=False)
    with pytest.raises(ValueError, match="required"):
        load_recording(bad)

    other = tmp_path / "notes.txt"
    other.write_text("x")
    with pytest.raises(ValueError, match="Unsupported"):
        load_recording(other)


def test_list_recordings(tmp_path):
    for name in ("b.csv", "a.json", "c.txt"):
        (tmp_path / name).write_text("")
    assert [p.name for p in list_recordings(tmp_path)] == ["a.json", "b.csv"]
    assert list_recordings(tmp_path / "absent") == []


def test_replay_moves_along_push_then_settles(csv_recording):
    results, estimator = replay_recording(load_recording(csv_recording), DEFAULT_TRACKER_CONFIG)

    assert list(results.columns) == RESULT_COLUMNS
    assert len(results) == 180
    assert results["outcome"].iloc[0] == "first_sample"
    assert (results["outcome"].iloc[1:51] != "integrated").all()
    assert results["mode"].iloc[-1] == "active"

    final = estimator.position
    assert final[0] > 0.05
    assert abs(final[1]) < 1e-9
    np.testing.assert_array_equal(estimator.velocity, np.zeros(3))
    assert results["outcome"].iloc[-1] == "zupt"


def test_replay_summary_counts_samples_that_moved(csv_recording, caplog):
    with caplog.at_level(logging.INFO, logger="dead_reckoning"):
        results, _ = replay_recording(load_recording(csv_recording), DEFAULT_TRACKER_CONFIG)

    moved = sum(StepOutcome(value).moved for value in results["outcome"])
    # One clock-priming sample plus the calibration window never move
    assert moved == 180 - 1 - 50
    assert f"{moved} of 180 motion samples moved the estimate" in caplog.text


def test_run_recording_writes_outputs(csv_recording, tmp_path):
    out_dir = tmp_path / "out"
    artifacts = run_recording(csv_recording, output_dir=out_dir, make_plots=True, scale_m=1.0)

    assert artifacts.csv == out_dir / "walk_positions.csv"
    written = pd.read_csv(artifacts.csv)
    assert len(written) == 180
    assert [p.name for p in artifacts.plots] == ["walk_radar.png", "walk_height.png"]
    assert all(p.stat().st_size > 0 for p in artifacts.plots)


def test_plots_handle_short_histories(tmp_path):
    radar = plot_radar([TrailPoint(0.0, 0.0, 0.0)], np.zeros(3), tmp_path / "r.png")
    height = plot_height([HeightPoint(0.0, 0.0)], tmp_path / "h.png")
    assert radar.exists() and height.exists()


def test_cli_processes_latest_recording(tmp_path, capsys):
    rec_dir = tmp_path / "recordings"
    rec_dir.mkdir()
    generate_recording_frame().to_csv(rec_dir / "a.csv", index=False)
    generate_recording_frame(push=-1.5).to_csv(rec_dir / "b.csv", index=False)
    out_dir = tmp_path / "out"

    main(["--dir", str(rec_dir), "--output-dir", str(out_dir)])

    assert (out_dir / "b_positions.csv").exists()
    assert not (out_dir / "a_positions.csv").exists()
    assert "b.csv processed" in capsys.readouterr().out


def test_cli_lists_and_fails_without_recordings(tmp_path, capsys):
    rec_dir = tmp_path / "recordings"
    rec_dir.mkdir()
    with pytest.raises(SystemExit):
        main(["--dir", str(rec_dir)])

    main(["--dir", str(rec_dir), "--list"])
    assert "(none)" in capsys.readouterr().out

    generate_recording_frame().to_csv(rec_dir / "a.csv", index=False)
    main(["--dir", str(rec_dir), "--list"])
    assert "a.csv" in capsys.readouterr().out


def test_cli_list_wins_over_positional_recordings(tmp_path, capsys):
    rec_dir = tmp_path / "recordings"
    rec_dir.mkdir()
    rec = rec_dir / "a.csv"
    generate_recording_frame().to_csv(rec, index=False)
    out_dir = tmp_path / "out"

    main([str(rec), "--dir", str(rec_dir), "--list", "--output-dir", str(out_dir)])

    out = capsys.readouterr().out
    assert "  - a.csv" in out
    assert "processed" not in out
    assert not out_dir.exists()


def test_cli_applies_yaml_config(tmp_path):
    rec = tmp_path / "rec.csv"
    generate_recording_frame().to_csv(rec, index=False)
    config = tmp_path / "tracker.yaml"
    config.write_text("calibration:\n  sample_count: 10\n")
    log_file = tmp_path / "logs" / "replay.log"

    main([str(rec), "--config", str(config), "--output-dir", str(tmp_path), "--log-file", str(log_file)])

    results = pd.read_csv(tmp_path / "rec_positions.csv")
    assert results["outcome"].iloc[10] == "calibrated"
    assert log_file.exists()
