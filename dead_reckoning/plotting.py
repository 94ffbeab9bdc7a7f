from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import matplotlib.pyplot as plt
import numpy as np

from .sensor_types import HeightPoint, TrailPoint

RADAR_RINGS = 4
TRAIL_COLOR = "#339af0"
HEIGHT_COLOR = "#51cf66"
ORIGIN_COLOR = "#ff4757"


def plot_radar(
    trail: Sequence[TrailPoint],
    position: np.ndarray,
    output_path: Path,
    scale_m: float = 5.0,
) -> Path:
    """
    Top-down XY view: range rings every scale/4 metres, compass labels,
    the recorded trail and the current position.
    """
    fig, ax = plt.subplots(figsize=(6, 6))
    theta = np.linspace(0.0, 2.0 * np.pi, 181)

    for i in range(1, RADAR_RINGS + 1):
        radius = scale_m * i / RADAR_RINGS
        ax.plot(radius * np.cos(theta), radius * np.sin(theta), color="0.85", linewidth=0.8)
        ax.text(0.03 * scale_m, radius, f"{radius:.1f}m", fontsize=8, color="0.5", va="bottom")

    ax.axhline(0.0, color="0.85", linewidth=0.8)
    ax.axvline(0.0, color="0.85", linewidth=0.8)

    offset = scale_m * 1.08
    for label, (x, y) in {"N": (0, offset), "S": (0, -offset), "E": (offset, 0), "W": (-offset, 0)}.items():
        ax.text(x, y, label, ha="center", va="center", fontweight="bold", color="0.4")

    if len(trail) > 1:
        ax.plot([p.x for p in trail], [p.y for p in trail], color=TRAIL_COLOR, alpha=0.4, linewidth=1.5)

    ax.plot([0.0], [0.0], marker="+", color=ORIGIN_COLOR, markersize=10)
    ax.plot([position[0]], [position[1]], marker="o", color=TRAIL_COLOR, markersize=6)

    limit = scale_m * 1.15
    ax.set_xlim(-limit, limit)
    ax.set_ylim(-limit, limit)
    ax.set_aspect("equal")
    ax.set_axis_off()
    ax.set_title(f"Position X={position[0]:.2f} m  Y={position[1]:.2f} m")
    plt.tight_layout()
    plt.savefig(output_path, dpi=200)
    plt.close(fig)
    return output_path


def plot_height(height: Sequence[HeightPoint], output_path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(10, 3))

    if len(height) >= 2:
        t0 = height[0].timestamp_ms
        times = np.array([(p.timestamp_ms - t0) / 1000.0 for p in height])
        z = np.array([p.z for p in height])

        z_range = max(z.max() - z.min(), 0.5)
        margin = z_range * 0.2
        z_min, z_max = z.min() - margin, z.max() + margin

        ax.plot(times, z, color=HEIGHT_COLOR, linewidth=2.0)
        if z_min < 0.0 < z_max:
            ax.axhline(0.0, color=ORIGIN_COLOR, alpha=0.3, linestyle="--", linewidth=1.0)
        ax.set_ylim(z_min, z_max)

    ax.set_title("Height vs Time")
    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Z [m]")
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_path, dpi=200)
    plt.close(fig)
    return output_path


def generate_replay_plots(
    trail: Sequence[TrailPoint],
    height: Sequence[HeightPoint],
    position: np.ndarray,
    name: str,
    output_dir: Path,
    scale_m: float = 5.0,
) -> List[Path]:
    output_paths: List[Path] = []
    output_paths.append(plot_radar(trail, position, output_dir / f"{name}_radar.png", scale_m=scale_m))
    output_paths.append(plot_height(height, output_dir / f"{name}_height.png"))
    return output_paths
