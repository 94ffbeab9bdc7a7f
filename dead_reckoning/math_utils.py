from __future__ import annotations

import math

import numpy as np

from .sensor_types import OrientationAngles


def orientation_to_rotation_matrix(alpha: float, beta: float, gamma: float) -> np.ndarray:
    ca, sa = math.cos(alpha), math.sin(alpha)
    cb, sb = math.cos(beta), math.sin(beta)
    cg, sg = math.cos(gamma), math.sin(gamma)

    # Intrinsic ZXY: R = Rz(alpha) @ Rx(beta) @ Ry(gamma)
    return np.array(
        [
            [ca * cg - sa * sb * sg, -sa * cb, ca * sg + sa * sb * cg],
            [sa * cg + ca * sb * sg, ca * cb, sa * sg - ca * sb * cg],
            [-cb * sg, sb, cb * cg],
        ]
    )


def device_to_world(vector: np.ndarray, angles: OrientationAngles) -> np.ndarray:
    """Rotate a device-frame vector into the East-North-Up world frame."""
    rotation = orientation_to_rotation_matrix(angles.alpha, angles.beta, angles.gamma)
    return rotation @ np.asarray(vector, dtype=float)


def gravity_vector(magnitude: float = 9.81) -> np.ndarray:
    return np.array([0.0, 0.0, magnitude])


def vector_norm(vector: np.ndarray) -> float:
    return float(np.linalg.norm(vector))
