"""
Error-diffusion quantization of groove coordinates.

Each coordinate is rounded after adding the rounding error left over
from the previous coordinate on the same axis. The carried error is
always within half a quantization step, so the running sum of rounding
errors along a groove can never drift, and the residual noise is pushed
towards high spatial (audio) frequencies where de-emphasis removes it.
"""

from __future__ import annotations

import math

import numpy as np


def diffuse_round(values: np.ndarray, scale: float) -> tuple[np.ndarray, float]:
    """
    Quantize a 1-D sequence to integers on a fixed scale.

    Args:
        values: Coordinates in drawing units
        scale: Integer scale factor (e.g. 100 keeps two decimals)

    Returns:
        (quantized integers, carried error after the last value)
    """
    scaled = (np.asarray(values, dtype=np.float64) * scale).tolist()
    out = [0] * len(scaled)
    carry = 0.0

    for i, value in enumerate(scaled):
        target = value + carry
        q = math.floor(target + 0.5)
        carry = target - q
        out[i] = q

    return np.array(out, dtype=np.int64), carry


def quantize_points(points: np.ndarray, scale: int) -> np.ndarray:
    """
    Quantize an (N, 2) array of points, diffusing error along each axis.

    Returns:
        (N, 2) int64 array of scaled coordinates
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    xs, _ = diffuse_round(points[:, 0], scale)
    ys, _ = diffuse_round(points[:, 1], scale)
    return np.column_stack([xs, ys]).astype(np.int64)


def rounding_error(values: np.ndarray, quantized: np.ndarray, scale: float) -> np.ndarray:
    """Per-coordinate rounding error in scaled units (quantized - exact)."""
    return np.asarray(quantized, dtype=np.float64) - np.asarray(values, dtype=np.float64) * scale
