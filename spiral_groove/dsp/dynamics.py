"""
Amplitude processing: limiting, DC removal, peak normalization, fades.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from spiral_groove.config import FADE_LEN_FRACTION, FADE_MAX_SAMPLES

LIMITER_ATTACK_S = 0.010
LIMITER_RELEASE_S = 0.500

# Peak normalization is skipped outside this window.
NORMALIZE_FLOOR = 0.001
NORMALIZE_CEILING = 0.99


def soft_limiter(
    samples: np.ndarray,
    sample_rate: float,
    threshold: float,
    attack_s: float = LIMITER_ATTACK_S,
    release_s: float = LIMITER_RELEASE_S,
) -> np.ndarray:
    """
    Tame transients with a one-pole envelope follower.

    The envelope rises with the attack time constant and falls with the
    release time constant; gain is min(1, threshold / envelope). This is
    a one-way, intentionally non-linear stage.

    Args:
        samples: Input samples
        sample_rate: Sample rate in Hz
        threshold: Amplitude above which gain reduction starts
        attack_s: Attack time constant in seconds
        release_s: Release time constant in seconds

    Returns:
        Limited samples
    """
    x = np.asarray(samples, dtype=np.float64)
    if len(x) == 0:
        return x.copy()

    attack = math.exp(-1.0 / (attack_s * sample_rate))
    release = math.exp(-1.0 / (release_s * sample_rate))

    values = x.tolist()
    out = [0.0] * len(values)
    envelope = 0.0

    for i, value in enumerate(values):
        level = abs(value)
        coeff = attack if level > envelope else release
        envelope = coeff * envelope + (1.0 - coeff) * level
        gain = threshold / envelope if envelope > threshold else 1.0
        out[i] = value * gain

    return np.array(out, dtype=np.float64)


def peak(channels: Sequence[np.ndarray]) -> float:
    """Joint absolute peak across one or more channels."""
    peaks = [float(np.max(np.abs(ch))) for ch in channels if len(ch) > 0]
    return max(peaks) if peaks else 0.0


def limit_joint_peak(channels: Sequence[np.ndarray], ceiling: float = 1.0) -> list[np.ndarray]:
    """
    Scale channels down together so their joint peak is <= ceiling.

    Relative balance between channels is preserved. Quieter material
    is left untouched.
    """
    joint = peak(channels)
    if joint <= ceiling:
        return [np.asarray(ch, dtype=np.float64).copy() for ch in channels]
    scale = ceiling / joint
    return [np.asarray(ch, dtype=np.float64) * scale for ch in channels]


def remove_dc(samples: np.ndarray) -> np.ndarray:
    """Subtract the mean."""
    x = np.asarray(samples, dtype=np.float64)
    if len(x) == 0:
        return x.copy()
    return x - np.mean(x)


def normalize_peak(samples: np.ndarray) -> np.ndarray:
    """
    Raise a quiet buffer to unit peak.

    Buffers that are silent (peak <= 0.001) or already close to unit
    peak (>= 0.99) are returned unchanged.
    """
    x = np.asarray(samples, dtype=np.float64)
    level = peak([x])
    if NORMALIZE_FLOOR < level < NORMALIZE_CEILING:
        return x / level
    return x.copy()


def normalize_joint_peak(channels: Sequence[np.ndarray]) -> list[np.ndarray]:
    """Scale channels together to unit joint peak unless they are silent."""
    level = peak(channels)
    if level > NORMALIZE_FLOOR:
        return [np.asarray(ch, dtype=np.float64) / level for ch in channels]
    return [np.asarray(ch, dtype=np.float64).copy() for ch in channels]


def fade_length(n_samples: int) -> int:
    """Fade length for a buffer: 0.5% of its length, at most 256 samples."""
    return min(FADE_MAX_SAMPLES, int(n_samples * FADE_LEN_FRACTION))


def apply_fade(samples: np.ndarray) -> np.ndarray:
    """Apply a short linear fade-in and fade-out."""
    out = np.asarray(samples, dtype=np.float64).copy()
    n = fade_length(len(out))
    if n == 0:
        return out
    ramp = np.arange(n) / n
    out[:n] *= ramp
    out[len(out) - n:] *= ramp[::-1]
    return out
