"""
Resampling utilities.

Provides nearest-sample decimation for encoding, Lanczos-3 upsampling
back to the original sample count for decoding, and Catmull-Rom cubic
resampling for the playback sample-rate floor.
"""

from __future__ import annotations

import numpy as np

LANCZOS_LOBES = 3


def decimate(samples: np.ndarray, n_out: int) -> np.ndarray:
    """
    Pick n_out samples by nearest-sample selection.

    Output i takes source index floor(i * len(samples) / n_out),
    clamped to the last sample. Filter before calling this.

    Args:
        samples: Source samples (already anti-alias filtered)
        n_out: Number of output samples

    Returns:
        Decimated samples
    """
    samples = np.asarray(samples, dtype=np.float64)
    n_in = len(samples)
    if n_out <= 0 or n_in == 0:
        return np.array([], dtype=np.float64)
    factor = n_in / n_out
    idx = np.minimum(np.floor(np.arange(n_out) * factor).astype(np.int64), n_in - 1)
    return samples[idx]


def lanczos_kernel(x: np.ndarray, lobes: int = LANCZOS_LOBES) -> np.ndarray:
    """Lanczos window: sinc(x) * sinc(x / lobes) inside |x| < lobes."""
    x = np.asarray(x, dtype=np.float64)
    weights = np.sinc(x) * np.sinc(x / lobes)
    return np.where(np.abs(x) < lobes, weights, 0.0)


def lanczos3_resample(samples: np.ndarray, new_length: int) -> np.ndarray:
    """
    Resample a buffer to new_length samples with a 3-lobe Lanczos kernel.

    Output j sits at source position j * len(samples) / new_length,
    which mirrors the index mapping used by decimate(). Taps outside
    the buffer are clamped to the edge samples and the weights are
    renormalized per output sample.

    Args:
        samples: Source samples
        new_length: Target number of samples

    Returns:
        Resampled audio
    """
    samples = np.asarray(samples, dtype=np.float64)
    n = len(samples)
    if new_length <= 0 or n == 0:
        return np.array([], dtype=np.float64)
    if n == 1:
        return np.full(new_length, samples[0])
    if new_length == n:
        return samples.copy()

    pos = np.arange(new_length) * (n / new_length)
    pos = np.minimum(pos, n - 1)
    base = np.floor(pos).astype(np.int64)

    acc = np.zeros(new_length, dtype=np.float64)
    norm = np.zeros(new_length, dtype=np.float64)
    for offset in range(-LANCZOS_LOBES + 1, LANCZOS_LOBES + 1):
        idx = base + offset
        weight = lanczos_kernel(pos - idx)
        acc += weight * samples[np.clip(idx, 0, n - 1)]
        norm += weight

    return acc / np.where(norm == 0, 1.0, norm)


def cubic_interpolate(y0, y1, y2, y3, t):
    """
    Catmull-Rom cubic through y1 (t=0) and y2 (t=1).

    Works element-wise on numpy arrays as well as on scalars.
    """
    a = -0.5 * y0 + 1.5 * y1 - 1.5 * y2 + 0.5 * y3
    b = y0 - 2.5 * y1 + 2 * y2 - 0.5 * y3
    c = -0.5 * y0 + 0.5 * y2
    return ((a * t + b) * t + c) * t + y1


def resample_to_rate(
    samples: np.ndarray,
    from_rate: int,
    to_rate: int,
) -> np.ndarray:
    """
    Convert sample rate with Catmull-Rom cubic interpolation.

    Args:
        samples: Input samples
        from_rate: Source sample rate
        to_rate: Target sample rate

    Returns:
        Resampled audio (a copy when the rates match)

    Example:
        # Lift a 6 kHz groove to the 8 kHz playback floor
        audio_8k = resample_to_rate(audio_6k, 6000, 8000)
    """
    samples = np.asarray(samples, dtype=np.float64)
    if from_rate == to_rate:
        return samples.copy()

    n = len(samples)
    ratio = from_rate / to_rate
    new_length = int(round(n / ratio))
    if new_length == 0 or n == 0:
        return np.array([], dtype=np.float64)

    src = np.arange(new_length) * ratio
    idx = np.minimum(np.floor(src).astype(np.int64), n - 1)
    frac = src - idx

    y0 = samples[np.maximum(0, idx - 1)]
    y1 = samples[idx]
    y2 = samples[np.minimum(n - 1, idx + 1)]
    y3 = samples[np.minimum(n - 1, idx + 2)]
    return cubic_interpolate(y0, y1, y2, y3, frac)
