"""
Filters used by the groove codec.

FIR anti-alias/anti-image filtering, the high-shelf emphasis biquad,
the legacy first-order emphasis pair and the legacy smoothing kernel.
All functions return new arrays; the input is never modified.
"""

from __future__ import annotations

import math

import numpy as np

from spiral_groove.config import PREEMPH_COEFF, RC_KERNEL_RADIUS, RC_KERNEL_SD_COEFF

MAX_KERNEL_RADIUS = 64


def blackman_sinc_kernel(factor: float) -> np.ndarray:
    """
    Build the windowed-sinc low-pass kernel for a resampling factor.

    Args:
        factor: Decimation (or interpolation) factor, > 1

    Returns:
        Symmetric kernel of length 2*radius+1 with unit DC gain
    """
    radius = min(math.ceil(2 * factor), MAX_KERNEL_RADIUS)
    size = 2 * radius + 1
    cutoff = 0.5 / factor

    n = np.arange(size) - radius
    kernel = 2.0 * cutoff * np.sinc(2.0 * cutoff * n)

    i = np.arange(size)
    window = (
        0.42
        - 0.5 * np.cos(2 * np.pi * i / (size - 1))
        + 0.08 * np.cos(4 * np.pi * i / (size - 1))
    )
    kernel *= window
    return kernel / np.sum(kernel)


def anti_alias_filter(samples: np.ndarray, factor: float) -> np.ndarray:
    """
    Low-pass a buffer ahead of decimation by `factor`.

    The output has the same length as the input; samples outside the
    buffer are treated as zero. Factors <= 1 return an unfiltered copy.
    Also used as the anti-imaging filter after upsampling.

    Args:
        samples: Input samples
        factor: Decimation factor (source length / target length)

    Returns:
        Filtered samples
    """
    samples = np.asarray(samples, dtype=np.float64)
    if factor <= 1 or len(samples) == 0:
        return samples.copy()

    kernel = blackman_sinc_kernel(factor)
    radius = len(kernel) // 2
    full = np.convolve(samples, kernel, mode="full")
    return full[radius:radius + len(samples)]


def high_shelf_coefficients(
    sample_rate: float,
    gain_db: float,
    corner_hz: float,
) -> tuple[tuple[float, float, float], tuple[float, float]]:
    """
    High-shelf biquad coefficients (Audio EQ Cookbook, shelf slope 1).

    Coefficients are normalized so a0 == 1. Designs for +G and -G at the
    same corner and rate are exact reciprocals of each other.

    Returns:
        ((b0, b1, b2), (a1, a2))
    """
    a = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * math.pi * corner_hz / sample_rate
    cos_w0 = math.cos(w0)
    alpha = math.sin(w0) / 2.0 * math.sqrt(2.0)
    two_sqrt_a_alpha = 2.0 * math.sqrt(a) * alpha

    b0 = a * ((a + 1) + (a - 1) * cos_w0 + two_sqrt_a_alpha)
    b1 = -2.0 * a * ((a - 1) + (a + 1) * cos_w0)
    b2 = a * ((a + 1) + (a - 1) * cos_w0 - two_sqrt_a_alpha)
    a0 = (a + 1) - (a - 1) * cos_w0 + two_sqrt_a_alpha
    a1 = 2.0 * ((a - 1) - (a + 1) * cos_w0)
    a2 = (a + 1) - (a - 1) * cos_w0 - two_sqrt_a_alpha

    return (b0 / a0, b1 / a0, b2 / a0), (a1 / a0, a2 / a0)


def high_shelf_biquad(
    samples: np.ndarray,
    sample_rate: float,
    gain_db: float,
    corner_hz: float,
) -> np.ndarray:
    """
    Apply a high-shelf biquad, causally, in one pass.

    Filter memory starts at zero on every call, so
    high_shelf_biquad(high_shelf_biquad(x, sr, +g, f), sr, -g, f)
    reproduces x up to floating-point precision.

    Args:
        samples: Input samples
        sample_rate: Sample rate in Hz (must exceed 2 * corner_hz)
        gain_db: Shelf gain in dB (positive boosts highs)
        corner_hz: Corner frequency in Hz

    Returns:
        Filtered samples
    """
    (b0, b1, b2), (a1, a2) = high_shelf_coefficients(sample_rate, gain_db, corner_hz)

    x = np.asarray(samples, dtype=np.float64).tolist()
    out = [0.0] * len(x)
    x1 = x2 = y1 = y2 = 0.0

    for i, x0 in enumerate(x):
        y0 = b0 * x0 + b1 * x1 + b2 * x2 - a1 * y1 - a2 * y2
        out[i] = y0
        x2, x1 = x1, x0
        y2, y1 = y1, y0

    return np.array(out, dtype=np.float64)


def pre_emphasis(samples: np.ndarray, coeff: float = PREEMPH_COEFF) -> np.ndarray:
    """First-order pre-emphasis: y[n] = x[n] - coeff * x[n-1]."""
    x = np.asarray(samples, dtype=np.float64)
    out = x.copy()
    if len(x) > 1:
        out[1:] = x[1:] - coeff * x[:-1]
    return out


def de_emphasis(samples: np.ndarray, coeff: float = PREEMPH_COEFF) -> np.ndarray:
    """First-order de-emphasis: y[n] = x[n] + coeff * y[n-1]."""
    x = np.asarray(samples, dtype=np.float64).tolist()
    out = [0.0] * len(x)
    prev = 0.0
    for i, value in enumerate(x):
        prev = value + coeff * prev
        out[i] = prev
    return np.array(out, dtype=np.float64)


def gaussian_smooth(
    samples: np.ndarray,
    radius: int = RC_KERNEL_RADIUS,
    sd_coeff: float = RC_KERNEL_SD_COEFF,
) -> np.ndarray:
    """
    Smooth with a normalized Gaussian kernel, clamping at the edges.

    Used by the legacy decode path only.
    """
    x = np.asarray(samples, dtype=np.float64)
    if len(x) == 0 or radius < 1:
        return x.copy()

    offsets = np.arange(-radius, radius + 1)
    kernel = np.exp(-0.5 * (offsets / (radius * sd_coeff)) ** 2)
    kernel /= np.sum(kernel)

    padded = np.pad(x, radius, mode="edge")
    return np.convolve(padded, kernel, mode="valid")
