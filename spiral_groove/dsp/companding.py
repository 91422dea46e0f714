"""
Mu-law companding.

Logarithmic compress/expand pair with mu = 255. Both accept scalars or
arrays in [-1, 1] and are exact inverses of each other.
"""

from __future__ import annotations

import numpy as np

from spiral_groove.config import MU

_LOG_1P_MU = np.log1p(MU)


def mu_law_compress(x):
    """Compress amplitudes in [-1, 1] to mu-law code values in [-1, 1]."""
    x = np.asarray(x, dtype=np.float64)
    return np.sign(x) * np.log1p(MU * np.abs(x)) / _LOG_1P_MU


def mu_law_expand(y):
    """Expand mu-law code values in [-1, 1] back to linear amplitudes."""
    y = np.asarray(y, dtype=np.float64)
    return np.sign(y) * (np.power(1.0 + MU, np.abs(y)) - 1.0) / MU
