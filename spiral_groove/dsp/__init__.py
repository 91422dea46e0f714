"""
DSP primitives for the groove codec.

Pure numeric functions over numpy buffers. No state survives a call
except filter memory during a single pass.

Components:
    anti_alias_filter   - Blackman-windowed sinc low-pass (decimation/imaging)
    high_shelf_biquad   - Shelving EQ; +G and -G are exact inverses
    soft_limiter        - One-pole envelope limiter (one-way)
    mu_law_compress     - Logarithmic companding, mu = 255
    lanczos3_resample   - Decode-time upsampling to the original length
    resample_to_rate    - Catmull-Rom rate conversion (playback floor)
"""

from spiral_groove.dsp.filters import (
    anti_alias_filter,
    blackman_sinc_kernel,
    high_shelf_biquad,
    high_shelf_coefficients,
    pre_emphasis,
    de_emphasis,
    gaussian_smooth,
)
from spiral_groove.dsp.dynamics import (
    soft_limiter,
    limit_joint_peak,
    normalize_peak,
    normalize_joint_peak,
    remove_dc,
    apply_fade,
    fade_length,
)
from spiral_groove.dsp.companding import (
    mu_law_compress,
    mu_law_expand,
)
from spiral_groove.dsp.resample import (
    decimate,
    lanczos3_resample,
    cubic_interpolate,
    resample_to_rate,
)

__all__ = [
    # Filters
    "anti_alias_filter",
    "blackman_sinc_kernel",
    "high_shelf_biquad",
    "high_shelf_coefficients",
    "pre_emphasis",
    "de_emphasis",
    "gaussian_smooth",
    # Dynamics
    "soft_limiter",
    "limit_joint_peak",
    "normalize_peak",
    "normalize_joint_peak",
    "remove_dc",
    "apply_fade",
    "fade_length",
    # Companding
    "mu_law_compress",
    "mu_law_expand",
    # Resampling
    "decimate",
    "lanczos3_resample",
    "cubic_interpolate",
    "resample_to_rate",
]
