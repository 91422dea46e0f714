"""
Codec configuration for spiral grooves.

Named constants, the quality table and the validated configuration
dataclasses shared by the encoder and decoder.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from spiral_groove.errors import ConfigError

TAU = 2.0 * math.pi

# Companding
MU = 255

# Companding gain cap as a fraction of the radial spacing between turns.
K_MAX_COEFF = 0.45

# k estimation when the descriptor does not record it
MAD_SCALE = 0.25
MIN_ESTIMATED_K = 0.5
K_WINDOW_MAX = 2000

# Legacy first-order emphasis
PREEMPH_COEFF = 0.97

# Legacy decode smoothing kernel
RC_KERNEL_RADIUS = 6
RC_KERNEL_SD_COEFF = 0.35

MIN_PLAYBACK_RATE = 8000
FADE_LEN_FRACTION = 0.005
FADE_MAX_SAMPLES = 256

# Used when a document carries no sample rate at all.
DEFAULT_SAMPLE_RATE = 22050

# Disc circles sit this far outside/inside the groove band.
DISC_MARGIN = 8
MIN_INNER_CIRCLE = 12
MIN_RECOVERED_ROUT = 30

DEFAULT_COORDINATE_SCALE = 100
DESCRIPTOR_VERSION = 2


@dataclass(frozen=True)
class QualityLevel:
    """A quality preset: target effective sample rate and vertex cap."""

    level: int
    target_sample_rate: int
    max_vertices: int


QUALITY_LEVELS: dict[int, QualityLevel] = {
    1: QualityLevel(1, 8000, 200_000),
    2: QualityLevel(2, 11025, 500_000),
    3: QualityLevel(3, 16000, 1_000_000),
    4: QualityLevel(4, 22050, 1_500_000),
    5: QualityLevel(5, 32000, 2_000_000),
}


def get_quality(level: int) -> QualityLevel:
    """
    Get a quality preset by level.

    Args:
        level: Quality level (1-5)

    Returns:
        The matching QualityLevel

    Raises:
        ConfigError: If level is not recognized
    """
    if level not in QUALITY_LEVELS:
        raise ConfigError(
            f"Unknown quality level: {level}. Available: {sorted(QUALITY_LEVELS)}",
            field="quality",
            value=level,
        )
    return QUALITY_LEVELS[level]


@dataclass
class DiscGeometry:
    """Disc layout in drawing units.

    Attributes:
        cx: Center x.
        cy: Center y.
        r_out: Radius where the groove starts (t = 0).
        r_in: Radius where the groove ends (t = 1).
    """

    cx: float = 260.0
    cy: float = 260.0
    r_out: float = 220.0
    r_in: float = 40.0

    def __post_init__(self) -> None:
        """Validate geometry."""
        if self.r_in < 0:
            raise ConfigError("r_in must be >= 0", field="r_in", value=self.r_in)
        if self.r_out <= self.r_in:
            raise ConfigError(
                f"r_out ({self.r_out}) must be greater than r_in ({self.r_in})",
                field="r_out",
                value=self.r_out,
            )

    @property
    def band_width(self) -> float:
        """Radial distance covered by the whole groove."""
        return self.r_out - self.r_in

    def base_radius(self, t):
        """Nominal radius at normalized arc position t (scalar or array)."""
        return self.r_out + (self.r_in - self.r_out) * t


@dataclass
class EncoderConfig:
    """Configuration for groove encoding.

    Args:
        quality: Quality level 1-5, see QUALITY_LEVELS.
        turns: Number of full revolutions from outer to inner radius.
        sensitivity: Maximum radial deviation in drawing units.
        geometry: Disc layout.
        stereo: Encode mid/side when a distinct right channel is given.
        limiter_threshold: Soft limiter threshold amplitude.
        emphasis_gain_db: High-shelf pre-emphasis gain.
        emphasis_corner_hz: High-shelf corner frequency.
        coordinate_scale: Integer scale used to store coordinates.

    Example:
        config = EncoderConfig(quality=4, turns=8, sensitivity=3.0)
    """

    quality: int = 3
    turns: float = 6.0
    sensitivity: float = 5.0
    geometry: DiscGeometry = field(default_factory=DiscGeometry)
    stereo: bool = True
    limiter_threshold: float = 0.9
    emphasis_gain_db: float = 20.0
    emphasis_corner_hz: float = 1000.0
    coordinate_scale: int = DEFAULT_COORDINATE_SCALE

    def __post_init__(self) -> None:
        """Validate configuration."""
        get_quality(self.quality)
        if not self.turns > 0:
            raise ConfigError("turns must be > 0", field="turns", value=self.turns)
        if not self.sensitivity > 0:
            raise ConfigError(
                "sensitivity must be > 0", field="sensitivity", value=self.sensitivity
            )
        if self.coordinate_scale < 1:
            raise ConfigError(
                "coordinate_scale must be >= 1",
                field="coordinate_scale",
                value=self.coordinate_scale,
            )
        if not 0 < self.limiter_threshold <= 1.0:
            raise ConfigError(
                "limiter_threshold must be in (0, 1]",
                field="limiter_threshold",
                value=self.limiter_threshold,
            )
        if not self.emphasis_corner_hz > 0:
            raise ConfigError(
                "emphasis_corner_hz must be > 0",
                field="emphasis_corner_hz",
                value=self.emphasis_corner_hz,
            )

    @property
    def quality_level(self) -> QualityLevel:
        """Resolved quality preset."""
        return get_quality(self.quality)

    def companding_gain(self) -> float:
        """Radial gain k, capped so the groove never crosses a neighbouring turn."""
        k_max = K_MAX_COEFF * self.geometry.band_width / self.turns
        return min(self.sensitivity, k_max)
