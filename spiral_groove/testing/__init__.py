"""
Testing utilities for spiral grooves.

Components:
    AudioAssertions    - Chainable checks on decoded audio
    AudioAnalysis      - Per-channel analysis results

Usage:
    from spiral_groove.testing import AudioAssertions

    AudioAssertions(decoded).assert_dominant_frequency(440, tolerance=0.02)
"""

from spiral_groove.testing.assertions import (
    AudioAnalysis,
    AudioAssertions,
    dominant_frequency,
    leakage_ratio,
)

__all__ = [
    "AudioAnalysis",
    "AudioAssertions",
    "dominant_frequency",
    "leakage_ratio",
]
