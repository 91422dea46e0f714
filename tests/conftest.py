"""
Shared fixtures for the spiral groove test-suite.
"""

import numpy as np
import pytest

from spiral_groove.config import TAU, DiscGeometry


def make_sine(freq=440.0, duration=2.0, sample_rate=44100, amplitude=0.5):
    t = np.arange(int(round(duration * sample_rate))) / sample_rate
    return amplitude * np.sin(TAU * freq * t)


def make_spiral(n=10000, turns=6.0, geometry=None):
    """Unmodulated spiral points in drawing units."""
    geometry = geometry or DiscGeometry()
    t = np.arange(n) / (n - 1)
    theta = t * turns * TAU
    r = geometry.base_radius(t)
    return np.column_stack([geometry.cx + r * np.cos(theta), geometry.cy + r * np.sin(theta)])


@pytest.fixture
def sine_440():
    """2 s, 44.1 kHz, 440 Hz mono sine at half scale."""
    return make_sine()


@pytest.fixture
def short_sine():
    """0.25 s sine, quick enough for many encode calls."""
    return make_sine(duration=0.25)


@pytest.fixture
def stereo_impulses():
    """Left-only and right-only impulses in the middle of 1 s of silence."""
    n = 44100
    impulse = np.zeros(n)
    impulse[n // 2] = 0.8
    silence = np.zeros(n)
    return (impulse, silence), (silence, impulse)


@pytest.fixture
def spiral_points():
    """10 000 points of a 6-turn spiral on the default disc."""
    return make_spiral()
