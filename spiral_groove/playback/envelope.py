"""
Envelope follower for visual amplitude feedback.
"""

from __future__ import annotations


class EnvelopeFollower:
    """Smooths block RMS reports: fast attack, slow release.

    Args:
        attack: Weight of a rising input (0.6 reacts within a report or two).
        release: Weight of a falling input (0.04 decays over ~25 reports).
    """

    def __init__(self, attack: float = 0.6, release: float = 0.04):
        self.attack = attack
        self.release = release
        self.value = 0.0

    def update(self, raw: float) -> float:
        """Feed one amplitude report and return the smoothed value."""
        raw = raw or 0.0
        weight = self.attack if raw > self.value else self.release
        self.value = weight * raw + (1.0 - weight) * self.value
        return self.value

    def reset(self) -> None:
        self.value = 0.0
