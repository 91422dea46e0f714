"""
Turntable physics and scratch gestures.

Maps motor state and drag gestures onto a speed multiplier and pushes it
to a player (or any `set_rate` callable). The engine knows nothing about
angles; all of that lives here.
"""

from __future__ import annotations

import math
from typing import Callable

from spiral_groove.config import TAU

SPIN_UP_S = 0.35
SPIN_DOWN_S = 1.2


def scratch_rate(delta_angle: float, elapsed_s: float, turns: float, duration_s: float) -> float:
    """
    Convert a drag gesture into a speed multiplier.

    The disc's nominal angular velocity is turns * 2*pi / duration; a
    drag at exactly that velocity yields 1.0, the reverse direction a
    negative rate.

    Args:
        delta_angle: Angle swept by the gesture in radians
        elapsed_s: Time the gesture took
        turns: Turns of the groove
        duration_s: Duration of the audio

    Returns:
        Speed multiplier (0.0 for non-positive time, turns or duration)
    """
    if elapsed_s <= 0 or turns <= 0 or duration_s <= 0:
        return 0.0
    nominal = turns * TAU / duration_s
    return (delta_angle / elapsed_s) / nominal


def _wrap(angle: float) -> float:
    return (angle + math.pi) % TAU - math.pi


class TurntableController:
    """Motor and hand on the record.

    Example:
        deck = TurntableController(player.set_rate, turns=6, duration_s=audio.duration)
        deck.motor_on()
        deck.update(0.016)          # call once per UI frame
        deck.grab(angle, t)
        deck.drag(angle + 0.1, t + 0.016)
        deck.release()
    """

    def __init__(
        self,
        set_rate: Callable[[float], None],
        turns: float,
        duration_s: float,
        spin_up_s: float = SPIN_UP_S,
        spin_down_s: float = SPIN_DOWN_S,
    ):
        self._set_rate = set_rate
        self.turns = turns
        self.duration_s = duration_s
        self.spin_up_s = spin_up_s
        self.spin_down_s = spin_down_s

        self.rate = 0.0
        self.motor = False
        self.grabbed = False
        self._last_angle = 0.0
        self._last_time = 0.0

    def motor_on(self) -> None:
        self.motor = True

    def motor_off(self) -> None:
        self.motor = False

    def update(self, dt: float) -> float:
        """
        Advance the motor physics by dt seconds.

        While the record is held the hand decides the rate and the motor
        has no effect.

        Returns:
            The current rate
        """
        if self.grabbed or dt <= 0:
            return self.rate
        target = 1.0 if self.motor else 0.0
        tau = self.spin_up_s if abs(target) > abs(self.rate) else self.spin_down_s
        self.rate += (target - self.rate) * (1.0 - math.exp(-dt / tau))
        if abs(self.rate - target) < 1e-4:
            self.rate = target
        self._push()
        return self.rate

    def grab(self, angle: float, timestamp: float) -> None:
        """Put a hand on the record: playback freezes until dragged."""
        self.grabbed = True
        self._last_angle = angle
        self._last_time = timestamp
        self.rate = 0.0
        self._push()

    def drag(self, angle: float, timestamp: float) -> float:
        """
        Move the held record to a new angle.

        Returns:
            The scratch rate pushed to the player
        """
        if not self.grabbed:
            return self.rate
        delta = _wrap(angle - self._last_angle)
        elapsed = timestamp - self._last_time
        self.rate = scratch_rate(delta, elapsed, self.turns, self.duration_s)
        self._last_angle = angle
        self._last_time = timestamp
        self._push()
        return self.rate

    def release(self) -> None:
        """Let go; update() takes the rate back towards the motor speed."""
        self.grabbed = False

    def _push(self) -> None:
        self._set_rate(self.rate)
