"""
Playback configuration.

Defines the engine state machine and the tunables of a playback session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from spiral_groove.config import MIN_PLAYBACK_RATE
from spiral_groove.errors import ConfigError


class PlaybackState(Enum):
    """State of a playback session."""

    IDLE = "idle"
    """No buffer loaded. Blocks render silence."""

    LOADED = "loaded"
    """A buffer has been handed over but no block has been rendered yet."""

    PLAYING = "playing"
    """Blocks are being rendered at the current advance rate."""

    RATE_ADJUSTING = "rate_adjusting"
    """A rate change is queued and will apply at the next block boundary."""

    ENDED = "ended"
    """Forward playback ran past the last sample."""

    STOPPED = "stopped"
    """Stopped by the caller; the buffer has been released."""


@dataclass
class PlaybackConfig:
    """Configuration for playback sessions.

    Args:
        output_rate: Output device sample rate in Hz.
        block_size: Frames rendered per processing block.
        report_interval: Publish a position report every N blocks.
        min_sample_rate: Buffers below this rate are upsampled once at load.
        channels: Output channels (1 or 2). Mono buffers are duplicated.
        attack: Envelope follower weight of a rising amplitude.
        release: Envelope follower weight of a falling amplitude.
        poll_interval_s: How often the player's monitor thread polls reports.

    Example:
        config = PlaybackConfig(output_rate=48000, block_size=256)
    """

    output_rate: int = 44100
    block_size: int = 128
    report_interval: int = 4
    min_sample_rate: int = MIN_PLAYBACK_RATE
    channels: int = 2
    attack: float = 0.6
    release: float = 0.04
    poll_interval_s: float = 1 / 60

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.output_rate <= 0:
            raise ConfigError("output_rate must be > 0", field="output_rate", value=self.output_rate)
        if self.block_size < 1:
            raise ConfigError("block_size must be >= 1", field="block_size", value=self.block_size)
        if self.report_interval < 1:
            raise ConfigError(
                "report_interval must be >= 1",
                field="report_interval",
                value=self.report_interval,
            )
        if self.min_sample_rate <= 0:
            raise ConfigError(
                "min_sample_rate must be > 0",
                field="min_sample_rate",
                value=self.min_sample_rate,
            )
        if self.channels not in (1, 2):
            raise ConfigError("channels must be 1 or 2", field="channels", value=self.channels)
        for name in ("attack", "release"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ConfigError(f"{name} must be in (0, 1]", field=name, value=value)
        if self.poll_interval_s <= 0:
            raise ConfigError(
                "poll_interval_s must be > 0",
                field="poll_interval_s",
                value=self.poll_interval_s,
            )

    @property
    def block_duration_ms(self) -> float:
        """Duration of one processing block in milliseconds."""
        return self.block_size / self.output_rate * 1000
