"""
Variable-rate playback of decoded grooves.

Components:
    GrooveEngine        - Block renderer applying commands between blocks
    GroovePlayer        - Sessions, rate control and UI frames
    TurntableController - Motor spin-up/down and scratch gestures
    OfflineOutput       - Synchronous rendering without an audio device
    SoundDeviceOutput   - Real-time output through sounddevice

Example:
    from spiral_groove.playback import GroovePlayer

    player = GroovePlayer()
    player.start(audio)
    player.set_rate(0.5)
"""

from spiral_groove.playback.config import PlaybackConfig, PlaybackState
from spiral_groove.playback.channel import (
    AdvanceCommand,
    ControlChannel,
    EngineEvent,
    LoadCommand,
    PositionReport,
    ReportSlot,
    SeekCommand,
    StopCommand,
)
from spiral_groove.playback.engine import GrooveEngine
from spiral_groove.playback.envelope import EnvelopeFollower
from spiral_groove.playback.output import AudioOutput, OfflineOutput, SoundDeviceOutput
from spiral_groove.playback.player import GroovePlayer, PlaybackFrame
from spiral_groove.playback.turntable import TurntableController, scratch_rate

__all__ = [
    # Config
    "PlaybackConfig",
    "PlaybackState",
    # Messages
    "AdvanceCommand",
    "ControlChannel",
    "EngineEvent",
    "LoadCommand",
    "PositionReport",
    "ReportSlot",
    "SeekCommand",
    "StopCommand",
    # Engine
    "GrooveEngine",
    "EnvelopeFollower",
    # Output
    "AudioOutput",
    "OfflineOutput",
    "SoundDeviceOutput",
    # Player
    "GroovePlayer",
    "PlaybackFrame",
    # Turntable
    "TurntableController",
    "scratch_rate",
]
