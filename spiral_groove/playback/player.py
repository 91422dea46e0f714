"""
Groove Player - playback sessions on top of the engine.

The player owns one engine and one output backend. It converts a speed
multiplier into the engine's advance rate, runs a monitor thread that
turns position reports into PlaybackFrames for the UI, and tears the
session down cleanly when playback ends, is stopped or fails.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

import numpy as np

from spiral_groove.codec.decoder import DecodedAudio
from spiral_groove.errors import PlaybackError
from spiral_groove.monitoring.logging import StructuredLogger, get_logger
from spiral_groove.playback.channel import EngineEvent
from spiral_groove.playback.config import PlaybackConfig, PlaybackState
from spiral_groove.playback.engine import GrooveEngine
from spiral_groove.playback.envelope import EnvelopeFollower
from spiral_groove.playback.output import AudioOutput, SoundDeviceOutput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackFrame:
    """Snapshot handed to the UI.

    Attributes:
        progress: Normalized position in [0, 1].
        time_position: Position in seconds.
        amplitude: Envelope-followed block RMS.
    """

    progress: float
    time_position: float
    amplitude: float


class GroovePlayer:
    """Plays decoded grooves at a variable rate.

    Example:
        player = GroovePlayer()
        player.on_frame(lambda f: print(f.progress))
        player.start(decode(svg_text), rate=1.0)
        player.set_rate(-1.0)   # scratch backwards
        player.wait()
    """

    def __init__(
        self,
        config: PlaybackConfig | None = None,
        output: AudioOutput | None = None,
        monitor: bool = True,
        event_logger: StructuredLogger | None = None,
    ):
        """Initialize the player.

        Args:
            config: Playback configuration.
            output: Output backend (default: sounddevice).
            monitor: Run a thread that polls reports. Without it the
                caller drives poll() itself.
            event_logger: Structured logger for session events.
        """
        self.config = config or PlaybackConfig()
        self.output = output or SoundDeviceOutput()
        self.engine = GrooveEngine(self.config)
        self.envelope = EnvelopeFollower(self.config.attack, self.config.release)
        self._events = event_logger or get_logger()
        self._monitor_enabled = monitor

        self._lock = threading.RLock()
        self._playing = False
        self._finished = threading.Event()
        self._finished.set()
        self._stop_event = threading.Event()
        self._monitor_thread: threading.Thread | None = None

        self._base_advance = 1.0
        self._buffer_length = 0
        self._buffer_rate = 0
        self._stereo = False
        self._progress = 0.0
        self._report_version = 0
        self._session = 0
        self.last_error: PlaybackError | None = None

        self._on_frame: Callable[[PlaybackFrame], None] | None = None
        self._on_stop: Callable[[], None] | None = None
        self._on_error: Callable[[PlaybackError], None] | None = None

    # =========================================================================
    # Callbacks
    # =========================================================================

    def on_frame(self, callback: Callable[[PlaybackFrame], None]) -> "GroovePlayer":
        """Set callback for position/amplitude frames."""
        self._on_frame = callback
        return self

    def on_stop(self, callback: Callable[[], None]) -> "GroovePlayer":
        """Set callback for the end of a session (ended or stopped)."""
        self._on_stop = callback
        return self

    def on_error(self, callback: Callable[[PlaybackError], None]) -> "GroovePlayer":
        """Set callback for playback failures."""
        self._on_error = callback
        return self

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def state(self) -> PlaybackState:
        return self.engine.state

    @property
    def progress(self) -> float:
        """Latest reported normalized position."""
        return self._progress

    @property
    def amplitude(self) -> float:
        """Envelope-followed amplitude."""
        return self.envelope.value

    @property
    def duration(self) -> float:
        """Duration of the loaded buffer in seconds."""
        if not self._buffer_rate:
            return 0.0
        return self._buffer_length / self._buffer_rate

    @property
    def base_advance(self) -> float:
        """Advance per output frame at 1x speed."""
        return self._base_advance

    # =========================================================================
    # Session control
    # =========================================================================

    def start(
        self,
        audio: DecodedAudio | np.ndarray,
        sample_rate: int | None = None,
        rate: float = 1.0,
        start_progress: float = 0.0,
        right: np.ndarray | None = None,
    ) -> bool:
        """
        Start a playback session, replacing any current one.

        Args:
            audio: Decoded groove, or a left/mono sample array
            sample_rate: Required when audio is an array
            rate: Speed multiplier (1.0 = normal, negative = backwards)
            start_progress: Normalized start position
            right: Right channel when audio is an array

        Returns:
            True if the session started. On failure the error is logged,
            passed to the on_error callback, kept in last_error, and the
            player is back in IDLE.
        """
        self.stop()

        if isinstance(audio, DecodedAudio):
            left, right, sample_rate = audio.left, audio.right, audio.sample_rate
        else:
            left = audio

        try:
            if not sample_rate:
                raise PlaybackError("A sample rate is required to play a raw buffer")
            buffer_rate = self.engine.load(left, right, sample_rate=sample_rate)
            self._buffer_rate = buffer_rate
            self._buffer_length = int(round(len(left) * buffer_rate / sample_rate))
            self._base_advance = buffer_rate / self.config.output_rate
            self._stereo = right is not None
            start_pos = round(min(max(start_progress, 0.0), 1.0) * max(0, self._buffer_length - 1))
            self.engine.seek(start_pos)
            self.engine.set_advance(self._base_advance * rate)
            self.output.start(self.engine)
        except PlaybackError as e:
            self._fail(e)
            return False

        with self._lock:
            self._session += 1
            self._playing = True
            self._finished.clear()
            self._progress = min(max(start_progress, 0.0), 1.0)
            self._report_version = 0
            self.envelope.reset()

        self._events.playback_start(
            duration_s=self.duration,
            sample_rate=self._buffer_rate,
            stereo=self._stereo,
            rate=rate,
            session=self._session,
            backend=self.output.name,
        )
        logger.debug(
            f"Playback ready: {rate}x, {self.duration:.2f}s, "
            f"adv={self._base_advance:.4f}{' [stereo]' if self._stereo else ''}"
        )

        if self._monitor_enabled:
            self._start_monitor()
        return True

    def set_rate(self, rate: float) -> None:
        """Set the speed multiplier. Ignored when nothing is playing."""
        if not self._playing:
            return
        self.engine.set_advance(self._base_advance * rate)

    def seek(self, progress: float) -> None:
        """Jump to a normalized position."""
        if not self._playing:
            return
        progress = min(max(progress, 0.0), 1.0)
        self.engine.seek(progress * max(0, self._buffer_length - 1))

    def stop(self) -> None:
        """Stop the current session, if any."""
        self._finish("stopped")

    def poll(self) -> PlaybackFrame | None:
        """
        Consume the latest report and any engine events.

        Called by the monitor thread, or by the caller when the monitor
        is disabled.

        Returns:
            A new PlaybackFrame, or None if nothing new was reported
        """
        frame = None
        report, version = self.engine.read_report()
        if report is not None and version != self._report_version:
            self._report_version = version
            self._progress = report.position
            amplitude = self.envelope.update(report.amplitude)
            frame = PlaybackFrame(
                progress=report.position,
                time_position=report.position * self.duration,
                amplitude=amplitude,
            )
            if self._on_frame:
                self._on_frame(frame)

        if EngineEvent.ENDED in self.engine.poll_events():
            self._finish("ended")
        return frame

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until the session ends.

        Returns:
            True if the session ended within the timeout
        """
        if self._monitor_enabled:
            return self._finished.wait(timeout)

        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._finished.is_set():
            self.poll()
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(self.config.poll_interval_s)
        return True

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_monitor(self) -> None:
        self._stop_event.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitor_loop,
            daemon=True,
            name="groove-player-monitor",
        )
        self._monitor_thread.start()

    def _monitor_loop(self) -> None:
        while not self._stop_event.is_set():
            self.poll()
            self._stop_event.wait(self.config.poll_interval_s)

    def _finish(self, reason: str) -> None:
        with self._lock:
            if not self._playing:
                return
            self._playing = False
            self.output.stop()
            self.engine.release()
            self.engine.reset()
            self._stop_event.set()
            if reason == "ended":
                self._progress = 1.0

        monitor = self._monitor_thread
        if monitor is not None and monitor is not threading.current_thread():
            monitor.join(timeout=1.0)
        self._monitor_thread = None

        self._events.playback_end(reason, progress=self._progress, session=self._session)
        self._finished.set()
        if self._on_stop:
            self._on_stop()

    def _fail(self, error: PlaybackError) -> None:
        self.last_error = error
        self.output.stop()
        self.engine.release()
        self.engine.reset()
        self._events.playback_error(error, backend=error.backend or self.output.name)
        if self._on_error:
            self._on_error(error)
