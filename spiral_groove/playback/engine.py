"""
Variable-rate playback engine.

The engine reads a decoded buffer at an arbitrary, continuously changing
advance rate (samples of source per output frame):

    advance = 1.0   normal forward playback
    advance = 0.0   freeze
    advance = -1.0  backward at normal speed
    advance = 2.0   double speed

Control methods (load, set_advance, seek, stop) may be called from any
thread; they only enqueue commands. process() runs on the audio thread,
applies queued commands at the block boundary and then renders one block
with linear interpolation. process() never blocks, never takes a lock
and never logs.

The session state is derived on the control side. The control thread
owns the session counter and the number of rate requests; the audio
thread publishes which session it is rendering and how many rate
changes it has applied, each as a single attribute assignment.
"""

from __future__ import annotations

import logging
import math
import queue
import threading

import numpy as np

from spiral_groove.dsp import resample_to_rate
from spiral_groove.errors import PlaybackError
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
from spiral_groove.playback.config import PlaybackConfig, PlaybackState

logger = logging.getLogger(__name__)


class GrooveEngine:
    """Block-based reader over a private copy of a sample buffer.

    Example:
        engine = GrooveEngine()
        engine.load(audio.left, audio.right, sample_rate=audio.sample_rate)
        engine.set_advance(audio.sample_rate / 44100)
        block = engine.process()          # (128, 2) float32
        report = engine.latest_report()
    """

    def __init__(self, config: PlaybackConfig | None = None):
        self.config = config or PlaybackConfig()

        self._control = ControlChannel()
        self._reports = ReportSlot()
        self._events: queue.SimpleQueue[EngineEvent] = queue.SimpleQueue()

        # Control-side state, guarded by _lock. The audio thread never takes it.
        self._lock = threading.Lock()
        self._control_state = PlaybackState.IDLE
        self._session = 0
        self._rate_requests = 0

        # Written only by the audio thread, read by the control side.
        self._audio_status: tuple[int, PlaybackState | None] = (0, None)
        self._rate_applied = 0

        # Audio-thread state; only process() touches these.
        self._left: np.ndarray | None = None
        self._right: np.ndarray | None = None
        self._pos = 0.0
        self._advance = 1.0
        self._tick = 0
        self._ended = False
        self._audio_session = 0

    # =========================================================================
    # Control side
    # =========================================================================

    @property
    def state(self) -> PlaybackState:
        """Current session state."""
        with self._lock:
            control = self._control_state
            session = self._session
            requests = self._rate_requests
        seen, audio_state = self._audio_status
        if control != PlaybackState.LOADED:
            return control
        if seen != session or audio_state is None:
            return PlaybackState.LOADED
        if audio_state == PlaybackState.PLAYING and self._rate_applied < requests:
            return PlaybackState.RATE_ADJUSTING
        return audio_state

    @property
    def position(self) -> float:
        """Read position as last written by the audio thread (fractional index)."""
        return self._pos

    def load(
        self,
        left: np.ndarray,
        right: np.ndarray | None = None,
        sample_rate: int | None = None,
        start_position: float = 0.0,
        advance: float = 1.0,
    ) -> int:
        """
        Hand a buffer to the engine.

        The engine keeps its own copy. Buffers below the configured
        minimum sample rate are upsampled once here, so the audio thread
        never resamples.

        Args:
            left: Left (or mono) samples
            right: Optional right samples
            sample_rate: Rate of the given buffers; None skips the floor check
            start_position: Initial read position (fractional sample index
                at the returned rate)
            advance: Initial advance rate

        Returns:
            Sample rate of the buffer the engine will play

        Raises:
            PlaybackError: If the buffer is empty
        """
        left = np.asarray(left, dtype=np.float32).reshape(-1)
        if len(left) == 0:
            raise PlaybackError("Cannot load an empty buffer")
        if right is not None:
            right = np.asarray(right, dtype=np.float32).reshape(-1)
            if len(right) != len(left):
                raise PlaybackError(
                    f"Channel lengths differ: {len(left)} != {len(right)}",
                    details={"left": len(left), "right": len(right)},
                )

        rate = sample_rate
        floor = self.config.min_sample_rate
        if sample_rate is not None and sample_rate < floor:
            logger.debug(f"Upsampling {sample_rate}Hz -> {floor}Hz")
            left = resample_to_rate(left, sample_rate, floor).astype(np.float32)
            if right is not None:
                right = resample_to_rate(right, sample_rate, floor).astype(np.float32)
            start_position = start_position * floor / sample_rate
            rate = floor
        else:
            left = left.copy()
            right = right.copy() if right is not None else None

        with self._lock:
            self._session += 1
            session = self._session
            self._control_state = PlaybackState.LOADED
        self._reports.clear()
        self._control.send(
            LoadCommand(left, right, float(start_position), float(advance), session)
        )
        return rate

    def set_advance(self, advance: float) -> None:
        """
        Change the advance rate. Applies at the next block boundary.

        Any sign and magnitude is accepted.
        """
        with self._lock:
            self._rate_requests += 1
        self._control.send(AdvanceCommand(float(advance)))

    def seek(self, position: float) -> None:
        """Move the read position (fractional sample index). Clamped to the buffer."""
        self._control.send(SeekCommand(float(position)))

    def stop(self) -> None:
        """Release the buffer at the next block boundary."""
        self._control.send(StopCommand())

    def release(self) -> None:
        """
        Drop the buffer immediately and discard queued commands.

        Only call this when no output is pulling blocks; it touches
        audio-side state directly.
        """
        for _ in self._control.drain():
            pass
        self._left = None
        self._right = None
        ended = self.state == PlaybackState.ENDED
        with self._lock:
            self._rate_applied = self._rate_requests
            if not ended:
                self._control_state = PlaybackState.STOPPED

    def reset(self) -> None:
        """Return an ended or stopped session to IDLE."""
        if self.state in (PlaybackState.ENDED, PlaybackState.STOPPED):
            with self._lock:
                self._control_state = PlaybackState.IDLE
        self._reports.clear()

    def latest_report(self) -> PositionReport | None:
        """Most recent position report, if any. Older ones are discarded."""
        return self._reports.latest()

    def read_report(self) -> tuple[PositionReport | None, int]:
        """Most recent report and the number of reports published so far."""
        return self._reports.read()

    def poll_events(self) -> list[EngineEvent]:
        """Drain edge events emitted by the audio thread."""
        events = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    # =========================================================================
    # Audio side
    # =========================================================================

    def process(self, frames: int | None = None) -> np.ndarray:
        """
        Render one block.

        Args:
            frames: Frames to render (defaults to config.block_size)

        Returns:
            float32 array of shape (frames, channels)
        """
        frames = frames or self.config.block_size
        out = np.zeros((frames, self.config.channels), dtype=np.float32)

        self._apply_commands()

        left = self._left
        if left is None or self._ended:
            return out

        playing = (self._audio_session, PlaybackState.PLAYING)
        if self._audio_status != playing:
            self._audio_status = playing

        n = len(left)
        start = self._pos
        last = start + self._advance * (frames - 1)
        if 0.0 <= min(start, last) and max(start, last) < n - 1:
            self._render_fast(out, frames)
            exhausted = False
        else:
            exhausted = self._render_slow(out, frames)

        if not exhausted and self._advance >= 0 and self._pos >= n - 1:
            exhausted = True

        self._tick += 1
        if exhausted:
            self._finish(out)
        elif self._tick % self.config.report_interval == 0:
            self._reports.publish(
                PositionReport(
                    position=self._normalized_position(),
                    amplitude=_rms(out[:, 0]),
                    block=self._tick,
                )
            )
        return out

    def _apply_commands(self) -> None:
        for command in self._control.drain():
            if isinstance(command, LoadCommand):
                self._left = command.left
                self._right = command.right
                self._pos = command.start_position
                self._advance = command.advance
                self._tick = 0
                self._ended = False
                self._audio_session = command.session
            elif isinstance(command, AdvanceCommand):
                self._advance = command.advance
                self._rate_applied += 1
            elif isinstance(command, SeekCommand):
                if self._left is not None:
                    self._pos = min(max(command.position, 0.0), len(self._left) - 1)
                    self._ended = False
            elif isinstance(command, StopCommand):
                self._left = None
                self._right = None
                self._audio_status = (self._audio_session, PlaybackState.STOPPED)

    def _render_fast(self, out: np.ndarray, frames: int) -> None:
        """Whole block lies inside the buffer: vectorized interpolation."""
        positions = self._pos + self._advance * np.arange(frames)
        idx = positions.astype(np.int64)
        frac = (positions - idx).astype(np.float32)
        self._write(out, slice(None), idx, frac)
        self._pos += self._advance * frames

    def _render_slow(self, out: np.ndarray, frames: int) -> bool:
        """Per-frame rendering near the buffer edges. Returns True on forward exhaustion."""
        n = len(self._left)
        for i in range(frames):
            p = self._pos
            if p < 0:
                # Clamp, emit silence, do not wrap.
                self._pos = 0.0
                continue
            if p >= n - 1:
                if self._advance >= 0:
                    return True
                self._pos += self._advance
                continue
            j = int(p)
            self._write(out, i, j, np.float32(p - j))
            self._pos += self._advance
        return False

    def _write(self, out: np.ndarray, at, idx, frac) -> None:
        left = self._left
        out[at, 0] = left[idx] + frac * (left[idx + 1] - left[idx])
        if out.shape[1] > 1:
            right = self._right if self._right is not None else left
            out[at, 1] = right[idx] + frac * (right[idx + 1] - right[idx])

    def _finish(self, out: np.ndarray) -> None:
        """Publish the final report and the ended event exactly once."""
        self._ended = True
        self._reports.publish(
            PositionReport(position=1.0, amplitude=_rms(out[:, 0]), block=self._tick)
        )
        self._audio_status = (self._audio_session, PlaybackState.ENDED)
        # State first, so a listener reacting to ENDED sees it.
        self._events.put(EngineEvent.ENDED)

    def _normalized_position(self) -> float:
        n = len(self._left)
        if n <= 1:
            return 1.0
        return min(1.0, max(0.0, self._pos / (n - 1)))


def _rms(block: np.ndarray) -> float:
    if len(block) == 0:
        return 0.0
    return math.sqrt(float(np.mean(np.square(block, dtype=np.float64))))
