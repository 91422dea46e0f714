"""
Audio output backends.

A backend pulls blocks from a GrooveEngine on its own schedule:

- SoundDeviceOutput: real-time PortAudio stream via sounddevice; the
  stream callback is the audio thread.
- OfflineOutput: renders blocks synchronously on demand. Used for
  tests, exports and anywhere no audio device is available.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

from spiral_groove.errors import PlaybackError
from spiral_groove.playback.config import PlaybackState
from spiral_groove.playback.engine import GrooveEngine

logger = logging.getLogger(__name__)


class AudioOutput(ABC):
    """Base class for output backends."""

    name: str = "output"

    @abstractmethod
    def start(self, engine: GrooveEngine) -> None:
        """
        Begin pulling blocks from the engine.

        Raises:
            PlaybackError: If the backend cannot be opened
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop pulling blocks and release the backend. Safe to call twice."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether the backend is currently pulling blocks."""


class OfflineOutput(AudioOutput):
    """Synchronous output that renders only when asked.

    Example:
        output = OfflineOutput()
        player = GroovePlayer(output=output, monitor=False)
        player.start(audio)
        output.render_until_ended()
        recorded = output.recorded()
    """

    name = "offline"

    def __init__(self, keep_audio: bool = True):
        self.keep_audio = keep_audio
        self._engine: GrooveEngine | None = None
        self._blocks: list[np.ndarray] = []
        self.blocks_rendered = 0

    @property
    def active(self) -> bool:
        return self._engine is not None

    def start(self, engine: GrooveEngine) -> None:
        self._engine = engine
        self._blocks = []
        self.blocks_rendered = 0

    def stop(self) -> None:
        self._engine = None

    def render(self, blocks: int = 1) -> np.ndarray:
        """
        Render a number of blocks.

        Returns:
            The rendered audio, (frames, channels)

        Raises:
            PlaybackError: If the output has not been started
        """
        engine = self._engine
        if engine is None:
            raise PlaybackError("Offline output is not started", backend=self.name)
        rendered = []
        for _ in range(blocks):
            rendered.append(engine.process())
            self.blocks_rendered += 1
        if self.keep_audio:
            self._blocks.extend(rendered)
        return _join(rendered, engine.config.channels)

    def render_until_ended(self, max_blocks: int = 1_000_000) -> int:
        """
        Render until the engine reports the end of the buffer.

        Returns:
            Number of blocks rendered by this call
        """
        engine = self._engine
        if engine is None:
            raise PlaybackError("Offline output is not started", backend=self.name)
        count = 0
        # A monitor thread may stop this output concurrently; keep the engine.
        while count < max_blocks and engine.state not in (
            PlaybackState.ENDED,
            PlaybackState.STOPPED,
            PlaybackState.IDLE,
        ):
            block = engine.process()
            if self.keep_audio:
                self._blocks.append(block)
            self.blocks_rendered += 1
            count += 1
        return count

    def recorded(self) -> np.ndarray:
        """All audio kept since start()."""
        channels = self._engine.config.channels if self._engine else 2
        return _join(self._blocks, channels)


class SoundDeviceOutput(AudioOutput):
    """Real-time output through a sounddevice OutputStream."""

    name = "sounddevice"

    def __init__(self, device: int | str | None = None):
        self.device = device
        self._stream = None

    @property
    def active(self) -> bool:
        return self._stream is not None and bool(self._stream.active)

    def start(self, engine: GrooveEngine) -> None:
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise PlaybackError(
                f"Audio output unavailable: {e}",
                backend=self.name,
            ) from e

        config = engine.config

        def callback(outdata, frames, time_info, status):
            outdata[:] = engine.process(frames)

        try:
            stream = sd.OutputStream(
                samplerate=config.output_rate,
                blocksize=config.block_size,
                channels=config.channels,
                dtype="float32",
                device=self.device,
                callback=callback,
            )
            stream.start()
        except Exception as e:
            raise PlaybackError(
                f"Could not open audio stream: {e}",
                backend=self.name,
                details={"device": self.device, "rate": config.output_rate},
            ) from e

        self._stream = stream
        logger.debug(
            f"Opened output stream: {config.output_rate}Hz, "
            f"{config.block_size} frames, {config.channels} ch"
        )

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


def _join(blocks: list[np.ndarray], channels: int) -> np.ndarray:
    if not blocks:
        return np.zeros((0, channels), dtype=np.float32)
    return np.concatenate(blocks, axis=0)
