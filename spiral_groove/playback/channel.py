"""
Message passing between the control thread and the audio thread.

Two directions, two disciplines:

- Control -> audio: an ordered single-producer/single-consumer queue of
  commands. The audio side drains it only between processing blocks, so
  a block never observes half of a load or a rate change.
- Audio -> control: a single overwritable slot holding the latest
  position report, plus a small event queue for edge events such as
  "ended". Old reports are simply replaced. Neither side of the slot
  takes a lock: the audio thread is its only writer and swaps in a
  whole (report, version) tuple in one assignment.
"""

from __future__ import annotations

import queue
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

import numpy as np


@dataclass(frozen=True)
class LoadCommand:
    """Hand a buffer over to the engine."""

    left: np.ndarray
    right: np.ndarray | None
    start_position: float = 0.0
    advance: float = 1.0
    session: int = 0

@dataclass(frozen=True)
class AdvanceCommand:
    """Change the advance rate (samples per output frame)."""

    advance: float


@dataclass(frozen=True)
class SeekCommand:
    """Move the read position (fractional sample index)."""

    position: float


@dataclass(frozen=True)
class StopCommand:
    """Release the buffer and render silence."""


Command = Union[LoadCommand, AdvanceCommand, SeekCommand, StopCommand]


class ControlChannel:
    """Ordered command queue from the control thread to the audio thread."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Command] = queue.SimpleQueue()

    def send(self, command: Command) -> None:
        """Enqueue a command. Never blocks."""
        self._queue.put(command)

    def drain(self) -> Iterator[Command]:
        """Yield every pending command in send order."""
        while True:
            try:
                yield self._queue.get_nowait()
            except queue.Empty:
                return

    @property
    def pending(self) -> bool:
        return not self._queue.empty()


@dataclass(frozen=True)
class PositionReport:
    """Position and level published by the audio thread.

    Attributes:
        position: Normalized position in [0, 1].
        amplitude: RMS of the most recent block (left channel).
        block: Index of the block that produced the report.
    """

    position: float
    amplitude: float
    block: int


class ReportSlot:
    """Latest-value slot. Writers overwrite, readers never wait for a new value."""

    def __init__(self) -> None:
        self._slot: tuple[PositionReport | None, int] = (None, 0)

    def publish(self, report: PositionReport) -> None:
        self._slot = (report, self._slot[1] + 1)

    def latest(self) -> PositionReport | None:
        return self._slot[0]

    def read(self) -> tuple[PositionReport | None, int]:
        """Latest report and how many reports were published so far."""
        return self._slot

    def clear(self) -> None:
        self._slot = (None, self._slot[1])


class EngineEvent(Enum):
    """Edge events emitted by the audio thread."""

    ENDED = "ended"
    """Forward playback exhausted the buffer."""
