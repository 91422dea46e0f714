"""
Structured event logging for spiral groove sessions.

Codec modules log plain lines through the standard `logging` module.
Session-level events (a groove starting, ending or failing to play, a
file being encoded) go through StructuredLogger so they can be emitted
as JSON lines and filtered by event name.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, TextIO


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def numeric(self) -> int:
        """Get numeric log level."""
        return {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
        }[self.value]


@dataclass
class LogRecord:
    """A structured log record.

    Attributes:
        level: Log level.
        event: Event name, e.g. "playback_start".
        message: Human-readable message.
        timestamp: Unix timestamp.
        data: Additional structured data.
    """

    level: str
    event: str
    message: str = ""
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)

    logger_name: str = ""
    thread_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a single dictionary (data keys at top level)."""
        d = asdict(self)
        d.update(d.pop("data", {}))
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredLogger:
    """Event logger with JSON or human-readable output.

    Example:
        log = StructuredLogger("spiral_groove.player", json_format=False)
        session = log.bind(session_id=3)
        session.playback_start(duration_s=2.0, sample_rate=44100, stereo=False)

        # [2026-01-01 12:00:00] [INFO] [playback_start] Playback started
        #   (session_id=3 duration_s=2.0 sample_rate=44100 stereo=False)
    """

    def __init__(
        self,
        name: str = "spiral_groove",
        level: LogLevel = LogLevel.INFO,
        output: TextIO | None = None,
        json_format: bool = True,
    ):
        """Initialize the logger.

        Args:
            name: Logger name.
            level: Minimum log level.
            output: Output stream (default: stderr).
            json_format: Output as JSON (vs. human-readable).
        """
        self.name = name
        self._level = level
        self._output = output
        self._json_format = json_format
        self._context: dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def level(self) -> LogLevel:
        return self._level

    def bind(self, **context: Any) -> "StructuredLogger":
        """Create a new logger that adds context to every record."""
        bound = StructuredLogger(
            name=self.name,
            level=self._level,
            output=self._output,
            json_format=self._json_format,
        )
        bound._context = {**self._context, **context}
        return bound

    def _log(self, level: LogLevel, event: str, message: str = "", **data: Any) -> None:
        if level.numeric < self._level.numeric:
            return

        record = LogRecord(
            level=level.value,
            event=event,
            message=message,
            data={**self._context, **data},
            logger_name=self.name,
            thread_name=threading.current_thread().name,
        )
        self._emit(record)

    def _emit(self, record: LogRecord) -> None:
        # Resolve stderr late so pytest's capsys sees the output.
        output = self._output or sys.stderr
        with self._lock:
            line = record.to_json() if self._json_format else self._format_human(record)
            print(line, file=output)

    def _format_human(self, record: LogRecord) -> str:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.timestamp))
        parts = [f"[{timestamp}]", f"[{record.level.upper()}]", f"[{record.event}]"]
        if record.message:
            parts.append(record.message)
        if record.data:
            parts.append("(" + " ".join(f"{k}={v}" for k, v in record.data.items()) + ")")
        return " ".join(parts)

    def debug(self, event: str, message: str = "", **data: Any) -> None:
        """Log at DEBUG level."""
        self._log(LogLevel.DEBUG, event, message, **data)

    def info(self, event: str, message: str = "", **data: Any) -> None:
        """Log at INFO level."""
        self._log(LogLevel.INFO, event, message, **data)

    def warning(self, event: str, message: str = "", **data: Any) -> None:
        """Log at WARNING level."""
        self._log(LogLevel.WARNING, event, message, **data)

    def error(self, event: str, message: str = "", **data: Any) -> None:
        """Log at ERROR level."""
        self._log(LogLevel.ERROR, event, message, **data)

    # Session events

    def playback_start(
        self,
        duration_s: float,
        sample_rate: int,
        stereo: bool = False,
        rate: float = 1.0,
        **extra: Any,
    ) -> None:
        """Log the start of a playback session."""
        self.info(
            "playback_start",
            "Playback started",
            duration_s=round(duration_s, 3),
            sample_rate=sample_rate,
            stereo=stereo,
            rate=rate,
            **extra,
        )

    def playback_end(self, reason: str, progress: float = 0.0, **extra: Any) -> None:
        """Log the end of a playback session ("ended" or "stopped")."""
        self.info(
            "playback_end",
            f"Playback {reason}",
            reason=reason,
            progress=round(progress, 4),
            **extra,
        )

    def playback_error(self, error: Exception, **extra: Any) -> None:
        """Log a playback failure."""
        self.error(
            "playback_error",
            str(error),
            error_type=type(error).__name__,
            **extra,
        )

    def groove_encoded(self, vertices: int, turns: float, k: float, **extra: Any) -> None:
        """Log a finished encode."""
        self.info(
            "groove_encoded",
            f"Encoded {vertices} vertices",
            vertices=vertices,
            turns=turns,
            k=round(k, 6),
            **extra,
        )

    def groove_decoded(self, samples: int, sample_rate: int, stereo: bool, **extra: Any) -> None:
        """Log a finished decode."""
        self.info(
            "groove_decoded",
            f"Decoded {samples} samples",
            samples=samples,
            sample_rate=sample_rate,
            stereo=stereo,
            **extra,
        )


_global_logger: StructuredLogger | None = None


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> StructuredLogger:
    """Configure the global event logger and the standard library root level.

    Args:
        level: Log level.
        output: Output stream.
        json_format: Use JSON format.

    Returns:
        Configured logger.
    """
    global _global_logger

    if isinstance(level, str):
        level = LogLevel(level.lower())

    logging.getLogger("spiral_groove").setLevel(level.numeric)
    _global_logger = StructuredLogger(
        name="spiral_groove",
        level=level,
        output=output,
        json_format=json_format,
    )
    return _global_logger


def get_logger(name: str = "spiral_groove") -> StructuredLogger:
    """Get the global event logger, creating a default one if needed."""
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name)
    return _global_logger
