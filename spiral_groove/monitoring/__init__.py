"""
Monitoring for spiral groove sessions.

Components:
    StructuredLogger - JSON / human-readable session event logging

Example:
    from spiral_groove.monitoring import configure_logging

    log = configure_logging("debug", json_format=False)
    log.playback_start(duration_s=2.0, sample_rate=44100)
"""

from spiral_groove.monitoring.logging import (
    LogLevel,
    LogRecord,
    StructuredLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "LogLevel",
    "LogRecord",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]
