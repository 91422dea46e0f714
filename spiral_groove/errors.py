"""
Groove Errors - Domain-specific error types.

Error hierarchy:
    GrooveError (base)
    ├── ConfigError     (degenerate geometry, bad quality/turns)
    ├── FormatError     (missing groove data, unparsable document)
    └── PlaybackError   (output backend unavailable, invalid session use)

Estimation fallbacks (missing k, missing turns) are NOT errors; the
decoder substitutes a best-effort estimate and keeps going.
"""

from __future__ import annotations

from typing import Any


class GrooveError(Exception):
    """Base error for all spiral groove errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(GrooveError, ValueError):
    """
    Raised for invalid configuration, before any computation starts.

    Examples:
    - Outer radius not greater than inner radius
    - Non-positive turn count or sensitivity
    - Quality level outside 1..5
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class FormatError(GrooveError, ValueError):
    """
    Raised when a groove document cannot be decoded.

    Decoding aborts and no partial buffer is returned.
    """

    def __init__(
        self,
        message: str,
        element: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.element = element


class PlaybackError(GrooveError, RuntimeError):
    """
    Raised when a playback session cannot be started or used.

    The player reports these once through its error callback and
    returns to the idle state.
    """

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.backend = backend
