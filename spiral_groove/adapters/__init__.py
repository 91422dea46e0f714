"""
Adapters module - I/O surfaces.

Adapters are thin wrappers around the codec and the player. They do no
signal processing of their own, only I/O.
"""

from spiral_groove.adapters.audio_io import (
    load_audio,
    read_groove,
    write_groove,
    write_wav,
)

__all__ = [
    "load_audio",
    "read_groove",
    "write_groove",
    "write_wav",
]
