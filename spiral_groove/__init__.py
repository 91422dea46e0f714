"""
Spiral Groove - audio as a geometric spiral record.

Architecture:
    samples → Encoder → (descriptor, spiral points) → SVG document
    SVG document → Decoder → samples → Player → audio output

Public API (stable):
    encode          - Samples -> EncodedGroove (points + descriptor)
    decode          - Groove document -> DecodedAudio
    EncoderConfig   - Quality, turns, sensitivity, disc geometry
    DiscGeometry    - Center and groove radii
    GroovePlayer    - Variable-rate playback with scratch support

Subpackages:
    dsp             - Filters, shelving EQ, limiter, companding, resamplers
    codec           - Descriptor, quantizer, SVG container, encoder, decoder
    playback        - Engine, player, output backends, turntable physics
    monitoring      - Structured session event logging
    adapters        - Audio file I/O and the `spiral-groove` CLI
    testing         - AudioAssertions for decoded audio

Example:
    from spiral_groove import encode, decode

    groove = encode(samples, sample_rate=44100)
    svg_text = groove.to_svg()
    audio = decode(svg_text)
"""

__version__ = "1.0.0"

from spiral_groove.config import DiscGeometry, EncoderConfig, QUALITY_LEVELS, get_quality
from spiral_groove.errors import ConfigError, FormatError, GrooveError, PlaybackError
from spiral_groove.codec import (
    DecodedAudio,
    EncodedGroove,
    GeometryDescriptor,
    GrooveDecoder,
    GrooveEncoder,
    decode,
    encode,
)
from spiral_groove.playback import GroovePlayer, PlaybackConfig, TurntableController

__all__ = [
    "__version__",
    # Config
    "DiscGeometry",
    "EncoderConfig",
    "QUALITY_LEVELS",
    "get_quality",
    # Errors
    "GrooveError",
    "ConfigError",
    "FormatError",
    "PlaybackError",
    # Codec
    "encode",
    "decode",
    "EncodedGroove",
    "DecodedAudio",
    "GeometryDescriptor",
    "GrooveEncoder",
    "GrooveDecoder",
    # Playback
    "GroovePlayer",
    "PlaybackConfig",
    "TurntableController",
]
