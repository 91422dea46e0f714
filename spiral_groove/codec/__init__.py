"""
Spiral groove codec.

Encodes sample buffers into quantized spiral coordinates plus a
geometry descriptor, and decodes them back.

Example:
    from spiral_groove.codec import encode, decode

    groove = encode(samples, sample_rate=44100)
    audio = decode(groove.to_svg())
"""

from spiral_groove.codec.descriptor import (
    DESCRIPTOR_PREFIX,
    Emphasis,
    EmphasisMode,
    GeometryDescriptor,
)
from spiral_groove.codec.quantize import diffuse_round, quantize_points, rounding_error
from spiral_groove.codec.svg import Circle, GrooveDocument, parse_points, parse_svg, render_svg
from spiral_groove.codec.encoder import EncodedGroove, GrooveEncoder, encode
from spiral_groove.codec.decoder import (
    DecodedAudio,
    GrooveDecoder,
    decode,
    estimate_k,
    estimate_turns,
)

__all__ = [
    # Descriptor
    "DESCRIPTOR_PREFIX",
    "Emphasis",
    "EmphasisMode",
    "GeometryDescriptor",
    # Quantization
    "diffuse_round",
    "quantize_points",
    "rounding_error",
    # Document
    "Circle",
    "GrooveDocument",
    "parse_points",
    "parse_svg",
    "render_svg",
    # Encode / decode
    "EncodedGroove",
    "GrooveEncoder",
    "encode",
    "DecodedAudio",
    "GrooveDecoder",
    "decode",
    "estimate_k",
    "estimate_turns",
]
