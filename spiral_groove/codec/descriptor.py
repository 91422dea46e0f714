"""
Geometry descriptor - the key/value record stored next to the groove.

The descriptor is the only place where encode-time parameters needed
for exact decoding are recorded. It is written as `key=value` pairs
separated by `;` and parsed order-insensitively; unknown keys are kept
in `extra` and otherwise ignored.

Version history:
    v1  sr, Rout, Rin, turns, k, originalLength, mulaw=1, preemph=1
    v2  adds v, cx, cy, riaa/riaaHz/riaaDb, scale, stereo, srcSr (optional)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from spiral_groove.config import DESCRIPTOR_VERSION
from spiral_groove.errors import FormatError

DESCRIPTOR_PREFIX = "Geometry-only spiral audio."

_PAIR_RE = re.compile(r"([A-Za-z][A-Za-z0-9_]*)\s*=\s*([^;\s]+)")


class EmphasisMode(Enum):
    """Which emphasis curve the encoder applied."""

    NONE = "none"
    """No emphasis; decode skips de-emphasis."""

    SHELF = "shelf"
    """High-shelf biquad ("RIAA shelf"); decode applies the inverse shelf."""

    LEGACY = "legacy"
    """First-order pre-emphasis from older grooves; decode applies the one-pole inverse."""


@dataclass(frozen=True)
class Emphasis:
    """Emphasis variant with the parameters each variant needs."""

    mode: EmphasisMode = EmphasisMode.NONE
    corner_hz: float = 1000.0
    gain_db: float = 20.0

    @classmethod
    def shelf(cls, corner_hz: float = 1000.0, gain_db: float = 20.0) -> "Emphasis":
        return cls(EmphasisMode.SHELF, corner_hz, gain_db)

    @classmethod
    def legacy(cls) -> "Emphasis":
        return cls(EmphasisMode.LEGACY)


@dataclass
class GeometryDescriptor:
    """Encode-time parameters of a groove.

    Every field is optional on the way in; decoders fall back to
    estimation or defaults for whatever is missing.

    Attributes:
        sample_rate: Effective (post-decimation) sample rate.
        r_out: Groove start radius.
        r_in: Groove end radius.
        turns: Number of revolutions.
        k: Companding gain (max radial deviation).
        original_length: Sample count before decimation.
        source_rate: Sample rate of the audio before decimation.
        cx: Center x in drawing units.
        cy: Center y in drawing units.
        companding: Whether mu-law was applied.
        emphasis: Emphasis variant.
        coordinate_scale: Integer factor applied to stored coordinates.
        stereo: Whether the groove carries mid/side.
        version: Descriptor format version.
        extra: Unrecognized keys, kept verbatim.
    """

    sample_rate: int | None = None
    r_out: float | None = None
    r_in: float | None = None
    turns: float | None = None
    k: float | None = None
    original_length: int | None = None
    source_rate: int | None = None
    cx: float | None = None
    cy: float | None = None
    companding: bool = False
    emphasis: Emphasis = field(default_factory=Emphasis)
    coordinate_scale: int = 1
    stereo: bool = False
    version: int = 1
    extra: dict[str, str] = field(default_factory=dict)

    def to_text(self) -> str:
        """Serialize to the descriptor text written into groove documents."""
        pairs: list[tuple[str, str]] = [("v", str(self.version))]

        if self.sample_rate is not None:
            pairs.append(("sr", str(int(self.sample_rate))))
        if self.r_out is not None:
            pairs.append(("Rout", _fmt(self.r_out)))
        if self.r_in is not None:
            pairs.append(("Rin", _fmt(self.r_in)))
        if self.turns is not None:
            pairs.append(("turns", _fmt(self.turns)))
        if self.k is not None:
            pairs.append(("k", f"{self.k:.6f}"))
        if self.original_length is not None:
            pairs.append(("originalLength", str(int(self.original_length))))
        if self.source_rate is not None:
            pairs.append(("srcSr", str(int(self.source_rate))))
        if self.cx is not None:
            pairs.append(("cx", _fmt(self.cx)))
        if self.cy is not None:
            pairs.append(("cy", _fmt(self.cy)))

        pairs.append(("mulaw", "1" if self.companding else "0"))

        if self.emphasis.mode == EmphasisMode.SHELF:
            pairs.append(("riaa", "1"))
            pairs.append(("riaaHz", _fmt(self.emphasis.corner_hz)))
            pairs.append(("riaaDb", _fmt(self.emphasis.gain_db)))
        elif self.emphasis.mode == EmphasisMode.LEGACY:
            pairs.append(("preemph", "1"))

        pairs.append(("scale", str(int(self.coordinate_scale))))
        pairs.append(("stereo", "1" if self.stereo else "0"))

        body = "; ".join(f"{key}={value}" for key, value in pairs)
        return f"{DESCRIPTOR_PREFIX} {body}."

    @classmethod
    def parse(cls, text: str | None) -> "GeometryDescriptor":
        """
        Parse descriptor text.

        Accepts fields in any order, ignores unrecognized keys and
        tolerates every optional field being absent (including an empty
        or missing descriptor).

        Raises:
            FormatError: If a recognized field holds an unparsable value
        """
        values: dict[str, str] = {}
        for key, raw in _PAIR_RE.findall(text or ""):
            # A trailing period closes the sentence, it is not part of the value.
            values[key] = raw.rstrip(".") or raw

        known = {
            "v", "sr", "Rout", "Rin", "turns", "k", "originalLength", "srcSr", "cx", "cy",
            "mulaw", "riaa", "riaaHz", "riaaDb", "preemph", "scale", "stereo",
        }

        emphasis = Emphasis()
        if _flag(values, "riaa"):
            emphasis = Emphasis.shelf(
                corner_hz=_number(values, "riaaHz", 1000.0),
                gain_db=_number(values, "riaaDb", 20.0),
            )
        elif _flag(values, "preemph"):
            emphasis = Emphasis.legacy()

        scale = _integer(values, "scale", 1)
        if scale < 1:
            raise FormatError(f"Invalid coordinate scale: {scale}", element="desc")

        return cls(
            sample_rate=_integer(values, "sr", None),
            r_out=_number(values, "Rout", None),
            r_in=_number(values, "Rin", None),
            turns=_number(values, "turns", None),
            k=_number(values, "k", None),
            original_length=_integer(values, "originalLength", None),
            source_rate=_integer(values, "srcSr", None),
            cx=_number(values, "cx", None),
            cy=_number(values, "cy", None),
            companding=_flag(values, "mulaw"),
            emphasis=emphasis,
            coordinate_scale=scale,
            stereo=_flag(values, "stereo"),
            version=_integer(values, "v", 1),
            extra={k: v for k, v in values.items() if k not in known},
        )


def _fmt(value: float) -> str:
    return f"{value:.10g}"


def _number(values: dict[str, str], key: str, default):
    if key not in values:
        return default
    try:
        return float(values[key])
    except ValueError:
        raise FormatError(
            f"Unparsable descriptor value {key}={values[key]!r}",
            element="desc",
        ) from None


def _integer(values: dict[str, str], key: str, default):
    number = _number(values, key, None)
    if number is None:
        return default
    return int(round(number))


def _flag(values: dict[str, str], key: str) -> bool:
    number = _number(values, key, 0.0)
    return number != 0.0
