"""
Groove Decoder - spiral coordinates back to sample buffers.

The decode pipeline mirrors the encoder in reverse:

    descriptor -> unscale -> project (radial / tangential)
        -> mu-law expand -> de-emphasis -> Lanczos-3 upsample
        -> DC removal -> normalization -> fade

Anything the descriptor does not record is estimated rather than
treated as an error: turns are recovered by unwrapping the point
angles, k from the median radial deviation near the start of the
groove, and Rout/Rin from the disc circles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from spiral_groove.codec.descriptor import EmphasisMode, GeometryDescriptor
from spiral_groove.codec.svg import Circle, GrooveDocument, parse_svg
from spiral_groove.config import (
    DEFAULT_SAMPLE_RATE,
    DISC_MARGIN,
    K_WINDOW_MAX,
    MAD_SCALE,
    MIN_ESTIMATED_K,
    MIN_INNER_CIRCLE,
    MIN_RECOVERED_ROUT,
    TAU,
    DiscGeometry,
)
from spiral_groove.dsp import (
    anti_alias_filter,
    apply_fade,
    de_emphasis,
    gaussian_smooth,
    high_shelf_biquad,
    lanczos3_resample,
    mu_law_expand,
    normalize_joint_peak,
    normalize_peak,
    remove_dc,
)
from spiral_groove.errors import ConfigError, FormatError

logger = logging.getLogger(__name__)


@dataclass
class DecodedAudio:
    """Result of decoding.

    Attributes:
        left: Left (or mono) samples.
        right: Right samples, or None for mono grooves.
        sample_rate: Sample rate of the returned buffers.
        geometry: Disc layout the decoder resolved.
        turns: Turn count used to compute angles.
        estimated_turns: Turn count recovered from the points alone.
        vertices: Number of groove points.
        k: Companding gain used.
        k_estimated: True if k was estimated instead of read.
    """

    left: np.ndarray
    right: np.ndarray | None
    sample_rate: int
    geometry: DiscGeometry
    turns: float
    estimated_turns: float
    vertices: int
    k: float
    k_estimated: bool = False
    descriptor: GeometryDescriptor = field(default_factory=GeometryDescriptor)

    @property
    def is_stereo(self) -> bool:
        return self.right is not None

    @property
    def samples(self) -> np.ndarray:
        """Samples as (frames,) for mono or (frames, 2) for stereo."""
        if self.right is None:
            return self.left
        return np.column_stack([self.left, self.right])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.left) / self.sample_rate if self.sample_rate else 0.0


def estimate_turns(points: np.ndarray, cx: float, cy: float) -> float:
    """
    Estimate the number of revolutions by unwrapping point angles.

    Consecutive angle differences are wrapped into [-pi, pi] before
    summing, so the +/-pi boundary never produces a jump.

    Args:
        points: (N, 2) points in drawing units
        cx: Center x
        cy: Center y

    Returns:
        Absolute total angle divided by 2*pi (0.0 for fewer than 2 points)
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(points) < 2:
        return 0.0
    angles = np.arctan2(points[:, 1] - cy, points[:, 0] - cx)
    deltas = np.diff(angles)
    deltas = (deltas + np.pi) % TAU - np.pi
    return float(abs(np.sum(deltas)) / TAU)


def estimate_k(points: np.ndarray, geometry: DiscGeometry) -> float:
    """
    Estimate the companding gain from radial deviation.

    Uses the median absolute deviation of the radius from the nominal
    spiral over the first max(1, min(2000, N // 10)) points.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = len(points)
    if n == 0:
        return MIN_ESTIMATED_K
    window = max(1, min(K_WINDOW_MAX, n // 10))
    t = _arc_positions(n)[:window]
    head = points[:window]
    radius = np.hypot(head[:, 0] - geometry.cx, head[:, 1] - geometry.cy)
    mad = float(np.median(np.abs(radius - geometry.base_radius(t))))
    if not np.isfinite(mad) or mad == 0.0:
        mad = 1.0
    return max(MIN_ESTIMATED_K, mad / MAD_SCALE)


def _arc_positions(n: int) -> np.ndarray:
    if n <= 1:
        return np.zeros(n)
    return np.arange(n) / (n - 1)


class GrooveDecoder:
    """Decodes spiral grooves back into audio.

    Example:
        decoder = GrooveDecoder()
        audio = decoder.decode(svg_text)
        print(audio.sample_rate, audio.duration)
    """

    def __init__(self, defaults: DiscGeometry | None = None):
        """Initialize the decoder.

        Args:
            defaults: Geometry used where neither descriptor nor circles
                say otherwise.
        """
        self.defaults = defaults or DiscGeometry()

    def decode(self, document: str | GrooveDocument) -> DecodedAudio:
        """
        Decode a groove document.

        Args:
            document: SVG text or an already parsed GrooveDocument

        Returns:
            DecodedAudio

        Raises:
            FormatError: If the groove data is missing or malformed
        """
        if isinstance(document, str):
            document = parse_svg(document)
        return self.decode_points(document.descriptor, document.points, document.circles)

    def decode_points(
        self,
        descriptor: GeometryDescriptor,
        points: np.ndarray,
        circles: Sequence[Circle] = (),
    ) -> DecodedAudio:
        """
        Decode points as stored (scaled) using a descriptor.

        Args:
            descriptor: Parsed descriptor; missing fields are estimated
            points: (N, 2) coordinates as stored in the document
            circles: Disc circles in document units, outer first

        Returns:
            DecodedAudio

        Raises:
            FormatError: If there are no points or the recovered geometry
                is degenerate
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        n = len(points)
        if n == 0:
            raise FormatError("missing groove data: no points", element="polyline")

        scale = descriptor.coordinate_scale
        world = points / scale
        geometry = self._resolve_geometry(descriptor, circles, scale)

        estimated = estimate_turns(world, geometry.cx, geometry.cy)
        turns = descriptor.turns if descriptor.turns and descriptor.turns > 0 else estimated

        if descriptor.k and descriptor.k > 0:
            k, k_estimated = float(descriptor.k), False
        else:
            k, k_estimated = estimate_k(world, geometry), True
            logger.debug(f"Descriptor has no k; estimated k={k:.4f}")

        t = _arc_positions(n)
        theta = t * turns * TAU
        dx = world[:, 0] - geometry.cx
        dy = world[:, 1] - geometry.cy

        if descriptor.stereo:
            cos_t = np.cos(theta)
            sin_t = np.sin(theta)
            radial = dx * cos_t + dy * sin_t
            tangential = -dx * sin_t + dy * cos_t
            raw = [radial - geometry.base_radius(t), tangential]
        else:
            raw = [np.hypot(dx, dy) - geometry.base_radius(t)]

        sample_rate = descriptor.sample_rate or DEFAULT_SAMPLE_RATE
        channels = [self._channel(r / k, descriptor, sample_rate) for r in raw]

        target = descriptor.original_length
        if target and target > 0 and target != n:
            channels = [self._restore_length(ch, target) for ch in channels]
        out_rate = sample_rate
        if target and target > 0 and target != n:
            if descriptor.source_rate and descriptor.source_rate > 0:
                out_rate = int(descriptor.source_rate)
            else:
                # Older grooves: rebuild from the rounded effective rate.
                out_rate = int(round(sample_rate * target / n))

        if descriptor.stereo:
            mid, side = channels
            left, right = normalize_joint_peak([remove_dc(mid + side), remove_dc(mid - side)])
            left, right = apply_fade(left), apply_fade(right)
        else:
            left = apply_fade(normalize_peak(remove_dc(channels[0])))
            right = None

        logger.info(
            f"Decoded {n} vertices -> {len(left)} samples "
            f"({'stereo' if right is not None else 'mono'}, "
            f"{turns:.2f} turns, estimated {estimated:.2f}, k={k:.4f}"
            f"{' (estimated)' if k_estimated else ''}, sr={out_rate}Hz)"
        )

        return DecodedAudio(
            left=left,
            right=right,
            sample_rate=out_rate,
            geometry=geometry,
            turns=turns,
            estimated_turns=estimated,
            vertices=n,
            k=k,
            k_estimated=k_estimated,
            descriptor=descriptor,
        )

    def _resolve_geometry(
        self,
        descriptor: GeometryDescriptor,
        circles: Sequence[Circle],
        scale: int,
    ) -> DiscGeometry:
        """Descriptor first, then circles, then defaults."""
        defaults = self.defaults
        cx, cy = defaults.cx, defaults.cy
        if circles:
            cx = circles[0].cx / scale or defaults.cx
            cy = circles[0].cy / scale or defaults.cy
        if descriptor.cx is not None:
            cx = descriptor.cx
        if descriptor.cy is not None:
            cy = descriptor.cy

        r_out, r_in = defaults.r_out, defaults.r_in
        if len(circles) >= 2:
            outer = circles[0].r / scale or defaults.r_out + DISC_MARGIN
            inner = circles[1].r / scale or defaults.r_in - DISC_MARGIN
            r_out = max(MIN_RECOVERED_ROUT, outer - DISC_MARGIN)
            r_in = max(MIN_INNER_CIRCLE, inner + DISC_MARGIN)
        if descriptor.r_out is not None:
            r_out = descriptor.r_out
        if descriptor.r_in is not None:
            r_in = descriptor.r_in

        try:
            return DiscGeometry(cx=cx, cy=cy, r_out=r_out, r_in=r_in)
        except ConfigError as e:
            raise FormatError(f"Degenerate groove geometry: {e.message}", element="desc") from e

    def _channel(
        self,
        normalized: np.ndarray,
        descriptor: GeometryDescriptor,
        sample_rate: int,
    ) -> np.ndarray:
        """Expand and de-emphasize one channel at the groove rate."""
        values = np.clip(normalized, -1.0, 1.0)
        if descriptor.companding:
            values = mu_law_expand(values)

        emphasis = descriptor.emphasis
        if emphasis.mode == EmphasisMode.SHELF and sample_rate > 2 * emphasis.corner_hz:
            values = high_shelf_biquad(values, sample_rate, -emphasis.gain_db, emphasis.corner_hz)
        elif emphasis.mode == EmphasisMode.SHELF:
            logger.warning(
                f"Skipping de-emphasis: sample rate {sample_rate} Hz is too low "
                f"for a {emphasis.corner_hz:g} Hz corner"
            )
        elif emphasis.mode == EmphasisMode.LEGACY:
            values = gaussian_smooth(de_emphasis(values))
        return values

    def _restore_length(self, channel: np.ndarray, target: int) -> np.ndarray:
        """Upsample (or downsample) to the original sample count."""
        n = len(channel)
        out = lanczos3_resample(channel, target)
        if target > n:
            out = anti_alias_filter(out, target / n)
        return out


def decode(
    document: str | GrooveDocument,
    defaults: DiscGeometry | None = None,
) -> DecodedAudio:
    """
    Decode a groove document into audio.

    Convenience function that creates a decoder with the given defaults.

    Example:
        audio = decode(Path("record.svg").read_text())
        left = audio.left
    """
    return GrooveDecoder(defaults).decode(document)
