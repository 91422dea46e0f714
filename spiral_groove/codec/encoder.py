"""
Groove Encoder - sample buffers to quantized spiral coordinates.

Pipeline per channel (mono, or mid and side for stereo):

    anti-alias -> decimate -> soft limit -> shelf pre-emphasis
        -> joint peak limit -> mu-law -> spiral placement
        -> error-diffusion quantization

The vertex count N keeps perceptual bandwidth constant across song
lengths: it follows the quality level's target sample rate, bounded by
the vertex cap and by the number of source samples.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from spiral_groove.codec.descriptor import DESCRIPTOR_VERSION, Emphasis, GeometryDescriptor
from spiral_groove.codec.quantize import quantize_points
from spiral_groove.codec.svg import render_svg
from spiral_groove.config import TAU, DiscGeometry, EncoderConfig
from spiral_groove.dsp import (
    anti_alias_filter,
    decimate,
    high_shelf_biquad,
    limit_joint_peak,
    mu_law_compress,
    soft_limiter,
)
from spiral_groove.errors import ConfigError

logger = logging.getLogger(__name__)

# Rough characters per stored vertex, for the size estimate in the summary.
_BYTES_PER_VERTEX = 12


@dataclass
class EncodedGroove:
    """Result of encoding.

    Attributes:
        descriptor: Everything the decoder needs to invert the pipeline.
        points: (N, 2) int64 coordinates, multiplied by the coordinate scale.
        geometry: Disc layout used for placement.
        summary: One-line human-readable report of the encode.
    """

    descriptor: GeometryDescriptor
    points: np.ndarray
    geometry: DiscGeometry
    summary: str = ""

    @property
    def vertices(self) -> int:
        """Number of groove points."""
        return len(self.points)

    @property
    def is_stereo(self) -> bool:
        return self.descriptor.stereo

    def world_points(self) -> np.ndarray:
        """Points in drawing units, for renderers."""
        return self.points.astype(np.float64) / self.descriptor.coordinate_scale

    def to_svg(self) -> str:
        """Render the persisted groove document."""
        return render_svg(self.descriptor, self.points, self.geometry)


class GrooveEncoder:
    """Encodes audio into a spiral groove.

    Example:
        encoder = GrooveEncoder(EncoderConfig(quality=3, turns=6))
        groove = encoder.encode(samples, sample_rate=44100)
        svg_text = groove.to_svg()
    """

    def __init__(self, config: EncoderConfig | None = None):
        """Initialize the encoder.

        Args:
            config: Optional configuration. Uses defaults if not provided.
        """
        self.config = config or EncoderConfig()

    def target_vertices(self, n_samples: int, sample_rate: float) -> int:
        """Vertex count for a buffer of n_samples at sample_rate."""
        if n_samples <= 0:
            return 0
        quality = self.config.quality_level
        duration = n_samples / sample_rate
        n = min(
            int(round(quality.target_sample_rate * duration)),
            quality.max_vertices,
            n_samples,
        )
        return max(1, n)

    def encode(
        self,
        samples: np.ndarray,
        right: np.ndarray | None = None,
        sample_rate: float = 44100,
    ) -> EncodedGroove:
        """
        Encode one or two channels into groove points.

        Args:
            samples: Left (or mono) samples in [-1, 1]. A (frames, 2)
                array is split into left and right.
            right: Optional right channel; zero-padded or truncated to
                the left length.
            sample_rate: Source sample rate in Hz

        Returns:
            EncodedGroove with descriptor and quantized points

        Raises:
            ConfigError: If the sample rate is not positive or too low
                for the emphasis corner
        """
        config = self.config
        geometry = config.geometry
        if not sample_rate > 0:
            raise ConfigError("sample_rate must be > 0", field="sample_rate", value=sample_rate)

        left, right = _split_channels(samples, right)
        total = len(left)
        k = config.companding_gain()
        stereo = config.stereo and right is not None and not np.array_equal(left, right)

        if total == 0:
            descriptor = self._descriptor(int(round(sample_rate)), k, 0, stereo, sample_rate)
            return EncodedGroove(
                descriptor=descriptor,
                points=np.zeros((0, 2), dtype=np.int64),
                geometry=geometry,
                summary="Encoded 0 samples -> 0 vertices",
            )

        n = self.target_vertices(total, sample_rate)
        factor = total / n
        effective_sr = int(round(n * sample_rate / total))

        if not effective_sr > 2 * config.emphasis_corner_hz:
            raise ConfigError(
                f"Effective sample rate {effective_sr} Hz is too low for an "
                f"emphasis corner of {config.emphasis_corner_hz} Hz",
                field="emphasis_corner_hz",
                value=config.emphasis_corner_hz,
            )

        if stereo:
            channels = [(left + right) / 2.0, (left - right) / 2.0]
        else:
            channels = [left]

        conditioned = [self._condition(ch, factor, n, effective_sr) for ch in channels]
        conditioned = limit_joint_peak(conditioned, 1.0)
        compressed = [mu_law_compress(np.clip(ch, -1.0, 1.0)) for ch in conditioned]

        world = self._place(compressed, k)
        points = quantize_points(world, config.coordinate_scale)

        descriptor = self._descriptor(effective_sr, k, total, stereo, sample_rate)
        summary = self._summary(total, n, factor, k, effective_sr, stereo)
        logger.info(summary)

        return EncodedGroove(
            descriptor=descriptor,
            points=points,
            geometry=geometry,
            summary=summary,
        )

    def _condition(
        self,
        channel: np.ndarray,
        factor: float,
        n: int,
        effective_sr: int,
    ) -> np.ndarray:
        """Filter, decimate, limit and pre-emphasize one channel."""
        config = self.config
        filtered = anti_alias_filter(channel, factor) if factor > 1 else channel
        reduced = decimate(filtered, n)
        limited = soft_limiter(reduced, effective_sr, config.limiter_threshold)
        return high_shelf_biquad(
            limited,
            effective_sr,
            config.emphasis_gain_db,
            config.emphasis_corner_hz,
        )

    def _place(self, compressed: list[np.ndarray], k: float) -> np.ndarray:
        """
        Place companded values on the spiral, in drawing units.

        Mono displaces radially. Stereo displaces mid along the radial
        axis and side along the tangential axis, rotated by the same
        angle the decoder derives from the point index.
        """
        geometry = self.config.geometry
        n = len(compressed[0])
        t = np.arange(n) / (n - 1) if n > 1 else np.zeros(n)
        theta = t * self.config.turns * TAU
        r_base = geometry.base_radius(t)
        cos_t = np.cos(theta)
        sin_t = np.sin(theta)

        radial = r_base + k * compressed[0]
        tangential = k * compressed[1] if len(compressed) > 1 else np.zeros(n)

        x = geometry.cx + radial * cos_t - tangential * sin_t
        y = geometry.cy + radial * sin_t + tangential * cos_t
        return np.column_stack([x, y])

    def _descriptor(
        self,
        effective_sr: int,
        k: float,
        original_length: int,
        stereo: bool,
        source_rate: float,
    ) -> GeometryDescriptor:
        config = self.config
        geometry = config.geometry
        return GeometryDescriptor(
            sample_rate=effective_sr,
            r_out=geometry.r_out,
            r_in=geometry.r_in,
            turns=config.turns,
            k=k,
            original_length=original_length,
            source_rate=int(round(source_rate)),
            cx=geometry.cx,
            cy=geometry.cy,
            companding=True,
            emphasis=Emphasis.shelf(config.emphasis_corner_hz, config.emphasis_gain_db),
            coordinate_scale=config.coordinate_scale,
            stereo=stereo,
            version=DESCRIPTOR_VERSION,
        )

    def _summary(
        self,
        total: int,
        n: int,
        factor: float,
        k: float,
        effective_sr: int,
        stereo: bool,
    ) -> str:
        config = self.config
        stages = []
        if factor > 1:
            stages += ["anti-alias", f"{factor:.1f}x decimate"]
        stages += [
            "limit",
            f"shelf {config.emphasis_gain_db:+g}dB@{config.emphasis_corner_hz:g}Hz",
            "mu-law",
            "error-diffusion",
        ]
        pipeline = " -> ".join(stages)
        pts_per_turn = int(round(n / config.turns))
        size_mb = n * _BYTES_PER_VERTEX / 1024 / 1024
        mode = " [mid/side]" if stereo else ""
        return (
            f"Encoded {total} samples -> {n} vertices [{pipeline}]{mode} "
            f"(~{pts_per_turn} pts/turn, {config.turns:g} turns, k={k:.4f}, "
            f"sr={effective_sr}Hz, ~{size_mb:.1f} MB)"
        )


def _split_channels(
    samples: np.ndarray,
    right: np.ndarray | None,
) -> tuple[np.ndarray, np.ndarray | None]:
    left = np.asarray(samples, dtype=np.float64)
    if left.ndim == 2:
        if right is None and left.shape[1] >= 2:
            right = left[:, 1]
        left = left[:, 0]
    if right is None:
        return left, None

    right = np.asarray(right, dtype=np.float64).reshape(-1)
    if len(right) < len(left):
        right = np.concatenate([right, np.zeros(len(left) - len(right))])
    return left, right[: len(left)]


def encode(
    samples: np.ndarray,
    right: np.ndarray | None = None,
    sample_rate: float = 44100,
    config: EncoderConfig | None = None,
) -> EncodedGroove:
    """
    Encode audio into a spiral groove.

    Convenience function that creates an encoder with the given config.

    Example:
        groove = encode(samples, sample_rate=44100, config=EncoderConfig(turns=8))
        Path("record.svg").write_text(groove.to_svg())
    """
    return GrooveEncoder(config).encode(samples, right, sample_rate)
