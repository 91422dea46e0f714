"""
Tests for the groove encoder and decoder.
"""

import logging

import numpy as np
import pytest

from spiral_groove.codec import (
    Circle,
    EmphasisMode,
    GeometryDescriptor,
    GrooveDecoder,
    GrooveEncoder,
    decode,
    encode,
    estimate_k,
    estimate_turns,
    parse_svg,
)
from spiral_groove.config import DiscGeometry, EncoderConfig
from spiral_groove.dsp import mu_law_compress, pre_emphasis
from spiral_groove.errors import ConfigError, FormatError
from spiral_groove.testing import AudioAssertions, leakage_ratio

from conftest import make_sine, make_spiral


class TestEncoderConfig:
    """Tests for configuration validation."""

    def test_defaults(self):
        config = EncoderConfig()
        assert config.quality == 3
        assert config.turns == 6.0
        assert config.companding_gain() == 5.0

    def test_k_capped_by_turn_spacing(self):
        config = EncoderConfig(turns=30, sensitivity=10)
        assert config.companding_gain() == pytest.approx(0.45 * 180 / 30)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"quality": 0},
            {"quality": 6},
            {"turns": 0},
            {"turns": -1},
            {"sensitivity": 0},
            {"coordinate_scale": 0},
            {"limiter_threshold": 1.5},
        ],
    )
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            EncoderConfig(**kwargs)

    def test_rejects_degenerate_geometry(self):
        with pytest.raises(ConfigError) as exc:
            DiscGeometry(r_out=40, r_in=40)
        assert exc.value.field == "r_out"
        assert isinstance(exc.value, ValueError)


class TestEncoder:
    """Tests for GrooveEncoder."""

    def test_vertex_count_follows_quality(self, sine_440):
        groove = encode(sine_440, sample_rate=44100)
        assert groove.vertices == 32000
        assert groove.points.shape == (32000, 2)
        assert groove.points.dtype == np.int64
        assert groove.descriptor.sample_rate == 16000
        assert groove.descriptor.original_length == 88200

    def test_vertex_cap(self):
        encoder = GrooveEncoder(EncoderConfig(quality=1))
        assert encoder.target_vertices(44100 * 60, 44100) == 200_000

    def test_never_more_vertices_than_samples(self):
        encoder = GrooveEncoder(EncoderConfig(quality=5))
        assert encoder.target_vertices(1000, 8000) == 1000

    def test_descriptor_contents(self, short_sine):
        groove = encode(short_sine, sample_rate=44100)
        desc = groove.descriptor
        assert desc.version == 2
        assert desc.companding is True
        assert desc.emphasis.mode == EmphasisMode.SHELF
        assert desc.coordinate_scale == 100
        assert desc.k == 5.0
        assert desc.stereo is False

    def test_points_stay_in_band(self, short_sine):
        groove = encode(short_sine * 2.0, sample_rate=44100)
        world = groove.world_points()
        r = np.hypot(world[:, 0] - 260, world[:, 1] - 260)
        assert r.min() >= 40 - 5 - 0.02
        assert r.max() <= 220 + 5 + 0.02

    def test_empty_input(self):
        groove = encode(np.array([]), sample_rate=44100)
        assert groove.vertices == 0
        assert groove.descriptor.original_length == 0

    def test_single_sample(self):
        groove = encode(np.array([0.5]), sample_rate=44100)
        assert groove.vertices == 1

    def test_rate_too_low_for_corner(self):
        with pytest.raises(ConfigError):
            encode(np.zeros(1500), sample_rate=1500, config=EncoderConfig(quality=1))

    def test_identical_channels_encode_mono(self, short_sine):
        groove = encode(short_sine, short_sine.copy(), sample_rate=44100)
        assert groove.is_stereo is False

    def test_distinct_channels_encode_stereo(self, short_sine):
        groove = encode(short_sine, -short_sine, sample_rate=44100)
        assert groove.is_stereo is True

    def test_stereo_disabled(self, short_sine):
        config = EncoderConfig(stereo=False)
        groove = encode(short_sine, -short_sine, sample_rate=44100, config=config)
        assert groove.is_stereo is False

    def test_two_dimensional_input(self, short_sine):
        frames = np.column_stack([short_sine, np.zeros_like(short_sine)])
        assert encode(frames, sample_rate=44100).is_stereo is True

    def test_short_right_channel_padded(self, short_sine):
        groove = encode(short_sine, short_sine[:100], sample_rate=44100)
        assert groove.descriptor.original_length == len(short_sine)
        assert groove.is_stereo is True

    def test_summary_logged(self, short_sine, caplog):
        with caplog.at_level(logging.INFO, logger="spiral_groove.codec.encoder"):
            groove = encode(short_sine, sample_rate=44100)
        assert "vertices" in groove.summary
        assert "pts/turn" in groove.summary
        assert groove.summary in caplog.text


class TestTurnEstimation:
    """Tests for the angle-unwrapping turn estimator."""

    def test_recovers_six_turns(self, spiral_points):
        assert estimate_turns(spiral_points, 260, 260) == pytest.approx(6.0, rel=0.01)

    def test_reversed_direction(self, spiral_points):
        assert estimate_turns(spiral_points[::-1], 260, 260) == pytest.approx(6.0, rel=0.01)

    def test_off_center_disc(self):
        geometry = DiscGeometry(cx=400, cy=150)
        points = make_spiral(5000, 3.5, geometry)
        assert estimate_turns(points, 400, 150) == pytest.approx(3.5, rel=0.01)

    def test_from_encoded_groove(self, sine_440):
        groove = encode(sine_440, sample_rate=44100)
        assert estimate_turns(groove.world_points(), 260, 260) == pytest.approx(6.0, rel=0.01)

    @pytest.mark.parametrize("n", [0, 1])
    def test_degenerate_sequences(self, n):
        assert estimate_turns(np.zeros((n, 2)), 260, 260) == 0.0


class TestDecoder:
    """Tests for GrooveDecoder."""

    @pytest.mark.parametrize("length", [44101, 132317, 88200])
    def test_source_rate_preserved(self, length):
        samples = make_sine(440, length / 44100, 44100)[:length]
        groove = encode(samples, sample_rate=44100)
        assert groove.descriptor.source_rate == 44100
        audio = decode(groove.to_svg())
        assert audio.sample_rate == 44100
        assert len(audio.left) == length

    def test_rate_rebuilt_without_source_rate(self, sine_440):
        doc = parse_svg(encode(sine_440, sample_rate=44100).to_svg())
        doc.descriptor.source_rate = None
        assert GrooveDecoder().decode(doc).sample_rate == 44100

    def test_mono_round_trip_length_and_rate(self, sine_440):
        audio = decode(encode(sine_440, sample_rate=44100).to_svg())
        assert len(audio.left) == 88200
        assert audio.sample_rate == 44100
        assert audio.right is None
        assert audio.duration == pytest.approx(2.0)
        assert audio.k == 5.0
        assert audio.k_estimated is False

    def test_decoded_output_conditioned(self, sine_440):
        audio = decode(encode(sine_440, sample_rate=44100).to_svg())
        AudioAssertions(audio).assert_no_dc_offset(0.01).assert_peak_below(1.0 + 1e-9)
        assert audio.left[0] == 0.0
        assert audio.left[-1] == 0.0

    def test_missing_groove_data(self):
        with pytest.raises(FormatError, match="missing groove data"):
            decode("<svg><circle cx='1' cy='1' r='2'/></svg>")

    def test_no_points(self):
        with pytest.raises(FormatError):
            GrooveDecoder().decode_points(GeometryDescriptor(), np.zeros((0, 2)))

    def test_single_point(self):
        desc = GeometryDescriptor(sample_rate=16000, k=5.0, companding=True)
        audio = GrooveDecoder().decode_points(desc, np.array([[480.0, 260.0]]))
        assert len(audio.left) == 1
        assert audio.estimated_turns == 0.0

    def test_k_estimated_when_missing(self, short_sine):
        groove = encode(short_sine, sample_rate=44100)
        doc = parse_svg(groove.to_svg())
        doc.descriptor.k = None
        audio = GrooveDecoder().decode(doc)
        assert audio.k_estimated is True
        assert audio.k >= 0.5

    def test_estimate_k_zero_deviation(self, spiral_points):
        # No deviation at all falls back to a unit deviation.
        assert estimate_k(spiral_points, DiscGeometry()) == pytest.approx(4.0)

    def test_estimate_k_floor(self, spiral_points):
        nudged = spiral_points + np.array([1e-9, 0.0])
        assert estimate_k(nudged, DiscGeometry()) == 0.5

    def test_estimate_k_from_deviation(self, spiral_points):
        # Push every point one unit outwards.
        offset = spiral_points - 260
        offset /= np.hypot(offset[:, 0], offset[:, 1])[:, None]
        assert estimate_k(spiral_points + offset, DiscGeometry()) == pytest.approx(4.0)

    def test_turns_estimated_when_missing(self, short_sine):
        groove = encode(short_sine, sample_rate=44100)
        doc = parse_svg(groove.to_svg())
        doc.descriptor.turns = None
        audio = GrooveDecoder().decode(doc)
        assert audio.turns == pytest.approx(6.0, rel=0.01)

    def test_radii_recovered_from_circles(self):
        desc = GeometryDescriptor(sample_rate=16000, k=5.0)
        points = make_spiral(100)
        circles = [Circle(260, 260, 228), Circle(260, 260, 32)]
        audio = GrooveDecoder().decode_points(desc, points, circles)
        assert audio.geometry.r_out == 220
        assert audio.geometry.r_in == 40

    def test_center_from_first_circle(self):
        desc = GeometryDescriptor(sample_rate=16000, k=5.0, coordinate_scale=10)
        points = make_spiral(100, geometry=DiscGeometry(cx=300, cy=200)) * 10
        circles = [Circle(3000, 2000, 2280), Circle(3000, 2000, 320)]
        audio = GrooveDecoder().decode_points(desc, points, circles)
        assert (audio.geometry.cx, audio.geometry.cy) == (300, 200)
        assert audio.estimated_turns == pytest.approx(6.0, rel=0.01)

    def test_degenerate_recovered_geometry(self):
        desc = GeometryDescriptor(sample_rate=16000, k=5.0, r_out=10, r_in=40)
        with pytest.raises(FormatError):
            GrooveDecoder().decode_points(desc, make_spiral(10))


class TestLegacyGrooves:
    """Grooves written by older revisions still decode."""

    def _legacy_svg(self, samples, sample_rate=8000, turns=6, k=5.0):
        n = len(samples)
        compressed = mu_law_compress(np.clip(pre_emphasis(samples), -1, 1))
        t = np.arange(n) / (n - 1)
        theta = t * turns * 2 * np.pi
        r = 220 + (40 - 220) * t + k * compressed
        pts = " ".join(
            f"{x:.3f},{y:.3f}"
            for x, y in zip(260 + r * np.cos(theta), 260 + r * np.sin(theta))
        )
        return (
            '<svg xmlns="http://www.w3.org/2000/svg" width="520" height="520" viewBox="0 0 520 520">'
            '<circle cx="260" cy="260" r="228"/><circle cx="260" cy="260" r="32"/>'
            f'<polyline id="audioGroove" points="{pts}" />'
            f"<desc>Geometry-only spiral audio. sr={sample_rate}; Rout=220; Rin=40; turns={turns}; "
            f"k={k:.6f}; originalLength={n}; mulaw=1; preemph=1.</desc></svg>"
        )

    def test_decodes_legacy_document(self):
        samples = make_sine(440, 2.0, 8000, 0.5)
        audio = decode(self._legacy_svg(samples))
        assert audio.descriptor.emphasis.mode == EmphasisMode.LEGACY
        assert audio.descriptor.coordinate_scale == 1
        assert audio.sample_rate == 8000
        assert len(audio.left) == len(samples)
        AudioAssertions(audio).assert_dominant_frequency(440, tolerance=0.02)


class TestStereoSeparation:
    """Mid/side rotation and projection use the same angle."""

    def test_left_only_impulse(self, stereo_impulses):
        (left, right), _ = stereo_impulses
        audio = decode(encode(left, right, sample_rate=44100).to_svg())
        assert audio.is_stereo
        assert leakage_ratio(audio.left, audio.right) < 0.01

    def test_right_only_impulse(self, stereo_impulses):
        _, (left, right) = stereo_impulses
        audio = decode(encode(left, right, sample_rate=44100).to_svg())
        assert leakage_ratio(audio.right, audio.left) < 0.01

    def test_channels_keep_identity(self, stereo_impulses):
        (left, right), _ = stereo_impulses
        audio = decode(encode(left, right, sample_rate=44100).to_svg())
        peak = np.argmax(np.abs(audio.left))
        assert abs(peak - len(left) // 2) < 50
