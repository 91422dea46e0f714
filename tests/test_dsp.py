"""
Tests for the DSP primitives.
"""

import numpy as np
import pytest
from hypothesis import assume, given, settings, strategies as st

from spiral_groove.dsp import (
    anti_alias_filter,
    apply_fade,
    blackman_sinc_kernel,
    cubic_interpolate,
    de_emphasis,
    decimate,
    fade_length,
    gaussian_smooth,
    high_shelf_biquad,
    high_shelf_coefficients,
    lanczos3_resample,
    limit_joint_peak,
    mu_law_compress,
    mu_law_expand,
    normalize_joint_peak,
    normalize_peak,
    pre_emphasis,
    remove_dc,
    resample_to_rate,
    soft_limiter,
)

from conftest import make_sine


signal_strategy = st.lists(
    st.floats(min_value=-1.0, max_value=1.0, allow_nan=False, allow_infinity=False),
    min_size=1,
    max_size=400,
)


class TestAntiAliasFilter:
    """Tests for the windowed-sinc low-pass."""

    def test_kernel_unit_dc_gain(self):
        kernel = blackman_sinc_kernel(2.75)
        assert np.sum(kernel) == pytest.approx(1.0)
        assert len(kernel) == 2 * 6 + 1

    def test_kernel_radius_capped(self):
        assert len(blackman_sinc_kernel(100.0)) == 2 * 64 + 1

    def test_length_preserved(self):
        x = np.random.default_rng(0).uniform(-1, 1, 1000)
        assert len(anti_alias_filter(x, 3.0)) == 1000

    def test_passes_dc_away_from_edges(self):
        x = np.ones(500)
        y = anti_alias_filter(x, 4.0)
        np.testing.assert_allclose(y[50:-50], 1.0, atol=1e-9)

    def test_attenuates_above_cutoff(self):
        sr = 44100
        low = make_sine(500, 0.5, sr)
        high = make_sine(15000, 0.5, sr)
        y_low = anti_alias_filter(low, 4.0)[200:-200]
        y_high = anti_alias_filter(high, 4.0)[200:-200]
        assert np.max(np.abs(y_low)) > 0.45
        assert np.max(np.abs(y_high)) < 0.05

    def test_factor_one_is_copy(self):
        x = np.arange(10.0)
        y = anti_alias_filter(x, 1.0)
        np.testing.assert_array_equal(x, y)
        assert y is not x


class TestHighShelf:
    """Tests for the shelving emphasis filter."""

    def test_reciprocal_designs(self):
        (b, a) = high_shelf_coefficients(16000, 20.0, 1000.0)
        (bi, ai) = high_shelf_coefficients(16000, -20.0, 1000.0)
        # H(-G) = 1 / H(G): numerator of one is the denominator of the other.
        scale = bi[0]
        np.testing.assert_allclose(
            np.array([1.0, a[0], a[1]]) * scale,
            np.array(bi),
            rtol=1e-12,
        )
        np.testing.assert_allclose(np.array(b) / b[0], [1.0, ai[0], ai[1]], rtol=1e-12)

    def test_boosts_highs(self):
        sr = 16000
        high = make_sine(6000, 0.5, sr, 0.1)
        y = high_shelf_biquad(high, sr, 20.0, 1000.0)
        assert np.max(np.abs(y[1000:])) > 0.5

    @given(
        x=signal_strategy,
        sample_rate=st.sampled_from([8000, 11025, 16000, 22050, 32000, 44100, 48000]),
        corner=st.floats(min_value=50.0, max_value=8000.0),
        gain=st.floats(min_value=-24.0, max_value=24.0),
    )
    @settings(max_examples=150, deadline=None)
    def test_round_trip(self, x, sample_rate, corner, gain):
        assume(sample_rate > 2 * corner)
        x = np.array(x)
        y = high_shelf_biquad(high_shelf_biquad(x, sample_rate, gain, corner), sample_rate, -gain, corner)
        np.testing.assert_allclose(y, x, rtol=1e-5, atol=1e-7)


class TestMuLaw:
    """Tests for mu-law companding."""

    @pytest.mark.parametrize("x", [0.0, 1.0, -1.0])
    def test_exact_points(self, x):
        assert float(mu_law_compress(x)) == x
        assert float(mu_law_expand(mu_law_compress(x))) == x

    @given(x=st.floats(min_value=-1.0, max_value=1.0, allow_nan=False))
    @settings(max_examples=300)
    def test_invertible(self, x):
        assert float(mu_law_expand(mu_law_compress(x))) == pytest.approx(x, abs=1e-12)

    def test_compress_boosts_quiet(self):
        assert float(mu_law_compress(0.01)) > 0.2


class TestDynamics:
    """Tests for limiting and normalization."""

    def test_quiet_signal_untouched(self):
        x = make_sine(440, 0.5, 16000, 0.5)
        np.testing.assert_array_equal(soft_limiter(x, 16000, 0.9), x)

    def test_loud_signal_limited(self):
        x = make_sine(440, 1.0, 16000, 1.0) * 3.0
        y = soft_limiter(x, 16000, 0.9)
        assert np.max(np.abs(y[8000:])) < 2.0
        assert np.max(np.abs(y[8000:])) < np.max(np.abs(x[8000:]))

    def test_joint_limit_only_scales_down(self):
        a, b = np.array([0.5, -2.0]), np.array([1.0, 0.0])
        la, lb = limit_joint_peak([a, b])
        np.testing.assert_allclose(la, [0.25, -1.0])
        np.testing.assert_allclose(lb, [0.5, 0.0])
        qa, = limit_joint_peak([np.array([0.2])])
        np.testing.assert_allclose(qa, [0.2])

    def test_remove_dc(self):
        assert np.mean(remove_dc(np.array([1.0, 2.0, 3.0]))) == pytest.approx(0.0)

    def test_normalize_window(self):
        np.testing.assert_allclose(normalize_peak(np.array([0.5, -0.25])), [1.0, -0.5])
        np.testing.assert_allclose(normalize_peak(np.array([0.995])), [0.995])
        np.testing.assert_allclose(normalize_peak(np.array([0.0005])), [0.0005])

    def test_normalize_joint(self):
        left, right = normalize_joint_peak([np.array([1.5]), np.array([-3.0])])
        np.testing.assert_allclose(left, [0.5])
        np.testing.assert_allclose(right, [-1.0])

    def test_fade(self):
        assert fade_length(1000) == 5
        assert fade_length(1_000_000) == 256
        y = apply_fade(np.ones(1000))
        assert y[0] == 0.0
        assert y[-1] == 0.0
        assert y[500] == 1.0


class TestLegacyEmphasis:
    """Tests for the legacy one-pole pair and smoothing."""

    def test_pre_de_inverse(self):
        x = np.random.default_rng(1).uniform(-1, 1, 300)
        np.testing.assert_allclose(de_emphasis(pre_emphasis(x)), x, atol=1e-9)

    def test_gaussian_preserves_constant(self):
        np.testing.assert_allclose(gaussian_smooth(np.full(50, 0.3)), 0.3)
        assert len(gaussian_smooth(np.arange(20.0))) == 20


class TestResampling:
    """Tests for decimation and interpolation."""

    def test_decimate_indices(self):
        x = np.arange(10.0)
        np.testing.assert_array_equal(decimate(x, 4), [0.0, 2.0, 5.0, 7.0])

    def test_lanczos_identity_length(self):
        x = np.random.default_rng(2).uniform(-1, 1, 64)
        np.testing.assert_array_equal(lanczos3_resample(x, 64), x)

    def test_lanczos_constant(self):
        np.testing.assert_allclose(lanczos3_resample(np.full(100, 0.7), 275), 0.7, atol=1e-12)

    def test_lanczos_upsample_sine(self):
        x = make_sine(440, 0.5, 16000, 0.5)
        y = lanczos3_resample(x, int(len(x) * 44100 / 16000))
        reference = make_sine(440, len(y) / 44100, 44100, 0.5)[: len(y)]
        np.testing.assert_allclose(y[100:-100], reference[100:-100], atol=0.01)

    def test_cubic_endpoints(self):
        assert cubic_interpolate(0.0, 1.0, 2.0, 3.0, 0.0) == 1.0
        assert cubic_interpolate(0.0, 1.0, 2.0, 3.0, 1.0) == 2.0
        assert cubic_interpolate(0.0, 1.0, 2.0, 3.0, 0.5) == pytest.approx(1.5)

    def test_resample_to_rate_length(self):
        assert len(resample_to_rate(np.zeros(400), 4000, 8000)) == 800
        assert len(resample_to_rate(np.zeros(0), 4000, 8000)) == 0

    def test_resample_same_rate_copy(self):
        x = np.arange(5.0)
        np.testing.assert_array_equal(resample_to_rate(x, 8000, 8000), x)
