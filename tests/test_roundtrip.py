"""
End-to-end: samples -> groove document -> samples -> player.
"""

import numpy as np
import pytest

from spiral_groove import EncoderConfig, decode, encode
from spiral_groove.playback import GroovePlayer, OfflineOutput
from spiral_groove.monitoring import StructuredLogger
from spiral_groove.testing import AudioAssertions

from conftest import make_sine


class TestRoundTrip:
    """A sine survives the whole chain."""

    def test_sine_440(self, sine_440):
        groove = encode(sine_440, sample_rate=44100)
        audio = decode(groove.to_svg())

        (
            AudioAssertions(audio)
            .assert_duration(2.0, tolerance=0.001)
            .assert_dominant_frequency(440, tolerance=0.02)
            .assert_not_silent()
            .assert_no_dc_offset(0.01)
        )

    @pytest.mark.parametrize("quality", [1, 2, 4, 5])
    def test_other_qualities(self, quality):
        samples = make_sine(1000, 0.5, 44100)
        audio = decode(encode(samples, sample_rate=44100, config=EncoderConfig(quality=quality)).to_svg())
        assert len(audio.left) == len(samples)
        AudioAssertions(audio).assert_dominant_frequency(1000, tolerance=0.02)

    def test_low_input_rate(self):
        samples = make_sine(300, 1.0, 8000)
        audio = decode(encode(samples, sample_rate=8000).to_svg())
        assert audio.sample_rate == 8000
        AudioAssertions(audio).assert_dominant_frequency(300, tolerance=0.02)

    def test_stereo_round_trip(self):
        left = make_sine(440, 1.0, 44100)
        right = make_sine(660, 1.0, 44100)
        audio = decode(encode(left, right, sample_rate=44100).to_svg())
        AudioAssertions(audio, channel="left").assert_dominant_frequency(440)
        AudioAssertions(audio, channel="right").assert_dominant_frequency(660)

    def test_playback_reports_end_once(self, sine_440):
        audio = decode(encode(sine_440, sample_rate=44100).to_svg())
        output = OfflineOutput(keep_audio=True)
        player = GroovePlayer(output=output, monitor=False, event_logger=StructuredLogger(output=_Sink()))
        ends = []
        player.on_frame(lambda f: ends.append(f) if f.progress == 1.0 else None)

        player.start(audio)
        blocks = output.render_until_ended()
        player.poll()
        assert not output.active
        assert player.poll() is None

        assert len(ends) == 1
        assert blocks == int(np.ceil((88200 - 1) / 128))
        recorded = output.recorded()[:, 0]
        np.testing.assert_allclose(recorded[:1000], audio.left[:1000], atol=1e-6)


class _Sink:
    def write(self, text):
        pass

    def flush(self):
        pass
