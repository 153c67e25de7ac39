"""
Tests for p3drum/audio/waveform.py: WAV probing for imported samples.
"""

import numpy as np
import pytest

from p3drum.audio.waveform import WAVEFORM_POINTS, decode_pcm, load_wav, peak_overview, probe_wav

from conftest import sine, write_wav


class TestDecodePcm:
    def test_16_bit(self):
        raw = np.array([0, 16384, -32768], dtype="<i2").tobytes()
        assert decode_pcm(raw, 2).tolist() == [0.0, 0.5, -1.0]

    def test_8_bit_unsigned(self):
        assert decode_pcm(bytes([128, 192, 0]), 1).tolist() == [0.0, 0.5, -1.0]

    def test_24_bit(self):
        frames = decode_pcm(b"\x00\x00\x40" + b"\x00\x00\xc0", 3)
        assert frames.tolist() == [0.5, -0.5]

    def test_32_bit(self):
        raw = np.array([1 << 30], dtype="<i4").tobytes()
        assert decode_pcm(raw, 4).tolist() == [0.5]

    def test_unsupported_width(self):
        with pytest.raises(ValueError):
            decode_pcm(b"\x00" * 6, 6)


class TestLoadWav:
    def test_stereo_downmixed_to_mono(self, tmp_path):
        left = np.full(100, 0.5, dtype=np.float32)
        right = np.zeros(100, dtype=np.float32)
        path = write_wav(tmp_path / "stereo.wav", np.stack([left, right], axis=1), rate=1000)

        frames, rate = load_wav(path)

        assert rate == 1000
        assert frames.shape == (100,)
        assert frames.dtype == np.float32
        assert frames[0] == pytest.approx(0.25, abs=1e-3)


class TestPeakOverview:
    def test_length_and_range(self):
        overview = peak_overview(sine(1.0, amp=0.5))
        assert len(overview) == WAVEFORM_POINTS
        assert all(120 <= b <= 130 for b in overview)

    def test_empty_frames(self):
        assert peak_overview(np.zeros(0, dtype=np.float32), 8) == bytes(8)

    def test_fewer_frames_than_points(self):
        overview = peak_overview(np.array([1.0, -1.0], dtype=np.float32), 4)
        assert overview == bytes([255, 255, 0, 0])


class TestProbeWav:
    def test_duration_and_overview(self, tmp_path):
        path = write_wav(tmp_path / "one.wav", sine(1.0), rate=8000)
        duration, overview = probe_wav(path)
        assert duration == pytest.approx(1.0)
        assert len(overview) == WAVEFORM_POINTS

    def test_custom_point_count(self, kick_wav):
        _, overview = probe_wav(kick_wav, points=16)
        assert len(overview) == 16

    def test_not_a_wav(self, tmp_path):
        path = tmp_path / "fake.wav"
        path.write_bytes(b"definitely not RIFF data")
        assert probe_wav(path) == (None, None)

    def test_missing_file(self, tmp_path):
        assert probe_wav(tmp_path / "gone.wav") == (None, None)
