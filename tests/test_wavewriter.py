import struct
import wave

import pytest

from satorisynth.wavewriter import WaveFormat, WaveWriteError, quantize, write_wave


def test_quantize_clamps_to_int16_range():
    assert quantize([0.0, 1.0, -1.0, 2.0, -2.0]) == [0, 32767, -32767, 32767, -32767]


def test_quantize_is_monotonic_and_bounded():
    values = [i / 50.0 - 1.5 for i in range(151)]
    pcm = quantize(values)
    assert pcm == sorted(pcm)
    assert all(-32767 <= v <= 32767 for v in pcm)


def test_write_wave_round_trip(tmp_path):
    samples = [0.0, 0.5, -0.5, 0.25, -1.0, 1.0]
    path = tmp_path / "out.wav"
    write_wave(path, samples, WaveFormat(sample_rate=22050))
    with wave.open(str(path), "rb") as reader:
        assert reader.getnchannels() == 1
        assert reader.getsampwidth() == 2
        assert reader.getframerate() == 22050
        assert reader.getnframes() == len(samples)
        frames = reader.readframes(len(samples))
    assert list(struct.unpack(f"<{len(samples)}h", frames)) == quantize(samples)


def test_header_layout(tmp_path):
    samples = [0.1] * 10
    path = tmp_path / "hdr.wav"
    write_wave(path, samples)
    data = path.read_bytes()
    assert len(data) == 44 + 2 * len(samples)
    assert data[0:4] == b"RIFF"
    assert data[8:12] == b"WAVE"
    assert data[12:16] == b"fmt "
    assert data[36:40] == b"data"
    riff_size, = struct.unpack("<I", data[4:8])
    assert riff_size == len(data) - 8
    rate, = struct.unpack("<I", data[24:28])
    assert rate == WaveFormat().sample_rate


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(WaveWriteError):
        write_wave(tmp_path / "missing" / "out.wav", [0.0])