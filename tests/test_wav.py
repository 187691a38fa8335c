import struct
import wave

import numpy as np
import pytest

from gamebase.wav import WavError, load_wav


def _write_pcm(path, samples, rate=48000, channels=1, width=2):
    with wave.open(str(path), "wb") as out:
        out.setnchannels(channels)
        out.setsampwidth(width)
        out.setframerate(rate)
        if width == 1:
            out.writeframes(bytes(samples))
        else:
            out.writeframes(struct.pack(f"<{len(samples)}h", *samples))


def _write_float(path, samples, rate=48000, channels=1):
    payload = struct.pack(f"<{len(samples)}f", *samples)
    fmt = struct.pack("<HHIIHH", 3, channels, rate, rate * 4 * channels, 4 * channels, 32)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt
    body += b"data" + struct.pack("<I", len(payload)) + payload
    path.write_bytes(b"RIFF" + struct.pack("<I", len(body)) + body)


def test_native_float_is_unchanged(tmp_path, capsys):
    path = tmp_path / "f.wav"
    values = [0.25, -0.75, 0.125, 0.0]
    _write_float(path, values)
    data = load_wav(path)
    assert data.dtype == np.float32
    assert data.tolist() == values
    out = capsys.readouterr().out
    assert "converting" not in out
    assert "Range:" in out


def test_pcm16_scaled_and_converted(tmp_path, capsys):
    path = tmp_path / "s16.wav"
    _write_pcm(path, [16384, -32768, 0])
    data = load_wav(path)
    assert data.tolist() == [0.5, -1.0, 0.0]
    assert "converting" in capsys.readouterr().out


def test_pcm8_unsigned(tmp_path):
    path = tmp_path / "u8.wav"
    _write_pcm(path, [128, 0], width=1)
    data = load_wav(path)
    assert data.tolist() == [0.0, -1.0]


def test_stereo_with_equal_channels_matches_mono(tmp_path):
    mono_path = tmp_path / "mono.wav"
    stereo_path = tmp_path / "stereo.wav"
    values = [100, -2000, 30000, -5]
    _write_pcm(mono_path, values)
    _write_pcm(stereo_path, [v for v in values for _ in range(2)], channels=2)
    assert np.allclose(load_wav(stereo_path), load_wav(mono_path))


def test_stereo_downmix_lies_between_channels(tmp_path):
    path = tmp_path / "st.wav"
    _write_pcm(path, [1000, 3000, -4000, 2000], channels=2)
    data = load_wav(path)
    assert len(data) == 2
    assert 1000 / 32768 < data[0] < 3000 / 32768
    assert -4000 / 32768 < data[1] < 2000 / 32768


def test_resampling_constant_signal(tmp_path):
    path = tmp_path / "low.wav"
    count = 100
    _write_pcm(path, [8192] * count, rate=24000)
    data = load_wav(path)
    assert len(data) == count * 48000 // 24000
    assert np.allclose(data, 8192 / 32768)


def test_missing_file(tmp_path):
    with pytest.raises(WavError, match="Failed to load WAV file"):
        load_wav(tmp_path / "absent.wav")


def test_not_a_wave(tmp_path):
    path = tmp_path / "bad.wav"
    path.write_bytes(b"OggS" + b"\x00" * 40)
    with pytest.raises(WavError):
        load_wav(path)


def test_unsupported_format_tag(tmp_path):
    path = tmp_path / "adpcm.wav"
    fmt = struct.pack("<HHIIHH", 0x55, 1, 48000, 48000, 1, 8)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt + b"data" + struct.pack("<I", 2) + b"\x00\x00"
    path.write_bytes(b"RIFF" + struct.pack("<I", len(body)) + body)
    with pytest.raises(WavError, match="Unsupported"):
        load_wav(path)