"""Loading of WAV files as 48kHz mono float32 audio."""

from __future__ import annotations

import os
import struct

import numpy as np

AUDIO_RATE = 48000

_FORMAT_PCM = 0x0001
_FORMAT_FLOAT = 0x0003
_FORMAT_EXTENSIBLE = 0xFFFE


class WavError(Exception):
    """Raised when a WAV file cannot be loaded."""


class _Format:
    def __init__(self, body: bytes) -> None:
        if len(body) < 16:
            raise ValueError("Truncated fmt chunk")
        tag, channels, rate, _, _, bits = struct.unpack_from("<HHIIHH", body)
        if tag == _FORMAT_EXTENSIBLE:
            if len(body) < 26:
                raise ValueError("Truncated extensible fmt chunk")
            (tag,) = struct.unpack_from("<H", body, 24)
        if channels == 0 or rate == 0:
            raise ValueError("Invalid channel count or sample rate")
        self.tag = tag
        self.channels = channels
        self.rate = rate
        self.bits = bits


def _find_chunks(raw: bytes) -> tuple[_Format, bytes]:
    if len(raw) < 12 or raw[:4] != b"RIFF" or raw[8:12] != b"WAVE":
        raise ValueError("Unrecognized file type (not WAVE)")
    fmt = None
    data = None
    offset = 12
    while offset + 8 <= len(raw):
        chunk_id, size = struct.unpack_from("<4sI", raw, offset)
        body = raw[offset + 8 : offset + 8 + size]
        if chunk_id == b"fmt " and fmt is None:
            fmt = _Format(body)
        elif chunk_id == b"data" and data is None:
            data = body
        offset += 8 + size + (size & 1)
    if fmt is None:
        raise ValueError("Missing fmt chunk")
    if data is None:
        raise ValueError("Missing data chunk")
    return fmt, data


def _decode(fmt: _Format, data: bytes) -> np.ndarray:
    bytes_per_sample = fmt.bits // 8
    if fmt.bits % 8 or bytes_per_sample == 0:
        raise ValueError(f"Unsupported bit depth {fmt.bits}")
    block = bytes_per_sample * fmt.channels
    frames = len(data) // block
    data = data[: frames * block]

    if fmt.tag == _FORMAT_PCM:
        if fmt.bits == 8:
            samples = (np.frombuffer(data, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
        elif fmt.bits == 16:
            samples = np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0
        elif fmt.bits == 24:
            triples = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
            values = np.where(values & 0x800000, values - 0x1000000, values)
            samples = values.astype(np.float32) / 8388608.0
        elif fmt.bits == 32:
            samples = (np.frombuffer(data, dtype="<i4").astype(np.float64) / 2147483648.0).astype(np.float32)
        else:
            raise ValueError(f"Unsupported PCM bit depth {fmt.bits}")
    elif fmt.tag == _FORMAT_FLOAT:
        if fmt.bits == 32:
            samples = np.frombuffer(data, dtype="<f4").astype(np.float32)
        elif fmt.bits == 64:
            samples = np.frombuffer(data, dtype="<f8").astype(np.float32)
        else:
            raise ValueError(f"Unsupported float bit depth {fmt.bits}")
    else:
        raise ValueError(f"Unsupported WAV format tag {fmt.tag:#06x}")
    return samples.reshape(frames, fmt.channels)


def _resample(mono: np.ndarray, rate: int) -> np.ndarray:
    count = len(mono)
    out_count = count * AUDIO_RATE // rate
    if count == 0 or out_count == 0:
        return np.zeros(0, dtype=np.float32)
    positions = np.arange(out_count, dtype=np.float64) * (rate / AUDIO_RATE)
    return np.interp(positions, np.arange(count), mono).astype(np.float32)


def load_wav(path: str | os.PathLike) -> np.ndarray:
    """Load a WAV file as 48kHz mono float32 samples, converting if needed."""
    name = os.fspath(path)
    try:
        with open(path, "rb") as handle:
            raw = handle.read()
        fmt, payload = _find_chunks(raw)
        frames = _decode(fmt, payload)
    except (OSError, ValueError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise WavError(f"Failed to load WAV file '{name}'; {reason}") from exc

    native = fmt.tag == _FORMAT_FLOAT and fmt.bits == 32 and fmt.channels == 1 and fmt.rate == AUDIO_RATE
    if native:
        data = np.ascontiguousarray(frames[:, 0], dtype=np.float32)
    else:
        print(f"WAV file '{name}' didn't load as {AUDIO_RATE} Hz, float32, mono; converting.")
        mono = frames.mean(axis=1, dtype=np.float64).astype(np.float32)
        data = mono if fmt.rate == AUDIO_RATE else _resample(mono, fmt.rate)

    low = min(0.0, float(data.min())) if data.size else 0.0
    high = max(0.0, float(data.max())) if data.size else 0.0
    print(f"Range: {low:g}, {high:g}")
    return data