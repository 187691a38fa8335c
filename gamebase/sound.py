"""Software mixer for mono samples with 2D panning and 3D positional audio.

Audio runs at 48kHz. :meth:`Mixer.mix` produces one block of
``MIX_SAMPLES`` interleaved stereo frames. An audio output callback
calls it, possibly from another thread. All state changes go through
methods that take the mixer's lock.
"""

from __future__ import annotations

import math
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from gamebase.wav import load_wav

AUDIO_RATE = 48000
MIX_SAMPLES = 1024
RAMP_STEP = float(MIX_SAMPLES) / float(AUDIO_RATE)
DEFAULT_RAMP = 1.0 / 60.0

_PI = 3.1415926


def _copy_value(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return float(value)
    return np.array(value, dtype=np.float64)


@dataclass(eq=False)
class Ramp:
    """A value that moves smoothly toward ``target`` over ``ramp`` seconds."""

    value: Any
    target: Any = None
    ramp: float = 0.0

    def __post_init__(self) -> None:
        self.value = _copy_value(self.value)
        self.target = _copy_value(self.value if self.target is None else self.target)

    def set(self, value: Any, ramp: float) -> None:
        """Set a new target; a non-positive ``ramp`` jumps there at once."""
        if ramp <= 0.0:
            self.value = _copy_value(value)
            self.target = _copy_value(value)
            self.ramp = 0.0
        else:
            self.target = _copy_value(value)
            self.ramp = float(ramp)


@dataclass(eq=False)
class Sample:
    """Mono audio stored as 48kHz float32 samples."""

    data: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=np.float32).reshape(-1)

    @classmethod
    def load(cls, filename: str | os.PathLike) -> "Sample":
        """Load a sample from a ``.wav`` file."""
        name = os.fspath(filename)
        if name.endswith(".wav"):
            return cls(load_wav(name))
        if name.endswith(".opus"):
            raise ValueError(f"Sample '{name}' is an opus file; opus decoding is not supported.")
        raise ValueError(
            f"Sample '{name}' doesn't end in either \".wav\" or \".opus\" -- unsure how to load."
        )


class PlayingSample:
    """Book-keeping for a sample that is currently playing.

    A sample plays in "2D" mode (``pan`` set, position NaN) or in "3D" mode
    (``position`` set, pan NaN).
    """

    def __init__(
        self,
        sample: Sample,
        volume: float = 1.0,
        pan: Optional[float] = None,
        position: Any = None,
        half_volume_radius: float = math.inf,
        loop: bool = False,
        lock: Any = None,
    ) -> None:
        if pan is not None and position is not None:
            raise ValueError("a playing sample is either panned (2D) or positioned (3D), not both")
        if len(sample.data) == 0:
            raise ValueError("cannot play an empty sample")
        self.data = sample.data
        self.i = 0
        self.loop = bool(loop)
        self.stopping = False
        self.stopped = False
        self.volume = Ramp(float(volume))
        if position is None:
            self.pan = Ramp(0.0 if pan is None else float(pan))
            self.position = Ramp(np.full(3, math.nan))
            self.half_volume_radius = Ramp(math.nan)
        else:
            self.pan = Ramp(math.nan)
            self.position = Ramp(np.asarray(position, dtype=np.float64).reshape(3))
            self.half_volume_radius = Ramp(float(half_volume_radius))
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def is_3d(self) -> bool:
        return math.isnan(self.pan.value)

    def set_volume(self, new_volume: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change volume over ``ramp`` seconds; ignored once stopping."""
        with self._lock:
            if not self.stopping:
                self.volume.set(new_volume, ramp)

    def set_pan(self, new_pan: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change panning (-1 left .. 1 right); no effect in 3D mode."""
        if self.is_3d:
            return
        with self._lock:
            self.pan.set(new_pan, ramp)

    def set_position(self, new_position: Any, ramp: float = DEFAULT_RAMP) -> None:
        """Move the source; no effect in 2D mode."""
        if not self.is_3d:
            return
        with self._lock:
            self.position.set(np.asarray(new_position, dtype=np.float64).reshape(3), ramp)

    def set_half_volume_radius(self, new_radius: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change the distance at which volume halves; no effect in 2D mode."""
        if not self.is_3d:
            return
        with self._lock:
            self.half_volume_radius.set(new_radius, ramp)

    def stop(self, ramp: float = DEFAULT_RAMP) -> None:
        """Fade out over ``ramp`` seconds, then stop playing."""
        with self._lock:
            if not (self.stopping or self.stopped):
                self.stopping = True
                self.volume.target = 0.0
                self.volume.ramp = float(ramp)
            else:
                self.volume.ramp = min(self.volume.ramp, float(ramp))


class Listener:
    """Position and right-pointing unit vector used to pan 3D samples."""

    def __init__(self, lock: Any = None) -> None:
        self.position = Ramp(np.zeros(3))
        self.right = Ramp(np.array([1.0, 0.0, 0.0]))
        self._lock = lock if lock is not None else threading.RLock()

    def set_position_right(self, new_position: Any, new_right: Any, ramp: float = DEFAULT_RAMP) -> None:
        """Move the listener; ``new_right`` is normalised (zero becomes +x)."""
        right = np.asarray(new_right, dtype=np.float64).reshape(3)
        with self._lock:
            self.position.set(np.asarray(new_position, dtype=np.float64).reshape(3), ramp)
            if not right.any():
                self.right.set(np.array([1.0, 0.0, 0.0]), ramp)
            else:
                self.right.set(right / np.linalg.norm(right), ramp)


def compute_pan_weights(pan: float) -> tuple[float, float]:
    """Equal-power left/right weights for ``pan`` clamped to [-1, 1]."""
    pan = max(-1.0, min(1.0, float(pan)))
    ang = 0.5 * _PI * (0.5 * (pan + 1.0))
    return math.cos(ang), math.sin(ang)


def compute_pan_from_listener_and_position(
    listener_position: Any,
    listener_right: Any,
    source_position: Any,
    source_half_radius: float,
) -> tuple[float, float]:
    """Left/right weights for a source heard from the listener, with distance falloff."""
    to = np.asarray(source_position, dtype=np.float64) - np.asarray(listener_position, dtype=np.float64)
    distance = float(np.linalg.norm(to))
    if distance == 0.0:
        both = math.sqrt(2.0)
        return both, both
    amt = float(np.dot(np.asarray(listener_right, dtype=np.float64), to)) / distance
    ang = 0.5 * _PI * (0.5 * (amt + 1.0))
    att = 1.0 / (1.0 + (distance / source_half_radius))
    return math.cos(ang) * att, math.sin(ang) * att


def step_value_ramp(ramp: Ramp) -> None:
    """Advance a scalar ramp by one mix block."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = ramp.target
        ramp.ramp = 0.0
    else:
        ramp.value += (RAMP_STEP / ramp.ramp) * (ramp.target - ramp.value)
        ramp.ramp -= RAMP_STEP


def step_position_ramp(ramp: Ramp) -> None:
    """Advance a 3D position ramp by one mix block (linear interpolation)."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = np.array(ramp.target, dtype=np.float64)
        ramp.ramp = 0.0
    else:
        t = RAMP_STEP / ramp.ramp
        ramp.value = ramp.value * (1.0 - t) + ramp.target * t
        ramp.ramp -= RAMP_STEP


def step_direction_ramp(ramp: Ramp) -> None:
    """Advance a unit-direction ramp by one mix block (rotating toward target)."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = np.array(ramp.target, dtype=np.float64)
        ramp.ramp = 0.0
        return
    value = np.asarray(ramp.value, dtype=np.float64)
    target = np.asarray(ramp.target, dtype=np.float64)
    norm = np.cross(value, target)
    if not norm.any():
        tx, ty, tz = target
        if tx <= ty and tx <= tz:
            norm = np.array([1.0, 0.0, 0.0])
        elif ty <= tz:
            norm = np.array([0.0, 1.0, 0.0])
        else:
            norm = np.array([0.0, 0.0, 1.0])
        norm = norm - target * float(np.dot(target, norm))
    with np.errstate(invalid="ignore", divide="ignore"):
        norm = norm / np.linalg.norm(norm)
    perp = np.cross(norm, target)
    angle = math.acos(max(-1.0, min(1.0, float(np.dot(value, target)))))
    angle *= (ramp.ramp - RAMP_STEP) / ramp.ramp
    ramp.value = target * math.cos(angle) + perp * math.sin(angle)
    ramp.ramp -= RAMP_STEP


class Mixer:
    """Holds the playing samples, the listener and the global volume."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.volume = Ramp(1.0)
        self.listener = Listener(self.lock)
        self.playing_samples: list[PlayingSample] = []

    def _start(self, playing: PlayingSample) -> PlayingSample:
        with self.lock:
            self.playing_samples.append(playing)
        return playing

    def play(self, sample: Sample, volume: float = 1.0, pan: float = 0.0) -> PlayingSample:
        """Play ``sample`` once, panned (-1 hard left .. 1 hard right)."""
        return self._start(PlayingSample(sample, volume, pan=pan, lock=self.lock))

    def play_3d(
        self, sample: Sample, volume: float, position: Any, half_volume_radius: float = math.inf
    ) -> PlayingSample:
        """Play ``sample`` once at ``position``, panned by the listener."""
        return self._start(
            PlayingSample(sample, volume, position=position, half_volume_radius=half_volume_radius, lock=self.lock)
        )

    def loop(self, sample: Sample, volume: float = 1.0, pan: float = 0.0) -> PlayingSample:
        """Play ``sample`` repeatedly until stopped."""
        return self._start(PlayingSample(sample, volume, pan=pan, loop=True, lock=self.lock))

    def loop_3d(
        self, sample: Sample, volume: float, position: Any, half_volume_radius: float = math.inf
    ) -> PlayingSample:
        """Play ``sample`` repeatedly at ``position`` until stopped."""
        return self._start(
            PlayingSample(
                sample, volume, position=position, half_volume_radius=half_volume_radius, loop=True, lock=self.lock
            )
        )

    def stop_all_samples(self) -> None:
        """Fade out every playing sample."""
        with self.lock:
            for playing in self.playing_samples:
                playing.stop()

    def set_volume(self, new_volume: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change the global volume over ``ramp`` seconds."""
        with self.lock:
            self.volume.set(new_volume, ramp)

    def _weights(self, playing: PlayingSample, position: np.ndarray, right: np.ndarray) -> tuple[float, float]:
        if playing.is_3d:
            return compute_pan_from_listener_and_position(
                position, right, playing.position.value, playing.half_volume_radius.value
            )
        return compute_pan_weights(playing.pan.value)

    def _mix_one(self, playing: PlayingSample, out: np.ndarray, start: tuple, end: tuple) -> bool:
        start_volume, start_position, start_right = start
        end_volume, end_position, end_right = end

        start_l, start_r = self._weights(playing, start_position, start_right)
        if playing.is_3d:
            step_position_ramp(playing.position)
            step_value_ramp(playing.half_volume_radius)
        else:
            step_value_ramp(playing.pan)
        gain = start_volume * playing.volume.value
        start_l, start_r = start_l * gain, start_r * gain

        step_value_ramp(playing.volume)

        end_l, end_r = self._weights(playing, end_position, end_right)
        gain = end_volume * playing.volume.value
        end_l, end_r = end_l * gain, end_r * gain

        steps = np.arange(MIX_SAMPLES, dtype=np.float64) / MIX_SAMPLES
        pans = np.column_stack([start_l + (end_l - start_l) * steps, start_r + (end_r - start_r) * steps])

        length = len(playing.data)
        if playing.loop:
            indices = (playing.i + np.arange(MIX_SAMPLES)) % length
            out += pans * playing.data[indices, np.newaxis]
            playing.i = (playing.i + MIX_SAMPLES) % length
        else:
            count = min(MIX_SAMPLES, length - playing.i)
            chunk = playing.data[playing.i : playing.i + count]
            out[:count] += pans[:count] * chunk[:, np.newaxis]
            playing.i += count

        return playing.i >= length or (playing.stopping and playing.volume.value == 0.0)

    def mix(self) -> np.ndarray:
        """Mix the next block; returns ``(MIX_SAMPLES, 2)`` float32 left/right frames."""
        out = np.zeros((MIX_SAMPLES, 2), dtype=np.float64)
        with self.lock:
            listener = self.listener
            start = (self.volume.value, listener.position.value, listener.right.value)
            step_value_ramp(self.volume)
            step_position_ramp(listener.position)
            step_direction_ramp(listener.right)
            end = (self.volume.value, listener.position.value, listener.right.value)

            remaining = []
            for playing in self.playing_samples:
                if self._mix_one(playing, out, start, end):
                    playing.stopped = True
                else:
                    remaining.append(playing)
            self.playing_samples = remaining
        return out.astype(np.float32)