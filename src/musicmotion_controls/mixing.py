from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np


logger = logging.getLogger(__name__)


# --- Mixer tuning knobs ---
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_BPM = 120.0
LOOP_MAX_DB = -10.0  # loop level at fill 1.0
SILENCE_THRESHOLD = 0.001
RAMP_S = 0.1
MASTER_VOLUME = 0.8

# DJ filter ranges
LOWPASS_MIN_HZ = 100.0
LOWPASS_MAX_HZ = 20000.0
HIGHPASS_MIN_HZ = 10.0
HIGHPASS_MAX_HZ = 10000.0

# Effects
DELAY_BEATS = 0.5  # eighth note
DELAY_FEEDBACK = 0.5
REVERB_COMB_MS = (29.7, 37.1, 41.1, 43.7)
REVERB_FEEDBACK = 0.78

EFFECTS = ("reverb", "delay", "filter")

# Each loop steps through its notes on eighth notes.
LOOP_PATTERNS: List[List[int]] = [
    [36, 36, 43, 36, 38, 38, 43, 41],  # bass
    [60, 64, 67, 64, 62, 65, 69, 65],  # chord arpeggio
    [72, 74, 76, 79, 76, 74, 72, 67],  # lead
    [84, 79, 84, 88, 86, 83, 79, 83],  # bells
]


def midi_to_freq(midi_note: int) -> float:
    """Convert MIDI note number to frequency in Hz."""
    return 440.0 * (2.0 ** ((midi_note - 69) / 12.0))


def loop_gain(value: float) -> float:
    """Linear amplitude for a loop fader: silent near 0, `LOOP_MAX_DB` at 1, log in between."""
    value = max(0.0, min(1.0, value))
    if value <= SILENCE_THRESHOLD:
        return 0.0
    db = 20.0 * math.log10(value) + LOOP_MAX_DB
    return 10.0 ** (db / 20.0)


def filter_cutoffs(value: float) -> Tuple[float, float]:
    """
    DJ filter mapping -> (lowpass_hz, highpass_hz).

    0.5 is neutral. Below it the lowpass closes toward 100 Hz, above it the highpass
    opens toward 10 kHz; both sweeps are exponential.
    """

    value = max(0.0, min(1.0, value))
    if value < 0.5:
        norm = value * 2.0
        return LOWPASS_MIN_HZ * (LOWPASS_MAX_HZ / LOWPASS_MIN_HZ) ** norm, HIGHPASS_MIN_HZ
    norm = (value - 0.5) * 2.0
    return LOWPASS_MAX_HZ, HIGHPASS_MIN_HZ * (HIGHPASS_MAX_HZ / HIGHPASS_MIN_HZ) ** norm


def one_pole_coeff(cutoff_hz: float, sample_rate: int) -> float:
    return math.exp(-2.0 * math.pi * cutoff_hz / float(sample_rate))


@dataclass
class _Param:
    """Scalar that glides to its target over a fixed ramp time."""

    current: float
    ramp_samples: int
    target: float = field(init=False)
    step: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.target = self.current

    def set(self, target: float) -> None:
        self.target = float(target)
        self.step = (self.target - self.current) / float(max(1, self.ramp_samples))

    def render(self, n: int) -> np.ndarray:
        if self.step == 0.0 or self.current == self.target:
            self.step = 0.0
            return np.full(n, self.current, dtype=np.float64)
        values = self.current + self.step * np.arange(1, n + 1, dtype=np.float64)
        if self.step > 0:
            values = np.minimum(values, self.target)
        else:
            values = np.maximum(values, self.target)
        self.current = float(values[-1])
        return values


class _OnePole:
    def __init__(self) -> None:
        self.y = 0.0

    def lowpass(self, x: np.ndarray, a: float) -> np.ndarray:
        out = np.empty_like(x)
        y = self.y
        b = 1.0 - a
        for i in range(x.size):
            y = a * y + b * x[i]
            out[i] = y
        self.y = y
        return out

    def highpass(self, x: np.ndarray, a: float) -> np.ndarray:
        # one-pole HP via subtracting one-pole LP
        return x - self.lowpass(x, a)


class _FeedbackLine:
    """Delay line whose input is `x + feedback * output`; returns the delayed signal."""

    def __init__(self, delay_samples: int, feedback: float) -> None:
        self.delay = max(1, int(delay_samples))
        self.feedback = feedback
        self._buf = np.zeros(self.delay, dtype=np.float64)
        self._pos = 0

    def process(self, x: np.ndarray) -> np.ndarray:
        out = np.empty_like(x)
        i = 0
        while i < x.size:
            # A chunk no longer than the delay never reads samples it writes.
            n = min(x.size - i, self.delay)
            idx = (self._pos + np.arange(n)) % self.delay
            delayed = self._buf[idx]
            self._buf[idx] = x[i : i + n] + self.feedback * delayed
            out[i : i + n] = delayed
            self._pos = (self._pos + n) % self.delay
            i += n
        return out


@dataclass
class _LoopVoice:
    freqs: np.ndarray
    step_samples: int
    attack: int
    decay: int
    sample_rate: int
    pos: int = 0

    @staticmethod
    def from_notes(notes: Sequence[int], bpm: float, sample_rate: int) -> "_LoopVoice":
        step = max(1, int(sample_rate * 60.0 / bpm / 2.0))
        freqs = np.asarray([midi_to_freq(n) for n in notes], dtype=np.float64)
        return _LoopVoice(
            freqs=freqs,
            step_samples=step,
            attack=max(1, int(sample_rate * 0.005)),
            decay=max(1, int(step * 0.6)),
            sample_rate=sample_rate,
        )

    def render(self, n: int) -> np.ndarray:
        s = self.pos + np.arange(n, dtype=np.int64)
        step_idx = (s // self.step_samples) % self.freqs.size
        local = (s % self.step_samples).astype(np.float64)
        f = self.freqs[step_idx]
        phase = 2.0 * np.pi * f * local / float(self.sample_rate)
        wave = 0.7 * np.sin(phase) + 0.3 * np.sin(2.0 * phase)
        env = np.clip(local / float(self.attack), 0.0, 1.0) * np.exp(-local / float(self.decay))
        self.pos += n
        return wave * env


@dataclass
class _OneShotVoice:
    wave: np.ndarray
    pos: int = 0

    @property
    def done(self) -> bool:
        return self.pos >= self.wave.size

    def render(self, n: int) -> np.ndarray:
        out = np.zeros(n, dtype=np.float64)
        chunk = self.wave[self.pos : self.pos + n]
        out[: chunk.size] = chunk
        self.pos += n
        return out


def _kick(sr: int) -> np.ndarray:
    tt = np.arange(int(sr * 0.3)) / float(sr)
    f = 34.0 + (85.0 - 34.0) * np.exp(-tt / 0.05)
    phase = 2.0 * np.pi * np.cumsum(f) / float(sr)
    return np.tanh(1.6 * np.sin(phase) * np.exp(-tt / 0.22)) * 0.5


def _snare(sr: int) -> np.ndarray:
    tt = np.arange(int(sr * 0.22)) / float(sr)
    rng = np.random.default_rng(7)
    noise = rng.standard_normal(tt.size)
    tone = np.sin(2.0 * np.pi * 190.0 * tt)
    return (0.7 * noise + 0.3 * tone) * np.exp(-tt / 0.08) * 0.3


def _hat(sr: int) -> np.ndarray:
    tt = np.arange(int(sr * 0.08)) / float(sr)
    rng = np.random.default_rng(11)
    noise = rng.standard_normal(tt.size)
    hp = noise - np.convolve(noise, np.ones(4) / 4.0, mode="same")
    return hp * np.exp(-tt / 0.02) * 0.25


def _pluck(midi_notes: Sequence[int]) -> Callable[[int], np.ndarray]:
    def make(sr: int) -> np.ndarray:
        tt = np.arange(int(sr * 0.9)) / float(sr)
        wave = sum(np.sin(2.0 * np.pi * midi_to_freq(m) * tt) for m in midi_notes) / float(len(midi_notes))
        return wave * np.clip(tt / 0.004, 0.0, 1.0) * np.exp(-tt / 0.3) * 0.4

    return make


SAMPLE_BANK: List[Callable[[int], np.ndarray]] = [
    _kick,
    _snare,
    _hat,
    _pluck([72]),
    _pluck([60, 64, 67]),
]


class Mixer:
    """
    Software mixer the controls talk to.

    Loops run through the DJ filter, which also feeds the delay and reverb sends; one-shot
    samples go straight to the output. Setters may be called from any thread; `render()`
    is meant for the audio callback.
    """

    def __init__(
        self,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        bpm: float = DEFAULT_BPM,
        loop_patterns: Sequence[Sequence[int]] = tuple(LOOP_PATTERNS),
        sample_bank: Sequence[Callable[[int], np.ndarray]] = tuple(SAMPLE_BANK),
        master_volume: float = MASTER_VOLUME,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if bpm <= 0:
            raise ValueError(f"bpm must be positive, got {bpm}")

        self.sample_rate = sample_rate
        self.bpm = bpm
        self.master_volume = master_volume
        ramp = max(1, int(sample_rate * RAMP_S))

        self._lock = threading.Lock()
        self._loops = [_LoopVoice.from_notes(p, bpm, sample_rate) for p in loop_patterns]
        self._loop_gains = [_Param(0.0, ramp) for _ in self._loops]
        self._samples = [make(sample_rate) for make in sample_bank]
        self._active: List[_OneShotVoice] = []

        lp_hz, hp_hz = filter_cutoffs(0.5)
        self._lowpass_hz = _Param(lp_hz, ramp)
        self._highpass_hz = _Param(hp_hz, ramp)
        self._lp = _OnePole()
        self._hp = _OnePole()
        self._wet: Dict[str, _Param] = {"reverb": _Param(0.0, ramp), "delay": _Param(0.0, ramp)}
        self._effect_values: Dict[str, float] = {"reverb": 0.0, "delay": 0.0, "filter": 0.5}

        delay_samples = int(sample_rate * 60.0 / bpm * DELAY_BEATS)
        self._delay = _FeedbackLine(delay_samples, DELAY_FEEDBACK)
        self._combs = [_FeedbackLine(int(sample_rate * ms / 1000.0), REVERB_FEEDBACK) for ms in REVERB_COMB_MS]

    @property
    def num_loops(self) -> int:
        return len(self._loops)

    @property
    def num_samples(self) -> int:
        return len(self._samples)

    def loop_volume(self, index: int) -> Optional[float]:
        if not (0 <= index < len(self._loop_gains)):
            return None
        return self._loop_gains[index].target

    def effect_value(self, name: str) -> float:
        return self._effect_values[name]

    def set_loop_volume(self, index: int, value: float) -> None:
        if not (0 <= index < len(self._loop_gains)):
            return
        with self._lock:
            self._loop_gains[index].set(loop_gain(value))

    def trigger_sample(self, index: int) -> None:
        if not (0 <= index < len(self._samples)):
            return
        with self._lock:
            # Retrigger restarts the sample rather than layering it.
            self._active = [v for v in self._active if v.wave is not self._samples[index]]
            self._active.append(_OneShotVoice(self._samples[index]))
        logger.debug("sample %d triggered", index + 1)

    def set_effect(self, name: str, value: float) -> None:
        if name not in EFFECTS:
            raise ValueError(f"Unknown effect '{name}'. Available: {list(EFFECTS)}")
        value = max(0.0, min(1.0, value))
        with self._lock:
            self._effect_values[name] = value
            if name == "filter":
                lp_hz, hp_hz = filter_cutoffs(value)
                self._lowpass_hz.set(lp_hz)
                self._highpass_hz.set(hp_hz)
            else:
                self._wet[name].set(value)

    def render(self, frames: int) -> np.ndarray:
        with self._lock:
            loops = np.zeros(frames, dtype=np.float64)
            for voice, gain in zip(self._loops, self._loop_gains):
                g = gain.render(frames)
                wave = voice.render(frames)
                if np.any(g > 0.0):
                    loops += wave * g

            lp_hz = float(self._lowpass_hz.render(frames)[-1])
            hp_hz = float(self._highpass_hz.render(frames)[-1])
            highpassed = self._hp.highpass(loops, one_pole_coeff(hp_hz, self.sample_rate))
            filtered = self._lp.lowpass(highpassed, one_pole_coeff(lp_hz, self.sample_rate))

            delay_wet = self._wet["delay"].render(frames)
            reverb_wet = self._wet["reverb"].render(frames)
            delayed = self._delay.process(filtered)
            reverb = sum(c.process(filtered) for c in self._combs) / float(len(self._combs))

            shots = np.zeros(frames, dtype=np.float64)
            for v in self._active:
                shots += v.render(frames)
            self._active = [v for v in self._active if not v.done]

        out = filtered + delayed * delay_wet + reverb * reverb_wet + shots
        return np.clip(out * self.master_volume, -1.0, 1.0).astype(np.float32)
