"""Synthetic note sequences for trying the pipeline without a recording."""

from __future__ import annotations

import numpy as np

SCALE_C4_C5 = [261.63, 293.66, 329.63, 349.23, 392.00, 440.00, 493.88, 523.25]


def _envelope(n: int, fade: float) -> np.ndarray:
    progress = np.arange(n, dtype=np.float64) / max(n, 1)
    env = np.ones(n, dtype=np.float64)
    env = np.where(progress < fade, progress / fade, env)
    env = np.where(progress > 1.0 - fade, (1.0 - progress) / fade, env)
    return env


def note_sequence(
    freqs: list[float],
    sr: int = 44100,
    seconds: float = 10.0,
    harmonics: tuple[float, ...] = (1.0, 0.3, 0.15),
    vibrato_hz: float = 0.0,
    vibrato_depth: float = 0.0,
    fade: float = 0.1,
    gain: float = 0.6,
) -> np.ndarray:
    """Equal-length harmonic notes, one per frequency, with linear fades against clicks."""
    total = int(seconds * sr)
    per_note = total // len(freqs)
    out = np.zeros(total, dtype=np.float64)
    for i, freq in enumerate(freqs):
        start = i * per_note
        end = min(start + per_note, total)
        t = np.arange(start, end, dtype=np.float64) / sr
        tone = sum(a * np.sin(2.0 * np.pi * freq * (k + 1) * t) for k, a in enumerate(harmonics))
        if vibrato_depth:
            tone = tone * (1.0 + vibrato_depth * np.sin(2.0 * np.pi * vibrato_hz * t))
        out[start:end] = tone * _envelope(end - start, fade) * gain
    return out


def scale_test_signal(sr: int = 44100, seconds: float = 10.0) -> np.ndarray:
    """C major scale C4..C5, in tune."""
    return note_sequence(SCALE_C4_C5, sr=sr, seconds=seconds)


def off_pitch_test_signal(sr: int = 44100, seconds: float = 8.0, cents: float = 25.0) -> np.ndarray:
    """The same scale alternately sharp/flat by `cents`, with vibrato: audibly corrected."""
    freqs = [f * 2.0 ** ((cents if i % 2 == 0 else -cents) / 1200.0) for i, f in enumerate(SCALE_C4_C5)]
    return note_sequence(
        freqs,
        sr=sr,
        seconds=seconds,
        harmonics=(1.0, 0.4, 0.2, 0.1),
        vibrato_hz=4.5,
        vibrato_depth=0.02,
        fade=0.15,
        gain=0.5,
    )
