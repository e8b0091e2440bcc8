from __future__ import annotations

import numpy as np

from .codec import AudioBuffer


def reduce_to_mono(buffer: AudioBuffer) -> AudioBuffer:
    """Average left/right into a single analysis channel (mono passes through)."""
    if buffer.channels == 1:
        return buffer
    if buffer.channels != 2:
        raise ValueError(f"Unexpected channel count: {buffer.channels}")
    left = buffer.samples[:, 0]
    right = buffer.samples[:, 1]
    return buffer.with_samples(0.5 * (left + right))


def expand_channels(mono: AudioBuffer, channels: int) -> AudioBuffer:
    """Duplicate a mono buffer to `channels` identical channels."""
    if mono.channels != 1:
        raise ValueError(f"expand_channels expects mono audio, got {mono.channels} channels")
    if channels == 1:
        return mono
    if channels != 2:
        raise ValueError(f"Unexpected channel count: {channels}")
    sig = mono.samples[:, 0]
    return mono.with_samples(np.stack([sig, sig], axis=-1))


def peak(x: np.ndarray) -> float:
    x = np.asarray(x)
    if x.size == 0:
        return 0.0
    return float(np.max(np.abs(x)))


def normalize_peak(buffer: AudioBuffer, ceiling: float = 1.0) -> AudioBuffer:
    """Scale down so the peak sits at `ceiling` when it exceeds 1.0; never scale up."""
    pk = peak(buffer.samples)
    if pk <= 1.0:
        return buffer
    return buffer.with_samples(buffer.samples * (ceiling / pk))


def rms(x: np.ndarray, eps: float = 1e-12) -> float:
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x * x) + eps))


def peak_dbfs(x: np.ndarray, eps: float = 1e-12) -> float:
    return float(20.0 * np.log10(peak(x) + eps))
