"""PCM <-> float conversion for the bit depths the pipeline accepts."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import UnsupportedFormat

FULL_SCALE: dict[int, float] = {
    16: 32768.0,
    24: 8388608.0,
    32: 2147483648.0,
}
SUPPORTED_CHANNELS = (1, 2)


@dataclass
class AudioBuffer:
    """Float samples shaped (n_frames, n_channels), tagged with their source format."""

    samples: np.ndarray
    sample_rate: int
    bit_depth: int
    source_channels: int

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float64)
        if samples.ndim == 1:
            samples = samples[:, None]
        if samples.ndim != 2:
            raise ValueError(f"Unexpected audio shape: {samples.shape}")
        self.samples = samples

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def n_frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.n_frames / float(self.sample_rate) if self.sample_rate else 0.0

    def with_samples(self, samples: np.ndarray) -> "AudioBuffer":
        return AudioBuffer(samples, self.sample_rate, self.bit_depth, self.source_channels)


def validate_format(bit_depth: int, channels: int) -> None:
    if bit_depth not in FULL_SCALE:
        raise UnsupportedFormat(
            f"Unsupported bit depth: {bit_depth}. Only 16, 24, and 32-bit are supported."
        )
    if channels not in SUPPORTED_CHANNELS:
        raise UnsupportedFormat(
            f"Unsupported channel count: {channels}. Only mono and stereo are supported."
        )


def _int_range(bit_depth: int) -> tuple[int, int]:
    full = int(FULL_SCALE[bit_depth])
    return -full, full - 1


def pcm_bytes_to_ints(data: bytes, bit_depth: int) -> np.ndarray:
    """Unpack little-endian signed PCM into int64 sample values."""
    width = bit_depth // 8
    if len(data) % width != 0:
        raise UnsupportedFormat(f"PCM data length {len(data)} is not a multiple of {width} bytes")
    if bit_depth == 16:
        return np.frombuffer(data, dtype="<i2").astype(np.int64)
    if bit_depth == 32:
        return np.frombuffer(data, dtype="<i4").astype(np.int64)
    raw = np.frombuffer(data, dtype=np.uint8).reshape(-1, 3).astype(np.int64)
    ints = raw[:, 0] | (raw[:, 1] << 8) | (raw[:, 2] << 16)
    # sign-extend from bit 23
    return np.where(ints >= 1 << 23, ints - (1 << 24), ints)


def ints_to_pcm_bytes(ints: np.ndarray, bit_depth: int) -> bytes:
    ints = np.asarray(ints, dtype=np.int64).reshape(-1)
    if bit_depth == 16:
        return ints.astype("<i2").tobytes()
    if bit_depth == 32:
        return ints.astype("<i4").tobytes()
    packed = (ints & 0xFFFFFF).astype("<u4").view(np.uint8).reshape(-1, 4)[:, :3]
    return packed.tobytes()


def from_pcm_ints(ints: np.ndarray, bit_depth: int) -> np.ndarray:
    return np.asarray(ints, dtype=np.float64) / FULL_SCALE[bit_depth]


def to_pcm_ints(samples: np.ndarray, bit_depth: int) -> np.ndarray:
    """Scale floats to integer PCM, clamping out-of-range values instead of wrapping."""
    lo, hi = _int_range(bit_depth)
    scaled = np.round(np.asarray(samples, dtype=np.float64) * FULL_SCALE[bit_depth])
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=hi, neginf=lo)
    return np.clip(scaled, lo, hi).astype(np.int64)


def decode(data: bytes, bit_depth: int, channels: int, sample_rate: int) -> AudioBuffer:
    validate_format(bit_depth, channels)
    ints = pcm_bytes_to_ints(data, bit_depth)
    if ints.size % channels != 0:
        raise UnsupportedFormat(
            f"PCM data holds {ints.size} samples, not a whole number of {channels}-channel frames"
        )
    samples = from_pcm_ints(ints, bit_depth).reshape(-1, channels)
    return AudioBuffer(samples, sample_rate, bit_depth, channels)


def encode(buffer: AudioBuffer, bit_depth: int | None = None) -> bytes:
    bit_depth = buffer.bit_depth if bit_depth is None else bit_depth
    validate_format(bit_depth, buffer.channels)
    return ints_to_pcm_bytes(to_pcm_ints(buffer.samples, bit_depth), bit_depth)
