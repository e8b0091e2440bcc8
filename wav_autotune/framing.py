"""Fixed-size, fixed-hop framing of a mono signal."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .errors import InvalidParameter


@dataclass(frozen=True)
class Frame:
    index: int
    offset: int
    samples: np.ndarray
    valid: int
    """Number of real samples; the rest of `samples` is zero padding."""


def check_geometry(frame_length: int, hop: int) -> None:
    if frame_length <= 0:
        raise InvalidParameter("frame_length", frame_length, "must be positive")
    if hop <= 0 or hop >= frame_length:
        raise InvalidParameter("hop_length", hop, f"must satisfy 0 < hop < frame_length ({frame_length})")


def frame_count(n_samples: int, frame_length: int, hop: int) -> int:
    check_geometry(frame_length, hop)
    return math.ceil(n_samples / hop) if n_samples > 0 else 0


def frame_offsets(n_samples: int, frame_length: int, hop: int) -> range:
    check_geometry(frame_length, hop)
    return range(0, max(n_samples, 0), hop)


def expected_output_length(n_samples: int, frame_length: int, hop: int) -> int:
    check_geometry(frame_length, hop)
    return n_samples


class FrameScheduler:
    """Lazy, forward-only sequence of zero-padded frames over a mono signal.

    Iterating a second time raises: a scheduler belongs to exactly one run.
    """

    def __init__(self, signal: np.ndarray, frame_length: int = 1024, hop: int = 256):
        check_geometry(frame_length, hop)
        signal = np.asarray(signal, dtype=np.float64)
        if signal.ndim != 1:
            raise ValueError(f"FrameScheduler expects a mono 1D signal, got shape {signal.shape}")
        self.signal = signal
        self.frame_length = int(frame_length)
        self.hop = int(hop)
        self._consumed = False

    def __len__(self) -> int:
        return frame_count(len(self.signal), self.frame_length, self.hop)

    @property
    def output_length(self) -> int:
        return expected_output_length(len(self.signal), self.frame_length, self.hop)

    def __iter__(self) -> Iterator[Frame]:
        if self._consumed:
            raise RuntimeError("FrameScheduler has already been consumed")
        self._consumed = True
        return self._frames()

    def _frames(self) -> Iterator[Frame]:
        n = len(self.signal)
        L = self.frame_length
        for index, offset in enumerate(frame_offsets(n, L, self.hop)):
            chunk = self.signal[offset : offset + L]
            if len(chunk) == L:
                samples = chunk.copy()
            else:
                samples = np.zeros(L, dtype=np.float64)
                samples[: len(chunk)] = chunk
            yield Frame(index=index, offset=offset, samples=samples, valid=len(chunk))
