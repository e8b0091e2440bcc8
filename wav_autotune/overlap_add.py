"""Windowed overlap-add resynthesis with per-sample weight normalization."""

from __future__ import annotations

import numpy as np

WEIGHT_EPS = 1e-10


def synthesis_window(frame_length: int) -> np.ndarray:
    """Hann window sampled at half-sample offsets.

    No tap is zero, so the first and last samples of the signal still receive
    weight; copies spaced frame_length/4 apart sum to a constant.
    """
    n = np.arange(frame_length, dtype=np.float64)
    return 0.5 - 0.5 * np.cos(2.0 * np.pi * (n + 0.5) / frame_length)


class OverlapAddAccumulator:
    def __init__(self, output_length: int, frame_length: int, window: np.ndarray | None = None):
        if output_length < 0:
            raise ValueError(f"output_length must be >= 0, got {output_length}")
        self.output_length = int(output_length)
        self.frame_length = int(frame_length)
        self.window = synthesis_window(self.frame_length) if window is None else np.asarray(window, dtype=np.float64)
        if self.window.shape != (self.frame_length,):
            raise ValueError(f"window must have length {self.frame_length}, got {self.window.shape}")

        # one frame of slack so a frame starting at the last offset never needs bounds checks
        size = self.output_length + self.frame_length
        self._out = np.zeros(size, dtype=np.float64)
        self._weight = np.zeros(size, dtype=np.float64)
        self.frames_added = 0
        self._finalized = False

    def add_frame(self, frame: np.ndarray, offset: int) -> None:
        if self._finalized:
            raise RuntimeError("Cannot add frames after finalize()")
        frame = np.asarray(frame, dtype=np.float64)
        if frame.shape != (self.frame_length,):
            raise ValueError(f"Expected a frame of {self.frame_length} samples, got shape {frame.shape}")
        if offset < 0 or offset > self.output_length:
            raise ValueError(f"Frame offset {offset} outside [0, {self.output_length}]")

        end = offset + self.frame_length
        self._out[offset:end] += frame * self.window
        self._weight[offset:end] += self.window
        self.frames_added += 1

    def finalize(self) -> np.ndarray:
        if self._finalized:
            raise RuntimeError("finalize() already called")
        self._finalized = True

        out = self._out[: self.output_length]
        weight = self._weight[: self.output_length]
        result = np.zeros(self.output_length, dtype=np.float64)
        covered = weight > WEIGHT_EPS
        result[covered] = out[covered] / weight[covered]
        return result
