import threading
from dataclasses import dataclass

import numpy as np
import pytest
import soundfile as sf

from wav_autotune.engine import CorrectionEngine, EngineState
from wav_autotune.errors import EngineError


@dataclass
class CountingState(EngineState):
    calls: int = 0


class FailingEngine(CorrectionEngine):
    """Fails every frame, after scribbling on the state it was handed."""

    def create_state(self, params, sample_rate):
        return CountingState()

    def process_frame(self, state, frame, params):
        state.calls += 1
        frame[:] = 123.0
        raise EngineError("synthetic failure")


class FlakyEngine(CorrectionEngine):
    """Halves every frame and counts successful calls; raises `exc` on the listed call numbers."""

    def __init__(self, fail_on=(), exc=None):
        self.fail_on = set(fail_on)
        self.exc = exc or EngineError("flaky")

    def create_state(self, params, sample_rate):
        return CountingState()

    def process_frame(self, state, frame, params):
        attempt = state.calls
        state.calls += 1
        if attempt in self.fail_on:
            raise self.exc
        return frame * 0.5


class GateEngine(CorrectionEngine):
    """Pass-through that parks on `release` when it reaches call number `hold_at`."""

    def __init__(self, hold_at=3):
        self.hold_at = hold_at
        self.reached = threading.Event()
        self.release = threading.Event()

    def create_state(self, params, sample_rate):
        return CountingState()

    def process_frame(self, state, frame, params):
        if state.calls == self.hold_at:
            self.reached.set()
            self.release.wait(timeout=10.0)
        state.calls += 1
        return frame


@pytest.fixture
def failing_engine():
    return FailingEngine()


@pytest.fixture
def flaky_engine_cls():
    return FlakyEngine


@pytest.fixture
def gate_engine():
    return GateEngine()


@pytest.fixture
def make_wav(tmp_path):
    """Write integer PCM to a WAV file; returns (path, ints) with ints shaped (frames, channels)."""

    def _make(name="in.wav", seconds=0.5, sr=44100, channels=1, bit_depth=16, seed=0, amplitude=0.5):
        rng = np.random.default_rng(seed)
        n = int(round(seconds * sr))
        full = 2 ** (bit_depth - 1)
        t = np.arange(n) / sr
        base = amplitude * np.sin(2.0 * np.pi * 220.0 * t)[:, None] + 0.05 * rng.standard_normal((n, channels))
        ints = np.clip(np.round(base * full), -full, full - 1).astype(np.int64)
        path = tmp_path / name
        subtype = {16: "PCM_16", 24: "PCM_24", 32: "PCM_32"}[bit_depth]
        sf.write(str(path), (ints << (32 - bit_depth)).astype(np.int32), sr, subtype=subtype, format="WAV")
        return path, ints

    return _make
