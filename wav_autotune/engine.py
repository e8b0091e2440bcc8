from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .errors import EngineError
from .framing import Frame
from .params import CorrectionParameters

LOG = logging.getLogger(__name__)


class EngineState:
    """Opaque per-run engine history. Subclasses hold whatever the engine tracks."""

    def copy(self) -> "EngineState":
        return copy.deepcopy(self)


class CorrectionEngine(ABC):
    """A stateful frame transform.

    All history must live in the state returned by `create_state`, never on the
    engine itself, so one engine object can serve several runs at once.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def create_state(self, params: CorrectionParameters, sample_rate: int) -> EngineState: ...

    @abstractmethod
    def process_frame(self, state: EngineState, frame: np.ndarray, params: CorrectionParameters) -> np.ndarray:
        """Return a corrected frame of the same length; may mutate `state`."""


class BypassEngine(CorrectionEngine):
    """Returns every frame unchanged."""

    def create_state(self, params: CorrectionParameters, sample_rate: int) -> EngineState:
        return EngineState()

    def process_frame(self, state: EngineState, frame: np.ndarray, params: CorrectionParameters) -> np.ndarray:
        return frame


@dataclass(frozen=True)
class FrameOutcome:
    index: int
    offset: int
    samples: np.ndarray
    error: EngineError | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class CorrectionEngineAdapter:
    """Drives one engine state through one file, strictly in frame order.

    A failing frame is replaced by its original content and the state rolls
    back to what it was before the call.
    """

    def __init__(self, engine: CorrectionEngine, params: CorrectionParameters, sample_rate: int):
        self.engine = engine
        self.params = params
        self.sample_rate = int(sample_rate)
        self._state: EngineState | None = engine.create_state(params, self.sample_rate)
        self._next_index = 0
        self.failed_frames: list[int] = []
        self.errors: dict[int, EngineError] = {}

    @property
    def frames_processed(self) -> int:
        return self._next_index

    @property
    def failure_count(self) -> int:
        return len(self.failed_frames)

    @property
    def state(self) -> EngineState:
        if self._state is None:
            raise RuntimeError("Engine state already released")
        return self._state

    def process_frame(self, frame: Frame) -> FrameOutcome:
        state = self.state
        if frame.index != self._next_index:
            raise RuntimeError(f"Frame {frame.index} submitted out of order (expected {self._next_index})")
        self._next_index += 1

        trial = state.copy()
        try:
            corrected = self.engine.process_frame(trial, frame.samples.copy(), self.params)
            corrected = self._check_output(corrected, frame)
        except EngineError as e:
            return self._fallback(frame, e)
        except (ValueError, ArithmeticError) as e:
            err = EngineError(f"{type(e).__name__}: {e}", frame_index=frame.index)
            err.__cause__ = e
            return self._fallback(frame, err)

        self._state = trial
        return FrameOutcome(frame.index, frame.offset, corrected)

    def _check_output(self, corrected: np.ndarray, frame: Frame) -> np.ndarray:
        out = np.asarray(corrected, dtype=np.float64)
        if out.shape != frame.samples.shape:
            raise EngineError(
                f"Engine returned shape {out.shape}, expected {frame.samples.shape}",
                frame_index=frame.index,
            )
        if not np.isfinite(out).all():
            raise EngineError("Engine returned non-finite samples", frame_index=frame.index)
        return out

    def _fallback(self, frame: Frame, error: EngineError) -> FrameOutcome:
        if error.frame_index is None:
            error.frame_index = frame.index
        LOG.warning("Correction failed at frame %d (sample %d): %s", frame.index, frame.offset, error)
        self.failed_frames.append(frame.index)
        self.errors[frame.index] = error
        return FrameOutcome(frame.index, frame.offset, frame.samples, error=error)

    def close(self) -> None:
        self._state = None

    def __enter__(self) -> "CorrectionEngineAdapter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
