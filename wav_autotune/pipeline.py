from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

from .codec import AudioBuffer
from .dsp_utils import expand_channels, normalize_peak, peak, reduce_to_mono
from .engine import CorrectionEngine, CorrectionEngineAdapter
from .framing import FrameScheduler
from .overlap_add import OverlapAddAccumulator
from .params import CorrectionParameters
from .pitch_engine import PitchCorrectionEngine
from .progress import ProgressGate, ProgressSink
from .wav_io import read_wav, write_wav

LOG = logging.getLogger(__name__)

# the write gets the rest
FRAME_PROGRESS_SHARE = 0.98


class CancelFlag(Protocol):
    def is_set(self) -> bool: ...


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class RunSummary:
    status: RunStatus
    frames_total: int
    frames_processed: int
    frames_failed: int
    failed_frames: list[int] = field(default_factory=list)
    samples_processed: int = 0
    duration_ms: float = 0.0
    engine: str = ""
    input_path: str | None = None
    output_path: str | None = None

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.status is RunStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


class AutotunePipeline:
    """Frame scheduling, engine driving and overlap-add for one set of parameters.

    Each call to `process`/`process_file` is an independent run with its own
    engine state and accumulator, so one pipeline may serve concurrent runs.
    """

    def __init__(self, params: CorrectionParameters | None = None, engine: CorrectionEngine | None = None):
        self.params = (params or CorrectionParameters()).validate()
        self.engine = engine or PitchCorrectionEngine()

    def process(
        self,
        buffer: AudioBuffer,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> tuple[AudioBuffer | None, RunSummary]:
        with ProgressGate(progress) as gate:
            output, result = self._run(buffer, gate, cancel, share=1.0)
            if output is not None:
                gate(1.0)
        return output, result

    def _run(
        self,
        buffer: AudioBuffer,
        gate: ProgressGate,
        cancel: Optional[CancelFlag],
        share: float,
    ) -> tuple[AudioBuffer | None, RunSummary]:
        """Frame loop; frame progress fills [0, share] of the gate."""
        start = time.perf_counter()
        L = self.params.frame_length
        H = self.params.hop_length

        mono = reduce_to_mono(buffer)
        if buffer.channels == 2:
            LOG.info("Converted stereo to mono for analysis")
        scheduler = FrameScheduler(mono.samples[:, 0], frame_length=L, hop=H)
        total = len(scheduler)
        accumulator = OverlapAddAccumulator(scheduler.output_length, L)
        LOG.info("Processing %d mono samples in %d frames (L=%d, hop=%d)", mono.n_frames, total, L, H)

        def summary(status: RunStatus, adapter: CorrectionEngineAdapter, samples: int) -> RunSummary:
            return RunSummary(
                status=status,
                frames_total=total,
                frames_processed=adapter.frames_processed,
                frames_failed=adapter.failure_count,
                failed_frames=list(adapter.failed_frames),
                samples_processed=samples,
                duration_ms=(time.perf_counter() - start) * 1000.0,
                engine=self.engine.name,
            )

        with CorrectionEngineAdapter(self.engine, self.params, buffer.sample_rate) as adapter:
            for frame in scheduler:
                if cancel is not None and cancel.is_set():
                    LOG.info("Run cancelled after %d of %d frames; discarding output", frame.index, total)
                    return None, summary(RunStatus.CANCELLED, adapter, 0)
                outcome = adapter.process_frame(frame)
                accumulator.add_frame(outcome.samples, outcome.offset)
                gate(share * (frame.index + 1) / total)

            reconstructed = mono.with_samples(accumulator.finalize())
            pk = peak(reconstructed.samples)
            normalized = normalize_peak(reconstructed)
            if pk > 1.0:
                LOG.info("Applied normalization: %.3fx (peak was %.3f)", 1.0 / pk, pk)
            output = expand_channels(normalized, buffer.source_channels)
            result = summary(RunStatus.COMPLETED, adapter, output.n_frames * output.channels)

        if result.frames_failed:
            LOG.warning("%d of %d frames fell back to the original audio", result.frames_failed, total)
        return output, result

    def process_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[CancelFlag] = None,
    ) -> RunSummary:
        """Read, correct and write one file; progress reaches 1.0 only once the output exists."""
        start = time.perf_counter()
        buffer = read_wav(input_path)
        with ProgressGate(progress) as gate:
            output, result = self._run(buffer, gate, cancel, share=FRAME_PROGRESS_SHARE)
            result.input_path = str(input_path)
            if output is not None:
                write_wav(output_path, output)
                result.output_path = str(output_path)
                gate(1.0)
        result.duration_ms = (time.perf_counter() - start) * 1000.0
        LOG.info(
            "%s %s -> %s in %.0f ms (%d/%d frames fell back)",
            result.status.value.capitalize(),
            input_path,
            output_path,
            result.duration_ms,
            result.frames_failed,
            result.frames_total,
        )
        return result
