from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import librosa
from scipy.ndimage import uniform_filter1d

from .dsp_utils import rms
from .engine import CorrectionEngine, EngineState
from .errors import EngineError, InvalidParameter
from .music_theory import describe_note, target_midi
from .params import CorrectionParameters

LOG = logging.getLogger(__name__)


@dataclass
class PitchTrackerState(EngineState):
    sample_rate: int
    fmin: float
    fmax: float
    shift: float = 0.0  # semitones currently applied
    last_f0: float | None = None
    last_target: int | None = None
    frames_seen: int = 0
    voiced_frames: int = 0


class PitchCorrectionEngine(CorrectionEngine):
    """Frame-wise pitch snapping: YIN tracking, scale lookup, glided resampling shift."""

    def __init__(
        self,
        fmin: float = 65.0,
        fmax: float = 1046.5,
        silence_rms: float = 1e-3,
        max_shift: float = 12.0,
    ):
        self.fmin = float(fmin)
        self.fmax = float(fmax)
        self.silence_rms = float(silence_rms)
        self.max_shift = float(max_shift)

    def create_state(self, params: CorrectionParameters, sample_rate: int) -> PitchTrackerState:
        L = params.frame_length
        # YIN needs the longest period to fit inside frame_length - win_length - 1
        longest_period = L - L // 2 - 2
        if longest_period <= 0:
            raise InvalidParameter("frame_length", L, "too short for pitch tracking")
        fmin = max(self.fmin, 1.05 * sample_rate / longest_period)
        fmax = min(self.fmax, 0.45 * sample_rate)
        if fmin >= fmax:
            raise InvalidParameter(
                "frame_length",
                L,
                f"too short to track pitch at {sample_rate} Hz (lowest trackable {fmin:.1f} Hz)",
            )
        LOG.debug("Pitch search range %.1f-%.1f Hz at %d Hz", fmin, fmax, sample_rate)
        return PitchTrackerState(sample_rate=int(sample_rate), fmin=fmin, fmax=fmax)

    def detect_pitch(self, state: PitchTrackerState, frame: np.ndarray) -> float | None:
        if rms(frame) < self.silence_rms:
            return None
        f0 = librosa.yin(
            frame,
            fmin=state.fmin,
            fmax=state.fmax,
            sr=state.sample_rate,
            frame_length=len(frame),
            center=False,
        )
        hz = float(f0[0])
        # YIN pins aperiodic frames to the search bounds
        if not np.isfinite(hz) or hz <= state.fmin * 1.001 or hz >= state.fmax * 0.999:
            return None
        return hz

    def process_frame(self, state: PitchTrackerState, frame: np.ndarray, params: CorrectionParameters) -> np.ndarray:
        if not np.isfinite(frame).all():
            raise EngineError("Input frame contains non-finite samples")

        state.frames_seen += 1
        f0 = self.detect_pitch(state, frame)
        if f0 is None:
            desired = 0.0
        else:
            target = target_midi(f0, params.key, params.note, params.octave)
            error = float(target - librosa.hz_to_midi(f0))
            desired = float(np.clip(error * params.strength, -self.max_shift, self.max_shift))
            state.last_f0 = f0
            state.last_target = target
            state.voiced_frames += 1

        state.shift += params.transition * (desired - state.shift)
        if f0 is not None:
            LOG.debug("f0 %.1f Hz -> %s, shift %+.2f st", f0, describe_note(state.last_target), state.shift)
        out = shift_frame(frame, 2.0 ** (state.shift / 12.0))
        if params.formant:
            out = shift_formants(out, params.formant)
        return out


def shift_frame(frame: np.ndarray, ratio: float) -> np.ndarray:
    """Resample around the frame centre; ratio > 1 raises pitch."""
    if abs(ratio - 1.0) < 1e-9:
        return frame.copy()
    n = np.arange(len(frame), dtype=np.float64)
    centre = 0.5 * (len(frame) - 1)
    pos = centre + (n - centre) * ratio
    return np.interp(pos, n, frame)


def shift_formants(frame: np.ndarray, semitones: int) -> np.ndarray:
    """Warp the smoothed magnitude envelope by 2**(semitones/12), keeping the fine structure."""
    L = len(frame)
    spec = np.fft.rfft(frame)
    mag = np.abs(spec)
    env = uniform_filter1d(mag, size=max(3, L // 64), mode="nearest") + 1e-12
    bins = np.arange(len(mag), dtype=np.float64)
    factor = 2.0 ** (semitones / 12.0)
    warped = np.interp(bins / factor, bins, env, right=env[-1])
    return np.fft.irfft(spec * (warped / env), n=L)
