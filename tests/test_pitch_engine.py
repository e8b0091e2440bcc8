import numpy as np
import pytest

pytest.importorskip("librosa")

from wav_autotune.codec import AudioBuffer  # noqa: E402
from wav_autotune.errors import EngineError, InvalidParameter  # noqa: E402
from wav_autotune.music_theory import (  # noqa: E402
    KEY_NAMES,
    describe_note,
    forced_note_midi,
    nearest_scale_midi,
    scale_pitch_classes,
    target_midi,
)
from wav_autotune.params import CorrectionParameters  # noqa: E402
from wav_autotune.pipeline import AutotunePipeline  # noqa: E402
from wav_autotune.pitch_engine import PitchCorrectionEngine, shift_formants, shift_frame  # noqa: E402

SR = 44100
C_MAJOR = frozenset({0, 2, 4, 5, 7, 9, 11})


def _sine(freq, n=1024, gain=0.5):
    return gain * np.sin(2.0 * np.pi * freq * np.arange(n) / SR)


def test_key_table():
    assert len(KEY_NAMES) == 24
    assert scale_pitch_classes(0) == C_MAJOR
    # relative minor shares the major scale's notes
    assert scale_pitch_classes(KEY_NAMES.index("A Minor")) == C_MAJOR
    assert scale_pitch_classes(KEY_NAMES.index("G Major")) == frozenset({7, 9, 11, 0, 2, 4, 6})


def test_nearest_scale_note():
    assert nearest_scale_midi(69.4, C_MAJOR) == 69
    assert nearest_scale_midi(70.6, C_MAJOR) == 71
    # C#4 sits between C4 and D4; ties resolve downward
    assert nearest_scale_midi(61.0, C_MAJOR) == 60


def test_forced_notes():
    assert forced_note_midi(1, 2) == 60
    assert forced_note_midi(10, 2) == 69
    assert forced_note_midi(1, 0) == 36
    assert describe_note(60) == "C4"
    assert target_midi(300.0, key=0, note=1, octave=2) == 60


def _run_frame(engine, frame, **overrides):
    params = CorrectionParameters(**overrides).validate()
    state = engine.create_state(params, SR)
    return engine.process_frame(state, frame, params), state


def test_sharp_note_is_pulled_down():
    engine = PitchCorrectionEngine()
    out, state = _run_frame(engine, _sine(452.0))
    assert state.last_f0 == pytest.approx(452.0, rel=0.02)
    assert state.last_target == 69
    assert state.shift < 0.0
    assert state.voiced_frames == 1
    assert out.shape == (1024,)


def test_shift_glides_by_transition():
    engine = PitchCorrectionEngine()
    params = CorrectionParameters(strength=1.0, transition=0.5)
    state = engine.create_state(params, SR)
    engine.process_frame(state, _sine(452.0), params)
    first = state.shift
    engine.process_frame(state, _sine(452.0), params)
    assert abs(state.shift) > abs(first)
    assert abs(state.shift) < 0.5


def test_zero_strength_leaves_frame_untouched():
    frame = _sine(452.0)
    out, state = _run_frame(PitchCorrectionEngine(), frame, strength=0.0)
    assert state.shift == 0.0
    np.testing.assert_array_equal(out, frame)


def test_silence_is_unvoiced():
    out, state = _run_frame(PitchCorrectionEngine(), np.zeros(1024))
    assert state.last_f0 is None
    assert state.voiced_frames == 0
    np.testing.assert_array_equal(out, np.zeros(1024))


def test_formant_shift_keeps_length():
    out, _ = _run_frame(PitchCorrectionEngine(), _sine(330.0), formant=-4)
    assert out.shape == (1024,)
    assert np.isfinite(out).all()
    assert shift_formants(_sine(330.0), 0) == pytest.approx(_sine(330.0), abs=1e-12)


def test_shift_frame_is_anchored_at_the_centre():
    frame = np.arange(9, dtype=np.float64)
    shifted = shift_frame(frame, 1.5)
    assert shifted[4] == frame[4]
    np.testing.assert_array_equal(shift_frame(frame, 1.0), frame)


def test_non_finite_input_is_an_engine_error():
    frame = _sine(300.0)
    frame[10] = np.nan
    with pytest.raises(EngineError):
        _run_frame(PitchCorrectionEngine(), frame)


def test_frame_too_short_for_tracking():
    engine = PitchCorrectionEngine()
    with pytest.raises(InvalidParameter) as info:
        engine.create_state(CorrectionParameters(frame_length=16, hop_length=4), SR)
    assert info.value.name == "frame_length"

    pipeline = AutotunePipeline(CorrectionParameters(frame_length=16, hop_length=4), engine)
    with pytest.raises(InvalidParameter):
        pipeline.process(AudioBuffer(_sine(300.0, n=256), SR, 16, 1))


def test_engine_holds_no_run_state():
    engine = PitchCorrectionEngine()
    params = CorrectionParameters()
    a = engine.create_state(params, SR)
    b = engine.create_state(params, SR)
    engine.process_frame(a, _sine(452.0), params)
    assert b.shift == 0.0
    assert b.frames_seen == 0
