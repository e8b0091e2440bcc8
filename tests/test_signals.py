import numpy as np
import pytest

from wav_autotune.signals import SCALE_C4_C5, note_sequence, off_pitch_test_signal, scale_test_signal


def test_test_signals_stay_in_range():
    in_tune = scale_test_signal(sr=8000, seconds=2.0)
    off = off_pitch_test_signal(sr=8000, seconds=2.0)
    assert in_tune.shape == (16000,)
    assert off.shape == (16000,)
    assert np.max(np.abs(in_tune)) < 1.0
    assert np.max(np.abs(off)) < 1.0
    assert len(SCALE_C4_C5) == 8


def test_notes_fade_in_and_out():
    sig = note_sequence([440.0, 880.0], sr=8000, seconds=1.0, fade=0.1)
    assert sig[0] == 0.0
    # each note starts from silence
    assert abs(sig[4000]) == pytest.approx(0.0, abs=1e-12)
    assert np.max(np.abs(sig[1000:3000])) > 0.3
