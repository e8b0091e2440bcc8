from __future__ import annotations

import numpy as np
import librosa

KEY_NAMES = [
    "C Major", "G Major", "D Major", "A Major", "E Major", "B Major", "F# Major", "C# Major",
    "F Major", "Bb Major", "Eb Major", "Ab Major", "A Minor", "E Minor", "B Minor", "F# Minor",
    "C# Minor", "G# Minor", "D# Minor", "A# Minor", "D Minor", "G Minor", "C Minor", "F Minor",
]
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Root pitch class of each entry in KEY_NAMES (C=0).
KEY_ROOTS = [0, 7, 2, 9, 4, 11, 6, 1, 5, 10, 3, 8, 9, 4, 11, 6, 1, 8, 3, 10, 2, 7, 0, 5]

MAJOR_STEPS = (0, 2, 4, 5, 7, 9, 11)
MINOR_STEPS = (0, 2, 3, 5, 7, 8, 10)


def is_minor(key: int) -> bool:
    return key >= 12


def scale_pitch_classes(key: int) -> frozenset[int]:
    """Pitch classes of the natural major/minor scale for a key index."""
    root = KEY_ROOTS[key]
    steps = MINOR_STEPS if is_minor(key) else MAJOR_STEPS
    return frozenset((root + s) % 12 for s in steps)


def nearest_scale_midi(midi: float, scale: frozenset[int]) -> int:
    """Closest MIDI note whose pitch class lies in `scale` (ties go down)."""
    base = int(np.floor(midi))
    best = None
    for candidate in range(base - 6, base + 8):
        if candidate % 12 not in scale:
            continue
        dist = abs(candidate - midi)
        if best is None or dist < best[0]:
            best = (dist, candidate)
    return best[1]


def forced_note_midi(note: int, octave: int) -> int:
    """MIDI note for note mode 1-12 (C..B) at reference octave 0-4 (2 -> C4 = 60)."""
    return 12 * (octave + 3) + (note - 1)


def target_midi(f0_hz: float, key: int, note: int, octave: int) -> int:
    if note > 0:
        return forced_note_midi(note, octave)
    midi = float(librosa.hz_to_midi(f0_hz))
    return nearest_scale_midi(midi, scale_pitch_classes(key))


def describe_note(midi: int) -> str:
    return f"{NOTE_NAMES[midi % 12]}{midi // 12 - 1}"
