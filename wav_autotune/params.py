from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

from .errors import InvalidParameter
from .music_theory import KEY_NAMES


@dataclass(frozen=True)
class CorrectionParameters:
    key: int = 0  # index into KEY_NAMES
    note: int = 0  # 0 = snap to key, 1-12 = force C..B
    octave: int = 2
    formant: int = 0  # semitones
    strength: float = 0.8
    transition: float = 0.1
    frame_length: int = 1024
    hop_length: int = 256

    def validate(self) -> "CorrectionParameters":
        _check_int("key", self.key, 0, len(KEY_NAMES) - 1)
        _check_int("note", self.note, 0, 12)
        _check_int("octave", self.octave, 0, 4)
        _check_int("formant", self.formant, -12, 12)
        _check_float("strength", self.strength, 0.0, 1.0)
        _check_float("transition", self.transition, 0.01, 1.0)
        _check_int("frame_length", self.frame_length, 16, 1 << 16)
        _check_int("hop_length", self.hop_length, 1, self.frame_length - 1)
        return self

    @property
    def key_name(self) -> str:
        return KEY_NAMES[self.key]

    @property
    def overlap(self) -> float:
        return self.frame_length / self.hop_length

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "CorrectionParameters":
        """Build from a preset/config mapping, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in names})


def _check_int(name: str, value: Any, lo: int, hi: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(name, value, "expected an integer")
    if not lo <= value <= hi:
        raise InvalidParameter(name, value, f"must be between {lo} and {hi}")


def _check_float(name: str, value: Any, lo: float, hi: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameter(name, value, "expected a number")
    # NaN fails both comparisons
    if not lo <= float(value) <= hi:
        raise InvalidParameter(name, value, f"must be between {lo} and {hi}")
