from __future__ import annotations

from typing import Any


class AutotuneError(Exception):
    """Base class for every error raised by wav_autotune."""


class UnsupportedFormat(AutotuneError, ValueError):
    """Bit depth, channel count or container the pipeline cannot handle."""


class InvalidParameter(AutotuneError, ValueError):
    """A correction parameter outside its accepted range."""

    def __init__(self, name: str, value: Any, reason: str | None = None):
        self.name = name
        self.value = value
        self.reason = reason
        msg = f"Invalid parameter {name}={value!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class EngineError(AutotuneError, RuntimeError):
    """The correction engine could not process a frame."""

    def __init__(self, message: str, frame_index: int | None = None):
        self.frame_index = frame_index
        super().__init__(message)


class AudioIOError(AutotuneError, OSError):
    """Reading or writing an audio file failed."""
