"""WAV container reading/writing on top of soundfile (libsndfile)."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf

from .codec import AudioBuffer, from_pcm_ints, to_pcm_ints, validate_format
from .errors import AudioIOError, UnsupportedFormat

LOG = logging.getLogger(__name__)

SUBTYPE_BITS = {"PCM_16": 16, "PCM_24": 24, "PCM_32": 32}
BITS_SUBTYPE = {bits: subtype for subtype, bits in SUBTYPE_BITS.items()}
WAV_FORMATS = {"WAV", "WAVEX"}


@dataclass(frozen=True)
class WavInfo:
    sample_rate: int
    channels: int
    bit_depth: int
    frames: int

    @property
    def duration(self) -> float:
        return self.frames / float(self.sample_rate) if self.sample_rate else 0.0


def probe_wav(path: str | Path) -> WavInfo:
    """Read and validate the header only."""
    path = Path(path)
    if not path.is_file():
        raise AudioIOError(f"File not found: {path}")
    try:
        info = sf.info(str(path))
    except sf.LibsndfileError as e:
        raise UnsupportedFormat(f"Malformed or unrecognised WAV header in {path}: {e}") from e
    except OSError as e:
        raise AudioIOError(f"Failed to open input file {path}: {e}") from e

    if info.format not in WAV_FORMATS:
        raise UnsupportedFormat(f"{path} is not a WAV file (format={info.format})")
    if info.subtype not in SUBTYPE_BITS:
        raise UnsupportedFormat(
            f"Unsupported sample format {info.subtype}. Only 16, 24, and 32-bit integer PCM are supported."
        )
    bit_depth = SUBTYPE_BITS[info.subtype]
    validate_format(bit_depth, info.channels)
    return WavInfo(
        sample_rate=int(info.samplerate),
        channels=int(info.channels),
        bit_depth=bit_depth,
        frames=int(info.frames),
    )


def read_wav(path: str | Path) -> AudioBuffer:
    path = Path(path)
    info = probe_wav(path)
    try:
        # libsndfile left-justifies every PCM width into int32
        raw = sf.read(str(path), dtype="int32", always_2d=True)[0]
    except (sf.LibsndfileError, OSError) as e:
        raise AudioIOError(f"Failed to read samples from {path}: {e}") from e
    ints = raw.astype(np.int64) >> (32 - info.bit_depth)
    LOG.info(
        "Read %s: %d frames, %d Hz, %d ch, %d-bit",
        path.name,
        info.frames,
        info.sample_rate,
        info.channels,
        info.bit_depth,
    )
    return AudioBuffer(from_pcm_ints(ints, info.bit_depth), info.sample_rate, info.bit_depth, info.channels)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_wav(path: str | Path, buffer: AudioBuffer) -> Path:
    """Write `buffer` in its own bit depth; the file only appears once fully written."""
    path = Path(path)
    validate_format(buffer.bit_depth, buffer.channels)
    ints = to_pcm_ints(buffer.samples, buffer.bit_depth) << (32 - buffer.bit_depth)
    data = ints.astype(np.int32)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".partial.wav", dir=str(path.parent))
        os.close(fd)
    except OSError as e:
        raise AudioIOError(f"Failed to create output file {path}: {e}") from e

    try:
        # mkstemp creates 0600; give the output the mode a plain open() would
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        sf.write(
            tmp_name,
            data,
            buffer.sample_rate,
            subtype=BITS_SUBTYPE[buffer.bit_depth],
            format="WAV",
        )
        os.replace(tmp_name, path)
    except (sf.LibsndfileError, OSError) as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise AudioIOError(f"Failed to write output file {path}: {e}") from e
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    LOG.info("Wrote %s (%d frames, %d-bit)", path, buffer.n_frames, buffer.bit_depth)
    return path
