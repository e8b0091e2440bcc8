import os
import stat

import numpy as np
import pytest
import soundfile as sf

from wav_autotune.codec import AudioBuffer, to_pcm_ints
from wav_autotune.errors import AudioIOError, UnsupportedFormat
from wav_autotune.wav_io import probe_wav, read_wav, write_wav


@pytest.mark.parametrize("bit_depth", [16, 24, 32])
@pytest.mark.parametrize("channels", [1, 2])
def test_read_write_preserves_samples_and_format(make_wav, tmp_path, bit_depth, channels):
    path, ints = make_wav(seconds=0.1, sr=22050, channels=channels, bit_depth=bit_depth)

    buf = read_wav(path)
    assert (buf.sample_rate, buf.channels, buf.bit_depth, buf.source_channels) == (22050, channels, bit_depth, channels)
    np.testing.assert_array_equal(to_pcm_ints(buf.samples, bit_depth), ints)

    out = write_wav(tmp_path / "out" / "copy.wav", buf)
    info = sf.info(str(out))
    assert (info.samplerate, info.channels, info.frames) == (22050, channels, len(ints))
    assert info.subtype == f"PCM_{bit_depth}"
    np.testing.assert_array_equal(to_pcm_ints(read_wav(out).samples, bit_depth), ints)


def test_probe_reports_header(make_wav):
    path, _ = make_wav(seconds=1.0, sr=48000, channels=2, bit_depth=24)
    info = probe_wav(path)
    assert (info.sample_rate, info.channels, info.bit_depth, info.frames) == (48000, 2, 24, 48000)
    assert info.duration == pytest.approx(1.0)


def test_float_wav_is_unsupported(tmp_path):
    path = tmp_path / "float.wav"
    sf.write(str(path), np.zeros(100, dtype=np.float32), 44100, subtype="FLOAT")
    with pytest.raises(UnsupportedFormat):
        read_wav(path)


def test_three_channels_is_unsupported(tmp_path):
    path = tmp_path / "surround.wav"
    sf.write(str(path), np.zeros((100, 3), dtype=np.int16), 44100, subtype="PCM_16")
    with pytest.raises(UnsupportedFormat):
        probe_wav(path)


def test_malformed_header_is_unsupported(tmp_path):
    path = tmp_path / "junk.wav"
    path.write_bytes(b"RIFF\x00\x00\x00\x00garbage" * 4)
    with pytest.raises(UnsupportedFormat):
        probe_wav(path)


def test_missing_file_is_io_error(tmp_path):
    with pytest.raises(AudioIOError):
        read_wav(tmp_path / "nope.wav")


def test_write_leaves_no_partial_files(tmp_path):
    buf = AudioBuffer(np.zeros((10, 2)), 8000, 16, 2)
    write_wav(tmp_path / "a.wav", buf)
    assert [p.name for p in tmp_path.iterdir()] == ["a.wav"]


def test_failed_write_is_io_error_and_leaves_nothing(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(AudioIOError):
        write_wav(blocker / "out.wav", AudioBuffer(np.zeros(10), 8000, 16, 1))
    assert [p.name for p in tmp_path.iterdir()] == ["blocker"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.parametrize("umask,mode", [(0o022, 0o644), (0o077, 0o600), (0o002, 0o664)])
def test_written_file_follows_umask(tmp_path, umask, mode):
    previous = os.umask(umask)
    try:
        out = write_wav(tmp_path / "o.wav", AudioBuffer(np.zeros(10), 8000, 16, 1))
    finally:
        os.umask(previous)
    assert stat.S_IMODE(out.stat().st_mode) == mode
