"""python generate_test_wav.py --out_dir test_audio

Writes two 44.1 kHz 16-bit mono files for trying the autotune pipeline:
  test_audio.wav            C major scale, in tune (10 s)
  test_audio_off_pitch.wav  same scale alternately +/-25 cents with vibrato (8 s)
"""
import argparse
from pathlib import Path

from wav_autotune.codec import AudioBuffer
from wav_autotune.signals import off_pitch_test_signal, scale_test_signal
from wav_autotune.wav_io import write_wav


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic WAV files for autotune testing.")
    parser.add_argument("--out_dir", default=".", help="Folder for the generated files.")
    parser.add_argument("--sr", type=int, default=44100, help="Sample rate in Hz.")
    parser.add_argument("--cents", type=float, default=25.0, help="Detune of the off-pitch file in cents.")
    args = parser.parse_args()

    out_dir = Path(args.out_dir).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    in_tune = AudioBuffer(scale_test_signal(sr=args.sr), args.sr, 16, 1)
    off_pitch = AudioBuffer(off_pitch_test_signal(sr=args.sr, cents=args.cents), args.sr, 16, 1)

    for name, buf in (("test_audio.wav", in_tune), ("test_audio_off_pitch.wav", off_pitch)):
        path = write_wav(out_dir / name, buf)
        print(f"Generated {path} ({buf.duration:.1f}s, {args.sr} Hz)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
