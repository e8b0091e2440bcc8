"""
WAV Autotune
------------
Entry point for the frame-based pitch correction pipeline.

Usage:
  python autotune_wav.py --list-keys
  python autotune_wav.py -i "input.wav" -o "output.wav" -k 12 -s 0.9 -t 0.05
"""

from wav_autotune.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
