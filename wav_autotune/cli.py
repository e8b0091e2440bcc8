from __future__ import annotations

import argparse
import logging
import sys

from .engine import BypassEngine
from .errors import AutotuneError
from .metrics_logger import RunReportLogger
from .music_theory import KEY_NAMES
from .pipeline import AutotunePipeline
from .pitch_engine import PitchCorrectionEngine
from .progress import TqdmProgress
from .system_utils import ConfigManager, setup_logging
from .wav_io import probe_wav

LOG = logging.getLogger(__name__)


def build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autotune-wav",
        description="Pitch-correct a PCM WAV file (16/24/32-bit, mono or stereo).",
    )
    parser.add_argument("-i", "--input", metavar="FILE", help="Input WAV file path.")
    parser.add_argument("-o", "--output", metavar="FILE", help="Output WAV file path.")
    parser.add_argument("-k", "--key", type=int, help="Musical key 0-23 (see --list-keys). Default 0 (C Major).")
    parser.add_argument("-n", "--note", type=int, help="Note mode: 0 = snap to key, 1-12 = force C..B.")
    parser.add_argument("--octave", type=int, help="Reference octave 0-4 for forced notes (2 = C4).")
    parser.add_argument("-f", "--formant", type=int, help="Formant shift in semitones (-12..12).")
    parser.add_argument("-s", "--strength", type=float, help="Pitch correction strength (0.0-1.0).")
    parser.add_argument("-t", "--transition", type=float, help="Transition speed (0.01-1.0).")
    parser.add_argument("--frame-size", dest="frame_length", type=int, help="Frame length in samples (default 1024).")
    parser.add_argument("--hop-size", dest="hop_length", type=int, help="Hop between frames in samples (default 256).")
    parser.add_argument("--preset", help="Named preset (see --list-presets).")
    parser.add_argument("--presets-file", help="JSON file with extra presets.")
    parser.add_argument("--bypass", action="store_true", help="Run the pipeline with a pass-through engine.")
    parser.add_argument("--report", help="Append a JSON run summary to this file.")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output (DEBUG logging).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    parser.add_argument("--log-file", help="Also write the log to this file.")
    parser.add_argument("--list-keys", action="store_true", help="List available keys and exit.")
    parser.add_argument("--list-presets", action="store_true", help="List presets and exit.")
    return parser


def _fail(error: Exception) -> int:
    LOG.error("%s", error)
    print(f"Error: {error}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = build_cli()
    args = parser.parse_args(argv)
    config = ConfigManager(args.presets_file)

    if args.list_keys:
        print("Available Keys:")
        for i, name in enumerate(KEY_NAMES):
            print(f"  {i}: {name}")
        return 0
    if args.list_presets:
        try:
            names = config.list_presets()
        except AutotuneError as e:
            return _fail(e)
        for name in names:
            print(name)
        return 0
    if not args.input or not args.output:
        parser.error("--input and --output are required")

    setup_logging("DEBUG" if args.verbose else args.log_level, args.log_file)

    try:
        params = config.build_parameters(
            args.preset,
            key=args.key,
            note=args.note,
            octave=args.octave,
            formant=args.formant,
            strength=args.strength,
            transition=args.transition,
            frame_length=args.frame_length,
            hop_length=args.hop_length,
        )
        info = probe_wav(args.input)
        LOG.info(
            "Input: %d Hz, %d ch, %d-bit, %.2fs", info.sample_rate, info.channels, info.bit_depth, info.duration
        )
        LOG.info(
            "Key: %d (%s) | Note: %s | Octave: %d | Formant: %+d | Strength: %.0f%% | Transition: %.2f",
            params.key,
            params.key_name,
            "Auto" if params.note == 0 else f"Note {params.note}",
            params.octave,
            params.formant,
            params.strength * 100.0,
            params.transition,
        )

        engine = BypassEngine() if args.bypass else PitchCorrectionEngine()
        pipeline = AutotunePipeline(params, engine)
        with TqdmProgress(disable=args.no_progress) as bar:
            summary = pipeline.process_file(args.input, args.output, progress=bar)
    except (AutotuneError, KeyError) as e:
        return _fail(e)
    except KeyboardInterrupt:
        print("Cancelled; no output written.", file=sys.stderr)
        return 130

    if args.report:
        RunReportLogger(args.report).record(summary, params)

    print(f"Autotune processing complete: {args.input} -> {args.output}")
    if summary.frames_failed:
        print(f"  {summary.frames_failed}/{summary.frames_total} frames fell back to the original audio")
    if info.duration > 0 and summary.duration_ms > 0:
        print(f"  Processing speed: {info.duration / (summary.duration_ms / 1000.0):.1f}x real-time")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
