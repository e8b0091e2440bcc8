from __future__ import annotations
"""python batch_run_wavs.py
  --folder "C:/Users/goku/Downloads/"
  --recursive
  --out_dir "C:/Users/goku/Desktop/tuned/"
  --preset "Hard Tune"
  --key 12
  --workers 4
  --limit 3
"""
import argparse
import logging
from pathlib import Path

from wav_autotune.pipeline import AutotunePipeline
from wav_autotune.pitch_engine import PitchCorrectionEngine
from wav_autotune.system_utils import ConfigManager, setup_logging
from wav_autotune.worker import process_batch

LOG = logging.getLogger("batch_run_wavs")


def find_wavs(folder: Path, recursive: bool) -> list[Path]:
    """
    Returns a sorted list of .wav files inside folder.

    If recursive=True, searches subfolders too.
    """
    if recursive:
        wavs = folder.rglob("*.wav")
    else:
        wavs = folder.glob("*.wav")

    return sorted(p for p in wavs if p.is_file())


def output_path_for(wav_path: Path, out_dir: Path | None, suffix: str) -> Path:
    target_dir = out_dir or wav_path.parent
    if suffix.lower().endswith(".wav"):
        out_name = f"{wav_path.stem}{suffix}"
    else:
        out_name = f"{wav_path.stem}{suffix}.wav"
    return target_dir / out_name


def main() -> int:
    parser = argparse.ArgumentParser(description="Batch autotune .wav files in a folder.")
    parser.add_argument("--folder", required=True, help="Folder containing .wav files.")
    parser.add_argument("--recursive", action="store_true", help="Search subfolders too.")
    parser.add_argument("--out_dir", help="Output folder for processed files.")
    parser.add_argument("--preset", help="Preset name.")
    parser.add_argument("--key", type=int, help="Musical key 0-23.")
    parser.add_argument("--strength", type=float, help="Pitch correction strength (0.0-1.0).")
    parser.add_argument("--suffix", default="_autotuned", help="Suffix appended to output file names.")
    parser.add_argument("--workers", type=int, default=1, help="Files processed in parallel.")
    parser.add_argument("--limit", type=int, default=0, help="Optional max files to process (0 = no limit).")
    parser.add_argument("--log_level", default="INFO", help="Logging level.")
    args = parser.parse_args()

    setup_logging(args.log_level)

    folder = Path(args.folder).expanduser().resolve()
    out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None

    if not folder.exists() or not folder.is_dir():
        print(f"ERROR: Folder not found: {folder}")
        return 2

    wav_files = find_wavs(folder, recursive=args.recursive)
    # don't feed earlier outputs back in
    stem_suffix = (args.suffix or "").removesuffix(".wav")
    if stem_suffix:
        wav_files = [p for p in wav_files if not p.stem.endswith(stem_suffix)]

    if not wav_files:
        print(f"No .wav files found in: {folder}")
        return 0
    if args.limit and args.limit > 0:
        wav_files = wav_files[: args.limit]

    print(f"Found {len(wav_files)} WAV files.")
    params = ConfigManager().build_parameters(args.preset, key=args.key, strength=args.strength)
    pipeline = AutotunePipeline(params, PitchCorrectionEngine())
    jobs = [(p, output_path_for(p, out_dir, args.suffix or "")) for p in wav_files]
    items = process_batch(pipeline, jobs, workers=args.workers)

    failures = [item for item in items if not item.ok]
    print("\n=== Batch Summary ===")
    print(f"Processed: {len(items) - len(failures)}/{len(items)}")
    for item in items:
        if item.summary is not None and item.summary.frames_failed:
            print(
                f"  {item.input_path.name}: {item.summary.frames_failed}/{item.summary.frames_total} "
                "frames fell back to the original audio"
            )
    if failures:
        print("Failures:")
        for item in failures:
            print(f" - {item.input_path}: {item.error}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
