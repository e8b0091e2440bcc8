from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

from .params import CorrectionParameters
from .pipeline import RunSummary

LOG = logging.getLogger(__name__)


class RunReportLogger:
    """Appends one JSON entry per run (summary + parameters) to a log file."""

    def __init__(self, log_path: str | Path = "autotune_runs.json"):
        self.log_path = Path(log_path)
        self.logs = self._load()

    def _load(self) -> list[dict[str, Any]]:
        if not self.log_path.exists():
            return []
        try:
            logs = json.loads(self.log_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            LOG.warning("Run log %s is not valid JSON; starting a new log", self.log_path)
            return []
        return logs if isinstance(logs, list) else []

    def _write(self) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_path.write_text(json.dumps(self.logs, indent=2), encoding="utf-8")

    def record(self, summary: RunSummary, params: CorrectionParameters, name: str | None = None) -> dict[str, Any]:
        fallback_ratio = summary.frames_failed / summary.frames_total if summary.frames_total else 0.0
        entry = {
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "render_name": name or (Path(summary.output_path).stem if summary.output_path else "run"),
            "parameters": params.to_dict(),
            "key_name": params.key_name,
            "summary": summary.to_dict(),
            "fallback_ratio": fallback_ratio,
        }
        self.logs.append(entry)
        self._write()
        return entry
