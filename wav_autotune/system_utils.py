from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from .errors import InvalidParameter
from .params import CorrectionParameters

LOG = logging.getLogger(__name__)


DEFAULT_PRESETS: dict[str, dict[str, Any]] = {
    "Classic": {
        "strength": 0.8,
        "transition": 0.1,
    },
    "Natural": {
        "strength": 0.5,
        "transition": 0.35,
    },
    "Hard Tune": {
        "strength": 1.0,
        "transition": 0.01,
    },
    "Subtle": {
        "strength": 0.3,
        "transition": 0.6,
    },
    "Deep Voice": {
        "strength": 0.8,
        "transition": 0.1,
        "formant": -4,
    },
}


class ConfigManager:
    """Named parameter presets: built-ins merged with an optional JSON file."""

    def __init__(self, presets_path: str | Path | None = None):
        self.presets_path = Path(presets_path) if presets_path else None

    def load_presets(self) -> dict[str, dict[str, Any]]:
        merged = {name: dict(values) for name, values in DEFAULT_PRESETS.items()}
        if self.presets_path is not None and self.presets_path.exists():
            try:
                user = json.loads(self.presets_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise InvalidParameter("presets_file", str(self.presets_path), f"unreadable: {e}") from e
            if not isinstance(user, dict) or not all(isinstance(v, dict) for v in user.values()):
                raise InvalidParameter(
                    "presets_file", str(self.presets_path), "must hold a JSON object of name -> settings objects"
                )
            merged.update(user)
        return merged

    def save_presets(self, presets: dict[str, dict[str, Any]]) -> None:
        if self.presets_path is None:
            raise ValueError("No presets_path configured")
        self.presets_path.parent.mkdir(parents=True, exist_ok=True)
        self.presets_path.write_text(json.dumps(presets, indent=2), encoding="utf-8")

    def list_presets(self) -> list[str]:
        return sorted(self.load_presets().keys())

    def get_preset(self, name: str) -> dict[str, Any]:
        presets = self.load_presets()
        if name not in presets:
            raise KeyError(f"Unknown preset {name!r}. Available: {', '.join(sorted(presets))}")
        return dict(presets[name])

    def build_parameters(self, preset: str | None = None, **overrides: Any) -> CorrectionParameters:
        """Defaults <- preset <- explicit overrides (None values are skipped), then validated."""
        values = CorrectionParameters().to_dict()
        if preset:
            values.update(self.get_preset(preset))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CorrectionParameters.from_dict(values).validate()


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure console + optional file logging (batch-friendly)."""
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s | %(levelname)s | %(message)s",
        handlers=handlers,
        force=True,
    )
