"""
Persistence of the operator-tunable filter gain.

The gain is stored as a string-encoded decimal inside a small JSON settings
file so that hand edits and older files are re-validated on every load.
"""

from __future__ import annotations

import json
import math
import os
from pathlib import Path
from typing import Any, Dict, List

from common.logger import get_logger

logger = get_logger("settings")

GAIN_KEY = "ahrs_beta"

DEFAULT_GAIN = 0.1
MIN_GAIN = 0.01
MAX_GAIN = 0.30

DEFAULT_SETTINGS_PATH = Path.home() / ".heliotrope.json"


def settings_path_from_env() -> Path:
    value = os.environ.get("HELIOTROPE_SETTINGS")
    return Path(value).expanduser() if value else DEFAULT_SETTINGS_PATH


def clamp_gain(gain: float) -> float:
    return max(MIN_GAIN, min(MAX_GAIN, gain))


def parse_gain(raw: Any) -> float | None:
    """Return the gain encoded in ``raw`` if it is a finite number in range."""
    try:
        gain = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(gain) or gain < MIN_GAIN or gain > MAX_GAIN:
        return None
    return gain


def gain_choices() -> List[float]:
    """Picker values MIN_GAIN..MAX_GAIN in steps of 0.01."""
    return [round(i / 100.0, 2) for i in range(round(MIN_GAIN * 100), round(MAX_GAIN * 100) + 1)]


class GainStore:
    """Load and save the filter gain in a JSON settings file."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else settings_path_from_env()

    def load(self) -> float:
        settings = self._read()
        raw = settings.get(GAIN_KEY)
        if raw is None:
            return DEFAULT_GAIN
        gain = parse_gain(raw)
        if gain is None:
            logger.warning(f"Ignoring stored gain {raw!r}; using default {DEFAULT_GAIN}")
            return DEFAULT_GAIN
        return gain

    def save(self, gain: float) -> float | None:
        """Persist ``gain`` clamped into range; returns the stored value.

        Non-finite values are not written and return None.
        """
        if not math.isfinite(gain):
            logger.warning(f"Invalid gain {gain!r}, not saving")
            return None
        clamped = clamp_gain(float(gain))
        settings = self._read()
        settings[GAIN_KEY] = repr(clamped)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(settings, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Failed to save gain to {self.path}: {exc}")
            return None
        return clamped

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning(f"Failed to read settings from {self.path}: {exc}")
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Settings file {self.path} is not valid JSON; ignoring it")
            return {}
        return data if isinstance(data, dict) else {}


__all__ = [
    "DEFAULT_GAIN",
    "GAIN_KEY",
    "GainStore",
    "MAX_GAIN",
    "MIN_GAIN",
    "clamp_gain",
    "gain_choices",
    "parse_gain",
    "settings_path_from_env",
]
