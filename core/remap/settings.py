"""Remapper settings: JSON config overlaid on built-in defaults."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_REMAP_SETTINGS_PATH = PROJECT_ROOT / "configs" / "remap" / "settings.json"
DEFAULT_REMAP_SETTINGS: dict[str, Any] = {
    "distortion_threshold": 2.0,
    "mandatory_directive": "MANDATORY_GEN_FILL",
    "default_scale": 1.0,
    "instance_count": 1,
}

_COERCE = {
    "distortion_threshold": float,
    "mandatory_directive": str,
    "default_scale": float,
    "instance_count": int,
}


class RemapSettings(BaseModel):
    distortion_threshold: float = DEFAULT_REMAP_SETTINGS["distortion_threshold"]
    mandatory_directive: str = DEFAULT_REMAP_SETTINGS["mandatory_directive"]
    default_scale: float = DEFAULT_REMAP_SETTINGS["default_scale"]
    instance_count: int = DEFAULT_REMAP_SETTINGS["instance_count"]


def load_remap_settings(path: str | Path | None = None) -> RemapSettings:
    """Load remapper settings; unknown keys and values that cannot be coerced are skipped."""
    values = dict(DEFAULT_REMAP_SETTINGS)
    resolved = Path(path) if path else DEFAULT_REMAP_SETTINGS_PATH
    if resolved.is_file():
        raw = json.loads(resolved.read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            for key, value in raw.items():
                coerce = _COERCE.get(str(key))
                if coerce is None:
                    continue
                try:
                    values[str(key)] = coerce(value)
                except (TypeError, ValueError):
                    log.warning("Ignoring remap setting %s=%r in %s", key, value, resolved)
                    continue
    elif path:
        raise FileNotFoundError(f"Config not found: {resolved}")
    return RemapSettings(**values)
