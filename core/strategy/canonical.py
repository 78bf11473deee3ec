"""Canonicalize untrusted strategy/feedback payloads onto the snake_case schemas."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.strategy.schemas import Feedback, LayoutStrategy, Override

log = logging.getLogger(__name__)

VALID_CONFIDENCE_VERDICTS = {"LOW", "MEDIUM", "HIGH"}

OVERRIDE_KEYS = {
    "layerId": "layer_id",
    "id": "layer_id",
    "xOffset": "x_offset",
    "yOffset": "y_offset",
    "individualScale": "individual_scale",
    "layoutRole": "layout_role",
    "linkedAnchorId": "linked_anchor_id",
    "anchorIndex": "anchor_index",
    "citedRule": "cited_rule",
}

STRATEGY_KEYS = {
    "suggestedScale": "suggested_scale",
    "replaceLayerId": "replace_layer_id",
    "generativePrompt": "generative_prompt",
    "isExplicitIntent": "is_explicit_intent",
    "sourceReference": "source_reference",
}

TRIANGULATION_KEYS = {
    "confidenceVerdict": "confidence_verdict",
    "evidenceCount": "evidence_count",
}


def _rename_keys(raw: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in raw.items():
        target = mapping.get(key, key)
        # Explicit snake_case keys take precedence over aliases.
        if target in out and key != target:
            continue
        out[target] = value
    return out


def canonicalize_override(raw: Any, *, index: int = 0) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError(f"overrides[{index}] must be an object.")
    out = _rename_keys(raw, OVERRIDE_KEYS)
    layer_id = str(out.get("layer_id") or "").strip()
    if not layer_id:
        raise ValueError(f"overrides[{index}] is missing layer_id.")
    out["layer_id"] = layer_id
    return out


def canonicalize_overrides(raw: Any) -> list[dict[str, Any]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("'overrides' must be a list.")
    return [canonicalize_override(item, index=i) for i, item in enumerate(raw)]


def canonicalize_strategy(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Map an upstream strategy payload onto LayoutStrategy keys.

    - camelCase keys are renamed.
    - A triangulation with an unknown verdict is dropped with a warning.
    - A single directive string becomes a one-item list.
    """
    if not isinstance(raw, dict):
        raise ValueError("Layout strategy must be an object.")
    out = _rename_keys(raw, STRATEGY_KEYS)
    out["overrides"] = canonicalize_overrides(out.get("overrides"))

    directives = out.get("directives")
    if directives is None:
        out["directives"] = []
    elif isinstance(directives, str):
        out["directives"] = [directives]

    if out.get("suggested_scale") is None:
        out.pop("suggested_scale", None)

    triangulation = out.get("triangulation")
    if isinstance(triangulation, dict):
        tri = _rename_keys(triangulation, TRIANGULATION_KEYS)
        verdict = str(tri.get("confidence_verdict") or "").strip().upper()
        if verdict not in VALID_CONFIDENCE_VERDICTS:
            log.warning("Strategy triangulation verdict '%s' is not LOW|MEDIUM|HIGH; dropping it.", verdict)
            out["triangulation"] = None
        else:
            tri["confidence_verdict"] = verdict
            out["triangulation"] = tri
    elif triangulation is not None:
        log.warning("Strategy triangulation must be an object; dropping it.")
        out["triangulation"] = None
    return out


def parse_strategy(raw: dict[str, Any] | None) -> LayoutStrategy | None:
    """Canonicalize and validate a strategy; None stays None (pure geometric reflow)."""
    if raw is None:
        return None
    canonical = canonicalize_strategy(raw)
    try:
        return LayoutStrategy.model_validate(canonical)
    except ValidationError as e:
        log.error("Layout strategy validation failed: %s", e)
        raise


def parse_overrides(raw: Any) -> list[Override]:
    return [Override.model_validate(item) for item in canonicalize_overrides(raw)]


def parse_feedback(raw: Any) -> Feedback | None:
    """Accept {"overrides": [...]} or a bare override list."""
    if raw is None:
        return None
    if isinstance(raw, list):
        raw = {"overrides": raw}
    if not isinstance(raw, dict):
        raise ValueError("Feedback must be an object with 'overrides' or a list of overrides.")
    return Feedback(overrides=parse_overrides(raw.get("overrides")))


def load_strategy(path: str | Path) -> LayoutStrategy | None:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Layout strategy not found: {path}")
    return parse_strategy(json.loads(path.read_text(encoding="utf-8")))


def load_feedback(path: str | Path) -> Feedback | None:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Feedback not found: {path}")
    return parse_feedback(json.loads(path.read_text(encoding="utf-8")))
