"""JSON file loaders for decoded designs and templates."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.design.layers import duplicate_layer_ids, parse_layers
from core.design.schemas import Design, Rect, Template
from core.design.template import parse_template

log = logging.getLogger(__name__)


def _load_json(path: Path, what: str) -> Any:
    if not path.is_file():
        raise FileNotFoundError(f"{what} not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def design_from_raw(raw: Any) -> Design:
    """Build a Design from decoder output: either a bare layer list or {name, canvas, layers}."""
    if isinstance(raw, list):
        raw = {"layers": raw}
    if not isinstance(raw, dict):
        raise ValueError("Design must be a list of layers or an object with 'layers'.")

    layers = parse_layers(raw.get("layers") or raw.get("children"))
    duplicates = duplicate_layer_ids(layers)
    if duplicates:
        raise ValueError("Design layer ids must be unique; duplicated: " + ", ".join(duplicates))

    canvas_raw = raw.get("canvas") or {}
    canvas = Rect(
        x=float(canvas_raw.get("x", 0.0) or 0.0),
        y=float(canvas_raw.get("y", 0.0) or 0.0),
        w=float(canvas_raw.get("w", canvas_raw.get("width", 0.0)) or 0.0),
        h=float(canvas_raw.get("h", canvas_raw.get("height", 0.0)) or 0.0),
    )
    return Design(name=str(raw.get("name") or ""), canvas=canvas, layers=layers)


def load_design(path: str | Path) -> Design:
    """Load a decoded design JSON file."""
    path = Path(path)
    design = design_from_raw(_load_json(path, "Design"))
    log.info("Loaded design %s: %s root layers", path, len(design.layers))
    return design


def load_template(path: str | Path) -> Template:
    """Load a template JSON file."""
    path = Path(path)
    template = parse_template(_load_json(path, "Template"))
    log.info("Loaded template %s: %s containers", path, len(template.containers))
    return template
