"""Layer tree helpers: canonicalization of decoder output, walks and lookups."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterator

from core.design.schemas import Layer

log = logging.getLogger(__name__)

VALID_LAYER_KINDS = {"pixel", "group", "generative"}

# Upstream editor keys -> schema keys
LAYER_KEY_ALIASES = {
    "coords": "bounds",
    "type": "kind",
    "isVisible": "visible",
    "hidden": None,
}


def _canonical_rect(raw: Any, layer_id: str) -> dict[str, float]:
    if raw is None:
        return {"x": 0.0, "y": 0.0, "w": 0.0, "h": 0.0}
    if not isinstance(raw, dict):
        raise ValueError(f"Layer {layer_id}: bounds must be an object with x, y, w, h.")
    out = {}
    for key, fallbacks in (("x", ("left",)), ("y", ("top",)), ("w", ("width",)), ("h", ("height",))):
        value = raw.get(key)
        if value is None:
            for alt in fallbacks:
                value = raw.get(alt)
                if value is not None:
                    break
        out[key] = float(value or 0.0)
    return out


def canonicalize_layer(raw: dict[str, Any], *, index_path: str = "0") -> dict[str, Any]:
    """
    Map one decoder layer record (and its children) onto the Layer schema keys.

    Accepts the editor shape ({id, name, type, coords, isVisible, children}) as well as
    the schema shape. Unknown kinds are inferred from the presence of children.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Layer at {index_path} must be an object.")

    layer_id = str(raw.get("id") or "").strip()
    if not layer_id:
        raise ValueError(f"Layer at {index_path} is missing an id.")

    out: dict[str, Any] = {}
    for key, value in raw.items():
        if key in LAYER_KEY_ALIASES:
            mapped = LAYER_KEY_ALIASES[key]
            if mapped is None:
                continue
            out.setdefault(mapped, value)
        else:
            out[key] = value
    if "hidden" in raw and "visible" not in out:
        out["visible"] = not bool(raw["hidden"])

    out["id"] = layer_id
    out["bounds"] = _canonical_rect(out.get("bounds"), layer_id)

    raw_children = out.get("children")
    if raw_children is not None and not isinstance(raw_children, list):
        raise ValueError(f"Layer {layer_id}: children must be a list.")

    kind = str(out.get("kind") or "").strip().lower()
    if kind not in VALID_LAYER_KINDS:
        inferred = "group" if raw_children else "pixel"
        if kind:
            log.warning("Layer %s has unknown kind '%s'; treating it as %s.", layer_id, kind, inferred)
        kind = inferred
    out["kind"] = kind

    if raw_children is not None:
        out["children"] = [
            canonicalize_layer(child, index_path=f"{index_path}.{i}") for i, child in enumerate(raw_children)
        ]
    return out


def parse_layers(raw_layers: list[Any] | None) -> list[Layer]:
    """Validate a raw layer list into Layer models."""
    if raw_layers is None:
        return []
    if not isinstance(raw_layers, list):
        raise ValueError("Layer tree must be a list of layer objects.")
    return [
        Layer.model_validate(canonicalize_layer(raw, index_path=str(i)))
        for i, raw in enumerate(raw_layers)
    ]


def iter_layers(layers: list[Layer] | None) -> Iterator[Layer]:
    """Depth-first, pre-order walk over a layer forest."""
    for layer in layers or []:
        yield layer
        if layer.children:
            yield from iter_layers(layer.children)


def count_descendants(layer: Layer) -> int:
    """Total number of layers below `layer` (full subtree walk, not just direct children)."""
    return sum(1 for _ in iter_layers(layer.children))


def find_layer(layers: list[Layer] | None, layer_id: str) -> Layer | None:
    for layer in iter_layers(layers):
        if layer.id == layer_id:
            return layer
    return None


def duplicate_layer_ids(layers: list[Layer] | None) -> list[str]:
    """Return ids that occur more than once in the tree, in first-seen order."""
    counts = Counter(layer.id for layer in iter_layers(layers))
    return [layer_id for layer_id, count in counts.items() if count > 1]
