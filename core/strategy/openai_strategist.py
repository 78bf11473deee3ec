"""Ask an OpenAI chat model for a layout strategy for one container."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from core.design.layers import iter_layers
from core.design.schemas import Layer, Rect
from core.strategy.canonical import canonicalize_strategy
from core.strategy.prompts import STRATEGY_SYSTEM_PROMPT
from core.strategy.schemas import LayoutStrategy

log = logging.getLogger(__name__)

DEFAULT_STRATEGY_MODEL = os.environ.get("REMAP_STRATEGY_MODEL", "gpt-5-2025-08-07")

# Max chars of the serialized layer tree sent to the model
LAYER_TREE_MAX_CHARS = 40_000


def _compact_layers(layers: list[Layer]) -> list[dict[str, Any]]:
    out = []
    for layer in layers:
        item: dict[str, Any] = {
            "id": layer.id,
            "name": layer.name,
            "kind": layer.kind,
            "bounds": layer.bounds.model_dump(),
        }
        if layer.children:
            item["children"] = _compact_layers(layer.children)
        out.append(item)
    return out


def _build_user_message(
    container_name: str,
    layers: list[Layer],
    source_bounds: Rect,
    target_bounds: Rect,
    rules: list[str],
) -> str:
    tree = json.dumps(_compact_layers(layers), indent=2)
    if len(tree) > LAYER_TREE_MAX_CHARS:
        tree = tree[:LAYER_TREE_MAX_CHARS] + "\n... (truncated)"
    parts = [
        f"## Container\n{container_name}\n",
        f"\n## Source bounds\n{json.dumps(source_bounds.model_dump())}\n",
        f"\n## Target bounds\n{json.dumps(target_bounds.model_dump())}\n",
        f"\n## Layer tree\n{tree}\n",
    ]
    if rules:
        parts.append("\n## Design rules\n" + "\n".join(f"- {r}" for r in rules) + "\n")
    parts.append("\nProduce the layout strategy JSON as specified in the system prompt.")
    return "".join(parts)


def request_layout_strategy(
    container_name: str,
    layers: list[Layer],
    source_bounds: Rect,
    target_bounds: Rect,
    *,
    rules: list[str] | None = None,
    model: str = DEFAULT_STRATEGY_MODEL,
    api_key: str | None = None,
    system_prompt: str | None = None,
) -> dict[str, Any]:
    """
    Call OpenAI for a layout strategy and validate it.

    Returns dict with strategy (LayoutStrategy), raw (model JSON) and usage.
    """
    try:
        from openai import OpenAI
    except ImportError:
        raise ImportError("The layout strategist requires openai: pip install openai") from None

    client = OpenAI(api_key=api_key or None)
    messages: list[dict[str, Any]] = [
        {"role": "system", "content": system_prompt or STRATEGY_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": _build_user_message(container_name, layers, source_bounds, target_bounds, rules or []),
        },
    ]

    log.info("Strategist: calling OpenAI %s for container %s", model, container_name)
    response = client.chat.completions.create(
        model=model,
        messages=messages,
        response_format={"type": "json_object"},
    )

    raw_content = None
    if response.choices:
        msg = response.choices[0].message
        raw_content = msg.content if msg else None
    if not raw_content:
        log.error("Strategist: OpenAI returned empty content; response id=%s", getattr(response, "id", None))
        raise ValueError("OpenAI returned empty content")

    raw = json.loads(raw_content)
    try:
        strategy = LayoutStrategy.model_validate(canonicalize_strategy(raw))
    except ValidationError as e:
        log.exception("Strategist: validation failed: %s", e)
        raise

    known_ids = {layer.id for layer in iter_layers(layers)}
    unknown = [o.layer_id for o in strategy.overrides if o.layer_id not in known_ids]
    if unknown:
        log.warning("Strategist: overrides reference unknown layers: %s", ", ".join(unknown))

    usage = None
    if getattr(response, "usage", None) is not None:
        u = response.usage
        usage = u.model_dump() if hasattr(u, "model_dump") else {"total_tokens": getattr(u, "total_tokens", None)}
    log.info(
        "Strategist completed: scale=%s, %s overrides, replace_layer_id=%s",
        strategy.suggested_scale,
        len(strategy.overrides),
        strategy.replace_layer_id,
    )
    return {"strategy": strategy, "raw": raw, "usage": usage}
