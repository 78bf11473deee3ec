"""Geometric Remapper: project a layer tree from source space into a target container."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from core.design.schemas import Layer, Rect
from core.remap.schemas import LayerAudit, OverrideMetric, TransformedLayer, TransformRecord
from core.strategy.schemas import LayoutStrategy, Override

log = logging.getLogger(__name__)


class GeometryError(ValueError):
    """Source or target bounds cannot be projected (zero, negative or non-finite)."""


def validate_bounds(bounds: Rect, what: str) -> None:
    values = (bounds.x, bounds.y, bounds.w, bounds.h)
    if not all(math.isfinite(v) for v in values):
        raise GeometryError(f"{what} bounds must be finite, got {bounds.model_dump()}")
    if bounds.w <= 0 or bounds.h <= 0:
        raise GeometryError(f"{what} bounds must have a positive area, got {bounds.w}x{bounds.h}")


def effective_scale(strategy: LayoutStrategy | None, default: float = 1.0) -> float:
    """Uniform scale of a strategy; missing or zero falls back to `default`."""
    if strategy is None or not strategy.suggested_scale:
        return default
    return strategy.suggested_scale


@dataclass(frozen=True)
class _RemapContext:
    source: Rect
    target: Rect
    global_scale: float
    overrides: dict[str, Override]
    replace_layer_id: str | None
    generative_prompt: str | None

    def project(self, layer: Layer) -> tuple[float, float]:
        rel_x = (layer.bounds.x - self.source.x) / self.source.w
        rel_y = (layer.bounds.y - self.source.y) / self.source.h
        return self.target.x + rel_x * self.target.w, self.target.y + rel_y * self.target.h


def _override_map(strategy: LayoutStrategy | None) -> dict[str, Override]:
    if strategy is None:
        return {}
    # First entry per id wins, matching a front-to-back scan of the list.
    by_id: dict[str, Override] = {}
    for override in strategy.overrides:
        by_id.setdefault(override.layer_id, override)
    return by_id


def _transform_layers(
    layers: list[Layer],
    ctx: _RemapContext,
    parent_offset_x: float = 0.0,
    parent_offset_y: float = 0.0,
) -> list[TransformedLayer]:
    # parent_offset_* accumulate a per-depth delta for nested groups. Nothing sets
    # them yet: children receive the same offsets their parent got.
    out: list[TransformedLayer] = []
    for layer in layers:
        if ctx.replace_layer_id is not None and layer.id == ctx.replace_layer_id:
            target = ctx.target
            out.append(
                TransformedLayer(
                    id=layer.id,
                    name=layer.name,
                    kind="generative",
                    bounds=Rect(x=target.x, y=target.y, w=target.w, h=target.h),
                    visible=layer.visible,
                    transform=TransformRecord(scale_x=1.0, scale_y=1.0, offset_x=target.x, offset_y=target.y),
                    children=None,
                    generative_prompt=ctx.generative_prompt,
                )
            )
            continue

        geom_x, geom_y = ctx.project(layer)
        final_x = geom_x + parent_offset_x
        final_y = geom_y + parent_offset_y
        scale_x = scale_y = ctx.global_scale

        override = ctx.overrides.get(layer.id)
        if override is not None:
            final_x = ctx.target.x + override.x_offset
            final_y = ctx.target.y + override.y_offset
            individual = override.individual_scale if override.individual_scale is not None else 1.0
            scale_x *= individual
            scale_y *= individual

        children = None
        if layer.children is not None:
            children = _transform_layers(layer.children, ctx, parent_offset_x, parent_offset_y)

        out.append(
            TransformedLayer(
                id=layer.id,
                name=layer.name,
                kind=layer.kind,
                bounds=Rect(x=final_x, y=final_y, w=layer.bounds.w * scale_x, h=layer.bounds.h * scale_y),
                visible=layer.visible,
                transform=TransformRecord(scale_x=scale_x, scale_y=scale_y, offset_x=final_x, offset_y=final_y),
                children=children,
                layout_role=override.layout_role if override else None,
                linked_anchor_id=override.linked_anchor_id if override else None,
                cited_rule=override.cited_rule if override else None,
            )
        )
    return out


def remap_layers(
    layers: list[Layer] | None,
    source_bounds: Rect,
    target_bounds: Rect,
    strategy: LayoutStrategy | None = None,
    generation_allowed: bool = True,
    *,
    default_scale: float = 1.0,
    parent_offset_x: float = 0.0,
    parent_offset_y: float = 0.0,
) -> list[TransformedLayer]:
    """
    Project `layers` from `source_bounds` into `target_bounds`.

    - Position is the layer's fractional position in the source projected onto the target.
    - An override pins the layer at target origin + (x_offset, y_offset) and multiplies
      the global scale by its individual scale.
    - The layer named by strategy.replace_layer_id becomes a generative layer covering
      the whole target, without children, when generation is allowed.
    - Width/height are the source size times the final per-axis scale.

    `strategy=None` is a pure geometric reflow. Raises GeometryError for unusable bounds.
    """
    validate_bounds(source_bounds, "Source")
    validate_bounds(target_bounds, "Target")
    if not layers:
        return []

    ctx = _RemapContext(
        source=source_bounds,
        target=target_bounds,
        global_scale=effective_scale(strategy, default_scale),
        overrides=_override_map(strategy),
        replace_layer_id=(strategy.replace_layer_id if strategy is not None and generation_allowed else None),
        generative_prompt=strategy.generative_prompt if strategy is not None else None,
    )
    log.debug(
        "Remapping %s root layers: scale=%s, %s overrides, replace=%s",
        len(layers),
        ctx.global_scale,
        len(ctx.overrides),
        ctx.replace_layer_id,
    )
    return _transform_layers(layers, ctx, parent_offset_x, parent_offset_y)


def compute_override_metrics(
    layers: list[Layer] | None,
    source_bounds: Rect,
    target_bounds: Rect,
    strategy: LayoutStrategy | None,
) -> list[OverrideMetric]:
    """Geometric vs. final placement for every overridden layer, in tree order."""
    if strategy is None or not strategy.overrides or not layers:
        return []
    validate_bounds(source_bounds, "Source")
    validate_bounds(target_bounds, "Target")

    ctx = _RemapContext(
        source=source_bounds,
        target=target_bounds,
        global_scale=effective_scale(strategy),
        overrides=_override_map(strategy),
        replace_layer_id=None,
        generative_prompt=None,
    )
    metrics: list[OverrideMetric] = []

    def traverse(nodes: list[Layer]) -> None:
        for layer in nodes:
            override = ctx.overrides.get(layer.id)
            if override is not None:
                geom_x, geom_y = ctx.project(layer)
                final_x = target_bounds.x + override.x_offset
                final_y = target_bounds.y + override.y_offset
                metrics.append(
                    OverrideMetric(
                        layer_id=layer.id,
                        name=layer.name,
                        geom_x=geom_x,
                        geom_y=geom_y,
                        final_x=final_x,
                        final_y=final_y,
                        delta_x=final_x - geom_x,
                        delta_y=final_y - geom_y,
                        scale=override.individual_scale if override.individual_scale is not None else 1.0,
                        cited_rule=override.cited_rule,
                        anchor_index=override.anchor_index,
                    )
                )
            if layer.children:
                traverse(layer.children)

    traverse(layers)
    return metrics


def layer_audit(layers: list[TransformedLayer] | None) -> LayerAudit:
    """Count pixel, group and generative layers of a transformed tree."""
    audit = LayerAudit()

    def traverse(nodes: list[TransformedLayer]) -> None:
        for node in nodes:
            if node.kind == "generative":
                audit.generative += 1
            elif node.kind == "group":
                audit.group += 1
            else:
                audit.pixel += 1
            if node.children:
                traverse(node.children)

    traverse(layers or [])
    audit.total = audit.pixel + audit.group + audit.generative
    return audit
