"""Build one TransformedPayload: merge overrides, remap geometry, decide confirmation."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from core.design.schemas import Layer, Rect
from core.remap.confirmation import ConfirmationMachine
from core.remap.geometry import effective_scale, remap_layers
from core.remap.schemas import PayloadMetrics, SizeMetrics, TransformedPayload
from core.resolver.schemas import ResolvedContext
from core.strategy.merger import build_effective_strategy
from core.strategy.schemas import Feedback, LayoutStrategy

log = logging.getLogger(__name__)


class RemapSource(BaseModel):
    """Resolved source side of a remapping instance."""

    container_name: str
    bounds: Rect
    layers: list[Layer] = Field(default_factory=list)
    strategy: LayoutStrategy | None = None
    preview_url: str | None = Field(default=None, description="Upstream preview for the AI strategy, if any.")


class RemapTarget(BaseModel):
    """Target container of a remapping instance."""

    container_name: str
    bounds: Rect


class InstanceInput(BaseModel):
    """Everything one remapping instance is computed from."""

    source: RemapSource | None = None
    target: RemapTarget | None = None
    feedback: Feedback | None = None


def source_from_context(
    context: ResolvedContext,
    strategy: LayoutStrategy | None = None,
    preview_url: str | None = None,
) -> RemapSource:
    return RemapSource(
        container_name=context.container.container_name,
        bounds=context.container.bounds,
        layers=context.layers,
        strategy=strategy,
        preview_url=preview_url,
    )


def build_payload(
    source: RemapSource,
    target: RemapTarget,
    *,
    machine: ConfirmationMachine,
    feedback: Feedback | None = None,
    generation_allowed: bool = True,
    stored: TransformedPayload | None = None,
    display_preview: str | None = None,
    default_scale: float = 1.0,
) -> TransformedPayload:
    """
    Compute the payload of one instance from scratch.

    `stored` is the payload currently registered for the slot; only its preview
    reference and generation id carry over. Raises GeometryError for unusable bounds.
    """
    strategy = build_effective_strategy(source.strategy, feedback)
    scale = effective_scale(strategy, default_scale)
    layers = remap_layers(
        source.layers,
        source.bounds,
        target.bounds,
        strategy,
        generation_allowed,
        default_scale=default_scale,
    )
    decision = machine.evaluate(strategy, scale=scale, generation_allowed=generation_allowed)

    has_feedback = feedback is not None and bool(feedback.overrides)
    preview_url = None
    if strategy is not None:
        preview_url = (
            (stored.preview_url if stored is not None else None)
            or display_preview
            or (source.preview_url if not has_feedback else None)
        )
    is_confirmed = decision.is_confirmed if strategy is not None else False

    log.debug(
        "Payload %s -> %s: state=%s status=%s scale=%s",
        source.container_name,
        target.container_name,
        decision.state,
        decision.status,
        scale,
    )
    return TransformedPayload(
        status=decision.status,
        source_container=source.container_name,
        target_container=target.container_name,
        layers=layers,
        scale_factor=scale,
        metrics=PayloadMetrics(
            source=SizeMetrics(w=source.bounds.w, h=source.bounds.h),
            target=SizeMetrics(w=target.bounds.w, h=target.bounds.h),
        ),
        target_bounds=target.bounds,
        requires_generation=decision.requires_generation,
        is_confirmed=is_confirmed,
        is_transient=not is_confirmed and bool(preview_url),
        refinement_pending=decision.refinement_pending,
        confirmation_state=decision.state,
        is_mandatory=decision.is_mandatory,
        generation_allowed=generation_allowed,
        preview_url=preview_url,
        source_reference=(
            (stored.source_reference if stored is not None else None)
            or (strategy.source_reference if strategy is not None else None)
        ),
        generation_id=stored.generation_id if stored is not None else None,
        replace_layer_id=strategy.replace_layer_id if strategy is not None else None,
        directives=list(strategy.directives) if strategy is not None else [],
        triangulation=strategy.triangulation if strategy is not None else None,
        strategy_used=strategy is not None,
    )
