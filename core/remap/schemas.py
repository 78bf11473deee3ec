"""Pydantic schemas for remapped layer trees and per-instance payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from core.design.schemas import LayerKind, Rect
from core.strategy.schemas import Triangulation


PayloadStatus = Literal["success", "awaiting_confirmation"]
ConfirmationState = Literal["NO_PROMPT", "SUPPRESSED", "MANDATORY", "PENDING", "CONFIRMED"]


class TransformRecord(BaseModel):
    """Applied transform, so consumers need not recompute it."""

    scale_x: float = 1.0
    scale_y: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


class TransformedLayer(BaseModel):
    """A layer placed in target space."""

    id: str
    name: str = ""
    kind: LayerKind = "pixel"
    bounds: Rect
    visible: bool = True
    transform: TransformRecord
    children: list[TransformedLayer] | None = None
    generative_prompt: str | None = None
    layout_role: str | None = None
    linked_anchor_id: str | None = None
    cited_rule: str | None = None


class SizeMetrics(BaseModel):
    w: float
    h: float


class PayloadMetrics(BaseModel):
    source: SizeMetrics
    target: SizeMetrics


class TransformedPayload(BaseModel):
    """Result of one remapping instance; an immutable snapshot recomputed on every input change."""

    model_config = ConfigDict(frozen=True)

    status: PayloadStatus = "success"
    source_container: str
    target_container: str
    layers: list[TransformedLayer] = Field(default_factory=list)
    scale_factor: float = 1.0
    metrics: PayloadMetrics
    target_bounds: Rect
    requires_generation: bool = False
    is_confirmed: bool = False
    is_transient: bool = Field(default=False, description="Unconfirmed but previewable.")
    refinement_pending: bool = Field(
        default=False,
        description="A confirmation exists but for a prompt other than the live one.",
    )
    confirmation_state: ConfirmationState = "NO_PROMPT"
    is_mandatory: bool = False
    generation_allowed: bool = True
    preview_url: str | None = None
    source_reference: str | None = None
    generation_id: int | None = None
    replace_layer_id: str | None = None
    directives: list[str] = Field(default_factory=list)
    triangulation: Triangulation | None = None
    strategy_used: bool = False


class OverrideMetric(BaseModel):
    """Geometric vs. overridden placement of one layer."""

    layer_id: str
    name: str
    geom_x: float
    geom_y: float
    final_x: float
    final_y: float
    delta_x: float
    delta_y: float
    scale: float
    cited_rule: str | None = None
    anchor_index: int | None = None


class LayerAudit(BaseModel):
    pixel: int = 0
    group: int = 0
    generative: int = 0
    total: int = 0
