"""Pydantic schemas for AI layout strategies and user feedback overrides."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


ConfidenceVerdict = Literal["LOW", "MEDIUM", "HIGH"]


class Override(BaseModel):
    """Per-layer positional/scale correction, offsets relative to the target container origin."""

    layer_id: str
    x_offset: float = 0.0
    y_offset: float = 0.0
    individual_scale: float | None = Field(
        default=None,
        description="Scale multiplier; None means 1.0 (or, in feedback, keep the AI value).",
    )
    layout_role: str | None = Field(default=None, description="Display only.")
    linked_anchor_id: str | None = Field(default=None, description="Display only.")
    anchor_index: int | None = Field(default=None, description="Display only.")
    cited_rule: str | None = Field(default=None, description="Display only: justification quoted by the AI.")


class Triangulation(BaseModel):
    """Externally computed confidence in a strategy."""

    confidence_verdict: ConfidenceVerdict
    evidence_count: int = 0


class LayoutStrategy(BaseModel):
    """AI layout suggestion. Treated as immutable, untrusted input."""

    suggested_scale: float = 1.0
    overrides: list[Override] = Field(default_factory=list)
    replace_layer_id: str | None = None
    generative_prompt: str | None = None
    is_explicit_intent: bool = False
    directives: list[str] = Field(default_factory=list)
    triangulation: Triangulation | None = None
    source_reference: str | None = Field(
        default=None,
        description="Reference image the generative prompt was derived from, passed through to previews.",
    )


class Feedback(BaseModel):
    """User-entered overrides for one remapping instance; always wins over AI overrides."""

    overrides: list[Override] = Field(default_factory=list)
