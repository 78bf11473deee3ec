"""Pydantic schemas for container resolution results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from core.design.schemas import ContainerContext, Layer


ResolverStatus = Literal[
    "RESOLVED",
    "CASE_MISMATCH",
    "EMPTY_GROUP",
    "MISSING_DESIGN_GROUP",
    "DATA_LOCKED",
    "NO_NAME",
    "UNKNOWN_ERROR",
]
ResolutionClass = Literal["resolved", "warning", "error"]
ChannelStatus = Literal["idle", "resolved", "warning", "error"]


class ResolutionResult(BaseModel):
    """Outcome of resolving one container name against a design's layer tree."""

    status: ResolverStatus
    container_name: str = ""
    layer: Layer | None = Field(default=None, description="The matched group layer, if any.")
    children: list[Layer] = Field(default_factory=list)
    total_count: int = Field(default=0, description="Deep descendant count of the matched group.")
    message: str = ""


class ResolvedContext(BaseModel):
    """Resolved container handed downstream to the remapper."""

    container: ContainerContext
    layers: list[Layer] = Field(default_factory=list)
    status: str = "resolved"
    message: str = ""


class ChannelState(BaseModel):
    """Per-channel state of a multi-channel resolver."""

    index: int
    status: ChannelStatus = "idle"
    container_name: str | None = None
    layer_count: int = 0
    message: str | None = None
    debug_code: ResolverStatus | None = None
    resolved_context: ResolvedContext | None = None
