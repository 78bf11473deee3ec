"""Pydantic schemas for design layer trees and template containers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


LayerKind = Literal["pixel", "group", "generative"]


class Rect(BaseModel):
    """Axis-aligned rectangle in absolute pixel space."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0


class Layer(BaseModel):
    """One node of a design's layer tree, bounds in source space."""

    id: str = Field(..., description="Stable id, unique across the whole tree.")
    name: str = ""
    kind: LayerKind = "pixel"
    bounds: Rect = Field(default_factory=Rect)
    visible: bool = True
    children: list[Layer] | None = Field(
        default=None,
        description="Ordered child layers; only meaningful for kind=group.",
    )


class Container(BaseModel):
    """A named rectangular slot of a template."""

    name: str
    original_name: str
    bounds: Rect
    normalized_bounds: Rect = Field(
        default_factory=Rect,
        description="Bounds as fractions of the template canvas.",
    )


class Template(BaseModel):
    """Parsed template: canvas size plus its containers."""

    name: str = ""
    canvas: Rect
    containers: list[Container] = Field(default_factory=list)


class ContainerContext(BaseModel):
    """Container metadata handed to the resolver and the remapper."""

    container_name: str
    original_name: str
    bounds: Rect
    normalized_bounds: Rect
    canvas: Rect


class Design(BaseModel):
    """Decoded design file: canvas plus its root layers."""

    name: str = ""
    canvas: Rect = Field(default_factory=Rect)
    layers: list[Layer] = Field(default_factory=list)
