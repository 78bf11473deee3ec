"""Template parsing and container lookup."""

from __future__ import annotations

import re
from typing import Any

from core.design.schemas import Container, ContainerContext, Rect, Template

SLOT_BOUNDS_PREFIX = "slot-bounds-"
TARGET_OUT_PATTERN = re.compile(r"^target-out-(\d+)$")


def container_display_name(raw_name: str) -> str:
    """Strip surrounding whitespace and collapse inner runs of whitespace."""
    return " ".join(str(raw_name or "").split())


def _rect_from_raw(raw: Any, what: str) -> Rect:
    if not isinstance(raw, dict):
        raise ValueError(f"{what} must be an object with x, y, w, h.")
    return Rect(
        x=float(raw.get("x", raw.get("left", 0.0)) or 0.0),
        y=float(raw.get("y", raw.get("top", 0.0)) or 0.0),
        w=float(raw.get("w", raw.get("width", 0.0)) or 0.0),
        h=float(raw.get("h", raw.get("height", 0.0)) or 0.0),
    )


def normalize_bounds(bounds: Rect, canvas: Rect) -> Rect:
    """Express `bounds` as fractions of the canvas."""
    return Rect(
        x=(bounds.x - canvas.x) / canvas.w,
        y=(bounds.y - canvas.y) / canvas.h,
        w=bounds.w / canvas.w,
        h=bounds.h / canvas.h,
    )


def parse_template(raw: dict[str, Any]) -> Template:
    """
    Build a Template from a raw template record.

    Expected shape: {"name": str, "canvas": {x,y,w,h} | {"width", "height"},
    "containers": [{"name": str, "bounds": {x,y,w,h}}, ...]}.
    Container names must be unique after whitespace normalization.
    """
    if not isinstance(raw, dict):
        raise ValueError("Template must be an object.")

    canvas = _rect_from_raw(raw.get("canvas") or {}, "Template canvas")
    if canvas.w <= 0 or canvas.h <= 0:
        raise ValueError(f"Template canvas must have a positive area, got {canvas.w}x{canvas.h}.")

    containers: list[Container] = []
    seen: set[str] = set()
    for i, item in enumerate(raw.get("containers") or []):
        if not isinstance(item, dict):
            raise ValueError(f"Template containers[{i}] must be an object.")
        original = str(item.get("original_name") or item.get("originalName") or item.get("name") or "")
        name = container_display_name(item.get("name") or original)
        if not name:
            raise ValueError(f"Template containers[{i}] has no name.")
        if name in seen:
            raise ValueError(f"Template container name '{name}' is not unique.")
        seen.add(name)
        bounds = _rect_from_raw(item.get("bounds") or item.get("coords"), f"Container '{name}' bounds")
        containers.append(
            Container(
                name=name,
                original_name=original,
                bounds=bounds,
                normalized_bounds=normalize_bounds(bounds, canvas),
            )
        )

    return Template(name=str(raw.get("name") or ""), canvas=canvas, containers=containers)


def sorted_containers(template: Template | None) -> list[Container]:
    """Containers in alphabetical order, the order slots are presented in."""
    if template is None:
        return []
    return sorted(template.containers, key=lambda c: c.name)


def get_container(template: Template, name: str) -> Container | None:
    for container in template.containers:
        if container.name == name:
            return container
    return None


def create_container_context(template: Template | None, container_name: str) -> ContainerContext | None:
    """Return the context for `container_name`, or None when the template has no such slot."""
    if template is None or not container_name:
        return None
    container = get_container(template, container_name)
    if container is None:
        return None
    return ContainerContext(
        container_name=container.name,
        original_name=container.original_name,
        bounds=container.bounds,
        normalized_bounds=container.normalized_bounds,
        canvas=template.canvas,
    )


def find_target_container(template: Template | None, handle: str | None) -> Container | None:
    """
    Resolve a target slot handle to a container.

    Tried in order: exact container name, "slot-bounds-<name>", "target-out-<index>",
    and finally the only container of a single-container template.
    """
    if template is None or not handle:
        return None

    container = get_container(template, handle)
    if container is None and handle.startswith(SLOT_BOUNDS_PREFIX):
        container = get_container(template, handle[len(SLOT_BOUNDS_PREFIX):])
    if container is None:
        match = TARGET_OUT_PATTERN.match(handle)
        if match:
            index = int(match.group(1))
            if index < len(template.containers):
                container = template.containers[index]
    if container is None and len(template.containers) == 1:
        container = template.containers[0]
    return container
