"""Container Resolver: map a semantic container name to a design layer subtree."""

from __future__ import annotations

import logging

from core.design.layers import count_descendants, iter_layers
from core.design.schemas import Layer, Template
from core.design.template import create_container_context
from core.resolver.schemas import (
    ChannelState,
    ResolutionClass,
    ResolutionResult,
    ResolvedContext,
    ResolverStatus,
)

log = logging.getLogger(__name__)

CLASS_BY_STATUS: dict[str, ResolutionClass] = {
    "RESOLVED": "resolved",
    "CASE_MISMATCH": "warning",
    "EMPTY_GROUP": "warning",
}


def classify_resolution(status: ResolverStatus) -> ResolutionClass:
    """UI classification: RESOLVED is success, CASE_MISMATCH/EMPTY_GROUP warn, the rest are errors."""
    return CLASS_BY_STATUS.get(status, "error")


def _find_group(layers: list[Layer], name: str, *, ignore_case: bool) -> Layer | None:
    wanted = name.casefold() if ignore_case else name
    for layer in iter_layers(layers):
        if layer.kind != "group":
            continue
        candidate = layer.name.casefold() if ignore_case else layer.name
        if candidate == wanted:
            return layer
    return None


def _search(container_name: str, layer_tree: list[Layer]) -> ResolutionResult:
    exact = _find_group(layer_tree, container_name, ignore_case=False)
    if exact is not None:
        children = list(exact.children or [])
        if not children:
            return ResolutionResult(
                status="EMPTY_GROUP",
                container_name=container_name,
                layer=exact,
                children=[],
                total_count=0,
                message=f"Group '{exact.name}' exists but has no layers.",
            )
        total = count_descendants(exact)
        return ResolutionResult(
            status="RESOLVED",
            container_name=container_name,
            layer=exact,
            children=children,
            total_count=total,
            message=f"Resolved '{exact.name}' ({total} layers).",
        )

    loose = _find_group(layer_tree, container_name, ignore_case=True)
    if loose is not None:
        return ResolutionResult(
            status="CASE_MISMATCH",
            container_name=container_name,
            layer=loose,
            children=list(loose.children or []),
            total_count=count_descendants(loose),
            message=f"Matched '{loose.name}' ignoring case; rename it to '{container_name}'.",
        )

    return ResolutionResult(
        status="MISSING_DESIGN_GROUP",
        container_name=container_name,
        message=f"No group named '{container_name}' in the design.",
    )


def resolve(container_name: str | None, layer_tree: list[Layer] | None) -> ResolutionResult:
    """
    Resolve `container_name` to a group of `layer_tree`.

    Never raises: every outcome, including unexpected failures, is returned as a
    typed ResolutionResult so one slot's failure does not block the others.
    """
    if layer_tree is None:
        return ResolutionResult(
            status="DATA_LOCKED",
            container_name=container_name or "",
            message="Source Data Locked",
        )
    if not container_name:
        return ResolutionResult(status="NO_NAME", message="Container has no name.")

    try:
        result = _search(container_name, layer_tree)
    except Exception as e:
        log.error("Resolver failed for container %s: %s", container_name, e)
        return ResolutionResult(
            status="UNKNOWN_ERROR",
            container_name=container_name,
            message=f"Resolution failed: {e}",
        )

    if classify_resolution(result.status) == "warning":
        log.warning("Resolver %s for container %s: %s", result.status, container_name, result.message)
    else:
        log.debug("Resolver %s for container %s", result.status, container_name)
    return result


def resolve_channels(
    template: Template | None,
    design_layers: list[Layer] | None,
    connections: list[str | None],
) -> list[ChannelState]:
    """
    Resolve every channel of a multi-channel resolver.

    `connections[i]` is the container name wired into channel i, or None when the
    channel is unconnected.
    """
    channels: list[ChannelState] = []
    for index, container_name in enumerate(connections):
        if container_name is None:
            channels.append(ChannelState(index=index, status="idle"))
            continue

        if template is None:
            channels.append(
                ChannelState(
                    index=index,
                    status="error",
                    message="Source Data Locked",
                    debug_code="DATA_LOCKED",
                )
            )
            continue

        context = create_container_context(template, container_name)
        if context is None:
            channels.append(
                ChannelState(
                    index=index,
                    status="error",
                    message="Invalid Container Ref",
                    debug_code="UNKNOWN_ERROR",
                )
            )
            continue

        result = resolve(context.container_name, design_layers)
        resolved_context = None
        if result.layer is not None:
            resolved_context = ResolvedContext(
                container=context,
                layers=result.children,
                status="resolved",
                message=result.message,
            )
        channels.append(
            ChannelState(
                index=index,
                status=classify_resolution(result.status),
                container_name=context.container_name,
                layer_count=result.total_count,
                message=result.message,
                debug_code=result.status,
                resolved_context=resolved_context,
            )
        )
    return channels
