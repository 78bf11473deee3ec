"""LangGraph pipeline: resolve a container in a design, then remap it into a target slot."""

from __future__ import annotations

import logging
from typing import Any

from langgraph.graph import END, StateGraph

from core.design.schemas import Layer, Template
from core.design.template import create_container_context, find_target_container
from core.remap.node import RemapperNode
from core.remap.payload import InstanceInput, RemapTarget, source_from_context
from core.remap.settings import RemapSettings
from core.resolver.resolver import classify_resolution, resolve
from core.resolver.schemas import ResolvedContext
from core.strategy.schemas import Feedback, LayoutStrategy

log = logging.getLogger(__name__)


def resolve_node(state: dict[str, Any]) -> dict[str, Any]:
    """Resolve the source container against the design layer tree."""
    template: Template | None = state.get("template")
    container_name = state.get("container_name") or ""
    context = create_container_context(template, container_name)
    if context is None:
        return {**state, "error": f"Invalid Container Ref: {container_name!r}"}

    resolution = resolve(context.container_name, state.get("layers"))
    out = {**state, "resolution": resolution}
    if classify_resolution(resolution.status) == "error" or resolution.layer is None:
        out["error"] = f"{resolution.status}: {resolution.message}"
        return out
    out["resolved_context"] = ResolvedContext(
        container=context,
        layers=resolution.children,
        status="resolved",
        message=resolution.message,
    )
    return out


def remap_node(state: dict[str, Any]) -> dict[str, Any]:
    """Remap the resolved container into the target slot through a single-instance RemapperNode."""
    context: ResolvedContext = state["resolved_context"]
    target = find_target_container(state.get("target_template"), state.get("target_handle") or "")
    if target is None:
        return {**state, "error": f"Target slot not found: {state.get('target_handle')!r}"}

    node = RemapperNode(state.get("node_id") or "remapper", instance_count=1, settings=state.get("settings"))
    if not state.get("generation_allowed", True):
        node.toggle_master_generation()
    item = InstanceInput(
        source=source_from_context(context, state.get("strategy"), state.get("preview_url")),
        target=RemapTarget(container_name=target.name, bounds=target.bounds),
        feedback=state.get("feedback"),
    )
    result = node.compute([item])[0]
    out = {**state, "instance": result, "payload": result.payload}
    if result.error:
        out["error"] = result.error
    return out


def _after_resolve(state: dict[str, Any]) -> str:
    return "end" if state.get("error") else "remap"


def build_remap_graph():
    """Build and return compiled LangGraph for resolve -> remap."""
    workflow = StateGraph(dict)

    workflow.add_node("resolve", resolve_node)
    workflow.add_node("remap", remap_node)
    workflow.set_entry_point("resolve")
    workflow.add_conditional_edges("resolve", _after_resolve, {"remap": "remap", "end": END})
    workflow.add_edge("remap", END)

    return workflow.compile()


def run_remap_pipeline(
    template: Template,
    layers: list[Layer] | None,
    container_name: str,
    *,
    target_template: Template | None = None,
    target_handle: str | None = None,
    strategy: LayoutStrategy | None = None,
    feedback: Feedback | None = None,
    generation_allowed: bool = True,
    settings: RemapSettings | None = None,
) -> dict[str, Any]:
    """
    Run resolve -> remap and return the final state.

    The state carries `resolution`, then `payload` on success, or `error` with a
    message at whichever step failed. The target template defaults to the source
    template and the target handle to the container name.
    """
    graph = build_remap_graph()
    initial = {
        "template": template,
        "layers": layers,
        "container_name": container_name,
        "target_template": target_template or template,
        "target_handle": target_handle or container_name,
        "strategy": strategy,
        "feedback": feedback,
        "generation_allowed": generation_allowed,
        "settings": settings,
        "resolution": None,
        "payload": None,
        "error": None,
    }
    final = graph.invoke(initial)
    if final.get("error"):
        log.warning("Remap pipeline for %s stopped: %s", container_name, final["error"])
    return final
