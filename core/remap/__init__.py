"""Geometric Remapper, Confirmation State Machine and the remapper node."""

from core.remap.confirmation import ConfirmationDecision, ConfirmationMachine
from core.remap.geometry import GeometryError, compute_override_metrics, layer_audit, remap_layers
from core.remap.node import InstanceResult, RemapperNode
from core.remap.payload import InstanceInput, RemapSource, RemapTarget, build_payload, source_from_context
from core.remap.registry import PayloadRegistry, result_handle
from core.remap.schemas import TransformedLayer, TransformedPayload
from core.remap.settings import RemapSettings, load_remap_settings

__all__ = [
    "ConfirmationDecision",
    "ConfirmationMachine",
    "GeometryError",
    "InstanceInput",
    "InstanceResult",
    "PayloadRegistry",
    "RemapSettings",
    "RemapSource",
    "RemapTarget",
    "RemapperNode",
    "TransformedLayer",
    "TransformedPayload",
    "build_payload",
    "compute_override_metrics",
    "layer_audit",
    "load_remap_settings",
    "remap_layers",
    "result_handle",
    "source_from_context",
]
