"""Design layer trees and template containers."""

from core.design.layers import count_descendants, find_layer, iter_layers, parse_layers
from core.design.loader import design_from_raw, load_design, load_template
from core.design.schemas import Container, ContainerContext, Design, Layer, Rect, Template
from core.design.template import (
    create_container_context,
    find_target_container,
    parse_template,
    sorted_containers,
)

__all__ = [
    "Container",
    "ContainerContext",
    "Design",
    "Layer",
    "Rect",
    "Template",
    "count_descendants",
    "create_container_context",
    "design_from_raw",
    "find_layer",
    "find_target_container",
    "iter_layers",
    "load_design",
    "load_template",
    "parse_layers",
    "parse_template",
    "sorted_containers",
]
