from __future__ import annotations

import math
import unittest

from core.design.schemas import Layer, Rect
from core.remap.geometry import GeometryError, compute_override_metrics, layer_audit, remap_layers
from core.strategy.schemas import LayoutStrategy, Override

SOURCE = Rect(x=0, y=0, w=100, h=100)
TARGET = Rect(x=0, y=0, w=200, h=50)


def _center_layer(**kwargs) -> Layer:
    return Layer(id="c", name="Center", bounds=Rect(x=50, y=50, w=10, h=10), **kwargs)


class RemapLayersTests(unittest.TestCase):
    def test_center_layer_maps_to_target_center(self) -> None:
        out = remap_layers([_center_layer()], SOURCE, TARGET, LayoutStrategy(suggested_scale=1.0))
        self.assertEqual(len(out), 1)
        self.assertEqual((out[0].bounds.x, out[0].bounds.y), (100, 25))
        self.assertEqual((out[0].bounds.w, out[0].bounds.h), (10, 10))
        self.assertEqual(out[0].transform.offset_x, 100)
        self.assertEqual(out[0].transform.scale_x, 1.0)

    def test_override_pins_to_target_origin(self) -> None:
        strategy = LayoutStrategy(overrides=[Override(layer_id="c", x_offset=-50, y_offset=0, individual_scale=2)])
        out = remap_layers([_center_layer()], SOURCE, TARGET, strategy)
        layer = out[0]
        self.assertEqual((layer.bounds.x, layer.bounds.y, layer.bounds.w, layer.bounds.h), (-50, 0, 20, 20))
        self.assertEqual((layer.transform.scale_x, layer.transform.scale_y), (2, 2))

    def test_override_offsets_are_relative_to_target_origin_not_projection(self) -> None:
        target = Rect(x=300, y=40, w=200, h=50)
        strategy = LayoutStrategy(
            suggested_scale=0.5,
            overrides=[Override(layer_id="c", x_offset=5, y_offset=6, cited_rule="logo top-left", layout_role="anchor")],
        )
        layer = remap_layers([_center_layer()], SOURCE, target, strategy)[0]
        self.assertEqual((layer.bounds.x, layer.bounds.y), (305, 46))
        self.assertEqual(layer.bounds.w, 5)
        self.assertEqual(layer.cited_rule, "logo top-left")
        self.assertEqual(layer.layout_role, "anchor")

    def test_global_scale_applies_without_override(self) -> None:
        layer = remap_layers([_center_layer()], SOURCE, TARGET, LayoutStrategy(suggested_scale=1.5))[0]
        self.assertEqual((layer.bounds.x, layer.bounds.y), (100, 25))
        self.assertEqual((layer.bounds.w, layer.bounds.h), (15, 15))

    def test_no_strategy_is_pure_geometric_reflow(self) -> None:
        source = Rect(x=10, y=20, w=100, h=100)
        target = Rect(x=500, y=500, w=50, h=200)
        layer = Layer(id="l", bounds=Rect(x=35, y=45, w=8, h=4))
        out = remap_layers([layer], source, target, None)[0]
        self.assertEqual((out.bounds.x, out.bounds.y), (512.5, 550))
        self.assertEqual((out.bounds.w, out.bounds.h), (8, 4))
        self.assertIsNone(out.layout_role)

    def test_replace_layer_becomes_generative_covering_target(self) -> None:
        group = Layer(
            id="bg",
            name="Background",
            kind="group",
            bounds=Rect(x=0, y=0, w=100, h=100),
            children=[Layer(id="bg-1", bounds=Rect(x=0, y=0, w=10, h=10))],
        )
        strategy = LayoutStrategy(replace_layer_id="bg", generative_prompt="extend the sky")
        out = remap_layers([group, _center_layer()], SOURCE, TARGET, strategy, generation_allowed=True)
        replaced = out[0]
        self.assertEqual(replaced.kind, "generative")
        self.assertEqual(replaced.bounds, TARGET)
        self.assertIsNone(replaced.children)
        self.assertEqual(replaced.generative_prompt, "extend the sky")
        self.assertEqual(out[1].kind, "pixel")

    def test_replace_layer_kept_when_generation_not_allowed(self) -> None:
        group = Layer(
            id="bg",
            kind="group",
            bounds=Rect(x=0, y=0, w=100, h=100),
            children=[Layer(id="bg-1", bounds=Rect(x=50, y=0, w=10, h=10))],
        )
        strategy = LayoutStrategy(replace_layer_id="bg", generative_prompt="extend the sky")
        out = remap_layers([group], SOURCE, TARGET, strategy, generation_allowed=False)
        self.assertEqual(out[0].kind, "group")
        self.assertEqual(len(out[0].children), 1)
        self.assertEqual(out[0].children[0].bounds.x, 100)

    def test_children_are_recursed_with_same_bounds(self) -> None:
        group = Layer(
            id="g",
            kind="group",
            bounds=Rect(x=0, y=0, w=100, h=100),
            children=[_center_layer()],
        )
        strategy = LayoutStrategy(overrides=[Override(layer_id="c", x_offset=1, y_offset=2)])
        out = remap_layers([group], SOURCE, TARGET, strategy)
        self.assertEqual((out[0].bounds.w, out[0].bounds.h), (100, 100))
        child = out[0].children[0]
        self.assertEqual((child.bounds.x, child.bounds.y), (1, 2))

    def test_parent_offset_shifts_projected_layers(self) -> None:
        out = remap_layers([_center_layer()], SOURCE, TARGET, None, parent_offset_x=3, parent_offset_y=-2)
        self.assertEqual((out[0].bounds.x, out[0].bounds.y), (103, 23))

    def test_empty_layers_yield_empty_result(self) -> None:
        self.assertEqual(remap_layers([], SOURCE, TARGET, None), [])
        self.assertEqual(remap_layers(None, SOURCE, TARGET, None), [])

    def test_invalid_bounds_raise(self) -> None:
        with self.assertRaises(GeometryError):
            remap_layers([_center_layer()], Rect(x=0, y=0, w=0, h=100), TARGET)
        with self.assertRaises(GeometryError):
            remap_layers([_center_layer()], SOURCE, Rect(x=0, y=0, w=100, h=-1))
        with self.assertRaises(GeometryError):
            remap_layers([], SOURCE, Rect(x=math.nan, y=0, w=100, h=100))
        with self.assertRaises(ValueError):
            remap_layers([_center_layer()], SOURCE, Rect(x=0, y=0, w=math.inf, h=100))

    def test_zero_scale_falls_back_to_default(self) -> None:
        layer = remap_layers([_center_layer()], SOURCE, TARGET, LayoutStrategy(suggested_scale=0))[0]
        self.assertEqual(layer.bounds.w, 10)


class InspectionTests(unittest.TestCase):
    def test_override_metrics_report_delta(self) -> None:
        strategy = LayoutStrategy(
            overrides=[Override(layer_id="c", x_offset=-50, y_offset=0, individual_scale=2, cited_rule="r", anchor_index=1)]
        )
        metrics = compute_override_metrics([_center_layer()], SOURCE, TARGET, strategy)
        self.assertEqual(len(metrics), 1)
        m = metrics[0]
        self.assertEqual((m.geom_x, m.geom_y), (100, 25))
        self.assertEqual((m.final_x, m.final_y), (-50, 0))
        self.assertEqual((m.delta_x, m.delta_y), (-150, -25))
        self.assertEqual(m.scale, 2)
        self.assertEqual(m.cited_rule, "r")
        self.assertEqual(m.anchor_index, 1)

    def test_override_metrics_empty_without_overrides(self) -> None:
        self.assertEqual(compute_override_metrics([_center_layer()], SOURCE, TARGET, None), [])
        self.assertEqual(compute_override_metrics([_center_layer()], SOURCE, TARGET, LayoutStrategy()), [])

    def test_layer_audit_counts_kinds(self) -> None:
        tree = [
            Layer(id="bg", kind="group", bounds=Rect(w=10, h=10), children=[Layer(id="x", bounds=Rect(w=1, h=1))]),
            Layer(id="g", kind="group", bounds=Rect(w=10, h=10), children=[_center_layer()]),
        ]
        strategy = LayoutStrategy(replace_layer_id="bg", generative_prompt="sky")
        audit = layer_audit(remap_layers(tree, SOURCE, TARGET, strategy))
        self.assertEqual((audit.pixel, audit.group, audit.generative, audit.total), (1, 1, 1, 3))
        self.assertEqual(layer_audit(None).total, 0)


if __name__ == "__main__":
    unittest.main()
