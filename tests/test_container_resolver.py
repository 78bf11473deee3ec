from __future__ import annotations

import unittest

from core.design.layers import parse_layers
from core.design.template import parse_template
from core.resolver.resolver import classify_resolution, resolve, resolve_channels


def _design_layers():
    return parse_layers(
        [
            {
                "id": "g-hero",
                "name": "Hero",
                "type": "group",
                "coords": {"x": 0, "y": 0, "w": 100, "h": 100},
                "children": [
                    {"id": "bg", "name": "Background", "coords": {"x": 0, "y": 0, "w": 100, "h": 100}},
                    {
                        "id": "g-copy",
                        "name": "Copy",
                        "type": "group",
                        "coords": {"x": 10, "y": 10, "w": 50, "h": 20},
                        "children": [
                            {"id": "title", "name": "Title", "coords": {"x": 10, "y": 10, "w": 50, "h": 10}},
                        ],
                    },
                ],
            },
            {"id": "g-empty", "name": "Footer", "type": "group", "children": []},
            {"id": "logo", "name": "Logo", "type": "pixel"},
        ]
    )


def _template():
    return parse_template(
        {
            "name": "Banner",
            "canvas": {"x": 0, "y": 0, "w": 1000, "h": 500},
            "containers": [
                {"name": "Hero", "bounds": {"x": 0, "y": 0, "w": 500, "h": 500}},
                {"name": "Footer", "bounds": {"x": 500, "y": 0, "w": 500, "h": 100}},
                {"name": "Sidebar", "bounds": {"x": 500, "y": 100, "w": 500, "h": 400}},
            ],
        }
    )


class ResolveTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tree = parse_layers(
            [
                {
                    "id": "hero",
                    "name": "Hero",
                    "type": "group",
                    "children": [
                        {"id": "a", "name": "A"},
                        {"id": "b", "name": "B"},
                    ],
                }
            ]
        )

    def test_exact_match_resolves_with_deep_count(self) -> None:
        result = resolve("Hero", self.tree)
        self.assertEqual(result.status, "RESOLVED")
        self.assertEqual(result.total_count, 2)
        self.assertEqual([c.id for c in result.children], ["a", "b"])

    def test_case_insensitive_match_is_case_mismatch_with_same_children(self) -> None:
        result = resolve("hero", self.tree)
        self.assertEqual(result.status, "CASE_MISMATCH")
        self.assertEqual([c.id for c in result.children], ["a", "b"])

    def test_missing_group(self) -> None:
        self.assertEqual(resolve("Missing", self.tree).status, "MISSING_DESIGN_GROUP")

    def test_no_design_is_data_locked(self) -> None:
        self.assertEqual(resolve("Hero", None).status, "DATA_LOCKED")

    def test_empty_name(self) -> None:
        self.assertEqual(resolve("", self.tree).status, "NO_NAME")
        self.assertEqual(resolve(None, self.tree).status, "NO_NAME")

    def test_deep_count_walks_full_subtree(self) -> None:
        result = resolve("Hero", _design_layers())
        self.assertEqual(result.status, "RESOLVED")
        self.assertEqual(len(result.children), 2)
        self.assertEqual(result.total_count, 3)

    def test_empty_group_is_warning(self) -> None:
        result = resolve("Footer", _design_layers())
        self.assertEqual(result.status, "EMPTY_GROUP")
        self.assertEqual(result.total_count, 0)
        self.assertEqual(classify_resolution(result.status), "warning")

    def test_pixel_layer_with_matching_name_is_not_a_group(self) -> None:
        self.assertEqual(resolve("Logo", _design_layers()).status, "MISSING_DESIGN_GROUP")

    def test_nested_group_is_found(self) -> None:
        result = resolve("Copy", _design_layers())
        self.assertEqual(result.status, "RESOLVED")
        self.assertEqual(result.total_count, 1)

    def test_unexpected_failure_is_returned_not_raised(self) -> None:
        result = resolve("Hero", [object()])  # type: ignore[list-item]
        self.assertEqual(result.status, "UNKNOWN_ERROR")
        self.assertEqual(classify_resolution(result.status), "error")

    def test_classification(self) -> None:
        self.assertEqual(classify_resolution("RESOLVED"), "resolved")
        self.assertEqual(classify_resolution("CASE_MISMATCH"), "warning")
        self.assertEqual(classify_resolution("MISSING_DESIGN_GROUP"), "error")
        self.assertEqual(classify_resolution("DATA_LOCKED"), "error")


class ResolveChannelsTests(unittest.TestCase):
    def test_channels_resolve_independently(self) -> None:
        channels = resolve_channels(_template(), _design_layers(), ["Hero", None, "Sidebar", "Nope", "Footer"])
        self.assertEqual([c.status for c in channels], ["resolved", "idle", "error", "error", "warning"])
        self.assertEqual(channels[0].layer_count, 3)
        self.assertIsNotNone(channels[0].resolved_context)
        self.assertEqual(channels[0].resolved_context.container.bounds.w, 500)
        self.assertEqual(channels[2].debug_code, "MISSING_DESIGN_GROUP")
        self.assertEqual(channels[3].debug_code, "UNKNOWN_ERROR")
        self.assertEqual(channels[3].message, "Invalid Container Ref")

    def test_missing_template_locks_connected_channels(self) -> None:
        channels = resolve_channels(None, _design_layers(), ["Hero", None])
        self.assertEqual(channels[0].debug_code, "DATA_LOCKED")
        self.assertEqual(channels[0].message, "Source Data Locked")
        self.assertEqual(channels[1].status, "idle")

    def test_missing_design_reports_data_locked(self) -> None:
        channels = resolve_channels(_template(), None, ["Hero"])
        self.assertEqual(channels[0].debug_code, "DATA_LOCKED")
        self.assertIsNone(channels[0].resolved_context)


if __name__ == "__main__":
    unittest.main()
