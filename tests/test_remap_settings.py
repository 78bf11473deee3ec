from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from core.remap.settings import DEFAULT_REMAP_SETTINGS, load_remap_settings


class RemapSettingsTests(unittest.TestCase):
    def test_default_config_matches_builtin_defaults(self) -> None:
        settings = load_remap_settings()
        self.assertEqual(settings.model_dump(), DEFAULT_REMAP_SETTINGS)

    def test_overlay_skips_unknown_and_uncoercible_values(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text(
                json.dumps({"distortion_threshold": "3.5", "instance_count": "many", "colour": "red"}),
                encoding="utf-8",
            )
            settings = load_remap_settings(path)
        self.assertEqual(settings.distortion_threshold, 3.5)
        self.assertEqual(settings.instance_count, 1)
        self.assertEqual(settings.mandatory_directive, "MANDATORY_GEN_FILL")

    def test_explicit_missing_path_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_remap_settings("/nonexistent/remap-settings.json")


if __name__ == "__main__":
    unittest.main()
