"""
Unit tests for margin presets.
"""
import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from pdf_annotator.core.models.margins import Margins
from pdf_annotator.storage.presets import BUILTIN_PRESETS, MarginPresetStore


class TestMarginPresetStore(unittest.TestCase):
    """Test preset persistence."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.presets_path = Path(self.temp_dir.name) / "margin_presets.json"
        self.store = MarginPresetStore(self.presets_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_builtins_available(self):
        """Built-in presets exist without any file."""
        self.assertEqual(self.store.names()[:3], ["Default (1 inch)", "No Margins", "Wide"])
        self.assertEqual(self.store.get("Wide"), Margins(top=72, right=-144, bottom=-72, left=144))

    def test_custom_preset_persistence(self):
        """Custom presets survive a reload."""
        self.assertTrue(self.store.save_preset("Narrow", Margins(top=36, right=-36, bottom=-36, left=36)))
        reloaded = MarginPresetStore(self.presets_path)
        self.assertEqual(reloaded.get("Narrow"), Margins(top=36, right=-36, bottom=-36, left=36))
        self.assertIn("Narrow", reloaded.names())

    def test_custom_preset_sign_clamped(self):
        self.store.save_preset("Odd", Margins(top=-5, right=10, bottom=-3, left=4))
        self.assertEqual(self.store.get("Odd"), Margins(top=0, right=0, bottom=-3, left=4))

    def test_builtin_cannot_be_overwritten_or_deleted(self):
        self.assertFalse(self.store.save_preset("Wide", Margins()))
        self.assertFalse(self.store.delete_preset("Wide"))
        self.assertEqual(self.store.get("Wide"), BUILTIN_PRESETS["Wide"])

    def test_empty_name_rejected(self):
        self.assertFalse(self.store.save_preset("   ", Margins()))

    def test_delete_custom(self):
        self.store.save_preset("Temp", Margins(top=1))
        self.assertTrue(self.store.delete_preset("Temp"))
        self.assertIsNone(MarginPresetStore(self.presets_path).get("Temp"))

    def test_malformed_file_falls_back_to_builtins(self):
        """Corrupt presets should never crash, only fall back."""
        self.presets_path.write_text("{broken", encoding="utf-8")
        store = MarginPresetStore(self.presets_path)
        self.assertEqual(store.names(), list(BUILTIN_PRESETS))

    def test_save_over_corrupt_file_replaces_it(self):
        """Saving a preset over an unreadable file rewrites it instead of failing."""
        self.presets_path.write_text("{", encoding="utf-8")
        store = MarginPresetStore(self.presets_path)
        self.assertTrue(store.save_preset("Narrow", Margins(top=36)))
        self.assertTrue(store.delete_preset("Narrow"))
        self.assertTrue(store.save_preset("Tight", Margins(left=9)))
        self.assertEqual(MarginPresetStore(self.presets_path).get("Tight"), Margins(left=9))

    def test_is_builtin(self):
        self.assertTrue(self.store.is_builtin("No Margins"))
        self.assertFalse(self.store.is_builtin("Narrow"))

    def test_malformed_entry_skipped(self):
        self.presets_path.write_text(
            json.dumps({"version": 1, "presets": {"Bad": {"top": "x"}, "Good": {"top": 3}}}),
            encoding="utf-8",
        )
        store = MarginPresetStore(self.presets_path)
        self.assertIsNone(store.get("Bad"))
        self.assertEqual(store.get("Good"), Margins(top=3))


if __name__ == "__main__":
    unittest.main()
