"""Tests for guest manifest validation."""

from __future__ import annotations

import tempfile
from pathlib import Path
import unittest

from askit.exceptions import ManifestError
from askit.manifest import GuestManifest, load_manifest, parse_manifest
from askit.permissions import PermissionGate, PermissionMode

VALID = {
    "name": "shop_app",
    "version": "0.3.1",
    "description": "  Shop mini app  ",
    "permissions": ["toast", " toast ", "haptic:trigger"],
    "entry": "dist/main.js",
}


class ManifestTests(unittest.TestCase):
    def test_valid_manifest_is_normalized(self) -> None:
        manifest = parse_manifest(VALID)
        self.assertIsInstance(manifest, GuestManifest)
        self.assertEqual(manifest.description, "Shop mini app")
        self.assertEqual(manifest.permissions, ["toast", "haptic:trigger"])
        self.assertEqual(manifest.entry, "dist/main.js")

    def test_unknown_fields_are_ignored(self) -> None:
        manifest = parse_manifest({**VALID, "icon": "icon.png"})
        self.assertFalse(hasattr(manifest, "icon"))

    def test_invalid_fields_raise_manifest_error(self) -> None:
        cases = {
            "name": {**VALID, "name": "1shop"},
            "version": {**VALID, "version": "1.0"},
            "description": {**VALID, "description": "   "},
            "permissions": {**VALID, "permissions": "toast"},
            "entry": {**VALID, "entry": "main.ts"},
        }
        for field, data in cases.items():
            with self.subTest(field=field):
                with self.assertRaises(ManifestError):
                    parse_manifest(data)

    def test_missing_required_field(self) -> None:
        data = dict(VALID)
        del data["version"]
        with self.assertRaises(ManifestError):
            parse_manifest(data)

    def test_permission_context_defaults_to_deny(self) -> None:
        manifest = parse_manifest(VALID)
        context = manifest.permission_context()
        self.assertEqual(context.permission_mode, PermissionMode.DENY)

        gate = PermissionGate()
        self.assertTrue(gate.check("toast", "show", context).allowed)
        self.assertTrue(gate.check("haptic", "trigger", context).allowed)
        with self.assertLogs("askit.permissions", level="WARNING"):
            self.assertFalse(gate.check("haptic", "stop", context).allowed)

    def test_load_manifest_from_disk(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "manifest.json"
            path.write_text(
                '{"name": "shop", "version": "1.0.0", "description": "d"}',
                encoding="utf-8",
            )
            manifest = load_manifest(path)
        self.assertEqual(manifest.name, "shop")
        self.assertEqual(manifest.permissions, [])
        self.assertIsNone(manifest.entry)

    def test_load_manifest_errors(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing.json"
            broken = Path(tmp) / "broken.json"
            broken.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ManifestError):
                load_manifest(missing)
            with self.assertRaises(ManifestError):
                load_manifest(broken)

    def test_load_manifest_rejects_non_utf8_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "manifest.json"
            path.write_bytes(b'{"name": "\xff\xfe"}')
            with self.assertRaises(ManifestError) as ctx:
                load_manifest(path)
        self.assertIn("not UTF-8", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)


if __name__ == "__main__":
    unittest.main()
