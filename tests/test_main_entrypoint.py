"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import contextlib
import io
import json
import tempfile
from pathlib import Path
import unittest
from unittest.mock import patch

from askit.__main__ import main
from askit.config import DEFAULT_CONFIG


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def _run(self, argv: list[str]) -> tuple[int, str, str]:
        stdout, stderr = io.StringIO(), io.StringIO()
        with patch(
            "askit.__main__.load_config", return_value=DEFAULT_CONFIG
        ) as load_mock, patch(
            "askit.__main__.configure_logging"
        ) as logging_mock, contextlib.redirect_stdout(
            stdout
        ), contextlib.redirect_stderr(stderr):
            code = main(argv)
        self.load_mock = load_mock
        self.logging_mock = logging_mock
        return code, stdout.getvalue(), stderr.getvalue()

    def test_version_flag(self) -> None:
        code, out, _ = self._run(["--version"])
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("askit "))
        self.logging_mock.assert_not_called()

    def test_manifest_prints_permissions(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "manifest.json"
            path.write_text(
                json.dumps(
                    {
                        "name": "shop",
                        "version": "1.2.0",
                        "description": "Shop mini app",
                        "permissions": ["toast", "haptic:trigger"],
                    }
                ),
                encoding="utf-8",
            )
            code, out, _ = self._run(["manifest", str(path)])

        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out),
            {
                "name": "shop",
                "version": "1.2.0",
                "permissions": ["toast", "haptic:trigger"],
            },
        )
        self.load_mock.assert_called_once()
        self.logging_mock.assert_called_once_with(DEFAULT_CONFIG["logging"])

    def test_manifest_error_exits_non_zero(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            code, out, err = self._run(["manifest", str(Path(tmp) / "missing.json")])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Unable to read manifest", err)

    def test_no_command_prints_help(self) -> None:
        code, out, _ = self._run([])
        self.assertEqual(code, 0)
        self.assertIn("usage: askit", out)


if __name__ == "__main__":
    unittest.main()
