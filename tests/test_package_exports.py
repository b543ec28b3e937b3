"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import askit


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        self.assertTrue(callable(askit.load_config))
        self.assertTrue(callable(askit.ensure_config_dir))
        self.assertTrue(callable(askit.load_manifest))
        self.assertTrue(callable(askit.parse_event_name))
        for name in askit.__all__:
            with self.subTest(name=name):
                self.assertIsNotNone(getattr(askit, name))

    def test_exports_are_the_module_objects(self) -> None:
        from askit.events.bus import EventBus
        from askit.exceptions import RequestTimeoutError

        self.assertIs(askit.EventBus, EventBus)
        self.assertIs(askit.RequestTimeoutError, RequestTimeoutError)

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(askit, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
