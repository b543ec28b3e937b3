"""Tests for built-in host modules and the module registry."""

from __future__ import annotations

from typing import Any
import unittest

from askit.exceptions import InvalidPayloadError
from askit.modules import HapticModule, ModuleRegistry, ToastModule
from askit.modules.toast import duration_ms, gravity


class ToastModuleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.shown: list[tuple[str, Any]] = []
        self.toast = ToastModule(handler=lambda m, o: self.shown.append((m, o)))

    def test_show_with_and_without_options(self) -> None:
        self.toast.handle("show", ["Saved"])
        self.toast.handle("show", ["Hello", {"duration": "long"}])
        self.assertEqual(
            self.shown, [("Saved", None), ("Hello", {"duration": "long"})]
        )

    def test_invalid_message_is_rejected(self) -> None:
        for args in ([], [42], [None]):
            with self.subTest(args=args):
                with self.assertRaises(InvalidPayloadError) as ctx:
                    self.toast.handle("show", args)
                self.assertEqual(ctx.exception.module, "toast")
                self.assertEqual(ctx.exception.reason, "message must be a string")
        self.assertEqual(self.shown, [])

    def test_invalid_options_are_rejected(self) -> None:
        with self.assertRaises(InvalidPayloadError):
            self.toast.handle("show", ["Hello", "long"])
        self.assertEqual(self.shown, [])

    def test_unknown_method_is_logged(self) -> None:
        with self.assertLogs("askit.modules.base", level="WARNING") as logs:
            self.toast.handle("hide", [])
        self.assertTrue(any("module.unknown_method" in line for line in logs.output))

    def test_without_handler_toast_is_logged(self) -> None:
        self.toast.clear_handler()
        with self.assertLogs("askit.modules.toast", level="INFO") as logs:
            self.toast.handle("show", ["Hello"])
        self.assertTrue(any("toast.show" in line for line in logs.output))
        self.assertEqual(self.shown, [])

    def test_set_handler_replaces_backend(self) -> None:
        other: list[str] = []
        self.toast.set_handler(lambda m, _o: other.append(m))
        self.toast.show("hi")
        self.assertEqual(other, ["hi"])
        self.assertEqual(self.shown, [])

    def test_duration_and_gravity_helpers(self) -> None:
        self.assertEqual(duration_ms("long"), 3500)
        self.assertEqual(duration_ms("short"), 2000)
        self.assertEqual(duration_ms(None), 2000)
        self.assertEqual(duration_ms(1234), 1234)
        self.assertEqual(duration_ms(True), 2000)
        self.assertEqual(gravity("top"), "top")
        self.assertEqual(gravity("center"), "center")
        self.assertEqual(gravity("left"), "bottom")
        self.assertEqual(gravity(), "bottom")


class HapticModuleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.triggered: list[str] = []
        self.haptic = HapticModule(handler=self.triggered.append)

    def test_trigger_defaults_to_medium(self) -> None:
        self.haptic.handle("trigger", [])
        self.haptic.handle("trigger", [None])
        self.haptic.handle("trigger", ["heavy"])
        self.assertEqual(self.triggered, ["medium", "medium", "heavy"])

    def test_non_string_type_is_rejected(self) -> None:
        with self.assertRaises(InvalidPayloadError) as ctx:
            self.haptic.handle("trigger", [3])
        self.assertEqual(str(ctx.exception), "haptic:trigger: type must be a string")
        self.assertEqual(self.triggered, [])

    def test_unknown_method_is_logged(self) -> None:
        with self.assertLogs("askit.modules.base", level="WARNING"):
            self.haptic.handle("vibrate", [])
        self.assertEqual(self.triggered, [])

    def test_without_handler_trigger_is_logged(self) -> None:
        haptic = HapticModule()
        with self.assertLogs("askit.modules.haptic", level="INFO") as logs:
            haptic.trigger()
        self.assertTrue(any("haptic.trigger" in line for line in logs.output))


class ModuleRegistryTests(unittest.TestCase):
    def test_default_registry_has_builtin_modules(self) -> None:
        registry = ModuleRegistry.build_default()
        self.assertEqual(registry.names(), ["toast", "haptic"])
        self.assertIn("toast", registry)
        self.assertIsInstance(registry.get("haptic"), HapticModule)
        self.assertEqual(len(registry), 2)

    def test_register_under_custom_name_and_unregister(self) -> None:
        registry = ModuleRegistry()
        toast = ToastModule()
        registry.register(toast, name="notify")
        self.assertIs(registry.get("notify"), toast)
        self.assertIsNone(registry.get("toast"))

        registry.unregister("notify")
        registry.unregister("notify")
        self.assertNotIn("notify", registry)

    def test_replacing_a_module_warns(self) -> None:
        registry = ModuleRegistry.build_default()
        replacement = ToastModule()
        with self.assertLogs("askit.modules.registry", level="WARNING"):
            registry.register(replacement)
        self.assertIs(registry.get("toast"), replacement)


if __name__ == "__main__":
    unittest.main()
