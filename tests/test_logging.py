"""Tests for structured logging behavior."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
import unittest

import structlog

from askit.events.bus import EventBus
from askit.logging_utils import configure_logging


def _record(name: str, msg: str = "ok") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class BridgeLogEventTests(unittest.TestCase):
    """Validate that bridge failures are reported as structured log events."""

    def test_listener_error_event_carries_fields(self) -> None:
        bus = EventBus()

        def _boom(_payload: object) -> None:
            raise ValueError("bad payload")

        bus.on("cart:updated", _boom)
        with self.assertLogs("askit.events.bus", level="ERROR") as logs:
            bus.emit("cart:updated")

        record = logs.records[0]
        self.assertEqual(record.getMessage(), "bus.listener.error")
        self.assertEqual(record.event, "bus.listener.error")
        self.assertEqual(record.event_name, "cart:updated")
        self.assertEqual(record.error_type, "ValueError")


class ConfigureLoggingTests(unittest.TestCase):
    """Validate configure_logging() handler setup behavior."""

    def setUp(self) -> None:
        # Preserve root logger state so tests do not pollute each other.
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            if handler not in self._original_handlers:
                handler.close()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)
        structlog.reset_defaults()

    def _stream_handlers(self) -> list[logging.Handler]:
        return [
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]

    def test_configure_logging_adds_stderr_handler(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        handlers = self._stream_handlers()
        self.assertEqual(len(handlers), 1)
        self.assertEqual(handlers[0].level, logging.WARNING)

    def test_configure_logging_structured_uses_processor_formatter(self) -> None:
        configure_logging({"level": "DEBUG", "structured": True, "log_to_file": False})
        formatters = [h.formatter for h in logging.getLogger().handlers]
        self.assertTrue(
            any(isinstance(f, structlog.stdlib.ProcessorFormatter) for f in formatters)
        )

    def test_structured_output_includes_extra_fields(self) -> None:
        configure_logging({"level": "DEBUG", "structured": True, "log_to_file": False})
        formatter = self._stream_handlers()[0].formatter
        record = _record("askit.dispatcher", "dispatch.unknown_module")
        record.event = "dispatch.unknown_module"
        record.module_name = "camera"

        data = json.loads(formatter.format(record))
        self.assertEqual(data["event"], "dispatch.unknown_module")
        self.assertEqual(data["module_name"], "camera")
        self.assertEqual(data["level"], "warning")
        self.assertEqual(data["logger"], "askit.dispatcher")

    def test_plain_output_is_key_value_with_bridge_fields(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        formatter = self._stream_handlers()[0].formatter
        self.assertIsInstance(formatter, structlog.stdlib.ProcessorFormatter)
        record = _record("askit.dispatcher", "dispatch.unknown_module")
        record.event = "dispatch.unknown_module"
        record.module_name = "camera"

        line = formatter.format(record)
        self.assertIn("level='warning'", line)
        self.assertIn("event='dispatch.unknown_module'", line)
        self.assertIn("module_name='camera'", line)
        self.assertLess(line.index("logger="), line.index("event="))
        with self.assertRaises(json.JSONDecodeError):
            json.loads(line)

    def test_extras_outside_bridge_fields_are_dropped(self) -> None:
        configure_logging({"level": "DEBUG", "structured": True, "log_to_file": False})
        formatter = self._stream_handlers()[0].formatter
        record = _record("askit.modules.toast", "toast.show")
        record.toast_message = "Saved"
        record.secret = "token-123"

        data = json.loads(formatter.format(record))
        self.assertEqual(data["event"], "toast.show")
        self.assertEqual(data["toast_message"], "Saved")
        self.assertNotIn("secret", data)

    def test_configure_logging_sets_root_level(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_unknown_level_defaults_to_info(self) -> None:
        configure_logging({"level": "LOUD", "structured": False})
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_configure_logging_file_handler_created(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = str(Path(tmp) / "nested" / "askit.log")
            configure_logging(
                {
                    "level": "DEBUG",
                    "structured": False,
                    "log_to_file": True,
                    "log_file_path": log_path,
                }
            )
            file_handlers = [
                h
                for h in logging.getLogger().handlers
                if isinstance(h, logging.FileHandler)
            ]
            self.assertEqual(len(file_handlers), 1)
            self.assertEqual(file_handlers[0].level, logging.DEBUG)
            self.assertTrue(Path(log_path).exists())
            for handler in file_handlers:
                handler.close()

    def test_stderr_handler_filters_to_bridge_loggers(self) -> None:
        configure_logging({"level": "DEBUG", "structured": False, "log_to_file": False})
        handler = self._stream_handlers()[0]
        self.assertTrue(handler.filter(_record("askit.events.bus")))
        self.assertFalse(handler.filter(_record("asyncio")))


if __name__ == "__main__":
    unittest.main()
