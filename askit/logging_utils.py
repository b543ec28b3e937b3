"""Logging bootstrap for the bridge.

Bridge modules log through ``logging.getLogger(__name__)`` with a dotted
event name as the message and context in ``extra``:

    LOGGER.warning(
        "dispatch.unknown_module",
        extra={"event": "dispatch.unknown_module", "module_name": "camera"},
    )

``configure_logging`` renders those records with structlog, as JSON lines or
as ``key=value`` text, keeping only the context fields listed in
``BRIDGE_LOG_FIELDS``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER_PREFIX = "askit"
DEFAULT_LOG_FILE = "~/.local/state/askit/askit.log"

# Context keys bridge modules pass via ``extra``.
BRIDGE_LOG_FIELDS = (
    "event_name",
    "module_name",
    "method_name",
    "mode",
    "request_event",
    "response_event",
    "request_id",
    "reason",
    "error_type",
    "error",
    "count",
    "max_listeners",
    "haptic_type",
    "toast_message",
    "duration_ms",
    "position",
    "raw",
)

KEY_ORDER = ["timestamp", "level", "logger", "event"]


def _secure_log_file(path: Path) -> None:
    if os.name != "posix":
        return
    try:
        path.chmod(0o600)
    except OSError:
        logging.getLogger(__name__).warning(
            "Unable to enforce 0600 permissions for %s", path
        )


def build_formatter(structured: bool) -> structlog.stdlib.ProcessorFormatter:
    """Formatter for stdlib records: JSON when ``structured``, else key=value."""
    renderer: Any
    if structured:
        renderer = structlog.processors.JSONRenderer(
            ensure_ascii=False, separators=(",", ":")
        )
    else:
        renderer = structlog.processors.KeyValueRenderer(
            key_order=KEY_ORDER, drop_missing=True
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ExtraAdder(allow=BRIDGE_LOG_FIELDS),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
        ],
    )


def _bridge_records_only(record: logging.LogRecord) -> bool:
    return record.name == APP_LOGGER_PREFIX or record.name.startswith(
        f"{APP_LOGGER_PREFIX}."
    )


def configure_logging(logging_config: dict[str, Any]) -> None:
    """Install stderr (bridge records, WARNING and up) and optional file handlers."""
    level = getattr(logging, str(logging_config.get("level", "INFO")).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO
    formatter = build_formatter(bool(logging_config.get("structured", True)))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(max(level, logging.WARNING))
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(_bridge_records_only)
    root.addHandler(stderr_handler)

    if not logging_config.get("log_to_file", False):
        return
    target = Path(str(logging_config.get("log_file_path", DEFAULT_LOG_FILE)))
    target = target.expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    _secure_log_file(target)
