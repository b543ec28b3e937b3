"""Toast notifications requested by guests."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any

from .base import ModuleHandler

LOGGER = logging.getLogger(__name__)

SHORT_DURATION_MS = 2000
LONG_DURATION_MS = 3500

ToastHandler = Callable[[str, Mapping[str, Any] | None], None]


def duration_ms(duration: Any = None) -> int:
    """Convert a toast duration option to milliseconds."""
    if isinstance(duration, (int, float)) and not isinstance(duration, bool):
        return int(duration)
    if duration == "long":
        return LONG_DURATION_MS
    return SHORT_DURATION_MS


def gravity(position: Any = None) -> str:
    """Normalize a position option to ``top``, ``center`` or ``bottom``."""
    if position in ("top", "center"):
        return position
    return "bottom"


class ToastModule(ModuleHandler):
    """``toast:show`` with ``[message, options?]``.

    Hosts plug in their notification backend with ``set_handler``; without
    one the toast is only logged.
    """

    name = "toast"

    def __init__(self, handler: ToastHandler | None = None) -> None:
        self._handler = handler

    def set_handler(self, handler: ToastHandler) -> None:
        self._handler = handler

    def clear_handler(self) -> None:
        self._handler = None

    def handle(self, method: str, args: list[Any]) -> Any:
        if method != "show":
            self.unknown_method(method)
            return None
        if not args or not isinstance(args[0], str):
            raise self.invalid_payload(method, "message must be a string")
        options = args[1] if len(args) > 1 else None
        if options is not None and not isinstance(options, Mapping):
            raise self.invalid_payload(method, "options must be an object")
        return self.show(args[0], options)

    def show(self, message: str, options: Mapping[str, Any] | None = None) -> None:
        if self._handler is not None:
            self._handler(message, options)
            return
        opts = options or {}
        LOGGER.info(
            "toast.show",
            extra={
                "event": "toast.show",
                "toast_message": message,
                "duration_ms": duration_ms(opts.get("duration")),
                "position": gravity(opts.get("position")),
            },
        )
