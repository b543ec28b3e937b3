"""Haptic feedback requested by guests."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from .base import ModuleHandler

LOGGER = logging.getLogger(__name__)

DEFAULT_HAPTIC_TYPE = "medium"

HapticHandler = Callable[[str], None]


class HapticModule(ModuleHandler):
    """``haptic:trigger`` with ``[type?]``; type defaults to ``medium``."""

    name = "haptic"

    def __init__(self, handler: HapticHandler | None = None) -> None:
        self._handler = handler

    def set_handler(self, handler: HapticHandler) -> None:
        self._handler = handler

    def clear_handler(self) -> None:
        self._handler = None

    def handle(self, method: str, args: list[Any]) -> Any:
        if method != "trigger":
            self.unknown_method(method)
            return None
        haptic_type = args[0] if args else None
        if haptic_type is None:
            haptic_type = DEFAULT_HAPTIC_TYPE
        if not isinstance(haptic_type, str):
            raise self.invalid_payload(method, "type must be a string")
        return self.trigger(haptic_type)

    def trigger(self, haptic_type: str = DEFAULT_HAPTIC_TYPE) -> None:
        if self._handler is not None:
            self._handler(haptic_type)
            return
        LOGGER.info(
            "haptic.trigger",
            extra={"event": "haptic.trigger", "haptic_type": haptic_type},
        )
