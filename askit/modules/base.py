"""Module handler interface.

A module handler performs the host-side effect for a ``<module>:<method>``
call coming from a guest.

Usage:
    class ClipboardModule(ModuleHandler):
        name = "clipboard"

        def handle(self, method, args):
            if method != "copy":
                self.unknown_method(method)
                return None
            if not args or not isinstance(args[0], str):
                raise self.invalid_payload(method, "text must be a string")
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any

from ..exceptions import InvalidPayloadError

LOGGER = logging.getLogger(__name__)


class ModuleHandler(ABC):
    """Base class for host capabilities exposed to guests.

    Subclasses set ``name`` (the module segment of the wire event name) and
    implement ``handle``.
    """

    name: str = "unknown"

    @abstractmethod
    def handle(self, method: str, args: list[Any]) -> Any:
        """Run ``method`` with positional ``args``.

        Args:
            method: Method segment of the event name (e.g. "show")
            args: Positional arguments decoded from the payload

        Returns:
            Handler-specific result, or None
        """

    def unknown_method(self, method: str) -> None:
        LOGGER.warning(
            "module.unknown_method",
            extra={
                "event": "module.unknown_method",
                "module_name": self.name,
                "method_name": method,
            },
        )

    def invalid_payload(self, method: str, reason: str) -> InvalidPayloadError:
        """Build the error a handler raises for arguments it cannot use.

        The dispatcher turns it into an ``invalid_payload`` contract violation.
        """
        return InvalidPayloadError(self.name, method, reason)
