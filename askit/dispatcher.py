"""Routing of guest wire messages to module handlers or the host bus.

Wire event names take one of three shapes:

- ``"<prefix>:<module>:<method>"``: a module call, e.g. ``"askit:toast:show"``
- ``"bus:<event>"``: a guest bus emission forwarded to host listeners
- anything else: not routable; logged, reported as ``unknown_event`` and dropped
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any

from .events.bus import EventBus
from .events.remote import BUS_PREFIX
from .exceptions import InvalidPayloadError
from .modules.registry import ModuleRegistry
from .permissions import (
    ContractViolation,
    PermissionContext,
    PermissionGate,
    ViolationKind,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_PREFIX = "askit"


@dataclass(frozen=True)
class ModuleEvent:
    module: str
    method: str


@dataclass(frozen=True)
class GuestMessage:
    event: str
    payload: Any = None


def parse_event_name(event: Any, prefix: str = DEFAULT_PREFIX) -> ModuleEvent | None:
    """Split ``"<prefix>:<module>:<method>"`` into its module and method.

    Any other shape, including extra or missing segments, returns None.
    """
    if not isinstance(event, str):
        return None
    parts = event.split(":")
    if len(parts) != 3 or parts[0] != prefix:
        return None
    _, module, method = parts
    if not module or not method:
        return None
    return ModuleEvent(module=module, method=method)


def normalize_args(payload: Any) -> list[Any]:
    """Turn a module-call payload into a positional argument list."""
    if payload is None:
        return []
    if isinstance(payload, (list, tuple)):
        return list(payload)
    return [payload]


def _coerce_message(message: Any) -> GuestMessage | None:
    if isinstance(message, GuestMessage):
        event, payload = message.event, message.payload
    elif isinstance(message, Mapping):
        event, payload = message.get("event"), message.get("payload")
    else:
        return None
    if not isinstance(event, str) or not event:
        return None
    return GuestMessage(event=event, payload=payload)


class Dispatcher:
    """Decode guest messages and deliver them.

    The dispatcher owns no mutable state beyond the module registry it was
    configured with; permissions arrive per call as a ``PermissionContext``.
    """

    def __init__(
        self,
        bus: EventBus,
        modules: ModuleRegistry,
        gate: PermissionGate | None = None,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self.bus = bus
        self.modules = modules
        self.gate = gate or PermissionGate()
        self.prefix = prefix

    def parse_event_name(self, event: Any) -> ModuleEvent | None:
        return parse_event_name(event, self.prefix)

    def dispatch(
        self,
        message: GuestMessage | Mapping[str, Any],
        context: PermissionContext | None = None,
    ) -> Any:
        """Route one guest message. Never raises.

        Returns the module handler's result for module calls, otherwise None.
        """
        msg = _coerce_message(message)
        if msg is None:
            LOGGER.error(
                "dispatch.invalid_message",
                extra={"event": "dispatch.invalid_message", "raw": repr(message)},
            )
            return None

        context = context or PermissionContext()
        target = self.parse_event_name(msg.event)
        if target is not None:
            return self._dispatch_module(msg, target, context)

        if msg.event.startswith(BUS_PREFIX):
            self.bus._handle_engine_message(msg.event[len(BUS_PREFIX):], msg.payload)
            return None

        LOGGER.warning(
            "dispatch.unknown_event",
            extra={"event": "dispatch.unknown_event", "event_name": msg.event},
        )
        context.report(
            ContractViolation(
                kind=ViolationKind.UNKNOWN_EVENT,
                event_name=msg.event,
                payload=msg.payload,
                reason=f"unroutable event: {msg.event}",
            )
        )
        return None

    def _dispatch_module(
        self, msg: GuestMessage, target: ModuleEvent, context: PermissionContext
    ) -> Any:
        handler = self.modules.get(target.module)
        if handler is None:
            LOGGER.warning(
                "dispatch.unknown_module",
                extra={
                    "event": "dispatch.unknown_module",
                    "event_name": msg.event,
                    "module_name": target.module,
                },
            )
            context.report(
                ContractViolation(
                    kind=ViolationKind.UNKNOWN_MODULE,
                    event_name=msg.event,
                    module=target.module,
                    method=target.method,
                    payload=msg.payload,
                    reason=f"unknown module: {target.module}",
                )
            )
            return None

        decision = self.gate.check(
            target.module,
            target.method,
            context,
            event_name=msg.event,
            payload=msg.payload,
        )
        if not decision.allowed:
            return None

        try:
            return handler.handle(target.method, normalize_args(msg.payload))
        except InvalidPayloadError as exc:
            LOGGER.warning(
                "dispatch.invalid_payload",
                extra={
                    "event": "dispatch.invalid_payload",
                    "event_name": msg.event,
                    "module_name": target.module,
                    "method_name": target.method,
                    "reason": exc.reason,
                },
            )
            context.report(
                ContractViolation(
                    kind=ViolationKind.INVALID_PAYLOAD,
                    event_name=msg.event,
                    module=target.module,
                    method=target.method,
                    payload=msg.payload,
                    reason=exc.reason,
                )
            )
            return None
        except Exception as exc:  # noqa: BLE001 - handler failures must not reach the guest channel.
            LOGGER.error(
                "dispatch.handler.error",
                extra={
                    "event": "dispatch.handler.error",
                    "event_name": msg.event,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return None
