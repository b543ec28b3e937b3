"""Attach guest engines to a host bus and dispatcher."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any, Protocol

from .dispatcher import Dispatcher
from .permissions import PermissionContext

LOGGER = logging.getLogger(__name__)

MESSAGE_EVENT = "message"


class Engine(Protocol):
    """The slice of a guest engine the bridge needs.

    ``on("message", cb)`` delivers ``{"event": ..., "payload": ...}`` mappings
    in arrival order and returns an unsubscribe callable; ``send_event``
    pushes an event into the guest.
    """

    def on(self, event: str, callback: Callable[[Any], None]) -> Callable[[], None]: ...

    def send_event(self, event: str, payload: Any = None) -> None: ...


class EngineAdapter:
    """Live connection between one engine and the host.

    Host bus emissions are broadcast into the engine; messages from the engine
    go through the dispatcher under ``permissions``.
    """

    def __init__(
        self,
        engine: Engine,
        dispatcher: Dispatcher,
        permissions: PermissionContext | None = None,
    ) -> None:
        self.engine = engine
        self.dispatcher = dispatcher
        self.permissions = permissions or PermissionContext()
        self._disposed = False
        self._unregister_engine = dispatcher.bus._register_engine(self._broadcast)
        self._unsubscribe_message = engine.on(MESSAGE_EVENT, self._on_message)
        LOGGER.debug("Attached engine %r", engine)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _broadcast(self, event: str, payload: Any) -> None:
        self.engine.send_event(event, payload)

    def _on_message(self, message: Any) -> None:
        self.dispatcher.dispatch(message, self.permissions)

    def dispose(self) -> None:
        """Detach from the bus and stop listening to the engine. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._unregister_engine()
        try:
            self._unsubscribe_message()
        except Exception as exc:  # noqa: BLE001 - engine teardown is best effort.
            LOGGER.warning(
                "engine.detach_failed",
                extra={
                    "event": "engine.detach_failed",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
        LOGGER.debug("Detached engine %r", self.engine)


def create_engine_adapter(
    engine: Engine,
    dispatcher: Dispatcher,
    permissions: PermissionContext | None = None,
) -> EngineAdapter:
    return EngineAdapter(engine, dispatcher, permissions)
