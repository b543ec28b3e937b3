"""Guest-side bus that talks to the host through the bridge channel."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from .bus import (
    DEFAULT_MAX_LISTENERS,
    Listener,
    ListenerTable,
    Unsubscribe,
    deliver_to_listeners,
)
from .ratelimit import DEFAULT_DELAY_MS, RateLimit

LOGGER = logging.getLogger(__name__)

BUS_PREFIX = "bus:"

SendToHost = Callable[[str, Any], None]
HostEventRegistrar = Callable[[Callable[[str, Any], None]], Any]


class RemoteBus:
    """Bus used inside a guest sandbox.

    ``emit`` notifies listeners inside the sandbox and sends ``bus:<event>`` to
    the host, where the dispatcher hands it to the host bus. Events pushed by
    the host arrive through ``_handle_host_event``.
    """

    def __init__(
        self,
        send_to_host: SendToHost | None = None,
        on_host_event: HostEventRegistrar | None = None,
        max_listeners: int = DEFAULT_MAX_LISTENERS,
    ) -> None:
        self._send_to_host = send_to_host
        self._table = ListenerTable(max_listeners=max_listeners)
        if on_host_event is not None:
            on_host_event(self._handle_host_event)

    def emit(self, event: str, payload: Any = None) -> None:
        deliver_to_listeners(event, self._table.snapshot(event), payload)

        if self._send_to_host is None:
            LOGGER.warning(
                "bus.remote.no_sender",
                extra={"event": "bus.remote.no_sender", "event_name": event},
            )
            return
        try:
            self._send_to_host(f"{BUS_PREFIX}{event}", payload)
        except Exception as exc:  # noqa: BLE001 - transport errors are logged only.
            LOGGER.error(
                "bus.remote.send_failed",
                extra={
                    "event": "bus.remote.send_failed",
                    "event_name": event,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    def on(
        self,
        event: str,
        callback: Listener,
        rate_limit: RateLimit | str | None = None,
        delay_ms: float = DEFAULT_DELAY_MS,
    ) -> Unsubscribe:
        return self._table.on(event, callback, rate_limit, delay_ms)

    def off(self, event: str, callback: Listener) -> None:
        self._table.off(event, callback)

    def once(self, event: str, callback: Listener) -> Unsubscribe:
        return self._table.once(event, callback)

    def listener_count(self, event: str) -> int:
        return self._table.listener_count(event)

    def has_listeners(self, event: str) -> bool:
        return self._table.has_listeners(event)

    def _handle_host_event(self, event: str, payload: Any = None) -> None:
        """Deliver an event pushed by the host to local listeners."""
        deliver_to_listeners(event, self._table.snapshot(event), payload)
