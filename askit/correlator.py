"""Awaitable request/response calls over paired one-way events.

Usage:
    http = RequestCorrelator(bus, send_to_host, "HTTP_REQUEST", "HTTP_RESPONSE")
    response = await http.send({"requestId": "r1", "url": url}, timeout_ms=5000)

The host answers by sending ``HTTP_RESPONSE`` with the same ``requestId``;
the first matching response (or the timeout) settles the call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass
import logging
from typing import Any, Protocol

from .exceptions import (
    DuplicateRequestError,
    MissingRequestIdError,
    RequestCancelledError,
    RequestTimeoutError,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000
REQUEST_ID_FIELD = "requestId"

SendEvent = Callable[[str, Any], None]


class SubscribableBus(Protocol):
    def on(self, event: str, callback: Callable[[Any], None]) -> Callable[[], None]: ...

    def off(self, event: str, callback: Callable[[Any], None]) -> None: ...


@dataclass
class _PendingRequest:
    request_id: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle


def _request_id_of(payload: Any) -> Any:
    if isinstance(payload, Mapping):
        return payload.get(REQUEST_ID_FIELD)
    return None


class RequestCorrelator:
    """Pair outbound ``request_event`` sends with inbound ``response_event``s.

    One listener on ``response_event`` is registered for the lifetime of the
    correlator. Pending calls are keyed by ``"<response_event>:<requestId>"``
    and each is released exactly once, by its response, its timeout, or an
    explicit ``cancel``.
    """

    def __init__(
        self,
        bus: SubscribableBus,
        send: SendEvent,
        request_event: str,
        response_event: str,
        default_timeout_ms: float = DEFAULT_TIMEOUT_MS,
    ) -> None:
        self._bus = bus
        self._send = send
        self.request_event = request_event
        self.response_event = response_event
        self.default_timeout_ms = default_timeout_ms
        self._pending: dict[str, _PendingRequest] = {}
        self._closed = False
        bus.on(response_event, self._on_response)

    def _key(self, request_id: Any) -> str:
        return f"{self.response_event}:{request_id}"

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, request_id: Any) -> bool:
        return self._key(request_id) in self._pending

    async def send(
        self, payload: Mapping[str, Any], timeout_ms: float | None = None
    ) -> Any:
        """Send the request and wait for its response.

        Raises:
            MissingRequestIdError: payload has no ``requestId``
            DuplicateRequestError: the same ``requestId`` is already in flight
            RequestTimeoutError: no response within ``timeout_ms``
            RequestCancelledError: ``cancel`` or ``close`` was called first
        """
        if self._closed:
            raise RequestCancelledError(
                f"correlator for {self.request_event} -> {self.response_event} is closed"
            )
        request_id = _request_id_of(payload)
        if request_id is None or request_id == "":
            raise MissingRequestIdError(f"requestId is required for {self.request_event}")

        if timeout_ms is None:
            timeout_ms = self.default_timeout_ms

        key = self._key(request_id)
        if key in self._pending:
            raise DuplicateRequestError(
                f"requestId {request_id!r} is already pending for {self.response_event}"
            )

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        timer = loop.call_later(timeout_ms / 1000, self._on_timeout, key)
        entry = _PendingRequest(request_id=str(request_id), future=future, timer=timer)
        self._pending[key] = entry

        try:
            self._send(self.request_event, payload)
        except Exception:
            self._release(key, entry)
            raise

        try:
            return await future
        finally:
            # Caller-side cancellation leaves the entry behind; drop it here.
            self._release(key, entry)

    def cancel(self, request_id: Any) -> bool:
        """Fail a pending call early. Returns False if nothing was pending."""
        entry = self._pending.pop(self._key(request_id), None)
        if entry is None:
            return False
        entry.timer.cancel()
        if not entry.future.done():
            entry.future.set_exception(
                RequestCancelledError(
                    f"Cancelled: {self.request_event} -> {self.response_event} "
                    f"(ID: {entry.request_id})"
                )
            )
        return True

    def close(self) -> None:
        """Detach the response listener and cancel every pending call."""
        if self._closed:
            return
        self._closed = True
        self._bus.off(self.response_event, self._on_response)
        for entry in list(self._pending.values()):
            self.cancel(entry.request_id)

    def _release(self, key: str, entry: _PendingRequest) -> None:
        if self._pending.get(key) is entry:
            del self._pending[key]
        entry.timer.cancel()

    def _on_response(self, payload: Any) -> None:
        request_id = _request_id_of(payload)
        entry = self._pending.pop(self._key(request_id), None)
        if entry is None:
            LOGGER.debug(
                "request.response.unmatched",
                extra={
                    "event": "request.response.unmatched",
                    "response_event": self.response_event,
                    "request_id": request_id,
                },
            )
            return
        entry.timer.cancel()
        if not entry.future.done():
            entry.future.set_result(payload)

    def _on_timeout(self, key: str) -> None:
        entry = self._pending.pop(key, None)
        if entry is None:
            return
        LOGGER.warning(
            "request.timeout",
            extra={
                "event": "request.timeout",
                "request_event": self.request_event,
                "response_event": self.response_event,
                "request_id": entry.request_id,
            },
        )
        if not entry.future.done():
            entry.future.set_exception(
                RequestTimeoutError(
                    self.request_event, self.response_event, entry.request_id
                )
            )
