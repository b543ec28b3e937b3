"""Throttled and debounced listener wrappers.

Usage:
    bus.on("scroll", on_scroll, rate_limit="throttle", delay_ms=100)
    bus.on("search:input", on_query, rate_limit="debounce", delay_ms=250)

Deferred deliveries are scheduled on the running asyncio loop. When no loop
is running the payload is delivered immediately.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
import logging
import time
from typing import Any

LOGGER = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 100


class RateLimit(str, Enum):
    NONE = "none"
    THROTTLE = "throttle"
    DEBOUNCE = "debounce"


class RateLimitedListener:
    """Base wrapper holding at most one pending deferred delivery."""

    def __init__(
        self, event: str, callback: Callable[[Any], None], delay_ms: float
    ) -> None:
        self.event = event
        self.callback = callback
        self.delay = max(0.0, delay_ms) / 1000
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        """Drop the pending deferred delivery, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __call__(self, payload: Any) -> None:
        raise NotImplementedError

    def _defer(self, delay: float, payload: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._fire(payload)
            return
        self._timer = loop.call_later(delay, self._fire, payload)

    def _fire(self, payload: Any) -> None:
        self._timer = None
        try:
            self.callback(payload)
        except Exception as exc:  # noqa: BLE001 - runs on the loop, nobody to raise to.
            LOGGER.error(
                "bus.listener.error",
                extra={
                    "event": "bus.listener.error",
                    "event_name": self.event,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )


class ThrottledListener(RateLimitedListener):
    """At most one delivery per ``delay``; the latest skipped payload trails."""

    def __init__(
        self, event: str, callback: Callable[[Any], None], delay_ms: float
    ) -> None:
        super().__init__(event, callback, delay_ms)
        self._last_call = float("-inf")

    def __call__(self, payload: Any) -> None:
        self.cancel()
        elapsed = time.monotonic() - self._last_call
        if elapsed >= self.delay:
            self._last_call = time.monotonic()
            self.callback(payload)
            return
        self._defer(self.delay - elapsed, payload)

    def _fire(self, payload: Any) -> None:
        self._last_call = time.monotonic()
        super()._fire(payload)


class DebouncedListener(RateLimitedListener):
    """Deliver only the last payload once emissions pause for ``delay``."""

    def __call__(self, payload: Any) -> None:
        self.cancel()
        self._defer(self.delay, payload)


def rate_limited(
    event: str,
    callback: Callable[[Any], None],
    rate_limit: RateLimit | str,
    delay_ms: float = DEFAULT_DELAY_MS,
) -> Callable[[Any], None]:
    """Wrap ``callback`` according to ``rate_limit``; ``none`` returns it as is."""
    kind = RateLimit(rate_limit)
    if kind is RateLimit.THROTTLE:
        return ThrottledListener(event, callback, delay_ms)
    if kind is RateLimit.DEBOUNCE:
        return DebouncedListener(event, callback, delay_ms)
    return callback
