"""Host-side event bus with fan-out to attached guest engines.

Usage:
    bus = EventBus()

    def on_theme_changed(payload):
        print(f"Theme changed: {payload['name']}")

    bus.on("theme:changed", on_theme_changed)
    bus.on("user:*", audit)          # one segment: user:login, user:logout
    bus.on("analytics:**", track)    # any depth: analytics:page:view

    # Delivered to local listeners and to every attached engine
    bus.emit("theme:changed", {"name": "dark"})
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import re
from typing import Any

from .ratelimit import DEFAULT_DELAY_MS, RateLimit, RateLimitedListener, rate_limited

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Any], None]
EngineBroadcaster = Callable[[str, Any], None]
Unsubscribe = Callable[[], None]

DEFAULT_MAX_LISTENERS = 10


def is_pattern(event: str) -> bool:
    return "*" in event


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a wildcard event pattern.

    ``*`` matches exactly one colon-delimited segment (``user:*`` matches
    ``user:login``) and ``**`` matches one or more characters across segments
    (``analytics:**`` matches ``analytics:page:view``).
    """
    parts = [
        re.escape(chunk).replace(r"\*", "[^:]+") for chunk in pattern.split("**")
    ]
    return re.compile("^" + ".+".join(parts) + "$")


def deliver_to_listeners(event: str, listeners: list[Listener], payload: Any) -> None:
    """Call each listener in order, isolating failures per listener."""
    for listener in listeners:
        try:
            listener(payload)
        except Exception as exc:  # noqa: BLE001 - listener failures stay local.
            LOGGER.error(
                "bus.listener.error",
                extra={
                    "event": "bus.listener.error",
                    "event_name": event,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )


class ListenerTable:
    """Per-event listener sets shared by the host and guest buses.

    Each event (or wildcard pattern) maps to an insertion-ordered set of
    callbacks (a dict with ``None`` values), so the same callable is held at
    most once and delivery follows registration order. Exact listeners run
    before pattern listeners.

    ``once`` and rate-limited registrations store a wrapper; both are found
    again through ``(event, original callback)`` so ``off`` accepts the
    callable the caller registered.
    """

    def __init__(self, max_listeners: int = DEFAULT_MAX_LISTENERS) -> None:
        self._listeners: dict[str, dict[Listener, None]] = {}
        self._patterns: dict[str, dict[Listener, None]] = {}
        self._regexes: dict[str, re.Pattern[str]] = {}
        self._once_wrappers: dict[tuple[str, Listener], Listener] = {}
        self._limited: dict[tuple[str, Listener], Listener] = {}
        self._max_listeners = max(0, max_listeners)
        self._warned_events: set[str] = set()

    def _bucket(self, event: str) -> dict[str, dict[Listener, None]]:
        return self._patterns if is_pattern(event) else self._listeners

    def on(
        self,
        event: str,
        callback: Listener,
        rate_limit: RateLimit | str | None = None,
        delay_ms: float = DEFAULT_DELAY_MS,
    ) -> Unsubscribe:
        """Register ``callback`` for ``event`` and return an unsubscribe callable.

        ``event`` may be a wildcard pattern. ``rate_limit`` wraps the callback
        in a throttle or debounce of ``delay_ms``.
        """
        actual = callback
        if rate_limit is not None and RateLimit(rate_limit) is not RateLimit.NONE:
            key = (event, callback)
            if key not in self._limited:
                self._limited[key] = rate_limited(event, callback, rate_limit, delay_ms)
            actual = self._limited[key]
        self._add(event, actual)

        def _unsubscribe() -> None:
            self.off(event, callback)

        return _unsubscribe

    def _add(self, event: str, listener: Listener) -> None:
        if is_pattern(event):
            self._regexes.setdefault(event, pattern_to_regex(event))
            self._patterns.setdefault(event, {})[listener] = None
            return
        callbacks = self._listeners.setdefault(event, {})
        if listener not in callbacks:
            callbacks[listener] = None
            self._check_max_listeners(event)

    def _discard(self, event: str, listener: Listener) -> None:
        bucket = self._bucket(event)
        callbacks = bucket.get(event)
        if callbacks is None:
            return
        callbacks.pop(listener, None)
        if not callbacks:
            del bucket[event]
            self._regexes.pop(event, None)
            self._warned_events.discard(event)

    def off(self, event: str, callback: Listener) -> None:
        """Remove ``callback`` along with its pending ``once`` or rate-limited form."""
        once = self._once_wrappers.pop((event, callback), None)
        if once is not None:
            self._discard(event, once)
        limited = self._limited.pop((event, callback), None)
        if isinstance(limited, RateLimitedListener):
            limited.cancel()
            self._discard(event, limited)
        self._discard(event, callback)

    def once(self, event: str, callback: Listener) -> Unsubscribe:
        """Register ``callback`` for exactly one delivery of ``event``."""
        key = (event, callback)
        if key in self._once_wrappers:
            return lambda: self.off(event, callback)

        fired = False

        def _wrapper(payload: Any) -> None:
            nonlocal fired
            # An outer emit may still hold this wrapper in its snapshot.
            if fired:
                return
            fired = True
            if self._once_wrappers.get(key) is _wrapper:
                del self._once_wrappers[key]
            self._discard(event, _wrapper)
            callback(payload)

        self._once_wrappers[key] = _wrapper
        self._add(event, _wrapper)
        return lambda: self.off(event, callback)

    def snapshot(self, event: str) -> list[Listener]:
        listeners = list(self._listeners.get(event, ()))
        for pattern, callbacks in list(self._patterns.items()):
            if self._regexes[pattern].match(event):
                listeners.extend(callbacks)
        return listeners

    def listener_count(self, event: str) -> int:
        return len(self._bucket(event).get(event, ()))

    def has_listeners(self, event: str) -> bool:
        return event in self._bucket(event)

    def events(self) -> list[str]:
        return [*self._listeners, *self._patterns]

    def remove_all(self, event: str | None = None) -> None:
        for key, limited in list(self._limited.items()):
            if event is None or key[0] == event:
                if isinstance(limited, RateLimitedListener):
                    limited.cancel()
                del self._limited[key]
        if event is None:
            self._listeners.clear()
            self._patterns.clear()
            self._regexes.clear()
            self._once_wrappers.clear()
            self._warned_events.clear()
            return
        self._bucket(event).pop(event, None)
        self._regexes.pop(event, None)
        self._warned_events.discard(event)
        for key in [key for key in self._once_wrappers if key[0] == event]:
            del self._once_wrappers[key]

    @property
    def max_listeners(self) -> int:
        return self._max_listeners

    def set_max_listeners(self, max_listeners: int) -> None:
        """Set the per-event warning threshold (0 disables the warning)."""
        self._max_listeners = max(0, max_listeners)
        self._warned_events.clear()

    def _check_max_listeners(self, event: str) -> None:
        if self._max_listeners == 0 or event in self._warned_events:
            return
        count = self.listener_count(event)
        if count > self._max_listeners:
            self._warned_events.add(event)
            LOGGER.warning(
                "bus.listener.leak",
                extra={
                    "event": "bus.listener.leak",
                    "event_name": event,
                    "count": count,
                    "max_listeners": self._max_listeners,
                },
            )


class EventBus:
    """Publish/subscribe bus owned by the host.

    ``emit`` delivers to local listeners and then forwards the event to every
    registered engine broadcaster. Messages that originate from a guest go
    through ``_handle_engine_message`` instead, which never reaches the
    broadcasters and therefore cannot echo back to guests.
    """

    def __init__(self, max_listeners: int = DEFAULT_MAX_LISTENERS) -> None:
        self._table = ListenerTable(max_listeners=max_listeners)
        self._broadcasters: dict[EngineBroadcaster, None] = {}

    def emit(self, event: str, payload: Any = None) -> None:
        """Deliver ``payload`` to local listeners, then to all attached engines.

        Args:
            event: Event name (e.g., "theme:changed")
            payload: Optional JSON-serializable payload
        """
        deliver_to_listeners(event, self._table.snapshot(event), payload)

        for broadcast in list(self._broadcasters):
            try:
                broadcast(event, payload)
            except Exception as exc:  # noqa: BLE001 - one engine must not starve others.
                LOGGER.error(
                    "bus.broadcast.error",
                    extra={
                        "event": "bus.broadcast.error",
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
        """Subscribe to an event.

        Args:
            event: Event or wildcard pattern to listen for ("user:*", "analytics:**")
            callback: Called with the payload on every emission
            rate_limit: "throttle" or "debounce" to rate-limit delivery
            delay_ms: Rate limit window in milliseconds

        Returns:
            Callable that removes the subscription
        """
        unsubscribe = self._table.on(event, callback, rate_limit, delay_ms)
        LOGGER.debug(f"Subscribed to event: {event}")
        return unsubscribe

    def off(self, event: str, callback: Listener) -> None:
        """Unsubscribe from an event. Unknown callbacks are ignored."""
        self._table.off(event, callback)

    def once(self, event: str, callback: Listener) -> Unsubscribe:
        """Subscribe for a single delivery."""
        return self._table.once(event, callback)

    def listener_count(self, event: str) -> int:
        return self._table.listener_count(event)

    def has_listeners(self, event: str) -> bool:
        return self._table.has_listeners(event)

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Clear listeners.

        Args:
            event: Specific event to clear, or None for all
        """
        self._table.remove_all(event)

    def set_max_listeners(self, max_listeners: int) -> None:
        self._table.set_max_listeners(max_listeners)

    def get_max_listeners(self) -> int:
        return self._table.max_listeners

    @property
    def engine_count(self) -> int:
        return len(self._broadcasters)

    def _register_engine(self, broadcaster: EngineBroadcaster) -> Unsubscribe:
        """Attach an engine broadcaster; the returned callable detaches it once."""
        self._broadcasters[broadcaster] = None
        registered = True

        def _unregister() -> None:
            nonlocal registered
            if not registered:
                return
            registered = False
            self._broadcasters.pop(broadcaster, None)

        return _unregister

    def _handle_engine_message(self, event: str, payload: Any = None) -> None:
        """Deliver a guest-originated event to local listeners only."""
        deliver_to_listeners(event, self._table.snapshot(event), payload)
