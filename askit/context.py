"""Process-level wiring of the host side of the bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .adapter import Engine, EngineAdapter, create_engine_adapter
from .config import DEFAULT_CONFIG, resolve_config
from .correlator import RequestCorrelator
from .dispatcher import Dispatcher
from .events.bus import EventBus
from .modules.registry import ModuleRegistry
from .permissions import PermissionContext, ViolationSink


@dataclass
class HostContext:
    """Bus, modules, dispatcher and default permissions for one host process.

    Build one with ``HostContext.create`` at startup and pass it to whatever
    needs to emit events or attach engines.
    """

    bus: EventBus
    modules: ModuleRegistry
    dispatcher: Dispatcher
    permissions: PermissionContext
    request_timeout_ms: int

    @classmethod
    def create(
        cls,
        config: dict[str, Any] | None = None,
        modules: ModuleRegistry | None = None,
        on_contract_violation: ViolationSink | None = None,
    ) -> HostContext:
        settings = resolve_config(config) if config is not None else DEFAULT_CONFIG
        bridge = settings["bridge"]
        bus = EventBus(max_listeners=settings["bus"]["max_listeners"])
        registry = modules if modules is not None else ModuleRegistry.build_default()
        dispatcher = Dispatcher(bus, registry, prefix=bridge["prefix"])
        permissions = PermissionContext.from_options(
            permissions=bridge["permissions"],
            permission_mode=bridge["permission_mode"],
            on_contract_violation=on_contract_violation,
        )
        return cls(
            bus=bus,
            modules=registry,
            dispatcher=dispatcher,
            permissions=permissions,
            request_timeout_ms=settings["requests"]["timeout_ms"],
        )

    def attach(
        self, engine: Engine, permissions: PermissionContext | None = None
    ) -> EngineAdapter:
        """Connect ``engine``; ``permissions`` overrides the context default."""
        return create_engine_adapter(
            engine, self.dispatcher, permissions or self.permissions
        )

    def dispatch(self, message: Any, permissions: PermissionContext | None = None) -> Any:
        return self.dispatcher.dispatch(message, permissions or self.permissions)

    def correlator(self, request_event: str, response_event: str) -> RequestCorrelator:
        """Awaitable host-to-guest requests.

        The request is emitted to every attached engine; a guest answers with
        ``bus:<response_event>`` carrying the same ``requestId``.
        """
        return RequestCorrelator(
            self.bus,
            self.bus.emit,
            request_event,
            response_event,
            default_timeout_ms=self.request_timeout_ms,
        )
