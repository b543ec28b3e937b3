"""Top-level package for the askit host/guest bridge."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import ensure_config_dir, load_config
    from .context import HostContext
    from .correlator import RequestCorrelator
    from .dispatcher import Dispatcher, parse_event_name
    from .events import EventBus, RemoteBus
    from .exceptions import (
        AskitError,
        ConfigValidationError,
        DuplicateRequestError,
        InvalidPayloadError,
        ManifestError,
        MissingRequestIdError,
        RequestCancelledError,
        RequestTimeoutError,
    )
    from .manifest import GuestManifest, load_manifest
    from .permissions import PermissionContext, PermissionGate, PermissionMode

__all__ = [
    "AskitError",
    "ConfigValidationError",
    "Dispatcher",
    "DuplicateRequestError",
    "EventBus",
    "GuestManifest",
    "HostContext",
    "InvalidPayloadError",
    "ManifestError",
    "MissingRequestIdError",
    "PermissionContext",
    "PermissionGate",
    "PermissionMode",
    "RemoteBus",
    "RequestCancelledError",
    "RequestCorrelator",
    "RequestTimeoutError",
    "ensure_config_dir",
    "load_config",
    "load_manifest",
    "parse_event_name",
]

_EXCEPTIONS = {
    "AskitError",
    "ConfigValidationError",
    "DuplicateRequestError",
    "InvalidPayloadError",
    "ManifestError",
    "MissingRequestIdError",
    "RequestCancelledError",
    "RequestTimeoutError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so ``import askit`` stays cheap."""
    if name in _EXCEPTIONS:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name in {"EventBus", "RemoteBus"}:
        from .events import EventBus, RemoteBus

        return {"EventBus": EventBus, "RemoteBus": RemoteBus}[name]
    if name in {"Dispatcher", "parse_event_name"}:
        from .dispatcher import Dispatcher, parse_event_name

        return {"Dispatcher": Dispatcher, "parse_event_name": parse_event_name}[name]
    if name in {"PermissionContext", "PermissionGate", "PermissionMode"}:
        from . import permissions

        return getattr(permissions, name)
    if name == "RequestCorrelator":
        from .correlator import RequestCorrelator

        return RequestCorrelator
    if name in {"GuestManifest", "load_manifest"}:
        from .manifest import GuestManifest, load_manifest

        return {"GuestManifest": GuestManifest, "load_manifest": load_manifest}[name]
    if name == "HostContext":
        from .context import HostContext

        return HostContext
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
