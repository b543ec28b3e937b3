"""Permission evaluation for guest-initiated module calls."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
import logging
import time
from typing import Any

LOGGER = logging.getLogger(__name__)


class PermissionMode(str, Enum):
    """Enforcement policy applied when a guest lacks a declared permission."""

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"


class ViolationKind(str, Enum):
    MISSING_PERMISSION = "missing_permission"
    UNKNOWN_MODULE = "unknown_module"
    UNKNOWN_EVENT = "unknown_event"
    INVALID_PAYLOAD = "invalid_payload"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ContractViolation:
    kind: ViolationKind
    event_name: str
    module: str | None = None
    method: str | None = None
    direction: str = "guestToHost"
    payload: Any = None
    reason: str = ""
    at: int = field(default_factory=_now_ms)


ViolationSink = Callable[[ContractViolation], None]


@dataclass(frozen=True)
class PermissionContext:
    """Immutable permission snapshot passed with each dispatch call."""

    permissions: frozenset[str] = frozenset()
    permission_mode: PermissionMode = PermissionMode.ALLOW
    on_contract_violation: ViolationSink | None = None

    @classmethod
    def from_options(
        cls,
        permissions: Iterable[str] | None = None,
        permission_mode: PermissionMode | str = PermissionMode.ALLOW,
        on_contract_violation: ViolationSink | None = None,
    ) -> PermissionContext:
        """Build a context from plain option values (mode may be a string)."""
        return cls(
            permissions=frozenset(permissions or ()),
            permission_mode=PermissionMode(permission_mode),
            on_contract_violation=on_contract_violation,
        )

    def report(self, violation: ContractViolation) -> None:
        """Send ``violation`` to the configured sink, if any."""
        if self.on_contract_violation is None:
            return
        try:
            self.on_contract_violation(violation)
        except Exception as exc:  # noqa: BLE001 - sinks are caller code.
            LOGGER.error(
                "permission.sink.error",
                extra={
                    "event": "permission.sink.error",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    violation: ContractViolation | None = None


class PermissionGate:
    """Decide whether a module/method pair may run under a given context."""

    @staticmethod
    def is_granted(module: str, method: str, permissions: frozenset[str]) -> bool:
        return f"{module}:{method}" in permissions or module in permissions

    def check(
        self,
        module: str,
        method: str,
        context: PermissionContext,
        event_name: str | None = None,
        payload: Any = None,
    ) -> PermissionDecision:
        mode = context.permission_mode
        if mode is PermissionMode.ALLOW:
            return PermissionDecision(allowed=True)

        if self.is_granted(module, method, context.permissions):
            return PermissionDecision(allowed=True)

        violation = ContractViolation(
            kind=ViolationKind.MISSING_PERMISSION,
            event_name=event_name or f"{module}:{method}",
            module=module,
            method=method,
            payload=payload,
            reason=f"missing permission: {module}:{method}",
        )
        context.report(violation)
        LOGGER.warning(
            "permission.missing",
            extra={
                "event": "permission.missing",
                "module_name": module,
                "method_name": method,
                "mode": mode.value,
            },
        )
        return PermissionDecision(
            allowed=mode is not PermissionMode.DENY, violation=violation
        )


@dataclass(frozen=True)
class ViolationSummary:
    total: int
    last: ContractViolation | None
    recent: tuple[ContractViolation, ...]


class ViolationCollector:
    """Keep a running count and the most recent violations for audit views.

    An instance is callable, so it can be passed directly as
    ``on_contract_violation``.
    """

    def __init__(self, max_size: int = 50) -> None:
        self._max = max(1, max_size)
        self._total = 0
        self._last: ContractViolation | None = None
        self._recent: list[ContractViolation] = []

    def record(self, violation: ContractViolation) -> None:
        self._total += 1
        self._last = violation
        self._recent.append(violation)
        if len(self._recent) > self._max:
            del self._recent[: len(self._recent) - self._max]

    __call__ = record

    def summary(self) -> ViolationSummary:
        return ViolationSummary(
            total=self._total, last=self._last, recent=tuple(self._recent)
        )
