from __future__ import annotations

import logging

from .base import ModuleHandler
from .haptic import HapticModule
from .toast import ToastModule

LOGGER = logging.getLogger(__name__)


class ModuleRegistry:
    """Open mapping from module name to handler."""

    def __init__(self) -> None:
        self._modules: dict[str, ModuleHandler] = {}

    def register(self, handler: ModuleHandler, name: str | None = None) -> None:
        key = name or handler.name
        if key in self._modules:
            LOGGER.warning(f"Module {key} already registered, replacing")
        self._modules[key] = handler

    def unregister(self, name: str) -> None:
        self._modules.pop(name, None)

    def get(self, name: str) -> ModuleHandler | None:
        return self._modules.get(name)

    def names(self) -> list[str]:
        return list(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    @classmethod
    def build_default(cls) -> ModuleRegistry:
        reg = cls()
        reg.register(ToastModule())
        reg.register(HapticModule())
        return reg
