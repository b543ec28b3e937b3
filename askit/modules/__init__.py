from .base import ModuleHandler
from .haptic import HapticModule
from .registry import ModuleRegistry
from .toast import ToastModule

__all__ = ["HapticModule", "ModuleHandler", "ModuleRegistry", "ToastModule"]
