"""Event bus components for host and guest sides of the bridge."""

from .bus import EventBus
from .ratelimit import RateLimit
from .remote import RemoteBus

__all__ = ["EventBus", "RateLimit", "RemoteBus"]
