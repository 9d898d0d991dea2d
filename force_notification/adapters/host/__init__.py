"""Host-side adapters shared by concrete hosts."""

from force_notification.adapters.host.event_bus import EventBus

__all__ = ["EventBus"]
