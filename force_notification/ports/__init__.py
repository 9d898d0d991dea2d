"""Port interfaces (Hexagonal Architecture)."""

from force_notification.ports.inbound import MESSAGE_CREATE, MessageCreatedEvent
from force_notification.ports.outbound import (
    EventBusPort,
    HostStatePort,
    NavigationPort,
    OSNotification,
    OSNotifierPort,
    SettingsStoragePort,
    StatusPort,
    ToastRendererPort,
)

__all__ = [
    "MESSAGE_CREATE",
    "MessageCreatedEvent",
    "EventBusPort",
    "HostStatePort",
    "NavigationPort",
    "OSNotification",
    "OSNotifierPort",
    "SettingsStoragePort",
    "StatusPort",
    "ToastRendererPort",
]
