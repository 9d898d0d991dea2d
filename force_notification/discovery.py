"""Collaborator discovery — find the host's event bus, state view and navigator.

The host exposes a registry of named modules. Discovery inspects it duck-typed
and returns a typed Collaborators bundle, or None when a required piece is
missing. Nothing downstream cares how discovery happened.
"""

import sys
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from force_notification.ports.outbound import EventBusPort, HostStatePort, NavigationPort

EVENT_BUS_KEY = "Dispatcher"
HOST_STATE_KEY = "HostState"
NAVIGATION_KEY = "Navigation"


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


@dataclass
class Collaborators:
    event_bus: EventBusPort
    host: HostStatePort
    navigation: Optional[NavigationPort] = None


def _is_event_bus(obj: Any) -> bool:
    return (
        obj is not None
        and callable(getattr(obj, "subscribe", None))
        and callable(getattr(obj, "unsubscribe", None))
    )


def _find_event_bus(registry: Mapping[str, Any], host: Any) -> Optional[EventBusPort]:
    candidate = registry.get(EVENT_BUS_KEY)
    if _is_event_bus(candidate):
        return candidate
    # Stores usually hold a reference to the bus that feeds them
    candidate = getattr(host, "_dispatcher", None)
    if _is_event_bus(candidate):
        return candidate
    for value in registry.values():
        if value is not host and _is_event_bus(value):
            return value
    return None


def _find_navigation(registry: Mapping[str, Any]) -> Optional[NavigationPort]:
    candidate = registry.get(NAVIGATION_KEY)
    if isinstance(candidate, NavigationPort):
        return candidate
    for value in registry.values():
        if isinstance(value, NavigationPort):
            return value
    return None


def discover_collaborators(registry: Mapping[str, Any]) -> Optional[Collaborators]:
    """Search the registry. Returns None if the host state or event bus can't be found."""
    _log("=== Searching for modules ===")
    host = registry.get(HOST_STATE_KEY)
    if not isinstance(host, HostStatePort):
        _log("HostState: Not found")
        return None

    event_bus = _find_event_bus(registry, host)
    _log(f"Dispatcher: {'Found' if event_bus else 'Not found'}")
    if event_bus is None:
        return None

    navigation = _find_navigation(registry)
    _log(f"Navigation: {'Found' if navigation else 'Not found'}")
    return Collaborators(event_bus=event_bus, host=host, navigation=navigation)
