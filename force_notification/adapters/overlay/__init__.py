"""Overlay adapter — reconnecting websocket client."""

from force_notification.adapters.overlay.client import OverlayClient, TransportEvent, TransportState

__all__ = ["OverlayClient", "TransportEvent", "TransportState"]
