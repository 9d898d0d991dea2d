"""Storage adapter — JSON file persistence."""

from force_notification.adapters.storage.json_store import JsonStorage

__all__ = ["JsonStorage"]
