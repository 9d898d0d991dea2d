"""Settings surface — toggles, numeric fields, status, test notification, reload.

The UI layer calls into SettingsController; every change is persisted
immediately and the overlay toggle connects/disconnects the link.
"""

from typing import Any, Dict, Mapping, Union

from force_notification.config import (
    MAX_NOTIFICATION_DURATION,
    MIN_NOTIFICATION_DURATION,
    SETTINGS_KEYS,
    TOGGLE_KEYS,
    clamp_duration,
)
from force_notification.discovery import discover_collaborators
from force_notification.dispatcher import DeliveryResult
from force_notification.session import NotificationSession


class SettingsController:
    """Mutates a session's settings on behalf of the settings UI."""

    toggles = TOGGLE_KEYS
    duration_bounds = (MIN_NOTIFICATION_DURATION, MAX_NOTIFICATION_DURATION)

    def __init__(self, session: NotificationSession):
        self._session = session

    @property
    def settings(self):
        return self._session.settings

    def get(self, key: str) -> Any:
        return getattr(self.settings, SETTINGS_KEYS[key])

    def set_toggle(self, key: str, value: bool):
        if key not in TOGGLE_KEYS:
            raise KeyError(f"Unknown toggle: {key}")
        setattr(self.settings, SETTINGS_KEYS[key], bool(value))
        self._session.save_settings()
        if key == "useOverlayNotification":
            if value:
                self._session.overlay.connect()
            else:
                self._session.overlay.disconnect()

    def set_notification_duration(self, value: Union[int, str]) -> int:
        try:
            duration = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"notificationDuration must be an integer, got {value!r}")
        self.settings.notification_duration = clamp_duration(duration)
        self._session.save_settings()
        return self.settings.notification_duration

    def set_max_content_length(self, value: Union[int, str]) -> int:
        try:
            length = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"maxContentLength must be an integer, got {value!r}")
        if length < 1:
            raise ValueError("maxContentLength must be positive")
        self.settings.max_content_length = length
        self._session.save_settings()
        return length

    def status(self) -> Dict[str, Any]:
        """Connection status shown at the top of the settings panel."""
        return {
            "dispatcher": self._session.is_subscribed,
            "overlay": self._session.overlay.state.value,
        }

    async def send_test_notification(self) -> DeliveryResult:
        session = self._session
        if session.dispatcher is None:
            session.status.show_status("Event dispatcher not found", "error")
            return DeliveryResult()
        result = await session.dispatcher.send_test_notification()
        if self.settings.use_overlay_notification:
            if result.overlay:
                session.status.show_status("Sent test notification to overlay", "success")
            else:
                session.status.show_status("Overlay is not connected", "error")
        if result.toast:
            session.status.show_status("Sent custom notification", "success")
        if result.os_notification:
            session.status.show_status("Sent OS notification", "success")
        return result

    def reload(self, registry: Mapping[str, Any]) -> bool:
        """Rediscover host modules and rewire the session."""
        return self._session.reload(discover_collaborators(registry))
