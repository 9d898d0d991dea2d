"""Force Notification — forced desktop notifications for Discord messages."""

from force_notification.config import AppConfig, NotificationSettings, __version__
from force_notification.discovery import Collaborators, discover_collaborators
from force_notification.dispatcher import DeliveryDispatcher, DeliveryResult
from force_notification.session import NotificationSession
from force_notification.settings_surface import SettingsController

__all__ = [
    "__version__",
    "AppConfig",
    "Collaborators",
    "DeliveryDispatcher",
    "DeliveryResult",
    "NotificationSession",
    "NotificationSettings",
    "SettingsController",
    "discover_collaborators",
]
