"""Configuration and notification settings."""

__version__ = "2.0.0"

import os
import sys
from dataclasses import dataclass, fields
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

PLUGIN_NAME = "ForceNotification"
SETTINGS_KEY = "settings"

DEFAULT_OVERLAY_URL = "ws://127.0.0.1:47523"
DEFAULT_RECONNECT_DELAY = 5.0

MIN_NOTIFICATION_DURATION = 1000
MAX_NOTIFICATION_DURATION = 30000

_TRUE_VALUES = ("1", "true", "yes", "on")


def _log(msg: str):
    print(f"[{PLUGIN_NAME}] {msg}", file=sys.stderr)


def debug_log(settings: "NotificationSettings", msg: str):
    """Print a debug line only when debug mode is enabled."""
    if settings is not None and settings.debug_mode:
        _log(msg)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        _log(f"Invalid {name}={value!r}, falling back to {default}")
        return default


# Persisted key (camelCase) -> dataclass attribute
SETTINGS_KEYS = {
    "notificationDuration": "notification_duration",
    "showAvatar": "show_avatar",
    "showChannelName": "show_channel_name",
    "showServerName": "show_server_name",
    "maxContentLength": "max_content_length",
    "useCustomNotification": "use_custom_notification",
    "useOverlayNotification": "use_overlay_notification",
    "respectDiscordSettings": "respect_discord_settings",
    "dmOnly": "dm_only",
    "mentionsOnly": "mentions_only",
    "alwaysNotifyBots": "always_notify_bots",
    "ignoreNotificationLevel": "ignore_notification_level",
    "debugMode": "debug_mode",
}

TOGGLE_KEYS = (
    "useOverlayNotification",
    "useCustomNotification",
    "showAvatar",
    "showChannelName",
    "showServerName",
    "respectDiscordSettings",
    "dmOnly",
    "mentionsOnly",
    "alwaysNotifyBots",
    "ignoreNotificationLevel",
    "debugMode",
)


def clamp_duration(value: int) -> int:
    return max(MIN_NOTIFICATION_DURATION, min(MAX_NOTIFICATION_DURATION, value))


@dataclass
class NotificationSettings:
    """User-facing settings record. One instance per session, mutated by the settings surface."""

    notification_duration: int = 5000
    show_avatar: bool = True
    show_channel_name: bool = True
    show_server_name: bool = True
    max_content_length: int = 200
    use_custom_notification: bool = True
    use_overlay_notification: bool = True
    respect_discord_settings: bool = True
    dm_only: bool = False
    mentions_only: bool = False
    always_notify_bots: bool = True
    ignore_notification_level: bool = True
    debug_mode: bool = False

    @property
    def duration_seconds(self) -> float:
        return self.notification_duration / 1000

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted camelCase record."""
        return {key: getattr(self, attr) for key, attr in SETTINGS_KEYS.items()}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "NotificationSettings":
        """Merge a persisted record over the defaults. Unknown keys are ignored."""
        settings = cls()
        settings.update(record or {})
        return settings

    def update(self, record: Dict[str, Any]):
        types = {f.name: f.type for f in fields(self)}
        for key, value in record.items():
            attr = SETTINGS_KEYS.get(key)
            if attr is None:
                continue
            expected = types[attr]
            if expected in (bool, "bool"):
                if isinstance(value, bool):
                    setattr(self, attr, value)
            elif expected in (int, "int"):
                if isinstance(value, int) and not isinstance(value, bool):
                    setattr(self, attr, value)
        self.notification_duration = clamp_duration(self.notification_duration)
        if self.max_content_length < 1:
            self.max_content_length = 1


@dataclass
class AppConfig:
    """Process configuration, read from the environment."""

    overlay_url: str = DEFAULT_OVERLAY_URL
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    storage_dir: str = "memory"
    debug: bool = False
    discord_token: str = ""

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            overlay_url=os.getenv("FORCE_NOTIFICATION_OVERLAY_URL", DEFAULT_OVERLAY_URL).strip(),
            reconnect_delay=_env_float("FORCE_NOTIFICATION_RECONNECT_DELAY", DEFAULT_RECONNECT_DELAY),
            storage_dir=os.getenv("FORCE_NOTIFICATION_STORAGE_DIR", "memory"),
            debug=_env_bool("FORCE_NOTIFICATION_DEBUG", False),
            discord_token=os.getenv("DISCORD_BOT_TOKEN", ""),
        )
