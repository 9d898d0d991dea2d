"""Outbound ports — interfaces for host collaborators and delivery surfaces."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from force_notification.domain.models import Author, Channel, Guild, GuildMember


@runtime_checkable
class EventBusPort(Protocol):
    """Host event stream. Subscription is per (event name, handler)."""

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> None: ...
    def unsubscribe(self, event: str, handler: Callable[[Any], None]) -> None: ...


@runtime_checkable
class HostStatePort(Protocol):
    """Read-only view of the host's user/channel/guild/mute stores."""

    def get_current_user(self) -> Optional[Author]: ...
    def get_selected_channel_id(self) -> Optional[str]: ...
    def get_channel(self, channel_id: str) -> Optional[Channel]: ...
    def get_guild(self, guild_id: str) -> Optional[Guild]: ...
    def get_member(self, guild_id: str, user_id: str) -> Optional[GuildMember]: ...
    def is_guild_muted(self, guild_id: str) -> bool: ...
    def is_channel_muted(self, guild_id: str, channel_id: str) -> bool: ...
    def get_channel_message_notifications(self, guild_id: str, channel_id: str) -> Optional[int]: ...
    def get_message_notifications(self, guild_id: str) -> Optional[int]: ...
    def window_has_focus(self) -> bool: ...


@runtime_checkable
class NavigationPort(Protocol):
    """Interface for jumping to a message in the host client."""

    def transition_to(self, guild_id: Optional[str], channel_id: str, message_id: str) -> None: ...
    def focus_window(self) -> None: ...


@runtime_checkable
class SettingsStoragePort(Protocol):
    """Interface for persistent settings storage."""

    def load(self, key: str) -> Dict[str, Any]: ...
    def save(self, key: str, data: Dict[str, Any]) -> None: ...


@dataclass
class OSNotification:
    """An OS-level alert request."""

    title: str
    body: str
    icon: Optional[str] = None  # inline data URL
    silent: bool = True
    tag: str = ""
    on_click: Optional[Callable[[], None]] = None


@runtime_checkable
class OSNotificationHandle(Protocol):
    def close(self) -> None: ...


@runtime_checkable
class OSNotifierPort(Protocol):
    """Interface for showing OS-level notifications."""

    def show(self, notification: OSNotification) -> OSNotificationHandle: ...


@runtime_checkable
class ToastRendererPort(Protocol):
    """Interface for drawing in-app toast widgets."""

    def render(
        self,
        content: Any,
        on_click: Callable[[], None],
        on_close: Callable[[], None],
    ) -> Any: ...
    def begin_exit(self, widget: Any) -> None: ...
    def remove(self, widget: Any) -> None: ...


@runtime_checkable
class StatusPort(Protocol):
    """Interface for one-off user-visible status messages."""

    def show_status(self, text: str, kind: str = "info") -> None: ...
