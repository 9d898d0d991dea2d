"""Notification gate — decides whether a message should raise an alert.

Pure domain logic, no host dependencies. Host state is captured into
ViewState / MuteState snapshots before the decision is made.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from force_notification.config import NotificationSettings
from force_notification.domain.models import Channel, Message, NotificationLevel


@dataclass(frozen=True)
class ViewState:
    current_user_id: Optional[str]
    selected_channel_id: Optional[str] = None
    window_focused: bool = False


@dataclass(frozen=True)
class MuteState:
    guild_muted: bool = False
    channel_muted: bool = False
    channel_override: Optional[int] = None
    guild_default: Optional[int] = None
    member_role_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def effective_level(self) -> Optional[int]:
        """Channel override wins unless it is unset or the "use guild default" sentinel."""
        override = self.channel_override
        if override is not None and override != NotificationLevel.USE_GUILD_DEFAULT:
            return override
        return self.guild_default


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def _allow(reason: str) -> Decision:
    return Decision(True, reason)


def _deny(reason: str) -> Decision:
    return Decision(False, reason)


def _is_personally_mentioned(message: Message, view: ViewState, mute: MuteState) -> bool:
    if message.mentions_user(view.current_user_id) or message.mention_everyone:
        return True
    return any(role_id in mute.member_role_ids for role_id in message.mention_roles)


def _check_host_settings(
    message: Message,
    channel: Channel,
    view: ViewState,
    settings: NotificationSettings,
    mute: Optional[MuteState],
) -> Decision:
    if not settings.respect_discord_settings:
        return _allow("host settings ignored")

    author = message.author
    if settings.always_notify_bots and author is not None and author.bot:
        return _allow("bot message, always notify")

    if not channel.guild_id:
        return _allow("direct channel")
    if mute is None:
        return _allow("no mute state available")

    if mute.guild_muted:
        return _deny("guild is muted")
    if mute.channel_muted:
        return _deny("channel is muted")

    if settings.ignore_notification_level:
        return _allow("not muted, notification level ignored")

    level = mute.effective_level
    if level == NotificationLevel.NO_MESSAGES:
        return _deny("notifications disabled")
    if level == NotificationLevel.ONLY_MENTIONS:
        if not _is_personally_mentioned(message, view, mute):
            return _deny("mentions only, not mentioned")
    return _allow(f"notification level {level}")


def _check_plugin_filters(
    message: Message,
    channel: Channel,
    view: ViewState,
    settings: NotificationSettings,
) -> Decision:
    if settings.dm_only and not channel.is_direct:
        return _deny("dm only")
    mentioned = (
        message.mentions_user(view.current_user_id)
        or message.mention_everyone
        or bool(message.mention_roles)
    )
    if settings.mentions_only and not mentioned:
        return _deny("mentions only, no mention")
    return _allow("passed plugin filters")


def decide(
    message: Message,
    channel: Channel,
    view: ViewState,
    settings: NotificationSettings,
    mute: Optional[MuteState],
) -> Decision:
    """Evaluate the gate rules in order, stopping at the first decisive one."""
    author = message.author
    if view.current_user_id is None:
        return _deny("no current user")
    if author is not None and author.id == view.current_user_id:
        return _deny("own message")

    if view.selected_channel_id == message.channel_id and view.window_focused:
        return _deny("viewing channel with focus")

    host = _check_host_settings(message, channel, view, settings, mute)
    if not host:
        return host

    # Bot bypass skips mute checks but not the plugin's own filters
    return _check_plugin_filters(message, channel, view, settings)


def snapshot_view_state(host) -> ViewState:
    user = host.get_current_user()
    return ViewState(
        current_user_id=user.id if user else None,
        selected_channel_id=host.get_selected_channel_id(),
        window_focused=bool(host.window_has_focus()),
    )


def snapshot_mute_state(host, channel: Channel, current_user_id: Optional[str]) -> Optional[MuteState]:
    """Capture the host's mute and notification-level state for one channel."""
    guild_id = channel.guild_id
    if not guild_id:
        return None
    roles: FrozenSet[str] = frozenset()
    if current_user_id:
        member = host.get_member(guild_id, current_user_id)
        if member is not None:
            roles = frozenset(member.roles)
    return MuteState(
        guild_muted=bool(host.is_guild_muted(guild_id)),
        channel_muted=bool(host.is_channel_muted(guild_id, channel.id)),
        channel_override=host.get_channel_message_notifications(guild_id, channel.id),
        guild_default=host.get_message_notifications(guild_id),
        member_role_ids=roles,
    )
