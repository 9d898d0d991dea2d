"""Discord adapter — a discord.Client that feeds MESSAGE_CREATE into the pipeline.

DiscordHost converts gateway messages to domain Messages and publishes them
on an in-process EventBus. DiscordHostState answers HostStatePort queries
from the discord.py cache; a bot account has no mute settings, selected
channel, or window, so those answers are constant.
"""

import sys
import webbrowser
from collections import OrderedDict
from typing import Any, Dict, Optional

import discord

from force_notification.adapters.host.event_bus import EventBus
from force_notification.discovery import EVENT_BUS_KEY, HOST_STATE_KEY, NAVIGATION_KEY
from force_notification.domain.formatting import channel_path
from force_notification.domain.models import (
    Attachment,
    Author,
    Channel,
    ChannelType,
    Embed,
    Guild,
    GuildMember,
    Message,
    NotificationLevel,
    Sticker,
)
from force_notification.ports.inbound import MESSAGE_CREATE, MessageCreatedEvent

DISCORD_WEB_BASE = "https://discord.com"
MAX_SEEN_CHANNELS = 500

# discord.py NotificationLevel (0=all, 1=mentions) -> our numbering
_GUILD_LEVELS = {
    discord.NotificationLevel.all_messages: NotificationLevel.ALL_MESSAGES,
    discord.NotificationLevel.only_mentions: NotificationLevel.ONLY_MENTIONS,
}

_CHANNEL_TYPES = {
    discord.ChannelType.private: ChannelType.DM,
    discord.ChannelType.group: ChannelType.GROUP_DM,
}


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


def _asset_key(asset: Any) -> Optional[str]:
    return asset.key if asset is not None else None


def author_from_discord(user: Any) -> Author:
    return Author(
        id=str(user.id),
        username=user.name,
        global_name=getattr(user, "global_name", None),
        avatar=_asset_key(getattr(user, "avatar", None)),
        bot=bool(getattr(user, "bot", False)),
        discriminator=str(getattr(user, "discriminator", None) or "0"),
    )


def message_from_discord(message: discord.Message) -> Message:
    """Convert a discord.py message to the platform-agnostic Message."""
    return Message(
        id=str(message.id),
        channel_id=str(message.channel.id),
        author=author_from_discord(message.author),
        content=message.content or "",
        embeds=tuple(Embed(title=e.title, description=e.description) for e in message.embeds),
        attachments=tuple(Attachment(id=str(a.id), filename=a.filename) for a in message.attachments),
        sticker_items=tuple(Sticker(id=str(s.id), name=s.name) for s in message.stickers),
        mentions=tuple(str(u.id) for u in message.mentions),
        mention_everyone=bool(message.mention_everyone),
        mention_roles=tuple(str(r.id) for r in message.role_mentions),
    )


def _channel_type(kind: Any) -> int:
    if kind is None:
        return int(ChannelType.GUILD_TEXT)
    mapped = _CHANNEL_TYPES.get(kind)
    return int(mapped) if mapped is not None else int(kind.value)


def channel_from_discord(channel: Any) -> Channel:
    guild = getattr(channel, "guild", None)
    kind = getattr(channel, "type", None)
    return Channel(
        id=str(channel.id),
        name=getattr(channel, "name", None),
        type=_channel_type(kind),
        guild_id=str(guild.id) if guild is not None else None,
    )


class DiscordHostState:
    """HostStatePort backed by a discord.Client's cache.

    discord.py never caches DM channels, so channels seen on incoming
    messages are remembered here and used when the cache has no entry.
    """

    def __init__(self, client: discord.Client, dispatcher: Optional[EventBus] = None,
                 max_seen_channels: int = MAX_SEEN_CHANNELS):
        self._client = client
        self._dispatcher = dispatcher
        self._max_seen = max_seen_channels
        self._seen: "OrderedDict[str, Channel]" = OrderedDict()

    def remember_channel(self, channel: Any) -> Channel:
        """Record the channel a message arrived on."""
        converted = channel_from_discord(channel)
        self._seen.pop(converted.id, None)
        while len(self._seen) >= self._max_seen:
            self._seen.popitem(last=False)
        self._seen[converted.id] = converted
        return converted

    def get_current_user(self) -> Optional[Author]:
        user = self._client.user
        return author_from_discord(user) if user is not None else None

    def get_selected_channel_id(self) -> Optional[str]:
        return None

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        channel = self._client.get_channel(int(channel_id))
        if channel is not None:
            return channel_from_discord(channel)
        return self._seen.get(str(channel_id))

    def get_guild(self, guild_id: str) -> Optional[Guild]:
        guild = self._client.get_guild(int(guild_id))
        if guild is None:
            return None
        return Guild(id=str(guild.id), name=guild.name)

    def get_member(self, guild_id: str, user_id: str) -> Optional[GuildMember]:
        guild = self._client.get_guild(int(guild_id))
        if guild is None:
            return None
        member = guild.get_member(int(user_id))
        if member is None:
            return None
        return GuildMember(
            user_id=str(member.id),
            nick=member.nick,
            avatar=_asset_key(member.guild_avatar),
            roles=frozenset(str(r.id) for r in member.roles),
        )

    def is_guild_muted(self, guild_id: str) -> bool:
        return False

    def is_channel_muted(self, guild_id: str, channel_id: str) -> bool:
        return False

    def get_channel_message_notifications(self, guild_id: str, channel_id: str) -> Optional[int]:
        return None

    def get_message_notifications(self, guild_id: str) -> Optional[int]:
        guild = self._client.get_guild(int(guild_id))
        if guild is None:
            return None
        level = _GUILD_LEVELS.get(guild.default_notifications)
        return int(level) if level is not None else None

    def window_has_focus(self) -> bool:
        return False


class DiscordLinkNavigator:
    """NavigationPort that opens the message in the Discord web/desktop client."""

    def __init__(self, base_url: str = DISCORD_WEB_BASE, opener=webbrowser.open):
        self._base_url = base_url.rstrip("/")
        self._opener = opener
        self.last_url: Optional[str] = None

    def transition_to(self, guild_id: Optional[str], channel_id: str, message_id: str) -> None:
        self.last_url = self._base_url + channel_path(guild_id, channel_id, message_id)
        self._opener(self.last_url)

    def focus_window(self) -> None:
        # The browser brings its own window forward.
        return None


class DiscordHost(discord.Client):
    """Thin Discord client that republishes created messages on an EventBus."""

    def __init__(self, token: str, event_bus: Optional[EventBus] = None, **discord_kwargs):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(intents=intents, **discord_kwargs)
        self._token = token
        self.event_bus = event_bus or EventBus()
        self.host_state = DiscordHostState(self, self.event_bus)
        self.navigator = DiscordLinkNavigator()

    def registry(self) -> Dict[str, Any]:
        """Named modules for collaborator discovery."""
        return {
            EVENT_BUS_KEY: self.event_bus,
            HOST_STATE_KEY: self.host_state,
            NAVIGATION_KEY: self.navigator,
        }

    async def run_host(self):
        await self.start(self._token)

    async def on_ready(self):
        _log(f"Logged in as {self.user}")

    async def on_message(self, message: discord.Message):
        self.host_state.remember_channel(message.channel)
        guild = message.guild
        event = MessageCreatedEvent(
            message=message_from_discord(message),
            guild_id=str(guild.id) if guild is not None else None,
        )
        self.event_bus.publish(MESSAGE_CREATE, event)
