"""Discord host — runs the notification pipeline on a discord.py gateway connection."""

from force_notification.adapters.discord.host import (
    DiscordHost,
    DiscordHostState,
    DiscordLinkNavigator,
    channel_from_discord,
    message_from_discord,
)

__all__ = [
    "DiscordHost",
    "DiscordHostState",
    "DiscordLinkNavigator",
    "channel_from_discord",
    "message_from_discord",
]
