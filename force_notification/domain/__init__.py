"""Domain layer — pure Python, no framework dependencies."""

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
from force_notification.domain.gate import Decision, MuteState, ViewState, decide
from force_notification.domain.formatting import format_content, resolve_display_name

__all__ = [
    "Attachment",
    "Author",
    "Channel",
    "ChannelType",
    "Embed",
    "Guild",
    "GuildMember",
    "Message",
    "NotificationLevel",
    "Sticker",
    "Decision",
    "MuteState",
    "ViewState",
    "decide",
    "format_content",
    "resolve_display_name",
]
