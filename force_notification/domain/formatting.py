"""Text formatting for notification bodies, titles and overlay payloads."""

from typing import Dict, Optional

from force_notification.domain.models import Author, Channel, Guild, GuildMember, Message

UNKNOWN_NAME = "Unknown"
ELLIPSIS = "..."
MESSAGE_PLACEHOLDER = "[Message]"


def resolve_display_name(author: Optional[Author], member: Optional[GuildMember] = None) -> str:
    """Guild nickname → global display name → username → "Unknown"."""
    if author is None:
        return UNKNOWN_NAME
    if member is not None and member.nick:
        return member.nick
    if author.global_name:
        return author.global_name
    return author.username or UNKNOWN_NAME


def format_content(message: Message, max_length: int) -> str:
    """Message text, or a bracketed summary of its embeds/attachments/stickers."""
    content = message.content or ""
    if not content and message.embeds:
        embed = message.embeds[0]
        content = "[Embed] " + (embed.title or embed.description or "")
    if not content and message.attachments:
        content = f"[Attachment: {len(message.attachments)} file(s)]"
    if not content and message.sticker_items:
        content = f"[Sticker: {message.sticker_items[0].name}]"
    if len(content) > max_length:
        content = content[:max_length] + ELLIPSIS
    return content or MESSAGE_PLACEHOLDER


def format_channel_info(
    channel: Channel,
    guild: Optional[Guild],
    show_channel_name: bool = True,
    show_server_name: bool = True,
) -> str:
    info = ""
    if show_channel_name and channel.name:
        info = f"#{channel.name}"
    if show_server_name and guild is not None:
        info = f"{info} • {guild.name}" if info else guild.name
    return info


def channel_path(guild_id: Optional[str], channel_id: str, message_id: str) -> str:
    """Host route for a message; DMs live under ``@me``."""
    return f"/channels/{guild_id or '@me'}/{channel_id}/{message_id}"


def notification_tag(message_id: str) -> str:
    return f"discord-{message_id}"


def build_overlay_payload(
    author: Optional[Author],
    display_name: str,
    content: str,
    avatar_url: Optional[str],
    channel_name: str = "",
    server_name: str = "",
) -> Dict[str, str]:
    """JSON object sent to the overlay process, one per notification."""
    return {
        "username": (author.username if author else "") or UNKNOWN_NAME,
        "displayName": display_name,
        "content": content,
        "avatarUrl": avatar_url or "",
        "avatarHash": (author.avatar if author else "") or "",
        "userId": (author.id if author else "") or "",
        "channelName": channel_name,
        "serverName": server_name,
    }
