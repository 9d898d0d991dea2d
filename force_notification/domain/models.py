"""Domain models for message events and the host's channel/guild view."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class ChannelType(IntEnum):
    GUILD_TEXT = 0
    DM = 1
    GUILD_VOICE = 2
    GROUP_DM = 3
    GUILD_ANNOUNCEMENT = 5


DIRECT_CHANNEL_TYPES = (ChannelType.DM, ChannelType.GROUP_DM)


class NotificationLevel(IntEnum):
    USE_GUILD_DEFAULT = 0  # channel override sentinel
    ALL_MESSAGES = 1
    ONLY_MENTIONS = 2
    NO_MESSAGES = 3


@dataclass(frozen=True)
class Author:
    id: str
    username: str
    global_name: Optional[str] = None
    avatar: Optional[str] = None  # avatar hash, "a_" prefix = animated
    bot: bool = False
    discriminator: str = "0"


@dataclass(frozen=True)
class Embed:
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    id: str = ""
    filename: str = ""


@dataclass(frozen=True)
class Sticker:
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class Message:
    """A message-created event payload. Lives for one pipeline pass."""

    id: str
    channel_id: str
    author: Optional[Author]
    content: str = ""
    embeds: Tuple[Embed, ...] = ()
    attachments: Tuple[Attachment, ...] = ()
    sticker_items: Tuple[Sticker, ...] = ()
    mentions: Tuple[str, ...] = ()  # mentioned user ids
    mention_everyone: bool = False
    mention_roles: Tuple[str, ...] = ()

    def mentions_user(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in self.mentions

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Message":
        """Build a Message from the host's wire dict (snake_case keys)."""
        raw_author = data.get("author")
        author = None
        if raw_author:
            author = Author(
                id=str(raw_author.get("id", "")),
                username=raw_author.get("username") or "",
                global_name=raw_author.get("global_name") or raw_author.get("globalName"),
                avatar=raw_author.get("avatar"),
                bot=bool(raw_author.get("bot", False)),
                discriminator=str(raw_author.get("discriminator") or "0"),
            )
        mentions = []
        for m in data.get("mentions") or []:
            mentions.append(str(m.get("id")) if isinstance(m, dict) else str(m))
        return cls(
            id=str(data.get("id", "")),
            channel_id=str(data.get("channel_id", "")),
            author=author,
            content=data.get("content") or "",
            embeds=tuple(
                Embed(title=e.get("title"), description=e.get("description"))
                for e in data.get("embeds") or []
            ),
            attachments=tuple(
                Attachment(id=str(a.get("id", "")), filename=a.get("filename", ""))
                for a in data.get("attachments") or []
            ),
            sticker_items=tuple(
                Sticker(id=str(s.get("id", "")), name=s.get("name", ""))
                for s in data.get("sticker_items") or []
            ),
            mentions=tuple(mentions),
            mention_everyone=bool(data.get("mention_everyone", False)),
            mention_roles=tuple(str(r) for r in data.get("mention_roles") or []),
        )


@dataclass(frozen=True)
class Channel:
    id: str
    name: Optional[str] = None
    type: int = ChannelType.GUILD_TEXT
    guild_id: Optional[str] = None

    @property
    def is_direct(self) -> bool:
        return self.type in DIRECT_CHANNEL_TYPES


@dataclass(frozen=True)
class Guild:
    id: str
    name: str


@dataclass(frozen=True)
class GuildMember:
    user_id: str
    nick: Optional[str] = None
    avatar: Optional[str] = None  # guild-specific avatar hash
    roles: FrozenSet[str] = field(default_factory=frozenset)
