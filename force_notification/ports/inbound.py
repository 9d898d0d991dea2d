"""Inbound port — the host's message-created event."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from force_notification.domain.models import Message

MESSAGE_CREATE = "MESSAGE_CREATE"


@dataclass
class MessageCreatedEvent:
    """Host-agnostic message-created event."""

    message: Message
    guild_id: Optional[str] = None

    @classmethod
    def coerce(cls, event: Union["MessageCreatedEvent", Dict[str, Any]]) -> Optional["MessageCreatedEvent"]:
        """Accept either an event object or the host's raw ``{message, guildId}`` dict."""
        if isinstance(event, cls):
            return event
        if not isinstance(event, dict):
            return None
        raw = event.get("message")
        if raw is None:
            return None
        message = raw if isinstance(raw, Message) else Message.from_payload(raw)
        guild_id = event.get("guildId", event.get("guild_id"))
        return cls(message=message, guild_id=str(guild_id) if guild_id else None)
