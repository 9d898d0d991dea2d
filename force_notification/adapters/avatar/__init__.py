"""Avatar adapter — URL resolution and inline image cache."""

from force_notification.adapters.avatar.resolver import (
    AvatarCache,
    AvatarResolver,
    default_avatar_index,
    resolve_avatar_url,
)

__all__ = ["AvatarCache", "AvatarResolver", "default_avatar_index", "resolve_avatar_url"]
