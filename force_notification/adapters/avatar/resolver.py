"""Avatar URL resolution and a bounded cache of inlined avatar images."""

import asyncio
import base64
from collections import OrderedDict
from typing import Optional

import aiohttp

from force_notification.config import NotificationSettings, debug_log
from force_notification.domain.models import Author, GuildMember

CDN_BASE = "https://cdn.discordapp.com"
AVATAR_CACHE_CAPACITY = 100
_FETCH_TIMEOUT = aiohttp.ClientTimeout(total=10)


def default_avatar_index(author: Author) -> int:
    """Default avatar slot: legacy discriminator users use it, others derive it from the id."""
    if author.discriminator and author.discriminator != "0":
        try:
            return int(author.discriminator) % 5
        except ValueError:
            pass
    try:
        return (int(author.id) >> 22) % 6
    except ValueError:
        return 0


def resolve_avatar_url(
    author: Optional[Author],
    guild_id: Optional[str] = None,
    member: Optional[GuildMember] = None,
) -> Optional[str]:
    """Guild avatar → user avatar (gif when animated) → default avatar."""
    if author is None:
        return None
    if guild_id and member is not None and member.avatar:
        return f"{CDN_BASE}/guilds/{guild_id}/users/{author.id}/avatars/{member.avatar}.webp?size=128"
    if author.avatar:
        ext = "gif" if author.avatar.startswith("a_") else "webp"
        return f"{CDN_BASE}/avatars/{author.id}/{author.avatar}.{ext}?size=128"
    return f"{CDN_BASE}/embed/avatars/{default_avatar_index(author)}.png"


class AvatarCache:
    """Insertion-ordered url → data-URL map. Evicts the oldest insert, not the least recently used."""

    def __init__(self, capacity: int = AVATAR_CACHE_CAPACITY):
        self._capacity = capacity
        self._entries: "OrderedDict[str, str]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    def get(self, url: str) -> Optional[str]:
        return self._entries.get(url)

    def put(self, url: str, data: str):
        if url in self._entries:
            self._entries[url] = data
            return
        while len(self._entries) >= self._capacity:
            self._entries.popitem(last=False)
        self._entries[url] = data

    def keys(self):
        return list(self._entries.keys())

    def clear(self):
        self._entries.clear()


class AvatarResolver:
    """Fetches avatars as inline data URLs, memoized in an AvatarCache."""

    def __init__(
        self,
        cache: Optional[AvatarCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
        settings: Optional[NotificationSettings] = None,
    ):
        self.cache = cache if cache is not None else AvatarCache()
        self._session = session
        self._owns_session = session is None
        self._settings = settings

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=_FETCH_TIMEOUT)
            self._owns_session = True
        return self._session

    async def fetch_as_data(self, url: Optional[str]) -> Optional[str]:
        """Return ``data:<mime>;base64,...`` for url, or None if it can't be fetched."""
        if not url:
            return None
        cached = self.cache.get(url)
        if cached is not None:
            return cached
        try:
            session = self._get_session()
            async with session.get(url) as resp:
                resp.raise_for_status()
                body = await resp.read()
                mime = resp.content_type or "application/octet-stream"
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            debug_log(self._settings, f"Failed to fetch avatar {url}: {e}")
            return None
        data = f"data:{mime};base64,{base64.b64encode(body).decode('ascii')}"
        self.cache.put(url, data)
        return data

    async def close(self):
        """Clear the cache and close the HTTP session if this resolver created it."""
        self.cache.clear()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
