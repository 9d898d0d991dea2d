"""Tests for adapters/discord/host.py — discord.py conversion and cache-backed host state."""

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from force_notification.adapters.discord.host import (
    DiscordHost,
    DiscordHostState,
    DiscordLinkNavigator,
    channel_from_discord,
    message_from_discord,
)
from force_notification.discovery import discover_collaborators
from force_notification.domain.models import ChannelType, NotificationLevel
from force_notification.ports.inbound import MESSAGE_CREATE, MessageCreatedEvent
from force_notification.ports.outbound import HostStatePort, NavigationPort
from force_notification.session import NotificationSession


def _user(id=9, name="bob", bot=False, avatar=None):
    return SimpleNamespace(
        id=id,
        name=name,
        global_name=None,
        avatar=SimpleNamespace(key=avatar) if avatar else None,
        bot=bot,
        discriminator="0",
    )


def _guild(id=50, name="Guild", level=discord.NotificationLevel.all_messages, members=None):
    members = members or {}
    return SimpleNamespace(id=id, name=name, default_notifications=level, get_member=members.get)


def _text_channel(id=100, guild=None):
    return SimpleNamespace(id=id, name="general", type=discord.ChannelType.text, guild=guild or _guild())


def _discord_message(content="hi", guild=None):
    guild = guild or _guild()
    return SimpleNamespace(
        id=5,
        channel=_text_channel(guild=guild),
        guild=guild,
        author=_user(avatar="a_abc"),
        content=content,
        embeds=[SimpleNamespace(title="T", description=None)],
        attachments=[SimpleNamespace(id=3, filename="a.png")],
        stickers=[SimpleNamespace(id=4, name="wave")],
        mentions=[_user(id=1, name="me")],
        mention_everyone=False,
        role_mentions=[SimpleNamespace(id=7)],
    )


class TestConversion:
    def test_message_from_discord(self):
        msg = message_from_discord(_discord_message())
        assert msg.id == "5"
        assert msg.channel_id == "100"
        assert msg.author.id == "9"
        assert msg.author.avatar == "a_abc"
        assert msg.embeds[0].title == "T"
        assert msg.attachments[0].filename == "a.png"
        assert msg.sticker_items[0].name == "wave"
        assert msg.mentions == ("1",)
        assert msg.mention_roles == ("7",)

    def test_guild_channel(self):
        channel = channel_from_discord(_text_channel())
        assert channel.id == "100"
        assert channel.guild_id == "50"
        assert channel.type == ChannelType.GUILD_TEXT

    def test_dm_channel(self):
        dm = SimpleNamespace(id=200, type=discord.ChannelType.private)
        channel = channel_from_discord(dm)
        assert channel.is_direct
        assert channel.guild_id is None
        assert channel.name is None

    def test_group_dm_channel(self):
        group = SimpleNamespace(id=300, name="pals", type=discord.ChannelType.group)
        channel = channel_from_discord(group)
        assert channel.type == ChannelType.GROUP_DM
        assert channel.is_direct


class TestDiscordHostState:
    def _state(self, guild=None, channel=None, user=None):
        client = MagicMock()
        client.user = user
        client.get_guild.side_effect = lambda gid: guild if guild and gid == guild.id else None
        client.get_channel.side_effect = lambda cid: channel if channel and cid == channel.id else None
        return DiscordHostState(client)

    def test_satisfies_port(self):
        assert isinstance(self._state(), HostStatePort)

    def test_current_user(self):
        assert self._state(user=_user(id=1, name="me")).get_current_user().id == "1"
        assert self._state().get_current_user() is None

    def test_channel_lookup_by_string_id(self):
        state = self._state(channel=_text_channel())
        assert state.get_channel("100").name == "general"
        assert state.get_channel("101") is None

    def test_remembered_channel_used_when_not_cached(self):
        state = self._state()
        state.remember_channel(SimpleNamespace(id=777, type=discord.ChannelType.private))
        assert state.get_channel("777").type == ChannelType.DM

    def test_remembered_channels_are_bounded(self):
        state = DiscordHostState(MagicMock(**{"get_channel.return_value": None}), max_seen_channels=3)
        for n in range(10):
            state.remember_channel(SimpleNamespace(id=n, type=discord.ChannelType.private))
        assert state.get_channel("6") is None
        assert [state.get_channel(str(n)).id for n in (7, 8, 9)] == ["7", "8", "9"]

    def test_member_lookup(self):
        member = SimpleNamespace(id=1, nick="Me", guild_avatar=None, roles=[SimpleNamespace(id=7)])
        state = self._state(guild=_guild(members={1: member}))
        result = state.get_member("50", "1")
        assert result.nick == "Me"
        assert result.roles == frozenset({"7"})
        assert state.get_member("50", "2") is None

    def test_guild_default_notification_level(self):
        state = self._state(guild=_guild(level=discord.NotificationLevel.only_mentions))
        assert state.get_message_notifications("50") == NotificationLevel.ONLY_MENTIONS
        assert state.get_message_notifications("51") is None

    def test_bot_has_no_mutes_or_focus(self):
        state = self._state()
        assert state.is_guild_muted("50") is False
        assert state.is_channel_muted("50", "100") is False
        assert state.get_channel_message_notifications("50", "100") is None
        assert state.get_selected_channel_id() is None
        assert state.window_has_focus() is False


class TestNavigator:
    def test_opens_channel_link(self):
        opened = []
        nav = DiscordLinkNavigator(opener=opened.append)
        assert isinstance(nav, NavigationPort)
        nav.transition_to("50", "100", "5")
        nav.transition_to(None, "200", "6")
        nav.focus_window()
        assert opened == [
            "https://discord.com/channels/50/100/5",
            "https://discord.com/channels/@me/200/6",
        ]


class TestDiscordHost:
    @pytest.mark.asyncio
    async def test_registry_is_discoverable(self):
        host = DiscordHost("token")
        collaborators = discover_collaborators(host.registry())
        assert collaborators is not None
        assert collaborators.event_bus is host.event_bus
        assert collaborators.host is host.host_state
        assert collaborators.navigation is host.navigator

    @pytest.mark.asyncio
    async def test_on_message_publishes_event(self):
        host = DiscordHost("token")
        seen = []
        host.event_bus.subscribe(MESSAGE_CREATE, seen.append)
        await host.on_message(_discord_message())
        assert len(seen) == 1
        event = seen[0]
        assert isinstance(event, MessageCreatedEvent)
        assert event.guild_id == "50"
        assert event.message.content == "hi"


def _user_payload(id, name):
    return {"id": str(id), "username": name, "discriminator": "0", "avatar": None}


def _gateway_dm(host, channel_id=777, content="psst"):
    """A real discord.Message built the way the gateway builds a DM."""
    state = host._connection
    state.user = discord.ClientUser(state=state, data=_user_payload(1, "me"))
    data = {
        "id": "900",
        "channel_id": str(channel_id),
        "type": 0,
        "content": content,
        "author": _user_payload(9, "bob"),
        "mentions": [],
        "mention_roles": [],
        "mention_everyone": False,
        "attachments": [],
        "embeds": [],
        "pinned": False,
        "tts": False,
        "timestamp": "2024-01-01T00:00:00+00:00",
        "edited_timestamp": None,
    }
    channel, _ = state._get_guild_channel(data)
    return discord.Message(state=state, channel=channel, data=data)


class TestDirectMessages:
    @pytest.mark.asyncio
    async def test_dm_channel_resolvable_after_message(self):
        host = DiscordHost("token")
        message = _gateway_dm(host)
        assert host.get_channel(777) is None

        await host.on_message(message)
        channel = host.host_state.get_channel("777")
        assert channel is not None
        assert channel.type == ChannelType.DM
        assert channel.guild_id is None

    @pytest.mark.asyncio
    async def test_dm_reaches_session(self, quiet_storage, status, renderer):
        quiet_storage.data["settings"]["dmOnly"] = True
        host = DiscordHost("token")
        session = NotificationSession(
            collaborators=discover_collaborators(host.registry()),
            storage=quiet_storage,
            status=status,
            toast_renderer=renderer,
        )
        await session.start()
        await host.on_message(_gateway_dm(host))
        for _ in range(10):
            await asyncio.sleep(0)
        assert len(renderer.rendered) == 1
        content = renderer.rendered[0]["content"]
        assert content.title == "bob"
        assert content.body == "psst"
        assert content.guild_id is None
        assert content.channel_id == "777"
        await session.stop()
