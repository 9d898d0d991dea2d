"""Shared fakes for the host-side ports."""

from typing import Dict, Optional

import pytest

from force_notification.config import NotificationSettings
from force_notification.domain.models import Author, Channel, ChannelType, Guild, GuildMember, Message

ME = Author(id="1", username="me")
BOB = Author(id="9", username="bob")


class FakeHost:
    """HostStatePort over plain dicts."""

    def __init__(self, current_user: Optional[Author] = ME):
        self.current_user = current_user
        self.selected_channel_id: Optional[str] = None
        self.focused = False
        self.channels: Dict[str, Channel] = {}
        self.guilds: Dict[str, Guild] = {}
        self.members: Dict[tuple, GuildMember] = {}
        self.muted_guilds = set()
        self.muted_channels = set()
        self.channel_levels: Dict[str, int] = {}
        self.guild_levels: Dict[str, int] = {}

    def add_guild_channel(self, channel_id="100", guild_id="50", name="general", guild_name="Guild"):
        channel = Channel(id=channel_id, name=name, type=ChannelType.GUILD_TEXT, guild_id=guild_id)
        self.channels[channel_id] = channel
        self.guilds[guild_id] = Guild(id=guild_id, name=guild_name)
        return channel

    def add_dm_channel(self, channel_id="200"):
        channel = Channel(id=channel_id, type=ChannelType.DM)
        self.channels[channel_id] = channel
        return channel

    def get_current_user(self):
        return self.current_user

    def get_selected_channel_id(self):
        return self.selected_channel_id

    def get_channel(self, channel_id):
        return self.channels.get(channel_id)

    def get_guild(self, guild_id):
        return self.guilds.get(guild_id)

    def get_member(self, guild_id, user_id):
        return self.members.get((guild_id, user_id))

    def is_guild_muted(self, guild_id):
        return guild_id in self.muted_guilds

    def is_channel_muted(self, guild_id, channel_id):
        return channel_id in self.muted_channels

    def get_channel_message_notifications(self, guild_id, channel_id):
        return self.channel_levels.get(channel_id)

    def get_message_notifications(self, guild_id):
        return self.guild_levels.get(guild_id)

    def window_has_focus(self):
        return self.focused


class FakeNavigation:
    def __init__(self):
        self.calls = []

    def transition_to(self, guild_id, channel_id, message_id):
        self.calls.append(("transition", guild_id, channel_id, message_id))

    def focus_window(self):
        self.calls.append(("focus",))


class FakeRenderer:
    """ToastRendererPort recording every widget transition."""

    def __init__(self):
        self.rendered = []
        self.exiting = []
        self.removed = []

    def render(self, content, on_click, on_close):
        widget = {"content": content, "on_click": on_click, "on_close": on_close}
        self.rendered.append(widget)
        return widget

    def begin_exit(self, widget):
        self.exiting.append(widget)

    def remove(self, widget):
        self.removed.append(widget)


class FakeHandle:
    def __init__(self, notification):
        self.notification = notification
        self.close_count = 0

    def close(self):
        self.close_count += 1


class FakeNotifier:
    def __init__(self):
        self.handles = []

    def show(self, notification):
        handle = FakeHandle(notification)
        self.handles.append(handle)
        return handle


class FakeStatus:
    def __init__(self):
        self.messages = []

    def show_status(self, text, kind="info"):
        self.messages.append((text, kind))


class MemoryStorage:
    def __init__(self, initial=None):
        self.data = dict(initial or {})
        self.saves = 0

    def load(self, key):
        return dict(self.data.get(key, {}))

    def save(self, key, data):
        self.saves += 1
        self.data[key] = dict(data)


def make_message(
    id="5",
    channel_id="100",
    author=BOB,
    content="hi",
    **kwargs,
) -> Message:
    return Message(id=id, channel_id=channel_id, author=author, content=content, **kwargs)


@pytest.fixture
def settings():
    return NotificationSettings()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def navigation():
    return FakeNavigation()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def status():
    return FakeStatus()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def message_factory():
    return make_message


@pytest.fixture
def quiet_storage():
    """Storage whose saved settings keep the overlay link off."""
    return MemoryStorage({"settings": {"useOverlayNotification": False}})
