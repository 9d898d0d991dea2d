"""Tests for settings_surface.py — toggles, numeric fields, status and reload."""

import asyncio

import pytest

from force_notification.adapters.host.event_bus import EventBus
from force_notification.adapters.overlay.client import TransportState
from force_notification.config import AppConfig
from force_notification.discovery import Collaborators
from force_notification.session import NotificationSession
from force_notification.settings_surface import SettingsController


async def refuse(url):
    raise ConnectionRefusedError("overlay not running")


async def _settle():
    for _ in range(10):
        await asyncio.sleep(0)


def _controller(host, storage, status, renderer=None, notifier=None):
    session = NotificationSession(
        collaborators=Collaborators(event_bus=EventBus(), host=host),
        storage=storage,
        status=status,
        toast_renderer=renderer,
        notifier=notifier,
        config=AppConfig(reconnect_delay=0.02),
        overlay_opener=refuse,
    )
    return SettingsController(session), session


class TestToggles:
    @pytest.mark.asyncio
    async def test_unknown_toggle(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        with pytest.raises(KeyError):
            controller.set_toggle("notificationDuration", True)
        with pytest.raises(KeyError):
            controller.set_toggle("nope", True)
        await session.stop()

    @pytest.mark.asyncio
    async def test_toggle_persists_immediately(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        controller.set_toggle("dmOnly", True)
        assert session.settings.dm_only is True
        assert quiet_storage.data["settings"]["dmOnly"] is True
        assert controller.get("dmOnly") is True
        await session.stop()

    @pytest.mark.asyncio
    async def test_overlay_toggle_off_disconnects_and_cancels_reconnect(self, host, storage, status):
        controller, session = _controller(host, storage, status)
        await session.start()
        await _settle()
        assert session.overlay.has_pending_reconnect

        controller.set_toggle("useOverlayNotification", False)
        assert session.overlay.state is TransportState.DISCONNECTED
        assert not session.overlay.has_pending_reconnect
        await asyncio.sleep(0.06)
        assert session.overlay.state is TransportState.DISCONNECTED
        await session.stop()

    @pytest.mark.asyncio
    async def test_overlay_toggle_on_connects(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        assert session.overlay.state is TransportState.DISCONNECTED
        controller.set_toggle("useOverlayNotification", True)
        assert session.overlay.state is TransportState.CONNECTING
        await session.stop()


class TestNumericFields:
    @pytest.mark.asyncio
    async def test_duration_clamped_and_persisted(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        assert controller.set_notification_duration("500") == 1000
        assert controller.set_notification_duration(45000) == 30000
        assert controller.set_notification_duration(8000) == 8000
        assert quiet_storage.data["settings"]["notificationDuration"] == 8000
        await session.stop()

    @pytest.mark.asyncio
    async def test_duration_rejects_non_integer(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        with pytest.raises(ValueError):
            controller.set_notification_duration("soon")
        assert session.settings.notification_duration == 5000
        await session.stop()

    @pytest.mark.asyncio
    async def test_max_content_length(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        assert controller.set_max_content_length("80") == 80
        assert session.settings.max_content_length == 80
        with pytest.raises(ValueError):
            controller.set_max_content_length(0)
        with pytest.raises(ValueError):
            controller.set_max_content_length(None)
        await session.stop()


class TestStatusAndActions:
    @pytest.mark.asyncio
    async def test_status(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        assert controller.status() == {"dispatcher": False, "overlay": "disconnected"}
        await session.start()
        assert controller.status() == {"dispatcher": True, "overlay": "disconnected"}
        await session.stop()

    @pytest.mark.asyncio
    async def test_test_notification_reports_channels(self, host, storage, status, renderer):
        controller, session = _controller(host, storage, status, renderer=renderer)
        await session.start()
        result = await controller.send_test_notification()
        assert result.overlay is False
        assert result.toast is True
        assert ("Overlay is not connected", "error") in status.messages
        assert ("Sent custom notification", "success") in status.messages
        await session.stop()

    @pytest.mark.asyncio
    async def test_test_notification_os_only(self, host, storage, status, notifier):
        storage.data["settings"] = {"useOverlayNotification": False, "useCustomNotification": False}
        controller, session = _controller(host, storage, status, notifier=notifier)
        await session.start()
        result = await controller.send_test_notification()
        assert result.os_notification is True
        assert ("Sent OS notification", "success") in status.messages
        await session.stop()

    @pytest.mark.asyncio
    async def test_test_notification_without_dispatcher(self, storage, status):
        session = NotificationSession(collaborators=None, storage=storage, status=status)
        controller = SettingsController(session)
        await session.start()
        result = await controller.send_test_notification()
        assert not result.delivered
        await session.stop()

    @pytest.mark.asyncio
    async def test_reload_from_registry(self, host, quiet_storage, status):
        controller, session = _controller(host, quiet_storage, status)
        await session.start()
        bus = EventBus()
        assert controller.reload({"Dispatcher": bus, "HostState": host}) is True
        assert bus.handler_count("MESSAGE_CREATE") == 1
        assert controller.reload({}) is False
        assert bus.handler_count("MESSAGE_CREATE") == 0
        await session.stop()
