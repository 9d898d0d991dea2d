"""Delivery dispatcher — formats an allowed message and fans it out.

Channels: the overlay link (if connected), the in-app toast queue, and an
OS-level notification as the fallback when neither of the others applies.
"""

import asyncio
import sys
from dataclasses import dataclass
from typing import List, Optional

from force_notification.adapters.avatar.resolver import AvatarResolver, resolve_avatar_url
from force_notification.adapters.overlay.client import OverlayClient
from force_notification.adapters.toast.queue import ToastContent, ToastQueue
from force_notification.config import NotificationSettings, debug_log
from force_notification.domain.formatting import (
    build_overlay_payload,
    format_channel_info,
    format_content,
    notification_tag,
    resolve_display_name,
)
from force_notification.domain.models import Channel, Message
from force_notification.ports.outbound import (
    HostStatePort,
    NavigationPort,
    OSNotification,
    OSNotifierPort,
)

DEFAULT_AVATAR_URL = "https://cdn.discordapp.com/embed/avatars/0.png"
TEST_DISPLAY_NAME = "Test User"
TEST_CONTENT = "This is a test notification. Everything is working!"


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


@dataclass
class DeliveryResult:
    """Which channels a dispatch reached."""

    overlay: bool = False
    toast: bool = False
    os_notification: bool = False

    @property
    def delivered(self) -> bool:
        return self.overlay or self.toast or self.os_notification


class DeliveryDispatcher:
    """Routes one allowed message to overlay / toast / OS notification."""

    def __init__(
        self,
        settings: NotificationSettings,
        host: HostStatePort,
        avatars: AvatarResolver,
        overlay: Optional[OverlayClient] = None,
        toasts: Optional[ToastQueue] = None,
        notifier: Optional[OSNotifierPort] = None,
        navigation: Optional[NavigationPort] = None,
    ):
        self._settings = settings
        self.host = host
        self._avatars = avatars
        self._overlay = overlay
        self._toasts = toasts
        self._notifier = notifier
        self.navigation = navigation
        self._close_timers: List[asyncio.TimerHandle] = []

    # -- Navigation --

    def navigate(self, guild_id: Optional[str], channel_id: Optional[str], message_id: Optional[str]):
        """Jump to the message in the host and bring its window forward."""
        if self.navigation is None or not channel_id:
            return
        try:
            self.navigation.transition_to(guild_id, channel_id, message_id)
            self.navigation.focus_window()
        except Exception as e:
            _log(f"Navigation failed: {e}")

    def activate_toast(self, content: ToastContent):
        self.navigate(content.guild_id, content.channel_id, content.message_id)

    # -- Dispatch --

    async def dispatch(self, message: Message, channel: Channel, guild_id: Optional[str]) -> DeliveryResult:
        settings = self._settings
        author = message.author
        member = None
        if guild_id and author is not None:
            member = self.host.get_member(guild_id, author.id)

        display_name = resolve_display_name(author, member)
        content = format_content(message, settings.max_content_length)
        guild = self.host.get_guild(guild_id) if guild_id and settings.show_server_name else None
        channel_name = channel.name if settings.show_channel_name and channel.name else ""
        server_name = guild.name if guild is not None else ""
        channel_info = format_channel_info(
            channel, guild, settings.show_channel_name, settings.show_server_name,
        )
        avatar_url = resolve_avatar_url(author, guild_id, member)
        target_guild = channel.guild_id or guild_id

        result = DeliveryResult()
        if settings.use_overlay_notification and self._overlay is not None and self._overlay.is_connected:
            payload = build_overlay_payload(
                author, display_name, content, avatar_url, channel_name, server_name,
            )
            result.overlay = await self._overlay.send(payload)
            debug_log(settings, f"Overlay delivery {'ok' if result.overlay else 'failed'} for {message.id}")

        if settings.use_custom_notification:
            result.toast = self._push_toast(ToastContent(
                title=display_name,
                body=content,
                channel_info=channel_info,
                avatar_url=(avatar_url or DEFAULT_AVATAR_URL) if settings.show_avatar else None,
                guild_id=target_guild,
                channel_id=channel.id,
                message_id=message.id,
            ))
        elif not (settings.use_overlay_notification and result.overlay):
            icon = None
            if settings.show_avatar:
                icon = await self._avatars.fetch_as_data(avatar_url)
            result.os_notification = self._show_os_notification(
                display_name, content, icon, target_guild, channel.id, message.id,
            )
        return result

    def _push_toast(self, content: ToastContent) -> bool:
        if self._toasts is None:
            return False
        try:
            self._toasts.push(content)
        except Exception as e:
            _log(f"Failed to show toast: {e}")
            return False
        return True

    def _show_os_notification(
        self,
        title: str,
        body: str,
        icon: Optional[str],
        guild_id: Optional[str],
        channel_id: Optional[str],
        message_id: Optional[str],
    ) -> bool:
        if self._notifier is None:
            debug_log(self._settings, "No OS notifier available")
            return False

        handle = None

        def on_click():
            self.navigate(guild_id, channel_id, message_id)
            if handle is not None:
                handle.close()

        notification = OSNotification(
            title=title,
            body=body,
            icon=icon,
            silent=True,
            tag=notification_tag(message_id) if message_id else "",
            on_click=on_click if channel_id else None,
        )
        try:
            handle = self._notifier.show(notification)
        except Exception as e:
            _log(f"Failed to show notification: {e}")
            return False
        self._schedule_close(handle)
        return True

    def _schedule_close(self, handle):
        loop = asyncio.get_running_loop()
        timer = None

        def close():
            if timer in self._close_timers:
                self._close_timers.remove(timer)
            try:
                handle.close()
            except Exception as e:
                debug_log(self._settings, f"Failed to close notification: {e}")

        timer = loop.call_later(self._settings.duration_seconds, close)
        self._close_timers.append(timer)

    # -- Test notification --

    async def send_test_notification(self) -> DeliveryResult:
        """Exercise each enabled channel with a canned message."""
        settings = self._settings
        result = DeliveryResult()
        if settings.use_overlay_notification and self._overlay is not None:
            result.overlay = await self._overlay.send({
                "username": "TestUser",
                "displayName": TEST_DISPLAY_NAME,
                "content": TEST_CONTENT,
                "avatarUrl": DEFAULT_AVATAR_URL,
                "avatarHash": "",
                "userId": "0",
                "channelName": "general",
                "serverName": "Test Server",
            })
        if settings.use_custom_notification:
            result.toast = self._push_toast(ToastContent(
                title=TEST_DISPLAY_NAME,
                body=TEST_CONTENT,
                channel_info="#general • Test Server",
                avatar_url=DEFAULT_AVATAR_URL,
            ))
        if not settings.use_overlay_notification and not settings.use_custom_notification:
            result.os_notification = self._show_os_notification(
                "ForceNotification Test", "This is a test notification", None, None, None, None,
            )
        return result

    def close(self):
        """Cancel pending OS-notification close timers."""
        for timer in self._close_timers:
            timer.cancel()
        self._close_timers.clear()
