"""NotificationSession — the per-run context that owns settings, cache, transport and toasts.

Subscribes one handler to the host's MESSAGE_CREATE stream and feeds every
event through gate → dispatcher. Construct, start(), and stop() it; several
sessions can coexist (e.g. in tests) because nothing is module-global.
"""

import asyncio
import sys
from typing import Any, Callable, Optional

from force_notification.adapters.avatar.resolver import AvatarResolver
from force_notification.adapters.overlay.client import OverlayClient
from force_notification.adapters.toast.queue import ToastContent, ToastQueue
from force_notification.config import SETTINGS_KEY, AppConfig, NotificationSettings, debug_log
from force_notification.discovery import Collaborators
from force_notification.dispatcher import DeliveryDispatcher
from force_notification.domain.gate import decide, snapshot_mute_state, snapshot_view_state
from force_notification.domain.models import Channel, Message
from force_notification.ports.inbound import MESSAGE_CREATE, MessageCreatedEvent
from force_notification.ports.outbound import (
    OSNotifierPort,
    SettingsStoragePort,
    StatusPort,
    ToastRendererPort,
)


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


class NotificationSession:
    """Event subscriber plus the state every pipeline component shares."""

    def __init__(
        self,
        collaborators: Optional[Collaborators],
        storage: SettingsStoragePort,
        status: StatusPort,
        toast_renderer: Optional[ToastRendererPort] = None,
        notifier: Optional[OSNotifierPort] = None,
        config: Optional[AppConfig] = None,
        overlay_opener: Optional[Callable[[str], Any]] = None,
        avatar_session: Any = None,
    ):
        self.config = config or AppConfig()
        self.settings = NotificationSettings()
        self.collaborators = collaborators
        self.storage = storage
        self.status = status
        self.notifier = notifier

        self.avatars = AvatarResolver(session=avatar_session, settings=self.settings)
        self.overlay = OverlayClient(
            url=self.config.overlay_url,
            reconnect_delay=self.config.reconnect_delay,
            should_reconnect=lambda: self.settings.use_overlay_notification,
            on_first_connect=lambda: self.status.show_status("Connected to overlay", "success"),
            opener=overlay_opener,
            debug=lambda: self.settings.debug_mode,
        )
        self.toasts: Optional[ToastQueue] = None
        if toast_renderer is not None:
            self.toasts = ToastQueue(
                toast_renderer,
                duration=lambda: self.settings.duration_seconds,
                on_activate=self._activate_toast,
            )
        self.dispatcher: Optional[DeliveryDispatcher] = None

        self._handler: Optional[Callable[[Any], None]] = None
        self._stopped = True
        self._tasks: set = set()

    # -- Properties --

    @property
    def is_subscribed(self) -> bool:
        return self._handler is not None

    @property
    def degraded(self) -> bool:
        """True when the host's collaborators could not be found; nothing is dispatched."""
        return self.collaborators is None

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    # -- Settings persistence --

    def load_settings(self):
        record = self.storage.load(SETTINGS_KEY)
        self.settings.update(record)
        if self.config.debug:
            self.settings.debug_mode = True

    def save_settings(self):
        try:
            self.storage.save(SETTINGS_KEY, self.settings.to_record())
        except OSError as e:
            _log(f"Failed to save settings: {e}")

    # -- Lifecycle --

    async def start(self):
        self.load_settings()
        self._stopped = False
        if self.collaborators is None:
            _log("ERROR: event dispatcher is not available!")
            self.status.show_status("Event dispatcher not found", "error")
            return
        self._build_dispatcher()
        self._subscribe()
        if self.settings.use_overlay_notification:
            self.overlay.connect()
        _log("Plugin started")

    async def stop(self):
        self._stopped = True
        self._unsubscribe()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self.toasts is not None:
            self.toasts.clear()
        if self.dispatcher is not None:
            self.dispatcher.close()
        await self.avatars.close()
        await self.overlay.close()
        _log("Plugin stopped")

    def reload(self, collaborators: Optional[Collaborators]) -> bool:
        """Swap in freshly discovered collaborators, resubscribing and reconnecting."""
        self._unsubscribe()
        self.overlay.disconnect()
        self.collaborators = collaborators
        if collaborators is None:
            self.dispatcher = None
            self.status.show_status("Event dispatcher not found", "error")
            return False
        self._build_dispatcher()
        self._subscribe()
        if self.settings.use_overlay_notification:
            self.overlay.connect()
        self.status.show_status("Modules reloaded", "success")
        return True

    def _build_dispatcher(self):
        self.dispatcher = DeliveryDispatcher(
            settings=self.settings,
            host=self.collaborators.host,
            avatars=self.avatars,
            overlay=self.overlay,
            toasts=self.toasts,
            notifier=self.notifier,
            navigation=self.collaborators.navigation,
        )

    def _subscribe(self):
        if self._handler is not None:
            return
        handler = self.handle_message_created
        try:
            self.collaborators.event_bus.subscribe(MESSAGE_CREATE, handler)
        except Exception as e:
            _log(f"Failed to subscribe: {e}")
            return
        self._handler = handler
        _log(f"Successfully subscribed to {MESSAGE_CREATE}")
        self.status.show_status("Notifications enabled", "success")

    def _unsubscribe(self):
        handler = self._handler
        self._handler = None
        if handler is None or self.collaborators is None:
            return
        try:
            self.collaborators.event_bus.unsubscribe(MESSAGE_CREATE, handler)
            _log(f"Unsubscribed from {MESSAGE_CREATE}")
        except Exception as e:
            _log(f"Error unsubscribing: {e}")

    # -- Event handling --

    def handle_message_created(self, event: Any):
        """Host callback for MESSAGE_CREATE. Never raises."""
        if self._stopped or self._handler is None:
            return
        try:
            self._process(event)
        except Exception as e:
            _log(f"Error handling message: {e}")

    def _process(self, event: Any):
        created = MessageCreatedEvent.coerce(event)
        if created is None:
            return
        message = created.message
        host = self.collaborators.host
        author = message.author
        debug_log(
            self.settings,
            f"Processing message: {message.id} from: {author.username if author else None} "
            f"bot: {author.bot if author else None}",
        )

        view = snapshot_view_state(host)
        if view.current_user_id is None:
            return
        channel = host.get_channel(message.channel_id)
        if channel is None:
            debug_log(self.settings, f"Unknown channel {message.channel_id}")
            return

        mute = None
        if self.settings.respect_discord_settings:
            mute = snapshot_mute_state(host, channel, view.current_user_id)
        decision = decide(message, channel, view, self.settings, mute)
        if not decision:
            debug_log(self.settings, f"Blocked: {decision.reason}")
            return

        debug_log(self.settings, f"Showing notification ({decision.reason})")
        guild_id = created.guild_id or channel.guild_id
        task = asyncio.get_running_loop().create_task(self._dispatch(message, channel, guild_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _dispatch(self, message: Message, channel: Channel, guild_id: Optional[str]):
        dispatcher = self.dispatcher
        if dispatcher is None:
            return
        try:
            await dispatcher.dispatch(message, channel, guild_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            _log(f"Error delivering message {message.id}: {e}")

    def _activate_toast(self, content: ToastContent):
        if self.dispatcher is not None:
            self.dispatcher.activate_toast(content)
