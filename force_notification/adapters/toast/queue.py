"""Toast queue — bounded, ordered in-app notifications with timed dismissal."""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Optional

from force_notification.ports.outbound import ToastRendererPort

MAX_VISIBLE_TOASTS = 5
EXIT_TRANSITION_SECONDS = 0.3


@dataclass
class ToastContent:
    title: str
    body: str
    channel_info: str = ""
    avatar_url: Optional[str] = None
    guild_id: Optional[str] = None
    channel_id: Optional[str] = None
    message_id: Optional[str] = None


@dataclass(eq=False)
class ToastHandle:
    content: ToastContent
    widget: Any = None
    timer: Optional[asyncio.TimerHandle] = None
    fading: bool = False
    removed: bool = False
    _exit_timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)


class ToastQueue:
    """Holds at most MAX_VISIBLE_TOASTS widgets, evicting the oldest insert first.

    The bound covers every widget on screen, fading ones included. Eviction
    removes a widget at once instead of running its exit transition.
    """

    def __init__(
        self,
        renderer: ToastRendererPort,
        duration: Callable[[], float],
        on_activate: Optional[Callable[[ToastContent], None]] = None,
        max_visible: int = MAX_VISIBLE_TOASTS,
        exit_delay: float = EXIT_TRANSITION_SECONDS,
    ):
        self._renderer = renderer
        self._duration = duration
        self._on_activate = on_activate
        self._max_visible = max_visible
        self._exit_delay = exit_delay
        self._visible: Deque[ToastHandle] = deque()
        self._exiting: List[ToastHandle] = []

    def __len__(self) -> int:
        return len(self._visible)

    @property
    def visible(self) -> List[ToastHandle]:
        return list(self._visible)

    @property
    def exiting(self) -> List[ToastHandle]:
        return list(self._exiting)

    @property
    def displayed(self) -> int:
        return len(self._visible) + len(self._exiting)

    def push(self, content: ToastContent) -> ToastHandle:
        """Show a toast and start its auto-dismiss timer."""
        loop = asyncio.get_running_loop()
        handle = ToastHandle(content=content)
        handle.widget = self._renderer.render(
            content,
            on_click=lambda: self.activate(handle),
            on_close=lambda: self.dismiss(handle),
        )
        handle.timer = loop.call_later(self._duration(), self.dismiss, handle)
        self._visible.append(handle)
        while self.displayed > self._max_visible:
            # Fading widgets are the oldest on screen
            self._drop(self._exiting[0] if self._exiting else self._visible[0])
        return handle

    def activate(self, handle: ToastHandle):
        """Click on a toast body: hand the target to the activation callback, then dismiss."""
        if handle.fading:
            return
        if self._on_activate is not None:
            self._on_activate(handle.content)
        self.dismiss(handle)

    def dismiss(self, handle: ToastHandle):
        """Start the exit transition. A toast already fading is left alone."""
        if handle.fading:
            return
        handle.fading = True
        if handle.timer is not None:
            handle.timer.cancel()
            handle.timer = None
        try:
            self._visible.remove(handle)
        except ValueError:
            pass
        self._exiting.append(handle)
        self._renderer.begin_exit(handle.widget)
        loop = asyncio.get_running_loop()
        handle._exit_timer = loop.call_later(self._exit_delay, self._finish, handle)

    def _finish(self, handle: ToastHandle):
        handle._exit_timer = None
        if handle.removed:
            return
        handle.removed = True
        try:
            self._exiting.remove(handle)
        except ValueError:
            pass
        self._renderer.remove(handle.widget)
        handle.widget = None

    def _drop(self, handle: ToastHandle):
        """Remove a widget now, skipping any exit transition."""
        for timer in (handle.timer, handle._exit_timer):
            if timer is not None:
                timer.cancel()
        handle.timer = None
        handle._exit_timer = None
        handle.fading = True
        for group in (self._visible, self._exiting):
            try:
                group.remove(handle)
            except ValueError:
                pass
        if not handle.removed:
            handle.removed = True
            self._renderer.remove(handle.widget)
            handle.widget = None

    def clear(self):
        """Cancel every timer and remove every widget immediately (teardown)."""
        for handle in list(self._visible) + list(self._exiting):
            self._drop(handle)
