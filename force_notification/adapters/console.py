"""Console surfaces — toasts, OS alerts and status lines printed to stderr.

Used by the launcher when no graphical surface is attached.
"""

import itertools
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from force_notification.adapters.toast.queue import ToastContent
from force_notification.ports.outbound import OSNotification

_ids = itertools.count(1)


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


@dataclass
class ConsoleToast:
    toast_id: int
    content: ToastContent
    on_click: Callable[[], None]
    on_close: Callable[[], None]
    state: str = "shown"  # shown | exiting | removed


class ConsoleToastRenderer:
    """ToastRendererPort that prints each toast transition."""

    def __init__(self):
        self.widgets: Dict[int, ConsoleToast] = {}

    def render(self, content: ToastContent, on_click, on_close) -> ConsoleToast:
        widget = ConsoleToast(next(_ids), content, on_click, on_close)
        self.widgets[widget.toast_id] = widget
        header = content.title
        if content.channel_info:
            header += f" ({content.channel_info})"
        _log(f"toast #{widget.toast_id} {header}: {content.body}")
        return widget

    def begin_exit(self, widget: ConsoleToast) -> None:
        widget.state = "exiting"

    def remove(self, widget: Any) -> None:
        if widget is None:
            return
        widget.state = "removed"
        self.widgets.pop(widget.toast_id, None)


@dataclass
class ConsoleNotificationHandle:
    notification: OSNotification
    closed: bool = False
    on_close: Optional[Callable[["ConsoleNotificationHandle"], None]] = field(default=None, repr=False)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.on_close is not None:
            self.on_close(self)


@dataclass
class ConsoleNotifier:
    """OSNotifierPort that prints alerts. Repeats of the same tag replace the previous one."""

    shown: Dict[str, ConsoleNotificationHandle] = field(default_factory=dict)

    def show(self, notification: OSNotification) -> ConsoleNotificationHandle:
        previous = self.shown.get(notification.tag) if notification.tag else None
        if previous is not None:
            previous.close()
        handle = ConsoleNotificationHandle(notification, on_close=self._release)
        if notification.tag:
            self.shown[notification.tag] = handle
        icon = " [icon]" if notification.icon else ""
        _log(f"notification{icon} {notification.title}: {notification.body}")
        return handle

    def _release(self, handle: ConsoleNotificationHandle) -> None:
        tag = handle.notification.tag
        if tag and self.shown.get(tag) is handle:
            del self.shown[tag]


class ConsoleStatus:
    """StatusPort printing one-off status messages."""

    def show_status(self, text: str, kind: str = "info") -> None:
        _log(f"({kind}) {text}")
