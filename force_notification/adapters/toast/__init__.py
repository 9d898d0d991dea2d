"""Toast adapter — in-app notification queue."""

from force_notification.adapters.toast.queue import (
    MAX_VISIBLE_TOASTS,
    ToastContent,
    ToastHandle,
    ToastQueue,
)

__all__ = ["MAX_VISIBLE_TOASTS", "ToastContent", "ToastHandle", "ToastQueue"]
