"""In-process named-event bus — implements EventBusPort."""

import sys
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


class EventBus:
    """Synchronous publish/subscribe keyed by event name.

    Handlers run in subscription order. A handler that raises is logged and
    does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def publish(self, event: str, payload: Any) -> int:
        """Deliver payload to a snapshot of the current handlers. Returns how many ran."""
        handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                _log(f"Handler for {event} failed: {e}")
        return len(handlers)
