"""Overlay client — best-effort websocket link to the external overlay process.

Connection handling is an explicit three-state machine driven by
TransportEvent. Every connection attempt gets a generation number; events from
a superseded attempt are dropped, which keeps at most one attempt and at most
one pending reconnect timer alive.
"""

import asyncio
import json
import sys
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from force_notification.config import DEFAULT_OVERLAY_URL, DEFAULT_RECONNECT_DELAY

# Errors that mean "the overlay isn't there right now"
TRANSPORT_ERRORS = (aiohttp.ClientError, OSError, asyncio.TimeoutError, ConnectionResetError)


def _log(msg: str):
    print(f"[ForceNotification] {msg}", file=sys.stderr)


class TransportState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class TransportEvent(str, Enum):
    OPENED = "opened"
    CLOSED = "closed"
    ERRORED = "errored"
    RECONNECT_ELAPSED = "reconnect-elapsed"
    DISCONNECT_REQUESTED = "disconnect-requested"


async def _aiohttp_connect(session: aiohttp.ClientSession, url: str) -> aiohttp.ClientWebSocketResponse:
    return await session.ws_connect(url, heartbeat=30)


class OverlayClient:
    """Reconnecting websocket client for the overlay.

    connect()/disconnect() are synchronous and safe to call from any callback
    on the event loop thread; send() is a coroutine returning success.
    """

    def __init__(
        self,
        url: str = DEFAULT_OVERLAY_URL,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        should_reconnect: Optional[Callable[[], bool]] = None,
        on_first_connect: Optional[Callable[[], None]] = None,
        opener: Optional[Callable[[str], Awaitable[Any]]] = None,
        debug: Optional[Callable[[], bool]] = None,
    ):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self._should_reconnect = should_reconnect or (lambda: True)
        self._on_first_connect = on_first_connect
        self._opener = opener
        self._debug = debug or (lambda: False)

        self._state = TransportState.DISCONNECTED
        self._generation = 0
        self._ws: Optional[Any] = None
        self._session: Optional[aiohttp.ClientSession] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._close_tasks: set = set()
        self._ever_connected = False

    # -- Introspection --

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is TransportState.CONNECTED

    @property
    def has_pending_reconnect(self) -> bool:
        return self._reconnect_handle is not None

    def _debug_log(self, msg: str):
        if self._debug():
            _log(msg)

    # -- Public API --

    def connect(self):
        """Start a connection attempt unless one is in progress or established."""
        if self._state is not TransportState.DISCONNECTED:
            return
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        self._discard_socket()
        self._generation += 1
        self._state = TransportState.CONNECTING
        _log(f"Connecting to overlay at {self.url}")
        loop = asyncio.get_running_loop()
        self._connect_task = loop.create_task(self._run(self._generation))

    def disconnect(self):
        """Cancel any pending reconnect and close the link. Idempotent."""
        self._handle(TransportEvent.DISCONNECT_REQUESTED, self._generation)

    async def send(self, payload: Dict[str, Any]) -> bool:
        """Send one JSON text frame. Returns False (and does nothing) unless connected."""
        if self._state is not TransportState.CONNECTED or self._ws is None or self._ws.closed:
            self._debug_log("Cannot send - overlay not connected")
            return False
        try:
            text = json.dumps(payload, ensure_ascii=False)
            await self._ws.send_str(text)
        except TRANSPORT_ERRORS + (TypeError, ValueError, RuntimeError) as e:
            _log(f"Failed to send to overlay: {e}")
            # The reader loop sees the close and schedules the reconnect
            self._state = TransportState.DISCONNECTED
            self._discard_socket()
            return False
        self._debug_log(f"Sent to overlay: {text[:200]}")
        return True

    async def close(self):
        """Disconnect and wait for socket/session teardown."""
        self.disconnect()
        task = self._connect_task
        self._connect_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except (asyncio.CancelledError, Exception):
                pass
        if self._close_tasks:
            await asyncio.gather(*self._close_tasks, return_exceptions=True)
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # -- State machine --

    def _handle(self, event: TransportEvent, generation: int):
        if generation != self._generation:
            self._debug_log(f"Ignoring stale {event.value} (gen {generation} != {self._generation})")
            return

        if event is TransportEvent.OPENED:
            first = not self._ever_connected
            self._ever_connected = True
            self._state = TransportState.CONNECTED
            _log("Connected to overlay")
            if first and self._on_first_connect:
                try:
                    self._on_first_connect()
                except Exception as e:
                    _log(f"First-connect callback failed: {e}")

        elif event in (TransportEvent.CLOSED, TransportEvent.ERRORED):
            self._state = TransportState.DISCONNECTED
            self._discard_socket()
            self._debug_log(f"Overlay link {event.value}")
            self._schedule_reconnect()

        elif event is TransportEvent.RECONNECT_ELAPSED:
            self._reconnect_handle = None
            self.connect()

        elif event is TransportEvent.DISCONNECT_REQUESTED:
            if self._reconnect_handle is not None:
                self._reconnect_handle.cancel()
                self._reconnect_handle = None
            # Invalidate the in-flight attempt so its close can't reschedule
            self._generation += 1
            task = self._connect_task
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
            self._discard_socket()
            self._state = TransportState.DISCONNECTED

    def _schedule_reconnect(self):
        if self._reconnect_handle is not None or not self._should_reconnect():
            return
        loop = asyncio.get_running_loop()
        generation = self._generation
        self._reconnect_handle = loop.call_later(
            self.reconnect_delay, self._handle, TransportEvent.RECONNECT_ELAPSED, generation,
        )
        self._debug_log(f"Reconnect scheduled in {self.reconnect_delay}s")

    # -- Connection task --

    async def _open(self) -> Any:
        if self._opener is not None:
            return await self._opener(self.url)
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return await _aiohttp_connect(self._session, self.url)

    async def _run(self, generation: int):
        try:
            ws = await self._open()
        except asyncio.CancelledError:
            raise
        except TRANSPORT_ERRORS as e:
            self._debug_log(f"Overlay connect failed: {e}")
            self._handle(TransportEvent.ERRORED, generation)
            return
        except Exception as e:
            _log(f"Unexpected overlay connect error: {e}")
            self._handle(TransportEvent.ERRORED, generation)
            return

        if generation != self._generation:
            self._close_socket(ws)
            return
        self._ws = ws
        self._handle(TransportEvent.OPENED, generation)

        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._debug_log(f"Overlay message: {msg.data}")
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._debug_log(f"Overlay socket error: {ws.exception()}")
                    self._handle(TransportEvent.ERRORED, generation)
                    return
        except asyncio.CancelledError:
            raise
        except TRANSPORT_ERRORS as e:
            self._debug_log(f"Overlay read failed: {e}")
            self._handle(TransportEvent.ERRORED, generation)
            return
        except Exception as e:
            _log(f"Unexpected overlay read error: {e}")
            self._handle(TransportEvent.ERRORED, generation)
            return
        self._handle(TransportEvent.CLOSED, generation)

    def _discard_socket(self):
        ws = self._ws
        self._ws = None
        if ws is not None:
            self._close_socket(ws)

    def _close_socket(self, ws: Any):
        if getattr(ws, "closed", False):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(ws.close())
        self._close_tasks.add(task)
        task.add_done_callback(self._close_tasks.discard)
