"""
Connection Manager - Async WebSocket transport for one game session.

Provides:
- One persistent connection per session, identified in the connect URL
- Inbound frames decoded and handed to the SessionStore
- Fire-and-forget outbound intents (dropped with a warning while offline)
- Listener registration per message type with '*' wildcard support
- Optional reconnection with exponential backoff
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from config import ClientConfig
from core import SessionStore
from models import ActionIntent

logger = logging.getLogger(__name__)


@dataclass
class ConnectionMetrics:
    """Transport counters for a ConnectionManager."""

    connected: bool = False
    connection_attempts: int = 0
    messages_received: int = 0
    messages_sent: int = 0
    sends_dropped: int = 0
    frames_rejected: int = 0
    last_message_time: int | None = None
    last_connected_time: int | None = None

    def to_dict(self) -> dict:
        return {
            "connected": self.connected,
            "connection_attempts": self.connection_attempts,
            "messages_received": self.messages_received,
            "messages_sent": self.messages_sent,
            "sends_dropped": self.sends_dropped,
            "frames_rejected": self.frames_rejected,
            "last_message_time": self.last_message_time,
            "last_connected_time": self.last_connected_time,
        }


class ConnectionManager:
    """
    WebSocket transport bound to a SessionStore.

    Usage:
        manager = ConnectionManager(store)
        manager.on("state", lambda frame: print(frame["round"]))
        await manager.connect("abc123", "Alice", avatar="fox")
    """

    def __init__(self, store: SessionStore, client_config: ClientConfig | None = None):
        """
        Args:
            store: Session replica fed with every inbound frame
            client_config: Network settings (default: from Config)
        """
        self.store = store
        self.config = client_config or ClientConfig()

        self._ws = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._is_connected = False
        self._intentional_close = False
        self._generation = 0
        self._current_reconnect_delay = self.config.reconnect_delay
        self._session_args: tuple[str, str, str | None] | None = None
        self._pending_sends: set[asyncio.Task] = set()

        # message type -> callbacks
        self._listeners: dict[str, set[Callable]] = {}

        self._metrics = ConnectionMetrics()

    @property
    def url(self) -> str | None:
        if self._session_args is None:
            return None
        return self.config.session_url(*self._session_args)

    def is_connected(self) -> bool:
        return self._is_connected

    def get_metrics(self) -> ConnectionMetrics:
        return self._metrics

    # ========== Listeners ==========

    def on(self, event_type: str, callback: Callable[[dict], None]) -> Callable[[], None]:
        """
        Register a listener for a message type.

        Args:
            event_type: 'state', 'playerAssigned', 'error', 'connection' or '*'
            callback: Called with the decoded frame

        Returns:
            Unsubscribe function
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = set()

        self._listeners[event_type].add(callback)

        def unsubscribe():
            if event_type in self._listeners:
                self._listeners[event_type].discard(callback)

        return unsubscribe

    def _emit(self, event_type: str, data: dict) -> None:
        for key in (event_type, "*"):
            for callback in list(self._listeners.get(key, ())):
                try:
                    callback(data)
                except Exception as e:
                    logger.error(f"Error in listener for {event_type}: {e}")

    # ========== Inbound ==========

    def _handle_frame(self, raw: str | bytes) -> None:
        """Decode one frame and route it to the store and listeners."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to parse message: {e}")
            return
        if not isinstance(data, dict):
            logger.error(f"Ignoring non-object frame: {type(data).__name__}")
            return

        self._metrics.messages_received += 1
        self._metrics.last_message_time = int(time.time() * 1000)

        try:
            self.store.handle_message(data)
        except Exception as e:
            self._metrics.frames_rejected += 1
            logger.error(f"Dropping {data.get('type')!r} frame: {e}")
            return
        self._emit(str(data.get("type", "unknown")), data)

    def _on_connected(self) -> None:
        self._is_connected = True
        self._current_reconnect_delay = self.config.reconnect_delay
        self._metrics.connected = True
        self._metrics.last_connected_time = int(time.time() * 1000)

        logger.info(f"Connected to session {self.store.session_id!r}")
        self.store.set_connected(True)
        self._emit("connection", {"connected": True})

    def _on_disconnected(self, code: int = 1000, reason: str = "", failed: bool = False) -> None:
        was_connected = self._is_connected
        self._is_connected = False
        self._ws = None
        self._metrics.connected = False

        if not was_connected and not failed:
            return
        if was_connected:
            logger.info(f"Disconnected (code: {code})")
        self.store.set_connected(False)
        self._emit("connection", {"connected": False, "code": code, "reason": reason})

    # ========== Lifecycle ==========

    async def connect(self, session_id: str, player_name: str, avatar: str | None = None) -> None:
        """
        Join `session_id` and pump messages until the connection ends.

        With auto_reconnect enabled, reconnects with exponential backoff
        until disconnect() is called. A later connect() or disconnect()
        supersedes this loop, which then returns without reconnecting.
        """
        self._generation += 1
        generation = self._generation
        self._session_args = (session_id, player_name, avatar)
        self.store.session_id = session_id
        self._intentional_close = False
        self._current_reconnect_delay = self.config.reconnect_delay

        while True:
            await self._run_once(generation)
            if self._superseded(generation) or not self.config.auto_reconnect:
                return
            await self._backoff()
            if self._superseded(generation):
                return

    def _superseded(self, generation: int) -> bool:
        return self._intentional_close or generation != self._generation

    async def _run_once(self, generation: int) -> None:
        self._loop = asyncio.get_running_loop()
        self._metrics.connection_attempts += 1
        url = self.url
        logger.info(f"Connecting to {url}...")

        try:
            async with websockets.connect(url, open_timeout=self.config.open_timeout) as ws:
                if generation != self._generation:
                    logger.debug("Connection superseded during handshake")
                    return
                self._ws = ws
                self._on_connected()
                try:
                    async for message in ws:
                        if generation != self._generation:
                            break
                        self._handle_frame(message)
                except ConnectionClosed as e:
                    logger.debug(f"Connection closed: {e}")
                    if generation == self._generation:
                        self._on_disconnected(code=1006, reason=str(e))
                    return
            if generation == self._generation:
                self._on_disconnected()
        except asyncio.CancelledError:
            if generation == self._generation:
                self._on_disconnected(code=1001, reason="cancelled")
            raise
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error(f"Connect failed: {e}")
            if generation == self._generation:
                self._on_disconnected(code=1006, reason=str(e), failed=True)

    async def _backoff(self) -> None:
        delay = self._current_reconnect_delay
        logger.info(f"Reconnecting in {delay}s...")
        await asyncio.sleep(delay)
        self._current_reconnect_delay = min(
            self._current_reconnect_delay * self.config.reconnect_multiplier,
            self.config.max_reconnect_delay,
        )

    async def reconnect(self) -> None:
        """Rejoin the last session. Identity and snapshot are kept until the server says otherwise."""
        if self._session_args is None:
            raise RuntimeError("reconnect() called before connect()")
        await self.disconnect()
        await self.connect(*self._session_args)

    async def disconnect(self) -> None:
        """Close the connection and stop any reconnection."""
        self._intentional_close = True
        self._generation += 1

        ws = self._ws
        if ws is not None:
            await ws.close()
        if self._is_connected or ws is not None:
            self._on_disconnected(code=1000, reason="client disconnect")

    # ========== Outbound ==========

    def send(self, intent: ActionIntent) -> bool:
        """
        Send one intent without waiting for a reply.

        Returns:
            False when offline (the intent is dropped), True once queued
        """
        if not self._is_connected or self._ws is None or self._loop is None:
            self._metrics.sends_dropped += 1
            logger.warning(f"Not connected; dropping {intent.actionType.value} intent")
            return False

        payload = json.dumps(intent.to_wire())

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            task = self._loop.create_task(self._send_payload(payload))
            self._pending_sends.add(task)
            task.add_done_callback(self._pending_sends.discard)
        else:
            asyncio.run_coroutine_threadsafe(self._send_payload(payload), self._loop)
        return True

    async def _send_payload(self, payload: str) -> None:
        ws = self._ws
        if ws is None:
            self._metrics.sends_dropped += 1
            logger.warning("Connection closed before intent could be sent")
            return
        try:
            await ws.send(payload)
            self._metrics.messages_sent += 1
            logger.debug(f"Sent: {payload}")
        except ConnectionClosed as e:
            self._metrics.sends_dropped += 1
            logger.warning(f"Send failed, connection closed: {e}")

    async def flush(self) -> None:
        """Wait for queued sends to complete."""
        if self._pending_sends:
            await asyncio.gather(*list(self._pending_sends), return_exceptions=True)
