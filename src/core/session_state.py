"""
Session State Module
Server-authoritative session snapshot with derived local view and observers

Every `state` push replaces the snapshot wholesale; the local view is
recomputed from scratch. Nothing in the client patches server-owned data.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import ValidationError as SchemaError

from models import (
    ErrorMessage,
    Participant,
    PlayerAssignedMessage,
    PlayerId,
    SessionSnapshot,
    StateMessage,
    UnknownMessageError,
    parse_server_message,
)

from .event_log import EventLog
from .invalid_action import InvalidActionFlag
from .local_view import EMPTY_VIEW, LocalView, derive_local_view

logger = logging.getLogger(__name__)


class SessionEvents(Enum):
    """Events emitted by the session store"""

    SNAPSHOT_APPLIED = "snapshot_applied"
    IDENTITY_ASSIGNED = "identity_assigned"
    TURN_STARTED = "turn_started"
    GAME_OVER = "game_over"
    SERVER_ERROR = "server_error"
    CONNECTION_CHANGED = "connection_changed"
    INVALID_ACTION = "invalid_action"
    LOG_UPDATED = "log_updated"


class SessionStore:
    """
    Local replica of one session

    Owns the snapshot, the local identity, the event log and the transient
    invalid-action flag. Consumers read through properties and react through
    `subscribe`; only inbound messages change the snapshot.
    """

    def __init__(
        self,
        session_id: str | None = None,
        event_log: EventLog | None = None,
        invalid_action: InvalidActionFlag | None = None,
    ):
        self.session_id = session_id

        self._snapshot: SessionSnapshot | None = None
        self._player_id: PlayerId | None = None
        self._view: LocalView = EMPTY_VIEW
        self._connected = False
        self._game_over_announced = False

        self._observers: dict[SessionEvents, list[Callable]] = defaultdict(list)
        self._lock = threading.RLock()

        self._stats = {
            "snapshots_applied": 0,
            "server_errors": 0,
            "malformed_messages": 0,
        }

        self.event_log = event_log if event_log is not None else EventLog()
        self.event_log.on_change = lambda entries: self._emit(SessionEvents.LOG_UPDATED, entries)
        self.invalid_action = invalid_action if invalid_action is not None else InvalidActionFlag()
        self.invalid_action.on_change = lambda label: self._emit(
            SessionEvents.INVALID_ACTION, label
        )

    # ========== Read-only access ==========

    @property
    def snapshot(self) -> SessionSnapshot | None:
        with self._lock:
            return self._snapshot

    @property
    def local_view(self) -> LocalView:
        with self._lock:
            return self._view

    @property
    def player_id(self) -> PlayerId | None:
        with self._lock:
            return self._player_id

    @property
    def me(self) -> Participant | None:
        return self.local_view.me

    @property
    def is_my_turn(self) -> bool:
        return self.local_view.is_my_turn

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected

    @property
    def pending_discard(self) -> int:
        me = self.me
        return me.pendingDiscard if me is not None else 0

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return dict(self._stats)

    # ========== Inbound messages ==========

    def handle_message(self, data: dict) -> bool:
        """
        Apply one decoded server frame.

        Malformed or unknown frames are logged and dropped without touching
        the snapshot.

        Returns:
            True if the frame was understood
        """
        try:
            message = parse_server_message(data)
        except UnknownMessageError as e:
            logger.debug(str(e))
            return False
        except SchemaError as e:
            with self._lock:
                self._stats["malformed_messages"] += 1
            logger.error(f"Dropping malformed {data.get('type')!r} message: {e}")
            return False

        if isinstance(message, PlayerAssignedMessage):
            self.assign_identity(message.playerID)
        elif isinstance(message, StateMessage):
            self.apply_snapshot(message.to_snapshot())
        elif isinstance(message, ErrorMessage):
            self.report_error(message.error)
        return True

    def assign_identity(self, player_id: PlayerId):
        """Store the server-assigned local identity and re-derive the view."""
        with self._lock:
            self._player_id = player_id
            previous = self._view
            self._view = derive_local_view(self._snapshot, player_id)
            current = self._view

        logger.info(f"Assigned player id {player_id!r}")
        self._emit(SessionEvents.IDENTITY_ASSIGNED, player_id)
        self._announce_turn(previous, current)

    def apply_snapshot(self, snapshot: SessionSnapshot):
        """
        Replace the whole session with `snapshot`.

        Cancels any pending invalid-action flag and announces the local turn
        when it starts.
        """
        with self._lock:
            previous = self._view
            self._snapshot = snapshot
            self._view = derive_local_view(snapshot, self._player_id)
            current = self._view
            self._stats["snapshots_applied"] += 1
            newly_over = snapshot.gameOver and not self._game_over_announced
            if newly_over:
                self._game_over_announced = True
            elif not snapshot.gameOver:
                self._game_over_announced = False

        logger.debug(
            f"Snapshot applied: round={snapshot.round} active={snapshot.currentPlayer!r} "
            f"players={len(snapshot.players)}"
        )

        self.invalid_action.cancel()
        self._emit(SessionEvents.SNAPSHOT_APPLIED, snapshot)
        self._announce_turn(previous, current)

        if newly_over:
            winner = snapshot.winner
            if winner is not None:
                self.event_log.append(f"Game over! {winner.name} wins with {winner.points} points")
            else:
                self.event_log.append("Game over!")
            self._emit(SessionEvents.GAME_OVER, winner)

    def report_error(self, text: str):
        """Record a server-reported logical error. The snapshot is untouched."""
        with self._lock:
            self._stats["server_errors"] += 1
        logger.warning(f"Server error: {text}")
        self.event_log.append(f"Error: {text}")
        self._emit(SessionEvents.SERVER_ERROR, text)

    def set_connected(self, connected: bool):
        """Track transport connectivity. Identity is kept across disconnects."""
        with self._lock:
            changed = self._connected != connected
            self._connected = connected
        if changed:
            self._emit(SessionEvents.CONNECTION_CHANGED, connected)

    def _announce_turn(self, previous: LocalView, current: LocalView):
        if current.is_my_turn and not previous.is_my_turn:
            self.event_log.append("Your turn!")
            self._emit(SessionEvents.TURN_STARTED, current.me)

    # ========== Observers ==========

    def subscribe(self, event: SessionEvents, callback: Callable) -> Callable[[], None]:
        """
        Subscribe to a session event

        Returns:
            Unsubscribe function
        """
        with self._lock:
            self._observers[event].append(callback)
            logger.debug(f"Subscribed to {event.value}")

        def unsubscribe():
            self.unsubscribe(event, callback)

        return unsubscribe

    def unsubscribe(self, event: SessionEvents, callback: Callable):
        with self._lock:
            if callback in self._observers[event]:
                self._observers[event].remove(callback)
                logger.debug(f"Unsubscribed from {event.value}")

    def _emit(self, event: SessionEvents, data: Any = None):
        """Emit an event to all subscribers (releases lock before calling callbacks)"""
        with self._lock:
            callbacks = list(self._observers[event])

        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Observer callback error for {event.value}: {e}")
