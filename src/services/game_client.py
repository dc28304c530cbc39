"""
GameClient - the session client as one service object

Consumers hold a GameClient and use three narrow surfaces:
- read: snapshot, local view, event log, invalid-action flag, connectivity
- subscribe: SessionEvents observers
- dispatch: `client.actions` (ActionDispatcher)
"""

import logging
from collections.abc import Callable

from config import ClientConfig
from core import (
    EventLog,
    InvalidActionFlag,
    LocalView,
    SessionEvents,
    SessionStore,
    can_claim_point,
    max_trade_multiplier,
    required_deposit_positions,
    validate_acquire,
)
from models import Card, Participant, SessionSnapshot
from sources import ConnectionManager

from .action_dispatcher import ActionDispatcher

logger = logging.getLogger(__name__)


class GameClient:
    """
    Usage:
        client = GameClient()
        client.subscribe(SessionEvents.TURN_STARTED, lambda me: ...)
        await client.connect("abc123", "Alice", avatar="3")
    """

    def __init__(self, client_config: ClientConfig | None = None):
        self.config = client_config or ClientConfig()

        self.store = SessionStore(
            event_log=EventLog(max_size=self.config.event_log_size),
            invalid_action=InvalidActionFlag(duration=self.config.invalid_action_flash),
        )
        self.connection = ConnectionManager(self.store, self.config)
        self.actions = ActionDispatcher(self.store, self.connection)

    # ========== Lifecycle ==========

    async def connect(self, session_id: str, player_name: str, avatar: str | None = None):
        """Join a session and process server pushes until the connection ends."""
        await self.connection.connect(session_id, player_name, avatar)

    async def reconnect(self):
        await self.connection.reconnect()

    async def disconnect(self):
        await self.connection.disconnect()
        self.store.invalid_action.cancel()

    # ========== Read ==========

    @property
    def connected(self) -> bool:
        return self.store.connected

    @property
    def snapshot(self) -> SessionSnapshot | None:
        return self.store.snapshot

    @property
    def view(self) -> LocalView:
        return self.store.local_view

    @property
    def me(self) -> Participant | None:
        return self.store.me

    @property
    def is_my_turn(self) -> bool:
        return self.store.is_my_turn

    @property
    def pending_discard(self) -> int:
        return self.store.pending_discard

    @property
    def log_entries(self) -> list[str]:
        return self.store.event_log.entries()

    @property
    def invalid_card(self) -> str | None:
        return self.store.invalid_action.current

    # ========== Subscribe ==========

    def subscribe(self, event: SessionEvents, callback: Callable) -> Callable[[], None]:
        return self.store.subscribe(event, callback)

    # ========== Queries against the current view ==========

    def trade_limit(self, card: Card) -> int:
        """Largest legal multiplier for trade `card` with my crystals."""
        me = self.me
        if me is None:
            return 0
        return max_trade_multiplier(card.input_pool, me.resources)

    def can_claim(self, card: Card) -> bool:
        me = self.me
        return me is not None and can_claim_point(card, me.resources)

    def can_acquire(self, market_index: int) -> tuple[bool, str | None]:
        snapshot, me = self.snapshot, self.me
        if snapshot is None or me is None:
            return False, "No session state yet"
        return validate_acquire(snapshot.market.actionCards, market_index, me.resources)

    def deposits_needed(self, market_index: int) -> list[int]:
        """Positions to fill before market card `market_index` is free."""
        snapshot = self.snapshot
        if snapshot is None:
            return []
        return required_deposit_positions(snapshot.market.actionCards, market_index + 1)

    def summary(self) -> str:
        """One line describing the local view."""
        snapshot, view = self.snapshot, self.view
        if snapshot is None:
            return "waiting for state"
        me = view.me
        active = view.active.name if view.active is not None else "?"
        if me is None:
            return f"round {snapshot.round} | spectating | turn: {active}"
        return (
            f"round {snapshot.round} | {me.name}: {me.score} pts, {me.resources} | "
            f"turn: {'you' if view.is_my_turn else active} | "
            f"opponents: {len(view.opponents)}"
        )
