"""Core module - Session state and move rules"""

from . import market_rules, validators
from .event_log import EventLog, LogEntry
from .invalid_action import InvalidActionFlag
from .local_view import EMPTY_VIEW, LocalView, derive_local_view
from .market_rules import (
    can_acquire_position,
    can_collect_all,
    coin_bonus_for,
    market_acquire_cost,
    required_deposit_positions,
    validate_acquire,
    validate_collect,
    validate_deposit,
    validate_target_position,
)
from .session_state import SessionEvents, SessionStore
from .validators import (
    ValidationError,
    can_afford,
    can_claim_point,
    max_trade_multiplier,
    pool_level,
    pool_total,
    validate_discard,
    validate_play,
    validate_trade_multiplier,
    validate_upgrade,
)

__all__ = [
    "EMPTY_VIEW",
    "EventLog",
    "InvalidActionFlag",
    "LocalView",
    "LogEntry",
    "SessionEvents",
    "SessionStore",
    "ValidationError",
    "can_acquire_position",
    "can_afford",
    "can_claim_point",
    "can_collect_all",
    "coin_bonus_for",
    "derive_local_view",
    "market_acquire_cost",
    "market_rules",
    "max_trade_multiplier",
    "pool_level",
    "pool_total",
    "required_deposit_positions",
    "validate_acquire",
    "validate_collect",
    "validate_deposit",
    "validate_discard",
    "validate_play",
    "validate_target_position",
    "validate_trade_multiplier",
    "validate_upgrade",
    "validators",
]
