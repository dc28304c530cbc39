"""
Data models for the Crystal Caravan session client
"""

from .cards import ActionKind, Card, CardCategory, CardType
from .crystals import CrystalType, ResourcePool
from .messages import (
    ActionIntent,
    ActionType,
    ErrorMessage,
    PlayerAssignedMessage,
    ServerMessage,
    StateMessage,
    UnknownMessageError,
    parse_server_message,
)
from .session import Market, Participant, PlayerId, SessionSnapshot, Winner

__all__ = [
    # Crystals
    "CrystalType",
    "ResourcePool",
    # Cards
    "ActionKind",
    "Card",
    "CardCategory",
    "CardType",
    # Session snapshot
    "Market",
    "Participant",
    "PlayerId",
    "SessionSnapshot",
    "Winner",
    # Inbound messages
    "ErrorMessage",
    "PlayerAssignedMessage",
    "ServerMessage",
    "StateMessage",
    "UnknownMessageError",
    "parse_server_message",
    # Outbound intents
    "ActionIntent",
    "ActionType",
]
