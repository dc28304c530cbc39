"""
Wire messages

Inbound (server -> client) JSON objects are discriminated by `type`:
- playerAssigned {playerID}
- state {players, currentPlayer, market, round, currentTurn, gameOver, winner}
- error {error}

Outbound (client -> server) messages are move intents:
    {"type": "action", "actionType": ..., "cardIndex"?, "inputResources"?, ...}
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from .crystals import CrystalType, ResourcePool
from .session import PlayerId, SessionSnapshot

# =============================================================================
# INBOUND
# =============================================================================


class UnknownMessageError(ValueError):
    """Raised for a well-formed frame whose `type` the client does not handle"""

    def __init__(self, message_type: Any):
        super().__init__(f"Unknown server message type: {message_type!r}")
        self.message_type = message_type


class PlayerAssignedMessage(BaseModel):
    """Identity assignment sent right after the connection opens."""

    type: Literal["playerAssigned"]
    playerID: PlayerId = Field(..., description="Local participant id")


class StateMessage(SessionSnapshot):
    """Full-state push. Always complete, never a patch."""

    type: Literal["state"]

    def to_snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.model_validate(self.model_dump(exclude={"type"}))


class ErrorMessage(BaseModel):
    """Logical error for the last intent of this client. Never mutates state."""

    type: Literal["error"]
    error: str = ""


ServerMessage = Annotated[
    Union[PlayerAssignedMessage, StateMessage, ErrorMessage],
    Field(discriminator="type"),
]

_SERVER_MESSAGE_ADAPTER = TypeAdapter(ServerMessage)
_KNOWN_TYPES = {"playerAssigned", "state", "error"}


def parse_server_message(data: dict) -> PlayerAssignedMessage | StateMessage | ErrorMessage:
    """
    Validate a decoded JSON frame.

    Raises:
        UnknownMessageError: `type` missing or not handled
        pydantic.ValidationError: payload does not match its schema
    """
    if not isinstance(data, dict) or data.get("type") not in _KNOWN_TYPES:
        raise UnknownMessageError(data.get("type") if isinstance(data, dict) else None)
    return _SERVER_MESSAGE_ADAPTER.validate_python(data)


# =============================================================================
# OUTBOUND
# =============================================================================


class ActionType(str, Enum):
    """Move intents understood by the server"""

    PLAY_CARD = "playCard"
    ACQUIRE_CARD = "acquireCard"
    CLAIM_POINT_CARD = "claimPointCard"
    REST = "rest"
    DISCARD_CRYSTALS = "discardCrystals"
    DEPOSIT_CRYSTALS = "depositCrystals"
    COLLECT_CRYSTALS = "collectCrystals"
    COLLECT_ALL_CRYSTALS = "collectAllCrystals"


class ActionIntent(BaseModel):
    """
    An unconfirmed move request.

    Has no effect on local data; its outcome shows up in a later snapshot
    (or as an `error` message).
    """

    type: Literal["action"] = "action"
    actionType: ActionType
    cardIndex: int | None = None
    inputResources: ResourcePool | None = None
    outputResources: ResourcePool | None = None
    multiplier: int | None = None
    discard: ResourcePool | None = None
    deposits: dict[int, CrystalType] | None = None
    targetPosition: int | None = None
    positions: list[int] | None = None

    @field_validator("inputResources", "outputResources", "discard", mode="before")
    @classmethod
    def coerce_pool(cls, v):
        if v is None:
            return None
        return ResourcePool.coerce(v)

    class Config:
        """Pydantic model configuration."""
        frozen = True

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict; unset optional fields are omitted."""
        message: dict[str, Any] = {"type": self.type, "actionType": self.actionType.value}
        if self.cardIndex is not None:
            message["cardIndex"] = self.cardIndex
        if self.inputResources is not None:
            message["inputResources"] = self.inputResources.to_wire()
        if self.outputResources is not None:
            message["outputResources"] = self.outputResources.to_wire()
        if self.multiplier is not None:
            message["multiplier"] = self.multiplier
        if self.discard is not None:
            message["discard"] = self.discard.to_wire()
        if self.deposits is not None:
            # JSON object keys are strings; the server parses them back to ints
            message["deposits"] = {
                str(position): crystal.value for position, crystal in sorted(self.deposits.items())
            }
        if self.targetPosition is not None:
            message["targetPosition"] = self.targetPosition
        if self.positions is not None:
            message["positions"] = list(self.positions)
        return message
