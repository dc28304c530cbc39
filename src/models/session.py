"""
Session snapshot schemas

The server pushes the complete session on every change (`type: "state"`).
These models describe that snapshot; the client never patches them.
"""

from pydantic import BaseModel, Field

from .cards import Card
from .crystals import ResourcePool

PlayerId = int | str


class Participant(BaseModel):
    """
    One seat in the session.

    Example payload:
    {
        "id": 2,
        "name": "Mira",
        "avatar": "4",
        "resources": {"yellow": 3, "green": 1, "blue": 0, "pink": 0},
        "points": 12,
        "hand": [...],
        "playedCards": [...],
        "pointCards": [...],
        "coins": [...],
        "hasRested": false,
        "isAI": false
    }
    """

    id: PlayerId = Field(..., description="Server-assigned participant id")
    name: str = Field("", description="Display name")
    avatar: str = Field("", description="Avatar reference")
    resources: ResourcePool = Field(default_factory=ResourcePool)
    points: int = Field(0, description="Current score")
    hand: list[Card] = Field(default_factory=list)
    playedCards: list[Card] = Field(default_factory=list)
    pointCards: list[Card] = Field(default_factory=list)
    coins: list[Card] = Field(default_factory=list)
    hasRested: bool = False
    isAI: bool = False
    pendingDiscard: int = Field(0, ge=0, description="Crystals that must be discarded")

    class Config:
        """Pydantic model configuration."""
        extra = "allow"

    @property
    def score(self) -> int:
        return self.points


class Market(BaseModel):
    """Face-up market rows and deck counters"""

    actionCards: list[Card] = Field(default_factory=list, description="Acquirable row, position 1 first")
    pointCards: list[Card] = Field(default_factory=list, description="Claimable point cards")
    actionDeck: int = Field(0, ge=0, description="Action cards left in the deck")
    pointDeck: int = Field(0, ge=0, description="Point cards left in the deck")
    coins: list[Card] = Field(default_factory=list, description="Coin bonus stacks")

    class Config:
        """Pydantic model configuration."""
        extra = "allow"

    def action_card_at(self, position: int) -> Card | None:
        """Action card at 1-based market `position`."""
        if 1 <= position <= len(self.actionCards):
            return self.actionCards[position - 1]
        return None


class Winner(BaseModel):
    id: PlayerId
    name: str = ""
    points: int = 0


class SessionSnapshot(BaseModel):
    """
    Complete, authoritative description of a session.

    `currentPlayer` is the id of the participant whose turn it is;
    `currentTurn` is that participant's index in `players`.
    """

    players: list[Participant] = Field(default_factory=list)
    currentPlayer: PlayerId | None = None
    currentTurn: int = 0
    round: int = 0
    market: Market = Field(default_factory=Market)
    gameOver: bool = False
    lastRound: bool = False
    winner: Winner | None = None

    class Config:
        """Pydantic model configuration."""
        extra = "allow"

    def get_participant(self, player_id: PlayerId | None) -> Participant | None:
        if player_id is None:
            return None
        for participant in self.players:
            if participant.id == player_id:
                return participant
        return None

    @property
    def active_participant(self) -> Participant | None:
        """Participant holding the turn (by id, falling back to turn index)."""
        if self.currentPlayer is not None:
            return self.get_participant(self.currentPlayer)
        if 0 <= self.currentTurn < len(self.players):
            return self.players[self.currentTurn]
        return None
