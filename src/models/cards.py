"""
Card schemas

Cards arrive inside every state snapshot: in participant hands, played piles,
claimed point piles and the market rows. The wire `type` / `actionType`
integers are mapped onto a single `CardCategory` for validation.
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_validator

from .crystals import CrystalType, ResourcePool


class CardType(IntEnum):
    """Wire `type` of a card"""

    ACTION = 0
    POINT = 1
    COIN = 2
    STONE = 3
    BACKGROUND = 4


class ActionKind(IntEnum):
    """Wire `actionType` of an action card"""

    PRODUCE = 0
    UPGRADE = 1
    TRADE = 2


class CardCategory(str, Enum):
    """What a card does when played or claimed"""

    PRODUCE = "produce"
    UPGRADE = "upgrade"
    TRADE = "trade"
    POINT = "point"
    COIN = "coin"
    OTHER = "other"


_ACTION_CATEGORIES = {
    ActionKind.PRODUCE: CardCategory.PRODUCE,
    ActionKind.UPGRADE: CardCategory.UPGRADE,
    ActionKind.TRADE: CardCategory.TRADE,
}


class Card(BaseModel):
    """
    A card as described by the server.

    Example payload (market action card):
    {
        "id": 12,
        "name": "trade_2y_1b",
        "type": 0,
        "actionType": 2,
        "input": {"yellow": 2, "green": 0, "blue": 0, "pink": 0},
        "output": {"yellow": 0, "green": 0, "blue": 1, "pink": 0},
        "cost": {"yellow": 1, "green": 0, "blue": 0, "pink": 0},
        "deposits": {"1": "yellow,green"}
    }
    """

    id: int | str = Field(..., description="Server card id")
    name: str = Field("", description="Card name")
    type: CardType = Field(CardType.ACTION, description="Card type")
    actionType: ActionKind | None = Field(None, description="Action kind (action cards only)")

    input: ResourcePool | None = Field(None, description="Crystals consumed per use")
    output: ResourcePool | None = Field(None, description="Crystals produced per use")
    cost: ResourcePool | None = Field(None, description="Acquisition cost (market cards)")
    requirement: ResourcePool | None = Field(None, description="Claim threshold (point cards)")
    turnUpgrade: int = Field(0, ge=0, description="Per-use upgrade level budget")
    points: int = Field(0, description="Point value")
    amount: int = Field(0, description="Remaining coins in a coin stack")

    # Slot position -> crystals stacked on that slot, oldest first
    deposits: dict[int, list[CrystalType]] = Field(default_factory=dict)

    @field_validator("deposits", mode="before")
    @classmethod
    def parse_deposits(cls, v):
        """
        Accept the server's `{"2": "yellow,green"}` encoding.

        Lists and single crystal names are accepted too; empty slots are dropped.
        """
        if not v:
            return {}
        if not isinstance(v, dict):
            raise ValueError(f"deposits must be an object, got {type(v).__name__}")
        parsed: dict[int, list[str]] = {}
        for position, crystals in v.items():
            if isinstance(crystals, str):
                names = [name.strip() for name in crystals.split(",") if name.strip()]
            elif crystals is None:
                names = []
            elif isinstance(crystals, (list, tuple)):
                names = list(crystals)
            else:
                raise ValueError(
                    f"deposit at position {position} must be crystal names, "
                    f"got {type(crystals).__name__}"
                )
            if names:
                parsed[int(position)] = names
        return parsed

    class Config:
        """Pydantic model configuration."""
        extra = "allow"
        use_enum_values = False

    @property
    def category(self) -> CardCategory:
        if self.type == CardType.ACTION and self.actionType is not None:
            return _ACTION_CATEGORIES[self.actionType]
        if self.type == CardType.POINT:
            return CardCategory.POINT
        if self.type == CardType.COIN:
            return CardCategory.COIN
        return CardCategory.OTHER

    @property
    def input_pool(self) -> ResourcePool:
        return self.input or ResourcePool()

    @property
    def output_pool(self) -> ResourcePool:
        return self.output or ResourcePool()

    @property
    def requirement_pool(self) -> ResourcePool:
        return self.requirement or ResourcePool()

    @property
    def deposit_count(self) -> int:
        """Total crystals deposited on this card, across all slots."""
        return sum(len(crystals) for crystals in self.deposits.values())

    @property
    def occupied_positions(self) -> list[int]:
        """Slot positions holding at least one crystal, ascending."""
        return sorted(position for position, crystals in self.deposits.items() if crystals)

    def has_deposit_at(self, position: int) -> bool:
        return bool(self.deposits.get(position))

    def deposited_pool(self) -> ResourcePool:
        """Deposited crystals as a resource pool."""
        counts = {crystal.value: 0 for crystal in CrystalType}
        for crystals in self.deposits.values():
            for crystal in crystals:
                counts[crystal.value] += 1
        return ResourcePool(**counts)

    def __str__(self) -> str:
        return self.name or f"card {self.id}"
