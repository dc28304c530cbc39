"""
Crystal types and resource pools

Every resource map on the wire is a `{yellow, green, blue, pink}` object of
nonnegative integers; missing keys count as zero.
"""

from collections.abc import Iterator, Mapping
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from config import config


class CrystalType(str, Enum):
    """Crystal (resource) types, declared in ascending tier order"""

    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PINK = "pink"

    @property
    def tier(self) -> int:
        """Rank of this crystal type (1..4)."""
        return config.GAME_RULES["crystal_tiers"][self.value]

    @classmethod
    def by_tier(cls) -> list["CrystalType"]:
        """All crystal types sorted by ascending tier."""
        return sorted(cls, key=lambda crystal: crystal.tier)


class ResourcePool(BaseModel):
    """
    Four nonnegative crystal counters.

    Used for participant pools as well as card costs, inputs, outputs and
    requirements. Instances are treated as values: nothing in the client
    mutates a pool received from the server.
    """

    yellow: int = Field(0, ge=0, description="Tier 1 crystals")
    green: int = Field(0, ge=0, description="Tier 2 crystals")
    blue: int = Field(0, ge=0, description="Tier 3 crystals")
    pink: int = Field(0, ge=0, description="Tier 4 crystals")

    @field_validator("yellow", "green", "blue", "pink", mode="before")
    @classmethod
    def coerce_missing(cls, v):
        """Null counters arrive from some server paths; treat them as zero."""
        if v is None:
            return 0
        return v

    class Config:
        """Pydantic model configuration."""
        extra = "ignore"

    @classmethod
    def coerce(cls, value: "ResourcePool | Mapping[str, int] | None") -> "ResourcePool":
        """Build a pool from a mapping keyed by crystal name (or CrystalType)."""
        if value is None:
            return cls()
        if isinstance(value, ResourcePool):
            return value
        counts = {}
        for key, count in value.items():
            name = key.value if isinstance(key, CrystalType) else str(key)
            counts[name] = count
        return cls.model_validate(counts)

    def get(self, crystal: CrystalType | str) -> int:
        """Count of one crystal type."""
        return getattr(self, CrystalType(crystal).value)

    def items(self) -> Iterator[tuple[CrystalType, int]]:
        """(crystal, count) pairs in ascending tier order."""
        for crystal in CrystalType.by_tier():
            yield crystal, self.get(crystal)

    @property
    def total(self) -> int:
        """Number of crystal units."""
        return self.yellow + self.green + self.blue + self.pink

    @property
    def level(self) -> int:
        """Sum of unit tiers."""
        return sum(crystal.tier * count for crystal, count in self.items())

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def scaled(self, multiplier: int) -> "ResourcePool":
        """Pool with every counter multiplied by `multiplier`."""
        return ResourcePool(
            **{crystal.value: count * multiplier for crystal, count in self.items()}
        )

    def units(self) -> list[int]:
        """The pool as a multiset of unit tiers, sorted ascending."""
        return [crystal.tier for crystal, count in self.items() for _ in range(count)]

    def to_wire(self) -> dict[str, int]:
        """Serialize as the full four-key wire object."""
        return {crystal.value: count for crystal, count in self.items()}

    def __str__(self) -> str:
        parts = [f"{count} {crystal.value}" for crystal, count in self.items() if count > 0]
        return ", ".join(parts) if parts else "none"
