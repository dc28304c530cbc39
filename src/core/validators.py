"""
Move validation against reconciled session data

Pure functions: nothing here touches the session store, the connection or the
event log, so every check is safe to call from any callback.

Simple queries return booleans; `validate_*` functions return
`(is_valid, error_message)` so callers can show the reason.
"""

from collections.abc import Mapping

from config import config
from models import Card, CardCategory, ResourcePool

PoolLike = ResourcePool | Mapping[str, int] | None


class ValidationError(Exception):
    """Raised by the strict `require_*` helpers when validation fails"""

    pass


def _pool(value: PoolLike) -> ResourcePool:
    return ResourcePool.coerce(value)


def pool_total(pool: PoolLike) -> int:
    """Number of crystal units in `pool`."""
    return _pool(pool).total


def pool_level(pool: PoolLike) -> int:
    """Sum of unit tiers in `pool`."""
    return _pool(pool).level


# =============================================================================
# AFFORDABILITY
# =============================================================================


def can_afford(cost: PoolLike, pool: PoolLike) -> bool:
    """True iff `pool` holds at least `cost` of every crystal type."""
    cost, pool = _pool(cost), _pool(pool)
    return all(pool.get(crystal) >= count for crystal, count in cost.items())


def can_claim_point(card: Card, pool: PoolLike) -> bool:
    """True iff `pool` meets the point card's requirement threshold."""
    return can_afford(card.requirement_pool, pool)


def excess_crystals(pool: PoolLike) -> int:
    """Crystals held above the hand limit (0 when within it)."""
    return max(0, pool_total(pool) - config.GAME_RULES["max_crystals"])


# =============================================================================
# TRADE
# =============================================================================


def max_trade_multiplier(trade_input: PoolLike, pool: PoolLike) -> int:
    """
    Largest number of times a trade can run against `pool`.

    floor(min over types with nonzero input of pool / input); 0 when the
    trade has no input at all.
    """
    trade_input, pool = _pool(trade_input), _pool(pool)
    bounds = [
        pool.get(crystal) // count for crystal, count in trade_input.items() if count > 0
    ]
    if not bounds:
        return 0
    return min(bounds)


def validate_trade_multiplier(
    trade_input: PoolLike, pool: PoolLike, multiplier: int
) -> tuple[bool, str | None]:
    """
    Validate a chosen trade multiplier

    Legal iff 1 <= multiplier <= max multiplier and the scaled input fits the
    pool for every crystal type.
    """
    trade_input, pool = _pool(trade_input), _pool(pool)

    if not isinstance(multiplier, int) or isinstance(multiplier, bool):
        return False, f"Multiplier must be an integer, got {multiplier!r}"
    if multiplier < 1:
        return False, "Multiplier must be at least 1"

    maximum = max_trade_multiplier(trade_input, pool)
    if multiplier > maximum:
        return False, f"You can only trade up to {maximum} times"

    if not can_afford(trade_input.scaled(multiplier), pool):
        return False, f"Insufficient crystals for x{multiplier} trade"

    return True, None


# =============================================================================
# UPGRADE
# =============================================================================


def _downgrades_any_unit(input_units: list[int], output_units: list[int]) -> bool:
    """
    Match every input unit to an output unit of equal or higher tier.

    Walks the sorted input units in ascending order; each consumes the
    smallest unconsumed output unit whose tier is >= its own. Returns True when
    an input unit finds no match or an output unit is left over.
    """
    outputs = sorted(output_units)
    consumed = [False] * len(outputs)

    for tier in sorted(input_units):
        match = next(
            (i for i, out in enumerate(outputs) if not consumed[i] and out >= tier),
            None,
        )
        if match is None:
            return True
        consumed[match] = True

    return not all(consumed)


def validate_upgrade(
    upgrade_input: PoolLike, upgrade_output: PoolLike, level_budget: int
) -> tuple[bool, str | None]:
    """
    Validate a proposed upgrade of `upgrade_input` into `upgrade_output`

    Legal iff:
    - both sides hold the same, nonzero number of crystals
    - 0 < output level - input level <= level_budget
    - no single input crystal ends on a lower tier

    Args:
        upgrade_input: Crystals given up
        upgrade_output: Crystals received
        level_budget: The card's per-use level budget (`turnUpgrade`)
    """
    upgrade_input, upgrade_output = _pool(upgrade_input), _pool(upgrade_output)

    if upgrade_input.total == 0:
        return False, "Please select crystals to upgrade"
    if upgrade_input.total != upgrade_output.total:
        return False, "Input and output crystal counts must be equal"

    level_diff = upgrade_output.level - upgrade_input.level
    if level_diff <= 0:
        return False, "Output crystals must have higher level than input crystals"
    if level_diff > level_budget:
        return False, f"Can only upgrade up to {level_budget} levels"

    if _downgrades_any_unit(upgrade_input.units(), upgrade_output.units()):
        return False, "Cannot upgrade in this way"

    return True, None


def validate_upgrade_play(
    card: Card, upgrade_input: PoolLike, upgrade_output: PoolLike, pool: PoolLike
) -> tuple[bool, str | None]:
    """Validate playing upgrade `card` with the chosen input/output against `pool`."""
    if card.category != CardCategory.UPGRADE:
        return False, f"{card} is not an upgrade card"
    if card.turnUpgrade <= 0:
        return False, f"{card} has no upgrade budget"
    if not can_afford(upgrade_input, pool):
        return False, "Insufficient crystals for this upgrade"
    return validate_upgrade(upgrade_input, upgrade_output, card.turnUpgrade)


# =============================================================================
# PLAY / DISCARD
# =============================================================================


def validate_play(card: Card, pool: PoolLike) -> tuple[bool, str | None]:
    """
    Validate playing `card` from hand without further choices

    Produce cards always play; trade cards need at least one full input;
    upgrade cards need a budget (the concrete choice is checked by
    validate_upgrade_play).
    """
    category = card.category
    if category == CardCategory.PRODUCE:
        return True, None
    if category == CardCategory.TRADE:
        if max_trade_multiplier(card.input_pool, pool) < 1:
            return False, f"Insufficient crystals to trade with {card}"
        return True, None
    if category == CardCategory.UPGRADE:
        if card.turnUpgrade <= 0:
            return False, f"{card} has no upgrade budget"
        if pool_total(pool) == 0:
            return False, "No crystals to upgrade"
        return True, None
    return False, f"{card} cannot be played from hand"


def validate_discard(
    discard: PoolLike, pool: PoolLike, pending: int
) -> tuple[bool, str | None]:
    """
    Validate a discard down to the hand limit

    Legal iff the discard totals exactly `pending` crystals and the pool
    holds them.
    """
    if isinstance(discard, Mapping) and any(
        count is not None and count < 0 for count in discard.values()
    ):
        return False, "Discard counts cannot be negative"
    discard = _pool(discard)

    if pending <= 0:
        return False, "No discard pending"
    if discard.total != pending:
        return False, f"Must discard exactly {pending} crystals, selected {discard.total}"
    if not can_afford(discard, pool):
        return False, "Insufficient crystals to discard"

    return True, None


def require_valid(result: tuple[bool, str | None]) -> None:
    """
    Raise ValidationError for a failed `validate_*` result.

    Example:
        require_valid(validate_upgrade(inp, out, 2))
    """
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error or "Invalid move")
