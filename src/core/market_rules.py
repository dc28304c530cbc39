"""
Market position rules: acquisition sequencing, deposits and collection

Action cards in the market occupy positions 1..N (position = index + 1).
Position 1 is always free. Acquiring position p > 1 for free requires every
earlier position to hold a deposit on its own slot; filling an empty slot costs
the acting participant one crystal of their choice.
"""

from collections import Counter
from collections.abc import Mapping, Sequence

from config import config
from models import Card, CrystalType, Market, ResourcePool

from .validators import PoolLike, can_afford


def market_acquire_cost(position: int) -> ResourcePool:
    """
    Price of the card at 1-based market `position` when paid in crystals.

    1: free, 2: 1 yellow, 3: 2 yellow, 4: 1 green, 5: 2 green, then
    position - 1 green.
    """
    if position < 1:
        raise ValueError(f"Market positions start at 1, got {position}")
    table = {
        1: ResourcePool(),
        2: ResourcePool(yellow=1),
        3: ResourcePool(yellow=2),
        4: ResourcePool(green=1),
        5: ResourcePool(green=2),
    }
    return table.get(position, ResourcePool(green=position - 1))


def card_cost(card: Card, position: int) -> ResourcePool:
    """The card's advertised cost, or the positional price when absent."""
    return card.cost if card.cost is not None else market_acquire_cost(position)


# =============================================================================
# DEPOSIT SEQUENCING
# =============================================================================


def required_deposit_positions(
    market_cards: Sequence[Card], target_position: int
) -> list[int]:
    """
    Earlier positions whose slot must still be filled before acquiring
    `target_position` for free.

    An empty list means nothing is missing; position 1 never needs deposits.
    """
    if target_position < 1 or target_position > len(market_cards):
        raise ValueError(
            f"Target position {target_position} outside market of {len(market_cards)} cards"
        )
    return [
        position
        for position in range(1, target_position)
        if not market_cards[position - 1].has_deposit_at(position)
    ]


def can_acquire_position(market_cards: Sequence[Card], target_position: int) -> bool:
    """True iff every earlier position already holds its deposit."""
    return not required_deposit_positions(market_cards, target_position)


def validate_acquire(
    market_cards: Sequence[Card], market_index: int, pool: PoolLike
) -> tuple[bool, str | None]:
    """
    Validate acquiring the action card at 0-based `market_index`

    Position 1 is free. A later position is free once all earlier slots are
    filled; otherwise the card must be paid for from `pool`.
    """
    if market_index < 0 or market_index >= len(market_cards):
        return False, f"No market card at index {market_index}"

    position = market_index + 1
    if can_acquire_position(market_cards, position):
        return True, None

    cost = card_cost(market_cards[market_index], position)
    if can_afford(cost, pool):
        return True, None

    missing = required_deposit_positions(market_cards, position)
    return False, (
        f"Deposit on position(s) {', '.join(map(str, missing))} first, "
        f"or pay {cost} (need more crystals)"
    )


def validate_target_position(target_position: int) -> tuple[bool, str | None]:
    """Deposits can only target market positions 1..max_market_position."""
    max_position = config.GAME_RULES["max_market_position"]
    if target_position < 1 or target_position > max_position:
        return False, f"Target position must be between 1 and {max_position}, got {target_position}"
    return True, None


def validate_deposit(
    deposits: Mapping[int, CrystalType | str],
    required_positions: Sequence[int],
    pool: PoolLike,
    target_position: int | None = None,
) -> tuple[bool, str | None]:
    """
    Validate a chosen crystal for every empty slot being filled

    Args:
        deposits: Slot position -> crystal placed there
        required_positions: Positions still missing a deposit
        pool: Acting participant's crystals
        target_position: Market position the deposits unlock, when known
    """
    if target_position is not None:
        is_valid, error = validate_target_position(target_position)
        if not is_valid:
            return False, error

    if not required_positions:
        return False, "No deposits required"

    missing = [position for position in required_positions if position not in deposits]
    if missing:
        return False, f"Missing deposit for position(s) {', '.join(map(str, missing))}"

    extra = sorted(set(deposits) - set(required_positions))
    if extra:
        return False, f"Position(s) {', '.join(map(str, extra))} do not need a deposit"

    try:
        spend = Counter(CrystalType(crystal).value for crystal in deposits.values())
    except ValueError as e:
        return False, f"Unknown crystal type: {e}"

    if not can_afford(dict(spend), pool):
        return False, "Insufficient crystals for these deposits"

    return True, None


# =============================================================================
# COLLECTION
# =============================================================================


def validate_collect(card: Card, positions: Sequence[int]) -> tuple[bool, str | None]:
    """
    Validate collecting deposited crystals from `card`

    Each entry in `positions` takes one crystal from that slot. At least one
    deposit must stay on the card, so a card holding a single deposit cannot
    be collected from.
    """
    total = card.deposit_count
    if total == 0:
        return False, f"{card} has no deposits"
    if total == 1:
        return False, "Cannot collect - only one deposit exists, must leave at least one"
    if not positions:
        return False, "Select at least one deposit to collect"

    wanted = Counter(positions)
    for position, count in wanted.items():
        available = len(card.deposits.get(position, []))
        if available == 0:
            return False, f"No deposit at position {position}"
        if count > available:
            return False, f"Only {available} crystal(s) at position {position}"

    if len(positions) >= total:
        return False, "Must leave at least one deposit behind"

    return True, None


def can_collect_all(card: Card) -> bool:
    """Auto-collect (everything but one deposit) needs more than one deposit."""
    return card.deposit_count > 1


# =============================================================================
# POINT CARD BONUS
# =============================================================================


def coin_bonus_for(market: Market, point_index: int) -> Card | None:
    """Coin stack awarded for claiming the point card at `point_index`, if any."""
    if point_index < 0 or point_index >= config.GAME_RULES["coin_bonus_positions"]:
        return None
    if point_index >= len(market.coins):
        return None
    coin = market.coins[point_index]
    return coin if coin.amount > 0 else None
