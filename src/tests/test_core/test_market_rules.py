"""
Tests for market sequencing, deposits and collection
"""

import pytest

from core import (
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
from core.market_rules import card_cost
from models import Market, ResourcePool


class TestMarketAcquireCost:
    """Tests for positional prices"""

    def test_cost_table(self):
        assert market_acquire_cost(1) == ResourcePool()
        assert market_acquire_cost(2) == ResourcePool(yellow=1)
        assert market_acquire_cost(3) == ResourcePool(yellow=2)
        assert market_acquire_cost(4) == ResourcePool(green=1)
        assert market_acquire_cost(5) == ResourcePool(green=2)
        assert market_acquire_cost(7) == ResourcePool(green=6)

    def test_invalid_position(self):
        with pytest.raises(ValueError):
            market_acquire_cost(0)

    def test_card_cost_wins(self, make_card):
        card = make_card(cost={"blue": 1})

        assert card_cost(card, 3) == ResourcePool(blue=1)
        assert card_cost(make_card(), 3) == ResourcePool(yellow=2)


class TestDepositSequencing:
    """Tests for required_deposit_positions / can_acquire_position"""

    def test_position_one_always_free(self, make_market_row):
        row = make_market_row()

        assert required_deposit_positions(row, 1) == []
        assert can_acquire_position(row, 1) is True

    def test_position_three_needs_one_and_two(self, make_market_row):
        row = make_market_row()

        assert required_deposit_positions(row, 3) == [1, 2]
        assert can_acquire_position(row, 3) is False

    def test_partially_filled(self, make_market_row):
        row = make_market_row(deposits={1: {"1": "yellow"}})

        assert required_deposit_positions(row, 3) == [2]

    def test_no_duplicate_prompt_after_filling(self, make_market_row):
        row = make_market_row(deposits={1: {"1": "yellow"}, 2: {"2": "green"}})

        assert required_deposit_positions(row, 3) == []
        assert can_acquire_position(row, 3) is True

    def test_deposit_on_wrong_slot_does_not_count(self, make_market_row):
        # card at position 1 holds a crystal on slot 2, its own slot is empty
        row = make_market_row(deposits={1: {"2": "yellow"}})

        assert required_deposit_positions(row, 2) == [1]

    def test_target_out_of_range(self, make_market_row):
        with pytest.raises(ValueError):
            required_deposit_positions(make_market_row(size=3), 4)


class TestValidateAcquire:
    """Tests for validate_acquire"""

    def test_first_position_free(self, make_market_row):
        assert validate_acquire(make_market_row(), 0, {}) == (True, None)

    def test_sequenced_position_free(self, make_market_row):
        row = make_market_row(deposits={1: {"1": "pink"}})

        assert validate_acquire(row, 1, {}) == (True, None)

    def test_paid_path(self, make_market_row):
        assert validate_acquire(make_market_row(), 2, {"yellow": 2}) == (True, None)

    def test_rejected_names_missing_positions(self, make_market_row):
        is_valid, error = validate_acquire(make_market_row(), 2, {"green": 1})

        assert is_valid is False
        assert "1, 2" in error
        assert "2 yellow" in error

    def test_index_out_of_range(self, make_market_row):
        is_valid, error = validate_acquire(make_market_row(size=2), 5, {"yellow": 9})

        assert is_valid is False
        assert "No market card" in error


class TestValidateDeposit:
    """Tests for validate_deposit"""

    def test_valid_deposit(self):
        result = validate_deposit({1: "yellow", 2: "green"}, [1, 2], {"yellow": 1, "green": 1})

        assert result == (True, None)

    def test_same_crystal_twice_needs_two(self):
        is_valid, error = validate_deposit({1: "yellow", 2: "yellow"}, [1, 2], {"yellow": 1})

        assert is_valid is False
        assert "Insufficient" in error

    def test_missing_position(self):
        is_valid, error = validate_deposit({1: "yellow"}, [1, 2], {"yellow": 5})

        assert is_valid is False
        assert "Missing deposit for position(s) 2" == error

    def test_extra_position(self):
        is_valid, error = validate_deposit({1: "yellow", 3: "yellow"}, [1], {"yellow": 5})

        assert is_valid is False
        assert "3" in error

    def test_unknown_crystal(self):
        is_valid, error = validate_deposit({1: "purple"}, [1], {"yellow": 5})

        assert is_valid is False
        assert "Unknown crystal" in error

    def test_nothing_required(self):
        is_valid, _ = validate_deposit({}, [], {"yellow": 5})

        assert is_valid is False

    def test_target_within_market(self):
        result = validate_deposit({1: "yellow"}, [1], {"yellow": 1}, target_position=2)

        assert result == (True, None)

    def test_target_beyond_market(self):
        is_valid, error = validate_deposit({1: "yellow"}, [1], {"yellow": 1}, target_position=6)

        assert is_valid is False
        assert "between 1 and 5" in error

    def test_target_position_bounds(self):
        assert validate_target_position(1) == (True, None)
        assert validate_target_position(5) == (True, None)
        assert validate_target_position(0)[0] is False
        assert validate_target_position(6)[0] is False


class TestValidateCollect:
    """Tests for validate_collect / can_collect_all"""

    def test_single_deposit_cannot_be_collected(self, make_card):
        card = make_card(deposits={"1": "yellow"})

        is_valid, error = validate_collect(card, [1])

        assert is_valid is False
        assert "only one deposit" in error
        assert can_collect_all(card) is False

    def test_proper_subset_allowed(self, make_card):
        card = make_card(deposits={"1": "yellow", "2": "green,blue"})

        assert validate_collect(card, [1]) == (True, None)
        assert validate_collect(card, [2, 2]) == (True, None)
        assert validate_collect(card, [1, 2]) == (True, None)
        assert can_collect_all(card) is True

    def test_cannot_take_everything(self, make_card):
        card = make_card(deposits={"1": "yellow", "2": "green"})

        is_valid, error = validate_collect(card, [1, 2])

        assert is_valid is False
        assert "at least one" in error

    def test_empty_selection(self, make_card):
        card = make_card(deposits={"1": "yellow", "2": "green"})

        assert validate_collect(card, [])[0] is False

    def test_empty_slot(self, make_card):
        card = make_card(deposits={"1": "yellow", "2": "green"})

        is_valid, error = validate_collect(card, [3])

        assert is_valid is False
        assert "position 3" in error

    def test_more_than_slot_holds(self, make_card):
        card = make_card(deposits={"1": "yellow", "2": "green,blue"})

        is_valid, _ = validate_collect(card, [1, 1])

        assert is_valid is False

    def test_no_deposits(self, make_card):
        assert validate_collect(make_card(), [1])[0] is False


class TestCoinBonus:
    """Tests for coin_bonus_for"""

    def test_bonus_on_first_positions_while_stocked(self, state_payload):
        market = Market.model_validate(state_payload["market"])

        assert coin_bonus_for(market, 0).name == "gold"
        # second stack is exhausted
        assert coin_bonus_for(market, 1) is None

    def test_no_bonus_beyond_bonus_positions(self, state_payload):
        market = Market.model_validate(state_payload["market"])

        assert coin_bonus_for(market, 2) is None
        assert coin_bonus_for(market, -1) is None
