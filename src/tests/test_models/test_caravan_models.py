"""
Tests for crystal, card, session and wire message schemas
"""

import pytest
from pydantic import ValidationError

from models import (
    ActionIntent,
    ActionType,
    CardCategory,
    CrystalType,
    ErrorMessage,
    PlayerAssignedMessage,
    ResourcePool,
    StateMessage,
    UnknownMessageError,
    parse_server_message,
)


class TestCrystalType:
    """Tests for crystal tiers"""

    def test_tiers(self):
        assert CrystalType.YELLOW.tier == 1
        assert CrystalType.GREEN.tier == 2
        assert CrystalType.BLUE.tier == 3
        assert CrystalType.PINK.tier == 4

    def test_by_tier_is_ascending(self):
        assert CrystalType.by_tier() == [
            CrystalType.YELLOW,
            CrystalType.GREEN,
            CrystalType.BLUE,
            CrystalType.PINK,
        ]


class TestResourcePool:
    """Tests for ResourcePool"""

    def test_missing_keys_default_to_zero(self):
        pool = ResourcePool.model_validate({"yellow": 2})

        assert pool.green == 0
        assert pool.total == 2

    def test_null_counters_are_zero(self):
        pool = ResourcePool.model_validate({"yellow": None, "blue": 1})

        assert pool.yellow == 0
        assert pool.blue == 1

    def test_negative_counter_rejected(self):
        with pytest.raises(ValidationError):
            ResourcePool(yellow=-1)

    def test_coerce_from_crystal_keys(self):
        pool = ResourcePool.coerce({CrystalType.PINK: 1, "green": 2})

        assert pool.pink == 1
        assert pool.green == 2

    def test_coerce_none_is_empty(self):
        assert ResourcePool.coerce(None).is_empty

    def test_level_sums_tiers(self):
        pool = ResourcePool(yellow=2, blue=1, pink=1)

        assert pool.level == 2 * 1 + 3 + 4

    def test_units_sorted_ascending(self):
        assert ResourcePool(pink=1, yellow=2, green=1).units() == [1, 1, 2, 4]

    def test_scaled(self):
        assert ResourcePool(yellow=2, green=1).scaled(3) == ResourcePool(yellow=6, green=3)

    def test_to_wire_has_all_keys(self):
        assert ResourcePool(green=1).to_wire() == {"yellow": 0, "green": 1, "blue": 0, "pink": 0}

    def test_str(self):
        assert str(ResourcePool()) == "none"
        assert str(ResourcePool(yellow=2, pink=1)) == "2 yellow, 1 pink"


class TestCard:
    """Tests for Card parsing"""

    def test_category_from_action_type(self, make_card):
        assert make_card(actionType=0).category == CardCategory.PRODUCE
        assert make_card(actionType=1).category == CardCategory.UPGRADE
        assert make_card(actionType=2).category == CardCategory.TRADE

    def test_category_point_and_coin(self, make_card):
        assert make_card(type=1).category == CardCategory.POINT
        assert make_card(type=2).category == CardCategory.COIN
        assert make_card(type=3).category == CardCategory.OTHER

    def test_deposits_parsed_from_comma_string(self, make_card):
        card = make_card(deposits={"1": "yellow,green", "2": "pink"})

        assert card.deposits == {
            1: [CrystalType.YELLOW, CrystalType.GREEN],
            2: [CrystalType.PINK],
        }
        assert card.deposit_count == 3
        assert card.occupied_positions == [1, 2]

    def test_empty_deposit_slots_dropped(self, make_card):
        card = make_card(deposits={"1": "", "2": None, "3": "blue"})

        assert card.occupied_positions == [3]
        assert not card.has_deposit_at(1)
        assert card.has_deposit_at(3)

    def test_null_deposits(self, make_card):
        assert make_card(deposits=None).deposit_count == 0

    def test_deposit_counts_rejected(self, make_card):
        with pytest.raises(ValidationError, match="crystal names"):
            make_card(deposits={"1": 1})

    def test_non_object_deposits_rejected(self, make_card):
        with pytest.raises(ValidationError):
            make_card(deposits=7)

    def test_deposited_pool(self, make_card):
        card = make_card(deposits={"1": "yellow,yellow", "3": "blue"})

        assert card.deposited_pool() == ResourcePool(yellow=2, blue=1)

    def test_unknown_fields_kept(self, make_card):
        card = make_card(imageUrl="x.png")

        assert card.model_extra["imageUrl"] == "x.png"

    def test_pools_default_empty(self, make_card):
        card = make_card()

        assert card.input_pool.is_empty
        assert card.requirement_pool.is_empty

    def test_str_falls_back_to_id(self, make_card):
        assert str(make_card(id=7, name="")) == "card 7"
        assert str(make_card(name="produce_2y")) == "produce_2y"


class TestSessionSnapshot:
    """Tests for the state message schema"""

    def test_parse_state(self, state_payload):
        message = parse_server_message(state_payload)

        assert isinstance(message, StateMessage)
        snapshot = message.to_snapshot()
        assert [p.name for p in snapshot.players] == ["Alice", "Bob"]
        assert snapshot.market.actionDeck == 30
        assert snapshot.players[0].hand[1].turnUpgrade == 2

    def test_active_participant_by_id(self, state_for):
        snapshot = parse_server_message(state_for(currentPlayer=2, currentTurn=0)).to_snapshot()

        assert snapshot.active_participant.name == "Bob"

    def test_active_participant_falls_back_to_turn_index(self, state_for):
        snapshot = parse_server_message(state_for(currentPlayer=None, currentTurn=1)).to_snapshot()

        assert snapshot.active_participant.name == "Bob"

    def test_get_participant_unknown(self, state_payload):
        snapshot = parse_server_message(state_payload).to_snapshot()

        assert snapshot.get_participant(99) is None
        assert snapshot.get_participant(None) is None

    def test_winner(self, state_for):
        payload = state_for(gameOver=True, winner={"id": 2, "name": "Bob", "points": 40})
        snapshot = parse_server_message(payload).to_snapshot()

        assert snapshot.winner.name == "Bob"
        assert snapshot.winner.points == 40

    def test_action_card_at(self, state_payload):
        market = parse_server_message(state_payload).to_snapshot().market

        assert market.action_card_at(1).id == 100
        assert market.action_card_at(0) is None
        assert market.action_card_at(6) is None


class TestParseServerMessage:
    """Tests for inbound message dispatch"""

    def test_player_assigned(self):
        message = parse_server_message({"type": "playerAssigned", "playerID": 3})

        assert isinstance(message, PlayerAssignedMessage)
        assert message.playerID == 3

    def test_error(self):
        message = parse_server_message({"type": "error", "error": "Not your turn"})

        assert isinstance(message, ErrorMessage)
        assert message.error == "Not your turn"

    def test_unknown_type(self):
        with pytest.raises(UnknownMessageError) as exc:
            parse_server_message({"type": "chat", "text": "hi"})

        assert exc.value.message_type == "chat"

    def test_missing_type(self):
        with pytest.raises(UnknownMessageError):
            parse_server_message({"players": []})

    def test_schema_violation(self):
        with pytest.raises(ValidationError):
            parse_server_message({"type": "state", "players": "nope"})


class TestActionIntent:
    """Tests for outbound intents"""

    def test_minimal_wire_shape(self):
        intent = ActionIntent(actionType=ActionType.REST)

        assert intent.to_wire() == {"type": "action", "actionType": "rest"}

    def test_card_index_zero_is_kept(self):
        intent = ActionIntent(actionType=ActionType.PLAY_CARD, cardIndex=0)

        assert intent.to_wire()["cardIndex"] == 0

    def test_pools_sent_with_all_keys(self):
        intent = ActionIntent(
            actionType=ActionType.PLAY_CARD,
            cardIndex=1,
            inputResources={"yellow": 2},
            outputResources={"blue": 1, "green": 1},
        )

        wire = intent.to_wire()
        assert wire["inputResources"] == {"yellow": 2, "green": 0, "blue": 0, "pink": 0}
        assert wire["outputResources"] == {"yellow": 0, "green": 1, "blue": 1, "pink": 0}

    def test_deposit_keys_are_strings(self):
        intent = ActionIntent(
            actionType=ActionType.DEPOSIT_CRYSTALS,
            cardIndex=4,
            deposits={2: "green", 1: CrystalType.YELLOW},
            targetPosition=3,
        )

        wire = intent.to_wire()
        assert wire["deposits"] == {"1": "yellow", "2": "green"}
        assert list(wire["deposits"]) == ["1", "2"]
        assert wire["targetPosition"] == 3

    def test_intent_is_frozen(self):
        intent = ActionIntent(actionType=ActionType.REST)

        with pytest.raises(ValidationError):
            intent.cardIndex = 2
