"""
Shared test fixtures for pytest
"""

import copy

import pytest

from config import ClientConfig
from core import EventLog, InvalidActionFlag, SessionStore
from models import Card, ResourcePool
from services import cleanup_logging, setup_logging


@pytest.fixture(autouse=True, scope="session")
def setup_test_logging(tmp_path_factory):
    """Setup logging once for the test session, into a temp directory"""
    setup_logging({"log_dir": str(tmp_path_factory.mktemp("logs")), "colored_output": False})
    yield
    cleanup_logging()


def _action_card(card_id, action_type, deposits=None, **extra):
    card = {
        "id": card_id,
        "name": f"card_{card_id}",
        "type": 0,
        "actionType": action_type,
        "input": {"yellow": 0, "green": 0, "blue": 0, "pink": 0},
        "output": {"yellow": 0, "green": 0, "blue": 0, "pink": 0},
    }
    if deposits is not None:
        card["deposits"] = deposits
    card.update(extra)
    return card


@pytest.fixture
def make_card():
    """Factory: Card from keyword fields (action produce card by default)"""

    def _make(**fields):
        fields.setdefault("id", 1)
        fields.setdefault("type", 0)
        if fields["type"] == 0:
            fields.setdefault("actionType", 0)
        return Card.model_validate(fields)

    return _make


@pytest.fixture
def make_market_row():
    """
    Factory: market action row of `size` cards.

    `deposits` maps 1-based position -> wire deposit dict for that card.
    """

    def _make(size=5, deposits=None):
        deposits = deposits or {}
        return [
            Card.model_validate(_action_card(100 + i, 0, deposits=deposits.get(i + 1)))
            for i in range(size)
        ]

    return _make


@pytest.fixture
def state_payload():
    """A complete `state` frame: two players, player 1 to move"""
    return {
        "type": "state",
        "players": [
            {
                "id": 1,
                "name": "Alice",
                "avatar": "1",
                "resources": {"yellow": 3, "green": 1, "blue": 0, "pink": 0},
                "points": 0,
                "hand": [
                    _action_card(1, 0, output={"yellow": 2, "green": 0, "blue": 0, "pink": 0}),
                    _action_card(2, 1, turnUpgrade=2),
                ],
                "playedCards": [],
                "pointCards": [],
                "coins": [],
                "hasRested": False,
                "isAI": False,
            },
            {
                "id": 2,
                "name": "Bob",
                "avatar": "2",
                "resources": {"yellow": 4, "green": 0, "blue": 0, "pink": 0},
                "points": 0,
                "hand": [],
                "playedCards": [],
                "pointCards": [],
                "coins": [],
                "hasRested": False,
                "isAI": True,
            },
        ],
        "currentPlayer": 1,
        "currentTurn": 0,
        "round": 1,
        "gameOver": False,
        "lastRound": False,
        "winner": None,
        "market": {
            "actionCards": [_action_card(100 + i, i % 3) for i in range(5)],
            "pointCards": [
                {
                    "id": 200,
                    "name": "point_200",
                    "type": 1,
                    "points": 6,
                    "requirement": {"yellow": 2, "green": 1, "blue": 0, "pink": 0},
                },
                {
                    "id": 201,
                    "name": "point_201",
                    "type": 1,
                    "points": 9,
                    "requirement": {"yellow": 0, "green": 0, "blue": 2, "pink": 0},
                },
            ],
            "actionDeck": 30,
            "pointDeck": 20,
            "coins": [
                {"id": 300, "name": "gold", "type": 2, "amount": 3, "points": 3},
                {"id": 301, "name": "silver", "type": 2, "amount": 0, "points": 1},
            ],
        },
    }


@pytest.fixture
def state_for(state_payload):
    """Factory: copy of `state_payload` with top-level fields replaced"""

    def _make(**overrides):
        payload = copy.deepcopy(state_payload)
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def store():
    """Fresh SessionStore with a 3-entry log and a short flag"""
    return SessionStore(
        session_id="test-session",
        event_log=EventLog(max_size=3),
        invalid_action=InvalidActionFlag(duration=0.05),
    )


@pytest.fixture
def client_config():
    return ClientConfig(
        server_url="ws://test.invalid:8080",
        auto_reconnect=False,
        reconnect_delay=0.01,
        max_reconnect_delay=0.05,
    )


@pytest.fixture
def rich_pool():
    return ResourcePool(yellow=5, green=3, blue=2, pink=1)
