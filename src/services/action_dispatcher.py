"""
Action Dispatcher - builds move intents and hands them to the transport

Dispatch never blocks and never retries. Local validation is advisory: the
client only holds back an acquisition the acting participant visibly cannot
make (the card is flagged instead) and a deposit aimed outside the market.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

from core import SessionStore, validate_acquire, validate_target_position
from models import ActionIntent, ActionType, CrystalType, ResourcePool

logger = logging.getLogger(__name__)


class IntentTransport(Protocol):
    def send(self, intent: ActionIntent) -> bool: ...


class ActionDispatcher:
    """
    One method per move intent. Each returns True when the intent was handed
    to the transport.
    """

    def __init__(self, store: SessionStore, transport: IntentTransport):
        self.store = store
        self.transport = transport

    def _dispatch(self, intent: ActionIntent, description: str) -> bool:
        sent = self.transport.send(intent)
        if not sent:
            self.store.event_log.append("Not connected")
            return False
        self.store.event_log.append(description)
        logger.debug(f"Dispatched {intent.actionType.value}")
        return True

    # ========== Hand ==========

    def play_card(self, index: int) -> bool:
        return self._dispatch(
            ActionIntent(actionType=ActionType.PLAY_CARD, cardIndex=index),
            "Playing card from hand",
        )

    def play_card_with_upgrade(self, index: int, input_resources, output_resources) -> bool:
        return self._dispatch(
            ActionIntent(
                actionType=ActionType.PLAY_CARD,
                cardIndex=index,
                inputResources=input_resources,
                outputResources=output_resources,
            ),
            "Playing upgrade card",
        )

    def play_card_with_trade(self, index: int, multiplier: int) -> bool:
        return self._dispatch(
            ActionIntent(actionType=ActionType.PLAY_CARD, cardIndex=index, multiplier=multiplier),
            f"Playing trade card (x{multiplier})",
        )

    def rest(self) -> bool:
        return self._dispatch(
            ActionIntent(actionType=ActionType.REST),
            "Resting - returning cards to hand",
        )

    def discard_crystals(self, counts) -> bool:
        discard = ResourcePool.coerce(counts)
        return self._dispatch(
            ActionIntent(actionType=ActionType.DISCARD_CRYSTALS, discard=discard),
            f"Discarding {discard.total} crystals",
        )

    # ========== Market ==========

    def acquire_card(self, index: int) -> bool:
        """
        Acquire market action card `index`.

        When the current snapshot shows the acquisition cannot be made, the
        card is flagged invalid and nothing is sent.
        """
        snapshot = self.store.snapshot
        me = self.store.me
        if snapshot is not None and me is not None:
            market_cards = snapshot.market.actionCards
            is_valid, reason = validate_acquire(market_cards, index, me.resources)
            if not is_valid:
                card = market_cards[index] if 0 <= index < len(market_cards) else None
                label = str(card) if card is not None else f"card {index}"
                self.store.invalid_action.flag(label)
                self.store.event_log.append(f"Cannot acquire {label}: {reason}")
                logger.info(f"Acquisition of {label} rejected locally: {reason}")
                return False

        return self._dispatch(
            ActionIntent(actionType=ActionType.ACQUIRE_CARD, cardIndex=index),
            "Acquiring card from market",
        )

    def claim_point_card(self, index: int) -> bool:
        return self._dispatch(
            ActionIntent(actionType=ActionType.CLAIM_POINT_CARD, cardIndex=index),
            "Claiming point card",
        )

    # ========== Deposits ==========

    def deposit_crystals(
        self,
        index: int,
        deposits: Mapping[int, CrystalType | str],
        target_position: int,
    ) -> bool:
        """
        Fill empty slots ahead of `target_position`.

        Args:
            index: Card index as the server addresses it for deposits
            deposits: Slot position -> crystal placed there
            target_position: Market position the deposits unlock
        """
        is_valid, reason = validate_target_position(target_position)
        if not is_valid:
            self.store.event_log.append(f"Cannot deposit: {reason}")
            logger.info(f"Deposit rejected locally: {reason}")
            return False

        return self._dispatch(
            ActionIntent(
                actionType=ActionType.DEPOSIT_CRYSTALS,
                cardIndex=index,
                deposits=dict(deposits),
                targetPosition=target_position,
            ),
            f"Depositing crystals on card (target: position {target_position})",
        )

    def deposit_for_market_card(
        self, market_index: int, deposits: Mapping[int, CrystalType | str]
    ) -> bool:
        """Deposit toward acquiring market card `market_index`."""
        me = self.store.me
        hand_size = len(me.hand) if me is not None else 0
        return self.deposit_crystals(hand_size + market_index, deposits, market_index + 1)

    def collect_crystals(self, index: int, positions: Sequence[int]) -> bool:
        return self._dispatch(
            ActionIntent(
                actionType=ActionType.COLLECT_CRYSTALS,
                cardIndex=index,
                positions=list(positions),
            ),
            f"Collecting {len(positions)} crystals from card",
        )

    def collect_all_crystals(self, index: int) -> bool:
        return self._dispatch(
            ActionIntent(actionType=ActionType.COLLECT_ALL_CRYSTALS, cardIndex=index),
            "Auto-collecting crystals from card",
        )
