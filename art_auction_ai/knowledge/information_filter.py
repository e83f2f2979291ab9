# art_auction_ai/knowledge/information_filter.py
from __future__ import annotations

import random
from typing import TYPE_CHECKING, Dict, Optional

from .opponents import (
    OpponentMemory,
    OpponentModel,
    PlayerTendencies,
    aggressiveness_from,
    BidPattern,
)

if TYPE_CHECKING:
    from .analyzer import VisibleGameState

DIFFICULTIES = ("easy", "medium", "hard")

_MONEY_CONFIDENCE = {"easy": 0.3, "medium": 0.6, "hard": 0.8}
# (min, max) absolute error applied to opponent money estimates
_MONEY_NOISE = {"easy": (20, 40), "medium": (10, 20), "hard": (5, 10)}
_DEFAULT_PREDICTABILITY = {"easy": 0.8, "medium": 0.6, "hard": 0.4}

# Things every seat at the table can see.
PUBLIC_INFORMATION = frozenset(
    {
        "board",
        "played_cards",
        "artist_values",
        "purchases",
        "hand_size",
        "open_bids",
        "one_offer_bids",
        "fixed_price",
        "revealed_hidden_bids",
        "round_number",
        "auctioneer",
    }
)
HIDDEN_INFORMATION = frozenset({"money", "hand", "sealed_bids", "deck_order"})


class InformationFilter:
    """
    Degrades perfect information into what a player of the given difficulty
    plausibly knows.
    """

    def __init__(self, difficulty: str) -> None:
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")
        self.difficulty = difficulty

    @property
    def money_confidence(self) -> float:
        return _MONEY_CONFIDENCE[self.difficulty]

    @property
    def default_predictability(self) -> float:
        return _DEFAULT_PREDICTABILITY[self.difficulty]

    def apply_money_noise(self, true_value: float, rng: random.Random) -> float:
        low, high = _MONEY_NOISE[self.difficulty]
        magnitude = rng.uniform(low, high)
        sign = 1 if rng.random() < 0.5 else -1
        return max(0.0, true_value + sign * magnitude)

    @staticmethod
    def is_public(kind: str) -> bool:
        return kind in PUBLIC_INFORMATION

    def can_see(self, kind: str, *, own: bool = False) -> bool:
        if own:
            return True
        return self.is_public(kind)

    def build_opponent_models(
        self,
        visible: "VisibleGameState",
        memory: Optional[OpponentMemory] = None,
    ) -> Dict[int, OpponentModel]:
        """
        One model per opponent, built only from `visible`.

        Easy gets neutral defaults, Medium reads aggressiveness off public
        purchase prices, Hard reads its long-lived `OpponentMemory`.
        """
        models: Dict[int, OpponentModel] = {}
        for index, info in enumerate(visible.players):
            if info.is_self:
                continue
            if self.difficulty == "hard" and memory is not None:
                models[index] = memory.build_model(
                    index, info.id, info.money, info.money_confidence
                )
                continue

            tendencies = PlayerTendencies()
            if self.difficulty == "medium":
                player = visible.game_state.players[index]
                patterns = [
                    BidPattern(
                        auction_type=p.card.auction_type,
                        artist=p.artist,
                        amount=p.purchase_price,
                        round_number=p.purchased_round,
                        card_id=p.card.id,
                        won=True,
                    )
                    for p in player.purchases
                ]
                tendencies.aggressiveness = aggressiveness_from(patterns)
            models[index] = OpponentModel(
                player_index=index,
                player_id=info.id,
                estimated_money=info.money,
                money_confidence=info.money_confidence,
                tendencies=tendencies,
                predictability=self.default_predictability,
            )
        return models
