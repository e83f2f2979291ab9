# art_auction_ai/strategies/medium.py
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from ..auction_turns import active_auction, cards_on_offer, current_high_bid, turn_position
from ..cards import Card, ROUND_ENDING_CARD_COUNT
from ..decisions import (
    BidAction,
    BidDecision,
    CardPlayDecision,
    Decision,
    DecisionType,
    DoubleOfferDecision,
    FixedPriceDecision,
    HiddenBidDecision,
)
from ..knowledge.context import DecisionContext
from ..state import DoubleAuction, FixedPriceAuction, GameState, OneOfferAuction
from .base import DecisionOptions, ThinkingDelay, decision_rng
from .easy import matching_double_cards
from .valuation import CardValuation, optimal_bid

logger = logging.getLogger(__name__)

_POSITION_MULTIPLIER = {"first": 0.8, "middle": 1.0, "last": 1.2, "auctioneer": 0.6}
_MIN_FIXED_PRICE = 10


class MediumStrategy:
    """
    Expected-value play with a simple read of the market.

    Bids a fraction of each card's estimated value (less when competition is
    high) and never more than that value. No opponent modelling.
    """

    difficulty = "medium"
    name = "Medium AI"

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed if seed is not None else random.randrange(2**31)
        self.player_index: Optional[int] = None

    def initialize(self, game_state: GameState, player_index: int) -> None:
        self.player_index = player_index

    def update(self, context: DecisionContext) -> None:
        return None

    def cleanup(self) -> None:
        self.player_index = None

    def get_thinking_delay(self) -> ThinkingDelay:
        return ThinkingDelay(min_ms=1500, max_ms=5000, distribution="normal")

    def make_decision(
        self,
        decision_type: DecisionType,
        context: DecisionContext,
        options: Optional[DecisionOptions] = None,
    ) -> Decision:
        rng = decision_rng(self.seed, decision_type, context.game_state, context.player_index)
        valuation = CardValuation(context)
        hint = options.estimated_value if options is not None else None

        if decision_type == DecisionType.CARD_PLAY:
            return self.choose_card(context, valuation)
        value = self._prize_value(context, valuation, hint)
        if decision_type == DecisionType.BID:
            return self.choose_bid(context, valuation, value)
        if decision_type == DecisionType.HIDDEN_BID:
            return self.choose_hidden_bid(context, value, rng)
        if decision_type == DecisionType.FIXED_PRICE:
            return self.choose_fixed_price(context, valuation, value)
        if decision_type == DecisionType.BUY:
            return self.choose_buy(context, value)
        if decision_type == DecisionType.DOUBLE_OFFER:
            return self.choose_double_offer(context, valuation, rng)
        raise ValueError(f"Unknown decision type: {decision_type}")

    @staticmethod
    def _prize_value(
        context: DecisionContext, valuation: CardValuation, hint: Optional[float]
    ) -> float:
        if hint is not None:
            return float(hint)
        return sum(valuation.estimated_value(c) for c in cards_on_offer(context.auction))

    # -- card play -------------------------------------------------------

    def choose_card(self, context: DecisionContext, valuation: CardValuation) -> CardPlayDecision:
        hand = context.hand
        if not hand:
            return CardPlayDecision(card=None, confidence=0.1, reasoning="Medium AI: empty hand")

        safe = self._safe_cards(context, valuation) or list(hand)
        scored: List[Tuple[float, Card]] = []
        for card in safe:
            context.controller.checkpoint()
            evaluation = valuation.evaluation(card)
            scored.append((valuation.estimated_value(card) * evaluation.confidence, card))
        # Earlier cards in hand win ties so the choice is stable.
        best_score, best = max(scored, key=lambda pair: pair[0])
        evaluation = valuation.evaluation(best)
        return CardPlayDecision(
            card=best,
            confidence=round(evaluation.confidence, 3),
            reasoning=f"Medium AI: best expected value {best_score:.1f} with {best}",
        )

    @staticmethod
    def _safe_cards(context: DecisionContext, valuation: CardValuation) -> List[Card]:
        played = context.game_state.round.cards_played_per_artist
        safe: List[Card] = []
        for card in context.hand:
            evaluation = valuation.evaluation(card)
            if played.get(card.artist, 0) >= ROUND_ENDING_CARD_COUNT - 1:
                # Playing the fifth card ends the round unsold.
                if evaluation.strategic_value <= 0.8:
                    continue
            if context.round_number >= 3 and evaluation.risk_level > 0.8:
                continue
            if evaluation.strategic_value > 0.3:
                safe.append(card)
        return safe

    # -- bidding ---------------------------------------------------------

    def choose_bid(
        self, context: DecisionContext, valuation: CardValuation, value: float
    ) -> BidDecision:
        auction = active_auction(context.auction)
        money = context.money
        current = current_high_bid(context.auction)
        competition = valuation.competition_for()

        if isinstance(auction, OneOfferAuction):
            if auction.phase == "auctioneer_decision":
                return self._auctioneer_decision(auction, money, value)
            return self._one_offer_bid(context, auction, money, current, value)

        evaluation = valuation.evaluation(auction.card) if auction is not None else None
        confidence = evaluation.confidence if evaluation is not None else 0.5
        if value <= current or confidence <= 0.5:
            return BidDecision(
                action=BidAction.PASS,
                confidence=0.7,
                reasoning=f"Medium AI: value {value:.0f} does not justify beating {current}",
            )

        fraction = 0.65 if competition == "high" else 0.8
        cap = min(money, int(value * fraction))
        best = optimal_bid(value, money, current + 1, cap, competition, context.controller)
        if best is None:
            return BidDecision(
                action=BidAction.PASS,
                confidence=0.6,
                reasoning=f"Medium AI: would overpay above {cap}",
            )
        amount = int(best["amount"])
        return BidDecision(
            action=BidAction.BID,
            amount=amount,
            max_bid=cap,
            confidence=round(best["confidence"], 3),
            reasoning=f"Medium AI: bidding {amount} on estimated value {value:.0f}",
        )

    def _one_offer_bid(
        self,
        context: DecisionContext,
        auction: OneOfferAuction,
        money: int,
        current: int,
        value: float,
    ) -> BidDecision:
        position = turn_position(auction, context.player_index)
        max_bid = min(int(value), int(value * _POSITION_MULTIPLIER[position] * 0.9))
        if max_bid > current and max_bid <= money * 0.8:
            return BidDecision(
                action=BidAction.BID,
                amount=max_bid,
                max_bid=max_bid,
                confidence=0.7,
                reasoning=f"Medium AI: single offer of {max_bid} from {position} seat",
            )
        return BidDecision(
            action=BidAction.PASS,
            confidence=0.6,
            reasoning=f"Medium AI: one offer above {current} not worth it",
        )

    @staticmethod
    def _auctioneer_decision(auction: OneOfferAuction, money: int, value: float) -> BidDecision:
        if auction.current_bid <= 0:
            return BidDecision(
                action=BidAction.TAKE_FREE, confidence=0.9, reasoning="Medium AI: no offers, taking it"
            )
        outbid = auction.current_bid + 1
        if value > outbid * 1.1 and outbid <= money * 0.8:
            return BidDecision(
                action=BidAction.OUTBID,
                amount=outbid,
                confidence=0.7,
                reasoning=f"Medium AI: painting worth {value:.0f}, outbidding at {outbid}",
            )
        return BidDecision(
            action=BidAction.ACCEPT,
            amount=auction.current_bid,
            confidence=0.7,
            reasoning=f"Medium AI: selling for {auction.current_bid}",
        )

    def choose_hidden_bid(
        self, context: DecisionContext, value: float, rng: random.Random
    ) -> HiddenBidDecision:
        money = context.money
        amount = int(value * 0.6 * (1 + rng.uniform(-0.1, 0.1)))
        amount = max(0, min(money, amount, int(value)))
        return HiddenBidDecision(
            amount=amount,
            confidence=0.6,
            reasoning=f"Medium AI: sealed bid at 60% of value {value:.0f}",
        )

    def choose_fixed_price(
        self, context: DecisionContext, valuation: CardValuation, value: float
    ) -> FixedPriceDecision:
        money = context.money
        competition = valuation.competition_for()
        price = value * 0.7
        if competition == "high":
            price *= 0.8
        elif competition == "low":
            price *= 1.2
        price = max(_MIN_FIXED_PRICE, min(price, money * 0.8))
        final = max(1, min(int(price), money)) if money > 0 else 1
        return FixedPriceDecision(
            price=final,
            confidence=0.65,
            price_reasoning="optimal" if competition == "medium" else
            ("aggressive" if competition == "low" else "conservative"),
            reasoning=f"Medium AI: price {final} from value {value:.0f}",
        )

    @staticmethod
    def choose_buy(context: DecisionContext, value: float) -> BidDecision:
        auction = active_auction(context.auction)
        price = auction.price if isinstance(auction, FixedPriceAuction) else 0
        if 0 < price <= context.money and value > price * 1.2:
            return BidDecision(
                action=BidAction.BUY,
                amount=price,
                confidence=0.7,
                reasoning=f"Medium AI: {price} is a bargain for {value:.0f}",
            )
        return BidDecision(
            action=BidAction.PASS,
            confidence=0.6,
            reasoning=f"Medium AI: {price} too expensive",
        )

    def choose_double_offer(
        self, context: DecisionContext, valuation: CardValuation, rng: random.Random
    ) -> DoubleOfferDecision:
        auction = context.auction
        if not isinstance(auction, DoubleAuction):
            return DoubleOfferDecision(action="decline", confidence=0.5, reasoning="Medium AI: no double auction")
        matching = matching_double_cards(context.hand, auction.double_card)
        if not matching:
            return DoubleOfferDecision(
                action="decline", confidence=0.9, reasoning="Medium AI: no matching card"
            )
        best = max(matching, key=valuation.estimated_value)
        comp = context.market.for_artist(auction.double_card.artist)
        if comp.cards_needed_for_value <= 2:
            return DoubleOfferDecision(
                action="offer",
                card=best,
                confidence=0.7,
                strategy="control_artist",
                reasoning=f"Medium AI: pushing {comp.artist.value} into the top three",
            )
        if comp.rank <= 2 and len(matching) > 1 and rng.random() < 0.4:
            return DoubleOfferDecision(
                action="offer",
                card=best,
                confidence=0.5,
                strategy="opposition",
                reasoning="Medium AI: cashing in a leading artist",
            )
        return DoubleOfferDecision(
            action="decline",
            confidence=0.6,
            strategy="conserve_cards",
            reasoning="Medium AI: keeping the card for later",
        )
