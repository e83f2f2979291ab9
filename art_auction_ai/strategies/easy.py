# art_auction_ai/strategies/easy.py
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from ..auction_turns import active_auction, current_high_bid
from ..cards import ARTISTS, AuctionType, Card, ROUND_ENDING_CARD_COUNT
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

logger = logging.getLogger(__name__)

# Fraction of money an Easy player is willing to put into one auction.
_BID_CAP_FRACTION = {
    AuctionType.OPEN: 0.3,
    AuctionType.ONE_OFFER: 0.25,
}
_DEFAULT_CAP_FRACTION = 0.2
_HIDDEN_BID_CAP = 25
_MIN_FIXED_PRICE = 10


def _money_pressure(money: int) -> float:
    return max(0.0, min(1.0, 1 - money / 100))


def matching_double_cards(hand: List[Card], double_card: Card) -> List[Card]:
    """Cards that may be offered alongside `double_card`."""
    return [
        c
        for c in hand
        if c.artist == double_card.artist and c.auction_type != AuctionType.DOUBLE
    ]


class EasyStrategy:
    """
    Randomised but legal play, in the spirit of `RandomAgent`.

    Bids are uniform draws under soft money caps and roughly 40% of auctions
    get a bid at all.
    """

    difficulty = "easy"
    name = "Easy AI"

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed if seed is not None else random.randrange(2**31)
        self.player_index: Optional[int] = None

    # -- lifecycle -------------------------------------------------------

    def initialize(self, game_state: GameState, player_index: int) -> None:
        self.player_index = player_index

    def update(self, context: DecisionContext) -> None:
        # Easy keeps no state between decisions.
        return None

    def cleanup(self) -> None:
        self.player_index = None

    def get_thinking_delay(self) -> ThinkingDelay:
        return ThinkingDelay(min_ms=200, max_ms=1500, distribution="uniform")

    # -- decisions -------------------------------------------------------

    def make_decision(
        self,
        decision_type: DecisionType,
        context: DecisionContext,
        options: Optional[DecisionOptions] = None,
    ) -> Decision:
        rng = decision_rng(self.seed, decision_type, context.game_state, context.player_index)
        if decision_type == DecisionType.CARD_PLAY:
            return self.choose_card(context, rng)
        if decision_type == DecisionType.BID:
            return self.choose_bid(context, rng)
        if decision_type == DecisionType.HIDDEN_BID:
            return self.choose_hidden_bid(context, rng)
        if decision_type == DecisionType.FIXED_PRICE:
            return self.choose_fixed_price(context, rng)
        if decision_type == DecisionType.BUY:
            return self.choose_buy(context, rng)
        if decision_type == DecisionType.DOUBLE_OFFER:
            return self.choose_double_offer(context, rng)
        raise ValueError(f"Unknown decision type: {decision_type}")

    def choose_card(self, context: DecisionContext, rng: random.Random) -> CardPlayDecision:
        hand = context.hand
        if not hand:
            return CardPlayDecision(
                card=None, confidence=0.1, reasoning="Easy AI: no cards to play"
            )

        method = rng.randint(1, 4)
        if method == 1:
            card, how = rng.choice(hand), "randomly selected"
        elif method == 2:
            artists = [a for a in ARTISTS if any(c.artist == a for c in hand)]
            artist = rng.choice(artists)
            card = rng.choice([c for c in hand if c.artist == artist])
            how = "picked a random artist"
        elif method == 3:
            # Every auction type is equally attractive to an Easy player.
            card, how = rng.choices(hand, weights=[0.2] * len(hand), k=1)[0], "picked by auction type"
        else:
            decent = [c for c in hand if not self._obviously_bad(c, context, rng)]
            card = rng.choice(decent or hand)
            how = "chose a card that seemed safe"

        return CardPlayDecision(
            card=card,
            confidence=round(0.3 + rng.random() * 0.3, 3),
            reasoning=f"Easy AI: {how} ({card})",
        )

    @staticmethod
    def _obviously_bad(card: Card, context: DecisionContext, rng: random.Random) -> bool:
        played = context.game_state.round.cards_played_per_artist
        if played.get(card.artist, 0) >= ROUND_ENDING_CARD_COUNT - 1:
            return rng.random() > 0.3
        total = sum(played.values())
        if context.round_number >= 3 and total > 20 and len(context.hand) <= 2:
            return rng.random() > 0.4
        return False

    def _bid_range(self, money: int, current: int, auction_type: AuctionType) -> Tuple[int, int]:
        fraction = _BID_CAP_FRACTION.get(auction_type, _DEFAULT_CAP_FRACTION)
        return current + 1, min(money, int(money * fraction))

    def _should_bid(self, money: int, current: int, auction_type: AuctionType, rng: random.Random) -> bool:
        tendency = rng.random()
        if current > money * 0.5:
            tendency -= 0.3
        if auction_type == AuctionType.OPEN:
            tendency += 0.2
        if _money_pressure(money) > 0.7:
            tendency -= 0.2
        return tendency < 0.4

    def choose_bid(self, context: DecisionContext, rng: random.Random) -> BidDecision:
        auction = active_auction(context.auction)
        money = context.money
        current = current_high_bid(auction)

        if isinstance(auction, OneOfferAuction) and auction.phase == "auctioneer_decision":
            return self._auctioneer_decision(auction, money, rng)

        auction_type = auction.type if auction is not None else AuctionType.OPEN
        low, high = self._bid_range(money, current, auction_type)
        if low > high or not self._should_bid(money, current, auction_type, rng):
            return BidDecision(
                action=BidAction.PASS,
                confidence=round(0.3 + rng.random() * 0.3, 3),
                reasoning="Easy AI: decided not to bid",
            )

        amount = rng.randint(low, high)
        ratio = amount / max(1, money)
        spread = 0.3 if ratio < 0.2 else 0.2 if ratio < 0.5 else 0.1
        return BidDecision(
            action=BidAction.BID,
            amount=amount,
            max_bid=high,
            confidence=round(0.4 + rng.random() * spread, 3),
            reasoning=f"Easy AI: random bid of {amount}",
        )

    def _auctioneer_decision(self, auction: OneOfferAuction, money: int, rng: random.Random) -> BidDecision:
        if auction.current_bid <= 0:
            return BidDecision(
                action=BidAction.TAKE_FREE,
                confidence=0.9,
                reasoning="Easy AI: nobody bid, keeping the painting",
            )
        outbid = auction.current_bid + 1
        if outbid <= money * 0.3 and rng.random() < 0.3:
            return BidDecision(
                action=BidAction.OUTBID,
                amount=outbid,
                confidence=0.4,
                reasoning=f"Easy AI: outbidding at {outbid}",
            )
        return BidDecision(
            action=BidAction.ACCEPT,
            amount=auction.current_bid,
            confidence=0.6,
            reasoning="Easy AI: accepting the offer",
        )

    def choose_hidden_bid(self, context: DecisionContext, rng: random.Random) -> HiddenBidDecision:
        money = context.money
        if money <= 0 or rng.random() < 0.6:
            return HiddenBidDecision(amount=0, confidence=0.5, reasoning="Easy AI: sitting this one out")
        amount = rng.randint(1, min(money, _HIDDEN_BID_CAP))
        return HiddenBidDecision(
            amount=amount, confidence=0.4, reasoning=f"Easy AI: sealed bid of {amount}"
        )

    def choose_fixed_price(self, context: DecisionContext, rng: random.Random) -> FixedPriceDecision:
        money = context.money
        high = max(_MIN_FIXED_PRICE, int(money * 0.6))
        price = rng.randint(_MIN_FIXED_PRICE, high)
        # A price the auctioneer cannot cover is not allowed.
        price = max(1, min(price, money)) if money > 0 else 1
        return FixedPriceDecision(
            price=price,
            confidence=0.4,
            price_reasoning="optimal",
            reasoning=f"Easy AI: asking {price}",
        )

    def choose_buy(self, context: DecisionContext, rng: random.Random) -> BidDecision:
        auction = active_auction(context.auction)
        price = auction.price if isinstance(auction, FixedPriceAuction) else 0
        if 0 < price <= context.money and rng.random() < 0.5:
            return BidDecision(
                action=BidAction.BUY,
                amount=price,
                confidence=0.5,
                reasoning=f"Easy AI: buying at {price}",
            )
        return BidDecision(
            action=BidAction.PASS, confidence=0.5, reasoning="Easy AI: not buying"
        )

    def choose_double_offer(self, context: DecisionContext, rng: random.Random) -> DoubleOfferDecision:
        auction = context.auction
        if not isinstance(auction, DoubleAuction):
            return DoubleOfferDecision(action="decline", confidence=0.5, reasoning="Easy AI: no double auction")
        matching = matching_double_cards(context.hand, auction.double_card)
        if matching and rng.random() < 0.5:
            card = rng.choice(matching)
            return DoubleOfferDecision(
                action="offer",
                card=card,
                confidence=0.5,
                strategy="force_auction",
                reasoning=f"Easy AI: offering {card}",
            )
        return DoubleOfferDecision(
            action="decline", confidence=0.5, strategy="conserve_cards", reasoning="Easy AI: declining"
        )
