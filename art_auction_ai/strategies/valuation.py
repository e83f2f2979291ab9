# art_auction_ai/strategies/valuation.py
"""
Card and bid valuation shared by the Medium and Hard strategies.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ..cards import AuctionType, Card
from ..knowledge.context import DecisionContext
from ..knowledge.market import ArtistCompetitiveness, CardEvaluation, MarketAnalysis, MarketSimulator
from ..time_slicer import TimeSliceController

_AUCTION_EV_MULTIPLIER = {
    AuctionType.OPEN: 1.0,
    AuctionType.ONE_OFFER: 0.95,
    AuctionType.HIDDEN: 0.9,
    AuctionType.FIXED_PRICE: 1.1,
    AuctionType.DOUBLE: 0.85,
}

# Starting point for what a painting sold through each auction type fetches.
_AUCTION_BASE_PRICE = {
    AuctionType.OPEN: 25,
    AuctionType.ONE_OFFER: 30,
    AuctionType.HIDDEN: 20,
    AuctionType.FIXED_PRICE: 22,
    AuctionType.DOUBLE: 35,
}

_ROUND_VALUE_MULTIPLIER = [1.0, 1.2, 1.4, 1.6]
_ROUND_EV_MULTIPLIER = [0.8, 1.0, 1.2, 1.4]

_WIN_PROBABILITY_BANDS: List[Tuple[float, float]] = [
    (0.3, 0.9),
    (0.6, 0.7),
    (0.9, 0.5),
    (1.2, 0.3),
]
_COMPETITION_FACTOR = {"low": 1.2, "medium": 1.0, "high": 0.8}

_MAX_BID_STEPS = 20
MIN_CARD_VALUE = 5.0


def _round_multiplier(table: List[float], round_number: int) -> float:
    index = max(0, min(len(table) - 1, round_number - 1))
    return table[index]


def monetary_value(
    evaluation: CardEvaluation,
    competitiveness: ArtistCompetitiveness,
    round_number: int,
) -> float:
    """
    What a card is worth to its owner in money.

    Blends the auction type's typical price (scaled by strategic value), the
    artist's market rank and its projected final value.
    """
    base = _AUCTION_BASE_PRICE[evaluation.card.auction_type]
    value = base * (0.5 + 0.5 * evaluation.strategic_value)
    value += (6 - competitiveness.rank) * 3
    value += 0.3 * competitiveness.expected_final_value
    value *= _round_multiplier(_ROUND_VALUE_MULTIPLIER, round_number)
    return max(MIN_CARD_VALUE, value)


def card_ev(card: Card, market: MarketAnalysis, round_number: int) -> float:
    comp = market.for_artist(card.artist)
    remaining = market.remaining_cards[card.artist]
    ev = comp.expected_final_value * _AUCTION_EV_MULTIPLIER[card.auction_type]
    ev *= 1.0 - market.volatility * 0.2
    if remaining == 0:
        ev *= 1.3
    elif remaining < 3:
        ev *= 1.1
    elif remaining > 10:
        ev *= 0.9

    multiplier = _round_multiplier(_ROUND_EV_MULTIPLIER, round_number)
    if round_number >= 3:
        if comp.rank <= 2:
            multiplier += 0.2
        elif comp.rank >= 4:
            multiplier -= 0.1
    return max(0.0, ev * multiplier)


def win_probability(bid: float, value: float, competition: str) -> float:
    ratio = bid / max(1.0, value)
    base = 0.1
    for upper, probability in _WIN_PROBABILITY_BANDS:
        if ratio < upper:
            base = probability
            break
    return max(0.05, min(0.95, base * _COMPETITION_FACTOR.get(competition, 1.0)))


def bid_risk(bid: float, money: float, value: float) -> float:
    money_risk = bid / max(1.0, money)
    overpay_risk = max(0.0, bid - value) / max(1.0, value)
    return max(0.0, min(1.0, money_risk * 0.6 + overpay_risk * 0.4))


def bid_confidence(bid: float, money: float, competition: str) -> float:
    confidence = 0.7
    ratio = bid / max(1.0, money)
    if ratio < 0.2:
        confidence += 0.2
    elif ratio < 0.4:
        confidence += 0.1
    elif ratio > 0.6:
        confidence -= 0.2
    confidence += {"low": 0.1, "medium": 0.0, "high": -0.1}.get(competition, 0.0)
    return max(0.3, min(1.0, confidence))


def optimal_bid(
    value: float,
    money: int,
    low: int,
    high: int,
    competition: str,
    controller: Optional[TimeSliceController] = None,
) -> Optional[Dict[str, float]]:
    """
    Search [low, high] (at most 20 candidates) for the best risk-adjusted bid.

    Returns None when the range is empty.
    """
    if high < low:
        return None
    step = max(1, (high - low) // _MAX_BID_STEPS)
    best: Optional[Dict[str, float]] = None
    for amount in range(low, high + 1, step):
        if controller is not None and not controller.should_continue():
            break
        p_win = win_probability(amount, value, competition)
        confidence = bid_confidence(amount, money, competition)
        score = p_win * (value - amount) * confidence
        if best is None or score > best["score"]:
            best = {
                "amount": amount,
                "score": score,
                "win_probability": p_win,
                "confidence": confidence,
            }
    return best


def competition_from_money(money: float, opponent_money: List[float]) -> str:
    """Rich players face little competition, poor players a lot."""
    if not opponent_money:
        return "medium"
    average = sum(opponent_money) / len(opponent_money)
    if average <= 0 or money > average * 1.5:
        return "low"
    if money < average * 0.7:
        return "high"
    return "medium"


class CardValuation:
    """Per-context valuation cache; one instance per decision."""

    def __init__(self, context: DecisionContext, simulator: Optional[MarketSimulator] = None) -> None:
        self.context = context
        self.simulator = simulator or MarketSimulator()
        self._cache: Dict[str, CardEvaluation] = {
            e.card.id: e for e in context.card_evaluations
        }

    def evaluation(self, card: Card) -> CardEvaluation:
        cached = self._cache.get(card.id)
        if cached is None:
            cached = self.simulator.evaluate_card(
                card, self.context.game_state, self.context.player_index, self.context.market
            )
            self._cache[card.id] = cached
        return cached

    def estimated_value(self, card: Card) -> float:
        comp = self.context.market.for_artist(card.artist)
        return monetary_value(self.evaluation(card), comp, self.context.round_number)

    def card_ev(self, card: Card) -> float:
        return card_ev(card, self.context.market, self.context.round_number)

    def competition_for(self) -> str:
        opponents = [
            info.money for info in self.context.visible.players if not info.is_self
        ]
        return competition_from_money(self.context.money, opponents)
