# art_auction_ai/strategies/hard.py
"""
Hard AI: opponent modelling, game-theoretic bidding and bluffing.

Long-lived state (opponent memory, personality drift) only changes inside
`update()`, and only once per distinct snapshot, so asking for the same
decision twice on the same snapshot gives the same answer.
"""
from __future__ import annotations

import logging
import random
from collections import OrderedDict, Counter
from typing import Dict, List, Optional, Tuple

from ..auction_turns import active_auction, cards_on_offer, current_high_bid, turn_position
from ..cards import ARTISTS, Artist, AuctionType, Card
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
from ..knowledge.information_filter import InformationFilter
from ..knowledge.market import CardEvaluation
from ..knowledge.opponents import OpponentMemory, OpponentModel
from ..probability import weighted_average
from ..state import DoubleAuction, FixedPriceAuction, GameState, OneOfferAuction
from . import deception
from .base import DecisionOptions, ThinkingDelay, decision_rng, snapshot_fingerprint
from .easy import matching_double_cards
from .personality import TEMPLATES, AIPersonality, adapt, describe
from .valuation import CardValuation

logger = logging.getLogger(__name__)

_POSITION_MULTIPLIER = {"first": 0.9, "middle": 1.0, "last": 1.1, "auctioneer": 0.8}
_OPEN_BID_CAP_FRACTION = 0.3
_MIXED_STRATEGY_DEVIATION = 0.4
_PRICE_THRESHOLDS = (20, 30, 40, 50)
_MIN_FIXED_PRICE = 10
_MAX_OWN_ACTIONS = 20

SUB_STRATEGIES = ("value_optimized", "strategic_control", "psychological", "opposition")


def psychological_price(price: float) -> int:
    """Just under a round threshold when close above it, else the nearest 5."""
    for threshold in _PRICE_THRESHOLDS:
        if threshold < price <= threshold + 3:
            return threshold - 1
    return int(price / 5 + 0.5) * 5


def nash_reference(true_value: float, opponents: List[OpponentModel], competition: str) -> float:
    """
    Midpoint between our value and what risk-averse opponents would pay,
    shaded down when competition is high.
    """
    if opponents:
        opponent_value = weighted_average([true_value * (1 - o.risk_tolerance) for o in opponents])
    else:
        opponent_value = true_value
    discount = 0.7 if competition == "high" else 0.9
    return (true_value + opponent_value) / 2 * discount


def _mean_aggressiveness(opponents: List[OpponentModel]) -> float:
    if not opponents:
        return 0.5
    return weighted_average([o.tendencies.aggressiveness for o in opponents])


class HardStrategy:
    """
    Personality-driven play on top of Medium's valuation.

    Card play picks one of four sub-strategies from the personality; bids
    start from a Nash reference and are mixed with seeded bluffs.
    """

    difficulty = "hard"
    name = "Hard AI"

    def __init__(self, seed: Optional[int] = None, personality: Optional[AIPersonality] = None) -> None:
        self.seed = seed if seed is not None else random.randrange(2**31)
        self.personality = personality or TEMPLATES["balanced"]
        self.opponent_memory = OpponentMemory()
        self.player_index: Optional[int] = None
        self._filter = InformationFilter("hard")
        self._last_update: Optional[str] = None
        self._own_actions: "OrderedDict[str, str]" = OrderedDict()
        self._stats: Counter = Counter()

    # -- lifecycle -------------------------------------------------------

    def initialize(self, game_state: GameState, player_index: int) -> None:
        self.player_index = player_index
        self.opponent_memory.start_game()
        self._last_update = None
        self._own_actions.clear()
        logger.debug(
            "Hard AI %d initialised (%s)", player_index, describe(self.personality)
        )

    def update(self, context: DecisionContext) -> None:
        """Observe the snapshot, drift personality, refresh opponent models."""
        fingerprint = snapshot_fingerprint(context.game_state, context.player_index)
        if fingerprint != self._last_update:
            observed = self.opponent_memory.observe(context.game_state, context.player_index)
            others = [p.money for p in context.visible.players if not p.is_self]
            if others:
                self.personality = adapt(
                    self.personality, context.money, weighted_average(others)
                )
            self._last_update = fingerprint
            if observed:
                logger.debug("Hard AI %d observed %d new actions", context.player_index, observed)
        context.opponent_models = self._filter.build_opponent_models(
            context.visible, self.opponent_memory
        )

    def cleanup(self) -> None:
        self.player_index = None
        self._last_update = None
        self._own_actions.clear()

    def get_thinking_delay(self) -> ThinkingDelay:
        scale = 0.75 + 0.5 * self.personality.patience
        return ThinkingDelay(min_ms=3000 * scale, max_ms=7000 * scale, distribution="normal")

    def stats(self) -> Dict[str, object]:
        return {
            "personality": self.personality.to_dict(),
            "decisions": dict(self._stats),
            "memory": self.opponent_memory.stats(),
        }

    # -- dispatch --------------------------------------------------------

    def make_decision(
        self,
        decision_type: DecisionType,
        context: DecisionContext,
        options: Optional[DecisionOptions] = None,
    ) -> Decision:
        rng = decision_rng(self.seed, decision_type, context.game_state, context.player_index)
        valuation = CardValuation(context)
        hint = options.estimated_value if options is not None else None
        key = f"{decision_type.value}|{snapshot_fingerprint(context.game_state, context.player_index)}"
        recent = [a for k, a in self._own_actions.items() if k != key][-10:]

        if decision_type == DecisionType.CARD_PLAY:
            decision: Decision = self.choose_card(context, valuation, rng)
        else:
            value = self._true_value(context, valuation, hint)
            opponents = list(context.opponent_models.values())
            if decision_type == DecisionType.BID:
                decision = self.choose_bid(context, valuation, value, opponents, rng)
            elif decision_type == DecisionType.HIDDEN_BID:
                decision = self.choose_hidden_bid(context, valuation, value, opponents, recent, rng)
            elif decision_type == DecisionType.FIXED_PRICE:
                decision = self.choose_fixed_price(context, value, opponents)
            elif decision_type == DecisionType.BUY:
                decision = self.choose_buy(context, value)
            elif decision_type == DecisionType.DOUBLE_OFFER:
                decision = self.choose_double_offer(context, valuation, rng)
            else:
                raise ValueError(f"Unknown decision type: {decision_type}")

        self._remember(key, decision)
        self._stats[decision_type.value] += 1
        return decision

    def _remember(self, key: str, decision: Decision) -> None:
        action = getattr(decision, "action", decision.type)
        self._own_actions[key] = getattr(action, "value", action)
        self._own_actions.move_to_end(key)
        while len(self._own_actions) > _MAX_OWN_ACTIONS:
            self._own_actions.popitem(last=False)

    @staticmethod
    def _true_value(
        context: DecisionContext, valuation: CardValuation, hint: Optional[float]
    ) -> float:
        if hint is not None:
            return float(hint)
        return sum(valuation.estimated_value(c) for c in cards_on_offer(context.auction))

    # -- card play -------------------------------------------------------

    def pick_sub_strategy(self, rng: random.Random) -> str:
        p = self.personality
        if p.aggressiveness > 0.7:
            return "strategic_control"
        if p.patience > 0.7:
            return "value_optimized"
        if p.bluffing_frequency > 0.5:
            return "psychological"
        return "opposition" if rng.random() < 0.5 else "value_optimized"

    def choose_card(
        self, context: DecisionContext, valuation: CardValuation, rng: random.Random
    ) -> CardPlayDecision:
        hand = context.hand
        if not hand:
            return CardPlayDecision(card=None, confidence=0.1, reasoning="Hard AI: empty hand")

        candidates: List[Tuple[Card, CardEvaluation, float]] = []
        for card in hand:
            context.controller.checkpoint()
            candidates.append((card, valuation.evaluation(card), valuation.estimated_value(card)))

        sub_strategy = self.pick_sub_strategy(rng)
        if sub_strategy == "strategic_control":
            card, evaluation, value = max(candidates, key=lambda c: c[1].artist_control)
        elif sub_strategy == "psychological":
            card, evaluation, value = self._psychological_card(candidates)
        elif sub_strategy == "opposition":
            card, evaluation, value = self._opposition_card(candidates, context)
        else:
            card, evaluation, value = max(candidates, key=lambda c: c[2] * c[1].confidence)

        self._stats[f"card_play:{sub_strategy}"] += 1
        return CardPlayDecision(
            card=card,
            confidence=round(min(1.0, evaluation.confidence * 0.9 + 0.1), 3),
            reasoning=f"Hard AI: {sub_strategy} play of {card} (value {value:.0f})",
        )

    @staticmethod
    def _psychological_card(
        candidates: List[Tuple[Card, CardEvaluation, float]]
    ) -> Tuple[Card, CardEvaluation, float]:
        # Looks cheap to the table but matters to us.
        for candidate in candidates:
            if candidate[1].strategic_value > 0.6 and candidate[1].base_value < 30:
                return candidate
        for candidate in candidates:
            if candidate[0].auction_type in (AuctionType.HIDDEN, AuctionType.DOUBLE):
                return candidate
        return candidates[0]

    @staticmethod
    def _opposition_card(
        candidates: List[Tuple[Card, CardEvaluation, float]], context: DecisionContext
    ) -> Tuple[Card, CardEvaluation, float]:
        opponents = list(context.opponent_models.values())
        bias: Dict[Artist, float] = {a: 0.0 for a in ARTISTS}
        if opponents:
            for artist in ARTISTS:
                bias[artist] = weighted_average([o.artist_preferences[artist] for o in opponents])
        # Artists the others ignore are the ones they will undervalue.
        return max(
            candidates,
            key=lambda c: c[2] * (1 - bias[c[0].artist]) * c[1].confidence,
        )

    # -- bidding ---------------------------------------------------------

    def _mixed_amount(
        self, true_value: float, nash: float, strength: float, rng: random.Random
    ) -> Tuple[float, str]:
        if rng.random() < self.personality.bluffing_frequency * strength:
            direction = 1 if rng.random() < 0.5 else -1
            return true_value * (1 + direction * _MIXED_STRATEGY_DEVIATION * strength), "bluff"
        if rng.random() < 0.5:
            return true_value, "honest"
        return nash, "nash"

    def _personality_adjust(self, amount: float) -> float:
        p = self.personality
        if p.aggressiveness > 0.7:
            amount *= 1.1
        elif p.aggressiveness < 0.3:
            amount *= 0.9
        if p.risk_tolerance > 0.7:
            amount *= 1.05
        return amount

    def choose_bid(
        self,
        context: DecisionContext,
        valuation: CardValuation,
        value: float,
        opponents: List[OpponentModel],
        rng: random.Random,
    ) -> BidDecision:
        auction = active_auction(context.auction)
        if isinstance(auction, OneOfferAuction):
            if auction.phase == "auctioneer_decision":
                return self._auctioneer_decision(auction, context.money, value)
            return self._positional_bid(context, auction, value)
        return self._open_bid(context, valuation, value, opponents, rng)

    def _open_bid(
        self,
        context: DecisionContext,
        valuation: CardValuation,
        value: float,
        opponents: List[OpponentModel],
        rng: random.Random,
    ) -> BidDecision:
        money = context.money
        current = current_high_bid(context.auction)
        aggression = _mean_aggressiveness(opponents)
        opponent_factor = 1.1 if aggression > 0.6 else 0.9 if aggression < 0.4 else 1.0
        cap = min(money, int(money * _OPEN_BID_CAP_FRACTION), int(value * opponent_factor))
        low = current + 1
        if value <= current or cap < low:
            return BidDecision(
                action=BidAction.PASS,
                confidence=0.7,
                reasoning=f"Hard AI: ceiling {cap} does not beat {current}",
            )

        competition = valuation.competition_for()
        nash = nash_reference(value, opponents, competition)
        card = auction_card(context)
        strength = deception.bluff_strength(value, card.auction_type if card else AuctionType.OPEN, opponents)
        amount, style = self._mixed_amount(value, nash, strength, rng)
        amount = self._personality_adjust(amount)
        final = max(low, min(cap, int(amount)))
        self._stats[f"bid:{style}"] += 1
        return BidDecision(
            action=BidAction.BID,
            amount=final,
            max_bid=cap,
            confidence=0.8,
            reasoning=f"Hard AI: {style} bid {final} (Nash {nash:.1f}, ceiling {cap})",
        )

    def _positional_bid(
        self, context: DecisionContext, auction: OneOfferAuction, value: float
    ) -> BidDecision:
        position = turn_position(auction, context.player_index)
        amount = value * _POSITION_MULTIPLIER[position]
        if position == "auctioneer" and self.personality.patience > 0.6:
            amount *= 0.8
        elif position == "last" and self.personality.aggressiveness > 0.7:
            amount *= 1.2
        offer = int(amount)
        if auction.current_bid < offer <= context.money:
            return BidDecision(
                action=BidAction.BID,
                amount=offer,
                max_bid=offer,
                confidence=0.8,
                reasoning=f"Hard AI: positional offer of {offer} from the {position} seat",
            )
        return BidDecision(
            action=BidAction.PASS,
            confidence=0.6,
            reasoning=f"Hard AI: {position} seat gives no profitable offer",
        )

    def _auctioneer_decision(self, auction: OneOfferAuction, money: int, value: float) -> BidDecision:
        if auction.current_bid <= 0:
            return BidDecision(
                action=BidAction.TAKE_FREE, confidence=0.95, reasoning="Hard AI: no offers, taking it"
            )
        outbid = auction.current_bid + 1
        threshold = 1.1 - 0.1 * (self.personality.aggressiveness - 0.5)
        if outbid <= money and value > outbid * threshold:
            return BidDecision(
                action=BidAction.OUTBID,
                amount=outbid,
                confidence=0.75,
                reasoning=f"Hard AI: offer {auction.current_bid} undervalues a {value:.0f} painting",
            )
        return BidDecision(
            action=BidAction.ACCEPT,
            amount=auction.current_bid,
            confidence=0.8,
            reasoning=f"Hard AI: {auction.current_bid} is a good sale",
        )

    def choose_hidden_bid(
        self,
        context: DecisionContext,
        valuation: CardValuation,
        value: float,
        opponents: List[OpponentModel],
        recent_actions: List[str],
        rng: random.Random,
    ) -> HiddenBidDecision:
        money = context.money
        if money <= 0:
            return HiddenBidDecision(amount=0, confidence=0.9, reasoning="Hard AI: no money")

        nash = nash_reference(value, opponents, valuation.competition_for())
        plan = deception.should_bluff(
            self.personality.bluffing_frequency,
            AuctionType.HIDDEN,
            value,
            opponents,
            context.importance,
            rng,
        )
        bluff_factor = 0.0
        if plan.should_bluff:
            ceiling = max(0, min(money, int(value * 1.5)))
            amount = float(
                deception.deceptive_bid(value, plan.strength, 0, ceiling, AuctionType.HIDDEN, rng).amount
            )
            bluff_factor = plan.strength
        else:
            amount, _ = self._mixed_amount(value, nash, plan.strength or 0.5, rng)

        pattern = deception.should_break_pattern(recent_actions, rng)
        if pattern.should_break and pattern.break_type in ("randomize", "exaggerate"):
            amount *= rng.uniform(0.85, 1.15)

        final = max(0, min(money, int(amount)))
        return HiddenBidDecision(
            amount=final,
            confidence=0.8,
            bluff_factor=round(bluff_factor, 3),
            reasoning=f"Hard AI: sealed bid {final} (Nash {nash:.1f}; {plan.reasoning})",
        )

    def choose_fixed_price(
        self, context: DecisionContext, value: float, opponents: List[OpponentModel]
    ) -> FixedPriceDecision:
        money = context.money
        bids = [
            min(o.estimated_money * o.tendencies.aggressiveness, money * 1.5) for o in opponents
        ] or [value * 0.5]
        max_bid, avg_bid = max(bids), weighted_average(bids)

        if self.personality.aggressiveness > 0.7 and max_bid > value:
            price, style = min(max_bid + 5, int(value * 1.2)), "aggressive"
        elif self.personality.patience > 0.7:
            price, style = int(avg_bid * 0.8), "conservative"
        else:
            price, style = int(value * 0.7), "optimal"
        if money < 20:
            style = "desperate"

        price = max(_MIN_FIXED_PRICE, min(psychological_price(price), money * 0.8))
        final = max(1, min(int(price), money)) if money > 0 else 1
        return FixedPriceDecision(
            price=final,
            confidence=0.8,
            price_reasoning=style,
            reasoning=f"Hard AI: {style} price {final} against opponent ceiling {max_bid:.0f}",
        )

    def choose_buy(self, context: DecisionContext, value: float) -> BidDecision:
        auction = active_auction(context.auction)
        price = auction.price if isinstance(auction, FixedPriceAuction) else 0
        threshold = 1.2 - 0.2 * (self.personality.aggressiveness - 0.5)
        if 0 < price <= context.money and value > price * threshold:
            return BidDecision(
                action=BidAction.BUY,
                amount=price,
                confidence=0.8,
                reasoning=f"Hard AI: buying at {price}, worth {value:.0f}",
            )
        return BidDecision(
            action=BidAction.PASS, confidence=0.7, reasoning=f"Hard AI: {price} leaves no margin"
        )

    def choose_double_offer(
        self, context: DecisionContext, valuation: CardValuation, rng: random.Random
    ) -> DoubleOfferDecision:
        auction = context.auction
        if not isinstance(auction, DoubleAuction):
            return DoubleOfferDecision(action="decline", confidence=0.5, reasoning="Hard AI: no double auction")
        matching = matching_double_cards(context.hand, auction.double_card)
        if not matching:
            return DoubleOfferDecision(
                action="decline", confidence=0.9, strategy="conserve_cards",
                reasoning="Hard AI: no matching card",
            )

        market = context.market
        comp = market.for_artist(auction.double_card.artist)
        control = 0.8 if comp.cards_needed_for_value <= 2 else 0.3
        risk = 0.7 if comp.rank >= 4 else 0.3
        advantage = 0.5
        if comp.rank <= 2:
            advantage += 0.3
        elif comp.rank >= 4:
            advantage -= 0.2
        if market.market_state == "emerging":
            advantage += 0.2
        elif market.market_state == "consolidated":
            advantage -= 0.1
        advantage = max(0.0, min(1.0, advantage))

        best = max(matching, key=valuation.estimated_value)
        p = self.personality
        if p.aggressiveness > 0.8 and control > 0.7:
            action, strategy, card = "offer", "control_artist", rng.choice(matching)
        elif p.patience > 0.8 and risk > 0.6:
            action, strategy, card = "decline", "conserve_cards", None
        elif control * advantage > risk * (1 - advantage):
            action, strategy, card = "offer", "control_artist", best
        elif advantage > 0.6 and p.aggressiveness > 0.6:
            action, strategy, card = "offer", "force_auction", best
        else:
            action, strategy, card = "decline", "conserve_cards", None

        return DoubleOfferDecision(
            action=action,
            card=card,
            confidence=0.8,
            strategy=strategy,
            reasoning=f"Hard AI: {strategy} (control {control:.1f}, risk {risk:.1f}, advantage {advantage:.2f})",
        )


def auction_card(context: DecisionContext) -> Optional[Card]:
    auction = active_auction(context.auction)
    return auction.card if auction is not None else None
