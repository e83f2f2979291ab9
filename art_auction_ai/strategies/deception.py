# art_auction_ai/strategies/deception.py
"""
Bluffing helpers for the Hard AI.

All randomness comes from the caller's per-decision rng, so a seeded Hard
player bluffs the same way on the same snapshot.
"""
from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..cards import AuctionType
from ..knowledge.opponents import OpponentModel

DECEPTION_TYPES = ("overbid", "underbid", "random", "calculated")
BREAK_TYPES = ("randomize", "reverse", "delay", "exaggerate")

_PATTERN_BREAKING = 0.4


@dataclass(frozen=True)
class BluffPlan:
    should_bluff: bool
    strength: float
    target_player_id: Optional[str]
    reasoning: str


@dataclass(frozen=True)
class DeceptiveBid:
    amount: int
    deception_type: str
    expected_success: float


@dataclass(frozen=True)
class PatternBreak:
    should_break: bool
    break_type: str
    confidence: float


def _clamp(value: float, low: float = 0.1, high: float = 0.9) -> float:
    return max(low, min(high, value))


def bluff_strength(
    card_value: float, auction_type: AuctionType, opponents: Sequence[OpponentModel]
) -> float:
    strength = 0.5
    if card_value < 15:
        strength += 0.3
    elif card_value < 25:
        strength += 0.1
    if auction_type == AuctionType.HIDDEN:
        strength += 0.2
    elif auction_type == AuctionType.ONE_OFFER:
        strength += 0.1
    if opponents:
        strength += sum(o.predictability for o in opponents) / len(opponents) * 0.3
    return _clamp(strength + 0.1)


def should_bluff(
    bluffing_frequency: float,
    auction_type: AuctionType,
    card_value: float,
    opponents: Sequence[OpponentModel],
    importance: float,
    rng: random.Random,
) -> BluffPlan:
    chance = bluffing_frequency
    if auction_type == AuctionType.HIDDEN:
        chance += 0.3
    elif auction_type == AuctionType.OPEN:
        chance -= 0.2
    if card_value < 20:
        chance += 0.2
    elif card_value > 40:
        chance -= 0.2

    gullible = [o for o in opponents if o.predictability > 0.7]
    if gullible:
        chance += 0.2
    if importance > 0.8:
        chance += 0.1
    chance += (rng.random() - 0.5) * 0.2

    if rng.random() >= _clamp(chance):
        return BluffPlan(False, 0.0, None, "conditions not favourable for a bluff")

    strength = bluff_strength(card_value, auction_type, opponents)
    target = None
    if auction_type == AuctionType.HIDDEN and gullible:
        target = max(gullible, key=lambda o: o.predictability).player_id
    return BluffPlan(True, strength, target, f"bluff opportunity (strength {strength:.2f})")


def deceptive_bid(
    true_value: float,
    strength: float,
    min_bid: int,
    max_bid: int,
    auction_type: AuctionType,
    rng: random.Random,
) -> DeceptiveBid:
    """A bid meant to mislead; always within [min_bid, max_bid]."""
    if max_bid < min_bid:
        raise ValueError("max_bid must not be below min_bid")
    kind = rng.choice(DECEPTION_TYPES)
    if auction_type == AuctionType.HIDDEN and strength > 0.7:
        kind = "underbid"
    elif auction_type == AuctionType.OPEN and strength > 0.6:
        kind = "overbid"

    if kind == "overbid":
        amount, success = int(true_value * (1 + strength * 0.5)), 0.4
    elif kind == "underbid":
        amount, success = int(true_value * (1 - strength * 0.3)), 0.6
    elif kind == "random":
        amount, success = rng.randint(min_bid, max_bid), 0.3
    else:
        spread = max_bid - min_bid
        amount, success = int((min_bid + max_bid) / 2 + (rng.random() - 0.5) * spread), 0.5
    return DeceptiveBid(max(min_bid, min(max_bid, amount)), kind, success)


def pattern_consistency(recent_actions: List[str]) -> float:
    """Share of the most common recent action; 0.5 with too little history."""
    if len(recent_actions) < 3:
        return 0.5
    _, count = Counter(recent_actions).most_common(1)[0]
    return count / len(recent_actions)


def should_break_pattern(recent_actions: List[str], rng: random.Random) -> PatternBreak:
    consistency = pattern_consistency(recent_actions)
    if consistency > 0.8:
        return PatternBreak(True, rng.choice(BREAK_TYPES), consistency)
    return PatternBreak(rng.random() < _PATTERN_BREAKING * 0.5, rng.choice(BREAK_TYPES), 0.3)
