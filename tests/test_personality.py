# tests/test_personality.py
import random

import pytest

from art_auction_ai.cards import AuctionType
from art_auction_ai.knowledge.opponents import OpponentModel
from art_auction_ai.strategies import deception
from art_auction_ai.strategies.personality import (
    TEMPLATES,
    TRAITS,
    AIPersonality,
    adapt,
    adaptive_personality,
    compatibility,
    create_personality,
    describe,
    mutate_personality,
    random_personality,
)


def _in_bounds(personality: AIPersonality) -> bool:
    return all(0.1 <= getattr(personality, t) <= 0.9 for t in TRAITS)


def test_templates_and_overrides():
    assert create_personality("aggressive").aggressiveness == 0.8
    assert create_personality().to_dict() == TEMPLATES["balanced"].to_dict()
    assert create_personality("balanced", aggressiveness=1.5).aggressiveness == 0.9
    with pytest.raises(ValueError):
        create_personality("reckless")
    with pytest.raises(ValueError):
        create_personality("balanced", courage=0.5)


def test_adapt_drifts_slowly_and_stays_bounded():
    base = TEMPLATES["balanced"]
    richer = adapt(base, money=150, average_money=100)
    assert richer.aggressiveness == pytest.approx(0.51)
    assert richer.risk_tolerance == pytest.approx(0.51)

    poorer = adapt(base, money=50, average_money=100)
    assert poorer.aggressiveness == pytest.approx(0.49)
    assert poorer.patience == pytest.approx(0.51)

    assert adapt(base, money=100, average_money=100) is base
    assert adapt(base, money=100, average_money=0) is base

    maxed = create_personality("balanced", aggressiveness=0.9, risk_tolerance=0.9)
    assert adapt(maxed, money=500, average_money=100).aggressiveness == 0.9


def test_random_and_mutated_personalities_are_bounded():
    assert random_personality(random.Random(5)) == random_personality(random.Random(5))
    rng = random.Random(6)
    for _ in range(20):
        assert _in_bounds(random_personality(rng))
        assert _in_bounds(mutate_personality(TEMPLATES["aggressive"], rng, amount=0.5))


def test_adaptive_personality_picks_template():
    assert adaptive_personality(0.7, 100) == TEMPLATES["aggressive"]
    assert adaptive_personality(0.5, 30) == TEMPLATES["conservative"]
    assert adaptive_personality(0.5, 80) == TEMPLATES["balanced"]
    assert _in_bounds(adaptive_personality(0.5, 80, random.Random(1)))


def test_describe_and_compatibility():
    assert "aggressive" in describe(TEMPLATES["aggressive"])
    assert "patient" in describe(TEMPLATES["conservative"])
    assert describe(TEMPLATES["balanced"]) == "balanced"

    assert compatibility(TEMPLATES["balanced"], TEMPLATES["balanced"]) == pytest.approx(1.0)
    assert compatibility(TEMPLATES["aggressive"], TEMPLATES["conservative"]) < compatibility(
        TEMPLATES["aggressive"], TEMPLATES["balanced"]
    )


# ---------------------------------------------------------------------------
# Deception
# ---------------------------------------------------------------------------


def _opponent(predictability: float) -> OpponentModel:
    return OpponentModel(
        player_index=1,
        player_id="player_1",
        estimated_money=100,
        money_confidence=0.8,
        predictability=predictability,
    )


def test_bluff_strength_is_bounded():
    weak = deception.bluff_strength(50, AuctionType.OPEN, [])
    strong = deception.bluff_strength(10, AuctionType.HIDDEN, [_opponent(0.9)])
    assert 0.1 <= weak < strong <= 0.9


def test_bluffing_frequency_matters():
    opponents = [_opponent(0.9)]
    often = sum(
        deception.should_bluff(0.9, AuctionType.HIDDEN, 10, opponents, 0.9, random.Random(s)).should_bluff
        for s in range(200)
    )
    rarely = sum(
        deception.should_bluff(0.1, AuctionType.OPEN, 50, [], 0.5, random.Random(s)).should_bluff
        for s in range(200)
    )
    assert often > rarely

    plan = deception.should_bluff(0.9, AuctionType.HIDDEN, 10, opponents, 0.9, random.Random(0))
    if plan.should_bluff:
        assert plan.target_player_id == "player_1"
        assert 0.1 <= plan.strength <= 0.9


def test_deceptive_bid_stays_in_range():
    for seed in range(50):
        bid = deception.deceptive_bid(40, 0.5, 5, 30, AuctionType.ONE_OFFER, random.Random(seed))
        assert 5 <= bid.amount <= 30
        assert bid.deception_type in deception.DECEPTION_TYPES

    hidden = deception.deceptive_bid(40, 0.8, 0, 60, AuctionType.HIDDEN, random.Random(0))
    assert hidden.deception_type == "underbid"
    assert hidden.amount == int(40 * (1 - 0.8 * 0.3))

    with pytest.raises(ValueError):
        deception.deceptive_bid(40, 0.5, 10, 5, AuctionType.OPEN, random.Random(0))


def test_pattern_breaking():
    assert deception.pattern_consistency(["bid", "bid"]) == 0.5
    assert deception.pattern_consistency(["pass"] * 5) == 1.0
    assert deception.pattern_consistency(["bid", "pass", "bid", "pass"]) == 0.5

    forced = deception.should_break_pattern(["pass"] * 5, random.Random(0))
    assert forced.should_break
    assert forced.break_type in deception.BREAK_TYPES
