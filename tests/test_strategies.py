# tests/test_strategies.py
import dataclasses
import random
from typing import Optional

import pytest

from art_auction_ai.cards import Artist, AuctionType, Card
from art_auction_ai.decisions import BidAction, DecisionType
from art_auction_ai.knowledge import GameStateAnalyzer, OpponentMemory, build_context
from art_auction_ai.scenarios import build_game_state, start_auction
from art_auction_ai.state import GameState
from art_auction_ai.strategies import (
    AIStrategy,
    DecisionOptions,
    EasyStrategy,
    HardStrategy,
    MediumStrategy,
    create_personality,
    create_strategy,
)
from art_auction_ai.strategies.base import ThinkingDelay
from art_auction_ai.strategies.hard import nash_reference, psychological_price
from art_auction_ai.time_slicer import TimeSliceController
from art_auction_ai.validator import validate_decision


def _context(state: GameState, player_index: int, difficulty: str, memory: Optional[OpponentMemory] = None):
    analyzer = GameStateAnalyzer(player_index, difficulty)
    return build_context(
        state,
        player_index,
        analyzer,
        TimeSliceController(60_000),
        opponent_memory=memory,
        rng=random.Random(0),
    )


def _open_auction(current_bid: int = 10, money: int = 100) -> GameState:
    state = build_game_state(4, seed=21, money=[money, 100, 100, 100])
    state = start_auction(state, Card("auction", Artist.RAMON_MARTINS, AuctionType.OPEN), 1)
    state.round.auction.current_bid = current_bid
    state.round.auction.current_bidder = 2 if current_bid else None
    return state


def _fixed_price(price: int, money: int = 100) -> GameState:
    state = build_game_state(4, seed=21, money=[money, 100, 100, 100])
    state = start_auction(state, Card("fixed", Artist.RAMON_MARTINS, AuctionType.FIXED_PRICE), 1)
    auction = state.round.auction
    auction.phase = "buying"
    auction.price = price
    auction.current_turn_index = auction.turn_order.index(0)
    return state


def _double_auction(hand) -> GameState:
    state = build_game_state(4, seed=21)
    state.players[0].hand = list(hand)
    return start_auction(state, Card("double", Artist.MANUEL_CARVALHO, AuctionType.DOUBLE), 0)


def _card_play(hand=None) -> GameState:
    state = build_game_state(4, seed=21)
    if hand is not None:
        state.players[0].hand = list(hand)
    state.round.active_player_index = 0
    return state


def test_create_strategy():
    assert isinstance(create_strategy("easy", seed=1), EasyStrategy)
    assert isinstance(create_strategy("medium", seed=1), MediumStrategy)
    aggressive = create_personality("aggressive")
    hard = create_strategy("hard", seed=1, personality=aggressive)
    assert isinstance(hard, HardStrategy)
    assert hard.personality == aggressive
    with pytest.raises(ValueError):
        create_strategy("impossible")
    for strategy in (EasyStrategy(1), MediumStrategy(1), HardStrategy(1)):
        assert isinstance(strategy, AIStrategy)


def test_thinking_delays_by_tier():
    rng = random.Random(0)
    easy = EasyStrategy(1).get_thinking_delay()
    assert (easy.min_ms, easy.max_ms) == (200, 1500)
    assert all(200 <= easy.sample(rng) <= 1500 for _ in range(50))

    patient = HardStrategy(1, create_personality("conservative")).get_thinking_delay()
    hasty = HardStrategy(1, create_personality("aggressive")).get_thinking_delay()
    assert patient.min_ms == pytest.approx(3000 * 1.15)
    assert hasty.max_ms < patient.max_ms

    spread = ThinkingDelay(100, 200, distribution="exponential")
    assert all(100 <= spread.sample(rng) <= 200 for _ in range(50))


# ---------------------------------------------------------------------------
# Easy
# ---------------------------------------------------------------------------


def test_easy_empty_hand():
    context = _context(_card_play(hand=[]), 0, "easy")
    decision = EasyStrategy(7).make_decision(DecisionType.CARD_PLAY, context)
    assert decision.card is None
    assert decision.confidence == 0.1


def test_easy_is_seeded_and_legal():
    state = _card_play()
    first = EasyStrategy(7).make_decision(DecisionType.CARD_PLAY, _context(state, 0, "easy"))
    second = EasyStrategy(7).make_decision(DecisionType.CARD_PLAY, _context(state, 0, "easy"))
    assert first == second
    assert first.card in state.players[0].hand
    assert validate_decision(first, state, 0).is_valid


def test_easy_bids_stay_under_soft_cap():
    state = _open_auction(current_bid=10)
    actions = set()
    for seed in range(40):
        decision = EasyStrategy(seed).make_decision(DecisionType.BID, _context(state, 0, "easy"))
        actions.add(decision.action)
        if decision.action == BidAction.BID:
            assert 11 <= decision.amount <= 30
        assert validate_decision(decision, state, 0).is_valid
    assert actions <= {BidAction.BID, BidAction.PASS}


def test_easy_hidden_and_fixed_price():
    state = start_auction(build_game_state(4, seed=21), Card("h", Artist.DANIEL_MELIM, AuctionType.HIDDEN), 1)
    for seed in range(20):
        bid = EasyStrategy(seed).make_decision(DecisionType.HIDDEN_BID, _context(state, 0, "easy"))
        assert 0 <= bid.amount <= 25

    state = start_auction(build_game_state(4, seed=21, money=[5, 100, 100, 100]),
                          Card("f", Artist.DANIEL_MELIM, AuctionType.FIXED_PRICE), 0)
    price = EasyStrategy(3).make_decision(DecisionType.FIXED_PRICE, _context(state, 0, "easy"))
    assert price.price == 5


def test_easy_auctioneer_keeps_unwanted_painting():
    state = start_auction(build_game_state(4, seed=21), Card("one", Artist.DANIEL_MELIM, AuctionType.ONE_OFFER), 0)
    state.round.auction.phase = "auctioneer_decision"
    decision = EasyStrategy(3).make_decision(DecisionType.BID, _context(state, 0, "easy"))
    assert decision.action == BidAction.TAKE_FREE


# ---------------------------------------------------------------------------
# Medium
# ---------------------------------------------------------------------------


def test_medium_passes_when_value_does_not_beat_current_bid():
    state = _open_auction(current_bid=20)
    decision = MediumStrategy(5).make_decision(
        DecisionType.BID, _context(state, 0, "medium"), DecisionOptions(estimated_value=15)
    )
    assert decision.action == BidAction.PASS


def test_medium_bids_below_value():
    state = _open_auction(current_bid=10)
    decision = MediumStrategy(5).make_decision(
        DecisionType.BID, _context(state, 0, "medium"), DecisionOptions(estimated_value=60)
    )
    assert decision.action == BidAction.BID
    assert 10 < decision.amount <= 48
    assert decision.max_bid <= 48
    assert validate_decision(decision, state, 0).is_valid


def test_medium_buy_needs_a_margin():
    state = _fixed_price(20)
    strategy = MediumStrategy(5)
    bargain = strategy.make_decision(DecisionType.BUY, _context(state, 0, "medium"), DecisionOptions(estimated_value=30))
    assert bargain.action == BidAction.BUY and bargain.amount == 20
    thin = strategy.make_decision(DecisionType.BUY, _context(state, 0, "medium"), DecisionOptions(estimated_value=22))
    assert thin.action == BidAction.PASS


def test_medium_hidden_bid_and_fixed_price():
    state = start_auction(build_game_state(4, seed=21), Card("h", Artist.DANIEL_MELIM, AuctionType.HIDDEN), 1)
    bid = MediumStrategy(5).make_decision(
        DecisionType.HIDDEN_BID, _context(state, 0, "medium"), DecisionOptions(estimated_value=50)
    )
    assert 27 <= bid.amount <= 33

    state = start_auction(build_game_state(4, seed=21), Card("f", Artist.DANIEL_MELIM, AuctionType.FIXED_PRICE), 0)
    price = MediumStrategy(5).make_decision(
        DecisionType.FIXED_PRICE, _context(state, 0, "medium"), DecisionOptions(estimated_value=50)
    )
    assert 10 <= price.price <= 80
    assert validate_decision(price, state, 0).is_valid


def test_medium_double_offer():
    other = Card("h1", Artist.SIGRID_THALER, AuctionType.OPEN)
    declined = MediumStrategy(5).make_decision(
        DecisionType.DOUBLE_OFFER, _context(_double_auction([other]), 0, "medium")
    )
    assert declined.action == "decline"

    match = Card("m1", Artist.MANUEL_CARVALHO, AuctionType.HIDDEN)
    state = _double_auction([other, match])
    offered = MediumStrategy(5).make_decision(DecisionType.DOUBLE_OFFER, _context(state, 0, "medium"))
    assert offered.action == "offer"
    assert offered.card == match
    assert offered.strategy == "control_artist"
    assert validate_decision(offered, state, 0).is_valid


def test_medium_card_play_comes_from_hand():
    state = _card_play()
    decision = MediumStrategy(5).make_decision(DecisionType.CARD_PLAY, _context(state, 0, "medium"))
    assert decision.card in state.players[0].hand


# ---------------------------------------------------------------------------
# Hard
# ---------------------------------------------------------------------------


def test_psychological_prices():
    assert psychological_price(22) == 19
    assert psychological_price(33) == 29
    assert psychological_price(53) == 49
    assert psychological_price(20) == 20
    assert psychological_price(24) == 25
    assert psychological_price(27) == 25


def test_nash_reference():
    assert nash_reference(40, [], "medium") == pytest.approx(36)
    assert nash_reference(40, [], "high") == pytest.approx(28)


def test_sub_strategy_follows_personality():
    rng = random.Random(0)
    assert HardStrategy(1, create_personality("aggressive")).pick_sub_strategy(rng) == "strategic_control"
    assert HardStrategy(1, create_personality("conservative")).pick_sub_strategy(rng) == "value_optimized"
    assert HardStrategy(1, create_personality("unpredictable")).pick_sub_strategy(rng) == "psychological"
    assert HardStrategy(1).pick_sub_strategy(rng) in ("opposition", "value_optimized")


def test_hard_open_bid_respects_cap():
    state = _open_auction(current_bid=20, money=90)
    strategy = HardStrategy(12345)
    strategy.initialize(state, 0)
    context = _context(state, 0, "hard", strategy.opponent_memory)
    strategy.update(context)
    decision = strategy.make_decision(DecisionType.BID, context, DecisionOptions(estimated_value=35))
    assert decision.action == BidAction.BID
    assert 20 < decision.amount <= 27


def test_hard_update_drifts_personality_once_per_snapshot():
    state = build_game_state(4, seed=21, money=[200, 100, 100, 100])
    strategy = HardStrategy(3)
    strategy.initialize(state, 0)
    context = _context(state, 0, "hard", strategy.opponent_memory)
    strategy.update(context)
    strategy.update(context)
    assert strategy.personality.aggressiveness == pytest.approx(0.51)
    assert strategy.personality.risk_tolerance == pytest.approx(0.51)


def test_hard_repeats_itself_on_the_same_snapshot():
    state = start_auction(build_game_state(4, seed=21), Card("h", Artist.DANIEL_MELIM, AuctionType.HIDDEN), 1)
    strategy = HardStrategy(99, create_personality("unpredictable"))
    strategy.initialize(state, 0)

    decisions = []
    for _ in range(3):
        context = _context(state, 0, "hard", strategy.opponent_memory)
        strategy.update(context)
        decision = strategy.make_decision(DecisionType.HIDDEN_BID, context)
        decisions.append(dataclasses.replace(decision, decision_time_ms=None))
    assert decisions[0] == decisions[1] == decisions[2]
    assert 0 <= decisions[0].amount <= 100
    assert strategy.stats()["decisions"]["hidden_bid"] == 3


def test_hard_fixed_price_and_buy():
    state = start_auction(build_game_state(4, seed=21, money=[15, 100, 100, 100]),
                          Card("f", Artist.DANIEL_MELIM, AuctionType.FIXED_PRICE), 0)
    strategy = HardStrategy(4)
    strategy.initialize(state, 0)
    context = _context(state, 0, "hard", strategy.opponent_memory)
    strategy.update(context)
    price = strategy.make_decision(DecisionType.FIXED_PRICE, context, DecisionOptions(estimated_value=40))
    assert price.price_reasoning == "desperate"
    assert 1 <= price.price <= 15

    state = _fixed_price(20)
    context = _context(state, 0, "hard", strategy.opponent_memory)
    strategy.update(context)
    buy = strategy.make_decision(DecisionType.BUY, context, DecisionOptions(estimated_value=30))
    assert buy.action == BidAction.BUY
    keep = strategy.make_decision(DecisionType.BUY, context, DecisionOptions(estimated_value=21))
    assert keep.action == BidAction.PASS


def test_hard_broke_hidden_bid_and_double_offer():
    state = start_auction(build_game_state(4, seed=21, money=[0, 100, 100, 100]),
                          Card("h", Artist.DANIEL_MELIM, AuctionType.HIDDEN), 1)
    strategy = HardStrategy(4)
    context = _context(state, 0, "hard", strategy.opponent_memory)
    assert strategy.make_decision(DecisionType.HIDDEN_BID, context).amount == 0

    match = Card("m1", Artist.MANUEL_CARVALHO, AuctionType.OPEN)
    state = _double_auction([match])
    context = _context(state, 0, "hard", strategy.opponent_memory)
    offer = strategy.make_decision(DecisionType.DOUBLE_OFFER, context)
    assert offer.action == "offer"
    assert offer.strategy == "control_artist"
    assert offer.card == match


def test_hard_card_play_is_legal():
    state = _card_play()
    for template in ("aggressive", "conservative", "balanced", "unpredictable"):
        strategy = HardStrategy(8, create_personality(template))
        context = _context(state, 0, "hard", strategy.opponent_memory)
        strategy.update(context)
        decision = strategy.make_decision(DecisionType.CARD_PLAY, context)
        assert validate_decision(decision, state, 0).is_valid
