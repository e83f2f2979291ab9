# tests/test_knowledge.py
import random

import pytest

from art_auction_ai.cards import CARD_DISTRIBUTION, Artist, AuctionType, Card
from art_auction_ai.knowledge import (
    GameStateAnalyzer,
    InformationFilter,
    MarketSimulator,
    OpponentMemory,
    build_context,
    decision_importance,
    find_opportunities,
    predict_artist_value,
    time_pressure,
)
from art_auction_ai.knowledge.market import ArtistSales
from art_auction_ai.scenarios import build_game_state, record_purchase, start_auction
from art_auction_ai.state import BidRecord
from art_auction_ai.time_slicer import TimeSliceController


def _card(card_id: str, auction_type: AuctionType, artist: Artist = Artist.DANIEL_MELIM) -> Card:
    return Card(card_id, artist, auction_type)


def test_fresh_market_is_emerging_and_uncontested():
    state = build_game_state(4, seed=11)
    market = MarketSimulator().analyze_market(state)

    assert market.market_state == "emerging"
    assert market.remaining_cards == CARD_DISTRIBUTION
    assert sorted(c.rank for c in market.artist_competitiveness.values()) == [1, 2, 3, 4, 5]
    assert all(c.competition_level == "low" for c in market.artist_competitiveness.values())
    assert 0.0 <= market.volatility <= 1.0


def test_sales_drive_rank_and_expected_value():
    state = build_game_state(4, seed=11)
    for i in range(3):
        state = record_purchase(state, i, _card(f"dm{i}", AuctionType.OPEN), 40)

    market = MarketSimulator().analyze_market(state)
    melim = market.for_artist(Artist.DANIEL_MELIM)
    assert melim.rank == 1
    assert melim.competition_level == "high"
    assert melim.average_price == 40
    assert melim.expected_final_value == pytest.approx(40 + 14 * 0.1)
    assert market.market_state == "competitive"


def test_value_prediction_and_opportunities():
    fresh = predict_artist_value(ArtistSales(), 0)
    assert fresh == {"expected_final_value": 30.0, "confidence": 0.9}
    assert predict_artist_value(ArtistSales(), 10)["confidence"] == 0.3

    sales = {artist: ArtistSales(1, 30) for artist in Artist}
    sales[Artist.MANUEL_CARVALHO] = ArtistSales(2, 20)
    found = find_opportunities(sales)
    assert found["undervalued"] == [Artist.MANUEL_CARVALHO]
    assert found["overvalued"] == []


def test_card_evaluations_are_bounded():
    state = build_game_state(4, seed=11)
    evaluations = MarketSimulator().evaluate_hand(state, 0)
    assert len(evaluations) == len(state.players[0].hand)
    for evaluation in evaluations:
        assert 0.2 <= evaluation.confidence <= 1.0
        assert 0.0 <= evaluation.strategic_value <= 1.0
        assert 0.0 <= evaluation.risk_level <= 1.0


def test_visible_state_hides_hands_and_money():
    state = build_game_state(4, seed=11)
    analyzer = GameStateAnalyzer(1, "easy")
    visible = analyzer.visible_state(state, random.Random(0))

    assert visible.game_state.players[1].hand == state.players[1].hand
    for index in (0, 2, 3):
        assert visible.game_state.players[index].hand == []
        info = visible.players[index]
        assert info.money_type == "estimated"
        assert info.hand_size == 9
        assert 20 <= abs(info.money - 100) <= 40
    assert visible.players[1].money == 100
    assert visible.players[1].money_type == "exact"
    # The input snapshot is untouched.
    assert all(len(p.hand) == 9 for p in state.players)


def test_unrevealed_sealed_bids_are_stripped():
    state = start_auction(build_game_state(4, seed=11), _card("h", AuctionType.HIDDEN), 0)
    state.round.auction.bids = {0: 30, 1: 12}

    visible = GameStateAnalyzer(1, "hard").visible_state(state, random.Random(0))
    assert visible.game_state.round.auction.bids == {1: 12}
    assert state.round.auction.bids == {0: 30, 1: 12}


def test_information_visibility():
    info = InformationFilter("medium")
    assert info.is_public("board")
    assert info.is_public("hand_size")
    for kind in ("money", "hand", "sealed_bids", "deck_order"):
        assert not info.is_public(kind)
        assert not info.can_see(kind)
        assert info.can_see(kind, own=True)


def test_hard_memory_tracks_money_movements_once():
    state = build_game_state(4, seed=11)
    state = record_purchase(state, 0, _card("p", AuctionType.OPEN), 40, seller_index=2)

    analyzer = GameStateAnalyzer(1, "hard")
    analyzer.update_memory(state)
    analyzer.update_memory(state)
    changes = analyzer.memory.money_changes
    assert [(c.player_index, c.amount) for c in changes] == [(0, -40), (2, 40)]
    assert analyzer.memory.notable_events[0]["type"] == "high_bid"

    estimate = analyzer.visible_state(state, random.Random(0)).players[0].money
    assert 5 <= abs(estimate - 60) <= 10

    easy = GameStateAnalyzer(1, "easy")
    easy.update_memory(state)
    assert easy.memory.money_changes == []


def test_opponent_memory_observes_each_action_once():
    state = start_auction(build_game_state(4, seed=11), _card("o", AuctionType.OPEN), 0)
    state.round.auction.bid_history = [BidRecord(2, 15, 0), BidRecord(3, 18, 1)]

    memory = OpponentMemory()
    assert memory.observe(state, observer_index=1) == 2
    assert memory.observe(state, observer_index=1) == 0
    assert [p.amount for p in memory.patterns_for("player_2")] == [15]

    first = memory.build_model(2, "player_2", 85, 0.8)
    second = memory.build_model(2, "player_2", 85, 0.8)
    assert first == second

    memory.start_game()
    assert memory.known_players == ["player_2", "player_3"]
    assert memory.patterns_for("player_2") == []


def test_sealed_bids_are_only_learned_after_reveal():
    state = start_auction(build_game_state(4, seed=11), _card("h", AuctionType.HIDDEN), 0)
    state.round.auction.bids = {0: 30, 2: 12}
    memory = OpponentMemory()
    assert memory.observe(state, observer_index=1) == 0

    state.round.auction.revealed = True
    assert memory.observe(state, observer_index=1) == 2


def test_opponent_models_by_difficulty():
    state = build_game_state(4, seed=11)
    state = record_purchase(state, 0, _card("p", AuctionType.OPEN), 40)

    with pytest.raises(ValueError):
        InformationFilter("expert")

    for difficulty, expected in (("easy", 0.5), ("medium", 0.9)):
        analyzer = GameStateAnalyzer(1, difficulty)
        visible = analyzer.visible_state(state, random.Random(0))
        models = analyzer.filter.build_opponent_models(visible)
        assert sorted(models) == [0, 2, 3]
        assert models[0].tendencies.aggressiveness == pytest.approx(expected)


def test_build_context():
    state = start_auction(build_game_state(4, seed=11), _card("o", AuctionType.OPEN), 2)
    controller = TimeSliceController(10_000)

    medium = build_context(state, 1, GameStateAnalyzer(1, "medium"), controller, rng=random.Random(0))
    assert medium.memory is None
    assert medium.auction is not None and medium.auction.card.id == "o"
    assert medium.money == 100
    assert len(medium.card_evaluations) == len(medium.hand) == 9

    hard_analyzer = GameStateAnalyzer(1, "hard")
    hard = build_context(
        state, 1, hard_analyzer, controller, opponent_memory=OpponentMemory(), rng=random.Random(0)
    )
    assert hard.memory is hard_analyzer.memory
    assert sorted(hard.opponent_models) == [0, 2, 3]


def test_pressure_and_importance():
    assert time_pressure(1) == pytest.approx(0.45)
    assert time_pressure(4) == 1.0
    assert decision_importance(100, 1) == 0.5
    assert decision_importance(20, 3) == pytest.approx(1.0)
    assert decision_importance(45, 2) == pytest.approx(0.7)
