# tests/test_manager.py
import copy
import dataclasses
import time

import pytest

from art_auction_ai.cards import Artist, AuctionType, Card
from art_auction_ai.decision_log import DecisionLogger, FailureLogger
from art_auction_ai.decisions import (
    BidAction,
    BidDecision,
    CardPlayDecision,
    DecisionType,
    HiddenBidDecision,
)
from art_auction_ai.manager import AIManager, ManagerConfig
from art_auction_ai.scenarios import build_game_state, start_auction
from art_auction_ai.strategies import DecisionOptions
from art_auction_ai.telemetry import PerformanceMonitor


def _open_state(money=(90, 100, 100, 100), current_bid=20, seed=4):
    state = build_game_state(len(money), seed=seed, money=list(money))
    state = start_auction(state, Card("open-x", Artist.DANIEL_MELIM, AuctionType.OPEN), 1)
    state.round.auction.current_bid = current_bid
    state.round.auction.current_bidder = 2
    return state


def _hidden_state(bids=None):
    state = build_game_state(4, seed=4)
    state = start_auction(state, Card("hidden-x", Artist.RAMON_MARTINS, AuctionType.HIDDEN), 0)
    state.round.auction.bids = dict(bids or {})
    return state


def _strip_timing(decision):
    return dataclasses.replace(decision, decision_time_ms=None)


def test_hard_open_bid_respects_ceiling():
    manager = AIManager()
    manager.register_ai(0, "hard", seed=12345)
    state = _open_state()

    decision = manager.make_decision(0, DecisionType.BID, state, DecisionOptions(estimated_value=35))
    assert isinstance(decision, BidDecision)
    assert decision.action == BidAction.BID
    assert 20 < decision.amount <= 27
    assert decision.max_bid == 27
    assert decision.decision_time_ms is not None


@pytest.mark.parametrize("seed", [12345, 1, 77])
def test_hard_open_bid_in_a_three_player_game(seed):
    manager = AIManager()
    manager.register_ai(0, "hard", seed=seed)
    state = _open_state(money=(90, 100, 100), seed=seed)
    options = DecisionOptions(estimated_value=35)

    decision = manager.make_decision(0, DecisionType.BID, state, options)
    assert decision.action == BidAction.BID
    assert 20 < decision.amount <= 27
    assert decision.max_bid == 27

    again = AIManager()
    again.register_ai(0, "hard", seed=seed)
    assert _strip_timing(again.make_decision(0, DecisionType.BID, state, options)) == _strip_timing(decision)


def test_injected_telemetry_is_used():
    monitor = PerformanceMonitor()
    manager = AIManager(ManagerConfig(), telemetry=monitor)
    assert manager.telemetry is monitor

    manager.register_ai(0, "easy", seed=1)
    manager.make_decision(0, DecisionType.BID, _open_state())
    assert len(monitor) == 1
    assert monitor.records()[0].difficulty == "easy"


def test_thinking_delay_stays_within_budget():
    manager = AIManager(ManagerConfig(enable_thinking_delay=True))
    manager.register_ai(0, "easy", seed=1)

    started = time.perf_counter()
    manager.make_decision(0, DecisionType.BID, _open_state(), DecisionOptions(timeout_ms=100))
    # Easy pauses at least 200 ms when the budget allows it.
    assert time.perf_counter() - started < 0.19

    started = time.perf_counter()
    manager.make_decision(0, DecisionType.BID, _open_state(current_bid=3), DecisionOptions(timeout_ms=5000))
    assert 0.19 <= time.perf_counter() - started < 5.0


def test_easy_with_empty_hand_returns_no_card():
    manager = AIManager()
    manager.register_ai(0, "easy", seed=1)
    state = build_game_state(4, seed=4)
    state.round.active_player_index = 0
    state.players[0].hand = []

    decision = manager.make_decision(0, DecisionType.CARD_PLAY, state)
    assert isinstance(decision, CardPlayDecision)
    assert decision.card is None
    assert decision.confidence == 0.1
    assert not manager.telemetry.records()[0].fallback_used


def test_unregistered_player_gets_fallback():
    manager = AIManager()
    decision = manager.make_decision(3, DecisionType.BID, _open_state())
    assert decision.action == BidAction.PASS
    assert decision.reasoning == "Fallback: AI_NOT_REGISTERED"
    assert manager.error_stats(3)["by_code"] == {"AI_NOT_REGISTERED": 1}


def test_zero_timeout_falls_back():
    manager = AIManager(ManagerConfig(timeouts_ms={"easy": 0.0, "medium": 0.0, "hard": 0.0}))
    manager.register_ai(0, "medium", seed=2)

    decision = manager.make_decision(0, DecisionType.BID, _open_state())
    assert decision.action == BidAction.PASS
    assert decision.reasoning.startswith("Fallback: DECISION_TIMEOUT")

    record = manager.telemetry.records()[-1]
    assert record.timed_out and record.fallback_used and not record.success
    assert record.error_code == "DECISION_TIMEOUT"


def test_options_timeout_overrides_config():
    manager = AIManager()
    manager.register_ai(0, "easy", seed=2)
    decision = manager.make_decision(0, DecisionType.BID, _open_state(), DecisionOptions(timeout_ms=0))
    assert decision.reasoning == "Fallback: DECISION_TIMEOUT"


def _patch_strategy(manager, monkeypatch, fn):
    strategy = manager._seat(0).strategy
    monkeypatch.setattr(strategy, "make_decision", fn)


def test_invalid_decision_is_replaced(monkeypatch):
    manager = AIManager()
    manager.register_ai(0, "easy", seed=2)
    _patch_strategy(
        manager,
        monkeypatch,
        lambda decision_type, context, options=None: BidDecision(BidAction.BID, 0.9, amount=999),
    )
    decision = manager.make_decision(0, DecisionType.BID, _open_state())
    assert decision.action == BidAction.PASS
    assert decision.reasoning == "Fallback: INVALID_DECISION"


@pytest.mark.parametrize(
    "exc, code",
    [
        (ZeroDivisionError("division by zero"), "NUMERICAL_ERROR"),
        (TypeError("bad"), "INVALID_DECISION_PARAMETERS"),
        (RuntimeError("boom"), "STRATEGY_COMPUTATION_ERROR"),
    ],
)
def test_strategy_exceptions_become_fallbacks(monkeypatch, exc, code):
    manager = AIManager()
    manager.register_ai(0, "medium", seed=2)

    def broken(decision_type, context, options=None):
        raise exc

    _patch_strategy(manager, monkeypatch, broken)
    decision = manager.make_decision(0, DecisionType.HIDDEN_BID, _hidden_state())
    assert isinstance(decision, HiddenBidDecision)
    assert decision.amount == 0
    assert decision.reasoning == f"Fallback: {code}"


def test_memory_error_is_an_emergency(monkeypatch):
    manager = AIManager()
    manager.register_ai(0, "hard", seed=2)

    def exhausted(decision_type, context, options=None):
        raise MemoryError()

    _patch_strategy(manager, monkeypatch, exhausted)
    decision = manager.make_decision(0, DecisionType.BID, _open_state())
    assert decision.action == BidAction.PASS
    assert decision.confidence == 0.0
    assert decision.reasoning == "Emergency: MEMORY_ERROR"


def test_cancel_during_decision(monkeypatch):
    manager = AIManager()
    manager.register_ai(0, "easy", seed=2)
    assert not manager.cancel_player(0)

    def cancelled(decision_type, context, options=None):
        assert manager.is_player_thinking(0)
        assert manager.cancel_player(0)
        context.controller.checkpoint()

    _patch_strategy(manager, monkeypatch, cancelled)
    decision = manager.make_decision(0, DecisionType.BID, _open_state())
    assert decision.reasoning == "Fallback: DECISION_CANCELLED"
    assert not manager.is_player_thinking(0)

    # The next decision starts with a fresh cancellation flag.
    monkeypatch.undo()
    assert manager.make_decision(0, DecisionType.BID, _open_state()).reasoning != "Fallback: DECISION_CANCELLED"


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_repeated_decisions_are_identical(difficulty):
    manager = AIManager()
    manager.register_ai(0, difficulty, seed=99)
    state = _open_state(current_bid=5)

    first = manager.make_decision(0, DecisionType.BID, state)
    second = manager.make_decision(0, DecisionType.BID, state)
    assert _strip_timing(first) == _strip_timing(second)

    other = AIManager()
    other.register_ai(0, difficulty, seed=99)
    assert _strip_timing(other.make_decision(0, DecisionType.BID, state)) == _strip_timing(first)


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_sealed_bids_do_not_leak(difficulty):
    decisions = []
    for rival_bid in (40, 3):
        manager = AIManager()
        manager.register_ai(1, difficulty, seed=7)
        state = _hidden_state({0: rival_bid})
        decisions.append(_strip_timing(manager.make_decision(1, DecisionType.HIDDEN_BID, state)))
    assert decisions[0] == decisions[1]


def test_decide_hidden_bids_uses_one_snapshot():
    manager = AIManager()
    for index, difficulty in enumerate(["easy", "hard", "medium"]):
        manager.register_ai(index, difficulty, seed=index)
    state = _hidden_state({0: 10})
    before = copy.deepcopy(state)

    bids = manager.decide_hidden_bids(state)
    assert sorted(bids) == [1, 2]
    assert all(isinstance(b, HiddenBidDecision) for b in bids.values())
    assert state == before


def test_make_decision_does_not_mutate_input():
    manager = AIManager()
    manager.register_ai(0, "hard", seed=5)
    state = _open_state()
    before = copy.deepcopy(state)
    manager.make_decision(0, DecisionType.BID, state)
    assert state == before


def test_registration_lifecycle():
    manager = AIManager(ManagerConfig(seed=10))
    state = build_game_state(4, seed=3, difficulties=["easy", None, "hard", "medium"])
    assert manager.initialize_ai_players(state) == [0, 2, 3]
    assert manager.registered_players == [0, 2, 3]

    info = manager.debug_info()["players"]
    assert info[2]["difficulty"] == "hard"
    assert [info[i]["seed"] for i in (0, 2, 3)] == [10, 12, 13]

    with pytest.raises(ValueError):
        manager.register_ai(1, "expert")
    assert not manager.has_ai(1)

    assert manager.update_ai(2, state)
    assert not manager.update_ai(1, state)
    assert manager.update_ai_players(state) == {0: True, 2: True, 3: True}

    assert manager.unregister_ai(3)
    assert not manager.unregister_ai(3)
    manager.cleanup()
    assert manager.registered_players == []


def test_history_and_telemetry_counts():
    manager = AIManager(ManagerConfig(history_limit=2))
    manager.register_ai(0, "easy", seed=8)
    for current in (1, 2, 3):
        manager.make_decision(0, DecisionType.BID, _open_state(current_bid=current))

    assert len(manager.decision_history(0)) == 2
    assert len(manager.telemetry) == 3
    assert manager.debug_info()["players"][0]["decisions_made"] == 3
    assert manager.decision_history(1) == []


def test_repeated_failures_flag_systemic_issues():
    manager = AIManager()
    state = _open_state()
    for _ in range(5):
        manager.make_decision(3, DecisionType.BID, state)
    assert not manager.has_systemic_issues(3)
    manager.make_decision(3, DecisionType.BID, state)
    assert manager.has_systemic_issues(3)
    assert manager.has_systemic_issues()


def test_logs_are_written_on_cleanup(tmp_path):
    manager = AIManager(
        decision_logger=DecisionLogger(tmp_path / "decisions.txt"),
        failure_logger=FailureLogger(tmp_path / "failures.txt"),
    )
    manager.register_ai(0, "easy", seed=3)
    manager.make_decision(0, DecisionType.BID, _open_state())
    manager.make_decision(2, DecisionType.BID, _open_state())
    manager.cleanup()

    decisions = (tmp_path / "decisions.txt").read_text(encoding="utf-8")
    assert decisions.count("=== Player:") == 2
    assert "Fallback: yes" in decisions
    assert "AI_NOT_REGISTERED" in (tmp_path / "failures.txt").read_text(encoding="utf-8")
