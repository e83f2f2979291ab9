# tests/test_errors.py
import pytest

from art_auction_ai.decisions import BidAction, CardPlayDecision, DecisionType, FixedPriceDecision
from art_auction_ai.errors import (
    AIError,
    ErrorHandler,
    ErrorKind,
    ErrorReporter,
    Severity,
    critical_error,
    decision_error,
    decision_timeout,
    error_from_exception,
    fallback_action_for,
    fallback_decision,
)
from art_auction_ai.time_slicer import TimeSliceCancelled


@pytest.mark.parametrize(
    "exc, code, critical",
    [
        (ZeroDivisionError("division by zero"), "NUMERICAL_ERROR", False),
        (OverflowError("too big"), "NUMERICAL_ERROR", False),
        (TypeError("bad arg"), "INVALID_DECISION_PARAMETERS", False),
        (KeyError("missing"), "INVALID_DECISION_PARAMETERS", False),
        (MemoryError(), "MEMORY_ERROR", True),
        (TimeSliceCancelled("timed out"), "DECISION_TIMEOUT", False),
        (RuntimeError("boom"), "STRATEGY_COMPUTATION_ERROR", False),
    ],
)
def test_exceptions_map_onto_codes(exc, code, critical):
    error = error_from_exception(exc, DecisionType.BID, difficulty="hard")
    assert error.code == code
    assert error.is_critical == critical
    assert error.decision_type == DecisionType.BID


def test_ai_errors_pass_through():
    original = decision_error(None, "nope", code="NO_VALID_DECISION")
    mapped = error_from_exception(original, DecisionType.HIDDEN_BID)
    assert mapped is original
    assert mapped.decision_type == DecisionType.HIDDEN_BID


def test_fallback_actions():
    assert fallback_action_for(ErrorKind.DECISION, "DECISION_TIMEOUT") == "Use fallback decision"
    assert fallback_action_for(ErrorKind.COMPUTATION, "NUMERICAL_ERROR") == "Use bounded arithmetic"
    assert fallback_action_for(ErrorKind.SYSTEM, "SOMETHING_NEW") == "Emergency pass"
    assert decision_timeout(DecisionType.BID, 250).fallback_action == "Use fallback decision"


def test_fallback_decisions_by_type():
    card_play = fallback_decision(DecisionType.CARD_PLAY, [], 50, reason="X")
    assert isinstance(card_play, CardPlayDecision) and card_play.card is None
    assert card_play.confidence == 0.1
    assert card_play.reasoning == "Fallback: X"

    price = fallback_decision(DecisionType.FIXED_PRICE, [], 50)
    assert isinstance(price, FixedPriceDecision) and price.price == 10
    assert fallback_decision(DecisionType.FIXED_PRICE, [], 4).price == 4
    assert fallback_decision(DecisionType.FIXED_PRICE, [], 0).price == 1

    assert fallback_decision(DecisionType.BUY).action == BidAction.PASS
    assert fallback_decision(DecisionType.HIDDEN_BID).amount == 0
    assert fallback_decision(DecisionType.DOUBLE_OFFER).action == "decline"


def test_handle_error_recovers_or_goes_emergency():
    handler = ErrorHandler()

    handled = handler.handle_error(decision_timeout(DecisionType.BID, 0), DecisionType.BID, 2)
    assert handled.error_handled and handled.fallback_used
    assert handled.decision.reasoning == "Fallback: DECISION_TIMEOUT"
    assert handled.error.player_index == 2

    emergency = handler.handle_error(critical_error("oom", code="MEMORY_ERROR"), DecisionType.BID, 2)
    assert not emergency.error_handled
    assert emergency.decision.confidence == 0.0
    assert emergency.decision.reasoning == "Emergency: MEMORY_ERROR"

    assert len(handler.history(2)) == 2
    assert handler.history(0) == []


def _errors(count, code="X", severity=Severity.MEDIUM, distinct=False):
    return [
        AIError("e", ErrorKind.STRATEGY, f"{code}{i}" if distinct else code, severity=severity)
        for i in range(count)
    ]


@pytest.mark.parametrize(
    "errors, systemic",
    [
        (_errors(21, distinct=True), True),
        (_errors(20, distinct=True), False),
        (_errors(6), True),
        (_errors(5), False),
        (_errors(4, severity=Severity.CRITICAL, distinct=True), True),
        (_errors(3, severity=Severity.CRITICAL, distinct=True), False),
    ],
)
def test_systemic_issue_thresholds(errors, systemic):
    handler = ErrorHandler()
    for error in errors:
        handler.record_error(error, 0)
    assert handler.has_systemic_issues(0) == systemic
    assert not handler.has_systemic_issues(1)


def test_history_is_bounded_and_clearable():
    handler = ErrorHandler(history_limit=3)
    for error in _errors(5, distinct=True):
        handler.record_error(error, 0)
    handler.record_error(_errors(1)[0], 1)

    assert [e.code for e in handler.history(0)] == ["X2", "X3", "X4"]
    assert handler.error_stats()["total_errors"] == 4
    stats = handler.error_stats(0)
    assert stats["by_kind"] == {"strategy": 3}
    assert len(stats["recent"]) == 3

    handler.clear_history(0)
    assert handler.history(0) == []
    assert len(handler.history()) == 1
    handler.clear_history()
    assert handler.history() == []


def test_reporter_summary_and_trend():
    reporter = ErrorReporter(limit=10)
    for severity in (Severity.LOW, Severity.CRITICAL, Severity.CRITICAL):
        reporter.report(AIError("e", ErrorKind.SYSTEM, "Y", severity=severity))
    assert reporter.summary() == {"low": 1, "medium": 0, "high": 0, "critical": 2}

    now = 1_000.0
    for error, stamp in zip(reporter.recent(), (now - 90, now - 10, now - 5)):
        error.timestamp = stamp
    assert reporter.trend(60.0, now=now) == "increasing"

    reporter.recent()[1].timestamp = now - 80
    reporter.recent()[2].timestamp = now - 70
    assert reporter.trend(60.0, now=now) == "decreasing"

    reporter.clear()
    assert len(reporter) == 0
    assert reporter.trend(60.0, now=now) == "stable"


def test_error_to_dict():
    error = error_from_exception(ZeroDivisionError("x"), DecisionType.FIXED_PRICE)
    data = error.to_dict()
    assert data["kind"] == "computation"
    assert data["severity"] == "high"
    assert data["decision_type"] == "fixed_price"
    assert data["details"]["exception"] == "ZeroDivisionError"
