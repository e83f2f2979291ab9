# art_auction_ai/errors.py
"""
AI error taxonomy and recovery.

Every failure inside a decision ends up as an `AIError` tagged with a kind,
a code and a severity. `ErrorHandler` turns it into a legal fallback
decision and keeps a bounded per-player history; `ErrorReporter` keeps a
bounded global log for diagnostics.
"""
from __future__ import annotations

import enum
import logging
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Sequence

from .cards import Card
from .decisions import (
    CardPlayDecision,
    BidDecision,
    Decision,
    DecisionType,
    DoubleOfferDecision,
    FixedPriceDecision,
    HiddenBidDecision,
    pass_bid,
)
from .time_slicer import TimeSliceCancelled

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
REPORTER_LIMIT = 1000

# Systemic issue thresholds
MAX_TOTAL_ERRORS = 20
MAX_CRITICAL_ERRORS = 3
MAX_ERRORS_PER_CODE = 5


class ErrorKind(enum.Enum):
    STRATEGY = "strategy"
    COMPUTATION = "computation"
    VALIDATION = "validation"
    DECISION = "decision"
    SYSTEM = "system"


class Severity(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_FALLBACK_ACTIONS = {
    "NUMERICAL_ERROR": "Use bounded arithmetic",
    "CONVERGENCE_ERROR": "Use best approximation so far",
    "MEMORY_ERROR": "Reduce search depth",
    "DECISION_TIMEOUT": "Use fallback decision",
    "NO_VALID_DECISION": "Use default safe decision",
    "INVALID_DECISION": "Use validated fallback decision",
    "STRATEGY_NOT_IMPLEMENTED": "Use easier strategy",
    "STRATEGY_CONFIGURATION_ERROR": "Use default configuration",
    "INVALID_GAME_STATE": "Skip decision and pass",
    "INVALID_DECISION_PARAMETERS": "Use default parameters",
}

_KIND_FALLBACKS = {
    ErrorKind.STRATEGY: "Use fallback strategy",
    ErrorKind.COMPUTATION: "Use simple approximation",
    ErrorKind.VALIDATION: "Use validated fallback decision",
    ErrorKind.DECISION: "Use fallback decision",
    ErrorKind.SYSTEM: "Emergency pass",
}


def fallback_action_for(kind: ErrorKind, code: str) -> str:
    return _FALLBACK_ACTIONS.get(code, _KIND_FALLBACKS[kind])


class AIError(Exception):
    """Single error type for the AI layer; `kind` and `code` tell cases apart."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        code: str,
        *,
        severity: Severity = Severity.MEDIUM,
        recoverable: bool = True,
        fallback_action: Optional[str] = None,
        decision_type: Optional[DecisionType] = None,
        player_index: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code
        self.severity = severity
        self.recoverable = recoverable
        self.fallback_action = fallback_action or fallback_action_for(kind, code)
        self.decision_type = decision_type
        self.player_index = player_index
        self.details = dict(details or {})
        self.timestamp = time.time()

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "kind": self.kind.value,
            "code": self.code,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "fallback_action": self.fallback_action,
            "decision_type": self.decision_type.value if self.decision_type else None,
            "player_index": self.player_index,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def computation_error(
    operation: str,
    computation_type: str = "expected_value",
    issue: Optional[str] = None,
    message: Optional[str] = None,
) -> AIError:
    """`issue` (overflow, division_by_zero, ...) makes it a numerical error."""
    if issue is not None:
        return AIError(
            message or f"Numerical error in {operation}: {issue}",
            ErrorKind.COMPUTATION,
            "NUMERICAL_ERROR",
            severity=Severity.HIGH if issue == "division_by_zero" else Severity.MEDIUM,
            details={"operation": operation, "computation_type": computation_type, "issue": issue},
        )
    return AIError(
        message or f"Computation failed in {operation}",
        ErrorKind.COMPUTATION,
        "AI_COMPUTATION_ERROR",
        details={"operation": operation, "computation_type": computation_type},
    )


def decision_error(
    decision_type: Optional[DecisionType],
    message: str,
    code: str = "AI_DECISION_ERROR",
    severity: Severity = Severity.MEDIUM,
    details: Optional[Dict[str, Any]] = None,
) -> AIError:
    return AIError(
        message,
        ErrorKind.DECISION,
        code,
        severity=severity,
        decision_type=decision_type,
        details=details,
    )


def decision_timeout(decision_type: DecisionType, timeout_ms: float) -> AIError:
    return decision_error(
        decision_type,
        f"Decision {decision_type.value} exceeded {timeout_ms:.0f} ms",
        code="DECISION_TIMEOUT",
        details={"timeout_ms": timeout_ms},
    )


def invalid_decision(decision_type: DecisionType, errors: Sequence[str]) -> AIError:
    return decision_error(
        decision_type,
        f"Invalid {decision_type.value} decision: {'; '.join(errors)}",
        code="INVALID_DECISION",
        details={"errors": list(errors)},
    )


def no_valid_decision(decision_type: DecisionType, reason: str) -> AIError:
    return decision_error(
        decision_type,
        f"No valid {decision_type.value} decision: {reason}",
        code="NO_VALID_DECISION",
        severity=Severity.HIGH,
    )


def strategy_error(
    difficulty: str,
    message: str,
    code: str = "AI_STRATEGY_ERROR",
    details: Optional[Dict[str, Any]] = None,
) -> AIError:
    return AIError(
        message,
        ErrorKind.STRATEGY,
        code,
        details={"difficulty": difficulty, **(details or {})},
    )


def validation_error(
    message: str,
    code: str = "AI_VALIDATION_ERROR",
    details: Optional[Dict[str, Any]] = None,
) -> AIError:
    return AIError(message, ErrorKind.VALIDATION, code, severity=Severity.LOW, details=details)


def critical_error(message: str, code: str = "CRITICAL_AI_ERROR", details: Optional[Dict[str, Any]] = None) -> AIError:
    return AIError(
        message,
        ErrorKind.SYSTEM,
        code,
        severity=Severity.CRITICAL,
        recoverable=False,
        details=details,
    )


def error_from_exception(
    exc: BaseException,
    decision_type: Optional[DecisionType] = None,
    difficulty: str = "unknown",
) -> AIError:
    """Map an arbitrary exception raised inside a decision onto an AIError."""
    if isinstance(exc, AIError):
        if exc.decision_type is None:
            exc.decision_type = decision_type
        return exc
    text = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, TimeSliceCancelled):
        error = decision_error(decision_type, text, code="DECISION_TIMEOUT")
    elif isinstance(exc, MemoryError):
        error = critical_error(text, code="MEMORY_ERROR")
    elif isinstance(exc, ZeroDivisionError):
        error = computation_error("decision", issue="division_by_zero", message=text)
    elif isinstance(exc, (OverflowError, ArithmeticError)):
        error = computation_error("decision", issue="overflow", message=text)
    elif isinstance(exc, (TypeError, KeyError, AttributeError)):
        error = validation_error(text, code="INVALID_DECISION_PARAMETERS")
    else:
        error = strategy_error(difficulty, text, code="STRATEGY_COMPUTATION_ERROR")
    error.decision_type = decision_type
    error.details.setdefault("exception", type(exc).__name__)
    return error


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------


def fallback_decision(
    decision_type: DecisionType,
    hand: Sequence[Card] = (),
    money: Optional[int] = None,
    reason: str = "fallback",
) -> Decision:
    """The safe decision for `decision_type`; always passes validation."""
    reasoning = f"Fallback: {reason}"
    if decision_type == DecisionType.CARD_PLAY:
        return CardPlayDecision(card=hand[0] if hand else None, confidence=0.1, reasoning=reasoning)
    if decision_type == DecisionType.HIDDEN_BID:
        return HiddenBidDecision(amount=0, confidence=0.1, reasoning=reasoning)
    if decision_type == DecisionType.FIXED_PRICE:
        price = min(money, 10) if money is not None and money > 0 else 1
        return FixedPriceDecision(
            price=price, confidence=0.1, price_reasoning="desperate", reasoning=reasoning
        )
    if decision_type == DecisionType.DOUBLE_OFFER:
        return DoubleOfferDecision(action="decline", confidence=0.1, reasoning=reasoning)
    return pass_bid(reasoning=reasoning, confidence=0.1)


def emergency_decision(reason: str = "critical error") -> BidDecision:
    return pass_bid(reasoning=f"Emergency: {reason}", confidence=0.0)


@dataclass(frozen=True)
class HandledError:
    decision: Decision
    error: AIError
    error_handled: bool
    fallback_used: bool = True


class ErrorHandler:
    """Per-player error history and fallback selection."""

    def __init__(self, history_limit: int = HISTORY_LIMIT) -> None:
        self.history_limit = history_limit
        self._history: Dict[int, Deque[AIError]] = {}
        self._lock = threading.Lock()

    def handle_error(
        self,
        error: AIError,
        decision_type: DecisionType,
        player_index: int,
        hand: Sequence[Card] = (),
        money: Optional[int] = None,
    ) -> HandledError:
        error.player_index = player_index
        if error.decision_type is None:
            error.decision_type = decision_type
        self.record_error(error, player_index)

        if error.is_critical:
            logger.error(
                "Critical AI error for player %d (%s): %s", player_index, error.code, error.message
            )
            return HandledError(emergency_decision(error.code), error, error_handled=False)

        logger.warning(
            "AI error for player %d during %s (%s): %s; %s",
            player_index,
            decision_type.value,
            error.code,
            error.message,
            error.fallback_action,
        )
        return HandledError(
            fallback_decision(decision_type, hand, money, reason=error.code),
            error,
            error_handled=True,
        )

    def record_error(self, error: AIError, player_index: int) -> None:
        with self._lock:
            history = self._history.setdefault(player_index, deque(maxlen=self.history_limit))
            history.append(error)

    def history(self, player_index: Optional[int] = None) -> List[AIError]:
        with self._lock:
            if player_index is not None:
                return list(self._history.get(player_index, ()))
            return [e for h in self._history.values() for e in h]

    def error_stats(self, player_index: Optional[int] = None) -> Dict[str, Any]:
        errors = self.history(player_index)
        return {
            "total_errors": len(errors),
            "critical_errors": sum(1 for e in errors if e.is_critical),
            "by_kind": dict(Counter(e.kind.value for e in errors)),
            "by_severity": dict(Counter(e.severity.value for e in errors)),
            "by_code": dict(Counter(e.code for e in errors)),
            "recent": [e.to_dict() for e in errors[-5:]],
        }

    def has_systemic_issues(self, player_index: Optional[int] = None) -> bool:
        stats = self.error_stats(player_index)
        if stats["total_errors"] > MAX_TOTAL_ERRORS:
            return True
        if stats["critical_errors"] > MAX_CRITICAL_ERRORS:
            return True
        return any(count > MAX_ERRORS_PER_CODE for count in stats["by_code"].values())

    def clear_history(self, player_index: Optional[int] = None) -> None:
        with self._lock:
            if player_index is None:
                self._history.clear()
            else:
                self._history.pop(player_index, None)


class ErrorReporter:
    """Bounded global error log."""

    def __init__(self, limit: int = REPORTER_LIMIT) -> None:
        self._errors: Deque[AIError] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._errors)

    def report(self, error: AIError) -> None:
        with self._lock:
            self._errors.append(error)

    def recent(self, count: int = 50) -> List[AIError]:
        with self._lock:
            return list(self._errors)[-count:]

    def summary(self) -> Dict[str, int]:
        with self._lock:
            counts = Counter(e.severity.value for e in self._errors)
        return {s.value: counts.get(s.value, 0) for s in Severity}

    def trend(self, window_s: float = 60.0, now: Optional[float] = None) -> str:
        """Compare the last window with the one before it."""
        now = time.time() if now is None else now
        with self._lock:
            stamps = [e.timestamp for e in self._errors]
        latest = sum(1 for t in stamps if now - window_s <= t <= now)
        previous = sum(1 for t in stamps if now - 2 * window_s <= t < now - window_s)
        if latest > previous:
            return "increasing"
        if latest < previous:
            return "decreasing"
        return "stable"

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()
