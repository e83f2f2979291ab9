# art_auction_ai/manager.py
"""
Entry point the game engine talks to.

`AIManager.make_decision` turns a snapshot into a legal decision for one AI
seat. It never raises: strategy failures, timeouts, cancellations and
invalid decisions all end in a fallback decision plus an error record.
"""
from __future__ import annotations

import logging
import random
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from .auction_turns import decision_type_for
from .decision_log import DecisionLogger, FailureLogger
from .decisions import Decision, DecisionType, with_timing
from .errors import (
    AIError,
    ErrorHandler,
    ErrorReporter,
    critical_error,
    decision_error,
    decision_timeout,
    error_from_exception,
    invalid_decision,
    strategy_error,
)
from .knowledge import DecisionContext, GameStateAnalyzer, MarketSimulator, build_context
from .state import GameState
from .strategies import AIPersonality, AIStrategy, DecisionOptions, create_strategy, snapshot_fingerprint
from .telemetry import DecisionRecord, MemoryTracker, PerformanceMonitor
from .time_slicer import DEFAULT_TIMEOUTS_MS, TimeSliceController, TimeSlicer
from .validator import validate_decision

logger = logging.getLogger(__name__)


@dataclass
class ManagerConfig:
    timeouts_ms: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TIMEOUTS_MS))
    history_limit: int = 50
    enable_validation: bool = True
    # Sleep for the strategy's human-like delay after deciding.
    enable_thinking_delay: bool = False
    # Base seed for AIs registered through initialize_ai_players.
    seed: Optional[int] = None


@dataclass
class _AISeat:
    player_index: int
    difficulty: str
    seed: int
    strategy: AIStrategy
    analyzer: GameStateAnalyzer
    history: Deque[Decision]
    cancel_event: threading.Event = field(default_factory=threading.Event)
    thinking: bool = False
    decisions_made: int = 0


class AIManager:
    def __init__(
        self,
        config: Optional[ManagerConfig] = None,
        telemetry: Optional[PerformanceMonitor] = None,
        decision_logger: Optional[DecisionLogger] = None,
        failure_logger: Optional[FailureLogger] = None,
    ) -> None:
        self.config = config if config is not None else ManagerConfig()
        self.telemetry = telemetry if telemetry is not None else PerformanceMonitor()
        self.decision_logger = decision_logger
        self.failure_logger = failure_logger
        self.error_handler = ErrorHandler(self.config.history_limit)
        self.error_reporter = ErrorReporter()
        self.time_slicer = TimeSlicer()
        self._simulator = MarketSimulator()
        self._seats: Dict[int, _AISeat] = {}
        self._lock = threading.RLock()

    # -- registration ----------------------------------------------------

    def register_ai(
        self,
        player_index: int,
        difficulty: str,
        seed: Optional[int] = None,
        personality: Optional[AIPersonality] = None,
    ) -> None:
        """Raises ValueError for an unknown difficulty."""
        seed = seed if seed is not None else random.randrange(2**31)
        strategy = create_strategy(difficulty, seed=seed, personality=personality)
        with self._lock:
            previous = self._seats.get(player_index)
            if previous is not None:
                previous.cancel_event.set()
                previous.strategy.cleanup()
            self._seats[player_index] = _AISeat(
                player_index=player_index,
                difficulty=difficulty,
                seed=seed,
                strategy=strategy,
                analyzer=GameStateAnalyzer(player_index, difficulty),
                history=deque(maxlen=self.config.history_limit),
            )
        logger.info("Registered %s AI for player %d (seed %d)", difficulty, player_index, seed)

    def unregister_ai(self, player_index: int) -> bool:
        with self._lock:
            seat = self._seats.pop(player_index, None)
        if seat is None:
            return False
        seat.cancel_event.set()
        seat.strategy.cleanup()
        logger.info("Unregistered AI for player %d", player_index)
        return True

    def has_ai(self, player_index: int) -> bool:
        with self._lock:
            return player_index in self._seats

    @property
    def registered_players(self) -> List[int]:
        with self._lock:
            return sorted(self._seats)

    def initialize_ai_players(self, game_state: GameState) -> List[int]:
        """Register every `is_ai` player that is not registered yet, then initialise all."""
        for index, player in enumerate(game_state.players):
            if player.is_ai and not self.has_ai(index):
                seed = None if self.config.seed is None else self.config.seed + index
                self.register_ai(index, player.difficulty or "medium", seed=seed)
        with self._lock:
            seats = list(self._seats.values())
        for seat in seats:
            if seat.player_index < len(game_state.players):
                seat.analyzer.reset_memory()
                seat.strategy.initialize(game_state, seat.player_index)
        return [seat.player_index for seat in seats]

    # -- decisions -------------------------------------------------------

    def _seat(self, player_index: int) -> Optional[_AISeat]:
        with self._lock:
            return self._seats.get(player_index)

    def _context_rng(self, seat: _AISeat, game_state: GameState) -> random.Random:
        return random.Random(
            f"{seat.seed}|context|{snapshot_fingerprint(game_state, seat.player_index)}"
        )

    def _build_context(
        self, seat: _AISeat, game_state: GameState, controller: TimeSliceController
    ) -> DecisionContext:
        seat.analyzer.update_memory(game_state)
        return build_context(
            game_state,
            seat.player_index,
            seat.analyzer,
            controller,
            simulator=self._simulator,
            opponent_memory=getattr(seat.strategy, "opponent_memory", None),
            rng=self._context_rng(seat, game_state),
        )

    def make_decision(
        self,
        player_index: int,
        decision_type: DecisionType,
        game_state: GameState,
        options: Optional[DecisionOptions] = None,
    ) -> Decision:
        """
        Decide for `player_index` on `game_state`.

        Always returns a decision. `game_state` is read but never mutated.
        """
        started = time.perf_counter()
        seat = self._seat(player_index)
        if seat is None:
            error = strategy_error(
                "unknown", f"No AI registered for player {player_index}", code="AI_NOT_REGISTERED"
            )
            return self._fallback(error, None, decision_type, game_state, player_index, started)

        seat.cancel_event = threading.Event()
        seat.thinking = True
        timed_out = False
        try:
            with MemoryTracker() as tracker:
                timeout = (
                    options.timeout_ms
                    if options is not None and options.timeout_ms is not None
                    else self.config.timeouts_ms.get(seat.difficulty, DEFAULT_TIMEOUTS_MS["medium"])
                )
                controller = TimeSliceController(timeout, cancel_event=seat.cancel_event)

                def compute(ctrl: TimeSliceController) -> Decision:
                    context = self._build_context(seat, game_state, ctrl)
                    ctrl.checkpoint()
                    seat.strategy.update(context)
                    return seat.strategy.make_decision(decision_type, context, options)

                result = self.time_slicer.execute(compute, controller=controller)
                error: Optional[AIError] = None
                warnings: List[str] = []
                decision: Optional[Decision] = None
                if result.success and result.value is not None:
                    decision = result.value
                    if self.config.enable_validation:
                        validation = validate_decision(decision, game_state, player_index)
                        warnings = validation.warnings
                        if not validation.is_valid:
                            error = invalid_decision(decision_type, validation.errors)
                elif result.timed_out:
                    timed_out = True
                    error = decision_timeout(decision_type, timeout)
                elif result.interrupted:
                    error = decision_error(
                        decision_type, "Decision cancelled", code="DECISION_CANCELLED"
                    )
                else:
                    error = error_from_exception(
                        result.error or RuntimeError("no decision produced"),
                        decision_type,
                        seat.difficulty,
                    )

            if error is not None:
                return self._fallback(
                    error, seat, decision_type, game_state, player_index, started,
                    timed_out=timed_out, memory_delta=tracker.delta,
                )

            elapsed = (time.perf_counter() - started) * 1000.0
            decision = with_timing(decision, elapsed)
            self._finish(seat, decision_type, game_state, decision, elapsed, tracker.delta, warnings)
            self._thinking_delay(seat, game_state, timeout - elapsed)
            return decision
        except Exception as exc:  # noqa: BLE001
            error = critical_error(f"Unexpected failure in AI manager: {exc}", details={"exception": type(exc).__name__})
            return self._fallback(error, seat, decision_type, game_state, player_index, started)
        finally:
            seat.thinking = False

    def _finish(
        self,
        seat: _AISeat,
        decision_type: DecisionType,
        game_state: GameState,
        decision: Decision,
        elapsed_ms: float,
        memory_delta: int,
        warnings: List[str],
    ) -> None:
        seat.history.append(decision)
        seat.decisions_made += 1
        self.telemetry.record(
            DecisionRecord(
                player_index=seat.player_index,
                difficulty=seat.difficulty,
                decision_type=decision_type.value,
                duration_ms=elapsed_ms,
                memory_delta_bytes=memory_delta,
            )
        )
        if self.decision_logger is not None:
            self.decision_logger.log_decision(
                player_index=seat.player_index,
                difficulty=seat.difficulty,
                decision_type=decision_type.value,
                round_number=game_state.round.round_number,
                decision=decision,
                duration_ms=elapsed_ms,
                warnings=warnings,
            )
        logger.debug(
            "Player %d (%s) %s in %.1f ms: %s",
            seat.player_index,
            seat.difficulty,
            decision_type.value,
            elapsed_ms,
            decision.reasoning,
        )

    def _fallback(
        self,
        error: AIError,
        seat: Optional[_AISeat],
        decision_type: DecisionType,
        game_state: GameState,
        player_index: int,
        started: float,
        *,
        timed_out: bool = False,
        memory_delta: int = 0,
    ) -> Decision:
        try:
            player = game_state.players[player_index]
            hand, money = list(player.hand), player.money
        except (IndexError, AttributeError):
            hand, money = [], None
        handled = self.error_handler.handle_error(error, decision_type, player_index, hand, money)
        self.error_reporter.report(error)
        elapsed = (time.perf_counter() - started) * 1000.0
        decision = with_timing(handled.decision, elapsed)

        difficulty = seat.difficulty if seat is not None else "unknown"
        if seat is not None:
            seat.history.append(decision)
            seat.decisions_made += 1
        self.telemetry.record(
            DecisionRecord(
                player_index=player_index,
                difficulty=difficulty,
                decision_type=decision_type.value,
                duration_ms=elapsed,
                memory_delta_bytes=memory_delta,
                success=False,
                fallback_used=True,
                timed_out=timed_out,
                error_code=error.code,
            )
        )
        round_number = getattr(getattr(game_state, "round", None), "round_number", None)
        if self.failure_logger is not None:
            self.failure_logger.log_failure(
                player_index=player_index,
                difficulty=difficulty,
                decision_type=decision_type.value,
                round_number=round_number,
                error=error.to_dict(),
            )
        if self.decision_logger is not None:
            self.decision_logger.log_decision(
                player_index=player_index,
                difficulty=difficulty,
                decision_type=decision_type.value,
                round_number=round_number,
                decision=decision,
                duration_ms=elapsed,
                fallback_used=True,
            )
        return decision

    def _thinking_delay(self, seat: _AISeat, game_state: GameState, remaining_ms: float) -> None:
        if not self.config.enable_thinking_delay or remaining_ms <= 0:
            return
        delay = seat.strategy.get_thinking_delay()
        rng = random.Random(
            f"{seat.seed}|delay|{snapshot_fingerprint(game_state, seat.player_index)}"
        )
        # Never pause past the decision budget. Waiting on the event lets
        # cancel_player cut the pause short.
        seat.cancel_event.wait(min(delay.sample(rng), remaining_ms) / 1000.0)

    def decide_hidden_bids(self, game_state: GameState) -> Dict[int, Decision]:
        """
        Sealed bids for every AI still owing one, all computed from a single
        snapshot so no AI can react to another's bid.
        """
        snapshot = game_state.copy()
        bids: Dict[int, Decision] = {}
        for player_index in self.registered_players:
            if decision_type_for(snapshot, player_index) == DecisionType.HIDDEN_BID:
                bids[player_index] = self.make_decision(
                    player_index, DecisionType.HIDDEN_BID, snapshot
                )
        return bids

    # -- knowledge updates ----------------------------------------------

    def update_ai(self, player_index: int, game_state: GameState) -> bool:
        """Let one AI observe `game_state` without deciding. False on failure."""
        seat = self._seat(player_index)
        if seat is None:
            return False
        controller = TimeSliceController(
            self.config.timeouts_ms.get(seat.difficulty, DEFAULT_TIMEOUTS_MS["medium"]),
            cancel_event=seat.cancel_event,
        )
        try:
            context = self._build_context(seat, game_state, controller)
            seat.strategy.update(context)
        except Exception as exc:  # noqa: BLE001
            error = error_from_exception(exc, None, seat.difficulty)
            self.error_handler.record_error(error, player_index)
            self.error_reporter.report(error)
            logger.warning("Update failed for player %d: %s", player_index, error.message)
            return False
        return True

    def update_ai_players(self, game_state: GameState) -> Dict[int, bool]:
        return {i: self.update_ai(i, game_state) for i in self.registered_players}

    # -- cancellation ----------------------------------------------------

    def cancel_player(self, player_index: int) -> bool:
        seat = self._seat(player_index)
        if seat is None or not seat.thinking:
            return False
        seat.cancel_event.set()
        return True

    def cancel_all(self) -> int:
        with self._lock:
            seats = list(self._seats.values())
        cancelled = sum(1 for seat in seats if seat.thinking)
        for seat in seats:
            seat.cancel_event.set()
        self.time_slicer.cancel_all()
        return cancelled

    def is_player_thinking(self, player_index: int) -> bool:
        seat = self._seat(player_index)
        return seat is not None and seat.thinking

    # -- introspection ---------------------------------------------------

    def decision_history(self, player_index: int) -> List[Decision]:
        seat = self._seat(player_index)
        return list(seat.history) if seat is not None else []

    def error_stats(self, player_index: Optional[int] = None) -> Dict[str, Any]:
        return self.error_handler.error_stats(player_index)

    def has_systemic_issues(self, player_index: Optional[int] = None) -> bool:
        return self.error_handler.has_systemic_issues(player_index)

    def cleanup(self) -> None:
        self.cancel_all()
        with self._lock:
            seats = list(self._seats.values())
            self._seats.clear()
        for seat in seats:
            seat.strategy.cleanup()
        self.error_handler.clear_history()
        if self.decision_logger is not None:
            self.decision_logger.flush()
        if self.failure_logger is not None:
            self.failure_logger.flush()
        logger.info("AI manager cleaned up %d AI players", len(seats))

    def debug_info(self) -> Dict[str, Any]:
        with self._lock:
            seats = list(self._seats.values())
        return {
            "players": {
                seat.player_index: {
                    "difficulty": seat.difficulty,
                    "strategy": seat.strategy.name,
                    "seed": seat.seed,
                    "thinking": seat.thinking,
                    "decisions_made": seat.decisions_made,
                    "history_size": len(seat.history),
                }
                for seat in seats
            },
            "active_computations": self.time_slicer.active_count,
            "errors": self.error_stats(),
            "reported_errors": self.error_reporter.summary(),
            "telemetry": self.telemetry.summary(),
        }
