# art_auction_ai/time_slicer.py
"""
Cooperative time budgets for AI decisions.

There is no preemption: a computation receives a controller and is expected
to poll `should_continue()` (or call `checkpoint()`) between units of work.
Once the deadline passes or `cancel()` is called the computation should
stop, and `TimeSlicer.execute` reports the run as timed out or interrupted
so the caller can substitute a fallback.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[float], None]

# Below this many milliseconds left, computations should wrap up.
_RUNNING_OUT_MS = 100.0

DEFAULT_TIMEOUTS_MS = {
    "easy": 1500.0,
    "medium": 3000.0,
    "hard": 6000.0,
}


class TimeSliceError(RuntimeError):
    """Raised when a time-sliced computation cannot be scheduled."""


class TimeSliceCancelled(TimeSliceError):
    """Raised from `checkpoint()` once a computation must stop."""


@dataclass(frozen=True)
class TimeSliceOptions:
    timeout_ms: float = 3000.0
    on_progress: Optional[ProgressCallback] = None


def options_for_difficulty(difficulty: str) -> TimeSliceOptions:
    try:
        return TimeSliceOptions(timeout_ms=DEFAULT_TIMEOUTS_MS[difficulty])
    except KeyError:
        raise ValueError(f"Unknown difficulty: {difficulty!r}") from None


class TimeSliceController:
    """Deadline + cancellation handle passed into a computation."""

    def __init__(
        self,
        timeout_ms: float,
        *,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if timeout_ms < 0:
            raise ValueError("timeout_ms must be non-negative")
        self.timeout_ms = float(timeout_ms)
        self._cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._on_progress = on_progress
        self._started = time.perf_counter()

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000.0

    def time_remaining_ms(self) -> float:
        return max(0.0, self.timeout_ms - self.elapsed_ms())

    def is_timed_out(self) -> bool:
        return self.elapsed_ms() >= self.timeout_ms

    def cancel(self) -> None:
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def should_continue(self) -> bool:
        return not self.is_cancelled() and not self.is_timed_out()

    def is_time_running_out(self) -> bool:
        return self.time_remaining_ms() < _RUNNING_OUT_MS

    def checkpoint(self) -> None:
        """Cooperative yield point."""
        if self.is_cancelled():
            raise TimeSliceCancelled("Computation cancelled")
        if self.is_timed_out():
            raise TimeSliceCancelled(
                f"Computation exceeded {self.timeout_ms:.0f} ms budget"
            )

    def report_progress(self, fraction: float) -> None:
        self.checkpoint()
        if self._on_progress is not None:
            self._on_progress(max(0.0, min(1.0, float(fraction))))


@dataclass
class TimeSliceResult(Generic[T]):
    value: Optional[T]
    success: bool
    timed_out: bool
    interrupted: bool
    time_spent_ms: float
    error: Optional[BaseException] = None


class TimeSlicer:
    """Runs computations under a controller and classifies how they ended."""

    def __init__(self) -> None:
        self._active: List[TimeSliceController] = []
        self._lock = threading.Lock()

    def execute(
        self,
        computation: Callable[[TimeSliceController], T],
        options: Optional[TimeSliceOptions] = None,
        controller: Optional[TimeSliceController] = None,
    ) -> TimeSliceResult[T]:
        opts = options or TimeSliceOptions()
        if controller is None:
            controller = TimeSliceController(opts.timeout_ms, on_progress=opts.on_progress)
        with self._lock:
            self._active.append(controller)
        try:
            try:
                value = computation(controller)
            except TimeSliceCancelled as exc:
                timed_out = controller.is_timed_out() and not controller.is_cancelled()
                logger.debug("Time slice stopped early: %s", exc)
                return TimeSliceResult(
                    value=None,
                    success=False,
                    timed_out=timed_out,
                    interrupted=not timed_out,
                    time_spent_ms=controller.elapsed_ms(),
                    error=exc,
                )
            except Exception as exc:  # noqa: BLE001
                return TimeSliceResult(
                    value=None,
                    success=False,
                    timed_out=False,
                    interrupted=False,
                    time_spent_ms=controller.elapsed_ms(),
                    error=exc,
                )

            if controller.is_cancelled():
                return TimeSliceResult(None, False, False, True, controller.elapsed_ms())
            if controller.is_timed_out():
                # Finished, but too late: the caller must not trust the value.
                return TimeSliceResult(None, False, True, False, controller.elapsed_ms())
            return TimeSliceResult(value, True, False, False, controller.elapsed_ms())
        finally:
            with self._lock:
                self._active.remove(controller)

    def cancel_all(self) -> int:
        with self._lock:
            active = list(self._active)
        for controller in active:
            controller.cancel()
        return len(active)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._active)


def batch_process(
    items: Iterable[T],
    fn: Callable[[T], R],
    controller: TimeSliceController,
    batch_size: int = 10,
) -> List[R]:
    """
    Map `fn` over `items`, checking the controller every `batch_size` items.

    Returns whatever was processed before the budget ran out.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    results: List[R] = []
    for i, item in enumerate(items):
        if i % batch_size == 0 and not controller.should_continue():
            break
        results.append(fn(item))
    return results
