# art_auction_ai/telemetry.py
from __future__ import annotations

import dataclasses
import time
import tracemalloc
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Any, Deque, Dict, List, Optional

import numpy as np
import pandas as pd

from .paths import resolve_results_path

DEFAULT_RECORD_LIMIT = 10000


@dataclass(frozen=True)
class DecisionRecord:
    player_index: int
    difficulty: str
    decision_type: str
    duration_ms: float
    memory_delta_bytes: int = 0
    success: bool = True
    fallback_used: bool = False
    timed_out: bool = False
    error_code: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


class MemoryTracker:
    """
    Measures allocation growth across one decision.

    Only reports non-zero deltas while `tracemalloc` is tracing; the monitor
    never starts tracing on its own.
    """

    def __init__(self) -> None:
        self._start = 0
        self.delta = 0

    def __enter__(self) -> "MemoryTracker":
        self._start = tracemalloc.get_traced_memory()[0] if tracemalloc.is_tracing() else 0
        self.delta = 0
        return self

    def __exit__(self, *exc: object) -> None:
        if tracemalloc.is_tracing():
            self.delta = tracemalloc.get_traced_memory()[0] - self._start


class PerformanceMonitor:
    """Bounded, thread-safe store of per-decision telemetry."""

    def __init__(self, limit: int = DEFAULT_RECORD_LIMIT) -> None:
        self._records: Deque[DecisionRecord] = deque(maxlen=limit)
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._records)

    def record(self, record: DecisionRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(
        self,
        player_index: Optional[int] = None,
        difficulty: Optional[str] = None,
        since: Optional[float] = None,
    ) -> List[DecisionRecord]:
        with self._lock:
            selected = list(self._records)
        if player_index is not None:
            selected = [r for r in selected if r.player_index == player_index]
        if difficulty is not None:
            selected = [r for r in selected if r.difficulty == difficulty]
        if since is not None:
            selected = [r for r in selected if r.timestamp >= since]
        return selected

    def summary(
        self, player_index: Optional[int] = None, difficulty: Optional[str] = None
    ) -> Dict[str, Any]:
        selected = self.records(player_index, difficulty)
        if not selected:
            return {
                "decisions": 0,
                "mean_ms": 0.0,
                "p95_ms": 0.0,
                "max_ms": 0.0,
                "fallback_rate": 0.0,
                "timeout_rate": 0.0,
                "success_rate": 0.0,
            }
        durations = np.array([r.duration_ms for r in selected], dtype=float)
        return {
            "decisions": len(selected),
            "mean_ms": float(durations.mean()),
            "p95_ms": float(np.percentile(durations, 95)),
            "max_ms": float(durations.max()),
            "fallback_rate": sum(r.fallback_used for r in selected) / len(selected),
            "timeout_rate": sum(r.timed_out for r in selected) / len(selected),
            "success_rate": sum(r.success for r in selected) / len(selected),
        }

    def to_dataframe(self) -> pd.DataFrame:
        columns = [f.name for f in dataclasses.fields(DecisionRecord)]
        rows = [dataclasses.asdict(r) for r in self.records()]
        return pd.DataFrame(rows, columns=columns)

    def export_csv(self, path: str | Path) -> Path:
        target = resolve_results_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self.to_dataframe().to_csv(target, index=False)
        return target

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
