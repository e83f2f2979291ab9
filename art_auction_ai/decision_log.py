# art_auction_ai/decision_log.py
from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from .decisions import Decision, decision_to_dict


def _header(player_index: int, difficulty: str, decision_type: str, round_number: Optional[int]) -> str:
    parts = [
        f"Player: {player_index}",
        f"Difficulty: {difficulty}",
        f"Decision: {decision_type}",
    ]
    if round_number is not None:
        parts.append(f"Round: {round_number}")
    return " | ".join(parts)


class DecisionLogger:
    """Accumulates a readable trace of every AI decision."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def log_decision(
        self,
        *,
        player_index: int,
        difficulty: str,
        decision_type: str,
        round_number: Optional[int],
        decision: Decision,
        duration_ms: float,
        fallback_used: bool = False,
        warnings: Optional[List[str]] = None,
    ) -> None:
        lines = [
            f"=== {_header(player_index, difficulty, decision_type, round_number)} ===",
            f"Duration: {duration_ms:.1f} ms",
            f"Fallback: {'yes' if fallback_used else 'no'}",
            "Decision:",
            json.dumps(decision_to_dict(decision), sort_keys=True),
        ]
        if decision.reasoning:
            lines.extend(["", "Reasoning:", decision.reasoning.strip()])
        if warnings:
            lines.extend(["", "Warnings:"] + [f"- {w}" for w in warnings])

        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def flush(self) -> None:
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(to_write, encoding="utf-8")


class FailureLogger:
    """Captures only decisions that needed a fallback."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def log_failure(
        self,
        *,
        player_index: int,
        difficulty: str,
        decision_type: str,
        round_number: Optional[int],
        error: Dict[str, Any],
    ) -> None:
        lines = [
            f"=== {_header(player_index, difficulty, decision_type, round_number)} ===",
            f"Error: {error.get('code')} ({error.get('severity')})",
            str(error.get("message", "")),
            f"Fallback action: {error.get('fallback_action')}",
        ]
        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def flush(self) -> None:
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(to_write, encoding="utf-8")
