# art_auction_ai/paths.py
from __future__ import annotations

from pathlib import Path

# Benchmark CSVs, decision logs and plots all land here.
RESULTS_DIR = Path(__file__).resolve().parent / "results"


def ensure_results_dir() -> Path:
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    return RESULTS_DIR


def resolve_results_path(path_like: str | Path) -> Path:
    """
    Absolute paths pass through; relative ones are anchored in RESULTS_DIR
    so every run writes to the same place.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    ensure_results_dir()
    return RESULTS_DIR / path
