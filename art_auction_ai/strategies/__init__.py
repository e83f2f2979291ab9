# art_auction_ai/strategies/__init__.py
from typing import Optional

from .base import AIStrategy, DecisionOptions, ThinkingDelay, decision_rng, snapshot_fingerprint
from .easy import EasyStrategy
from .hard import HardStrategy
from .medium import MediumStrategy
from .personality import TEMPLATES, AIPersonality, create_personality


def create_strategy(
    difficulty: str,
    seed: Optional[int] = None,
    personality: Optional[AIPersonality] = None,
) -> AIStrategy:
    """Build the strategy for `difficulty`; only Hard takes a personality."""
    if difficulty == "easy":
        return EasyStrategy(seed=seed)
    if difficulty == "medium":
        return MediumStrategy(seed=seed)
    if difficulty == "hard":
        return HardStrategy(seed=seed, personality=personality)
    raise ValueError(f"Unknown difficulty: {difficulty!r}")


__all__ = [
    "AIPersonality",
    "AIStrategy",
    "DecisionOptions",
    "EasyStrategy",
    "HardStrategy",
    "MediumStrategy",
    "TEMPLATES",
    "ThinkingDelay",
    "create_personality",
    "create_strategy",
    "decision_rng",
    "snapshot_fingerprint",
]
