# art_auction_ai/strategies/personality.py
"""
Personality traits for the Hard AI.

A personality is fixed at creation and only drifts slowly through `adapt()`.
Every trait lives in [0.1, 0.9] so no Hard player is ever fully reckless or
fully timid.
"""
from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

TRAIT_MIN = 0.1
TRAIT_MAX = 0.9
ADAPTATION_STEP = 0.01

TRAITS = (
    "aggressiveness",
    "risk_tolerance",
    "bluffing_frequency",
    "memory_strength",
    "predictability",
    "patience",
)


def _clamp(value: float) -> float:
    return max(TRAIT_MIN, min(TRAIT_MAX, value))


@dataclass(frozen=True)
class AIPersonality:
    aggressiveness: float = 0.5
    risk_tolerance: float = 0.5
    bluffing_frequency: float = 0.3
    memory_strength: float = 0.7
    predictability: float = 0.6
    patience: float = 0.5

    def to_dict(self) -> Dict[str, float]:
        return dataclasses.asdict(self)


TEMPLATES: Dict[str, AIPersonality] = {
    "aggressive": AIPersonality(0.8, 0.7, 0.4, 0.6, 0.7, 0.3),
    "conservative": AIPersonality(0.2, 0.3, 0.1, 0.8, 0.4, 0.8),
    "balanced": AIPersonality(0.5, 0.5, 0.3, 0.7, 0.6, 0.5),
    "unpredictable": AIPersonality(0.5, 0.6, 0.6, 0.5, 0.2, 0.4),
}


def clamp_personality(personality: AIPersonality) -> AIPersonality:
    return AIPersonality(**{t: _clamp(getattr(personality, t)) for t in TRAITS})


def create_personality(template: str = "balanced", **overrides: float) -> AIPersonality:
    try:
        base = TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown personality template: {template!r}") from None
    unknown = set(overrides) - set(TRAITS)
    if unknown:
        raise ValueError(f"Unknown personality traits: {sorted(unknown)}")
    return clamp_personality(dataclasses.replace(base, **overrides))


def random_personality(rng: random.Random) -> AIPersonality:
    return AIPersonality(**{t: rng.uniform(TRAIT_MIN, TRAIT_MAX) for t in TRAITS})


def adaptive_personality(
    win_rate: float, average_money: float, rng: Optional[random.Random] = None
) -> AIPersonality:
    """Start from a template suited to how the player has been doing."""
    if win_rate > 0.6:
        base = TEMPLATES["aggressive"]
    elif win_rate < 0.3 or average_money < 40:
        base = TEMPLATES["conservative"]
    else:
        base = TEMPLATES["balanced"]
    if rng is None:
        return base
    return mutate_personality(base, rng, amount=0.05)


def mutate_personality(
    personality: AIPersonality, rng: random.Random, amount: float = 0.1
) -> AIPersonality:
    return AIPersonality(
        **{
            t: _clamp(getattr(personality, t) + rng.uniform(-amount, amount))
            for t in TRAITS
        }
    )


def adapt(personality: AIPersonality, money: float, average_money: float) -> AIPersonality:
    """
    One slow drift step: richer than the table makes a player bolder,
    poorer makes them more careful.
    """
    if average_money <= 0:
        return personality
    if money > average_money * 1.2:
        return clamp_personality(
            dataclasses.replace(
                personality,
                aggressiveness=personality.aggressiveness + ADAPTATION_STEP,
                risk_tolerance=personality.risk_tolerance + ADAPTATION_STEP,
            )
        )
    if money < average_money * 0.8:
        return clamp_personality(
            dataclasses.replace(
                personality,
                aggressiveness=personality.aggressiveness - ADAPTATION_STEP,
                patience=personality.patience + ADAPTATION_STEP,
            )
        )
    return personality


def describe(personality: AIPersonality) -> str:
    words: List[str] = []
    if personality.aggressiveness > 0.7:
        words.append("aggressive")
    elif personality.aggressiveness < 0.3:
        words.append("cautious")
    if personality.risk_tolerance > 0.7:
        words.append("risk-taking")
    elif personality.risk_tolerance < 0.3:
        words.append("risk-averse")
    if personality.bluffing_frequency > 0.5:
        words.append("deceptive")
    if personality.patience > 0.7:
        words.append("patient")
    if personality.predictability < 0.3:
        words.append("unpredictable")
    return ", ".join(words) if words else "balanced"


def compatibility(a: AIPersonality, b: AIPersonality) -> float:
    """1.0 for identical personalities, approaching 0 for opposites."""
    distance = sum(abs(getattr(a, t) - getattr(b, t)) for t in TRAITS)
    return 1.0 - distance / (len(TRAITS) * (TRAIT_MAX - TRAIT_MIN))
