# art_auction_ai/probability.py
"""
Seeded randomness and the small amount of probability/decision theory the
strategies lean on. Everything here is deterministic for a given seed.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .time_slicer import TimeSliceController

T = TypeVar("T")

_Z_SCORES = {0.90: 1.645, 0.95: 1.96, 0.99: 2.576}


class ProbabilityUtils:
    """Thin wrapper around `random.Random` with the draws the AIs need."""

    def __init__(
        self,
        seed: Optional[int | str] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rng = rng if rng is not None else random.Random(seed)

    def random(self) -> float:
        return self.rng.random()

    def random_int(self, low: int, high: int) -> int:
        """Inclusive on both ends."""
        if high < low:
            low, high = high, low
        return self.rng.randint(low, high)

    def random_float(self, low: float, high: float) -> float:
        return self.rng.uniform(low, high)

    uniform = random_float

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return self.rng.choice(items)

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy."""
        shuffled = list(items)
        self.rng.shuffle(shuffled)
        return shuffled

    def weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        if not items or len(items) != len(weights):
            raise ValueError("items and weights must be non-empty and equal length")
        if sum(weights) <= 0:
            return self.choice(items)
        return self.rng.choices(list(items), weights=list(weights), k=1)[0]

    def normal(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        return self.rng.gauss(mean, std_dev)

    def exponential(self, rate: float) -> float:
        if rate <= 0:
            raise ValueError("rate must be positive")
        return self.rng.expovariate(rate)

    def beta(self, alpha: float, beta: float) -> float:
        return self.rng.betavariate(alpha, beta)


def weighted_average(
    values: Sequence[float], weights: Optional[Sequence[float]] = None
) -> float:
    """Plain mean when `weights` is None; 0.0 for empty input or zero weight."""
    if weights is None:
        return float(np.mean(values)) if len(values) else 0.0
    if len(values) != len(weights):
        raise ValueError("values and weights must be the same length")
    if not values or float(np.sum(weights)) == 0.0:
        return 0.0
    return float(np.average(values, weights=weights))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Bayesian inference
# ---------------------------------------------------------------------------


class BayesianInference:
    @staticmethod
    def update_prior(prior: float, likelihood: float, evidence: float) -> float:
        """P(H|E) = P(E|H) * P(H) / P(E)."""
        if evidence <= 0:
            return prior
        return clamp((likelihood * prior) / evidence, 0.0, 1.0)

    @staticmethod
    def multiple_evidence_update(
        prior: float, evidence: Sequence[Tuple[float, float]]
    ) -> float:
        """
        Sequentially apply (P(E|H), P(E|not H)) pairs.

        The posterior is clamped to [0.01, 0.99] so one update can never
        rule a hypothesis in or out completely.
        """
        posterior = prior
        for likelihood_true, likelihood_false in evidence:
            numerator = likelihood_true * posterior
            denominator = numerator + likelihood_false * (1 - posterior)
            if denominator > 0:
                posterior = numerator / denominator
            posterior = clamp(posterior, 0.01, 0.99)
        return posterior

    @staticmethod
    def estimate_from_sample(
        successes: int, trials: int, confidence: float = 0.95
    ) -> Dict[str, float]:
        """Point estimate plus Wilson score interval."""
        if trials <= 0:
            return {"estimate": 0.5, "lower": 0.0, "upper": 1.0}
        z = _Z_SCORES.get(confidence, 1.96)
        p = successes / trials
        denom = 1 + z * z / trials
        centre = (p + z * z / (2 * trials)) / denom
        margin = z * math.sqrt(p * (1 - p) / trials + z * z / (4 * trials * trials)) / denom
        return {
            "estimate": p,
            "lower": max(0.0, centre - margin),
            "upper": min(1.0, centre + margin),
        }


# ---------------------------------------------------------------------------
# Monte Carlo
# ---------------------------------------------------------------------------


@dataclass
class DistributionEstimate:
    mean: float
    std_dev: float
    percentiles: Dict[int, float]
    samples: int


class MonteCarlo:
    """
    Sampling estimators. Each accepts an optional controller and stops
    drawing as soon as the controller says the time budget is spent.
    """

    def __init__(self, utils: ProbabilityUtils) -> None:
        self.utils = utils

    def simulate(
        self,
        trial: Callable[[ProbabilityUtils], T],
        iterations: int,
        controller: Optional[TimeSliceController] = None,
    ) -> List[T]:
        results: List[T] = []
        for i in range(iterations):
            if controller is not None and i % 10 == 0 and not controller.should_continue():
                break
            results.append(trial(self.utils))
        return results

    def estimate_probability(
        self,
        event: Callable[[ProbabilityUtils], bool],
        iterations: int = 1000,
        controller: Optional[TimeSliceController] = None,
    ) -> float:
        outcomes = self.simulate(event, iterations, controller)
        if not outcomes:
            return 0.5
        return sum(1 for o in outcomes if o) / len(outcomes)

    def estimate_expected_value(
        self,
        sample: Callable[[ProbabilityUtils], float],
        iterations: int = 1000,
        controller: Optional[TimeSliceController] = None,
    ) -> Dict[str, float]:
        values = np.asarray(self.simulate(sample, iterations, controller), dtype=float)
        if values.size == 0:
            return {"mean": 0.0, "std_dev": 0.0, "lower": 0.0, "upper": 0.0}
        mean = float(values.mean())
        std = float(values.std())
        margin = 1.96 * std / math.sqrt(values.size)
        return {
            "mean": mean,
            "std_dev": std,
            "lower": mean - margin,
            "upper": mean + margin,
        }

    def estimate_distribution(
        self,
        sample: Callable[[ProbabilityUtils], float],
        iterations: int = 1000,
        controller: Optional[TimeSliceController] = None,
    ) -> DistributionEstimate:
        values = np.asarray(self.simulate(sample, iterations, controller), dtype=float)
        if values.size == 0:
            return DistributionEstimate(0.0, 0.0, {p: 0.0 for p in (10, 25, 50, 75, 90)}, 0)
        points = (10, 25, 50, 75, 90)
        pct = np.percentile(values, points)
        return DistributionEstimate(
            mean=float(values.mean()),
            std_dev=float(values.std()),
            percentiles={p: float(v) for p, v in zip(points, pct)},
            samples=int(values.size),
        )


# ---------------------------------------------------------------------------
# Decision theory
# ---------------------------------------------------------------------------


class DecisionTheory:
    @staticmethod
    def expected_value(outcomes: Sequence[Tuple[float, float]]) -> float:
        """`outcomes` is a sequence of (probability, value)."""
        return sum(p * v for p, v in outcomes)

    @staticmethod
    def utility(value: float, risk_aversion: float) -> float:
        if risk_aversion == 0:
            return value
        return (1 - math.exp(-risk_aversion * value)) / risk_aversion

    @classmethod
    def expected_utility(
        cls, outcomes: Sequence[Tuple[float, float]], risk_aversion: float = 0.0
    ) -> float:
        return sum(p * cls.utility(v, risk_aversion) for p, v in outcomes)

    @staticmethod
    def minimax(options: Dict[str, Sequence[float]]) -> Tuple[str, float]:
        """Pick the option whose worst outcome is best."""
        if not options:
            raise ValueError("minimax needs at least one option")
        best_name = ""
        best_worst = -math.inf
        for name, payoffs in options.items():
            worst = min(payoffs) if payoffs else -math.inf
            if worst > best_worst:
                best_name, best_worst = name, worst
        return best_name, best_worst

    @staticmethod
    def bayesian_update(
        priors: Dict[str, float], likelihoods: Dict[str, float]
    ) -> Dict[str, float]:
        unnormalized = {
            h: priors[h] * likelihoods.get(h, 0.0) for h in priors
        }
        total = sum(unnormalized.values())
        if total <= 0:
            return dict(priors)
        return {h: v / total for h, v in unnormalized.items()}
