# tests/test_probability.py
import pytest

from art_auction_ai.probability import (
    BayesianInference,
    DecisionTheory,
    MonteCarlo,
    ProbabilityUtils,
    weighted_average,
)
from art_auction_ai.time_slicer import TimeSliceController


def test_seeded_utils_are_reproducible():
    a = ProbabilityUtils(seed=42)
    b = ProbabilityUtils(seed=42)
    assert [a.random_int(1, 100) for _ in range(10)] == [
        b.random_int(1, 100) for _ in range(10)
    ]
    assert a.shuffle(range(10)) == b.shuffle(range(10))


def test_draw_helpers():
    utils = ProbabilityUtils(seed=1)
    # Bounds may be given in either order.
    assert all(1 <= utils.random_int(5, 1) <= 5 for _ in range(50))
    with pytest.raises(ValueError):
        utils.choice([])
    with pytest.raises(ValueError):
        utils.exponential(0)

    assert all(utils.weighted_choice(["a", "b"], [0.0, 1.0]) == "b" for _ in range(20))
    assert utils.weighted_choice(["a", "b"], [0.0, 0.0]) in ("a", "b")


def test_weighted_average():
    assert weighted_average([10, 20], [1, 3]) == pytest.approx(17.5)
    assert weighted_average([], []) == 0.0
    with pytest.raises(ValueError):
        weighted_average([1], [1, 2])
    assert weighted_average([1, 2, 3]) == pytest.approx(2.0)
    assert weighted_average([]) == 0.0


def test_bayesian_updates_are_clamped():
    assert BayesianInference.update_prior(0.5, 0.8, 0.4) == pytest.approx(1.0)
    assert BayesianInference.update_prior(0.3, 0.8, 0.0) == 0.3

    posterior = BayesianInference.multiple_evidence_update(0.5, [(1.0, 0.0)])
    assert posterior == pytest.approx(0.99)

    no_data = BayesianInference.estimate_from_sample(0, 0)
    assert no_data == {"estimate": 0.5, "lower": 0.0, "upper": 1.0}

    interval = BayesianInference.estimate_from_sample(50, 100)
    assert interval["lower"] < interval["estimate"] == 0.5 < interval["upper"]


def test_monte_carlo_respects_time_budget():
    mc = MonteCarlo(ProbabilityUtils(seed=3))
    assert mc.estimate_probability(lambda u: True, iterations=100) == 1.0

    expired = TimeSliceController(0)
    assert mc.estimate_probability(lambda u: True, iterations=100, controller=expired) == 0.5

    dist = mc.estimate_distribution(lambda u: 3.0, iterations=20)
    assert dist.samples == 20
    assert dist.mean == pytest.approx(3.0)
    assert dist.std_dev == pytest.approx(0.0)
    assert dist.percentiles[50] == pytest.approx(3.0)

    ev = mc.estimate_expected_value(lambda u: u.random_float(0, 10), iterations=500)
    assert 0 <= ev["lower"] <= ev["mean"] <= ev["upper"] <= 10


def test_decision_theory():
    assert DecisionTheory.minimax({"a": [1, 5], "b": [2, 3]}) == ("b", 2)
    with pytest.raises(ValueError):
        DecisionTheory.minimax({})

    outcomes = [(0.5, 10.0), (0.5, -4.0)]
    assert DecisionTheory.expected_value(outcomes) == pytest.approx(3.0)
    assert DecisionTheory.expected_utility(outcomes, 0.0) == pytest.approx(3.0)
    assert DecisionTheory.expected_utility(outcomes, 0.5) < 3.0

    posterior = DecisionTheory.bayesian_update({"h1": 0.5, "h2": 0.5}, {"h1": 0.9, "h2": 0.1})
    assert posterior["h1"] == pytest.approx(0.9)
