import numpy as np
import pytest

from domain.errors import InsufficientDataError
from domain.evaluation.bootstrap import PairedResampler, bootstrap_ci, percentile_interval
from domain.evaluation.confusion import count_cells


def _sensitivity(predictions: np.ndarray, outcomes: np.ndarray) -> float:
    return count_cells(predictions, outcomes).sensitivity


def _data(n: int = 200, seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    outcomes = rng.random(n) < 0.4
    predictions = np.where(rng.random(n) < 0.8, outcomes, ~outcomes)
    return predictions, outcomes


def test_fixed_seed_is_deterministic() -> None:
    predictions, outcomes = _data()

    first = bootstrap_ci(_sensitivity, predictions, outcomes, n_resamples=300, rng=7)
    second = bootstrap_ci(_sensitivity, predictions, outcomes, n_resamples=300, rng=7)

    assert first == second


def test_estimate_lies_within_interval() -> None:
    predictions, outcomes = _data(seed=5)

    ci = bootstrap_ci(_sensitivity, predictions, outcomes, n_resamples=300, rng=3)

    assert ci.estimate == _sensitivity(predictions, outcomes)
    assert ci.lower <= ci.estimate <= ci.upper
    assert 0.0 <= ci.lower <= ci.upper <= 1.0
    assert ci.n_resamples == 300


def test_resampler_replays_identical_indices() -> None:
    resampler = PairedResampler(n=50, n_resamples=20, seed=123)

    first = [idx.copy() for idx in resampler]
    second = list(resampler)

    assert len(first) == len(resampler) == 20
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a, b)
        assert a.min() >= 0 and a.max() < 50


def test_resampler_from_same_seed_is_identical() -> None:
    a = PairedResampler.from_rng(10, 5, 99)
    b = PairedResampler.from_rng(10, 5, 99)

    assert a.seed == b.seed


def test_resampler_rejects_bad_sizes() -> None:
    with pytest.raises(ValueError):
        PairedResampler(n=0, n_resamples=10, seed=1)
    with pytest.raises(ValueError):
        PairedResampler(n=10, n_resamples=0, seed=1)


def test_shared_resampler_must_match_length() -> None:
    predictions, outcomes = _data(n=40)
    resampler = PairedResampler(n=30, n_resamples=10, seed=1)

    with pytest.raises(ValueError, match="Resampler was built"):
        bootstrap_ci(_sensitivity, predictions, outcomes, resampler=resampler)


def test_degenerate_resamples_are_counted() -> None:
    # One positive in 50: about a third of resamples contain no positive at all
    outcomes = np.zeros(50, dtype=bool)
    outcomes[0] = True
    predictions = outcomes.copy()

    ci = bootstrap_ci(_sensitivity, predictions, outcomes, n_resamples=400, rng=0, max_degenerate_fraction=0.6)

    assert ci.n_degenerate > 0
    assert ci.estimate == 1.0


def test_too_many_degenerate_resamples_raise() -> None:
    outcomes = np.zeros(50, dtype=bool)
    outcomes[0] = True
    predictions = outcomes.copy()

    with pytest.raises(InsufficientDataError):
        bootstrap_ci(_sensitivity, predictions, outcomes, n_resamples=400, rng=0, max_degenerate_fraction=0.1)


def test_percentile_interval_is_widened_to_contain_estimate() -> None:
    stats = np.full(100, 0.2)

    ci = percentile_interval(0.5, stats, confidence_level=0.95, max_degenerate_fraction=0.5)

    assert ci.lower == pytest.approx(0.2)
    assert ci.upper == 0.5


def test_percentile_interval_all_degenerate_raises() -> None:
    with pytest.raises(InsufficientDataError):
        percentile_interval(0.5, np.full(10, np.nan), confidence_level=0.95, max_degenerate_fraction=1.0)


def test_perfect_predictor_has_degenerate_width_interval() -> None:
    # predictions and outcomes resampled together, so every resample stays perfect
    _, outcomes = _data(seed=11)

    ci = bootstrap_ci(_sensitivity, outcomes.copy(), outcomes, n_resamples=300, rng=4)

    assert ci.estimate == 1.0
    assert ci.lower == ci.upper == 1.0
    assert ci.n_degenerate == 0


def test_percentile_interval_matches_quantiles() -> None:
    stats = np.random.default_rng(8).beta(8, 3, size=1000)
    estimate = float(np.median(stats))

    ci = percentile_interval(estimate, stats, confidence_level=0.95, max_degenerate_fraction=0.5)

    assert ci.lower == float(np.quantile(stats, 0.025))
    assert ci.upper == float(np.quantile(stats, 0.975))
    assert ci.lower < ci.estimate < ci.upper
