"""Paired bootstrap confidence intervals."""

import logging
from collections.abc import Callable, Iterator

import numpy as np

from domain.errors import DegenerateInputError, InsufficientDataError
from domain.evaluation.vectors import check_paired
from domain.schemas import ConfidenceInterval

logger = logging.getLogger(__name__)

RandomState = np.random.Generator | int | None


class PairedResampler:
    """
    Reproducible stream of bootstrap index arrays.

    Each index array selects predictions and outcomes together, so the
    pairing of the two vectors survives resampling. Iterating twice yields
    the same arrays, which lets several statistics (or two scores in one
    comparison) share identical resamples without keeping the full index
    matrix in memory.
    """

    def __init__(self, n: int, n_resamples: int, seed: int) -> None:
        if n <= 0:
            raise ValueError("n must be a positive integer")
        if n_resamples <= 0:
            raise ValueError("n_resamples must be a positive integer")
        self.n = n
        self.n_resamples = n_resamples
        self.seed = seed

    @classmethod
    def from_rng(cls, n: int, n_resamples: int, rng: RandomState) -> "PairedResampler":
        """Derive the resampler seed from a caller-supplied generator (or seed)."""
        gen = np.random.default_rng(rng)
        return cls(n=n, n_resamples=n_resamples, seed=int(gen.integers(0, 2**63 - 1)))

    def __len__(self) -> int:
        return self.n_resamples

    def __iter__(self) -> Iterator[np.ndarray]:
        gen = np.random.default_rng(self.seed)
        for _ in range(self.n_resamples):
            yield gen.integers(0, self.n, size=self.n)


def collect_bootstrap_statistics(
    stat_fn: Callable[[np.ndarray, np.ndarray], float],
    first: np.ndarray,
    second: np.ndarray,
    resampler: PairedResampler,
) -> np.ndarray:
    """
    Apply stat_fn to every paired resample.

    Resamples on which stat_fn raises DegenerateInputError are recorded as NaN.
    """
    stats = np.empty(len(resampler), dtype=float)
    for b, sample_idx in enumerate(resampler):
        try:
            stats[b] = stat_fn(first[sample_idx], second[sample_idx])
        except DegenerateInputError:
            stats[b] = np.nan
    return stats


def percentile_interval(
    estimate: float,
    stats: np.ndarray,
    confidence_level: float,
    max_degenerate_fraction: float,
    proportion: bool = True,
) -> ConfidenceInterval:
    """
    Empirical percentile interval from a bootstrap distribution.

    NaN entries mark degenerate resamples; they are excluded, and the
    estimate fails when their share exceeds max_degenerate_fraction.
    The interval is widened to contain the point estimate.

    Raises:
        InsufficientDataError: If too many resamples were degenerate
    """
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")

    n_total = len(stats)
    degenerate = np.isnan(stats)
    n_degenerate = int(degenerate.sum())
    if n_degenerate:
        logger.debug("Bootstrap: %d of %d resamples were degenerate", n_degenerate, n_total)
    if n_degenerate == n_total or n_degenerate > max_degenerate_fraction * n_total:
        raise InsufficientDataError(
            f"{n_degenerate} of {n_total} bootstrap resamples were degenerate "
            f"(limit {max_degenerate_fraction:.0%}); cannot report a confidence interval"
        )

    valid = np.sort(stats[~degenerate])
    tail = (1.0 - confidence_level) / 2.0
    lower = float(np.quantile(valid, tail))
    upper = float(np.quantile(valid, 1.0 - tail))

    return ConfidenceInterval(
        estimate=estimate,
        lower=min(lower, estimate),
        upper=max(upper, estimate),
        confidence_level=confidence_level,
        n_resamples=n_total,
        n_degenerate=n_degenerate,
        proportion=proportion,
    )


def bootstrap_ci(
    stat_fn: Callable[[np.ndarray, np.ndarray], float],
    predictions: np.ndarray,
    outcomes: np.ndarray,
    n_resamples: int = 2000,
    confidence_level: float = 0.95,
    rng: RandomState = None,
    max_degenerate_fraction: float = 0.5,
    resampler: PairedResampler | None = None,
    proportion: bool = True,
) -> ConfidenceInterval:
    """
    Non-parametric paired bootstrap CI for a statistic (e.g., sensitivity, AUROC).

    Results are deterministic for an explicit integer seed (or a generator in a
    known state). With rng=None a fresh OS-seeded generator is used, so the
    interval changes from run to run.

    Args:
        stat_fn: Function that computes a metric from (predictions, outcomes)
        predictions: Predictions or scores, aligned with outcomes
        outcomes: Reference outcome
        n_resamples: Number of bootstrap samples
        confidence_level: Confidence level (e.g., 0.95 for a 95% CI)
        rng: Generator or seed for the resampling
        max_degenerate_fraction: Largest tolerated share of degenerate resamples
        resampler: Pre-built resampler, to share resamples across calls (overrides n_resamples/rng)
        proportion: Whether the statistic is bounded to [0, 1]

    Returns:
        ConfidenceInterval whose estimate is stat_fn on the original data

    Raises:
        ShapeMismatchError: If the vectors differ in length
        DegenerateInputError: If the statistic is undefined on the original data
        InsufficientDataError: If too many resamples are degenerate
    """
    predictions = np.asarray(predictions)
    outcomes = np.asarray(outcomes)
    n = check_paired(predictions, outcomes, "predictions", "outcomes")

    if resampler is None:
        resampler = PairedResampler.from_rng(n, n_resamples, rng)
    elif resampler.n != n:
        raise ValueError(f"Resampler was built for n={resampler.n}, got vectors of length {n}")

    estimate = float(stat_fn(predictions, outcomes))
    stats = collect_bootstrap_statistics(stat_fn, predictions, outcomes, resampler)
    return percentile_interval(
        estimate,
        stats,
        confidence_level=confidence_level,
        max_degenerate_fraction=max_degenerate_fraction,
        proportion=proportion,
    )
