"""
Rank-based AUROC and correlated AUROC comparison.

AUROC follows the Mann-Whitney definition: the probability that a random
outcome-positive stay scores higher than a random outcome-negative stay,
ties counting one half. Midranks from scipy.stats.rankdata give the tie
handling for both the AUROC and the DeLong structural components.
"""

import logging

import numpy as np
from scipy import stats
from scipy.stats import rankdata

from domain.errors import DegenerateInputError, InsufficientDataError, ShapeMismatchError
from domain.evaluation.bootstrap import PairedResampler, RandomState, percentile_interval
from domain.evaluation.vectors import ArrayLike, as_bool_vector, as_score_vector, check_paired
from domain.schemas import AUROCResult, ComparisonMethod, ComparisonResult

logger = logging.getLogger(__name__)


def rank_auroc(scores: np.ndarray, positive: np.ndarray) -> float:
    """AUROC of already-validated arrays; positive is the boolean outcome mask."""
    m = int(np.count_nonzero(positive))
    n = len(positive) - m
    if m == 0 or n == 0:
        raise DegenerateInputError(
            f"AUROC needs both outcome classes, got {m} positive and {n} negative cases"
        )
    ranks = rankdata(scores, method="average")
    return float((ranks[positive].sum() - m * (m + 1) / 2.0) / (m * n))


def compute_auroc(scores: ArrayLike, outcomes: ArrayLike) -> float:
    """
    AUROC of a real-valued score against a boolean outcome.

    Examples:
        >>> compute_auroc([0.1, 0.4, 0.6, 0.9], [False, False, True, True])
        1.0
        >>> compute_auroc([2, 2, 2, 2], [False, True, False, True])
        0.5

    Raises:
        ShapeMismatchError: If the vectors differ in length
        DegenerateInputError: If the outcome lacks positives or negatives
        ValueError: If scores contain NaN or the outcome is not boolean
    """
    s = as_score_vector(scores, "scores")
    y = as_bool_vector(outcomes, "outcomes")
    check_paired(s, y, "scores", "outcomes")
    return rank_auroc(s, y)


def auroc_bootstrap_distribution(
    scores: np.ndarray,
    positive: np.ndarray,
    resampler: PairedResampler,
) -> np.ndarray:
    """AUROC on every resample of the resampler; NaN where a resample lacks a class."""
    out = np.empty(len(resampler), dtype=float)
    for b, idx in enumerate(resampler):
        try:
            out[b] = rank_auroc(scores[idx], positive[idx])
        except DegenerateInputError:
            out[b] = np.nan
    return out


def auroc_with_ci(
    name: str,
    scores: ArrayLike,
    outcomes: ArrayLike,
    n_resamples: int = 2000,
    confidence_level: float = 0.95,
    rng: RandomState = None,
    max_degenerate_fraction: float = 0.5,
    resampler: PairedResampler | None = None,
) -> AUROCResult:
    """
    AUROC with a paired bootstrap percentile interval.

    Pass the same resampler for several scores to evaluate them on identical
    resamples.
    """
    s = as_score_vector(scores, f"{name} scores")
    y = as_bool_vector(outcomes, "outcomes")
    n = check_paired(s, y, f"{name} scores", "outcomes")
    if resampler is None:
        resampler = PairedResampler.from_rng(n, n_resamples, rng)

    estimate = rank_auroc(s, y)
    distribution = auroc_bootstrap_distribution(s, y, resampler)
    return auroc_from_distribution(name, estimate, distribution, y, confidence_level, max_degenerate_fraction)


def auroc_from_distribution(
    name: str,
    estimate: float,
    distribution: np.ndarray,
    positive: np.ndarray,
    confidence_level: float,
    max_degenerate_fraction: float,
) -> AUROCResult:
    ci = percentile_interval(
        estimate,
        distribution,
        confidence_level=confidence_level,
        max_degenerate_fraction=max_degenerate_fraction,
    )
    m = int(np.count_nonzero(positive))
    return AUROCResult(name=name, auroc=estimate, ci=ci, n_positive=m, n_negative=len(positive) - m)


def _delong_placements(scores: np.ndarray, positive: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Structural components of DeLong et al. (1988), computed as in Sun & Xu (2014).

    V10[i]: share of negatives scored below positive i (ties 0.5).
    V01[j]: share of positives scored above negative j (ties 0.5).
    """
    pos = scores[positive]
    neg = scores[~positive]
    m = len(pos)
    n = len(neg)
    combined = rankdata(np.concatenate([pos, neg]), method="average")
    v10 = (combined[:m] - rankdata(pos, method="average")) / n
    v01 = 1.0 - (combined[m:] - rankdata(neg, method="average")) / m
    return v10, v01


def delong_test(
    first_scores: np.ndarray,
    second_scores: np.ndarray,
    positive: np.ndarray,
) -> tuple[float, float, float, float]:
    """
    DeLong test for two correlated AUROCs on the same outcome vector.

    Returns:
        Tuple of (auroc_first, auroc_second, z_statistic, two-sided p-value)
    """
    m = int(np.count_nonzero(positive))
    n = len(positive) - m
    if m == 0 or n == 0:
        raise DegenerateInputError(
            f"AUROC needs both outcome classes, got {m} positive and {n} negative cases"
        )

    v10_a, v01_a = _delong_placements(first_scores, positive)
    v10_b, v01_b = _delong_placements(second_scores, positive)
    auc_a = float(v10_a.mean())
    auc_b = float(v10_b.mean())

    s10 = np.cov(np.vstack([v10_a, v10_b]), ddof=1) if m > 1 else np.zeros((2, 2))
    s01 = np.cov(np.vstack([v01_a, v01_b]), ddof=1) if n > 1 else np.zeros((2, 2))
    cov = s10 / m + s01 / n

    # Var(A - B) = Var(A) + Var(B) - 2 Cov(A, B)
    var_diff = float(cov[0, 0] + cov[1, 1] - 2.0 * cov[0, 1])
    diff = auc_a - auc_b
    if var_diff <= 1e-15:
        if np.isclose(diff, 0.0):
            return auc_a, auc_b, 0.0, 1.0
        return auc_a, auc_b, float(np.copysign(np.inf, diff)), 0.0

    z = diff / np.sqrt(var_diff)
    p_value = float(min(1.0, 2.0 * stats.norm.sf(abs(z))))
    return auc_a, auc_b, float(z), p_value


def bootstrap_comparison_p_value(
    first_distribution: np.ndarray,
    second_distribution: np.ndarray,
    max_degenerate_fraction: float,
) -> float:
    """
    Two-sided p-value for equal AUROCs from paired bootstrap distributions.

    Both distributions must come from the same resampler. The p-value is twice
    the smaller share of resampled differences on either side of zero.

    Raises:
        InsufficientDataError: If too many resamples were degenerate
    """
    if len(first_distribution) != len(second_distribution):
        raise ShapeMismatchError("Bootstrap distributions must come from the same resampler")
    degenerate = np.isnan(first_distribution) | np.isnan(second_distribution)
    n_total = len(degenerate)
    n_degenerate = int(degenerate.sum())
    if n_degenerate == n_total or n_degenerate > max_degenerate_fraction * n_total:
        raise InsufficientDataError(
            f"{n_degenerate} of {n_total} bootstrap resamples were degenerate; cannot compare AUROCs"
        )

    diffs = first_distribution[~degenerate] - second_distribution[~degenerate]
    below = float(np.mean(diffs <= 0.0))
    above = float(np.mean(diffs >= 0.0))
    return min(1.0, 2.0 * min(below, above))


def compare_aurocs(
    first_scores: ArrayLike,
    second_scores: ArrayLike,
    outcomes: ArrayLike,
    method: ComparisonMethod = ComparisonMethod.DELONG,
    first_name: str = "first",
    second_name: str = "second",
    n_resamples: int = 2000,
    confidence_level: float = 0.95,
    rng: RandomState = None,
    max_degenerate_fraction: float = 0.5,
    resampler: PairedResampler | None = None,
) -> ComparisonResult:
    """
    Test whether two scores have equal AUROC on the same stays.

    Both scores are evaluated on identical bootstrap resamples, so the CIs
    attached to the two AUROCResults (and the bootstrap p-value) keep the
    pairing induced by scoring the same patients twice.

    Args:
        first_scores: First score vector (e.g., SIRS)
        second_scores: Second score vector (e.g., qSOFA)
        outcomes: Shared outcome vector
        method: DELONG (asymptotic covariance) or BOOTSTRAP (paired resampling)
        first_name: Label for the first score
        second_name: Label for the second score
        n_resamples: Number of bootstrap samples
        confidence_level: Confidence level for the AUROC intervals
        rng: Generator or seed for the resampling
        max_degenerate_fraction: Largest tolerated share of degenerate resamples
        resampler: Pre-built resampler shared with other calls

    Returns:
        ComparisonResult

    Raises:
        ShapeMismatchError: If either score vector is not aligned to the outcomes
        DegenerateInputError: If the outcome lacks positives or negatives
        InsufficientDataError: If too many resamples are degenerate
    """
    a = as_score_vector(first_scores, f"{first_name} scores")
    b = as_score_vector(second_scores, f"{second_name} scores")
    y = as_bool_vector(outcomes, "outcomes")
    n = check_paired(a, y, f"{first_name} scores", "outcomes")
    check_paired(b, y, f"{second_name} scores", "outcomes")

    if resampler is None:
        resampler = PairedResampler.from_rng(n, n_resamples, rng)

    dist_a = auroc_bootstrap_distribution(a, y, resampler)
    dist_b = auroc_bootstrap_distribution(b, y, resampler)

    if method is ComparisonMethod.DELONG:
        auc_a, auc_b, z, p_value = delong_test(a, b, y)
    elif method is ComparisonMethod.BOOTSTRAP:
        auc_a = rank_auroc(a, y)
        auc_b = rank_auroc(b, y)
        z = None
        p_value = bootstrap_comparison_p_value(dist_a, dist_b, max_degenerate_fraction)
    else:
        raise ValueError(f"Unsupported comparison method: {method!r}")

    first = auroc_from_distribution(first_name, auc_a, dist_a, y, confidence_level, max_degenerate_fraction)
    second = auroc_from_distribution(second_name, auc_b, dist_b, y, confidence_level, max_degenerate_fraction)
    logger.debug(
        "AUROC %s=%.4f vs %s=%.4f (%s p=%.4g)", first_name, auc_a, second_name, auc_b, method.value, p_value
    )
    return ComparisonResult(
        first=first,
        second=second,
        p_value=p_value,
        difference=auc_a - auc_b,
        z_statistic=z,
        method=method,
    )
