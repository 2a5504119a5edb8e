"""Operating point report and AUROC comparison matrix."""

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

from domain.errors import DegenerateInputError, Sepsis3EvalError
from domain.evaluation.auroc import (
    auroc_bootstrap_distribution,
    auroc_from_distribution,
    bootstrap_comparison_p_value,
    delong_test,
    rank_auroc,
)
from domain.evaluation.bootstrap import PairedResampler, RandomState
from domain.evaluation.metrics import RATE_NAMES, compute_operating_point
from domain.evaluation.vectors import ArrayLike, as_bool_vector, as_score_vector, check_paired
from domain.schemas import AUROCResult, ComparisonMethod, ComparisonResult, ErrorPolicy, OperatingPointRow
from infrastructure.config.models import StatsConfig

logger = logging.getLogger(__name__)

RATE_LABELS = {
    "sensitivity": "Sensitivity",
    "specificity": "Specificity",
    "ppv": "PPV",
    "npv": "NPV",
}


def build_operating_point_report(
    named_predictions: Mapping[str, ArrayLike],
    outcomes: ArrayLike,
    stats_cfg: StatsConfig,
    rng: RandomState = None,
) -> list[OperatingPointRow]:
    """
    One report row per predictor, in the order the predictors were supplied.

    All predictors are evaluated on the same bootstrap resamples.

    Args:
        named_predictions: Predictor name -> boolean predictions (insertion order is kept)
        outcomes: Boolean reference outcome
        stats_cfg: Statistics configuration
        rng: Generator or seed for the resampling

    Returns:
        List of OperatingPointRow

    Raises:
        DegenerateInputError: If the cohort is empty
    """
    true = as_bool_vector(outcomes, "outcomes")
    if not len(true):
        raise DegenerateInputError("Cannot build an operating point report from an empty cohort")
    resampler = PairedResampler.from_rng(len(true), stats_cfg.n_boot, rng)

    rows: list[OperatingPointRow] = []
    for name, predictions in named_predictions.items():
        row, cm = compute_operating_point(name, predictions, true, stats_cfg, resampler=resampler)
        logger.info("%s: TP=%d FP=%d TN=%d FN=%d", name, cm.tp, cm.fp, cm.tn, cm.fn)
        rows.append(row)
    return rows


def operating_points_to_frame(rows: list[OperatingPointRow]) -> pd.DataFrame:
    """
    Flatten report rows into a DataFrame (one column per estimate/bound).

    Undefined entries are NaN.
    """
    records: list[dict[str, object]] = []
    for row in rows:
        record: dict[str, object] = {
            "Predictor": row.name,
            "TP": row.tp,
            "FP": row.fp,
            "TN": row.tn,
            "FN": row.fn,
        }
        for rate in RATE_NAMES:
            label = RATE_LABELS[rate]
            ci = getattr(row, rate)
            record[label] = ci.estimate if ci is not None else np.nan
            record[f"{label} lower"] = ci.lower if ci is not None else np.nan
            record[f"{label} upper"] = ci.upper if ci is not None else np.nan
        record["F1"] = row.f1 if row.f1 is not None else np.nan
        record["NTP/100"] = row.ntp_per_100 if row.ntp_per_100 is not None else np.nan
        record["NFP/100"] = row.nfp_per_100 if row.nfp_per_100 is not None else np.nan
        records.append(record)

    columns = ["Predictor", "TP", "FP", "TN", "FN"]
    for rate in RATE_NAMES:
        label = RATE_LABELS[rate]
        columns += [label, f"{label} lower", f"{label} upper"]
    columns += ["F1", "NTP/100", "NFP/100"]
    return pd.DataFrame(records, columns=columns)


def build_auroc_comparison(
    named_scores: Mapping[str, ArrayLike],
    outcomes: ArrayLike,
    stats_cfg: StatsConfig,
    rng: RandomState = None,
) -> tuple[list[AUROCResult], list[ComparisonResult], pd.DataFrame]:
    """
    AUROC with CI for every score, and the pairwise comparison p-value matrix.

    Every score is bootstrapped on the same resamples, so each pairwise
    comparison keeps the pairing of stays. The matrix holds p-values in the
    upper triangle (row before column, in supplied order); the diagonal and
    the lower triangle are NaN.

    Args:
        named_scores: Score name -> real-valued scores (insertion order is kept)
        outcomes: Boolean reference outcome shared by all scores
        stats_cfg: Statistics configuration (comparison_method, on_error, ...)
        rng: Generator or seed for the resampling

    Returns:
        Tuple of (AUROC results, comparison results, p-value matrix)

    Raises:
        DegenerateInputError: If the cohort is empty
        ShapeMismatchError: If a score vector is not aligned to the outcomes
    """
    y = as_bool_vector(outcomes, "outcomes")
    if not len(y):
        raise DegenerateInputError("Cannot compare AUROCs on an empty cohort")
    names = list(named_scores.keys())
    scores = {}
    for name in names:
        s = as_score_vector(named_scores[name], f"{name} scores")
        check_paired(s, y, f"{name} scores", "outcomes")
        scores[name] = s

    resampler = PairedResampler.from_rng(len(y), stats_cfg.n_boot, rng)
    policy = stats_cfg.on_error

    results: dict[str, AUROCResult] = {}
    distributions: dict[str, np.ndarray] = {}
    for name in names:
        try:
            estimate = rank_auroc(scores[name], y)
            distributions[name] = auroc_bootstrap_distribution(scores[name], y, resampler)
            results[name] = auroc_from_distribution(
                name,
                estimate,
                distributions[name],
                y,
                stats_cfg.confidence_level,
                stats_cfg.max_degenerate_fraction,
            )
        except Sepsis3EvalError as e:
            if policy is ErrorPolicy.RAISE:
                raise
            logger.warning("AUROC of %s is undefined: %s", name, e)

    matrix = pd.DataFrame(np.nan, index=names, columns=names, dtype=float)
    comparisons: list[ComparisonResult] = []
    for i, first in enumerate(names):
        for second in names[i + 1 :]:
            if first not in results or second not in results:
                continue
            try:
                comparison = _compare_pair(first, second, scores, distributions, results, y, stats_cfg)
            except Sepsis3EvalError as e:
                if policy is ErrorPolicy.RAISE:
                    raise
                logger.warning("AUROC comparison %s vs %s failed: %s", first, second, e)
                continue
            comparisons.append(comparison)
            matrix.loc[first, second] = comparison.p_value

    return [results[n] for n in names if n in results], comparisons, matrix


def _compare_pair(
    first: str,
    second: str,
    scores: dict[str, np.ndarray],
    distributions: dict[str, np.ndarray],
    results: dict[str, AUROCResult],
    positive: np.ndarray,
    stats_cfg: StatsConfig,
) -> ComparisonResult:
    method = stats_cfg.comparison_method
    if method is ComparisonMethod.DELONG:
        _, _, z, p_value = delong_test(scores[first], scores[second], positive)
    else:
        z = None
        p_value = bootstrap_comparison_p_value(
            distributions[first],
            distributions[second],
            stats_cfg.max_degenerate_fraction,
        )
    return ComparisonResult(
        first=results[first],
        second=results[second],
        p_value=p_value,
        difference=results[first].auroc - results[second].auroc,
        z_statistic=z,
        method=method,
    )


def auroc_results_to_frame(results: list[AUROCResult]) -> pd.DataFrame:
    """One row per score: AUROC, CI bounds and class counts."""
    return pd.DataFrame(
        [
            {
                "Score": r.name,
                "AUROC": r.auroc,
                "AUROC lower": r.ci.lower,
                "AUROC upper": r.ci.upper,
                "N positive": r.n_positive,
                "N negative": r.n_negative,
            }
            for r in results
        ],
        columns=["Score", "AUROC", "AUROC lower", "AUROC upper", "N positive", "N negative"],
    )
