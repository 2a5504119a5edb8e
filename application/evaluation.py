"""Evaluation workflow and summary logging."""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from application.reporting import format_ci
from domain.cohort import add_derived_columns, evaluate_predictors, outcome_vector, paired_complete_cases, parse_rule
from domain.evaluation import adjusted_scores, build_auroc_comparison, build_operating_point_report
from domain.schemas import Adjustment, AUROCResult, ComparisonResult, OperatingPointRow
from infrastructure.config.models import RunConfig
from infrastructure.observability import clear_predictor_context, set_log_context

logger = logging.getLogger(__name__)


def prepare_cohort(cfg: RunConfig, df: pd.DataFrame) -> pd.DataFrame:
    """
    Add derived columns (if enabled) and check that every configured column exists.

    Args:
        cfg: RunConfig instance
        df: Raw cohort table, one row per ICU stay

    Returns:
        Cohort table ready for evaluation

    Raises:
        KeyError: If a column named in the configuration is missing
    """
    if cfg.derive_columns:
        df = add_derived_columns(df, suspicion_col=cfg.suspicion_col)

    required = [cfg.outcome_col]
    required += [parse_rule(p.name, p.rule).column for p in cfg.predictors]
    required += cfg.auroc_scores
    required += cfg.adjustment.covariates

    missing = sorted({c for c in required if c not in df.columns})
    if missing:
        raise KeyError(f"Cohort table is missing configured columns: {missing}")

    logger.info("Cohort ready: %d stays, %d columns", df.shape[0], df.shape[1])
    return df


def run_operating_point_evaluation(
    cfg: RunConfig,
    df: pd.DataFrame,
    rng: np.random.Generator,
) -> tuple[list[OperatingPointRow], np.ndarray]:
    """
    Operating point report of every configured predictor against the outcome.

    Args:
        cfg: RunConfig instance
        df: Prepared cohort table
        rng: Run-level random generator

    Returns:
        Tuple of (report rows in configured order, boolean outcome vector)
    """
    outcomes = outcome_vector(df, cfg.outcome_col)
    logger.info(
        "Outcome '%s': %d positive of %d stays (prevalence %.3f)",
        cfg.outcome_col,
        int(outcomes.sum()),
        len(outcomes),
        float(outcomes.mean()) if len(outcomes) else float("nan"),
    )

    rules = [parse_rule(p.name, p.rule) for p in cfg.predictors]
    predictions = evaluate_predictors(df, rules)
    for rule in rules:
        set_log_context(predictor=rule.name)
        logger.info("Rule %s flags %d stays", rule.describe(), int(predictions[rule.name].sum()))
    clear_predictor_context()

    rows = build_operating_point_report(predictions, outcomes, cfg.stats, rng=rng)
    return rows, outcomes


def run_auroc_evaluation(
    cfg: RunConfig,
    df: pd.DataFrame,
    rng: np.random.Generator,
) -> tuple[list[AUROCResult], list[ComparisonResult], pd.DataFrame]:
    """
    AUROC of every configured score and their pairwise comparison.

    Stays missing any score are dropped from all scores so the comparison stays
    paired. With an adjustment, each score is replaced by the fitted risk of a
    logistic model on the baseline covariates plus that score.

    Args:
        cfg: RunConfig instance
        df: Prepared cohort table
        rng: Run-level random generator

    Returns:
        Tuple of (AUROC results, comparison results, p-value matrix)
    """
    if not cfg.auroc_scores:
        logger.info("No AUROC scores configured; skipping AUROC evaluation.")
        return [], [], pd.DataFrame(dtype=float)

    scores, outcomes, keep = paired_complete_cases(df, cfg.auroc_scores, cfg.outcome_col)
    n_dropped = int((~keep).sum())
    if n_dropped:
        logger.info("Dropped %d stays with a missing score; %d remain", n_dropped, len(outcomes))

    adjustment = cfg.adjustment
    if adjustment.mode is not Adjustment.NONE:
        covariates = df.loc[keep, adjustment.covariates]
        logger.info("Adjusting scores (%s) for %s", adjustment.mode.value, adjustment.covariates)
        for name in list(scores):
            set_log_context(predictor=name)
            scores[name] = adjusted_scores(
                adjustment.mode,
                scores[name],
                outcomes,
                covariates=covariates,
                continuous=adjustment.continuous,
            )
        clear_predictor_context()

    return build_auroc_comparison(scores, outcomes, cfg.stats, rng=rng)


def log_evaluation_summary(
    rows: list[OperatingPointRow],
    auroc_results: list[AUROCResult],
    comparisons: list[ComparisonResult],
    artifacts: dict[str, Path],
) -> None:
    """
    Log a concise, human-readable evaluation summary.

    Args:
        rows: Operating point report rows
        auroc_results: AUROC per score
        comparisons: Pairwise AUROC comparisons
        artifacts: Artifact name -> written path
    """
    logger.info("=== Evaluation Summary ===")

    logger.info("--- Operating points ---")
    for row in rows:
        logger.info(
            "%s: sens %s, spec %s, PPV %s, NPV %s",
            row.name,
            format_ci(row.sensitivity),
            format_ci(row.specificity),
            format_ci(row.ppv),
            format_ci(row.npv),
        )

    if auroc_results:
        logger.info("--- AUROC ---")
        for result in auroc_results:
            logger.info(
                "%s: %.3f [%.3f, %.3f] (%d positive / %d negative)",
                result.name,
                result.auroc,
                result.ci.lower,
                result.ci.upper,
                result.n_positive,
                result.n_negative,
            )
        for comparison in comparisons:
            logger.info(
                "%s vs %s: diff %.3f, p=%.4g (%s)",
                comparison.first.name,
                comparison.second.name,
                comparison.difference,
                comparison.p_value,
                comparison.method.value,
            )

    logger.info("--- Artifacts ---")
    for name, path in artifacts.items():
        logger.info("%s: %s", name, path)
