"""
Baseline-risk adjustment of a severity score before AUROC evaluation.

With an adjustment, a score is judged by the AUROC of a logistic model of the
outcome on baseline covariates plus the score, instead of the raw score.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import log_loss
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler

from domain.errors import DegenerateInputError
from domain.evaluation.vectors import ArrayLike, as_bool_vector, as_score_vector, check_paired
from domain.schemas import Adjustment

logger = logging.getLogger(__name__)

# First-degree fractional polynomial powers (Royston & Altman); 0 means log(x)
FP_POWERS: tuple[float, ...] = (-2.0, -1.0, -0.5, 0.0, 0.5, 1.0, 2.0, 3.0)


def _logistic_model():
    # Large C: effectively unpenalized, the scaler keeps lbfgs well conditioned
    return make_pipeline(StandardScaler(), LogisticRegression(C=1e6, max_iter=1000))


def _impute(covariates: pd.DataFrame) -> pd.DataFrame:
    """Median-impute missing covariate values."""
    out = covariates.apply(pd.to_numeric, errors="raise").astype(float)
    medians = out.median()
    empty = [c for c in out.columns if pd.isna(medians[c])]
    if empty:
        raise ValueError(f"Covariates have no observed values: {empty}")
    return out.fillna(medians)


def fp_transform(x: np.ndarray, power: float) -> np.ndarray:
    """Apply a fractional polynomial power to strictly positive values."""
    if power == 0.0:
        return np.log(x)
    return np.power(x, power)


def _shift_positive(x: np.ndarray) -> np.ndarray:
    lowest = float(np.min(x))
    if lowest > 0:
        return x
    return x - lowest + 1.0


def select_fp_power(x: np.ndarray, positive: np.ndarray) -> float:
    """
    Choose the FP1 power with the smallest univariable logistic deviance.

    Ties keep the earlier power in FP_POWERS, except that the linear term
    wins any tie it is part of.
    """
    x = _shift_positive(np.asarray(x, dtype=float))
    best_power = 1.0
    best_deviance = np.inf
    for power in FP_POWERS:
        feature = fp_transform(x, power).reshape(-1, 1)
        model = _logistic_model().fit(feature, positive)
        deviance = 2.0 * len(positive) * log_loss(positive, model.predict_proba(feature)[:, 1])
        if deviance < best_deviance - 1e-9 or (power == 1.0 and np.isclose(deviance, best_deviance)):
            best_power = power
            best_deviance = deviance
    return best_power


def fractional_polynomial_covariates(
    covariates: pd.DataFrame,
    positive: np.ndarray,
    continuous: list[str],
) -> tuple[pd.DataFrame, dict[str, float]]:
    """
    Replace each continuous covariate by its best FP1 transform.

    Returns:
        Tuple of (transformed covariates, chosen power per continuous column)
    """
    out = covariates.copy()
    powers: dict[str, float] = {}
    for col in continuous:
        if col not in out.columns:
            raise KeyError(f"Continuous covariate '{col}' is not among the covariates: {list(out.columns)}")
        x = _shift_positive(out[col].to_numpy(dtype=float))
        power = select_fp_power(x, positive)
        out[col] = fp_transform(x, power)
        powers[col] = power
    logger.debug("Fractional polynomial powers: %s", powers)
    return out, powers


def _fitted_risk(score: np.ndarray, covariates: pd.DataFrame, positive: np.ndarray) -> np.ndarray:
    design = np.column_stack([covariates.to_numpy(dtype=float), score])
    model = _logistic_model().fit(design, positive)
    return model.predict_proba(design)[:, 1]


def adjusted_scores(
    mode: Adjustment,
    scores: ArrayLike,
    outcomes: ArrayLike,
    covariates: pd.DataFrame | None = None,
    continuous: list[str] | None = None,
) -> np.ndarray:
    """
    Ranking scores for AUROC under the given adjustment.

    The logistic model is fit once on all stays and its in-sample fitted
    probabilities are returned; bootstrap resamples reuse these fixed
    values rather than refitting, so the AUROC interval does not carry the
    model-fitting uncertainty.

    Args:
        mode: Adjustment to apply
        scores: Raw severity score per stay
        outcomes: Boolean outcome per stay
        covariates: Baseline covariates aligned with the scores (required unless mode is NONE)
        continuous: Covariate columns that get fractional polynomial terms

    Returns:
        Raw scores (NONE) or fitted outcome probabilities

    Raises:
        ShapeMismatchError: If scores, outcomes and covariates are not aligned
        DegenerateInputError: If the outcome has a single class
    """
    s = as_score_vector(scores, "scores")
    y = as_bool_vector(outcomes, "outcomes")
    check_paired(s, y, "scores", "outcomes")

    if mode is Adjustment.NONE:
        return s

    if covariates is None or covariates.shape[1] == 0:
        raise ValueError(f"Adjustment {mode.value} requires baseline covariates")
    check_paired(s, covariates.index, "scores", "covariates")
    if y.all() or not y.any():
        raise DegenerateInputError("Regression adjustment needs both outcome classes")

    base = _impute(covariates.reset_index(drop=True))

    if mode is Adjustment.BASELINE_REGRESSION:
        return _fitted_risk(s, base, y)

    if mode is Adjustment.FRACTIONAL_POLYNOMIAL:
        transformed, _ = fractional_polynomial_covariates(base, y, list(continuous or []))
        return _fitted_risk(s, transformed, y)

    raise ValueError(f"Unsupported adjustment: {mode!r}")
