"""Operating point metrics of a thresholded predictor, with bootstrap CIs."""

import logging

import numpy as np

from domain.errors import DegenerateInputError, Sepsis3EvalError
from domain.evaluation.bootstrap import PairedResampler, RandomState, percentile_interval
from domain.evaluation.confusion import count_cells
from domain.evaluation.vectors import ArrayLike, as_bool_vector, check_paired
from domain.schemas import ConfusionMatrixResult, ErrorPolicy, OperatingPointRow
from infrastructure.config.models import StatsConfig

logger = logging.getLogger(__name__)

RATE_NAMES: tuple[str, ...] = ("sensitivity", "specificity", "ppv", "npv")
COMPOSITE_NAMES: tuple[str, ...] = ("f1", "ntp_per_100", "nfp_per_100")


def rate_bootstrap_distributions(
    predictions: np.ndarray,
    outcomes: np.ndarray,
    resampler: PairedResampler,
) -> dict[str, np.ndarray]:
    """
    Bootstrap distribution of each confusion-matrix rate.

    The matrix is counted once per resample and every rate reads from it,
    so the four rates share identical resamples. Undefined rates are NaN.
    """
    dists = {rate: np.empty(len(resampler), dtype=float) for rate in RATE_NAMES}
    for b, idx in enumerate(resampler):
        cm = count_cells(predictions[idx], outcomes[idx])
        for rate in RATE_NAMES:
            try:
                dists[rate][b] = getattr(cm, rate)
            except DegenerateInputError:
                dists[rate][b] = np.nan
    return dists


def _undefined(policy: ErrorPolicy, what: str, err: Sepsis3EvalError) -> None:
    if policy is ErrorPolicy.RAISE:
        raise err
    logger.warning("%s is undefined: %s", what, err)


def compute_operating_point(
    name: str,
    predictions: ArrayLike,
    outcomes: ArrayLike,
    stats_cfg: StatsConfig,
    rng: RandomState = None,
    resampler: PairedResampler | None = None,
) -> tuple[OperatingPointRow, ConfusionMatrixResult]:
    """
    Confusion matrix, rates with CIs, and composite metrics for one predictor.

    Args:
        name: Predictor name (e.g., 'qSOFA >= 2')
        predictions: Boolean predictions, one per stay
        outcomes: Boolean reference outcome, aligned by index
        stats_cfg: Statistics configuration (n_boot, confidence_level, on_error, ...)
        rng: Generator or seed for the resampling
        resampler: Pre-built resampler shared with other predictors

    Returns:
        Tuple of (report row, confusion matrix)

    Raises:
        ShapeMismatchError: If the vectors differ in length
        Sepsis3EvalError: For undefined cells when stats_cfg.on_error is RAISE
    """
    pred = as_bool_vector(predictions, f"{name} predictions")
    true = as_bool_vector(outcomes, "outcomes")
    n = check_paired(pred, true, f"{name} predictions", "outcomes")

    if resampler is None:
        resampler = PairedResampler.from_rng(n, stats_cfg.n_boot, rng)

    cm = count_cells(pred, true)
    dists = rate_bootstrap_distributions(pred, true, resampler)
    policy = stats_cfg.on_error

    values: dict[str, object] = {}
    for rate in RATE_NAMES:
        try:
            values[rate] = percentile_interval(
                getattr(cm, rate),
                dists[rate],
                confidence_level=stats_cfg.confidence_level,
                max_degenerate_fraction=stats_cfg.max_degenerate_fraction,
            )
        except Sepsis3EvalError as e:
            _undefined(policy, f"{name} {rate}", e)
            values[rate] = None

    for metric in COMPOSITE_NAMES:
        try:
            values[metric] = getattr(cm, metric)
        except Sepsis3EvalError as e:
            _undefined(policy, f"{name} {metric}", e)
            values[metric] = None

    row = OperatingPointRow(name=name, tp=cm.tp, fp=cm.fp, tn=cm.tn, fn=cm.fn, **values)
    return row, cm
