"""Confusion matrix of a thresholded predictor against a binary outcome."""

import numpy as np
from sklearn.metrics import confusion_matrix

from domain.evaluation.vectors import ArrayLike, as_bool_vector, check_paired
from domain.schemas import ConfusionMatrixResult


def compute_confusion_matrix(predictions: ArrayLike, outcomes: ArrayLike) -> ConfusionMatrixResult:
    """
    Count TP/FP/TN/FN for boolean predictions against boolean outcomes.

    Numeric scores must be thresholded by the caller (e.g. ``sofa >= 2``).

    Args:
        predictions: Boolean predictions, one per ICU stay
        outcomes: Boolean reference outcome, aligned by index

    Returns:
        ConfusionMatrixResult

    Raises:
        ShapeMismatchError: If the vectors differ in length
        DegenerateInputError: If the vectors are empty
        ValueError: If either vector is not boolean-valued
    """
    pred = as_bool_vector(predictions, "predictions")
    true = as_bool_vector(outcomes, "outcomes")
    check_paired(pred, true, "predictions", "outcomes")

    tn, fp, fn, tp = confusion_matrix(true, pred, labels=[False, True]).ravel()
    return ConfusionMatrixResult(tp=int(tp), fp=int(fp), tn=int(tn), fn=int(fn))


def count_cells(predictions: np.ndarray, outcomes: np.ndarray) -> ConfusionMatrixResult:
    """
    Fast path of compute_confusion_matrix for already-validated bool arrays.

    Used inside bootstrap loops, where the inputs are slices of vectors
    that were validated once up front.
    """
    tp = int(np.count_nonzero(predictions & outcomes))
    fp = int(np.count_nonzero(predictions & ~outcomes))
    fn = int(np.count_nonzero(~predictions & outcomes))
    tn = len(predictions) - tp - fp - fn
    return ConfusionMatrixResult(tp=tp, fp=fp, tn=tn, fn=fn)
