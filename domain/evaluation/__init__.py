"""
Diagnostic-accuracy statistics.

Provides:
- Confusion matrix and derived rates (sensitivity, specificity, PPV, NPV, F1, NTP/100, NFP/100)
- Paired bootstrap confidence intervals
- Rank-based AUROC and correlated AUROC comparison (DeLong or paired bootstrap)
- Baseline-risk adjustment of scores
- Operating point report and AUROC comparison matrix

All functions are pure (depend only on numpy, pandas, scipy, sklearn); no file I/O.
"""

from domain.evaluation.adjustment import adjusted_scores
from domain.evaluation.auroc import auroc_with_ci, compare_aurocs, compute_auroc, delong_test
from domain.evaluation.bootstrap import PairedResampler, bootstrap_ci
from domain.evaluation.confusion import compute_confusion_matrix
from domain.evaluation.metrics import compute_operating_point
from domain.evaluation.tables import (
    auroc_results_to_frame,
    build_auroc_comparison,
    build_operating_point_report,
    operating_points_to_frame,
)

__all__ = [
    "compute_confusion_matrix",
    "bootstrap_ci",
    "PairedResampler",
    "compute_auroc",
    "auroc_with_ci",
    "compare_aurocs",
    "delong_test",
    "adjusted_scores",
    "compute_operating_point",
    "build_operating_point_report",
    "operating_points_to_frame",
    "build_auroc_comparison",
    "auroc_results_to_frame",
]
