"""Rendering and serialization of the evaluation reports."""

import json
import logging
import math
from pathlib import Path
from typing import Any

import pandas as pd

from application.constants import (
    AUROC_COMPARISON_FILENAME,
    AUROC_FILENAME,
    METRICS_FILENAME,
    OPERATING_POINTS_CSV_FILENAME,
    OPERATING_POINTS_TXT_FILENAME,
    UNDEFINED_PLACEHOLDER,
)
from domain.evaluation.tables import RATE_LABELS, auroc_results_to_frame, operating_points_to_frame
from domain.schemas import AUROCResult, ComparisonResult, ConfidenceInterval, OperatingPointRow

logger = logging.getLogger(__name__)

__all__ = [
    "format_ci",
    "format_operating_point_table",
    "operating_points_to_frame",
    "metrics_payload",
    "save_reports",
]


def format_ci(ci: ConfidenceInterval | None, decimals: int = 3) -> str:
    """'0.919 [0.909, 0.929]', or the placeholder when the estimate is undefined."""
    if ci is None:
        return UNDEFINED_PLACEHOLDER
    return f"{ci.estimate:.{decimals}f} [{ci.lower:.{decimals}f}, {ci.upper:.{decimals}f}]"


def _format_value(value: float | None, decimals: int) -> str:
    return UNDEFINED_PLACEHOLDER if value is None else f"{value:.{decimals}f}"


def format_operating_point_table(rows: list[OperatingPointRow], decimals: int = 3) -> str:
    """
    Console-aligned text table, one line per predictor in report order.

    Names are left aligned, numbers right aligned; undefined cells show the
    placeholder.
    """
    header = ["Predictor", "TP", "FP", "TN", "FN", *RATE_LABELS.values(), "F1", "NTP/100", "NFP/100"]
    lines: list[list[str]] = [header]
    for row in rows:
        cells = [row.name, str(row.tp), str(row.fp), str(row.tn), str(row.fn)]
        cells += [format_ci(getattr(row, rate), decimals) for rate in RATE_LABELS]
        cells.append(_format_value(row.f1, decimals))
        cells.append(_format_value(row.ntp_per_100, 1))
        cells.append(_format_value(row.nfp_per_100, 1))
        lines.append(cells)

    widths = [max(len(line[i]) for line in lines) for i in range(len(header))]
    rendered = []
    for line in lines:
        first = line[0].ljust(widths[0])
        rest = [cell.rjust(width) for cell, width in zip(line[1:], widths[1:])]
        rendered.append("  ".join([first, *rest]).rstrip())
    return "\n".join(rendered) + "\n"


def _finite_or_none(value: float | None) -> float | None:
    return value if value is not None and math.isfinite(value) else None


def metrics_payload(
    rows: list[OperatingPointRow],
    auroc_results: list[AUROCResult],
    comparisons: list[ComparisonResult],
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """JSON-serializable dump of every report entity; a non-finite z statistic becomes null."""
    payload: dict[str, Any] = dict(extra or {})
    payload["operating_points"] = [row.model_dump(mode="json") for row in rows]
    payload["auroc"] = [result.model_dump(mode="json") for result in auroc_results]
    payload["auroc_comparisons"] = [
        {
            "first": c.first.name,
            "second": c.second.name,
            "difference": c.difference,
            "z_statistic": _finite_or_none(c.z_statistic),
            "p_value": c.p_value,
            "method": c.method.value,
        }
        for c in comparisons
    ]
    return payload


def save_reports(
    run_dir: Path,
    rows: list[OperatingPointRow],
    auroc_results: list[AUROCResult],
    comparisons: list[ComparisonResult],
    p_value_matrix: pd.DataFrame,
    extra_metrics: dict[str, Any] | None = None,
) -> dict[str, Path]:
    """
    Write the operating point table (CSV and text), AUROC tables and metrics JSON.

    Returns:
        Artifact name -> written path
    """
    run_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "Operating points CSV": run_dir / OPERATING_POINTS_CSV_FILENAME,
        "Operating points table": run_dir / OPERATING_POINTS_TXT_FILENAME,
        "Metrics JSON": run_dir / METRICS_FILENAME,
    }

    operating_points_to_frame(rows).to_csv(paths["Operating points CSV"], index=False)
    paths["Operating points table"].write_text(format_operating_point_table(rows), encoding="utf-8")

    if auroc_results:
        paths["AUROC CSV"] = run_dir / AUROC_FILENAME
        auroc_results_to_frame(auroc_results).to_csv(paths["AUROC CSV"], index=False)
        paths["AUROC comparison CSV"] = run_dir / AUROC_COMPARISON_FILENAME
        p_value_matrix.to_csv(paths["AUROC comparison CSV"], index_label="Score")

    with paths["Metrics JSON"].open("w", encoding="utf-8") as f:
        payload = metrics_payload(rows, auroc_results, comparisons, extra_metrics)
        json.dump(payload, f, ensure_ascii=False, indent=2, allow_nan=False)

    for name, path in paths.items():
        logger.debug("Wrote %s: %s", name, path)
    return paths
