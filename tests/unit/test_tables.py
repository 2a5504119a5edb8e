import numpy as np
import pandas as pd
import pytest

from domain.errors import DegenerateInputError
from domain.evaluation.tables import (
    auroc_results_to_frame,
    build_auroc_comparison,
    build_operating_point_report,
    operating_points_to_frame,
)
from domain.schemas import ComparisonMethod, ErrorPolicy
from infrastructure.config.models import StatsConfig


def _cohort(n: int = 120, seed: int = 0) -> tuple[np.ndarray, dict[str, np.ndarray]]:
    rng = np.random.default_rng(seed)
    outcomes = rng.random(n) < 0.4
    scores = {
        "sofa": outcomes * 2.0 + rng.normal(size=n),
        "qsofa": np.round(outcomes * 0.8 + rng.normal(size=n)),
        "sirs": np.round(outcomes * 0.3 + rng.normal(size=n)),
    }
    return outcomes, scores


def test_report_keeps_insertion_order() -> None:
    outcomes, scores = _cohort()
    predictions = {
        "SIRS": scores["sirs"] >= 0,
        "qSOFA": scores["qsofa"] >= 1,
        "Sepsis-3": scores["sofa"] >= 1,
    }

    rows = build_operating_point_report(predictions, outcomes, StatsConfig(n_boot=1000), rng=0)

    assert [r.name for r in rows] == ["SIRS", "qSOFA", "Sepsis-3"]
    for row in rows:
        assert row.tp + row.fp + row.tn + row.fn == len(outcomes)
        assert row.sensitivity.lower <= row.sensitivity.estimate <= row.sensitivity.upper


def test_report_is_reproducible_for_a_seed() -> None:
    outcomes, scores = _cohort()
    predictions = {"SOFA": scores["sofa"] >= 1}
    cfg = StatsConfig(n_boot=1000)

    assert build_operating_point_report(predictions, outcomes, cfg, rng=4) == build_operating_point_report(
        predictions, outcomes, cfg, rng=4
    )


def test_undefined_cells_are_skipped() -> None:
    outcomes, _ = _cohort()
    never = np.zeros(len(outcomes), dtype=bool)

    (row,) = build_operating_point_report({"Never": never}, outcomes, StatsConfig(n_boot=1000), rng=0)

    assert row.ppv is None
    assert row.f1 is None
    assert row.sensitivity.estimate == 0.0
    assert row.specificity.estimate == 1.0
    assert row.nfp_per_100 == 0.0


def test_undefined_cells_raise_under_raise_policy() -> None:
    outcomes, _ = _cohort()
    never = np.zeros(len(outcomes), dtype=bool)
    cfg = StatsConfig(n_boot=1000, on_error=ErrorPolicy.RAISE)

    with pytest.raises(DegenerateInputError):
        build_operating_point_report({"Never": never}, outcomes, cfg, rng=0)


def test_operating_points_frame_marks_undefined_as_nan() -> None:
    outcomes, scores = _cohort()
    rows = build_operating_point_report(
        {"SOFA": scores["sofa"] >= 1, "Never": np.zeros(len(outcomes), dtype=bool)},
        outcomes,
        StatsConfig(n_boot=1000),
        rng=0,
    )

    df = operating_points_to_frame(rows)

    assert list(df["Predictor"]) == ["SOFA", "Never"]
    assert list(df.columns[:5]) == ["Predictor", "TP", "FP", "TN", "FN"]
    assert {"Sensitivity lower", "NPV upper", "F1", "NTP/100", "NFP/100"} <= set(df.columns)
    assert np.isnan(df.loc[1, "PPV"])
    assert not np.isnan(df.loc[0, "PPV"])


def test_comparison_matrix_upper_triangle_only() -> None:
    outcomes, scores = _cohort()

    results, comparisons, matrix = build_auroc_comparison(scores, outcomes, StatsConfig(n_boot=1000), rng=0)

    names = list(scores)
    assert [r.name for r in results] == names
    assert len(comparisons) == 3
    assert list(matrix.index) == names and list(matrix.columns) == names
    for i in range(3):
        for j in range(3):
            value = matrix.iloc[i, j]
            if j > i:
                assert 0.0 <= value <= 1.0
            else:
                assert np.isnan(value)


def test_comparison_matrix_bootstrap_method() -> None:
    outcomes, scores = _cohort()
    cfg = StatsConfig(n_boot=1000, comparison_method=ComparisonMethod.BOOTSTRAP)

    _, comparisons, matrix = build_auroc_comparison(scores, outcomes, cfg, rng=1)

    assert all(c.method is ComparisonMethod.BOOTSTRAP for c in comparisons)
    assert matrix.loc["sofa", "qsofa"] == comparisons[0].p_value


def test_comparison_skips_scores_without_both_classes() -> None:
    outcomes = np.zeros(50, dtype=bool)
    scores = {"a": np.arange(50.0), "b": np.arange(50.0)[::-1]}

    results, comparisons, matrix = build_auroc_comparison(scores, outcomes, StatsConfig(n_boot=1000), rng=0)

    assert results == []
    assert comparisons == []
    assert matrix.isna().all().all()


def test_auroc_frame_columns() -> None:
    outcomes, scores = _cohort()
    results, _, _ = build_auroc_comparison(scores, outcomes, StatsConfig(n_boot=1000), rng=0)

    df = auroc_results_to_frame(results)

    assert isinstance(df, pd.DataFrame)
    assert list(df["Score"]) == ["sofa", "qsofa", "sirs"]
    assert (df["AUROC lower"] <= df["AUROC"]).all()
    assert (df["AUROC"] <= df["AUROC upper"]).all()


def test_empty_cohort_is_degenerate() -> None:
    empty = np.array([], dtype=bool)
    cfg = StatsConfig(n_boot=1000)

    with pytest.raises(DegenerateInputError, match="empty cohort"):
        build_operating_point_report({"SIRS": empty}, empty, cfg, rng=0)
    with pytest.raises(DegenerateInputError, match="empty cohort"):
        build_auroc_comparison({"sofa": np.array([], dtype=float)}, empty, cfg, rng=0)
    with pytest.raises(DegenerateInputError):
        build_auroc_comparison({}, [], cfg, rng=0)
