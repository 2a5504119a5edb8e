import json
from pathlib import Path

import numpy as np
import pandas as pd

from application.constants import UNDEFINED_PLACEHOLDER
from application.reporting import format_ci, format_operating_point_table, metrics_payload, save_reports
from domain.evaluation.auroc import compare_aurocs
from domain.evaluation.tables import build_auroc_comparison, build_operating_point_report
from domain.schemas import ConfidenceInterval
from infrastructure.config.models import StatsConfig


def _reports():
    rng = np.random.default_rng(2)
    outcomes = rng.random(150) < 0.4
    sofa = outcomes * 2.0 + rng.normal(size=150)
    qsofa = np.round(outcomes + rng.normal(size=150))
    cfg = StatsConfig(n_boot=1000)
    rows = build_operating_point_report(
        {"qSOFA": qsofa >= 1, "SOFA": sofa >= 1, "Never": np.zeros(150, dtype=bool)}, outcomes, cfg, rng=0
    )
    auroc, comparisons, matrix = build_auroc_comparison({"sofa": sofa, "qsofa": qsofa}, outcomes, cfg, rng=0)
    return rows, auroc, comparisons, matrix


def test_format_ci() -> None:
    ci = ConfidenceInterval(estimate=0.9187, lower=0.909, upper=0.928)

    assert format_ci(ci) == "0.919 [0.909, 0.928]"
    assert format_ci(None) == UNDEFINED_PLACEHOLDER


def test_text_table_rows_and_placeholder() -> None:
    rows, _, _, _ = _reports()

    lines = format_operating_point_table(rows).splitlines()

    assert lines[0].startswith("Predictor")
    assert [line.split()[0] for line in lines[1:]] == ["qSOFA", "SOFA", "Never"]
    assert UNDEFINED_PLACEHOLDER in lines[3]
    assert UNDEFINED_PLACEHOLDER not in lines[2]


def test_save_reports_writes_artifacts(tmp_path: Path) -> None:
    rows, auroc, comparisons, matrix = _reports()

    paths = save_reports(tmp_path / "run", rows, auroc, comparisons, matrix, extra_metrics={"seed": 42})

    for path in paths.values():
        assert path.exists()

    df = pd.read_csv(paths["Operating points CSV"])
    assert list(df["Predictor"]) == ["qSOFA", "SOFA", "Never"]
    assert df["PPV"].isna().tolist() == [False, False, True]

    p_values = pd.read_csv(paths["AUROC comparison CSV"], index_col="Score")
    assert np.isnan(p_values.loc["qsofa", "sofa"])
    assert 0.0 <= p_values.loc["sofa", "qsofa"] <= 1.0

    metrics = json.loads(paths["Metrics JSON"].read_text(encoding="utf-8"))
    assert metrics["seed"] == 42
    assert [r["name"] for r in metrics["operating_points"]] == ["qSOFA", "SOFA", "Never"]
    assert metrics["operating_points"][2]["ppv"] is None
    assert metrics["auroc_comparisons"][0]["first"] == "sofa"


def test_save_reports_without_auroc(tmp_path: Path) -> None:
    rows, _, _, _ = _reports()

    paths = save_reports(tmp_path, rows, [], [], pd.DataFrame(dtype=float))

    assert set(paths) == {"Operating points CSV", "Operating points table", "Metrics JSON"}


def test_infinite_z_statistic_serialized_as_null(tmp_path: Path) -> None:
    # perfect score against a constant one: zero DeLong variance, unequal AUROCs
    comparison = compare_aurocs(
        [1, 2, 3, 4, 5, 6], [2] * 6, [0, 0, 0, 1, 1, 1], first_name="perfect", second_name="flat", rng=0
    )
    assert comparison.p_value == 0.0
    assert comparison.z_statistic == np.inf

    payload = json.loads(json.dumps(metrics_payload([], [], [comparison]), allow_nan=False))
    assert payload["auroc_comparisons"][0]["z_statistic"] is None
    assert payload["auroc_comparisons"][0]["p_value"] == 0.0

    rows, _, _, _ = _reports()
    paths = save_reports(tmp_path, rows, [], [comparison], pd.DataFrame(dtype=float))
    metrics = json.loads(paths["Metrics JSON"].read_text(encoding="utf-8"))
    assert metrics["auroc_comparisons"][0]["z_statistic"] is None
