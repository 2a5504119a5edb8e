import numpy as np
import pandas as pd
import pytest
from pydantic import ValidationError

from domain.cohort.predictors import (
    PredictorRule,
    apply_rule,
    evaluate_predictors,
    outcome_vector,
    paired_complete_cases,
    parse_rule,
    score_vector,
)


@pytest.fixture
def cohort() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "sirs": [0, 2, 3, 1, np.nan],
            "qsofa": [0, 1, 2, 3, 2],
            "sofa": [1.0, 2.0, np.nan, 5.0, 0.0],
            "sepsis3": [0, 1, 0, 1, 0],
            "sepsis_angus": [0, 1, np.nan, 1, 0],
        }
    )


@pytest.mark.parametrize(
    ("expression", "column", "op", "threshold"),
    [
        ("sofa >= 2", "sofa", ">=", 2.0),
        ("qsofa>1", "qsofa", ">", 1.0),
        ("  lods <= 3.5 ", "lods", "<=", 3.5),
        ("sepsis3", "sepsis3", "==", 1.0),
        ("sepsis_angus != 0", "sepsis_angus", "!=", 0.0),
    ],
)
def test_parse_rule(expression: str, column: str, op: str, threshold: float) -> None:
    rule = parse_rule("X", expression)
    assert (rule.name, rule.column, rule.op, rule.threshold) == ("X", column, op, threshold)


@pytest.mark.parametrize("expression", ["", "sofa >=", ">= 2", "sofa >= two", "sofa => 2"])
def test_parse_rule_rejects_malformed(expression: str) -> None:
    with pytest.raises(ValueError):
        parse_rule("X", expression)


def test_rule_rejects_unknown_operator() -> None:
    with pytest.raises(ValidationError):
        PredictorRule(name="X", column="sofa", op="~=", threshold=2)


def test_missing_values_evaluate_false(cohort: pd.DataFrame) -> None:
    sofa = apply_rule(cohort, parse_rule("SOFA", "sofa >= 2"))
    sirs = apply_rule(cohort, parse_rule("SIRS", "sirs < 2"))

    assert sofa.tolist() == [False, True, False, True, False]
    assert sirs.tolist() == [True, False, False, True, False]


def test_missing_column_lists_available(cohort: pd.DataFrame) -> None:
    with pytest.raises(KeyError, match="Available columns"):
        apply_rule(cohort, parse_rule("LODS", "lods >= 2"))


def test_evaluate_predictors_keeps_order(cohort: pd.DataFrame) -> None:
    rules = [parse_rule("qSOFA", "qsofa >= 2"), parse_rule("Sepsis-3", "sepsis3"), parse_rule("SIRS", "sirs >= 2")]

    predictions = evaluate_predictors(cohort, rules)

    assert list(predictions) == ["qSOFA", "Sepsis-3", "SIRS"]
    assert predictions["Sepsis-3"].dtype == bool


def test_outcome_vector_treats_missing_as_negative(cohort: pd.DataFrame) -> None:
    assert outcome_vector(cohort, "sepsis_angus").tolist() == [False, True, False, True, False]


def test_outcome_vector_rejects_non_binary(cohort: pd.DataFrame) -> None:
    with pytest.raises(ValueError, match="must be 0/1"):
        outcome_vector(cohort, "qsofa")


def test_score_vector_coerces_to_float(cohort: pd.DataFrame) -> None:
    values = score_vector(cohort, "sofa")
    assert values.dtype == float
    assert np.isnan(values[2])


def test_paired_complete_cases_drops_rows_jointly(cohort: pd.DataFrame) -> None:
    scores, outcomes, keep = paired_complete_cases(cohort, ["sirs", "sofa"], "sepsis_angus")

    assert keep.tolist() == [True, True, False, True, False]
    assert scores["sirs"].tolist() == [0.0, 2.0, 1.0]
    assert scores["sofa"].tolist() == [1.0, 2.0, 5.0]
    assert outcomes.tolist() == [False, True, True]
