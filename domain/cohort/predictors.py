"""Threshold rules that turn cohort columns into boolean predictions."""

import operator
import re
from collections.abc import Callable, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator

OPERATORS: dict[str, Callable[[object, object], object]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}

_RULE_RE = re.compile(r"^\s*(?P<column>[A-Za-z_][A-Za-z0-9_]*)\s*(?:(?P<op>>=|<=|==|!=|>|<)\s*(?P<threshold>\S+)\s*)?$")


class PredictorRule(BaseModel):
    """A named threshold rule, e.g. qSOFA: ``qsofa >= 2``."""

    model_config = ConfigDict(frozen=True)

    name: str
    column: str
    op: str = "=="
    threshold: float = 1.0

    @field_validator("op")
    @classmethod
    def _known_op(cls, v: str) -> str:
        if v not in OPERATORS:
            raise ValueError(f"Unknown operator {v!r}; expected one of {list(OPERATORS)}")
        return v

    def describe(self) -> str:
        return f"{self.column} {self.op} {self.threshold:g}"


def parse_rule(name: str, expression: str) -> PredictorRule:
    """
    Parse a threshold expression into a PredictorRule.

    Examples:
        >>> parse_rule("SOFA", "sofa >= 2").describe()
        'sofa >= 2'
        >>> parse_rule("Angus", "sepsis_angus").describe()
        'sepsis_angus == 1'

    Raises:
        ValueError: If the expression is not ``column [op threshold]``
    """
    match = _RULE_RE.match(expression or "")
    if match is None:
        raise ValueError(f"Invalid rule for predictor '{name}': {expression!r} (expected e.g. 'sofa >= 2')")

    column = match.group("column")
    op = match.group("op")
    if op is None:
        return PredictorRule(name=name, column=column)

    raw_threshold = match.group("threshold")
    try:
        threshold = float(raw_threshold)
    except ValueError as e:
        raise ValueError(f"Invalid threshold {raw_threshold!r} in rule for predictor '{name}'") from e
    return PredictorRule(name=name, column=column, op=op, threshold=threshold)


def _require_column(df: pd.DataFrame, column: str) -> None:
    if column not in df.columns:
        raise KeyError(f"Column '{column}' not found in cohort table. Available columns: {list(df.columns)}")


def apply_rule(df: pd.DataFrame, rule: PredictorRule) -> np.ndarray:
    """
    Evaluate a rule on every row.

    Missing values (stays the upstream left joins could not score) evaluate
    to False.
    """
    _require_column(df, rule.column)
    values = pd.to_numeric(df[rule.column], errors="coerce")
    result = OPERATORS[rule.op](values, rule.threshold)
    return (result & values.notna()).to_numpy(dtype=bool)


def evaluate_predictors(df: pd.DataFrame, rules: Sequence[PredictorRule]) -> dict[str, np.ndarray]:
    """Boolean predictions per rule, keyed by rule name in the order given."""
    return {rule.name: apply_rule(df, rule) for rule in rules}


def outcome_vector(df: pd.DataFrame, column: str) -> np.ndarray:
    """Boolean outcome column; missing values are negative (no matching claims code)."""
    _require_column(df, column)
    values = pd.to_numeric(df[column], errors="coerce").fillna(0)
    bad = sorted(set(values.unique()) - {0, 1})
    if bad:
        raise ValueError(f"Outcome column '{column}' must be 0/1, found {bad[:5]}")
    return values.to_numpy(dtype=float).astype(bool)


def score_vector(df: pd.DataFrame, column: str) -> np.ndarray:
    """Continuous score column as floats; missing or non-numeric values become NaN."""
    _require_column(df, column)
    return pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)


def paired_complete_cases(
    df: pd.DataFrame,
    score_columns: Sequence[str],
    outcome_col: str,
) -> tuple[dict[str, np.ndarray], np.ndarray, np.ndarray]:
    """
    Score vectors and outcome restricted to rows where every score is present.

    Rows are dropped jointly from all vectors so index alignment is kept.

    Returns:
        Tuple of (score name -> float scores, boolean outcome, boolean mask of kept rows)
    """
    outcomes = outcome_vector(df, outcome_col)

    raw = {col: score_vector(df, col) for col in score_columns}
    keep = np.ones(len(df), dtype=bool)
    for values in raw.values():
        keep &= ~np.isnan(values)
    scores = {col: values[keep] for col, values in raw.items()}
    return scores, outcomes[keep], keep
