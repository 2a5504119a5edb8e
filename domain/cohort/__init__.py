"""
Cohort preparation: derived columns and predictor threshold rules.

All functions in this module are pure (no file I/O).
"""

from domain.cohort.derived import add_derived_columns, elixhauser_van_walraven, sepsis3_flag
from domain.cohort.predictors import (
    PredictorRule,
    apply_rule,
    evaluate_predictors,
    outcome_vector,
    paired_complete_cases,
    parse_rule,
    score_vector,
)

__all__ = [
    "add_derived_columns",
    "elixhauser_van_walraven",
    "sepsis3_flag",
    "PredictorRule",
    "parse_rule",
    "apply_rule",
    "evaluate_predictors",
    "outcome_vector",
    "score_vector",
    "paired_complete_cases",
]
