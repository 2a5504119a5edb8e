"""
Application layer: Use cases and workflow orchestration.

This layer coordinates between domain logic and infrastructure,
implementing the cohort preparation, evaluation and reporting workflows.
"""

from application.evaluation import (
    log_evaluation_summary,
    prepare_cohort,
    run_auroc_evaluation,
    run_operating_point_evaluation,
)
from application.reporting import format_operating_point_table, operating_points_to_frame, save_reports

__all__ = [
    # Main workflows
    "prepare_cohort",
    "run_operating_point_evaluation",
    "run_auroc_evaluation",
    "log_evaluation_summary",
    # Reporting
    "format_operating_point_table",
    "operating_points_to_frame",
    "save_reports",
]
