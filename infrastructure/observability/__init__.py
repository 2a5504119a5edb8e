"""
Observability: structured logging and context management.

Run tag and predictor context on every record, with an optional rotating log file.
"""

from infrastructure.observability.logging import (
    clear_predictor_context,
    configure_logging,
    get_log_context,
    make_run_tag,
    set_log_context,
)

__all__ = [
    "configure_logging",
    "set_log_context",
    "get_log_context",
    "clear_predictor_context",
    "make_run_tag",
]
