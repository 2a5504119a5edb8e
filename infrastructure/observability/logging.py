"""
Run-scoped logging for the evaluation CLI.

Every record carries a short run tag and the predictor currently being
evaluated, taken from contextvars. Output goes to the console and,
when a run directory exists, to a size-rotated file inside it.
"""

import contextvars
import hashlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

NO_CONTEXT = "-"

cv_run_tag = contextvars.ContextVar("run_tag", default=NO_CONTEXT)
cv_run_id_full = contextvars.ContextVar("run_id_full", default=NO_CONTEXT)
cv_predictor = contextvars.ContextVar("predictor", default=NO_CONTEXT)

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(run)s|%(predictor)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [%(run)s|%(predictor)s] %(message)s"


def make_run_tag(run_id_full: str, length: int = 8) -> str:
    """Short hex tag for a run id (BLAKE2s digest prefix), stable across processes."""
    digest = hashlib.blake2s(run_id_full.encode("utf-8"), digest_size=8).hexdigest()
    return digest[:length]


class ContextInjectFilter(logging.Filter):
    """Copies the run tag and current predictor onto each record as `run` and `predictor`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run = cv_run_tag.get() or NO_CONTEXT
        record.predictor = cv_predictor.get() or NO_CONTEXT
        return True


def set_log_context(*, run_id_full: str | None = None, predictor: str | None = None) -> None:
    """Set the run id (and its derived tag) and/or the predictor under evaluation."""
    if run_id_full is not None:
        cv_run_id_full.set(str(run_id_full))
        cv_run_tag.set(make_run_tag(str(run_id_full)))
    if predictor is not None:
        cv_predictor.set(str(predictor))


def get_log_context() -> dict[str, str]:
    """Run identifiers for stamping into metrics.json."""
    return {
        "run_tag": cv_run_tag.get() or NO_CONTEXT,
        "run_id_full": cv_run_id_full.get() or NO_CONTEXT,
    }


def clear_predictor_context() -> None:
    cv_predictor.set(NO_CONTEXT)


def configure_logging(
    *,
    log_file: Path | None = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10_000_000,
    backup_count: int = 5,
) -> None:
    """
    Replace the root handlers with a console handler and an optional rotating file handler.

    Args:
        log_file: Log file path; console only when None
        console_level: Threshold of the console handler
        file_level: Threshold of the file handler
        max_bytes: File size that triggers rotation
        backup_count: Rotated files kept next to the log file
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    ctx_filter = ContextInjectFilter()
    handlers: list[tuple[logging.Handler, int, logging.Formatter]] = [
        (logging.StreamHandler(), console_level, logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S")),
    ]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handlers.append((rotating, file_level, logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")))

    for handler, level, formatter in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(ctx_filter)
        root.addHandler(handler)

    logging.getLogger(__name__).info(
        "Logging configured (console=%s, file=%s)",
        logging.getLevelName(console_level),
        log_file if log_file is not None else "none",
    )
