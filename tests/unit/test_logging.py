import logging
from pathlib import Path

import pytest

from infrastructure.observability import (
    clear_predictor_context,
    configure_logging,
    get_log_context,
    make_run_tag,
    set_log_context,
)
from infrastructure.observability.logging import NO_CONTEXT, ContextInjectFilter, cv_run_id_full, cv_run_tag


@pytest.fixture(autouse=True)
def _reset_context():
    yield
    cv_run_tag.set(NO_CONTEXT)
    cv_run_id_full.set(NO_CONTEXT)
    clear_predictor_context()


def _record() -> logging.LogRecord:
    return logging.LogRecord("sepsis3", logging.INFO, __file__, 1, "message", None, None)


def test_run_tag_is_stable_hex_prefix() -> None:
    tag = make_run_tag("20260101_120000_sepsis3_n2000")

    assert tag == make_run_tag("20260101_120000_sepsis3_n2000")
    assert len(tag) == 8
    int(tag, 16)
    assert make_run_tag("20260101_120000_sepsis3_n2000", length=4) == tag[:4]
    assert make_run_tag("20260101_120001_sepsis3_n2000") != tag


def test_filter_injects_run_and_predictor() -> None:
    set_log_context(run_id_full="run-a", predictor="qSOFA")
    record = _record()

    assert ContextInjectFilter().filter(record) is True
    assert record.run == make_run_tag("run-a")
    assert record.predictor == "qSOFA"


def test_clear_predictor_keeps_run() -> None:
    set_log_context(run_id_full="run-b", predictor="SIRS")
    clear_predictor_context()
    record = _record()

    ContextInjectFilter().filter(record)

    assert record.predictor == NO_CONTEXT
    assert record.run == make_run_tag("run-b")


def test_get_log_context_reports_run_ids() -> None:
    assert get_log_context() == {"run_tag": NO_CONTEXT, "run_id_full": NO_CONTEXT}

    set_log_context(run_id_full="run-c")

    assert get_log_context() == {"run_tag": make_run_tag("run-c"), "run_id_full": "run-c"}


def test_configure_logging_writes_context_to_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        configure_logging(log_file=log_file, console_level=logging.WARNING)
        set_log_context(run_id_full="run-d", predictor="SOFA>=2")
        logging.getLogger("sepsis3.test").debug("evaluated")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])

    text = log_file.read_text(encoding="utf-8")
    assert f"[{make_run_tag('run-d')}|SOFA>=2] evaluated" in text
