"""
CLI entrypoint for the Sepsis-3 criteria evaluation.

This script performs the following steps:
- loads .env (if present) and configs/experiment.yaml
- creates a per-run output folder under outputs/
- loads the cohort table and adds the derived columns
- builds the operating point report of every predictor against the outcome
- computes AUROC with CIs and the pairwise AUROC comparison matrix
- saves the reports, metrics JSON, config snapshot and data fingerprint
- logs a human-readable summary of results
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from application import (
    format_operating_point_table,
    log_evaluation_summary,
    prepare_cohort,
    run_auroc_evaluation,
    run_operating_point_evaluation,
    save_reports,
)
from application.constants import CONFIG_SNAPSHOT_FILENAME, DATA_FINGERPRINT_FILENAME, LOG_FILENAME
from infrastructure.config import load_run_config
from infrastructure.constants import EXPERIMENT_FILE
from infrastructure.io import ensure_exists, read_table
from infrastructure.observability import configure_logging, get_log_context, make_run_tag, set_log_context
from infrastructure.utils import make_rng

logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evaluate sepsis criteria (SIRS, qSOFA, SOFA, Sepsis-3, ...) on a cohort")
    p.add_argument(
        "--experiment",
        type=str,
        default=str(EXPERIMENT_FILE),
        help="Path to experiment.yaml (default: configs/experiment.yaml)",
    )
    p.add_argument(
        "--env",
        type=str,
        default=".env",
        help="Path to .env file (default: .env; skipped if missing)",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the bootstrap seed from experiment.yaml / .env",
    )
    p.add_argument(
        "--console-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level",
    )
    p.add_argument(
        "--file-level",
        type=str,
        default="DEBUG",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="File log level",
    )
    return p.parse_args()


def main() -> None:
    args = _parse_args()

    env_file = Path(args.env)
    if env_file.exists():
        load_dotenv(env_file, override=True)

    experiment_path = Path(args.experiment)
    ensure_exists(experiment_path, "experiment.yaml")

    cfg = load_run_config(experiment_path, seed_override=args.seed)
    rng = make_rng(cfg.stats.seed)

    # ---- Per-run output folder ----
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_id = f"{ts}_{cfg.outcome_col}_n{cfg.stats.n_boot}"

    run_dir = cfg.output_root / run_id
    run_dir.mkdir(parents=True, exist_ok=True)

    log_path = run_dir / LOG_FILENAME
    configure_logging(
        log_file=log_path,
        console_level=getattr(logging, args.console_level),
        file_level=getattr(logging, args.file_level),
    )

    set_log_context(run_id_full=run_id)

    logger.info("Starting run: run_id=%s (run_tag=%s)", run_id, make_run_tag(run_id))
    logger.info("Run output directory: %s", run_dir)
    logger.info(
        "Stats: seed=%s n_boot=%d confidence=%.2f comparison=%s on_error=%s",
        cfg.stats.seed,
        cfg.stats.n_boot,
        cfg.stats.confidence_level,
        cfg.stats.comparison_method.value,
        cfg.stats.on_error.value,
    )

    # Load cohort
    logger.info("Loading cohort from %s...", cfg.cohort_file_path)
    raw_df = read_table(cfg.cohort_file_path)
    logger.info("Cohort loaded: %d rows, %d columns", raw_df.shape[0], raw_df.shape[1])
    cohort_df = prepare_cohort(cfg, raw_df)

    # Save snapshot config + fingerprint
    (run_dir / CONFIG_SNAPSHOT_FILENAME).write_text(
        json.dumps(cfg.model_dump(mode="json"), ensure_ascii=False, indent=2, default=str),
        encoding="utf-8",
    )
    (run_dir / DATA_FINGERPRINT_FILENAME).write_text(
        json.dumps(
            {
                "cohort_file": str(cfg.cohort_file_path),
                "cohort_rows": int(raw_df.shape[0]),
                "cohort_columns": list(raw_df.columns),
                "derived_columns": [c for c in cohort_df.columns if c not in raw_df.columns],
            },
            ensure_ascii=False,
            indent=2,
        ),
        encoding="utf-8",
    )

    # Evaluation
    rows, outcomes = run_operating_point_evaluation(cfg, cohort_df, rng)
    auroc_results, comparisons, p_value_matrix = run_auroc_evaluation(cfg, cohort_df, rng)

    artifacts = save_reports(
        run_dir,
        rows,
        auroc_results,
        comparisons,
        p_value_matrix,
        extra_metrics={
            **get_log_context(),
            "outcome": cfg.outcome_col,
            "n_stays": int(len(outcomes)),
            "n_outcome_positive": int(outcomes.sum()),
            "seed": cfg.stats.seed,
            "n_boot": cfg.stats.n_boot,
            "confidence_level": cfg.stats.confidence_level,
            "comparison_method": cfg.stats.comparison_method.value,
            "adjustment": cfg.adjustment.mode.value,
        },
    )

    logger.info("Operating points:\n%s", format_operating_point_table(rows))

    # Human-readable summary
    log_evaluation_summary(rows, auroc_results, comparisons, artifacts)

    logger.info("Detailed log: %s", log_path)


if __name__ == "__main__":
    main()
