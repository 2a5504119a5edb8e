"""Configuration loading from YAML files."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from infrastructure.config.models import AdjustmentConfig, PredictorConfig, RunConfig, StatsConfig
from infrastructure.constants import DATA_DIR, DEFAULT_COHORT_FILE, ENV_COHORT_FILE, ENV_SEED

logger = logging.getLogger(__name__)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dict."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected YAML dict in {path}, got {type(data)}")

    return data


def _parse_predictors(raw: Any, path: Path) -> list[PredictorConfig]:
    """
    Parse the ordered predictor list.

    Accepts either a list of mappings (name/rule/score_column) or a mapping
    name -> rule; YAML mappings keep their order, which is the report order.
    """
    if isinstance(raw, dict):
        return [PredictorConfig(name=str(name), rule=str(rule)) for name, rule in raw.items()]
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"experiment.yaml missing/invalid 'predictors' list: {path}")

    predictors: list[PredictorConfig] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError(f"Each predictor must be a mapping with 'name' and 'rule', got {item!r} in {path}")
        predictors.append(PredictorConfig(**item))
    return predictors


def load_run_config(experiment_path: Path, seed_override: int | None = None) -> RunConfig:
    """
    Load experiment.yaml and construct a fully-resolved RunConfig.

    Resolution order for the cohort file and the seed:
    CLI override > environment (.env) > experiment.yaml > built-in default.
    """
    exp = _load_yaml(experiment_path)

    if "predictors" not in exp:
        raise ValueError("experiment.yaml missing required key: predictors")
    if "outcome_col" not in exp or not exp.get("outcome_col"):
        raise ValueError("experiment.yaml missing required key: outcome_col")

    data_dir = Path(exp.get("data_dir", str(DATA_DIR)))
    env_cohort = os.environ.get(ENV_COHORT_FILE)
    if env_cohort:
        cohort_file_path = Path(env_cohort)
        logger.info("Cohort file taken from %s=%s", ENV_COHORT_FILE, env_cohort)
    elif exp.get("cohort_file"):
        cohort_file_path = data_dir / str(exp["cohort_file"])
    else:
        cohort_file_path = DEFAULT_COHORT_FILE

    stats_raw = dict(exp.get("stats") or {})
    env_seed = os.environ.get(ENV_SEED)
    if seed_override is not None:
        stats_raw["seed"] = seed_override
    elif env_seed:
        try:
            stats_raw["seed"] = int(env_seed)
        except ValueError as e:
            raise ValueError(f"{ENV_SEED} must be an integer, got {env_seed!r}") from e

    predictors = _parse_predictors(exp["predictors"], experiment_path)
    auroc_scores = exp.get("auroc_scores") or []
    if not isinstance(auroc_scores, list):
        raise ValueError(f"'auroc_scores' must be a list of column names: {experiment_path}")

    cfg = RunConfig(
        cohort_file_path=cohort_file_path,
        outcome_col=str(exp["outcome_col"]).strip(),
        derive_columns=bool(exp.get("derive_columns", True)),
        suspicion_col=str(exp.get("suspicion_col", "suspected_infection_time")),
        predictors=predictors,
        auroc_scores=[str(s) for s in auroc_scores],
        stats=StatsConfig(**stats_raw),
        adjustment=AdjustmentConfig(**(exp.get("adjustment") or {})),
        output_root=Path(exp.get("output_root", "outputs")),
    )

    return cfg
