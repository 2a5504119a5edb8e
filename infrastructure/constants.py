from pathlib import Path

# Repo-root conventional directories/files (overrideable via experiment.yaml or .env)
CONFIG_DIR = Path("configs")
EXPERIMENT_FILE = CONFIG_DIR / "experiment.yaml"

DATA_DIR = Path("dataset")
DEFAULT_COHORT_FILE = DATA_DIR / "sepsis3-df.csv"

# Environment overrides
ENV_COHORT_FILE = "SEPSIS3_COHORT_FILE"
ENV_SEED = "SEPSIS3_SEED"
