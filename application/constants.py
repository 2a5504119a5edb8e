"""Application-level constants."""

# Output filenames
OPERATING_POINTS_CSV_FILENAME = "operating_points.csv"
OPERATING_POINTS_TXT_FILENAME = "operating_points.txt"
AUROC_FILENAME = "auroc.csv"
AUROC_COMPARISON_FILENAME = "auroc_comparison.csv"
METRICS_FILENAME = "metrics.json"
CONFIG_SNAPSHOT_FILENAME = "config.resolved.json"
DATA_FINGERPRINT_FILENAME = "data_fingerprint.json"
LOG_FILENAME = "run.log"

# Shown in rendered tables for cells that could not be computed
UNDEFINED_PLACEHOLDER = "undefined"
