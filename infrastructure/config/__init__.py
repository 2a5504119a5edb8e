"""
Configuration management: models, loading, and validation.

Handles:
- RunConfig: Main experiment configuration
- StatsConfig: Bootstrap and comparison settings
- PredictorConfig / AdjustmentConfig: what is evaluated and how
- Environment variable overrides

The loader module performs file I/O; models are pure Pydantic classes.
"""

from infrastructure.config.loader import load_run_config
from infrastructure.config.models import (
    AdjustmentConfig,
    PredictorConfig,
    # Main config
    RunConfig,
    # Stats config
    StatsConfig,
)

__all__ = [
    # Main config (most commonly used)
    "RunConfig",
    "load_run_config",
    # Parts
    "PredictorConfig",
    "AdjustmentConfig",
    # Stats
    "StatsConfig",
]
