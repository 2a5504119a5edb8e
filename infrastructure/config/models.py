"""Configuration models (Pydantic classes)."""

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from domain.schemas import Adjustment, ComparisonMethod, ErrorPolicy


class StatsConfig(BaseModel):
    """
    Configuration for evaluation statistics.

    The seed drives one explicit numpy Generator per run; nothing touches
    global random state.
    """

    seed: int = 42
    n_boot: int = Field(default=2000, ge=1000)
    confidence_level: float = Field(default=0.95, gt=0.0, lt=1.0)
    max_degenerate_fraction: float = Field(default=0.5, ge=0.0, le=1.0)
    comparison_method: ComparisonMethod = ComparisonMethod.DELONG
    on_error: ErrorPolicy = ErrorPolicy.SKIP


class PredictorConfig(BaseModel):
    """A named sepsis criterion: a threshold rule plus an optional continuous score."""

    name: str
    rule: str = Field(..., description="Threshold expression, e.g. 'sofa >= 2' or a 0/1 column name.")
    score_column: str | None = Field(
        default=None,
        description="Continuous score used for AUROC (e.g. 'sofa'). None: the predictor only gets an operating point.",
    )


class AdjustmentConfig(BaseModel):
    """Baseline-risk adjustment applied before AUROC evaluation."""

    mode: Adjustment = Adjustment.NONE
    covariates: list[str] = Field(default_factory=list)
    continuous: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate(self) -> "AdjustmentConfig":
        if self.mode is not Adjustment.NONE and not self.covariates:
            raise ValueError(f"adjustment.covariates is required when adjustment.mode={self.mode.value}")
        unknown = [c for c in self.continuous if c not in self.covariates]
        if unknown:
            raise ValueError(f"adjustment.continuous lists columns that are not covariates: {unknown}")
        return self


class RunConfig(BaseModel):
    """
    Runtime configuration.
    - Loaded from experiment.yaml
    - Validated and enriched by configuration loader
    - Consumed by the cohort preparation and evaluation workflows
    """

    cohort_file_path: Path = Field(..., description="Path to the cohort table (CSV, Excel or Parquet).")
    outcome_col: str = Field(default="sepsis_angus", description="Binary reference outcome column.")

    derive_columns: bool = Field(
        default=True,
        description="If true, add the derived cohort columns (sepsis3, elixhauser_hospital, ...) before evaluation.",
    )
    suspicion_col: str = Field(
        default="suspected_infection_time",
        description="Column whose presence marks suspected infection for the Sepsis-3 composite.",
    )

    # Reported in this order
    predictors: list[PredictorConfig] = Field(default_factory=list)
    auroc_scores: list[str] = Field(
        default_factory=list,
        description="Score columns compared by AUROC. Empty: use the predictors' score columns.",
    )

    stats: StatsConfig = Field(default_factory=StatsConfig)
    adjustment: AdjustmentConfig = Field(default_factory=AdjustmentConfig)

    output_root: Path = Field(default_factory=lambda: Path("outputs"))

    @model_validator(mode="after")
    def _validate(self) -> "RunConfig":
        if not self.predictors:
            raise ValueError("At least one predictor is required in experiment.yaml")

        names = [p.name for p in self.predictors]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Predictor names must be unique, duplicated: {duplicates}")

        if not self.outcome_col.strip():
            raise ValueError("outcome_col is required in experiment.yaml")

        if not self.auroc_scores:
            seen: list[str] = []
            for p in self.predictors:
                if p.score_column and p.score_column not in seen:
                    seen.append(p.score_column)
            self.auroc_scores = seen

        return self
