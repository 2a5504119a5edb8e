"""Pydantic value objects produced by the statistics core."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.errors import DegenerateInputError


class Adjustment(str, Enum):
    """How a score is combined with baseline covariates before AUROC evaluation."""

    NONE = "none"
    BASELINE_REGRESSION = "baseline_regression"
    FRACTIONAL_POLYNOMIAL = "fractional_polynomial"


class ComparisonMethod(str, Enum):
    """How two correlated AUROCs are compared."""

    DELONG = "delong"
    BOOTSTRAP = "bootstrap"


class ErrorPolicy(str, Enum):
    """What a report builder does when one cell cannot be computed."""

    SKIP = "skip"
    RAISE = "raise"


def _ratio(numerator: float, denominator: float, what: str) -> float:
    if denominator == 0:
        raise DegenerateInputError(f"{what} is undefined (zero denominator)")
    return numerator / denominator


class ConfusionMatrixResult(BaseModel):
    """
    Counts of a binary prediction against a binary outcome.

    Derived rates raise DegenerateInputError instead of returning NaN;
    the caller decides how to display an undefined value.
    """

    model_config = ConfigDict(frozen=True)

    tp: int = Field(..., ge=0)
    fp: int = Field(..., ge=0)
    tn: int = Field(..., ge=0)
    fn: int = Field(..., ge=0)

    @property
    def n(self) -> int:
        return self.tp + self.fp + self.tn + self.fn

    @property
    def n_positive(self) -> int:
        return self.tp + self.fn

    @property
    def n_negative(self) -> int:
        return self.tn + self.fp

    @property
    def prevalence(self) -> float:
        return _ratio(self.n_positive, self.n, "prevalence")

    @property
    def sensitivity(self) -> float:
        return _ratio(self.tp, self.tp + self.fn, "sensitivity")

    @property
    def specificity(self) -> float:
        return _ratio(self.tn, self.tn + self.fp, "specificity")

    @property
    def ppv(self) -> float:
        return _ratio(self.tp, self.tp + self.fp, "PPV")

    @property
    def npv(self) -> float:
        return _ratio(self.tn, self.tn + self.fn, "NPV")

    @property
    def f1(self) -> float:
        ppv = self.ppv
        sens = self.sensitivity
        return _ratio(2 * ppv * sens, ppv + sens, "F1")

    @property
    def ntp_per_100(self) -> float:
        """True positives per 100 outcome-positive cases."""
        return 100.0 * self.sensitivity

    @property
    def nfp_per_100(self) -> float:
        """False positives per 100 outcome-positive cases."""
        return 100.0 * _ratio(self.fp, self.tp + self.fn, "NFP/100")


class ConfidenceInterval(BaseModel):
    """Point estimate with a percentile interval around it."""

    model_config = ConfigDict(frozen=True)

    estimate: float
    lower: float
    upper: float
    confidence_level: float = Field(default=0.95, gt=0.0, lt=1.0)
    n_resamples: int = Field(default=0, ge=0)
    n_degenerate: int = Field(default=0, ge=0)
    proportion: bool = True

    @model_validator(mode="after")
    def _validate(self) -> "ConfidenceInterval":
        if not (self.lower <= self.estimate <= self.upper):
            raise ValueError(
                f"Interval must satisfy lower <= estimate <= upper, got ({self.lower}, {self.estimate}, {self.upper})"
            )
        if self.proportion and not (0.0 <= self.lower and self.upper <= 1.0):
            raise ValueError(f"Proportion interval must lie in [0, 1], got [{self.lower}, {self.upper}]")
        return self

    def as_list(self) -> list[float]:
        return [self.lower, self.upper]


class AUROCResult(BaseModel):
    """AUROC of one score against one outcome vector."""

    model_config = ConfigDict(frozen=True)

    name: str
    auroc: float = Field(..., ge=0.0, le=1.0)
    ci: ConfidenceInterval
    n_positive: int = Field(..., ge=1)
    n_negative: int = Field(..., ge=1)


class ComparisonResult(BaseModel):
    """Test of equal AUROCs for two scores sharing one outcome vector."""

    model_config = ConfigDict(frozen=True)

    first: AUROCResult
    second: AUROCResult
    p_value: float = Field(..., ge=0.0, le=1.0)
    difference: float
    z_statistic: float | None = None
    method: ComparisonMethod


class OperatingPointRow(BaseModel):
    """
    One predictor's row of the operating point report.

    Entries that could not be computed (e.g. PPV with no predicted positives)
    are None.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    tp: int
    fp: int
    tn: int
    fn: int
    sensitivity: ConfidenceInterval | None = None
    specificity: ConfidenceInterval | None = None
    ppv: ConfidenceInterval | None = None
    npv: ConfidenceInterval | None = None
    f1: float | None = None
    ntp_per_100: float | None = None
    nfp_per_100: float | None = None
