"""Error kinds raised by the statistics core."""


class Sepsis3EvalError(ValueError):
    """Base class for evaluation errors (raised synchronously, never retried)."""


class ShapeMismatchError(Sepsis3EvalError):
    """Paired vectors do not have the same length."""


class DegenerateInputError(Sepsis3EvalError):
    """A rate's denominator is zero, or an AUROC lacks one of the two classes."""


class InsufficientDataError(Sepsis3EvalError):
    """Too many bootstrap resamples were degenerate to report a confidence interval."""
