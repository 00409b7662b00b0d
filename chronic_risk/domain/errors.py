"""
Exception taxonomy for the risk engine.

Only UnsupportedConditionError is raised to callers. The formula errors are
carried inside Result values so one failing calculator never aborts its
siblings.
"""

from chronic_risk.domain.models import ExclusionKind, FormulaId


class RiskEngineError(Exception):
    """Base class for all risk engine errors."""


class UnsupportedConditionError(RiskEngineError):
    """Requested condition has no registered formulas."""

    def __init__(self, condition: str) -> None:
        self.condition = condition
        super().__init__(f"Unsupported condition: {condition!r}")


class FormulaError(RiskEngineError):
    """A formula did not produce a usable score."""

    kind: ExclusionKind = ExclusionKind.FAILED

    def __init__(self, formula: FormulaId, message: str) -> None:
        self.formula = formula
        super().__init__(message)

    @property
    def reason(self) -> str:
        return str(self)


class FormulaNotApplicableError(FormulaError):
    """Formula does not apply to the patient (e.g. Gail model for men). Not a fault."""

    def __init__(self, formula: FormulaId, reason: str, kind: ExclusionKind) -> None:
        super().__init__(formula, reason)
        self.kind = kind


class FormulaComputationError(FormulaError):
    """Formula raised or produced an out-of-range score."""

    def __init__(self, formula: FormulaId, cause: BaseException | str) -> None:
        self.cause = cause if isinstance(cause, BaseException) else None
        detail = f"{type(cause).__name__}: {cause}" if isinstance(cause, BaseException) else cause
        super().__init__(formula, f"{formula.value} failed: {detail}")


class FormulaTimeoutError(FormulaError):
    kind = ExclusionKind.TIMED_OUT

    def __init__(self, formula: FormulaId, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(formula, f"{formula.value} exceeded {timeout_seconds}s")
