"""
Calculator registry and concurrent formula dispatch.

Key patterns:
- Static registry of pure functions keyed by Condition and FormulaId
- Structured concurrency with asyncio.TaskGroup
- Error boundary per formula: nothing a formula does can cancel its siblings
"""

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

import structlog

from chronic_risk.config import FormulaSettings
from chronic_risk.domain.errors import (
    FormulaComputationError,
    FormulaError,
    FormulaNotApplicableError,
    FormulaTimeoutError,
    UnsupportedConditionError,
)
from chronic_risk.domain.models import (
    Condition,
    FormulaId,
    FormulaResult,
    NormalizedPatient,
    NotApplicable,
)
from chronic_risk.formulas import (
    calculate_ada,
    calculate_ascvd,
    calculate_framingham,
    calculate_gail,
    not_implemented,
)
from chronic_risk.services.result import Result

logger = structlog.get_logger(__name__)

FormulaFn = Callable[[NormalizedPatient, FormulaSettings], FormulaResult | NotApplicable]
FormulaOutcome = Result[FormulaResult, FormulaError]


@dataclass(frozen=True)
class FormulaSpec:
    """One registered calculator and the score range it documents."""

    formula: FormulaId
    condition: Condition
    compute: FormulaFn
    score_range: tuple[float, float] = (0.0, 100.0)


def _spec(condition: Condition, formula: FormulaId, compute: FormulaFn | None = None) -> FormulaSpec:
    return FormulaSpec(
        formula=formula,
        condition=condition,
        compute=compute if compute is not None else not_implemented(formula),
    )


DEFAULT_FORMULAS: dict[Condition, tuple[FormulaSpec, ...]] = {
    Condition.CARDIOVASCULAR: (
        _spec(Condition.CARDIOVASCULAR, FormulaId.FRAMINGHAM, calculate_framingham),
        _spec(Condition.CARDIOVASCULAR, FormulaId.ASCVD, calculate_ascvd),
        _spec(Condition.CARDIOVASCULAR, FormulaId.QRISK3),
        _spec(Condition.CARDIOVASCULAR, FormulaId.HEARTSCORE),
    ),
    Condition.DIABETES: (
        _spec(Condition.DIABETES, FormulaId.ADA, calculate_ada),
        _spec(Condition.DIABETES, FormulaId.FINDRISK),
        _spec(Condition.DIABETES, FormulaId.ARIC),
        _spec(Condition.DIABETES, FormulaId.DRS),
    ),
    Condition.CANCER: (
        _spec(Condition.CANCER, FormulaId.GAIL, calculate_gail),
        _spec(Condition.CANCER, FormulaId.TYRER_CUZICK),
        _spec(Condition.CANCER, FormulaId.COLORECTAL),
        _spec(Condition.CANCER, FormulaId.LUNG),
        _spec(Condition.CANCER, FormulaId.PROSTATE),
        _spec(Condition.CANCER, FormulaId.MELANOMA),
    ),
    Condition.METABOLIC: (
        _spec(Condition.METABOLIC, FormulaId.METABOLIC_SYNDROME),
        _spec(Condition.METABOLIC, FormulaId.NAFLD),
        _spec(Condition.METABOLIC, FormulaId.CKD),
    ),
}

# Display emphasis only; never used for weighting.
PRIMARY_FORMULAS: dict[Condition, FormulaId] = {
    Condition.CARDIOVASCULAR: FormulaId.ASCVD,
    Condition.DIABETES: FormulaId.ADA,
    Condition.CANCER: FormulaId.GAIL,
    Condition.METABOLIC: FormulaId.METABOLIC_SYNDROME,
}


class CalculatorRegistry:
    """
    Maps each supported condition to its ordered formulas and evaluates them.

    Design principles:
    - Reject unknown conditions at the boundary, before any computation
    - Graceful degradation: a failing or non-applicable formula is excluded,
      siblings still run
    - Observable: every exclusion is logged with the formula identifier
    """

    def __init__(
        self,
        formulas: Mapping[Condition, Sequence[FormulaSpec]] | None = None,
        primary: Mapping[Condition, FormulaId] | None = None,
        settings: FormulaSettings | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._formulas = {
            condition: tuple(specs) for condition, specs in (formulas or DEFAULT_FORMULAS).items()
        }
        self.settings = settings or FormulaSettings()
        self.timeout_seconds = timeout_seconds
        self.logger = logger.bind(component="calculator_registry")

        requested = primary or PRIMARY_FORMULAS
        self._primary: dict[Condition, FormulaId] = {}
        for condition, specs in self._formulas.items():
            if not specs:
                raise ValueError(f"Condition {condition.value} has no formulas")
            registered = {spec.formula for spec in specs}
            if len(registered) != len(specs):
                raise ValueError(f"Condition {condition.value} registers a formula more than once")
            # Fall back to the first registered formula when the primary is absent
            choice = requested.get(condition)
            self._primary[condition] = choice if choice in registered else specs[0].formula

    @property
    def conditions(self) -> tuple[Condition, ...]:
        return tuple(self._formulas)

    def resolve(self, name: str | Condition) -> Condition:
        """Map a condition name to a registered Condition or raise UnsupportedConditionError."""
        if isinstance(name, Condition):
            condition = name
        else:
            try:
                condition = Condition(str(name).strip().lower())
            except ValueError:
                raise UnsupportedConditionError(str(name)) from None
        if condition not in self._formulas:
            raise UnsupportedConditionError(condition.value)
        return condition

    def formulas_for(self, condition: Condition) -> tuple[FormulaSpec, ...]:
        try:
            return self._formulas[condition]
        except KeyError:
            raise UnsupportedConditionError(condition.value) from None

    def primary_formula(self, condition: Condition) -> FormulaId:
        self.formulas_for(condition)
        return self._primary[condition]

    def run_formula(self, spec: FormulaSpec, patient: NormalizedPatient) -> FormulaOutcome:
        """Evaluate one formula inside an error boundary."""
        log = self.logger.bind(formula=spec.formula.value, condition=spec.condition.value)
        try:
            outcome = spec.compute(patient, self.settings)
        except Exception as e:
            log.exception("formula_failed", error=str(e))
            return Result.err(FormulaComputationError(spec.formula, e))

        if isinstance(outcome, NotApplicable):
            log.info("formula_not_applicable", kind=outcome.kind.value, reason=outcome.reason)
            return Result.err(
                FormulaNotApplicableError(spec.formula, outcome.reason, outcome.kind)
            )

        if not isinstance(outcome, FormulaResult):
            log.error("formula_returned_invalid_type", returned=type(outcome).__name__)
            return Result.err(
                FormulaComputationError(
                    spec.formula, f"returned {type(outcome).__name__}, expected FormulaResult"
                )
            )

        low, high = spec.score_range
        if not low <= outcome.score <= high:
            log.warning("formula_score_out_of_range", score=outcome.score, low=low, high=high)
            return Result.err(
                FormulaComputationError(
                    spec.formula, f"score {outcome.score} outside [{low}, {high}]"
                )
            )

        log.debug("formula_scored", score=outcome.score, category=outcome.category)
        return Result.ok(outcome)

    async def _run_with_timeout(
        self, spec: FormulaSpec, patient: NormalizedPatient
    ) -> FormulaOutcome:
        # Formulas are synchronous; a worker thread keeps the loop free to enforce the timeout.
        # A timed-out thread runs to completion in the background and its result is discarded.
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.run_formula, spec, patient),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            self.logger.warning(
                "formula_timeout", formula=spec.formula.value, timeout=self.timeout_seconds
            )
            return Result.err(FormulaTimeoutError(spec.formula, self.timeout_seconds))

    async def evaluate(
        self, condition: Condition, patient: NormalizedPatient
    ) -> list[tuple[FormulaSpec, FormulaOutcome]]:
        """
        Run every formula registered for `condition` concurrently.

        Returns one outcome per formula in registration order.
        """
        specs = self.formulas_for(condition)

        async with asyncio.TaskGroup() as task_group:
            tasks = [
                task_group.create_task(
                    self._run_with_timeout(spec, patient), name=spec.formula.value
                )
                for spec in specs
            ]

        return [(spec, task.result()) for spec, task in zip(specs, tasks, strict=True)]


def build_default_registry(
    settings: FormulaSettings | None = None, timeout_seconds: float = 5.0
) -> CalculatorRegistry:
    return CalculatorRegistry(
        DEFAULT_FORMULAS, PRIMARY_FORMULAS, settings=settings, timeout_seconds=timeout_seconds
    )
