"""
Condition aggregation: many formula outcomes in, one combined score out.

All successful formulas contribute equally to the mean. The primary formula
is reported for display only.
"""

from collections.abc import Sequence
from statistics import fmean

import structlog

from chronic_risk.domain.errors import FormulaError
from chronic_risk.domain.models import (
    Condition,
    ConditionScore,
    FormulaExclusion,
    FormulaId,
    FormulaResult,
)
from chronic_risk.services.result import Result

logger = structlog.get_logger(__name__)


def exclusion_from_error(error: FormulaError) -> FormulaExclusion:
    return FormulaExclusion(formula=error.formula, kind=error.kind, reason=error.reason)


def aggregate_condition(
    condition: Condition,
    outcomes: Sequence[Result[FormulaResult, FormulaError]],
    primary_formula: FormulaId,
    total_formulas: int | None = None,
) -> ConditionScore:
    """
    Combine formula outcomes for one condition.

    combined_score is the unweighted mean of successful scores, None when no
    formula succeeded. confidence is successes / total registered formulas.
    """
    total = total_formulas or len(outcomes)
    results: dict[FormulaId, FormulaResult] = {}
    exclusions: list[FormulaExclusion] = []

    for outcome in outcomes:
        if outcome.is_ok():
            result = outcome.unwrap()
            results[result.formula] = result
        else:
            exclusions.append(exclusion_from_error(outcome.unwrap_err()))

    if results:
        combined: float | None = fmean(r.score for r in results.values())
        confidence = min(len(results) / total, 1.0)
    else:
        combined = None
        confidence = 0.0

    if combined is None:
        logger.info(
            "condition_insufficient_data",
            condition=condition.value,
            excluded=[e.formula.value for e in exclusions],
        )

    return ConditionScore(
        condition=condition,
        combined_score=combined,
        confidence=confidence,
        primary_formula=primary_formula,
        total_formulas=total,
        formula_results=results,
        exclusions=tuple(exclusions),
    )
