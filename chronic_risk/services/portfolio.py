"""
Portfolio aggregation across conditions.

Produces the overall risk summary, the priority ranking and a best-effort
population comparison.
"""

from collections.abc import Mapping

import structlog

from chronic_risk.config import PortfolioThresholds
from chronic_risk.domain.models import (
    Condition,
    ConditionAssessment,
    OverallRisk,
    PopulationComparison,
    PriorityCondition,
    RiskBand,
)

logger = structlog.get_logger(__name__)

PRIORITY_LIMIT = 3

# (exclusive upper age, label)
AGE_GROUPS: tuple[tuple[int, str], ...] = (
    (30, "18-29"),
    (40, "30-39"),
    (50, "40-49"),
    (60, "50-59"),
    (70, "60-69"),
)

COMPARISON_TEXT: dict[RiskBand, tuple[str, str]] = {
    RiskBand.HIGH: (
        "Above average risk due to multiple factors",
        "Higher than typical for age/sex group",
    ),
    RiskBand.MODERATE: (
        "Around average risk",
        "Similar to typical for age/sex group",
    ),
    RiskBand.LOW: (
        "Below average risk",
        "Lower than typical for age/sex group",
    ),
    RiskBand.UNKNOWN: (
        "Not enough data to rank",
        "No comparison available",
    ),
}


def age_group(age: int | None) -> str:
    if age is None:
        return "unknown"
    for upper, label in AGE_GROUPS:
        if age < upper:
            return label
    return "70+"


class PortfolioAggregator:
    def __init__(self, thresholds: PortfolioThresholds | None = None) -> None:
        self.thresholds = thresholds or PortfolioThresholds()

    def overall_risk(self, assessments: Mapping[Condition, ConditionAssessment]) -> OverallRisk:
        scores = [a.combined_score for a in assessments.values() if a.combined_score is not None]
        if not scores:
            return OverallRisk(score=None, highest=None, band=RiskBand.UNKNOWN)

        average = sum(scores) / len(scores)
        highest = max(scores)
        if highest >= self.thresholds.high_if_any_at_least:
            band = RiskBand.HIGH
        elif average >= self.thresholds.moderate_if_mean_at_least:
            band = RiskBand.MODERATE
        else:
            band = RiskBand.LOW
        return OverallRisk(score=average, highest=highest, band=band)

    def priority_conditions(
        self, assessments: Mapping[Condition, ConditionAssessment]
    ) -> list[PriorityCondition]:
        """Top conditions by descending score; ties keep the mapping (request) order."""
        scored = [a for a in assessments.values() if a.combined_score is not None]
        # sorted() is stable, so equal scores keep request order
        ranked = sorted(scored, key=lambda a: -a.combined_score)  # type: ignore[operator]
        return [
            PriorityCondition(condition=a.condition, score=a.combined_score, band=a.band)  # type: ignore[arg-type]
            for a in ranked[:PRIORITY_LIMIT]
        ]

    def compare_to_population(
        self, age: int | None, overall: OverallRisk
    ) -> PopulationComparison | None:
        """Low-precision annotation. Never raises; returns None when unavailable."""
        try:
            percentile, demographic = COMPARISON_TEXT[overall.band]
            return PopulationComparison(
                age_group=age_group(age),
                percentile_ranking=percentile,
                demographic_comparison=demographic,
            )
        except Exception as e:
            logger.warning("population_comparison_unavailable", error=str(e))
            return None
