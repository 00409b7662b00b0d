"""Tests for the cross-condition portfolio summary."""

import pytest

from chronic_risk.domain.models import (
    Condition,
    ConditionAssessment,
    FormulaId,
    OverallRisk,
    RiskBand,
)
from chronic_risk.services import portfolio as portfolio_module
from chronic_risk.services.classifier import RiskClassifier
from chronic_risk.services.portfolio import PortfolioAggregator, age_group
from chronic_risk.services.recommendations import RecommendationEngine

_classifier = RiskClassifier()
_recommendations = RecommendationEngine()


def assessment(condition: Condition, score: float | None) -> ConditionAssessment:
    band = _classifier.classify(condition, score)
    return ConditionAssessment(
        condition=condition,
        combined_score=score,
        confidence=0.0 if score is None else 1.0,
        band=band,
        primary_formula=FormulaId.ASCVD,
        urgency=_recommendations.urgency(band),
    )


def portfolio_of(*pairs: tuple[Condition, float | None]) -> dict[Condition, ConditionAssessment]:
    return {condition: assessment(condition, score) for condition, score in pairs}


@pytest.fixture
def aggregator() -> PortfolioAggregator:
    return PortfolioAggregator()


class TestPriorityConditions:
    def test_ties_keep_request_order(self, aggregator: PortfolioAggregator) -> None:
        assessments = portfolio_of(
            (Condition.DIABETES, 10.0),
            (Condition.CARDIOVASCULAR, 25.0),
            (Condition.CANCER, 25.0),
        )

        ranked = aggregator.priority_conditions(assessments)

        assert [p.condition for p in ranked] == [
            Condition.CARDIOVASCULAR,
            Condition.CANCER,
            Condition.DIABETES,
        ]

    def test_unscored_conditions_are_excluded(self, aggregator: PortfolioAggregator) -> None:
        assessments = portfolio_of((Condition.CANCER, None), (Condition.DIABETES, 4.0))

        ranked = aggregator.priority_conditions(assessments)

        assert [p.condition for p in ranked] == [Condition.DIABETES]

    def test_at_most_three_conditions(self, aggregator: PortfolioAggregator) -> None:
        assessments = portfolio_of(
            (Condition.CARDIOVASCULAR, 1.0),
            (Condition.DIABETES, 2.0),
            (Condition.CANCER, 3.0),
            (Condition.METABOLIC, 4.0),
        )

        ranked = aggregator.priority_conditions(assessments)

        assert [p.score for p in ranked] == [4.0, 3.0, 2.0]


class TestOverallRisk:
    @pytest.mark.parametrize(
        ("scores", "band"),
        [
            ((25.0, 5.0), RiskBand.HIGH),
            ((12.0, 9.0), RiskBand.MODERATE),
            ((3.0, 4.0), RiskBand.LOW),
        ],
    )
    def test_bands(
        self, aggregator: PortfolioAggregator, scores: tuple[float, float], band: RiskBand
    ) -> None:
        assessments = portfolio_of(
            (Condition.CARDIOVASCULAR, scores[0]), (Condition.DIABETES, scores[1])
        )

        overall = aggregator.overall_risk(assessments)

        assert overall.band is band
        assert overall.score == pytest.approx(sum(scores) / 2)
        assert overall.highest == max(scores)

    def test_nothing_scored_is_unknown(self, aggregator: PortfolioAggregator) -> None:
        overall = aggregator.overall_risk(portfolio_of((Condition.CANCER, None)))

        assert overall == OverallRisk(score=None, highest=None, band=RiskBand.UNKNOWN)

    def test_unscored_conditions_do_not_dilute_the_mean(
        self, aggregator: PortfolioAggregator
    ) -> None:
        overall = aggregator.overall_risk(
            portfolio_of((Condition.CARDIOVASCULAR, 12.0), (Condition.CANCER, None))
        )

        assert overall.score == 12.0
        assert overall.band is RiskBand.MODERATE


class TestPopulationComparison:
    @pytest.mark.parametrize(
        ("age", "group"),
        [(None, "unknown"), (25, "18-29"), (30, "30-39"), (59, "50-59"), (70, "70+"), (88, "70+")],
    )
    def test_age_groups(self, age: int | None, group: str) -> None:
        assert age_group(age) == group

    def test_comparison_follows_overall_band(self, aggregator: PortfolioAggregator) -> None:
        overall = OverallRisk(score=30.0, highest=30.0, band=RiskBand.HIGH)

        comparison = aggregator.compare_to_population(55, overall)

        assert comparison is not None
        assert comparison.age_group == "50-59"
        assert comparison.percentile_ranking == "Above average risk due to multiple factors"

    def test_unavailable_comparison_is_none(
        self, aggregator: PortfolioAggregator, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(portfolio_module, "COMPARISON_TEXT", {})
        overall = OverallRisk(score=3.0, highest=3.0, band=RiskBand.LOW)

        assert aggregator.compare_to_population(40, overall) is None
