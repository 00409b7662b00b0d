"""
Risk assessment engine: the end-to-end scoring pipeline.

1. Normalize the patient record (defaults applied once)
2. Resolve requested conditions (unsupported names recorded, not fatal)
3. Evaluate each condition's formulas concurrently and aggregate them
4. Classify, find modifiable factors, fill recommendations and urgency
5. Summarise across conditions

Failures are contained at the smallest scope: formula, then condition.
A partial RiskProfile is a complete, valid answer.
"""

import asyncio
import time
from collections.abc import Iterable
from datetime import UTC, date, datetime

import structlog

from chronic_risk.config import AppConfig, get_config
from chronic_risk.domain.errors import UnsupportedConditionError
from chronic_risk.domain.models import (
    Condition,
    ConditionAssessment,
    ConditionError,
    ConditionScore,
    ExclusionKind,
    FormulaExclusion,
    NormalizedPatient,
    PatientRecord,
    RiskProfile,
)
from chronic_risk.services.aggregator import aggregate_condition
from chronic_risk.services.classifier import RiskClassifier
from chronic_risk.services.modifiable_factors import ModifiableFactorAnalyzer
from chronic_risk.services.normalization import normalize_patient
from chronic_risk.services.portfolio import PortfolioAggregator
from chronic_risk.services.recommendations import RecommendationEngine
from chronic_risk.services.registry import CalculatorRegistry, build_default_registry

logger = structlog.get_logger(__name__)


class RiskAssessmentEngine:
    """
    Stateless orchestrator over the registry, aggregator, classifier,
    factor analyzer, recommendation engine and portfolio aggregator.

    Every call is independently reproducible given the same record and as_of date.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        registry: CalculatorRegistry | None = None,
    ) -> None:
        self.config = config or get_config()
        guidelines = self.config.guidelines
        self.registry = registry or build_default_registry(
            settings=guidelines.formulas,
            timeout_seconds=self.config.engine.formula_timeout_seconds,
        )
        self.classifier = RiskClassifier(guidelines.thresholds)
        self.factor_analyzer = ModifiableFactorAnalyzer(guidelines.modifiable_factors)
        self.recommendations = RecommendationEngine(guidelines)
        self.portfolio = PortfolioAggregator(guidelines.portfolio)
        self.logger = logger.bind(component="risk_assessment_engine")

    def _finish(self, score: ConditionScore, patient: NormalizedPatient) -> ConditionAssessment:
        band = self.classifier.classify(score.condition, score.combined_score)
        factors = self.factor_analyzer.identify(score.condition, patient)
        return ConditionAssessment(
            condition=score.condition,
            combined_score=score.combined_score,
            confidence=score.confidence,
            band=band,
            primary_formula=score.primary_formula,
            formula_results=score.formula_results,
            exclusions=score.exclusions,
            modifiable_factors=tuple(factors),
            recommendations=self.recommendations.recommend(score.condition, band, factors),
            urgency=self.recommendations.urgency(band),
        )

    async def _score_condition(
        self, condition: Condition, patient: NormalizedPatient
    ) -> ConditionScore:
        outcomes = await self.registry.evaluate(condition, patient)
        return aggregate_condition(
            condition,
            [outcome for _, outcome in outcomes],
            primary_formula=self.registry.primary_formula(condition),
            total_formulas=len(outcomes),
        )

    async def _assess_resolved(
        self, condition: Condition, patient: NormalizedPatient
    ) -> ConditionAssessment:
        log = self.logger.bind(condition=condition.value, patient_id=patient.patient_id)
        try:
            score = await self._score_condition(condition, patient)
        except Exception as e:
            log.exception("condition_assessment_failed", error=str(e))
            specs = self.registry.formulas_for(condition)
            score = ConditionScore(
                condition=condition,
                combined_score=None,
                confidence=0.0,
                primary_formula=self.registry.primary_formula(condition),
                total_formulas=len(specs),
                exclusions=tuple(
                    FormulaExclusion(
                        formula=spec.formula,
                        kind=ExclusionKind.FAILED,
                        reason=f"condition evaluation failed: {e}",
                    )
                    for spec in specs
                ),
            )

        assessment = self._finish(score, patient)
        log.info(
            "condition_assessed",
            score=assessment.combined_score,
            confidence=assessment.confidence,
            band=assessment.band.value,
            excluded=len(assessment.exclusions),
        )
        return assessment

    async def assess_condition(
        self,
        record: PatientRecord,
        condition: str | Condition,
        *,
        as_of: date | None = None,
    ) -> ConditionAssessment:
        """Assess a single condition. Raises UnsupportedConditionError for unknown names."""
        resolved = self.registry.resolve(condition)
        patient = normalize_patient(record, as_of)
        return await self._assess_resolved(resolved, patient)

    async def assess(
        self,
        record: PatientRecord,
        conditions: Iterable[str | Condition] | None = None,
        *,
        as_of: date | None = None,
    ) -> RiskProfile:
        """
        Assess every requested condition and build the RiskProfile.

        Unsupported condition names are reported in `RiskProfile.errors`;
        the remaining conditions are still assessed.
        """
        start_time = time.perf_counter()
        requested = list(conditions) if conditions is not None else list(
            self.config.engine.default_conditions
        )
        patient = normalize_patient(record, as_of)

        resolved: list[Condition] = []
        errors: list[ConditionError] = []
        for name in requested:
            try:
                condition = self.registry.resolve(name)
            except UnsupportedConditionError as e:
                self.logger.warning("unsupported_condition", condition=e.condition)
                errors.append(
                    ConditionError(
                        condition=e.condition, error=type(e).__name__, message=str(e)
                    )
                )
                continue
            if condition not in resolved:
                resolved.append(condition)

        async with asyncio.TaskGroup() as task_group:
            tasks = [
                task_group.create_task(
                    self._assess_resolved(condition, patient), name=condition.value
                )
                for condition in resolved
            ]

        # dict keeps request order, which the priority tie-break relies on
        assessments = {
            condition: task.result() for condition, task in zip(resolved, tasks, strict=True)
        }

        overall = self.portfolio.overall_risk(assessments)
        profile = RiskProfile(
            patient_id=record.patient_id,
            assessed_at=datetime.now(UTC),
            assessments=assessments,
            errors=tuple(errors),
            overall=overall,
            priority_conditions=tuple(self.portfolio.priority_conditions(assessments)),
            population_comparison=self.portfolio.compare_to_population(patient.age, overall),
        )

        self.logger.info(
            "assessment_completed",
            patient_id=record.patient_id,
            conditions=[c.value for c in resolved],
            unsupported=[e.condition for e in errors],
            overall_band=overall.band.value,
            duration_seconds=round(time.perf_counter() - start_time, 4),
        )
        return profile

    def assess_sync(
        self,
        record: PatientRecord,
        conditions: Iterable[str | Condition] | None = None,
        *,
        as_of: date | None = None,
    ) -> RiskProfile:
        """Blocking convenience wrapper for callers without an event loop."""
        return asyncio.run(self.assess(record, conditions, as_of=as_of))
