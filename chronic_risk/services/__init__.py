"""
Core services for the risk engine.

This package contains the scoring pipeline: formula dispatch, aggregation,
classification, factor analysis, recommendations and portfolio summary.
"""

from .aggregator import aggregate_condition
from .assessment import RiskAssessmentEngine
from .classifier import RiskClassifier
from .modifiable_factors import ModifiableFactorAnalyzer
from .normalization import CLINICAL_DEFAULTS, normalize_patient
from .portfolio import PortfolioAggregator
from .recommendations import RecommendationEngine
from .registry import CalculatorRegistry, FormulaSpec, build_default_registry
from .result import Result

__all__ = [
    "CLINICAL_DEFAULTS",
    "CalculatorRegistry",
    "FormulaSpec",
    "ModifiableFactorAnalyzer",
    "PortfolioAggregator",
    "RecommendationEngine",
    "Result",
    "RiskAssessmentEngine",
    "RiskClassifier",
    "aggregate_condition",
    "build_default_registry",
    "normalize_patient",
]
