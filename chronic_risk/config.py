"""
Configuration management with environment variable support and validation.

Design principles:
- Clinical guideline data (thresholds, factor catalogue, templates) is plain
  configuration, so guideline updates never touch formula code
- Validation at startup (fail fast)
- Type safety with Pydantic
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from chronic_risk.domain.models import Condition, RiskBand, UrgencyLevel

# Load environment variables from .env file
load_dotenv()


class BandThresholds(BaseModel):
    """Upper bounds (exclusive) of the low and moderate bands, in percent."""

    low: float = Field(ge=0.0)
    moderate: float = Field(ge=0.0)

    @model_validator(mode="after")
    def ordered(self) -> "BandThresholds":
        if self.low > self.moderate:
            raise ValueError("low threshold must not exceed moderate threshold")
        return self


class PortfolioThresholds(BaseModel):
    """Cross-condition thresholds for the overall band."""

    high_if_any_at_least: float = Field(default=20.0, ge=0.0)
    moderate_if_mean_at_least: float = Field(default=10.0, ge=0.0)


class FactorTemplate(BaseModel):
    """Catalogue entry for one modifiable risk factor."""

    target: str
    impact: Literal["high", "medium", "low"] = "high"
    intervention: str
    threshold: float | None = Field(
        default=None, description="Trigger threshold for measurement-based factors"
    )
    conditions: list[Condition] | None = Field(
        default=None, description="Conditions this factor applies to (None = all)"
    )


class UrgencyTemplate(BaseModel):
    urgency: UrgencyLevel
    timeframe: str
    priority: str


class RecommendationTemplate(BaseModel):
    long_term: list[str] = Field(default_factory=list)
    monitoring: list[str] = Field(default_factory=list)


class FormulaSettings(BaseModel):
    """Tunable decision thresholds used inside the formulas."""

    chemoprevention_threshold: float = Field(
        default=0.017, gt=0.0, lt=1.0, description="Gail 5-year risk (fraction)"
    )
    ascvd_treatment_threshold: float = Field(
        default=7.5, gt=0.0, le=100.0, description="ASCVD 10-year risk (percent)"
    )


def _default_thresholds() -> dict[Condition, BandThresholds]:
    return {
        Condition.CARDIOVASCULAR: BandThresholds(low=5.0, moderate=20.0),
        Condition.DIABETES: BandThresholds(low=10.0, moderate=25.0),
        Condition.CANCER: BandThresholds(low=1.0, moderate=2.0),
        Condition.METABOLIC: BandThresholds(low=5.0, moderate=20.0),
    }


def _default_factor_catalogue() -> dict[str, FactorTemplate]:
    return {
        "smoking": FactorTemplate(
            target="quit smoking",
            impact="high",
            intervention="smoking cessation program",
        ),
        "weight": FactorTemplate(
            target="BMI 18.5-24.9",
            impact="high",
            intervention="weight management program",
            threshold=25.0,
        ),
        "physical_activity": FactorTemplate(
            target="150+ minutes moderate activity/week",
            impact="high",
            intervention="structured exercise program",
        ),
        "blood_pressure": FactorTemplate(
            target="below 130/80 mmHg",
            impact="high",
            intervention="blood pressure management",
            threshold=130.0,
            conditions=[Condition.CARDIOVASCULAR, Condition.DIABETES],
        ),
        "cholesterol": FactorTemplate(
            target="total cholesterol below 200 mg/dL, HDL 40 mg/dL or higher",
            impact="medium",
            intervention="lipid management and dietary counseling",
            threshold=240.0,
            conditions=[Condition.CARDIOVASCULAR],
        ),
    }


def _default_urgency() -> dict[RiskBand, UrgencyTemplate]:
    routine = UrgencyTemplate(
        urgency=UrgencyLevel.ROUTINE,
        timeframe="6-12 months",
        priority="preventive care and screening",
    )
    return {
        RiskBand.HIGH: UrgencyTemplate(
            urgency=UrgencyLevel.IMMEDIATE,
            timeframe="1-2 weeks",
            priority="urgent medical evaluation",
        ),
        RiskBand.MODERATE: UrgencyTemplate(
            urgency=UrgencyLevel.SOON,
            timeframe="1-3 months",
            priority="lifestyle modification and monitoring",
        ),
        RiskBand.LOW: routine,
        RiskBand.UNKNOWN: routine,
    }


def _default_recommendations() -> dict[Condition, RecommendationTemplate]:
    return {
        Condition.CARDIOVASCULAR: RecommendationTemplate(
            long_term=["Heart-healthy diet (DASH or Mediterranean)"],
            monitoring=["Blood pressure monitoring", "Cholesterol screening every 4-6 years"],
        ),
        Condition.DIABETES: RecommendationTemplate(
            long_term=["Low-glycemic diet and weight management"],
            monitoring=["Blood glucose screening every 3 years", "HbA1c monitoring if prediabetic"],
        ),
        Condition.CANCER: RecommendationTemplate(
            long_term=["Limit alcohol and maintain a healthy weight"],
            monitoring=["Age-appropriate cancer screening per current guidelines"],
        ),
        Condition.METABOLIC: RecommendationTemplate(
            long_term=["Balanced diet with reduced refined sugar and saturated fat"],
            monitoring=["Annual metabolic panel (glucose, lipids, liver and kidney function)"],
        ),
    }


class GuidelineConfig(BaseModel):
    """Clinical guideline data consumed by the classifier and the recommendation engine."""

    thresholds: dict[Condition, BandThresholds] = Field(default_factory=_default_thresholds)
    portfolio: PortfolioThresholds = Field(default_factory=PortfolioThresholds)
    modifiable_factors: dict[str, FactorTemplate] = Field(
        default_factory=_default_factor_catalogue
    )
    urgency: dict[RiskBand, UrgencyTemplate] = Field(default_factory=_default_urgency)
    recommendations: dict[Condition, RecommendationTemplate] = Field(
        default_factory=_default_recommendations
    )
    high_risk_actions: list[str] = Field(
        default_factory=lambda: [
            "Consult healthcare provider within 1-2 weeks",
            "Consider medication evaluation",
        ]
    )
    formulas: FormulaSettings = Field(default_factory=FormulaSettings)

    @model_validator(mode="after")
    def covers_every_condition(self) -> "GuidelineConfig":
        missing = [c.value for c in Condition if c not in self.thresholds]
        if missing:
            raise ValueError(f"missing risk thresholds for: {', '.join(missing)}")
        missing_bands = [b.value for b in RiskBand if b not in self.urgency]
        if missing_bands:
            raise ValueError(f"missing urgency templates for: {', '.join(missing_bands)}")
        return self


class EngineConfig(BaseModel):
    """Assessment engine runtime settings."""

    formula_timeout_seconds: float = Field(
        default=5.0, gt=0.0, description="Timeout for a single formula evaluation"
    )
    default_conditions: list[Condition] = Field(
        default_factory=lambda: [Condition.CARDIOVASCULAR, Condition.DIABETES, Condition.CANCER],
        min_length=1,
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    engine: EngineConfig = Field(default_factory=EngineConfig)
    guidelines: GuidelineConfig = Field(default_factory=GuidelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_guidelines(path: str | Path) -> GuidelineConfig:
    """Load guideline overrides from a JSON file. Omitted sections keep their defaults."""
    return GuidelineConfig.model_validate_json(Path(path).read_text(encoding="utf-8"))


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    guidelines_file = os.getenv("RISK_GUIDELINES_FILE")
    guidelines = load_guidelines(guidelines_file) if guidelines_file else GuidelineConfig()

    chemoprevention = os.getenv("CHEMOPREVENTION_THRESHOLD")
    if chemoprevention is not None:
        formulas = FormulaSettings(
            chemoprevention_threshold=float(chemoprevention),
            ascvd_treatment_threshold=guidelines.formulas.ascvd_treatment_threshold,
        )
        guidelines = guidelines.model_copy(update={"formulas": formulas})

    engine_config = EngineConfig(
        formula_timeout_seconds=float(os.getenv("FORMULA_TIMEOUT_SECONDS", "5.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        engine=engine_config,
        guidelines=guidelines,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
