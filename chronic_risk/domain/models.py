"""
Domain models for chronic disease risk assessment.

These models represent the core clinical concepts and are framework-agnostic.
Inputs are tolerant (every field optional), outputs are frozen so a finished
assessment can be handed to any consumer without defensive copies.
"""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Condition(str, Enum):
    """Chronic condition groups the engine can score."""

    CARDIOVASCULAR = "cardiovascular"
    DIABETES = "diabetes"
    CANCER = "cancer"
    METABOLIC = "metabolic"


class FormulaId(str, Enum):
    """Named clinical risk calculators."""

    FRAMINGHAM = "framingham"
    ASCVD = "ascvd"
    QRISK3 = "qrisk3"
    HEARTSCORE = "heartscore"
    ADA = "ada"
    FINDRISK = "findrisk"
    ARIC = "aric"
    DRS = "drs"
    GAIL = "gail"
    TYRER_CUZICK = "tyrer_cuzick"
    COLORECTAL = "colorectal"
    LUNG = "lung"
    PROSTATE = "prostate"
    MELANOMA = "melanoma"
    METABOLIC_SYNDROME = "metabolic_syndrome"
    NAFLD = "nafld"
    CKD = "ckd"


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Race(str, Enum):
    """Self-reported race/ethnicity categories used by the published models."""

    WHITE = "white"
    AFRICAN_AMERICAN = "african_american"
    HISPANIC = "hispanic"
    ASIAN = "asian"
    NATIVE_AMERICAN = "native_american"
    PACIFIC_ISLANDER = "pacific_islander"
    OTHER = "other"


class SmokingStatus(str, Enum):
    CURRENT = "current"
    FORMER = "former"
    NEVER = "never"


class RiskBand(str, Enum):
    """Discrete risk band. UNKNOWN means no formula produced a score."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


class UrgencyLevel(str, Enum):
    IMMEDIATE = "immediate"
    SOON = "soon"
    ROUTINE = "routine"


class ExclusionKind(str, Enum):
    """Why a formula did not contribute to a condition score."""

    NOT_APPLICABLE = "not_applicable"
    INSUFFICIENT_DATA = "insufficient_data"
    NOT_IMPLEMENTED = "not_implemented"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


# ---------------------------------------------------------------------------
# Patient record (input)
# ---------------------------------------------------------------------------


class _Input(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Demographics(_Input):
    date_of_birth: date | None = None
    age: int | None = Field(None, ge=0, le=130, description="Used when date_of_birth is absent")
    sex: Sex | None = None
    race: Race | None = None

    @field_validator("race", mode="before")
    @classmethod
    def normalize_race(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower().replace(" ", "_").replace("-", "_")
            if v == "black":
                return Race.AFRICAN_AMERICAN
        return v


class CholesterolPanel(_Input):
    total: float | None = Field(None, gt=0, description="Total cholesterol, mg/dL")
    hdl: float | None = Field(None, gt=0, description="HDL cholesterol, mg/dL")


class BloodPressure(_Input):
    systolic: float | None = Field(None, gt=0, description="mmHg")
    diastolic: float | None = Field(None, gt=0, description="mmHg")


class ReproductiveHistory(_Input):
    age_at_menarche: int | None = Field(None, ge=5, le=25)
    age_at_first_birth: int | None = Field(None, ge=10, le=60)
    nulliparous: bool | None = None
    breast_biopsies: int | None = Field(None, ge=0)
    atypical_hyperplasia: bool | None = None
    gestational_diabetes: bool | None = None


class ClinicalData(_Input):
    cholesterol: CholesterolPanel = Field(default_factory=CholesterolPanel)
    blood_pressure: BloodPressure = Field(default_factory=BloodPressure)
    diabetes: bool | None = None
    medications: tuple[str, ...] = Field(
        default=(), description="Medication class tags, e.g. 'antihypertensive'"
    )
    bmi: float | None = Field(None, gt=0)
    height_cm: float | None = Field(None, gt=0)
    weight_kg: float | None = Field(None, gt=0)
    reproductive: ReproductiveHistory = Field(default_factory=ReproductiveHistory)


class LifestyleData(_Input):
    smoking: SmokingStatus | None = None
    physically_active: bool | None = Field(
        None, description="Regular physical activity (150+ minutes/week)"
    )


class RelativeHistory(_Input):
    """Affected first-degree relatives for one condition."""

    parent: bool | None = None
    sibling: bool | None = None
    first_degree_count: int | None = Field(None, ge=0)


class FamilyHistory(_Input):
    diabetes: RelativeHistory = Field(default_factory=RelativeHistory)
    breast_cancer: RelativeHistory = Field(default_factory=RelativeHistory)
    cardiovascular: RelativeHistory = Field(default_factory=RelativeHistory)


class PatientRecord(_Input):
    """Everything a data provider knows about a patient. Absent fields are tolerated."""

    patient_id: str | None = None
    demographics: Demographics = Field(default_factory=Demographics)
    clinical: ClinicalData = Field(default_factory=ClinicalData)
    lifestyle: LifestyleData = Field(default_factory=LifestyleData)
    family_history: FamilyHistory = Field(default_factory=FamilyHistory)


class NormalizedPatient(BaseModel):
    """Fully populated view of a PatientRecord consumed by every formula."""

    model_config = ConfigDict(frozen=True)

    patient_id: str | None = None
    assessed_on: date
    age: int | None
    sex: Sex | None
    race: Race

    total_cholesterol: float
    hdl_cholesterol: float
    systolic_bp: float
    diastolic_bp: float
    diabetes: bool
    medications: tuple[str, ...]
    on_antihypertensive: bool
    bmi: float

    age_at_menarche: int
    age_at_first_birth: int | None
    nulliparous: bool
    breast_biopsies: int
    atypical_hyperplasia: bool
    gestational_diabetes: bool

    smoking: SmokingStatus
    physically_active: bool

    diabetes_parent: bool
    diabetes_sibling: bool
    breast_cancer_relatives: int
    cardiovascular_relatives: int

    defaulted_fields: frozenset[str] = Field(default_factory=frozenset)

    @property
    def current_smoker(self) -> bool:
        return self.smoking is SmokingStatus.CURRENT

    def is_defaulted(self, field_name: str) -> bool:
        return field_name in self.defaulted_fields


# ---------------------------------------------------------------------------
# Formula outputs
# ---------------------------------------------------------------------------


class FormulaResult(BaseModel):
    """Output of one named formula for one condition."""

    model_config = ConfigDict(frozen=True)

    formula: FormulaId
    condition: Condition
    score: float = Field(description="Estimated risk in percent")
    category: str
    factors: dict[str, Any] = Field(default_factory=dict)
    points: int | None = None
    lifetime_risk: float | None = None
    relative_risk: float | None = None
    treatment_recommended: bool | None = None
    recommendation: str | None = None


class NotApplicable(BaseModel):
    """Typed non-error outcome: the formula does not apply to this patient."""

    model_config = ConfigDict(frozen=True)

    formula: FormulaId
    kind: ExclusionKind = ExclusionKind.NOT_APPLICABLE
    reason: str


class FormulaExclusion(BaseModel):
    """A formula that did not contribute to the combined score, and why."""

    model_config = ConfigDict(frozen=True)

    formula: FormulaId
    kind: ExclusionKind
    reason: str


# ---------------------------------------------------------------------------
# Assessment outputs
# ---------------------------------------------------------------------------


class ModifiableFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str
    current: str
    target: str
    impact: str
    intervention: str


class Recommendations(BaseModel):
    model_config = ConfigDict(frozen=True)

    immediate: tuple[str, ...] = ()
    short_term: tuple[str, ...] = ()
    long_term: tuple[str, ...] = ()
    monitoring: tuple[str, ...] = ()


class InterventionUrgency(BaseModel):
    model_config = ConfigDict(frozen=True)

    urgency: UrgencyLevel
    timeframe: str
    priority: str


class ConditionScore(BaseModel):
    """Aggregated formula outcomes for one condition, before classification."""

    model_config = ConfigDict(frozen=True)

    condition: Condition
    combined_score: float | None
    confidence: float = Field(ge=0.0, le=1.0)
    primary_formula: FormulaId
    total_formulas: int = Field(ge=0)
    formula_results: dict[FormulaId, FormulaResult] = Field(default_factory=dict)
    exclusions: tuple[FormulaExclusion, ...] = ()

    @property
    def successful_formulas(self) -> int:
        return len(self.formula_results)

    @model_validator(mode="after")
    def score_and_confidence_agree(self) -> "ConditionScore":
        if (self.combined_score is None) != (self.confidence == 0.0):
            raise ValueError("confidence must be 0 exactly when combined_score is None")
        return self


class ConditionAssessment(BaseModel):
    """Complete, immutable assessment of one condition for one patient."""

    model_config = ConfigDict(frozen=True)

    condition: Condition
    combined_score: float | None
    confidence: float = Field(ge=0.0, le=1.0)
    band: RiskBand
    primary_formula: FormulaId
    formula_results: dict[FormulaId, FormulaResult] = Field(default_factory=dict)
    exclusions: tuple[FormulaExclusion, ...] = ()
    modifiable_factors: tuple[ModifiableFactor, ...] = ()
    recommendations: Recommendations = Field(default_factory=Recommendations)
    urgency: InterventionUrgency

    @property
    def insufficient_data(self) -> bool:
        return self.combined_score is None

    @property
    def primary_result(self) -> FormulaResult | None:
        return self.formula_results.get(self.primary_formula)

    @model_validator(mode="after")
    def unknown_only_without_score(self) -> "ConditionAssessment":
        if (self.combined_score is None) != (self.band is RiskBand.UNKNOWN):
            raise ValueError("band must be 'unknown' exactly when combined_score is None")
        if (self.combined_score is None) != (self.confidence == 0.0):
            raise ValueError("confidence must be 0 exactly when combined_score is None")
        return self


class ConditionError(BaseModel):
    """A requested condition that could not be assessed at all."""

    model_config = ConfigDict(frozen=True)

    condition: str
    error: str
    message: str


class OverallRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float | None
    highest: float | None
    band: RiskBand


class PriorityCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    condition: Condition
    score: float
    band: RiskBand


class PopulationComparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    age_group: str
    percentile_ranking: str
    demographic_comparison: str


class RiskProfile(BaseModel):
    """Top-level result of one assessment call."""

    model_config = ConfigDict(frozen=True)

    patient_id: str | None = None
    assessed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    assessments: dict[Condition, ConditionAssessment] = Field(default_factory=dict)
    errors: tuple[ConditionError, ...] = ()
    overall: OverallRisk
    priority_conditions: tuple[PriorityCondition, ...] = ()
    population_comparison: PopulationComparison | None = None

    @property
    def unknown_conditions(self) -> list[Condition]:
        return [c for c, a in self.assessments.items() if a.band is RiskBand.UNKNOWN]
