"""American Diabetes Association risk test (point accumulation)."""

from dataclasses import dataclass

from chronic_risk.config import FormulaSettings
from chronic_risk.domain.models import (
    Condition,
    ExclusionKind,
    FormulaId,
    FormulaResult,
    NormalizedPatient,
    NotApplicable,
    Race,
    Sex,
)

HIGH_RISK_ETHNICITIES = frozenset(
    {
        Race.AFRICAN_AMERICAN,
        Race.HISPANIC,
        Race.NATIVE_AMERICAN,
        Race.ASIAN,
        Race.PACIFIC_ISLANDER,
    }
)


@dataclass(frozen=True)
class ADARiskLevel:
    category: str
    percentage: float
    recommendation: str


LOW = ADARiskLevel("low", 5.0, "Continue healthy lifestyle, rescreen in 3 years")
MODERATE = ADARiskLevel(
    "moderate", 15.0, "Consider prediabetes screening, lifestyle counseling"
)
HIGH = ADARiskLevel(
    "high", 25.0, "Diabetes screening recommended, intensive lifestyle intervention"
)


def points_to_risk(points: int) -> ADARiskLevel:
    if points < 3:
        return LOW
    if points < 5:
        return MODERATE
    return HIGH


def age_points(age: int) -> int:
    if age >= 65:
        return 3
    if age >= 45:
        return 2
    if age >= 25:
        return 1
    return 0


def bmi_points(bmi: float) -> int:
    if bmi >= 30:
        return 3
    if bmi >= 25:
        return 1
    return 0


def has_high_blood_pressure(patient: NormalizedPatient) -> bool:
    return (
        patient.systolic_bp >= 140
        or patient.diastolic_bp >= 90
        or patient.on_antihypertensive
    )


def calculate_ada(
    patient: NormalizedPatient, settings: FormulaSettings
) -> FormulaResult | NotApplicable:
    if patient.age is None:
        return NotApplicable(
            formula=FormulaId.ADA,
            kind=ExclusionKind.INSUFFICIENT_DATA,
            reason="ADA risk test requires age",
        )

    high_bp = has_high_blood_pressure(patient)
    points = age_points(patient.age) + bmi_points(patient.bmi)
    if patient.sex is Sex.MALE:
        points += 1
    if patient.diabetes_parent:
        points += 1
    if patient.diabetes_sibling:
        points += 1
    if high_bp:
        points += 1
    if not patient.physically_active:
        points += 1
    if patient.sex is Sex.FEMALE and patient.gestational_diabetes:
        points += 1
    if patient.race in HIGH_RISK_ETHNICITIES:
        points += 1

    level = points_to_risk(points)

    return FormulaResult(
        formula=FormulaId.ADA,
        condition=Condition.DIABETES,
        score=level.percentage,
        category=level.category,
        points=points,
        recommendation=level.recommendation,
        factors={
            "age": patient.age,
            "sex": patient.sex.value if patient.sex else None,
            "bmi": round(patient.bmi, 1),
            "family_history_parent": patient.diabetes_parent,
            "family_history_sibling": patient.diabetes_sibling,
            "high_blood_pressure": high_bp,
            "physically_active": patient.physically_active,
            "gestational_diabetes": patient.gestational_diabetes,
            "race": patient.race.value,
        },
    )
