"""
Framingham Risk Score (10-year cardiovascular risk, point-based).

Points come from sex-specific age brackets plus cholesterol, HDL, systolic
blood pressure, smoking and diabetes; the clamped point total is looked up in
a sex-specific point-to-percentage table.
"""

from chronic_risk.config import FormulaSettings
from chronic_risk.domain.models import (
    Condition,
    ExclusionKind,
    FormulaId,
    FormulaResult,
    NormalizedPatient,
    NotApplicable,
    Sex,
)

MIN_POINTS = -2
MAX_POINTS = 14

# (minimum age, points), highest bracket first
AGE_POINTS: dict[Sex, tuple[tuple[int, int], ...]] = {
    Sex.MALE: ((70, 11), (65, 10), (60, 8), (55, 6), (50, 4), (45, 2), (40, 1)),
    Sex.FEMALE: ((70, 12), (65, 9), (60, 7), (55, 4), (50, 2), (45, 1)),
}

RISK_TABLE: dict[Sex, dict[int, float]] = {
    Sex.MALE: {
        -2: 2, -1: 2, 0: 3, 1: 3, 2: 4, 3: 5, 4: 7, 5: 8, 6: 10,
        7: 13, 8: 16, 9: 20, 10: 25, 11: 31, 12: 37, 13: 45, 14: 53,
    },
    Sex.FEMALE: {
        -2: 1, -1: 2, 0: 2, 1: 2, 2: 3, 3: 3, 4: 4, 5: 5, 6: 6,
        7: 7, 8: 8, 9: 9, 10: 11, 11: 13, 12: 15, 13: 17, 14: 20,
    },
}  # fmt: skip


def age_points(age: int, sex: Sex) -> int:
    for minimum, points in AGE_POINTS[sex]:
        if age >= minimum:
            return points
    return 0


def cholesterol_points(total: float) -> int:
    if total >= 280:
        return 3
    if total >= 240:
        return 2
    if total >= 200:
        return 1
    return 0


def hdl_points(hdl: float) -> int:
    if hdl < 35:
        return 2
    if hdl < 45:
        return 1
    if hdl >= 60:
        return -1
    return 0


def systolic_points(systolic: float) -> int:
    if systolic >= 160:
        return 2
    if systolic >= 140:
        return 1
    return 0


def points_to_risk(points: int, sex: Sex) -> float:
    """Look up 10-year risk (percent) for a point total, clamped to the table range."""
    return float(RISK_TABLE[sex][max(MIN_POINTS, min(MAX_POINTS, points))])


def categorize(risk: float) -> str:
    if risk < 6:
        return "low"
    if risk < 20:
        return "intermediate"
    return "high"


def calculate_framingham(
    patient: NormalizedPatient, settings: FormulaSettings
) -> FormulaResult | NotApplicable:
    if patient.age is None or patient.sex is None:
        return NotApplicable(
            formula=FormulaId.FRAMINGHAM,
            kind=ExclusionKind.INSUFFICIENT_DATA,
            reason="Framingham score requires age and sex",
        )

    points = (
        age_points(patient.age, patient.sex)
        + cholesterol_points(patient.total_cholesterol)
        + hdl_points(patient.hdl_cholesterol)
        + systolic_points(patient.systolic_bp)
        + (2 if patient.current_smoker else 0)
        + (2 if patient.diabetes else 0)
    )
    risk = points_to_risk(points, patient.sex)

    return FormulaResult(
        formula=FormulaId.FRAMINGHAM,
        condition=Condition.CARDIOVASCULAR,
        score=risk,
        category=categorize(risk),
        points=points,
        factors={
            "age": patient.age,
            "sex": patient.sex.value,
            "total_cholesterol": patient.total_cholesterol,
            "hdl_cholesterol": patient.hdl_cholesterol,
            "systolic_bp": patient.systolic_bp,
            "smoking": patient.current_smoker,
            "diabetes": patient.diabetes,
        },
    )
