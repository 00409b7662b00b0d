"""
Gail model (breast cancer, 5-year and lifetime risk).

A relative-risk multiplier built from reproductive history, biopsies and
family history is applied to race-specific baseline incidence. Only defined
for women aged 35 and older.
"""

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

MINIMUM_AGE = 35

RACE_ADJUSTMENT: dict[Race, float] = {
    Race.AFRICAN_AMERICAN: 0.77,
    Race.HISPANIC: 0.73,
    Race.ASIAN: 0.69,
    Race.NATIVE_AMERICAN: 0.97,
    Race.WHITE: 1.0,
}


@dataclass(frozen=True)
class BaselineIncidence:
    five_year: float  # percent
    lifetime: float  # percent


BASELINE_INCIDENCE: dict[Race, BaselineIncidence] = {
    Race.WHITE: BaselineIncidence(five_year=1.2, lifetime=12.4),
    Race.AFRICAN_AMERICAN: BaselineIncidence(five_year=1.0, lifetime=10.3),
    Race.HISPANIC: BaselineIncidence(five_year=0.9, lifetime=9.1),
    Race.ASIAN: BaselineIncidence(five_year=0.8, lifetime=8.2),
}


def baseline_incidence(race: Race) -> BaselineIncidence:
    return BASELINE_INCIDENCE.get(race, BASELINE_INCIDENCE[Race.WHITE])


def relative_risk(patient: NormalizedPatient) -> float:
    rr = 1.0

    if patient.age_at_menarche < 12:
        rr *= 1.21
    elif patient.age_at_menarche >= 14:
        rr *= 0.93

    first_birth = patient.age_at_first_birth
    if patient.nulliparous or (first_birth is not None and first_birth > 30):
        rr *= 1.24
    elif first_birth is not None and first_birth < 20:
        rr *= 0.93

    if patient.breast_biopsies >= 2:
        rr *= 1.27
    elif patient.breast_biopsies == 1:
        rr *= 1.07

    if patient.atypical_hyperplasia:
        rr *= 1.82

    if patient.breast_cancer_relatives >= 2:
        rr *= 2.58
    elif patient.breast_cancer_relatives == 1:
        rr *= 1.80

    return rr * RACE_ADJUSTMENT.get(patient.race, 1.0)


def categorize(five_year_percent: float) -> str:
    if five_year_percent < 1.0:
        return "low"
    if five_year_percent < 1.7:
        return "average"
    return "high"


def calculate_gail(
    patient: NormalizedPatient, settings: FormulaSettings
) -> FormulaResult | NotApplicable:
    if patient.sex is None or patient.age is None:
        return NotApplicable(
            formula=FormulaId.GAIL,
            kind=ExclusionKind.INSUFFICIENT_DATA,
            reason="Gail model requires sex and age",
        )
    if patient.sex is not Sex.FEMALE:
        return NotApplicable(formula=FormulaId.GAIL, reason="Gail model applies only to women")
    if patient.age < MINIMUM_AGE:
        return NotApplicable(
            formula=FormulaId.GAIL,
            reason=f"Gail model applies to women {MINIMUM_AGE} and older",
        )

    rr = relative_risk(patient)
    baseline = baseline_incidence(patient.race)
    five_year = rr * baseline.five_year
    lifetime = min(100.0, rr * baseline.lifetime)
    chemoprevention = five_year / 100 >= settings.chemoprevention_threshold

    return FormulaResult(
        formula=FormulaId.GAIL,
        condition=Condition.CANCER,
        score=five_year,
        category=categorize(five_year),
        lifetime_risk=lifetime,
        relative_risk=rr,
        treatment_recommended=chemoprevention,
        recommendation="Consider chemoprevention" if chemoprevention else "Standard screening",
        factors={
            "age": patient.age,
            "age_at_menarche": patient.age_at_menarche,
            "age_at_first_birth": patient.age_at_first_birth,
            "nulliparous": patient.nulliparous,
            "breast_biopsies": patient.breast_biopsies,
            "atypical_hyperplasia": patient.atypical_hyperplasia,
            "relatives_with_breast_cancer": patient.breast_cancer_relatives,
            "race": patient.race.value,
        },
    )
