"""
ACC/AHA Pooled Cohort Equations (10-year ASCVD risk).

Four published cohort equations selected by sex and race (African American
vs. everyone else). Each is a weighted sum of log-transformed risk factors
and their age interactions, turned into a probability with

    risk = 100 * (1 - S0 ** exp(sum - mean))

Coefficients: Goff et al., 2013 ACC/AHA Guideline on the Assessment of
Cardiovascular Risk, Table A.
"""

import math
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

# exp() of anything above this already drives S0 ** exp(...) to 0.0
_MAX_EXPONENT = 50.0


@dataclass(frozen=True)
class PooledCohortCoefficients:
    ln_age: float
    ln_total_chol: float
    ln_hdl: float
    ln_treated_sbp: float
    ln_untreated_sbp: float
    smoker: float
    diabetes: float
    baseline_survival: float
    mean_sum: float
    ln_age_squared: float = 0.0
    ln_age_x_ln_total_chol: float = 0.0
    ln_age_x_ln_hdl: float = 0.0
    ln_age_x_ln_treated_sbp: float = 0.0
    ln_age_x_ln_untreated_sbp: float = 0.0
    ln_age_x_smoker: float = 0.0


WHITE_FEMALE = PooledCohortCoefficients(
    ln_age=-29.799,
    ln_age_squared=4.884,
    ln_total_chol=13.540,
    ln_age_x_ln_total_chol=-3.114,
    ln_hdl=-13.578,
    ln_age_x_ln_hdl=3.149,
    ln_treated_sbp=2.019,
    ln_untreated_sbp=1.957,
    smoker=7.574,
    ln_age_x_smoker=-1.665,
    diabetes=0.661,
    baseline_survival=0.9665,
    mean_sum=-29.18,
)

AFRICAN_AMERICAN_FEMALE = PooledCohortCoefficients(
    ln_age=17.114,
    ln_total_chol=0.940,
    ln_hdl=-18.920,
    ln_age_x_ln_hdl=4.475,
    ln_treated_sbp=29.291,
    ln_age_x_ln_treated_sbp=-6.432,
    ln_untreated_sbp=27.820,
    ln_age_x_ln_untreated_sbp=-6.087,
    smoker=0.691,
    diabetes=0.874,
    baseline_survival=0.9533,
    mean_sum=86.61,
)

WHITE_MALE = PooledCohortCoefficients(
    ln_age=12.344,
    ln_total_chol=11.853,
    ln_age_x_ln_total_chol=-2.664,
    ln_hdl=-7.990,
    ln_age_x_ln_hdl=1.769,
    ln_treated_sbp=1.797,
    ln_untreated_sbp=1.764,
    smoker=7.837,
    ln_age_x_smoker=-1.795,
    diabetes=0.658,
    baseline_survival=0.9144,
    mean_sum=61.18,
)

AFRICAN_AMERICAN_MALE = PooledCohortCoefficients(
    ln_age=2.469,
    ln_total_chol=0.302,
    ln_hdl=-0.307,
    ln_treated_sbp=1.916,
    ln_untreated_sbp=1.809,
    smoker=0.549,
    diabetes=0.645,
    baseline_survival=0.8954,
    mean_sum=19.54,
)


def select_equation(sex: Sex, race: Race) -> PooledCohortCoefficients:
    black = race is Race.AFRICAN_AMERICAN
    if sex is Sex.MALE:
        return AFRICAN_AMERICAN_MALE if black else WHITE_MALE
    return AFRICAN_AMERICAN_FEMALE if black else WHITE_FEMALE


def pooled_cohort_risk(
    coefficients: PooledCohortCoefficients,
    age: float,
    total_cholesterol: float,
    hdl: float,
    systolic_bp: float,
    treated_bp: bool,
    diabetes: bool,
    smoker: bool,
) -> float:
    """10-year ASCVD risk in percent, clamped to [0, 100]."""
    c = coefficients
    ln_age = math.log(age)
    ln_tc = math.log(total_cholesterol)
    ln_hdl = math.log(hdl)
    ln_sbp = math.log(systolic_bp)
    smoke = 1.0 if smoker else 0.0

    if treated_bp:
        sbp_term = c.ln_treated_sbp * ln_sbp + c.ln_age_x_ln_treated_sbp * ln_age * ln_sbp
    else:
        sbp_term = c.ln_untreated_sbp * ln_sbp + c.ln_age_x_ln_untreated_sbp * ln_age * ln_sbp

    total = (
        c.ln_age * ln_age
        + c.ln_age_squared * ln_age**2
        + c.ln_total_chol * ln_tc
        + c.ln_age_x_ln_total_chol * ln_age * ln_tc
        + c.ln_hdl * ln_hdl
        + c.ln_age_x_ln_hdl * ln_age * ln_hdl
        + sbp_term
        + c.smoker * smoke
        + c.ln_age_x_smoker * ln_age * smoke
        + (c.diabetes if diabetes else 0.0)
    )

    exponent = min(total - c.mean_sum, _MAX_EXPONENT)
    risk = 100 * (1 - c.baseline_survival ** math.exp(exponent))
    return max(0.0, min(100.0, risk))


def categorize(risk: float) -> str:
    if risk < 5:
        return "low"
    if risk < 7.5:
        return "borderline"
    if risk < 20:
        return "intermediate"
    return "high"


def calculate_ascvd(
    patient: NormalizedPatient, settings: FormulaSettings
) -> FormulaResult | NotApplicable:
    if patient.age is None or patient.sex is None:
        return NotApplicable(
            formula=FormulaId.ASCVD,
            kind=ExclusionKind.INSUFFICIENT_DATA,
            reason="ASCVD pooled cohort equations require age and sex",
        )
    # ln(age) is undefined at zero
    if patient.age <= 0:
        return NotApplicable(
            formula=FormulaId.ASCVD,
            kind=ExclusionKind.INSUFFICIENT_DATA,
            reason="ASCVD pooled cohort equations require a positive age",
        )

    risk = pooled_cohort_risk(
        select_equation(patient.sex, patient.race),
        age=patient.age,
        total_cholesterol=patient.total_cholesterol,
        hdl=patient.hdl_cholesterol,
        systolic_bp=patient.systolic_bp,
        treated_bp=patient.on_antihypertensive,
        diabetes=patient.diabetes,
        smoker=patient.current_smoker,
    )

    return FormulaResult(
        formula=FormulaId.ASCVD,
        condition=Condition.CARDIOVASCULAR,
        score=risk,
        category=categorize(risk),
        treatment_recommended=risk >= settings.ascvd_treatment_threshold,
        factors={
            "age": patient.age,
            "sex": patient.sex.value,
            "race": patient.race.value,
            "total_cholesterol": patient.total_cholesterol,
            "hdl_cholesterol": patient.hdl_cholesterol,
            "systolic_bp": patient.systolic_bp,
            "on_bp_medication": patient.on_antihypertensive,
            "diabetes": patient.diabetes,
            "smoking": patient.current_smoker,
        },
    )
