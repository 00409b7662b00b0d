"""
Patient record normalization.

Every formula sees a fully populated NormalizedPatient. Missing measurements
resolve to the documented clinical defaults below; the names of defaulted
fields are kept so downstream steps can tell measured values from assumed ones.
Age and sex have no clinical default and stay None when unknown.
"""

from datetime import UTC, date, datetime
from typing import Any

import structlog

from chronic_risk.domain.models import (
    NormalizedPatient,
    PatientRecord,
    Race,
    SmokingStatus,
)

logger = structlog.get_logger(__name__)

ANTIHYPERTENSIVE_TAG = "antihypertensive"

# Documented clinical defaults applied when a field is absent.
CLINICAL_DEFAULTS: dict[str, Any] = {
    "race": Race.OTHER,
    "total_cholesterol": 200.0,  # mg/dL, desirable upper bound
    "hdl_cholesterol": 50.0,  # mg/dL
    "systolic_bp": 120.0,  # mmHg
    "diastolic_bp": 80.0,  # mmHg
    "diabetes": False,
    "medications": (),
    "bmi": 22.0,  # kg/m2, mid normal range
    "age_at_menarche": 12,
    "age_at_first_birth": None,
    "nulliparous": False,
    "breast_biopsies": 0,
    "atypical_hyperplasia": False,
    "gestational_diabetes": False,
    "smoking": SmokingStatus.NEVER,
    "physically_active": False,
    "diabetes_parent": False,
    "diabetes_sibling": False,
    "breast_cancer_relatives": 0,
    "cardiovascular_relatives": 0,
}


def calculate_age(date_of_birth: date, on: date) -> int:
    """Whole years between date_of_birth and `on`."""
    before_birthday = (on.month, on.day) < (date_of_birth.month, date_of_birth.day)
    return on.year - date_of_birth.year - int(before_birthday)


def calculate_bmi(height_cm: float | None, weight_kg: float | None) -> float | None:
    if not height_cm or not weight_kg:
        return None
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def _relative_count(parent: bool | None, sibling: bool | None, count: int | None) -> int | None:
    if count is not None:
        return count
    if parent is None and sibling is None:
        return None
    return int(bool(parent)) + int(bool(sibling))


def normalize_patient(record: PatientRecord, assessed_on: date | None = None) -> NormalizedPatient:
    """Resolve every field of `record`, falling back to CLINICAL_DEFAULTS."""
    assessed_on = assessed_on or datetime.now(UTC).date()
    demographics = record.demographics
    clinical = record.clinical
    reproductive = clinical.reproductive
    family = record.family_history

    if demographics.date_of_birth is not None:
        age: int | None = calculate_age(demographics.date_of_birth, assessed_on)
        if age < 0:
            logger.warning(
                "date_of_birth_after_assessment",
                patient_id=record.patient_id,
                date_of_birth=demographics.date_of_birth.isoformat(),
                assessed_on=assessed_on.isoformat(),
            )
            age = None
    else:
        age = demographics.age

    bmi = clinical.bmi or calculate_bmi(clinical.height_cm, clinical.weight_kg)
    medications = tuple(m.strip().lower() for m in clinical.medications)

    supplied: dict[str, Any] = {
        "race": demographics.race,
        "total_cholesterol": clinical.cholesterol.total,
        "hdl_cholesterol": clinical.cholesterol.hdl,
        "systolic_bp": clinical.blood_pressure.systolic,
        "diastolic_bp": clinical.blood_pressure.diastolic,
        "diabetes": clinical.diabetes,
        "medications": medications or None,
        "bmi": bmi,
        "age_at_menarche": reproductive.age_at_menarche,
        "age_at_first_birth": reproductive.age_at_first_birth,
        "nulliparous": reproductive.nulliparous,
        "breast_biopsies": reproductive.breast_biopsies,
        "atypical_hyperplasia": reproductive.atypical_hyperplasia,
        "gestational_diabetes": reproductive.gestational_diabetes,
        "smoking": record.lifestyle.smoking,
        "physically_active": record.lifestyle.physically_active,
        "diabetes_parent": family.diabetes.parent,
        "diabetes_sibling": family.diabetes.sibling,
        "breast_cancer_relatives": _relative_count(
            family.breast_cancer.parent,
            family.breast_cancer.sibling,
            family.breast_cancer.first_degree_count,
        ),
        "cardiovascular_relatives": _relative_count(
            family.cardiovascular.parent,
            family.cardiovascular.sibling,
            family.cardiovascular.first_degree_count,
        ),
    }

    resolved: dict[str, Any] = {}
    defaulted: set[str] = set()
    for name, value in supplied.items():
        if value is None:
            resolved[name] = CLINICAL_DEFAULTS[name]
            defaulted.add(name)
        else:
            resolved[name] = value

    if age is None:
        defaulted.add("age")
    if demographics.sex is None:
        defaulted.add("sex")

    patient = NormalizedPatient(
        patient_id=record.patient_id,
        assessed_on=assessed_on,
        age=age,
        sex=demographics.sex,
        on_antihypertensive=ANTIHYPERTENSIVE_TAG in resolved["medications"],
        defaulted_fields=frozenset(defaulted),
        **resolved,
    )

    logger.debug(
        "patient_normalized",
        patient_id=record.patient_id,
        defaulted_fields=sorted(defaulted),
    )
    return patient
