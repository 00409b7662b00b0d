"""Shared fixtures for the risk engine unit tests."""

from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from chronic_risk.config import AppConfig
from chronic_risk.domain.models import NormalizedPatient, PatientRecord
from chronic_risk.services.normalization import normalize_patient

AS_OF = date(2025, 1, 15)

RecordFactory = Callable[..., PatientRecord]
PatientFactory = Callable[..., NormalizedPatient]


def _record(
    age: int | None = 55,
    sex: str | None = "male",
    race: str | None = None,
    clinical: dict[str, Any] | None = None,
    lifestyle: dict[str, Any] | None = None,
    family_history: dict[str, Any] | None = None,
    patient_id: str = "test-patient",
) -> PatientRecord:
    return PatientRecord.model_validate(
        {
            "patient_id": patient_id,
            "demographics": {"age": age, "sex": sex, "race": race},
            "clinical": clinical or {},
            "lifestyle": lifestyle or {},
            "family_history": family_history or {},
        }
    )


@pytest.fixture(scope="session")
def as_of() -> date:
    return AS_OF


@pytest.fixture(scope="session")
def make_record() -> RecordFactory:
    """Factory for PatientRecord built from plain dicts."""
    return _record


@pytest.fixture(scope="session")
def make_patient() -> PatientFactory:
    """Factory for NormalizedPatient (record passed through normalize_patient)."""

    def _make(**kwargs: Any) -> NormalizedPatient:
        return normalize_patient(_record(**kwargs), AS_OF)

    return _make


@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration, independent of the process environment."""
    return AppConfig()
