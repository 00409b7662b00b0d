"""
Tests for the Formula Library.

Covers published reference values, branch edge cases, and property-based
checks that every calculator is total over valid patients.
"""

from datetime import date

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from chronic_risk.config import FormulaSettings
from chronic_risk.domain.models import (
    ExclusionKind,
    FormulaId,
    FormulaResult,
    NotApplicable,
    PatientRecord,
    Race,
    Sex,
    SmokingStatus,
)
from chronic_risk.formulas import (
    calculate_ada,
    calculate_ascvd,
    calculate_framingham,
    calculate_gail,
    not_implemented,
)
from chronic_risk.formulas.ascvd import AFRICAN_AMERICAN_MALE, pooled_cohort_risk, select_equation
from chronic_risk.formulas.framingham import points_to_risk
from chronic_risk.services.normalization import normalize_patient
from chronic_risk.services.registry import DEFAULT_FORMULAS

AS_OF = date(2025, 1, 15)

SETTINGS = FormulaSettings()


def _scored(outcome: FormulaResult | NotApplicable) -> FormulaResult:
    assert isinstance(outcome, FormulaResult), outcome
    return outcome


class TestFramingham:
    def test_male_smoker_with_elevated_lipids_and_pressure_is_high(self, make_patient) -> None:
        patient = make_patient(
            age=55,
            sex="male",
            clinical={
                "cholesterol": {"total": 240, "hdl": 40},
                "blood_pressure": {"systolic": 150},
            },
            lifestyle={"smoking": "current"},
        )

        result = _scored(calculate_framingham(patient, SETTINGS))

        assert result.points == 12  # age 6, chol 2, HDL 1, SBP 1, smoking 2
        assert result.score == 37.0
        assert result.category == "high"

    def test_young_woman_with_defaults_is_low(self, make_patient) -> None:
        result = _scored(calculate_framingham(make_patient(age=30, sex="female"), SETTINGS))

        assert result.points == 1  # default cholesterol 200 scores one point
        assert result.score == 2.0
        assert result.category == "low"

    def test_points_are_clamped_to_table_range(self, make_patient) -> None:
        patient = make_patient(
            age=72,
            sex="female",
            clinical={
                "cholesterol": {"total": 300, "hdl": 30},
                "blood_pressure": {"systolic": 170},
                "diabetes": True,
            },
            lifestyle={"smoking": "current"},
        )

        result = _scored(calculate_framingham(patient, SETTINGS))

        assert result.points == 23
        assert result.score == 20.0
        assert points_to_risk(-5, Sex.MALE) == 2.0

    def test_high_hdl_subtracts_a_point(self, make_patient) -> None:
        patient = make_patient(
            age=30,
            sex="male",
            clinical={"cholesterol": {"total": 150, "hdl": 65}, "blood_pressure": {"systolic": 110}},
        )

        result = _scored(calculate_framingham(patient, SETTINGS))

        assert result.points == -1
        assert result.score == 2.0

    def test_missing_sex_is_insufficient_data(self, make_patient) -> None:
        outcome = calculate_framingham(make_patient(sex=None), SETTINGS)

        assert isinstance(outcome, NotApplicable)
        assert outcome.kind is ExclusionKind.INSUFFICIENT_DATA

    @given(
        sex=st.sampled_from(list(Sex)),
        ages=st.tuples(st.integers(20, 100), st.integers(20, 100)).map(sorted),
    )
    def test_risk_never_decreases_with_age(self, make_patient, sex: Sex, ages: list[int]) -> None:
        younger = _scored(calculate_framingham(make_patient(age=ages[0], sex=sex.value), SETTINGS))
        older = _scored(calculate_framingham(make_patient(age=ages[1], sex=sex.value), SETTINGS))
        assert younger.score <= older.score

    @given(
        sex=st.sampled_from(list(Sex)),
        cholesterol=st.tuples(st.floats(100, 400), st.floats(100, 400)).map(sorted),
        systolic=st.tuples(st.floats(90, 220), st.floats(90, 220)).map(sorted),
    )
    def test_risk_never_decreases_with_cholesterol_or_pressure(
        self, make_patient, sex: Sex, cholesterol: list[float], systolic: list[float]
    ) -> None:
        def score(total: float, sbp: float) -> float:
            patient = make_patient(
                age=50,
                sex=sex.value,
                clinical={"cholesterol": {"total": total}, "blood_pressure": {"systolic": sbp}},
            )
            return _scored(calculate_framingham(patient, SETTINGS)).score

        assert score(cholesterol[0], systolic[0]) <= score(cholesterol[1], systolic[0])
        assert score(cholesterol[0], systolic[0]) <= score(cholesterol[0], systolic[1])


class TestASCVD:
    # Reference patient from the 2013 ACC/AHA risk guideline: age 55, TC 213,
    # HDL 50, untreated SBP 120, non-smoker, no diabetes.
    @pytest.mark.parametrize(
        ("sex", "race", "expected"),
        [
            ("female", "white", 2.1),
            ("female", "african_american", 3.0),
            ("male", "white", 5.3),
            ("male", "african_american", 6.1),
        ],
    )
    def test_reference_patient_matches_published_values(
        self, make_patient, sex: str, race: str, expected: float
    ) -> None:
        patient = make_patient(
            age=55,
            sex=sex,
            race=race,
            clinical={"cholesterol": {"total": 213, "hdl": 50}, "blood_pressure": {"systolic": 120}},
        )

        result = _scored(calculate_ascvd(patient, SETTINGS))

        assert result.score == pytest.approx(expected, abs=0.15)
        assert result.category in {"low", "borderline"}

    def test_black_alias_selects_african_american_equation(self, make_patient) -> None:
        patient = make_patient(race="Black", sex="male")
        assert patient.race is Race.AFRICAN_AMERICAN
        assert select_equation(Sex.MALE, patient.race) is AFRICAN_AMERICAN_MALE

    def test_treatment_flag_follows_threshold(self, make_patient) -> None:
        patient = make_patient(
            age=55,
            sex="male",
            clinical={
                "cholesterol": {"total": 240, "hdl": 40},
                "blood_pressure": {"systolic": 150},
            },
            lifestyle={"smoking": "current"},
        )

        result = _scored(calculate_ascvd(patient, SETTINGS))

        assert result.score == pytest.approx(19.7, abs=0.2)
        assert result.category == "intermediate"
        assert result.treatment_recommended is True

        strict = FormulaSettings(ascvd_treatment_threshold=25.0)
        assert _scored(calculate_ascvd(patient, strict)).treatment_recommended is False

    def test_zero_age_is_insufficient_data(self, make_patient) -> None:
        outcome = calculate_ascvd(make_patient(age=0), SETTINGS)

        assert isinstance(outcome, NotApplicable)
        assert outcome.kind is ExclusionKind.INSUFFICIENT_DATA

    def test_extreme_inputs_are_clamped(self, make_patient) -> None:
        patient = make_patient(
            age=100,
            sex="female",
            race="african_american",
            clinical={
                "cholesterol": {"total": 1000, "hdl": 10},
                "blood_pressure": {"systolic": 300},
                "diabetes": True,
                "medications": ["antihypertensive"],
            },
            lifestyle={"smoking": "current"},
        )

        result = _scored(calculate_ascvd(patient, SETTINGS))

        assert 0.0 <= result.score <= 100.0

    @given(
        age=st.integers(1, 120),
        total=st.floats(20, 2000),
        hdl=st.floats(5, 300),
        systolic=st.floats(50, 400),
        flags=st.tuples(st.booleans(), st.booleans(), st.booleans()),
        sex=st.sampled_from(list(Sex)),
        race=st.sampled_from(list(Race)),
    )
    def test_output_always_within_percent_range(
        self,
        age: int,
        total: float,
        hdl: float,
        systolic: float,
        flags: tuple[bool, bool, bool],
        sex: Sex,
        race: Race,
    ) -> None:
        treated, diabetes, smoker = flags
        risk = pooled_cohort_risk(
            select_equation(sex, race), age, total, hdl, systolic, treated, diabetes, smoker
        )
        assert 0.0 <= risk <= 100.0


class TestADA:
    def test_many_risk_factors_score_high(self, make_patient) -> None:
        patient = make_patient(
            age=50,
            sex="male",
            race="hispanic",
            clinical={"bmi": 31, "blood_pressure": {"systolic": 150}},
            lifestyle={"physically_active": False},
            family_history={"diabetes": {"parent": True, "sibling": True}},
        )

        result = _scored(calculate_ada(patient, SETTINGS))

        assert result.points == 11
        assert result.score == 25.0
        assert result.category == "high"
        assert "intensive lifestyle" in (result.recommendation or "")

    def test_defaults_count_inactivity(self, make_patient) -> None:
        result = _scored(calculate_ada(make_patient(age=30, sex="female"), SETTINGS))

        assert result.points == 2  # age bracket + inactivity default
        assert result.score == 5.0
        assert result.category == "low"

    def test_moderate_band(self, make_patient) -> None:
        patient = make_patient(age=45, sex="male", race="white", lifestyle={"physically_active": True})

        result = _scored(calculate_ada(patient, SETTINGS))

        assert result.points == 3
        assert result.score == 15.0
        assert result.category == "moderate"

    def test_gestational_diabetes_only_counts_for_women(self, make_patient) -> None:
        reproductive = {"reproductive": {"gestational_diabetes": True}, "bmi": 24}
        active = {"physically_active": True}

        man = make_patient(age=20, sex="male", clinical=reproductive, lifestyle=active)
        woman = make_patient(age=40, sex="female", clinical=reproductive, lifestyle=active)

        assert _scored(calculate_ada(man, SETTINGS)).points == 1
        assert _scored(calculate_ada(woman, SETTINGS)).points == 2

    def test_antihypertensive_medication_counts_as_high_blood_pressure(self, make_patient) -> None:
        base = {"physically_active": True}
        untreated = make_patient(age=20, sex="female", lifestyle=base)
        treated = make_patient(
            age=20, sex="female", lifestyle=base, clinical={"medications": ["antihypertensive"]}
        )

        assert _scored(calculate_ada(untreated, SETTINGS)).points == 0
        assert _scored(calculate_ada(treated, SETTINGS)).points == 1

    def test_missing_age_is_insufficient_data(self, make_patient) -> None:
        outcome = calculate_ada(make_patient(age=None), SETTINGS)

        assert isinstance(outcome, NotApplicable)
        assert outcome.kind is ExclusionKind.INSUFFICIENT_DATA


class TestGail:
    def test_not_applicable_for_men(self, make_patient) -> None:
        outcome = calculate_gail(make_patient(age=50, sex="male"), SETTINGS)

        assert isinstance(outcome, NotApplicable)
        assert outcome.kind is ExclusionKind.NOT_APPLICABLE
        assert "only to women" in outcome.reason

    def test_not_applicable_under_35(self, make_patient) -> None:
        outcome = calculate_gail(make_patient(age=30, sex="female"), SETTINGS)

        assert isinstance(outcome, NotApplicable)
        assert outcome.kind is ExclusionKind.NOT_APPLICABLE
        assert "35" in outcome.reason

    def test_baseline_woman_gets_baseline_incidence(self, make_patient) -> None:
        result = _scored(calculate_gail(make_patient(age=50, sex="female"), SETTINGS))

        assert result.relative_risk == pytest.approx(1.0)
        assert result.score == pytest.approx(1.2)
        assert result.lifetime_risk == pytest.approx(12.4)
        assert result.category == "average"
        assert result.treatment_recommended is False
        assert result.recommendation == "Standard screening"

    def test_all_risk_factors_multiply(self, make_patient) -> None:
        patient = make_patient(
            age=50,
            sex="female",
            race="white",
            clinical={
                "reproductive": {
                    "age_at_menarche": 11,
                    "nulliparous": True,
                    "breast_biopsies": 2,
                    "atypical_hyperplasia": True,
                }
            },
            family_history={"breast_cancer": {"first_degree_count": 2}},
        )

        result = _scored(calculate_gail(patient, SETTINGS))

        expected_rr = 1.21 * 1.24 * 1.27 * 1.82 * 2.58
        assert result.relative_risk == pytest.approx(expected_rr)
        assert result.score == pytest.approx(expected_rr * 1.2)
        assert result.lifetime_risk == 100.0
        assert result.category == "high"
        assert result.recommendation == "Consider chemoprevention"

    def test_race_adjusts_relative_risk_and_baseline(self, make_patient) -> None:
        patient = make_patient(
            age=45,
            sex="female",
            race="hispanic",
            family_history={"breast_cancer": {"parent": True}},
        )

        result = _scored(calculate_gail(patient, SETTINGS))

        assert result.relative_risk == pytest.approx(1.80 * 0.73)
        assert result.score == pytest.approx(1.80 * 0.73 * 0.9)

    def test_early_first_birth_lowers_risk(self, make_patient) -> None:
        patient = make_patient(
            age=40, sex="female", clinical={"reproductive": {"age_at_first_birth": 19}}
        )

        result = _scored(calculate_gail(patient, SETTINGS))

        assert result.relative_risk == pytest.approx(0.93)
        assert result.category == "average"

    def test_chemoprevention_threshold_is_configurable(self, make_patient) -> None:
        lenient = FormulaSettings(chemoprevention_threshold=0.01)

        result = _scored(calculate_gail(make_patient(age=50, sex="female"), lenient))

        assert result.treatment_recommended is True


def test_placeholder_reports_not_implemented(make_patient) -> None:
    calculate = not_implemented(FormulaId.QRISK3)

    outcome = calculate(make_patient(), SETTINGS)

    assert isinstance(outcome, NotApplicable)
    assert outcome.kind is ExclusionKind.NOT_IMPLEMENTED
    assert outcome.formula is FormulaId.QRISK3
    assert "QRISK3" in outcome.reason


@settings(max_examples=60)
@given(
    age=st.one_of(st.none(), st.integers(0, 110)),
    sex=st.one_of(st.none(), st.sampled_from(["male", "female"])),
    race=st.one_of(st.none(), st.sampled_from([r.value for r in Race])),
    total=st.one_of(st.none(), st.floats(50, 1000)),
    hdl=st.one_of(st.none(), st.floats(10, 200)),
    systolic=st.one_of(st.none(), st.floats(60, 300)),
    bmi=st.one_of(st.none(), st.floats(12, 70)),
    smoking=st.one_of(st.none(), st.sampled_from(list(SmokingStatus))),
    diabetes=st.one_of(st.none(), st.booleans()),
    relatives=st.one_of(st.none(), st.integers(0, 6)),
)
def test_every_formula_scores_in_range_or_reports_not_applicable(
    age, sex, race, total, hdl, systolic, bmi, smoking, diabetes, relatives
) -> None:
    record = PatientRecord.model_validate(
        {
            "demographics": {"age": age, "sex": sex, "race": race},
            "clinical": {
                "cholesterol": {"total": total, "hdl": hdl},
                "blood_pressure": {"systolic": systolic},
                "bmi": bmi,
                "diabetes": diabetes,
            },
            "lifestyle": {"smoking": smoking},
            "family_history": {"breast_cancer": {"first_degree_count": relatives}},
        }
    )
    patient = normalize_patient(record, AS_OF)

    for specs in DEFAULT_FORMULAS.values():
        for spec in specs:
            outcome = spec.compute(patient, SETTINGS)
            if isinstance(outcome, NotApplicable):
                assert outcome.formula is spec.formula
                assert outcome.reason
            else:
                low, high = spec.score_range
                assert low <= outcome.score <= high
