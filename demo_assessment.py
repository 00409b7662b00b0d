"""
End-to-end demonstration of the risk assessment pipeline.

This script runs:
1. Configuration loading and logging setup
2. A multi-condition assessment for a few sample patients
3. An unsupported condition request next to valid ones

Run with: python demo_assessment.py
"""

import asyncio
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from chronic_risk.config import get_config
from chronic_risk.domain.models import PatientRecord, RiskProfile
from chronic_risk.log import configure_logging
from chronic_risk.services.assessment import RiskAssessmentEngine

console = Console()

AS_OF = date(2025, 1, 15)

SAMPLE_PATIENTS: dict[str, PatientRecord] = {
    "smoker_with_hypertension": PatientRecord.model_validate(
        {
            "patient_id": "demo-001",
            "demographics": {"date_of_birth": "1969-06-01", "sex": "male", "race": "white"},
            "clinical": {
                "cholesterol": {"total": 240, "hdl": 40},
                "blood_pressure": {"systolic": 150, "diastolic": 92},
                "height_cm": 178,
                "weight_kg": 96,
            },
            "lifestyle": {"smoking": "current", "physically_active": False},
            "family_history": {"diabetes": {"parent": True}},
        }
    ),
    "active_woman_with_family_history": PatientRecord.model_validate(
        {
            "patient_id": "demo-002",
            "demographics": {"date_of_birth": "1972-03-10", "sex": "female", "race": "hispanic"},
            "clinical": {
                "cholesterol": {"total": 190, "hdl": 62},
                "blood_pressure": {"systolic": 118, "diastolic": 76},
                "bmi": 23.4,
                "reproductive": {
                    "age_at_menarche": 11,
                    "age_at_first_birth": 32,
                    "breast_biopsies": 1,
                },
            },
            "lifestyle": {"smoking": "never", "physically_active": True},
            "family_history": {"breast_cancer": {"first_degree_count": 1}},
        }
    ),
    "young_woman_no_clinical_data": PatientRecord.model_validate(
        {
            "patient_id": "demo-003",
            "demographics": {"age": 30, "sex": "female"},
        }
    ),
}


def render_profile(name: str, profile: RiskProfile) -> None:
    table = Table(title=f"{name} ({profile.patient_id})")
    table.add_column("Condition", style="cyan")
    table.add_column("Score %", style="green")
    table.add_column("Confidence", style="yellow")
    table.add_column("Band", style="magenta")
    table.add_column("Urgency", style="red")
    table.add_column("Short-term actions")

    for condition, assessment in profile.assessments.items():
        score = (
            f"{assessment.combined_score:.1f}" if assessment.combined_score is not None else "n/a"
        )
        table.add_row(
            condition.value,
            score,
            f"{assessment.confidence:.0%}",
            assessment.band.value,
            f"{assessment.urgency.urgency.value} ({assessment.urgency.timeframe})",
            ", ".join(assessment.recommendations.short_term) or "-",
        )

    console.print(table)

    overall = profile.overall
    overall_score = f"{overall.score:.1f}%" if overall.score is not None else "n/a"
    console.print(f"Overall: {overall.band.value} (mean {overall_score})")
    if profile.priority_conditions:
        ranking = ", ".join(f"{p.condition.value} {p.score:.1f}%" for p in profile.priority_conditions)
        console.print(f"Priorities: {ranking}")
    if profile.population_comparison:
        comparison = profile.population_comparison
        console.print(f"Population: {comparison.age_group}, {comparison.percentile_ranking}")
    for error in profile.errors:
        console.print(f"Skipped {error.condition}: {error.message}", style="yellow")


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)
    engine = RiskAssessmentEngine(config)

    console.print(Panel("Chronic disease risk assessment", style="blue"))

    for name, record in SAMPLE_PATIENTS.items():
        profile = await engine.assess(
            record, ["cardiovascular", "diabetes", "cancer"], as_of=AS_OF
        )
        render_profile(name, profile)

    console.print(Panel("Unsupported condition alongside a valid one", style="blue"))
    profile = await engine.assess(
        SAMPLE_PATIENTS["smoker_with_hypertension"], ["flu", "cardiovascular"], as_of=AS_OF
    )
    render_profile("mixed request", profile)


if __name__ == "__main__":
    asyncio.run(main())
