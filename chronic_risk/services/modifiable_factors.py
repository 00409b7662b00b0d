"""
Modifiable factor analysis.

Enumerates the risk contributors a patient can change, using the factor
catalogue from GuidelineConfig for targets, impact and intervention labels.
Measurement-based factors only fire on measured (not defaulted) values.
"""

from collections.abc import Callable, Mapping

from chronic_risk.config import FactorTemplate, GuidelineConfig
from chronic_risk.domain.models import Condition, ModifiableFactor, NormalizedPatient

# Returns the "current value" description when the factor is present, else None.
FactorDetector = Callable[[NormalizedPatient, FactorTemplate], str | None]


def _smoking(patient: NormalizedPatient, template: FactorTemplate) -> str | None:
    return "current smoker" if patient.current_smoker else None


def _weight(patient: NormalizedPatient, template: FactorTemplate) -> str | None:
    threshold = template.threshold if template.threshold is not None else 25.0
    if patient.is_defaulted("bmi") or patient.bmi < threshold:
        return None
    return f"BMI {patient.bmi:.1f}"


def _physical_activity(patient: NormalizedPatient, template: FactorTemplate) -> str | None:
    return None if patient.physically_active else "insufficient activity"


def _blood_pressure(patient: NormalizedPatient, template: FactorTemplate) -> str | None:
    systolic_threshold = template.threshold if template.threshold is not None else 130.0
    measured = not (patient.is_defaulted("systolic_bp") and patient.is_defaulted("diastolic_bp"))
    elevated = patient.systolic_bp >= systolic_threshold or patient.diastolic_bp >= 80
    if not (measured and elevated):
        return None
    return f"BP {patient.systolic_bp:.0f}/{patient.diastolic_bp:.0f} mmHg"


def _cholesterol(patient: NormalizedPatient, template: FactorTemplate) -> str | None:
    total_threshold = template.threshold if template.threshold is not None else 240.0
    high_total = (
        not patient.is_defaulted("total_cholesterol")
        and patient.total_cholesterol >= total_threshold
    )
    low_hdl = not patient.is_defaulted("hdl_cholesterol") and patient.hdl_cholesterol < 40
    if not (high_total or low_hdl):
        return None
    return (
        f"total cholesterol {patient.total_cholesterol:.0f} mg/dL, "
        f"HDL {patient.hdl_cholesterol:.0f} mg/dL"
    )


DETECTORS: dict[str, FactorDetector] = {
    "smoking": _smoking,
    "weight": _weight,
    "physical_activity": _physical_activity,
    "blood_pressure": _blood_pressure,
    "cholesterol": _cholesterol,
}


class ModifiableFactorAnalyzer:
    """Classification pass over clinical and lifestyle inputs. No scoring."""

    def __init__(
        self,
        catalogue: Mapping[str, FactorTemplate] | None = None,
        detectors: Mapping[str, FactorDetector] | None = None,
    ) -> None:
        self.catalogue = dict(catalogue or GuidelineConfig().modifiable_factors)
        self.detectors = dict(detectors or DETECTORS)
        unknown = sorted(set(self.catalogue) - set(self.detectors))
        if unknown:
            raise ValueError(f"No detector for catalogue factors: {', '.join(unknown)}")

    def identify(self, condition: Condition, patient: NormalizedPatient) -> list[ModifiableFactor]:
        """Return triggered factors in catalogue order."""
        factors: list[ModifiableFactor] = []
        for name, template in self.catalogue.items():
            if template.conditions is not None and condition not in template.conditions:
                continue
            current = self.detectors[name](patient, template)
            if current is None:
                continue
            factors.append(
                ModifiableFactor(
                    factor=name,
                    current=current,
                    target=template.target,
                    impact=template.impact,
                    intervention=template.intervention,
                )
            )
        return factors
