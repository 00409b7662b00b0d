"""Registered calculators that are not implemented yet."""

from collections.abc import Callable

from chronic_risk.config import FormulaSettings
from chronic_risk.domain.models import (
    ExclusionKind,
    FormulaId,
    FormulaResult,
    NormalizedPatient,
    NotApplicable,
)

DISPLAY_NAMES: dict[FormulaId, str] = {
    FormulaId.QRISK3: "QRISK3",
    FormulaId.HEARTSCORE: "HeartScore (SCORE2)",
    FormulaId.FINDRISK: "FINDRISC",
    FormulaId.ARIC: "ARIC diabetes",
    FormulaId.DRS: "Diabetes Risk Score",
    FormulaId.TYRER_CUZICK: "Tyrer-Cuzick",
    FormulaId.COLORECTAL: "Colorectal cancer",
    FormulaId.LUNG: "Lung cancer",
    FormulaId.PROSTATE: "Prostate cancer",
    FormulaId.MELANOMA: "Melanoma",
    FormulaId.METABOLIC_SYNDROME: "Metabolic syndrome",
    FormulaId.NAFLD: "NAFLD",
    FormulaId.CKD: "Chronic kidney disease",
}


def not_implemented(
    formula: FormulaId,
) -> Callable[[NormalizedPatient, FormulaSettings], FormulaResult | NotApplicable]:
    """Build a calculator that always reports itself as not implemented."""
    reason = f"{DISPLAY_NAMES.get(formula, formula.value)} calculator is not implemented yet"

    def calculate(
        patient: NormalizedPatient, settings: FormulaSettings
    ) -> FormulaResult | NotApplicable:
        return NotApplicable(formula=formula, kind=ExclusionKind.NOT_IMPLEMENTED, reason=reason)

    calculate.__name__ = f"calculate_{formula.value}"
    return calculate
