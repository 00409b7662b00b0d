"""
Formula Library: published clinical risk calculators.

Every calculator is a pure function of (NormalizedPatient, FormulaSettings)
returning a FormulaResult, or a NotApplicable when the model does not cover
the patient.
"""

from .ada import calculate_ada
from .ascvd import calculate_ascvd
from .framingham import calculate_framingham
from .gail import calculate_gail
from .placeholders import not_implemented

__all__ = [
    "calculate_ada",
    "calculate_ascvd",
    "calculate_framingham",
    "calculate_gail",
    "not_implemented",
]
