"""Practice analytics."""

from medi_scribe.analytics.practice import (
    DiagnosisTrend,
    InactivePatient,
    diagnosis_trends,
    find_inactive_patients,
)

__all__ = [
    "DiagnosisTrend",
    "InactivePatient",
    "diagnosis_trends",
    "find_inactive_patients",
]
