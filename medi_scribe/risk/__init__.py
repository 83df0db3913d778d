"""Perioperative risk engine: Gupta MICA, RCRI and bedside calculators."""

from medi_scribe.risk.calculators import (
    CalculatorResult,
    calculate_bmi,
    calculate_egfr,
    calculate_pediatric_dose,
)
from medi_scribe.risk.engine import (
    assess_perioperative_risk,
    format_assessment_note,
    format_rcri_note,
    rcri_summary,
)
from medi_scribe.risk.gupta import calculate_mica
from medi_scribe.risk.models import (
    PROCEDURE_LABELS,
    DualRiskAssessment,
    FunctionalStatus,
    ProcedureCategory,
    RCRIFactors,
    RCRIResult,
    RiskAssessmentResult,
    RiskCalculatorInputs,
    RiskLevel,
)
from medi_scribe.risk.rcri import calculate_rcri, estimate_rcri, is_high_risk_procedure

__all__ = [
    "CalculatorResult",
    "DualRiskAssessment",
    "FunctionalStatus",
    "PROCEDURE_LABELS",
    "ProcedureCategory",
    "RCRIFactors",
    "RCRIResult",
    "RiskAssessmentResult",
    "RiskCalculatorInputs",
    "RiskLevel",
    "assess_perioperative_risk",
    "calculate_bmi",
    "calculate_egfr",
    "calculate_mica",
    "calculate_pediatric_dose",
    "calculate_rcri",
    "estimate_rcri",
    "format_assessment_note",
    "format_rcri_note",
    "is_high_risk_procedure",
    "rcri_summary",
]
