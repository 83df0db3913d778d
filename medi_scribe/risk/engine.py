"""Dual-model perioperative assessment.

Runs Gupta MICA and the derived RCRI on the same inputs and renders the
plain-text block the doctor pastes into the clinical note.
"""

from __future__ import annotations

from typing import Optional

from medi_scribe.risk.gupta import calculate_mica
from medi_scribe.risk.models import (
    DualRiskAssessment,
    RCRIResult,
    RiskCalculatorInputs,
)
from medi_scribe.risk.rcri import estimate_rcri

_RULE = "-" * 44

_FUNCTIONAL_LABELS = {
    "independent": "Independiente",
    "partially": "Parcialmente dependiente",
    "totally": "Totalmente dependiente",
}


def assess_perioperative_risk(
    inputs: RiskCalculatorInputs,
    is_high_risk_surgery: Optional[bool] = None,
) -> DualRiskAssessment:
    """Compute both perioperative models from one set of inputs."""
    return DualRiskAssessment(
        mica=calculate_mica(inputs),
        rcri=estimate_rcri(inputs, is_high_risk_surgery),
    )


def format_assessment_note(
    assessment: DualRiskAssessment,
    inputs: Optional[RiskCalculatorInputs] = None,
) -> str:
    """Render the dual assessment as a note block.

    The parameters section shows ``inputs``, or the inputs the MICA result was
    computed from when none are given.
    """
    mica = assessment.mica
    rcri = assessment.rcri
    inputs = inputs or mica.inputs_snapshot

    lines = [
        "EVALUACIÓN DE RIESGO QUIRÚRGICO (Dual Model)",
        _RULE,
        "1. MODELO GUPTA MICA (Cardíaco Perioperatorio):",
        f"   - Riesgo: {mica.risk_percentage}% ({mica.risk_level.value})",
        "",
        "2. MODELO RCRI (Índice de Lee):",
        f"   - Puntuación: {rcri.points} puntos",
        f"   - Riesgo Estimado: {rcri.estimated_risk}",
        "",
        "3. PARÁMETROS DEL PACIENTE:",
        f"   - Edad: {inputs.age} años | ASA: {inputs.asa_class}",
        f"   - Estado Funcional: {_FUNCTIONAL_LABELS[inputs.functional_status.value]}",
        f"   - Creatinina >1.5: {'Sí' if inputs.creatinine_gt_15 else 'No'}",
        f"   - Procedimiento: {inputs.procedure_label}",
        _RULE,
    ]
    return "\n".join(lines)


def rcri_summary(result: RCRIResult) -> str:
    """One-line verdict used as the consultation summary."""
    return (
        f"Valoración Riesgo Qx: {result.risk_class} ({result.points} pts) "
        f"- Riesgo {result.estimated_risk} ({result.risk_label})"
    )


def format_rcri_note(result: RCRIResult, patient_name: str = "Paciente") -> str:
    """Render a full RCRI result as the history entry body."""
    present = result.factors.present() if result.factors else []
    factor_text = ", ".join(present) if present else "Ninguno (Paciente Sano)"
    return (
        "[CALCULADORA RIESGO RCRI]\n"
        f"Pac: {patient_name}\n\n"
        f"Resultado: {result.risk_class}\n"
        f"Puntos: {result.points}\n"
        f"Probabilidad Complicaciones Cardíacas: {result.estimated_risk} ({result.risk_label})\n\n"
        f"Factores de Riesgo Presentes:\n{factor_text}"
    )
