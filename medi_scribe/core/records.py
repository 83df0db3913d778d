"""Persist calculator results into the patient's consultation history."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.core.models import Consultation, ConsultationStatus, Patient
from medi_scribe.core.repository import ConsultationRepository
from medi_scribe.risk import (
    DualRiskAssessment,
    RCRIFactors,
    RiskCalculatorInputs,
    assess_perioperative_risk,
    calculate_rcri,
    format_assessment_note,
    format_rcri_note,
    rcri_summary,
)

logger = logging.getLogger(__name__)

SURGICAL_RISK_TYPE = "surgical_risk"


async def save_rcri_assessment(
    session: AsyncSession,
    patient: Patient,
    factors: RCRIFactors,
    doctor_id: Optional[uuid.UUID] = None,
) -> Consultation:
    """Score the full Lee index and store it as a completed consultation."""
    result = calculate_rcri(factors)
    consultation = await ConsultationRepository(session).create(
        patient_id=patient.id,
        doctor_id=doctor_id,
        summary=rcri_summary(result),
        transcript=format_rcri_note(result, patient.name),
        status=ConsultationStatus.completed.value,
        ai_analysis_data={
            "type": SURGICAL_RISK_TYPE,
            "model": "rcri",
            "factors": factors.model_dump(),
            "result": result.model_dump(mode="json", exclude={"factors"}),
        },
    )
    logger.info(f"Saved RCRI {result.risk_class} for patient {patient.id}")
    return consultation


async def save_dual_assessment(
    session: AsyncSession,
    patient: Patient,
    inputs: RiskCalculatorInputs,
    doctor_id: Optional[uuid.UUID] = None,
    is_high_risk_surgery: Optional[bool] = None,
) -> tuple[Consultation, DualRiskAssessment]:
    """Run Gupta MICA plus the estimated RCRI and store both."""
    assessment = assess_perioperative_risk(inputs, is_high_risk_surgery)
    summary = (
        f"{rcri_summary(assessment.rcri)} | Gupta MICA "
        f"{assessment.mica.risk_percentage}% ({assessment.mica.risk_level.value})"
    )
    consultation = await ConsultationRepository(session).create(
        patient_id=patient.id,
        doctor_id=doctor_id,
        summary=summary,
        transcript=format_assessment_note(assessment, inputs),
        status=ConsultationStatus.completed.value,
        ai_analysis_data={
            "type": SURGICAL_RISK_TYPE,
            "model": "dual",
            "factors": inputs.model_dump(mode="json"),
            "result": assessment.model_dump(mode="json"),
        },
    )
    logger.info(
        f"Saved dual risk assessment for patient {patient.id}: "
        f"MICA {assessment.mica.risk_percentage}%"
    )
    return consultation, assessment
