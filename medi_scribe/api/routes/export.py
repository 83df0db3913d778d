"""Export endpoints: PDF generation for notes, prescriptions and risk reports."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.api.routes.consultations import get_owned_consultation
from medi_scribe.api.routes.risk import DualAssessmentRequest
from medi_scribe.config import get_settings
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Consultation, Doctor
from medi_scribe.core.repository import PatientRepository
from medi_scribe.export.pdf_generator import (
    generate_consultation_pdf,
    generate_prescription_pdf,
    generate_risk_report_pdf,
)
from medi_scribe.risk import assess_perioperative_risk
from medi_scribe.scribe import MedicationItem, SOAPSection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


class ConsultationExportRequest(BaseModel):
    patient_name: str
    consultation_date: date = Field(default_factory=date.today)
    soap: SOAPSection = Field(default_factory=SOAPSection)
    clinical_note: Optional[str] = None
    patient_instructions: Optional[str] = None
    prescriptions: list[MedicationItem] = Field(default_factory=list)


class PrescriptionExportRequest(BaseModel):
    patient_name: str
    rx_date: date = Field(default_factory=date.today)
    medications: list[MedicationItem] = Field(..., min_length=1)


class RiskReportExportRequest(BaseModel):
    patient_name: str
    report_date: date = Field(default_factory=date.today)
    inputs: DualAssessmentRequest


def _safe_filename(raw: str) -> str:
    """Sanitize a string for use in Content-Disposition filename."""
    return re.sub(r'[^a-zA-Z0-9_\-.]', '_', raw)


def _pdf_response(pdf_bytes: bytes, filename: str) -> Response:
    safe = _safe_filename(filename)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{safe}"'},
    )


def _render(render, **kwargs) -> bytes:
    try:
        return render(**kwargs)
    except Exception as e:
        logger.exception("PDF generation failed")
        raise HTTPException(status_code=500, detail=f"PDF generation failed: {e}")


@router.post("/export/consultation/pdf")
async def export_consultation_pdf(
    body: ConsultationExportRequest,
    current_user: Doctor = Depends(get_current_user),
):
    """Generate a PDF from an unsaved note draft."""
    pdf_bytes = _render(
        generate_consultation_pdf,
        patient_name=body.patient_name,
        consultation_date=body.consultation_date.isoformat(),
        soap=body.soap.model_dump(exclude={"headers"}),
        clinical_note=body.clinical_note,
        patient_instructions=body.patient_instructions,
        prescriptions=[m.model_dump() for m in body.prescriptions],
        doctor_name=current_user.full_name,
        specialty=current_user.specialty,
        license_number=current_user.license_number,
        clinic_name=get_settings().clinic_name,
    )
    return _pdf_response(pdf_bytes, f"nota_{body.consultation_date.isoformat()}.pdf")


@router.post("/export/prescription/pdf")
async def export_prescription_pdf(
    body: PrescriptionExportRequest,
    current_user: Doctor = Depends(get_current_user),
):
    pdf_bytes = _render(
        generate_prescription_pdf,
        patient_name=body.patient_name,
        rx_date=body.rx_date.isoformat(),
        medications=[m.model_dump() for m in body.medications],
        doctor_name=current_user.full_name,
        specialty=current_user.specialty,
        license_number=current_user.license_number,
        clinic_name=get_settings().clinic_name,
    )
    return _pdf_response(pdf_bytes, f"receta_{body.rx_date.isoformat()}.pdf")


@router.post("/export/risk/pdf")
async def export_risk_pdf(
    body: RiskReportExportRequest,
    current_user: Doctor = Depends(get_current_user),
):
    assessment = assess_perioperative_risk(
        body.inputs.calculator_inputs(), body.inputs.is_high_risk_surgery
    )
    pdf_bytes = _render(
        generate_risk_report_pdf,
        patient_name=body.patient_name,
        report_date=body.report_date.isoformat(),
        assessment=assessment,
        doctor_name=current_user.full_name,
        clinic_name=get_settings().clinic_name,
    )
    return _pdf_response(pdf_bytes, f"riesgo_qx_{body.report_date.isoformat()}.pdf")


@router.get("/consultations/{consultation_id}/export/pdf")
async def export_saved_consultation_pdf(
    consultation: Consultation = Depends(get_owned_consultation),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate a PDF from a persisted consultation."""
    patient = await PatientRepository(db).get_by_id(consultation.patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    # Drafted notes keep their SOAP sections in ai_analysis_data
    data = consultation.ai_analysis_data or {}
    soap = data.get("soap") or data.get("soapData") or {}
    if not isinstance(soap, dict):
        soap = {}
    note_parts = [part for part in (consultation.summary, consultation.transcript) if part]

    consultation_date = consultation.created_at.date().isoformat()
    pdf_bytes = _render(
        generate_consultation_pdf,
        patient_name=patient.name,
        consultation_date=consultation_date,
        soap={k: v for k, v in soap.items() if isinstance(v, str)},
        clinical_note="\n\n".join(note_parts) or None,
        patient_instructions=data.get("patient_instructions"),
        prescriptions=data.get("prescriptions") or None,
        doctor_name=current_user.full_name,
        specialty=current_user.specialty,
        license_number=current_user.license_number,
        clinic_name=get_settings().clinic_name,
    )
    return _pdf_response(pdf_bytes, f"consulta_{consultation_date}_{consultation.id}.pdf")
