"""Consultation history routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.api.routes.patients import get_owned_patient
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Consultation, Doctor
from medi_scribe.core.repository import AuditRepository, ConsultationRepository
from medi_scribe.core.schemas import (
    ConsultationCreate,
    ConsultationRead,
    ConsultationStatusUpdate,
)

router = APIRouter(prefix="/consultations", tags=["consultations"])


async def get_owned_consultation(
    consultation_id: uuid.UUID,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Consultation:
    consultation = await ConsultationRepository(db).get_by_id(consultation_id)
    if not consultation or (
        consultation.doctor_id is not None and consultation.doctor_id != current_user.id
    ):
        raise HTTPException(status_code=404, detail="Consultation not found")
    return consultation


@router.get("", response_model=list[ConsultationRead])
async def list_recent_consultations(
    limit: int = Query(20, ge=1, le=200),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ConsultationRepository(db).get_recent(doctor_id=current_user.id, limit=limit)


@router.post("", response_model=ConsultationRead, status_code=201)
async def create_consultation(
    data: ConsultationCreate,
    request: Request,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if data.patient_id is None:
        raise HTTPException(status_code=422, detail="patient_id is required")
    patient = await get_owned_patient(data.patient_id, current_user, db)

    consultation = await ConsultationRepository(db).create(
        doctor_id=current_user.id,
        patient_id=patient.id,
        **data.model_dump(mode="json", exclude={"patient_id"}),
    )
    await AuditRepository(db).log_action(
        action="create",
        resource_type="consultation",
        resource_id=str(consultation.id),
        user_id=str(current_user.id),
        details={"patient_id": str(patient.id)},
        ip_address=request.client.host if request.client else "unknown",
    )
    return consultation


@router.get("/{consultation_id}", response_model=ConsultationRead)
async def get_consultation(consultation: Consultation = Depends(get_owned_consultation)):
    return consultation


@router.patch("/{consultation_id}/status", response_model=ConsultationRead)
async def update_consultation_status(
    data: ConsultationStatusUpdate,
    consultation: Consultation = Depends(get_owned_consultation),
    db: AsyncSession = Depends(get_db),
):
    return await ConsultationRepository(db).update_status(consultation.id, data.status.value)
