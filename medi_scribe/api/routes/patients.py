"""Patient CRUD API routes."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Doctor, Patient
from medi_scribe.core.repository import (
    AuditRepository,
    ConsultationRepository,
    PatientRepository,
)
from medi_scribe.core.schemas import (
    ConsultationCreate,
    ConsultationRead,
    PatientCreate,
    PatientRead,
    PatientUpdate,
)

router = APIRouter(prefix="/patients", tags=["patients"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def get_owned_patient_record(
    patient_id: uuid.UUID,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Patient:
    """Load a patient that belongs to the current doctor, active or not."""
    patient = await PatientRepository(db).get_by_id(patient_id)
    if not patient or (patient.doctor_id is not None and patient.doctor_id != current_user.id):
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


async def get_owned_patient(
    patient_id: uuid.UUID,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Patient:
    """Load an active patient that belongs to the current doctor, else 404."""
    patient = await get_owned_patient_record(patient_id, current_user, db)
    if not patient.active:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.get("", response_model=list[PatientRead])
async def list_patients(
    search: Optional[str] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    repo = PatientRepository(db)
    if search:
        return await repo.search_by_name(search, doctor_id=current_user.id, limit=limit)
    return await repo.list(doctor_id=current_user.id, offset=offset, limit=limit)


@router.get("/{patient_id}", response_model=PatientRead)
async def get_patient(patient: Patient = Depends(get_owned_patient)):
    return patient


@router.post("", response_model=PatientRead, status_code=201)
async def create_patient(
    data: PatientCreate,
    request: Request,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    patient = await PatientRepository(db).create(doctor_id=current_user.id, **data.model_dump())
    await AuditRepository(db).log_action(
        action="create",
        resource_type="patient",
        resource_id=str(patient.id),
        user_id=str(current_user.id),
        ip_address=_client_ip(request),
    )
    return patient


@router.put("/{patient_id}", response_model=PatientRead)
async def update_patient(
    data: PatientUpdate,
    request: Request,
    patient: Patient = Depends(get_owned_patient_record),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # A deactivated record is only reachable to reactivate it
    if not patient.active and data.active is not True:
        raise HTTPException(status_code=404, detail="Patient not found")
    changes = data.model_dump(exclude_unset=True)
    if data.age is not None:
        changes["age"] = data.age
    updated = await PatientRepository(db).update(patient.id, **changes)
    await AuditRepository(db).log_action(
        action="update",
        resource_type="patient",
        resource_id=str(patient.id),
        user_id=str(current_user.id),
        details={"fields": sorted(changes)},
        ip_address=_client_ip(request),
    )
    return updated


@router.delete("/{patient_id}", response_model=PatientRead)
async def deactivate_patient(
    request: Request,
    patient: Patient = Depends(get_owned_patient),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deactivated = await PatientRepository(db).deactivate(patient.id)
    await AuditRepository(db).log_action(
        action="delete",
        resource_type="patient",
        resource_id=str(patient.id),
        user_id=str(current_user.id),
        ip_address=_client_ip(request),
    )
    return deactivated


@router.get("/{patient_id}/consultations", response_model=list[ConsultationRead])
async def list_patient_consultations(
    limit: int = Query(50, ge=1, le=200),
    patient: Patient = Depends(get_owned_patient),
    db: AsyncSession = Depends(get_db),
):
    return await ConsultationRepository(db).list_by_patient(patient.id, limit=limit)


@router.post("/{patient_id}/consultations", response_model=ConsultationRead, status_code=201)
async def create_patient_consultation(
    data: ConsultationCreate,
    request: Request,
    patient: Patient = Depends(get_owned_patient),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
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
        ip_address=_client_ip(request),
    )
    return consultation
