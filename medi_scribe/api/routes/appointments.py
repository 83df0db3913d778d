"""Agenda routes."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.api.dependencies import get_current_user
from medi_scribe.api.routes.patients import get_owned_patient
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Appointment, Doctor
from medi_scribe.core.repository import AppointmentRepository
from medi_scribe.core.schemas import AppointmentCreate, AppointmentRead, AppointmentUpdate

router = APIRouter(prefix="/appointments", tags=["appointments"])


async def get_owned_appointment(
    appointment_id: uuid.UUID,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Appointment:
    appointment = await AppointmentRepository(db).get_by_id(appointment_id)
    if not appointment or (
        appointment.doctor_id is not None and appointment.doctor_id != current_user.id
    ):
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.get("", response_model=list[AppointmentRead])
async def list_appointments(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AppointmentRepository(db).list(doctor_id=current_user.id, start=start, end=end)


@router.post("", response_model=AppointmentRead, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if data.patient_id is not None:
        await get_owned_patient(data.patient_id, current_user, db)
    return await AppointmentRepository(db).create(doctor_id=current_user.id, **data.model_dump())


@router.put("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
    data: AppointmentUpdate,
    appointment: Appointment = Depends(get_owned_appointment),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if data.patient_id is not None:
        await get_owned_patient(data.patient_id, current_user, db)
    return await AppointmentRepository(db).update(
        appointment.id, **data.model_dump(exclude_unset=True)
    )


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment: Appointment = Depends(get_owned_appointment),
    db: AsyncSession = Depends(get_db),
) -> None:
    await AppointmentRepository(db).delete(appointment.id)
