"""Practice analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.analytics import (
    DiagnosisTrend,
    InactivePatient,
    diagnosis_trends,
    find_inactive_patients,
)
from medi_scribe.api.dependencies import get_current_user
from medi_scribe.core.database import get_db
from medi_scribe.core.models import Doctor
from medi_scribe.core.repository import ConsultationRepository, PatientRepository

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/inactive-patients", response_model=list[InactivePatient])
async def inactive_patients(
    months: int = Query(6, ge=1, le=60),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    patients = await PatientRepository(db).list(doctor_id=current_user.id, limit=10_000)
    last_visits = await ConsultationRepository(db).last_visit_dates(doctor_id=current_user.id)
    return find_inactive_patients(patients, last_visits, months_threshold=months)


@router.get("/trends", response_model=list[DiagnosisTrend])
async def trends(
    limit: int = Query(4, ge=1, le=20),
    current_user: Doctor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    summaries = await ConsultationRepository(db).recent_summaries(
        doctor_id=current_user.id, limit=50
    )
    return diagnosis_trends(summaries, limit=limit)
