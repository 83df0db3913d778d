"""CRUD repositories for patient record models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from medi_scribe.core.models import (
    Appointment,
    AuditLog,
    Consultation,
    Doctor,
    Patient,
)


class DoctorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Doctor:
        doctor = Doctor(**kwargs)
        self.session.add(doctor)
        await self.session.flush()
        return doctor

    async def get_by_id(self, doctor_id: uuid.UUID) -> Optional[Doctor]:
        return await self.session.get(Doctor, doctor_id)

    async def get_active_by_email(self, email: str) -> Optional[Doctor]:
        result = await self.session.execute(
            select(Doctor).where(Doctor.email == email, Doctor.active.is_(True))
        )
        return result.scalar_one_or_none()


class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Patient:
        patient = Patient(**kwargs)
        self.session.add(patient)
        await self.session.flush()
        return patient

    async def get_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)

    async def list(
        self,
        doctor_id: Optional[uuid.UUID] = None,
        offset: int = 0,
        limit: int = 50,
        active_only: bool = True,
    ) -> Sequence[Patient]:
        """Newest patients first."""
        stmt = select(Patient)
        if doctor_id is not None:
            stmt = stmt.where(Patient.doctor_id == doctor_id)
        if active_only:
            stmt = stmt.where(Patient.active.is_(True))
        stmt = stmt.order_by(Patient.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update(self, patient_id: uuid.UUID, **kwargs) -> Optional[Patient]:
        patient = await self.get_by_id(patient_id)
        if not patient:
            return None
        for k, v in kwargs.items():
            setattr(patient, k, v)
        patient.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return patient

    async def search_by_name(
        self,
        query: str,
        doctor_id: Optional[uuid.UUID] = None,
        limit: int = 20,
    ) -> Sequence[Patient]:
        pattern = f"%{query}%"
        stmt = select(Patient).where(Patient.active.is_(True), Patient.name.ilike(pattern))
        if doctor_id is not None:
            stmt = stmt.where(Patient.doctor_id == doctor_id)
        result = await self.session.execute(stmt.order_by(Patient.name).limit(limit))
        return result.scalars().all()

    async def deactivate(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return await self.update(patient_id, active=False)


class ConsultationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Consultation:
        consultation = Consultation(**kwargs)
        self.session.add(consultation)
        await self.session.flush()
        return consultation

    async def get_by_id(self, consultation_id: uuid.UUID) -> Optional[Consultation]:
        return await self.session.get(Consultation, consultation_id)

    async def list_by_patient(self, patient_id: uuid.UUID, limit: int = 50) -> Sequence[Consultation]:
        stmt = (
            select(Consultation)
            .where(Consultation.patient_id == patient_id)
            .order_by(Consultation.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_recent(
        self, doctor_id: Optional[uuid.UUID] = None, limit: int = 20
    ) -> Sequence[Consultation]:
        stmt = select(Consultation)
        if doctor_id is not None:
            stmt = stmt.where(Consultation.doctor_id == doctor_id)
        stmt = stmt.order_by(Consultation.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update_status(self, consultation_id: uuid.UUID, status: str) -> Optional[Consultation]:
        consultation = await self.get_by_id(consultation_id)
        if consultation:
            consultation.status = status
            await self.session.flush()
        return consultation

    async def last_visit_dates(
        self, doctor_id: Optional[uuid.UUID] = None
    ) -> dict[uuid.UUID, datetime]:
        """Latest consultation timestamp per patient."""
        stmt = select(Consultation.patient_id, func.max(Consultation.created_at)).group_by(
            Consultation.patient_id
        )
        if doctor_id is not None:
            stmt = stmt.where(Consultation.doctor_id == doctor_id)
        result = await self.session.execute(stmt)
        return {patient_id: last for patient_id, last in result.all()}

    async def recent_summaries(
        self, doctor_id: Optional[uuid.UUID] = None, limit: int = 50
    ) -> list[str]:
        stmt = select(Consultation.summary).where(Consultation.summary.is_not(None))
        if doctor_id is not None:
            stmt = stmt.where(Consultation.doctor_id == doctor_id)
        stmt = stmt.order_by(Consultation.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return [summary for summary in result.scalars().all() if summary]


class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Appointment:
        appointment = Appointment(**kwargs)
        self.session.add(appointment)
        await self.session.flush()
        return appointment

    async def get_by_id(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        return await self.session.get(Appointment, appointment_id)

    async def list(
        self,
        doctor_id: Optional[uuid.UUID] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 200,
    ) -> Sequence[Appointment]:
        """Appointments ordered by start time, optionally within [start, end)."""
        stmt = select(Appointment)
        if doctor_id is not None:
            stmt = stmt.where(Appointment.doctor_id == doctor_id)
        if start is not None:
            stmt = stmt.where(Appointment.start_time >= start)
        if end is not None:
            stmt = stmt.where(Appointment.start_time < end)
        stmt = stmt.order_by(Appointment.start_time).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update(self, appointment_id: uuid.UUID, **kwargs) -> Optional[Appointment]:
        appointment = await self.get_by_id(appointment_id)
        if not appointment:
            return None
        for k, v in kwargs.items():
            setattr(appointment, k, v)
        await self.session.flush()
        return appointment

    async def delete(self, appointment_id: uuid.UUID) -> bool:
        appointment = await self.get_by_id(appointment_id)
        if not appointment:
            return False
        await self.session.delete(appointment)
        await self.session.flush()
        return True


class AuditRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_action(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        user_id: Optional[str] = None,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=details,
            ip_address=ip_address,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_resource(self, resource_type: str, resource_id: str, limit: int = 50) -> Sequence[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
            .order_by(AuditLog.timestamp.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
