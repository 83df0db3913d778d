"""Pydantic schemas for patient record API I/O."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from medi_scribe.core.models import ConsultationStatus


def age_from_dob(dob: date, today: Optional[date] = None) -> int:
    """Whole years between ``dob`` and ``today``."""
    today = today or date.today()
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def _require_text(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be blank")
    return value


def _reject_explicit_nulls(model: BaseModel, fields: tuple[str, ...]) -> None:
    """Partial updates may omit these columns but never set them to null."""
    nulled = sorted(f for f in fields if f in model.model_fields_set and getattr(model, f) is None)
    if nulled:
        raise ValueError(f"{', '.join(nulled)} cannot be null")


# --- Patient ---

class PatientCreate(BaseModel):
    # Identity
    name: str
    dob: Optional[date] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: str
    curp: Optional[str] = Field(default=None, max_length=18)
    marital_status: Optional[str] = None

    # Contact
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    occupation: Optional[str] = None
    emergency_contact: Optional[str] = None

    # Allergies ("Negadas" when the patient reports none)
    allergies: str
    non_critical_allergies: Optional[str] = None

    # History
    background: Optional[str] = None
    notes: Optional[str] = None
    pathological: Optional[dict[str, Any]] = None
    non_pathological: Optional[dict[str, Any]] = None
    family: Optional[dict[str, Any]] = None
    obgyn: Optional[dict[str, Any]] = None

    # Billing
    insurance: Optional[str] = None
    rfc: Optional[str] = Field(default=None, max_length=13)
    invoice: bool = False
    patient_type: Optional[str] = None
    referral: Optional[str] = None

    @field_validator("name", "gender", "allergies")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        return _require_text(v, info.field_name)

    @field_validator("curp", "rfc")
    @classmethod
    def upper_ids(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    @model_validator(mode="after")
    def derive_age(self) -> "PatientCreate":
        if self.age is None and self.dob is not None:
            self.age = age_from_dob(self.dob)
        return self


class PatientUpdate(BaseModel):
    name: Optional[str] = None
    dob: Optional[date] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None
    curp: Optional[str] = Field(default=None, max_length=18)
    marital_status: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    occupation: Optional[str] = None
    emergency_contact: Optional[str] = None
    allergies: Optional[str] = None
    non_critical_allergies: Optional[str] = None
    background: Optional[str] = None
    notes: Optional[str] = None
    pathological: Optional[dict[str, Any]] = None
    non_pathological: Optional[dict[str, Any]] = None
    family: Optional[dict[str, Any]] = None
    obgyn: Optional[dict[str, Any]] = None
    insurance: Optional[str] = None
    rfc: Optional[str] = Field(default=None, max_length=13)
    invoice: Optional[bool] = None
    patient_type: Optional[str] = None
    referral: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name", "gender", "allergies")
    @classmethod
    def not_blank(cls, v: Optional[str], info) -> Optional[str]:
        return _require_text(v, info.field_name)

    @field_validator("curp", "rfc")
    @classmethod
    def upper_ids(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    @model_validator(mode="after")
    def required_not_null(self) -> "PatientUpdate":
        _reject_explicit_nulls(self, ("name", "gender", "allergies", "invoice", "active"))
        return self

    @model_validator(mode="after")
    def derive_age(self) -> "PatientUpdate":
        if self.age is None and self.dob is not None:
            self.age = age_from_dob(self.dob)
        return self


class PatientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    doctor_id: Optional[uuid.UUID] = None
    name: str
    dob: Optional[date] = None
    age: Optional[int] = None
    gender: str
    curp: Optional[str] = None
    marital_status: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    occupation: Optional[str] = None
    emergency_contact: Optional[str] = None
    allergies: str
    non_critical_allergies: Optional[str] = None
    background: Optional[str] = None
    notes: Optional[str] = None
    pathological: Optional[dict[str, Any]] = None
    non_pathological: Optional[dict[str, Any]] = None
    family: Optional[dict[str, Any]] = None
    obgyn: Optional[dict[str, Any]] = None
    insurance: Optional[str] = None
    rfc: Optional[str] = None
    invoice: bool = False
    patient_type: Optional[str] = None
    referral: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime


# --- Consultation ---

class ConsultationCreate(BaseModel):
    # Taken from the URL on /patients/{id}/consultations
    patient_id: Optional[uuid.UUID] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    status: ConsultationStatus = ConsultationStatus.pending
    ai_analysis_data: Optional[dict[str, Any]] = None


class ConsultationStatusUpdate(BaseModel):
    status: ConsultationStatus


class ConsultationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: Optional[uuid.UUID] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    status: str
    ai_analysis_data: Optional[dict[str, Any]] = None
    created_at: datetime


# --- Appointment ---

class AppointmentCreate(BaseModel):
    patient_id: Optional[uuid.UUID] = None
    title: str = "Consulta General"
    start_time: datetime
    duration_minutes: int = Field(default=30, gt=0, le=480)
    notes: Optional[str] = None
    status: str = "scheduled"


class AppointmentUpdate(BaseModel):
    patient_id: Optional[uuid.UUID] = None
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=480)
    notes: Optional[str] = None
    status: Optional[str] = None

    @model_validator(mode="after")
    def required_not_null(self) -> "AppointmentUpdate":
        _reject_explicit_nulls(self, ("title", "start_time", "duration_minutes", "status"))
        return self


class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    patient_id: Optional[uuid.UUID] = None
    doctor_id: Optional[uuid.UUID] = None
    title: str
    start_time: datetime
    duration_minutes: int
    notes: Optional[str] = None
    status: str
    created_at: datetime
