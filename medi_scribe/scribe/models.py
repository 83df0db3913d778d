"""Structured outputs produced by the clinical scribe."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SOAPHeaders(BaseModel):
    """Header block printed above the SOAP sections."""

    model_config = ConfigDict(populate_by_name=True)

    date: str = ""
    time: str = ""
    patient_name: Optional[str] = Field(default=None, alias="patientName")
    patient_age: Optional[str] = Field(default=None, alias="patientAge")
    patient_gender: Optional[str] = Field(default=None, alias="patientGender")


class SOAPSection(BaseModel):
    """Subjective / Objective / Analysis / Plan."""

    headers: SOAPHeaders = Field(default_factory=SOAPHeaders)
    subjective: str = ""
    objective: str = ""
    analysis: str = ""
    plan: str = ""


class ActionItems(BaseModel):
    next_appointment: Optional[str] = None
    urgent_referral: bool = False
    lab_tests_required: list[str] = Field(default_factory=list)


class MedicationItem(BaseModel):
    """One line of a prescription."""

    drug: str
    details: str = ""
    frequency: str = ""
    duration: str = ""
    notes: str = ""


class ClinicalNoteDraft(BaseModel):
    """Note drafted from a consultation transcript.

    Field aliases match the camelCase JSON the model is asked to return.
    """

    model_config = ConfigDict(populate_by_name=True)

    clinical_note: str = Field(alias="clinicalNote")
    soap: Optional[SOAPSection] = Field(default=None, alias="soapData")
    patient_instructions: str = Field(default="", alias="patientInstructions")
    action_items: ActionItems = Field(default_factory=ActionItems, alias="actionItems")
    prescriptions: list[MedicationItem] = Field(default_factory=list)


class AssistantAction(str, Enum):
    CREATE_APPOINTMENT = "create_appointment"
    UNKNOWN = "unknown"


class AppointmentDraft(BaseModel):
    """Appointment details parsed from a voice command."""

    model_config = ConfigDict(populate_by_name=True)

    patient_name: Optional[str] = Field(default=None, alias="patientName")
    title: Optional[str] = None
    start_time: Optional[datetime] = None
    duration_minutes: int = 30
    notes: Optional[str] = None


class AssistantResponse(BaseModel):
    """Outcome of parsing a voice command."""

    action: AssistantAction = AssistantAction.UNKNOWN
    data: Optional[AppointmentDraft] = None
    message: str = ""
