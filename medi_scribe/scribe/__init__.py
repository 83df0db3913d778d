"""Clinical scribe: PII redaction and LLM drafting tasks."""

from medi_scribe.scribe.models import (
    ActionItems,
    AppointmentDraft,
    AssistantAction,
    AssistantResponse,
    ClinicalNoteDraft,
    MedicationItem,
    SOAPSection,
)
from medi_scribe.scribe.sanitizer import redact_pii, sanitize_content
from medi_scribe.scribe.service import ClinicalScribe

__all__ = [
    "ActionItems",
    "AppointmentDraft",
    "AssistantAction",
    "AssistantResponse",
    "ClinicalNoteDraft",
    "ClinicalScribe",
    "MedicationItem",
    "SOAPSection",
    "redact_pii",
    "sanitize_content",
]
