"""Clinical scribe endpoints backed by Gemini."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from medi_scribe.api.dependencies import get_current_user, get_scribe
from medi_scribe.core.models import Doctor
from medi_scribe.llm import LLMError, LLMNotConfiguredError
from medi_scribe.scribe import (
    AssistantResponse,
    ClinicalNoteDraft,
    ClinicalScribe,
    MedicationItem,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scribe", tags=["scribe"])


class NoteRequest(BaseModel):
    transcript: str
    specialty: Optional[str] = None
    patient_history: Optional[str] = None


class QuickRxRequest(BaseModel):
    transcript: str = Field(..., min_length=1)
    specialty: Optional[str] = None


class TranscriptRequest(BaseModel):
    transcript: str = Field(..., min_length=1)


class QuestionRequest(BaseModel):
    transcript: str
    question: str = Field(..., min_length=1)


class PatientMessageRequest(BaseModel):
    plan: str
    prescriptions: list[MedicationItem] = Field(default_factory=list)


class CommandRequest(BaseModel):
    transcript: str = Field(..., min_length=1)
    now: Optional[datetime] = None


class TextResponse(BaseModel):
    text: str


def _llm_failure(e: LLMError) -> NoReturn:
    if isinstance(e, LLMNotConfiguredError):
        raise HTTPException(status_code=503, detail=str(e))
    logger.error(f"Scribe call failed: {e}")
    raise HTTPException(status_code=502, detail=f"AI service error: {e}")


@router.post("/note", response_model=ClinicalNoteDraft, response_model_by_alias=False)
async def draft_note(
    body: NoteRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> ClinicalNoteDraft:
    specialty = body.specialty or current_user.specialty
    try:
        return await scribe.generate_clinical_note(
            body.transcript, specialty=specialty, patient_history=body.patient_history
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except LLMError as e:
        _llm_failure(e)


@router.post("/quick-rx", response_model=TextResponse)
async def quick_rx(
    body: QuickRxRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> TextResponse:
    try:
        text = await scribe.generate_quick_rx(
            body.transcript, specialty=body.specialty or current_user.specialty
        )
    except LLMError as e:
        _llm_failure(e)
    return TextResponse(text=text)


@router.post("/summary", response_model=TextResponse)
async def summary(
    body: TranscriptRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> TextResponse:
    try:
        text = await scribe.summarize_consultation(body.transcript)
    except LLMError as e:
        _llm_failure(e)
    return TextResponse(text=text)


@router.post("/ask", response_model=TextResponse)
async def ask(
    body: QuestionRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> TextResponse:
    try:
        text = await scribe.ask_clinical_question(body.transcript, body.question)
    except LLMError as e:
        _llm_failure(e)
    return TextResponse(text=text)


@router.post("/patient-message", response_model=TextResponse)
async def patient_message(
    body: PatientMessageRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> TextResponse:
    try:
        text = await scribe.generate_patient_message(body.plan, body.prescriptions)
    except LLMError as e:
        _llm_failure(e)
    return TextResponse(text=text)


@router.post("/command", response_model=AssistantResponse)
async def command(
    body: CommandRequest,
    current_user: Doctor = Depends(get_current_user),
    scribe: ClinicalScribe = Depends(get_scribe),
) -> AssistantResponse:
    return await scribe.process_command(body.transcript, now=body.now)
