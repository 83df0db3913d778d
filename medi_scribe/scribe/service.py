"""Clinical scribe: LLM-backed drafting tasks for the consultation room.

Every transcript is passed through :func:`redact_pii` before it is placed in a
prompt. Failures from the model chain propagate as ``LLMError`` so the API can
map them to a status code, except for voice commands, which always resolve to
an :class:`AssistantResponse` the UI can show.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Union

from medi_scribe.llm import BaseLLM, LLMError, LLMRouter, Message, MessageRole
from medi_scribe.llm.base import parse_structured_response
from medi_scribe.observability import get_observability_logger
from medi_scribe.scribe.models import (
    AssistantAction,
    AssistantResponse,
    ClinicalNoteDraft,
    MedicationItem,
)
from medi_scribe.scribe.prompts import (
    ASSISTANT_COMMAND_PROMPT,
    CLINICAL_NOTE_SYSTEM_PROMPT,
    CLINICAL_QUESTION_PROMPT,
    PATIENT_HISTORY_BLOCK,
    PATIENT_MESSAGE_PROMPT,
    QUICK_RX_PROMPT,
    SPANISH_MONTHS,
    SPANISH_WEEKDAYS,
    SUMMARY_PROMPT,
)
from medi_scribe.scribe.sanitizer import redact_pii

logger = logging.getLogger(__name__)

MIN_TRANSCRIPT_CHARS = 5

MISSING_DATE_MESSAGE = (
    "Entendí que quieres una cita, pero no detecté la fecha u hora. ¿Podrías repetir?"
)


def format_spanish_datetime(moment: datetime) -> str:
    """Render e.g. ``viernes, 29 de noviembre de 2025, 16:00``."""
    weekday = SPANISH_WEEKDAYS[moment.weekday()]
    month = SPANISH_MONTHS[moment.month - 1]
    return f"{weekday}, {moment.day} de {month} de {moment.year}, {moment:%H:%M}"


def strip_markdown(text: str) -> str:
    return text.replace("**", "").replace("#", "").strip()


class ClinicalScribe:
    """Drafts notes, prescriptions and messages from consultation transcripts."""

    def __init__(
        self,
        llm: Union[LLMRouter, BaseLLM],
        default_specialty: str = "Medicina General",
    ):
        self.llm = llm
        self.default_specialty = default_specialty

    async def generate_clinical_note(
        self,
        transcript: str,
        specialty: Optional[str] = None,
        patient_history: Optional[str] = None,
    ) -> ClinicalNoteDraft:
        """Draft a SOAP note with instructions, action items and prescriptions.

        Args:
            transcript: Raw dictation or conversation text
            specialty: Specialty the note is written for
            patient_history: Prior history to give the model context

        Raises:
            ValueError: If the transcript is too short to document
            LLMError: If every model in the chain fails
        """
        if len(transcript.strip()) < MIN_TRANSCRIPT_CHARS:
            raise ValueError("Transcript is too short to draft a note")

        specialty = specialty or self.default_specialty
        safe_transcript, redactions = redact_pii(transcript)

        user_content = f"TRANSCRIPCIÓN (anonimizada):\n{safe_transcript}"
        if patient_history:
            user_content = (
                PATIENT_HISTORY_BLOCK.format(history=redact_pii(patient_history)[0])
                + "\n\n"
                + user_content
            )

        messages = [
            Message(
                role=MessageRole.SYSTEM,
                content=CLINICAL_NOTE_SYSTEM_PROMPT.format(specialty=specialty),
            ),
            Message(role=MessageRole.USER, content=user_content),
        ]

        obs = get_observability_logger()
        with obs.scribe_task(
            "clinical_note", specialty=specialty, transcript_chars=len(transcript)
        ) as event:
            event.redactions = redactions
            draft = await self.llm.complete_structured(
                messages, ClinicalNoteDraft, temperature=0.3, max_tokens=4096
            )
            event.output_summary = draft.clinical_note

        logger.info(
            f"Drafted {specialty} note ({len(draft.prescriptions)} prescriptions, "
            f"{redactions} redactions)"
        )
        return draft

    async def generate_quick_rx(
        self, transcript: str, specialty: Optional[str] = None
    ) -> str:
        """Write a plain-text prescription from a short dictation."""
        specialty = specialty or self.default_specialty
        safe_transcript, redactions = redact_pii(transcript)
        prompt = QUICK_RX_PROMPT.format(specialty=specialty, transcript=safe_transcript)

        obs = get_observability_logger()
        with obs.scribe_task(
            "quick_rx", specialty=specialty, transcript_chars=len(transcript)
        ) as event:
            event.redactions = redactions
            response = await self.llm.complete(
                [Message(role=MessageRole.USER, content=prompt)],
                temperature=0.3,
                max_tokens=1024,
            )
            text = strip_markdown(response.content)
            event.output_summary = text
        return text

    async def summarize_consultation(self, transcript: str) -> str:
        """Three to four sentence summary of a consultation."""
        safe_transcript, redactions = redact_pii(transcript)

        obs = get_observability_logger()
        with obs.scribe_task("summary", transcript_chars=len(transcript)) as event:
            event.redactions = redactions
            response = await self.llm.complete(
                [
                    Message(
                        role=MessageRole.USER,
                        content=SUMMARY_PROMPT.format(transcript=safe_transcript),
                    )
                ],
                temperature=0.3,
                max_tokens=512,
            )
            summary = response.content.strip()
            event.output_summary = summary
        return summary

    async def ask_clinical_question(self, transcript: str, question: str) -> str:
        """Answer a question using only what the transcript says."""
        safe_transcript, redactions = redact_pii(transcript)
        prompt = CLINICAL_QUESTION_PROMPT.format(transcript=safe_transcript, question=question)

        obs = get_observability_logger()
        with obs.scribe_task("clinical_question", transcript_chars=len(transcript)) as event:
            event.redactions = redactions
            response = await self.llm.complete(
                [Message(role=MessageRole.USER, content=prompt)],
                temperature=0.2,
                max_tokens=512,
            )
            answer = response.content.strip()
            event.output_summary = answer
        return answer

    async def generate_patient_message(
        self, plan: str, prescriptions: list[MedicationItem]
    ) -> str:
        """Friendly WhatsApp-style message explaining the plan to the patient."""
        safe_plan, redactions = redact_pii(plan)
        rx_json = json.dumps(
            [item.model_dump() for item in prescriptions], ensure_ascii=False
        )

        obs = get_observability_logger()
        with obs.scribe_task("patient_message", transcript_chars=len(plan)) as event:
            event.redactions = redactions
            response = await self.llm.complete(
                [
                    Message(
                        role=MessageRole.USER,
                        content=PATIENT_MESSAGE_PROMPT.format(
                            plan=safe_plan, prescriptions=rx_json
                        ),
                    )
                ],
                temperature=0.7,
                max_tokens=1024,
            )
            message = response.content.strip()
            event.output_summary = message
        return message

    async def process_command(
        self, transcript: str, now: Optional[datetime] = None
    ) -> AssistantResponse:
        """Turn a voice command into an appointment action.

        Never raises for model failures; the error is reported in ``message``
        with action ``unknown``.
        """
        now = now or datetime.now()
        safe_transcript, redactions = redact_pii(transcript)
        prompt = ASSISTANT_COMMAND_PROMPT.format(
            context_date=format_spanish_datetime(now),
            now_iso=now.isoformat(timespec="seconds"),
            transcript=safe_transcript,
        )

        obs = get_observability_logger()
        try:
            with obs.scribe_task("assistant_command", transcript_chars=len(transcript)) as event:
                event.redactions = redactions
                response = await self.llm.complete(
                    [Message(role=MessageRole.USER, content=prompt)],
                    temperature=0.2,
                    max_tokens=512,
                    response_mime_type="application/json",
                )
                parsed = parse_structured_response(response.content, AssistantResponse)
                event.output_summary = parsed.action.value
        except LLMError as e:
            logger.error(f"Assistant command failed: {e}")
            return AssistantResponse(
                action=AssistantAction.UNKNOWN,
                message=f"No pude procesar la solicitud. ({str(e) or 'Error interno'})",
            )

        if parsed.action == AssistantAction.CREATE_APPOINTMENT and (
            parsed.data is None or parsed.data.start_time is None
        ):
            logger.warning("Assistant returned an appointment without a start time")
            return AssistantResponse(
                action=AssistantAction.UNKNOWN, message=MISSING_DATE_MESSAGE
            )

        return parsed
