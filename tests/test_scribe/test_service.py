"""Tests for the clinical scribe service."""

import json
from datetime import datetime

import pytest

from medi_scribe.llm import LLMResponse, LLMRouter
from medi_scribe.llm.base import LLMConnectionError, LLMError, LLMValidationError
from medi_scribe.observability import get_observability_logger
from medi_scribe.scribe import (
    AssistantAction,
    ClinicalNoteDraft,
    ClinicalScribe,
    MedicationItem,
)
from medi_scribe.scribe.service import (
    MISSING_DATE_MESSAGE,
    format_spanish_datetime,
    strip_markdown,
)


def _text(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="gemini-test")


@pytest.fixture
def scribe(mock_llm):
    return ClinicalScribe(mock_llm, default_specialty="Medicina General")


@pytest.fixture
def note_draft():
    return ClinicalNoteDraft.model_validate({
        "clinicalNote": "Paciente con faringitis aguda.",
        "soapData": {
            "subjective": "Cefalea y fiebre de 3 días.",
            "objective": "TA 120/80, faringe hiperémica.",
            "analysis": "Faringitis aguda.",
            "plan": "Paracetamol 500 mg c/8h.",
        },
        "patientInstructions": "Tomar abundantes líquidos.",
        "actionItems": {"urgent_referral": False, "lab_tests_required": ["BH"]},
        "prescriptions": [
            {"drug": "Paracetamol", "details": "500 mg", "frequency": "c/8h", "duration": "5 días"}
        ],
    })


class TestClinicalNote:
    async def test_redacts_before_prompting(self, scribe, mock_llm, note_draft, sample_transcript):
        mock_llm.complete_structured.return_value = note_draft

        draft = await scribe.generate_clinical_note(sample_transcript, specialty="Pediatría")

        assert draft is note_draft
        messages, schema = mock_llm.complete_structured.call_args.args
        assert schema is ClinicalNoteDraft
        assert "Pediatría" in messages[0].content
        assert "5512345678" not in messages[1].content
        assert "Juan" not in messages[1].content
        assert "[NOMBRE_PACIENTE]" in messages[1].content

    async def test_default_specialty(self, scribe, mock_llm, note_draft, sample_transcript):
        mock_llm.complete_structured.return_value = note_draft

        await scribe.generate_clinical_note(sample_transcript)

        messages = mock_llm.complete_structured.call_args.args[0]
        assert "Medicina General" in messages[0].content

    async def test_patient_history_included(self, scribe, mock_llm, note_draft, sample_transcript):
        mock_llm.complete_structured.return_value = note_draft

        await scribe.generate_clinical_note(
            sample_transcript, patient_history="Hipertensión desde 2015"
        )

        user = mock_llm.complete_structured.call_args.args[0][1].content
        assert user.startswith("ANTECEDENTES DEL PACIENTE:")
        assert "Hipertensión desde 2015" in user

    @pytest.mark.parametrize("transcript", ["", "   ", "hola"])
    async def test_short_transcript_rejected(self, scribe, mock_llm, transcript):
        with pytest.raises(ValueError):
            await scribe.generate_clinical_note(transcript)
        mock_llm.complete_structured.assert_not_called()

    async def test_llm_error_propagates(self, scribe, mock_llm, sample_transcript):
        mock_llm.complete_structured.side_effect = LLMValidationError("bad json")

        with pytest.raises(LLMError):
            await scribe.generate_clinical_note(sample_transcript)

    async def test_task_logged_with_redactions(self, scribe, mock_llm, note_draft, sample_transcript):
        mock_llm.complete_structured.return_value = note_draft

        await scribe.generate_clinical_note(sample_transcript)

        event = get_observability_logger().get_recent_events("scribe")[-1]
        assert event["task"] == "clinical_note"
        assert event["event_type"] == "scribe_task_success"
        assert event["redactions"] == 2
        assert event["transcript_chars"] == len(sample_transcript)

    def test_draft_accepts_snake_case(self):
        draft = ClinicalNoteDraft(clinical_note="Nota", patient_instructions="Reposo")
        assert draft.soap is None
        assert draft.prescriptions == []
        assert draft.action_items.urgent_referral is False


class TestTextTasks:
    async def test_quick_rx_strips_markdown(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text("## Receta\n**Amoxicilina** 500 mg c/8h ")

        text = await scribe.generate_quick_rx("amoxicilina 500 cada 8 horas", specialty="Pediatría")

        assert text == "Receta\nAmoxicilina 500 mg c/8h"
        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "Pediatría" in prompt

    async def test_summary(self, scribe, mock_llm, sample_transcript):
        mock_llm.complete.return_value = _text("  Paciente con faringitis.  ")

        summary = await scribe.summarize_consultation(sample_transcript)

        assert summary == "Paciente con faringitis."
        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "5512345678" not in prompt

    async def test_question_uses_transcript(self, scribe, mock_llm, sample_transcript):
        mock_llm.complete.return_value = _text("Paracetamol 500 mg.")

        answer = await scribe.ask_clinical_question(sample_transcript, "¿Qué se recetó?")

        assert answer == "Paracetamol 500 mg."
        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "¿Qué se recetó?" in prompt
        assert "faringe hiperémica" in prompt

    async def test_patient_message_includes_prescriptions(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text("Hola 👋, su tratamiento es...")

        message = await scribe.generate_patient_message(
            "Reposo y líquidos", [MedicationItem(drug="Paracetamol", details="500 mg")]
        )

        assert message.startswith("Hola")
        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "Paracetamol" in prompt
        assert "Reposo y líquidos" in prompt

    async def test_text_task_error_propagates(self, scribe, mock_llm):
        mock_llm.complete.side_effect = LLMConnectionError("down")

        with pytest.raises(LLMConnectionError):
            await scribe.summarize_consultation("Paciente con tos")


class TestProcessCommand:
    NOW = datetime(2025, 11, 27, 10, 30)

    async def test_creates_appointment(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text(
            '{"action": "create_appointment", "data": {"patientName": "Pedro", '
            '"title": "Revisión", "start_time": "2025-11-28T16:00:00", '
            '"duration_minutes": 45}, "message": "Cita agendada mañana a las 16:00."}'
        )

        result = await scribe.process_command("agenda a Pedro mañana a las 4", now=self.NOW)

        assert result.action == AssistantAction.CREATE_APPOINTMENT
        assert result.data.patient_name == "Pedro"
        assert result.data.start_time == datetime(2025, 11, 28, 16, 0)
        assert result.data.duration_minutes == 45
        assert mock_llm.complete.call_args.kwargs["response_mime_type"] == "application/json"

    async def test_prompt_carries_spanish_date(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text('{"action": "unknown", "message": "?"}')

        await scribe.process_command("hola", now=self.NOW)

        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "jueves, 27 de noviembre de 2025, 10:30" in prompt
        assert "2025-11-27T10:30:00" in prompt

    async def test_missing_start_time_downgraded(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text(
            '{"action": "create_appointment", "data": {"patientName": "Pedro"}, "message": "ok"}'
        )

        result = await scribe.process_command("agenda a Pedro", now=self.NOW)

        assert result.action == AssistantAction.UNKNOWN
        assert result.message == MISSING_DATE_MESSAGE

    async def test_missing_data_downgraded(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text('{"action": "create_appointment", "message": "ok"}')

        result = await scribe.process_command("agenda cita", now=self.NOW)

        assert result.action == AssistantAction.UNKNOWN

    async def test_llm_failure_never_raises(self, scribe, mock_llm):
        mock_llm.complete.side_effect = LLMConnectionError("Gemini caído")

        result = await scribe.process_command("agenda cita", now=self.NOW)

        assert result.action == AssistantAction.UNKNOWN
        assert result.message == "No pude procesar la solicitud. (Gemini caído)"

    async def test_unparseable_output_never_raises(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text("no entendí")

        result = await scribe.process_command("agenda cita", now=self.NOW)

        assert result.action == AssistantAction.UNKNOWN
        assert result.message.startswith("No pude procesar la solicitud.")

    async def test_empty_error_message_uses_fallback_text(self, scribe, mock_llm):
        mock_llm.complete.side_effect = LLMConnectionError()

        result = await scribe.process_command("agenda cita", now=self.NOW)

        assert result.message == "No pude procesar la solicitud. (Error interno)"

    async def test_command_transcript_redacted(self, scribe, mock_llm):
        mock_llm.complete.return_value = _text('{"action": "unknown", "message": "?"}')

        await scribe.process_command(
            "agenda a Pedro, su teléfono es 5512345678", now=self.NOW
        )

        prompt = mock_llm.complete.call_args.args[0][0].content
        assert "5512345678" not in prompt
        assert "[TELÉFONO]" in prompt
        event = get_observability_logger().get_recent_events("scribe")[-1]
        assert event["task"] == "assistant_command"
        assert event["redactions"] == 1

    async def test_command_phone_never_reaches_llm_log(self, mock_llm):
        mock_llm.complete.return_value = _text('{"action": "unknown", "message": "?"}')
        routed = ClinicalScribe(LLMRouter([mock_llm], retry_wait_multiplier=0))

        await routed.process_command(
            "llama a mi paciente al 5512345678", now=self.NOW
        )

        events = get_observability_logger().get_recent_events("llm")
        assert events
        assert all("5512345678" not in json.dumps(e) for e in events)


def test_format_spanish_datetime():
    assert format_spanish_datetime(datetime(2025, 11, 29, 16, 0)) == (
        "sábado, 29 de noviembre de 2025, 16:00"
    )


def test_strip_markdown():
    assert strip_markdown("# **Hola**  ") == "Hola"
