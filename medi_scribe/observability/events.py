"""Telemetry records written by ``ObservabilityLogger``."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    LLM_CALL_START = "llm_call_start"
    LLM_CALL_SUCCESS = "llm_call_success"
    LLM_CALL_ERROR = "llm_call_error"
    LLM_FALLBACK = "llm_fallback"
    SCRIBE_TASK_START = "scribe_task_start"
    SCRIBE_TASK_SUCCESS = "scribe_task_success"
    SCRIBE_TASK_ERROR = "scribe_task_error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ObservabilityEvent(BaseModel):
    """Fields shared by every JSONL line."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=_utcnow)
    request_id: Optional[str] = None
    duration_ms: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    error_type: Optional[str] = None
    error_message: Optional[str] = None


class LLMCallEvent(ObservabilityEvent):
    """One Gemini request, or a hop to the next model in the chain."""

    provider: str
    model: str
    messages: list[dict[str, str]] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 4096
    structured_schema: Optional[str] = None

    response_content: Optional[str] = None
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    is_fallback: bool = False
    fallback_reason: Optional[str] = None


class ScribeTaskEvent(ObservabilityEvent):
    """A scribe operation: note drafting, Q&A, voice command parsing.

    ``redactions`` counts PII spans removed before the prompt was sent; the
    removed text itself is never recorded.
    """

    task: str
    specialty: Optional[str] = None
    transcript_chars: int = 0
    redactions: int = 0
    output_summary: Optional[str] = None
