"""Observability module for LLM and scribe telemetry."""

from medi_scribe.observability.events import (
    EventType,
    LLMCallEvent,
    ObservabilityEvent,
    ScribeTaskEvent,
)
from medi_scribe.observability.logger import ObservabilityLogger, get_observability_logger

__all__ = [
    "EventType",
    "LLMCallEvent",
    "ObservabilityEvent",
    "ObservabilityLogger",
    "ScribeTaskEvent",
    "get_observability_logger",
]
