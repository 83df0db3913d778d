"""LLM abstraction layer over Gemini with ordered model fallback."""

from medi_scribe.llm.base import (
    BaseLLM,
    LLMError,
    LLMNotConfiguredError,
    LLMResponse,
    LLMValidationError,
    Message,
    MessageRole,
)
from medi_scribe.llm.gemini import GeminiLLM, discover_models, select_best_model
from medi_scribe.llm.router import LLMRouter, create_router_from_settings

__all__ = [
    "BaseLLM",
    "GeminiLLM",
    "LLMError",
    "LLMNotConfiguredError",
    "LLMResponse",
    "LLMRouter",
    "LLMValidationError",
    "Message",
    "MessageRole",
    "create_router_from_settings",
    "discover_models",
    "select_best_model",
]
