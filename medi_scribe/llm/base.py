"""Provider-neutral message types, errors and the ``BaseLLM`` contract."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One turn of a prompt. System turns become Gemini's system instruction."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class LLMResponse:
    """Text returned by a model plus its token accounting."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def input_tokens(self) -> int:
        return self.usage.get("input_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("output_tokens", 0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


T = TypeVar("T", bound=BaseModel)


class LLMError(Exception):
    """Base class for every model failure the router understands."""


class LLMNotConfiguredError(LLMError):
    """No API key, or no usable model name."""


class LLMConnectionError(LLMError):
    """Network failure or a non-retryable API error."""


class LLMTimeoutError(LLMError):
    """The request exceeded ``gemini_timeout``."""


class LLMOverloadError(LLMError):
    """HTTP 429/503 from the API; worth retrying after a pause."""


class LLMValidationError(LLMError):
    """Output was empty, not JSON, or did not match the requested schema."""


def strip_code_fences(content: str) -> str:
    """Remove ```json / ``` markers the model sometimes wraps around JSON."""
    return content.replace("```json", "").replace("```", "").strip()


def extract_json_object(content: str) -> Any:
    """Load JSON from model output, salvaging the outermost {...} block.

    Raises:
        json.JSONDecodeError: If no parseable object can be found
    """
    text = strip_code_fences(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        first = text.find("{")
        last = text.rfind("}")
        if first == -1 or last <= first:
            raise
        return json.loads(text[first : last + 1])


def parse_structured_response(content: str, schema: type[T]) -> T:
    """Parse an LLM response string into a Pydantic model.

    Handles markdown code blocks and leading/trailing chatter around the
    JSON object, then validates against the schema.

    Args:
        content: Raw LLM response text (may include ```json blocks)
        schema: Pydantic model class to validate against

    Returns:
        Validated instance of schema

    Raises:
        LLMValidationError: If JSON parsing or schema validation fails
    """
    try:
        data = extract_json_object(content)
        return schema.model_validate(data)

    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from LLM: {e}")
        raise LLMValidationError(f"Invalid JSON in response: {e}") from e
    except ValidationError as e:
        logger.error(f"Response doesn't match schema: {e}")
        raise LLMValidationError(f"Response doesn't match schema: {e}") from e


class BaseLLM(ABC):
    """Abstract base class for LLM implementations."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        stop: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate completion for messages.

        Raises:
            LLMConnectionError: If connection fails
            LLMTimeoutError: If request times out
            LLMOverloadError: If service is overloaded
        """
        pass

    @abstractmethod
    async def complete_structured(
        self,
        messages: list[Message],
        schema: type[T],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> T:
        """Generate structured output matching a Pydantic schema.

        Raises:
            LLMValidationError: If response doesn't match schema
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the LLM service is available."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name/identifier."""
        pass

    @property
    @abstractmethod
    def provider(self) -> str:
        """Get the provider name (e.g., 'gemini')."""
        pass
