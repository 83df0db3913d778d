"""Google Gemini LLM implementation using the google-genai SDK."""

import json
import logging
from typing import Any, Iterable, Optional, TypeVar

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from medi_scribe.llm.base import (
    BaseLLM,
    LLMConnectionError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    LLMValidationError,
    Message,
    MessageRole,
    parse_structured_response,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Clinical text trips the default filters; only block high-probability harm
SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold="BLOCK_ONLY_HIGH")
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

_OVERLOAD_CODES = {429, 503}
_TIMEOUT_CODES = {408, 504}


class GeminiLLM(BaseLLM):
    """Gemini model via the google-genai async client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash-002",
        timeout: int = 60,
        client: Optional[genai.Client] = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Google Generative AI API key
            model: Model name without the ``models/`` prefix
            timeout: Request timeout in seconds
            client: Pre-built client to share between models
        """
        self._model = model
        self._timeout = timeout
        self._client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=timeout * 1000),
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "gemini"

    def _prepare_contents(
        self, messages: list[Message]
    ) -> tuple[Optional[str], list[types.Content]]:
        """Split the system prompt from the conversation turns.

        Gemini takes the system prompt as ``system_instruction`` and names the
        assistant role ``model``.
        """
        system_parts: list[str] = []
        contents: list[types.Content] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_parts.append(msg.content)
                continue
            role = "model" if msg.role == MessageRole.ASSISTANT else "user"
            contents.append(
                types.Content(role=role, parts=[types.Part.from_text(text=msg.content)])
            )

        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        stop: Optional[list[str]] = None,
        response_mime_type: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate completion using Gemini."""
        system_instruction, contents = self._prepare_contents(messages)

        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_tokens,
            stop_sequences=stop or None,
            response_mime_type=response_mime_type,
            safety_settings=SAFETY_SETTINGS,
            **kwargs,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            raise self._translate_api_error(e) from e
        except httpx.TimeoutException as e:
            logger.error(f"Gemini timeout on {self._model}: {e}")
            raise LLMTimeoutError(
                f"Gemini request timed out after {self._timeout}s ({self._model})"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini connection error on {self._model}: {e}")
            raise LLMConnectionError(f"Failed to connect to Gemini ({self._model})") from e

        text = response.text
        if not text:
            raise LLMValidationError(f"Empty response from {self._model}")

        usage = response.usage_metadata
        finish_reason = None
        if response.candidates:
            reason = response.candidates[0].finish_reason
            finish_reason = getattr(reason, "value", reason)

        return LLMResponse(
            content=text,
            model=self._model,
            usage={
                "input_tokens": (usage.prompt_token_count or 0) if usage else 0,
                "output_tokens": (usage.candidates_token_count or 0) if usage else 0,
            },
            finish_reason=finish_reason,
            raw_response=response,
        )

    def _translate_api_error(self, e: genai_errors.APIError) -> Exception:
        code = getattr(e, "code", None)
        if code in _OVERLOAD_CODES:
            logger.warning(f"Gemini overloaded ({code}) on {self._model}: {e}")
            return LLMOverloadError(f"Gemini {self._model} returned {code}")
        if code in _TIMEOUT_CODES:
            logger.error(f"Gemini timeout ({code}) on {self._model}: {e}")
            return LLMTimeoutError(f"Gemini {self._model} returned {code}")
        logger.error(f"Gemini API error ({code}) on {self._model}: {e}")
        return LLMConnectionError(f"Model {self._model} status {code}: {e}")

    async def complete_structured(
        self,
        messages: list[Message],
        schema: type[T],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        **kwargs: Any,
    ) -> T:
        """Generate structured output in JSON mode."""
        schema_json = json.dumps(schema.model_json_schema(), indent=2)
        structured_messages = list(messages)

        last_msg = structured_messages[-1]
        structured_messages[-1] = Message(
            role=last_msg.role,
            content=f"{last_msg.content}\n\nResponde con JSON válido que cumpla este esquema:\n```json\n{schema_json}\n```\n\nResponde SOLO con el objeto JSON, sin texto adicional.",
        )

        response = await self.complete(
            structured_messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_mime_type="application/json",
            **kwargs,
        )

        return parse_structured_response(response.content, schema)

    async def health_check(self) -> bool:
        """Check the model is reachable with this key."""
        try:
            await self._client.aio.models.get(model=self._model)
            return True
        except Exception as e:
            logger.debug(f"Gemini health check failed for {self._model}: {e}")
            return False


def select_best_model(available: Iterable[str]) -> Optional[str]:
    """Pick a model name from those that support generateContent.

    Prefers flash (fast), then pro, then whatever is first. Names may carry
    the ``models/`` prefix returned by the list endpoint.
    """
    names = [name.removeprefix("models/") for name in available]
    if not names:
        return None
    for family in ("flash", "pro"):
        for name in names:
            if family in name:
                return name
    return names[0]


async def discover_models(client: genai.Client) -> list[str]:
    """List model names that can serve generateContent."""
    found: list[str] = []
    async for model in await client.aio.models.list():
        actions = getattr(model, "supported_actions", None) or []
        if "generateContent" in actions and model.name:
            found.append(model.name)
    return found
