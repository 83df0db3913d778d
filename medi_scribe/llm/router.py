"""LLM router that walks an ordered chain of Gemini models."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from medi_scribe.llm.base import (
    BaseLLM,
    LLMError,
    LLMNotConfiguredError,
    LLMOverloadError,
    LLMResponse,
    LLMTimeoutError,
    Message,
)
from medi_scribe.observability import get_observability_logger

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
R = TypeVar("R")


class LLMRouter:
    """Route requests through models in preference order.

    Each model is retried on timeouts and overload, then the router moves to
    the next one on any LLM error. The error from the last model is raised
    when the whole chain fails.

    An optional ``discover`` coroutine runs once, before the first request or
    health check, and the model it returns is moved to the front of the chain.
    If discovery fails the configured order is kept.
    """

    def __init__(
        self,
        providers: list[BaseLLM],
        max_retries: int = 3,
        retry_wait_multiplier: float = 1.0,
        discover: Optional[Callable[[], Awaitable[Optional[BaseLLM]]]] = None,
    ):
        """Initialize LLM router.

        Args:
            providers: Models to try, best first
            max_retries: Attempts per model for transient errors
            retry_wait_multiplier: Exponential backoff multiplier in seconds
            discover: Coroutine returning the preferred model, if any
        """
        if not providers:
            raise LLMNotConfiguredError("LLMRouter needs at least one model")
        self.providers = list(providers)
        self.max_retries = max(1, max_retries)
        self.retry_wait_multiplier = retry_wait_multiplier
        self._discover = discover
        self._discovered = discover is None
        self._discovery_lock = asyncio.Lock()
        # model name -> outcome of its latest call or health check
        self._healthy: dict[str, bool] = {}

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        stop: Optional[list[str]] = None,
        request_id: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate completion with automatic failover.

        Returns:
            LLMResponse from the first model that succeeds
        """

        async def call(llm: BaseLLM, is_fallback: bool, rid: str) -> LLMResponse:
            return await self._complete_with_observability(
                llm, messages, temperature, max_tokens, stop, rid, is_fallback, **kwargs
            )

        return await self._run_chain(call, request_id)

    async def complete_structured(
        self,
        messages: list[Message],
        schema: type[T],
        *,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        request_id: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Generate structured output with automatic failover."""

        async def call(llm: BaseLLM, is_fallback: bool, rid: str) -> T:
            return await self._structured_with_observability(
                llm, messages, schema, temperature, max_tokens, rid, is_fallback, **kwargs
            )

        return await self._run_chain(call, request_id)

    async def _run_chain(
        self,
        call: Callable[[BaseLLM, bool, str], Awaitable[R]],
        request_id: Optional[str],
    ) -> R:
        await self.ensure_discovered()
        obs = get_observability_logger()
        request_id = request_id or obs.generate_request_id()
        last_error: Optional[LLMError] = None

        for index, llm in enumerate(self.providers):
            try:
                result = await call(llm, index > 0, request_id)
                self._healthy[llm.model_name] = True
                if index > 0:
                    logger.info(f"Fallback model {llm.model_name} succeeded")
                return result
            except LLMError as e:
                last_error = e
                self._healthy[llm.model_name] = False
                next_llm = self.providers[index + 1] if index + 1 < len(self.providers) else None
                logger.warning(
                    f"Model {llm.model_name} failed: {e}. "
                    f"{'Trying ' + next_llm.model_name + '...' if next_llm else 'No models left.'}"
                )
                if next_llm:
                    obs.log_llm_fallback(
                        from_model=llm.model_name,
                        to_model=next_llm.model_name,
                        reason=str(e),
                        request_id=request_id,
                    )

        if last_error is None:
            raise LLMNotConfiguredError("LLMRouter has no models to try")
        raise last_error

    async def ensure_discovered(self) -> None:
        """Run model discovery once and put the chosen model first."""
        if self._discovered:
            return
        async with self._discovery_lock:
            if self._discovered:
                return
            self._discovered = True
            try:
                best = await self._discover()
            except Exception as e:
                logger.warning(f"Model discovery failed, keeping configured order: {e}")
                return
            if best is None:
                logger.warning("Model discovery found no usable model, keeping configured order")
                return
            self.providers = [best] + [
                llm for llm in self.providers if llm.model_name != best.model_name
            ]
            logger.info(f"Model discovery selected {best.model_name}")

    async def _complete_with_observability(
        self,
        llm: BaseLLM,
        messages: list[Message],
        temperature: float,
        max_tokens: int,
        stop: Optional[list[str]],
        request_id: str,
        is_fallback: bool = False,
        **kwargs: Any,
    ) -> LLMResponse:
        """Complete with observability logging."""
        obs = get_observability_logger()
        msg_dicts = [m.to_dict() for m in messages]

        with obs.llm_call(
            provider=llm.provider,
            model=llm.model_name,
            messages=msg_dicts,
            temperature=temperature,
            max_tokens=max_tokens,
            request_id=request_id,
        ) as event:
            event.is_fallback = is_fallback
            response = await self._with_retry(
                lambda: llm.complete(
                    messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    stop=stop,
                    **kwargs,
                )
            )
            event.response_content = response.content
            if response.usage:
                event.input_tokens = response.input_tokens
                event.output_tokens = response.output_tokens
                event.total_tokens = response.total_tokens
            return response

    async def _structured_with_observability(
        self,
        llm: BaseLLM,
        messages: list[Message],
        schema: type[T],
        temperature: float,
        max_tokens: int,
        request_id: str,
        is_fallback: bool = False,
        **kwargs: Any,
    ) -> T:
        """Complete structured call with observability logging."""
        obs = get_observability_logger()
        msg_dicts = [m.to_dict() for m in messages]

        with obs.llm_call(
            provider=llm.provider,
            model=llm.model_name,
            messages=msg_dicts,
            temperature=temperature,
            max_tokens=max_tokens,
            request_id=request_id,
        ) as event:
            event.is_fallback = is_fallback
            event.structured_schema = schema.__name__
            result = await self._with_retry(
                lambda: llm.complete_structured(
                    messages, schema, temperature=temperature, max_tokens=max_tokens, **kwargs
                )
            )
            event.response_content = result.model_dump_json()
            return result

    async def _with_retry(self, func: Callable[[], Awaitable[R]]) -> R:
        """Retry transient errors on the same model."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((LLMTimeoutError, LLMOverloadError)),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_wait_multiplier, min=0, max=10),
            reraise=True,
        ):
            with attempt:
                return await func()
        raise LLMError("Retry loop exited without a result")

    async def health_check(self) -> dict[str, bool]:
        """Check health of every model in the chain."""
        await self.ensure_discovered()
        results = {llm.model_name: await llm.health_check() for llm in self.providers}
        self._healthy.update(results)
        return results

    @property
    def active_provider(self) -> str:
        """First model in the chain not known to be failing.

        Health comes from the latest health check or request for each model.
        Models with no record yet count as healthy. When every model is failing
        the first choice is reported.
        """
        for llm in self.providers:
            if self._healthy.get(llm.model_name, True):
                return llm.model_name
        return self.providers[0].model_name


def create_router_from_settings() -> LLMRouter:
    """Create LLM router from application settings.

    Raises:
        LLMNotConfiguredError: If no Gemini API key is set
    """
    from google import genai
    from google.genai import types

    from medi_scribe.config import get_settings
    from medi_scribe.llm.gemini import GeminiLLM, discover_models, select_best_model

    settings = get_settings()
    if not settings.has_gemini_key:
        raise LLMNotConfiguredError("GEMINI_API_KEY is not configured")

    # One HTTP client shared by every model in the chain
    client = genai.Client(
        api_key=settings.gemini_api_key,
        http_options=types.HttpOptions(timeout=settings.gemini_timeout * 1000),
    )
    providers: list[BaseLLM] = [
        GeminiLLM(
            api_key=settings.gemini_api_key,
            model=model,
            timeout=settings.gemini_timeout,
            client=client,
        )
        for model in settings.gemini_models
    ]

    async def discover() -> Optional[BaseLLM]:
        best = select_best_model(await discover_models(client))
        if best is None:
            return None
        return GeminiLLM(
            api_key=settings.gemini_api_key,
            model=best,
            timeout=settings.gemini_timeout,
            client=client,
        )

    return LLMRouter(
        providers=providers, max_retries=settings.max_retries, discover=discover
    )
