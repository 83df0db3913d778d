"""JSON Lines telemetry for Gemini calls and scribe tasks."""

import json
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from medi_scribe.observability.events import (
    EventType,
    LLMCallEvent,
    ObservabilityEvent,
    ScribeTaskEvent,
)

logger = logging.getLogger(__name__)

LLM_LOG = "llm"
SCRIBE_LOG = "scribe"


class ObservabilityLogger:
    """Appends one JSON object per event to ``llm_calls.jsonl`` / ``scribe_tasks.jsonl``.

    Transcripts carry patient data, so message and output text is cut to
    ``max_content_length`` characters unless ``log_full_content`` is set.
    A failed write is reported through ``logging`` and never reaches the
    caller.
    """

    _instance: Optional["ObservabilityLogger"] = None

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        enabled: bool = True,
        log_full_content: bool = False,
        max_content_length: int = 500,
    ):
        self.enabled = enabled
        self.log_full_content = log_full_content
        self.max_content_length = max_content_length

        self.log_dir = Path(log_dir) if log_dir is not None else Path("data/logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._log_files: dict[str, Path] = {
            LLM_LOG: self.log_dir / "llm_calls.jsonl",
            SCRIBE_LOG: self.log_dir / "scribe_tasks.jsonl",
        }
        self._callbacks: list[Callable[[ObservabilityEvent], None]] = []
        self._write_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "ObservabilityLogger":
        if cls._instance is None:
            from medi_scribe.config import get_settings

            cls._instance = cls(log_dir=get_settings().observability_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def generate_request_id(self) -> str:
        return uuid.uuid4().hex[:8]

    def add_callback(self, callback: Callable[[ObservabilityEvent], None]) -> None:
        """Register a listener called with every written event."""
        self._callbacks.append(callback)

    def _clip(self, text: Optional[str]) -> Optional[str]:
        if text is None or self.log_full_content or len(text) <= self.max_content_length:
            return text
        return text[: self.max_content_length] + "..."

    def _emit(self, event: ObservabilityEvent, log_type: str) -> None:
        if not self.enabled:
            return

        line = event.model_dump_json()
        try:
            with self._write_lock, open(self._log_files[log_type], "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.warning("Could not write %s telemetry: %s", log_type, e)

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning("Telemetry callback %r failed: %s", callback, e)

    @contextmanager
    def _timed(
        self,
        event: Any,
        log_type: str,
        success: EventType,
        failure: EventType,
        clip_field: str,
    ) -> Iterator[Any]:
        started = time.perf_counter()
        try:
            yield event
        except Exception as e:
            event.event_type = failure
            event.error_type = type(e).__name__
            event.error_message = str(e)[:200]
            raise
        else:
            event.event_type = success
            setattr(event, clip_field, self._clip(getattr(event, clip_field)))
        finally:
            event.duration_ms = (time.perf_counter() - started) * 1000
            self._emit(event, log_type)

    def llm_call(
        self,
        provider: str,
        model: str,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        request_id: Optional[str] = None,
    ):
        """Time one model call; the caller fills response fields on the yielded event.

            with obs.llm_call("gemini", model, messages) as event:
                response = await llm.complete(...)
                event.response_content = response.content
        """
        event = LLMCallEvent(
            event_type=EventType.LLM_CALL_START,
            provider=provider,
            model=model,
            messages=[
                {"role": m["role"], "content": self._clip(m.get("content", ""))}
                for m in messages
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            request_id=request_id or self.generate_request_id(),
        )
        return self._timed(
            event,
            LLM_LOG,
            EventType.LLM_CALL_SUCCESS,
            EventType.LLM_CALL_ERROR,
            "response_content",
        )

    def log_llm_fallback(
        self,
        from_model: str,
        to_model: str,
        reason: str,
        request_id: Optional[str] = None,
    ) -> None:
        self._emit(
            LLMCallEvent(
                event_type=EventType.LLM_FALLBACK,
                provider="gemini",
                model=to_model,
                is_fallback=True,
                fallback_reason=reason,
                request_id=request_id,
                metadata={"from_model": from_model},
            ),
            LLM_LOG,
        )

    def scribe_task(
        self,
        task: str,
        specialty: Optional[str] = None,
        transcript_chars: int = 0,
        request_id: Optional[str] = None,
    ):
        """Time one scribe operation (note, summary, command...)."""
        event = ScribeTaskEvent(
            event_type=EventType.SCRIBE_TASK_START,
            task=task,
            specialty=specialty,
            transcript_chars=transcript_chars,
            request_id=request_id or self.generate_request_id(),
        )
        return self._timed(
            event,
            SCRIBE_LOG,
            EventType.SCRIBE_TASK_SUCCESS,
            EventType.SCRIBE_TASK_ERROR,
            "output_summary",
        )

    def get_recent_events(self, log_type: str, limit: int = 100) -> list[dict[str, Any]]:
        """Last ``limit`` parseable events from a log, oldest first."""
        path = self._log_files.get(log_type)
        if path is None or not path.exists():
            return []

        events: list[dict[str, Any]] = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.debug("Skipping corrupt telemetry line in %s", path)
        return events[-limit:]

    def get_stats(self, log_type: str) -> dict[str, Any]:
        events = self.get_recent_events(log_type, limit=1000)
        if not events:
            return {"total": 0}

        total = len(events)
        kinds = [e.get("event_type", "") for e in events]
        errors = sum(1 for kind in kinds if kind.endswith("_error"))
        return {
            "total": total,
            "errors": errors,
            "fallbacks": kinds.count(EventType.LLM_FALLBACK.value),
            "error_rate": errors / total,
            "avg_duration_ms": sum(e.get("duration_ms") or 0 for e in events) / total,
        }


def get_observability_logger() -> ObservabilityLogger:
    """Process-wide logger, created from settings on first use."""
    return ObservabilityLogger.get_instance()
