"""Chat-completions client used for skill analysis and course generation."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from openai import OpenAI, OpenAIError, RateLimitError

from .config import Settings
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the language model call fails or returns an unusable payload."""


class LLMUnavailableError(LLMError):
    """Raised when no API key is configured."""


class LLMClient:
    def __init__(
        self,
        settings: Settings,
        *,
        client: Optional[Any] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._model = settings.llm_model
        self._max_attempts = max(settings.llm_max_attempts, 1)
        self._backoff_base = settings.llm_backoff_base_seconds
        self._sleep = sleep
        self._client = client
        if self._client is None and settings.openai_api_key:
            self._client = OpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.llm_base_url,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    def complete_json(self, system: str, user: str, *, temperature: float = 0.2) -> Dict[str, Any]:
        """Run one chat completion and parse the reply as a JSON object.

        Only rate-limit responses are retried, with the delay doubling from the
        configured base between attempts.
        """
        if self._client is None:
            raise LLMUnavailableError("OPENAI_API_KEY is not configured.")

        delay = self._backoff_base
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._client.chat.completions.create(
                    model=self._model,
                    temperature=temperature,
                    response_format={"type": "json_object"},
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                )
                break
            except RateLimitError as exc:
                if attempt >= self._max_attempts:
                    raise LLMError(f"Rate limited after {attempt} attempts.") from exc
                logger.warning("LLM rate limited (attempt %s/%s); retrying in %.1fs", attempt, self._max_attempts, delay)
                emit_event("llm_rate_limited", attempt=attempt, delay_seconds=delay, model=self._model)
                self._sleep(delay)
                delay *= 2
            except OpenAIError as exc:
                raise LLMError(f"LLM request failed: {exc}") from exc

        try:
            content = response.choices[0].message.content or ""
            payload = json.loads(content)
        except (AttributeError, IndexError, json.JSONDecodeError) as exc:
            raise LLMError(f"LLM returned a non-JSON reply: {exc}") from exc
        if not isinstance(payload, dict):
            raise LLMError("LLM reply was not a JSON object.")
        return payload


__all__ = ["LLMClient", "LLMError", "LLMUnavailableError"]
