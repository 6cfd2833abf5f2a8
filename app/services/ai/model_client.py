"""
Model Client - the single entry point to the upstream generative model.

Every call goes through the rate governor first, and provider failures are
classified into the AI error taxonomy:
- missing key / auth / model not found  -> AIConfigError
- 429 / quota                            -> AIQuotaError (+ cooldown)
- timeout, transport, empty response     -> AIUpstreamError
"""

import time
from dataclasses import dataclass
from typing import Any

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.infrastructure.observability.logging import get_logger, log_model_call
from app.services.ai.errors import (
    AIConfigError,
    AIQuotaError,
    AIServiceError,
    AIUpstreamError,
)
from app.services.ai.rate_governor import RateGovernor, rate_governor

logger = get_logger(__name__)

DEFAULT_SYSTEM_MESSAGE = "You are a careful assistant for a personal knowledge base."


@dataclass(frozen=True, slots=True)
class ModelCallResult:
    """Outcome of a model call: exactly one of text or error is set."""

    text: str | None = None
    error: AIServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_quota_signal(error: Exception) -> bool:
    if isinstance(error, openai.RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error)
    return "429" in message or "quota" in message.lower()


def _is_config_signal(error: Exception) -> bool:
    if isinstance(
        error,
        (openai.AuthenticationError, openai.PermissionDeniedError, openai.NotFoundError),
    ):
        return True
    message = str(error)
    return "404" in message or "not found" in message.lower()


class ModelClient:
    """
    Async wrapper around the OpenAI chat completions API.

    The SDK's own retries are disabled: the governor is the only admission
    controller, and a rejected or failed call is never replayed here.
    """

    def __init__(self, governor: RateGovernor | None = None, client: Any = None):
        self.governor = governor or rate_governor
        self._client = client

    def _get_client(self) -> Any:
        """Return the injected client, or build one from settings."""
        if self._client is not None:
            return self._client

        if not settings.ai_configured():
            raise AIConfigError(
                "OpenAI API key is not configured. Set OPENAI_API_KEY in your .env.local file."
            )

        self._client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.AI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        logger.info(
            "OpenAI client initialized",
            model=settings.OPENAI_MODEL,
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
        return self._client

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        json_mode: bool = False,
        operation: str = "generate",
    ) -> str:
        """
        Send one prompt and return the trimmed response text.

        Raises:
            AIConfigError: Not configured, bad credentials, or unknown model
            AIQuotaError: Governor rejection or provider rate limit
            AIUpstreamError: Timeout, transport error, or empty response
        """
        client = self._get_client()
        self.governor.admit()

        request: dict[str, Any] = {
            "model": settings.OPENAI_MODEL,
            "messages": [
                {"role": "system", "content": system or DEFAULT_SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.OPENAI_TEMPERATURE,
            "top_p": settings.OPENAI_TOP_P,
            "max_tokens": settings.OPENAI_MAX_TOKENS,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        start_time = time.time()
        try:
            response = await client.chat.completions.create(**request)
        except Exception as e:
            latency_ms = round((time.time() - start_time) * 1000, 2)
            log_model_call(operation, success=False, latency_ms=latency_ms, error=str(e))
            raise self._classify(e) from e

        text = ""
        if response.choices and response.choices[0].message.content:
            text = response.choices[0].message.content.strip()

        latency_ms = round((time.time() - start_time) * 1000, 2)
        if not text:
            log_model_call(operation, success=False, latency_ms=latency_ms, error="empty response")
            raise AIUpstreamError("Empty response from model")

        log_model_call(operation, success=True, latency_ms=latency_ms, response_length=len(text))
        return text

    async def try_generate(self, prompt: str, **kwargs: Any) -> ModelCallResult:
        """Like generate(), but returns failures instead of raising them."""
        try:
            return ModelCallResult(text=await self.generate(prompt, **kwargs))
        except AIServiceError as e:
            return ModelCallResult(error=e)
        except Exception as e:
            logger.error(
                "Unexpected error calling model",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ModelCallResult(error=AIUpstreamError(f"Model call failed: {e}", api_error=str(e)))

    def _classify(self, error: Exception) -> AIServiceError:
        if isinstance(error, AIServiceError):
            return error

        if _is_quota_signal(error):
            self.governor.mark_exhausted()
            return AIQuotaError(
                "Model API quota exceeded. Please wait and try again.",
                retry_after_seconds=int(self.governor.cooldown_seconds),
            )

        if _is_config_signal(error):
            return AIConfigError("Model not available. Check your API key permissions.")

        if isinstance(error, openai.APITimeoutError):
            return AIUpstreamError("Model request timed out", api_error=str(error))

        return AIUpstreamError(f"Model request failed: {error}", api_error=str(error))

    def health(self) -> dict[str, Any]:
        return {
            "configured": settings.ai_configured() or self._client is not None,
            "model": settings.OPENAI_MODEL,
            "rate_governor": self.governor.status(),
        }


# Singleton instance for application use
model_client = ModelClient()
