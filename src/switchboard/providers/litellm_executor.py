"""LiteLLM executor for vendor LLM providers.

Serves the openai, anthropic, google and meta providers through LiteLLM's
unified completion interface. Transient errors (rate limits, connection
drops) are retried with stamina inside one attempt; the Dispatcher's
per-provider timeout bounds the whole attempt including those retries.

API keys come from the environment (OPENAI_API_KEY, ANTHROPIC_API_KEY,
GEMINI_API_KEY, ...) as LiteLLM reads them, or from an explicit api_key.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import litellm
import stamina

from switchboard.core.errors import ProviderError
from switchboard.core.security import MAX_PROVIDER_RESPONSE_LENGTH, clamp_provider_text
from switchboard.observability.logging import get_logger
from switchboard.providers.base import ExecutionContext, ExecutionOutput
from switchboard.providers.prompts import build_system_prompt

if TYPE_CHECKING:
    from switchboard.routing.registry import ModelDescriptor

log = get_logger(__name__)

# LiteLLM exceptions that should trigger retries
RETRIABLE_EXCEPTIONS = (
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.Timeout,
    litellm.APIConnectionError,
)

DEFAULT_CONFIDENCE = 0.95
TRUNCATED_CONFIDENCE = 0.8


def payload_to_text(payload: Any) -> str:
    """Render a request payload as user message text."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str, ensure_ascii=False)


class LiteLLMExecutor:
    """ProviderExecutor backed by litellm.acompletion.

    Example:
        executor = LiteLLMExecutor(max_retries=2)
        output = await executor.execute(model, "code", "Write a parser", ExecutionContext())
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        live_probe: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            api_key: Optional API key (overrides environment variables).
            api_base: Optional API base URL for custom endpoints.
            max_retries: Attempts per call for transient errors.
            temperature: Sampling temperature.
            max_tokens: Optional completion cap.
            live_probe: Make ping() send a one-token completion instead of
                only checking that credentials are present.
        """
        self._api_key = api_key
        self._api_base = api_base
        self._max_retries = max_retries
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._live_probe = live_probe

    @staticmethod
    def model_string(model: ModelDescriptor) -> str:
        """LiteLLM model string, e.g. "openai/gpt-4-turbo"."""
        return model.provider_model or model.id

    def _build_completion_kwargs(
        self,
        model: ModelDescriptor,
        messages: list[dict[str, str]],
        *,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model_string(model),
            "messages": messages,
            "temperature": self._temperature,
        }
        limit = max_tokens if max_tokens is not None else self._max_tokens
        if limit is not None:
            kwargs["max_tokens"] = limit
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _complete(self, kwargs: dict[str, Any]) -> litellm.ModelResponse:
        @stamina.retry(
            on=RETRIABLE_EXCEPTIONS,
            attempts=self._max_retries,
            wait_initial=0.5,
            wait_max=5.0,
            wait_jitter=0.5,
        )
        async def _with_retry() -> litellm.ModelResponse:
            return await litellm.acompletion(**kwargs)

        return await _with_retry()

    async def execute(
        self,
        model: ModelDescriptor,
        task_type: str,
        payload: Any,
        context: ExecutionContext,
    ) -> ExecutionOutput:
        """Run one chat completion.

        Raises:
            ProviderError: On any LiteLLM failure after retries.
        """
        messages = [
            {"role": "system", "content": build_system_prompt(task_type, context.role_or_clearance)},
            {"role": "user", "content": payload_to_text(payload)},
        ]
        kwargs = self._build_completion_kwargs(model, messages)
        provider = model.provider.value

        log.debug(
            "provider.llm.request.started",
            model_id=model.id,
            model=kwargs["model"],
            task_type=task_type,
            request_id=context.request_id,
        )

        try:
            response = await self._complete(kwargs)
        except litellm.AuthenticationError as e:
            raise ProviderError(
                "Authentication failed - check API key",
                provider=provider,
                status_code=401,
                details={"original_exception": type(e).__name__},
            ) from e
        except RETRIABLE_EXCEPTIONS as e:
            log.warning(
                "provider.llm.retries_exhausted",
                model_id=model.id,
                max_retries=self._max_retries,
                error=str(e),
            )
            raise ProviderError.from_exception(e, provider=provider) from e
        except (litellm.BadRequestError, litellm.APIError) as e:
            raise ProviderError.from_exception(e, provider=provider) from e

        choice = response.choices[0]
        content, truncated = clamp_provider_text(choice.message.content or "")
        if truncated:
            log.warning(
                "provider.llm.response.truncated",
                model_id=model.id,
                max_length=MAX_PROVIDER_RESPONSE_LENGTH,
            )

        usage = getattr(response, "usage", None)
        finish_reason = choice.finish_reason or "stop"
        confidence = DEFAULT_CONFIDENCE
        if truncated or finish_reason == "length":
            confidence = TRUNCATED_CONFIDENCE

        return ExecutionOutput(
            content=content,
            confidence=confidence,
            metadata={
                "model": response.model or kwargs["model"],
                "finishReason": finish_reason,
                "tokensUsed": usage.total_tokens if usage else None,
                "truncated": truncated,
            },
        )

    @property
    def ping_measures_latency(self) -> bool:
        return self._live_probe

    async def ping(self, model: ModelDescriptor) -> bool:
        """Check credentials, and optionally send a one-token completion."""
        model_string = self.model_string(model)
        if not self._api_key:
            env = litellm.validate_environment(model=model_string)
            if not env.get("keys_in_environment", False):
                log.debug(
                    "provider.llm.ping.missing_keys",
                    model_id=model.id,
                    missing_keys=env.get("missing_keys", []),
                )
                return False

        if not self._live_probe:
            return True

        kwargs = self._build_completion_kwargs(
            model,
            [{"role": "user", "content": "ping"}],
            max_tokens=1,
        )
        await litellm.acompletion(**kwargs)
        return True
