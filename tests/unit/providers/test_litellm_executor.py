"""Unit tests for switchboard.providers.litellm_executor module.

Tests cover:
- Message construction and payload rendering
- Provider credentials and model strings
- Response clamping
- Error mapping and stamina retries
- Credential-only and live liveness checks
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import litellm
import pytest

from switchboard.core.errors import ProviderError
from switchboard.core.security import MAX_PROVIDER_RESPONSE_LENGTH
from switchboard.providers.base import ExecutionContext, Provider
from switchboard.providers.litellm_executor import (
    DEFAULT_CONFIDENCE,
    TRUNCATED_CONFIDENCE,
    LiteLLMExecutor,
    payload_to_text,
)
from switchboard.routing.registry import ModelDescriptor


def create_mock_response(
    content: str = "Hello!",
    model: str = "gpt-4-turbo",
    total_tokens: int = 30,
    finish_reason: str = "stop",
) -> MagicMock:
    """Create a mock LiteLLM response."""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_response.choices[0].finish_reason = finish_reason
    mock_response.model = model
    mock_response.usage = MagicMock()
    mock_response.usage.total_tokens = total_tokens
    return mock_response


@pytest.fixture
def model() -> ModelDescriptor:
    return ModelDescriptor(
        id="gpt-4-turbo",
        provider=Provider.OPENAI,
        capabilities=frozenset({"code"}),
        cost_per_unit=0.00003,
        max_capacity=10,
        average_latency=2.1,
        reliability=0.98,
        provider_model="openai/gpt-4-turbo",
    )


class TestPayloadToText:
    """Test payload rendering for the user message."""
    def test_string_passthrough(self) -> None:
        """Test string payloads are sent as-is."""
        assert payload_to_text("hello") == "hello"

    def test_structured_payload_serialized(self) -> None:
        """Test structured payloads are serialized to JSON."""
        assert payload_to_text({"symptoms": ["fever"]}) == '{"symptoms": ["fever"]}'


class TestExecute:
    """Test successful executions."""

    async def test_builds_messages(self, model: ModelDescriptor) -> None:
        """Test the request carries system and user messages."""
        executor = LiteLLMExecutor()

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response()

            output = await executor.execute(
                model, "code_generation", "Write a parser", ExecutionContext(role_or_clearance="developer")
            )

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4-turbo"
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "technical accuracy" in system["content"]
        assert "well-documented code" in system["content"]
        assert user == {"role": "user", "content": "Write a parser"}
        assert output.content == "Hello!"
        assert output.confidence == DEFAULT_CONFIDENCE
        assert output.metadata["tokensUsed"] == 30

    async def test_explicit_api_key_and_base(self, model: ModelDescriptor) -> None:
        """Test an explicit API key and base URL are forwarded."""
        executor = LiteLLMExecutor(api_key="sk-test", api_base="http://proxy:4000")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response()
            await executor.execute(model, "code", "x", ExecutionContext())

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "http://proxy:4000"

    async def test_oversized_response_truncated(self, model: ModelDescriptor) -> None:
        """Test oversized responses are clamped with lower confidence."""
        executor = LiteLLMExecutor()
        huge = "z" * (MAX_PROVIDER_RESPONSE_LENGTH + 10)

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response(content=huge)
            output = await executor.execute(model, "code", "x", ExecutionContext())

        assert len(output.content) == MAX_PROVIDER_RESPONSE_LENGTH
        assert output.metadata["truncated"] is True
        assert output.confidence == TRUNCATED_CONFIDENCE

    def test_model_string_defaults_to_id(self, model: ModelDescriptor) -> None:
        """Test the model id is used when no provider model is set."""
        model.provider_model = None

        assert LiteLLMExecutor.model_string(model) == "gpt-4-turbo"


class TestExecuteFailures:
    """Failures surface as ProviderError."""

    async def test_authentication_error(self, model: ModelDescriptor) -> None:
        """Test authentication failures raise ProviderError."""
        executor = LiteLLMExecutor()

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.AuthenticationError(
                message="Invalid API key",
                llm_provider="openai",
                model="gpt-4-turbo",
            )
            with pytest.raises(ProviderError) as exc_info:
                await executor.execute(model, "code", "x", ExecutionContext())

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "openai"

    async def test_retries_then_succeeds(self, model: ModelDescriptor) -> None:
        """Test transient errors are retried."""
        executor = LiteLLMExecutor(max_retries=2)
        call_count = 0

        async def side_effect(**kwargs: Any) -> MagicMock:
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise litellm.RateLimitError(
                    message="Rate limited",
                    llm_provider="openai",
                    model="gpt-4-turbo",
                )
            return create_mock_response()

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = side_effect
            output = await executor.execute(model, "code", "x", ExecutionContext())

        assert output.content == "Hello!"
        assert call_count == 2

    async def test_retries_exhausted(self, model: ModelDescriptor) -> None:
        """Test a ProviderError is raised once retries run out."""
        executor = LiteLLMExecutor(max_retries=1)

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = litellm.ServiceUnavailableError(
                message="Service unavailable",
                llm_provider="openai",
                model="gpt-4-turbo",
            )
            with pytest.raises(ProviderError):
                await executor.execute(model, "code", "x", ExecutionContext())

        assert mock_acompletion.call_count == 1


class TestPing:
    """Test liveness checks."""

    async def test_missing_keys_is_unhealthy(self, model: ModelDescriptor) -> None:
        """Test missing credentials report the model unhealthy."""
        executor = LiteLLMExecutor()

        with patch(
            "litellm.validate_environment",
            return_value={"keys_in_environment": False, "missing_keys": ["OPENAI_API_KEY"]},
        ):
            assert await executor.ping(model) is False

    async def test_keys_present_is_healthy(self, model: ModelDescriptor) -> None:
        """Test present credentials report the model healthy."""
        executor = LiteLLMExecutor()

        with patch(
            "litellm.validate_environment",
            return_value={"keys_in_environment": True, "missing_keys": []},
        ):
            assert await executor.ping(model) is True

    async def test_live_probe_sends_one_token_completion(self, model: ModelDescriptor) -> None:
        """Test live pings send a one-token completion."""
        executor = LiteLLMExecutor(api_key="sk-test", live_probe=True)

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_response()
            assert await executor.ping(model) is True

        assert mock_acompletion.call_args.kwargs["max_tokens"] == 1

    def test_only_live_pings_measure_latency(self) -> None:
        """Test credential-only pings are not treated as round trips."""
        assert LiteLLMExecutor().ping_measures_latency is False
        assert LiteLLMExecutor(live_probe=True).ping_measures_latency is True
