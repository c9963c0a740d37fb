"""Base protocol and models for provider executors.

Every backend, regardless of vendor, is reached through the ProviderExecutor
protocol. The Dispatcher picks an executor from a provider-id keyed map, so
adding a provider means registering one more implementation rather than
growing a conditional.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from switchboard.routing.registry import ModelDescriptor


class Provider(StrEnum):
    """Enumerated origin of a backend model."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    META = "meta"
    IRIS_CUSTOM = "iris-custom"


class Priority(StrEnum):
    """Caller-declared request priority, forwarded to providers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class ExecutionOutput:
    """Uniform result of one provider execution.

    Attributes:
        content: Provider output, text or structured JSON-compatible data.
        confidence: Provider-reported or estimated confidence in 0..1.
        metadata: Provider-specific extras (token usage, model version).
    """

    content: Any
    confidence: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Request attributes an executor may use beyond task type and payload.

    Attributes:
        priority: Caller priority.
        role_or_clearance: Caller role or clearance, used for prompt framing.
        request_id: Correlation id for logs.
    """

    priority: Priority = Priority.MEDIUM
    role_or_clearance: str | None = None
    request_id: str | None = None


class ProviderExecutor(Protocol):
    """Protocol for provider execution strategies.

    Implementations convert provider failures into exceptions (ProviderError
    preferred); the Dispatcher turns any exception or timeout into an
    ExecutionFailure and handles fallback. Implementations must not touch
    descriptor load counters or health fields.

    Example:
        executors: dict[Provider, ProviderExecutor] = {
            Provider.OPENAI: LiteLLMExecutor(),
            Provider.IRIS_CUSTOM: HTTPAgentExecutor(base_url="http://agents:3000"),
        }
    """

    async def execute(
        self,
        model: ModelDescriptor,
        task_type: str,
        payload: Any,
        context: ExecutionContext,
    ) -> ExecutionOutput:
        """Run one task against ``model`` and return its output."""
        ...

    async def ping(self, model: ModelDescriptor) -> bool:
        """Lightweight liveness check used by the health controller."""
        ...

    @property
    def ping_measures_latency(self) -> bool:
        """Whether ping() duration reflects a real provider round trip."""
        ...
