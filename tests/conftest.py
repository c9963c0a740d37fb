"""Shared fixtures: in-memory provider executors and model builders."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from switchboard.config.models import HealthConfig, SwitchboardConfig, get_default_config
from switchboard.providers.base import ExecutionContext, ExecutionOutput, Provider
from switchboard.routing.registry import ModelDescriptor
from switchboard.routing.service import RoutingService

HANG = "hang"


class FakeExecutor:
    """ProviderExecutor test double.

    Attributes:
        calls: Model ids passed to execute(), in call order.
        observed_loads: (model_id, current_load) seen at execution time.
        failures: model_id -> exception raised by execute().
        health: model_id -> ping result, an exception to raise, or HANG.
        ping_measures_latency: Whether ping durations feed the latency average.
    """

    def __init__(self, *, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[str] = []
        self.contexts: list[ExecutionContext] = []
        self.observed_loads: list[tuple[str, int]] = []
        self.failures: dict[str, BaseException] = {}
        self.health: dict[str, Any] = {}
        self.pings: list[str] = []
        self.ping_measures_latency = True

    async def execute(
        self,
        model: ModelDescriptor,
        task_type: str,
        payload: Any,
        context: ExecutionContext,
    ) -> ExecutionOutput:
        self.calls.append(model.id)
        self.contexts.append(context)
        self.observed_loads.append((model.id, model.current_load))
        if self.delay:
            await asyncio.sleep(self.delay)
        failure = self.failures.get(model.id)
        if failure is not None:
            raise failure
        return ExecutionOutput(
            content={"model": model.id, "taskType": task_type, "echo": payload},
            confidence=0.9,
            metadata={"executor": "fake"},
        )

    async def ping(self, model: ModelDescriptor) -> bool:
        self.pings.append(model.id)
        result = self.health.get(model.id, True)
        if isinstance(result, BaseException):
            raise result
        if result == HANG:
            await asyncio.sleep(3600)
        return bool(result)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def fake_executors(fake_executor: FakeExecutor) -> dict[Provider, FakeExecutor]:
    return {provider: fake_executor for provider in Provider}


@pytest.fixture
def make_model() -> Callable[..., ModelDescriptor]:
    """Factory for ModelDescriptors with neutral defaults."""

    def _make(model_id: str = "m1", **overrides: Any) -> ModelDescriptor:
        fields: dict[str, Any] = {
            "id": model_id,
            "provider": Provider.OPENAI,
            "capabilities": frozenset({"analysis"}),
            "cost_per_unit": 0.00001,
            "max_capacity": 10,
            "average_latency": 1.0,
            "reliability": 0.95,
        }
        fields.update(overrides)
        fields["capabilities"] = frozenset(fields["capabilities"])
        return ModelDescriptor(**fields)

    return _make


@pytest.fixture
def default_config() -> SwitchboardConfig:
    """Stock configuration with the probe loop disabled."""
    config = get_default_config()
    return config.model_copy(update={"health": HealthConfig(enabled=False)})


@pytest.fixture
def service(
    default_config: SwitchboardConfig,
    fake_executors: dict[Provider, FakeExecutor],
) -> RoutingService:
    return RoutingService.from_config(default_config, executors=fake_executors)
