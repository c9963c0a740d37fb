"""Unit tests for switchboard.routing.service module.

Tests cover:
- Routing scenarios over a small registry
- Concurrent admission against capacity
- Health-driven fallback
- Construction from config
"""

import asyncio
from collections.abc import Callable

from switchboard.config.models import HealthConfig, ModelSpec, SwitchboardConfig
from switchboard.core.errors import AllModelsFailedError, NoSuitableModelError
from switchboard.providers.base import Provider
from switchboard.providers.http_agent import HTTPAgentExecutor
from switchboard.providers.litellm_executor import LiteLLMExecutor
from switchboard.routing.models import TaskRequest
from switchboard.routing.service import RoutingService, build_executors


def _spec(model_id: str, capabilities: list[str], reliability: float, **extra: object) -> ModelSpec:
    return ModelSpec.model_validate(
        {
            "id": model_id,
            "provider": "openai",
            "capabilities": capabilities,
            "cost_per_unit": 0.00001,
            "max_capacity": 10,
            "average_latency": 1.0,
            "reliability": reliability,
            **extra,
        }
    )


def _config(*specs: ModelSpec) -> SwitchboardConfig:
    return SwitchboardConfig(models=list(specs), health=HealthConfig(enabled=False))


def _medical_service(fake_executors, **m1_extra: object) -> RoutingService:
    config = _config(
        _spec("m1", ["medical"], 0.99, **m1_extra),
        _spec("m2", ["medical", "general"], 0.9),
    )
    return RoutingService.from_config(config, executors=fake_executors)


class TestRoutingScenarios:
    """End-to-end routing over a small registry."""

    async def test_most_reliable_match_selected(self, fake_executors) -> None:
        """Test the most reliable matching model is selected."""
        service = _medical_service(fake_executors)

        result = await service.route(TaskRequest(task_type="medical", payload="fever"))

        assert result.is_ok
        assert result.value.model_id == "m1"

    async def test_unavailable_primary_routes_to_next(self, fake_executors) -> None:
        """Test an unavailable primary routes to the next match."""
        service = _medical_service(fake_executors, available=False)

        result = await service.route(TaskRequest(task_type="medical", payload="fever"))

        assert result.is_ok
        assert result.value.model_id == "m2"

    async def test_all_matches_unavailable_is_all_models_failed(self, fake_executors) -> None:
        """Test unavailable matches give AllModelsFailed with ModelUnavailable attempts."""
        service = _medical_service(fake_executors, available=False)
        service.registry.get("m2").value.apply_health(available=False, reliability=0.1)

        result = await service.route(TaskRequest(task_type="medical", payload="fever"))

        assert result.is_err
        assert isinstance(result.error, AllModelsFailedError)
        assert [(a.model_id, a.error_kind) for a in result.error.attempts] == [
            ("m1", "ModelUnavailable"),
            ("m2", "ModelUnavailable"),
        ]

    async def test_unknown_task_type_is_no_suitable_model(self, fake_executors) -> None:
        """Test an unserved task type gives NoSuitableModel."""
        service = _medical_service(fake_executors)

        result = await service.route(TaskRequest(task_type="quantum-foo", payload="?"))

        assert result.is_err
        assert isinstance(result.error, NoSuitableModelError)

    async def test_primary_and_fallback_fail(self, fake_executors, fake_executor) -> None:
        """Test two failures give AllModelsFailed with both attempts."""
        fake_executor.failures = {"m1": RuntimeError("down"), "m2": RuntimeError("down")}
        service = _medical_service(fake_executors)

        result = await service.route(TaskRequest(task_type="medical", payload="fever"))

        assert result.is_err
        assert isinstance(result.error, AllModelsFailedError)
        assert len(result.error.attempts) == 2

    async def test_fallback_skips_models_marked_down_after_selection(
        self, fake_executors, fake_executor
    ) -> None:
        """Test fallback comes from health state, passing over a model marked down mid-request."""
        config = _config(
            _spec("m1", ["medical"], 0.99),
            _spec("m2", ["medical"], 0.95),
            _spec("m3", ["medical"], 0.9),
        )
        service = RoutingService.from_config(config, executors=fake_executors)
        fake_executor.failures = {"m1": RuntimeError("down")}
        request = TaskRequest(task_type="medical", payload="fever")
        candidates = [c.model for c in service.selector.rank(request).value]
        service.registry.get("m2").value.available = False

        result = await service.dispatcher.dispatch(request, candidates)

        assert result.model_id == "m3"
        assert fake_executor.calls == ["m1", "m3"]
        assert [a.error_kind for a in result.attempts] == ["ExecutionFailure"]


class TestConcurrentAdmission:
    """Concurrent requests never exceed a model's capacity."""

    async def test_fifteen_requests_against_capacity_ten(self, fake_executors, fake_executor) -> None:
        """Test fifteen concurrent requests admit only ten."""
        fake_executor.delay = 0.05
        service = RoutingService.from_config(
            _config(_spec("m1", ["medical"], 0.99)), executors=fake_executors
        )

        results = await asyncio.gather(
            *(service.route(TaskRequest(task_type="medical", payload=i)) for i in range(15))
        )

        succeeded = [r for r in results if r.is_ok]
        rejected = [r for r in results if r.is_err]
        assert len(succeeded) == 10
        assert len(rejected) == 5
        assert all(r.error.attempts[0].error_kind == "ModelUnavailable" for r in rejected)
        assert max(load for _, load in fake_executor.observed_loads) == 10
        assert service.registry.get("m1").value.current_load == 0

    async def test_overflow_spreads_across_models(self, fake_executors, fake_executor) -> None:
        """Test overflow moves to the next model without exceeding capacity."""
        fake_executor.delay = 0.05
        service = _medical_service(fake_executors)

        results = await asyncio.gather(
            *(service.route(TaskRequest(task_type="medical", payload=i)) for i in range(15))
        )

        assert all(r.is_ok for r in results)
        used = {r.value.model_id for r in results}
        assert used == {"m1", "m2"}
        for model_id in ("m1", "m2"):
            loads = [load for mid, load in fake_executor.observed_loads if mid == model_id]
            assert max(loads) <= 10


class TestServiceConstruction:
    """Test from_config wiring."""

    def test_independent_instances(self, default_config, fake_executors) -> None:
        """Test services built from one config share no state."""
        first = RoutingService.from_config(default_config, executors=fake_executors)
        second = RoutingService.from_config(default_config, executors=fake_executors)

        first.registry.get("gpt-4-turbo").value.try_acquire()

        assert second.registry.get("gpt-4-turbo").value.current_load == 0

    def test_provider_timeouts(self, service: RoutingService) -> None:
        """Test provider timeouts reach the dispatcher."""
        assert service.dispatcher.timeout_for(Provider.META) == 45.0
        assert service.dispatcher.timeout_for(Provider.IRIS_CUSTOM) == 15.0
        assert service.dispatcher.timeout_for(Provider.OPENAI) == 30.0

    def test_build_executors(self, default_config) -> None:
        """Test each provider gets the right executor type."""
        executors = build_executors(default_config)

        assert isinstance(executors[Provider.OPENAI], LiteLLMExecutor)
        assert isinstance(executors[Provider.META], LiteLLMExecutor)
        assert isinstance(executors[Provider.IRIS_CUSTOM], HTTPAgentExecutor)

    def test_model_statistics(self, service: RoutingService) -> None:
        """Test statistics are reported per model in registry order."""
        stats = service.model_statistics()

        assert list(stats) == list(service.registry.ids())
        assert stats["iris-medical"]["specialty"] == "healthcare"
        assert stats["iris-medical"]["utilizationRate"] == 0.0

    def test_health_report(self, service: RoutingService) -> None:
        """Test the health report covers every model."""
        report = service.health_report()

        assert set(report) == set(service.registry.ids())

    async def test_start_respects_disabled_health(self, service: RoutingService) -> None:
        """Test start does not launch probes when health is disabled."""
        await service.start()

        assert service.health.is_running is False
        await service.stop()
