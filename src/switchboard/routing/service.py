"""Routing Service - composition root for one routing deployment.

Owns exactly one registry, selector, dispatcher and health controller, all
built from a SwitchboardConfig. There is no module-level instance; the HTTP
app and the CLI construct their own.

Usage:
    service = RoutingService.from_config(load_config_or_default())
    await service.start()

    result = await service.route(TaskRequest(task_type="medical", payload="..."))
    if result.is_ok:
        print(result.value.model_id, result.value.output)
    else:
        print(result.error.kind)

    await service.stop()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from switchboard.config.models import SwitchboardConfig
from switchboard.core.errors import AllModelsFailedError, ModelUnavailableError, RoutingError
from switchboard.core.types import Result
from switchboard.observability.logging import bind_context, get_logger, unbind_context
from switchboard.providers.base import Provider, ProviderExecutor
from switchboard.providers.http_agent import DEFAULT_HEALTH_PATH, HTTPAgentExecutor
from switchboard.providers.litellm_executor import LiteLLMExecutor
from switchboard.routing.dispatcher import Dispatcher
from switchboard.routing.health import HealthController, HealthSnapshot
from switchboard.routing.models import AttemptRecord, DispatchResult, TaskRequest
from switchboard.routing.registry import ModelRegistry
from switchboard.routing.selector import ClearanceOverride, ModelSelector

log = get_logger(__name__)

LLM_PROVIDERS = (Provider.OPENAI, Provider.ANTHROPIC, Provider.GOOGLE, Provider.META)


def build_executors(config: SwitchboardConfig) -> dict[Provider, ProviderExecutor]:
    """Default provider -> executor map for ``config``."""
    executors: dict[Provider, ProviderExecutor] = {}
    for provider in LLM_PROVIDERS:
        settings = config.provider_settings(provider)
        executors[provider] = LiteLLMExecutor(
            api_base=settings.base_url,
            max_retries=settings.max_retries,
        )

    agent_settings = config.provider_settings(Provider.IRIS_CUSTOM)
    executors[Provider.IRIS_CUSTOM] = HTTPAgentExecutor(
        agent_settings.base_url or "http://localhost:3000",
        health_path=agent_settings.health_path or DEFAULT_HEALTH_PATH,
        timeout=agent_settings.timeout_seconds,
    )
    return executors


class RoutingService:
    """Selects, dispatches and reports for one registry."""

    def __init__(
        self,
        registry: ModelRegistry,
        selector: ModelSelector,
        dispatcher: Dispatcher,
        health: HealthController,
        *,
        health_enabled: bool = True,
    ) -> None:
        self.registry = registry
        self.selector = selector
        self.dispatcher = dispatcher
        self.health = health
        self._health_enabled = health_enabled

    @classmethod
    def from_config(
        cls,
        config: SwitchboardConfig,
        executors: Mapping[Provider, ProviderExecutor] | None = None,
    ) -> RoutingService:
        """Build a service from configuration.

        Args:
            config: Validated configuration.
            executors: Provider executor map; defaults to build_executors(config).
        """
        if executors is None:
            executors = build_executors(config)

        registry = ModelRegistry.from_specs(config.models)
        selector = ModelSelector(
            registry,
            aliases=config.routing.aliases,
            clearance_overrides=[
                ClearanceOverride(
                    clearance=rule.clearance,
                    task_type=rule.task_type,
                    model_id=rule.model_id,
                )
                for rule in config.routing.clearance_rules
            ],
        )
        health = HealthController(
            registry,
            executors,
            interval_seconds=config.health.interval_seconds,
            window_size=config.health.window_size,
            probe_timeout_seconds=config.health.probe_timeout_seconds,
            latency_smoothing=config.health.latency_smoothing,
        )
        dispatcher = Dispatcher(
            executors,
            timeouts={provider: config.provider_settings(provider).timeout_seconds for provider in Provider},
            fallback=health.fallback_for,
        )
        return cls(registry, selector, dispatcher, health, health_enabled=config.health.enabled)

    async def start(self) -> None:
        """Start background health probing if enabled."""
        if self._health_enabled:
            self.health.start()

    async def stop(self) -> None:
        """Stop background work and close owned provider clients."""
        await self.health.stop()
        closed: set[int] = set()
        for provider in Provider:
            executor = self.dispatcher.executor_for(provider)
            if executor is None or id(executor) in closed:
                continue
            closed.add(id(executor))
            aclose = getattr(executor, "aclose", None)
            if aclose is not None:
                await aclose()

    async def route(self, request: TaskRequest) -> Result[DispatchResult, RoutingError]:
        """Select candidates for ``request`` and dispatch it.

        Returns:
            Ok(DispatchResult) on success. Err(NoSuitableModelError) when no
            model serves the task type. Err(AllModelsFailedError) when
            matching models exist but none produced a result, including the
            case where every match was unavailable or full before dispatch.
        """
        bind_context(request_id=request.request_id)
        try:
            log.info(
                "routing.request.received",
                task_type=request.task_type,
                priority=request.priority.value,
                allow_fallback=request.allow_fallback,
            )
            ranking = self.selector.rank(request)
            if ranking.is_err:
                error = ranking.error
                if not error.has_capability_match:
                    return Result.err(error)
                attempts = tuple(
                    AttemptRecord.from_error(
                        ModelUnavailableError("model unavailable or at capacity", model_id=model_id)
                    )
                    for model_id in error.matched_models
                )
                return Result.err(
                    AllModelsFailedError(
                        f"No matching model for '{request.task_type}' is available",
                        attempts=attempts,
                    )
                )

            candidates = [candidate.model for candidate in ranking.value]
            result = await self.dispatcher.dispatch(request, candidates)
            if not result.success:
                return Result.err(
                    AllModelsFailedError(
                        f"All attempted models failed for '{request.task_type}'",
                        model_id=result.model_id,
                        attempts=result.attempts,
                    )
                )
            return Result.ok(result)
        finally:
            unbind_context("request_id")

    def recommend(self, task_type: str) -> list[str]:
        """Ranked model ids for ``task_type`` without dispatching."""
        return self.selector.recommend(task_type)

    def health_report(self) -> dict[str, HealthSnapshot]:
        """Per-model health snapshots."""
        return self.health.report()

    def model_statistics(self) -> dict[str, dict[str, Any]]:
        """Registry statistics per model, in registry order."""
        return {
            model.id: {
                "name": model.name,
                "provider": model.provider.value,
                "specialty": model.specialty,
                "capabilities": sorted(model.capabilities),
                "currentLoad": model.current_load,
                "maxCapacity": model.max_capacity,
                "utilizationRate": round(model.utilization * 100, 2),
                "reliability": round(model.reliability, 4),
                "averageLatency": round(model.average_latency, 3),
                "costPerUnit": model.cost_per_unit,
                "available": model.available,
            }
            for model in self.registry
        }
