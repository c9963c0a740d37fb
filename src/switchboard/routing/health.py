"""Fallback / Health Controller - keeps availability and reliability current.

Each model gets a fixed-capacity ring buffer of HealthSamples. After every
probe the moving average of the window's success indicator decides the
model's state:

    average >= 0.9          HEALTHY    available
    0.5 <= average < 0.9    DEGRADED   available, ranked lower via reliability
    average < 0.5           UNHEALTHY  unavailable

There are no manual transitions; state is derived from samples only. The
controller is the only writer of ``available``, ``reliability`` and
``average_latency`` on descriptors.

Probes are isolated: a probe that raises or times out is recorded as an
unhealthy sample for that model and never stops the others.

Only pings that make a provider round trip feed the latency average; a
credentials-only check would otherwise drag it towards zero.

Usage:
    controller = HealthController(registry, executors, interval_seconds=30)
    controller.start()          # background task
    ...
    await controller.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
import time

from switchboard.core.errors import HealthProbeError, ModelNotFoundError
from switchboard.core.types import Result
from switchboard.observability.logging import get_logger
from switchboard.providers.base import Provider, ProviderExecutor
from switchboard.routing.registry import ModelDescriptor, ModelRegistry

log = get_logger(__name__)

HEALTHY_THRESHOLD = 0.9
DEGRADED_THRESHOLD = 0.5
DEFAULT_WINDOW_SIZE = 10
TREND_SPAN = 3
TREND_DELTA = 0.05


class HealthState(StrEnum):
    """Derived health state of a model."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def is_available(self) -> bool:
        return self is not HealthState.UNHEALTHY


class Trend(StrEnum):
    """Direction of recent health samples."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


def classify(moving_average: float) -> HealthState:
    """Map a moving average to a HealthState."""
    if moving_average >= HEALTHY_THRESHOLD:
        return HealthState.HEALTHY
    if moving_average >= DEGRADED_THRESHOLD:
        return HealthState.DEGRADED
    return HealthState.UNHEALTHY


@dataclass(frozen=True, slots=True)
class HealthSample:
    """One reliability observation.

    Attributes:
        model_id: Probed model.
        timestamp: When the probe finished (UTC).
        healthy: Probe outcome.
        response_time: Probe duration in seconds, or None when the ping made
            no provider round trip (e.g. a credentials-only check).
    """

    model_id: str
    timestamp: datetime
    healthy: bool
    response_time: float | None

    @property
    def value(self) -> float:
        return 1.0 if self.healthy else 0.0


class SampleWindow:
    """Fixed-capacity ring buffer of HealthSamples.

    Slots are overwritten oldest-first, so memory stays bounded regardless
    of uptime.
    """

    __slots__ = ("_capacity", "_count", "_next", "_slots")

    def __init__(self, capacity: int = DEFAULT_WINDOW_SIZE) -> None:
        if capacity < 1:
            msg = "capacity must be >= 1"
            raise ValueError(msg)
        self._capacity = capacity
        self._slots: list[HealthSample | None] = [None] * capacity
        self._next = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._count

    def append(self, sample: HealthSample) -> None:
        self._slots[self._next] = sample
        self._next = (self._next + 1) % self._capacity
        self._count = min(self._count + 1, self._capacity)

    def samples(self) -> list[HealthSample]:
        """Samples oldest to newest."""
        if self._count < self._capacity:
            ordered = self._slots[: self._count]
        else:
            ordered = self._slots[self._next :] + self._slots[: self._next]
        return [s for s in ordered if s is not None]

    @property
    def latest(self) -> HealthSample | None:
        if self._count == 0:
            return None
        return self._slots[(self._next - 1) % self._capacity]

    def moving_average(self) -> float | None:
        """Mean success indicator, or None while empty."""
        if self._count == 0:
            return None
        return sum(s.value for s in self.samples()) / self._count

    def trend(self) -> Trend:
        """Compare the newest TREND_SPAN samples with the ones before them.

        Stable until there is at least one older sample to compare against.
        """
        values = [s.value for s in self.samples()]
        if len(values) <= TREND_SPAN:
            return Trend.STABLE

        recent = values[-TREND_SPAN:]
        older = values[-2 * TREND_SPAN : -TREND_SPAN]
        recent_avg = sum(recent) / len(recent)
        older_avg = sum(older) / len(older)

        if recent_avg > older_avg + TREND_DELTA:
            return Trend.IMPROVING
        if recent_avg < older_avg - TREND_DELTA:
            return Trend.DECLINING
        return Trend.STABLE


@dataclass(frozen=True, slots=True)
class HealthSnapshot:
    """Point-in-time health view of one model, as served by GET /health."""

    model_id: str
    state: HealthState
    trend: Trend
    available: bool
    reliability: float
    current_load: int
    max_capacity: int
    moving_average: float | None
    sample_count: int
    last_checked: datetime | None

    def to_dict(self) -> dict[str, object]:
        return {
            "available": self.available,
            "reliability": round(self.reliability, 4),
            "currentLoad": self.current_load,
            "maxCapacity": self.max_capacity,
            "trend": self.trend.value,
            "state": self.state.value,
            "samples": self.sample_count,
            "lastChecked": self.last_checked.isoformat() if self.last_checked else None,
        }


class HealthController:
    """Periodic prober and owner of health-derived descriptor fields."""

    def __init__(
        self,
        registry: ModelRegistry,
        executors: Mapping[Provider, ProviderExecutor],
        *,
        interval_seconds: float = 30.0,
        window_size: int = DEFAULT_WINDOW_SIZE,
        probe_timeout_seconds: float = 5.0,
        latency_smoothing: float = 0.2,
    ) -> None:
        self._registry = registry
        self._executors = dict(executors)
        self._interval = interval_seconds
        self._probe_timeout = probe_timeout_seconds
        self._smoothing = latency_smoothing
        self._windows = {model.id: SampleWindow(window_size) for model in registry}
        self._task: asyncio.Task[None] | None = None
        self._cycles = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cycles_completed(self) -> int:
        return self._cycles

    def window(self, model_id: str) -> SampleWindow | None:
        return self._windows.get(model_id)

    async def probe(self, model: ModelDescriptor) -> HealthSample:
        """Ping one model. Never raises; failures become unhealthy samples."""
        started = time.perf_counter()
        healthy = False
        measured = False
        executor = self._executors.get(model.provider)
        try:
            if executor is None:
                raise HealthProbeError(
                    f"No executor registered for provider '{model.provider.value}'",
                    model_id=model.id,
                )
            async with asyncio.timeout(self._probe_timeout):
                healthy = bool(await executor.ping(model))
            measured = executor.ping_measures_latency
        except TimeoutError:
            log.warning(
                "health.probe.failed",
                model_id=model.id,
                kind=HealthProbeError.kind,
                reason="timeout",
                timeout_seconds=self._probe_timeout,
            )
        except Exception as e:
            log.warning(
                "health.probe.failed",
                model_id=model.id,
                kind=HealthProbeError.kind,
                reason=type(e).__name__,
                error=str(e),
            )

        return HealthSample(
            model_id=model.id,
            timestamp=datetime.now(UTC),
            healthy=healthy,
            response_time=time.perf_counter() - started if measured else None,
        )

    def record(self, sample: HealthSample) -> HealthState:
        """Add a sample and update the descriptor from the new moving average."""
        descriptor_result = self._registry.get(sample.model_id)
        if descriptor_result.is_err:
            log.warning("health.sample.unknown_model", model_id=sample.model_id)
            return HealthState.UNHEALTHY
        model = descriptor_result.value

        window = self._windows.setdefault(model.id, SampleWindow())
        previous = classify(window.moving_average()) if len(window) else None
        window.append(sample)

        average = window.moving_average() or 0.0
        state = classify(average)

        latency = None
        if sample.healthy and sample.response_time is not None:
            latency = (1 - self._smoothing) * model.average_latency + self._smoothing * sample.response_time
        model.apply_health(
            available=state.is_available,
            reliability=average,
            average_latency=latency,
        )

        if previous is not None and previous != state:
            log.info(
                "health.state.changed",
                model_id=model.id,
                from_state=previous.value,
                to_state=state.value,
                moving_average=round(average, 3),
            )
        return state

    async def probe_all(self) -> list[HealthSample]:
        """Probe every model concurrently and record the samples."""
        models = self._registry.all()
        samples = await asyncio.gather(*(self.probe(model) for model in models))
        for sample in samples:
            self.record(sample)
        self._cycles += 1
        log.debug(
            "health.cycle.completed",
            probed=len(samples),
            unhealthy=[s.model_id for s in samples if not s.healthy],
        )
        return list(samples)

    def start(self) -> None:
        """Start the periodic probe loop as a background task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name="switchboard-health")
        log.info("health.loop.started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the probe loop and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("health.loop.stopped", cycles=self._cycles)

    async def _loop(self) -> None:
        while True:
            try:
                await self.probe_all()
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                log.error("health.cycle.error", error=str(e))
                await asyncio.sleep(self._interval)

    def snapshot(self, model_id: str) -> Result[HealthSnapshot, ModelNotFoundError]:
        """Health view of one model."""
        descriptor_result = self._registry.get(model_id)
        if descriptor_result.is_err:
            return Result.err(descriptor_result.error)
        model = descriptor_result.value

        window = self._windows.get(model_id)
        average = window.moving_average() if window else None
        if average is None:
            state = HealthState.HEALTHY if model.available else HealthState.UNHEALTHY
        else:
            state = classify(average)
        latest = window.latest if window else None

        return Result.ok(
            HealthSnapshot(
                model_id=model.id,
                state=state,
                trend=window.trend() if window else Trend.STABLE,
                available=model.available,
                reliability=model.reliability,
                current_load=model.current_load,
                max_capacity=model.max_capacity,
                moving_average=average,
                sample_count=len(window) if window else 0,
                last_checked=latest.timestamp if latest else None,
            )
        )

    def report(self) -> dict[str, HealthSnapshot]:
        """Health view of every model, in registry order."""
        return {model_id: self.snapshot(model_id).value for model_id in self._registry.ids()}

    def fallback_for(
        self,
        failed_id: str,
        ranked: Sequence[ModelDescriptor],
    ) -> ModelDescriptor | None:
        """Next eligible model after ``failed_id`` in a ranked list.

        Fallback order is the selector's ranking; there is no fixed
        per-model fallback table.
        """
        seen_failed = False
        for model in ranked:
            if model.id == failed_id:
                seen_failed = True
                continue
            if seen_failed and model.available and model.has_headroom:
                return model
        return None
