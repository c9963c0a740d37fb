"""Model Registry - the static catalog of backend models.

The registry is built once from configuration and never shrinks while the
process runs; models are marked unavailable rather than removed. It holds no
routing logic. Each ModelDescriptor owns its mutable runtime fields and the
lock that guards them, so load accounting stays atomic across concurrent
dispatches and the health loop.

Usage:
    registry = ModelRegistry.from_specs(config.models)

    result = registry.get("iris-medical")
    if result.is_ok:
        model = result.value

    for model in registry.with_capability("medical"):
        print(model.id, model.current_load)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
import threading
from typing import TYPE_CHECKING

from switchboard.core.errors import ConfigError, ModelNotFoundError
from switchboard.core.types import Result
from switchboard.observability.logging import get_logger
from switchboard.providers.base import Provider

if TYPE_CHECKING:
    from switchboard.config.models import ModelSpec

log = get_logger(__name__)


@dataclass(eq=False)
class ModelDescriptor:
    """One callable backend and its live routing state.

    Static attributes come from configuration. ``reliability``,
    ``available`` and ``average_latency`` are written by the health
    controller only; ``current_load`` is changed only through
    try_acquire()/release().

    Invariant: 0 <= current_load <= max_capacity.
    """

    id: str
    provider: Provider
    capabilities: frozenset[str]
    cost_per_unit: float
    max_capacity: int
    average_latency: float
    reliability: float
    available: bool = True
    name: str = ""
    specialty: str = ""
    provider_model: str | None = None
    endpoint: str | None = None
    _current_load: int = field(default=0, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def from_spec(cls, spec: ModelSpec) -> ModelDescriptor:
        return cls(
            id=spec.id,
            provider=Provider(spec.provider),
            capabilities=frozenset(spec.capabilities),
            cost_per_unit=spec.cost_per_unit,
            max_capacity=spec.max_capacity,
            average_latency=spec.average_latency,
            reliability=spec.reliability,
            available=spec.available,
            name=spec.name or spec.id,
            specialty=spec.specialty,
            provider_model=spec.provider_model,
            endpoint=spec.endpoint,
        )

    @property
    def current_load(self) -> int:
        """Number of in-flight dispatches."""
        return self._current_load

    @property
    def has_headroom(self) -> bool:
        """True while another dispatch could be admitted."""
        return self._current_load < self.max_capacity

    @property
    def utilization(self) -> float:
        """Current load as a fraction of capacity."""
        return self._current_load / self.max_capacity

    def try_acquire(self) -> bool:
        """Atomically admit one dispatch if capacity allows.

        Returns:
            True if a slot was taken; the caller must release() it exactly once.
        """
        with self._lock:
            if self._current_load >= self.max_capacity:
                return False
            self._current_load += 1
            return True

    def release(self) -> None:
        """Return a slot taken by try_acquire().

        Raises:
            RuntimeError: If no slot is held (unbalanced release is a bug).
        """
        with self._lock:
            if self._current_load <= 0:
                msg = f"release() without matching try_acquire() on model {self.id}"
                raise RuntimeError(msg)
            self._current_load -= 1

    def apply_health(
        self,
        *,
        available: bool,
        reliability: float,
        average_latency: float | None = None,
    ) -> None:
        """Update health-derived fields in one step."""
        with self._lock:
            self.available = available
            self.reliability = reliability
            if average_latency is not None:
                self.average_latency = average_latency


class ModelRegistry:
    """Ordered, immutable-membership catalog of ModelDescriptors.

    Insertion order is preserved and used by the selector as the final
    tie-break, which keeps ranking reproducible.
    """

    def __init__(self, descriptors: Iterable[ModelDescriptor] = ()) -> None:
        self._models: dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._models:
                raise ConfigError(
                    f"Duplicate model id: {descriptor.id}",
                    config_key="models",
                    details={"model_id": descriptor.id},
                )
            self._models[descriptor.id] = descriptor
        self._order = {model_id: i for i, model_id in enumerate(self._models)}

    @classmethod
    def from_specs(cls, specs: Iterable[ModelSpec]) -> ModelRegistry:
        registry = cls(ModelDescriptor.from_spec(spec) for spec in specs)
        log.info("registry.models.loaded", model_count=len(registry), models=list(registry.ids()))
        return registry

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models.values())

    def ids(self) -> tuple[str, ...]:
        return tuple(self._models)

    def get(self, model_id: str) -> Result[ModelDescriptor, ModelNotFoundError]:
        """Look up a model by id.

        An unknown id is an expected, non-fatal condition: callers fall
        through to selection over the remaining set.
        """
        descriptor = self._models.get(model_id)
        if descriptor is None:
            return Result.err(
                ModelNotFoundError(
                    f"Model '{model_id}' is not registered",
                    model_id=model_id,
                    details={"known_models": list(self._models)},
                )
            )
        return Result.ok(descriptor)

    def all(self) -> list[ModelDescriptor]:
        """All models in insertion order."""
        return list(self._models.values())

    def with_capability(self, tag: str) -> list[ModelDescriptor]:
        """Models that declare ``tag``, in insertion order."""
        return [model for model in self._models.values() if tag in model.capabilities]

    def index_of(self, model_id: str) -> int:
        """Insertion position of ``model_id``; unknown ids sort last."""
        return self._order.get(model_id, len(self._order))
