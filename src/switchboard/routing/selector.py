"""Model Selector - ranks registry entries against a TaskRequest.

Selection is a pure, synchronous function of the registry snapshot and the
request: the same inputs always give the same ranked order.

Algorithm:
1. Clearance override. A configured rule (clearance, task type) -> model id
   restricts the candidate set to that one model before any scoring.
2. Capability filter. A model matches when it declares the task type itself
   (exact) or one of the task type's configured aliases (alias).
3. Eligibility. The model must be available and below capacity.
4. Scoring. Weighted sum of five factors, each normalized to [0, 1]:

    specificity   0.30   exact match 1.0, alias match 0.6
    performance   0.25   reliability (accuracy) / relative speed (speed)
    cost          0.20   relative cheapness, only when cost is requested
    reliability   0.15   raw reliability
    load          0.10   headroom, 1 - current_load / max_capacity

5. Order. Descending score, then lower current_load, then registry order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from switchboard.core.errors import NoSuitableModelError
from switchboard.core.types import Result
from switchboard.observability.logging import get_logger
from switchboard.routing.models import TaskRequest
from switchboard.routing.registry import ModelDescriptor, ModelRegistry

log = get_logger(__name__)


WEIGHT_SPECIFICITY = 0.30
WEIGHT_PERFORMANCE = 0.25
WEIGHT_COST = 0.20
WEIGHT_RELIABILITY = 0.15
WEIGHT_LOAD = 0.10

EXACT_MATCH_SPECIFICITY = 1.0
ALIAS_MATCH_SPECIFICITY = 0.6


@dataclass(frozen=True, slots=True)
class ClearanceOverride:
    """Pins requests carrying ``clearance`` for ``task_type`` to ``model_id``."""

    clearance: str
    task_type: str
    model_id: str

    def applies_to(self, request: TaskRequest, task_tags: frozenset[str]) -> bool:
        if request.role_or_clearance is None:
            return False
        return (
            request.role_or_clearance.upper() == self.clearance.upper()
            and self.task_type in task_tags
        )


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """A candidate with its score and per-factor breakdown."""

    model: ModelDescriptor
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)

    @property
    def model_id(self) -> str:
        return self.model.id


class ModelSelector:
    """Ranks eligible models for a request.

    Example:
        selector = ModelSelector(registry, aliases={"defense": ["security"]})
        result = selector.rank(TaskRequest(task_type="defense", payload="..."))
        if result.is_ok:
            primary = result.value[0].model
    """

    def __init__(
        self,
        registry: ModelRegistry,
        *,
        aliases: Mapping[str, Iterable[str]] | None = None,
        clearance_overrides: Iterable[ClearanceOverride] = (),
    ) -> None:
        self._registry = registry
        self._aliases = {task: frozenset(tags) for task, tags in (aliases or {}).items()}
        self._overrides = tuple(clearance_overrides)

    def _task_tags(self, task_type: str) -> frozenset[str]:
        return frozenset({task_type}) | self._aliases.get(task_type, frozenset())

    def capability_match(self, model: ModelDescriptor, task_type: str) -> float:
        """Specificity of ``model`` for ``task_type``; 0.0 means no match."""
        if task_type in model.capabilities:
            return EXACT_MATCH_SPECIFICITY
        if model.capabilities & self._aliases.get(task_type, frozenset()):
            return ALIAS_MATCH_SPECIFICITY
        return 0.0

    def _pinned_model_id(self, request: TaskRequest) -> str | None:
        tags = self._task_tags(request.task_type)
        for override in self._overrides:
            if override.applies_to(request, tags):
                return override.model_id
        return None

    def _matching_models(self, request: TaskRequest) -> list[tuple[ModelDescriptor, float]]:
        pinned_id = self._pinned_model_id(request)
        if pinned_id is not None:
            pinned = self._registry.get(pinned_id)
            if pinned.is_err:
                log.warning(
                    "selector.override.unknown_model",
                    model_id=pinned_id,
                    task_type=request.task_type,
                )
                return []
            log.info(
                "selector.override.applied",
                model_id=pinned_id,
                task_type=request.task_type,
            )
            return [(pinned.value, EXACT_MATCH_SPECIFICITY)]

        matches = []
        for model in self._registry:
            specificity = self.capability_match(model, request.task_type)
            if specificity > 0:
                matches.append((model, specificity))
        return matches

    def rank(self, request: TaskRequest) -> Result[list[ScoredCandidate], NoSuitableModelError]:
        """Produce a ranked, non-empty candidate list.

        Returns:
            Ok with candidates best-first, or Err(NoSuitableModelError). The
            error's ``matched_models`` is non-empty when the task type is
            served but every matching model is unavailable or full.
        """
        matches = self._matching_models(request)
        if not matches:
            log.info("selector.rank.no_capability", task_type=request.task_type)
            return Result.err(
                NoSuitableModelError(
                    f"No model serves task type '{request.task_type}'",
                    task_type=request.task_type,
                )
            )

        eligible = [(m, s) for m, s in matches if m.available and m.has_headroom]
        if not eligible:
            matched_ids = tuple(m.id for m, _ in matches)
            log.info(
                "selector.rank.none_eligible",
                task_type=request.task_type,
                matched_models=list(matched_ids),
            )
            return Result.err(
                NoSuitableModelError(
                    f"All models serving '{request.task_type}' are unavailable or at capacity",
                    task_type=request.task_type,
                    matched_models=matched_ids,
                )
            )

        min_latency = min(m.average_latency for m, _ in eligible)
        min_cost = min(m.cost_per_unit for m, _ in eligible)
        scored = [
            self._score(model, specificity, request, min_latency=min_latency, min_cost=min_cost)
            for model, specificity in eligible
        ]
        scored.sort(
            key=lambda c: (-c.score, c.model.current_load, self._registry.index_of(c.model_id))
        )

        log.debug(
            "selector.rank.completed",
            task_type=request.task_type,
            ranking=[(c.model_id, round(c.score, 4)) for c in scored],
        )
        return Result.ok(scored)

    def _score(
        self,
        model: ModelDescriptor,
        specificity: float,
        request: TaskRequest,
        *,
        min_latency: float,
        min_cost: float,
    ) -> ScoredCandidate:
        req = request.requirements

        weighted_terms: list[tuple[float, float]] = []
        if req.wants_accuracy:
            weighted_terms.append((req.accuracy or 0.0, model.reliability))
        if req.wants_speed:
            weighted_terms.append((req.speed or 0.0, min_latency / model.average_latency))
        if weighted_terms:
            total_weight = sum(w for w, _ in weighted_terms)
            performance = sum(w * v for w, v in weighted_terms) / total_weight
        else:
            performance = 0.0

        cost = min_cost / model.cost_per_unit if req.wants_cost else 0.0
        headroom = 1.0 - model.current_load / model.max_capacity

        breakdown = {
            "specificity": specificity,
            "performance": performance,
            "cost": cost,
            "reliability": model.reliability,
            "load": headroom,
        }
        score = (
            WEIGHT_SPECIFICITY * specificity
            + WEIGHT_PERFORMANCE * performance
            + WEIGHT_COST * cost
            + WEIGHT_RELIABILITY * model.reliability
            + WEIGHT_LOAD * headroom
        )
        return ScoredCandidate(model=model, score=score, breakdown=breakdown)

    def recommend(self, task_type: str) -> list[str]:
        """Ranked model ids for ``task_type`` with default requirements.

        Empty when nothing eligible serves the task type.
        """
        result = self.rank(TaskRequest(task_type=task_type, payload=None))
        if result.is_err:
            return []
        return [candidate.model_id for candidate in result.value]
