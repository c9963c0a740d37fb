"""Dispatcher - executes a request against ranked candidates.

Each attempt takes one load slot on the chosen model, calls the provider
executor registered for the model's provider under that provider's timeout,
and returns the slot on every exit path (success, error, timeout,
cancellation).

Retry policy:
- A model that refuses admission (full, or marked unavailable since
  selection) is skipped as ModelUnavailable. Skips are not provider calls.
- At most MAX_EXECUTION_ATTEMPTS provider calls per request: the primary
  and one fallback. A request whose primary and first fallback both fail
  never reaches a third model.
- With allow_fallback=False only the first candidate is considered.
- The model tried after a skip or failure comes from the fallback supplier
  (the health controller in a RoutingService), or the next ranked model.

The Dispatcher reads ``available`` and load but never writes health fields.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
import json
import math
import time
from typing import Any

from switchboard.core.errors import (
    AllModelsFailedError,
    ExecutionFailureError,
    ModelUnavailableError,
    ProviderError,
)
from switchboard.core.types import Result
from switchboard.observability.logging import get_logger
from switchboard.providers.base import ExecutionOutput, Provider, ProviderExecutor
from switchboard.routing.models import AttemptRecord, DispatchResult, TaskRequest
from switchboard.routing.registry import ModelDescriptor

log = get_logger(__name__)

MAX_EXECUTION_ATTEMPTS = 2
CHARS_PER_TOKEN = 4
DEFAULT_TIMEOUT_SECONDS = 30.0

# (failed model id, ranked pool) -> next model to try, or None
FallbackSupplier = Callable[[str, Sequence[ModelDescriptor]], ModelDescriptor | None]


def estimate_output_units(output: Any) -> int:
    """Rough token count of ``output``: four characters of its JSON form per token."""
    text = json.dumps(output, default=str, ensure_ascii=False)
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_cost(model: ModelDescriptor, output: Any) -> float:
    """cost_per_unit times the estimated output size."""
    return model.cost_per_unit * estimate_output_units(output)


def _elapsed_ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000.0


class Dispatcher:
    """Runs one request with load accounting and bounded fallback.

    Example:
        dispatcher = Dispatcher(
            {Provider.OPENAI: LiteLLMExecutor()},
            timeouts={Provider.OPENAI: 30.0},
            fallback=health.fallback_for,
        )
        result = await dispatcher.dispatch(request, [primary, secondary])
    """

    def __init__(
        self,
        executors: Mapping[Provider, ProviderExecutor],
        *,
        timeouts: Mapping[Provider, float] | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        fallback: FallbackSupplier | None = None,
    ) -> None:
        self._executors = dict(executors)
        self._timeouts = dict(timeouts or {})
        self._default_timeout = default_timeout
        self._fallback = fallback

    def timeout_for(self, provider: Provider) -> float:
        """Attempt timeout in seconds for ``provider``."""
        return self._timeouts.get(provider, self._default_timeout)

    def executor_for(self, provider: Provider) -> ProviderExecutor | None:
        return self._executors.get(provider)

    def next_candidate(
        self,
        failed_id: str,
        pool: Sequence[ModelDescriptor],
    ) -> ModelDescriptor | None:
        """Model to try after ``failed_id``.

        Asks the fallback supplier when one is configured; otherwise the
        next model in ``pool`` order.
        """
        if self._fallback is not None:
            return self._fallback(failed_id, pool)
        ids = [model.id for model in pool]
        position = ids.index(failed_id) + 1
        return pool[position] if position < len(pool) else None

    async def dispatch(
        self,
        request: TaskRequest,
        candidates: Sequence[ModelDescriptor],
    ) -> DispatchResult:
        """Execute ``request`` against ``candidates``, best first.

        Args:
            request: The task to run.
            candidates: Ranked models, best first.

        Returns:
            A successful DispatchResult, or one with success=False and
            error_kind="AllModelsFailed" carrying every attempt record.
        """
        started = time.perf_counter()
        attempts: list[AttemptRecord] = []
        pool = list(candidates) if request.allow_fallback else list(candidates[:1])
        executions = 0
        last_model_id: str | None = None
        model = pool[0] if pool else None
        tried: set[str] = set()

        while model is not None and executions < MAX_EXECUTION_ATTEMPTS:
            if model.id in tried:
                break
            tried.add(model.id)
            last_model_id = model.id

            if not model.available or not model.try_acquire():
                attempts.append(
                    AttemptRecord.from_error(
                        ModelUnavailableError("model unavailable or at capacity", model_id=model.id)
                    )
                )
                log.info(
                    "routing.dispatch.model_skipped",
                    model_id=model.id,
                    current_load=model.current_load,
                    max_capacity=model.max_capacity,
                )
                model = self.next_candidate(model.id, pool)
                continue

            attempt_started = time.perf_counter()
            try:
                outcome = await self._execute(request, model)
            finally:
                model.release()
            executions += 1

            if outcome.is_ok:
                output = outcome.value
                result = DispatchResult(
                    model_id=model.id,
                    success=True,
                    output=output.content,
                    elapsed_ms=_elapsed_ms(started),
                    estimated_cost=estimate_cost(model, output.content),
                    confidence=output.confidence,
                    attempts=tuple(attempts),
                    metadata=dict(output.metadata),
                )
                log.info(
                    "routing.dispatch.succeeded",
                    model_id=model.id,
                    elapsed_ms=round(result.elapsed_ms, 2),
                    estimated_cost=result.estimated_cost,
                    fallback=result.used_fallback,
                )
                return result

            failure = outcome.error
            attempts.append(
                AttemptRecord.from_error(failure, elapsed_ms=_elapsed_ms(attempt_started))
            )
            failed_id = model.id
            model = self.next_candidate(failed_id, pool)
            if model is not None and executions < MAX_EXECUTION_ATTEMPTS:
                log.warning(
                    "routing.dispatch.falling_back",
                    model_id=failed_id,
                    fallback_model_id=model.id,
                    timed_out=failure.timed_out,
                )

        log.warning(
            "routing.dispatch.all_failed",
            task_type=request.task_type,
            attempts=[(a.model_id, a.error_kind) for a in attempts],
        )
        return DispatchResult(
            model_id=last_model_id,
            success=False,
            error_kind=AllModelsFailedError.kind,
            elapsed_ms=_elapsed_ms(started),
            attempts=tuple(attempts),
        )

    async def _execute(
        self,
        request: TaskRequest,
        model: ModelDescriptor,
    ) -> Result[ExecutionOutput, ExecutionFailureError]:
        """One provider call under the provider timeout.

        Every failure mode becomes an ExecutionFailureError; cancellation of
        the surrounding task is not caught.
        """
        executor = self._executors.get(model.provider)
        if executor is None:
            return Result.err(
                ExecutionFailureError(
                    f"No executor registered for provider '{model.provider.value}'",
                    model_id=model.id,
                )
            )

        timeout = self.timeout_for(model.provider)
        log.debug(
            "routing.attempt.started",
            model_id=model.id,
            provider=model.provider.value,
            timeout_seconds=timeout,
        )
        try:
            async with asyncio.timeout(timeout):
                output = await executor.execute(
                    model,
                    request.task_type,
                    request.payload,
                    request.execution_context(),
                )
        except TimeoutError:
            log.warning("routing.attempt.timed_out", model_id=model.id, timeout_seconds=timeout)
            return Result.err(
                ExecutionFailureError(
                    f"Timed out after {timeout}s",
                    model_id=model.id,
                    timed_out=True,
                )
            )
        except ProviderError as e:
            log.warning(
                "routing.attempt.provider_error",
                model_id=model.id,
                provider=e.provider,
                status_code=e.status_code,
                error=str(e),
            )
            return Result.err(
                ExecutionFailureError(
                    e.message,
                    model_id=model.id,
                    details={"status_code": e.status_code},
                )
            )
        except Exception as e:
            log.exception("routing.attempt.unexpected_error", model_id=model.id, error=str(e))
            return Result.err(
                ExecutionFailureError(
                    f"{type(e).__name__}: {e}",
                    model_id=model.id,
                )
            )

        return Result.ok(output)
