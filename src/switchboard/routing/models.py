"""Request and result models for routing.

TaskRequest is created per inbound call and never mutated. DispatchResult is
produced once per request by the Dispatcher and carries the records of any
attempts that failed before the final outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from switchboard.core.errors import ExecutionFailureError, RoutingError, ValidationError
from switchboard.core.security import summarize_error
from switchboard.providers.base import ExecutionContext, Priority


@dataclass(frozen=True, slots=True)
class Requirements:
    """Optional caller weights.

    A requirement counts as requested when it is set and positive.

    Attributes:
        accuracy: Prefer reliable models.
        speed: Prefer low-latency models.
        cost: Prefer cheap models.
    """

    accuracy: float | None = None
    speed: float | None = None
    cost: float | None = None

    @property
    def wants_accuracy(self) -> bool:
        return bool(self.accuracy and self.accuracy > 0)

    @property
    def wants_speed(self) -> bool:
        return bool(self.speed and self.speed > 0)

    @property
    def wants_cost(self) -> bool:
        return bool(self.cost and self.cost > 0)


@dataclass(frozen=True, slots=True)
class TaskRequest:
    """A unit of work submitted by a caller.

    Attributes:
        task_type: Tag matched against model capabilities.
        payload: Opaque context forwarded to the provider.
        priority: Caller priority.
        requirements: Accuracy/speed/cost preferences.
        allow_fallback: Whether a failed primary may be retried elsewhere.
        role_or_clearance: Optional constraint that may pin a privileged model.
        request_id: Correlation id, generated when not supplied.
    """

    task_type: str
    payload: Any
    priority: Priority = Priority.MEDIUM
    requirements: Requirements = field(default_factory=Requirements)
    allow_fallback: bool = True
    role_or_clearance: str | None = None
    request_id: str = field(default_factory=lambda: f"req_{uuid4().hex[:12]}")

    def __post_init__(self) -> None:
        if not self.task_type or not self.task_type.strip():
            msg = "task_type must not be blank"
            raise ValidationError(msg, field="task_type", value=self.task_type)

    def execution_context(self) -> ExecutionContext:
        """Attributes forwarded to provider executors."""
        return ExecutionContext(
            priority=self.priority,
            role_or_clearance=self.role_or_clearance,
            request_id=self.request_id,
        )


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """One attempt that did not produce the final result.

    Attributes:
        model_id: Model that was attempted or skipped.
        error_kind: "ModelUnavailable" or "ExecutionFailure".
        message: Short sanitized description.
        elapsed_ms: Time spent on the attempt.
        timed_out: Whether the attempt hit the provider timeout.
    """

    model_id: str
    error_kind: str
    message: str
    elapsed_ms: float = 0.0
    timed_out: bool = False

    @classmethod
    def from_error(cls, error: RoutingError, *, elapsed_ms: float = 0.0) -> AttemptRecord:
        """Record for a skipped or failed attempt; the message is sanitized."""
        return cls(
            model_id=error.model_id or "",
            error_kind=error.kind,
            message=summarize_error(error.message),
            elapsed_ms=elapsed_ms,
            timed_out=getattr(error, "timed_out", False),
        )


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of routing one TaskRequest.

    Attributes:
        model_id: Model that produced the output, or the last one attempted.
        success: Whether an attempt succeeded.
        output: Provider content on success.
        error_kind: Error kind on failure (e.g. "AllModelsFailed").
        elapsed_ms: Wall-clock time from dispatch start to completion.
        estimated_cost: cost_per_unit times estimated output size.
        confidence: Provider confidence on success.
        attempts: Failed or skipped attempts before the outcome.
        metadata: Provider metadata on success.
    """

    model_id: str | None
    success: bool
    output: Any = None
    error_kind: str | None = None
    elapsed_ms: float = 0.0
    estimated_cost: float = 0.0
    confidence: float = 0.0
    attempts: tuple[AttemptRecord, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def used_fallback(self) -> bool:
        """True when the result came from a model other than the first tried."""
        return self.success and bool(self.attempts)

    @property
    def execution_attempts(self) -> int:
        """Number of provider calls made, including the final one."""
        failed_calls = sum(1 for a in self.attempts if a.error_kind == ExecutionFailureError.kind)
        return failed_calls + (1 if self.success else 0)
