"""Wire schemas for the HTTP API.

Bodies are camelCase JSON. The inbound body accepts "input" as a synonym for
"payload", matching older callers.
"""

import json
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from switchboard.core.security import MAX_PAYLOAD_LENGTH
from switchboard.providers.base import Priority
from switchboard.routing.models import AttemptRecord, DispatchResult, Requirements, TaskRequest


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RequirementsBody(_CamelModel):
    """Optional accuracy/speed/cost preferences."""

    accuracy: float | None = Field(default=None, ge=0)
    speed: float | None = Field(default=None, ge=0)
    cost: float | None = Field(default=None, ge=0)


class RouteRequestBody(_CamelModel):
    """POST /route body."""

    task_type: str = Field(min_length=1)
    payload: Any = Field(validation_alias=AliasChoices("payload", "input"))
    priority: Priority = Priority.MEDIUM
    requirements: RequirementsBody = Field(default_factory=RequirementsBody)
    allow_fallback: bool = True
    role_or_clearance: str | None = None
    request_id: str | None = Field(default=None, max_length=128)

    @field_validator("task_type")
    @classmethod
    def strip_task_type(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "taskType must not be blank"
            raise ValueError(msg)
        return stripped

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            msg = "payload is required"
            raise ValueError(msg)
        size = len(v) if isinstance(v, str) else len(json.dumps(v, default=str))
        if size > MAX_PAYLOAD_LENGTH:
            msg = f"payload exceeds maximum length ({MAX_PAYLOAD_LENGTH} chars)"
            raise ValueError(msg)
        return v

    def to_task_request(self) -> TaskRequest:
        """Convert to the routing layer's TaskRequest."""
        extra = {"request_id": self.request_id} if self.request_id else {}
        return TaskRequest(
            task_type=self.task_type,
            payload=self.payload,
            priority=self.priority,
            requirements=Requirements(
                accuracy=self.requirements.accuracy,
                speed=self.requirements.speed,
                cost=self.requirements.cost,
            ),
            allow_fallback=self.allow_fallback,
            role_or_clearance=self.role_or_clearance,
            **extra,
        )


class AttemptBody(_CamelModel):
    """One failed or skipped attempt."""

    model_id: str
    error_kind: str
    message: str
    elapsed_time_ms: float = 0.0
    timed_out: bool = False

    @classmethod
    def from_record(cls, record: AttemptRecord) -> "AttemptBody":
        return cls(
            model_id=record.model_id,
            error_kind=record.error_kind,
            message=record.message,
            elapsed_time_ms=round(record.elapsed_ms, 2),
            timed_out=record.timed_out,
        )


class RouteResponseBody(_CamelModel):
    """200 response of POST /route."""

    request_id: str
    model_used: str
    output: Any
    confidence: float
    elapsed_time_ms: float
    estimated_cost: float
    used_fallback: bool
    attempts: list[AttemptBody] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, request_id: str, result: DispatchResult) -> "RouteResponseBody":
        return cls(
            request_id=request_id,
            model_used=result.model_id or "",
            output=result.output,
            confidence=result.confidence,
            elapsed_time_ms=round(result.elapsed_ms, 2),
            estimated_cost=result.estimated_cost,
            used_fallback=result.used_fallback,
            attempts=[AttemptBody.from_record(a) for a in result.attempts],
            metadata=result.metadata,
        )


class ErrorBody(_CamelModel):
    """Error response. ``error`` is a stable kind string."""

    error: str
    detail: Any = None
    request_id: str | None = None
    attempts: list[AttemptBody] | None = None
