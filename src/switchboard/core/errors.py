"""Error hierarchy for Switchboard.

These exceptions are raised for unexpected errors (programming bugs) and are
carried as error values in Result for expected failures.

Exception Hierarchy:
    SwitchboardError (base)
    ├── ProviderError          - Backend call failures (rate limits, API errors)
    ├── ConfigError            - Configuration loading and validation issues
    ├── ValidationError        - Inbound request validation failures
    └── RoutingError           - Selection and dispatch outcomes
        ├── ModelNotFoundError      - Registry lookup of an unknown id
        ├── NoSuitableModelError    - Nothing can serve the task type
        ├── ModelUnavailableError   - Candidate at capacity or marked down
        ├── ExecutionFailureError   - Provider call raised or timed out
        ├── AllModelsFailedError    - Primary and fallback both failed
        └── HealthProbeError        - One model's probe failed
"""

from __future__ import annotations

from typing import Any


class SwitchboardError(Exception):
    """Base exception for all Switchboard errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ProviderError(SwitchboardError):
    """Error from a backend provider call.

    Attributes:
        provider: Name of the provider (e.g., "openai", "iris-custom").
        status_code: HTTP status code if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.provider = provider
        self.status_code = status_code

    @classmethod
    def from_exception(
        cls, exc: Exception, *, provider: str | None = None
    ) -> ProviderError:
        """Create ProviderError from a provider exception.

        The original exception is kept as ``__cause__`` for tracebacks.
        """
        status_code = getattr(exc, "status_code", None)
        error = cls(
            str(exc),
            provider=provider,
            status_code=status_code,
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class ConfigError(SwitchboardError):
    """Error from configuration operations.

    Attributes:
        config_key: The configuration key that caused the error.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class ValidationError(SwitchboardError):
    """Error from request validation.

    Attributes:
        field: The field that failed validation.
        value: The invalid value if safe to include.

    Security Note:
        Use safe_value instead of value when logging.
    """

    _SENSITIVE_FIELDS = frozenset({
        "password", "api_key", "secret", "token", "credential",
        "auth", "key", "private", "apikey", "api-key",
    })

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    @property
    def safe_value(self) -> str:
        """Return a log-safe representation of the value."""
        if self.value is None:
            return "<None>"

        if self.field:
            field_lower = self.field.lower()
            if any(sensitive in field_lower for sensitive in self._SENSITIVE_FIELDS):
                return "<REDACTED>"

        if isinstance(self.value, str):
            if len(self.value) > 50:
                return f"{self.value[:20]}...({len(self.value)} chars)"
            return repr(self.value)

        return f"<{type(self.value).__name__}>"

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field}, value: {self.safe_value})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base


class RoutingError(SwitchboardError):
    """Base class for selection and dispatch outcomes.

    Every subclass carries a stable ``kind`` string. That string, never the
    message or a provider traceback, is what callers of the HTTP API see.
    """

    kind: str = "RoutingError"

    def __init__(
        self,
        message: str,
        *,
        model_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.model_id = model_id


class ModelNotFoundError(RoutingError):
    """Registry lookup for an id that is not configured."""

    kind = "ModelNotFound"


class NoSuitableModelError(RoutingError):
    """No model can serve the requested task type.

    Attributes:
        task_type: The task type that could not be matched.
        matched_models: Ids whose capabilities matched but which were
            unavailable or at capacity. Empty when nothing in the registry
            serves the task type at all.
    """

    kind = "NoSuitableModel"

    def __init__(
        self,
        message: str,
        *,
        task_type: str,
        matched_models: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.task_type = task_type
        self.matched_models = matched_models

    @property
    def has_capability_match(self) -> bool:
        """True when the task type is served but no matching model is eligible."""
        return bool(self.matched_models)


class ModelUnavailableError(RoutingError):
    """Candidate exists but is at capacity or marked unavailable."""

    kind = "ModelUnavailable"


class ExecutionFailureError(RoutingError):
    """Provider call raised, returned an error, or exceeded its timeout.

    Attributes:
        timed_out: Whether the failure was a timeout.
    """

    kind = "ExecutionFailure"

    def __init__(
        self,
        message: str,
        *,
        model_id: str | None = None,
        timed_out: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, model_id=model_id, details=details)
        self.timed_out = timed_out


class AllModelsFailedError(RoutingError):
    """Every attempted candidate failed.

    Attributes:
        attempts: Per-attempt failure records, in attempt order.
    """

    kind = "AllModelsFailed"

    def __init__(
        self,
        message: str,
        *,
        model_id: str | None = None,
        attempts: tuple[Any, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, model_id=model_id, details=details)
        self.attempts = attempts


class HealthProbeError(RoutingError):
    """A single model's health probe failed. Never reaches request handling."""

    kind = "HealthProbeFailure"
