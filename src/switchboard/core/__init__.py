"""Switchboard core module - shared types, errors, and security helpers."""

from switchboard.core.errors import (
    AllModelsFailedError,
    ConfigError,
    ExecutionFailureError,
    HealthProbeError,
    ModelNotFoundError,
    ModelUnavailableError,
    NoSuitableModelError,
    ProviderError,
    RoutingError,
    SwitchboardError,
    ValidationError,
)
from switchboard.core.security import (
    mask_api_key,
    sanitize_for_logging,
    summarize_error,
)
from switchboard.core.types import Result

__all__ = [
    # Types
    "Result",
    # Errors
    "SwitchboardError",
    "ProviderError",
    "ConfigError",
    "ValidationError",
    "RoutingError",
    "ModelNotFoundError",
    "NoSuitableModelError",
    "ModelUnavailableError",
    "ExecutionFailureError",
    "AllModelsFailedError",
    "HealthProbeError",
    # Security utilities
    "mask_api_key",
    "sanitize_for_logging",
    "summarize_error",
]
