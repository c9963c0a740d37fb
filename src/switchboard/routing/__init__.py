"""Routing core: registry, selector, dispatcher, health controller, service."""

from switchboard.routing.dispatcher import Dispatcher, estimate_cost
from switchboard.routing.health import (
    HealthController,
    HealthSample,
    HealthSnapshot,
    HealthState,
    SampleWindow,
    Trend,
)
from switchboard.routing.models import AttemptRecord, DispatchResult, Requirements, TaskRequest
from switchboard.routing.registry import ModelDescriptor, ModelRegistry
from switchboard.routing.selector import ClearanceOverride, ModelSelector, ScoredCandidate
from switchboard.routing.service import RoutingService, build_executors

__all__ = [
    # Registry
    "ModelDescriptor",
    "ModelRegistry",
    # Requests and results
    "TaskRequest",
    "Requirements",
    "DispatchResult",
    "AttemptRecord",
    # Selection
    "ModelSelector",
    "ClearanceOverride",
    "ScoredCandidate",
    # Dispatch
    "Dispatcher",
    "estimate_cost",
    # Health
    "HealthController",
    "HealthSample",
    "HealthSnapshot",
    "HealthState",
    "SampleWindow",
    "Trend",
    # Service
    "RoutingService",
    "build_executors",
]
