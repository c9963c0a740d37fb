"""Pydantic models for Switchboard configuration.

All configuration validation happens through these models.

Classes:
    ModelSpec: One backend model as declared in configuration
    ProviderSettings: Timeouts and endpoints for one provider
    ClearanceRule: Pins a (clearance, task type) pair to one model
    RoutingConfig: Capability aliases and clearance rules
    HealthConfig: Probe cycle settings
    ServerConfig: HTTP server bind settings
    LoggingSettings: Logging section
    SwitchboardConfig: Top-level configuration combining all sections
"""

from pathlib import Path
from typing import Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from switchboard.observability.logging import LoggingConfig, LogMode
from switchboard.providers.base import Provider


class ModelSpec(BaseModel, frozen=True):
    """Static description of one callable backend.

    Attributes:
        id: Unique registry key.
        name: Display name.
        provider: Origin of the model, selects the execution strategy.
        specialty: Free-text specialty shown in statistics.
        capabilities: Task-type tags the model can serve.
        cost_per_unit: Cost per estimated output token.
        max_capacity: Concurrency ceiling.
        average_latency: Typical response time in seconds.
        reliability: Initial reliability estimate (0..1).
        available: Initial availability.
        provider_model: Vendor model string passed to the provider, defaults to id.
        endpoint: Path or URL for HTTP agent providers.
    """

    id: str = Field(min_length=1)
    name: str = ""
    provider: Provider
    specialty: str = ""
    capabilities: list[str] = Field(min_length=1)
    cost_per_unit: float = Field(gt=0)
    max_capacity: int = Field(ge=1)
    average_latency: float = Field(gt=0)
    reliability: float = Field(default=0.95, ge=0.0, le=1.0)
    available: bool = True
    provider_model: str | None = None
    endpoint: str | None = None


class ProviderSettings(BaseModel, frozen=True):
    """Per-provider execution settings.

    Attributes:
        timeout_seconds: Attempt timeout enforced by the Dispatcher.
        base_url: Base URL for HTTP agent providers or a custom API base.
        health_path: Path probed by the health controller (HTTP providers).
        max_retries: Transient-error retries inside one attempt.
    """

    timeout_seconds: float = Field(default=30.0, gt=0)
    base_url: str | None = None
    health_path: str | None = None
    max_retries: int = Field(default=2, ge=1)


class ClearanceRule(BaseModel, frozen=True):
    """Routes a privileged request to one specific model before scoring."""

    clearance: str = Field(min_length=1)
    task_type: str = Field(min_length=1)
    model_id: str = Field(min_length=1)


class RoutingConfig(BaseModel, frozen=True):
    """Selection settings.

    Attributes:
        aliases: Task type -> extra capability tags that also serve it.
        clearance_rules: Privileged routing overrides.
    """

    aliases: dict[str, list[str]] = Field(default_factory=dict)
    clearance_rules: list[ClearanceRule] = Field(default_factory=list)


class HealthConfig(BaseModel, frozen=True):
    """Health controller settings.

    Attributes:
        enabled: Whether the periodic probe loop runs with the server.
        interval_seconds: Seconds between probe cycles.
        window_size: Samples kept per model for the moving average.
        probe_timeout_seconds: Timeout for a single probe.
        latency_smoothing: EMA factor applied to probe response times.
    """

    enabled: bool = True
    interval_seconds: float = Field(default=30.0, gt=0)
    window_size: int = Field(default=10, ge=1)
    probe_timeout_seconds: float = Field(default=5.0, gt=0)
    latency_smoothing: float = Field(default=0.2, gt=0.0, le=1.0)


class ServerConfig(BaseModel, frozen=True):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)


class LoggingSettings(BaseModel, frozen=True):
    """Logging section of the config file.

    Attributes:
        level: Log level (debug, info, warning, error)
        mode: dev (console) or prod (JSON)
        file_logging: Whether to also write rotating log files
        log_dir: Directory for log files
    """

    level: Literal["debug", "info", "warning", "error"] = "info"
    mode: LogMode = LogMode.DEV
    file_logging: bool = False
    log_dir: str = "~/.switchboard/logs"

    def to_logging_config(self) -> LoggingConfig:
        """Convert to the observability layer's LoggingConfig."""
        return LoggingConfig(
            mode=self.mode,
            log_level=self.level.upper(),
            log_dir=Path(self.log_dir).expanduser(),
            enable_file_logging=self.file_logging,
        )


class SwitchboardConfig(BaseModel, frozen=True):
    """Top-level Switchboard configuration, validated from config.yaml.

    Attributes:
        models: Static model catalog, in registry insertion order.
        providers: Provider id -> execution settings.
        routing: Aliases and clearance rules.
        health: Probe loop settings.
        server: HTTP bind settings.
        logging: Logging settings.
    """

    models: list[ModelSpec] = Field(default_factory=list)
    providers: dict[Provider, ProviderSettings] = Field(default_factory=dict)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("models")
    @classmethod
    def validate_unique_ids(cls, v: list[ModelSpec]) -> list[ModelSpec]:
        """Model ids must be unique."""
        seen: set[str] = set()
        for spec in v:
            if spec.id in seen:
                msg = f"Duplicate model id: {spec.id}"
                raise ValueError(msg)
            seen.add(spec.id)
        return v

    @model_validator(mode="after")
    def validate_clearance_targets(self) -> Self:
        """Clearance rules must point at configured models."""
        known = {spec.id for spec in self.models}
        for rule in self.routing.clearance_rules:
            if rule.model_id not in known:
                msg = f"Clearance rule targets unknown model: {rule.model_id}"
                raise ValueError(msg)
        return self

    def provider_settings(self, provider: Provider) -> ProviderSettings:
        """Settings for ``provider``, falling back to defaults."""
        return self.providers.get(provider, DEFAULT_PROVIDER_SETTINGS.get(provider, ProviderSettings()))


DEFAULT_PROVIDER_SETTINGS: dict[Provider, ProviderSettings] = {
    Provider.OPENAI: ProviderSettings(timeout_seconds=30.0),
    Provider.ANTHROPIC: ProviderSettings(timeout_seconds=30.0),
    Provider.GOOGLE: ProviderSettings(timeout_seconds=30.0),
    Provider.META: ProviderSettings(timeout_seconds=45.0),
    Provider.IRIS_CUSTOM: ProviderSettings(
        timeout_seconds=15.0,
        base_url="http://localhost:3000",
        health_path="/api/health/iris",
    ),
}

DEFAULT_ALIASES: dict[str, list[str]] = {
    "defense": ["security"],
    "threat_analysis": ["threat-analysis"],
    "medical_diagnosis": ["medical", "diagnosis"],
    "code_generation": ["code"],
    "research_synthesis": ["synthesis"],
    "text_generation": ["reasoning", "creative"],
}


def get_default_config() -> SwitchboardConfig:
    """Get the default configuration with the stock five-model catalog."""
    return SwitchboardConfig(
        models=[
            ModelSpec(
                id="gpt-4-turbo",
                name="GPT-4 Turbo",
                provider=Provider.OPENAI,
                specialty="general reasoning",
                capabilities=["reasoning", "code", "analysis", "synthesis"],
                cost_per_unit=0.00003,
                max_capacity=10,
                average_latency=2.1,
                reliability=0.98,
                provider_model="openai/gpt-4-turbo",
            ),
            ModelSpec(
                id="claude-3-opus",
                name="Claude 3 Opus",
                provider=Provider.ANTHROPIC,
                specialty="creative writing",
                capabilities=["creative", "analysis", "reasoning", "ethical"],
                cost_per_unit=0.000015,
                max_capacity=8,
                average_latency=1.8,
                reliability=0.97,
                provider_model="anthropic/claude-3-opus-20240229",
            ),
            ModelSpec(
                id="iris-medical",
                name="IRIS Medical AI",
                provider=Provider.IRIS_CUSTOM,
                specialty="healthcare",
                capabilities=["medical", "diagnosis", "analysis", "compliance"],
                cost_per_unit=0.00001,
                max_capacity=15,
                average_latency=1.5,
                reliability=0.99,
                endpoint="/api/agents/medical-assistant",
            ),
            ModelSpec(
                id="iris-defense",
                name="IRIS Defense AI",
                provider=Provider.IRIS_CUSTOM,
                specialty="defense",
                capabilities=["security", "threat-analysis", "compliance", "intelligence"],
                cost_per_unit=0.00001,
                max_capacity=12,
                average_latency=1.2,
                reliability=0.99,
                endpoint="/api/agents/defense-analysis",
            ),
            ModelSpec(
                id="iris-legal",
                name="IRIS Legal AI",
                provider=Provider.IRIS_CUSTOM,
                specialty="legal",
                capabilities=["legal", "compliance", "analysis", "contracts"],
                cost_per_unit=0.00001,
                max_capacity=10,
                average_latency=1.3,
                reliability=0.99,
                endpoint="/api/agents/legal-analysis",
            ),
        ],
        providers=dict(DEFAULT_PROVIDER_SETTINGS),
        routing=RoutingConfig(
            aliases={k: list(v) for k, v in DEFAULT_ALIASES.items()},
            clearance_rules=[
                ClearanceRule(
                    clearance="TOP_SECRET",
                    task_type="threat-analysis",
                    model_id="iris-defense",
                ),
            ],
        ),
    )


def get_config_dir() -> Path:
    """Return ~/.switchboard/."""
    return Path.home() / ".switchboard"
