"""Configuration module for Switchboard.

Configuration is stored in ~/.switchboard/config.yaml, or wherever
SWITCHBOARD_CONFIG points. Provider API keys are read from the environment
(optionally via a .env file).

Usage:
    from switchboard.config import load_config_or_default

    config = load_config_or_default()
    for spec in config.models:
        print(spec.id, spec.capabilities)
"""

from switchboard.config.loader import (
    create_default_config,
    dump_config,
    load_config,
    load_config_or_default,
    parse_config,
    resolve_config_path,
)
from switchboard.config.models import (
    DEFAULT_ALIASES,
    DEFAULT_PROVIDER_SETTINGS,
    ClearanceRule,
    HealthConfig,
    LoggingSettings,
    ModelSpec,
    ProviderSettings,
    RoutingConfig,
    ServerConfig,
    SwitchboardConfig,
    get_config_dir,
    get_default_config,
)

__all__ = [
    # Models
    "SwitchboardConfig",
    "ModelSpec",
    "ProviderSettings",
    "ClearanceRule",
    "RoutingConfig",
    "HealthConfig",
    "ServerConfig",
    "LoggingSettings",
    "DEFAULT_ALIASES",
    "DEFAULT_PROVIDER_SETTINGS",
    # Loader functions
    "load_config",
    "load_config_or_default",
    "parse_config",
    "resolve_config_path",
    "create_default_config",
    "dump_config",
    # Helpers
    "get_config_dir",
    "get_default_config",
]
