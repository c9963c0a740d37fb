"""Configuration loading and management for Switchboard.

Functions:
    resolve_config_path: Pick the config file (argument, env var, default)
    load_config: Load and validate config.yaml
    load_config_or_default: Load config.yaml if present, else built-in defaults
    create_default_config: Write a default config.yaml
    dump_config: Serialize a config to YAML text
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

# Provider API keys (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...) usually live in .env
load_dotenv()
load_dotenv(Path.home() / ".switchboard" / ".env")

from switchboard.config.models import (  # noqa: E402
    SwitchboardConfig,
    get_config_dir,
    get_default_config,
)
from switchboard.core.errors import ConfigError  # noqa: E402

CONFIG_ENV_VAR = "SWITCHBOARD_CONFIG"


def resolve_config_path(config_path: Path | None = None) -> Path:
    """Resolve the config file location.

    Priority:
        1. Explicit ``config_path`` argument
        2. SWITCHBOARD_CONFIG environment variable
        3. ~/.switchboard/config.yaml
    """
    if config_path is not None:
        return config_path

    env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_path:
        return Path(env_path).expanduser()

    return get_config_dir() / "config.yaml"


def _format_validation_errors(e: PydanticValidationError) -> str:
    error_messages = []
    for error in e.errors():
        loc = ".".join(str(x) for x in error["loc"])
        error_messages.append(f"  - {loc}: {error['msg']}")
    return "\n".join(error_messages)


def parse_config(config_dict: dict[str, Any] | None, *, source: str | None = None) -> SwitchboardConfig:
    """Validate a raw mapping into SwitchboardConfig.

    Raises:
        ConfigError: If validation fails.
    """
    try:
        return SwitchboardConfig.model_validate(config_dict or {})
    except PydanticValidationError as e:
        raise ConfigError(
            "Configuration validation failed:\n" + _format_validation_errors(e),
            config_file=source,
            details={"validation_errors": e.errors(include_url=False, include_context=False)},
        ) from e


def load_config(config_path: Path | None = None) -> SwitchboardConfig:
    """Load configuration from YAML.

    Raises:
        ConfigError: If the file doesn't exist, is malformed, or fails validation.
    """
    path = resolve_config_path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {path}. "
            "Run `switchboard config init` to create default configuration.",
            config_file=str(path),
        )

    try:
        with path.open() as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(path),
            details={"yaml_error": str(e)},
        ) from e

    if config_dict is not None and not isinstance(config_dict, dict):
        raise ConfigError(
            "Configuration root must be a mapping",
            config_file=str(path),
        )

    return parse_config(config_dict, source=str(path))


def load_config_or_default(config_path: Path | None = None) -> SwitchboardConfig:
    """Load the config file if it exists, otherwise return built-in defaults.

    An explicitly given path that does not exist is still an error.
    """
    path = resolve_config_path(config_path)
    if config_path is None and not path.exists():
        return get_default_config()
    return load_config(path)


def dump_config(config: SwitchboardConfig) -> str:
    """Serialize a config to YAML text."""
    return yaml.dump(
        config.model_dump(mode="json"),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def create_default_config(
    config_dir: Path | None = None,
    *,
    overwrite: bool = False,
) -> Path:
    """Write a default config.yaml.

    Args:
        config_dir: Target directory. Defaults to ~/.switchboard/.
        overwrite: Replace an existing file.

    Returns:
        Path of the written config file.

    Raises:
        ConfigError: If the file exists and overwrite is False.
    """
    if config_dir is None:
        config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = config_dir / "config.yaml"
    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    config_path.write_text(dump_config(get_default_config()), encoding="utf-8")
    return config_path
