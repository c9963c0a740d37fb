"""Structured logging configuration for Switchboard.

Configures structlog on top of the standard library logging handlers so that
every record, including those emitted by uvicorn, httpx and litellm, passes
through the same processor chain.

Features:
- ISO 8601 timestamps and log level on every entry
- contextvars integration so a request_id bound in the API layer follows the
  request through selection, dispatch and provider calls
- Daily log rotation with configurable retention
- Masking of API keys and other credentials
- Mode selection via SWITCHBOARD_LOG_MODE (dev console or prod JSON)

Event naming convention:
- dot.notation, domain.entity.verb_past_tense
  (e.g. "routing.dispatch.succeeded", "health.probe.failed")

Usage:
    from switchboard.observability import configure_logging, get_logger, bind_context

    configure_logging(LoggingConfig(mode=LogMode.PROD))
    log = get_logger(__name__)

    bind_context(request_id="req_123")
    log.info("routing.request.received", task_type="medical")
"""

from __future__ import annotations

from enum import Enum
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, Field
import structlog

from switchboard.core.security import sanitize_for_logging


class LogMode(str, Enum):
    """Logging output mode."""

    DEV = "dev"
    PROD = "prod"


class LoggingConfig(BaseModel):
    """Configuration for structured logging.

    Attributes:
        mode: Output mode (dev for human-readable, prod for JSON).
        log_level: Minimum log level to output.
        log_dir: Directory for log files. Defaults to ~/.switchboard/logs/.
        max_log_days: Number of days to retain log files.
        enable_file_logging: Whether to write logs to files.
    """

    mode: LogMode = Field(default=LogMode.DEV)
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".switchboard" / "logs")
    max_log_days: int = Field(default=7, ge=1, le=365)
    enable_file_logging: bool = Field(default=False)

    model_config = {"frozen": True}


_configured: bool = False

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Keys added by structlog itself, never masked
_RESERVED_KEYS = frozenset({"event", "level", "timestamp", "filename", "lineno", "logger"})


def _get_mode_from_env() -> LogMode:
    """Read SWITCHBOARD_LOG_MODE, defaulting to DEV."""
    env_mode = os.environ.get("SWITCHBOARD_LOG_MODE", "dev").lower()
    if env_mode == "prod":
        return LogMode.PROD
    return LogMode.DEV


def _get_log_level(level_str: str) -> int:
    return _LEVELS.get(level_str.upper(), logging.INFO)


def _mask_sensitive_data(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that masks credentials in log entries."""
    reserved = {key: event_dict.pop(key) for key in _RESERVED_KEYS if key in event_dict}
    return {**sanitize_for_logging(event_dict), **reserved}


def _get_shared_processors() -> list[Any]:
    """Processors applied to both structlog and foreign (stdlib) records."""
    return [
        structlog.contextvars.merge_contextvars,
        _mask_sensitive_data,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]


def _get_renderer(mode: LogMode) -> Any:
    if mode == LogMode.DEV:
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def _make_formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_get_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _setup_file_handler(config: LoggingConfig) -> TimedRotatingFileHandler | None:
    """Daily-rotating JSON file handler, or None if file logging is disabled."""
    if not config.enable_file_logging:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=str(config.log_dir / "switchboard.log"),
        when="midnight",
        interval=1,
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    # File output is always JSON for log aggregation tools
    handler.setFormatter(_make_formatter(structlog.processors.JSONRenderer()))
    handler.setLevel(_get_log_level(config.log_level))
    return handler


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog and the root stdlib logger.

    Call once at process startup (the CLI and the API factory do this).
    Reconfiguring replaces previously installed handlers.

    Args:
        config: Logging configuration. If None, uses defaults with the mode
            taken from SWITCHBOARD_LOG_MODE.
    """
    global _configured

    if config is None:
        config = LoggingConfig(mode=_get_mode_from_env())

    log_level = _get_log_level(config.log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_make_formatter(_get_renderer(config.mode)))
    root_logger.addHandler(console_handler)

    file_handler = _setup_file_handler(config)
    if file_handler:
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            *_get_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger, configuring defaults on first use.

    Example:
        log = get_logger(__name__)
        log.info("health.cycle.completed", probed=5)
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables for the current async context.

    Standard keys:
    - request_id: Inbound request identifier
    - task_type: Requested task type
    - model_id: Model being dispatched to

    Never bind credentials.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove context variables from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context variables at the end of a request."""
    structlog.contextvars.clear_contextvars()


def reset_logging() -> None:
    """Reset logging state. Intended for tests."""
    global _configured
    _configured = False
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
