"""Unit tests for switchboard.observability.logging module.

Tests cover:
- LoggingConfig defaults and validation
- configure_logging modes, levels and handlers
- JSON output with bound request context
- Credential masking
- Level filtering
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from switchboard.observability.logging import (
    LoggingConfig,
    LogMode,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    reset_logging,
    unbind_context,
)


@pytest.fixture(autouse=True)
def reset_logging_state() -> Any:
    """Reset logging state before and after each test."""
    reset_logging()
    yield
    reset_logging()


def _prod(capsys: Any, level: str = "INFO") -> None:
    configure_logging(LoggingConfig(mode=LogMode.PROD, log_level=level))
    capsys.readouterr()


def _json_lines(err: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in err.strip().splitlines() if line]


class TestLoggingConfig:
    """Test LoggingConfig model."""

    def test_default_config(self) -> None:
        """Test LoggingConfig defaults."""
        config = LoggingConfig()

        assert config.mode == LogMode.DEV
        assert config.log_level == "INFO"
        assert config.enable_file_logging is False
        assert config.log_dir == Path.home() / ".switchboard" / "logs"

    def test_config_is_frozen(self) -> None:
        """Test LoggingConfig is immutable."""
        config = LoggingConfig()

        with pytest.raises(Exception):  # noqa: B017
            config.log_level = "DEBUG"  # type: ignore[misc]

    def test_max_log_days_validation(self) -> None:
        """Test max_log_days must be at least one."""
        with pytest.raises(ValueError):
            LoggingConfig(max_log_days=0)


class TestConfigureLogging:
    """Test configure_logging function."""

    def test_configure_sets_root_level(self) -> None:
        """Test configure_logging applies the configured level to the root logger."""
        configure_logging(LoggingConfig(log_level="DEBUG"))

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_uses_env_mode(self, capsys: Any) -> None:
        """Test SWITCHBOARD_LOG_MODE=prod selects JSON console output."""
        with patch.dict("os.environ", {"SWITCHBOARD_LOG_MODE": "prod"}):
            configure_logging()
        capsys.readouterr()

        get_logger().info("health.cycle.completed")

        data = _json_lines(capsys.readouterr().err)[-1]
        assert data["event"] == "health.cycle.completed"

    def test_configure_env_mode_invalid_defaults_to_dev(self, capsys: Any) -> None:
        """Test an unknown SWITCHBOARD_LOG_MODE falls back to console output."""
        with patch.dict("os.environ", {"SWITCHBOARD_LOG_MODE": "loud"}):
            configure_logging()
        capsys.readouterr()

        get_logger().info("health.cycle.completed")

        err = capsys.readouterr().err
        assert "health.cycle.completed" in err
        assert not err.lstrip().startswith("{")

    def test_reconfigure_replaces_handlers(self) -> None:
        """Test reconfiguring leaves a single console handler."""
        configure_logging()
        configure_logging()

        stream_handlers = [
            h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler
        ]
        assert len(stream_handlers) == 1

    def test_file_logging_writes_json(self, tmp_path: Path) -> None:
        """Test file logging writes JSON entries."""
        configure_logging(LoggingConfig(enable_file_logging=True, log_dir=tmp_path / "logs"))

        get_logger("test").info("health.cycle.completed", probed=5)
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / "logs" / "switchboard.log").read_text().strip().splitlines()
        data = json.loads(lines[-1])
        assert data["event"] == "health.cycle.completed"
        assert data["probed"] == 5


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_auto_configures(self) -> None:
        """Test the first get_logger call installs a console handler."""
        logging.getLogger().handlers.clear()

        get_logger(__name__)

        assert any(
            type(h) is logging.StreamHandler for h in logging.getLogger().handlers
        )


class TestProdModeOutput:
    """JSON output and context propagation."""

    def test_entry_fields(self, capsys: Any) -> None:
        """Test JSON entries carry event, level and timestamp."""
        _prod(capsys)

        get_logger().info("routing.request.received", task_type="medical")

        data = _json_lines(capsys.readouterr().err)[-1]
        assert data["event"] == "routing.request.received"
        assert data["task_type"] == "medical"
        assert data["level"] == "info"
        assert "T" in data["timestamp"]

    def test_bound_context_included(self, capsys: Any) -> None:
        """Test bound context appears in later entries."""
        _prod(capsys)

        bind_context(request_id="req_123")
        get_logger().info("routing.dispatch.succeeded")

        data = _json_lines(capsys.readouterr().err)[-1]
        assert data["request_id"] == "req_123"

    def test_unbind_context(self, capsys: Any) -> None:
        """Test unbinding removes only the named key."""
        _prod(capsys)

        bind_context(request_id="req_123", model_id="iris-medical")
        unbind_context("request_id")
        get_logger().info("routing.dispatch.succeeded")

        data = _json_lines(capsys.readouterr().err)[-1]
        assert "request_id" not in data
        assert data["model_id"] == "iris-medical"

    def test_clear_context(self, capsys: Any) -> None:
        """Test clearing removes all bound context."""
        _prod(capsys)

        bind_context(request_id="req_123")
        clear_context()
        get_logger().info("routing.dispatch.succeeded")

        data = _json_lines(capsys.readouterr().err)[-1]
        assert "request_id" not in data

    def test_credentials_masked(self, capsys: Any) -> None:
        """Test credentials are masked before rendering."""
        _prod(capsys)

        get_logger().info(
            "provider.llm.request.started",
            api_key="sk-1234567890abcdef",
            note="sk-abcdefghijklmnop",
            headers={"authorization": "Bearer xyz"},
        )

        data = _json_lines(capsys.readouterr().err)[-1]
        assert data["api_key"] == "<REDACTED>"
        assert data["note"] == "sk-...mnop"
        assert data["headers"] == {"authorization": "<REDACTED>"}


class TestLogLevels:
    """Test level filtering."""
    def test_info_level_filters_debug(self, capsys: Any) -> None:
        """Test INFO level drops debug entries."""
        _prod(capsys, level="INFO")
        log = get_logger()

        log.debug("health.probe.started")
        log.info("health.cycle.completed")

        events = [entry["event"] for entry in _json_lines(capsys.readouterr().err)]
        assert "health.probe.started" not in events
        assert "health.cycle.completed" in events

    def test_debug_level_shows_all(self, capsys: Any) -> None:
        """Test DEBUG level keeps debug entries."""
        _prod(capsys, level="DEBUG")

        get_logger().debug("health.probe.started")

        events = [entry["event"] for entry in _json_lines(capsys.readouterr().err)]
        assert "health.probe.started" in events
