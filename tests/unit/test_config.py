# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests settings loading, validation, and duration parsing

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError

from confighub_cli.config import DEFAULT_URL, HubSettings, WaitSettings, load_settings, parse_duration


@pytest.mark.unit
class TestParseDuration:
    """Tests for Go-style duration parsing."""

    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("2m", 120.0),
            ("10s", 10.0),
            ("500ms", 0.5),
            ("1h", 3600.0),
            ("1m30s", 90.0),
            ("1.5s", 1.5),
            ("0", 0.0),
            ("250us", 0.00025),
            ("250\u00b5s", 0.00025),
            ("1500000ns", 0.0015),
            ("1s500ms", 1.5),
        ],
    )
    def test_valid(self, text: str, seconds: float):
        """Test accepted duration shapes."""
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "10", "abc", "10x", "s10", "1m 30s"])
    def test_invalid(self, text: str):
        """Test malformed durations are rejected."""
        with pytest.raises(ValueError, match="invalid timeout duration"):
            parse_duration(text)


@pytest.mark.unit
class TestWaitSettings:
    """Tests for WaitSettings configuration."""

    def test_defaults(self):
        """Test default wait behaviour."""
        settings = WaitSettings()

        assert settings.wait is True
        assert settings.timeout == "2m"
        assert settings.timeout_seconds == 120.0

    def test_env_prefix(self):
        """Test CUB_ environment variables are read."""
        with patch.dict(os.environ, {"CUB_WAIT": "false", "CUB_TIMEOUT": "30s"}):
            settings = WaitSettings()

        assert settings.wait is False
        assert settings.timeout_seconds == 30.0

    def test_invalid_timeout(self):
        """Test an unparseable timeout fails validation."""
        with pytest.raises(ValidationError):
            WaitSettings(timeout="soon")


@pytest.mark.unit
class TestHubSettings:
    """Tests for HubSettings configuration."""

    def test_defaults(self):
        """Test default settings."""
        settings = HubSettings()

        assert settings.url == DEFAULT_URL
        assert settings.token.get_secret_value() == ""
        assert settings.insecure is False
        assert settings.space == ""
        assert settings.request_timeout == 30.0
        assert settings.log_level == "WARNING"
        assert settings.json_logs is False
        assert settings.audit_log is None

    def test_url_validation_adds_https(self):
        """Test that URL without scheme gets https added."""
        assert HubSettings(url="hub.example.com/api").url == "https://hub.example.com/api"

    def test_url_validation_preserves_http(self):
        """Test that explicit http scheme is preserved."""
        assert HubSettings(url="http://localhost:9090").url == "http://localhost:9090"

    def test_url_validation_removes_trailing_slash(self):
        """Test that trailing slash is removed from URL."""
        assert HubSettings(url="https://hub.example.com/api/").url == "https://hub.example.com/api"

    def test_from_env(self):
        """Test CONFIGHUB_ environment variables are read."""
        env = {
            "CONFIGHUB_URL": "https://hub.example.com/api",
            "CONFIGHUB_TOKEN": "secret",
            "CONFIGHUB_SPACE": "prod",
            "CONFIGHUB_LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env):
            settings = HubSettings()

        assert settings.url == "https://hub.example.com/api"
        assert settings.token.get_secret_value() == "secret"
        assert settings.space == "prod"
        assert settings.log_level == "DEBUG"

    def test_token_hidden_in_repr(self):
        """Test the token does not leak into repr."""
        settings = HubSettings(token=SecretStr("very-secret"))

        assert "very-secret" not in repr(settings)

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            HubSettings(log_level="LOUD")

    def test_nested_wait_settings(self):
        """Test wait settings are nested and read their own prefix."""
        with patch.dict(os.environ, {"CUB_TIMEOUT": "90s"}):
            settings = HubSettings()

        assert settings.wait.timeout_seconds == 90.0

    def test_audit_log_path(self, tmp_path: Path):
        """Test audit log path is parsed as a Path."""
        settings = HubSettings(audit_log=tmp_path / "audit.jsonl")

        assert settings.audit_log == tmp_path / "audit.jsonl"


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings."""

    def test_reads_env_file(self, tmp_path: Path):
        """Test CONFIGHUB_ENV_FILE points at a dotenv file."""
        env_file = tmp_path / "cub.env"
        env_file.write_text("CONFIGHUB_SPACE=staging\n")

        with patch.dict(os.environ, {"CONFIGHUB_ENV_FILE": str(env_file)}):
            settings = load_settings()

        assert settings.space == "staging"

    def test_without_env_file(self):
        """Test loading from the environment alone."""
        with patch.dict(os.environ, {"CONFIGHUB_SPACE": "dev"}):
            settings = load_settings()

        assert settings.space == "dev"
