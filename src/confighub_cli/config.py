# ABOUTME: Configuration management for the ConfigHub CLI
# ABOUTME: Handles environment variables, server connection, and wait settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module holds all configuration for the `cub` command. It:

1. READS environment variables (like CONFIGHUB_URL, CUB_TIMEOUT)
2. VALIDATES them (URLs get a scheme, durations must parse, levels must exist)
3. PROVIDES typed access to settings for the command handlers

Command-line flags override these values per invocation; the settings only
supply the defaults.

=============================================================================
ARCHITECTURE: TWO CONFIGURATION CLASSES
=============================================================================

1. WaitSettings: How mutating commands wait (CUB_ prefix)
   - Whether to wait by default
   - Completion timeout for queued operations (apply, refresh, ...)

2. HubSettings: Main configuration container (CONFIGHUB_ prefix)
   - Server URL, token, TLS settings
   - Default space
   - Log level, JSON logs, audit log path
   - Contains WaitSettings as a nested object

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

Server connection:
    CONFIGHUB_URL              -> API base URL
    CONFIGHUB_TOKEN            -> Bearer token
    CONFIGHUB_INSECURE         -> Skip TLS certificate verification
    CONFIGHUB_SPACE            -> Default space slug or UUID
    CONFIGHUB_REQUEST_TIMEOUT  -> Per-request HTTP timeout in seconds

Observability:
    CONFIGHUB_LOG_LEVEL        -> DEBUG, INFO, WARNING, ERROR, CRITICAL
    CONFIGHUB_JSON_LOGS        -> Emit JSON log lines instead of console output
    CONFIGHUB_AUDIT_LOG        -> Path of a JSON-lines audit file

Waiting (CUB_ prefix):
    CUB_WAIT                   -> Wait for completion by default (default: true)
    CUB_TIMEOUT                -> Completion timeout, e.g. "2m", "90s", "1m30s"

The trigger-await budget (25ms doubling to 250ms, 100 polls) is a fixed
constant of the awaiting engine, not a setting.
"""

from __future__ import annotations

import os
import re
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_URL = "https://hub.confighub.com/api"

# =============================================================================
# DURATIONS
# =============================================================================

# One "<number><unit>" component of a Go-style duration such as "1m30s".
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "\u00b5s": 1e-6,
    "\u03bcs": 1e-6,
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> float:
    """
    Parse a duration string with units into seconds.

    Accepts Go-style durations such as
    "10s", "2m", "500ms", "1h", and concatenations like "1m30s".
    Units are ns, us (or µs), ms, s, m and h.
    A bare "0" is also accepted.

    Args:
        text: Duration string

    Returns:
        Duration in seconds as a float

    Raises:
        ValueError: If the string is empty or contains anything that is not
                    a sequence of number+unit components.

    Example:
        >>> parse_duration("1m30s")
        90.0
    """
    value = text.strip()
    if value == "0":
        return 0.0
    if not value:
        raise ValueError("invalid timeout duration: empty string")

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(value):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position != len(value):
        raise ValueError(f"invalid timeout duration {text}")
    return total


# =============================================================================
# WAIT SETTINGS
# =============================================================================


class WaitSettings(BaseSettings):
    """
    Defaults for the --wait and --timeout flags of mutating commands.

    `wait` controls whether commands block until server-side processing
    finishes. `timeout` bounds how long apply/refresh/destroy/import wait for
    their queued operation; it does NOT affect the trigger wait, whose budget
    is fixed.
    """

    model_config = SettingsConfigDict(env_prefix="CUB_")

    wait: bool = Field(
        default=True,
        description="Wait for completion after mutating commands",
    )

    timeout: str = Field(
        default="2m",
        description="Completion timeout as a duration with units, such as 10s or 2m",
    )

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: str) -> str:
        """Reject durations that parse_duration cannot read."""
        parse_duration(v)
        return v

    @property
    def timeout_seconds(self) -> float:
        """Completion timeout converted to seconds."""
        return parse_duration(self.timeout)


# =============================================================================
# MAIN SETTINGS
# =============================================================================


class HubSettings(BaseSettings):
    """
    Main CLI configuration.

    USAGE:
    ------
        settings = load_settings()
        print(settings.url)           # API base URL
        print(settings.wait.timeout)  # "2m"
    """

    model_config = SettingsConfigDict(
        env_prefix="CONFIGHUB_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # SERVER CONNECTION
    # -------------------------------------------------------------------------

    url: str = Field(
        default=DEFAULT_URL,
        description="ConfigHub API base URL",
    )

    token: SecretStr = Field(
        default=SecretStr(""),
        description="ConfigHub API bearer token",
    )
    # SecretStr keeps the token out of reprs and log lines.
    # Use token.get_secret_value() to read it.

    insecure: bool = Field(
        default=False,
        description="Skip TLS verification",
    )

    space: str = Field(
        default="",
        description="Default space slug or UUID",
    )

    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    # -------------------------------------------------------------------------
    # OBSERVABILITY
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="WARNING",
        description="Logging level",
    )
    # WARNING by default: a CLI should stay quiet unless something is off.
    # --debug on the command line switches to DEBUG for one invocation.

    json_logs: bool = Field(
        default=False,
        description="Render log lines as JSON",
    )

    audit_log: Path | None = Field(
        default=None,
        description="Path to audit log file",
    )

    # -------------------------------------------------------------------------
    # NESTED WAIT SETTINGS
    # -------------------------------------------------------------------------

    wait: WaitSettings = Field(default_factory=WaitSettings)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """
        Ensure URL has a scheme and no trailing slash.

        "hub.confighub.com/api"   -> "https://hub.confighub.com/api"
        "https://localhost:9090/" -> "https://localhost:9090"
        """
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> HubSettings:
    """
    Load settings from environment with validation.

    If CONFIGHUB_ENV_FILE is set, variables are also read from that file.

    Returns:
        Fully validated HubSettings instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return HubSettings(
        _env_file=os.environ.get("CONFIGHUB_ENV_FILE"),
    )
