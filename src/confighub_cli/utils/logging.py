# ABOUTME: Structured logging configuration with correlation IDs for the ConfigHub CLI
# ABOUTME: Provides the audit trail for mutating commands and wait outcomes

"""
Structured logging with correlation IDs and audit trails.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides three observability features:

1. STRUCTURED LOGGING: Log events are key/value records rendered either as
   colored console lines or as JSON.

2. CORRELATION IDs: One short identifier per CLI invocation, attached to
   every log line, so a multi-request command (create, then poll the unit a
   dozen times) can be followed as one unit of work.

3. AUDIT LOGGING: A JSON-lines record of reads, writes and failures.

=============================================================================
WHERE DO LOGS GO?
=============================================================================

Logs are written to STDERR. STDOUT belongs to command output, so that

    cub unit get my-unit --json > unit.json

produces a clean file even with --debug switched on.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path

# =============================================================================
# CORRELATION ID
# =============================================================================

# Context-local storage for the current invocation's correlation ID.
# Empty string means "not yet assigned".
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    The ID is the first 8 characters of a UUID4, generated lazily on first
    access and then reused for the rest of the context.

    Returns:
        8-character correlation ID string.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    The CLI calls this once per invocation with "" so a fresh ID is generated
    on first use.

    Args:
        cid: The correlation ID to set, or "" to regenerate lazily.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """
    Structlog processor adding the correlation ID to each event.

    Args:
        logger: The structlog wrapped logger (unused but required by API)
        method_name: The logging method name (unused but required by API)
        event_dict: Dictionary containing log event data to enrich

    Returns:
        The event_dict with "correlation_id" field added.
    """
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "WARNING",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging.

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Adds any bound context variables
    2. add_log_level: Adds "level" field
    3. TimeStamper: Adds ISO-format timestamp
    4. add_correlation_id: Adds the invocation's correlation ID
    5. Renderer: JSON or colored console text

    Args:
        level: Logging level name ("DEBUG", "INFO", "WARNING", ...).
               Unknown names fall back to WARNING.
        json_output: If True, render JSON lines; otherwise console text.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# AUDIT LOGGING
# =============================================================================


class AuditLogger:
    """
    Audit logger for recording command operations.

    Every entry records:
    - timestamp: When it happened (UTC ISO 8601)
    - correlation_id: Invocation identifier
    - action: Command operation ("unit_update", "unit_apply", ...)
    - target: Resource ("my-space/my-unit", "where=Slug LIKE 'app-%'")
    - result: Outcome ("success", "initiated", "completed", "error")
    - details: Additional context (optional)

    TWO OUTPUT MODES:
    -----------------
    1. FILE: Append one JSON object per line to `log_path`
    2. STRUCTLOG: Emit an "audit" event through the configured logger

    EXAMPLE ENTRY:
    --------------
    {"timestamp": "2025-01-15T10:30:00+00:00", "correlation_id": "abc12345",
     "action": "unit_update", "target": "prod/backend", "result": "success",
     "details": {"waited": true}}
    """

    def __init__(self, log_path: Path | None = None) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file, or None for structlog output.
                      The parent directory must exist; entries are appended.
        """
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log an auditable action.

        Args:
            action: Operation name, e.g. "unit_create"
            target: Target resource identifier
            result: "success", "initiated", "completed" or "error"
            details: Additional context
        """
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }

        if details:
            entry["details"] = details

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_read(self, action: str, target: str) -> None:
        """Log a successful read operation."""
        self.log(action, target, "success")

    def log_write(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Log a write operation.

        Typical results:
        - "success": Mutation accepted (and, with --wait, settled)
        - "initiated": Queued operation started, not awaited
        - "completed": Queued operation awaited to a terminal state

        Example:
            audit_logger.log_write("unit_apply", "prod/backend", "completed",
                                   {"status": "Completed"})
        """
        self.log(action, target, result, details)

    def log_error(
        self,
        action: str,
        target: str,
        error: str,
    ) -> None:
        """
        Log an error.

        Covers API failures and wait failures alike; for wait failures the
        mutation itself already succeeded server side.

        Example:
            audit_logger.log_error(
                "unit_update",
                "prod/backend",
                "triggers didn't execute on unit backend",
            )
        """
        self.log(action, target, "error", {"error": error})
