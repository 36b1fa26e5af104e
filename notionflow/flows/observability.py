"""
Observability for Notionflow flows.

Structured (JSON) logging for flow runs. Each record is one JSON
document on the ``notionflow.flows`` logger, carrying the run id and
flow name for correlation with the Run Store.

Example output:
    {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
     "message": "Flow completed", "flow_run_id": 42,
     "flow_name": "searchAndTag", "duration_ms": 812.4}
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# JSON Logger
# =============================================================================


@dataclass
class JSONLogger:
    """
    Structured logger that outputs JSON-formatted logs.

    Each log entry includes:
    - timestamp (ISO 8601)
    - level
    - message
    - context fields
    """

    name: str = "notionflow"
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(init=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        getattr(self._python_logger, level.value)(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)

    def with_context(self, **extra: Any) -> "JSONLogger":
        """Create a new logger with additional context."""
        return JSONLogger(name=self.name, extra_context={**self.extra_context, **extra})


# =============================================================================
# Flow Logger
# =============================================================================


@dataclass
class FlowLogger:
    """
    Specialized logger for one flow run.

    Example:
        log = FlowLogger(flow_run_id=42, flow_name="cloneDatabaseSchema")
        log.flow_started()
        log.step_completed("schema_retrieved", property_count=5)
        log.flow_completed(duration_ms=731.0)
    """

    flow_run_id: int
    flow_name: str
    inner: JSONLogger = field(init=False)

    def __post_init__(self) -> None:
        self.inner = JSONLogger(
            name="notionflow.flows",
            extra_context={"flow_run_id": self.flow_run_id, "flow_name": self.flow_name},
        )

    def flow_started(self, **context: Any) -> None:
        self.inner.info("Flow started", **context)

    def step_completed(self, step: str, **context: Any) -> None:
        self.inner.debug("Step completed", step=step, **context)

    def item_failed(self, item_id: str | None, error: str) -> None:
        self.inner.warning("Item failed", item_id=item_id, error=error)

    def flow_completed(self, duration_ms: float, **context: Any) -> None:
        self.inner.info("Flow completed", success=True, duration_ms=round(duration_ms, 2), **context)

    def flow_failed(self, duration_ms: float, error: str, error_type: str) -> None:
        self.inner.error(
            "Flow failed",
            success=False,
            duration_ms=round(duration_ms, 2),
            error=error,
            error_type=error_type,
        )
