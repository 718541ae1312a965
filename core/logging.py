"""
core/logging.py - Structured JSON logging.

All logs include:
- timestamp (ISO 8601)
- level
- logger
- message
- context (host_address, block, latency_ms, etc.)

Contextual fields are passed only via extra={"context": {...}}.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Global context that gets added to all log entries
_global_context: dict[str, Any] = {}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {
        "timestamp": "2026-01-04T12:00:00.000+00:00",
        "level": "INFO",
        "logger": "harness.executor",
        "message": "Simulation finished",
        "context": {
            "host_address": "0x1f...",
            "block": "pending",
            "latency_ms": 84
        }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        context.update(_global_context)

        if hasattr(record, "context") and record.context:
            context.update(record.context)

        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)

        if context:
            log_entry["context"] = context

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.getMessage()}"

        if hasattr(record, "context") and record.context:
            items = list(record.context.items())
            ctx_str = ", ".join(f"{k}={v}" for k, v in items[:4])
            if len(items) > 4:
                ctx_str += f", ... (+{len(items) - 4} more)"
            base += f" | {ctx_str}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds context to all log entries.
    """

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        # Merge adapter context with call context
        extra = kwargs.get("extra", {})
        context = {**self.extra, **extra.get("context", {})}

        kwargs["extra"] = {"context": context}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    """
    Set global context that gets added to all log entries.

    Example:
        set_global_context(service="overcall", version="0.1.0")
    """
    _global_context.update(kwargs)


def clear_global_context() -> None:
    """Clear global logging context."""
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Get a logger with optional default context.

    Args:
        name: Logger name (typically module name)
        **context: Default context for all log entries from this logger

    Returns:
        ContextAdapter with structured logging

    Example:
        logger = get_logger("harness.executor", chain_id=1)
        logger.info("Simulation finished", extra={"context": {"latency_ms": 50}})
    """
    logger = logging.getLogger(name)
    return ContextAdapter(logger, context)


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: str | None = None,
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON formatting (False = console format)
        log_file: Optional file path for logging (always JSON)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    formatter = JSONFormatter() if json_output else ConsoleFormatter()

    # Logs go to stderr so stdout stays clean for the rendered result
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def log_simulation(
    logger: ContextAdapter,
    host_address: str,
    outcome: str,
    block: str,
    latency_ms: int,
    **extra: Any,
) -> None:
    """Log a finished simulation with standard context."""
    logger.info(
        f"Simulation: {host_address[:10]}... | {outcome}",
        extra={
            "context": {
                "host_address": host_address,
                "outcome": outcome,
                "block": block,
                "latency_ms": latency_ms,
                **extra,
            }
        },
    )


def log_error(
    logger: ContextAdapter,
    error_code: str,
    message: str,
    **extra: Any,
) -> None:
    """Log an error with standard context."""
    logger.error(
        f"[{error_code}] {message}",
        extra={
            "context": {
                "error_code": error_code,
                **extra,
            }
        },
    )
