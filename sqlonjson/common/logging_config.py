"""
Structured JSON logging with conversion correlation IDs.

Provides:
- JSON format for log aggregation
- A conversion ID attached to every record emitted during a conversion
- Structured metadata
- Performance tracking
"""

import logging
import json
import time
import uuid
from contextvars import ContextVar
from typing import Optional
from datetime import datetime, timezone

from sqlonjson.config.settings import Settings, get_settings

# Context variable for the conversion ID (thread-safe)
conversion_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "conversion_id", default=None)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format with standardized fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        conversion_id = conversion_id_ctx.get()
        if conversion_id:
            log_data["conversion_id"] = conversion_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Extra fields passed as extra={"extra_fields": {...}}
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """
    Logger that attaches keyword arguments as structured fields.

    Automatically includes the conversion ID in all log messages.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, msg: str, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        extra_fields = kwargs.copy()
        conversion_id = conversion_id_ctx.get()
        if conversion_id:
            extra_fields["conversion_id"] = conversion_id
        self.logger.log(level, msg, extra={"extra_fields": extra_fields})

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)


class PerformanceTracker:
    """
    Context manager for tracking operation performance.

    Usage:
        with PerformanceTracker("flatten", logger, tables=3):
            # ... perform operation
            pass
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        log_level: int = logging.INFO,
        **extra_fields,
    ):
        """
        Initialize performance tracker.

        Args:
            operation: Operation name
            logger: Logger instance
            log_level: Log level for completion message
            **extra_fields: Additional structured fields
        """
        self.operation = operation
        self.logger = logger
        self.log_level = log_level
        self.extra_fields = extra_fields
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def _fields(self) -> dict:
        extra = {"operation": self.operation, **self.extra_fields}
        conversion_id = conversion_id_ctx.get()
        if conversion_id:
            extra["conversion_id"] = conversion_id
        return extra

    def __enter__(self):
        """Start timing."""
        self.start_time = time.time()
        self.logger.debug(
            f"Starting operation: {self.operation}",
            extra={"extra_fields": self._fields()},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log completion with duration."""
        self.duration_ms = round((time.time() - self.start_time) * 1000, 2)
        extra = {**self._fields(), "duration_ms": self.duration_ms}

        if exc_type:
            extra["error"] = str(exc_val)
            extra["error_type"] = exc_type.__name__
            self.logger.error(
                f"Operation failed: {self.operation}",
                extra={"extra_fields": extra},
            )
        else:
            self.logger.log(
                self.log_level,
                f"Operation completed: {self.operation}",
                extra={"extra_fields": extra},
            )


def setup_logging(log_level: str = "INFO", json_format: bool = True):
    """
    Configure application logging.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting if True, standard format if False
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper()))

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by the backend descriptor, not the root level
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def setup_logging_from_settings(settings: Optional[Settings] = None):
    """
    Configure logging from the environment-backed settings.

    Args:
        settings: Settings to read (the cached process settings by default)
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, json_format=settings.json_logs)


def set_conversion_id(conversion_id: Optional[str] = None) -> str:
    """
    Set conversion ID in context.

    Args:
        conversion_id: Conversion ID (generated if not provided)

    Returns:
        Conversion ID
    """
    if conversion_id is None:
        conversion_id = str(uuid.uuid4())
    conversion_id_ctx.set(conversion_id)
    return conversion_id


def get_conversion_id() -> Optional[str]:
    """Get current conversion ID from context."""
    return conversion_id_ctx.get()


def clear_conversion_id():
    """Clear conversion ID from context."""
    conversion_id_ctx.set(None)


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(logging.getLogger(name))
