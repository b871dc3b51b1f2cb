"""
Structured logging configuration for the Campaign Taxonomy Validator.

This module provides:
- JSON structured logging with structlog
- Context enrichment (request_id, platform, batch_id)
- Audit logging for schema changes and bulk runs
- Performance logging for validations
- Integration with FastAPI
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from loguru import logger
from structlog.types import FilteringBoundLogger

from .config import settings

# Context variables for request tracking
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
platform_ctx: ContextVar[str | None] = ContextVar("platform", default=None)
batch_id_ctx: ContextVar[str | None] = ContextVar("batch_id", default=None)

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


def _context_fields() -> dict[str, str]:
    fields = {}
    if request_id := request_id_ctx.get():
        fields["request_id"] = request_id
    if platform := platform_ctx.get():
        fields["platform"] = platform
    if batch_id := batch_id_ctx.get():
        fields["batch_id"] = batch_id
    return fields


class StructlogFormatter(logging.Formatter):
    """Custom formatter to bridge between stdlib logging and structlog."""

    def __init__(self, processor):
        super().__init__()
        self.processor = processor

    def format(self, record: logging.LogRecord) -> str:
        """Format log record using structlog processor."""
        event_dict = {
            "event": record.getMessage(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        event_dict.update(_context_fields())

        if record.exc_info:
            event_dict["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and key not in event_dict:
                event_dict[key] = value

        return self.processor(None, None, event_dict)


def add_context_fields(logger, method_name, event_dict):
    """Add context fields to every log entry."""
    for key, value in _context_fields().items():
        event_dict.setdefault(key, value)

    event_dict["app"] = settings.app.app_name
    event_dict["app_version"] = settings.app.version
    event_dict["environment"] = settings.app.environment

    return event_dict


def add_timestamps(logger, method_name, event_dict):
    """Add timestamp in ISO format."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def filter_sensitive_data(logger, method_name, event_dict):
    """Filter sensitive data from logs."""
    sensitive_fields = {"password", "secret", "api_key", "access_token", "jwt", "authorization"}

    def _filter_dict(obj):
        if isinstance(obj, dict):
            return {
                key: (
                    "[REDACTED]"
                    if any(field in str(key).lower() for field in sensitive_fields)
                    else _filter_dict(value)
                )
                for key, value in obj.items()
            }
        elif isinstance(obj, list):
            return [_filter_dict(item) for item in obj]
        return obj

    return _filter_dict(event_dict)


def setup_structlog():
    """Configure structlog with JSON output."""
    processors = [
        add_context_fields,
        add_timestamps,
        filter_sensitive_data,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.app.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_stdlib_logging():
    """Configure standard library logging to work with structlog."""
    formatter = StructlogFormatter(
        structlog.processors.JSONRenderer()
        if settings.app.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.app.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(getattr(logging, settings.app.log_level))
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").handlers = []
    logging.getLogger("uvicorn.access").propagate = True

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def setup_loguru():
    """Configure Loguru for additional logging features."""
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    if settings.app.log_format == "json":
        logger.add(sys.stdout, level=settings.app.log_level, serialize=True, backtrace=True, diagnose=False)
    else:
        logger.add(
            sys.stdout, level=settings.app.log_level, format=log_format, backtrace=True, diagnose=False, colorize=True
        )

    # Error file for production deployments
    if settings.app.is_production:
        logger.add(
            "logs/error.log",
            level="ERROR",
            rotation="10 MB",
            retention="30 days",
            compression="gz",
            serialize=True,
            backtrace=True,
            diagnose=False,
        )


class LoggingContextManager:
    """Context manager for setting logging context."""

    def __init__(self, request_id: str | None = None, platform: str | None = None, batch_id: str | None = None):
        self.request_id = request_id
        self.platform = platform
        self.batch_id = batch_id
        self._tokens = []

    def __enter__(self):
        if self.request_id:
            self._tokens.append(request_id_ctx.set(self.request_id))
        if self.platform:
            self._tokens.append(platform_ctx.set(self.platform))
        if self.batch_id:
            self._tokens.append(batch_id_ctx.set(self.batch_id))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens.clear()


class AuditLogger:
    """Structured audit logging for rule changes and bulk runs."""

    def __init__(self):
        self.logger = structlog.get_logger("audit")

    def log_schema_saved(self, platform: str, version: int, positions: int, created_by: str, **kwargs):
        """Log a platform schema save."""
        self.logger.info(
            "schema_saved",
            platform=platform,
            version=version,
            positions=positions,
            created_by=created_by,
            action="save_schema",
            **kwargs,
        )

    def log_schema_deleted(self, platform: str, **kwargs):
        """Log removal of a platform schema."""
        self.logger.info("schema_deleted", platform=platform, action="delete_schema", **kwargs)

    def log_batch_validated(self, batch_id: str, total: int, valid: int, fallbacks: int, **kwargs):
        """Log completion of a bulk validation run."""
        self.logger.info(
            "batch_validated",
            batch_id=batch_id,
            total=total,
            valid=valid,
            invalid=total - valid,
            fallbacks=fallbacks,
            action="bulk_validate",
            **kwargs,
        )


class PerformanceLogger:
    """Performance monitoring and metrics logging."""

    def __init__(self):
        self.logger = structlog.get_logger("performance")

    def log_validation_performance(self, mode: str, execution_time: float, is_valid: bool, **kwargs):
        """Log timing of a single validation."""
        self.logger.debug(
            "validation_performance",
            mode=mode,
            execution_time_seconds=execution_time,
            is_valid=is_valid,
            metric_type="validation_performance",
            **kwargs,
        )

    def log_api_access(self, method: str, path: str, status_code: int, response_time: float, **kwargs):
        """Log API access."""
        self.logger.info(
            "api_access",
            http_method=method,
            path=path,
            status_code=status_code,
            response_time_seconds=response_time,
            action="api_request",
            **kwargs,
        )


def setup_logging():
    """Initialize all logging systems."""
    setup_structlog()
    setup_stdlib_logging()
    setup_loguru()


# Global logger instances
audit_logger = AuditLogger()
performance_logger = PerformanceLogger()


def get_logger(name: str = None) -> FilteringBoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def with_logging_context(
    request_id: str = None, platform: str = None, batch_id: str = None
) -> LoggingContextManager:
    """Create logging context manager."""
    return LoggingContextManager(request_id, platform, batch_id)


def create_request_id() -> str:
    """Generate unique request ID."""
    return str(uuid.uuid4())
