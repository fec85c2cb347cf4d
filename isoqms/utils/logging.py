"""
Logging Configuration

Structured logging setup: human-readable lines in development, JSON lines
in production.

Request-scoped fields (request_id, tenant slug) live in context variables
set by RequestContextMiddleware; RequestContextFilter copies them onto every
record so handlers never have to pass them by hand.
"""
import contextvars
import logging
import sys
from typing import Any, Dict, Optional
import json
from datetime import datetime

request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
tenant_slug_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("tenant_slug", default=None)


class RequestContextFilter(logging.Filter):
    """Attach the current request id and tenant slug to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        if not hasattr(record, "tenant_slug"):
            record.tenant_slug = tenant_slug_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    EXTRA_FIELDS = (
        "tenant_id", "tenant_slug", "user_id", "request_id",
        "security_event", "event_type", "details",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for structured logging

    NOTE: Call this once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    # Reduce noise from noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Use this instead of logging.getLogger() for consistency.
    """
    return logging.getLogger(name)


_security_logger = get_logger("isoqms.security")


def log_security_event(
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    tenant_id: Optional[str] = None,
    user_id: Optional[str] = None,
    severity: str = "WARNING",
) -> None:
    """
    Log security-related events.

    Event types:
    - failed_login: Failed authentication attempt
    - membership_denied: Authenticated user is not a member of the tenant
    - permission_denied: Role lacks the requested action
    - tenant_isolation_violation: Attempted cross-tenant write
    - admin_access_denied: Non super-admin hit an /admin route
    """
    extra = {
        "security_event": True,
        "event_type": event_type,
        "details": details or {},
        "tenant_id": tenant_id,
        "user_id": user_id,
    }
    level = getattr(logging, severity.upper(), logging.WARNING)
    _security_logger.log(level, f"SECURITY EVENT: {event_type}", extra=extra)
