"""
Logging configuration.

structlog for structured events, python-json-logger for the stdlib
handlers, and context variables carrying the request and user ids into
every record emitted while a request is being served.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from pythonjsonlogger import jsonlogger

from messmate.config import settings

request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

SENSITIVE_KEYS = (
    "password",
    "token",
    "secret",
    "authorization",
    "cookie",
    "credentials",
)


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(s in key for s in SENSITIVE_KEYS)


class RequestContextProcessor:
    """Add request context to structlog events"""

    def __call__(self, logger, method_name, event_dict):
        req_id = request_id.get()
        if req_id:
            event_dict["request_id"] = req_id

        uid = user_id.get()
        if uid:
            event_dict["user_id"] = uid

        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
        event_dict["service"] = "messmate"
        event_dict["environment"] = settings.ENVIRONMENT
        return event_dict


class SecurityLogProcessor:
    """Mask sensitive values and flag auth related events"""

    def __call__(self, logger, method_name, event_dict):
        if any(
            keyword in str(event_dict.get("event", "")).lower()
            for keyword in ("auth", "login", "permission", "token")
        ):
            event_dict["security_event"] = True

        self._sanitize(event_dict)
        return event_dict

    def _sanitize(self, data: Dict[str, Any]) -> None:
        for key in list(data.keys()):
            if _is_sensitive(key):
                data[key] = "[REDACTED]"
            elif isinstance(data[key], dict):
                self._sanitize(data[key])


class ContextFilter(logging.Filter):
    """Copy request context onto stdlib records and redact sensitive extras"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id.get()
        if not getattr(record, "user_id", None):
            record.user_id = user_id.get()
        for key, value in list(record.__dict__.items()):
            if _is_sensitive(key) and value is not None:
                setattr(record, key, "[REDACTED]")
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with a few standard fields"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def configure_structured_logging() -> None:
        processors = [
            structlog.contextvars.merge_contextvars,
            RequestContextProcessor(),
            SecurityLogProcessor(),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if settings.LOG_FORMAT == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging() -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, settings.LOG_LEVEL))
        root_logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, settings.LOG_LEVEL))
        handler.addFilter(ContextFilter())

        if settings.LOG_FORMAT == "json":
            formatter = CustomJsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s"
            )
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(
            logging.INFO if settings.DB_ECHO else logging.WARNING
        )


class LoggerAdapter:
    """Logger wrapper accepting structured context through ``extra``"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, *args, **kwargs) -> None:
        kwargs["extra"] = dict(kwargs.get("extra") or {})
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """Return a context-aware logger for ``name``."""
    return LoggerAdapter(logging.getLogger(name or "messmate"))


def get_struct_logger(name: Optional[str] = None):
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name or "messmate")


def setup_logging() -> None:
    """Initialize logging for the process."""
    LoggingConfig.configure_structured_logging()
    LoggingConfig.configure_standard_logging()

    get_logger(__name__).info(
        "Logging system initialized",
        extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
    )


__all__ = [
    "get_logger",
    "get_struct_logger",
    "setup_logging",
    "LoggerAdapter",
    "LoggingConfig",
    "request_id",
    "user_id",
]
