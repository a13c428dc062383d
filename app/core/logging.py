import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.context import get_request_id, get_user_id
from app.core.settings import settings

AUDIT_LOGGER_NAME = "app.audit"
# Structured attributes copied from ``extra=`` onto the JSON line when present
AUDIT_FIELDS = ("event", "actor_id", "target_id", "from_status", "to_status", "role")


class RequestContextFilter(logging.Filter):
    """Inject request/user ids into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        if not getattr(record, "user_id", None):
            record.user_id = get_user_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``stream`` separates operational and audit output."""

    def __init__(self, stream_label: str = "app") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stream": self.stream_label,
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        for field in AUDIT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _handler(formatter: str, level: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["request_context"],
        "stream": "ext://sys.stdout",
    }


def configure_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {"()": RequestContextFilter},
            },
            "formatters": {
                "json": {"()": JsonFormatter, "stream_label": "app"},
                "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
            },
            "handlers": {
                "default": _handler("json", log_level),
                "audit": _handler("audit_json", "INFO"),
            },
            "loggers": {
                "": {"handlers": ["default"], "level": log_level},
                AUDIT_LOGGER_NAME: {"handlers": ["audit"], "level": "INFO", "propagate": False},
                "sqlalchemy.engine": {"level": "WARNING"},
                "uvicorn": {"handlers": ["default"], "level": log_level, "propagate": False},
                "uvicorn.access": {"handlers": ["default"], "level": log_level, "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).info(
        "Logging configured for environment=%s level=%s",
        settings.environment,
        log_level,
    )


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)


def audit_event(event: str, *, actor_id: Any = None, target_id: Any = None, **fields: Any) -> None:
    """Record a state change on the audit stream.

    ``event`` is a dotted name such as ``loan_application.verify``; remaining
    keyword arguments must be listed in ``AUDIT_FIELDS`` to reach the output.
    """
    extra = {"event": event, "actor_id": actor_id, "target_id": target_id, **fields}
    extra = {key: str(value) for key, value in extra.items() if value is not None}
    get_audit_logger().info(event, extra=extra)
