from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone

from billmaster.core.request_context import current_context

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# campos opcionais aceitos via extra={...}
EXTRA_FIELDS = ("endpoint", "method", "status_code", "duration_ms", "invoice_id", "report_format")

_MASK = "***"
_JWT = re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")
_SECRET_PATTERNS = (
    re.compile(r"(bearer\s+)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"((?:password|password_hash|token|api[_-]?key|secret)\"?\s*[:=]\s*\"?)([^\s\",}]+)", re.IGNORECASE),
)


def mask_secrets(text: str) -> str:
    text = _JWT.sub(_MASK, text)
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda match: match.group(1) + _MASK, text)
    return text


class RequestContextFilter(logging.Filter):
    """Copia request/company/user do contexto para o record, sem sobrescrever extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = current_context()
        for field in ("request_id", "company_id", "user_id"):
            if getattr(record, field, None) is None:
                setattr(record, field, getattr(context, field))
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None),
            "company_id": getattr(record, "company_id", None),
            "user_id": getattr(record, "user_id", None),
            "module": record.name,
            "message": mask_secrets(record.getMessage()),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = mask_secrets(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = LOG_LEVEL) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(logger_name).setLevel(level)
    # o middleware já registra cada requisição
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
