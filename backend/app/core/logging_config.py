"""
Structured logging for the Bizabode backend.

Production emits one JSON object per line; development gets a coloured
single-line format. Every record logged while a request is in flight carries
that request's ID, taken from the incoming X-Request-ID header when it is
well formed and generated otherwise.
"""

import json
import logging
import re
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from app.core.config import settings

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = b"x-request-id"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Attributes every LogRecord has; anything else was passed through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "request_id"}

_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "multipart")
_SKIPPED_PATHS = ("/health", "/metrics")


class RequestContextFilter(logging.Filter):
    """Stamp the current request ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON document per record, for log aggregators.
    """

    def __init__(self, service_name: str = "bizabode-backend"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": settings.ENVIRONMENT,
            "source": {"file": record.filename, "line": record.lineno, "function": record.funcName},
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRIBUTES}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Coloured console output for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        request_id = getattr(record, "request_id", None)
        context = f" [{request_id}]" if request_id else ""

        message = (
            f"{color}{timestamp} | {record.levelname:8} | {record.name}{context} | "
            f"{record.getMessage()}{self.RESET}"
        )
        if record.exc_info:
            message += f"\n{color}{traceback.format_exception(*record.exc_info)[-1].strip()}{self.RESET}"
        return message


def setup_logging(
    service_name: str = "bizabode-backend",
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        service_name: Name of the service for log identification
        log_level: Override level; defaults to LOG_LEVEL, then DEBUG/INFO from the DEBUG flag
        json_logs: Override JSON output; defaults to on in production
    """
    level = (log_level or settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")).upper()
    use_json = json_logs if json_logs is not None else settings.ENVIRONMENT.lower() == "production"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.addFilter(RequestContextFilter())
    console_handler.setFormatter(JSONFormatter(service_name) if use_json else ColoredFormatter())
    root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("bizabode.logging").info(
        f"Logging configured: level={level}, format={'JSON' if use_json else 'colored'}, "
        f"environment={settings.ENVIRONMENT}"
    )


def resolve_request_id(headers) -> str:
    """Reuse a well-formed incoming X-Request-ID, otherwise mint a short one."""
    for name, value in headers or ():
        if name.lower() == REQUEST_ID_HEADER:
            candidate = value.decode("latin-1").strip()
            if _VALID_REQUEST_ID.match(candidate):
                return candidate
    return uuid.uuid4().hex[:12]


class RequestLoggingMiddleware:
    """
    ASGI middleware that logs one line per request with its status and timing.

    The request ID is stored in ``request.state.request_id``, bound to the
    logging context and echoed back in the X-Request-ID response header.
    """

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger("bizabode.http")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = resolve_request_id(scope.get("headers"))
        token = request_id_var.set(request_id)
        scope.setdefault("state", {})["request_id"] = request_id
        start_time = datetime.utcnow()
        response_status = 0

        async def send_wrapper(message):
            nonlocal response_status
            if message["type"] == "http.response.start":
                response_status = message["status"]
                message["headers"] = [*message.get("headers", []), (REQUEST_ID_HEADER, request_id.encode())]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            response_status = 500
            raise
        finally:
            path = scope.get("path", "/")
            if path not in _SKIPPED_PATHS:
                duration_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
                method = scope.get("method", "UNKNOWN")
                client = scope.get("client")
                self.logger.log(
                    logging.WARNING if response_status >= 400 else logging.INFO,
                    f"{method} {path} {response_status} {duration_ms:.1f}ms",
                    extra={
                        "method": method,
                        "path": path,
                        "status": response_status,
                        "duration_ms": round(duration_ms, 1),
                        "client_ip": client[0] if client else None,
                    },
                )
            request_id_var.reset(token)
