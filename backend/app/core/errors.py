"""
Application error taxonomy.

Every failure the API reports is classified into an :class:`ErrorType`, each
with a fixed HTTP status code, and rendered as the standard error envelope::

    {"success": false, "error": {"type", "message", "code", "details", "timestamp", "request_id"}}
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger("bizabode.errors")
security_logger = logging.getLogger("bizabode.security")


class ErrorType(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND_ERROR"
    CONFLICT = "CONFLICT_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    DATABASE = "DATABASE_ERROR"
    FILE_UPLOAD = "FILE_UPLOAD_ERROR"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE_ERROR"
    INTERNAL = "INTERNAL_SERVER_ERROR"


ERROR_STATUS_CODES: dict[ErrorType, int] = {
    ErrorType.VALIDATION: 400,
    ErrorType.AUTHENTICATION: 401,
    ErrorType.AUTHORIZATION: 403,
    ErrorType.NOT_FOUND: 404,
    ErrorType.CONFLICT: 409,
    ErrorType.RATE_LIMIT: 429,
    ErrorType.DATABASE: 500,
    ErrorType.FILE_UPLOAD: 400,
    ErrorType.EXTERNAL_SERVICE: 502,
    ErrorType.INTERNAL: 500,
}

# Categories that are also written to the security log
SECURITY_ERROR_TYPES = {ErrorType.AUTHENTICATION, ErrorType.AUTHORIZATION, ErrorType.RATE_LIMIT}


class AppError(Exception):
    """Base exception for every error the API reports deliberately."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        code: Optional[str] = None,
        details: Any = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.code = code or error_type.value
        self.details = details
        self.status_code = status_code or ERROR_STATUS_CODES[error_type]

    def __repr__(self) -> str:
        return f"AppError({self.error_type.value}, {self.message!r})"


def validation_error(message: str, details: Any = None, code: Optional[str] = None) -> AppError:
    return AppError(ErrorType.VALIDATION, message, code=code, details=details)


def authentication_error(message: str = "Authentication required") -> AppError:
    return AppError(ErrorType.AUTHENTICATION, message)


def authorization_error(message: str = "Insufficient permissions") -> AppError:
    return AppError(ErrorType.AUTHORIZATION, message)


def not_found_error(resource: str = "Resource") -> AppError:
    return AppError(ErrorType.NOT_FOUND, f"{resource} not found")


def conflict_error(message: str, details: Any = None) -> AppError:
    return AppError(ErrorType.CONFLICT, message, details=details)


def rate_limit_error(message: str = "Too many requests", details: Any = None) -> AppError:
    return AppError(ErrorType.RATE_LIMIT, message, details=details)


def database_error(message: str = "Database operation failed", details: Any = None) -> AppError:
    return AppError(ErrorType.DATABASE, message, details=details)


def file_upload_error(message: str, details: Any = None) -> AppError:
    return AppError(ErrorType.FILE_UPLOAD, message, details=details)


def external_service_error(service: str, message: Optional[str] = None) -> AppError:
    return AppError(
        ErrorType.EXTERNAL_SERVICE,
        message or f"External service error: {service}",
        details={"service": service},
    )


def internal_error(message: str = "Internal server error", details: Any = None) -> AppError:
    return AppError(ErrorType.INTERNAL, message, details=details)


def error_type_for_status(status_code: int) -> ErrorType:
    """Map a bare HTTP status code (e.g. from HTTPException) onto the taxonomy."""
    if status_code == 401:
        return ErrorType.AUTHENTICATION
    if status_code == 403:
        return ErrorType.AUTHORIZATION
    if status_code == 404:
        return ErrorType.NOT_FOUND
    if status_code == 409:
        return ErrorType.CONFLICT
    if status_code == 429:
        return ErrorType.RATE_LIMIT
    if status_code == 502:
        return ErrorType.EXTERNAL_SERVICE
    if 400 <= status_code < 500:
        return ErrorType.VALIDATION
    return ErrorType.INTERNAL


def build_error_response(
    error_type: ErrorType,
    message: str,
    code: Optional[str] = None,
    details: Any = None,
    request_id: Optional[str] = None,
) -> dict:
    """Build the JSON body of an error response."""
    error: dict[str, Any] = {
        "type": error_type.value,
        "message": message,
        "code": code or error_type.value,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    if details is not None:
        error["details"] = details
    if request_id:
        error["request_id"] = request_id
    return {"success": False, "error": error}


def log_error(error: AppError, path: str, method: str, request_id: Optional[str] = None) -> None:
    """Log an AppError; security-relevant categories also go to the security log."""
    extra = {
        "error_type": error.error_type.value,
        "path": path,
        "method": method,
        "request_id": request_id,
    }
    level = logging.ERROR if error.status_code >= 500 else logging.WARNING
    logger.log(level, f"{error.error_type.value}: {error.message} ({method} {path})", extra=extra)
    if error.error_type in SECURITY_ERROR_TYPES:
        security_logger.warning(
            f"Security event {error.error_type.value} on {method} {path}: {error.message}",
            extra=extra,
        )
