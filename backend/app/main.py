import logging
import traceback
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import settings
from app.api.v1 import api_router
from app.db.session import check_db_connection
from app.core.errors import (
    AppError,
    ErrorType,
    build_error_response,
    error_type_for_status,
    log_error,
)
from app.core.logging_config import setup_logging, RequestLoggingMiddleware
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.core.shutdown import lifespan_manager, RequestTrackingMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger("bizabode")

IS_PRODUCTION = settings.ENVIRONMENT.lower() == "production"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.
    """
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        if "text/html" in response.headers.get("content-type", ""):
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "script-src 'self'; "
                "style-src 'self' 'unsafe-inline'; "
                "img-src 'self' data:; "
                "connect-src 'self'"
            )

        return response


class HealthResponse(BaseModel):
    """Health check response format."""
    status: str
    service: str
    version: str
    environment: str
    checks: dict[str, bool]


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Multi-tenant CRM and HR API for Bizabode Business Management",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan_manager,  # Graceful startup/shutdown
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

_default_dev_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
cors_origins = settings.ALLOWED_ORIGINS or _default_dev_origins


def get_cors_headers(request: Request) -> dict:
    """Get CORS headers based on request origin."""
    origin = request.headers.get("origin", "")
    if origin in cors_origins:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _error_json(
    request: Request,
    status_code: int,
    error_type: ErrorType,
    message: str,
    code: Optional[str] = None,
    details=None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=build_error_response(error_type, message, code, details, _request_id(request)),
        headers={**get_cors_headers(request), **(headers or {})},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log_error(exc, request.url.path, request.method, _request_id(request))
    return _error_json(request, exc.status_code, exc.error_type, exc.message, exc.code, exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Map framework HTTP errors (404 routes, 405 methods, bare HTTPException) onto the envelope."""
    error_type = error_type_for_status(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else error_type.value
    return _error_json(
        request,
        exc.status_code,
        error_type,
        message,
        details=None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return _error_json(
        request,
        status.HTTP_400_BAD_REQUEST,
        ErrorType.VALIDATION,
        "Request validation failed",
        details=details,
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # Unique and foreign-key violations that slipped past the routers' own checks
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return _error_json(
        request,
        status.HTTP_409_CONFLICT,
        ErrorType.CONFLICT,
        "Resource conflicts with existing data",
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return _error_json(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorType.DATABASE,
        "Database operation failed",
        details=None if IS_PRODUCTION else str(exc),
    )


# Global exception handler - catches all unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler that returns consistent error responses.
    In production, sensitive details are hidden to prevent information leakage.
    """
    error_id = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")

    logger.error(
        f"Unhandled exception [{error_id}]: {exc}\n"
        f"Path: {request.url.path}\n"
        f"Method: {request.method}\n"
        f"Traceback: {traceback.format_exc()}"
    )

    if IS_PRODUCTION:
        return _error_json(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorType.INTERNAL,
            f"An unexpected error occurred. Reference ID: {error_id}",
        )

    return _error_json(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorType.INTERNAL,
        str(exc),
        details={"exception": exc.__class__.__name__, "reference": error_id},
    )


# When credentials are needed, we must specify exact origins (not "*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Request tracking middleware for graceful shutdown
app.add_middleware(RequestTrackingMiddleware)

# Request logging middleware with timing and request IDs
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.API_V1_STR)

# Exposes /metrics endpoint for Prometheus scraping
instrumentator = Instrumentator(
    should_group_status_codes=False,
    should_ignore_untemplated=True,
    should_respect_env_var=True,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/health", "/metrics"],
    inprogress_name="bizabode_inprogress_requests",
    inprogress_labels=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Returns 503 when the database is unreachable.
    """
    db_healthy = await check_db_connection()
    checks = {"database": db_healthy}

    response = HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        service="bizabode-backend",
        version="1.0.0",
        environment=settings.ENVIRONMENT,
        checks=checks,
    )

    if not db_healthy:
        logger.warning(f"Health check failed: {checks}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response


@app.get("/")
async def root():
    return {"message": "Welcome to the Bizabode API"}
