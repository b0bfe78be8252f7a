"""
Rate limiting for the Bizabode API.
Uses SlowAPI with a Redis backend when REDIS_URL is configured.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.errors import ErrorType, build_error_response

logger = logging.getLogger("bizabode.rate_limiter")


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP, accounting for reverse proxies.
    Checks X-Forwarded-For header first, then falls back to direct IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain (original client)
        return forwarded_for.split(",")[0].strip()

    # Check X-Real-IP header (common in nginx)
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def get_user_identifier(request: Request) -> str:
    """
    Get a unique identifier for rate limiting.
    Uses the authenticated principal if available, otherwise client IP.
    """
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        return f"{principal.kind}:{principal.id}"

    return f"ip:{get_real_client_ip(request)}"


IS_PRODUCTION = settings.ENVIRONMENT.lower() == "production"

storage_uri = settings.REDIS_URL or "memory://"

if settings.REDIS_URL:
    # Mask password in logs
    logged_url = settings.REDIS_URL.split('@')[-1]
    logger.info(f"Rate limiter using Redis backend: {logged_url}")
elif IS_PRODUCTION:
    logger.warning(
        "PRODUCTION WARNING: Rate limiting is using in-memory storage. "
        "Limits won't sync across instances. Configure REDIS_URL for distributed rate limiting."
    )
else:
    logger.info("Rate limiter using in-memory storage (suitable for single-instance deployments)")


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=["1000/hour", "100/minute"],
    storage_uri=storage_uri,
    strategy="fixed-window",
    headers_enabled=False,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handler for rate limit exceeded errors.
    Returns the standard error envelope with retry information.
    """
    identifier = get_user_identifier(request)
    logging.getLogger("bizabode.security").warning(
        f"Rate limit exceeded for {identifier} on {request.method} {request.url.path}"
    )

    retry_after = getattr(exc, "retry_after", 60)
    request_id = getattr(request.state, "request_id", None) if hasattr(request, "state") else None

    return JSONResponse(
        status_code=429,
        content=build_error_response(
            ErrorType.RATE_LIMIT,
            f"Too many requests. Please retry after {retry_after} seconds.",
            details={"retry_after": retry_after, "limit": str(getattr(exc, "detail", ""))},
            request_id=request_id,
        ),
        headers={"Retry-After": str(retry_after)},
    )


class RateLimits:
    """Pre-configured rate limits for different endpoint types."""

    # Authentication endpoints - strict limits to prevent brute force
    AUTH_LOGIN = "5/minute"
    AUTH_REGISTER = "3/minute"
    AUTH_REFRESH = "20/minute"

    # Public inbound webhook
    WEBHOOK = "60/minute"

    # Aggregation reports
    REPORTS = "30/minute"

    # File operations
    FILE_UPLOAD = "10/minute"
