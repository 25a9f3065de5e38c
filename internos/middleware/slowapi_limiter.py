"""
Slowapi-based rate limiting.

Applied per route with `@limiter.limit(...)`; the login and register
endpoints use `settings.auth_rate_limit`. Decorated endpoints must accept
`request: Request` and `response: Response` because rate-limit headers are
injected into the response.
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
import logging

from config import settings
from ..security.tokens import TokenError, decode_access_token
from ..monitoring import rate_limit_violations_total

logger = logging.getLogger(__name__)


def get_request_identifier(request: Request) -> str:
    """
    Get unique identifier for rate limiting.

    Priority:
    1. User id from a valid bearer token
    2. IP address (fallback)
    """
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            return f"user:{decode_access_token(token.strip()).user_id}"
        except TokenError:
            pass

    return get_remote_address(request)


def create_limiter(redis_url: str = None, enabled: bool = True):
    """
    Create and configure slowapi Limiter.

    Args:
        redis_url: Redis connection URL for distributed rate limiting
        enabled: Master switch (RATE_LIMIT_ENABLED)

    Returns:
        Configured Limiter instance
    """
    if redis_url:
        limiter = Limiter(
            key_func=get_request_identifier,
            storage_uri=redis_url,
            headers_enabled=True,
            enabled=enabled,
        )
        logger.info("Rate limiting configured with Redis backend")
    else:
        # In-memory storage (single instance only)
        limiter = Limiter(
            key_func=get_request_identifier,
            headers_enabled=True,
            enabled=enabled,
        )
        logger.info("Rate limiting using in-memory storage (not distributed)")

    return limiter


limiter = create_limiter(settings.redis_url or None, settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Count the violation, then answer with slowapi's 429 response."""
    client_type = "user" if get_request_identifier(request).startswith("user:") else "ip"
    rate_limit_violations_total.labels(
        endpoint=request.url.path,
        client_type=client_type,
    ).inc()
    logger.warning(f"Rate limit exceeded on {request.url.path} ({client_type})")
    return _rate_limit_exceeded_handler(request, exc)


def setup_rate_limiting(app):
    """
    Setup slowapi rate limiting on FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    if settings.rate_limit_enabled:
        logger.info(f"Slowapi rate limiting enabled (auth: {settings.auth_rate_limit})")
    else:
        logger.warning("Rate limiting disabled")
    return limiter
