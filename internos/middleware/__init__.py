"""HTTP middleware: rate limiting."""

from .slowapi_limiter import limiter, setup_rate_limiting, get_request_identifier

__all__ = ["limiter", "setup_rate_limiting", "get_request_identifier"]
