"""
Rate limiting middleware.

Implements a fixed-window rate limit per client IP on the public license
verification APIs.
"""

import hashlib
import time
from typing import Callable, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse

from core.metrics import errors_total

PUBLIC_LICENSE_API_PREFIX = "/api/v1/licenses/"


def get_client_ip(request: HttpRequest) -> str:
    """
    Resolve the client address, honouring the first X-Forwarded-For hop.

    Args:
        request: HTTP request

    Returns:
        Client IP string
    """
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


class RateLimitMiddleware:
    """
    Rate limiting middleware per client IP.

    Counters are stored in the Django cache, one key per client and window.
    The limit is read from LICENSE_VERIFY_RATE_LIMIT (requests per minute).
    """

    DEFAULT_RATE_LIMIT = 60
    RATE_LIMIT_WINDOW = 60  # seconds

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    @property
    def limit(self) -> int:
        return int(getattr(settings, "LICENSE_VERIFY_RATE_LIMIT", self.DEFAULT_RATE_LIMIT))

    def _get_rate_limit_key(self, client_ip: str, window_start: int) -> str:
        ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:16]
        return f"rate_limit:{ip_hash}:{window_start}"

    def _check_rate_limit(self, client_ip: str, limit: int) -> Tuple[bool, int, int]:
        """
        Check if request is within rate limit.

        Args:
            client_ip: Client address
            limit: Requests allowed per window

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window_start = int(time.time() / self.RATE_LIMIT_WINDOW)
        reset_time = (window_start + 1) * self.RATE_LIMIT_WINDOW
        cache_key = self._get_rate_limit_key(client_ip, window_start)

        if cache.add(cache_key, 1, timeout=self.RATE_LIMIT_WINDOW):
            count = 1
        else:
            try:
                count = cache.incr(cache_key)
            except ValueError:
                # Expired between add and incr.
                cache.set(cache_key, 1, timeout=self.RATE_LIMIT_WINDOW)
                count = 1

        if count > limit:
            return False, 0, reset_time
        return True, limit - count, reset_time

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request with rate limiting.

        Args:
            request: HTTP request

        Returns:
            HTTP response with rate limit headers
        """
        if not request.path.startswith(PUBLIC_LICENSE_API_PREFIX) or request.method == "OPTIONS":
            return self.get_response(request)

        limit = self.limit
        is_allowed, remaining, reset_time = self._check_rate_limit(get_client_ip(request), limit)

        if not is_allowed:
            errors_total.labels(error_type="rate_limit_exceeded", endpoint=request.path).inc()
            response = JsonResponse(
                {
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Rate limit exceeded. Please try again later.",
                    }
                },
                status=429,
            )
            response["Access-Control-Allow-Origin"] = "*"
            response["Retry-After"] = str(max(0, reset_time - int(time.time())))
        else:
            response = self.get_response(request)

        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        return response
