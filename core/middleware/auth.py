"""
Admin API key authentication middleware.

Admin license management APIs (/api/v1/admin/*) require the shared admin
API key. The public verification APIs are unauthenticated.
"""

import hmac
import logging
from typing import Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

ADMIN_API_PREFIX = "/api/v1/admin/"


class AdminAPIKeyMiddleware(MiddlewareMixin):
    """
    Middleware for admin API key authentication.

    This middleware:
    1. Leaves every path outside /api/v1/admin/ untouched
    2. Compares the X-API-Key (or Bearer) credential in constant time
    3. Returns 401 Unauthorized if authentication fails
    """

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        if not request.path.startswith(ADMIN_API_PREFIX):
            return None

        expected = getattr(settings, "LICENSE_ADMIN_API_KEY", None)
        if not expected:
            logger.error("LICENSE_ADMIN_API_KEY is not configured; admin API disabled")
            return JsonResponse(
                {"error": {"code": "ADMIN_API_DISABLED", "message": "Admin API is not configured"}},
                status=503,
            )

        api_key = request.headers.get("X-API-Key") or request.headers.get(
            "Authorization", ""
        ).removeprefix("Bearer ")

        if not api_key:
            return JsonResponse(
                {
                    "error": {
                        "code": "MISSING_API_KEY",
                        "message": "Missing API key. Provide X-API-Key header.",
                    }
                },
                status=401,
            )

        if not hmac.compare_digest(api_key.encode(), expected.encode()):
            logger.warning(
                "Invalid admin API key attempted",
                extra={"remote_addr": request.META.get("REMOTE_ADDR")},
            )
            return JsonResponse(
                {"error": {"code": "INVALID_API_KEY", "message": "Invalid API key"}},
                status=401,
            )

        request.admin_authenticated = True  # type: ignore
        return None
