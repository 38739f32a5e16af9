"""
Core views for health checks and system status.
"""

import logging

from django.apps import apps
from django.core.cache import cache
from django.db import connection
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from core.domain.exceptions import KeyMaterialError

logger = logging.getLogger(__name__)


def _check_database() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return True
    except Exception:  # pylint: disable=broad-exception-caught
        logger.warning("Database health check failed", exc_info=True)
        return False


def _check_cache() -> bool:
    try:
        cache.set("ready_check", "ok", 10)
        return cache.get("ready_check") == "ok"
    except Exception:  # pylint: disable=broad-exception-caught
        logger.warning("Cache health check failed", exc_info=True)
        return False


def _check_signing_keys() -> bool:
    try:
        apps.get_app_config("licenses").key_provider.get_verification_key()
        return True
    except KeyMaterialError:
        logger.error("Signing key check failed", exc_info=True)
        return False


@method_decorator(csrf_exempt, name="dispatch")
class HealthView(View):
    """Health check endpoint."""

    def get(self, _request):
        """Return service health status."""
        return JsonResponse({"status": "healthy", "service": "clinic-license-service"})


@method_decorator(csrf_exempt, name="dispatch")
class HealthDBView(View):
    """Database health check endpoint."""

    def get(self, _request):
        """Check database connectivity."""
        if _check_database():
            return JsonResponse({"status": "healthy", "database": "connected"})
        return JsonResponse({"status": "unhealthy", "database": "disconnected"}, status=503)


@method_decorator(csrf_exempt, name="dispatch")
class HealthCacheView(View):
    """Cache health check endpoint."""

    def get(self, _request):
        """Check cache connectivity."""
        if _check_cache():
            return JsonResponse({"status": "healthy", "cache": "connected"})
        return JsonResponse({"status": "unhealthy", "cache": "disconnected"}, status=503)


@method_decorator(csrf_exempt, name="dispatch")
class ReadyView(View):
    """Readiness check endpoint."""

    def get(self, _request):
        """Check if service is ready to accept traffic."""
        checks = {
            "database": _check_database(),
            "cache": _check_cache(),
            "signing_keys": _check_signing_keys(),
        }

        all_healthy = all(checks.values())
        status_code = 200 if all_healthy else 503

        return JsonResponse(
            {
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            },
            status=status_code,
        )


class MetricsView(View):
    """Prometheus scrape endpoint."""

    def get(self, _request):
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
