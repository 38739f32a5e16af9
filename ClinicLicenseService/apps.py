"""
App configuration for Clinic License Service.
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ClinicLicenseServiceConfig(AppConfig):
    """App configuration for ClinicLicenseService."""

    name = "ClinicLicenseService"
    verbose_name = "Clinic License Service"

    def ready(self):
        """Called when Django starts."""
        self.register_event_handlers()
        self.setup_observability()

    def register_event_handlers(self):
        """Register event handlers after apps are ready."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()

    def setup_observability(self):
        """Setup tracing export when an OTLP endpoint is configured."""
        from core.instrumentation import setup_opentelemetry, tracing_enabled

        if not tracing_enabled():
            logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, tracing export disabled")
            return
        try:
            setup_opentelemetry()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Failed to setup OpenTelemetry: %s", e, exc_info=True)
