"""
App configuration for licenses.

The signing key provider, token codec and lifecycle service are built once
here and shared by every request handled by this process.
"""
from django.apps import AppConfig, apps
from django.conf import settings


class LicensesConfig(AppConfig):
    """App configuration for licenses."""

    name = "licenses"
    verbose_name = "Licenses"

    def ready(self):
        """Wire the license lifecycle service from settings."""
        from clinics.infrastructure.repositories.django_clinic_repository import (
            DjangoClinicRepository,
        )
        from licenses.application.services.license_lifecycle_service import (
            LicenseLifecycleService,
        )
        from licenses.infrastructure.repositories.django_license_repository import (
            DjangoLicenseRepository,
        )
        from licenses.infrastructure.signing.key_provider import FileKeyMaterialProvider
        from licenses.infrastructure.signing.token_codec import LicenseTokenCodec

        # Keys are loaded (or generated) lazily on first sign/verify.
        self.key_provider = FileKeyMaterialProvider(settings.LICENSE_SIGNING_KEY_DIR)
        self.token_codec = LicenseTokenCodec(
            self.key_provider,
            issuer=settings.LICENSE_TOKEN_ISSUER,
            audience=settings.LICENSE_TOKEN_AUDIENCE,
        )
        self.lifecycle_service = LicenseLifecycleService(
            license_repository=DjangoLicenseRepository(),
            clinic_repository=DjangoClinicRepository(),
            token_codec=self.token_codec,
        )


def get_lifecycle_service():
    """Return the process-wide LicenseLifecycleService."""
    return apps.get_app_config("licenses").lifecycle_service
