"""
Pytest configuration and shared fixtures.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from django.apps import apps
from django.core.cache import cache

from clinics.infrastructure.models import Clinic as ClinicModel
from clinics.infrastructure.repositories.django_clinic_repository import DjangoClinicRepository
from core.infrastructure.events import InMemoryEventBus
from licenses.application.services.license_lifecycle_service import LicenseLifecycleService
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.infrastructure.signing.key_provider import FileKeyMaterialProvider
from licenses.infrastructure.signing.token_codec import LicenseTokenCodec

ADMIN_API_KEY = "test-admin-key"


class FakeClock:
    """Settable clock; starts in the past so minted iat claims are never in the future."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters live in the cache; start every test empty."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def key_provider(tmp_path):
    """Fixture for a FileKeyMaterialProvider over an empty directory."""
    return FileKeyMaterialProvider(tmp_path / "keys")


@pytest.fixture
def token_codec(key_provider):
    """Fixture for LicenseTokenCodec."""
    return LicenseTokenCodec(key_provider)


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def clinic_repository():
    """Fixture for ClinicRepository."""
    return DjangoClinicRepository()


@pytest.fixture
def event_bus():
    """Fixture for an isolated event bus with no subscribers."""
    return InMemoryEventBus()


@pytest.fixture
def clock():
    """Fixture for a fixed clock, set to 2025-01-15 09:00 UTC."""
    return FakeClock(datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def lifecycle_service(license_repository, clinic_repository, token_codec, event_bus, clock):
    """Fixture for LicenseLifecycleService on a fixed clock."""
    return LicenseLifecycleService(
        license_repository=license_repository,
        clinic_repository=clinic_repository,
        token_codec=token_codec,
        event_bus=event_bus,
        clock=clock,
    )


@pytest.fixture
def live_service(license_repository, clinic_repository, token_codec, event_bus):
    """Fixture for LicenseLifecycleService on the wall clock."""
    return LicenseLifecycleService(
        license_repository=license_repository,
        clinic_repository=clinic_repository,
        token_codec=token_codec,
        event_bus=event_bus,
    )


@pytest.fixture
def make_clinic(db):
    """Factory fixture creating Clinic rows; returns the clinic id."""

    def _make(name=None, domain="clinic.example.com"):
        unique_id = uuid.uuid4().hex[:8]
        model = ClinicModel.objects.create(
            name=name or f"Clinic {unique_id}",
            domain=domain,
        )
        return model.id

    return _make


@pytest.fixture
def clinic_id(make_clinic):
    """Fixture for a saved clinic id."""
    return make_clinic(name="Smile Dental", domain="smile.example.com")


@pytest.fixture
def wired_service(monkeypatch, live_service, key_provider):
    """Route the app-wide lifecycle service and key provider to test instances."""
    config = apps.get_app_config("licenses")
    monkeypatch.setattr(config, "lifecycle_service", live_service)
    monkeypatch.setattr(config, "key_provider", key_provider)
    return live_service


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def admin_client():
    """Fixture for DRF API client carrying the admin API key."""
    from rest_framework.test import APIClient

    client = APIClient()
    client.credentials(HTTP_X_API_KEY=ADMIN_API_KEY)
    return client
