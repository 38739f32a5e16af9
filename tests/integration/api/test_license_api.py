"""
Integration tests for the public license API endpoints.
"""

from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.urls import reverse
from django.utils import timezone

from core.domain.value_objects import LicenseType
from licenses.infrastructure.models import License as LicenseModel


@pytest.fixture
def issued(wired_service, clinic_id):
    return async_to_sync(wired_service.issue)(
        clinic_id=clinic_id,
        license_type=LicenseType.SUBSCRIPTION,
        support_expiry=timezone.now() + timedelta(days=365),
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestVerifyLicenseAPI:
    """Integration tests for license verification."""

    def test_verify_valid_token(self, api_client, issued):
        response = api_client.post(
            reverse("verify-license"), {"license": issued.token()}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["firstActivation"] is True
        assert data["license"]["id"] == issued.id
        assert data["license"]["clinicName"] == "Smile Dental"
        assert data["license"]["type"] == "Subscription"
        assert response["Access-Control-Allow-Origin"] == "*"

    def test_verify_with_put(self, api_client, issued):
        response = api_client.put(
            reverse("verify-license"), {"license": issued.token()}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_second_verification_is_not_first_activation(self, api_client, issued):
        url = reverse("verify-license")
        api_client.post(url, {"license": issued.token()}, format="json")

        response = api_client.post(url, {"license": issued.token()}, format="json")

        assert response.json()["firstActivation"] is False

    def test_missing_token(self, api_client, wired_service):
        response = api_client.post(reverse("verify-license"), {}, format="json")

        assert response.status_code == 400
        assert response.json() == {"valid": False, "reason": "license token required"}
        assert response["Access-Control-Allow-Origin"] == "*"

    def test_unparseable_body(self, api_client, wired_service):
        response = api_client.post(
            reverse("verify-license"), data="{not json", content_type="application/json"
        )

        assert response.status_code == 400
        assert response.json() == {"valid": False, "reason": "license token required"}

    def test_invalid_token(self, api_client, wired_service):
        response = api_client.post(reverse("verify-license"), {"license": "x.y.z"}, format="json")

        assert response.status_code == 400
        assert response.json() == {"valid": False, "reason": "invalid token"}

    def test_expired_license(self, api_client, issued):
        LicenseModel.objects.filter(id=issued.id).update(
            support_expiry=timezone.now() - timedelta(days=1)
        )

        response = api_client.post(
            reverse("verify-license"), {"license": issued.token()}, format="json"
        )

        assert response.status_code == 400
        assert response.json() == {"valid": False, "reason": "expired", "expired": True}

    def test_revoked_license(self, api_client, issued, wired_service):
        async_to_sync(wired_service.revoke)(issued.id)

        response = api_client.post(
            reverse("verify-license"), {"license": issued.token()}, format="json"
        )

        assert response.status_code == 400
        assert response.json() == {"valid": False, "reason": "revoked"}

    def test_unexpected_failure(self, api_client, wired_service, monkeypatch):
        async def broken(token):
            raise RuntimeError("database went away")

        monkeypatch.setattr(wired_service, "validate", broken)

        response = api_client.post(reverse("verify-license"), {"license": "a.b.c"}, format="json")

        assert response.status_code == 500
        assert response.json() == {"valid": False, "reason": "validation failed"}
        assert response["Access-Control-Allow-Origin"] == "*"

    def test_preflight(self, api_client, wired_service):
        response = api_client.options(reverse("verify-license"))

        assert response.status_code == 200
        assert response["Access-Control-Allow-Origin"] == "*"
        assert "POST" in response["Access-Control-Allow-Methods"]
        assert response["Access-Control-Allow-Headers"] == "Content-Type"

    def test_correlation_id_is_echoed(self, api_client, wired_service):
        response = api_client.post(
            reverse("verify-license"),
            {"license": "x.y.z"},
            format="json",
            HTTP_X_CORRELATION_ID="abc-123",
        )

        assert response["X-Correlation-ID"] == "abc-123"

    def test_rate_limit(self, api_client, wired_service, settings):
        settings.LICENSE_VERIFY_RATE_LIMIT = 2
        url = reverse("verify-license")

        responses = [
            api_client.post(url, {"license": "x.y.z"}, format="json", REMOTE_ADDR="198.51.100.7")
            for _ in range(3)
        ]

        assert [r.status_code for r in responses] == [400, 400, 429]
        assert responses[0]["X-RateLimit-Limit"] == "2"
        assert responses[0]["X-RateLimit-Remaining"] == "1"
        limited = responses[2]
        assert limited.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in limited
        assert limited["Access-Control-Allow-Origin"] == "*"


@pytest.mark.django_db
@pytest.mark.integration
class TestLicenseStatusAPI:
    """Integration tests for license status checks."""

    def test_status(self, api_client, issued):
        response = api_client.get(reverse("license-status"), {"licenseId": issued.id})

        assert response.status_code == 200
        assert response.json() == {
            "licenseId": issued.id,
            "status": "Active",
            "lastVerified": None,
        }
        assert response["Access-Control-Allow-Origin"] == "*"

    def test_status_after_verification(self, api_client, issued):
        api_client.post(reverse("verify-license"), {"license": issued.token()}, format="json")

        response = api_client.get(reverse("license-status"), {"licenseId": issued.id})

        assert response.json()["lastVerified"].endswith("Z")

    def test_status_of_expired_license(self, api_client, issued):
        LicenseModel.objects.filter(id=issued.id).update(
            support_expiry=timezone.now() - timedelta(seconds=1)
        )

        response = api_client.get(reverse("license-status"), {"licenseId": issued.id})

        assert response.json()["status"] == "Expired"

    @pytest.mark.parametrize("query", [{}, {"licenseId": "abc"}, {"licenseId": 0}])
    def test_invalid_license_id(self, api_client, wired_service, query):
        response = api_client.get(reverse("license-status"), query)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_LICENSE_ID"

    def test_pending_license(self, api_client, wired_service, clinic_id):
        model = LicenseModel.objects.create(
            clinic_id=clinic_id,
            key="pending:abc",
            type="Standalone",
            activation_date=timezone.now(),
            support_expiry=timezone.now() + timedelta(days=30),
        )

        response = api_client.get(reverse("license-status"), {"licenseId": model.id})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "LICENSE_ISSUANCE_INCOMPLETE"

    def test_unknown_license(self, api_client, wired_service):
        response = api_client.get(reverse("license-status"), {"licenseId": 999999})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LICENSE_NOT_FOUND"
        assert response["Access-Control-Allow-Origin"] == "*"
