"""
Integration tests for the admin license API endpoints.
"""

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from licenses.infrastructure.models import License as LicenseModel


def issue_payload(clinic_id, **overrides):
    payload = {
        "clinicId": clinic_id,
        "type": "Standalone",
        "supportExpiry": (timezone.now() + timedelta(days=365)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def issued(admin_client, wired_service, clinic_id):
    response = admin_client.post(reverse("admin-licenses"), issue_payload(clinic_id), format="json")
    assert response.status_code == 201
    return response.json()


@pytest.mark.django_db
@pytest.mark.integration
class TestAdminAuthentication:
    """Integration tests for admin API key enforcement."""

    def test_missing_api_key(self, api_client, wired_service):
        response = api_client.get(reverse("admin-license-detail", args=[1]))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_API_KEY"

    def test_invalid_api_key(self, api_client, wired_service):
        api_client.credentials(HTTP_X_API_KEY="wrong-key")

        response = api_client.get(reverse("admin-license-detail", args=[1]))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_API_KEY"

    def test_bearer_token(self, api_client, issued):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer test-admin-key")

        response = api_client.get(reverse("admin-license-detail", args=[issued["id"]]))

        assert response.status_code == 200

    def test_admin_api_disabled_without_configured_key(self, admin_client, wired_service, settings):
        settings.LICENSE_ADMIN_API_KEY = ""

        response = admin_client.get(reverse("admin-license-detail", args=[1]))

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "ADMIN_API_DISABLED"

    def test_public_endpoints_need_no_key(self, api_client, wired_service):
        response = api_client.post(reverse("verify-license"), {"license": "x.y.z"}, format="json")

        assert response.status_code == 400


@pytest.mark.django_db
@pytest.mark.integration
class TestAdminLicenseAPI:
    """Integration tests for license management."""

    def test_issue(self, issued, clinic_id, api_client):
        assert issued["clinicId"] == clinic_id
        assert issued["type"] == "Standalone"
        assert issued["version"] == "1.0"
        assert issued["status"] == "Active"
        assert issued["pendingIssuance"] is False
        assert issued["firstActivated"] is None

        response = api_client.post(
            reverse("verify-license"), {"license": issued["key"]}, format="json"
        )
        assert response.json()["license"]["id"] == issued["id"]

    def test_issue_to_unknown_clinic(self, admin_client, wired_service):
        response = admin_client.post(
            reverse("admin-licenses"), issue_payload(999999), format="json"
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CLINIC_NOT_FOUND"

    @pytest.mark.parametrize(
        "overrides",
        [{"type": "Lifetime"}, {"supportExpiry": "next year"}, {"clinicId": 0}],
    )
    def test_issue_validation(self, admin_client, wired_service, clinic_id, overrides):
        response = admin_client.post(
            reverse("admin-licenses"), issue_payload(clinic_id, **overrides), format="json"
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_get_license(self, admin_client, issued):
        response = admin_client.get(reverse("admin-license-detail", args=[issued["id"]]))

        assert response.status_code == 200
        assert response.json()["key"] == issued["key"]

    def test_get_unknown_license(self, admin_client, wired_service):
        response = admin_client.get(reverse("admin-license-detail", args=[999999]))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LICENSE_NOT_FOUND"

    def test_pending_license_hides_key(self, admin_client, wired_service, clinic_id):
        model = LicenseModel.objects.create(
            clinic_id=clinic_id,
            key="pending:abc",
            type="Standalone",
            activation_date=timezone.now(),
            support_expiry=timezone.now() + timedelta(days=30),
        )

        response = admin_client.get(reverse("admin-license-detail", args=[model.id]))

        assert response.json()["key"] is None
        assert response.json()["pendingIssuance"] is True

    def test_list_for_clinic(self, admin_client, issued, clinic_id):
        response = admin_client.get(reverse("admin-licenses"), {"clinicId": clinic_id})

        assert response.status_code == 200
        assert response.json()["count"] == 1
        assert response.json()["results"][0]["id"] == issued["id"]

    def test_list_requires_clinic_id(self, admin_client, wired_service):
        response = admin_client.get(reverse("admin-licenses"))

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CLINIC_ID"

    def test_renew_by_months(self, admin_client, issued):
        response = admin_client.post(
            reverse("admin-license-renew", args=[issued["id"]]), {"months": 6}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["supportExpiry"] > issued["supportExpiry"]
        assert response.json()["key"] == issued["key"]

    def test_renew_with_explicit_expiry(self, admin_client, issued):
        new_expiry = timezone.now() + timedelta(days=1000)

        response = admin_client.post(
            reverse("admin-license-renew", args=[issued["id"]]),
            {"supportExpiry": new_expiry.isoformat()},
            format="json",
        )

        assert response.status_code == 200
        stored = LicenseModel.objects.get(id=issued["id"])
        assert abs(stored.support_expiry - new_expiry) < timedelta(seconds=1)

    def test_renew_rejects_both_forms(self, admin_client, issued):
        response = admin_client.post(
            reverse("admin-license-renew", args=[issued["id"]]),
            {"months": 6, "supportExpiry": timezone.now().isoformat()},
            format="json",
        )

        assert response.status_code == 400

    def test_renew_revoked_conflicts(self, admin_client, issued):
        admin_client.post(reverse("admin-license-revoke", args=[issued["id"]]))

        response = admin_client.post(
            reverse("admin-license-renew", args=[issued["id"]]), {}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_LICENSE_OPERATION"

    def test_revoke_twice(self, admin_client, issued):
        url = reverse("admin-license-revoke", args=[issued["id"]])

        first = admin_client.post(url)
        second = admin_client.post(url)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["status"] == "Revoked"

    def test_transfer(self, admin_client, api_client, issued, make_clinic):
        destination = make_clinic()

        response = admin_client.post(
            reverse("admin-license-transfer", args=[issued["id"]]),
            {"clinicId": destination},
            format="json",
        )

        assert response.status_code == 200
        moved = response.json()
        assert moved["clinicId"] == destination
        assert moved["key"] != issued["key"]
        stale = api_client.post(reverse("verify-license"), {"license": issued["key"]}, format="json")
        assert stale.json() == {"valid": False, "reason": "superseded"}

    def test_transfer_to_unknown_clinic(self, admin_client, issued):
        response = admin_client.post(
            reverse("admin-license-transfer", args=[issued["id"]]),
            {"clinicId": 999999},
            format="json",
        )

        assert response.status_code == 404
