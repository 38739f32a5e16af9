"""
Integration tests for repository implementations.
"""

from datetime import datetime, timedelta, timezone

import pytest
from asgiref.sync import async_to_sync

from clinics.domain.clinic import Clinic
from core.domain.exceptions import InvalidLicenseOperationError, LicenseNotFoundError
from core.domain.value_objects import LicenseStatus, LicenseType
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel

NOW = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


def new_license(clinic_id, **kwargs):
    return License.create(
        clinic_id=clinic_id,
        license_type=kwargs.get("license_type", LicenseType.STANDALONE),
        support_expiry=kwargs.get("support_expiry", NOW + timedelta(days=365)),
        now=NOW,
    )


def fake_token(license):
    return f"token-for-{license.id}-{license.clinic_id}"


@pytest.mark.django_db
@pytest.mark.integration
class TestClinicRepository:
    """Integration tests for ClinicRepository."""

    def test_save_and_find(self, clinic_repository):
        saved = async_to_sync(clinic_repository.save)(
            Clinic.create(name="Bright Teeth", domain="bright.example.com")
        )

        assert saved.id is not None
        found = async_to_sync(clinic_repository.find_by_id)(saved.id)
        assert found.name == "Bright Teeth"
        assert found.domain == "bright.example.com"
        assert async_to_sync(clinic_repository.exists)(saved.id) is True

    def test_find_not_found(self, clinic_repository):
        assert async_to_sync(clinic_repository.find_by_id)(999999) is None
        assert async_to_sync(clinic_repository.exists)(999999) is False


@pytest.mark.django_db
@pytest.mark.integration
class TestLicenseRepository:
    """Integration tests for LicenseRepository."""

    def test_create_issued_embeds_saved_id(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)

        assert issued.id is not None
        assert issued.key == f"token-for-{issued.id}-{clinic_id}"
        assert issued.is_pending_issuance is False
        assert LicenseModel.objects.get(id=issued.id).key == issued.key

    def test_create_issued_rolls_back_when_minting_fails(self, license_repository, clinic_id):
        def broken_factory(license):
            raise RuntimeError("signing unavailable")

        with pytest.raises(RuntimeError):
            async_to_sync(license_repository.create_issued)(new_license(clinic_id), broken_factory)

        assert LicenseModel.objects.filter(clinic_id=clinic_id).count() == 0

    def test_find_by_id(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)

        found = async_to_sync(license_repository.find_by_id)(issued.id)

        assert found == issued
        assert async_to_sync(license_repository.find_by_id)(999999) is None

    def test_find_by_clinic_newest_first(self, license_repository, make_clinic):
        clinic_id = make_clinic()
        other_clinic = make_clinic()
        first = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)
        second = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)
        async_to_sync(license_repository.create_issued)(new_license(other_clinic), fake_token)

        found = async_to_sync(license_repository.find_by_clinic)(clinic_id)

        assert {license.id for license in found} == {first.id, second.id}

    def test_pending_issuance_and_attach_key(self, license_repository, clinic_id):
        pending = new_license(clinic_id)
        model = LicenseModel.objects.create(
            clinic_id=clinic_id,
            key=pending.key,
            type=pending.type.value,
            activation_date=pending.activation_date,
            support_expiry=pending.support_expiry,
        )

        found = async_to_sync(license_repository.find_pending_issuance)()
        assert [license.id for license in found] == [model.id]

        attached = async_to_sync(license_repository.attach_key)(model.id, "signed-token")
        assert attached.key == "signed-token"
        assert async_to_sync(license_repository.find_pending_issuance)() == []

    def test_attach_key_refuses_to_overwrite_token(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)

        with pytest.raises(InvalidLicenseOperationError):
            async_to_sync(license_repository.attach_key)(issued.id, "another-token")

    def test_mark_first_activation_only_once(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)
        first_time = NOW + timedelta(days=1)

        license, changed = async_to_sync(license_repository.mark_first_activation)(
            issued.id, first_time
        )
        assert changed is True
        assert license.first_activated == first_time

        license, changed = async_to_sync(license_repository.mark_first_activation)(
            issued.id, first_time + timedelta(days=1)
        )
        assert changed is False
        assert license.first_activated == first_time

    def test_touch_last_verified(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)
        verified_at = NOW + timedelta(hours=3)

        touched = async_to_sync(license_repository.touch_last_verified)(issued.id, verified_at)

        assert touched.last_verified == verified_at

    def test_touch_last_verified_unknown_license(self, license_repository):
        with pytest.raises(LicenseNotFoundError):
            async_to_sync(license_repository.touch_last_verified)(999999, NOW)

    def test_revoke_reports_transition_once(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)

        revoked, changed = async_to_sync(license_repository.revoke)(issued.id)
        assert changed is True
        assert revoked.status == LicenseStatus.REVOKED

        again, changed = async_to_sync(license_repository.revoke)(issued.id)
        assert changed is False
        assert again.status == LicenseStatus.REVOKED

    def test_renew(self, license_repository, clinic_id):
        issued = async_to_sync(license_repository.create_issued)(new_license(clinic_id), fake_token)
        new_expiry = NOW + timedelta(days=900)

        renewed = async_to_sync(license_repository.renew)(issued.id, new_expiry)

        assert renewed.support_expiry == new_expiry
        assert renewed.key == issued.key

    def test_transfer_with_reminted_token(self, license_repository, make_clinic):
        source, destination = make_clinic(), make_clinic()
        issued = async_to_sync(license_repository.create_issued)(new_license(source), fake_token)

        moved = async_to_sync(license_repository.transfer)(
            issued.id, destination, token_factory=fake_token
        )

        assert moved.clinic_id == destination
        assert moved.key == f"token-for-{issued.id}-{destination}"

    def test_transfer_revoked_license_raises(self, license_repository, make_clinic):
        source, destination = make_clinic(), make_clinic()
        issued = async_to_sync(license_repository.create_issued)(new_license(source), fake_token)
        async_to_sync(license_repository.revoke)(issued.id)

        with pytest.raises(InvalidLicenseOperationError):
            async_to_sync(license_repository.transfer)(issued.id, destination)

    @pytest.mark.parametrize("operation", ["revoke", "attach_key", "renew"])
    def test_unknown_license(self, license_repository, operation):
        args = {
            "revoke": (999999,),
            "attach_key": (999999, "token"),
            "renew": (999999, NOW),
        }[operation]

        with pytest.raises(LicenseNotFoundError):
            async_to_sync(getattr(license_repository, operation))(*args)
