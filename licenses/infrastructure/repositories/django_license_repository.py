"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
Every state transition runs inside a transaction; transitions that depend on
the current row take a row lock first.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import transaction

from core.domain.exceptions import InvalidLicenseOperationError, LicenseNotFoundError
from core.domain.value_objects import LicenseStatus, LicenseType
from licenses.domain.license import PENDING_KEY_PREFIX, License, is_placeholder_key, utcnow
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository, TokenFactory


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Applies state transitions with conditional or locked writes
    3. Implements repository interface
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            clinic_id=model.clinic_id,
            key=model.key,
            type=LicenseType(model.type),
            version=model.version,
            activation_date=model.activation_date,
            support_expiry=model.support_expiry,
            status=LicenseStatus(model.status),
            first_activated=model.first_activated,
            last_verified=model.last_verified,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _get_model(self, license_id: int, for_update: bool = False) -> LicenseModel:
        queryset = LicenseModel.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=license_id)
        except LicenseModel.DoesNotExist:
            raise LicenseNotFoundError(f"License {license_id} not found")

    @sync_to_async
    def create_issued(self, license: License, token_factory: TokenFactory) -> License:
        """
        Insert a license and attach its token in one transaction.

        Args:
            license: Unsaved license entity holding a placeholder key
            token_factory: Callable minting a token for the saved license

        Returns:
            Issued license entity
        """
        with transaction.atomic():
            model = LicenseModel.objects.create(
                clinic_id=license.clinic_id,
                key=license.key,
                type=license.type.value,
                version=license.version,
                activation_date=license.activation_date,
                support_expiry=license.support_expiry,
                status=license.status.value,
            )
            model.key = token_factory(self._to_domain(model))
            model.save(update_fields=["key", "updated_at"])
        return self._to_domain(model)

    @sync_to_async
    def attach_key(self, license_id: int, token: str) -> License:
        """
        Replace a placeholder key with a signed token.

        Args:
            license_id: License ID
            token: Signed token embedding license_id

        Returns:
            Updated license entity
        """
        with transaction.atomic():
            model = self._get_model(license_id, for_update=True)
            if not is_placeholder_key(model.key):
                raise InvalidLicenseOperationError(f"License {license_id} already has a token")
            model.key = token
            model.save(update_fields=["key", "updated_at"])
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, license_id: int) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License ID

        Returns:
            License entity or None if not found
        """
        try:
            return self._to_domain(LicenseModel.objects.get(id=license_id))
        except LicenseModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_clinic(self, clinic_id: int) -> List[License]:
        """
        Find all licenses for a clinic.

        Args:
            clinic_id: Clinic ID

        Returns:
            List of License entities, newest first
        """
        models = LicenseModel.objects.filter(clinic_id=clinic_id)
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def find_pending_issuance(self) -> List[License]:
        models = LicenseModel.objects.filter(key__startswith=PENDING_KEY_PREFIX).order_by("id")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def exists(self, license_id: int) -> bool:
        """
        Check if a license exists.

        Args:
            license_id: License ID

        Returns:
            True if license exists, False otherwise
        """
        return LicenseModel.objects.filter(id=license_id).exists()

    @sync_to_async
    def mark_first_activation(
        self, license_id: int, activated_at: datetime
    ) -> Tuple[License, bool]:
        """
        Set first_activated with a single conditional update.

        Args:
            license_id: License ID
            activated_at: Activation timestamp

        Returns:
            Tuple of (license entity, whether this call set first_activated)
        """
        updated = LicenseModel.objects.filter(
            id=license_id, first_activated__isnull=True
        ).update(first_activated=activated_at, updated_at=utcnow())
        return self._to_domain(self._get_model(license_id)), updated == 1

    @sync_to_async
    def touch_last_verified(self, license_id: int, verified_at: datetime) -> License:
        """
        Record a verification event.

        Args:
            license_id: License ID
            verified_at: Verification timestamp

        Returns:
            Updated license entity
        """
        updated = LicenseModel.objects.filter(id=license_id).update(
            last_verified=verified_at, updated_at=utcnow()
        )
        if not updated:
            raise LicenseNotFoundError(f"License {license_id} not found")
        return self._to_domain(self._get_model(license_id))

    @sync_to_async
    def revoke(self, license_id: int) -> Tuple[License, bool]:
        """
        Revoke a license.

        Args:
            license_id: License ID

        Returns:
            Tuple of (license entity, whether this call changed the status)
        """
        with transaction.atomic():
            model = self._get_model(license_id, for_update=True)
            current = self._to_domain(model)
            if current.is_revoked:
                return current, False
            revoked = current.revoke()
            model.status = revoked.status.value
            model.save(update_fields=["status", "updated_at"])
        return self._to_domain(model), True

    @sync_to_async
    def renew(self, license_id: int, new_expiry: datetime) -> License:
        """
        Set a new support expiry.

        Args:
            license_id: License ID
            new_expiry: New support expiry

        Returns:
            Renewed license entity
        """
        with transaction.atomic():
            model = self._get_model(license_id, for_update=True)
            renewed = self._to_domain(model).renew(new_expiry)
            model.support_expiry = renewed.support_expiry
            model.save(update_fields=["support_expiry", "updated_at"])
        return self._to_domain(model)

    @sync_to_async
    def transfer(
        self,
        license_id: int,
        new_clinic_id: int,
        token_factory: Optional[TokenFactory] = None,
    ) -> License:
        """
        Reassign a license to another clinic.

        Args:
            license_id: License ID
            new_clinic_id: Destination clinic ID
            token_factory: Optional callable re-minting the token

        Returns:
            Transferred license entity
        """
        with transaction.atomic():
            model = self._get_model(license_id, for_update=True)
            transferred = self._to_domain(model).transfer(new_clinic_id)
            model.clinic_id = transferred.clinic_id
            update_fields = ["clinic", "updated_at"]
            if token_factory is not None:
                model.key = token_factory(transferred)
                update_fields.append("key")
            model.save(update_fields=update_fields)
        return self._to_domain(model)
