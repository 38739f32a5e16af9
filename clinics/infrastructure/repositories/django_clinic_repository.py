"""
Django implementation of ClinicRepository port.

This adapter converts between domain entities and Django ORM models.
"""
from typing import Optional

from asgiref.sync import sync_to_async

from clinics.domain.clinic import Clinic
from clinics.infrastructure.models import Clinic as ClinicModel
from clinics.ports.clinic_repository import ClinicRepository
from core.domain.value_objects import ClinicStatus, LicenseType


class DjangoClinicRepository(ClinicRepository):
    """Django ORM implementation of ClinicRepository."""

    def _to_domain(self, model: ClinicModel) -> Clinic:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Clinic model

        Returns:
            Clinic domain entity
        """
        return Clinic(
            id=model.id,
            name=model.name,
            domain=model.domain,
            license_type=LicenseType(model.license_type),
            admin_contact=model.admin_contact,
            support_expiry=model.support_expiry,
            status=ClinicStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    def save(self, clinic: Clinic) -> Clinic:
        """
        Save a clinic entity.

        Args:
            clinic: Clinic entity to save

        Returns:
            Saved clinic entity
        """
        fields = {
            "name": clinic.name,
            "domain": clinic.domain,
            "license_type": clinic.license_type.value,
            "admin_contact": clinic.admin_contact,
            "support_expiry": clinic.support_expiry,
            "status": clinic.status.value,
        }
        if clinic.id is None:
            model = ClinicModel.objects.create(**fields)
        else:
            model, _ = ClinicModel.objects.update_or_create(id=clinic.id, defaults=fields)
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, clinic_id: int) -> Optional[Clinic]:
        """
        Find a clinic by ID.

        Args:
            clinic_id: Clinic ID

        Returns:
            Clinic entity or None if not found
        """
        try:
            return self._to_domain(ClinicModel.objects.get(id=clinic_id))
        except ClinicModel.DoesNotExist:
            return None

    @sync_to_async
    def exists(self, clinic_id: int) -> bool:
        return ClinicModel.objects.filter(id=clinic_id).exists()
