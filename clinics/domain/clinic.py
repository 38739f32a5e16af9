"""
Clinic domain entity.

Clinics are owned by the wider admin system; only the fields the license
core reads are modelled here.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import ClinicStatus, LicenseType


@dataclass(frozen=True)
class Clinic:
    """Clinic domain entity."""

    id: Optional[int]
    name: str
    domain: str
    license_type: LicenseType
    admin_contact: str
    support_expiry: Optional[datetime]
    status: ClinicStatus
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate clinic entity."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Clinic name cannot be empty")

    @classmethod
    def create(
        cls,
        name: str,
        domain: str = "",
        license_type: LicenseType = LicenseType.STANDALONE,
        admin_contact: str = "",
    ) -> "Clinic":
        """
        Create a new Clinic entity.

        Args:
            name: Clinic display name
            domain: Deployment domain
            license_type: Preferred license type
            admin_contact: Administrator contact

        Returns:
            New Clinic entity
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=None,
            name=name.strip(),
            domain=domain.strip(),
            license_type=license_type,
            admin_contact=admin_contact,
            support_expiry=None,
            status=ClinicStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

