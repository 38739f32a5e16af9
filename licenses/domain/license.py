"""
License domain entity.

This is the core domain entity representing a license issued to a clinic.
It contains business logic and is independent of infrastructure.
"""
import calendar
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.exceptions import (
    InvalidLicenseOperationError,
    LicenseIssuanceIncompleteError,
)
from core.domain.value_objects import LicenseStatus, LicenseType

PENDING_KEY_PREFIX = "pending:"


def generate_placeholder_key() -> str:
    """
    Generate a unique placeholder key for a license that has no token yet.

    Returns:
        Placeholder key string, never parseable as a token
    """
    return f"{PENDING_KEY_PREFIX}{uuid.uuid4()}"


def is_placeholder_key(key: str) -> bool:
    """Check whether a stored key is an issuance placeholder."""
    return not key or key.startswith(PENDING_KEY_PREFIX)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """
    Shift a datetime by whole calendar months.

    The day is clamped to the last day of the target month, so
    Jan 31 + 1 month is Feb 28 (or 29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Represents a signed, time-bounded software license bound to one clinic.
    The key holds a placeholder while issuance is in flight and the signed
    token once issuance has completed.
    """

    id: Optional[int]
    clinic_id: int
    key: str
    type: LicenseType
    version: str
    activation_date: datetime
    support_expiry: datetime
    status: LicenseStatus
    first_activated: Optional[datetime]
    last_verified: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.clinic_id:
            raise ValueError("Clinic ID is required")
        if not self.version or len(self.version.strip()) == 0:
            raise ValueError("Version cannot be empty")
        if self.support_expiry.tzinfo is None:
            raise ValueError("Support expiry must be timezone-aware")

    @classmethod
    def create(
        cls,
        clinic_id: int,
        license_type: LicenseType,
        support_expiry: datetime,
        version: str = "1.0",
        now: Optional[datetime] = None,
    ) -> "License":
        """
        Create a new, not yet issued License entity.

        Args:
            clinic_id: Clinic the license is bound to
            license_type: Standalone or Subscription
            support_expiry: Aware datetime after which the license lapses
            version: Licensed software release
            now: Creation time (defaults to utcnow)

        Returns:
            License entity holding a placeholder key
        """
        created = now or utcnow()
        return cls(
            id=None,
            clinic_id=clinic_id,
            key=generate_placeholder_key(),
            type=license_type,
            version=version.strip(),
            activation_date=created,
            support_expiry=support_expiry,
            status=LicenseStatus.ACTIVE,
            first_activated=None,
            last_verified=None,
            created_at=created,
            updated_at=created,
        )

    @property
    def is_pending_issuance(self) -> bool:
        """True while the key is a placeholder rather than a signed token."""
        return is_placeholder_key(self.key)

    @property
    def is_revoked(self) -> bool:
        return self.status == LicenseStatus.REVOKED

    def token(self) -> str:
        """
        Return the signed token for this license.

        Raises:
            LicenseIssuanceIncompleteError: If the key is still a placeholder
        """
        if self.is_pending_issuance:
            raise LicenseIssuanceIncompleteError(
                f"License {self.id} has not been issued a token yet"
            )
        return self.key

    def is_expired(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether the support window has passed.

        Args:
            current_time: Current time (defaults to utcnow)

        Returns:
            True if support expiry is at or before the current time
        """
        return self.support_expiry <= (current_time or utcnow())

    def effective_status(self, current_time: Optional[datetime] = None) -> LicenseStatus:
        """
        Status as observed now.

        Revoked is authoritative; otherwise expiry is re-derived from the
        timestamp instead of trusting the stored value.
        """
        if self.is_revoked:
            return LicenseStatus.REVOKED
        if self.is_expired(current_time):
            return LicenseStatus.EXPIRED
        return LicenseStatus.ACTIVE

    def revoke(self) -> "License":
        """
        Create a new License instance with revoked status.

        Revoking an already revoked license returns it unchanged.
        """
        if self.is_revoked:
            return self
        return replace(self, status=LicenseStatus.REVOKED, updated_at=utcnow())

    def renew(self, new_expiry: datetime) -> "License":
        """
        Create a new License instance with an extended support expiry.

        Status is left as it is.

        Raises:
            InvalidLicenseOperationError: If the license is revoked
        """
        if self.is_revoked:
            raise InvalidLicenseOperationError(
                f"License {self.id} is revoked and cannot be renewed"
            )
        if new_expiry.tzinfo is None:
            raise ValueError("Support expiry must be timezone-aware")
        return replace(self, support_expiry=new_expiry, updated_at=utcnow())

    def transfer(self, new_clinic_id: int) -> "License":
        """
        Create a new License instance bound to another clinic.

        Raises:
            InvalidLicenseOperationError: If the license is revoked
        """
        if self.is_revoked:
            raise InvalidLicenseOperationError(
                f"License {self.id} is revoked and cannot be transferred"
            )
        if not new_clinic_id:
            raise ValueError("Clinic ID is required")
        return replace(self, clinic_id=new_clinic_id, updated_at=utcnow())
