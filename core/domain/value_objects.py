"""
Value objects for the domain.

Value objects are immutable and compared by value rather than identity.
"""
from enum import Enum


class LicenseType(Enum):
    """License type value object."""

    STANDALONE = "Standalone"
    SUBSCRIPTION = "Subscription"

    def __str__(self) -> str:
        """Return type as string."""
        return self.value


class LicenseStatus(Enum):
    """
    License status value object.

    EXPIRED is normally observed rather than stored: it is derived from the
    support expiry at read time. REVOKED is terminal.
    """

    ACTIVE = "Active"
    EXPIRED = "Expired"
    REVOKED = "Revoked"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class ClinicStatus(Enum):
    """Clinic status value object."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value
