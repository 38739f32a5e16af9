"""
License DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from licenses.domain.license_token import format_timestamp


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return format_timestamp(value) if value is not None else None


@dataclass
class LicenseDisplayDTO:
    """License fields safe to show to a clinic deployment."""

    id: int
    clinic_id: int
    clinic_name: str
    clinic_domain: str
    type: str
    version: str
    activation_date: datetime
    first_activated: Optional[datetime]
    support_expiry: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clinicId": self.clinic_id,
            "clinicName": self.clinic_name,
            "clinicDomain": self.clinic_domain,
            "type": self.type,
            "version": self.version,
            "activationDate": _timestamp(self.activation_date),
            "firstActivated": _timestamp(self.first_activated),
            "supportExpiry": _timestamp(self.support_expiry),
        }


@dataclass
class ValidationResult:
    """
    Outcome of validating a presented license token.

    A rejected result carries only the reason; it never exposes the
    stored record or key material.
    """

    valid: bool
    reason: Optional[str] = None
    expired: bool = False
    license: Optional[LicenseDisplayDTO] = None
    first_activation: bool = False

    @classmethod
    def rejected(cls, reason: str, expired: bool = False) -> "ValidationResult":
        return cls(valid=False, reason=reason, expired=expired)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize into the verification response body."""
        if not self.valid:
            data: Dict[str, Any] = {"valid": False, "reason": self.reason}
            if self.expired:
                data["expired"] = True
            return data
        return {
            "valid": True,
            "firstActivation": self.first_activation,
            "license": self.license.to_dict(),
        }


@dataclass
class LicenseStatusDTO:
    """DTO for license status response."""

    license_id: int
    status: str
    last_verified: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "licenseId": self.license_id,
            "status": self.status,
            "lastVerified": _timestamp(self.last_verified),
        }
