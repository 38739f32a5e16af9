"""
License token claims.

The claims payload is a wire contract shared with clinic deployments:
camelCase keys, timestamps as ISO-8601 strings (not epoch numbers).
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.domain.value_objects import LicenseType
from licenses.domain.license import License

CLAIM_LICENSE_ID = "licenseId"
CLAIM_CLINIC_ID = "clinicId"
CLAIM_TYPE = "type"
CLAIM_VERSION = "version"
CLAIM_ACTIVATION_DATE = "activationDate"
CLAIM_SUPPORT_EXPIRY = "supportExpiry"


def format_timestamp(value: datetime) -> str:
    """
    Serialize an aware datetime as ISO-8601 UTC with millisecond precision.

    Example: 2025-03-01T09:30:00.000Z
    """
    if value.tzinfo is None:
        raise ValueError("Timestamp must be timezone-aware")
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp produced by format_timestamp."""
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO-8601 string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class LicenseClaims:
    """Claims embedded in and signed by a license token."""

    license_id: int
    clinic_id: int
    type: LicenseType
    version: str
    activation_date: datetime
    support_expiry: datetime
    issuer: Optional[str] = None
    audience: Optional[str] = None
    issued_at: Optional[int] = None

    @classmethod
    def for_license(cls, license: License) -> "LicenseClaims":
        """
        Build the claims for a persisted license.

        Raises:
            ValueError: If the license has not been saved yet
        """
        if license.id is None:
            raise ValueError("License must be saved before its token is minted")
        return cls(
            license_id=license.id,
            clinic_id=license.clinic_id,
            type=license.type,
            version=license.version,
            activation_date=license.activation_date,
            support_expiry=license.support_expiry,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize license claims into the wire payload."""
        return {
            CLAIM_LICENSE_ID: self.license_id,
            CLAIM_CLINIC_ID: self.clinic_id,
            CLAIM_TYPE: self.type.value,
            CLAIM_VERSION: self.version,
            CLAIM_ACTIVATION_DATE: format_timestamp(self.activation_date),
            CLAIM_SUPPORT_EXPIRY: format_timestamp(self.support_expiry),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "LicenseClaims":
        """
        Deserialize a decoded wire payload.

        Raises:
            KeyError: If a license claim is missing
            ValueError: If a claim has the wrong shape
        """
        license_id = payload[CLAIM_LICENSE_ID]
        clinic_id = payload[CLAIM_CLINIC_ID]
        for name, value in ((CLAIM_LICENSE_ID, license_id), (CLAIM_CLINIC_ID, clinic_id)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Claim {name} must be an integer")
        return cls(
            license_id=license_id,
            clinic_id=clinic_id,
            type=LicenseType(payload[CLAIM_TYPE]),
            version=str(payload[CLAIM_VERSION]),
            activation_date=parse_timestamp(payload[CLAIM_ACTIVATION_DATE]),
            support_expiry=parse_timestamp(payload[CLAIM_SUPPORT_EXPIRY]),
            issuer=payload.get("iss"),
            audience=payload.get("aud"),
            issued_at=payload.get("iat"),
        )

    def license_fields(self) -> "LicenseClaims":
        """Claims stripped of the registered iss/aud/iat fields."""
        return LicenseClaims(
            license_id=self.license_id,
            clinic_id=self.clinic_id,
            type=self.type,
            version=self.version,
            activation_date=self.activation_date,
            support_expiry=self.support_expiry,
        )
