"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from datetime import datetime
from typing import Optional

from licenses.domain.license import License
from licenses.domain.license_token import LicenseClaims

REASON_INVALID_TOKEN = "invalid token"
REASON_NOT_FOUND = "not found"
REASON_NOT_ISSUED = "not issued"
REASON_EXPIRED = "expired"
REASON_REVOKED = "revoked"
REASON_SUPERSEDED = "superseded"


class LicenseValidator:
    """
    Domain service deciding whether a verified token's license is usable.

    Checks always run in the same order: issuance state, expiry, revocation,
    binding to the current token. Expiry is a passive fact and is reported
    first; revocation is the explicit terminal override that follows it.
    """

    @staticmethod
    def rejection_reason(
        license: License, claims: LicenseClaims, token: str, current_time: datetime
    ) -> Optional[str]:
        """
        Evaluate a license record against a verified token.

        Only the token stored on the record is current. Transfers re-mint
        it, so an older token is superseded even when its clinic matches.

        Args:
            license: Authoritative license record
            claims: Claims decoded from the presented token
            token: The presented token
            current_time: Time of the check

        Returns:
            Rejection reason, or None if the license is valid
        """
        if license.is_pending_issuance:
            return REASON_NOT_ISSUED
        if license.is_expired(current_time):
            return REASON_EXPIRED
        if license.is_revoked:
            return REASON_REVOKED
        if claims.clinic_id != license.clinic_id or token != license.key:
            return REASON_SUPERSEDED
        return None
