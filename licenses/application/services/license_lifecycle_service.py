"""
License lifecycle service.

Orchestrates issuance, validation, status checks, renewal, revocation and
transfer of licenses. This is the single place where business checks on a
presented token are made, always in the same order.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from clinics.ports.clinic_repository import ClinicRepository
from core import metrics
from core.domain.events import EventBus
from core.domain.exceptions import (
    ClinicNotFoundError,
    InvalidLicenseOperationError,
    LicenseIssuanceIncompleteError,
    LicenseNotFoundError,
    TokenException,
)
from core.domain.value_objects import LicenseType
from core.infrastructure.events import event_bus as default_event_bus
from licenses.application.dto.license_dto import (
    LicenseDisplayDTO,
    LicenseStatusDTO,
    ValidationResult,
)
from licenses.domain.events import (
    LicenseFirstActivated,
    LicenseIssued,
    LicenseRenewed,
    LicenseRevoked,
    LicenseTransferred,
)
from licenses.domain.license import License, add_months, utcnow
from licenses.domain.license_token import LicenseClaims
from licenses.domain.services import (
    REASON_EXPIRED,
    REASON_INVALID_TOKEN,
    REASON_NOT_FOUND,
    LicenseValidator,
)
from licenses.infrastructure.signing.token_codec import LicenseTokenCodec
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

RESULT_VALID = "valid"
DEFAULT_RENEWAL_MONTHS = 12


class LicenseLifecycleService:
    """
    Application service for the license lifecycle.

    All operations are coroutines; repositories bridge to the ORM.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        clinic_repository: ClinicRepository,
        token_codec: LicenseTokenCodec,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize service with its collaborators.

        Args:
            license_repository: License record store
            clinic_repository: Clinic lookup
            token_codec: Mints and verifies license tokens
            event_bus: Bus domain events are published to
            clock: Source of the current time
        """
        self.license_repository = license_repository
        self.clinic_repository = clinic_repository
        self.token_codec = token_codec
        self.event_bus = event_bus or default_event_bus
        self.clock = clock

    def _mint_for(self, license: License) -> str:
        return self.token_codec.mint(LicenseClaims.for_license(license), issued_at=self.clock())

    async def _require_license(self, license_id: int) -> License:
        license = await self.license_repository.find_by_id(license_id)
        if license is None:
            raise LicenseNotFoundError(f"License {license_id} not found")
        return license

    async def _require_clinic_exists(self, clinic_id: int) -> None:
        if not await self.clinic_repository.exists(clinic_id):
            raise ClinicNotFoundError(f"Clinic {clinic_id} not found")

    async def issue(
        self,
        clinic_id: int,
        license_type: LicenseType,
        support_expiry: datetime,
        version: str = "1.0",
    ) -> License:
        """
        Issue a new license with a signed token.

        The record and its token are written in one transaction, and the
        token embeds the id the record was saved under.

        Args:
            clinic_id: Clinic the license is bound to
            license_type: Standalone or Subscription
            support_expiry: Timezone-aware end of the support window
            version: Licensed software release

        Returns:
            Issued License entity

        Raises:
            ClinicNotFoundError: If the clinic does not exist
        """
        await self._require_clinic_exists(clinic_id)
        license = License.create(
            clinic_id=clinic_id,
            license_type=LicenseType(license_type),
            support_expiry=support_expiry,
            version=version,
            now=self.clock(),
        )
        issued = await self.license_repository.create_issued(license, self._mint_for)

        metrics.licenses_issued_total.labels(type=issued.type.value).inc()
        logger.info(
            "License issued",
            extra={"license_id": issued.id, "clinic_id": clinic_id, "license_type": issued.type.value},
        )
        await self.event_bus.publish(
            LicenseIssued(
                license_id=issued.id,
                clinic_id=issued.clinic_id,
                license_type=issued.type.value,
                version=issued.version,
                support_expiry=issued.support_expiry,
            )
        )
        return issued

    async def validate(self, token: str) -> ValidationResult:
        """
        Validate a license token presented by a clinic deployment.

        Checks run in a fixed order: token integrity, record existence,
        issuance state, expiry, revocation, clinic binding. A valid token
        records first activation (at most once) and the verification time.

        Args:
            token: Compact license token

        Returns:
            ValidationResult verdict
        """
        now = self.clock()
        try:
            claims = self.token_codec.verify(token)
        except TokenException as e:
            logger.info("License token rejected: %s", e.code, extra={"detail": e.message})
            return self._rejected(REASON_INVALID_TOKEN)

        license = await self.license_repository.find_by_id(claims.license_id)
        if license is None:
            logger.info("License token refers to unknown license %s", claims.license_id)
            return self._rejected(REASON_NOT_FOUND)

        reason = LicenseValidator.rejection_reason(license, claims, token, now)
        if reason is not None:
            logger.info(
                "License %s rejected: %s",
                license.id,
                reason,
                extra={"license_id": license.id, "token_clinic_id": claims.clinic_id},
            )
            return self._rejected(reason, expired=reason == REASON_EXPIRED)

        license, first_activation = await self.license_repository.mark_first_activation(
            license.id, now
        )
        license = await self.license_repository.touch_last_verified(license.id, now)
        clinic = await self.clinic_repository.find_by_id(license.clinic_id)

        metrics.license_validations_total.labels(result=RESULT_VALID).inc()
        if first_activation:
            metrics.license_first_activations_total.inc()
            logger.info("License %s activated for the first time", license.id)
            await self.event_bus.publish(
                LicenseFirstActivated(
                    license_id=license.id,
                    clinic_id=license.clinic_id,
                    activated_at=license.first_activated,
                )
            )

        return ValidationResult(
            valid=True,
            license=LicenseDisplayDTO(
                id=license.id,
                clinic_id=license.clinic_id,
                clinic_name=clinic.name if clinic else "",
                clinic_domain=clinic.domain if clinic else "",
                type=license.type.value,
                version=license.version,
                activation_date=license.activation_date,
                first_activated=license.first_activated,
                support_expiry=license.support_expiry,
            ),
            first_activation=first_activation,
        )

    @staticmethod
    def _rejected(reason: str, expired: bool = False) -> ValidationResult:
        metrics.license_validations_total.labels(result=reason).inc()
        return ValidationResult.rejected(reason, expired=expired)

    async def check_status(self, license_id: int) -> LicenseStatusDTO:
        """
        Report a license's effective status by id.

        Expiry is derived from the support window at call time. The
        response carries the previous verification time; the check itself
        is then recorded as a verification.

        Args:
            license_id: License ID

        Returns:
            LicenseStatusDTO

        Raises:
            LicenseNotFoundError: If license not found
            LicenseIssuanceIncompleteError: If issuance has not completed
        """
        license = await self._require_license(license_id)
        if license.is_pending_issuance:
            raise LicenseIssuanceIncompleteError(
                f"License {license.id} has not been issued a token yet"
            )
        now = self.clock()
        status = license.effective_status(now)
        await self.license_repository.touch_last_verified(license_id, now)
        return LicenseStatusDTO(
            license_id=license.id,
            status=status.value,
            last_verified=license.last_verified,
        )

    async def renew(
        self,
        license_id: int,
        support_expiry: Optional[datetime] = None,
        months: int = DEFAULT_RENEWAL_MONTHS,
    ) -> License:
        """
        Extend a license's support window.

        Args:
            license_id: License ID
            support_expiry: Explicit new expiry; when omitted the current
                expiry is extended by `months` calendar months
            months: Calendar months to extend by

        Returns:
            Renewed License entity

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseOperationError: If license is revoked
        """
        current = await self._require_license(license_id)
        if support_expiry is None:
            if months < 1:
                raise InvalidLicenseOperationError("Renewal must extend by at least one month")
            support_expiry = add_months(current.support_expiry, months)

        renewed = await self.license_repository.renew(license_id, support_expiry)

        metrics.licenses_renewed_total.inc()
        logger.info(
            "License %s renewed until %s",
            license_id,
            renewed.support_expiry.isoformat(),
            extra={"license_id": license_id},
        )
        await self.event_bus.publish(
            LicenseRenewed(
                license_id=renewed.id,
                clinic_id=renewed.clinic_id,
                previous_expiry=current.support_expiry,
                new_expiry=renewed.support_expiry,
            )
        )
        return renewed

    async def revoke(self, license_id: int) -> License:
        """
        Revoke a license. Revoking a revoked license is a no-op.

        Args:
            license_id: License ID

        Returns:
            Revoked License entity

        Raises:
            LicenseNotFoundError: If license not found
        """
        revoked, changed = await self.license_repository.revoke(license_id)
        if not changed:
            logger.info("License %s already revoked", license_id)
            return revoked

        metrics.licenses_revoked_total.inc()
        logger.info("License %s revoked", license_id, extra={"license_id": license_id})
        await self.event_bus.publish(
            LicenseRevoked(license_id=revoked.id, clinic_id=revoked.clinic_id)
        )
        return revoked

    async def transfer(self, license_id: int, new_clinic_id: int) -> License:
        """
        Move a license to another clinic.

        The token is re-minted for the new clinic binding. Tokens minted for
        the previous binding are rejected as superseded from then on.

        Args:
            license_id: License ID
            new_clinic_id: Destination clinic ID

        Returns:
            Transferred License entity

        Raises:
            LicenseNotFoundError: If license not found
            ClinicNotFoundError: If the destination clinic does not exist
            InvalidLicenseOperationError: If license is revoked
        """
        current = await self._require_license(license_id)
        await self._require_clinic_exists(new_clinic_id)

        transferred = await self.license_repository.transfer(
            license_id, new_clinic_id, token_factory=self._mint_for
        )

        metrics.licenses_transferred_total.inc()
        logger.info(
            "License %s transferred from clinic %s to clinic %s",
            license_id,
            current.clinic_id,
            new_clinic_id,
            extra={"license_id": license_id},
        )
        await self.event_bus.publish(
            LicenseTransferred(
                license_id=transferred.id,
                from_clinic_id=current.clinic_id,
                to_clinic_id=transferred.clinic_id,
            )
        )
        return transferred

    async def get_license(self, license_id: int) -> License:
        """
        Fetch a license record.

        Raises:
            LicenseNotFoundError: If license not found
        """
        return await self._require_license(license_id)

    async def list_for_clinic(self, clinic_id: int) -> List[License]:
        """
        List a clinic's licenses, newest first.

        Raises:
            ClinicNotFoundError: If the clinic does not exist
        """
        await self._require_clinic_exists(clinic_id)
        return await self.license_repository.find_by_clinic(clinic_id)

    async def get_token(self, license_id: int) -> str:
        """
        Return the signed token of an issued license.

        Raises:
            LicenseNotFoundError: If license not found
            LicenseIssuanceIncompleteError: If issuance has not completed
        """
        license = await self._require_license(license_id)
        return license.token()

    async def complete_pending_issuance(self) -> List[License]:
        """
        Mint tokens for records left with placeholder keys.

        Returns:
            Licenses whose issuance was completed
        """
        completed = []
        for pending in await self.license_repository.find_pending_issuance():
            issued = await self.license_repository.attach_key(pending.id, self._mint_for(pending))
            logger.warning(
                "Completed pending issuance for license %s", issued.id, extra={"license_id": issued.id}
            )
            completed.append(issued)
        return completed
