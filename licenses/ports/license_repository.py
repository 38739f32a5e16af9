"""
License repository port (interface).

This defines the contract for license persistence operations.
The repository is the only component allowed to mutate license records;
state transitions enforce their policy here, not only in callers.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from licenses.domain.license import License

TokenFactory = Callable[[License], str]


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def create_issued(self, license: License, token_factory: TokenFactory) -> License:
        """
        Persist a new license and attach its signed token.

        The record is inserted with its placeholder key, the token factory is
        called with the saved record (which now has its generated id) and the
        key is replaced with the returned token, all in one transaction.

        Args:
            license: Unsaved license entity holding a placeholder key
            token_factory: Callable minting a token for the saved license

        Returns:
            Issued license entity
        """
        pass

    @abstractmethod
    async def attach_key(self, license_id: int, token: str) -> License:
        """
        Replace a pending license's placeholder key with its token.

        Args:
            license_id: License ID
            token: Signed token embedding license_id

        Returns:
            Updated license entity

        Raises:
            LicenseNotFoundError: If license not found
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: int) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License ID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_clinic(self, clinic_id: int) -> List[License]:
        """
        Find all licenses bound to a clinic.

        Args:
            clinic_id: Clinic ID

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def find_pending_issuance(self) -> List[License]:
        """
        Find licenses whose key is still a placeholder.

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def exists(self, license_id: int) -> bool:
        """
        Check if a license exists.

        Args:
            license_id: License ID

        Returns:
            True if license exists, False otherwise
        """
        pass

    @abstractmethod
    async def mark_first_activation(
        self, license_id: int, activated_at: datetime
    ) -> Tuple[License, bool]:
        """
        Set first_activated if it is still unset.

        Implementations must use a single conditional write so that exactly
        one of any number of concurrent callers observes True.

        Args:
            license_id: License ID
            activated_at: Activation timestamp

        Returns:
            Tuple of (license entity, whether this call set first_activated)

        Raises:
            LicenseNotFoundError: If license not found
        """
        pass

    @abstractmethod
    async def touch_last_verified(self, license_id: int, verified_at: datetime) -> License:
        """
        Record a verification event.

        Args:
            license_id: License ID
            verified_at: Verification timestamp

        Returns:
            Updated license entity

        Raises:
            LicenseNotFoundError: If license not found
        """
        pass

    @abstractmethod
    async def revoke(self, license_id: int) -> Tuple[License, bool]:
        """
        Revoke a license. Revoking a revoked license is a no-op.

        Returns:
            Tuple of (license entity, whether this call changed the status)

        Raises:
            LicenseNotFoundError: If license not found
        """
        pass

    @abstractmethod
    async def renew(self, license_id: int, new_expiry: datetime) -> License:
        """
        Set a new support expiry.

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseOperationError: If license is revoked
        """
        pass

    @abstractmethod
    async def transfer(
        self,
        license_id: int,
        new_clinic_id: int,
        token_factory: Optional[TokenFactory] = None,
    ) -> License:
        """
        Reassign a license to another clinic.

        When a token factory is given the key is re-minted for the new
        binding in the same transaction.

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseOperationError: If license is revoked
        """
        pass
