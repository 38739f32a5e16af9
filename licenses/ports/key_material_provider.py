"""
Key material provider port (interface).

Supplies the asymmetric keypair used to sign and verify license tokens.
"""
from abc import ABC, abstractmethod

from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey,
    EllipticCurvePublicKey,
)


class KeyMaterialProvider(ABC):
    """Abstract source of the ES256 signing keypair."""

    @abstractmethod
    def get_signing_key(self) -> EllipticCurvePrivateKey:
        """
        Return the private key used to sign license tokens.

        Raises:
            KeyMaterialError: If persisted key material is unusable
        """
        pass

    @abstractmethod
    def get_verification_key(self) -> EllipticCurvePublicKey:
        """
        Return the public key used to verify license tokens.

        Raises:
            KeyMaterialError: If persisted key material is unusable
        """
        pass
