"""
License token codec.

Mints and verifies compact ES256 JWS tokens carrying license claims.
Verification is purely cryptographic and structural; business checks
(expiry, revocation, clinic binding) belong to the lifecycle service.
"""
from datetime import datetime
from typing import Optional

import jwt

from core.domain.exceptions import (
    InvalidTokenClaimsError,
    InvalidTokenSignatureError,
    TokenMalformedError,
)
from licenses.domain.license import utcnow
from licenses.domain.license_token import LicenseClaims
from licenses.ports.key_material_provider import KeyMaterialProvider

ALGORITHM = "ES256"
DEFAULT_ISSUER = "admin.nulldental.com"
DEFAULT_AUDIENCE = "clinic-app"
REQUIRED_REGISTERED_CLAIMS = ["iss", "aud", "iat"]


class LicenseTokenCodec:
    """Signs license claims into tokens and verifies tokens back into claims."""

    def __init__(
        self,
        key_provider: KeyMaterialProvider,
        issuer: str = DEFAULT_ISSUER,
        audience: str = DEFAULT_AUDIENCE,
    ):
        self.key_provider = key_provider
        self.issuer = issuer
        self.audience = audience

    def mint(self, claims: LicenseClaims, issued_at: Optional[datetime] = None) -> str:
        """
        Sign license claims into a compact token.

        Args:
            claims: License claims to embed
            issued_at: Value of the iat claim (defaults to now)

        Returns:
            Compact JWS string
        """
        payload = claims.to_payload()
        payload["iss"] = self.issuer
        payload["aud"] = self.audience
        payload["iat"] = int((issued_at or utcnow()).timestamp())
        return jwt.encode(
            payload,
            self.key_provider.get_signing_key(),
            algorithm=ALGORITHM,
            headers={"typ": "JWT"},
        )

    def verify(self, token: str) -> LicenseClaims:
        """
        Verify a token's signature and registered claims.

        Args:
            token: Compact JWS string

        Returns:
            Decoded license claims

        Raises:
            TokenMalformedError: If the token is not a well-formed license token
            InvalidTokenSignatureError: If the signature does not verify
            InvalidTokenClaimsError: If iss, aud or iat are missing or wrong
        """
        if not isinstance(token, str):
            raise TokenMalformedError("Token must be a string")
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise TokenMalformedError("Token must have three non-empty segments")

        try:
            payload = jwt.decode(
                token,
                self.key_provider.get_verification_key(),
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": REQUIRED_REGISTERED_CLAIMS},
            )
        # InvalidSignatureError subclasses DecodeError; keep it first.
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise InvalidTokenSignatureError(str(e)) from e
        except (
            jwt.InvalidIssuerError,
            jwt.InvalidAudienceError,
            jwt.MissingRequiredClaimError,
            jwt.ImmatureSignatureError,
            jwt.InvalidIssuedAtError,
        ) as e:
            raise InvalidTokenClaimsError(str(e)) from e
        except jwt.PyJWTError as e:
            raise TokenMalformedError(str(e)) from e

        try:
            return LicenseClaims.from_payload(payload)
        except KeyError as e:
            raise TokenMalformedError(f"Missing license claim {e}") from e
        except (ValueError, TypeError) as e:
            raise TokenMalformedError(f"Invalid license claim: {e}") from e
