"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class KeyMaterialError(DomainException):
    """Raised when persisted signing key material is unreadable or inconsistent."""

    def __init__(self, message: str = "Signing key material is unusable"):
        super().__init__(message, code="KEY_MATERIAL_ERROR")


class TokenException(DomainException):
    """Base exception for license token decoding failures."""

    pass


class TokenMalformedError(TokenException):
    """Raised when a token cannot be parsed into header, claims and signature."""

    def __init__(self, message: str = "Malformed license token"):
        super().__init__(message, code="TOKEN_MALFORMED")


class InvalidTokenSignatureError(TokenException):
    """Raised when the token signature does not verify against the public key."""

    def __init__(self, message: str = "Invalid license token signature"):
        super().__init__(message, code="INVALID_TOKEN_SIGNATURE")


class InvalidTokenClaimsError(TokenException):
    """Raised when issuer or audience claims do not match."""

    def __init__(self, message: str = "Invalid license token claims"):
        super().__init__(message, code="INVALID_TOKEN_CLAIMS")


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class InvalidLicenseOperationError(LicenseException):
    """Raised when a license operation is not allowed in the current status."""

    def __init__(self, message: str = "Invalid license operation"):
        super().__init__(message, code="INVALID_LICENSE_OPERATION")


class LicenseIssuanceIncompleteError(LicenseException):
    """Raised when a license still holds a placeholder key instead of a token."""

    def __init__(self, message: str = "License issuance has not completed"):
        super().__init__(message, code="LICENSE_ISSUANCE_INCOMPLETE")


class ClinicException(DomainException):
    """Base exception for clinic-related errors."""

    pass


class ClinicNotFoundError(ClinicException):
    """Raised when a clinic is not found."""

    def __init__(self, message: str = "Clinic not found"):
        super().__init__(message, code="CLINIC_NOT_FOUND")
