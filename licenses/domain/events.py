"""
License domain events.

Domain events represent something that happened in the license domain.
"""

from dataclasses import dataclass
from datetime import datetime

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class LicenseEvent(DomainEvent):
    """Base for events whose aggregate is a single license."""

    license_id: int

    def __post_init__(self):
        """Use the license id as aggregate id."""
        object.__setattr__(self, "aggregate_id", str(self.license_id))


@dataclass(frozen=True, kw_only=True)
class LicenseIssued(LicenseEvent):
    """Event raised when a license is issued with its signed token."""

    clinic_id: int
    license_type: str
    version: str
    support_expiry: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseFirstActivated(LicenseEvent):
    """Event raised the first time a license token validates successfully."""

    clinic_id: int
    activated_at: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseRenewed(LicenseEvent):
    """Event raised when a license support window is extended."""

    clinic_id: int
    previous_expiry: datetime
    new_expiry: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseRevoked(LicenseEvent):
    """Event raised when a license is revoked."""

    clinic_id: int


@dataclass(frozen=True, kw_only=True)
class LicenseTransferred(LicenseEvent):
    """Event raised when a license is moved to another clinic."""

    from_clinic_id: int
    to_clinic_id: int
