"""
Clinic repository port (interface).
"""
from abc import ABC, abstractmethod
from typing import Optional

from clinics.domain.clinic import Clinic


class ClinicRepository(ABC):
    """Abstract repository for Clinic entities."""

    @abstractmethod
    async def save(self, clinic: Clinic) -> Clinic:
        """
        Save a clinic entity.

        Args:
            clinic: Clinic entity to save

        Returns:
            Saved clinic entity with its id assigned
        """
        pass

    @abstractmethod
    async def find_by_id(self, clinic_id: int) -> Optional[Clinic]:
        """
        Find a clinic by ID.

        Args:
            clinic_id: Clinic ID

        Returns:
            Clinic entity or None if not found
        """
        pass

    @abstractmethod
    async def exists(self, clinic_id: int) -> bool:
        """
        Check if a clinic exists.

        Args:
            clinic_id: Clinic ID

        Returns:
            True if clinic exists, False otherwise
        """
        pass
