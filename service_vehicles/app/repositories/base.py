"""
Repository interface for vehicle records.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import Vehicle


class VehicleRepository(ABC):
    """Storage-agnostic CRUD contract the service layer depends on."""

    @abstractmethod
    async def find_all(self) -> List[Vehicle]:
        """Every vehicle, in collection order. Empty when nothing is stored."""

    @abstractmethod
    async def find_by_id(self, vehicle_id: str) -> Vehicle:
        """The vehicle with ``vehicle_id``; raises ``VehicleNotFoundError``."""

    @abstractmethod
    async def create(self, vehicle: Vehicle) -> None:
        """Append ``vehicle``. Id uniqueness is the caller's concern."""

    @abstractmethod
    async def update(self, vehicle: Vehicle) -> None:
        """Replace the stored vehicle with the same id; raises ``VehicleNotFoundError``."""

    @abstractmethod
    async def delete(self, vehicle_id: str) -> None:
        """Remove the vehicle with ``vehicle_id``; raises ``VehicleNotFoundError``."""

    @abstractmethod
    async def find_by_brand(self, brand: str) -> List[Vehicle]:
        """Vehicles whose brand equals ``brand``, in collection order."""
