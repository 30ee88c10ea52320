"""
File-backed vehicle repository.
"""

import asyncio
from contextlib import nullcontext
from typing import List, Optional, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from shared.logging import get_logger

from ..errors import CorruptDataError, VehicleNotFoundError
from ..models import Vehicle
from ..storage import JsonFileStore
from .base import VehicleRepository

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class FileVehicleRepository(VehicleRepository):
    """Vehicle repository over a single JSON collection file.

    Every operation loads the whole collection; mutations write the whole
    collection back. Mutations are serialised so concurrent read-modify-write
    cycles cannot drop each other's changes.
    """

    def __init__(self, store: JsonFileStore, file_name: str, metrics: Optional["MetricsCollector"] = None):
        self.store = store
        self.file_name = file_name
        self.metrics = metrics
        self.logger = get_logger("vehicles.repository.file")
        self._mutation_lock = asyncio.Lock()

    async def find_all(self) -> List[Vehicle]:
        self.logger.debug("Loading all vehicles", file=self.file_name)
        vehicles = await self._load()
        self.logger.debug("Loaded vehicles", count=len(vehicles))
        return vehicles

    async def find_by_id(self, vehicle_id: str) -> Vehicle:
        self.logger.debug("Finding vehicle", id=vehicle_id)
        for vehicle in await self._load():
            if vehicle.id == vehicle_id:
                return vehicle

        self.logger.warning("Vehicle not found", id=vehicle_id)
        raise VehicleNotFoundError(vehicle_id)

    async def create(self, vehicle: Vehicle) -> None:
        self.logger.debug("Creating vehicle", brand=vehicle.brand, model=vehicle.model)
        async with self._mutation_lock:
            vehicles = await self._load()
            vehicles.append(vehicle)
            await self._save(vehicles)

        self.logger.debug("Created vehicle", id=vehicle.id)

    async def update(self, vehicle: Vehicle) -> None:
        self.logger.debug("Updating vehicle", id=vehicle.id)
        async with self._mutation_lock:
            vehicles = await self._load()
            for index, existing in enumerate(vehicles):
                if existing.id == vehicle.id:
                    vehicles[index] = vehicle
                    break
            else:
                self.logger.warning("Vehicle to update not found", id=vehicle.id)
                raise VehicleNotFoundError(vehicle.id)

            await self._save(vehicles)

        self.logger.debug("Updated vehicle", id=vehicle.id)

    async def delete(self, vehicle_id: str) -> None:
        self.logger.debug("Deleting vehicle", id=vehicle_id)
        async with self._mutation_lock:
            vehicles = await self._load()
            remaining = [vehicle for vehicle in vehicles if vehicle.id != vehicle_id]
            if len(remaining) == len(vehicles):
                self.logger.warning("Vehicle to delete not found", id=vehicle_id)
                raise VehicleNotFoundError(vehicle_id)

            await self._save(remaining)

        self.logger.debug("Deleted vehicle", id=vehicle_id)

    async def find_by_brand(self, brand: str) -> List[Vehicle]:
        self.logger.debug("Finding vehicles by brand", brand=brand)
        matches = [vehicle for vehicle in await self._load() if vehicle.brand == brand]
        self.logger.debug("Found vehicles by brand", brand=brand, count=len(matches))
        return matches

    async def _load(self) -> List[Vehicle]:
        with self._timed("load"):
            document = await asyncio.to_thread(self.store.load, self.file_name)

        if document is None:
            return []
        if not isinstance(document, list):
            raise CorruptDataError("Vehicle collection is not a JSON array", {"file": self.file_name})

        try:
            return [Vehicle.model_validate(item) for item in document]
        except PydanticValidationError as e:
            self.logger.error("Invalid vehicle record in collection", file=self.file_name, error=str(e))
            raise CorruptDataError("Invalid vehicle record in collection", {"file": self.file_name}) from e

    async def _save(self, vehicles: List[Vehicle]) -> None:
        document = [vehicle.to_document() for vehicle in vehicles]
        with self._timed("save"):
            await asyncio.to_thread(self.store.save, self.file_name, document)

    def _timed(self, operation: str):
        if self.metrics:
            return self.metrics.time_storage(operation)
        return nullcontext()
