"""
Vehicle use cases: repository writes first, cache second.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.errors import RegistryException
from shared.logging import get_logger

from ..cache import RedisCache
from ..errors import CacheError, FallbackError, ValidationError
from ..ids import generate_vehicle_id
from ..models import Vehicle
from ..repositories import VehicleRepository

CACHE_KEY_PREFIX = "car"
DEFAULT_CACHE_TTL = 24 * 3600

# Retry budget for refreshing a cached vehicle after an update
UPDATE_REFRESH_RETRIES = 2
UPDATE_REFRESH_DELAY = 0.1


class VehicleService:
    """Orchestrates a ``VehicleRepository`` and an optional ``RedisCache``.

    The repository is authoritative and its errors always propagate. Cache
    failures are logged and swallowed. Whether a cache is used is fixed at
    construction time.
    """

    def __init__(
        self,
        repository: VehicleRepository,
        cache: Optional[RedisCache] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        id_factory: Callable[[], str] = generate_vehicle_id,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.id_factory = id_factory
        self.clock = clock or _utc_now
        self.logger = get_logger("vehicles.service")

    @property
    def cache_enabled(self) -> bool:
        return self.cache is not None

    async def get_all(self) -> List[Vehicle]:
        self.logger.info("Listing vehicles")
        return await self.repository.find_all()

    async def get_by_id(self, vehicle_id: str) -> Vehicle:
        self.logger.info("Getting vehicle", id=vehicle_id)

        if self.cache is None:
            return await self.repository.find_by_id(vehicle_id)

        async def load_from_repository() -> Dict[str, Any]:
            vehicle = await self.repository.find_by_id(vehicle_id)
            return vehicle.to_document()

        try:
            document = await self.cache.get_with_fallback(
                self._cache_key(vehicle_id), load_from_repository, self.cache_ttl
            )
        except FallbackError as e:
            # Store errors keep their own type, with or without a cache
            if isinstance(e.__cause__, RegistryException):
                raise e.__cause__ from None
            raise
        return Vehicle.model_validate(document)

    async def create(self, vehicle: Vehicle) -> Vehicle:
        """Persist a new vehicle with a fresh id and creation time."""
        self.logger.info("Creating vehicle", brand=vehicle.brand, model=vehicle.model)

        created = vehicle.model_copy(update={
            "id": self.id_factory(),
            "created_at": self.clock(),
            "updated_at": None,
        })
        await self.repository.create(created)

        if self.cache is not None:
            try:
                await self.cache.set(self._cache_key(created.id), created.to_document(), self.cache_ttl)
            except CacheError as e:
                self.logger.warning("Failed to cache new vehicle", id=created.id, error=e.message)

        return created

    async def update(self, vehicle: Vehicle) -> Vehicle:
        """Replace a stored vehicle. The stored creation time is kept."""
        if not vehicle.id:
            raise ValidationError("Vehicle id is required for update")

        self.logger.info("Updating vehicle", id=vehicle.id)

        stored = await self.repository.find_by_id(vehicle.id)
        updated = vehicle.model_copy(update={
            "created_at": stored.created_at,
            "updated_at": self.clock(),
        })
        await self.repository.update(updated)

        if self.cache is not None:
            await self._refresh_cache_entry(updated)

        return updated

    async def patch(self, vehicle_id: str, changes: Dict[str, Any]) -> Vehicle:
        """Apply ``changes`` (attribute name to value) on top of the stored vehicle.

        The merged record is validated as a whole, so a change that would
        leave it invalid (e.g. a null ``brand``) raises ``ValidationError``
        and nothing is written.
        """
        stored = await self.repository.find_by_id(vehicle_id)
        try:
            merged = Vehicle.model_validate({**stored.model_dump(), **changes})
        except PydanticValidationError as e:
            self.logger.warning("Rejected vehicle update", id=vehicle_id, error=str(e))
            raise ValidationError(
                "Invalid vehicle update",
                {"id": vehicle_id, "errors": [
                    {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]}
            ) from e
        return await self.update(merged)

    async def delete(self, vehicle_id: str) -> None:
        self.logger.info("Deleting vehicle", id=vehicle_id)

        await self.repository.delete(vehicle_id)

        if self.cache is not None:
            try:
                await self.cache.delete(self._cache_key(vehicle_id))
            except CacheError as e:
                self.logger.warning("Failed to evict deleted vehicle from cache", id=vehicle_id, error=e.message)

    async def find_by_brand(self, brand: str) -> List[Vehicle]:
        self.logger.info("Finding vehicles by brand", brand=brand)
        return await self.repository.find_by_brand(brand)

    async def _refresh_cache_entry(self, vehicle: Vehicle) -> None:
        key = self._cache_key(vehicle.id)
        try:
            await self.cache.set_with_retry(
                key, vehicle.to_document(), self.cache_ttl, UPDATE_REFRESH_RETRIES, UPDATE_REFRESH_DELAY
            )
            return
        except CacheError as e:
            self.logger.warning("Failed to refresh cached vehicle, evicting", id=vehicle.id, error=e.message)

        try:
            await self.cache.delete(key)
        except CacheError as e:
            self.logger.warning("Failed to evict stale cached vehicle", id=vehicle.id, error=e.message)

    @staticmethod
    def _cache_key(vehicle_id: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{vehicle_id}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
