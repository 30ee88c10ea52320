"""
Vehicles service for the Car Registry.
"""

from typing import Dict, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from .cache import RedisCache
from .errors import CacheConnectionError
from .models import Vehicle, VehicleCreateRequest, VehicleUpdateRequest
from .repositories import FileVehicleRepository, VehicleRepository
from .services import VehicleService
from .storage import JsonFileStore

SERVICE_NAME = "vehicles"
SERVICE_PORT = 8080


class VehicleRegistryService(BaseService):
    """Vehicles service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        repository: Optional[VehicleRepository] = None,
        cache: Optional[RedisCache] = None,
    ):
        super().__init__(SERVICE_NAME, SERVICE_PORT, config or get_config(SERVICE_NAME, SERVICE_PORT))

        # Initialize components
        self.store = JsonFileStore(self.config.data_dir)
        self.repository = repository or FileVehicleRepository(
            self.store, self.config.vehicles_file, metrics=self.metrics
        )
        self.cache = cache
        if self.cache is None and self.config.redis_enabled:
            self.cache = RedisCache(
                host=self.config.redis_host,
                port=self.config.redis_port,
                password=self.config.redis_password,
                db=self.config.redis_db,
                prefix=self.config.redis_prefix,
                timeout=self.config.cache_timeout_seconds,
                metrics=self.metrics,
            )

        # Built in start(), once cache availability is known
        self.vehicle_service: Optional[VehicleService] = None

        self._setup_vehicle_routes()

    def _setup_vehicle_routes(self):
        """Set up vehicle-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Car Registry - Vehicles Service",
                "version": "1.0.0",
                "capabilities": ["json_storage", "caching"]
            }

        @self.app.get("/api/cars")
        async def list_vehicles():
            """List every vehicle."""
            vehicles = await self.vehicle_service.get_all()
            return [vehicle.to_document() for vehicle in vehicles]

        @self.app.get("/api/cars/brand/{brand}")
        async def list_vehicles_by_brand(brand: str):
            """List vehicles of one brand."""
            vehicles = await self.vehicle_service.find_by_brand(brand)
            return [vehicle.to_document() for vehicle in vehicles]

        @self.app.get("/api/cars/{vehicle_id}")
        async def get_vehicle(vehicle_id: str):
            """Get a vehicle by id."""
            vehicle = await self.vehicle_service.get_by_id(vehicle_id)
            return vehicle.to_document()

        @self.app.post("/api/cars", status_code=201)
        async def create_vehicle(request: VehicleCreateRequest):
            """Create a vehicle. Id and timestamps are assigned server-side."""
            vehicle = await self.vehicle_service.create(Vehicle(**request.model_dump()))
            return vehicle.to_document()

        @self.app.put("/api/cars/{vehicle_id}")
        async def update_vehicle(vehicle_id: str, request: VehicleUpdateRequest):
            """Update a vehicle. Fields omitted from the body keep their stored value."""
            vehicle = await self.vehicle_service.patch(vehicle_id, request.changes())
            return vehicle.to_document()

        @self.app.delete("/api/cars/{vehicle_id}")
        async def delete_vehicle(vehicle_id: str):
            """Delete a vehicle."""
            await self.vehicle_service.delete(vehicle_id)
            return {"message": "Vehicle deleted", "id": vehicle_id}

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check vehicles service dependencies."""
        dependencies = {}

        dependencies["storage"] = "ok" if self.store.data_dir.is_dir() else "error"

        if self.vehicle_service is None or not self.vehicle_service.cache_enabled:
            dependencies["cache"] = "disabled"
        elif await self.cache.health_check():
            dependencies["cache"] = "ok"
        else:
            dependencies["cache"] = "error"

        return dependencies

    async def start(self):
        """Start vehicles service components."""
        if self.cache is not None:
            try:
                await self.cache.start()
            except CacheConnectionError as e:
                self.logger.warning(
                    "Redis unavailable, serving from file storage only",
                    error=e.message
                )
                self.cache = None

        self.vehicle_service = VehicleService(
            self.repository,
            cache=self.cache,
            cache_ttl=self.config.cache_ttl_seconds,
        )

        self.logger.info(
            "Vehicles service started",
            data_dir=str(self.store.data_dir),
            file=self.config.vehicles_file,
            cache_enabled=self.cache is not None
        )

    async def stop(self):
        """Stop vehicles service components."""
        if self.cache is not None:
            await self.cache.stop()

        self.logger.info("Vehicles service stopped")


def create_app(config: Optional[ServiceConfig] = None):
    """Create vehicles service application."""
    service = VehicleRegistryService(config)
    return service.app


if __name__ == "__main__":
    service = VehicleRegistryService()
    service.run()
