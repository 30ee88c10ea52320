"""
Error taxonomy for the Vehicles service.

Store errors always reach the HTTP boundary. Cache errors are absorbed by
``VehicleService`` except when they surface from the fallback path of
``RedisCache.get_with_fallback``.
"""

from typing import Any, Dict, Optional

from shared.errors import NotFoundError, RegistryException, ValidationError


class VehicleNotFoundError(NotFoundError):
    """No vehicle with the requested id exists in the collection."""

    def __init__(self, vehicle_id: str):
        super().__init__(f"Vehicle not found: {vehicle_id}", {"id": vehicle_id})
        self.vehicle_id = vehicle_id


class StorageWriteError(RegistryException):
    """Serialising or persisting a document failed."""

    def __init__(self, message: str = "Storage write failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_WRITE_ERROR", message, details)


class StorageReadError(RegistryException):
    """Reading a document from disk failed."""

    def __init__(self, message: str = "Storage read failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_READ_ERROR", message, details)


class CorruptDataError(RegistryException):
    """Document could not be decoded and no usable backup exists."""

    def __init__(self, message: str = "Stored data is corrupt", details: Optional[Dict[str, Any]] = None):
        super().__init__("CORRUPT_DATA", message, details)


class CacheError(RegistryException):
    """Base class for cache-side failures."""


class CacheConnectionError(CacheError):
    def __init__(self, message: str = "Cache unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_CONNECTION_ERROR", message, details)


class CacheMissError(CacheError):
    """Key absent from the cache. Internal only, triggers the fallback."""

    def __init__(self, key: str):
        super().__init__("CACHE_MISS", f"Cache miss: {key}", {"key": key})


class CacheReadError(CacheError):
    def __init__(self, message: str = "Cache read failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_READ_ERROR", message, details)


class CacheWriteError(CacheError):
    def __init__(self, message: str = "Cache write failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_WRITE_ERROR", message, details)


class FallbackError(CacheError):
    """The authoritative producer behind a cache lookup failed."""

    def __init__(self, message: str = "Fallback failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("FALLBACK_ERROR", message, details)


__all__ = [
    "VehicleNotFoundError",
    "ValidationError",
    "StorageWriteError",
    "StorageReadError",
    "CorruptDataError",
    "CacheError",
    "CacheConnectionError",
    "CacheMissError",
    "CacheReadError",
    "CacheWriteError",
    "FallbackError",
]
