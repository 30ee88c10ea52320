"""
Shared fixtures for Vehicles service tests.
"""

import asyncio
from typing import Any, Dict, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from service_vehicles.app.cache import RedisCache
from service_vehicles.app.repositories import FileVehicleRepository
from service_vehicles.app.storage import JsonFileStore


class InMemoryRedis:
    """Async stand-in for the subset of the redis client the cache uses."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.expirations: Dict[str, Optional[int]] = {}
        self.down = False
        self.fail_reads = False
        self.fail_writes = 0
        self.set_calls = 0
        self.closed = False

    async def ping(self):
        if self.down:
            raise RedisConnectionError("connection refused")
        return True

    async def get(self, key: str) -> Optional[str]:
        if self.down or self.fail_reads:
            raise RedisConnectionError("read failed")
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self.set_calls += 1
        if self.down:
            raise RedisConnectionError("write failed")
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise RedisConnectionError("write failed")
        self.data[key] = value
        self.expirations[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        if self.down:
            raise RedisConnectionError("write failed")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expirations.pop(key, None)
        return removed

    async def exists(self, *keys: str) -> int:
        if self.down or self.fail_reads:
            raise RedisConnectionError("read failed")
        return sum(1 for key in keys if key in self.data)

    async def aclose(self):
        self.closed = True


async def wait_until(predicate, timeout: float = 1.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is truthy or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return bool(predicate())


@pytest.fixture
def fake_redis():
    """In-memory redis client."""
    return InMemoryRedis()


@pytest.fixture
def cache(fake_redis):
    """RedisCache bound to the in-memory client."""
    return RedisCache(prefix="test", client=fake_redis, timeout=1.0)


@pytest.fixture
def store(tmp_path):
    """JSON store rooted in a temporary directory."""
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def repository(store):
    """File-backed repository over a fresh collection."""
    return FileVehicleRepository(store, "cars.json")


@pytest.fixture
def poll():
    """Async helper waiting for a condition with a bounded delay."""
    return wait_until


@pytest.fixture
def toyota() -> Dict[str, Any]:
    return {"brand": "Toyota", "model": "Corolla"}
