"""
Redis caching layer for the Vehicles service.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TYPE_CHECKING

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import NotFoundError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception

from ..errors import (
    CacheConnectionError,
    CacheError,
    CacheMissError,
    CacheReadError,
    CacheWriteError,
    FallbackError,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

DEFAULT_TIMEOUT_SECONDS = 5.0

_TRANSPORT_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisCache:
    """Cache-aside wrapper over Redis.

    Every key is stored as ``<prefix>:<key>`` and every value as JSON text.
    The cache is never authoritative: callers treat any ``CacheError`` other
    than the one raised from a failing fallback as a reason to go to the
    store.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        prefix: str = "carrag",
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        pool_size: int = 10,
        client: Optional[redis.Redis] = None,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.host = host
        self.port = port
        self.password = password
        self.db = db
        self.prefix = prefix
        self.timeout = timeout
        self.pool_size = pool_size
        self.metrics = metrics
        self.logger = get_logger("vehicles.cache.redis")
        self.redis: Optional[redis.Redis] = client

        # Strong references to detached population tasks
        self._background_tasks: Set[asyncio.Task] = set()

        # Per-key write counter, bumped by set and delete
        self._generations: Dict[str, int] = {}

    async def start(self):
        """Connect and verify the server answers a ping within ``timeout``."""
        try:
            if self.redis is None:
                self.redis = redis.Redis(
                    host=self.host,
                    port=self.port,
                    password=self.password,
                    db=self.db,
                    decode_responses=True,
                    socket_connect_timeout=self.timeout,
                    socket_timeout=3,
                    max_connections=self.pool_size,
                )

            pong = await asyncio.wait_for(self.redis.ping(), timeout=self.timeout)

            self.logger.info("Redis cache started", host=self.host, port=self.port, db=self.db, pong=pong)

        except _TRANSPORT_ERRORS as e:
            self.logger.error("Failed to start Redis cache", host=self.host, port=self.port, error=str(e))
            raise CacheConnectionError(
                "Failed to connect to Redis",
                {"host": self.host, "port": self.port, "error": str(e)}
            ) from e

    async def stop(self):
        """Cancel pending background writes and close the client."""
        for task in list(self._background_tasks):
            task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

        if self.redis:
            await self.redis.aclose()
            self.logger.info("Redis cache stopped")

    def format_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store ``value`` as JSON under the namespaced key with expiration ``ttl`` seconds."""
        self._bump(key)
        await self._write(key, value, ttl)

    async def _write(self, key: str, value: Any, ttl: Optional[int]) -> None:
        cache_key = self.format_key(key)
        try:
            data = json.dumps(value)
        except (TypeError, ValueError) as e:
            self.logger.error("Failed to serialise cache value", cache_key=cache_key, error=str(e))
            raise CacheWriteError("Failed to serialise cache value", {"key": cache_key, "error": str(e)}) from e

        try:
            await self.redis.set(cache_key, data, ex=ttl)
        except _TRANSPORT_ERRORS as e:
            self.logger.error("Error setting cache entry", cache_key=cache_key, error=str(e))
            raise CacheWriteError("Failed to set cache entry", {"key": cache_key, "error": str(e)}) from e

        self.logger.debug("Cached value", cache_key=cache_key, ttl=ttl)

    async def get(self, key: str) -> Any:
        """Return the decoded value, raising ``CacheMissError`` when absent."""
        cache_key = self.format_key(key)
        try:
            cached_data = await self.redis.get(cache_key)
        except _TRANSPORT_ERRORS as e:
            self.logger.error("Error getting cache entry", cache_key=cache_key, error=str(e))
            raise CacheReadError("Failed to get cache entry", {"key": cache_key, "error": str(e)}) from e

        if cached_data is None:
            self.logger.debug("Cache miss", cache_key=cache_key)
            raise CacheMissError(cache_key)

        try:
            value = json.loads(cached_data)
        except ValueError as e:
            self.logger.error("Failed to decode cache entry", cache_key=cache_key, error=str(e))
            raise CacheReadError("Failed to decode cache entry", {"key": cache_key, "error": str(e)}) from e

        self.logger.debug("Cache hit", cache_key=cache_key)
        return value

    async def delete(self, key: str) -> None:
        self._bump(key)
        cache_key = self.format_key(key)
        try:
            await self.redis.delete(cache_key)
        except _TRANSPORT_ERRORS as e:
            self.logger.error("Error deleting cache entry", cache_key=cache_key, error=str(e))
            raise CacheWriteError("Failed to delete cache entry", {"key": cache_key, "error": str(e)}) from e

        self.logger.debug("Deleted cache entry", cache_key=cache_key)

    async def exists(self, key: str) -> bool:
        cache_key = self.format_key(key)
        try:
            count = await self.redis.exists(cache_key)
        except _TRANSPORT_ERRORS as e:
            self.logger.error("Error checking cache entry", cache_key=cache_key, error=str(e))
            raise CacheReadError("Failed to check cache entry", {"key": cache_key, "error": str(e)}) from e

        return count > 0

    async def set_with_retry(
        self,
        key: str,
        value: Any,
        ttl: Optional[int],
        retries: int,
        delay: float,
    ) -> None:
        """``set`` with up to ``retries`` extra attempts, ``delay`` seconds apart.

        Raises the last ``CacheWriteError`` when every attempt fails.
        """

        @retry_on_exception((CacheWriteError,), RetryConfig.fixed(retries, delay))
        async def cache_set():
            await self.set(key, value, ttl)

        try:
            await cache_set()
        except RetryError as e:
            raise e.last_exception

    async def get_with_fallback(
        self,
        key: str,
        fallback: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """Read-through lookup.

        On a hit the cached value is returned. On a miss, or any cache error,
        ``fallback`` is awaited and its result returned; the cache is then
        populated by a detached task with its own timeout. That task has no
        completion signal: callers must not expect the entry to be present
        immediately afterwards.

        A set or delete of the same key made after the lookup wins over the
        background write: the write is skipped, or its entry evicted if it
        raced with that operation.

        A ``NotFoundError`` from ``fallback`` propagates unchanged; any other
        failure is raised as ``FallbackError``. The cache is left untouched in
        both cases.
        """
        try:
            value = await self.get(key)
            self._record_lookup("hit")
            return value
        except CacheMissError:
            self._record_lookup("miss")
        except CacheError as e:
            self._record_lookup("error")
            self.logger.warning("Cache lookup failed, using fallback", key=key, error=e.message)

        generation = self._generations.get(key, 0)

        try:
            value = await fallback()
        except NotFoundError:
            raise
        except Exception as e:
            self.logger.error("Fallback failed", key=key, error=str(e))
            raise FallbackError("Fallback failed", {"key": key, "error": str(e)}) from e

        self._spawn_population(key, value, ttl, generation)
        return value

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await asyncio.wait_for(self.redis.ping(), timeout=self.timeout)
            return True
        except _TRANSPORT_ERRORS:
            return False

    def _spawn_population(self, key: str, value: Any, ttl: Optional[int], generation: int) -> None:
        task = asyncio.create_task(self._populate(key, value, ttl, generation))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _populate(self, key: str, value: Any, ttl: Optional[int], generation: int) -> None:
        if self._generations.get(key, 0) != generation:
            self.logger.debug("Skipping background cache population, key changed", key=key)
            return

        written = self._bump(key)
        try:
            await asyncio.wait_for(self._write(key, value, ttl), timeout=self.timeout)
        except CacheError as e:
            self.logger.error("Background cache population failed", key=key, error=e.message)
            return
        except asyncio.TimeoutError:
            self.logger.error("Background cache population timed out", key=key, timeout=self.timeout)
            return

        if self._generations.get(key, 0) != written:
            self.logger.info("Background cache population raced with a write, evicting", key=key)
            try:
                await self.delete(key)
            except CacheError as e:
                self.logger.error("Failed to evict raced cache entry", key=key, error=e.message)

    def _bump(self, key: str) -> int:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        return generation

    def _record_lookup(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(outcome)
