"""
Cache package for the Vehicles service.

Provides a Redis-backed cache-aside layer for single-vehicle lookups. Keys
are namespaced per deployment and entries expire after a configurable TTL.
"""

from .redis_cache import RedisCache

__all__ = ["RedisCache"]
