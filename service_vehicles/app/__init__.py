"""
Vehicles Service package for the Car Registry.

This package exposes CRUD operations over vehicle records. It provides:

- app.main: API surface for vehicle records and health.
- app.storage: JSON file store with atomic writes and backup recovery.
- app.cache: Redis-backed cache-aside layer for point lookups.
- app.repositories: Repository interface and its file-backed implementation.
- app.services: Orchestration of repository and cache.

Guidelines:
- The JSON store is the source of truth; the cache is optional.
- Cache failures never fail a request whose data the store can answer.
"""
