"""
Durable storage package for the Vehicles service.

Provides a JSON file store that writes through a temporary file and an
atomic rename, keeps a ``.bak`` copy of the previous content, and recovers
from it transparently when the main file is unreadable.
"""

from .json_store import JsonFileStore
from .locks import ReadWriteLock

__all__ = ["JsonFileStore", "ReadWriteLock"]
