"""
Persistence adapters for vehicle records.

Services depend on the ``VehicleRepository`` interface; the JSON file
implementation can be swapped for another backend without touching them.
"""

from .base import VehicleRepository
from .file_repository import FileVehicleRepository

__all__ = ["VehicleRepository", "FileVehicleRepository"]
