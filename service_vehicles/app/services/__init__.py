"""
Use cases for the Vehicles service.

Routes call ``VehicleService`` instead of touching the repository or cache
directly.
"""

from .vehicle_service import VehicleService

__all__ = ["VehicleService"]
