"""
Vehicle data models for the Vehicles service.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class VehicleFields(BaseModel):
    """Attributes a client may supply. Serialised in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brand: str = Field(..., min_length=1, description="Manufacturer")
    model: str = Field(..., min_length=1, description="Model name")
    fuel_consumption: Optional[float] = Field(None, ge=0, description="Fuel consumption (L/100km)")
    fuel_type: Optional[str] = Field(None, description="Fuel type")
    mileage: Optional[float] = Field(None, ge=0, description="Odometer reading (km)")
    annual_mileage: Optional[float] = Field(None, ge=0, description="Average distance per year (km)")
    storage_environment: Optional[str] = Field(None, description="Where the vehicle is kept")
    usage_scenario: Optional[List[str]] = Field(None, description="Typical usage scenarios")
    remarks: Optional[str] = Field(None, description="Free-form notes")


class Vehicle(VehicleFields):
    """A persisted vehicle record."""

    id: str = Field("", description="Server-assigned identifier")
    created_at: Optional[datetime] = Field(None, description="Set once at creation")
    updated_at: Optional[datetime] = Field(None, description="Set on every update")

    def to_document(self) -> dict:
        """JSON-ready form used on disk and in the cache."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class VehicleCreateRequest(VehicleFields):
    """Request model for vehicle creation."""


class VehicleUpdateRequest(BaseModel):
    """Request model for vehicle updates. Omitted fields keep their stored value."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brand: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = Field(None, min_length=1)
    fuel_consumption: Optional[float] = Field(None, ge=0)
    fuel_type: Optional[str] = None
    mileage: Optional[float] = Field(None, ge=0)
    annual_mileage: Optional[float] = Field(None, ge=0)
    storage_environment: Optional[str] = None
    usage_scenario: Optional[List[str]] = None
    remarks: Optional[str] = None

    @field_validator("brand", "model")
    @classmethod
    def reject_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    def changes(self) -> dict:
        """Fields explicitly present in the request body, by attribute name."""
        return self.model_dump(exclude_unset=True)
