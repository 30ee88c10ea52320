"""
Unit tests for the file-backed vehicle repository.
"""

import asyncio
import json

import pytest

from service_vehicles.app.errors import CorruptDataError, VehicleNotFoundError
from service_vehicles.app.models import Vehicle


def make_vehicle(vehicle_id: str, brand: str = "Toyota", model: str = "Corolla") -> Vehicle:
    return Vehicle(id=vehicle_id, brand=brand, model=model)


class TestFileVehicleRepository:
    """Test cases for FileVehicleRepository."""

    @pytest.mark.asyncio
    async def test_empty_collection(self, repository):
        """Test a missing collection file reads as empty."""
        assert await repository.find_all() == []

    @pytest.mark.asyncio
    async def test_create_and_find(self, repository):
        """Test a created vehicle can be read back by id."""
        await repository.create(make_vehicle("v1"))

        found = await repository.find_by_id("v1")
        assert found.brand == "Toyota"
        assert found.model == "Corolla"

    @pytest.mark.asyncio
    async def test_collection_is_written_as_camel_case_array(self, repository, store):
        """Test the on-disk document is a JSON array of camelCase records."""
        vehicle = Vehicle(id="v1", brand="Toyota", model="Corolla", fuel_type="hybrid", annual_mileage=12000)
        await repository.create(vehicle)

        document = json.loads(store.path_for("cars.json").read_text(encoding="utf-8"))
        assert document == [{
            "id": "v1",
            "brand": "Toyota",
            "model": "Corolla",
            "fuelType": "hybrid",
            "annualMileage": 12000.0,
        }]

    @pytest.mark.asyncio
    async def test_find_missing_raises_not_found(self, repository):
        """Test looking up an unknown id."""
        with pytest.raises(VehicleNotFoundError):
            await repository.find_by_id("missing")

    @pytest.mark.asyncio
    async def test_find_all_preserves_insertion_order(self, repository):
        """Test vehicles come back in the order they were created."""
        for vehicle_id in ("a", "b", "c"):
            await repository.create(make_vehicle(vehicle_id))

        assert [v.id for v in await repository.find_all()] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_find_all_is_repeatable(self, repository):
        """Test reading does not alter the collection."""
        await repository.create(make_vehicle("a"))
        first = await repository.find_all()
        second = await repository.find_all()
        assert first == second

    @pytest.mark.asyncio
    async def test_update_replaces_record_in_place(self, repository):
        """Test update swaps the record and keeps its position."""
        await repository.create(make_vehicle("a"))
        await repository.create(make_vehicle("b"))

        await repository.update(make_vehicle("a", model="Camry"))

        vehicles = await repository.find_all()
        assert [v.id for v in vehicles] == ["a", "b"]
        assert vehicles[0].model == "Camry"

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, repository):
        """Test updating an unknown id leaves the collection unchanged."""
        await repository.create(make_vehicle("a"))

        with pytest.raises(VehicleNotFoundError):
            await repository.update(make_vehicle("ghost"))

        assert [v.id for v in await repository.find_all()] == ["a"]

    @pytest.mark.asyncio
    async def test_delete(self, repository):
        """Test delete removes exactly one record."""
        await repository.create(make_vehicle("a"))
        await repository.create(make_vehicle("b"))

        await repository.delete("a")

        assert [v.id for v in await repository.find_all()] == ["b"]
        with pytest.raises(VehicleNotFoundError):
            await repository.find_by_id("a")

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, repository):
        """Test deleting an unknown id."""
        with pytest.raises(VehicleNotFoundError):
            await repository.delete("ghost")

    @pytest.mark.asyncio
    async def test_find_by_brand(self, repository):
        """Test brand filtering is exact and keeps collection order."""
        await repository.create(make_vehicle("a", brand="Toyota"))
        await repository.create(make_vehicle("b", brand="Honda"))
        await repository.create(make_vehicle("c", brand="Toyota", model="Yaris"))

        matches = await repository.find_by_brand("Toyota")
        assert [v.id for v in matches] == ["a", "c"]
        assert await repository.find_by_brand("toyota") == []
        assert await repository.find_by_brand("Tesla") == []

    @pytest.mark.asyncio
    async def test_non_array_document_is_corrupt(self, repository, store):
        """Test a collection that is not an array is rejected."""
        store.save("cars.json", {"id": "a"})

        with pytest.raises(CorruptDataError):
            await repository.find_all()

    @pytest.mark.asyncio
    async def test_invalid_record_is_corrupt(self, repository, store):
        """Test a record missing required fields is rejected."""
        store.save("cars.json", [{"id": "a"}])

        with pytest.raises(CorruptDataError):
            await repository.find_all()

    @pytest.mark.asyncio
    async def test_concurrent_creates_are_all_kept(self, repository):
        """Test parallel creates do not lose each other's writes."""
        await asyncio.gather(*(repository.create(make_vehicle(f"v{i}")) for i in range(20)))

        ids = {v.id for v in await repository.find_all()}
        assert ids == {f"v{i}" for i in range(20)}
