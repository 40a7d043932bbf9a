"""车辆登记与状态"""
import asyncio
from decimal import Decimal

import pytest

from showroom.core.exceptions import (
    CustomerNotFound, InvalidStatusTransition, UserNotFound, ValidationFailed,
    VehicleInUse, VehicleNotFound
)
from showroom.models import VehicleStatus
from showroom.schemas.repair import RepairCreate
from showroom.schemas.vehicle import VehicleCreate, VehicleUpdate
from showroom.services import repair_workflow, vehicle_registry


def _vehicle_in(**overrides) -> VehicleCreate:
    data = dict(chassis_number="JTDKN1234567890123", brand="Toyota", model="Camry",
                variant="Hybrid", year=2023, fuel_type="hybrid", transmission="cvt",
                purchase_price=550000000)
    data.update(overrides)
    return VehicleCreate(**data)


class TestCreateVehicle:
    def test_create_defaults(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.create_vehicle(db, _vehicle_in(), operator_id=seeded.cashier_id)
                await db.commit()
                return vehicle

        vehicle = asyncio.run(scenario())
        assert vehicle.vehicle_code == "VEH-002"
        assert vehicle.status == VehicleStatus.PURCHASED.value
        assert vehicle.total_repair_cost == Decimal("0")
        assert vehicle.purchased_by_cashier == seeded.cashier_id
        assert vehicle.purchased_at is not None
        assert vehicle.cost_basis == Decimal("550000000")

    def test_duplicate_chassis_rejected(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                with pytest.raises(ValidationFailed):
                    await vehicle_registry.create_vehicle(db, _vehicle_in(chassis_number="MHKA1234567890123"))

        asyncio.run(scenario())

    def test_unknown_customer_rejected(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                with pytest.raises(CustomerNotFound):
                    await vehicle_registry.create_vehicle(db, _vehicle_in(purchased_from_customer_id=999))

        asyncio.run(scenario())

    def test_year_out_of_range_rejected_by_schema(self):
        with pytest.raises(ValueError):
            _vehicle_in(year=1899)


class TestUpdateVehicle:
    def test_chassis_number_is_not_updatable(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.update_vehicle(
                    db, seeded.vehicle_id,
                    VehicleUpdate(**{"chassis_number": "CHANGED", "color": "Red", "suggested_selling_price": 380000000}))
                await db.commit()
                return vehicle

        vehicle = asyncio.run(scenario())
        assert vehicle.chassis_number == "MHKA1234567890123"
        assert vehicle.color == "Red"
        assert vehicle.suggested_selling_price == Decimal("380000000")

    def test_approve_selling_price(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.approve_selling_price(
                    db, seeded.vehicle_id, 375000000, seeded.admin_id)
                await db.commit()
                with pytest.raises(UserNotFound):
                    await vehicle_registry.approve_selling_price(db, seeded.vehicle_id, 1, 999)
                return vehicle

        vehicle = asyncio.run(scenario())
        assert vehicle.approved_selling_price == Decimal("375000000")
        assert vehicle.price_approved_by_admin == seeded.admin_id


class TestStatus:
    def test_set_status_is_unconditional(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.set_status(db, vehicle, VehicleStatus.SOLD)
                await vehicle_registry.set_status(db, vehicle, "purchased")
                await db.commit()
                return vehicle.status

        assert asyncio.run(scenario()) == "purchased"

    @pytest.mark.parametrize("path", [
        ["in_repair", "ready_to_sell", "reserved", "sold"],
        ["in_repair", "ready_to_sell", "in_repair", "ready_to_sell"],
    ])
    def test_transition_status_follows_graph(self, session_factory, seeded, path):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                for status in path:
                    await vehicle_registry.transition_status(db, vehicle, status)
                return vehicle.status

        assert asyncio.run(scenario()) == path[-1]

    @pytest.mark.parametrize("start,target", [
        ("purchased", "sold"),
        ("purchased", "ready_to_sell"),
        ("in_repair", "reserved"),
        ("reserved", "ready_to_sell"),
        ("sold", "in_repair"),
    ])
    def test_transition_status_rejects_other_edges(self, session_factory, seeded, start, target):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.set_status(db, vehicle, start)
                with pytest.raises(InvalidStatusTransition) as exc_info:
                    await vehicle_registry.transition_status(db, vehicle, target)
                return vehicle.status, exc_info.value

        status, error = asyncio.run(scenario())
        assert status == start
        assert (error.current, error.requested) == (start, target)

    def test_transition_to_same_status_is_noop(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.transition_status(db, vehicle, "purchased")
                return vehicle.status

        assert asyncio.run(scenario()) == "purchased"

    def test_unknown_status_value_rejected(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                with pytest.raises(ValueError):
                    await vehicle_registry.set_status(db, vehicle, "scrapped")

        asyncio.run(scenario())


class TestRepairCost:
    def test_accumulate_adds_and_subtracts(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.accumulate_repair_cost(db, vehicle, Decimal("110000"))
                await vehicle_registry.accumulate_repair_cost(db, vehicle, Decimal("25000.50"))
                await vehicle_registry.accumulate_repair_cost(db, vehicle, Decimal("-10000"))
                await db.commit()
                return vehicle.total_repair_cost

        assert asyncio.run(scenario()) == Decimal("125000.50")

    def test_accumulate_keeps_pending_changes(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                vehicle.color = "Grey"
                await vehicle_registry.accumulate_repair_cost(db, vehicle, Decimal("1000"))
                await db.commit()
                return vehicle.color, vehicle.total_repair_cost

        assert asyncio.run(scenario()) == ("Grey", Decimal("1000"))


class TestDeleteVehicle:
    def test_delete_unreferenced_vehicle(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                await vehicle_registry.delete_vehicle(db, seeded.vehicle_id)
                await db.commit()
                with pytest.raises(VehicleNotFound):
                    await vehicle_registry.get_vehicle(db, seeded.vehicle_id)

        asyncio.run(scenario())

    def test_delete_refused_when_repair_exists(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                await repair_workflow.create_repair(db, RepairCreate(vehicle_id=seeded.vehicle_id, title="换机油"))
                await db.commit()
                with pytest.raises(VehicleInUse):
                    await vehicle_registry.delete_vehicle(db, seeded.vehicle_id)
                return await vehicle_registry.get_vehicle(db, seeded.vehicle_id)

        assert asyncio.run(scenario()).id == seeded.vehicle_id


class TestListVehicles:
    def test_search_and_status_filter(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                camry = await vehicle_registry.create_vehicle(db, _vehicle_in())
                await vehicle_registry.set_status(db, camry, "ready_to_sell")
                await db.commit()
                by_brand, brand_total = await vehicle_registry.list_vehicles(db, search="toyota")
                by_status, _ = await vehicle_registry.list_vehicles(db, status="purchased")
                page_two, total = await vehicle_registry.list_vehicles(db, page=2, limit=1)
                return by_brand, brand_total, by_status, page_two, total

        by_brand, brand_total, by_status, page_two, total = asyncio.run(scenario())
        assert [v.model for v in by_brand] == ["Camry"]
        assert brand_total == 1
        assert [v.id for v in by_status] == [seeded.vehicle_id]
        assert total == 2
        # 按 id 倒序，第二页是最早入库的车
        assert [v.id for v in page_two] == [seeded.vehicle_id]
