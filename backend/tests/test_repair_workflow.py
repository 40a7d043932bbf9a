"""维修单流程：领料/退料、金额重算、完工联动车辆"""
import asyncio
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from showroom.core.exceptions import (
    InsufficientStock, InvalidStatusTransition, RepairNotFound, RepairPartNotFound,
    SparePartNotFound, UserNotFound, VehicleNotFound
)
from showroom.models import Repair, RepairPart, SparePart, Vehicle
from showroom.schemas.repair import RepairCreate, RepairPartCreate, RepairUpdate
from showroom.schemas.spare_part import SparePartCreate, SparePartUpdate
from showroom.services import inventory, repair_workflow, vehicle_registry


async def _open_repair(db, seeded, labor_cost=None) -> Repair:
    repair = await repair_workflow.create_repair(
        db, RepairCreate(vehicle_id=seeded.vehicle_id, title="保养", mechanic_id=seeded.mechanic_id))
    if labor_cost is not None:
        await repair_workflow.update_repair(
            db, repair.id, RepairUpdate(title="保养", labor_cost=labor_cost))
    await db.commit()
    return repair


async def _stock(db, part_id: int) -> int:
    result = await db.execute(select(SparePart.stock_quantity).where(SparePart.id == part_id))
    return result.scalar_one()


async def _vehicle(db, vehicle_id: int) -> Vehicle:
    return await db.get(Vehicle, vehicle_id, populate_existing=True)


async def _lines_total(db, repair_id: int) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(RepairPart.total_cost), 0)).where(RepairPart.repair_id == repair_id)
    )
    return Decimal(str(result.scalar())).quantize(Decimal("0.01"))


class TestCreateRepair:
    def test_create_puts_vehicle_in_repair(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded)
                return repair, await _vehicle(db, seeded.vehicle_id)

        repair, vehicle = asyncio.run(scenario())
        today = datetime.now().strftime("%Y%m%d")
        assert repair.repair_number == f"REP-{today}-001"
        assert repair.status == "pending"
        assert (repair.labor_cost, repair.total_parts_cost, repair.total_cost) == (0, 0, 0)
        assert vehicle.status == "in_repair"

    def test_create_forces_in_repair_even_when_sold(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.set_status(db, vehicle, "sold")
                await db.commit()
                await _open_repair(db, seeded)
                return (await _vehicle(db, seeded.vehicle_id)).status

        assert asyncio.run(scenario()) == "in_repair"

    def test_unknown_vehicle_or_mechanic(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                with pytest.raises(VehicleNotFound):
                    await repair_workflow.create_repair(db, RepairCreate(vehicle_id=999, title="x"))
                with pytest.raises(UserNotFound):
                    await repair_workflow.create_repair(
                        db, RepairCreate(vehicle_id=seeded.vehicle_id, title="x", mechanic_id=999))
                await db.rollback()
                count = await db.execute(select(func.count(Repair.id)))
                return count.scalar()

        assert asyncio.run(scenario()) == 0


class TestParts:
    def test_labor_plus_parts(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded, labor_cost=100000)
                line = await repair_workflow.add_part(
                    db, repair.id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=2))
                await db.commit()
                return line, await repair_workflow.load_repair(db, repair.id)

        line, repair = asyncio.run(scenario())
        assert line.unit_cost == Decimal("5000.00")
        assert line.total_cost == Decimal("10000.00")
        assert repair.total_parts_cost == Decimal("10000.00")
        assert repair.total_cost == Decimal("110000.00")

    def test_add_then_remove_restores_stock_and_costs(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded, labor_cost=50000)
                line = await repair_workflow.add_part(
                    db, repair.id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=4))
                await db.commit()
                stock_after_add = await _stock(db, seeded.part_id)

                repair = await repair_workflow.remove_part(db, repair.id, line.id)
                await db.commit()
                return stock_after_add, await _stock(db, seeded.part_id), repair, len(repair.parts)

        stock_after_add, stock_after_remove, repair, line_count = asyncio.run(scenario())
        assert stock_after_add == 1
        assert stock_after_remove == 5
        assert repair.total_parts_cost == Decimal("0.00")
        assert repair.total_cost == Decimal("50000.00")
        assert line_count == 0

    def test_second_add_beyond_stock_is_rejected(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair_id = (await _open_repair(db, seeded)).id
                await repair_workflow.add_part(db, repair_id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=3))
                await db.commit()
                with pytest.raises(InsufficientStock):
                    await repair_workflow.add_part(
                        db, repair_id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=3))
                # rollback 会让会话里的对象全部过期，之后只按 id 重新加载
                await db.rollback()
                return await _stock(db, seeded.part_id), await repair_workflow.load_repair(db, repair_id)

        stock, repair = asyncio.run(scenario())
        assert stock == 2
        assert len(repair.parts) == 1
        assert repair.total_parts_cost == Decimal("15000.00")

    def test_unit_cost_is_a_snapshot(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair_id = (await _open_repair(db, seeded)).id
                await repair_workflow.add_part(db, repair_id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=1))
                await db.commit()
                await inventory.update_spare_part(db, seeded.part_id, SparePartUpdate(cost_price=9000))
                await db.commit()
                await repair_workflow.add_part(db, repair_id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=1))
                await db.commit()
                db.expire_all()
                return await repair_workflow.load_repair(db, repair_id)

        repair = asyncio.run(scenario())
        assert [line.unit_cost for line in repair.parts] == [Decimal("5000.00"), Decimal("9000.00")]
        assert repair.total_parts_cost == Decimal("14000.00")

    def test_remove_line_of_another_repair(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                first = await _open_repair(db, seeded)
                second = await _open_repair(db, seeded)
                line = await repair_workflow.add_part(
                    db, first.id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=1))
                await db.commit()
                with pytest.raises(RepairPartNotFound):
                    await repair_workflow.remove_part(db, second.id, line.id)
                with pytest.raises(RepairPartNotFound):
                    await repair_workflow.remove_part(db, first.id, 9999)
                with pytest.raises(RepairNotFound):
                    await repair_workflow.remove_part(db, 9999, line.id)
                return await _stock(db, seeded.part_id)

        assert asyncio.run(scenario()) == 4

    def test_unknown_part_or_repair(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded)
                with pytest.raises(SparePartNotFound):
                    await repair_workflow.add_part(db, repair.id, RepairPartCreate(spare_part_id=999, quantity=1))
                with pytest.raises(RepairNotFound):
                    await repair_workflow.add_part(db, 999, RepairPartCreate(spare_part_id=seeded.part_id, quantity=1))

        asyncio.run(scenario())

    def test_costs_stay_consistent_over_a_sequence(self, session_factory, seeded):
        async def scenario():
            snapshots = []
            async with session_factory() as db:
                extra_id = (await inventory.create_spare_part(
                    db, SparePartCreate(name="刹车片", cost_price=12500.5, stock_quantity=3))).id
                await db.commit()
                repair_id = (await _open_repair(db, seeded, labor_cost=75000)).id

                steps = [
                    ("add", seeded.part_id, 2),
                    ("add", extra_id, 1),
                    ("add", seeded.part_id, 3),
                    ("remove", 0, None),
                    ("add", extra_id, 2),
                    ("remove", 1, None),
                ]
                line_ids = []
                for action, ref, quantity in steps:
                    if action == "add":
                        try:
                            line = await repair_workflow.add_part(
                                db, repair_id, RepairPartCreate(spare_part_id=ref, quantity=quantity))
                            line_ids.append(line.id)
                            await db.commit()
                        except InsufficientStock:
                            await db.rollback()
                    else:
                        await repair_workflow.remove_part(db, repair_id, line_ids[ref])
                        await db.commit()

                    db.expire_all()
                    current = await repair_workflow.load_repair(db, repair_id)
                    snapshots.append((
                        current.labor_cost,
                        current.total_parts_cost,
                        current.total_cost,
                        await _lines_total(db, repair_id),
                        await _stock(db, seeded.part_id),
                        await _stock(db, extra_id),
                    ))
            return snapshots

        for labor, parts, total, lines_total, stock_a, stock_b in asyncio.run(scenario()):
            assert total == labor + parts
            assert parts == lines_total
            assert stock_a >= 0 and stock_b >= 0


class TestStatus:
    def test_complete_adds_total_cost_and_readies_vehicle(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded, labor_cost=100000)
                await repair_workflow.add_part(db, repair.id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=2))
                await repair_workflow.update_status(db, repair.id, "in_progress")
                await db.commit()
                repair = await repair_workflow.update_status(db, repair.id, "completed")
                await db.commit()
                return repair, await _vehicle(db, seeded.vehicle_id)

        repair, vehicle = asyncio.run(scenario())
        assert repair.started_at is not None
        assert repair.completed_at is not None
        assert vehicle.status == "ready_to_sell"
        assert vehicle.total_repair_cost == Decimal("110000.00")

    def test_complete_overrides_sold_vehicle(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded, labor_cost=20000)
                await repair_workflow.update_status(db, repair.id, "in_progress")
                vehicle = await vehicle_registry.get_vehicle(db, seeded.vehicle_id)
                await vehicle_registry.set_status(db, vehicle, "sold")
                await db.commit()
                await repair_workflow.update_status(db, repair.id, "completed")
                await db.commit()
                return await _vehicle(db, seeded.vehicle_id)

        vehicle = asyncio.run(scenario())
        assert vehicle.status == "ready_to_sell"
        assert vehicle.total_repair_cost == Decimal("20000.00")

    def test_repeating_completed_does_not_double_count(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded, labor_cost=30000)
                await repair_workflow.update_status(db, repair.id, "in_progress")
                await repair_workflow.update_status(db, repair.id, "completed")
                await db.commit()
                await repair_workflow.update_status(db, repair.id, "completed")
                await db.commit()
                return await _vehicle(db, seeded.vehicle_id)

        assert asyncio.run(scenario()).total_repair_cost == Decimal("30000.00")

    @pytest.mark.parametrize("path,target", [
        ([], "completed"),
        (["in_progress", "completed"], "in_progress"),
        (["cancelled"], "in_progress"),
        (["in_progress", "completed"], "cancelled"),
    ])
    def test_invalid_transitions(self, session_factory, seeded, path, target):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded)
                for status in path:
                    await repair_workflow.update_status(db, repair.id, status)
                await db.commit()
                with pytest.raises(InvalidStatusTransition):
                    await repair_workflow.update_status(db, repair.id, target)

        asyncio.run(scenario())

    def test_cancel_keeps_consumed_stock_and_vehicle_cost(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                repair = await _open_repair(db, seeded)
                await repair_workflow.add_part(db, repair.id, RepairPartCreate(spare_part_id=seeded.part_id, quantity=2))
                repair = await repair_workflow.update_status(db, repair.id, "cancelled")
                await db.commit()
                return repair.status, await _stock(db, seeded.part_id), await _vehicle(db, seeded.vehicle_id)

        status, stock, vehicle = asyncio.run(scenario())
        assert status == "cancelled"
        assert stock == 3
        assert vehicle.total_repair_cost == Decimal("0.00")
        assert vehicle.status == "in_repair"


class TestListRepairs:
    def test_filters(self, session_factory, seeded):
        async def scenario():
            async with session_factory() as db:
                first = await _open_repair(db, seeded)
                await _open_repair(db, seeded)
                await repair_workflow.update_status(db, first.id, "in_progress")
                await db.commit()
                in_progress, _ = await repair_workflow.list_repairs(db, status="in_progress")
                by_vehicle, vehicle_total = await repair_workflow.list_repairs(db, vehicle_id=seeded.vehicle_id)
                by_code, _ = await repair_workflow.list_repairs(db, search="VEH-001")
                return first.id, in_progress, vehicle_total, by_code

        first_id, in_progress, vehicle_total, by_code = asyncio.run(scenario())
        assert [r.id for r in in_progress] == [first_id]
        assert vehicle_total == 2
        assert len(by_code) == 2
