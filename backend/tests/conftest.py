"""
测试公共夹具

每个测试用 tmp_path 下的独立 SQLite 文件；引擎用 NullPool，
asyncio.run 每次新建事件循环时不会复用旧循环上的 aiosqlite 连接。
"""
import asyncio
import os
from types import SimpleNamespace

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from showroom.db.init_db import init_db
from showroom.models import User
from showroom.schemas.customer import CustomerCreate
from showroom.schemas.spare_part import SparePartCreate
from showroom.schemas.vehicle import VehicleCreate
from showroom.services import directory, inventory, vehicle_registry


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'showroom_test.db'}",
        poolclass=NullPool,
    )
    asyncio.run(init_db(engine))
    factory = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    yield factory
    asyncio.run(engine.dispose())


async def _seed(factory) -> SimpleNamespace:
    async with factory() as db:
        admin = User(username="admin", email="admin@showroom.com", full_name="Admin User", role="admin")
        cashier = User(username="cashier", email="cashier@showroom.com", full_name="Cashier User", role="cashier")
        mechanic = User(username="mechanic", email="mechanic@showroom.com", full_name="Mechanic User", role="mechanic")
        db.add_all([admin, cashier, mechanic])
        await db.flush()

        customer = await directory.create_customer(
            db,
            CustomerCreate(name="John Doe", phone="081234567893", email="john@email.com"),
            operator_id=admin.id)
        part = await inventory.create_spare_part(
            db,
            SparePartCreate(name="机油滤芯", brand="Honda", cost_price=5000, selling_price=8000,
                            stock_quantity=5, min_stock_level=2, unit_measure="个"),
            operator_id=admin.id)
        vehicle = await vehicle_registry.create_vehicle(
            db,
            VehicleCreate(chassis_number="MHKA1234567890123", license_plate="B 1234 ABC",
                          brand="Honda", model="Civic", year=2022, purchase_price=350000000,
                          purchased_from_customer_id=customer.id),
            operator_id=cashier.id)
        await db.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            cashier_id=cashier.id,
            mechanic_id=mechanic.id,
            customer_id=customer.id,
            part_id=part.id,
            vehicle_id=vehicle.id,
        )


@pytest.fixture
def seeded(session_factory):
    """三名员工、一个客户、一个配件（库存5，成本价5000）、一辆已收购车辆"""
    return asyncio.run(_seed(session_factory))
