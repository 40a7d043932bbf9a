"""
初始化数据库并写入演示数据

    python init_db.py

员工表为空时才写入演示数据；客户、配件、车辆都走服务层创建，
编码和编号计数器保持一致。
"""
import asyncio
import logging
from sqlalchemy import select, func

from showroom.db.init_db import init_db as create_tables
from showroom.db.session import SessionLocal
from showroom.models import User
from showroom.schemas.customer import CustomerCreate
from showroom.schemas.spare_part import SparePartCreate
from showroom.schemas.vehicle import VehicleCreate
from showroom.services import directory, inventory, vehicle_registry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_USERS = [
    # username, email, full_name, phone, role
    ("admin", "admin@showroom.com", "Admin User", "081234567890", "admin"),
    ("cashier", "cashier@showroom.com", "Cashier User", "081234567891", "cashier"),
    ("mechanic", "mechanic@showroom.com", "Mechanic User", "081234567892", "mechanic"),
]

DEMO_CUSTOMERS = [
    CustomerCreate(name="John Doe", phone="081234567893", email="john@email.com",
                   address="Jl. Sudirman No. 123, Jakarta", id_card_number="3171234567890001", type="individual"),
    CustomerCreate(name="Jane Smith", phone="081234567894", email="jane@email.com",
                   address="Jl. Thamrin No. 456, Jakarta", id_card_number="3171234567890002", type="individual"),
    CustomerCreate(name="PT. Maju Jaya", phone="081234567895", email="info@majujaya.com",
                   address="Jl. Gatot Subroto No. 789, Jakarta", id_card_number="021234567890", type="corporate"),
    CustomerCreate(name="Ahmad Rahman", phone="081234567896", email="ahmad@email.com",
                   address="Jl. Kuningan No. 321, Jakarta", id_card_number="3171234567890003", type="individual"),
    CustomerCreate(name="CV. Berkah Motor", phone="081234567897", email="info@berkahmotor.com",
                   address="Jl. Casablanca No. 654, Jakarta", id_card_number="021234567891", type="corporate"),
]

DEMO_PARTS = [
    SparePartCreate(name="机油滤芯", brand="Honda", cost_price=85000, selling_price=120000,
                    stock_quantity=40, min_stock_level=10, unit_measure="个"),
    SparePartCreate(name="前刹车片", brand="Brembo", cost_price=450000, selling_price=600000,
                    stock_quantity=12, min_stock_level=4, unit_measure="套"),
    SparePartCreate(name="全合成机油 4L", brand="Shell", cost_price=380000, selling_price=480000,
                    stock_quantity=25, min_stock_level=8, unit_measure="桶"),
    SparePartCreate(name="火花塞", brand="NGK", cost_price=65000, selling_price=95000,
                    stock_quantity=3, min_stock_level=8, unit_measure="个"),
    SparePartCreate(name="空调滤芯", brand="Denso", cost_price=120000, selling_price=175000,
                    stock_quantity=15, min_stock_level=5, unit_measure="个"),
]

# (车辆信息, 目标状态)
DEMO_VEHICLES = [
    (dict(chassis_number="MHKA1234567890123", license_plate="B 1234 ABC", brand="Honda", model="Civic",
          variant="RS", year=2022, mileage=15000, color="White", fuel_type="gasoline",
          transmission="manual", purchase_price=350000000), "purchased"),
    (dict(chassis_number="WBAVA1234567890123", license_plate="B 5678 DEF", brand="BMW", model="320i",
          variant="Sport", year=2021, mileage=25000, color="Black", fuel_type="gasoline",
          transmission="automatic", purchase_price=650000000), "in_repair"),
    (dict(chassis_number="JTDKN1234567890123", license_plate="B 9012 GHI", brand="Toyota", model="Camry",
          variant="Hybrid", year=2023, mileage=8000, color="Silver", fuel_type="hybrid",
          transmission="cvt", purchase_price=550000000), "ready_to_sell"),
    (dict(chassis_number="KMHJ1234567890123", license_plate="B 3456 JKL", brand="Hyundai", model="Tucson",
          variant="GLS", year=2022, mileage=20000, color="Red", fuel_type="gasoline",
          transmission="automatic", purchase_price=450000000), "purchased"),
    (dict(chassis_number="JN1AZ1234567890123", license_plate="B 7890 MNO", brand="Nissan", model="X-Trail",
          variant="XT", year=2021, mileage=35000, color="Blue", fuel_type="gasoline",
          transmission="cvt", purchase_price=400000000), "ready_to_sell"),
]


async def seed_demo_data() -> None:
    """写入演示数据（员工表非空时跳过）"""
    async with SessionLocal() as db:
        user_count = (await db.execute(select(func.count(User.id)))).scalar() or 0
        if user_count > 0:
            logger.info("演示数据已存在，跳过")
            return

        logger.info("写入演示数据...")
        users = []
        for username, email, full_name, phone, role in DEMO_USERS:
            user = User(username=username, email=email, full_name=full_name,
                        phone=phone, role=role, is_active=True)
            db.add(user)
            users.append(user)
        await db.flush()
        admin, cashier = users[0], users[1]

        customers = []
        for customer_in in DEMO_CUSTOMERS:
            customers.append(await directory.create_customer(db, customer_in, operator_id=admin.id))

        for part_in in DEMO_PARTS:
            await inventory.create_spare_part(db, part_in, operator_id=admin.id)

        for (data, status), customer in zip(DEMO_VEHICLES, customers):
            vehicle_in = VehicleCreate(
                **data,
                purchased_from_customer_id=customer.id,
                purchase_notes="Vehicle purchased in good condition",
                condition_notes="Minor scratches on rear bumper")
            vehicle = await vehicle_registry.create_vehicle(db, vehicle_in, operator_id=cashier.id)
            await vehicle_registry.set_status(db, vehicle, status)

        await db.commit()
        logger.info("演示数据写入完成")


async def main() -> None:
    try:
        logger.info("创建数据库表...")
        await create_tables()
        logger.info("数据库表创建成功")
        await seed_demo_data()
        logger.info("数据库初始化完成")
    except Exception as e:
        logger.error(f"数据库初始化失败: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
