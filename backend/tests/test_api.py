"""HTTP 接口：路由、错误码、工作单元"""
import pytest
from fastapi.testclient import TestClient

from showroom.core.deps import get_db
from showroom.main import app
from showroom.services import repair_workflow, transaction_workflow

API = "/api/v1"


@pytest.fixture
def client(session_factory, seeded):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    # 不进入 with 块，lifespan（建表、调度器）不会运行
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRoot:
    def test_root_and_health(self, client):
        assert client.get("/").status_code == 200
        assert client.get("/health").json() == {"status": "ok"}


class TestVehicleLifecycle:
    def test_repair_then_sale(self, client, seeded):
        vehicle_id = seeded.vehicle_id

        resp = client.post(f"{API}/repairs/", json={
            "vehicle_id": vehicle_id, "title": "全车保养", "mechanic_id": seeded.mechanic_id})
        assert resp.status_code == 200
        repair = resp.json()
        assert repair["status"] == "pending"
        assert repair["mechanic_name"] == "Mechanic User"
        assert client.get(f"{API}/vehicles/{vehicle_id}").json()["status"] == "in_repair"

        resp = client.put(f"{API}/repairs/{repair['id']}", json={"title": "全车保养", "labor_cost": 100000})
        assert resp.json()["total_cost"] == 100000

        resp = client.post(f"{API}/repairs/{repair['id']}/parts", json={
            "spare_part_id": seeded.part_id, "quantity": 2})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_parts_cost"] == 10000
        assert body["total_cost"] == 110000
        assert body["parts"][0]["part_code"] == "PART-001"
        assert client.get(f"{API}/spare-parts/{seeded.part_id}").json()["stock_quantity"] == 3

        for status in ("in_progress", "completed"):
            resp = client.put(f"{API}/repairs/{repair['id']}/status", json={"status": status})
            assert resp.status_code == 200
        assert resp.json()["completed_at"] is not None

        vehicle = client.get(f"{API}/vehicles/{vehicle_id}").json()
        assert vehicle["status"] == "ready_to_sell"
        assert vehicle["total_repair_cost"] == 110000
        assert vehicle["cost_basis"] == 350110000

        resp = client.post(f"{API}/transactions/sales/", json={
            "vehicle_id": vehicle_id, "customer_id": seeded.customer_id,
            "vehicle_price": 420000000, "tax_amount": 42000000, "discount_amount": 2000000,
            "payment_method": "credit", "cashier_id": seeded.cashier_id})
        assert resp.status_code == 200
        sale = resp.json()
        assert sale["total_amount"] == 460000000
        assert sale["vehicle_code"] == "VEH-001"
        assert sale["cashier_name"] == "Cashier User"

        vehicle = client.get(f"{API}/vehicles/{vehicle_id}").json()
        assert vehicle["status"] == "sold"
        assert vehicle["sold_to_customer_name"] == "John Doe"

        stats = client.get(f"{API}/dashboard/stats").json()
        assert stats["vehicles_sold"] == 1
        assert stats["today_sales"] == 1
        assert stats["today_revenue"] == 460000000
        assert stats["total_profit"] == 460000000

    def test_remove_part_restores_stock(self, client, seeded):
        repair = client.post(f"{API}/repairs/", json={"vehicle_id": seeded.vehicle_id, "title": "换机滤"}).json()
        body = client.post(f"{API}/repairs/{repair['id']}/parts", json={
            "spare_part_id": seeded.part_id, "quantity": 4}).json()
        line_id = body["parts"][0]["id"]

        resp = client.delete(f"{API}/repairs/{repair['id']}/parts/{line_id}")
        assert resp.status_code == 200
        assert resp.json()["parts"] == []
        assert resp.json()["total_cost"] == 0
        assert client.get(f"{API}/spare-parts/{seeded.part_id}").json()["stock_quantity"] == 5

        movements = client.get(f"{API}/spare-parts/{seeded.part_id}/movements").json()
        assert [m["movement_type"] for m in movements["data"]] == ["in", "out", "in"]


class TestErrorMapping:
    def test_not_found(self, client):
        resp = client.get(f"{API}/vehicles/999")
        assert resp.status_code == 404
        assert resp.json()["code"] == "vehicle_not_found"

    def test_sale_on_purchased_vehicle(self, client, seeded):
        resp = client.post(f"{API}/transactions/sales/", json={
            "vehicle_id": seeded.vehicle_id, "customer_id": seeded.customer_id,
            "vehicle_price": 1000, "payment_method": "cash"})
        assert resp.status_code == 409
        assert resp.json()["code"] == "vehicle_not_available"
        assert client.get(f"{API}/transactions/sales/").json()["total"] == 0

    def test_insufficient_stock(self, client, seeded):
        repair = client.post(f"{API}/repairs/", json={"vehicle_id": seeded.vehicle_id, "title": "换机滤"}).json()
        resp = client.post(f"{API}/repairs/{repair['id']}/parts", json={
            "spare_part_id": seeded.part_id, "quantity": 6})
        assert resp.status_code == 409
        assert resp.json()["code"] == "insufficient_stock"
        assert client.get(f"{API}/spare-parts/{seeded.part_id}").json()["stock_quantity"] == 5

    def test_strict_status_update(self, client, seeded):
        url = f"{API}/vehicles/{seeded.vehicle_id}/status"
        resp = client.put(url, params={"strict": "true"}, json={"status": "sold"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_status_transition"

        resp = client.put(url, json={"status": "sold"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "sold"

    def test_delete_vehicle_in_use(self, client, seeded):
        client.post(f"{API}/repairs/", json={"vehicle_id": seeded.vehicle_id, "title": "检查"})
        resp = client.delete(f"{API}/vehicles/{seeded.vehicle_id}")
        assert resp.status_code == 400
        assert resp.json()["code"] == "vehicle_in_use"

    def test_request_validation(self, client):
        assert client.get(f"{API}/vehicles/", params={"limit": 101}).status_code == 422
        resp = client.post(f"{API}/vehicles/", json={
            "chassis_number": "X1", "brand": "Honda", "model": "Jazz", "year": 1800})
        assert resp.status_code == 422


class TestDirectories:
    def test_customer_crud(self, client):
        resp = client.post(f"{API}/customers/", json={
            "name": "PT. Maju Jaya", "email": "info@majujaya.com", "type": "corporate"})
        assert resp.status_code == 200
        customer = resp.json()
        assert customer["customer_code"] == "CUST-002"
        assert customer["type_display"] == "企业"

        resp = client.put(f"{API}/customers/{customer['id']}", json={"phone": "081234567895"})
        assert resp.json()["phone"] == "081234567895"

        assert client.delete(f"{API}/customers/{customer['id']}").status_code == 200
        listed = client.get(f"{API}/customers/").json()
        assert [c["customer_code"] for c in listed["data"]] == ["CUST-001"]
        assert client.get(f"{API}/customers/", params={"include_inactive": "true"}).json()["total"] == 2

    def test_users(self, client, seeded):
        users = client.get(f"{API}/users/", params={"role": "mechanic"}).json()
        assert [u["username"] for u in users["data"]] == ["mechanic"]
        assert client.get(f"{API}/users/999").json()["code"] == "user_not_found"


class TestVehiclesAndParts:
    def test_create_vehicle_and_approve_price(self, client, seeded):
        resp = client.post(f"{API}/vehicles/", json={
            "chassis_number": "KMHJ1234567890123", "brand": "Hyundai", "model": "Tucson",
            "year": 2022, "fuel_type": "gasoline", "transmission": "automatic",
            "purchase_price": 450000000})
        assert resp.status_code == 200
        vehicle = resp.json()
        assert vehicle["vehicle_code"] == "VEH-002"
        assert vehicle["status"] == "purchased"

        resp = client.put(f"{API}/vehicles/{vehicle['id']}/approve-price", json={
            "approved_selling_price": 495000000})
        assert resp.json()["approved_selling_price"] == 495000000
        assert resp.json()["price_approved_by_admin"] == seeded.admin_id

        listed = client.get(f"{API}/vehicles/", params={"search": "tucson"}).json()
        assert listed["total"] == 1

    def test_spare_part_adjust_and_low_stock(self, client, seeded):
        resp = client.post(f"{API}/spare-parts/", json={
            "name": "火花塞", "cost_price": 65000, "stock_quantity": 10, "min_stock_level": 8})
        part = resp.json()
        assert part["part_code"] == "PART-002"
        assert part["is_low_stock"] is False

        resp = client.post(f"{API}/spare-parts/{part['id']}/adjust", json={"new_quantity": 3, "reason": "盘点"})
        assert resp.json()["stock_quantity"] == 3

        low = client.get(f"{API}/spare-parts/low-stock").json()
        assert [p["part_code"] for p in low] == ["PART-002"]
        assert client.get(f"{API}/dashboard/stats").json()["low_stock_parts"] == 1


class TestUnitOfWork:
    """中途失败时整个请求回滚"""

    def test_add_part_failure_restores_stock(self, client, seeded, monkeypatch):
        repair = client.post(f"{API}/repairs/", json={"vehicle_id": seeded.vehicle_id, "title": "换机滤"}).json()

        async def failing_recalculate(db, repair):
            await db.flush()
            raise RuntimeError("recalculate failed")

        monkeypatch.setattr(repair_workflow, "recalculate_costs", failing_recalculate)
        failing_client = TestClient(app, raise_server_exceptions=False)
        resp = failing_client.post(f"{API}/repairs/{repair['id']}/parts", json={
            "spare_part_id": seeded.part_id, "quantity": 2})
        assert resp.status_code == 500

        assert client.get(f"{API}/spare-parts/{seeded.part_id}").json()["stock_quantity"] == 5
        assert client.get(f"{API}/repairs/{repair['id']}").json()["parts"] == []
        movements = client.get(f"{API}/spare-parts/{seeded.part_id}/movements").json()
        assert movements["total"] == 1

    def test_sale_failure_leaves_no_sale(self, client, seeded, monkeypatch):
        client.put(f"{API}/vehicles/{seeded.vehicle_id}/status", json={"status": "ready_to_sell"})

        async def failing_set_status(db, vehicle, new_status):
            await db.flush()
            raise RuntimeError("status write failed")

        monkeypatch.setattr(transaction_workflow, "set_status", failing_set_status)
        failing_client = TestClient(app, raise_server_exceptions=False)
        resp = failing_client.post(f"{API}/transactions/sales/", json={
            "vehicle_id": seeded.vehicle_id, "customer_id": seeded.customer_id,
            "vehicle_price": 420000000, "payment_method": "cash"})
        assert resp.status_code == 500

        assert client.get(f"{API}/transactions/sales/").json()["total"] == 0
        vehicle = client.get(f"{API}/vehicles/{seeded.vehicle_id}").json()
        assert vehicle["status"] == "ready_to_sell"
        assert vehicle["sold_to_customer_id"] is None
