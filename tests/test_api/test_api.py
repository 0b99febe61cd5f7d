"""
接口测试 - FastAPI应用 + 内存SQLite
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime, timedelta

import httpx
from sqlalchemy import select

from laundrypro.core.database import get_db_session
from laundrypro.main import create_app
from laundrypro.models.database.customer_db import CustomerDB
from laundrypro.models.database.coupon_db import CouponUsageDB
from laundrypro.models.database.discount_db import DiscountUsageDB


CUSTOMER_HEADERS = {"X-Customer-Id": "cust_001", "X-Tenancy-Id": "tenant_a"}
ADMIN_HEADERS = {"X-Tenancy-Id": "tenant_a"}


def window(days: int = 30) -> dict:
    now = datetime.now()
    return {
        "start_date": (now - timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=days)).isoformat()
    }


def order_payload(quantity: int = 5, coupon_code: str = None) -> dict:
    payload = {
        "items": [{"item_type": "suit_2pc", "service": "wash_fold", "quantity": quantity}],
        "service_type": "self_drop_self_pickup",
        "pickup_date": (datetime.now() + timedelta(days=1)).replace(microsecond=0).isoformat(),
        "pickup_time_slot": "09:00-11:00"
    }
    if coupon_code:
        payload["coupon_code"] = coupon_code
    return payload


@pytest_asyncio.fixture
async def client(test_session_maker):
    async def override_get_db_session():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest_asyncio.fixture
async def customer(test_session_maker):
    async with test_session_maker() as session:
        session.add(CustomerDB(customer_id="cust_001", name="张三", created_at=datetime.now() - timedelta(days=90)))
        await session.commit()


@pytest.mark.asyncio
class TestHealthApi:

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/health"

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
class TestOrderApi:

    async def test_requires_customer(self, client):
        response = await client.post("/api/customer/orders", json=order_payload())

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_requires_tenancy(self, client, customer):
        response = await client.post(
            "/api/customer/orders",
            json=order_payload(),
            headers={"X-Customer-Id": "cust_001"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "TENANCY_REQUIRED"

    async def test_invalid_body(self, client):
        response = await client.post("/api/customer/orders", json={"items": []}, headers=CUSTOMER_HEADERS)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_order_with_exclusive_discount(self, client, customer, test_session_maker):
        """不可叠加的10%折扣生效，优惠券被忽略：900 + 162 = 1062"""
        discount_response = await client.post(
            "/api/admin/discounts",
            json={
                "name": "全场九折",
                "rules": [{"type": "percentage", "value": "10"}],
                "priority": 1,
                "can_stack_with_other_discounts": False,
                "can_stack_with_coupons": False,
                **window()
            },
            headers=ADMIN_HEADERS
        )
        assert discount_response.status_code == 201
        discount_id = discount_response.json()["data"]["discount"]["discount_id"]

        coupon_response = await client.post(
            "/api/admin/coupons",
            json={
                "code": "flat100",
                "name": "立减100",
                "discount_type": "fixed_amount",
                "value": "100",
                **window()
            },
            headers=ADMIN_HEADERS
        )
        assert coupon_response.status_code == 201
        assert coupon_response.json()["data"]["coupon"]["code"] == "FLAT100"

        response = await client.post(
            "/api/customer/orders",
            json=order_payload(coupon_code="FLAT100"),
            headers=CUSTOMER_HEADERS
        )

        assert response.status_code == 201
        order = response.json()["data"]["order"]
        pricing = order["pricing"]
        assert Decimal(str(pricing["subtotal"])) == Decimal("1000")
        assert Decimal(str(pricing["automatic_discount"])) == Decimal("100")
        assert Decimal(str(pricing["coupon_discount"])) == Decimal("0")
        assert pricing["coupon_code"] is None
        assert Decimal(str(pricing["tax"])) == Decimal("162")
        assert Decimal(str(pricing["total"])) == Decimal("1062")
        assert pricing["applied_discounts"][0]["discount_id"] == discount_id

        async with test_session_maker() as session:
            discount_usages = (await session.execute(
                select(DiscountUsageDB).where(DiscountUsageDB.order_id == order["order_id"])
            )).scalars().all()
            coupon_usages = (await session.execute(select(CouponUsageDB))).scalars().all()
            db_customer = await session.get(CustomerDB, "cust_001")
        assert len(discount_usages) == 1
        assert coupon_usages == []
        assert db_customer.total_orders == 1

    async def test_order_with_coupon(self, client, customer, test_session_maker):
        await client.post(
            "/api/admin/coupons",
            json={"code": "SAVE50", "name": "满减50", "discount_type": "fixed_amount", "value": "50", **window()},
            headers=ADMIN_HEADERS
        )

        response = await client.post(
            "/api/customer/orders",
            json=order_payload(quantity=2, coupon_code="save50"),
            headers=CUSTOMER_HEADERS
        )

        assert response.status_code == 201
        pricing = response.json()["data"]["order"]["pricing"]
        assert pricing["coupon_code"] == "SAVE50"
        assert Decimal(str(pricing["coupon_discount"])) == Decimal("50")
        assert Decimal(str(pricing["total"])) == Decimal("350") + Decimal("63")

        async with test_session_maker() as session:
            usages = (await session.execute(select(CouponUsageDB))).scalars().all()
        assert len(usages) == 1
        assert usages[0].customer_id == "cust_001"

    async def test_coupon_below_minimum_rejects_order(self, client, customer):
        await client.post(
            "/api/admin/coupons",
            json={
                "code": "BIG",
                "name": "大额券",
                "discount_type": "fixed_amount",
                "value": "100",
                "min_order_value": "5000",
                **window()
            },
            headers=ADMIN_HEADERS
        )

        response = await client.post(
            "/api/customer/orders",
            json=order_payload(coupon_code="BIG"),
            headers=CUSTOMER_HEADERS
        )

        assert response.status_code == 400
        assert response.json()["error"] == "COUPON_NOT_APPLICABLE"

    async def test_order_lifecycle(self, client, customer):
        created = await client.post("/api/customer/orders", json=order_payload(quantity=1), headers=CUSTOMER_HEADERS)
        order_id = created.json()["data"]["order"]["order_id"]

        detail = await client.get(f"/api/customer/orders/{order_id}", headers=CUSTOMER_HEADERS)
        assert detail.status_code == 200

        other = await client.get(
            f"/api/customer/orders/{order_id}",
            headers={"X-Customer-Id": "cust_002", "X-Tenancy-Id": "tenant_a"}
        )
        assert other.status_code == 404

        tracking = await client.get(f"/api/customer/orders/{order_id}/tracking", headers=CUSTOMER_HEADERS)
        assert tracking.json()["data"]["tracking"]["current_status"] == "placed"

        listing = await client.get("/api/customer/orders", headers=CUSTOMER_HEADERS)
        assert listing.json()["data"]["total"] == 1

        reorder = await client.post(f"/api/customer/orders/{order_id}/reorder", headers=CUSTOMER_HEADERS)
        assert reorder.json()["data"]["reorder_data"]["items"][0]["item_type"] == "suit_2pc"

        cancelled = await client.put(
            f"/api/customer/orders/{order_id}/cancel",
            json={"reason": "计划有变"},
            headers=CUSTOMER_HEADERS
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["data"]["order"]["status"] == "cancelled"

        again = await client.put(f"/api/customer/orders/{order_id}/cancel", json={}, headers=CUSTOMER_HEADERS)
        assert again.status_code == 400
        assert again.json()["error"] == "CANNOT_CANCEL"


@pytest.mark.asyncio
class TestCouponApi:

    async def test_validate_coupon(self, client):
        await client.post(
            "/api/admin/coupons",
            json={"code": "SAVE50", "name": "满减50", "discount_type": "fixed_amount", "value": "50", **window()},
            headers=ADMIN_HEADERS
        )

        response = await client.post(
            "/api/customer/coupons/validate",
            json={"code": "SAVE50", "order_value": "500"},
            headers=CUSTOMER_HEADERS
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["valid"] is True
        assert Decimal(str(data["discount"])) == Decimal("50")

    async def test_validate_coupon_other_tenancy(self, client):
        await client.post(
            "/api/admin/coupons",
            json={"code": "SAVE50", "name": "满减50", "discount_type": "fixed_amount", "value": "50", **window()},
            headers={"X-Tenancy-Id": "tenant_b"}
        )

        response = await client.post(
            "/api/customer/coupons/validate",
            json={"code": "SAVE50", "order_value": "500"},
            headers=CUSTOMER_HEADERS
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_COUPON"

    async def test_available_coupons(self, client):
        await client.post(
            "/api/admin/coupons",
            json={"code": "SAVE50", "name": "满减50", "discount_type": "fixed_amount", "value": "50", **window()},
            headers=ADMIN_HEADERS
        )

        response = await client.get("/api/customer/coupons/available", headers=CUSTOMER_HEADERS)

        assert response.status_code == 200
        assert [c["code"] for c in response.json()["data"]["coupons"]] == ["SAVE50"]

    async def test_duplicate_coupon(self, client):
        payload = {"code": "SAVE50", "name": "满减50", "discount_type": "fixed_amount", "value": "50", **window()}
        await client.post("/api/admin/coupons", json=payload, headers=ADMIN_HEADERS)

        response = await client.post("/api/admin/coupons", json=payload, headers=ADMIN_HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "DUPLICATE_COUPON"

    async def test_admin_requires_tenancy(self, client):
        response = await client.get("/api/admin/coupons")

        assert response.status_code == 400
        assert response.json()["error"] == "TENANCY_REQUIRED"
