"""
客户Repository测试
"""

import pytest
from decimal import Decimal

from laundrypro.models.database.customer_db import CustomerDB
from laundrypro.repositories.customer_repository import CustomerRepository


@pytest.mark.asyncio
class TestCustomerRepository:

    async def test_record_order_for_regular_customer(self, db_session):
        db_session.add(CustomerDB(customer_id="cust_001", name="张三"))
        await db_session.commit()
        repo = CustomerRepository(db_session)

        customer = await repo.get_by_id("cust_001")
        await repo.record_order(customer, Decimal("1062"))
        await db_session.commit()

        assert customer.total_orders == 1
        assert customer.reward_points == 0

    async def test_vip_customer_earns_points(self, db_session):
        db_session.add(CustomerDB(customer_id="cust_vip", name="李四", is_vip=True, reward_points=10))
        await db_session.commit()
        repo = CustomerRepository(db_session)

        customer = await repo.get_by_id("cust_vip")
        await repo.record_order(customer, Decimal("1062"))
        await db_session.commit()

        assert customer.total_orders == 1
        assert customer.reward_points == 20

    async def test_unknown_customer(self, db_session):
        assert await CustomerRepository(db_session).get_by_id("cust_404") is None
