"""
客户数据库操作层
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.core.config import settings
from laundrypro.models.database.customer_db import CustomerDB


class CustomerRepository:
    """客户数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, customer_id: str) -> Optional[CustomerDB]:
        result = await self.db.execute(
            select(CustomerDB).where(CustomerDB.customer_id == customer_id)
        )
        return result.scalar_one_or_none()

    async def record_order(self, db_customer: CustomerDB, order_total: Decimal) -> CustomerDB:
        """下单后更新客户统计，VIP客户按消费金额累计积分"""
        db_customer.total_orders = (db_customer.total_orders or 0) + 1
        if db_customer.is_vip:
            earned = int(order_total // settings.vip_points_per_amount)
            db_customer.reward_points = (db_customer.reward_points or 0) + earned
        db_customer.updated_at = datetime.now()

        await self.db.flush()
        return db_customer
