"""
自动折扣数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.models.discount import AutomaticDiscount, AutomaticDiscountCreate, AutomaticDiscountUpdate
from laundrypro.models.database.discount_db import AutomaticDiscountDB, DiscountUsageDB


class DiscountRepository:
    """自动折扣数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_discounts(
        self,
        tenancy_id: str,
        current_time: Optional[datetime] = None
    ) -> List[AutomaticDiscountDB]:
        """获取租户当前生效的自动折扣，按优先级降序、创建时间升序"""
        if current_time is None:
            current_time = datetime.now()

        query = select(AutomaticDiscountDB).where(
            and_(
                AutomaticDiscountDB.tenancy_id == tenancy_id,
                AutomaticDiscountDB.is_active.is_(True),
                AutomaticDiscountDB.start_date <= current_time,
                AutomaticDiscountDB.end_date >= current_time
            )
        ).order_by(desc(AutomaticDiscountDB.priority), AutomaticDiscountDB.created_at)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_discounts(self, tenancy_id: str) -> List[AutomaticDiscountDB]:
        """获取租户全部自动折扣"""
        result = await self.db.execute(
            select(AutomaticDiscountDB)
            .where(AutomaticDiscountDB.tenancy_id == tenancy_id)
            .order_by(desc(AutomaticDiscountDB.priority), AutomaticDiscountDB.created_at)
        )
        return list(result.scalars().all())

    async def get_by_id(self, tenancy_id: str, discount_id: str) -> Optional[AutomaticDiscountDB]:
        result = await self.db.execute(
            select(AutomaticDiscountDB).where(
                and_(
                    AutomaticDiscountDB.tenancy_id == tenancy_id,
                    AutomaticDiscountDB.discount_id == discount_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def create(self, tenancy_id: str, discount_data: AutomaticDiscountCreate) -> AutomaticDiscountDB:
        """创建自动折扣"""
        now = datetime.now()
        db_discount = AutomaticDiscountDB(
            discount_id=f"disc_{uuid.uuid4().hex[:12]}",
            tenancy_id=tenancy_id,
            name=discount_data.name,
            description=discount_data.description,
            rules=[rule.model_dump(mode="json") for rule in discount_data.rules],
            priority=discount_data.priority,
            can_stack_with_other_discounts=discount_data.can_stack_with_other_discounts,
            can_stack_with_coupons=discount_data.can_stack_with_coupons,
            is_active=discount_data.is_active,
            start_date=discount_data.start_date,
            end_date=discount_data.end_date,
            usage_count=0,
            total_savings=Decimal("0"),
            created_at=now,
            updated_at=now
        )
        self.db.add(db_discount)
        await self.db.flush()
        return db_discount

    async def update(
        self,
        db_discount: AutomaticDiscountDB,
        update_data: AutomaticDiscountUpdate
    ) -> AutomaticDiscountDB:
        """更新自动折扣，仅更新传入的字段"""
        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if "rules" in changes:
            changes["rules"] = [rule.model_dump(mode="json") for rule in update_data.rules]

        for field, value in changes.items():
            setattr(db_discount, field, value)
        db_discount.updated_at = datetime.now()

        await self.db.flush()
        return db_discount

    async def delete(self, db_discount: AutomaticDiscountDB) -> None:
        await self.db.delete(db_discount)
        await self.db.flush()

    async def record_usage(
        self,
        discount_id: str,
        tenancy_id: str,
        customer_id: str,
        order_id: str,
        discount_amount: Decimal
    ) -> bool:
        """记录折扣使用并更新统计"""
        self.db.add(DiscountUsageDB(
            usage_id=str(uuid.uuid4()),
            discount_id=discount_id,
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            order_id=order_id,
            discount_amount=discount_amount,
            used_at=datetime.now()
        ))

        result = await self.db.execute(
            update(AutomaticDiscountDB)
            .where(
                and_(
                    AutomaticDiscountDB.discount_id == discount_id,
                    AutomaticDiscountDB.tenancy_id == tenancy_id
                )
            )
            .values(
                usage_count=AutomaticDiscountDB.usage_count + 1,
                total_savings=AutomaticDiscountDB.total_savings + discount_amount,
                updated_at=datetime.now()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def to_model(self, db_discount: AutomaticDiscountDB) -> AutomaticDiscount:
        """转换为Pydantic模型"""
        return AutomaticDiscount(
            discount_id=db_discount.discount_id,
            tenancy_id=db_discount.tenancy_id,
            name=db_discount.name,
            description=db_discount.description,
            rules=db_discount.rules or [],
            priority=db_discount.priority or 0,
            can_stack_with_other_discounts=db_discount.can_stack_with_other_discounts,
            can_stack_with_coupons=db_discount.can_stack_with_coupons,
            is_active=db_discount.is_active,
            start_date=db_discount.start_date,
            end_date=db_discount.end_date,
            usage_count=db_discount.usage_count or 0,
            total_savings=db_discount.total_savings or Decimal("0"),
            created_at=db_discount.created_at,
            updated_at=db_discount.updated_at
        )
