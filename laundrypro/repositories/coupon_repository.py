"""
优惠券数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update, and_, or_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.models.coupon import Coupon, CouponCreate, CouponUpdate
from laundrypro.models.database.coupon_db import CouponDB, CouponUsageDB


class CouponRepository:
    """优惠券数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, tenancy_id: str, code: str) -> Optional[CouponDB]:
        """根据租户和优惠券代码获取优惠券"""
        result = await self.db.execute(
            select(CouponDB).where(
                and_(
                    CouponDB.tenancy_id == tenancy_id,
                    CouponDB.code == code.strip().upper()
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, tenancy_id: str, coupon_id: str) -> Optional[CouponDB]:
        result = await self.db.execute(
            select(CouponDB).where(
                and_(
                    CouponDB.tenancy_id == tenancy_id,
                    CouponDB.coupon_id == coupon_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_available_coupons(
        self,
        tenancy_id: str,
        current_time: Optional[datetime] = None
    ) -> List[CouponDB]:
        """获取租户当前可用的优惠券"""
        if current_time is None:
            current_time = datetime.now()

        query = select(CouponDB).where(
            and_(
                CouponDB.tenancy_id == tenancy_id,
                CouponDB.is_active.is_(True),
                CouponDB.start_date <= current_time,
                CouponDB.end_date >= current_time,
                or_(
                    CouponDB.usage_limit == 0,
                    CouponDB.used_count < CouponDB.usage_limit
                )
            )
        ).order_by(desc(CouponDB.value))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_coupons(self, tenancy_id: str) -> List[CouponDB]:
        result = await self.db.execute(
            select(CouponDB)
            .where(CouponDB.tenancy_id == tenancy_id)
            .order_by(desc(CouponDB.created_at))
        )
        return list(result.scalars().all())

    async def get_user_coupon_usage_count(self, tenancy_id: str, coupon_id: str, customer_id: str) -> int:
        """获取客户对特定优惠券的使用次数"""
        result = await self.db.execute(
            select(func.count(CouponUsageDB.usage_id)).where(
                and_(
                    CouponUsageDB.tenancy_id == tenancy_id,
                    CouponUsageDB.coupon_id == coupon_id,
                    CouponUsageDB.customer_id == customer_id
                )
            )
        )
        return result.scalar() or 0

    async def create(self, tenancy_id: str, coupon_data: CouponCreate) -> CouponDB:
        """创建优惠券"""
        now = datetime.now()
        db_coupon = CouponDB(
            coupon_id=f"cpn_{uuid.uuid4().hex[:12]}",
            tenancy_id=tenancy_id,
            code=coupon_data.code,
            name=coupon_data.name,
            description=coupon_data.description,
            discount_type=coupon_data.discount_type.value,
            value=coupon_data.value,
            min_order_value=coupon_data.min_order_value,
            max_discount=coupon_data.max_discount,
            usage_limit=coupon_data.usage_limit,
            used_count=0,
            per_user_limit=coupon_data.per_user_limit,
            first_order_only=coupon_data.first_order_only,
            applicable_services=list(coupon_data.applicable_services),
            start_date=coupon_data.start_date,
            end_date=coupon_data.end_date,
            is_active=coupon_data.is_active,
            created_at=now,
            updated_at=now
        )
        self.db.add(db_coupon)
        await self.db.flush()
        return db_coupon

    async def update(self, db_coupon: CouponDB, update_data: CouponUpdate) -> CouponDB:
        """更新优惠券，仅更新传入的字段"""
        for field, value in update_data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(db_coupon, field, value)
        db_coupon.updated_at = datetime.now()

        await self.db.flush()
        return db_coupon

    async def delete(self, db_coupon: CouponDB) -> None:
        await self.db.delete(db_coupon)
        await self.db.flush()

    async def record_usage(
        self,
        coupon_id: str,
        tenancy_id: str,
        customer_id: str,
        order_id: str,
        discount_amount: Decimal
    ) -> bool:
        """使用优惠券（记录使用并更新统计）"""
        self.db.add(CouponUsageDB(
            usage_id=str(uuid.uuid4()),
            coupon_id=coupon_id,
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            order_id=order_id,
            discount_amount=discount_amount,
            used_at=datetime.now()
        ))

        result = await self.db.execute(
            update(CouponDB)
            .where(
                and_(
                    CouponDB.coupon_id == coupon_id,
                    CouponDB.tenancy_id == tenancy_id
                )
            )
            .values(
                used_count=CouponDB.used_count + 1,
                updated_at=datetime.now()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def to_model(self, db_coupon: CouponDB) -> Coupon:
        """转换为Pydantic模型"""
        return Coupon(
            coupon_id=db_coupon.coupon_id,
            tenancy_id=db_coupon.tenancy_id,
            code=db_coupon.code,
            name=db_coupon.name,
            description=db_coupon.description,
            discount_type=db_coupon.discount_type,
            value=db_coupon.value,
            min_order_value=db_coupon.min_order_value or Decimal("0"),
            max_discount=db_coupon.max_discount or Decimal("0"),
            usage_limit=db_coupon.usage_limit or 0,
            used_count=db_coupon.used_count or 0,
            per_user_limit=db_coupon.per_user_limit or 0,
            first_order_only=bool(db_coupon.first_order_only),
            applicable_services=db_coupon.applicable_services or [],
            start_date=db_coupon.start_date,
            end_date=db_coupon.end_date,
            is_active=db_coupon.is_active,
            created_at=db_coupon.created_at,
            updated_at=db_coupon.updated_at
        )
