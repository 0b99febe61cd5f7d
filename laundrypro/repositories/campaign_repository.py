"""
营销活动数据库操作层
"""

import uuid
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update, and_, func
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.models.campaign import (
    Campaign,
    CampaignCreate,
    CampaignUpdate,
    CampaignStatus,
    CampaignLimits,
    CampaignBudget,
    CampaignAnalytics,
)
from laundrypro.models.database.campaign_db import CampaignDB
from laundrypro.models.database.order_db import OrderDB


class CampaignRepository:
    """营销活动数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_campaigns(
        self,
        tenancy_id: str,
        current_time: Optional[datetime] = None
    ) -> List[CampaignDB]:
        """获取租户进行中的活动，按创建时间升序"""
        if current_time is None:
            current_time = datetime.now()

        query = select(CampaignDB).where(
            and_(
                CampaignDB.tenancy_id == tenancy_id,
                CampaignDB.status == CampaignStatus.ACTIVE.value,
                CampaignDB.start_date <= current_time,
                CampaignDB.end_date >= current_time
            )
        ).order_by(CampaignDB.created_at)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_campaigns(self, tenancy_id: str, status: Optional[str] = None) -> List[CampaignDB]:
        conditions = [CampaignDB.tenancy_id == tenancy_id]
        if status:
            conditions.append(CampaignDB.status == status)

        result = await self.db.execute(
            select(CampaignDB).where(and_(*conditions)).order_by(CampaignDB.created_at)
        )
        return list(result.scalars().all())

    async def get_by_id(self, tenancy_id: str, campaign_id: str) -> Optional[CampaignDB]:
        result = await self.db.execute(
            select(CampaignDB).where(
                and_(
                    CampaignDB.tenancy_id == tenancy_id,
                    CampaignDB.campaign_id == campaign_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def create(self, tenancy_id: str, campaign_data: CampaignCreate) -> CampaignDB:
        """创建活动"""
        now = datetime.now()
        db_campaign = CampaignDB(
            campaign_id=f"camp_{uuid.uuid4().hex[:12]}",
            tenancy_id=tenancy_id,
            name=campaign_data.name,
            description=campaign_data.description,
            status=campaign_data.status.value,
            triggers=[trigger.value for trigger in campaign_data.triggers],
            promotions=[promotion.model_dump(mode="json") for promotion in campaign_data.promotions],
            stacking=campaign_data.stacking.model_dump(mode="json"),
            eligibility=campaign_data.eligibility.model_dump(mode="json"),
            start_date=campaign_data.start_date,
            end_date=campaign_data.end_date,
            max_uses=campaign_data.max_uses,
            used_count=0,
            total_budget=campaign_data.total_budget,
            spent_amount=Decimal("0"),
            total_orders=0,
            total_discount=Decimal("0"),
            total_revenue=Decimal("0"),
            unique_users=0,
            created_at=now,
            updated_at=now
        )
        self.db.add(db_campaign)
        await self.db.flush()
        return db_campaign

    async def update(self, db_campaign: CampaignDB, update_data: CampaignUpdate) -> CampaignDB:
        """更新活动，仅更新传入的字段"""
        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        json_changes = update_data.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        for field in ("status", "triggers", "promotions", "stacking", "eligibility"):
            if field in changes:
                changes[field] = json_changes[field]

        for field, value in changes.items():
            setattr(db_campaign, field, value)
        db_campaign.updated_at = datetime.now()

        await self.db.flush()
        return db_campaign

    async def delete(self, db_campaign: CampaignDB) -> None:
        await self.db.delete(db_campaign)
        await self.db.flush()

    async def record_usage(
        self,
        campaign_id: str,
        tenancy_id: str,
        discount_amount: Decimal,
        order_total: Decimal
    ) -> bool:
        """累加活动使用次数、花费和统计，参与客户数按订单去重重新计算"""
        unique_users = await self.db.execute(
            select(func.count(func.distinct(OrderDB.customer_id))).where(
                and_(
                    OrderDB.tenancy_id == tenancy_id,
                    OrderDB.applied_campaign_id == campaign_id
                )
            )
        )

        result = await self.db.execute(
            update(CampaignDB)
            .where(
                and_(
                    CampaignDB.campaign_id == campaign_id,
                    CampaignDB.tenancy_id == tenancy_id
                )
            )
            .values(
                used_count=CampaignDB.used_count + 1,
                spent_amount=CampaignDB.spent_amount + discount_amount,
                total_orders=CampaignDB.total_orders + 1,
                total_discount=CampaignDB.total_discount + discount_amount,
                total_revenue=CampaignDB.total_revenue + order_total,
                unique_users=unique_users.scalar() or 0,
                updated_at=datetime.now()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def to_model(self, db_campaign: CampaignDB) -> Campaign:
        """转换为Pydantic模型"""
        return Campaign(
            campaign_id=db_campaign.campaign_id,
            tenancy_id=db_campaign.tenancy_id,
            name=db_campaign.name,
            description=db_campaign.description,
            status=db_campaign.status,
            triggers=db_campaign.triggers or [],
            promotions=db_campaign.promotions or [],
            stacking=db_campaign.stacking or {},
            eligibility=db_campaign.eligibility or {},
            limits=CampaignLimits(
                max_uses=db_campaign.max_uses or 0,
                used_count=db_campaign.used_count or 0
            ),
            budget=CampaignBudget(
                total_budget=db_campaign.total_budget or Decimal("0"),
                spent_amount=db_campaign.spent_amount or Decimal("0")
            ),
            analytics=CampaignAnalytics(
                total_orders=db_campaign.total_orders or 0,
                total_discount=db_campaign.total_discount or Decimal("0"),
                total_revenue=db_campaign.total_revenue or Decimal("0"),
                unique_users=db_campaign.unique_users or 0
            ),
            start_date=db_campaign.start_date,
            end_date=db_campaign.end_date,
            created_at=db_campaign.created_at,
            updated_at=db_campaign.updated_at
        )
