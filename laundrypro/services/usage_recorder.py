"""
优惠使用记录
订单提交后逐条执行优惠计算产生的使用记录，每条独立提交，失败重试后记录日志，不影响订单
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.core.config import settings
from laundrypro.models.pricing import UsageAction, UsageActionType
from laundrypro.repositories.discount_repository import DiscountRepository
from laundrypro.repositories.campaign_repository import CampaignRepository
from laundrypro.repositories.coupon_repository import CouponRepository

logger = logging.getLogger(__name__)


class UsageRecorder:
    """优惠使用记录器"""

    def __init__(
        self,
        db: AsyncSession,
        discount_repo: Optional[DiscountRepository] = None,
        campaign_repo: Optional[CampaignRepository] = None,
        coupon_repo: Optional[CouponRepository] = None,
        max_attempts: Optional[int] = None
    ):
        self.db = db
        self.discount_repo = discount_repo or DiscountRepository(db)
        self.campaign_repo = campaign_repo or CampaignRepository(db)
        self.coupon_repo = coupon_repo or CouponRepository(db)
        self.max_attempts = max(max_attempts or settings.usage_record_max_attempts, 1)

    async def record_all(
        self,
        order_id: str,
        order_number: str,
        order_total: Decimal,
        actions: List[UsageAction]
    ) -> List[UsageAction]:
        """执行全部使用记录，返回最终失败的记录"""
        failed: List[UsageAction] = []
        for action in actions:
            recorded = await self._record_with_retry(order_id, order_number, order_total, action)
            if not recorded:
                failed.append(action)
        return failed

    async def _record_with_retry(
        self,
        order_id: str,
        order_number: str,
        order_total: Decimal,
        action: UsageAction
    ) -> bool:
        for attempt in range(1, self.max_attempts + 1):
            try:
                matched = await self._record(order_id, order_total, action)
                if not matched:
                    # 目标已被删除，重试无意义
                    logger.error(
                        f"优惠使用记录目标不存在 order={order_number} "
                        f"action={action.action_type.value}:{action.target_id} amount={action.amount}"
                    )
                    await self._safe_rollback(order_number)
                    return False
                await self.db.commit()
                return True
            except Exception as e:
                logger.warning(
                    f"优惠使用记录失败 order={order_number} "
                    f"action={action.action_type.value}:{action.target_id} 第{attempt}次: {e}"
                )
                await self._safe_rollback(order_number)

        logger.error(
            f"优惠使用记录放弃 order={order_number} "
            f"action={action.action_type.value}:{action.target_id} amount={action.amount}"
        )
        return False

    async def _record(self, order_id: str, order_total: Decimal, action: UsageAction) -> bool:
        """执行单条使用记录，目标不存在时返回False"""
        if action.action_type == UsageActionType.DISCOUNT:
            return await self.discount_repo.record_usage(
                discount_id=action.target_id,
                tenancy_id=action.tenancy_id,
                customer_id=action.customer_id,
                order_id=order_id,
                discount_amount=action.amount
            )
        elif action.action_type == UsageActionType.CAMPAIGN:
            return await self.campaign_repo.record_usage(
                campaign_id=action.target_id,
                tenancy_id=action.tenancy_id,
                discount_amount=action.amount,
                order_total=order_total
            )
        elif action.action_type == UsageActionType.COUPON:
            return await self.coupon_repo.record_usage(
                coupon_id=action.target_id,
                tenancy_id=action.tenancy_id,
                customer_id=action.customer_id,
                order_id=order_id,
                discount_amount=action.amount
            )
        else:
            raise ValueError(f"未知的使用记录类型: {action.action_type}")

    async def _safe_rollback(self, order_number: str) -> None:
        try:
            await self.db.rollback()
        except Exception as e:
            logger.error(f"回滚失败 order={order_number}: {e}")
