"""
路由依赖：请求身份与服务装配
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.api.exceptions import ValidationException
from laundrypro.core.database import get_db_session
from laundrypro.repositories.order_repository import OrderRepository
from laundrypro.repositories.customer_repository import CustomerRepository
from laundrypro.repositories.discount_repository import DiscountRepository
from laundrypro.repositories.campaign_repository import CampaignRepository
from laundrypro.repositories.coupon_repository import CouponRepository
from laundrypro.services.order_service import OrderService
from laundrypro.services.coupon_service import CouponService
from laundrypro.services.discount_service import DiscountService
from laundrypro.services.campaign_service import CampaignService
from laundrypro.services.usage_recorder import UsageRecorder


async def get_current_customer_id(x_customer_id: Optional[str] = Header(None)) -> str:
    """由网关认证后写入的客户ID"""
    if not x_customer_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="未登录")
    return x_customer_id


async def get_tenancy_id(x_tenancy_id: Optional[str] = Header(None)) -> Optional[str]:
    return x_tenancy_id


async def require_tenancy_id(tenancy_id: Optional[str] = Depends(get_tenancy_id)) -> str:
    if not tenancy_id:
        raise ValidationException("TENANCY_REQUIRED", "缺少租户信息")
    return tenancy_id


def get_order_service(db: AsyncSession = Depends(get_db_session)) -> OrderService:
    discount_repo = DiscountRepository(db)
    campaign_repo = CampaignRepository(db)
    coupon_repo = CouponRepository(db)
    return OrderService(
        order_repo=OrderRepository(db),
        customer_repo=CustomerRepository(db),
        discount_repo=discount_repo,
        campaign_repo=campaign_repo,
        coupon_repo=coupon_repo,
        usage_recorder=UsageRecorder(
            db,
            discount_repo=discount_repo,
            campaign_repo=campaign_repo,
            coupon_repo=coupon_repo
        )
    )


def get_coupon_service(db: AsyncSession = Depends(get_db_session)) -> CouponService:
    return CouponService(CouponRepository(db), OrderRepository(db))


def get_discount_service(db: AsyncSession = Depends(get_db_session)) -> DiscountService:
    return DiscountService(DiscountRepository(db))


def get_campaign_service(db: AsyncSession = Depends(get_db_session)) -> CampaignService:
    return CampaignService(CampaignRepository(db))
