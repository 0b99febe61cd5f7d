"""
优惠券业务服务层
提供优惠券校验、可用列表和后台管理
"""

import logging
from typing import List, Optional
from datetime import datetime

from laundrypro.api.exceptions import ValidationException, NotFoundException
from laundrypro.core.config import settings
from laundrypro.models.coupon import (
    Coupon,
    CouponCreate,
    CouponSummary,
    CouponUpdate,
    CouponValidation,
    CouponValidationRequest,
)
from laundrypro.repositories.coupon_repository import CouponRepository
from laundrypro.repositories.order_repository import OrderRepository
from laundrypro.services.common_cache import coupon_cache

logger = logging.getLogger(__name__)


class CouponService:
    """优惠券业务服务"""

    def __init__(self, coupon_repo: CouponRepository, order_repo: Optional[OrderRepository] = None):
        self.coupon_repo = coupon_repo
        self.order_repo = order_repo
        self.cache = coupon_cache
        self.cache_prefix = "available"
        self.cache_ttl = settings.coupon_cache_ttl

    async def validate_coupon(self, customer_id: str, request: CouponValidationRequest) -> CouponValidation:
        """校验客户在指定订单金额下能否使用优惠券，不使用缓存"""
        if not request.tenancy_id:
            raise ValidationException("TENANCY_REQUIRED", "缺少租户信息")
        if not request.code or not request.code.strip():
            raise ValidationException("COUPON_CODE_REQUIRED", "请输入优惠券代码")

        db_coupon = await self.coupon_repo.get_by_code(request.tenancy_id, request.code)
        if not db_coupon:
            raise ValidationException("INVALID_COUPON", "优惠券无效")

        coupon = self.coupon_repo.to_model(db_coupon)
        user_used_count = await self.coupon_repo.get_user_coupon_usage_count(
            request.tenancy_id, coupon.coupon_id, customer_id
        )

        reason = coupon.check_validity(datetime.now(), request.order_value, user_used_count)
        if reason is None and coupon.first_order_only and self.order_repo is not None:
            order_count, _ = await self.order_repo.get_customer_order_stats(request.tenancy_id, customer_id)
            if order_count > 0:
                reason = "该优惠券仅限首单使用"
        if reason is None and request.order_value <= 0:
            reason = "订单金额无效"

        if reason:
            raise ValidationException("COUPON_NOT_APPLICABLE", reason)

        return CouponValidation.build(coupon, request.order_value)

    async def get_available_coupons(self, tenancy_id: str, use_cache: bool = True) -> List[CouponSummary]:
        """获取租户当前可用的优惠券"""
        cache_key = f"{self.cache_prefix}:{tenancy_id}"

        if use_cache:
            cached_coupons = await self.cache.get(cache_key)
            if cached_coupons:
                return [CouponSummary(**coupon_data) for coupon_data in cached_coupons]

        db_coupons = await self.coupon_repo.get_available_coupons(tenancy_id)
        coupons = [CouponSummary.model_validate(self.coupon_repo.to_model(db_coupon)) for db_coupon in db_coupons]

        if use_cache:
            await self.cache.set(
                cache_key,
                [coupon.model_dump(mode="json") for coupon in coupons],
                ttl=self.cache_ttl
            )

        return coupons

    # ---------- 后台管理 ----------

    async def list_coupons(self, tenancy_id: str) -> List[Coupon]:
        db_coupons = await self.coupon_repo.list_coupons(tenancy_id)
        return [self.coupon_repo.to_model(db_coupon) for db_coupon in db_coupons]

    async def get_coupon(self, tenancy_id: str, coupon_id: str) -> Coupon:
        db_coupon = await self.coupon_repo.get_by_id(tenancy_id, coupon_id)
        if not db_coupon:
            raise NotFoundException("COUPON_NOT_FOUND", "优惠券不存在")
        return self.coupon_repo.to_model(db_coupon)

    async def create_coupon(self, tenancy_id: str, coupon_data: CouponCreate) -> Coupon:
        """创建优惠券，同一租户内代码不能重复"""
        existing = await self.coupon_repo.get_by_code(tenancy_id, coupon_data.code)
        if existing:
            raise ValidationException("DUPLICATE_COUPON", f"优惠券代码 {coupon_data.code} 已存在")

        db_coupon = await self.coupon_repo.create(tenancy_id, coupon_data)
        coupon = self.coupon_repo.to_model(db_coupon)
        logger.info(f"优惠券已创建 tenancy={tenancy_id} code={coupon.code}")

        await self._clear_coupon_caches(tenancy_id)
        return coupon

    async def update_coupon(self, tenancy_id: str, coupon_id: str, coupon_data: CouponUpdate) -> Coupon:
        db_coupon = await self.coupon_repo.get_by_id(tenancy_id, coupon_id)
        if not db_coupon:
            raise NotFoundException("COUPON_NOT_FOUND", "优惠券不存在")

        start_date = coupon_data.start_date or db_coupon.start_date
        end_date = coupon_data.end_date or db_coupon.end_date
        if end_date <= start_date:
            raise ValidationException("INVALID_DATE_RANGE", "结束时间必须晚于开始时间")

        updated_coupon = await self.coupon_repo.update(db_coupon, coupon_data)
        coupon = self.coupon_repo.to_model(updated_coupon)

        await self._clear_coupon_caches(tenancy_id)
        return coupon

    async def delete_coupon(self, tenancy_id: str, coupon_id: str) -> None:
        db_coupon = await self.coupon_repo.get_by_id(tenancy_id, coupon_id)
        if not db_coupon:
            raise NotFoundException("COUPON_NOT_FOUND", "优惠券不存在")

        await self.coupon_repo.delete(db_coupon)
        logger.info(f"优惠券已删除 tenancy={tenancy_id} coupon={coupon_id}")

        await self._clear_coupon_caches(tenancy_id)

    async def _clear_coupon_caches(self, tenancy_id: str):
        """清除租户的优惠券列表缓存"""
        await self.cache.delete_pattern(f"{self.cache_prefix}:{tenancy_id}")
