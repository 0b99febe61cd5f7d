"""
优惠券接口（客户端与后台管理）
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from laundrypro.api.deps import get_current_customer_id, get_tenancy_id, require_tenancy_id, get_coupon_service
from laundrypro.models.coupon import CouponCreate, CouponUpdate, CouponValidationRequest
from laundrypro.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customer/coupons", tags=["优惠券"])
admin_router = APIRouter(prefix="/api/admin/coupons", tags=["优惠券管理"])


@router.post("/validate")
async def validate_coupon(
    request: CouponValidationRequest,
    customer_id: str = Depends(get_current_customer_id),
    tenancy_id: Optional[str] = Depends(get_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    """校验优惠券并返回可减免金额"""
    if not request.tenancy_id and tenancy_id:
        request = request.model_copy(update={"tenancy_id": tenancy_id})

    validation = await service.validate_coupon(customer_id, request)
    return {"success": True, "message": "优惠券可用", "data": validation}


@router.get("/available")
async def get_available_coupons(
    customer_id: str = Depends(get_current_customer_id),
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    coupons = await service.get_available_coupons(tenancy_id)
    return {"success": True, "data": {"coupons": coupons}}


@router.post("/remove")
async def remove_coupon(customer_id: str = Depends(get_current_customer_id)):
    """移除已选优惠券，计价在下单时重新进行"""
    return {"success": True, "message": "优惠券已移除"}


@admin_router.get("")
async def list_coupons(
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    coupons = await service.list_coupons(tenancy_id)
    return {"success": True, "data": {"coupons": coupons}}


@admin_router.get("/{coupon_id}")
async def get_coupon(
    coupon_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    coupon = await service.get_coupon(tenancy_id, coupon_id)
    return {"success": True, "data": {"coupon": coupon}}


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_coupon(
    coupon_data: CouponCreate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    coupon = await service.create_coupon(tenancy_id, coupon_data)
    return {"success": True, "message": "优惠券创建成功", "data": {"coupon": coupon}}


@admin_router.put("/{coupon_id}")
async def update_coupon(
    coupon_id: str,
    coupon_data: CouponUpdate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    coupon = await service.update_coupon(tenancy_id, coupon_id, coupon_data)
    return {"success": True, "message": "优惠券更新成功", "data": {"coupon": coupon}}


@admin_router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: CouponService = Depends(get_coupon_service)
):
    await service.delete_coupon(tenancy_id, coupon_id)
    return {"success": True, "message": "优惠券已删除"}
