"""
自动折扣后台管理接口
"""

from fastapi import APIRouter, Depends, status

from laundrypro.api.deps import require_tenancy_id, get_discount_service
from laundrypro.models.discount import AutomaticDiscountCreate, AutomaticDiscountUpdate
from laundrypro.services.discount_service import DiscountService

router = APIRouter(prefix="/api/admin/discounts", tags=["自动折扣管理"])


@router.get("")
async def list_discounts(
    tenancy_id: str = Depends(require_tenancy_id),
    service: DiscountService = Depends(get_discount_service)
):
    discounts = await service.list_discounts(tenancy_id)
    return {"success": True, "data": {"discounts": discounts}}


@router.get("/{discount_id}")
async def get_discount(
    discount_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: DiscountService = Depends(get_discount_service)
):
    discount = await service.get_discount(tenancy_id, discount_id)
    return {"success": True, "data": {"discount": discount}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_discount(
    discount_data: AutomaticDiscountCreate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: DiscountService = Depends(get_discount_service)
):
    discount = await service.create_discount(tenancy_id, discount_data)
    return {"success": True, "message": "折扣创建成功", "data": {"discount": discount}}


@router.put("/{discount_id}")
async def update_discount(
    discount_id: str,
    discount_data: AutomaticDiscountUpdate,
    tenancy_id: str = Depends(require_tenancy_id),
    service: DiscountService = Depends(get_discount_service)
):
    discount = await service.update_discount(tenancy_id, discount_id, discount_data)
    return {"success": True, "message": "折扣更新成功", "data": {"discount": discount}}


@router.delete("/{discount_id}")
async def delete_discount(
    discount_id: str,
    tenancy_id: str = Depends(require_tenancy_id),
    service: DiscountService = Depends(get_discount_service)
):
    await service.delete_discount(tenancy_id, discount_id)
    return {"success": True, "message": "折扣已删除"}
