"""
客户订单接口
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from laundrypro.api.deps import get_current_customer_id, get_tenancy_id, get_order_service
from laundrypro.models.order import OrderCreate, OrderCancel, OrderRate, OrderStatus
from laundrypro.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customer/orders", tags=["订单"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    customer_id: str = Depends(get_current_customer_id),
    tenancy_id: Optional[str] = Depends(get_tenancy_id),
    service: OrderService = Depends(get_order_service)
):
    """创建订单，租户优先取请求体，其次取请求头"""
    if not order_data.tenancy_id and tenancy_id:
        order_data = order_data.model_copy(update={"tenancy_id": tenancy_id})

    order = await service.create_order(customer_id, order_data)
    return {"success": True, "message": "订单创建成功", "data": {"order": order}}


@router.get("")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    customer_id: str = Depends(get_current_customer_id),
    tenancy_id: Optional[str] = Depends(get_tenancy_id),
    service: OrderService = Depends(get_order_service)
):
    orders = await service.get_customer_orders(
        customer_id,
        tenancy_id=tenancy_id,
        page=page,
        limit=limit,
        status_filter=status_filter
    )
    return {"success": True, "data": orders}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    customer_id: str = Depends(get_current_customer_id),
    service: OrderService = Depends(get_order_service)
):
    order = await service.get_order(customer_id, order_id)
    return {"success": True, "data": {"order": order}}


@router.get("/{order_id}/tracking")
async def get_order_tracking(
    order_id: str,
    customer_id: str = Depends(get_current_customer_id),
    service: OrderService = Depends(get_order_service)
):
    tracking = await service.get_order_tracking(customer_id, order_id)
    return {"success": True, "data": {"tracking": tracking}}


@router.put("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    cancel_data: OrderCancel,
    customer_id: str = Depends(get_current_customer_id),
    service: OrderService = Depends(get_order_service)
):
    order = await service.cancel_order(customer_id, order_id, cancel_data.reason)
    return {"success": True, "message": "订单已取消", "data": {"order": order}}


@router.put("/{order_id}/rate")
async def rate_order(
    order_id: str,
    rate_data: OrderRate,
    customer_id: str = Depends(get_current_customer_id),
    service: OrderService = Depends(get_order_service)
):
    rating = await service.rate_order(customer_id, order_id, rate_data.score, rate_data.feedback)
    return {"success": True, "message": "评价成功", "data": {"rating": rating}}


@router.post("/{order_id}/reorder")
async def reorder(
    order_id: str,
    customer_id: str = Depends(get_current_customer_id),
    service: OrderService = Depends(get_order_service)
):
    reorder_data = await service.get_reorder_data(customer_id, order_id)
    return {"success": True, "data": {"reorder_data": reorder_data}}
