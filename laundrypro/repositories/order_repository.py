"""
订单数据库操作层
"""

import uuid
from typing import List, Optional, Tuple
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, and_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from laundrypro.models.order import (
    Order,
    OrderCreate,
    OrderItemInput,
    OrderPricing,
    OrderStatus,
    PricedLineItem,
    StatusHistoryEntry,
)
from laundrypro.models.database.order_db import OrderDB, OrderItemDB


class OrderRepository:
    """订单数据库操作层"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def next_order_number(self) -> str:
        """生成订单编号 ORD{毫秒时间戳}{序号}"""
        result = await self.db.execute(select(func.count(OrderDB.order_id)))
        count = result.scalar() or 0
        timestamp = int(datetime.now().timestamp() * 1000)
        return f"ORD{timestamp}{count + 1:04d}"

    async def get_by_order_id(self, order_id: str, customer_id: Optional[str] = None) -> Optional[OrderDB]:
        """根据订单ID获取订单（包含订单项），传入customer_id时只返回该客户的订单"""
        conditions = [OrderDB.order_id == order_id]
        if customer_id:
            conditions.append(OrderDB.customer_id == customer_id)

        result = await self.db.execute(
            select(OrderDB)
            .options(selectinload(OrderDB.order_items))
            .where(and_(*conditions))
        )
        return result.scalar_one_or_none()

    async def get_customer_orders(
        self,
        customer_id: str,
        tenancy_id: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
        status_filter: Optional[str] = None
    ) -> Tuple[List[OrderDB], int]:
        """获取客户订单列表及总数"""
        conditions = [OrderDB.customer_id == customer_id]
        if tenancy_id:
            conditions.append(OrderDB.tenancy_id == tenancy_id)
        if status_filter:
            conditions.append(OrderDB.status == status_filter)

        total_result = await self.db.execute(
            select(func.count(OrderDB.order_id)).where(and_(*conditions))
        )

        query = select(OrderDB).options(
            selectinload(OrderDB.order_items)
        ).where(
            and_(*conditions)
        ).order_by(desc(OrderDB.created_at)).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total_result.scalar() or 0

    async def get_customer_order_stats(self, tenancy_id: str, customer_id: str) -> Tuple[int, Decimal]:
        """客户在租户下未取消订单的数量和消费总额"""
        result = await self.db.execute(
            select(
                func.count(OrderDB.order_id),
                func.coalesce(func.sum(OrderDB.total), 0)
            ).where(
                and_(
                    OrderDB.tenancy_id == tenancy_id,
                    OrderDB.customer_id == customer_id,
                    OrderDB.status != OrderStatus.CANCELLED.value
                )
            )
        )
        count, total_spent = result.one()
        return count or 0, Decimal(str(total_spent or 0))

    async def create_order_with_items(
        self,
        order_data: OrderCreate,
        tenancy_id: str,
        customer_id: str,
        order_number: str,
        line_items: List[PricedLineItem],
        pricing: OrderPricing,
        is_vip_order: bool = False,
        estimated_delivery_date: Optional[datetime] = None
    ) -> OrderDB:
        """创建订单及订单项"""
        now = datetime.now()
        initial_history = StatusHistoryEntry(
            status=OrderStatus.PLACED,
            updated_by=customer_id,
            updated_at=now,
            notes="订单已创建"
        )

        db_order = OrderDB(
            order_id=str(uuid.uuid4()),
            order_number=order_number,
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            branch_id=order_data.branch_id,
            service_type=order_data.service_type.value,
            is_express=order_data.is_express,
            is_vip_order=is_vip_order,
            pickup_address=order_data.pickup_address.model_dump() if order_data.pickup_address else None,
            delivery_address=order_data.delivery_address.model_dump() if order_data.delivery_address else None,
            pickup_date=order_data.pickup_date,
            pickup_time_slot=order_data.pickup_time_slot,
            estimated_delivery_date=estimated_delivery_date,
            special_instructions=order_data.special_instructions,
            subtotal=pricing.subtotal,
            express_charge=pricing.express_charge,
            delivery_charge=pricing.delivery_charge,
            service_type_discount=pricing.service_type_discount,
            automatic_discount=pricing.automatic_discount,
            campaign_discount=pricing.campaign_discount,
            coupon_discount=pricing.coupon_discount,
            discount=pricing.discount,
            tax=pricing.tax,
            total=pricing.total,
            applied_discounts=[applied.model_dump(mode="json") for applied in pricing.applied_discounts],
            applied_campaign=pricing.applied_campaign.model_dump(mode="json") if pricing.applied_campaign else None,
            applied_campaign_id=pricing.applied_campaign.campaign_id if pricing.applied_campaign else None,
            coupon_code=pricing.coupon_code,
            status=OrderStatus.PLACED.value,
            status_history=[initial_history.model_dump(mode="json")],
            payment_status="pending",
            payment_method=order_data.payment_method.value,
            created_at=now,
            updated_at=now
        )

        db_order.order_items = [
            OrderItemDB(
                item_id=str(uuid.uuid4()),
                position=position,
                item_type=line.item_type,
                service=line.service,
                category=line.category,
                quantity=line.quantity,
                base_price=line.base_price,
                service_multiplier=line.service_multiplier,
                category_multiplier=line.category_multiplier,
                express_multiplier=line.express_multiplier,
                unit_price=line.unit_price,
                total_price=line.total_price,
                special_instructions=line.special_instructions
            )
            for position, line in enumerate(line_items)
        ]

        self.db.add(db_order)
        await self.db.flush()
        return db_order

    async def cancel_order(self, db_order: OrderDB, reason: str, cancelled_by: str) -> OrderDB:
        """取消订单并追加状态历史"""
        now = datetime.now()
        entry = StatusHistoryEntry(
            status=OrderStatus.CANCELLED,
            updated_by=cancelled_by,
            updated_at=now,
            notes=reason
        )

        db_order.status = OrderStatus.CANCELLED.value
        db_order.cancellation_reason = reason
        db_order.cancelled_at = now
        db_order.status_history = list(db_order.status_history or []) + [entry.model_dump(mode="json")]
        db_order.updated_at = now

        await self.db.flush()
        return db_order

    async def rate_order(self, db_order: OrderDB, score: int, feedback: Optional[str]) -> OrderDB:
        now = datetime.now()
        db_order.rating = {
            "score": score,
            "feedback": feedback,
            "rated_at": now.isoformat()
        }
        db_order.updated_at = now

        await self.db.flush()
        return db_order

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    def to_item_inputs(self, db_order: OrderDB) -> List[OrderItemInput]:
        """订单项转换为下单请求格式"""
        return [
            OrderItemInput(
                item_type=item.item_type,
                service=item.service,
                category=item.category,
                quantity=item.quantity,
                special_instructions=item.special_instructions
            )
            for item in db_order.order_items
        ]

    def to_model(self, db_order: OrderDB) -> Order:
        """转换为Pydantic模型"""
        return Order(
            order_id=db_order.order_id,
            order_number=db_order.order_number,
            tenancy_id=db_order.tenancy_id,
            customer_id=db_order.customer_id,
            branch_id=db_order.branch_id,
            service_type=db_order.service_type,
            items=[PricedLineItem.model_validate(item) for item in db_order.order_items],
            pricing=OrderPricing(
                subtotal=db_order.subtotal,
                express_charge=db_order.express_charge or Decimal("0"),
                delivery_charge=db_order.delivery_charge or Decimal("0"),
                service_type_discount=db_order.service_type_discount or Decimal("0"),
                automatic_discount=db_order.automatic_discount or Decimal("0"),
                applied_discounts=db_order.applied_discounts or [],
                campaign_discount=db_order.campaign_discount or Decimal("0"),
                applied_campaign=db_order.applied_campaign,
                coupon_code=db_order.coupon_code,
                coupon_discount=db_order.coupon_discount or Decimal("0"),
                discount=db_order.discount or Decimal("0"),
                tax=db_order.tax or Decimal("0"),
                total=db_order.total
            ),
            pickup_address=db_order.pickup_address,
            delivery_address=db_order.delivery_address,
            pickup_date=db_order.pickup_date,
            pickup_time_slot=db_order.pickup_time_slot,
            estimated_delivery_date=db_order.estimated_delivery_date,
            payment_method=db_order.payment_method,
            payment_status=db_order.payment_status,
            status=db_order.status,
            status_history=db_order.status_history or [],
            is_express=bool(db_order.is_express),
            is_vip_order=bool(db_order.is_vip_order),
            special_instructions=db_order.special_instructions,
            rating=db_order.rating,
            cancellation_reason=db_order.cancellation_reason,
            cancelled_at=db_order.cancelled_at,
            created_at=db_order.created_at,
            updated_at=db_order.updated_at
        )
