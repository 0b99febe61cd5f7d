"""
订单业务服务层
提供下单计价、订单查询、取消、评价和再来一单
"""

import logging
import math
from typing import Optional
from datetime import datetime, timedelta

from laundrypro.api.exceptions import ValidationException, NotFoundException
from laundrypro.models.order import (
    Order,
    OrderCreate,
    OrderList,
    OrderPricing,
    OrderRating,
    OrderStatus,
    OrderTracking,
    ReorderData,
)
from laundrypro.models.pricing import CustomerContext, EvaluationContext, OrderDraft
from laundrypro.repositories.order_repository import OrderRepository
from laundrypro.repositories.customer_repository import CustomerRepository
from laundrypro.repositories.discount_repository import DiscountRepository
from laundrypro.repositories.campaign_repository import CampaignRepository
from laundrypro.repositories.coupon_repository import CouponRepository
from laundrypro.services.benefit_evaluator import BenefitEvaluator, CouponNotApplicableError
from laundrypro.services.item_pricing import price_line_items, calculate_delivery_charge
from laundrypro.services.notification_service import NotificationService, notification_service
from laundrypro.services.usage_recorder import UsageRecorder

logger = logging.getLogger(__name__)


def calculate_delivery_date(pickup_date: datetime, is_express: bool = False) -> datetime:
    """预计送达日期：加急1天，普通2天"""
    return pickup_date + timedelta(days=1 if is_express else 2)


class OrderService:
    """订单业务服务"""

    def __init__(
        self,
        order_repo: OrderRepository,
        customer_repo: CustomerRepository,
        discount_repo: DiscountRepository,
        campaign_repo: CampaignRepository,
        coupon_repo: CouponRepository,
        usage_recorder: UsageRecorder,
        evaluator: Optional[BenefitEvaluator] = None,
        notifier: Optional[NotificationService] = None
    ):
        self.order_repo = order_repo
        self.customer_repo = customer_repo
        self.discount_repo = discount_repo
        self.campaign_repo = campaign_repo
        self.coupon_repo = coupon_repo
        self.usage_recorder = usage_recorder
        self.evaluator = evaluator or BenefitEvaluator()
        self.notifier = notifier or notification_service

    async def create_order(self, customer_id: str, order_data: OrderCreate) -> Order:
        """
        创建订单

        1. 计算衣物价格和配送费
        2. 加载租户的自动折扣、活动、优惠券及客户资格数据
        3. 计算优惠，写入订单并更新客户统计，提交事务
        4. 提交成功后记录优惠使用，后台发送通知
        """
        tenancy_id = order_data.tenancy_id
        if not tenancy_id:
            raise ValidationException("TENANCY_REQUIRED", "缺少租户信息，无法创建订单")

        self._validate_addresses(order_data)

        customer = await self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundException("CUSTOMER_NOT_FOUND", "客户不存在")

        line_items, subtotal, express_charge = price_line_items(order_data.items, order_data.is_express)
        delivery_charge, service_type_discount = calculate_delivery_charge(
            order_data.service_type,
            order_data.delivery_details
        )

        now = datetime.now()
        context = await self._build_context(
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            signup_date=customer.created_at or now,
            order_data=order_data,
            draft=OrderDraft(
                tenancy_id=tenancy_id,
                customer_id=customer_id,
                line_items=line_items,
                subtotal=subtotal,
                extra_charges=delivery_charge
            ),
            now=now
        )
        try:
            evaluation = self.evaluator.evaluate(context)
        except CouponNotApplicableError as e:
            raise ValidationException("COUPON_NOT_APPLICABLE", str(e)) from e

        pricing = OrderPricing(
            subtotal=subtotal,
            express_charge=express_charge,
            delivery_charge=delivery_charge,
            service_type_discount=service_type_discount,
            automatic_discount=evaluation.automatic_discount_total,
            applied_discounts=evaluation.applied_discounts,
            campaign_discount=evaluation.campaign_discount_total,
            applied_campaign=evaluation.applied_campaign,
            coupon_code=evaluation.applied_coupon.code if evaluation.applied_coupon else None,
            coupon_discount=evaluation.coupon_discount_total,
            discount=evaluation.total_discount,
            tax=evaluation.tax,
            total=evaluation.final_total
        )

        try:
            order_number = await self.order_repo.next_order_number()
            db_order = await self.order_repo.create_order_with_items(
                order_data=order_data,
                tenancy_id=tenancy_id,
                customer_id=customer_id,
                order_number=order_number,
                line_items=line_items,
                pricing=pricing,
                is_vip_order=bool(customer.is_vip),
                estimated_delivery_date=calculate_delivery_date(order_data.pickup_date, order_data.is_express)
            )
            await self.customer_repo.record_order(customer, pricing.total)
            await self.order_repo.commit()
        except Exception:
            await self.order_repo.rollback()
            raise

        order = self.order_repo.to_model(db_order)
        logger.info(
            f"订单创建成功 order={order.order_number} tenancy={tenancy_id} "
            f"subtotal={subtotal} discount={pricing.discount} total={pricing.total}"
        )

        failed = await self.usage_recorder.record_all(
            order_id=order.order_id,
            order_number=order.order_number,
            order_total=order.pricing.total,
            actions=evaluation.usage_actions
        )
        if failed:
            logger.error(f"订单 {order.order_number} 有 {len(failed)} 条优惠使用记录未写入")

        self.notifier.notify_order_placed_in_background(order)
        return order

    async def _build_context(
        self,
        tenancy_id: str,
        customer_id: str,
        signup_date: datetime,
        order_data: OrderCreate,
        draft: OrderDraft,
        now: datetime
    ) -> EvaluationContext:
        """查询优惠计算所需的数据，全部限定在当前租户"""
        order_count, total_spent = await self.order_repo.get_customer_order_stats(tenancy_id, customer_id)

        db_discounts = await self.discount_repo.get_active_discounts(tenancy_id, now)
        db_campaigns = await self.campaign_repo.get_active_campaigns(tenancy_id, now)

        coupon = None
        coupon_user_used_count = 0
        if order_data.coupon_code:
            db_coupon = await self.coupon_repo.get_by_code(tenancy_id, order_data.coupon_code)
            if db_coupon:
                coupon = self.coupon_repo.to_model(db_coupon)
                coupon_user_used_count = await self.coupon_repo.get_user_coupon_usage_count(
                    tenancy_id, coupon.coupon_id, customer_id
                )

        return EvaluationContext(
            order=draft,
            customer=CustomerContext(
                customer_id=customer_id,
                order_count=order_count,
                total_spent=total_spent,
                signup_date=signup_date
            ),
            discounts=[self.discount_repo.to_model(d) for d in db_discounts],
            campaigns=[self.campaign_repo.to_model(c) for c in db_campaigns],
            coupon_code=order_data.coupon_code,
            coupon=coupon,
            coupon_user_used_count=coupon_user_used_count,
            evaluated_at=now
        )

    @staticmethod
    def _validate_addresses(order_data: OrderCreate) -> None:
        if order_data.service_type.needs_pickup_address and order_data.pickup_address is None:
            raise ValidationException("PICKUP_ADDRESS_REQUIRED", "当前取送方式需要取件地址")
        if order_data.service_type.needs_delivery_address and order_data.delivery_address is None:
            raise ValidationException("DELIVERY_ADDRESS_REQUIRED", "当前取送方式需要送件地址")

    async def get_customer_orders(
        self,
        customer_id: str,
        tenancy_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[OrderStatus] = None
    ) -> OrderList:
        """分页获取客户订单"""
        db_orders, total = await self.order_repo.get_customer_orders(
            customer_id=customer_id,
            tenancy_id=tenancy_id,
            limit=limit,
            offset=(page - 1) * limit,
            status_filter=status_filter.value if status_filter else None
        )
        return OrderList(
            orders=[self.order_repo.to_model(db_order) for db_order in db_orders],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if limit else 0
        )

    async def get_order(self, customer_id: str, order_id: str) -> Order:
        db_order = await self.order_repo.get_by_order_id(order_id, customer_id=customer_id)
        if not db_order:
            raise NotFoundException("ORDER_NOT_FOUND", "订单不存在")
        return self.order_repo.to_model(db_order)

    async def get_order_tracking(self, customer_id: str, order_id: str) -> OrderTracking:
        order = await self.get_order(customer_id, order_id)
        return OrderTracking(
            order_number=order.order_number,
            current_status=order.status,
            status_history=order.status_history,
            estimated_delivery_date=order.estimated_delivery_date
        )

    async def cancel_order(self, customer_id: str, order_id: str, reason: Optional[str] = None) -> Order:
        """取消订单，仅未取件前可取消"""
        db_order = await self.order_repo.get_by_order_id(order_id, customer_id=customer_id)
        if not db_order:
            raise NotFoundException("ORDER_NOT_FOUND", "订单不存在")

        order = self.order_repo.to_model(db_order)
        if not order.can_be_cancelled():
            raise ValidationException("CANNOT_CANCEL", "订单当前状态不可取消")

        db_order = await self.order_repo.cancel_order(db_order, reason or "客户取消", cancelled_by=customer_id)
        await self.order_repo.commit()
        logger.info(f"订单已取消 order={order.order_number}")
        return self.order_repo.to_model(db_order)

    async def rate_order(self, customer_id: str, order_id: str, score: int, feedback: Optional[str] = None) -> OrderRating:
        """评价已送达订单，每单只能评价一次"""
        db_order = await self.order_repo.get_by_order_id(order_id, customer_id=customer_id)
        if not db_order or db_order.status != OrderStatus.DELIVERED.value:
            raise NotFoundException("ORDER_NOT_FOUND", "订单不存在或尚未送达")
        if db_order.rating and db_order.rating.get("score"):
            raise ValidationException("ALREADY_RATED", "订单已评价")

        db_order = await self.order_repo.rate_order(db_order, score, feedback or "")
        await self.order_repo.commit()
        return OrderRating(**db_order.rating)

    async def get_reorder_data(self, customer_id: str, order_id: str) -> ReorderData:
        """再来一单：复制衣物和支付方式，取件时间默认明天"""
        db_order = await self.order_repo.get_by_order_id(order_id, customer_id=customer_id)
        if not db_order:
            raise NotFoundException("ORDER_NOT_FOUND", "原订单不存在")

        return ReorderData(
            items=self.order_repo.to_item_inputs(db_order),
            service_type=db_order.service_type,
            pickup_date=datetime.now() + timedelta(days=1),
            payment_method=db_order.payment_method,
            is_express=bool(db_order.is_express),
            special_instructions=db_order.special_instructions
        )
