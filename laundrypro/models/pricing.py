"""
优惠计算的输入输出模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum

from laundrypro.models.discount import AutomaticDiscount, AppliedDiscount
from laundrypro.models.campaign import Campaign, AppliedCampaign
from laundrypro.models.coupon import Coupon, AppliedCoupon
from laundrypro.models.order import PricedLineItem


class CustomerContext(BaseModel):
    """客户在当前租户下的资格属性"""

    customer_id: str
    order_count: int = Field(default=0, ge=0, description="该租户下未取消的历史订单数")
    total_spent: Decimal = Field(default=Decimal("0"), ge=0)
    signup_date: datetime

    def account_age_days(self, at: datetime) -> int:
        return max((at - self.signup_date).days, 0)


class OrderDraft(BaseModel):
    """入库前的订单"""

    tenancy_id: str
    customer_id: str
    line_items: List[PricedLineItem]
    subtotal: Decimal = Field(..., ge=0, description="折扣前商品金额")
    extra_charges: Decimal = Field(default=Decimal("0"), ge=0, description="配送等附加费用")


class EvaluationContext(BaseModel):
    """一次优惠计算所需的全部数据"""

    order: OrderDraft
    customer: CustomerContext
    discounts: List[AutomaticDiscount] = Field(default_factory=list)
    campaigns: List[Campaign] = Field(default_factory=list)
    coupon_code: Optional[str] = None
    coupon: Optional[Coupon] = None
    coupon_user_used_count: int = 0
    evaluated_at: datetime = Field(default_factory=datetime.now)


class UsageActionType(str, Enum):
    DISCOUNT = "discount"
    CAMPAIGN = "campaign"
    COUPON = "coupon"


class UsageAction(BaseModel):
    """订单入库后需要执行的使用记录"""

    action_type: UsageActionType
    target_id: str
    tenancy_id: str
    customer_id: str
    amount: Decimal


class BenefitEvaluation(BaseModel):
    """优惠计算结果"""

    subtotal: Decimal
    extra_charges: Decimal = Decimal("0")
    automatic_discount_total: Decimal = Decimal("0")
    applied_discounts: List[AppliedDiscount] = Field(default_factory=list)
    campaign_discount_total: Decimal = Decimal("0")
    applied_campaign: Optional[AppliedCampaign] = None
    coupon_discount_total: Decimal = Decimal("0")
    applied_coupon: Optional[AppliedCoupon] = None
    total_discount: Decimal = Decimal("0")
    taxable_amount: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    final_total: Decimal = Decimal("0")
    usage_actions: List[UsageAction] = Field(default_factory=list)
