"""
优惠券相关数据模型
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from laundrypro.models.discount import DiscountType


class Coupon(BaseModel):
    """优惠券基础模型"""

    model_config = ConfigDict(from_attributes=True)

    coupon_id: str = Field(..., description="优惠券ID")
    tenancy_id: str = Field(..., description="所属租户")
    code: str = Field(..., min_length=1, max_length=50, description="优惠券代码")
    name: str = Field(..., description="优惠券名称")
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType = Field(..., description="优惠券类型")
    value: Decimal = Field(..., ge=0, description="折扣值，百分比为0-100")
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0, description="最小订单金额")
    max_discount: Decimal = Field(default=Decimal("0"), ge=0, description="最大折扣金额，0表示不限")
    usage_limit: int = Field(default=0, ge=0, description="总使用次数限制，0表示不限")
    used_count: int = Field(default=0, ge=0, description="已使用次数")
    per_user_limit: int = Field(default=1, ge=0, description="单用户使用次数限制，0表示不限")
    first_order_only: bool = Field(default=False, description="仅限首单")
    applicable_services: List[str] = Field(default_factory=list, description="适用服务，空表示全部")
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_within_window(self, at: datetime) -> bool:
        return self.start_date <= at <= self.end_date

    def has_remaining_uses(self) -> bool:
        return self.usage_limit == 0 or self.used_count < self.usage_limit

    def check_validity(self, at: datetime, order_value: Decimal, user_used_count: int = 0) -> Optional[str]:
        """检查优惠券是否可用，返回不可用原因，可用时返回None"""
        if not self.is_active:
            return "优惠券已停用"
        if at < self.start_date:
            return "优惠券尚未开始使用"
        if at > self.end_date:
            return "优惠券已过期"
        if not self.has_remaining_uses():
            return "优惠券使用次数已达上限"
        if order_value < self.min_order_value:
            return f"订单金额不满足最低要求 {self.min_order_value} 元"
        if self.per_user_limit > 0 and user_used_count >= self.per_user_limit:
            return "您已达到该优惠券的使用上限"
        return None

    def calculate_discount(self, order_value: Decimal) -> Decimal:
        """计算折扣金额（未取整）"""
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = order_value * self.value / Decimal("100")
        else:
            discount = self.value

        # 应用最大折扣限制
        if self.max_discount > 0 and discount > self.max_discount:
            discount = self.max_discount

        return min(discount, order_value)  # 折扣不能超过订单金额


class CouponCreate(BaseModel):
    """创建优惠券模型"""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType
    value: Decimal = Field(..., gt=0)
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)
    max_discount: Decimal = Field(default=Decimal("0"), ge=0)
    usage_limit: int = Field(default=0, ge=0)
    per_user_limit: int = Field(default=1, ge=0)
    first_order_only: bool = False
    applicable_services: List[str] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()

    @field_validator("end_date")
    @classmethod
    def validate_validity_period(cls, v, info):
        """验证有效期"""
        if "start_date" in info.data and v <= info.data["start_date"]:
            raise ValueError("结束时间必须晚于开始时间")
        return v

    @field_validator("value")
    @classmethod
    def validate_value(cls, v, info):
        if info.data.get("discount_type") == DiscountType.PERCENTAGE and v > 100:
            raise ValueError("百分比折扣值不能超过100")
        return v


class CouponUpdate(BaseModel):
    """更新优惠券模型"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    value: Optional[Decimal] = Field(None, gt=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=0)
    per_user_limit: Optional[int] = Field(None, ge=0)
    first_order_only: Optional[bool] = None
    applicable_services: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class CouponValidationRequest(BaseModel):
    """优惠券校验请求"""

    code: Optional[str] = None
    order_value: Decimal = Field(default=Decimal("0"), ge=0)
    tenancy_id: Optional[str] = None


class CouponSummary(BaseModel):
    """对客户展示的优惠券信息"""

    model_config = ConfigDict(from_attributes=True)

    coupon_id: str
    code: str
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    max_discount: Decimal
    min_order_value: Decimal
    end_date: datetime


class CouponValidation(BaseModel):
    """优惠券校验结果"""

    valid: bool
    coupon: CouponSummary
    discount: Decimal
    final_amount: Decimal

    @classmethod
    def build(cls, coupon: Coupon, order_value: Decimal) -> "CouponValidation":
        discount = coupon.calculate_discount(order_value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(
            valid=True,
            coupon=CouponSummary.model_validate(coupon),
            discount=discount,
            final_amount=max(order_value - discount, Decimal("0")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        )


class AppliedCoupon(BaseModel):
    """订单上记录的已应用优惠券"""

    coupon_id: str
    code: str
    amount: Decimal = Field(..., ge=0)
