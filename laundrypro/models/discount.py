"""
自动折扣相关数据模型

折扣规则按type区分为三种变体，计价时逐一匹配
"""

from decimal import Decimal
from datetime import datetime
from typing import Annotated, List, Optional, Union, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator
from enum import Enum


class DiscountType(str, Enum):
    """折扣计算类型枚举"""
    PERCENTAGE = "percentage"  # 百分比折扣
    FIXED_AMOUNT = "fixed_amount"  # 固定金额折扣


class RuleConditions(BaseModel):
    """规则触发条件，列表为空表示不限制"""

    min_order_value: Decimal = Field(default=Decimal("0"), ge=0, description="最低订单金额")
    max_order_value: Optional[Decimal] = Field(None, ge=0, description="最高订单金额")
    min_quantity: int = Field(default=0, ge=0, description="最少件数")
    services: List[str] = Field(default_factory=list, description="适用服务")
    categories: List[str] = Field(default_factory=list, description="适用衣物类别")
    item_types: List[str] = Field(default_factory=list, description="适用衣物类型")

    @property
    def filters_items(self) -> bool:
        return bool(self.services or self.categories or self.item_types)

    def item_matches(self, item_type: str, service: str, category: str) -> bool:
        """判断单个订单项是否在适用范围内"""
        if self.services and service not in self.services:
            return False
        if self.categories and category not in self.categories:
            return False
        if self.item_types and item_type not in self.item_types:
            return False
        return True


class PercentageRule(BaseModel):
    """百分比规则：按适用金额的百分比减免"""

    type: Literal["percentage"] = "percentage"
    value: Decimal = Field(..., gt=0, le=100, description="折扣百分比(0-100)")
    max_discount: Decimal = Field(default=Decimal("0"), ge=0, description="最大减免金额，0表示不限")
    conditions: RuleConditions = Field(default_factory=RuleConditions)


class FixedAmountRule(BaseModel):
    """固定金额规则"""

    type: Literal["fixed_amount"] = "fixed_amount"
    value: Decimal = Field(..., gt=0, description="减免金额")
    conditions: RuleConditions = Field(default_factory=RuleConditions)


class ThresholdRule(BaseModel):
    """满减规则：适用金额达到门槛后减免"""

    type: Literal["threshold"] = "threshold"
    threshold: Decimal = Field(..., gt=0, description="门槛金额")
    discount_type: DiscountType = Field(..., description="达到门槛后的减免方式")
    value: Decimal = Field(..., gt=0, description="减免值")
    max_discount: Decimal = Field(default=Decimal("0"), ge=0, description="最大减免金额，0表示不限")
    conditions: RuleConditions = Field(default_factory=RuleConditions)

    @field_validator("value")
    @classmethod
    def validate_value(cls, v, info):
        if info.data.get("discount_type") == DiscountType.PERCENTAGE and v > 100:
            raise ValueError("百分比减免不能超过100")
        return v


DiscountRule = Annotated[
    Union[PercentageRule, FixedAmountRule, ThresholdRule],
    Field(discriminator="type")
]


class AutomaticDiscount(BaseModel):
    """租户配置的自动折扣"""

    model_config = ConfigDict(from_attributes=True)

    discount_id: str = Field(..., description="折扣ID")
    tenancy_id: str = Field(..., description="所属租户")
    name: str = Field(..., description="折扣名称")
    description: Optional[str] = None
    rules: List[DiscountRule] = Field(..., min_length=1, description="规则列表，按顺序匹配")
    priority: int = Field(default=0, description="优先级，数值越大越先计算")
    can_stack_with_other_discounts: bool = Field(default=True)
    can_stack_with_coupons: bool = Field(default=True)
    is_active: bool = Field(default=True)
    start_date: datetime
    end_date: datetime
    usage_count: int = Field(default=0, ge=0)
    total_savings: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_available(self, at: datetime) -> bool:
        """在指定时刻是否可用"""
        return self.is_active and self.start_date <= at <= self.end_date


class AutomaticDiscountCreate(BaseModel):
    """创建自动折扣"""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    rules: List[DiscountRule] = Field(..., min_length=1)
    priority: int = 0
    can_stack_with_other_discounts: bool = True
    can_stack_with_coupons: bool = True
    is_active: bool = True
    start_date: datetime
    end_date: datetime

    @field_validator("end_date")
    @classmethod
    def validate_window(cls, v, info):
        if "start_date" in info.data and v <= info.data["start_date"]:
            raise ValueError("结束时间必须晚于开始时间")
        return v


class AutomaticDiscountUpdate(BaseModel):
    """更新自动折扣"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    rules: Optional[List[DiscountRule]] = Field(None, min_length=1)
    priority: Optional[int] = None
    can_stack_with_other_discounts: Optional[bool] = None
    can_stack_with_coupons: Optional[bool] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AppliedDiscount(BaseModel):
    """订单上记录的已应用折扣"""

    discount_id: str
    name: str
    rule_type: str = Field(..., description="命中的规则类型")
    priority: int
    amount: Decimal = Field(..., ge=0, description="减免金额")
