"""
营销活动相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from enum import Enum

from laundrypro.models.discount import DiscountType


class CampaignTrigger(str, Enum):
    """活动触发点"""
    ORDER_CHECKOUT = "ORDER_CHECKOUT"
    SIGNUP = "SIGNUP"
    REFERRAL = "REFERRAL"


class CampaignStatus(str, Enum):
    """活动状态"""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class Promotion(BaseModel):
    """活动优惠描述"""

    type: DiscountType = Field(..., description="优惠类型")
    value: Decimal = Field(..., gt=0, description="优惠值，百分比为0-100")
    max_discount: Decimal = Field(default=Decimal("0"), ge=0, description="最大优惠金额，0表示不限")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v, info):
        if info.data.get("type") == DiscountType.PERCENTAGE and v > 100:
            raise ValueError("百分比优惠不能超过100")
        return v


class CampaignStacking(BaseModel):
    """与其他优惠的叠加规则"""

    allow_stacking_with_discounts: bool = False
    allow_stacking_with_coupons: bool = False


class CampaignEligibility(BaseModel):
    """客户参与条件，None表示不限制"""

    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)
    min_order_count: Optional[int] = Field(None, ge=0)
    max_order_count: Optional[int] = Field(None, ge=0)
    min_total_spent: Optional[Decimal] = Field(None, ge=0)
    min_account_age_days: Optional[int] = Field(None, ge=0)
    max_account_age_days: Optional[int] = Field(None, ge=0)


class CampaignLimits(BaseModel):
    max_uses: int = Field(default=0, ge=0, description="总使用次数上限，0表示不限")
    used_count: int = Field(default=0, ge=0)


class CampaignBudget(BaseModel):
    total_budget: Decimal = Field(default=Decimal("0"), ge=0, description="总预算，0表示不限")
    spent_amount: Decimal = Field(default=Decimal("0"), ge=0)


class CampaignAnalytics(BaseModel):
    total_orders: int = 0
    total_discount: Decimal = Decimal("0")
    total_revenue: Decimal = Decimal("0")
    unique_users: int = 0


class Campaign(BaseModel):
    """营销活动"""

    model_config = ConfigDict(from_attributes=True)

    campaign_id: str
    tenancy_id: str
    name: str
    description: Optional[str] = None
    status: CampaignStatus = CampaignStatus.ACTIVE
    triggers: List[CampaignTrigger] = Field(default_factory=lambda: [CampaignTrigger.ORDER_CHECKOUT])
    promotions: List[Promotion] = Field(..., min_length=1)
    stacking: CampaignStacking = Field(default_factory=CampaignStacking)
    eligibility: CampaignEligibility = Field(default_factory=CampaignEligibility)
    limits: CampaignLimits = Field(default_factory=CampaignLimits)
    budget: CampaignBudget = Field(default_factory=CampaignBudget)
    analytics: CampaignAnalytics = Field(default_factory=CampaignAnalytics)
    start_date: datetime
    end_date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_available(self, at: datetime) -> bool:
        """活动在指定时刻是否进行中"""
        return (
            self.status == CampaignStatus.ACTIVE and
            self.start_date <= at <= self.end_date
        )

    def is_exhausted(self) -> bool:
        """使用次数或预算是否已用完"""
        if self.limits.max_uses > 0 and self.limits.used_count >= self.limits.max_uses:
            return True
        if self.budget.total_budget > 0 and self.budget.spent_amount >= self.budget.total_budget:
            return True
        return False


class CampaignCreate(BaseModel):
    """创建活动"""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    status: CampaignStatus = CampaignStatus.ACTIVE
    triggers: List[CampaignTrigger] = Field(default_factory=lambda: [CampaignTrigger.ORDER_CHECKOUT])
    promotions: List[Promotion] = Field(..., min_length=1)
    stacking: CampaignStacking = Field(default_factory=CampaignStacking)
    eligibility: CampaignEligibility = Field(default_factory=CampaignEligibility)
    max_uses: int = Field(default=0, ge=0)
    total_budget: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: datetime
    end_date: datetime

    @field_validator("end_date")
    @classmethod
    def validate_window(cls, v, info):
        if "start_date" in info.data and v <= info.data["start_date"]:
            raise ValueError("结束时间必须晚于开始时间")
        return v


class CampaignUpdate(BaseModel):
    """更新活动"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[CampaignStatus] = None
    triggers: Optional[List[CampaignTrigger]] = None
    promotions: Optional[List[Promotion]] = Field(None, min_length=1)
    stacking: Optional[CampaignStacking] = None
    eligibility: Optional[CampaignEligibility] = None
    max_uses: Optional[int] = Field(None, ge=0)
    total_budget: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AppliedCampaign(BaseModel):
    """订单上记录的已应用活动"""

    campaign_id: str
    name: str
    amount: Decimal = Field(..., ge=0)
