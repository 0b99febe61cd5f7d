"""
数据模型包初始化文件
"""

from .discount import (
    DiscountType,
    RuleConditions,
    PercentageRule,
    FixedAmountRule,
    ThresholdRule,
    DiscountRule,
    AutomaticDiscount,
    AutomaticDiscountCreate,
    AutomaticDiscountUpdate,
    AppliedDiscount
)
from .campaign import (
    CampaignTrigger,
    CampaignStatus,
    Promotion,
    Campaign,
    CampaignCreate,
    CampaignUpdate,
    AppliedCampaign
)
from .coupon import (
    Coupon,
    CouponCreate,
    CouponUpdate,
    CouponValidation,
    CouponValidationRequest,
    AppliedCoupon
)
from .order import (
    OrderStatus,
    ServiceType,
    OrderCreate,
    OrderPricing,
    Order
)
from .pricing import (
    CustomerContext,
    OrderDraft,
    EvaluationContext,
    UsageAction,
    UsageActionType,
    BenefitEvaluation
)

__all__ = [
    "DiscountType",
    "RuleConditions",
    "PercentageRule",
    "FixedAmountRule",
    "ThresholdRule",
    "DiscountRule",
    "AutomaticDiscount",
    "AutomaticDiscountCreate",
    "AutomaticDiscountUpdate",
    "AppliedDiscount",
    "CampaignTrigger",
    "CampaignStatus",
    "Promotion",
    "Campaign",
    "CampaignCreate",
    "CampaignUpdate",
    "AppliedCampaign",
    "Coupon",
    "CouponCreate",
    "CouponUpdate",
    "CouponValidation",
    "CouponValidationRequest",
    "AppliedCoupon",
    "OrderStatus",
    "ServiceType",
    "OrderCreate",
    "OrderPricing",
    "Order",
    "CustomerContext",
    "OrderDraft",
    "EvaluationContext",
    "UsageAction",
    "UsageActionType",
    "BenefitEvaluation"
]
