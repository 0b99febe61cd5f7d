"""
下单优惠计算
按 自动折扣 -> 营销活动 -> 优惠券 的顺序确定可叠加的优惠并计算最终价格

计算过程不访问数据库：所需的折扣、活动、优惠券和客户属性由调用方查询后传入，
使用记录以 usage_actions 形式返回，由调用方在订单入库后执行
"""

import logging
from decimal import Decimal
from datetime import datetime
from typing import List, Optional, Tuple

from laundrypro.core.config import settings
from laundrypro.models.discount import (
    AutomaticDiscount,
    AppliedDiscount,
    DiscountType,
    PercentageRule,
    FixedAmountRule,
    ThresholdRule,
    RuleConditions,
)
from laundrypro.models.campaign import Campaign, CampaignEligibility, CampaignTrigger, AppliedCampaign
from laundrypro.models.coupon import Coupon, AppliedCoupon
from laundrypro.models.pricing import (
    BenefitEvaluation,
    CustomerContext,
    EvaluationContext,
    OrderDraft,
    UsageAction,
    UsageActionType,
)
from laundrypro.services.item_pricing import round_amount

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# (折扣, 命中规则类型, 未取整金额)
DiscountHit = Tuple[AutomaticDiscount, str, Decimal]


def _cap(amount: Decimal, max_discount: Decimal) -> Decimal:
    """应用最大减免限制，0表示不限"""
    if max_discount > 0 and amount > max_discount:
        return max_discount
    return amount


def _percent_of(base: Decimal, percent: Decimal) -> Decimal:
    return base * percent / HUNDRED


def _allocate(raw_amounts: List[Decimal]) -> List[Decimal]:
    """按累计金额取整拆分，各项之和等于合计取整"""
    allocated = []
    running = ZERO
    previous = ZERO
    for amount in raw_amounts:
        running += amount
        rounded = round_amount(running)
        allocated.append(rounded - previous)
        previous = rounded
    return allocated


class CouponNotApplicableError(ValueError):
    """订单金额低于优惠券使用门槛"""

    def __init__(self, code: str, min_order_value: Decimal):
        self.code = code
        self.min_order_value = min_order_value
        super().__init__(f"订单金额不满足优惠券最低要求 {min_order_value} 元")


class BenefitEvaluator:
    """下单优惠计算器"""

    def __init__(self, tax_rate: Optional[Decimal] = None):
        self.tax_rate = settings.tax_rate if tax_rate is None else tax_rate

    def evaluate(self, context: EvaluationContext) -> BenefitEvaluation:
        """计算订单可用的全部优惠"""
        order = context.order
        at = context.evaluated_at

        discount_hits = self._apply_automatic_discounts(order, context.discounts, at)
        campaign_hit = self._apply_campaign(order, context.customer, context.campaigns, discount_hits, at)
        coupon_hit = self._apply_coupon(context, discount_hits, campaign_hit)

        return self._assemble(context, discount_hits, campaign_hit, coupon_hit)

    # ---------- 自动折扣 ----------

    def _apply_automatic_discounts(
        self,
        order: OrderDraft,
        discounts: List[AutomaticDiscount],
        at: datetime
    ) -> List[DiscountHit]:
        """按优先级从高到低匹配自动折扣，同优先级保持传入顺序"""
        candidates = sorted(
            (d for d in discounts if d.tenancy_id == order.tenancy_id),
            key=lambda d: -d.priority
        )

        hits: List[DiscountHit] = []
        for discount in candidates:
            if not discount.is_available(at):
                continue

            # 不可叠加的折扣只能单独使用
            if hits and not discount.can_stack_with_other_discounts:
                continue

            matched = self._match_first_rule(discount, order)
            if matched is None:
                continue

            rule_type, amount = matched
            hits.append((discount, rule_type, amount))
            logger.debug(f"自动折扣命中 {discount.discount_id} 规则={rule_type} 金额={amount}")

            if not discount.can_stack_with_other_discounts:
                break

        return hits

    def _match_first_rule(self, discount: AutomaticDiscount, order: OrderDraft) -> Optional[Tuple[str, Decimal]]:
        """返回第一条命中规则的类型和金额"""
        for rule in discount.rules:
            amount = self._rule_amount(rule, order)
            if amount is not None and amount > 0:
                return rule.type, amount
        return None

    def _rule_amount(self, rule, order: OrderDraft) -> Optional[Decimal]:
        """计算单条规则的减免金额，不满足条件时返回None"""
        conditions: RuleConditions = rule.conditions
        if order.subtotal < conditions.min_order_value:
            return None
        if conditions.max_order_value is not None and order.subtotal > conditions.max_order_value:
            return None

        eligible_amount, quantity = self._eligible_scope(conditions, order)
        if eligible_amount <= 0 or quantity < conditions.min_quantity:
            return None

        if isinstance(rule, PercentageRule):
            amount = _cap(_percent_of(eligible_amount, rule.value), rule.max_discount)
        elif isinstance(rule, FixedAmountRule):
            amount = rule.value
        elif isinstance(rule, ThresholdRule):
            if eligible_amount < rule.threshold:
                return None
            if rule.discount_type == DiscountType.PERCENTAGE:
                amount = _percent_of(eligible_amount, rule.value)
            else:
                amount = rule.value
            amount = _cap(amount, rule.max_discount)
        else:
            raise ValueError(f"未知的折扣规则类型: {type(rule).__name__}")

        return min(amount, eligible_amount)

    @staticmethod
    def _eligible_scope(conditions: RuleConditions, order: OrderDraft) -> Tuple[Decimal, int]:
        """适用范围内的金额和件数"""
        if not conditions.filters_items:
            return order.subtotal, sum(line.quantity for line in order.line_items)

        amount = ZERO
        quantity = 0
        for line in order.line_items:
            if conditions.item_matches(line.item_type, line.service, line.category):
                amount += line.total_price
                quantity += line.quantity
        return amount, quantity

    # ---------- 营销活动 ----------

    def _apply_campaign(
        self,
        order: OrderDraft,
        customer: CustomerContext,
        campaigns: List[Campaign],
        discount_hits: List[DiscountHit],
        at: datetime
    ) -> Optional[Tuple[Campaign, Decimal]]:
        """按查询顺序取第一个满足条件的活动"""
        for campaign in campaigns:
            if campaign.tenancy_id != order.tenancy_id:
                continue
            if CampaignTrigger.ORDER_CHECKOUT not in campaign.triggers:
                continue
            if not campaign.is_available(at) or campaign.is_exhausted():
                continue
            if discount_hits and not campaign.stacking.allow_stacking_with_discounts:
                continue
            if not self._customer_eligible(campaign.eligibility, customer, order.subtotal, at):
                continue

            amount = self._campaign_amount(campaign, order.subtotal)
            if amount <= 0:
                continue

            logger.debug(f"营销活动命中 {campaign.campaign_id} 金额={amount}")
            return campaign, amount

        return None

    @staticmethod
    def _customer_eligible(
        eligibility: CampaignEligibility,
        customer: CustomerContext,
        order_value: Decimal,
        at: datetime
    ) -> bool:
        """判断客户是否满足活动条件，订单金额使用折扣前金额"""
        if order_value < eligibility.min_order_value:
            return False
        if eligibility.min_order_count is not None and customer.order_count < eligibility.min_order_count:
            return False
        if eligibility.max_order_count is not None and customer.order_count > eligibility.max_order_count:
            return False
        if eligibility.min_total_spent is not None and customer.total_spent < eligibility.min_total_spent:
            return False

        account_age = customer.account_age_days(at)
        if eligibility.min_account_age_days is not None and account_age < eligibility.min_account_age_days:
            return False
        if eligibility.max_account_age_days is not None and account_age > eligibility.max_account_age_days:
            return False
        return True

    @staticmethod
    def _campaign_amount(campaign: Campaign, order_value: Decimal) -> Decimal:
        amount = ZERO
        for promotion in campaign.promotions:
            if promotion.type == DiscountType.PERCENTAGE:
                benefit = _percent_of(order_value, promotion.value)
            else:
                benefit = promotion.value
            amount += _cap(benefit, promotion.max_discount)

        if campaign.budget.total_budget > 0:
            remaining = campaign.budget.total_budget - campaign.budget.spent_amount
            amount = min(amount, max(remaining, ZERO))

        return min(amount, order_value)

    # ---------- 优惠券 ----------

    def _apply_coupon(
        self,
        context: EvaluationContext,
        discount_hits: List[DiscountHit],
        campaign_hit: Optional[Tuple[Campaign, Decimal]]
    ) -> Optional[Tuple[Coupon, Decimal]]:
        """
        校验优惠券
        无效、超限、不满足首单或叠加限制时直接忽略；订单金额低于使用门槛时抛出 CouponNotApplicableError
        """
        if not context.coupon_code:
            return None

        order = context.order
        coupon = context.coupon
        at = context.evaluated_at

        if coupon is None or coupon.tenancy_id != order.tenancy_id or coupon.code != context.coupon_code.upper():
            logger.info(f"优惠券不存在或不属于当前租户 code={context.coupon_code}")
            return None
        if not coupon.is_active or not coupon.is_within_window(at) or not coupon.has_remaining_uses():
            logger.info(f"优惠券不可用 code={coupon.code}")
            return None
        if coupon.per_user_limit > 0 and context.coupon_user_used_count >= coupon.per_user_limit:
            logger.info(f"客户已达优惠券使用上限 code={coupon.code} customer={order.customer_id}")
            return None
        if coupon.first_order_only and context.customer.order_count > 0:
            logger.info(f"首单优惠券不适用 code={coupon.code} customer={order.customer_id}")
            return None

        if any(not discount.can_stack_with_coupons for discount, _, _ in discount_hits):
            logger.info(f"已应用的自动折扣不允许叠加优惠券 code={coupon.code}")
            return None
        if campaign_hit is not None and not campaign_hit[0].stacking.allow_stacking_with_coupons:
            logger.info(f"已应用的营销活动不允许叠加优惠券 code={coupon.code}")
            return None

        base = order.subtotal
        if coupon.applicable_services:
            base = sum(
                (line.total_price for line in order.line_items if line.service in coupon.applicable_services),
                ZERO
            )
            if base <= 0:
                return None

        if order.subtotal < coupon.min_order_value:
            raise CouponNotApplicableError(coupon.code, coupon.min_order_value)

        amount = coupon.calculate_discount(base)
        if amount <= 0:
            return None
        return coupon, amount

    # ---------- 汇总 ----------

    def _assemble(
        self,
        context: EvaluationContext,
        discount_hits: List[DiscountHit],
        campaign_hit: Optional[Tuple[Campaign, Decimal]],
        coupon_hit: Optional[Tuple[Coupon, Decimal]]
    ) -> BenefitEvaluation:
        """汇总金额，仅在此处取整"""
        order = context.order

        automatic_raw = sum((amount for _, _, amount in discount_hits), ZERO)
        campaign_raw = campaign_hit[1] if campaign_hit else ZERO
        coupon_raw = coupon_hit[1] if coupon_hit else ZERO
        discount_raw = automatic_raw + campaign_raw + coupon_raw

        taxable_raw = max(order.subtotal + order.extra_charges - discount_raw, ZERO)
        final_total = round_amount(taxable_raw + taxable_raw * self.tax_rate)
        taxable = round_amount(taxable_raw)
        # 展示用税额，保证 taxable + tax == final_total
        tax = final_total - taxable

        discount_amounts = _allocate([amount for _, _, amount in discount_hits])
        applied_discounts = [
            AppliedDiscount(
                discount_id=discount.discount_id,
                name=discount.name,
                rule_type=rule_type,
                priority=discount.priority,
                amount=amount
            )
            for (discount, rule_type, _), amount in zip(discount_hits, discount_amounts)
        ]
        applied_campaign = None
        if campaign_hit:
            applied_campaign = AppliedCampaign(
                campaign_id=campaign_hit[0].campaign_id,
                name=campaign_hit[0].name,
                amount=round_amount(campaign_raw)
            )
        applied_coupon = None
        if coupon_hit:
            applied_coupon = AppliedCoupon(
                coupon_id=coupon_hit[0].coupon_id,
                code=coupon_hit[0].code,
                amount=round_amount(coupon_raw)
            )

        return BenefitEvaluation(
            subtotal=order.subtotal,
            extra_charges=order.extra_charges,
            automatic_discount_total=round_amount(automatic_raw),
            applied_discounts=applied_discounts,
            campaign_discount_total=round_amount(campaign_raw),
            applied_campaign=applied_campaign,
            coupon_discount_total=round_amount(coupon_raw),
            applied_coupon=applied_coupon,
            total_discount=round_amount(discount_raw),
            taxable_amount=taxable,
            tax=tax,
            final_total=final_total,
            usage_actions=self._build_usage_actions(order, applied_discounts, applied_campaign, applied_coupon)
        )

    @staticmethod
    def _build_usage_actions(
        order: OrderDraft,
        applied_discounts: List[AppliedDiscount],
        applied_campaign: Optional[AppliedCampaign],
        applied_coupon: Optional[AppliedCoupon]
    ) -> List[UsageAction]:
        actions = [
            UsageAction(
                action_type=UsageActionType.DISCOUNT,
                target_id=applied.discount_id,
                tenancy_id=order.tenancy_id,
                customer_id=order.customer_id,
                amount=applied.amount
            )
            for applied in applied_discounts
        ]
        if applied_campaign:
            actions.append(UsageAction(
                action_type=UsageActionType.CAMPAIGN,
                target_id=applied_campaign.campaign_id,
                tenancy_id=order.tenancy_id,
                customer_id=order.customer_id,
                amount=applied_campaign.amount
            ))
        if applied_coupon:
            actions.append(UsageAction(
                action_type=UsageActionType.COUPON,
                target_id=applied_coupon.coupon_id,
                tenancy_id=order.tenancy_id,
                customer_id=order.customer_id,
                amount=applied_coupon.amount
            ))
        return actions
