"""
BenefitEvaluator优惠计算测试
"""

import pytest
from decimal import Decimal
from datetime import timedelta

from laundrypro.models.campaign import CampaignEligibility, CampaignStacking, CampaignBudget, Promotion, CampaignTrigger
from laundrypro.models.discount import (
    DiscountType,
    PercentageRule,
    RuleConditions,
    ThresholdRule,
)
from laundrypro.models.pricing import EvaluationContext, UsageActionType
from laundrypro.services.benefit_evaluator import BenefitEvaluator, CouponNotApplicableError


class TestBenefitEvaluator:
    """BenefitEvaluator测试类"""

    @pytest.fixture
    def evaluator(self):
        return BenefitEvaluator(tax_rate=Decimal("0.18"))

    @pytest.fixture
    def build_context(self, make_draft, make_customer, eval_time):
        def _build(subtotal=1000, draft=None, customer=None, **kwargs):
            return EvaluationContext(
                order=draft or make_draft(subtotal),
                customer=customer or make_customer(),
                evaluated_at=eval_time,
                **kwargs
            )
        return _build

    def test_no_benefits_only_adds_tax(self, evaluator, build_context):
        """没有任何优惠时应付金额为小计加税"""
        result = evaluator.evaluate(build_context(1000))

        assert result.total_discount == Decimal("0")
        assert result.tax == Decimal("180")
        assert result.final_total == Decimal("1180")
        assert result.applied_discounts == []
        assert result.applied_campaign is None
        assert result.applied_coupon is None
        assert result.usage_actions == []

    def test_extra_charges_are_taxed(self, evaluator, build_context, make_draft):
        result = evaluator.evaluate(build_context(draft=make_draft(1000, extra_charges=30)))

        assert result.taxable_amount == Decimal("1030")
        assert result.final_total == Decimal("1030") + Decimal("185")

    def test_non_stacking_discount_blocks_coupon(self, evaluator, build_context, make_discount, make_coupon):
        """1000元订单，10%不可叠加折扣，优惠券被忽略"""
        discount = make_discount(
            priority=1,
            can_stack_with_other_discounts=False,
            can_stack_with_coupons=False
        )
        coupon = make_coupon(code="FLAT100", value=100)

        result = evaluator.evaluate(build_context(
            1000,
            discounts=[discount],
            coupon_code="FLAT100",
            coupon=coupon
        ))

        assert result.automatic_discount_total == Decimal("100")
        assert result.applied_coupon is None
        assert result.coupon_discount_total == Decimal("0")
        assert result.tax == Decimal("162")
        assert result.final_total == Decimal("1062")
        assert [a.action_type for a in result.usage_actions] == [UsageActionType.DISCOUNT]

    def test_fixed_coupon_without_conflicts(self, evaluator, build_context, make_coupon):
        """500元订单使用SAVE50"""
        result = evaluator.evaluate(build_context(500, coupon_code="SAVE50", coupon=make_coupon()))

        assert result.coupon_discount_total == Decimal("50")
        assert result.applied_coupon.code == "SAVE50"
        assert result.taxable_amount == Decimal("450")
        assert result.final_total == Decimal("450") + Decimal("81")
        assert result.usage_actions[0].action_type == UsageActionType.COUPON
        assert result.usage_actions[0].amount == Decimal("50")

    def test_campaign_rejected_for_returning_customer(self, evaluator, build_context, make_campaign, make_customer):
        """仅限新客的活动不适用于已有3单的客户"""
        campaign = make_campaign(eligibility=CampaignEligibility(max_order_count=0))

        result = evaluator.evaluate(build_context(
            2000,
            customer=make_customer(order_count=3),
            campaigns=[campaign]
        ))

        assert result.applied_campaign is None
        assert result.campaign_discount_total == Decimal("0")

    def test_campaign_applies_for_new_customer(self, evaluator, build_context, make_campaign, make_customer):
        campaign = make_campaign(eligibility=CampaignEligibility(max_order_count=0))

        result = evaluator.evaluate(build_context(
            2000,
            customer=make_customer(order_count=0),
            campaigns=[campaign]
        ))

        assert result.applied_campaign.campaign_id == "camp_001"
        assert result.campaign_discount_total == Decimal("200")

    def test_higher_priority_non_stacking_discount_wins(self, evaluator, build_context, make_discount, fixed_rule):
        low = make_discount(discount_id="low", priority=5, rules=[fixed_rule(30)])
        high = make_discount(
            discount_id="high",
            priority=10,
            rules=[fixed_rule(80)],
            can_stack_with_other_discounts=False
        )

        result = evaluator.evaluate(build_context(1000, discounts=[low, high]))

        assert [d.discount_id for d in result.applied_discounts] == ["high"]
        assert result.automatic_discount_total == Decimal("80")

    def test_stacking_discounts_apply_in_priority_order(self, evaluator, build_context, make_discount, fixed_rule):
        first = make_discount(discount_id="p5", priority=5, rules=[PercentageRule(value=Decimal("5"))])
        second = make_discount(discount_id="p10", priority=10, rules=[fixed_rule(50)])

        result = evaluator.evaluate(build_context(1000, discounts=[first, second]))

        assert [d.discount_id for d in result.applied_discounts] == ["p10", "p5"]
        assert result.automatic_discount_total == Decimal("100")

    def test_non_stacking_discount_skipped_after_stacking_one(self, evaluator, build_context, make_discount, fixed_rule):
        """已有折扣时，低优先级的不可叠加折扣不再应用"""
        stacking = make_discount(discount_id="stack", priority=10, rules=[fixed_rule(50)])
        exclusive = make_discount(
            discount_id="exclusive",
            priority=5,
            rules=[PercentageRule(value=Decimal("20"))],
            can_stack_with_other_discounts=False
        )

        result = evaluator.evaluate(build_context(1000, discounts=[stacking, exclusive]))

        assert [d.discount_id for d in result.applied_discounts] == ["stack"]

    def test_equal_priority_keeps_input_order(self, evaluator, build_context, make_discount, fixed_rule):
        a = make_discount(discount_id="a", priority=3, rules=[fixed_rule(10)])
        b = make_discount(discount_id="b", priority=3, rules=[fixed_rule(20)])

        result = evaluator.evaluate(build_context(1000, discounts=[a, b]))

        assert [d.discount_id for d in result.applied_discounts] == ["a", "b"]

    def test_coupon_stacks_with_discount_when_allowed(self, evaluator, build_context, make_discount, make_coupon):
        """优惠券按折扣前金额计算"""
        discount = make_discount(rules=[PercentageRule(value=Decimal("10"))])
        coupon = make_coupon(code="PCT10", discount_type=DiscountType.PERCENTAGE, value=10)

        result = evaluator.evaluate(build_context(
            1000,
            discounts=[discount],
            coupon_code="PCT10",
            coupon=coupon
        ))

        assert result.automatic_discount_total == Decimal("100")
        assert result.coupon_discount_total == Decimal("100")
        assert result.total_discount == Decimal("200")
        assert result.final_total == Decimal("800") + Decimal("144")

    def test_first_order_only_coupon(self, evaluator, build_context, make_coupon, make_customer):
        coupon = make_coupon(code="WELCOME", first_order_only=True)

        returning = evaluator.evaluate(build_context(
            500,
            customer=make_customer(order_count=1),
            coupon_code="WELCOME",
            coupon=coupon
        ))
        first = evaluator.evaluate(build_context(
            500,
            customer=make_customer(order_count=0),
            coupon_code="WELCOME",
            coupon=coupon
        ))

        assert returning.applied_coupon is None
        assert first.applied_coupon.code == "WELCOME"

    def test_final_total_never_negative(self, evaluator, build_context, make_discount, make_coupon, fixed_rule):
        discount = make_discount(rules=[fixed_rule(80)])
        coupon = make_coupon(value=50)

        result = evaluator.evaluate(build_context(
            100,
            discounts=[discount],
            coupon_code="SAVE50",
            coupon=coupon
        ))

        assert result.total_discount == Decimal("130")
        assert result.taxable_amount == Decimal("0")
        assert result.tax == Decimal("0")
        assert result.final_total == Decimal("0")

    def test_other_tenancy_benefits_ignored(
        self, evaluator, build_context, make_discount, make_campaign, make_coupon
    ):
        """其他租户的折扣、活动和同名优惠券都不会被选中"""
        result = evaluator.evaluate(build_context(
            1000,
            discounts=[make_discount(tenancy_id="tenant_b")],
            campaigns=[make_campaign(tenancy_id="tenant_b")],
            coupon_code="SAVE50",
            coupon=make_coupon(tenancy_id="tenant_b")
        ))

        assert result.applied_discounts == []
        assert result.applied_campaign is None
        assert result.applied_coupon is None
        assert result.final_total == Decimal("1180")

    def test_expired_discount_ignored(self, evaluator, build_context, make_discount, eval_time):
        expired = make_discount(
            start_date=eval_time - timedelta(days=10),
            end_date=eval_time - timedelta(seconds=1)
        )

        result = evaluator.evaluate(build_context(1000, discounts=[expired]))

        assert result.applied_discounts == []

    def test_inactive_coupon_ignored(self, evaluator, build_context, make_coupon):
        result = evaluator.evaluate(build_context(
            500,
            coupon_code="SAVE50",
            coupon=make_coupon(is_active=False)
        ))

        assert result.applied_coupon is None

    def test_coupon_per_user_limit_reached(self, evaluator, build_context, make_coupon):
        result = evaluator.evaluate(build_context(
            500,
            coupon_code="SAVE50",
            coupon=make_coupon(per_user_limit=1),
            coupon_user_used_count=1
        ))

        assert result.applied_coupon is None

    def test_coupon_below_min_order_raises(self, evaluator, build_context, make_coupon):
        with pytest.raises(CouponNotApplicableError) as exc_info:
            evaluator.evaluate(build_context(
                500,
                coupon_code="SAVE50",
                coupon=make_coupon(min_order_value=Decimal("600"))
            ))

        assert exc_info.value.code == "SAVE50"
        assert exc_info.value.min_order_value == Decimal("600")

    def test_coupon_blocked_by_stacking_does_not_raise(self, evaluator, build_context, make_discount, make_coupon):
        """叠加限制优先于最低金额校验"""
        discount = make_discount(can_stack_with_coupons=False)

        result = evaluator.evaluate(build_context(
            500,
            discounts=[discount],
            coupon_code="SAVE50",
            coupon=make_coupon(min_order_value=Decimal("600"))
        ))

        assert result.applied_coupon is None

    def test_percentage_coupon_respects_cap(self, evaluator, build_context, make_coupon):
        coupon = make_coupon(
            code="PCT20",
            discount_type=DiscountType.PERCENTAGE,
            value=20,
            max_discount=Decimal("150")
        )

        result = evaluator.evaluate(build_context(1000, coupon_code="PCT20", coupon=coupon))

        assert result.coupon_discount_total == Decimal("150")

    def test_coupon_limited_to_applicable_services(self, evaluator, build_context, make_draft, make_line, make_coupon):
        draft = make_draft(lines=[
            make_line(300, service="dry_clean"),
            make_line(200, service="wash_fold")
        ])
        coupon = make_coupon(
            code="DRY10",
            discount_type=DiscountType.PERCENTAGE,
            value=10,
            applicable_services=["dry_clean"]
        )

        result = evaluator.evaluate(build_context(draft=draft, coupon_code="DRY10", coupon=coupon))

        assert result.coupon_discount_total == Decimal("30")

    def test_campaign_skipped_when_discount_applied_without_stacking(
        self, evaluator, build_context, make_discount, make_campaign
    ):
        result = evaluator.evaluate(build_context(
            1000,
            discounts=[make_discount()],
            campaigns=[make_campaign()]
        ))

        assert result.applied_campaign is None

    def test_campaign_stacks_with_discount_when_allowed(
        self, evaluator, build_context, make_discount, make_campaign
    ):
        campaign = make_campaign(stacking=CampaignStacking(allow_stacking_with_discounts=True))

        result = evaluator.evaluate(build_context(
            1000,
            discounts=[make_discount()],
            campaigns=[campaign]
        ))

        assert result.automatic_discount_total == Decimal("100")
        assert result.campaign_discount_total == Decimal("100")
        assert [a.action_type for a in result.usage_actions] == [
            UsageActionType.DISCOUNT,
            UsageActionType.CAMPAIGN
        ]

    def test_campaign_blocks_coupon_without_stacking(self, evaluator, build_context, make_campaign, make_coupon):
        result = evaluator.evaluate(build_context(
            1000,
            campaigns=[make_campaign()],
            coupon_code="SAVE50",
            coupon=make_coupon()
        ))

        assert result.applied_campaign is not None
        assert result.applied_coupon is None

    def test_first_eligible_campaign_wins(self, evaluator, build_context, make_campaign):
        first = make_campaign(campaign_id="first", promotions=[Promotion(type=DiscountType.FIXED_AMOUNT, value=Decimal("40"))])
        second = make_campaign(campaign_id="second", promotions=[Promotion(type=DiscountType.FIXED_AMOUNT, value=Decimal("90"))])

        result = evaluator.evaluate(build_context(1000, campaigns=[first, second]))

        assert result.applied_campaign.campaign_id == "first"
        assert result.campaign_discount_total == Decimal("40")

    def test_campaign_without_checkout_trigger_ignored(self, evaluator, build_context, make_campaign):
        campaign = make_campaign(triggers=[CampaignTrigger.SIGNUP])

        result = evaluator.evaluate(build_context(1000, campaigns=[campaign]))

        assert result.applied_campaign is None

    def test_campaign_capped_by_remaining_budget(self, evaluator, build_context, make_campaign):
        campaign = make_campaign(budget=CampaignBudget(total_budget=Decimal("100"), spent_amount=Decimal("80")))

        result = evaluator.evaluate(build_context(1000, campaigns=[campaign]))

        assert result.campaign_discount_total == Decimal("20")

    def test_exhausted_campaign_ignored(self, evaluator, build_context, make_campaign):
        campaign = make_campaign(budget=CampaignBudget(total_budget=Decimal("100"), spent_amount=Decimal("100")))

        result = evaluator.evaluate(build_context(1000, campaigns=[campaign]))

        assert result.applied_campaign is None

    def test_threshold_rule(self, evaluator, build_context, make_discount):
        rule = ThresholdRule(threshold=Decimal("500"), discount_type=DiscountType.FIXED_AMOUNT, value=Decimal("75"))

        below = evaluator.evaluate(build_context(400, discounts=[make_discount(rules=[rule])]))
        above = evaluator.evaluate(build_context(600, discounts=[make_discount(rules=[rule])]))

        assert below.applied_discounts == []
        assert above.automatic_discount_total == Decimal("75")
        assert above.applied_discounts[0].rule_type == "threshold"

    def test_first_matching_rule_is_used(self, evaluator, build_context, make_discount, fixed_rule):
        rules = [
            PercentageRule(value=Decimal("20"), conditions=RuleConditions(min_order_value=Decimal("1000"))),
            fixed_rule(30)
        ]

        result = evaluator.evaluate(build_context(500, discounts=[make_discount(rules=rules)]))

        assert result.automatic_discount_total == Decimal("30")
        assert result.applied_discounts[0].rule_type == "fixed_amount"

    def test_rule_scoped_to_service(self, evaluator, build_context, make_draft, make_line, make_discount):
        draft = make_draft(lines=[
            make_line(300, service="dry_clean"),
            make_line(200, service="wash_fold")
        ])
        rule = PercentageRule(value=Decimal("20"), conditions=RuleConditions(services=["dry_clean"]))

        result = evaluator.evaluate(build_context(draft=draft, discounts=[make_discount(rules=[rule])]))

        assert result.automatic_discount_total == Decimal("60")

    def test_percentage_rule_cap(self, evaluator, build_context, make_discount):
        rule = PercentageRule(value=Decimal("50"), max_discount=Decimal("120"))

        result = evaluator.evaluate(build_context(1000, discounts=[make_discount(rules=[rule])]))

        assert result.automatic_discount_total == Decimal("120")

    def test_rounding_happens_once_half_up(self, evaluator, build_context, make_discount):
        """105元订单10%折扣为10.5，四舍五入为11，税按未取整金额计算"""
        result = evaluator.evaluate(build_context(105, discounts=[make_discount()]))

        assert result.automatic_discount_total == Decimal("11")
        assert result.applied_discounts[0].amount == Decimal("11")
        assert result.taxable_amount == Decimal("95")
        assert result.tax == Decimal("17")
        assert result.final_total == Decimal("112")

    def test_final_total_rounded_from_unrounded_sum(self, evaluator, build_context, make_discount):
        """103元订单10%折扣：92.7 * 1.18 = 109.386，应付109而不是93 + 17"""
        result = evaluator.evaluate(build_context(103, discounts=[make_discount()]))

        assert result.automatic_discount_total == Decimal("10")
        assert result.taxable_amount == Decimal("93")
        assert result.final_total == Decimal("109")
        assert result.tax == Decimal("16")
        assert result.taxable_amount + result.tax == result.final_total

    def test_applied_discounts_sum_to_category_total(self, evaluator, build_context, make_discount):
        """105元订单两个可叠加10%折扣各10.5，明细之和等于自动折扣合计21"""
        result = evaluator.evaluate(build_context(
            105,
            discounts=[make_discount("disc_001"), make_discount("disc_002")]
        ))

        amounts = [applied.amount for applied in result.applied_discounts]
        assert result.automatic_discount_total == Decimal("21")
        assert amounts == [Decimal("11"), Decimal("10")]
        assert sum(amounts) == result.automatic_discount_total
        assert [action.amount for action in result.usage_actions] == amounts
        assert result.final_total == Decimal("99")

    def test_unknown_rule_type_raises(self, evaluator, build_context, make_discount):
        class UnknownRule:
            type = "mystery"
            conditions = RuleConditions()

        discount = make_discount()
        discount.rules = [UnknownRule()]

        with pytest.raises(ValueError):
            evaluator.evaluate(build_context(1000, discounts=[discount]))

    def test_usage_actions_carry_order_identity(
        self, evaluator, build_context, make_discount, make_coupon
    ):
        result = evaluator.evaluate(build_context(
            1000,
            discounts=[make_discount()],
            coupon_code="SAVE50",
            coupon=make_coupon()
        ))

        assert [a.action_type for a in result.usage_actions] == [
            UsageActionType.DISCOUNT,
            UsageActionType.COUPON
        ]
        assert all(a.tenancy_id == "tenant_a" for a in result.usage_actions)
        assert all(a.customer_id == "cust_001" for a in result.usage_actions)
        assert result.usage_actions[1].target_id == "cpn_001"
