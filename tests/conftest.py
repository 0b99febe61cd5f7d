"""
测试配置文件 - pytest fixtures和共用配置
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from laundrypro.core.database import Base
from laundrypro.models import database as _db_models  # noqa: F401  注册全部数据表
from laundrypro.models.discount import AutomaticDiscount, PercentageRule, FixedAmountRule
from laundrypro.models.campaign import AppliedCampaign, Campaign, Promotion
from laundrypro.models.coupon import Coupon
from laundrypro.models.discount import DiscountType
from laundrypro.models.order import OrderCreate, OrderItemInput, OrderPricing, PricedLineItem, ServiceType
from laundrypro.models.pricing import CustomerContext, OrderDraft
from laundrypro.repositories.order_repository import OrderRepository


# 纯计算测试使用固定时间
EVAL_TIME = datetime(2026, 3, 1, 12, 0, 0)


@pytest_asyncio.fixture
async def test_db_engine():
    """测试数据库引擎 - 内存SQLite"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_db_engine):
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(test_session_maker) -> AsyncSession:
    """测试数据库会话"""
    async with test_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


@pytest.fixture
def eval_time():
    return EVAL_TIME


@pytest.fixture
def make_line():
    """构造已计价订单项"""
    def _make(total, service="wash_fold", category="normal", item_type="shirt", quantity=1):
        total = Decimal(str(total))
        return PricedLineItem(
            item_type=item_type,
            service=service,
            category=category,
            quantity=quantity,
            base_price=total / quantity,
            unit_price=total / quantity,
            total_price=total
        )
    return _make


@pytest.fixture
def make_draft(make_line):
    """构造入库前订单，未指定订单项时生成单个订单项"""
    def _make(subtotal=None, lines=None, tenancy_id="tenant_a", customer_id="cust_001", extra_charges=0):
        if lines is None:
            lines = [make_line(subtotal)]
        return OrderDraft(
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            line_items=lines,
            subtotal=sum((line.total_price for line in lines), Decimal("0")),
            extra_charges=Decimal(str(extra_charges))
        )
    return _make


@pytest.fixture
def make_customer():
    def _make(order_count=0, total_spent=0, account_age_days=30, customer_id="cust_001"):
        return CustomerContext(
            customer_id=customer_id,
            order_count=order_count,
            total_spent=Decimal(str(total_spent)),
            signup_date=EVAL_TIME - timedelta(days=account_age_days)
        )
    return _make


@pytest.fixture
def make_discount():
    """构造自动折扣，默认在EVAL_TIME前后一天内有效"""
    def _make(
        discount_id="disc_001",
        rules=None,
        priority=0,
        can_stack_with_other_discounts=True,
        can_stack_with_coupons=True,
        tenancy_id="tenant_a",
        is_active=True,
        start_date=None,
        end_date=None
    ):
        return AutomaticDiscount(
            discount_id=discount_id,
            tenancy_id=tenancy_id,
            name=f"折扣{discount_id}",
            rules=rules or [PercentageRule(value=Decimal("10"))],
            priority=priority,
            can_stack_with_other_discounts=can_stack_with_other_discounts,
            can_stack_with_coupons=can_stack_with_coupons,
            is_active=is_active,
            start_date=start_date or EVAL_TIME - timedelta(days=1),
            end_date=end_date or EVAL_TIME + timedelta(days=1)
        )
    return _make


@pytest.fixture
def make_campaign():
    def _make(
        campaign_id="camp_001",
        promotions=None,
        tenancy_id="tenant_a",
        stacking=None,
        eligibility=None,
        **kwargs
    ):
        data = dict(
            campaign_id=campaign_id,
            tenancy_id=tenancy_id,
            name=f"活动{campaign_id}",
            promotions=promotions or [Promotion(type=DiscountType.PERCENTAGE, value=Decimal("10"))],
            start_date=EVAL_TIME - timedelta(days=1),
            end_date=EVAL_TIME + timedelta(days=1)
        )
        if stacking is not None:
            data["stacking"] = stacking
        if eligibility is not None:
            data["eligibility"] = eligibility
        data.update(kwargs)
        return Campaign(**data)
    return _make


@pytest.fixture
def make_coupon():
    def _make(
        code="SAVE50",
        discount_type=DiscountType.FIXED_AMOUNT,
        value=50,
        tenancy_id="tenant_a",
        coupon_id="cpn_001",
        **kwargs
    ):
        data = dict(
            coupon_id=coupon_id,
            tenancy_id=tenancy_id,
            code=code,
            name=f"优惠券{code}",
            discount_type=discount_type,
            value=Decimal(str(value)),
            start_date=EVAL_TIME - timedelta(days=1),
            end_date=EVAL_TIME + timedelta(days=1)
        )
        data.update(kwargs)
        return Coupon(**data)
    return _make


@pytest.fixture
def fixed_rule():
    def _make(value, **conditions):
        return FixedAmountRule(value=Decimal(str(value)), conditions=conditions or {})
    return _make


@pytest.fixture
def seed_order(db_session):
    """通过OrderRepository写入一笔订单"""
    async def _seed(
        customer_id="cust_001",
        tenancy_id="tenant_a",
        total="1062",
        campaign_id=None,
        order_number=None
    ):
        repo = OrderRepository(db_session)
        order_data = OrderCreate(
            tenancy_id=tenancy_id,
            items=[OrderItemInput(item_type="shirt", service="wash_fold", quantity=2)],
            service_type=ServiceType.SELF_DROP_SELF_PICKUP,
            pickup_date=EVAL_TIME,
            pickup_time_slot="09:00-11:00"
        )
        line = PricedLineItem(
            item_type="shirt",
            service="wash_fold",
            category="normal",
            quantity=2,
            base_price=Decimal("30"),
            unit_price=Decimal("30"),
            total_price=Decimal("60")
        )
        applied_campaign = None
        if campaign_id:
            applied_campaign = AppliedCampaign(campaign_id=campaign_id, name="活动", amount=Decimal("10"))
        pricing = OrderPricing(subtotal=Decimal("60"), applied_campaign=applied_campaign, total=Decimal(total))
        return await repo.create_order_with_items(
            order_data=order_data,
            tenancy_id=tenancy_id,
            customer_id=customer_id,
            order_number=order_number or await repo.next_order_number(),
            line_items=[line],
            pricing=pricing
        )
    return _seed
