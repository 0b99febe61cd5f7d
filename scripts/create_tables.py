"""
洗衣服务数据库表创建脚本

用法:
    python scripts/create_tables.py          # 建库、建表、建索引
    python scripts/create_tables.py --seed   # 同时写入演示租户数据
"""

import argparse
import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from laundrypro.core.config import settings
from laundrypro.core.database import Base
from laundrypro.models import database as _db_models  # noqa: F401  注册全部数据表
from laundrypro.models.coupon import CouponCreate
from laundrypro.models.database.customer_db import CustomerDB
from laundrypro.models.discount import DiscountType
from laundrypro.repositories.coupon_repository import CouponRepository

DEMO_TENANCY_ID = "demo_tenant"


async def create_database_if_not_exists():
    """创建数据库（如果不存在）"""
    # 连接到PostgreSQL服务器（不指定数据库）
    server_url = settings.database_url_computed.replace(f"/{settings.db_name}", "/postgres")

    engine = create_async_engine(server_url, isolation_level="AUTOCOMMIT")

    async with engine.connect() as conn:
        result = await conn.execute(
            text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
            {"db_name": settings.db_name}
        )

        if not result.fetchone():
            await conn.execute(text(f"CREATE DATABASE {settings.db_name}"))
            print(f"数据库 '{settings.db_name}' 创建成功")
        else:
            print(f"数据库 '{settings.db_name}' 已存在")

    await engine.dispose()


async def create_tables():
    """创建所有数据表"""
    engine = create_async_engine(settings.database_url_computed)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        print("所有数据表创建成功")

    await engine.dispose()


async def create_indexes():
    """创建下单计价常用的组合索引"""
    engine = create_async_engine(settings.database_url_computed)

    indexes = [
        # 生效中的自动折扣、活动
        "CREATE INDEX IF NOT EXISTS idx_discounts_tenancy_window ON automatic_discounts(tenancy_id, is_active, start_date, end_date);",
        "CREATE INDEX IF NOT EXISTS idx_campaigns_tenancy_window ON campaigns(tenancy_id, status, start_date, end_date);",

        # 可用优惠券列表
        "CREATE INDEX IF NOT EXISTS idx_coupons_tenancy_validity ON coupons(tenancy_id, is_active, start_date, end_date);",

        # 客户资格统计
        "CREATE INDEX IF NOT EXISTS idx_orders_tenancy_customer_status ON orders(tenancy_id, customer_id, status);",
        "CREATE INDEX IF NOT EXISTS idx_orders_campaign_customer ON orders(applied_campaign_id, customer_id);",

        # 使用记录
        "CREATE INDEX IF NOT EXISTS idx_coupon_usage_customer ON coupon_usage(tenancy_id, coupon_id, customer_id);",
        "CREATE INDEX IF NOT EXISTS idx_discount_usage_customer ON discount_usage(tenancy_id, discount_id, customer_id);",
    ]

    async with engine.begin() as conn:
        for index_sql in indexes:
            await conn.execute(text(index_sql))
        print("所有索引创建成功")

    await engine.dispose()


async def insert_demo_tenant():
    """写入演示租户的客户和优惠券"""
    engine = create_async_engine(settings.database_url_computed)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    now = datetime.now()
    async with session_maker() as session:
        if await session.get(CustomerDB, "demo_customer") is None:
            session.add(CustomerDB(customer_id="demo_customer", name="演示客户", email="demo@example.com"))
            print("插入演示客户: demo_customer")
        else:
            print("演示客户已存在")

        coupon_repo = CouponRepository(session)
        if await coupon_repo.get_by_code(DEMO_TENANCY_ID, "WELCOME50") is None:
            await coupon_repo.create(DEMO_TENANCY_ID, CouponCreate(
                code="WELCOME50",
                name="新客立减50",
                discount_type=DiscountType.FIXED_AMOUNT,
                value=Decimal("50"),
                min_order_value=Decimal("200"),
                first_order_only=True,
                start_date=now,
                end_date=now + timedelta(days=90)
            ))
            print("插入演示优惠券: WELCOME50")
        else:
            print("演示优惠券已存在: WELCOME50")

        await session.commit()

    await engine.dispose()


async def main(seed: bool = False):
    """主函数"""
    print("开始初始化洗衣服务数据库...")

    await create_database_if_not_exists()
    await create_tables()
    await create_indexes()

    if seed:
        await insert_demo_tenant()

    print("数据库初始化完成！")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化洗衣服务数据库")
    parser.add_argument("--seed", action="store_true", help="写入演示租户数据")
    args = parser.parse_args()
    asyncio.run(main(seed=args.seed))
