"""
自动折扣相关数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, JSON
from laundrypro.core.database import Base


class AutomaticDiscountDB(Base):
    """自动折扣表"""

    __tablename__ = "automatic_discounts"

    # 主键和归属
    discount_id = Column(String(50), primary_key=True, comment="折扣ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")

    # 基本信息
    name = Column(String(200), nullable=False, comment="折扣名称")
    description = Column(Text, comment="折扣描述")
    rules = Column(JSON, nullable=False, comment="规则列表")
    priority = Column(Integer, default=0, index=True, comment="优先级")

    # 叠加规则
    can_stack_with_other_discounts = Column(Boolean, default=True, comment="可与其他折扣叠加")
    can_stack_with_coupons = Column(Boolean, default=True, comment="可与优惠券叠加")

    # 有效期和状态
    is_active = Column(Boolean, default=True, index=True, comment="是否启用")
    start_date = Column(DateTime, nullable=False, comment="开始时间")
    end_date = Column(DateTime, nullable=False, comment="结束时间")

    # 统计
    usage_count = Column(Integer, default=0, comment="使用次数")
    total_savings = Column(Numeric(14, 2), default=0, comment="累计减免金额")

    # 时间戳
    created_at = Column(DateTime, default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        {'comment': '自动折扣表'}
    )


class DiscountUsageDB(Base):
    """自动折扣使用记录表"""

    __tablename__ = "discount_usage"

    # 主键和关联信息
    usage_id = Column(String(50), primary_key=True, comment="使用记录ID")
    discount_id = Column(String(50), nullable=False, index=True, comment="折扣ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")
    customer_id = Column(String(50), nullable=False, index=True, comment="客户ID")
    order_id = Column(String(50), comment="关联订单ID")

    # 使用信息
    discount_amount = Column(Numeric(10, 2), nullable=False, comment="减免金额")
    used_at = Column(DateTime, default=datetime.now, comment="使用时间")

    __table_args__ = (
        {'comment': '自动折扣使用记录表'}
    )
