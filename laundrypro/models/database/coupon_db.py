"""
优惠券数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, JSON, UniqueConstraint
from laundrypro.core.database import Base


class CouponDB(Base):
    """优惠券数据库表"""

    __tablename__ = "coupons"

    # 主键和基本信息
    coupon_id = Column(String(50), primary_key=True, comment="优惠券ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")
    code = Column(String(50), nullable=False, index=True, comment="优惠券代码")
    name = Column(String(200), nullable=False, comment="优惠券名称")
    description = Column(Text, comment="优惠券描述")
    discount_type = Column(String(20), nullable=False, comment="优惠券类型")

    # 折扣信息
    value = Column(Numeric(10, 2), nullable=False, comment="折扣值")
    min_order_value = Column(Numeric(10, 2), default=0, comment="最小订单金额")
    max_discount = Column(Numeric(10, 2), default=0, comment="最大折扣金额")

    # 有效期
    start_date = Column(DateTime, nullable=False, index=True, comment="有效开始时间")
    end_date = Column(DateTime, nullable=False, index=True, comment="有效结束时间")

    # 使用限制
    usage_limit = Column(Integer, default=0, comment="总使用次数限制")
    used_count = Column(Integer, default=0, comment="已使用次数")
    per_user_limit = Column(Integer, default=1, comment="单用户使用次数限制")
    first_order_only = Column(Boolean, default=False, comment="仅限首单")

    # 适用范围
    applicable_services = Column(JSON, default=list, comment="适用服务列表")

    is_active = Column(Boolean, default=True, index=True, comment="是否启用")

    # 时间戳
    created_at = Column(DateTime, default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        UniqueConstraint("tenancy_id", "code", name="uq_coupon_tenancy_code"),
        {'comment': '优惠券信息表'}
    )


class CouponUsageDB(Base):
    """优惠券使用记录表"""

    __tablename__ = "coupon_usage"

    # 主键和关联信息
    usage_id = Column(String(50), primary_key=True, comment="使用记录ID")
    coupon_id = Column(String(50), nullable=False, index=True, comment="优惠券ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")
    customer_id = Column(String(50), nullable=False, index=True, comment="使用客户ID")
    order_id = Column(String(50), comment="关联订单ID")

    # 使用详情
    discount_amount = Column(Numeric(10, 2), nullable=False, comment="折扣金额")
    used_at = Column(DateTime, default=datetime.now, comment="使用时间")

    __table_args__ = (
        {'comment': '优惠券使用记录表'}
    )
