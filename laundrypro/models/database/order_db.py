"""
订单相关数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from laundrypro.core.database import Base


class OrderDB(Base):
    """订单数据库表"""

    __tablename__ = "orders"

    # 主键和归属信息
    order_id = Column(String(50), primary_key=True, comment="订单ID")
    order_number = Column(String(50), nullable=False, unique=True, index=True, comment="订单编号")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")
    customer_id = Column(String(50), nullable=False, index=True, comment="客户ID")
    branch_id = Column(String(50), comment="门店ID")

    # 服务信息
    service_type = Column(String(30), nullable=False, comment="取送方式")
    is_express = Column(Boolean, default=False, comment="是否加急")
    is_vip_order = Column(Boolean, default=False, comment="是否VIP订单")
    pickup_address = Column(JSON, comment="取件地址快照")
    delivery_address = Column(JSON, comment="送件地址快照")
    pickup_date = Column(DateTime, nullable=False, comment="取件日期")
    pickup_time_slot = Column(String(30), nullable=False, comment="取件时段")
    estimated_delivery_date = Column(DateTime, comment="预计送达日期")
    special_instructions = Column(Text, comment="特殊说明")

    # 金额信息
    subtotal = Column(Numeric(12, 2), nullable=False, comment="商品小计")
    express_charge = Column(Numeric(12, 2), default=0, comment="加急费")
    delivery_charge = Column(Numeric(12, 2), default=0, comment="配送费")
    service_type_discount = Column(Numeric(12, 2), default=0, comment="自取节省")
    automatic_discount = Column(Numeric(12, 2), default=0, comment="自动折扣金额")
    campaign_discount = Column(Numeric(12, 2), default=0, comment="活动优惠金额")
    coupon_discount = Column(Numeric(12, 2), default=0, comment="优惠券折扣")
    discount = Column(Numeric(12, 2), default=0, comment="优惠合计")
    tax = Column(Numeric(12, 2), default=0, comment="税费")
    total = Column(Numeric(12, 2), nullable=False, comment="应付金额")

    # 应用的优惠信息
    applied_discounts = Column(JSON, default=list, comment="已应用的自动折扣")
    applied_campaign = Column(JSON, comment="已应用的活动")
    applied_campaign_id = Column(String(50), index=True, comment="已应用的活动ID")
    coupon_code = Column(String(50), comment="使用的优惠券代码")

    # 订单状态
    status = Column(String(40), default="placed", index=True, comment="订单状态")
    status_history = Column(JSON, default=list, comment="状态历史")
    payment_status = Column(String(20), default="pending", index=True, comment="支付状态")
    payment_method = Column(String(20), nullable=False, comment="支付方式")

    # 评价与取消
    rating = Column(JSON, comment="评价")
    cancellation_reason = Column(Text, comment="取消原因")
    cancelled_at = Column(DateTime, comment="取消时间")

    # 时间戳
    created_at = Column(DateTime, default=datetime.now, index=True, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    # 关系映射
    order_items = relationship(
        "OrderItemDB",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItemDB.position"
    )

    __table_args__ = (
        {'comment': '订单主表'}
    )


class OrderItemDB(Base):
    """订单衣物项数据库表"""

    __tablename__ = "order_items"

    # 主键和关联信息
    item_id = Column(String(50), primary_key=True, comment="订单项ID")
    order_id = Column(String(50), ForeignKey("orders.order_id"), nullable=False, index=True, comment="订单ID")
    position = Column(Integer, default=0, comment="序号")

    # 衣物信息
    item_type = Column(String(50), nullable=False, comment="衣物类型")
    service = Column(String(50), nullable=False, comment="服务类型")
    category = Column(String(20), nullable=False, comment="衣物类别")
    quantity = Column(Integer, nullable=False, comment="数量")

    # 价格信息
    base_price = Column(Numeric(10, 2), nullable=False, comment="基础价格")
    service_multiplier = Column(Numeric(6, 2), default=1, comment="服务系数")
    category_multiplier = Column(Numeric(6, 2), default=1, comment="类别系数")
    express_multiplier = Column(Numeric(6, 2), default=1, comment="加急系数")
    unit_price = Column(Numeric(10, 2), nullable=False, comment="单价")
    total_price = Column(Numeric(12, 2), nullable=False, comment="小计")
    special_instructions = Column(Text, comment="特殊说明")

    # 关系映射
    order = relationship("OrderDB", back_populates="order_items")

    __table_args__ = (
        {'comment': '订单衣物项表'}
    )
