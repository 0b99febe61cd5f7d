"""
营销活动数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, JSON
from laundrypro.core.database import Base


class CampaignDB(Base):
    """营销活动表"""

    __tablename__ = "campaigns"

    # 主键和归属
    campaign_id = Column(String(50), primary_key=True, comment="活动ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")

    # 基本信息
    name = Column(String(200), nullable=False, comment="活动名称")
    description = Column(Text, comment="活动描述")
    status = Column(String(20), default="active", index=True, comment="活动状态")
    triggers = Column(JSON, nullable=False, comment="触发点列表")
    promotions = Column(JSON, nullable=False, comment="优惠列表")
    stacking = Column(JSON, nullable=False, comment="叠加规则")
    eligibility = Column(JSON, nullable=False, comment="参与条件")

    # 有效期
    start_date = Column(DateTime, nullable=False, comment="开始时间")
    end_date = Column(DateTime, nullable=False, comment="结束时间")

    # 限额与预算
    max_uses = Column(Integer, default=0, comment="总使用次数上限")
    used_count = Column(Integer, default=0, comment="已使用次数")
    total_budget = Column(Numeric(14, 2), default=0, comment="总预算")
    spent_amount = Column(Numeric(14, 2), default=0, comment="已花费")

    # 统计
    total_orders = Column(Integer, default=0, comment="订单数")
    total_discount = Column(Numeric(14, 2), default=0, comment="累计优惠")
    total_revenue = Column(Numeric(14, 2), default=0, comment="累计收入")
    unique_users = Column(Integer, default=0, comment="参与客户数")

    # 时间戳
    created_at = Column(DateTime, default=datetime.now, index=True, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        {'comment': '营销活动表'}
    )
