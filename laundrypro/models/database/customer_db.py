"""
客户数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime
from laundrypro.core.database import Base


class CustomerDB(Base):
    """客户表"""

    __tablename__ = "customers"

    customer_id = Column(String(50), primary_key=True, comment="客户ID")
    name = Column(String(100), nullable=False, comment="姓名")
    email = Column(String(200), index=True, comment="邮箱")
    phone = Column(String(30), comment="手机号")
    is_vip = Column(Boolean, default=False, comment="是否VIP")

    # 统计
    total_orders = Column(Integer, default=0, comment="订单总数")
    reward_points = Column(Integer, default=0, comment="积分")

    created_at = Column(DateTime, default=datetime.now, comment="注册时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        {'comment': '客户表'}
    )
