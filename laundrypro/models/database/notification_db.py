"""
站内通知数据库模型
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from laundrypro.core.database import Base


class NotificationDB(Base):
    """站内通知表"""

    __tablename__ = "notifications"

    notification_id = Column(String(50), primary_key=True, comment="通知ID")
    tenancy_id = Column(String(50), nullable=False, index=True, comment="租户ID")
    recipient_id = Column(String(50), nullable=False, index=True, comment="接收人ID")
    notification_type = Column(String(50), nullable=False, comment="通知类型")
    title = Column(String(200), nullable=False, comment="标题")
    message = Column(Text, nullable=False, comment="内容")
    data = Column(JSON, comment="附加数据")
    is_read = Column(Boolean, default=False, index=True, comment="是否已读")
    created_at = Column(DateTime, default=datetime.now, comment="创建时间")

    __table_args__ = (
        {'comment': '站内通知表'}
    )
