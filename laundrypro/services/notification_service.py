"""
站内通知服务
通知在后台任务中使用独立数据库会话写入，失败只记录日志
"""

import asyncio
import logging
from typing import Optional, Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from laundrypro.core.database import get_session_maker
from laundrypro.models.order import Order
from laundrypro.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """站内通知服务"""

    def __init__(self, session_maker: Optional[async_sessionmaker] = None):
        self._session_maker = session_maker
        self._tasks: Set[asyncio.Task] = set()

    def notify_order_placed_in_background(self, order: Order) -> asyncio.Task:
        """创建后台任务发送下单通知"""
        task = asyncio.create_task(self.notify_order_placed(order))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def notify_order_placed(self, order: Order) -> bool:
        session_maker = self._session_maker or get_session_maker()
        if session_maker is None:
            logger.warning(f"数据库未初始化，跳过下单通知 order={order.order_number}")
            return False

        try:
            async with session_maker() as session:
                repo = NotificationRepository(session)
                await repo.create(
                    tenancy_id=order.tenancy_id,
                    recipient_id=order.customer_id,
                    notification_type="order_placed",
                    title="下单成功",
                    message=f"您的订单 {order.order_number} 已提交，应付 {order.pricing.total} 元",
                    data={"order_id": order.order_id, "order_number": order.order_number}
                )
                await session.commit()
            logger.info(f"下单通知已发送 order={order.order_number}")
            return True
        except Exception as e:
            logger.error(f"下单通知发送失败 order={order.order_number}: {e}")
            return False


# 全局通知服务实例
notification_service = NotificationService()
