"""
站内通知数据库操作层
"""

import uuid
from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import select, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from laundrypro.models.database.notification_db import NotificationDB


class NotificationRepository:
    """站内通知数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        tenancy_id: str,
        recipient_id: str,
        notification_type: str,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None
    ) -> NotificationDB:
        db_notification = NotificationDB(
            notification_id=str(uuid.uuid4()),
            tenancy_id=tenancy_id,
            recipient_id=recipient_id,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
            is_read=False,
            created_at=datetime.now()
        )
        self.db.add(db_notification)
        await self.db.flush()
        return db_notification

    async def list_for_recipient(self, tenancy_id: str, recipient_id: str, limit: int = 20) -> List[NotificationDB]:
        result = await self.db.execute(
            select(NotificationDB)
            .where(
                and_(
                    NotificationDB.tenancy_id == tenancy_id,
                    NotificationDB.recipient_id == recipient_id
                )
            )
            .order_by(desc(NotificationDB.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())
