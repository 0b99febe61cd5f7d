"""
数据库模型包初始化文件
"""

from .order_db import OrderDB, OrderItemDB
from .discount_db import AutomaticDiscountDB, DiscountUsageDB
from .campaign_db import CampaignDB
from .coupon_db import CouponDB, CouponUsageDB
from .customer_db import CustomerDB
from .notification_db import NotificationDB

__all__ = [
    "OrderDB",
    "OrderItemDB",
    "AutomaticDiscountDB",
    "DiscountUsageDB",
    "CampaignDB",
    "CouponDB",
    "CouponUsageDB",
    "CustomerDB",
    "NotificationDB"
]
