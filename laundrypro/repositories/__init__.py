"""
仓库包初始化文件 - 数据库访问层
"""

from .order_repository import OrderRepository
from .customer_repository import CustomerRepository
from .discount_repository import DiscountRepository
from .campaign_repository import CampaignRepository
from .coupon_repository import CouponRepository
from .notification_repository import NotificationRepository

__all__ = [
    "OrderRepository",
    "CustomerRepository",
    "DiscountRepository",
    "CampaignRepository",
    "CouponRepository",
    "NotificationRepository"
]
