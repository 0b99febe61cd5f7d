"""
服务包初始化文件
"""

from .benefit_evaluator import BenefitEvaluator
from .usage_recorder import UsageRecorder
from .notification_service import NotificationService, notification_service

__all__ = [
    "BenefitEvaluator",
    "UsageRecorder",
    "NotificationService",
    "notification_service"
]
