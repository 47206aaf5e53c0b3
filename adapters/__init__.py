"""
어댑터 레이어

외부 협력자(DB, 알림 싱크)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import INotificationSink
from adapters.models import Notification, NotificationPayload

__all__ = [
    # Interfaces
    "INotificationSink",
    # Models
    "Notification",
    "NotificationPayload",
]
