"""
스토리지 모듈

알림 싱크 등 재무 엔진 외부 협력자용 저장소 제공
"""

from core.storage.notification_store import NotificationStore

__all__ = [
    "NotificationStore",
]
