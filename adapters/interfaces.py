"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, runtime_checkable

from adapters.models import Notification, NotificationPayload


@runtime_checkable
class INotificationSink(Protocol):
    """알림 싱크 인터페이스

    재무 엔진은 알림을 만들기만 하고 전달(이메일/푸시 등)은 관여하지 않음.
    구현체: NotificationStore (SQLite), MockNotificationSink (테스트)
    """

    async def create_notification(self, payload: NotificationPayload) -> Notification:
        """알림 생성

        Args:
            payload: 알림 내용

        Returns:
            저장된 알림
        """
        ...
