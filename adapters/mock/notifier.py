"""
Mock 알림 싱크

테스트용 Mock Notification Sink.
INotificationSink Protocol 준수.
"""

from uuid import uuid4

from adapters.models import Notification, NotificationPayload
from core.utils.timezone import now_utc_iso


class MockNotificationSink:
    """Mock 알림 싱크

    INotificationSink Protocol 구현.
    생성된 모든 알림을 메모리에 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    sink = MockNotificationSink()

    await sink.create_notification(payload)

    # 기록 확인
    assert len(sink.notifications) == 1
    assert sink.notifications[0].type == "budget-alert"
    ```
    """

    def __init__(self, should_fail: bool = False):
        """
        Args:
            should_fail: True면 모든 생성 실패 (에러 시나리오 테스트용)
        """
        self.should_fail = should_fail
        self.notifications: list[Notification] = []

    async def create_notification(self, payload: NotificationPayload) -> Notification:
        if self.should_fail:
            raise RuntimeError("Mock notification sink failure")

        notification = Notification(
            id=str(uuid4()),
            company_id=payload.company_id,
            title=payload.title,
            message=payload.message,
            type=payload.type,
            category=payload.category,
            recipient_id=payload.recipient_id,
            recipient_type=payload.recipient_type,
            related_item_id=payload.related_item_id,
            related_item_type=payload.related_item_type,
            action_url=payload.action_url,
            metadata=dict(payload.metadata),
            is_read=False,
            created_at=now_utc_iso(),
        )
        self.notifications.append(notification)
        return notification

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """알림 기록 초기화"""
        self.notifications.clear()

    def get_by_type(self, notification_type: str) -> list[Notification]:
        """특정 유형의 알림 조회"""
        return [n for n in self.notifications if n.type == notification_type]

    def get_for_recipient(self, recipient_id: str) -> list[Notification]:
        """특정 수신자의 알림 조회"""
        return [n for n in self.notifications if n.recipient_id == recipient_id]

    @property
    def last_notification(self) -> Notification | None:
        """마지막 알림 조회"""
        return self.notifications[-1] if self.notifications else None
