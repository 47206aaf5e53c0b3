"""
어댑터 데이터 모델

알림 싱크에 전달/반환되는 데이터 구조.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class NotificationPayload:
    """알림 생성 요청

    type 예시: budget-alert, sale-recorded
    category 예시: finance
    """

    company_id: str
    title: str
    message: str
    type: str
    category: str = "finance"
    recipient_id: str | None = None
    recipient_type: str | None = None
    related_item_id: str | None = None
    related_item_type: str | None = None
    action_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Notification:
    """저장된 알림"""

    id: str
    company_id: str
    title: str
    message: str
    type: str
    category: str
    recipient_id: str | None
    recipient_type: str | None
    related_item_id: str | None
    related_item_type: str | None
    action_url: str | None
    metadata: dict[str, Any]
    is_read: bool
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "category": self.category,
            "recipient_id": self.recipient_id,
            "recipient_type": self.recipient_type,
            "related_item_id": self.related_item_id,
            "related_item_type": self.related_item_type,
            "action_url": self.action_url,
            "metadata": self.metadata,
            "is_read": self.is_read,
            "created_at": self.created_at,
        }
