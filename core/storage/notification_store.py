"""
NotificationStore - 알림 저장소

notification 테이블을 알림 싱크로 사용 (INotificationSink 구현).
전달 수단은 없으며 Notifications 모듈이 이 테이블을 읽음.
"""

import json
import logging
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import Notification, NotificationPayload
from core.utils.timezone import now_utc_iso

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT id, company_id, title, message, type, category,
           recipient_id, recipient_type, related_item_id, related_item_type,
           action_url, metadata_json, is_read, created_at
    FROM notification
"""


def _row_to_notification(row: tuple[Any, ...]) -> Notification:
    return Notification(
        id=row[0],
        company_id=row[1],
        title=row[2],
        message=row[3],
        type=row[4],
        category=row[5],
        recipient_id=row[6],
        recipient_type=row[7],
        related_item_id=row[8],
        related_item_type=row[9],
        action_url=row[10],
        metadata=json.loads(row[11]) if row[11] else {},
        is_read=bool(row[12]),
        created_at=row[13],
    )


class NotificationStore:
    """알림 저장소 (INotificationSink)

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_notification(self, payload: NotificationPayload) -> Notification:
        """알림 저장"""
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

        await self.db.execute(
            """
            INSERT INTO notification (
                id, company_id, title, message, type, category,
                recipient_id, recipient_type, related_item_id, related_item_type,
                action_url, metadata_json, is_read, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
            """,
            (
                notification.id,
                notification.company_id,
                notification.title,
                notification.message,
                notification.type,
                notification.category,
                notification.recipient_id,
                notification.recipient_type,
                notification.related_item_id,
                notification.related_item_type,
                notification.action_url,
                json.dumps(notification.metadata, default=str),
                notification.created_at,
            ),
        )
        await self.db.commit()

        logger.debug(f"알림 저장: {notification.type} -> {notification.recipient_id}")
        return notification

    async def list_for_company(
        self,
        company_id: str,
        recipient_id: str | None = None,
        unread_only: bool = False,
        limit: int = 100,
    ) -> list[Notification]:
        """회사 알림 목록 (최신순)"""
        clauses = ["company_id = ?"]
        params: list[Any] = [company_id]
        if recipient_id is not None:
            clauses.append("recipient_id = ?")
            params.append(recipient_id)
        if unread_only:
            clauses.append("is_read = 0")
        params.append(limit)

        rows = await self.db.fetchall(
            f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            tuple(params),
        )
        return [_row_to_notification(row) for row in rows]

    async def mark_read(self, company_id: str, notification_id: str) -> bool:
        """읽음 처리

        Returns:
            변경 여부
        """
        cursor = await self.db.execute(
            "UPDATE notification SET is_read = 1 WHERE id = ? AND company_id = ?",
            (notification_id, company_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0
