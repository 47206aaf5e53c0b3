"""
반복 거래 서비스

일정 생성/수정 시 next_due_date 계산, 도래분 처리 위임.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.currency import CurrencyService
from core.ledger.models import RecurringSchedule
from core.ledger.recurring import RecurringProcessor, initial_due_date
from core.ledger.recurring_store import RecurringStore
from core.utils.timezone import to_date

logger = logging.getLogger(__name__)

# 바뀌면 next_due_date를 다시 계산하는 필드
SCHEDULE_FIELDS = (
    "frequency",
    "interval",
    "start_date",
    "day_of_month",
    "day_of_week",
    "month_of_year",
)


class RecurringService:
    """반복 거래 서비스"""

    def __init__(self, db: SQLiteAdapter, currency: CurrencyService | None = None):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.store = RecurringStore(db)

    async def list_schedules(self, company_id: str, **filters: Any) -> list[RecurringSchedule]:
        return await self.store.list(company_id, **filters)

    async def get_schedule(self, company_id: str, schedule_id: str) -> RecurringSchedule:
        return await self.store.require(company_id, schedule_id)

    async def create_schedule(self, company_id: str, today: Any = None, **fields: Any) -> RecurringSchedule:
        """일정 생성 (첫 예정일 = 오늘 이후 첫 발생일)"""
        fields["next_due_date"] = initial_due_date(
            to_date(fields["start_date"]),
            fields["frequency"],
            fields.get("interval", 1),
            fields.get("day_of_month"),
            fields.get("day_of_week"),
            fields.get("month_of_year"),
            today=to_date(today) if today is not None else None,
        )
        return await self.store.create(company_id=company_id, **fields)

    async def update_schedule(
        self,
        company_id: str,
        schedule_id: str,
        today: Any = None,
        **fields: Any,
    ) -> RecurringSchedule:
        """일정 수정 (주기 관련 필드가 바뀌면 next_due_date 재계산)"""
        current = await self.store.require(company_id, schedule_id)

        changed = [
            name for name in SCHEDULE_FIELDS
            if name in fields and _normalized(name, fields[name]) != _normalized(name, getattr(current, name))
        ]
        if changed:
            merged = {name: fields.get(name, getattr(current, name)) for name in SCHEDULE_FIELDS}
            fields["next_due_date"] = initial_due_date(
                to_date(merged["start_date"]),
                merged["frequency"],
                merged["interval"],
                merged["day_of_month"],
                merged["day_of_week"],
                merged["month_of_year"],
                today=to_date(today) if today is not None else None,
            )
            logger.debug(f"반복 거래 예정일 재계산: {schedule_id} ({', '.join(changed)}) -> {fields['next_due_date']}")

        return await self.store.update(company_id, schedule_id, **fields)

    async def delete_schedule(self, company_id: str, schedule_id: str) -> None:
        await self.store.delete(company_id, schedule_id)

    async def process_due(self, company_id: str, today: Any = None) -> dict[str, Any]:
        return await RecurringProcessor(self.db, self.currency).process_due(company_id, today)


def _normalized(name: str, value: Any) -> Any:
    if name == "start_date":
        return to_date(value)
    return value
