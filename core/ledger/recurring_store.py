"""
반복 거래 일정 저장소

next_due_date 계산은 core.ledger.recurring 담당.
계좌는 필수, 카테고리는 선택이며 둘 다 회사 소유 확인.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from core.errors import RecurringScheduleNotFound, ValidationError
from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.models import RecurringSchedule
from core.utils.timezone import date_str, now_utc_iso

if TYPE_CHECKING:
    from datetime import date

    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_SELECT = f"SELECT {', '.join(RecurringSchedule.COLUMNS)} FROM recurring_schedule"

# update()로 변경 가능한 필드 (interval은 interval_count 컬럼으로 저장)
UPDATABLE_FIELDS = frozenset({
    "name",
    "description",
    "frequency",
    "interval",
    "start_date",
    "end_date",
    "next_due_date",
    "day_of_month",
    "day_of_week",
    "month_of_year",
    "amount",
    "type",
    "category_id",
    "account_id",
    "status",
})


class RecurringStore:
    """반복 거래 일정 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.accounts = AccountStore(db)
        self.categories = CategoryStore(db)

    async def create(
        self,
        company_id: str,
        name: str,
        frequency: str,
        start_date: Any,
        next_due_date: Any,
        amount: Decimal,
        type: str,
        account_id: str,
        interval: int = 1,
        status: str = "active",
        description: str | None = None,
        end_date: Any = None,
        day_of_month: int | None = None,
        day_of_week: int | None = None,
        month_of_year: int | None = None,
        category_id: str | None = None,
        schedule_id: str | None = None,
    ) -> RecurringSchedule:
        """일정 생성

        Raises:
            AccountNotFound: 계좌가 없거나 다른 회사 소유
            ValidationError: 카테고리가 없거나 다른 회사 소유
        """
        await self.accounts.require(company_id, account_id)
        await self._check_category(company_id, category_id)

        now = now_utc_iso()
        schedule = RecurringSchedule(
            id=schedule_id or str(uuid4()),
            company_id=company_id,
            name=name,
            frequency=frequency,
            interval=interval,
            start_date=date_str(start_date),
            next_due_date=date_str(next_due_date),
            amount=Decimal(str(amount)),
            type=type,
            account_id=account_id,
            status=status,
            description=description,
            end_date=date_str(end_date) if end_date else None,
            day_of_month=day_of_month,
            day_of_week=day_of_week,
            month_of_year=month_of_year,
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )

        values = self._to_row(schedule)
        await self.db.execute(
            f"""
            INSERT INTO recurring_schedule ({', '.join(RecurringSchedule.COLUMNS)})
            VALUES ({', '.join('?' for _ in RecurringSchedule.COLUMNS)})
            """,
            values,
        )
        await self.db.commit()

        logger.info(
            f"반복 거래 생성: {schedule.id} ({name}, {frequency}/{interval}, 다음 {schedule.next_due_date})"
        )
        return schedule

    async def get(self, company_id: str, schedule_id: str) -> RecurringSchedule | None:
        row = await self.db.fetchone(
            f"{_SELECT} WHERE id = ? AND company_id = ?",
            (schedule_id, company_id),
        )
        return RecurringSchedule.from_row(row) if row else None

    async def require(self, company_id: str, schedule_id: str) -> RecurringSchedule:
        schedule = await self.get(company_id, schedule_id)
        if schedule is None:
            raise RecurringScheduleNotFound(f"Recurring transaction not found: {schedule_id}")
        return schedule

    async def list(
        self,
        company_id: str,
        status: str | None = None,
        type: str | None = None,
    ) -> list[RecurringSchedule]:
        """일정 목록 (다음 예정일 오름차순)"""
        clauses = ["company_id = ?"]
        params: list[Any] = [company_id]
        if status:
            clauses.append("status = ?")
            params.append(status)
        if type:
            clauses.append("type = ?")
            params.append(type)

        rows = await self.db.fetchall(
            f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY next_due_date, name",
            tuple(params),
        )
        return [RecurringSchedule.from_row(row) for row in rows]

    async def list_due(self, company_id: str, today: date) -> list[RecurringSchedule]:
        """next_due_date <= today 인 active 일정"""
        rows = await self.db.fetchall(
            f"""
            {_SELECT}
            WHERE company_id = ? AND status = 'active' AND next_due_date <= ?
            ORDER BY next_due_date, name
            """,
            (company_id, date_str(today)),
        )
        return [RecurringSchedule.from_row(row) for row in rows]

    async def update(self, company_id: str, schedule_id: str, **fields: Any) -> RecurringSchedule:
        """일정 필드 수정 (next_due_date 재계산은 호출자 책임)

        Raises:
            RecurringScheduleNotFound: 일정이 없거나 다른 회사 소유
            ValidationError: 변경 불가 필드, 카테고리 없음
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown recurring transaction fields",
                details={name: "not updatable" for name in sorted(unknown)},
            )

        await self.require(company_id, schedule_id)
        if fields.get("account_id"):
            await self.accounts.require(company_id, fields["account_id"])
        await self._check_category(company_id, fields.get("category_id"))

        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name in ("start_date", "end_date", "next_due_date") and value is not None:
                value = date_str(value)
            elif name == "amount":
                value = str(Decimal(str(value)))
            values["interval_count" if name == "interval" else name] = value

        if values:
            values["updated_at"] = now_utc_iso()
            assignments = ", ".join(f"{name} = ?" for name in values)
            await self.db.execute(
                f"UPDATE recurring_schedule SET {assignments} WHERE id = ? AND company_id = ?",
                (*values.values(), schedule_id, company_id),
            )
            await self.db.commit()
            logger.info(f"반복 거래 수정: {schedule_id} ({', '.join(fields)})")

        return await self.require(company_id, schedule_id)

    async def mark_processed(
        self,
        schedule_id: str,
        next_due_date: str,
        last_processed_date: str | None,
        status: str,
    ) -> None:
        await self.db.execute(
            """
            UPDATE recurring_schedule
            SET next_due_date = ?, last_processed_date = ?, status = ?, updated_at = ?
            WHERE id = ?
            """,
            (next_due_date, last_processed_date, status, now_utc_iso(), schedule_id),
        )
        await self.db.commit()

    async def delete(self, company_id: str, schedule_id: str) -> None:
        """일정 삭제 (이미 생성된 거래는 유지)"""
        await self.require(company_id, schedule_id)
        await self.db.execute(
            "DELETE FROM recurring_schedule WHERE id = ? AND company_id = ?",
            (schedule_id, company_id),
        )
        await self.db.commit()
        logger.info(f"반복 거래 삭제: {schedule_id}")

    async def _check_category(self, company_id: str, category_id: str | None) -> None:
        if not category_id:
            return
        if await self.categories.get(company_id, category_id) is None:
            raise ValidationError(
                "Unknown category",
                details={"category_id": f"category not found: {category_id}"},
            )

    @staticmethod
    def _to_row(schedule: RecurringSchedule) -> tuple[Any, ...]:
        return (
            schedule.id,
            schedule.company_id,
            schedule.name,
            schedule.frequency,
            schedule.interval,
            schedule.start_date,
            schedule.next_due_date,
            str(schedule.amount),
            schedule.type,
            schedule.account_id,
            schedule.status,
            schedule.description,
            schedule.end_date,
            schedule.day_of_month,
            schedule.day_of_week,
            schedule.month_of_year,
            schedule.category_id,
            schedule.last_processed_date,
            schedule.created_at,
            schedule.updated_at,
        )
