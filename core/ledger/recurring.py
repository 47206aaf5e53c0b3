"""
반복 거래 (Recurring Transactions)

일정 날짜 계산과 도래분 처리.

날짜 규칙:
    daily    interval일 후
    weekly   interval주 후, day_of_week(0=일요일)가 있으면 그 요일까지 뒤로 이동
    monthly  interval개월 후, day_of_month가 있으면 그 날짜 (월말 초과 시 말일)
    yearly   interval년 후, month_of_year + day_of_month가 둘 다 있으면 그 날짜

처리 규칙:
    next_due_date <= 오늘인 active 일정의 밀린 발생분을 모두 생성.
    발생분 1건 = 거래 생성 + 잔액 반영 + 일정 갱신, 한 트랜잭션.
    source_key = {company}:recurring:{schedule}:{예정일} 이므로 재처리해도 중복 없음.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from dateutil.relativedelta import relativedelta

from core.ledger.account_store import AccountStore
from core.ledger.balance import AccountBalanceMaintainer
from core.ledger.currency import CurrencyService
from core.ledger.models import RecurringSchedule
from core.ledger.recurring_store import RecurringStore
from core.ledger.transaction_store import TransactionStore
from core.types import RecurringFrequency, RecurringStatus, TransactionStatus
from core.utils.dedup import make_recurring_source_key
from core.utils.timezone import date_str, now_utc_iso, to_date, today_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def _clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def advance_due_date(
    current: date,
    frequency: str,
    interval: int = 1,
    day_of_month: int | None = None,
    day_of_week: int | None = None,
    month_of_year: int | None = None,
) -> date:
    """다음 예정일 계산

    Example:
        >>> advance_due_date(date(2024, 1, 31), "monthly")
        datetime.date(2024, 2, 29)
    """
    if frequency == RecurringFrequency.DAILY.value:
        return current + timedelta(days=interval)

    if frequency == RecurringFrequency.WEEKLY.value:
        nxt = current + timedelta(weeks=interval)
        if day_of_week is not None:
            nxt += timedelta(days=(day_of_week - nxt.isoweekday() % 7 + 7) % 7)
        return nxt

    if frequency == RecurringFrequency.MONTHLY.value:
        nxt = current + relativedelta(months=interval)
        if day_of_month is not None:
            nxt = _clamp_day(nxt.year, nxt.month, day_of_month)
        return nxt

    if frequency == RecurringFrequency.YEARLY.value:
        nxt = current + relativedelta(years=interval)
        if month_of_year is not None and day_of_month is not None:
            nxt = _clamp_day(nxt.year, month_of_year, day_of_month)
        return nxt

    raise ValueError(f"Unknown recurring frequency: {frequency}")


def initial_due_date(
    start: date,
    frequency: str,
    interval: int = 1,
    day_of_month: int | None = None,
    day_of_week: int | None = None,
    month_of_year: int | None = None,
    today: date | None = None,
) -> date:
    """첫 예정일: 시작일이 오늘 이후면 시작일, 아니면 오늘 이후 첫 발생일

    지난 시작일의 과거 발생분은 만들지 않음.
    """
    today = today or today_utc()
    due = start
    while due < today:
        due = advance_due_date(due, frequency, interval, day_of_month, day_of_week, month_of_year)
    return due


def next_after(schedule: RecurringSchedule, current: date) -> date:
    return advance_due_date(
        current,
        schedule.frequency,
        schedule.interval,
        schedule.day_of_month,
        schedule.day_of_week,
        schedule.month_of_year,
    )


class RecurringProcessor:
    """도래한 반복 거래 처리

    Args:
        db: SQLite 어댑터
        currency: 통화 환산 서비스 (잔액 반영용)
    """

    def __init__(self, db: SQLiteAdapter, currency: CurrencyService | None = None):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.schedules = RecurringStore(db)
        self.transactions = TransactionStore(db)
        self.accounts = AccountStore(db)
        self.maintainer = AccountBalanceMaintainer(db, self.currency)

    async def process_due(self, company_id: str, today: Any = None) -> dict[str, Any]:
        """도래한 일정 모두 처리

        일정 단위 실패는 success=false로 보고하고 나머지는 계속 진행.

        Returns:
            {"processed", "successful", "failed", "results"}
        """
        day = to_date(today) if today is not None else today_utc()
        due = await self.schedules.list_due(company_id, day)

        results: list[dict[str, Any]] = []
        for schedule in due:
            try:
                results.append(await self._process_schedule(schedule, day))
            except Exception as e:
                logger.exception(f"반복 거래 처리 실패: {schedule.id} ({schedule.name})")
                results.append({
                    "id": schedule.id,
                    "name": schedule.name,
                    "success": False,
                    "error": str(e),
                })

        successful = sum(1 for r in results if r["success"])
        logger.info(f"반복 거래 처리 완료: company={company_id} {successful}/{len(results)} 성공")
        return {
            "processed": len(results),
            "successful": successful,
            "failed": len(results) - successful,
            "results": results,
        }

    async def _process_schedule(self, schedule: RecurringSchedule, today: date) -> dict[str, Any]:
        account = await self.accounts.require(schedule.company_id, schedule.account_id)
        end = to_date(schedule.end_date) if schedule.end_date else None

        description = schedule.name
        if schedule.description:
            description = f"{schedule.name} - {schedule.description}"

        transaction_ids: list[str] = []
        due = to_date(schedule.next_due_date)
        status = schedule.status

        while due <= today and status == RecurringStatus.ACTIVE.value:
            if end is not None and due > end:
                status = RecurringStatus.COMPLETED.value
                break

            nxt = next_after(schedule, due)
            if end is not None and nxt > end:
                status = RecurringStatus.COMPLETED.value

            async with self.db.transaction(immediate=True):
                txn = await self.transactions.create(
                    company_id=schedule.company_id,
                    date=due,
                    description=description,
                    amount=schedule.amount,
                    currency=account.currency,
                    type=schedule.type,
                    status=TransactionStatus.COMPLETED.value,
                    category_id=schedule.category_id,
                    account_id=schedule.account_id,
                    related_to=schedule.id,
                    source_key=make_recurring_source_key(schedule.company_id, schedule.id, date_str(due)),
                )
                await self.maintainer.apply_transaction_to_balance(schedule.company_id, txn.id)
                await self.schedules.mark_processed(
                    schedule.id,
                    next_due_date=date_str(nxt),
                    last_processed_date=now_utc_iso(),
                    status=status,
                )

            transaction_ids.append(txn.id)
            logger.info(f"반복 거래 생성: {schedule.id} {date_str(due)} -> {txn.id}")
            due = nxt

        if status != schedule.status and not transaction_ids:
            await self.schedules.mark_processed(
                schedule.id,
                next_due_date=date_str(due),
                last_processed_date=schedule.last_processed_date,
                status=status,
            )

        return {
            "id": schedule.id,
            "name": schedule.name,
            "success": True,
            "transaction_ids": transaction_ids,
            "next_due_date": date_str(due),
            "status": status,
        }
