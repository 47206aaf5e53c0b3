"""반복 거래 처리 통합 테스트

밀린 발생분 생성, 잔액 반영, 재처리 멱등성, 종료일 완료 처리.
"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import AccountNotFound, RecurringScheduleNotFound, ValidationError
from core.ledger.account_store import AccountStore
from core.ledger.currency import CurrencyService
from core.ledger.recurring import RecurringProcessor
from core.ledger.recurring_store import RecurringStore
from core.ledger.transaction_store import TransactionStore

COMPANY = "acme"


@pytest.fixture
def processor(db: SQLiteAdapter, seed) -> RecurringProcessor:
    return RecurringProcessor(db, CurrencyService(db))


async def _schedule(db: SQLiteAdapter, **overrides):
    fields = {
        "company_id": COMPANY,
        "name": "Office Rent",
        "frequency": "monthly",
        "start_date": "2024-01-01",
        "next_due_date": "2024-01-01",
        "amount": Decimal("500"),
        "type": "expense",
        "account_id": "acc-bank",
        "category_id": "cat-office",
        "schedule_id": "rec-rent",
    }
    fields.update(overrides)
    return await RecurringStore(db).create(**fields)


async def _balance(db: SQLiteAdapter) -> Decimal:
    return (await AccountStore(db).require(COMPANY, "acc-bank")).balance


class TestRecurringStore:
    """일정 저장/검증"""

    @pytest.mark.asyncio
    async def test_create_and_list_by_due(self, db: SQLiteAdapter, seed) -> None:
        await _schedule(db, schedule_id="rec-b", name="B", next_due_date="2024-02-01")
        await _schedule(db, schedule_id="rec-a", name="A", next_due_date="2024-01-15")

        schedules = await RecurringStore(db).list(COMPANY)

        assert [s.id for s in schedules] == ["rec-a", "rec-b"]
        assert schedules[0].interval == 1
        assert schedules[0].amount == Decimal("500")

    @pytest.mark.asyncio
    async def test_other_company_account_rejected(self, db: SQLiteAdapter, seed) -> None:
        with pytest.raises(AccountNotFound):
            await _schedule(db, company_id="globex")

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, db: SQLiteAdapter, seed) -> None:
        with pytest.raises(ValidationError):
            await _schedule(db, category_id="cat-missing")

    @pytest.mark.asyncio
    async def test_update_and_delete(self, db: SQLiteAdapter, seed) -> None:
        await _schedule(db)
        store = RecurringStore(db)

        updated = await store.update(COMPANY, "rec-rent", amount="650", interval=2)
        assert updated.amount == Decimal("650")
        assert updated.interval == 2

        await store.delete(COMPANY, "rec-rent")
        with pytest.raises(RecurringScheduleNotFound):
            await store.require(COMPANY, "rec-rent")


class TestProcessDue:
    """도래분 처리"""

    @pytest.mark.asyncio
    async def test_catches_up_missed_occurrences(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db, description="HQ")

        result = await processor.process_due(COMPANY, date(2024, 3, 15))

        assert result["processed"] == 1
        assert result["successful"] == 1
        entry = result["results"][0]
        assert len(entry["transaction_ids"]) == 3
        assert entry["next_due_date"] == "2024-04-01"

        txns = await TransactionStore(db).find_all_by_related(COMPANY, "rec-rent")
        assert sorted(t.date for t in txns) == ["2024-01-01", "2024-02-01", "2024-03-01"]
        assert {t.description for t in txns} == {"Office Rent - HQ"}
        assert all(t.status == "completed" and t.is_applied for t in txns)
        assert {t.source_key for t in txns} == {
            "acme:recurring:rec-rent:2024-01-01",
            "acme:recurring:rec-rent:2024-02-01",
            "acme:recurring:rec-rent:2024-03-01",
        }
        assert await _balance(db) == Decimal("-1500")

        schedule = await RecurringStore(db).require(COMPANY, "rec-rent")
        assert schedule.next_due_date == "2024-04-01"
        assert schedule.last_processed_date is not None

    @pytest.mark.asyncio
    async def test_second_run_creates_nothing(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db)

        await processor.process_due(COMPANY, date(2024, 1, 20))
        again = await processor.process_due(COMPANY, date(2024, 1, 20))

        assert again["processed"] == 0
        assert await TransactionStore(db).count(COMPANY) == 1
        assert await _balance(db) == Decimal("-500")

    @pytest.mark.asyncio
    async def test_replay_of_stale_schedule_is_idempotent(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        """예정일이 되돌려져도 같은 날짜 거래는 source_key로 한 번만"""
        await _schedule(db)
        await processor.process_due(COMPANY, date(2024, 1, 20))
        await RecurringStore(db).update(COMPANY, "rec-rent", next_due_date="2024-01-01")

        await processor.process_due(COMPANY, date(2024, 1, 20))

        assert await TransactionStore(db).count(COMPANY) == 1
        assert await _balance(db) == Decimal("-500")

    @pytest.mark.asyncio
    async def test_end_date_completes_schedule(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db, end_date="2024-02-15")

        result = await processor.process_due(COMPANY, date(2024, 6, 1))

        entry = result["results"][0]
        assert len(entry["transaction_ids"]) == 2
        assert entry["status"] == "completed"
        schedule = await RecurringStore(db).require(COMPANY, "rec-rent")
        assert schedule.status == "completed"
        assert await _balance(db) == Decimal("-1000")

    @pytest.mark.asyncio
    async def test_paused_and_future_skipped(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db, schedule_id="rec-paused", status="paused")
        await _schedule(db, schedule_id="rec-future", next_due_date="2024-12-01")

        result = await processor.process_due(COMPANY, date(2024, 6, 1))

        assert result == {"processed": 0, "successful": 0, "failed": 0, "results": []}

    @pytest.mark.asyncio
    async def test_income_uses_account_currency(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db, type="income", category_id="cat-sales", name="Retainer")

        await processor.process_due(COMPANY, date(2024, 1, 1))

        txn = (await TransactionStore(db).find_all_by_related(COMPANY, "rec-rent"))[0]
        assert txn.currency == "USD"
        assert txn.description == "Retainer"
        assert await _balance(db) == Decimal("500")

    @pytest.mark.asyncio
    async def test_failure_isolated_per_schedule(
        self, db: SQLiteAdapter, processor: RecurringProcessor
    ) -> None:
        await _schedule(db, schedule_id="rec-ok")
        await _schedule(db, schedule_id="rec-bad", name="Broken")
        await db.execute(
            "UPDATE recurring_schedule SET amount = '-5' WHERE id = ?", ("rec-bad",)
        )
        await db.commit()

        result = await processor.process_due(COMPANY, date(2024, 1, 1))

        assert result["processed"] == 2
        assert result["successful"] == 1
        assert result["failed"] == 1
        failed = next(r for r in result["results"] if not r["success"])
        assert failed["id"] == "rec-bad"
        assert failed["error"]
        assert await _balance(db) == Decimal("-500")
