"""BudgetTracker 통합 테스트

예산 대비 실적, 항목별 집행액, 임계값 알림.
"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.mock.notifier import MockNotificationSink
from core.errors import BudgetNotFound, ValidationError
from core.ledger.budget import BudgetTracker, budget_health, percent_of
from core.ledger.budget_store import BudgetStore
from core.ledger.currency import CurrencyService
from core.ledger.transaction_store import TransactionStore
from core.types import BudgetHealth, OwnerCaller

COMPANY = "acme"
JAN_20 = date(2024, 1, 20)


@pytest.fixture
def sink() -> MockNotificationSink:
    return MockNotificationSink()


@pytest.fixture
def tracker(db: SQLiteAdapter, seed, sink: MockNotificationSink) -> BudgetTracker:
    return BudgetTracker(db, CurrencyService(db), sink=sink)


@pytest.fixture
def store(db: SQLiteAdapter, seed) -> TransactionStore:
    return TransactionStore(db)


async def _expense(store: TransactionStore, amount: str, category_id: str | None, **overrides):
    fields = {
        "company_id": COMPANY,
        "date": "2024-01-15",
        "description": f"expense {amount}",
        "amount": Decimal(amount),
        "currency": "USD",
        "type": "expense",
        "status": "completed",
        "category_id": category_id,
        "account_id": "acc-bank",
    }
    fields.update(overrides)
    return await store.create(**fields)


async def _budget(db: SQLiteAdapter, name: str, total: str, items: list, **overrides):
    fields = {
        "company_id": COMPANY,
        "name": name,
        "start_date": "2024-01-01",
        "end_date": "2024-01-31",
        "total_budget": Decimal(total),
        "currency": "USD",
        "items": items,
    }
    fields.update(overrides)
    return await BudgetStore(db).create(**fields)


class TestHelpers:
    """percent_of / budget_health"""

    def test_percent_of(self) -> None:
        assert percent_of(Decimal("1200"), Decimal("1000")) == Decimal("120.00")
        assert percent_of(Decimal("1"), Decimal("3")) == Decimal("33.33")

    def test_percent_of_zero_whole(self) -> None:
        assert percent_of(Decimal("50"), Decimal("0")) == Decimal("0")

    @pytest.mark.parametrize(
        "percent, expected",
        [
            (Decimal("120"), BudgetHealth.OVER_BUDGET),
            (Decimal("100"), BudgetHealth.OVER_BUDGET),
            (Decimal("99.99"), BudgetHealth.WARNING),
            (Decimal("90"), BudgetHealth.WARNING),
            (Decimal("89.99"), BudgetHealth.GOOD),
        ],
    )
    def test_budget_health(self, percent: Decimal, expected: BudgetHealth) -> None:
        assert budget_health(percent) == expected


class TestBudgetComparison:
    """예산 대비 실적"""

    @pytest.mark.asyncio
    async def test_january_office_example(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        """1000 예산, 1200 집행 → variance 200, 120%, over-budget"""
        budget = await _budget(
            db, "January Ops", "1000",
            [{"category_id": "cat-office", "name": "Office", "amount": "1000"}],
        )
        await _expense(store, "700", "cat-office", date="2024-01-05")
        await _expense(store, "500", "cat-office", date="2024-01-25")

        result = await tracker.compute_budget_comparison(COMPANY, budget.id)

        assert result["categories"] == [{
            "id": "cat-office",
            "name": "Office Supplies",
            "actual": Decimal("1200"),
            "budgeted": Decimal("1000"),
            "variance": Decimal("200"),
            "percent_used": Decimal("120.00"),
        }]
        assert result["summary"]["total_actual"] == Decimal("1200")
        assert result["summary"]["total_variance"] == Decimal("200")
        assert result["summary"]["total_percent_used"] == Decimal("120.00")
        assert result["summary"]["status"] == "over-budget"
        assert result["budget"]["id"] == budget.id
        assert result["period"] == "month"

    @pytest.mark.asyncio
    async def test_window_and_status_filters(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        """기간 밖, 미완료, 수입 거래는 제외"""
        budget = await _budget(
            db, "January", "1000",
            [{"category_id": "cat-office", "name": "Office", "amount": "1000"}],
        )
        await _expense(store, "100", "cat-office")
        await _expense(store, "200", "cat-office", date="2024-02-01")
        await _expense(store, "300", "cat-office", status="pending")
        await _expense(store, "400", "cat-sales", type="income")

        result = await tracker.compute_budget_comparison(COMPANY, budget.id)

        assert result["summary"]["total_actual"] == Decimal("100")
        assert result["summary"]["status"] == "good"

    @pytest.mark.asyncio
    async def test_uncategorized_and_item_only_buckets(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        budget = await _budget(
            db, "January", "2000",
            [
                {"category_id": "cat-office", "name": "Office", "amount": "500"},
                {"category_id": "cat-travel", "name": "Travel", "amount": "800"},
            ],
        )
        await _expense(store, "600", "cat-office")
        await _expense(store, "50", None)

        result = await tracker.compute_budget_comparison(COMPANY, budget.id)
        by_id = {c["id"]: c for c in result["categories"]}

        assert by_id["uncategorized"]["name"] == "Uncategorized"
        assert by_id["uncategorized"]["budgeted"] == Decimal("0")
        assert by_id["uncategorized"]["percent_used"] == Decimal("0")
        assert by_id["cat-travel"]["actual"] == Decimal("0")
        assert by_id["cat-travel"]["variance"] == Decimal("-800")
        # variance 내림차순
        assert [c["id"] for c in result["categories"]] == ["cat-office", "uncategorized", "cat-travel"]

    @pytest.mark.asyncio
    async def test_converts_into_budget_currency(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        budget = await _budget(
            db, "Euro budget", "1000",
            [{"category_id": "cat-office", "name": "Office", "amount": "1000"}],
            currency="EUR",
        )
        await _expense(store, "100", "cat-office")

        result = await tracker.compute_budget_comparison(COMPANY, budget.id)

        assert result["categories"][0]["actual"] == Decimal("93.00")

    @pytest.mark.asyncio
    async def test_other_company_budget(self, db: SQLiteAdapter, tracker: BudgetTracker) -> None:
        budget = await _budget(db, "Globex", "100", [], company_id="globex")

        with pytest.raises(BudgetNotFound):
            await tracker.compute_budget_comparison(COMPANY, budget.id)


class TestBudgetSpend:
    """항목별 집행액"""

    @pytest.mark.asyncio
    async def test_spend_per_item(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        budget = await _budget(
            db, "January", "1000",
            [
                {"category_id": "cat-office", "name": "Office", "amount": "600"},
                {"category_id": None, "name": "Misc", "amount": "400"},
            ],
        )
        await _expense(store, "250", "cat-office")
        await _expense(store, "30", None)
        await _expense(store, "999", "cat-travel")

        result = await tracker.compute_budget_spend(COMPANY, budget.id)

        assert [item.spent for item in result.items] == [Decimal("250"), Decimal("30")]
        assert result.total_spent == Decimal("280")


class TestBudgetAlerts:
    """임계값 알림"""

    @pytest.mark.asyncio
    async def test_ordering_critical_first(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        """150% critical이 95% warning보다 먼저"""
        await _budget(
            db, "Travel", "1000",
            [{"category_id": "cat-travel", "name": "Trips", "amount": "1000"}],
        )
        await _budget(
            db, "Office", "1000",
            [{"category_id": "cat-office", "name": "Supplies", "amount": "1000"}],
        )
        await _expense(store, "950", "cat-travel")
        await _expense(store, "1500", "cat-office")

        alerts = await tracker.compute_budget_alerts(COMPANY, threshold=90, now=JAN_20)

        assert [(a["severity"], a["percent_spent"]) for a in alerts] == [
            ("critical", Decimal("150.00")),
            ("critical", Decimal("150.00")),
            ("warning", Decimal("95.00")),
            ("warning", Decimal("95.00")),
        ]
        first = alerts[0]
        assert first["budget_name"] == "Office"
        assert first["threshold"] == Decimal("90")

    @pytest.mark.asyncio
    async def test_alert_shapes(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        budget = await _budget(
            db, "Office", "1000",
            [{"category_id": "cat-office", "name": "Supplies", "amount": "1000"}],
        )
        await _expense(store, "950", "cat-office")

        alerts = await tracker.compute_budget_alerts(COMPANY, now=JAN_20)
        by_type = {a["type"]: a for a in alerts}

        overall = by_type["budget"]
        assert overall["id"] == f"budget-{budget.id}"
        assert overall["item_id"] is None
        assert overall["message"] == 'Budget "Office" has reached 95.0% of its total allocation'

        item = by_type["budget-item"]
        assert item["id"] == f"item-{budget.items[0].id}"
        assert item["item_name"] == "Supplies"
        assert item["message"] == (
            'Budget item "Supplies" in "Office" has reached 95.0% of its allocation'
        )

    @pytest.mark.asyncio
    async def test_threshold_and_severity_filter(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        await _budget(
            db, "Office", "1000",
            [{"category_id": "cat-office", "name": "Supplies", "amount": "1000"}],
        )
        await _expense(store, "850", "cat-office")

        assert await tracker.compute_budget_alerts(COMPANY, threshold=90, now=JAN_20) == []
        assert len(await tracker.compute_budget_alerts(COMPANY, threshold=80, now=JAN_20)) == 2
        assert await tracker.compute_budget_alerts(
            COMPANY, threshold=80, now=JAN_20, severity="critical"
        ) == []

    @pytest.mark.asyncio
    async def test_inactive_and_out_of_window_budgets_skipped(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker
    ) -> None:
        items = [{"category_id": "cat-office", "name": "Supplies", "amount": "100"}]
        await _budget(db, "Closed", "100", items, status="closed")
        await _budget(db, "February", "100", items, start_date="2024-02-01", end_date="2024-02-29")
        await _expense(store, "500", "cat-office")

        assert await tracker.compute_budget_alerts(COMPANY, now=JAN_20) == []

    @pytest.mark.asyncio
    async def test_pure_read(
        self, db: SQLiteAdapter, store: TransactionStore, tracker: BudgetTracker,
        sink: MockNotificationSink,
    ) -> None:
        """알림 계산은 알림을 만들지 않음"""
        await _budget(
            db, "Office", "100",
            [{"category_id": "cat-office", "name": "Supplies", "amount": "100"}],
        )
        await _expense(store, "500", "cat-office")

        await tracker.compute_budget_alerts(COMPANY, now=JAN_20)

        assert sink.notifications == []


class TestCreateAlertNotification:
    """알림 저장"""

    @pytest.mark.asyncio
    async def test_persists_for_caller(
        self, db: SQLiteAdapter, tracker: BudgetTracker, sink: MockNotificationSink
    ) -> None:
        budget = await _budget(db, "Office", "100", [])
        caller = OwnerCaller(user_id="user-1", company_id=COMPANY)

        notification = await tracker.create_alert_notification(COMPANY, caller, {
            "id": f"budget-{budget.id}",
            "budget_id": budget.id,
            "message": "Budget reached 150.0%",
            "severity": "critical",
        })

        assert notification.title == "Budget Alert: Critical"
        assert notification.type == "budget-alert"
        assert notification.recipient_id == "user-1"
        assert notification.recipient_type == "user"
        assert notification.action_url == f"/dashboard/finance/budgets?id={budget.id}"
        assert notification.metadata["alert_id"] == f"budget-{budget.id}"
        assert len(sink.notifications) == 1

    @pytest.mark.asyncio
    async def test_other_company_budget_rejected(
        self, db: SQLiteAdapter, tracker: BudgetTracker, sink: MockNotificationSink
    ) -> None:
        budget = await _budget(db, "Globex", "100", [], company_id="globex")
        caller = OwnerCaller(user_id="user-1", company_id=COMPANY)

        with pytest.raises(BudgetNotFound):
            await tracker.create_alert_notification(COMPANY, caller, {
                "id": "x", "budget_id": budget.id, "message": "m", "severity": "warning",
            })

        assert sink.notifications == []


class TestBudgetTracking:
    """track_transaction / compute_budget_tracking"""

    @pytest.mark.asyncio
    async def test_track_recategorizes_expense(
        self, db: SQLiteAdapter, tracker: BudgetTracker, store: TransactionStore
    ) -> None:
        budget = await _budget(db, "Jan", "500", [
            {"category_id": "cat-office", "name": "Supplies", "amount": "200"},
            {"category_id": "cat-travel", "name": "Trips", "amount": "300"},
        ])
        txn = await _expense(store, "150", None)

        result = await tracker.track_transaction(COMPANY, txn.id, budget.items[1].id)

        assert result["category_id"] == "cat-travel"
        assert result["spent"] == Decimal("150")
        assert result["remaining"] == Decimal("150")
        assert result["spent_percentage"] == Decimal("50.00")
        assert (await store.require(COMPANY, txn.id)).category_id == "cat-travel"

    @pytest.mark.asyncio
    async def test_track_rejects_income(
        self, db: SQLiteAdapter, tracker: BudgetTracker, store: TransactionStore
    ) -> None:
        budget = await _budget(db, "Jan", "200", [
            {"category_id": "cat-office", "name": "Supplies", "amount": "200"},
        ])
        txn = await _expense(store, "50", "cat-sales", type="income")

        with pytest.raises(ValidationError):
            await tracker.track_transaction(COMPANY, txn.id, budget.items[0].id)

        assert (await store.require(COMPANY, txn.id)).category_id == "cat-sales"

    @pytest.mark.asyncio
    async def test_track_rejects_uncategorized_item(
        self, db: SQLiteAdapter, tracker: BudgetTracker, store: TransactionStore
    ) -> None:
        budget = await _budget(db, "Jan", "200", [
            {"category_id": None, "name": "Misc", "amount": "200"},
        ])
        txn = await _expense(store, "50", "cat-office")

        with pytest.raises(ValidationError):
            await tracker.track_transaction(COMPANY, txn.id, budget.items[0].id)

    @pytest.mark.asyncio
    async def test_tracking_stats_sorted_by_percentage(
        self, db: SQLiteAdapter, tracker: BudgetTracker, store: TransactionStore
    ) -> None:
        budget = await _budget(db, "Jan", "1000", [
            {"category_id": "cat-office", "name": "Supplies", "amount": "500"},
            {"category_id": "cat-travel", "name": "Trips", "amount": "500"},
        ])
        await _expense(store, "100", "cat-office")
        await _expense(store, "475", "cat-travel")

        stats = await tracker.compute_budget_tracking(COMPANY, budget.id)

        assert stats["total_spent"] == Decimal("575")
        assert stats["remaining"] == Decimal("425")
        assert stats["spent_percentage"] == Decimal("57.50")
        assert stats["budget_status"] == "good"
        assert [i["name"] for i in stats["items"]] == ["Trips", "Supplies"]
        assert stats["items"][0]["spent_percentage"] == Decimal("95.00")
