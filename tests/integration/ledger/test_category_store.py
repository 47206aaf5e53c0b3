"""CategoryStore 관리 기능 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import CategoryNotFound, ValidationError
from core.ledger.account_store import CategoryStore
from core.ledger.budget_store import BudgetStore
from core.ledger.recurring_store import RecurringStore
from core.ledger.transaction_store import TransactionStore

COMPANY = "acme"


@pytest.fixture
def categories(db: SQLiteAdapter, seed) -> CategoryStore:
    return CategoryStore(db)


class TestCreateCategory:
    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, categories: CategoryStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await categories.create(COMPANY, "Travel", "expense")

        assert exc_info.value.message == "A category with this name already exists"

    @pytest.mark.asyncio
    async def test_same_name_other_company_allowed(self, categories: CategoryStore) -> None:
        category = await categories.create("globex", "Travel", "expense")

        assert category.company_id == "globex"

    @pytest.mark.asyncio
    async def test_invalid_type(self, categories: CategoryStore) -> None:
        with pytest.raises(ValidationError):
            await categories.create(COMPANY, "Transfers", "transfer")


class TestUpdateCategory:
    @pytest.mark.asyncio
    async def test_partial_update(self, categories: CategoryStore) -> None:
        updated = await categories.update(COMPANY, "cat-travel", color="#3b82f6")

        assert updated.color == "#3b82f6"
        assert updated.name == "Travel"

    @pytest.mark.asyncio
    async def test_rename_to_existing_rejected(self, categories: CategoryStore) -> None:
        with pytest.raises(ValidationError):
            await categories.update(COMPANY, "cat-travel", name="Office Supplies")

    @pytest.mark.asyncio
    async def test_rename_to_same_name_allowed(self, categories: CategoryStore) -> None:
        updated = await categories.update(COMPANY, "cat-travel", name="Travel", description="Trips")

        assert updated.description == "Trips"

    @pytest.mark.asyncio
    async def test_other_company(self, categories: CategoryStore) -> None:
        with pytest.raises(CategoryNotFound):
            await categories.update("globex", "cat-travel", name="Mine")


class TestDeleteCategory:
    @pytest.mark.asyncio
    async def test_unused_deleted(self, categories: CategoryStore) -> None:
        await categories.delete(COMPANY, "cat-travel")

        assert await categories.get(COMPANY, "cat-travel") is None

    @pytest.mark.asyncio
    async def test_used_by_transaction(self, db: SQLiteAdapter, categories: CategoryStore) -> None:
        await TransactionStore(db).create(
            company_id=COMPANY,
            date="2024-01-10",
            description="Taxi",
            amount=Decimal("20"),
            currency="USD",
            type="expense",
            category_id="cat-travel",
        )

        with pytest.raises(ValidationError) as exc_info:
            await categories.delete(COMPANY, "cat-travel")

        assert exc_info.value.message == "Cannot delete category that is being used by transactions"
        assert await categories.get(COMPANY, "cat-travel") is not None

    @pytest.mark.asyncio
    async def test_used_by_budget_item(self, db: SQLiteAdapter, categories: CategoryStore) -> None:
        await BudgetStore(db).create(
            COMPANY, "Trips", "2024-01-01", "2024-12-31", Decimal("100"), "USD",
            items=[{"category_id": "cat-travel", "name": "Trips", "amount": "100"}],
        )

        with pytest.raises(ValidationError) as exc_info:
            await categories.delete(COMPANY, "cat-travel")

        assert "budget items" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_used_by_recurring(self, db: SQLiteAdapter, categories: CategoryStore) -> None:
        await RecurringStore(db).create(
            company_id=COMPANY,
            name="Commute pass",
            frequency="monthly",
            start_date="2024-01-01",
            next_due_date="2024-01-01",
            amount=Decimal("80"),
            type="expense",
            account_id="acc-bank",
            category_id="cat-travel",
        )

        with pytest.raises(ValidationError) as exc_info:
            await categories.delete(COMPANY, "cat-travel")

        assert "recurring transactions" in exc_info.value.message
