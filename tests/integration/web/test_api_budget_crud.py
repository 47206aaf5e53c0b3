"""예산/예산 항목 CRUD API 테스트

생성 검증(항목 합계), 항목 upsert, 항목 단건 CRUD, 집행 추적, 변경 알림.
"""

from decimal import Decimal

import httpx
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.notification_store import NotificationStore
from tests.conftest import make_token

BASE = "/api/finance/budgets"


def _budget_body(**overrides) -> dict:
    body = {
        "name": "Q1 Operations",
        "start_date": "2024-01-01",
        "end_date": "2024-03-31",
        "total_budget": "1000",
        "items": [
            {"name": "Office", "amount": "600", "category_id": "cat-office"},
            {"name": "Travel", "amount": "400", "category_id": "cat-travel"},
        ],
    }
    body.update(overrides)
    return body


async def _create_budget(client: httpx.AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post(BASE, headers=headers, json=_budget_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateBudgetApi:
    """POST /budgets"""

    @pytest.mark.asyncio
    async def test_create_defaults_company_currency(
        self, client: httpx.AsyncClient, auth_headers: dict
    ) -> None:
        budget = await _create_budget(client, auth_headers)

        assert budget["currency"] == "USD"
        assert budget["type"] == "operational"
        assert budget["status"] == "active"
        assert [i["name"] for i in budget["items"]] == ["Office", "Travel"]

    @pytest.mark.asyncio
    async def test_item_sum_mismatch(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.post(BASE, headers=auth_headers, json=_budget_body(total_budget="900"))

        assert response.status_code == 400
        assert response.json()["error"] == "The sum of all budget items must equal the total budget"

    @pytest.mark.asyncio
    async def test_empty_items(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.post(BASE, headers=auth_headers, json=_budget_body(items=[]))

        assert response.status_code == 400
        assert "items" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_no_category_sentinel(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(
            client,
            auth_headers,
            total_budget="50",
            items=[{"name": "Misc", "amount": "50", "category_id": "none"}],
        )

        assert budget["items"][0]["category_id"] is None

    @pytest.mark.asyncio
    async def test_unknown_category(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            BASE,
            headers=auth_headers,
            json=_budget_body(
                total_budget="10",
                items=[{"name": "Ghost", "amount": "10", "category_id": "cat-missing"}],
            ),
        )

        assert response.status_code == 400
        assert "items.0.category_id" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_created_notification(
        self, client: httpx.AsyncClient, auth_headers: dict, db: SQLiteAdapter
    ) -> None:
        budget = await _create_budget(client, auth_headers)

        stored = await NotificationStore(db).list_for_company("acme", recipient_id="user-1")
        assert [n.title for n in stored] == ["New Budget Created"]
        assert stored[0].related_item_id == budget["id"]


class TestListBudgetApi:
    """GET /budgets"""

    @pytest.mark.asyncio
    async def test_filters(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        await _create_budget(client, auth_headers, name="Q1")
        await _create_budget(
            client, auth_headers, name="Launch", type="project",
            start_date="2024-04-01", end_date="2024-06-30",
        )

        projects = await client.get(BASE, headers=auth_headers, params={"type": "project"})
        active = await client.get(BASE, headers=auth_headers, params={"active_on": "2024-02-15"})

        assert [b["name"] for b in projects.json()] == ["Launch"]
        assert [b["name"] for b in active.json()] == ["Q1"]

    @pytest.mark.asyncio
    async def test_other_company_empty(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        await _create_budget(client, auth_headers)
        token = make_token({"sub": "user-9", "company_id": "globex", "type": "owner"})

        response = await client.get(BASE, headers={"Authorization": f"Bearer {token}"})

        assert response.json() == []


class TestUpdateBudgetApi:
    """PUT/DELETE /budgets/{id}"""

    @pytest.mark.asyncio
    async def test_items_upsert_recomputes_total(
        self, client: httpx.AsyncClient, auth_headers: dict
    ) -> None:
        budget = await _create_budget(client, auth_headers)
        office = next(i for i in budget["items"] if i["name"] == "Office")

        response = await client.put(
            f"{BASE}/{budget['id']}",
            headers=auth_headers,
            json={
                "name": "Q1 Ops",
                "items": [
                    {"id": office["id"], "name": "Office", "amount": "700", "category_id": "cat-office"},
                    {"name": "Training", "amount": "100"},
                ],
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Q1 Ops"
        assert Decimal(body["total_budget"]) == Decimal("1200")
        assert {i["name"] for i in body["items"]} == {"Office", "Travel", "Training"}

    @pytest.mark.asyncio
    async def test_unknown_item_id(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(client, auth_headers)

        response = await client.put(
            f"{BASE}/{budget['id']}",
            headers=auth_headers,
            json={"items": [{"id": "item-x", "name": "X", "amount": "1"}]},
        )

        assert response.status_code == 400
        assert "items.0.id" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_null_for_required_field_rejected(
        self, client: httpx.AsyncClient, auth_headers: dict
    ) -> None:
        budget = await _create_budget(client, auth_headers)

        response = await client.put(f"{BASE}/{budget['id']}", headers=auth_headers, json={"end_date": None})

        assert response.status_code == 400
        assert "end_date" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_reversed_window(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(client, auth_headers)

        response = await client.put(
            f"{BASE}/{budget['id']}", headers=auth_headers, json={"end_date": "2023-12-31"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete(
        self, client: httpx.AsyncClient, auth_headers: dict, db: SQLiteAdapter
    ) -> None:
        budget = await _create_budget(client, auth_headers)

        response = await client.delete(f"{BASE}/{budget['id']}", headers=auth_headers)

        assert response.json() == {"success": True, "id": budget["id"]}
        assert (await client.get(f"{BASE}/{budget['id']}", headers=auth_headers)).status_code == 404
        stored = await NotificationStore(db).list_for_company("acme", recipient_id="user-1")
        assert stored[0].title == "Budget Deleted"


class TestBudgetItemApi:
    """/budgets/items"""

    @pytest.mark.asyncio
    async def test_add_update_delete(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(client, auth_headers)

        added = await client.post(
            f"{BASE}/items",
            headers=auth_headers,
            json={"budget_id": budget["id"], "name": "Inventory", "amount": "250", "category_id": "cat-inventory"},
        )
        assert added.status_code == 201
        item_id = added.json()["id"]

        updated = await client.put(f"{BASE}/items/{item_id}", headers=auth_headers, json={"amount": "300"})
        assert Decimal(updated.json()["amount"]) == Decimal("300")

        fetched = await client.get(f"{BASE}/{budget['id']}", headers=auth_headers)
        assert Decimal(fetched.json()["total_budget"]) == Decimal("1300")

        deleted = await client.delete(f"{BASE}/items/{item_id}", headers=auth_headers)
        assert deleted.json() == {"success": True, "id": item_id}
        after = await client.get(f"{BASE}/{budget['id']}", headers=auth_headers)
        assert Decimal(after.json()["total_budget"]) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_missing_item(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.get(f"{BASE}/items/item-missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "budget_item_not_found"

    @pytest.mark.asyncio
    async def test_add_to_unknown_budget(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.post(
            f"{BASE}/items", headers=auth_headers, json={"budget_id": "b-x", "name": "X", "amount": "1"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "budget_not_found"


class TestBudgetTrackApi:
    """GET/POST /budgets/track"""

    @pytest.mark.asyncio
    async def test_track_expense(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(client, auth_headers)
        travel = next(i for i in budget["items"] if i["name"] == "Travel")
        txn = await client.post(
            "/api/finance/transactions",
            headers=auth_headers,
            json={
                "date": "2024-02-10",
                "description": "Conference flight",
                "amount": "100",
                "type": "expense",
                "status": "completed",
                "account_id": "acc-bank",
            },
        )

        tracked = await client.post(
            f"{BASE}/track",
            headers=auth_headers,
            json={"transaction_id": txn.json()["id"], "budget_item_id": travel["id"]},
        )
        summary = await client.get(f"{BASE}/track", headers=auth_headers, params={"budget_id": budget["id"]})

        assert tracked.status_code == 200
        assert tracked.json()["category_id"] == "cat-travel"
        assert Decimal(tracked.json()["remaining"]) == Decimal("300")
        assert Decimal(summary.json()["total_spent"]) == Decimal("100")
        assert summary.json()["items"][0]["name"] == "Travel"

    @pytest.mark.asyncio
    async def test_track_income_rejected(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        budget = await _create_budget(client, auth_headers)
        txn = await client.post(
            "/api/finance/transactions",
            headers=auth_headers,
            json={"date": "2024-02-10", "description": "Refund", "amount": "10", "type": "income"},
        )

        response = await client.post(
            f"{BASE}/track",
            headers=auth_headers,
            json={"transaction_id": txn.json()["id"], "budget_item_id": budget["items"][0]["id"]},
        )

        assert response.status_code == 400
