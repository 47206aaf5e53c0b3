"""프로젝트 재무 요약 API 테스트"""

from decimal import Decimal

import httpx
import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.company_store import CompanyStore

BASE = "/api/finance/projects/summary"


async def _linked_transaction(client: httpx.AsyncClient, headers: dict, **fields) -> dict:
    body = {"date": "2024-02-01", "account_id": "acc-bank", "status": "completed"}
    body.update(fields)
    created = await client.post("/api/finance/transactions", headers=headers, json=body)
    assert created.status_code == 201, created.text
    linked = await client.post(
        "/api/finance/transactions/link-project",
        headers=headers,
        json={"transaction_id": created.json()["id"], "project_id": "prj-1"},
    )
    assert linked.status_code == 200
    return linked.json()


class TestProjectSummaryApi:
    """GET /projects/summary"""

    @pytest.mark.asyncio
    async def test_summary_with_budget(
        self, client: httpx.AsyncClient, auth_headers: dict, db: SQLiteAdapter
    ) -> None:
        await CompanyStore(db).create_project("acme", "Office Move", project_id="prj-1")
        await client.post(
            "/api/finance/budgets",
            headers=auth_headers,
            json={
                "name": "Office Move Budget",
                "type": "project",
                "start_date": "2024-01-01",
                "end_date": "2024-12-31",
                "total_budget": "1000",
                "items": [{"name": "Movers", "amount": "1000"}],
            },
        )
        await _linked_transaction(
            client, auth_headers, description="Movers", amount="250", type="expense"
        )
        await _linked_transaction(
            client, auth_headers, description="Deposit back", amount="100", type="income"
        )
        await _linked_transaction(
            client, auth_headers, description="Quote", amount="999", type="expense", status="pending"
        )

        response = await client.get(BASE, headers=auth_headers, params={"project_id": "prj-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["project"] == {"id": "prj-1", "name": "Office Move"}
        assert Decimal(body["total_expenses"]) == Decimal("250")
        assert Decimal(body["total_income"]) == Decimal("100")
        assert Decimal(body["net_amount"]) == Decimal("-150")
        assert body["budget"]["name"] == "Office Move Budget"
        assert Decimal(body["budget_utilization"]) == Decimal("25")
        assert body["transaction_count"] == 3
        assert len(body["recent_transactions"]) == 3

    @pytest.mark.asyncio
    async def test_summary_without_budget(
        self, client: httpx.AsyncClient, auth_headers: dict, db: SQLiteAdapter
    ) -> None:
        await CompanyStore(db).create_project("acme", "Office Move", project_id="prj-1")

        response = await client.get(BASE, headers=auth_headers, params={"project_id": "prj-1"})

        body = response.json()
        assert body["budget"] is None
        assert Decimal(body["budget_utilization"]) == Decimal("0")
        assert body["transaction_count"] == 0

    @pytest.mark.asyncio
    async def test_other_company_project(
        self, client: httpx.AsyncClient, auth_headers: dict, db: SQLiteAdapter
    ) -> None:
        await CompanyStore(db).create_project("globex", "Secret", project_id="prj-g")

        response = await client.get(BASE, headers=auth_headers, params={"project_id": "prj-g"})

        assert response.status_code == 404
        assert response.json()["code"] == "project_not_found"
