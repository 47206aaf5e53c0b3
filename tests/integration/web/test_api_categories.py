"""카테고리 API 테스트"""

import httpx
import pytest

from tests.conftest import make_token

BASE = "/api/finance/categories"


class TestCategoryApi:
    """GET/POST/PUT/DELETE /categories"""

    @pytest.mark.asyncio
    async def test_list_filtered_by_type(
        self, client: httpx.AsyncClient, auth_headers: dict
    ) -> None:
        response = await client.get(BASE, headers=auth_headers, params={"type": "income"})

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == ["cat-sales"]

    @pytest.mark.asyncio
    async def test_create_and_get(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        created = await client.post(
            BASE, headers=auth_headers, json={"name": "Software", "type": "expense", "color": "#336699"}
        )

        assert created.status_code == 201
        fetched = await client.get(f"{BASE}/{created.json()['id']}", headers=auth_headers)
        assert fetched.json()["name"] == "Software"
        assert fetched.json()["color"] == "#336699"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.post(BASE, headers=auth_headers, json={"name": "Travel", "type": "expense"})

        assert response.status_code == 400
        assert response.json()["error"] == "A category with this name already exists"

    @pytest.mark.asyncio
    async def test_update(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.put(
            f"{BASE}/cat-travel", headers=auth_headers, json={"description": "Flights and hotels"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Travel"
        assert response.json()["description"] == "Flights and hotels"

    @pytest.mark.asyncio
    async def test_update_null_name_rejected(
        self, client: httpx.AsyncClient, auth_headers: dict
    ) -> None:
        response = await client.put(f"{BASE}/cat-travel", headers=auth_headers, json={"name": None})

        assert response.status_code == 400
        assert "name" in response.json()["details"]

    @pytest.mark.asyncio
    async def test_delete_unused(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        response = await client.delete(f"{BASE}/cat-travel", headers=auth_headers)

        assert response.json() == {"success": True, "id": "cat-travel"}
        missing = await client.get(f"{BASE}/cat-travel", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json()["code"] == "category_not_found"

    @pytest.mark.asyncio
    async def test_delete_in_use(self, client: httpx.AsyncClient, auth_headers: dict) -> None:
        await client.post(
            "/api/finance/transactions",
            headers=auth_headers,
            json={
                "date": "2024-01-10",
                "description": "Train",
                "amount": "40",
                "type": "expense",
                "category_id": "cat-travel",
            },
        )

        response = await client.delete(f"{BASE}/cat-travel", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Cannot delete category that is being used by transactions"

    @pytest.mark.asyncio
    async def test_other_company_hidden(self, client: httpx.AsyncClient) -> None:
        token = make_token({"sub": "user-9", "company_id": "globex", "type": "owner"})

        response = await client.get(f"{BASE}/cat-travel", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
