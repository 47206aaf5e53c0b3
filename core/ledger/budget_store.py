"""
예산 저장소

예산 헤더 + 항목(BudgetItem) 저장/조회.
집행액(spent)은 저장하지 않으며 BudgetTracker가 조회 시 계산.

total_budget 유지 규칙:
    항목 추가/수정/삭제 시 total_budget을 항목 금액 변화만큼 조정.
    update()에 items를 주면 total_budget = Σ items.amount 로 다시 계산.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from core.errors import BudgetItemNotFound, BudgetNotFound, ValidationError
from core.ledger.models import Budget, BudgetItem
from core.types import BudgetStatus
from core.utils.timezone import date_str, now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_BUDGET_SELECT = f"SELECT {', '.join(Budget.COLUMNS)} FROM budget"
_ITEM_SELECT = f"SELECT {', '.join(BudgetItem.COLUMNS)} FROM budget_item"

# update()로 변경 가능한 예산 헤더 컬럼
UPDATABLE_FIELDS = frozenset({
    "name",
    "type",
    "status",
    "start_date",
    "end_date",
    "total_budget",
    "currency",
    "description",
    "project_id",
})


def _check_window(start: str, end: str) -> None:
    if end < start:
        raise ValidationError(
            "Budget end date precedes start date",
            details={"end_date": "must be on or after start_date"},
        )


class BudgetStore:
    """예산 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        company_id: str,
        name: str,
        start_date: Any,
        end_date: Any,
        total_budget: Decimal,
        currency: str,
        items: list[dict[str, Any]] | None = None,
        budget_type: str = "operational",
        status: str = BudgetStatus.ACTIVE.value,
        budget_id: str | None = None,
        description: str | None = None,
        project_id: str | None = None,
    ) -> Budget:
        """예산 생성

        Args:
            items: [{"category_id", "name", "amount"}] (순서 유지)
        """
        start = date_str(start_date)
        end = date_str(end_date)
        _check_window(start, end)

        budget = Budget(
            id=budget_id or str(uuid4()),
            company_id=company_id,
            name=name,
            type=budget_type,
            status=status,
            start_date=start,
            end_date=end,
            total_budget=Decimal(str(total_budget)),
            currency=currency.upper(),
            description=description,
            project_id=project_id,
        )

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO budget (
                    id, company_id, name, type, status, start_date, end_date,
                    total_budget, currency, description, project_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    budget.id,
                    company_id,
                    name,
                    budget_type,
                    status,
                    start,
                    end,
                    str(budget.total_budget),
                    budget.currency,
                    description,
                    project_id,
                    now_utc_iso(),
                ),
            )

            for raw in items or []:
                budget.items.append(await self._insert_item(budget.id, raw))

        logger.info(f"예산 생성: {budget.id} ({name}, {start}~{end}, items={len(budget.items)})")
        return budget

    async def get(self, company_id: str, budget_id: str) -> Budget | None:
        """회사 소유 예산 조회 (항목 포함, 다른 회사 소유면 None)"""
        row = await self.db.fetchone(
            f"{_BUDGET_SELECT} WHERE id = ? AND company_id = ?",
            (budget_id, company_id),
        )
        if row is None:
            return None
        budget = Budget.from_row(row)
        budget.items = await self._get_items(budget.id)
        return budget

    async def require(self, company_id: str, budget_id: str) -> Budget:
        budget = await self.get(company_id, budget_id)
        if budget is None:
            raise BudgetNotFound(f"Budget not found: {budget_id}")
        return budget

    async def list(
        self,
        company_id: str,
        budget_type: str | None = None,
        status: str | None = None,
        active_on: Any = None,
    ) -> list[Budget]:
        """예산 목록 (시작일 내림차순, 항목 포함)

        Args:
            active_on: 주어지면 기간에 이 날짜가 포함된 예산만
        """
        clauses = ["company_id = ?"]
        params: list[Any] = [company_id]
        if budget_type:
            clauses.append("type = ?")
            params.append(budget_type)
        if status:
            clauses.append("status = ?")
            params.append(status)
        if active_on is not None:
            day = date_str(active_on)
            clauses.append("start_date <= ? AND end_date >= ?")
            params.extend([day, day])

        rows = await self.db.fetchall(
            f"{_BUDGET_SELECT} WHERE {' AND '.join(clauses)} ORDER BY start_date DESC, name",
            tuple(params),
        )
        budgets = [Budget.from_row(row) for row in rows]
        for budget in budgets:
            budget.items = await self._get_items(budget.id)
        return budgets

    async def list_active(self, company_id: str, on_date: Any) -> list[Budget]:
        """기간에 on_date가 포함된 active 예산 목록 (항목 포함)"""
        day = date_str(on_date)
        rows = await self.db.fetchall(
            f"""
            {_BUDGET_SELECT}
            WHERE company_id = ? AND status = ?
              AND start_date <= ? AND end_date >= ?
            ORDER BY start_date, name
            """,
            (company_id, BudgetStatus.ACTIVE.value, day, day),
        )
        budgets = [Budget.from_row(row) for row in rows]
        for budget in budgets:
            budget.items = await self._get_items(budget.id)
        return budgets

    async def list_for_project(self, company_id: str, project_id: str) -> list[Budget]:
        """프로젝트에 연결된 예산 (시작일 내림차순)"""
        rows = await self.db.fetchall(
            f"{_BUDGET_SELECT} WHERE company_id = ? AND project_id = ? ORDER BY start_date DESC",
            (company_id, project_id),
        )
        return [Budget.from_row(row) for row in rows]

    async def update(
        self,
        company_id: str,
        budget_id: str,
        items: list[dict[str, Any]] | None = None,
        **fields: Any,
    ) -> Budget:
        """예산 헤더 수정 + 항목 upsert

        items의 각 항목은 id가 있으면 해당 항목 수정, 없으면 새 항목 추가.
        목록에 없는 기존 항목은 유지. items가 주어지면 total_budget은 항목 합계.

        Raises:
            BudgetNotFound: 예산이 없거나 다른 회사 소유
            ValidationError: 변경 불가 필드, 기간 역전, 모르는 항목 ID
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown budget fields",
                details={name: "not updatable" for name in sorted(unknown)},
            )

        async with self.db.transaction():
            current = await self.require(company_id, budget_id)

            values: dict[str, Any] = dict(fields)
            for name in ("start_date", "end_date"):
                if name in values:
                    values[name] = date_str(values[name])
            if "total_budget" in values:
                values["total_budget"] = str(Decimal(str(values["total_budget"])))
            if "currency" in values:
                values["currency"] = str(values["currency"]).upper()
            _check_window(
                values.get("start_date", current.start_date),
                values.get("end_date", current.end_date),
            )

            if items:
                existing = {item.id for item in current.items}
                for i, raw in enumerate(items):
                    item_id = raw.get("id")
                    if item_id is None:
                        await self._insert_item(budget_id, raw)
                    elif item_id in existing:
                        await self._update_item_row(item_id, raw)
                    else:
                        raise ValidationError(
                            "Unknown budget item",
                            details={f"items.{i}.id": f"not an item of this budget: {item_id}"},
                        )
                values["total_budget"] = str(await self._items_total(budget_id))

            if values:
                assignments = ", ".join(f"{name} = ?" for name in values)
                await self.db.execute(
                    f"UPDATE budget SET {assignments} WHERE id = ? AND company_id = ?",
                    (*values.values(), budget_id, company_id),
                )

        logger.info(f"예산 수정: {budget_id} ({', '.join(values) or '변경 없음'})")
        return await self.require(company_id, budget_id)

    async def delete(self, company_id: str, budget_id: str) -> Budget:
        """예산 삭제 (항목은 CASCADE)

        Returns:
            삭제된 예산 (알림 메시지용)
        """
        budget = await self.require(company_id, budget_id)
        async with self.db.transaction():
            await self.db.execute("DELETE FROM budget_item WHERE budget_id = ?", (budget_id,))
            await self.db.execute(
                "DELETE FROM budget WHERE id = ? AND company_id = ?",
                (budget_id, company_id),
            )
        logger.info(f"예산 삭제: {budget_id} ({budget.name})")
        return budget

    # -------------------------------------------------------------------------
    # 예산 항목
    # -------------------------------------------------------------------------

    async def get_item(self, company_id: str, item_id: str) -> BudgetItem | None:
        """회사 소유 예산의 항목 조회"""
        row = await self.db.fetchone(
            f"""
            SELECT {', '.join(f'i.{c}' for c in BudgetItem.COLUMNS)}
            FROM budget_item i JOIN budget b ON b.id = i.budget_id
            WHERE i.id = ? AND b.company_id = ?
            """,
            (item_id, company_id),
        )
        return BudgetItem.from_row(row) if row else None

    async def require_item(self, company_id: str, item_id: str) -> BudgetItem:
        item = await self.get_item(company_id, item_id)
        if item is None:
            raise BudgetItemNotFound(f"Budget item not found: {item_id}")
        return item

    async def add_item(
        self,
        company_id: str,
        budget_id: str,
        name: str,
        amount: Decimal,
        category_id: str | None = None,
    ) -> BudgetItem:
        """항목 추가 (total_budget += amount)

        Raises:
            BudgetNotFound: 예산이 없거나 다른 회사 소유
        """
        async with self.db.transaction():
            await self.require(company_id, budget_id)
            item = await self._insert_item(
                budget_id, {"name": name, "amount": amount, "category_id": category_id}
            )
            await self._adjust_total(budget_id, item.amount)

        logger.info(f"예산 항목 추가: budget={budget_id} item={item.id} ({name}, {item.amount})")
        return item

    async def update_item(self, company_id: str, item_id: str, **fields: Any) -> BudgetItem:
        """항목 수정 (금액이 바뀌면 total_budget도 차액만큼 조정)

        Raises:
            BudgetItemNotFound: 항목이 없거나 다른 회사 예산 소유
        """
        async with self.db.transaction():
            current = await self.require_item(company_id, item_id)
            await self._update_item_row(item_id, fields)
            if fields.get("amount") is not None:
                delta = Decimal(str(fields["amount"])) - current.amount
                if delta:
                    await self._adjust_total(current.budget_id, delta)

        return await self.require_item(company_id, item_id)

    async def delete_item(self, company_id: str, item_id: str) -> BudgetItem:
        """항목 삭제 (total_budget -= amount)"""
        async with self.db.transaction():
            item = await self.require_item(company_id, item_id)
            await self.db.execute("DELETE FROM budget_item WHERE id = ?", (item_id,))
            await self._adjust_total(item.budget_id, -item.amount)

        logger.info(f"예산 항목 삭제: budget={item.budget_id} item={item_id}")
        return item

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _get_items(self, budget_id: str) -> list[BudgetItem]:
        rows = await self.db.fetchall(
            f"{_ITEM_SELECT} WHERE budget_id = ? ORDER BY line_order",
            (budget_id,),
        )
        return [BudgetItem.from_row(row) for row in rows]

    async def _insert_item(self, budget_id: str, raw: dict[str, Any]) -> BudgetItem:
        item = BudgetItem(
            id=raw.get("id") or str(uuid4()),
            budget_id=budget_id,
            category_id=raw.get("category_id"),
            name=raw["name"],
            amount=Decimal(str(raw["amount"])),
        )
        await self.db.execute(
            """
            INSERT INTO budget_item (id, budget_id, category_id, name, amount, line_order)
            VALUES (
                ?, ?, ?, ?, ?,
                (SELECT COALESCE(MAX(line_order), -1) + 1 FROM budget_item WHERE budget_id = ?)
            )
            """,
            (item.id, budget_id, item.category_id, item.name, str(item.amount), budget_id),
        )
        return item

    async def _update_item_row(self, item_id: str, raw: dict[str, Any]) -> None:
        values: dict[str, Any] = {}
        for name in ("name", "category_id", "amount"):
            if name in raw:
                values[name] = str(Decimal(str(raw[name]))) if name == "amount" else raw[name]
        if not values:
            return
        assignments = ", ".join(f"{name} = ?" for name in values)
        await self.db.execute(
            f"UPDATE budget_item SET {assignments} WHERE id = ?",
            (*values.values(), item_id),
        )

    async def _items_total(self, budget_id: str) -> Decimal:
        rows = await self.db.fetchall(
            "SELECT amount FROM budget_item WHERE budget_id = ?", (budget_id,)
        )
        return sum((Decimal(row[0]) for row in rows), Decimal("0"))

    async def _adjust_total(self, budget_id: str, delta: Decimal) -> None:
        row = await self.db.fetchone("SELECT total_budget FROM budget WHERE id = ?", (budget_id,))
        if row is None:
            raise BudgetNotFound(f"Budget not found: {budget_id}")
        await self.db.execute(
            "UPDATE budget SET total_budget = ? WHERE id = ?",
            (str(Decimal(row[0]) + delta), budget_id),
        )
