"""
예산 서비스

예산/항목 생성·수정·삭제와 호출자 알림.
항목 카테고리는 회사 소유 확인, 알림 실패는 예산 변경을 되돌리지 않음.
"""

import logging
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import INotificationSink
from adapters.models import NotificationPayload
from core.errors import UnsupportedCurrency, ValidationError
from core.ledger.account_store import CategoryStore
from core.ledger.budget_store import BudgetStore
from core.ledger.company_store import CompanyStore
from core.ledger.currency import CurrencyService
from core.ledger.models import Budget, BudgetItem
from core.types import Caller

logger = logging.getLogger(__name__)

# 항목 합계와 total_budget 허용 오차
TOTAL_TOLERANCE = Decimal("0.01")


class BudgetService:
    """예산 서비스

    Args:
        db: SQLite 어댑터
        currency: 통화 서비스 (통화 생략 시 회사 기본 통화)
        sink: 알림 싱크 (None이면 알림 생략)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        currency: CurrencyService | None = None,
        sink: INotificationSink | None = None,
    ):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.sink = sink
        self.store = BudgetStore(db)
        self.categories = CategoryStore(db)
        self.companies = CompanyStore(db)

    async def list_budgets(self, company_id: str, **filters: Any) -> list[Budget]:
        return await self.store.list(company_id, **filters)

    async def create_budget(
        self,
        company_id: str,
        caller: Caller,
        items: list[dict[str, Any]],
        **fields: Any,
    ) -> Budget:
        """예산 생성

        Raises:
            ValidationError: 항목 없음, 항목 합계 불일치, 카테고리 없음
            ProjectNotFound: project_id가 다른 회사 소유
            UnsupportedCurrency: 지원하지 않는 통화
        """
        if not items:
            raise ValidationError(
                "At least one budget item is required",
                details={"items": "must not be empty"},
            )
        total = Decimal(str(fields["total_budget"]))
        item_sum = sum((Decimal(str(item["amount"])) for item in items), Decimal("0"))
        if abs(item_sum - total) > TOTAL_TOLERANCE:
            raise ValidationError(
                "The sum of all budget items must equal the total budget",
                details={"items": f"sum {item_sum} != total_budget {total}"},
            )
        await self._check_item_categories(company_id, items)
        await self._check_project(company_id, fields.get("project_id"))
        fields["currency"] = await self._resolve_currency(company_id, fields.get("currency"))

        budget = await self.store.create(company_id=company_id, items=items, **fields)
        await self._notify(caller, budget, "New Budget Created", f'Budget "{budget.name}" has been created')
        return budget

    async def update_budget(
        self,
        company_id: str,
        caller: Caller,
        budget_id: str,
        items: list[dict[str, Any]] | None = None,
        **fields: Any,
    ) -> Budget:
        """예산 수정 (items가 있으면 upsert 후 total_budget = Σ items)"""
        if items:
            await self._check_item_categories(company_id, items)
        await self._check_project(company_id, fields.get("project_id"))
        if fields.get("currency") is not None:
            fields["currency"] = await self._resolve_currency(company_id, fields["currency"])

        budget = await self.store.update(company_id, budget_id, items=items, **fields)
        await self._notify(caller, budget, "Budget Updated", f'Budget "{budget.name}" has been updated')
        return budget

    async def delete_budget(self, company_id: str, caller: Caller, budget_id: str) -> None:
        budget = await self.store.delete(company_id, budget_id)
        await self._notify(caller, budget, "Budget Deleted", f'Budget "{budget.name}" has been deleted')

    # -------------------------------------------------------------------------
    # 항목
    # -------------------------------------------------------------------------

    async def get_item(self, company_id: str, item_id: str) -> BudgetItem:
        return await self.store.require_item(company_id, item_id)

    async def add_item(self, company_id: str, budget_id: str, **fields: Any) -> BudgetItem:
        await self._check_item_categories(company_id, [fields], prefix=None)
        return await self.store.add_item(company_id, budget_id, **fields)

    async def update_item(self, company_id: str, item_id: str, **fields: Any) -> BudgetItem:
        await self._check_item_categories(company_id, [fields], prefix=None)
        return await self.store.update_item(company_id, item_id, **fields)

    async def delete_item(self, company_id: str, item_id: str) -> BudgetItem:
        return await self.store.delete_item(company_id, item_id)

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _check_item_categories(
        self,
        company_id: str,
        items: list[dict[str, Any]],
        prefix: str | None = "items",
    ) -> None:
        for i, item in enumerate(items):
            category_id = item.get("category_id")
            if category_id and await self.categories.get(company_id, category_id) is None:
                key = f"{prefix}.{i}.category_id" if prefix else "category_id"
                raise ValidationError(
                    "Unknown category",
                    details={key: f"category not found: {category_id}"},
                )

    async def _check_project(self, company_id: str, project_id: str | None) -> None:
        if project_id:
            await self.companies.require_project(company_id, project_id)

    async def _resolve_currency(self, company_id: str, currency: str | None) -> str:
        if currency is None:
            return await self.currency.get_company_default_currency(company_id)
        code = currency.upper()
        if not self.currency.is_supported(code):
            raise UnsupportedCurrency(code)
        return code

    async def _notify(self, caller: Caller, budget: Budget, title: str, message: str) -> None:
        """예산 변경 알림 (실패해도 예산 변경은 유지)"""
        if self.sink is None:
            return
        try:
            await self.sink.create_notification(NotificationPayload(
                company_id=budget.company_id,
                title=title,
                message=message,
                type="info",
                category="finance",
                recipient_id=caller.subject_id,
                recipient_type=caller.recipient_type,
                related_item_id=budget.id,
                related_item_type="budget",
                action_url=f"/dashboard/finance/budgets?id={budget.id}",
            ))
        except Exception:
            logger.exception(f"예산 알림 저장 실패: {title} ({budget.id})")
