"""
프로젝트 재무 요약

프로젝트에 연결된 거래 합계와 프로젝트 예산 집행률.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Money
from core.ledger.budget import percent_of
from core.ledger.budget_store import BudgetStore
from core.ledger.company_store import CompanyStore
from core.ledger.currency import CurrencyService
from core.ledger.models import Budget, Project
from core.ledger.transaction_store import TransactionFilter, TransactionStore
from core.types import BudgetType, TransactionStatus, TransactionType

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


class ProjectFinanceService:
    """프로젝트 재무 요약 서비스

    금액은 회사 기본 통화로 환산.
    합계는 완료 거래만, transaction_count는 연결된 전체 거래 수.
    """

    def __init__(self, db: SQLiteAdapter, currency: CurrencyService | None = None):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.companies = CompanyStore(db)
        self.transactions = TransactionStore(db)
        self.budgets = BudgetStore(db)

    async def project_summary(self, company_id: str, project_id: str) -> dict[str, Any]:
        """프로젝트 재무 요약

        Raises:
            ProjectNotFound: 프로젝트가 없거나 다른 회사 소유
        """
        project = await self.companies.require_project(company_id, project_id)
        currency = await self.currency.get_company_default_currency(company_id)

        linked = await self.transactions.list(company_id, TransactionFilter(project_id=project_id))

        totals = {TransactionType.INCOME.value: Money.ZERO, TransactionType.EXPENSE.value: Money.ZERO}
        for txn in linked:
            if txn.status == TransactionStatus.COMPLETED.value:
                totals[txn.type] += self.currency.convert(txn.amount, txn.currency, currency)

        total_income = totals[TransactionType.INCOME.value]
        total_expenses = totals[TransactionType.EXPENSE.value]

        budget = await self._find_budget(company_id, project)
        budget_amount = Money.ZERO
        if budget is not None:
            budget_amount = self.currency.convert(budget.total_budget, budget.currency, currency)

        return {
            "project": {"id": project.id, "name": project.name},
            "currency": currency,
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_amount": total_income - total_expenses,
            "budget": budget,
            "budget_amount": budget_amount,
            "budget_utilization": percent_of(total_expenses, budget_amount),
            "transaction_count": len(linked),
            "recent_transactions": linked[:RECENT_LIMIT],
        }

    async def _find_budget(self, company_id: str, project: Project) -> Budget | None:
        """project_id로 연결된 예산, 없으면 이름에 프로젝트명이 들어간 project 유형 예산"""
        linked = await self.budgets.list_for_project(company_id, project.id)
        if linked:
            return linked[0]

        needle = project.name.lower()
        for budget in await self.budgets.list(company_id, budget_type=BudgetType.PROJECT.value):
            if needle in budget.name.lower():
                return budget
        return None
