"""
재무 Ledger & 정산 엔진

계좌 잔액 불변식, 예산 집행 추적, 통화 환산, 리포트.

사용 예시:
```python
from core.ledger import AccountBalanceMaintainer, BudgetTracker, CurrencyService

currency = CurrencyService(db, cache=cache)
maintainer = AccountBalanceMaintainer(db, currency)

# 완료 거래 잔액 반영 (두 번째 호출은 False)
await maintainer.apply_transaction_to_balance(company_id, txn_id, account_id)

# 거래 이력으로 잔액 재계산
await maintainer.recalculate_account_balance(company_id, account_id)

# 예산 대비 실적
tracker = BudgetTracker(db, currency)
comparison = await tracker.compute_budget_comparison(company_id, budget_id)
```
"""

from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.balance import AccountBalanceMaintainer
from core.ledger.budget import BudgetTracker
from core.ledger.budget_store import BudgetStore
from core.ledger.company_store import CompanyStore
from core.ledger.currency import SUPPORTED_CURRENCIES, CurrencyService
from core.ledger.models import (
    Budget,
    BudgetCategory,
    BudgetItem,
    Company,
    FinancialAccount,
    InventoryItem,
    Project,
    RecurringSchedule,
    Sale,
    SaleItem,
    Transaction,
)
from core.ledger.recurring import RecurringProcessor
from core.ledger.recurring_store import RecurringStore
from core.ledger.reports import ReportService
from core.ledger.transaction_store import TransactionFilter, TransactionStore

__all__ = [
    # 핵심 서비스
    "AccountBalanceMaintainer",
    "BudgetTracker",
    "CurrencyService",
    "RecurringProcessor",
    "ReportService",
    # 저장소
    "AccountStore",
    "BudgetStore",
    "CategoryStore",
    "CompanyStore",
    "RecurringStore",
    "TransactionStore",
    "TransactionFilter",
    # 모델
    "Budget",
    "BudgetCategory",
    "BudgetItem",
    "Company",
    "FinancialAccount",
    "InventoryItem",
    "Project",
    "RecurringSchedule",
    "Sale",
    "SaleItem",
    "Transaction",
    # 상수
    "SUPPORTED_CURRENCIES",
]
