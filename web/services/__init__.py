"""
Web 서비스 패키지

비즈니스 로직 처리
"""

from web.services.budget_service import BudgetService
from web.services.project_service import ProjectFinanceService
from web.services.recurring_service import RecurringService
from web.services.transaction_service import TransactionService

__all__ = [
    "BudgetService",
    "ProjectFinanceService",
    "RecurringService",
    "TransactionService",
]
