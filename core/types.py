"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union


class TransactionType(str, Enum):
    """거래 유형 (수입 / 지출)"""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    """거래 상태

    COMPLETED 거래만 잔액과 예산 집행에 반영됨.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class AccountType(str, Enum):
    """금융 계좌 유형"""

    BANK = "bank"
    CASH = "cash"
    OTHER = "other"


# 동기화 대상 계좌 유형 (첫 번째 bank/cash 계좌 사용)
FUNDING_ACCOUNT_TYPES: tuple[str, ...] = (AccountType.BANK.value, AccountType.CASH.value)


class BudgetStatus(str, Enum):
    """예산 상태"""

    ACTIVE = "active"
    CLOSED = "closed"


class BudgetType(str, Enum):
    """예산 유형 (project 예산은 프로젝트 재무 요약에 사용)"""

    OPERATIONAL = "operational"
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    PROJECT = "project"


class BudgetHealth(str, Enum):
    """예산 대비 실적 상태"""

    GOOD = "good"
    WARNING = "warning"
    OVER_BUDGET = "over-budget"


class AlertSeverity(str, Enum):
    """예산 알림 심각도"""

    CRITICAL = "critical"
    WARNING = "warning"


class SaleStatus(str, Enum):
    """판매 문서 상태 (Sales 모듈 소유)"""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReportType(str, Enum):
    """재무 리포트 종류"""

    CASH_FLOW = "cash-flow"
    PROFIT_LOSS = "profit-loss"
    EXPENSES_BY_CATEGORY = "expenses-by-category"
    BALANCE_SHEET = "balance-sheet"


class RecurringFrequency(str, Enum):
    """반복 거래 주기"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurringStatus(str, Enum):
    """반복 거래 일정 상태

    ACTIVE만 처리 대상. 종료일을 넘기면 COMPLETED로 전환.
    """

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


# =========================================================================
# 호출자 식별 (요청당 1회 해석)
# =========================================================================


@dataclass(frozen=True)
class OwnerCaller:
    """회사 소유자 (제한 없음)"""

    user_id: str
    company_id: str
    kind: Literal["owner"] = "owner"

    @property
    def subject_id(self) -> str:
        return self.user_id

    @property
    def recipient_type(self) -> str:
        return "user"


@dataclass(frozen=True)
class EmployeeCaller:
    """직원 (역할/부서/권한 범위)"""

    employee_id: str
    company_id: str
    role: str = "employee"
    department: str = ""
    permissions: tuple[str, ...] = field(default_factory=tuple)
    kind: Literal["employee"] = "employee"

    @property
    def subject_id(self) -> str:
        return self.employee_id

    @property
    def recipient_type(self) -> str:
        return "employee"


Caller = Union[OwnerCaller, EmployeeCaller]
