"""
재무 엔티티 모델

DB 행 ↔ 도메인 객체 변환.
금액 필드는 모두 Decimal (DB에는 TEXT로 저장).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Sequence


def _dec(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def row_to_dict(columns: Sequence[str], row: Sequence[Any]) -> dict[str, Any]:
    """SELECT 컬럼 목록과 행 튜플을 dict로 변환"""
    return dict(zip(columns, row))


def to_json_dict(obj: Any) -> dict[str, Any]:
    """dataclass → JSON 직렬화 가능한 dict (Decimal은 문자열)"""
    data = asdict(obj)
    return {k: jsonable(v) for k, v in data.items()}


def jsonable(value: Any) -> Any:
    """Decimal을 문자열로 바꾼 JSON 직렬화 가능 값 (dict/list 재귀)"""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    return value


# =========================================================================
# 저장 엔티티
# =========================================================================


@dataclass
class Company:
    id: str
    name: str
    default_currency: str
    created_at: str
    updated_at: str

    COLUMNS = ("id", "name", "default_currency", "created_at", "updated_at")

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Company:
        return cls(**row_to_dict(cls.COLUMNS, row))


@dataclass
class FinancialAccount:
    """금융 계좌

    balance는 반영된 완료 거래들의 부호 있는 합계 (계좌 통화 기준).
    """

    id: str
    company_id: str
    name: str
    type: str
    currency: str
    balance: Decimal
    created_at: str
    updated_at: str

    COLUMNS = (
        "id", "company_id", "name", "type", "currency", "balance",
        "created_at", "updated_at",
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> FinancialAccount:
        data = row_to_dict(cls.COLUMNS, row)
        data["balance"] = _dec(data["balance"])
        return cls(**data)


@dataclass
class BudgetCategory:
    id: str
    company_id: str
    name: str
    type: str
    description: str | None = None
    color: str | None = None

    COLUMNS = ("id", "company_id", "name", "type", "description", "color")

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> BudgetCategory:
        return cls(**row_to_dict(cls.COLUMNS, row))


@dataclass
class Transaction:
    """재무 거래 (수입/지출)

    applied_amount가 NULL이 아니면 현재 계좌 잔액에 반영된 상태.
    exchange_rate는 최초 계좌 연결 시점의 환율 스냅샷 (거래 통화 → 계좌 통화).
    """

    id: str
    company_id: str
    date: str
    description: str
    amount: Decimal
    currency: str
    type: str
    status: str
    category_id: str | None = None
    account_id: str | None = None
    project_id: str | None = None
    related_to: str | None = None
    source_key: str | None = None
    reference: str | None = None
    notes: str | None = None
    exchange_rate: Decimal | None = None
    applied_amount: Decimal | None = None
    created_at: str = ""
    updated_at: str = ""

    COLUMNS = (
        "id", "company_id", "date", "description", "amount", "currency",
        "type", "status", "category_id", "account_id", "project_id",
        "related_to", "source_key", "reference", "notes", "exchange_rate",
        "applied_amount", "created_at", "updated_at",
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Transaction:
        data = row_to_dict(cls.COLUMNS, row)
        data["amount"] = _dec(data["amount"])
        data["exchange_rate"] = _dec(data["exchange_rate"])
        data["applied_amount"] = _dec(data["applied_amount"])
        return cls(**data)

    @property
    def is_applied(self) -> bool:
        return self.applied_amount is not None


@dataclass
class BudgetItem:
    id: str
    budget_id: str
    category_id: str | None
    name: str
    amount: Decimal
    spent: Decimal = Decimal("0")

    COLUMNS = ("id", "budget_id", "category_id", "name", "amount")

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> BudgetItem:
        data = row_to_dict(cls.COLUMNS, row)
        data["amount"] = _dec(data["amount"])
        return cls(**data)


@dataclass
class Budget:
    """예산

    total_spent / items[].spent는 조회 시 거래에서 계산 (저장하지 않음).
    """

    id: str
    company_id: str
    name: str
    type: str
    status: str
    start_date: str
    end_date: str
    total_budget: Decimal
    currency: str
    description: str | None = None
    project_id: str | None = None
    items: list[BudgetItem] = field(default_factory=list)
    total_spent: Decimal = Decimal("0")

    COLUMNS = (
        "id", "company_id", "name", "type", "status", "start_date",
        "end_date", "total_budget", "currency", "description", "project_id",
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Budget:
        data = row_to_dict(cls.COLUMNS, row)
        data["total_budget"] = _dec(data["total_budget"])
        return cls(**data)


@dataclass
class Project:
    id: str
    company_id: str
    name: str

    COLUMNS = ("id", "company_id", "name")

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> Project:
        return cls(**row_to_dict(cls.COLUMNS, row))


@dataclass
class RecurringSchedule:
    """반복 거래 일정

    day_of_week는 0=일요일 ... 6=토요일.
    """

    id: str
    company_id: str
    name: str
    frequency: str
    interval: int
    start_date: str
    next_due_date: str
    amount: Decimal
    type: str
    account_id: str
    status: str
    description: str | None = None
    end_date: str | None = None
    day_of_month: int | None = None
    day_of_week: int | None = None
    month_of_year: int | None = None
    category_id: str | None = None
    last_processed_date: str | None = None
    created_at: str = ""
    updated_at: str = ""

    # interval은 SQL 예약어라 컬럼명은 interval_count
    COLUMNS = (
        "id", "company_id", "name", "frequency", "interval_count", "start_date",
        "next_due_date", "amount", "type", "account_id", "status", "description",
        "end_date", "day_of_month", "day_of_week", "month_of_year", "category_id",
        "last_processed_date", "created_at", "updated_at",
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> RecurringSchedule:
        data = row_to_dict(cls.COLUMNS, row)
        data["interval"] = data.pop("interval_count")
        data["amount"] = _dec(data["amount"])
        return cls(**data)


# =========================================================================
# 외부 소스 문서 (Sales / Inventory 모듈 소유, 읽기 전용)
# =========================================================================


@dataclass
class SaleItem:
    product: str
    quantity: int = 1


@dataclass
class Sale:
    id: str
    company_id: str
    date: str
    total: Decimal
    status: str
    customer_name: str
    invoice_number: str | None = None
    employee_id: str | None = None
    items: list[SaleItem] = field(default_factory=list)


@dataclass
class InventoryItem:
    id: str
    company_id: str
    name: str
    sku: str
    price: Decimal
    quantity: int
