"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from core.types import (
    AccountType,
    AlertSeverity,
    BudgetStatus,
    BudgetType,
    RecurringFrequency,
    RecurringStatus,
    ReportType,
    SaleStatus,
    TransactionStatus,
    TransactionType,
)

# 예산 항목 category_id로 들어오는 "카테고리 없음" 표기
NO_CATEGORY_VALUES = frozenset({"", "none", "empty"})


class AccountCreateRequest(BaseModel):
    """금융 계좌 생성 요청 (통화 생략 시 회사 기본 통화)"""

    name: str = Field(..., min_length=1, description="계좌 이름")
    type: AccountType = Field(..., description="계좌 유형 (bank/cash/other)")
    currency: str | None = Field(default=None, min_length=3, max_length=3, description="통화 코드")


class RecalculateRequest(BaseModel):
    """잔액 재계산 요청 (account_id 생략 시 전체 계좌)"""

    account_id: str | None = Field(default=None, description="계좌 ID")


class BudgetAlertNotificationRequest(BaseModel):
    """예산 알림 저장 요청"""

    alert_id: str = Field(..., min_length=1, description="알림 ID (budget-... / item-...)")
    budget_id: str = Field(..., min_length=1, description="예산 ID")
    item_id: str | None = Field(default=None, description="예산 항목 ID")
    message: str = Field(..., min_length=1, description="알림 메시지")
    severity: AlertSeverity = Field(default=AlertSeverity.WARNING, description="심각도")


class CurrencyUpdateRequest(BaseModel):
    """회사 기본 통화 변경 요청"""

    currency: str = Field(..., min_length=3, max_length=3, description="통화 코드")


class CurrencyConvertRequest(BaseModel):
    """금액 환산 요청"""

    amount: Decimal = Field(..., ge=0, description="금액")
    from_currency: str = Field(..., min_length=3, max_length=3, description="원 통화")
    to_currency: str = Field(..., min_length=3, max_length=3, description="대상 통화")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"amount": "100", "from_currency": "USD", "to_currency": "EUR"},
            ]
        }
    }


class TransactionCreateRequest(BaseModel):
    """수동 거래 생성 요청

    통화 생략 시 계좌 통화, 계좌도 없으면 회사 기본 통화.
    """

    date: dt.date = Field(..., description="거래일 (YYYY-MM-DD)")
    description: str = Field(..., min_length=1, description="설명")
    amount: Decimal = Field(..., gt=0, description="금액 (양수)")
    type: TransactionType = Field(..., description="수입/지출")
    status: TransactionStatus = Field(default=TransactionStatus.PENDING, description="상태")
    currency: str | None = Field(default=None, min_length=3, max_length=3, description="통화 코드")
    category_id: str | None = Field(default=None, description="예산 카테고리 ID")
    account_id: str | None = Field(default=None, description="금융 계좌 ID")
    reference: str | None = Field(default=None, description="참조 번호")
    notes: str | None = Field(default=None, description="메모")


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청 (보낸 필드만 변경)

    생략은 "변경 없음", 명시적 null은 NOT NULL 컬럼에 한해 거부.
    """

    date: dt.date | None = None
    description: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, gt=0)
    type: TransactionType | None = None
    status: TransactionStatus | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category_id: str | None = None
    account_id: str | None = None
    reference: str | None = None
    notes: str | None = None

    @field_validator("date", "description", "amount", "type", "status", "currency", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class LinkProjectRequest(BaseModel):
    """거래-프로젝트 연결 요청"""

    transaction_id: str = Field(..., min_length=1, description="거래 ID")
    project_id: str = Field(..., min_length=1, description="프로젝트 ID")


class SaleItemPayload(BaseModel):
    product: str
    quantity: int = 1


class SalePayload(BaseModel):
    """판매 문서 (Sales 모듈 → 동기화)

    company_id는 세션 호출자 회사로 고정.
    """

    id: str = Field(..., min_length=1, description="판매 ID")
    date: dt.date = Field(..., description="판매일")
    total: Decimal = Field(..., gt=0, description="판매 합계")
    status: SaleStatus = Field(..., description="판매 상태")
    customer_name: str = Field(..., description="고객 이름")
    invoice_number: str | None = Field(default=None, description="송장 번호")
    employee_id: str | None = Field(default=None, description="담당 직원 ID")
    items: list[SaleItemPayload] = Field(default_factory=list, description="판매 품목")


class InventoryItemPayload(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    sku: str
    price: Decimal = Field(..., ge=0, description="단가")
    quantity: int


class InventoryChangeRequest(BaseModel):
    """재고 수량 변경 (Inventory 모듈 → 동기화)"""

    item: InventoryItemPayload
    old_quantity: int = Field(..., description="변경 전 수량")
    new_quantity: int = Field(..., description="변경 후 수량")
    user_id: str | None = Field(default=None, description="변경 사용자")
    event_id: str | None = Field(default=None, description="변경 이벤트 ID (재시도 중복 방지)")


class ReportRequest(BaseModel):
    """재무 리포트 요청"""

    report_type: ReportType = Field(..., description="리포트 종류")
    start_date: dt.date = Field(..., description="시작일")
    end_date: dt.date = Field(..., description="종료일")


class CategoryCreateRequest(BaseModel):
    """예산 카테고리 생성 요청"""

    name: str = Field(..., min_length=1, description="카테고리 이름 (회사 내 고유)")
    type: TransactionType = Field(..., description="수입/지출")
    description: str | None = Field(default=None, description="설명")
    color: str | None = Field(default=None, description="표시 색상")


class CategoryUpdateRequest(BaseModel):
    """예산 카테고리 수정 요청 (보낸 필드만 변경)"""

    name: str | None = Field(default=None, min_length=1)
    type: TransactionType | None = None
    description: str | None = None
    color: str | None = None

    @field_validator("name", "type", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


def _normalize_category(value):
    if isinstance(value, str) and value.strip().lower() in NO_CATEGORY_VALUES:
        return None
    return value


class BudgetItemPayload(BaseModel):
    """예산 항목 (id가 있으면 기존 항목 수정)"""

    id: str | None = Field(default=None, description="기존 항목 ID")
    name: str = Field(..., min_length=1, description="항목 이름")
    amount: Decimal = Field(..., ge=0, description="배정액")
    category_id: str | None = Field(default=None, description="예산 카테고리 ID")

    @field_validator("category_id", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _normalize_category(value)


class BudgetCreateRequest(BaseModel):
    """예산 생성 요청 (항목 합계 = total_budget)"""

    name: str = Field(..., min_length=1, description="예산 이름")
    type: BudgetType = Field(default=BudgetType.OPERATIONAL, description="예산 유형")
    status: BudgetStatus = Field(default=BudgetStatus.ACTIVE, description="예산 상태")
    start_date: dt.date = Field(..., description="시작일")
    end_date: dt.date = Field(..., description="종료일")
    total_budget: Decimal = Field(..., ge=0, description="총 예산")
    currency: str | None = Field(default=None, min_length=3, max_length=3, description="통화 코드")
    description: str | None = Field(default=None, description="설명")
    project_id: str | None = Field(default=None, description="연결 프로젝트 ID")
    items: list[BudgetItemPayload] = Field(..., min_length=1, description="예산 항목")


class BudgetUpdateRequest(BaseModel):
    """예산 수정 요청 (보낸 필드만 변경, items는 upsert)"""

    name: str | None = Field(default=None, min_length=1)
    type: BudgetType | None = None
    status: BudgetStatus | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    total_budget: Decimal | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    description: str | None = None
    project_id: str | None = None
    items: list[BudgetItemPayload] | None = None

    @field_validator("name", "type", "status", "start_date", "end_date", "total_budget", "currency", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class BudgetItemCreateRequest(BaseModel):
    """예산 항목 추가 요청"""

    budget_id: str = Field(..., min_length=1, description="예산 ID")
    name: str = Field(..., min_length=1, description="항목 이름")
    amount: Decimal = Field(..., ge=0, description="배정액")
    category_id: str | None = Field(default=None, description="예산 카테고리 ID")

    @field_validator("category_id", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _normalize_category(value)


class BudgetItemUpdateRequest(BaseModel):
    """예산 항목 수정 요청"""

    name: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, ge=0)
    category_id: str | None = None

    @field_validator("category_id", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _normalize_category(value)

    @field_validator("name", "amount", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class BudgetTrackRequest(BaseModel):
    """지출 거래 → 예산 항목 연결 요청"""

    transaction_id: str = Field(..., min_length=1, description="지출 거래 ID")
    budget_item_id: str = Field(..., min_length=1, description="예산 항목 ID")


class RecurringCreateRequest(BaseModel):
    """반복 거래 생성 요청

    day_of_week: 0=일요일 ... 6=토요일
    """

    name: str = Field(..., min_length=1, description="이름")
    description: str | None = Field(default=None, description="설명")
    frequency: RecurringFrequency = Field(..., description="주기")
    interval: int = Field(default=1, ge=1, description="주기 배수")
    start_date: dt.date = Field(..., description="시작일")
    end_date: dt.date | None = Field(default=None, description="종료일")
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    month_of_year: int | None = Field(default=None, ge=1, le=12)
    amount: Decimal = Field(..., gt=0, description="금액")
    type: TransactionType = Field(..., description="수입/지출")
    category_id: str | None = Field(default=None, description="예산 카테고리 ID")
    account_id: str = Field(..., min_length=1, description="금융 계좌 ID")
    status: RecurringStatus = Field(default=RecurringStatus.ACTIVE, description="상태")


class RecurringUpdateRequest(BaseModel):
    """반복 거래 수정 요청 (보낸 필드만 변경)"""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    frequency: RecurringFrequency | None = None
    interval: int | None = Field(default=None, ge=1)
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    month_of_year: int | None = Field(default=None, ge=1, le=12)
    amount: Decimal | None = Field(default=None, gt=0)
    type: TransactionType | None = None
    category_id: str | None = None
    account_id: str | None = Field(default=None, min_length=1)
    status: RecurringStatus | None = None

    @field_validator(
        "name", "frequency", "interval", "start_date", "amount", "type", "account_id", "status",
        mode="before",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class RecurringProcessRequest(BaseModel):
    """반복 거래 처리 요청 (as_of 생략 시 오늘)"""

    as_of: dt.date | None = Field(default=None, description="기준일")
