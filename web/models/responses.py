"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화 (Decimal은 JSON 문자열)
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class AccountResponse(BaseModel):
    """금융 계좌 응답"""

    id: str
    name: str
    type: str
    currency: str
    balance: Decimal
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class RecalculateResult(BaseModel):
    account_id: str
    account_name: str
    success: bool


class RecalculateResponse(BaseModel):
    """잔액 재계산 응답"""

    message: str
    results: list[RecalculateResult]
    accounts: list[AccountResponse]


class TransactionResponse(BaseModel):
    """거래 응답"""

    id: str
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
    reference: str | None = None
    notes: str | None = None
    exchange_rate: Decimal | None = None
    applied_amount: Decimal | None = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class TransactionListResponse(BaseModel):
    """거래 목록 응답"""

    transactions: list[TransactionResponse]
    total: int
    limit: int
    offset: int


class CountResponse(BaseModel):
    count: int


class CurrencySettingsResponse(BaseModel):
    """통화 설정 응답"""

    default_currency: str
    supported_currencies: list[dict[str, str]]
    conversion_rates: dict[str, Decimal] | None = None


class CurrencyUpdateResponse(BaseModel):
    success: bool = True
    default_currency: str


class CurrencyConvertResponse(BaseModel):
    """환산 응답

    exchange_rate = converted_amount / original_amount (original_amount가 0이면 직접 환율)
    """

    original_amount: Decimal
    converted_amount: Decimal
    from_currency: str
    to_currency: str
    exchange_rate: Decimal


class SaleDeleteResponse(BaseModel):
    success: bool
    sale_id: str


class InventorySyncResponse(BaseModel):
    """재고 동기화 응답 (입고분 없으면 transaction=None)"""

    created: bool
    transaction: TransactionResponse | None = None
