"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    BudgetAlertNotificationRequest,
    BudgetCreateRequest,
    BudgetItemCreateRequest,
    BudgetItemUpdateRequest,
    BudgetTrackRequest,
    BudgetUpdateRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CurrencyConvertRequest,
    CurrencyUpdateRequest,
    InventoryChangeRequest,
    LinkProjectRequest,
    RecalculateRequest,
    RecurringCreateRequest,
    RecurringProcessRequest,
    RecurringUpdateRequest,
    ReportRequest,
    SalePayload,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    AccountResponse,
    CountResponse,
    CurrencyConvertResponse,
    CurrencySettingsResponse,
    CurrencyUpdateResponse,
    HealthResponse,
    InventorySyncResponse,
    RecalculateResponse,
    SaleDeleteResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "BudgetAlertNotificationRequest",
    "BudgetCreateRequest",
    "BudgetItemCreateRequest",
    "BudgetItemUpdateRequest",
    "BudgetTrackRequest",
    "BudgetUpdateRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CurrencyConvertRequest",
    "CurrencyUpdateRequest",
    "InventoryChangeRequest",
    "LinkProjectRequest",
    "RecalculateRequest",
    "RecurringCreateRequest",
    "RecurringProcessRequest",
    "RecurringUpdateRequest",
    "ReportRequest",
    "SalePayload",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    # Responses
    "AccountResponse",
    "CountResponse",
    "CurrencyConvertResponse",
    "CurrencySettingsResponse",
    "CurrencyUpdateResponse",
    "HealthResponse",
    "InventorySyncResponse",
    "RecalculateResponse",
    "SaleDeleteResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
