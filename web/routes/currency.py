"""
통화 API 라우터

GET  /api/finance/currency  - 기본 통화 + 지원 통화 (convert=true면 환율표)
POST /api/finance/currency  - 회사 기본 통화 변경
PUT  /api/finance/currency  - 금액 환산
"""

from decimal import ROUND_HALF_UP

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.currency import RATE_QUANT
from core.types import Caller
from web.dependencies import build_currency_service, get_caller, get_db, get_db_write
from web.models.requests import CurrencyConvertRequest, CurrencyUpdateRequest
from web.models.responses import (
    CurrencyConvertResponse,
    CurrencySettingsResponse,
    CurrencyUpdateResponse,
)

router = APIRouter(prefix="/api/finance", tags=["Currency"])


@router.get("/currency", response_model=CurrencySettingsResponse, response_model_exclude_none=True)
async def get_currency_settings(
    convert: bool = Query(default=False, description="기본 통화 기준 환율표 포함"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """통화 설정 조회"""
    service = build_currency_service(db)
    default_currency = await service.get_company_default_currency(caller.company_id)
    return CurrencySettingsResponse(
        default_currency=default_currency,
        supported_currencies=service.list_supported_currencies(),
        conversion_rates=service.conversion_rates(default_currency) if convert else None,
    )


@router.post("/currency", response_model=CurrencyUpdateResponse)
async def update_default_currency(
    request: CurrencyUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """회사 기본 통화 변경 (같은 값 재설정 허용)"""
    service = build_currency_service(db)
    currency = await service.set_company_default_currency(caller.company_id, request.currency)
    return CurrencyUpdateResponse(default_currency=currency)


@router.put("/currency", response_model=CurrencyConvertResponse)
async def convert_amount(
    request: CurrencyConvertRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """금액 환산

    exchange_rate = converted_amount / original_amount (original_amount가 0이면 직접 환율)
    """
    service = build_currency_service(db)
    from_currency = request.from_currency.upper()
    to_currency = request.to_currency.upper()

    converted = service.convert(request.amount, from_currency, to_currency)
    if request.amount == 0:
        rate = service.get_rate(from_currency, to_currency)
    else:
        rate = converted / request.amount

    return CurrencyConvertResponse(
        original_amount=request.amount,
        converted_amount=converted,
        from_currency=from_currency,
        to_currency=to_currency,
        exchange_rate=rate.quantize(RATE_QUANT, rounding=ROUND_HALF_UP),
    )
