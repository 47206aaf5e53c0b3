"""
금융 계좌 API 라우터

계좌 조회/생성 및 잔액 재계산.
"""

import logging

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import UnsupportedCurrency
from core.ledger.account_store import AccountStore
from core.ledger.balance import AccountBalanceMaintainer
from core.types import Caller
from web.dependencies import build_currency_service, get_caller, get_db, get_db_write
from web.models.requests import AccountCreateRequest, RecalculateRequest
from web.models.responses import AccountResponse, RecalculateResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finance", tags=["Accounts"])


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """회사 계좌 목록 (생성 순)"""
    accounts = await AccountStore(db).list(caller.company_id)
    return [AccountResponse.model_validate(account) for account in accounts]


@router.post("/accounts", response_model=AccountResponse, status_code=201)
async def create_account(
    request: AccountCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """계좌 생성 (통화 생략 시 회사 기본 통화)"""
    currency_service = build_currency_service(db)
    currency = request.currency
    if currency is None:
        currency = await currency_service.get_company_default_currency(caller.company_id)
    if not currency_service.is_supported(currency):
        raise UnsupportedCurrency(currency)

    account = await AccountStore(db).create(
        company_id=caller.company_id,
        name=request.name,
        account_type=request.type.value,
        currency=currency,
    )
    return AccountResponse.model_validate(account)


@router.post("/accounts/recalculate", response_model=RecalculateResponse)
async def recalculate_balances(
    request: RecalculateRequest | None = None,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """잔액 재계산 (account_id 생략 시 회사 전체 계좌)

    계좌 단위 실패는 success=false로 보고하고 나머지는 계속 진행.
    """
    company_id = caller.company_id
    maintainer = AccountBalanceMaintainer(db, build_currency_service(db))
    accounts = AccountStore(db)

    account_id = request.account_id if request else None
    if account_id:
        account = await accounts.require(company_id, account_id)
        success = await maintainer.recalculate_account_balance(company_id, account.id)
        results = [{"account_id": account.id, "account_name": account.name, "success": success}]
        message = f"Balance recalculated for account {account.name}"
    else:
        results = await maintainer.recalculate_all_account_balances(company_id)
        succeeded = sum(1 for r in results if r["success"])
        message = f"Balances recalculated for {succeeded} of {len(results)} accounts"

    refreshed = await accounts.list(company_id)
    return RecalculateResponse(
        message=message,
        results=results,
        accounts=[AccountResponse.model_validate(a) for a in refreshed],
    )
