"""
거래 API 라우터

거래 목록/건수 조회, 수동 거래 입력, 프로젝트 연결.
고정 경로(/count, /link-project)는 /{transaction_id}보다 먼저 등록.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.transaction_store import TransactionFilter
from core.types import Caller, TransactionStatus, TransactionType
from web.dependencies import build_currency_service, get_caller, get_db, get_db_write
from web.models.requests import (
    LinkProjectRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import CountResponse, TransactionListResponse, TransactionResponse
from web.services.transaction_service import TransactionService

router = APIRouter(prefix="/api/finance", tags=["Transactions"])


def transaction_filter(
    category_id: str | None = Query(default=None),
    account_id: str | None = Query(default=None),
    type: TransactionType | None = Query(default=None),
    status: TransactionStatus | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    project_id: str | None = Query(default=None),
) -> TransactionFilter:
    """쿼리 파라미터 → TransactionFilter (날짜는 양 끝 포함)"""
    return TransactionFilter(
        category_id=category_id,
        account_id=account_id,
        type=type.value if type else None,
        status=status.value if status else None,
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
        project_id=project_id,
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    filters: TransactionFilter = Depends(transaction_filter),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """거래 목록 (날짜 내림차순)"""
    service = TransactionService(db, build_currency_service(db))
    result = await service.list_transactions(caller.company_id, filters, limit, offset)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in result["transactions"]],
        total=result["total"],
        limit=limit,
        offset=offset,
    )


@router.get("/transactions/count", response_model=CountResponse)
async def count_transactions(
    filters: TransactionFilter = Depends(transaction_filter),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """필터 조건 거래 건수"""
    service = TransactionService(db, build_currency_service(db))
    return CountResponse(count=await service.count_transactions(caller.company_id, filters))


@router.post("/transactions/link-project", response_model=TransactionResponse)
async def link_project(
    request: LinkProjectRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """거래를 프로젝트에 연결"""
    service = TransactionService(db, build_currency_service(db))
    txn = await service.link_project(caller.company_id, request.transaction_id, request.project_id)
    return TransactionResponse.model_validate(txn)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """수동 거래 생성 (completed면 즉시 잔액 반영)"""
    service = TransactionService(db, build_currency_service(db))
    txn = await service.create_transaction(caller.company_id, **request.model_dump(mode="json"))
    return TransactionResponse.model_validate(txn)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """거래 단건 조회"""
    service = TransactionService(db, build_currency_service(db))
    txn = await service.store.require(caller.company_id, transaction_id)
    return TransactionResponse.model_validate(txn)


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    request: TransactionUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """거래 수정 (보낸 필드만, 잔액 효과 재조정)"""
    service = TransactionService(db, build_currency_service(db))
    fields = request.model_dump(mode="json", exclude_unset=True)
    txn = await service.update_transaction(caller.company_id, transaction_id, **fields)
    return TransactionResponse.model_validate(txn)


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """거래 삭제 (반영된 잔액 효과 역반영)"""
    service = TransactionService(db, build_currency_service(db))
    await service.delete_transaction(caller.company_id, transaction_id)
    return {"success": True, "id": transaction_id}
