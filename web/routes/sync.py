"""
소스 문서 동기화 API 라우터

Sales / Inventory 모듈이 원장 동기화를 호출하는 좁은 인터페이스.
회사는 항상 세션 호출자의 회사 (본문의 회사 값은 받지 않음).
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.models import InventoryItem, Sale, SaleItem
from core.storage.notification_store import NotificationStore
from core.types import Caller
from integrations.inventory import InventoryLedgerSync
from integrations.sales import SalesLedgerSync
from web.dependencies import build_currency_service, get_caller, get_db_write
from web.models.requests import InventoryChangeRequest, SalePayload
from web.models.responses import InventorySyncResponse, SaleDeleteResponse, TransactionResponse

router = APIRouter(prefix="/api/finance/sync", tags=["Sync"])


def _to_sale(payload: SalePayload, company_id: str) -> Sale:
    return Sale(
        id=payload.id,
        company_id=company_id,
        date=payload.date.isoformat(),
        total=payload.total,
        status=payload.status.value,
        customer_name=payload.customer_name,
        invoice_number=payload.invoice_number,
        employee_id=payload.employee_id,
        items=[SaleItem(product=i.product, quantity=i.quantity) for i in payload.items],
    )


def _sales_sync(db: SQLiteAdapter) -> SalesLedgerSync:
    return SalesLedgerSync(db, build_currency_service(db), sink=NotificationStore(db))


@router.post("/sales", response_model=TransactionResponse, status_code=201)
async def sale_created(
    payload: SalePayload,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """판매 생성 → 수입 거래 (재시도면 기존 거래 갱신)"""
    txn = await _sales_sync(db).on_sale_created(_to_sale(payload, caller.company_id))
    return TransactionResponse.model_validate(txn)


@router.put("/sales", response_model=TransactionResponse)
async def sale_updated(
    payload: SalePayload,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """판매 수정 → 연결 거래 갱신"""
    txn = await _sales_sync(db).on_sale_updated(_to_sale(payload, caller.company_id))
    return TransactionResponse.model_validate(txn)


@router.delete("/sales/{sale_id}", response_model=SaleDeleteResponse)
async def sale_deleted(
    sale_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """판매 삭제 → 연결 거래 역반영 후 삭제"""
    success = await _sales_sync(db).on_sale_deleted(caller.company_id, sale_id)
    return SaleDeleteResponse(success=success, sale_id=sale_id)


@router.post("/inventory", response_model=InventorySyncResponse)
async def inventory_changed(
    request: InventoryChangeRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """재고 수량 변경 → 입고분 매입 거래"""
    item = InventoryItem(
        id=request.item.id,
        company_id=caller.company_id,
        name=request.item.name,
        sku=request.item.sku,
        price=request.item.price,
        quantity=request.item.quantity,
    )
    sync = InventoryLedgerSync(db, build_currency_service(db), sink=NotificationStore(db))
    txn = await sync.track_inventory_quantity_change(
        item,
        request.old_quantity,
        request.new_quantity,
        user_id=request.user_id,
        event_id=request.event_id,
    )
    if txn is None:
        return InventorySyncResponse(created=False)
    return InventorySyncResponse(created=True, transaction=TransactionResponse.model_validate(txn))
