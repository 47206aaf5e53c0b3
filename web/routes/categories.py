"""
예산 카테고리 API 라우터

카테고리 조회/생성/수정/삭제. 사용 중인 카테고리는 삭제 거부.
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.account_store import CategoryStore
from core.ledger.models import to_json_dict
from core.types import Caller, TransactionType
from web.dependencies import get_caller, get_db, get_db_write
from web.models.requests import CategoryCreateRequest, CategoryUpdateRequest

router = APIRouter(prefix="/api/finance", tags=["Categories"])


@router.get("/categories")
async def list_categories(
    type: TransactionType | None = Query(default=None, description="수입/지출"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """회사 카테고리 목록 (생성 순)"""
    categories = await CategoryStore(db).list(caller.company_id, type.value if type else None)
    return [to_json_dict(category) for category in categories]


@router.post("/categories", status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    category = await CategoryStore(db).create(
        company_id=caller.company_id,
        name=request.name,
        category_type=request.type.value,
        description=request.description,
        color=request.color,
    )
    return to_json_dict(category)


@router.get("/categories/{category_id}")
async def get_category(
    category_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    return to_json_dict(await CategoryStore(db).require(caller.company_id, category_id))


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """카테고리 수정 (보낸 필드만)"""
    fields = request.model_dump(exclude_unset=True, mode="json")
    category = await CategoryStore(db).update(caller.company_id, category_id, **fields)
    return to_json_dict(category)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """카테고리 삭제 (거래/예산 항목/반복 거래가 참조 중이면 400)"""
    await CategoryStore(db).delete(caller.company_id, category_id)
    return {"success": True, "id": category_id}
