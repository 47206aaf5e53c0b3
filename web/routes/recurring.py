"""
반복 거래 API 라우터

일정 CRUD와 도래분 처리.
고정 경로(/process)는 /{schedule_id}보다 먼저 등록.
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.models import jsonable, to_json_dict
from core.types import Caller, RecurringStatus, TransactionType
from web.dependencies import build_currency_service, get_caller, get_db, get_db_write
from web.models.requests import (
    RecurringCreateRequest,
    RecurringProcessRequest,
    RecurringUpdateRequest,
)
from web.services.recurring_service import RecurringService

router = APIRouter(prefix="/api/finance", tags=["Recurring"])


@router.get("/recurring")
async def list_recurring(
    status: RecurringStatus | None = Query(default=None, description="상태"),
    type: TransactionType | None = Query(default=None, description="수입/지출"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """반복 거래 목록 (다음 예정일 오름차순)"""
    schedules = await RecurringService(db).list_schedules(
        caller.company_id,
        status=status.value if status else None,
        type=type.value if type else None,
    )
    return [to_json_dict(schedule) for schedule in schedules]


@router.post("/recurring", status_code=201)
async def create_recurring(
    request: RecurringCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """반복 거래 생성 (next_due_date 자동 계산)"""
    fields = request.model_dump(mode="json")
    schedule = await RecurringService(db).create_schedule(caller.company_id, **fields)
    return to_json_dict(schedule)


@router.post("/recurring/process")
async def process_recurring(
    request: RecurringProcessRequest | None = None,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """도래한 반복 거래 처리 (일정 단위 실패는 success=false)"""
    service = RecurringService(db, build_currency_service(db))
    result = await service.process_due(caller.company_id, request.as_of if request else None)
    return jsonable(result)


@router.get("/recurring/{schedule_id}")
async def get_recurring(
    schedule_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    return to_json_dict(await RecurringService(db).get_schedule(caller.company_id, schedule_id))


@router.put("/recurring/{schedule_id}")
async def update_recurring(
    schedule_id: str,
    request: RecurringUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """반복 거래 수정 (주기가 바뀌면 next_due_date 재계산)"""
    fields = request.model_dump(exclude_unset=True, mode="json")
    schedule = await RecurringService(db).update_schedule(caller.company_id, schedule_id, **fields)
    return to_json_dict(schedule)


@router.delete("/recurring/{schedule_id}")
async def delete_recurring(
    schedule_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """반복 거래 삭제 (이미 생성된 거래는 유지)"""
    await RecurringService(db).delete_schedule(caller.company_id, schedule_id)
    return {"success": True, "id": schedule_id}
