"""
예산 API 라우터

예산 CRUD, 예산 항목 CRUD, 예산 대비 실적, 임계값 알림, 집행 추적.
고정 경로(/alerts, /comparison, /items, /track)는 /{budget_id}보다 먼저 등록.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.ledger.budget import BudgetTracker
from core.ledger.models import jsonable, to_json_dict
from core.storage.notification_store import NotificationStore
from core.types import AlertSeverity, BudgetStatus, BudgetType, Caller
from web.dependencies import (
    build_currency_service,
    get_app_settings,
    get_caller,
    get_db,
    get_db_write,
)
from web.models.requests import (
    BudgetAlertNotificationRequest,
    BudgetCreateRequest,
    BudgetItemCreateRequest,
    BudgetItemUpdateRequest,
    BudgetTrackRequest,
    BudgetUpdateRequest,
)
from web.services.budget_service import BudgetService

router = APIRouter(prefix="/api/finance", tags=["Budgets"])


@router.get("/budgets")
async def list_budgets(
    type: BudgetType | None = Query(default=None, description="예산 유형"),
    status: BudgetStatus | None = Query(default=None, description="예산 상태"),
    active_on: date | None = Query(default=None, description="이 날짜가 기간에 포함된 예산만"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """예산 목록 (시작일 내림차순, 항목 포함)"""
    budgets = await BudgetService(db).list_budgets(
        caller.company_id,
        budget_type=type.value if type else None,
        status=status.value if status else None,
        active_on=active_on,
    )
    return [to_json_dict(budget) for budget in budgets]


@router.post("/budgets", status_code=201)
async def create_budget(
    request: BudgetCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 생성 (항목 합계 = total_budget, 통화 생략 시 회사 기본 통화)"""
    service = BudgetService(db, build_currency_service(db), sink=NotificationStore(db))
    budget = await service.create_budget(
        caller.company_id,
        caller,
        items=[item.model_dump(exclude={"id"}) for item in request.items],
        name=request.name,
        budget_type=request.type.value,
        status=request.status.value,
        start_date=request.start_date,
        end_date=request.end_date,
        total_budget=request.total_budget,
        currency=request.currency,
        description=request.description,
        project_id=request.project_id,
    )
    return to_json_dict(budget)


@router.get("/budgets/alerts")
async def get_budget_alerts(
    threshold: int | None = Query(default=None, ge=0, le=1000, description="알림 임계값 (%)"),
    status: AlertSeverity | None = Query(default=None, description="심각도 필터"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """예산 임계값 알림 목록 (critical 먼저, 집행률 내림차순)"""
    tracker = BudgetTracker(db, build_currency_service(db))
    alerts = await tracker.compute_budget_alerts(
        caller.company_id,
        threshold=threshold if threshold is not None else settings.alert_threshold,
        severity=status.value if status else None,
    )
    return jsonable(alerts)


@router.post("/budgets/alerts", status_code=201)
async def create_budget_alert_notification(
    request: BudgetAlertNotificationRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 알림을 호출자 알림으로 저장"""
    tracker = BudgetTracker(db, build_currency_service(db), sink=NotificationStore(db))
    notification = await tracker.create_alert_notification(
        caller.company_id,
        caller,
        {
            "id": request.alert_id,
            "budget_id": request.budget_id,
            "item_id": request.item_id,
            "message": request.message,
            "severity": request.severity.value,
        },
    )
    return {"success": True, "notification": notification.to_dict()}


@router.get("/budgets/comparison")
async def get_budget_comparison(
    budget_id: str = Query(..., min_length=1, description="예산 ID"),
    period: str = Query(default="month", description="표시용 기간 라벨"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """예산 대비 실적 비교"""
    tracker = BudgetTracker(db, build_currency_service(db))
    comparison = await tracker.compute_budget_comparison(caller.company_id, budget_id, period)
    return jsonable(comparison)


@router.get("/budgets/track")
async def get_budget_tracking(
    budget_id: str = Query(..., min_length=1, description="예산 ID"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """예산 집행 현황 (항목은 집행률 내림차순)"""
    tracker = BudgetTracker(db, build_currency_service(db))
    return jsonable(await tracker.compute_budget_tracking(caller.company_id, budget_id))


@router.post("/budgets/track")
async def track_budget_transaction(
    request: BudgetTrackRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """지출 거래를 예산 항목에 연결 (거래 카테고리 = 항목 카테고리)"""
    tracker = BudgetTracker(db, build_currency_service(db))
    result = await tracker.track_transaction(
        caller.company_id, request.transaction_id, request.budget_item_id
    )
    return jsonable(result)


@router.post("/budgets/items", status_code=201)
async def create_budget_item(
    request: BudgetItemCreateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 항목 추가 (total_budget += amount)"""
    item = await BudgetService(db).add_item(
        caller.company_id,
        request.budget_id,
        name=request.name,
        amount=request.amount,
        category_id=request.category_id,
    )
    return to_json_dict(item)


@router.get("/budgets/items/{item_id}")
async def get_budget_item(
    item_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    item = await BudgetService(db).get_item(caller.company_id, item_id)
    return to_json_dict(item)


@router.put("/budgets/items/{item_id}")
async def update_budget_item(
    item_id: str,
    request: BudgetItemUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 항목 수정 (금액 차액만큼 total_budget 조정)"""
    fields = request.model_dump(exclude_unset=True)
    item = await BudgetService(db).update_item(caller.company_id, item_id, **fields)
    return to_json_dict(item)


@router.delete("/budgets/items/{item_id}")
async def delete_budget_item(
    item_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 항목 삭제 (total_budget -= amount)"""
    await BudgetService(db).delete_item(caller.company_id, item_id)
    return {"success": True, "id": item_id}


@router.get("/budgets/{budget_id}")
async def get_budget(
    budget_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """예산 + 항목별 집행액"""
    tracker = BudgetTracker(db, build_currency_service(db))
    budget = await tracker.compute_budget_spend(caller.company_id, budget_id)
    return to_json_dict(budget)


@router.put("/budgets/{budget_id}")
async def update_budget(
    budget_id: str,
    request: BudgetUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 수정 (보낸 필드만, items는 id 기준 upsert)"""
    fields = request.model_dump(exclude_unset=True, mode="json")
    items = fields.pop("items", None)
    service = BudgetService(db, build_currency_service(db), sink=NotificationStore(db))
    budget = await service.update_budget(caller.company_id, caller, budget_id, items=items, **fields)
    return to_json_dict(budget)


@router.delete("/budgets/{budget_id}")
async def delete_budget(
    budget_id: str,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db_write),
):
    """예산 삭제 (항목 포함)"""
    service = BudgetService(db, build_currency_service(db), sink=NotificationStore(db))
    await service.delete_budget(caller.company_id, caller, budget_id)
    return {"success": True, "id": budget_id}
