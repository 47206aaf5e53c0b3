"""
프로젝트 재무 API 라우터

GET /api/finance/projects/summary - 프로젝트 연결 거래 합계 + 예산 집행률
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.models import jsonable, to_json_dict
from core.types import Caller
from web.dependencies import build_currency_service, get_caller, get_db
from web.services.project_service import ProjectFinanceService

router = APIRouter(prefix="/api/finance", tags=["Projects"])


@router.get("/projects/summary")
async def get_project_summary(
    project_id: str = Query(..., min_length=1, description="프로젝트 ID"),
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """프로젝트 재무 요약 (금액은 회사 기본 통화)"""
    service = ProjectFinanceService(db, build_currency_service(db))
    summary = await service.project_summary(caller.company_id, project_id)
    budget = summary["budget"]
    summary["budget"] = to_json_dict(budget) if budget is not None else None
    summary["recent_transactions"] = [to_json_dict(t) for t in summary["recent_transactions"]]
    return jsonable(summary)
