"""
재무 리포트 API 라우터

POST /api/finance/reports - cash-flow / profit-loss / expenses-by-category
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.models import jsonable
from core.ledger.reports import ReportService
from core.types import Caller
from web.dependencies import build_currency_service, get_caller, get_db, get_result_cache
from web.models.requests import ReportRequest

router = APIRouter(prefix="/api/finance", tags=["Reports"])


@router.post("/reports")
async def generate_report(
    request: ReportRequest,
    caller: Caller = Depends(get_caller),
    db: SQLiteAdapter = Depends(get_db),
):
    """재무 리포트 생성 (결과 캐시 TTL 동안 재사용)"""
    service = ReportService(db, build_currency_service(db), cache=get_result_cache())
    report = await service.generate(
        caller.company_id,
        request.report_type.value,
        request.start_date,
        request.end_date,
    )
    return jsonable(report)
