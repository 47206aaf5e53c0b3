"""
헬스 체크 엔드포인트

GET /api/health - 서버 상태 확인 (인증 불필요)
"""

from fastapi import APIRouter

from core.constants import APP_VERSION
from core.utils.timezone import now_utc
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, version, timestamp 정보
    """
    return HealthResponse(status="ok", version=APP_VERSION, timestamp=now_utc())
