"""
FastAPI 애플리케이션

라우터 등록, 예외 핸들러 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.constants import APP_VERSION
from core.errors import FinanceError
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.routes import (
    accounts,
    budgets,
    categories,
    currency,
    health,
    projects,
    recurring,
    reports,
    sync,
    transactions,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
    logger.info(f"Web: 스키마 확인 완료 ({settings.db_path})")

    yield


app = FastAPI(
    title="Ledgerline API",
    description="재무 원장 / 예산 추적 / 통화 환산 API",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 예외 핸들러
# =========================================================================


@app.exception_handler(FinanceError)
async def finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    """도메인 예외 → {error, code, details?} + 예외별 상태 코드"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패 → 400 + 필드별 상세"""
    details = {
        ".".join(str(part) for part in error["loc"] if part != "body"): error["msg"]
        for error in exc.errors()
    }
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": "validation_error", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외 → 500 (상세는 로그에만)"""
    logger.exception(f"{request.method} {request.url.path} 처리 중 예외")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(budgets.router)
app.include_router(categories.router)
app.include_router(currency.router)
app.include_router(transactions.router)
app.include_router(recurring.router)
app.include_router(projects.router)
app.include_router(sync.router)
app.include_router(reports.router)
