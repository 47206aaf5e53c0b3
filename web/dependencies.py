"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.cache import ResultCache
from core.config.loader import Settings, get_settings
from core.ledger.currency import CurrencyService
from core.types import Caller
from web.auth import resolve_caller


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    조회 API와 호출자 해석에 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    거래 기록, 잔액 변경, 설정 변경 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


async def get_caller(
    request: Request,
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Caller:
    """세션 → 호출자 (401 / 404는 예외 핸들러가 변환)"""
    return await resolve_caller(request, db, settings.web_secret_key)


# =========================================================================
# ResultCache (프로세스당 1개)
# =========================================================================

# 첫 요청 시 설정값으로 생성되는 프로세스 공유 캐시
_result_cache: ResultCache | None = None


def get_result_cache() -> ResultCache:
    """프로세스 공유 ResultCache 반환 (없으면 생성)"""
    global _result_cache
    if _result_cache is None:
        config = get_settings().config
        _result_cache = ResultCache(
            ttl_seconds=config.cache_ttl_seconds,
            max_size=config.cache_max_size,
        )
    return _result_cache


def reset_result_cache() -> None:
    """캐시 인스턴스 폐기 (테스트용)"""
    global _result_cache
    _result_cache = None


def build_currency_service(db: SQLiteAdapter) -> CurrencyService:
    """요청용 CurrencyService (공유 캐시 + 설정 환율)"""
    return CurrencyService(
        db,
        cache=get_result_cache(),
        rate_overrides=get_settings().rate_overrides,
    )
