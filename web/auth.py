"""
세션 인증

HS256 JWT 세션 토큰을 요청당 1회 호출자(Caller)로 해석.
토큰 발급/로그인은 인증 모듈 책임 (여기서는 검증만).

토큰 위치:
- Authorization: Bearer <token>
- 쿠키 token=<token>

클레임:
    sub          사용자 ID (owner) 또는 직원 ID (employee)
    company_id   회사 ID
    type         "owner" | "employee" (없으면 owner)
    role, department, permissions  직원 전용 (선택)
"""

import logging
from typing import Any

import jwt
from fastapi import Request

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import Unauthorized
from core.ledger.company_store import CompanyStore
from core.types import Caller, EmployeeCaller, OwnerCaller

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> str | None:
    """요청에서 세션 토큰 추출 (헤더 우선)"""
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(Defaults.SESSION_COOKIE) or None


def decode_session_token(token: str, secret_key: str) -> dict[str, Any]:
    """세션 토큰 검증 및 클레임 반환

    Raises:
        Unauthorized: 서명 불일치, 만료, 형식 오류
    """
    try:
        return jwt.decode(token, secret_key, algorithms=[Defaults.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise Unauthorized("Session expired") from e
    except jwt.InvalidTokenError as e:
        logger.debug(f"세션 토큰 검증 실패: {e}")
        raise Unauthorized("Invalid session") from e


def caller_from_claims(claims: dict[str, Any]) -> Caller:
    """클레임 → OwnerCaller / EmployeeCaller

    Raises:
        Unauthorized: 필수 클레임 누락
    """
    subject = claims.get("sub")
    company_id = claims.get("company_id")
    if not subject or not company_id:
        raise Unauthorized("Session is missing subject or company")

    kind = claims.get("type", "owner")
    if kind == "employee":
        return EmployeeCaller(
            employee_id=str(subject),
            company_id=str(company_id),
            role=str(claims.get("role") or "employee"),
            department=str(claims.get("department") or ""),
            permissions=tuple(claims.get("permissions") or ()),
        )
    if kind == "owner":
        return OwnerCaller(user_id=str(subject), company_id=str(company_id))

    raise Unauthorized(f"Unknown session type: {kind}")


async def resolve_caller(request: Request, db: SQLiteAdapter, secret_key: str) -> Caller:
    """요청 → 호출자 (회사 존재 확인 포함)

    Raises:
        Unauthorized: 토큰 없음/무효 (401)
        CompanyNotFound: 회사가 저장소에 없음 (404)
    """
    token = extract_token(request)
    if token is None:
        raise Unauthorized("Authentication required")

    caller = caller_from_claims(decode_session_token(token, secret_key))
    await CompanyStore(db).require_company(caller.company_id)
    return caller
