"""
회사 / 프로젝트 저장소

회사는 온보딩에서 생성되며 (범위 밖) 여기서는 조회와 기본 통화 변경만 담당.
프로젝트는 거래-프로젝트 연결 검증용 최소 저장소.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from core.constants import Defaults
from core.errors import CompanyNotFound, ProjectNotFound
from core.ledger.models import Company, Project
from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_COMPANY_SELECT = f"SELECT {', '.join(Company.COLUMNS)} FROM company"
_PROJECT_SELECT = f"SELECT {', '.join(Project.COLUMNS)} FROM project"


class CompanyStore:
    """회사 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_company(
        self,
        name: str,
        default_currency: str = Defaults.CURRENCY,
        company_id: str | None = None,
    ) -> Company:
        """회사 생성 (시드/테스트용)"""
        now = now_utc_iso()
        company = Company(
            id=company_id or str(uuid4()),
            name=name,
            default_currency=default_currency.upper(),
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(
            """
            INSERT INTO company (id, name, default_currency, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (company.id, company.name, company.default_currency, now, now),
        )
        await self.db.commit()
        logger.info(f"회사 생성: {company.id} ({company.name})")
        return company

    async def get_company(self, company_id: str) -> Company | None:
        row = await self.db.fetchone(f"{_COMPANY_SELECT} WHERE id = ?", (company_id,))
        return Company.from_row(row) if row else None

    async def require_company(self, company_id: str) -> Company:
        """회사 조회 (없으면 CompanyNotFound)"""
        company = await self.get_company(company_id)
        if company is None:
            raise CompanyNotFound(f"Company not found: {company_id}")
        return company

    async def set_default_currency(self, company_id: str, currency: str) -> Company:
        """기본 통화 변경 (같은 값이면 그대로 반환)

        통화 지원 여부 검증은 CurrencyService 책임.
        """
        company = await self.require_company(company_id)
        currency = currency.upper()
        if company.default_currency == currency:
            return company

        now = now_utc_iso()
        await self.db.execute(
            "UPDATE company SET default_currency = ?, updated_at = ? WHERE id = ?",
            (currency, now, company_id),
        )
        await self.db.commit()
        logger.info(
            f"기본 통화 변경: company={company_id} "
            f"{company.default_currency} -> {currency}"
        )
        company.default_currency = currency
        company.updated_at = now
        return company

    # -------------------------------------------------------------------------
    # 프로젝트
    # -------------------------------------------------------------------------

    async def create_project(
        self,
        company_id: str,
        name: str,
        project_id: str | None = None,
    ) -> Project:
        project = Project(id=project_id or str(uuid4()), company_id=company_id, name=name)
        await self.db.execute(
            "INSERT INTO project (id, company_id, name, created_at) VALUES (?, ?, ?, ?)",
            (project.id, company_id, name, now_utc_iso()),
        )
        await self.db.commit()
        return project

    async def get_project(self, company_id: str, project_id: str) -> Project | None:
        """회사 소유 프로젝트 조회 (다른 회사 소유면 None)"""
        row = await self.db.fetchone(
            f"{_PROJECT_SELECT} WHERE id = ? AND company_id = ?",
            (project_id, company_id),
        )
        return Project.from_row(row) if row else None

    async def require_project(self, company_id: str, project_id: str) -> Project:
        project = await self.get_project(company_id, project_id)
        if project is None:
            raise ProjectNotFound(f"Project not found: {project_id}")
        return project
