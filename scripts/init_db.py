"""
재무 DB 초기화

사용법:
    python -m scripts.init_db
    python -m scripts.init_db --company-id acme --company-name "Acme Inc." --currency EUR
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.ledger.company_store import CompanyStore
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(
    config_path: Path | None,
    company_id: str | None,
    company_name: str | None,
    currency: str | None,
) -> None:
    """스키마 생성 (+ 선택적으로 회사 등록)"""
    settings = get_settings(config_path)
    logger.info(f"DB 경로: {settings.db_path}")

    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)

        if company_id is None:
            return

        companies = CompanyStore(db)
        existing = await companies.get_company(company_id)
        if existing is not None:
            logger.info(f"회사 이미 존재: {existing.id} ({existing.name}, {existing.default_currency})")
            return

        company = await companies.create_company(
            name=company_name or company_id,
            default_currency=(currency or settings.default_currency).upper(),
            company_id=company_id,
        )
        logger.info(f"회사 등록: {company.id} ({company.name}, {company.default_currency})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="재무 DB 스키마 초기화")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--company-id", default=None, help="등록할 회사 ID")
    parser.add_argument("--company-name", default=None, help="회사 이름 (기본: 회사 ID)")
    parser.add_argument("--currency", default=None, help="회사 기본 통화 (기본: 설정값)")
    args = parser.parse_args()

    setup_logging("cli")
    asyncio.run(main(args.config, args.company_id, args.company_name, args.currency))
