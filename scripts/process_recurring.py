"""
반복 거래 처리 (스케줄러용)

도래한 반복 거래 일정의 거래를 생성하고 잔액에 반영.
같은 날 여러 번 실행해도 예정일당 거래 1건.

사용법:
    python -m scripts.process_recurring --company-id acme
    python -m scripts.process_recurring --company-id acme --as-of 2024-03-31
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger.currency import CurrencyService
from core.ledger.recurring import RecurringProcessor
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(config_path: Path | None, company_id: str, as_of: str | None) -> int:
    """처리 실행

    Returns:
        종료 코드 (실패 일정이 있으면 1)
    """
    settings = get_settings(config_path)

    async with SQLiteAdapter(settings.db_path) as db:
        currency = CurrencyService(db, rate_overrides=settings.rate_overrides)
        result = await RecurringProcessor(db, currency).process_due(company_id, as_of)

    for entry in result["results"]:
        if entry["success"]:
            logger.info(
                f"  {entry['name']:<24} 생성 {len(entry['transaction_ids'])}건, 다음 {entry['next_due_date']}"
            )

    if result["failed"]:
        failed = [r["id"] for r in result["results"] if not r["success"]]
        logger.error(f"반복 거래 처리 실패 {result['failed']}건: {failed}")
        return 1
    logger.info(f"반복 거래 처리 완료: {result['processed']}개 일정")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="반복 거래 처리")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--company-id", required=True, help="회사 ID")
    parser.add_argument("--as-of", default=None, help="기준일 YYYY-MM-DD (생략 시 오늘)")
    args = parser.parse_args()

    setup_logging("cli")
    sys.exit(asyncio.run(main(args.config, args.company_id, args.as_of)))
