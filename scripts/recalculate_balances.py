"""
계좌 잔액 재계산 (복구 경로)

거래 이력으로 잔액을 다시 계산하고 반영 마커를 재기록.
여러 번 실행해도 결과 동일.

사용법:
    python -m scripts.recalculate_balances --company-id acme
    python -m scripts.recalculate_balances --company-id acme --account-id <계좌 ID>
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
from core.ledger.account_store import AccountStore
from core.ledger.balance import AccountBalanceMaintainer
from core.ledger.currency import CurrencyService
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(config_path: Path | None, company_id: str, account_id: str | None) -> int:
    """재계산 실행

    Returns:
        종료 코드 (실패 계좌가 있으면 1)
    """
    settings = get_settings(config_path)

    async with SQLiteAdapter(settings.db_path) as db:
        currency = CurrencyService(db, rate_overrides=settings.rate_overrides)
        maintainer = AccountBalanceMaintainer(db, currency)

        if account_id is not None:
            success = await maintainer.recalculate_account_balance(company_id, account_id)
            results = [{"account_id": account_id, "success": success}]
        else:
            results = await maintainer.recalculate_all_account_balances(company_id)

        for account in await AccountStore(db).list(company_id):
            logger.info(f"  {account.name:<24} {account.balance:>16} {account.currency}")

    failed = [r for r in results if not r["success"]]
    if failed:
        logger.error(f"재계산 실패 계좌 {len(failed)}건: {[r['account_id'] for r in failed]}")
        return 1
    logger.info(f"재계산 완료: {len(results)}개 계좌")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="계좌 잔액 재계산")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--company-id", required=True, help="회사 ID")
    parser.add_argument("--account-id", default=None, help="계좌 ID (생략 시 전체)")
    args = parser.parse_args()

    setup_logging("cli")
    sys.exit(asyncio.run(main(args.config, args.company_id, args.account_id)))
