"""
소스 문서 동기화 공통 기반

계좌/카테고리 결정과 알림 발행.
"""

import logging
from typing import TYPE_CHECKING

from adapters.interfaces import INotificationSink
from adapters.models import NotificationPayload
from core.errors import NoAccountConfigured
from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.balance import AccountBalanceMaintainer
from core.ledger.currency import CurrencyService
from core.ledger.models import FinancialAccount
from core.ledger.transaction_store import TransactionStore
from integrations.category_policy import match_category

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class LedgerSyncBase:
    """동기화기 공통 기반

    Args:
        db: SQLite 어댑터
        currency: 통화 환산 서비스
        sink: 알림 싱크 (None이면 알림 생략)
    """

    def __init__(
        self,
        db: "SQLiteAdapter",
        currency: CurrencyService | None = None,
        sink: INotificationSink | None = None,
    ):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.sink = sink
        self.transactions = TransactionStore(db)
        self.accounts = AccountStore(db)
        self.categories = CategoryStore(db)
        self.maintainer = AccountBalanceMaintainer(db, self.currency)

    async def _funding_account(self, company_id: str) -> FinancialAccount:
        """동기화 대상 계좌 (첫 번째 bank/cash)

        Raises:
            NoAccountConfigured: bank/cash 계좌 없음
        """
        account = await self.accounts.first_funding_account(company_id)
        if account is None:
            logger.error(f"동기화 대상 계좌 없음: company={company_id}")
            raise NoAccountConfigured(company_id)
        return account

    async def _category_id(self, company_id: str, canonical: str) -> str | None:
        """정책에 따른 카테고리 ID (없으면 None)"""
        category = match_category(await self.categories.list(company_id), canonical)
        if category is None:
            logger.debug(f"{canonical} 카테고리 없음, 미분류로 기록: company={company_id}")
            return None
        return category.id

    async def _notify(self, payload: NotificationPayload) -> None:
        """정보성 알림 (실패해도 원장 기록은 유지)"""
        if self.sink is None:
            return
        try:
            await self.sink.create_notification(payload)
        except Exception:
            logger.exception(f"동기화 알림 저장 실패: {payload.type} ({payload.related_item_id})")
