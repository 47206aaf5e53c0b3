"""
거래 서비스

수동 거래 입력 (생성/수정/삭제)과 잔액 효과 조정.
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import UnsupportedCurrency, ValidationError
from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.balance import AccountBalanceMaintainer
from core.ledger.currency import CurrencyService
from core.ledger.models import Transaction
from core.ledger.transaction_store import TransactionFilter, TransactionStore
from core.types import TransactionStatus

logger = logging.getLogger(__name__)


class TransactionService:
    """거래 서비스

    TransactionStore에 잔액 반영 부수효과를 더함.
    - 생성: completed면 즉시 반영
    - 수정: 기존 효과 역반영 → 수정 → completed면 재반영
    - 삭제: 역반영 → 삭제
    """

    def __init__(self, db: SQLiteAdapter, currency: CurrencyService | None = None):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.store = TransactionStore(db)
        self.accounts = AccountStore(db)
        self.categories = CategoryStore(db)
        self.maintainer = AccountBalanceMaintainer(db, self.currency)

    async def list_transactions(
        self,
        company_id: str,
        filters: TransactionFilter,
        limit: int = 50,
        offset: int = 0,
    ) -> dict[str, Any]:
        """거래 목록 (날짜 내림차순)

        Returns:
            transactions, total, limit, offset 포함 응답
        """
        transactions = await self.store.list(company_id, filters, limit=limit, offset=offset)
        total = await self.store.count(company_id, filters)
        return {
            "transactions": transactions,
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    async def count_transactions(self, company_id: str, filters: TransactionFilter) -> int:
        return await self.store.count(company_id, filters)

    async def create_transaction(self, company_id: str, **fields: Any) -> Transaction:
        """수동 거래 생성

        Raises:
            AccountNotFound: 계좌가 없거나 다른 회사 소유
            ValidationError: 카테고리가 없거나 다른 회사 소유
            UnsupportedCurrency: 지원하지 않는 통화
        """
        account = None
        if fields.get("account_id"):
            account = await self.accounts.require(company_id, fields["account_id"])
        await self._check_category(company_id, fields.get("category_id"))

        currency = fields.pop("currency", None)
        if currency is None:
            if account is not None:
                currency = account.currency
            else:
                currency = await self.currency.get_company_default_currency(company_id)
        currency = self._check_currency(currency)

        async with self.db.transaction(immediate=True):
            txn = await self.store.create(company_id=company_id, currency=currency, **fields)
            if txn.status == TransactionStatus.COMPLETED.value:
                await self.maintainer.apply_transaction_to_balance(company_id, txn.id)

        logger.info(f"수동 거래 생성: {txn.id} ({txn.type} {txn.amount} {txn.currency}, {txn.status})")
        return await self.store.require(company_id, txn.id)

    async def update_transaction(
        self,
        company_id: str,
        transaction_id: str,
        **fields: Any,
    ) -> Transaction:
        """거래 수정 (잔액 효과 재조정)

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            AccountNotFound: 새 계좌가 없거나 다른 회사 소유
        """
        if fields.get("account_id"):
            await self.accounts.require(company_id, fields["account_id"])
        await self._check_category(company_id, fields.get("category_id"))
        if fields.get("currency") is not None:
            fields["currency"] = self._check_currency(fields["currency"])

        async with self.db.transaction(immediate=True):
            current = await self.store.require(company_id, transaction_id)
            if current.is_applied:
                await self.maintainer.reverse_transaction_from_balance(company_id, current.id)

            txn = await self.store.update(company_id, transaction_id, **fields)
            if txn.status == TransactionStatus.COMPLETED.value:
                await self.maintainer.apply_transaction_to_balance(company_id, txn.id)

        logger.info(f"거래 수정: {transaction_id} {current.status}/{current.amount} -> {txn.status}/{txn.amount}")
        return await self.store.require(company_id, transaction_id)

    async def delete_transaction(self, company_id: str, transaction_id: str) -> None:
        """거래 삭제 (반영된 효과 먼저 역반영)

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
        """
        async with self.db.transaction(immediate=True):
            await self.store.require(company_id, transaction_id)
            await self.maintainer.reverse_transaction_from_balance(company_id, transaction_id)
            await self.store.delete(company_id, transaction_id)

        logger.info(f"거래 삭제: {transaction_id}")

    async def link_project(
        self,
        company_id: str,
        transaction_id: str,
        project_id: str,
    ) -> Transaction:
        return await self.store.link_project(company_id, transaction_id, project_id)

    async def _check_category(self, company_id: str, category_id: str | None) -> None:
        if not category_id:
            return
        if await self.categories.get(company_id, category_id) is None:
            raise ValidationError(
                "Unknown category",
                details={"category_id": f"category not found: {category_id}"},
            )

    def _check_currency(self, currency: str) -> str:
        code = currency.upper()
        if not self.currency.is_supported(code):
            raise UnsupportedCurrency(code)
        return code
