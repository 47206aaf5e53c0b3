"""
Sales → Ledger 동기화

판매 문서 생성/수정/삭제를 연결된 수입 거래(related_to = sale.id)에 반영.

상태 전환별 잔액 효과:
    pending → completed     : 1회 반영
    completed → completed   : 금액/통화가 바뀌면 기존 효과 역반영 후 재반영
    completed → 그 외        : 역반영
    삭제                    : 역반영 후 거래 삭제

같은 판매에 대한 생성 재시도는 수정 경로로 처리 (중복 거래 없음).
"""

import logging
from decimal import Decimal

from adapters.models import NotificationPayload
from core.ledger.models import Sale, Transaction
from core.types import SaleStatus, TransactionStatus, TransactionType
from core.utils.dedup import make_sale_source_key
from integrations.base import LedgerSyncBase
from integrations.category_policy import SALES

logger = logging.getLogger(__name__)


def sale_description(sale: Sale) -> str:
    return f"Sale to {sale.customer_name} - Invoice #{sale.invoice_number or 'N/A'}"


def sale_notes(sale: Sale, prefix: str) -> str:
    products = ", ".join(item.product for item in sale.items)
    return f"Automatically {prefix} from sale. Items: {products}"


def sale_transaction_status(sale: Sale) -> str:
    if sale.status == SaleStatus.COMPLETED.value:
        return TransactionStatus.COMPLETED.value
    return TransactionStatus.PENDING.value


class SalesLedgerSync(LedgerSyncBase):
    """Sales → Ledger 동기화기

    사용 예시:
    ```python
    sync = SalesLedgerSync(db, currency, sink=NotificationStore(db))

    txn = await sync.on_sale_created(sale)
    txn = await sync.on_sale_updated(sale)
    await sync.on_sale_deleted(sale.company_id, sale.id)
    ```
    """

    async def on_sale_created(self, sale: Sale) -> Transaction:
        """판매 생성 → 수입 거래 생성 (완료 판매면 즉시 잔액 반영)

        이미 연결된 거래가 있으면 수정 경로로 위임.

        Raises:
            NoAccountConfigured: bank/cash 계좌 없음
        """
        existing = await self.transactions.find_by_related(sale.company_id, sale.id)
        if existing is not None:
            logger.debug(f"판매 거래 이미 존재, 수정 경로 사용: sale={sale.id} txn={existing.id}")
            return await self._update_from_sale(existing, sale)

        account = await self._funding_account(sale.company_id)
        category_id = await self._category_id(sale.company_id, SALES)

        async with self.db.transaction(immediate=True):
            txn = await self.transactions.create(
                company_id=sale.company_id,
                date=sale.date,
                description=sale_description(sale),
                amount=sale.total,
                currency=account.currency,
                type=TransactionType.INCOME.value,
                status=sale_transaction_status(sale),
                category_id=category_id,
                account_id=account.id,
                related_to=sale.id,
                source_key=make_sale_source_key(sale.company_id, sale.id),
                reference=sale.invoice_number,
                notes=sale_notes(sale, "generated"),
            )
            if txn.status == TransactionStatus.COMPLETED.value:
                await self.maintainer.apply_transaction_to_balance(
                    sale.company_id, txn.id, account.id
                )

        logger.info(f"판매 거래 생성: sale={sale.id} txn={txn.id} ({txn.amount}, {txn.status})")

        if sale.employee_id:
            await self._notify(NotificationPayload(
                company_id=sale.company_id,
                title="New Sales Transaction Created",
                message=(
                    f"A transaction of {sale.total} has been created from sale "
                    f"#{sale.invoice_number or 'N/A'}"
                ),
                type="info",
                category="finance",
                recipient_id=sale.employee_id,
                recipient_type="employee",
                related_item_id=txn.id,
                related_item_type="transaction",
                action_url=f"/dashboard/finance/transactions?id={txn.id}",
            ))

        return await self.transactions.require(sale.company_id, txn.id)

    async def on_sale_updated(self, sale: Sale) -> Transaction:
        """판매 수정 → 연결 거래 수정 (없으면 생성 경로)"""
        existing = await self.transactions.find_by_related(sale.company_id, sale.id)
        if existing is None:
            return await self.on_sale_created(sale)
        return await self._update_from_sale(existing, sale)

    async def on_sale_deleted(self, company_id: str, sale_id: str) -> bool:
        """판매 삭제 → 연결 거래 역반영 후 삭제

        연결 거래가 없으면 아무것도 하지 않고 성공.
        """
        existing = await self.transactions.find_by_related(company_id, sale_id)
        if existing is None:
            logger.debug(f"삭제할 판매 거래 없음: sale={sale_id}")
            return True

        async with self.db.transaction(immediate=True):
            await self.maintainer.reverse_transaction_from_balance(company_id, existing.id)
            await self.transactions.delete(company_id, existing.id)

        logger.info(f"판매 거래 삭제: sale={sale_id} txn={existing.id}")
        return True

    async def _update_from_sale(self, existing: Transaction, sale: Sale) -> Transaction:
        new_status = sale_transaction_status(sale)
        new_amount = Decimal(str(sale.total))

        async with self.db.transaction(immediate=True):
            # 재조회 (잠금 획득 후 상태 기준)
            current = await self.transactions.require(sale.company_id, existing.id)

            unchanged_effect = (
                current.is_applied
                and new_status == TransactionStatus.COMPLETED.value
                and current.amount == new_amount
            )
            if current.is_applied and not unchanged_effect:
                await self.maintainer.reverse_transaction_from_balance(sale.company_id, current.id)

            txn = await self.transactions.update(
                sale.company_id,
                current.id,
                date=sale.date,
                description=sale_description(sale),
                amount=new_amount,
                status=new_status,
                reference=sale.invoice_number,
                notes=sale_notes(sale, "updated"),
            )

            if txn.status == TransactionStatus.COMPLETED.value and not unchanged_effect:
                account_id = txn.account_id
                if account_id is None:
                    account_id = (await self._funding_account(sale.company_id)).id
                await self.maintainer.apply_transaction_to_balance(
                    sale.company_id, txn.id, account_id
                )

        logger.info(
            f"판매 거래 수정: sale={sale.id} txn={txn.id} "
            f"{current.status}/{current.amount} -> {new_status}/{new_amount}"
        )
        return await self.transactions.require(sale.company_id, txn.id)
