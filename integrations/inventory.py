"""
Inventory → Ledger 동기화

재고 수량 증가분을 매입 지출 거래로 기록하고 즉시 잔액 반영.
수량 감소/변동 없음은 거래를 만들지 않음.

재고 품목 하나에 입고 거래가 여러 건 생길 수 있으므로
event_id가 주어지면 source_key로 재시도 중복을 막음.

중복 정책:
    event_id 없는 호출은 모두 새 입고로 취급.
    같은 품목/수량 변경이 두 번 들어오면 매입 거래도 두 건 생성됨.
    (재시도와 실제 두 번째 입고를 구분할 정보가 없음)
    재시도 가능한 호출자는 반드시 event_id를 넘겨야 함.
"""

import logging
from decimal import Decimal

from adapters.models import NotificationPayload
from core.ledger.models import InventoryItem, Transaction
from core.types import TransactionStatus, TransactionType
from core.utils.dedup import make_inventory_source_key
from core.utils.timezone import today_utc
from integrations.base import LedgerSyncBase
from integrations.category_policy import INVENTORY

logger = logging.getLogger(__name__)


class InventoryLedgerSync(LedgerSyncBase):
    """Inventory → Ledger 동기화기"""

    async def track_inventory_quantity_change(
        self,
        item: InventoryItem,
        old_quantity: int,
        new_quantity: int,
        user_id: str | None = None,
        event_id: str | None = None,
    ) -> Transaction | None:
        """재고 수량 변경 → 입고분 매입 거래

        Args:
            item: 재고 품목 (price는 단가)
            old_quantity: 변경 전 수량
            new_quantity: 변경 후 수량
            user_id: 변경한 사용자 (있으면 알림 수신자)
            event_id: 수량 변경 이벤트 ID (재시도 중복 방지 키)

        Returns:
            생성된 거래 (재시도면 기존 거래, 증가분 없으면 None)

        Raises:
            NoAccountConfigured: bank/cash 계좌 없음
        """
        added = new_quantity - old_quantity
        if added <= 0:
            logger.debug(f"재고 증가분 없음, 거래 생략: item={item.id} {old_quantity} -> {new_quantity}")
            return None

        source_key = None
        if event_id is not None:
            source_key = make_inventory_source_key(item.company_id, item.id, event_id)
            existing = await self.transactions.find_by_source_key(item.company_id, source_key)
            if existing is not None:
                logger.debug(f"재고 이벤트 재시도, 기존 거래 반환: {source_key} -> {existing.id}")
                return existing

        amount = Decimal(str(item.price)) * added
        if amount <= 0:
            logger.debug(f"단가 0 재고 입고, 거래 생략: item={item.id}")
            return None

        account = await self._funding_account(item.company_id)
        category_id = await self._category_id(item.company_id, INVENTORY)

        async with self.db.transaction(immediate=True):
            txn = await self.transactions.create(
                company_id=item.company_id,
                date=today_utc(),
                description=f"Inventory Purchase: {item.name} ({added} units)",
                amount=amount,
                currency=account.currency,
                type=TransactionType.EXPENSE.value,
                status=TransactionStatus.COMPLETED.value,
                category_id=category_id,
                account_id=account.id,
                related_to=item.id,
                source_key=source_key,
                reference=item.sku,
                notes=f"Automatically generated for inventory purchase. SKU: {item.sku}",
            )
            await self.maintainer.apply_transaction_to_balance(item.company_id, txn.id, account.id)

        logger.info(f"재고 매입 거래 생성: item={item.id} txn={txn.id} ({added} x {item.price})")

        if user_id:
            await self._notify(NotificationPayload(
                company_id=item.company_id,
                title="Inventory Expense Recorded",
                message=(
                    f"A transaction of {amount} has been created for inventory purchase: "
                    f"{item.name}"
                ),
                type="info",
                category="finance",
                recipient_id=user_id,
                recipient_type="user",
                related_item_id=txn.id,
                related_item_type="transaction",
                action_url=f"/dashboard/finance/transactions?id={txn.id}",
            ))

        return await self.transactions.require(item.company_id, txn.id)
