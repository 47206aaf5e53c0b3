"""
계좌 잔액 관리자 (Account Balance Maintainer)

계좌 잔액을 변경하는 유일한 컴포넌트.

불변식:
    balance = Σ (완료 거래의 부호 있는 계좌 통화 금액)
    수입 +amount, 지출 -amount

반영 마커:
    ledger_transaction.applied_amount가 NULL이면 미반영.
    반영 시 "applied_amount IS NULL" 조건부 UPDATE(compare-and-set)로
    같은 거래가 두 번 반영되는 것을 차단.

직렬화:
    잔액 read-modify-write는 BEGIN IMMEDIATE 트랜잭션 안에서 수행.
    같은 DB에 대한 동시 쓰기는 SQLite 쓰기 잠금으로 순서가 정해짐.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Money
from core.errors import AccountNotFound, TransactionNotFound
from core.ledger.currency import CurrencyService
from core.ledger.models import FinancialAccount, Transaction
from core.types import TransactionStatus, TransactionType
from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_TXN_SELECT = f"SELECT {', '.join(Transaction.COLUMNS)} FROM ledger_transaction"
_ACCOUNT_SELECT = f"SELECT {', '.join(FinancialAccount.COLUMNS)} FROM financial_account"


def signed_effect(txn: Transaction, rate: Decimal, account_currency: str) -> Decimal:
    """거래가 계좌 잔액에 주는 부호 있는 효과 (계좌 통화)

    같은 통화면 금액 그대로, 다르면 환율 스냅샷 적용 후 소수점 2자리 반올림.
    """
    if txn.currency == account_currency:
        value = txn.amount
    else:
        value = (txn.amount * rate).quantize(Money.QUANT, rounding=ROUND_HALF_UP)

    if txn.type == TransactionType.INCOME.value:
        return value
    return -value


class AccountBalanceMaintainer:
    """계좌 잔액 관리자

    Args:
        db: SQLite 어댑터
        currency: 통화 환산 서비스 (거래 통화 ≠ 계좌 통화일 때 환율 스냅샷)

    사용 예시:
    ```python
    maintainer = AccountBalanceMaintainer(db, CurrencyService(db))

    applied = await maintainer.apply_transaction_to_balance(company_id, txn_id, account_id)
    await maintainer.reverse_transaction_from_balance(company_id, txn_id)
    await maintainer.recalculate_account_balance(company_id, account_id)
    ```
    """

    def __init__(self, db: SQLiteAdapter, currency: CurrencyService | None = None):
        self.db = db
        self.currency = currency or CurrencyService(db)

    # -------------------------------------------------------------------------
    # 증분 반영 / 역반영
    # -------------------------------------------------------------------------

    async def apply_transaction_to_balance(
        self,
        company_id: str,
        transaction_id: str,
        account_id: str | None = None,
    ) -> bool:
        """완료 거래를 계좌 잔액에 반영

        이미 반영된 거래(applied_amount 설정됨)면 아무것도 하지 않고 False.
        account_id가 주어지고 거래에 계좌가 없으면 거래를 해당 계좌에 연결.

        Returns:
            이번 호출로 반영했으면 True

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            AccountNotFound: 계좌가 없거나 다른 회사 소유
            UnsupportedCurrency: 환율 스냅샷을 만들 수 없는 통화
        """
        async with self.db.transaction(immediate=True):
            txn = await self._load_transaction(company_id, transaction_id)

            if txn.status != TransactionStatus.COMPLETED.value:
                logger.debug(f"완료 상태가 아닌 거래는 반영하지 않음: {transaction_id} ({txn.status})")
                return False

            if txn.is_applied:
                logger.debug(f"이미 반영된 거래, 건너뜀: {transaction_id}")
                return False

            target_id = txn.account_id or account_id
            if target_id is None:
                logger.debug(f"계좌 없는 거래는 반영하지 않음: {transaction_id}")
                return False

            account = await self._load_account(company_id, target_id)

            rate = txn.exchange_rate
            if rate is None:
                rate = self.currency.get_rate(txn.currency, account.currency)
            effect = signed_effect(txn, rate, account.currency)

            cursor = await self.db.execute(
                """
                UPDATE ledger_transaction
                SET applied_amount = ?, exchange_rate = ?, account_id = ?, updated_at = ?
                WHERE id = ? AND applied_amount IS NULL
                """,
                (str(effect), str(rate), account.id, now_utc_iso(), txn.id),
            )
            if cursor.rowcount == 0:
                logger.debug(f"동시 반영 감지, 건너뜀: {transaction_id}")
                return False

            new_balance = account.balance + effect
            await self._write_balance(
                account,
                new_balance,
                transaction_id=txn.id,
                description=f"Applied {txn.type} transaction: {txn.description}",
            )

        logger.info(
            f"잔액 반영: account={account.id} txn={txn.id} "
            f"{account.balance} -> {new_balance} ({effect:+})"
        )
        return True

    async def reverse_transaction_from_balance(
        self,
        company_id: str,
        transaction_id: str,
    ) -> bool:
        """반영된 거래 효과를 잔액에서 제거하고 마커 해제

        완료→기타 상태 전환, 금액/계좌 수정, 삭제 전에 호출.

        Returns:
            이번 호출로 역반영했으면 True (미반영 거래는 False)

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            AccountNotFound: 반영 대상 계좌가 없거나 다른 회사 소유
        """
        async with self.db.transaction(immediate=True):
            txn = await self._load_transaction(company_id, transaction_id)

            applied = txn.applied_amount
            if applied is None:
                logger.debug(f"반영되지 않은 거래, 역반영 건너뜀: {transaction_id}")
                return False

            if txn.account_id is None:
                # 계좌 없이 마커만 남은 경우 (수동 DB 수정 등)
                await self._clear_marker(txn.id)
                logger.warning(f"계좌 없는 반영 마커 해제: {transaction_id}")
                return False

            account = await self._load_account(company_id, txn.account_id)

            cursor = await self._clear_marker(txn.id)
            if cursor.rowcount == 0:
                return False

            new_balance = account.balance - applied
            await self._write_balance(
                account,
                new_balance,
                transaction_id=txn.id,
                description=f"Reversed {txn.type} transaction: {txn.description}",
            )

        logger.info(
            f"잔액 역반영: account={account.id} txn={txn.id} "
            f"{account.balance} -> {new_balance} ({-applied:+})"
        )
        return True

    # -------------------------------------------------------------------------
    # 전체 재계산 (복구 경로)
    # -------------------------------------------------------------------------

    async def recalculate_account_balance(self, company_id: str, account_id: str) -> bool:
        """거래 이력으로 잔액 재계산

        계좌를 참조하는 완료 거래의 부호 있는 환산 금액 합으로 잔액을 덮어쓰고,
        각 거래의 applied_amount를 다시 기록 (미완료 거래는 마커 해제).
        여러 번 실행해도 결과 동일.

        Raises:
            AccountNotFound: 계좌가 없거나 다른 회사 소유
        """
        async with self.db.transaction(immediate=True):
            account = await self._load_account(company_id, account_id)

            rows = await self.db.fetchall(
                f"{_TXN_SELECT} WHERE company_id = ? AND account_id = ? ORDER BY date, rowid",
                (company_id, account_id),
            )
            transactions = [Transaction.from_row(row) for row in rows]

            total = Money.ZERO
            contributing = 0
            now = now_utc_iso()
            for txn in transactions:
                if txn.status == TransactionStatus.COMPLETED.value:
                    rate = txn.exchange_rate
                    if rate is None:
                        rate = self.currency.get_rate(txn.currency, account.currency)
                    effect = signed_effect(txn, rate, account.currency)
                    total += effect
                    contributing += 1
                    await self.db.execute(
                        """
                        UPDATE ledger_transaction
                        SET applied_amount = ?, exchange_rate = ?, updated_at = ?
                        WHERE id = ?
                        """,
                        (str(effect), str(rate), now, txn.id),
                    )
                elif txn.is_applied:
                    await self._clear_marker(txn.id)

            await self._write_balance(
                account,
                total,
                transaction_id=None,
                description=f"Balance recalculated from {contributing} completed transactions",
            )

        logger.info(
            f"잔액 재계산: account={account_id} {account.balance} -> {total} "
            f"(완료 거래 {contributing}건)"
        )
        return True

    async def recalculate_all_account_balances(self, company_id: str) -> list[dict[str, Any]]:
        """회사의 모든 계좌 잔액 재계산

        계좌별로 독립 트랜잭션. 한 계좌 실패가 나머지를 중단시키지 않음.

        Returns:
            [{"account_id", "account_name", "success"}]
        """
        rows = await self.db.fetchall(
            "SELECT id, name FROM financial_account WHERE company_id = ? ORDER BY seq",
            (company_id,),
        )

        results: list[dict[str, Any]] = []
        for account_id, account_name in rows:
            try:
                success = await self.recalculate_account_balance(company_id, account_id)
            except Exception:
                logger.exception(f"계좌 잔액 재계산 실패: {account_id} ({account_name})")
                success = False
            results.append({
                "account_id": account_id,
                "account_name": account_name,
                "success": success,
            })

        succeeded = sum(1 for r in results if r["success"])
        logger.info(f"전체 잔액 재계산 완료: company={company_id} {succeeded}/{len(results)} 성공")
        return results

    # -------------------------------------------------------------------------
    # 감사 로그
    # -------------------------------------------------------------------------

    async def list_audit_entries(self, company_id: str, account_id: str) -> list[dict[str, Any]]:
        """계좌 잔액 변경 이력 (오래된 순)"""
        await self._load_account(company_id, account_id)
        rows = await self.db.fetchall(
            """
            SELECT id, account_id, transaction_id, previous_balance, new_balance,
                   change_amount, description, performed_at
            FROM balance_audit_log
            WHERE account_id = ?
            ORDER BY id
            """,
            (account_id,),
        )
        return [
            {
                "id": row[0],
                "account_id": row[1],
                "transaction_id": row[2],
                "previous_balance": Decimal(row[3]),
                "new_balance": Decimal(row[4]),
                "change_amount": Decimal(row[5]),
                "description": row[6],
                "performed_at": row[7],
            }
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _load_transaction(self, company_id: str, transaction_id: str) -> Transaction:
        row = await self.db.fetchone(
            f"{_TXN_SELECT} WHERE id = ? AND company_id = ?",
            (transaction_id, company_id),
        )
        if row is None:
            raise TransactionNotFound(f"Transaction not found: {transaction_id}")
        return Transaction.from_row(row)

    async def _load_account(self, company_id: str, account_id: str) -> FinancialAccount:
        row = await self.db.fetchone(
            f"{_ACCOUNT_SELECT} WHERE id = ? AND company_id = ?",
            (account_id, company_id),
        )
        if row is None:
            raise AccountNotFound(f"Account not found: {account_id}")
        return FinancialAccount.from_row(row)

    async def _clear_marker(self, transaction_id: str):
        return await self.db.execute(
            """
            UPDATE ledger_transaction SET applied_amount = NULL, updated_at = ?
            WHERE id = ? AND applied_amount IS NOT NULL
            """,
            (now_utc_iso(), transaction_id),
        )

    async def _write_balance(
        self,
        account: FinancialAccount,
        new_balance: Decimal,
        transaction_id: str | None,
        description: str,
    ) -> None:
        """잔액 저장 + 감사 로그 (호출자 트랜잭션 안에서)"""
        now = now_utc_iso()
        await self.db.execute(
            "UPDATE financial_account SET balance = ?, updated_at = ? WHERE id = ?",
            (str(new_balance), now, account.id),
        )
        await self.db.execute(
            """
            INSERT INTO balance_audit_log (
                account_id, transaction_id, previous_balance, new_balance,
                change_amount, description, performed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                account.id,
                transaction_id,
                str(account.balance),
                str(new_balance),
                str(new_balance - account.balance),
                description,
                now,
            ),
        )
