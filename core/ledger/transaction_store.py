"""
Ledger 거래 저장소

회사 범위 거래 CRUD 및 필터 조회.

잔액 반영 마커(applied_amount)와 환율 스냅샷(exchange_rate)은
AccountBalanceMaintainer가 기록하므로 update()에서 받지 않음.
(계좌/통화 변경 시 스냅샷 초기화만 여기서 수행)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from core.errors import ProjectNotFound, TransactionNotFound, ValidationError
from core.ledger.company_store import CompanyStore
from core.ledger.models import Transaction
from core.types import TransactionStatus, TransactionType
from core.utils.timezone import date_str, now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_SELECT = f"SELECT {', '.join(Transaction.COLUMNS)} FROM ledger_transaction"

# update()로 변경 가능한 컬럼
UPDATABLE_FIELDS = frozenset({
    "date",
    "description",
    "amount",
    "currency",
    "type",
    "status",
    "category_id",
    "account_id",
    "reference",
    "notes",
})


@dataclass
class TransactionFilter:
    """거래 목록/건수 조회 필터 (모두 선택)

    start_date / end_date는 양 끝 포함.
    """

    category_id: str | None = None
    account_id: str | None = None
    type: str | None = None
    status: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    project_id: str | None = None

    def to_where(self, company_id: str) -> tuple[str, list[Any]]:
        clauses = ["company_id = ?"]
        params: list[Any] = [company_id]

        for column in ("category_id", "account_id", "type", "status", "project_id"):
            value = getattr(self, column)
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)

        if self.start_date:
            clauses.append("date >= ?")
            params.append(date_str(self.start_date))
        if self.end_date:
            clauses.append("date <= ?")
            params.append(date_str(self.end_date))

        return " AND ".join(clauses), params


def _validate_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError("Invalid amount", details={"amount": "must be a number"}) from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Invalid amount", details={"amount": "must be positive"})
    return amount


def _validate_choice(field_name: str, value: str, choices: type) -> str:
    allowed = [c.value for c in choices]
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field_name}",
            details={field_name: f"must be one of {allowed}"},
        )
    return value


class TransactionStore:
    """Ledger 거래 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        company_id: str,
        date: Any,
        description: str,
        amount: Any,
        currency: str,
        type: str,
        status: str = TransactionStatus.PENDING.value,
        category_id: str | None = None,
        account_id: str | None = None,
        project_id: str | None = None,
        related_to: str | None = None,
        source_key: str | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> Transaction:
        """거래 생성 (잔액 미반영 상태)

        source_key가 이미 존재하면 삽입하지 않고 기존 거래를 반환.

        Raises:
            ValidationError: 금액/유형/상태 값이 잘못된 경우
        """
        now = now_utc_iso()
        txn = Transaction(
            id=str(uuid4()),
            company_id=company_id,
            date=date_str(date),
            description=description,
            amount=_validate_amount(amount),
            currency=currency.upper(),
            type=_validate_choice("type", type, TransactionType),
            status=_validate_choice("status", status, TransactionStatus),
            category_id=category_id,
            account_id=account_id,
            project_id=project_id,
            related_to=related_to,
            source_key=source_key,
            reference=reference,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        cursor = await self.db.execute(
            """
            INSERT INTO ledger_transaction (
                id, company_id, date, description, amount, currency, type, status,
                category_id, account_id, project_id, related_to, source_key,
                reference, notes, exchange_rate, applied_amount,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL, NULL, ?, ?)
            ON CONFLICT(source_key) DO NOTHING
            """,
            (
                txn.id,
                company_id,
                txn.date,
                description,
                str(txn.amount),
                txn.currency,
                txn.type,
                txn.status,
                category_id,
                account_id,
                project_id,
                related_to,
                source_key,
                reference,
                notes,
                now,
                now,
            ),
        )
        await self.db.commit()

        if cursor.rowcount == 0 and source_key is not None:
            existing = await self.find_by_source_key(company_id, source_key)
            if existing is not None:
                logger.debug(f"source_key 중복, 기존 거래 반환: {source_key} -> {existing.id}")
                return existing

        logger.debug(f"거래 생성: {txn.id} ({txn.type} {txn.amount} {txn.currency}, {txn.status})")
        return txn

    async def get(self, company_id: str, transaction_id: str) -> Transaction | None:
        """회사 소유 거래 조회 (다른 회사 소유면 None)"""
        row = await self.db.fetchone(
            f"{_SELECT} WHERE id = ? AND company_id = ?",
            (transaction_id, company_id),
        )
        return Transaction.from_row(row) if row else None

    async def require(self, company_id: str, transaction_id: str) -> Transaction:
        txn = await self.get(company_id, transaction_id)
        if txn is None:
            raise TransactionNotFound(f"Transaction not found: {transaction_id}")
        return txn

    async def update(
        self,
        company_id: str,
        transaction_id: str,
        **fields: Any,
    ) -> Transaction:
        """거래 필드 수정

        잔액 효과 조정(역반영/재반영)은 호출자 책임.

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            ValidationError: 변경 불가 필드 또는 잘못된 값
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown transaction fields",
                details={name: "not updatable" for name in sorted(unknown)},
            )

        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name == "amount":
                value = str(_validate_amount(value))
            elif name == "type":
                value = _validate_choice("type", value, TransactionType)
            elif name == "status":
                value = _validate_choice("status", value, TransactionStatus)
            elif name == "date":
                value = date_str(value)
            elif name == "currency":
                value = str(value).upper()
            values[name] = value

        current = await self.require(company_id, transaction_id)

        # 계좌/통화가 바뀌면 환율 스냅샷 무효
        if (
            ("account_id" in values and values["account_id"] != current.account_id)
            or ("currency" in values and values["currency"] != current.currency)
        ):
            values["exchange_rate"] = None

        if values:
            values["updated_at"] = now_utc_iso()
            assignments = ", ".join(f"{name} = ?" for name in values)
            await self.db.execute(
                f"UPDATE ledger_transaction SET {assignments} WHERE id = ? AND company_id = ?",
                (*values.values(), transaction_id, company_id),
            )
            await self.db.commit()

        return await self.require(company_id, transaction_id)

    async def delete(self, company_id: str, transaction_id: str) -> bool:
        """거래 삭제

        Returns:
            삭제 여부 (없으면 False)
        """
        cursor = await self.db.execute(
            "DELETE FROM ledger_transaction WHERE id = ? AND company_id = ?",
            (transaction_id, company_id),
        )
        await self.db.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug(f"거래 삭제: {transaction_id}")
        return deleted

    async def find_by_related(self, company_id: str, related_to: str) -> Transaction | None:
        """소스 문서에 연결된 첫 번째 거래 (생성 순)"""
        row = await self.db.fetchone(
            f"""
            {_SELECT}
            WHERE company_id = ? AND related_to = ?
            ORDER BY created_at, rowid
            LIMIT 1
            """,
            (company_id, related_to),
        )
        return Transaction.from_row(row) if row else None

    async def find_all_by_related(self, company_id: str, related_to: str) -> list[Transaction]:
        """소스 문서에 연결된 모든 거래 (재고 품목은 입고마다 1건)"""
        rows = await self.db.fetchall(
            f"{_SELECT} WHERE company_id = ? AND related_to = ? ORDER BY created_at, rowid",
            (company_id, related_to),
        )
        return [Transaction.from_row(row) for row in rows]

    async def find_by_source_key(self, company_id: str, source_key: str) -> Transaction | None:
        row = await self.db.fetchone(
            f"{_SELECT} WHERE company_id = ? AND source_key = ?",
            (company_id, source_key),
        )
        return Transaction.from_row(row) if row else None

    async def list(
        self,
        company_id: str,
        filters: TransactionFilter | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """필터 조건 거래 목록 (날짜 내림차순)"""
        where, params = (filters or TransactionFilter()).to_where(company_id)
        sql = f"{_SELECT} WHERE {where} ORDER BY date DESC, created_at DESC, rowid DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        rows = await self.db.fetchall(sql, tuple(params))
        return [Transaction.from_row(row) for row in rows]

    async def count(
        self,
        company_id: str,
        filters: TransactionFilter | None = None,
    ) -> int:
        """필터 조건 거래 건수"""
        where, params = (filters or TransactionFilter()).to_where(company_id)
        row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM ledger_transaction WHERE {where}",
            tuple(params),
        )
        return int(row[0]) if row else 0

    async def list_completed_in_window(
        self,
        company_id: str,
        start_date: Any,
        end_date: Any,
        type: str | None = None,
    ) -> list[Transaction]:
        """기간 내 완료 거래 (예산/리포트 집계용, 날짜 오름차순)"""
        filters = TransactionFilter(
            status=TransactionStatus.COMPLETED.value,
            type=type,
            start_date=date_str(start_date),
            end_date=date_str(end_date),
        )
        where, params = filters.to_where(company_id)
        rows = await self.db.fetchall(
            f"{_SELECT} WHERE {where} ORDER BY date, created_at, rowid",
            tuple(params),
        )
        return [Transaction.from_row(row) for row in rows]

    async def link_project(
        self,
        company_id: str,
        transaction_id: str,
        project_id: str,
    ) -> Transaction:
        """거래를 프로젝트에 연결

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            ProjectNotFound: 프로젝트가 없거나 다른 회사 소유
        """
        await self.require(company_id, transaction_id)

        if await CompanyStore(self.db).get_project(company_id, project_id) is None:
            raise ProjectNotFound(f"Project not found: {project_id}")

        await self.db.execute(
            """
            UPDATE ledger_transaction SET project_id = ?, updated_at = ?
            WHERE id = ? AND company_id = ?
            """,
            (project_id, now_utc_iso(), transaction_id, company_id),
        )
        await self.db.commit()
        logger.info(f"거래-프로젝트 연결: {transaction_id} -> {project_id}")
        return await self.require(company_id, transaction_id)
