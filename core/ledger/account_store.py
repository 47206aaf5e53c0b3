"""
금융 계좌 / 예산 카테고리 저장소

계좌 잔액(balance)은 여기서 변경하지 않음.
잔액 변경은 AccountBalanceMaintainer만 수행.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from core.errors import AccountNotFound, CategoryNotFound, ValidationError
from core.ledger.models import BudgetCategory, FinancialAccount
from core.types import FUNDING_ACCOUNT_TYPES, AccountType, TransactionType
from core.utils.timezone import now_utc_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_ACCOUNT_SELECT = f"SELECT {', '.join(FinancialAccount.COLUMNS)} FROM financial_account"
_CATEGORY_SELECT = f"SELECT {', '.join(BudgetCategory.COLUMNS)} FROM budget_category"

# 카테고리 삭제를 막는 참조 테이블 (테이블, 표시 이름)
_CATEGORY_REFERENCES = (
    ("ledger_transaction", "transactions"),
    ("budget_item", "budget items"),
    ("recurring_schedule", "recurring transactions"),
)


def _check_category_type(category_type: str) -> None:
    if category_type not in {t.value for t in TransactionType}:
        raise ValidationError(
            "Invalid category type",
            details={"type": "must be 'income' or 'expense'"},
        )


class AccountStore:
    """금융 계좌 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        company_id: str,
        name: str,
        account_type: str,
        currency: str,
        account_id: str | None = None,
    ) -> FinancialAccount:
        """계좌 생성 (잔액 0)"""
        if account_type not in {t.value for t in AccountType}:
            raise ValidationError(
                "Invalid account type",
                details={"type": f"must be one of {[t.value for t in AccountType]}"},
            )

        now = now_utc_iso()
        account = FinancialAccount(
            id=account_id or str(uuid4()),
            company_id=company_id,
            name=name,
            type=account_type,
            currency=currency.upper(),
            balance=Decimal("0"),
            created_at=now,
            updated_at=now,
        )
        await self.db.execute(
            """
            INSERT INTO financial_account (
                id, company_id, name, type, currency, balance, seq,
                created_at, updated_at
            ) VALUES (
                ?, ?, ?, ?, ?, '0',
                (SELECT COALESCE(MAX(seq), 0) + 1 FROM financial_account),
                ?, ?
            )
            """,
            (
                account.id,
                company_id,
                name,
                account.type,
                account.currency,
                now,
                now,
            ),
        )
        await self.db.commit()
        logger.info(f"계좌 생성: {account.id} ({name}, {account.type}, {account.currency})")
        return account

    async def get(self, company_id: str, account_id: str) -> FinancialAccount | None:
        """회사 소유 계좌 조회 (다른 회사 소유면 None)"""
        row = await self.db.fetchone(
            f"{_ACCOUNT_SELECT} WHERE id = ? AND company_id = ?",
            (account_id, company_id),
        )
        return FinancialAccount.from_row(row) if row else None

    async def require(self, company_id: str, account_id: str) -> FinancialAccount:
        account = await self.get(company_id, account_id)
        if account is None:
            raise AccountNotFound(f"Account not found: {account_id}")
        return account

    async def list(self, company_id: str) -> list[FinancialAccount]:
        """회사 계좌 목록 (생성 순)"""
        rows = await self.db.fetchall(
            f"{_ACCOUNT_SELECT} WHERE company_id = ? ORDER BY seq",
            (company_id,),
        )
        return [FinancialAccount.from_row(row) for row in rows]

    async def first_funding_account(self, company_id: str) -> FinancialAccount | None:
        """동기화 대상 계좌: 생성 순 첫 번째 bank/cash 계좌"""
        placeholders = ", ".join("?" for _ in FUNDING_ACCOUNT_TYPES)
        row = await self.db.fetchone(
            f"""
            {_ACCOUNT_SELECT}
            WHERE company_id = ? AND type IN ({placeholders})
            ORDER BY seq
            LIMIT 1
            """,
            (company_id, *FUNDING_ACCOUNT_TYPES),
        )
        return FinancialAccount.from_row(row) if row else None


class CategoryStore:
    """예산 카테고리 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        company_id: str,
        name: str,
        category_type: str,
        description: str | None = None,
        color: str | None = None,
        category_id: str | None = None,
    ) -> BudgetCategory:
        """카테고리 생성

        Raises:
            ValidationError: 잘못된 유형 또는 같은 이름의 카테고리 존재
        """
        _check_category_type(category_type)
        await self._check_name_free(company_id, name)

        category = BudgetCategory(
            id=category_id or str(uuid4()),
            company_id=company_id,
            name=name,
            type=category_type,
            description=description,
            color=color,
        )
        await self.db.execute(
            """
            INSERT INTO budget_category (
                id, company_id, name, type, description, color, seq, created_at
            ) VALUES (
                ?, ?, ?, ?, ?, ?,
                (SELECT COALESCE(MAX(seq), 0) + 1 FROM budget_category),
                ?
            )
            """,
            (
                category.id,
                company_id,
                name,
                category_type,
                description,
                color,
                now_utc_iso(),
            ),
        )
        await self.db.commit()
        return category

    async def get(self, company_id: str, category_id: str) -> BudgetCategory | None:
        row = await self.db.fetchone(
            f"{_CATEGORY_SELECT} WHERE id = ? AND company_id = ?",
            (category_id, company_id),
        )
        return BudgetCategory.from_row(row) if row else None

    async def list(
        self,
        company_id: str,
        category_type: str | None = None,
    ) -> list[BudgetCategory]:
        """회사 카테고리 목록 (생성 순)"""
        if category_type is None:
            rows = await self.db.fetchall(
                f"{_CATEGORY_SELECT} WHERE company_id = ? ORDER BY seq",
                (company_id,),
            )
        else:
            rows = await self.db.fetchall(
                f"{_CATEGORY_SELECT} WHERE company_id = ? AND type = ? ORDER BY seq",
                (company_id, category_type),
            )
        return [BudgetCategory.from_row(row) for row in rows]

    async def names_by_id(self, company_id: str) -> dict[str, str]:
        """카테고리 ID → 이름 맵"""
        rows = await self.db.fetchall(
            "SELECT id, name FROM budget_category WHERE company_id = ?",
            (company_id,),
        )
        return {row[0]: row[1] for row in rows}

    async def require(self, company_id: str, category_id: str) -> BudgetCategory:
        category = await self.get(company_id, category_id)
        if category is None:
            raise CategoryNotFound(f"Category not found: {category_id}")
        return category

    async def update(
        self,
        company_id: str,
        category_id: str,
        **fields: str | None,
    ) -> BudgetCategory:
        """카테고리 수정 (name, type, description, color 중 보낸 값만)

        Raises:
            CategoryNotFound: 카테고리가 없거나 다른 회사 소유
            ValidationError: 잘못된 유형 또는 이름 중복
        """
        current = await self.require(company_id, category_id)

        unknown = set(fields) - {"name", "type", "description", "color"}
        if unknown:
            raise ValidationError(
                "Unknown category fields",
                details={name: "not updatable" for name in sorted(unknown)},
            )
        if fields.get("type") is not None:
            _check_category_type(fields["type"])
        if fields.get("name") and fields["name"] != current.name:
            await self._check_name_free(company_id, fields["name"])

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            await self.db.execute(
                f"UPDATE budget_category SET {assignments} WHERE id = ? AND company_id = ?",
                (*fields.values(), category_id, company_id),
            )
            await self.db.commit()
            logger.info(f"카테고리 수정: {category_id} ({', '.join(fields)})")

        return await self.require(company_id, category_id)

    async def delete(self, company_id: str, category_id: str) -> None:
        """카테고리 삭제 (사용 중이면 거부)

        Raises:
            CategoryNotFound: 카테고리가 없거나 다른 회사 소유
            ValidationError: 거래/예산 항목/반복 거래가 참조 중
        """
        await self.require(company_id, category_id)

        for table, label in _CATEGORY_REFERENCES:
            row = await self.db.fetchone(
                f"SELECT 1 FROM {table} WHERE category_id = ? LIMIT 1",
                (category_id,),
            )
            if row is not None:
                raise ValidationError(
                    f"Cannot delete category that is being used by {label}",
                    details={"category_id": f"referenced by {label}"},
                )

        await self.db.execute(
            "DELETE FROM budget_category WHERE id = ? AND company_id = ?",
            (category_id, company_id),
        )
        await self.db.commit()
        logger.info(f"카테고리 삭제: {category_id}")

    async def _check_name_free(self, company_id: str, name: str) -> None:
        row = await self.db.fetchone(
            "SELECT id FROM budget_category WHERE company_id = ? AND name = ?",
            (company_id, name),
        )
        if row is not None:
            raise ValidationError(
                "A category with this name already exists",
                details={"name": f"already exists: {name}"},
            )
