"""
재무 Ledger 스키마 초기화

Web/CLI 시작 시 자동으로 Ledger 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액은 모두 TEXT (Decimal 문자열)로 저장.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_ledger_indexes(db)
    await db.commit()
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # company (테넌트 루트)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS company (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            default_currency TEXT NOT NULL DEFAULT 'USD',
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # financial_account (잔액은 Balance Maintainer만 변경)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS financial_account (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            currency         TEXT NOT NULL,
            balance          TEXT NOT NULL DEFAULT '0',
            seq              INTEGER NOT NULL,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id)
        )
    """)

    # budget_category
    await db.execute("""
        CREATE TABLE IF NOT EXISTS budget_category (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            description      TEXT,
            color            TEXT,
            seq              INTEGER NOT NULL,
            created_at       TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id)
        )
    """)

    # project (Projects 모듈 소유, link-project 검증용)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS project (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL,
            name             TEXT NOT NULL,
            created_at       TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id)
        )
    """)

    # ledger_transaction
    # applied_amount: 현재 잔액에 반영된 부호 있는 계좌 통화 금액 (NULL = 미반영)
    # source_key: 동기화기 생성 거래의 멱등성 키
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_transaction (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL,
            date             TEXT NOT NULL,
            description      TEXT NOT NULL,
            amount           TEXT NOT NULL,
            currency         TEXT NOT NULL,
            type             TEXT NOT NULL,
            status           TEXT NOT NULL,
            category_id      TEXT,
            account_id       TEXT,
            project_id       TEXT,
            related_to       TEXT,
            source_key       TEXT UNIQUE,
            reference        TEXT,
            notes            TEXT,
            exchange_rate    TEXT,
            applied_amount   TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id),
            FOREIGN KEY (category_id) REFERENCES budget_category(id),
            FOREIGN KEY (account_id) REFERENCES financial_account(id)
        )
    """)

    # budget
    await db.execute("""
        CREATE TABLE IF NOT EXISTS budget (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            status           TEXT NOT NULL,
            start_date       TEXT NOT NULL,
            end_date         TEXT NOT NULL,
            total_budget     TEXT NOT NULL,
            currency         TEXT NOT NULL,
            description      TEXT,
            project_id       TEXT,
            created_at       TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id)
        )
    """)

    # budget_item (spent는 조회 시 계산, 저장하지 않음)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS budget_item (
            id               TEXT PRIMARY KEY,
            budget_id        TEXT NOT NULL,
            category_id      TEXT,
            name             TEXT NOT NULL,
            amount           TEXT NOT NULL,
            line_order       INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (budget_id) REFERENCES budget(id) ON DELETE CASCADE,
            FOREIGN KEY (category_id) REFERENCES budget_category(id)
        )
    """)

    # recurring_schedule (반복 거래 일정, 처리 시 완료 거래 생성)
    # next_due_date: 다음 처리 예정일, 처리할 때마다 주기만큼 전진
    await db.execute("""
        CREATE TABLE IF NOT EXISTS recurring_schedule (
            id                  TEXT PRIMARY KEY,
            company_id          TEXT NOT NULL,
            name                TEXT NOT NULL,
            description         TEXT,
            frequency           TEXT NOT NULL,
            interval_count      INTEGER NOT NULL DEFAULT 1,
            start_date          TEXT NOT NULL,
            end_date            TEXT,
            next_due_date       TEXT NOT NULL,
            day_of_month        INTEGER,
            day_of_week         INTEGER,
            month_of_year       INTEGER,
            amount              TEXT NOT NULL,
            type                TEXT NOT NULL,
            category_id         TEXT,
            account_id          TEXT NOT NULL,
            status              TEXT NOT NULL,
            last_processed_date TEXT,
            created_at          TEXT NOT NULL,
            updated_at          TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id),
            FOREIGN KEY (category_id) REFERENCES budget_category(id),
            FOREIGN KEY (account_id) REFERENCES financial_account(id)
        )
    """)

    # balance_audit_log (잔액 변경 이력)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS balance_audit_log (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            account_id       TEXT NOT NULL,
            transaction_id   TEXT,
            previous_balance TEXT NOT NULL,
            new_balance      TEXT NOT NULL,
            change_amount    TEXT NOT NULL,
            description      TEXT NOT NULL,
            performed_at     TEXT NOT NULL,
            FOREIGN KEY (account_id) REFERENCES financial_account(id)
        )
    """)


async def _create_ledger_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    await db.execute("CREATE INDEX IF NOT EXISTS idx_account_company ON financial_account(company_id, seq)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_category_company ON budget_category(company_id, type, seq)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_txn_company_date ON ledger_transaction(company_id, date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_txn_account ON ledger_transaction(account_id, status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_txn_related ON ledger_transaction(company_id, related_to)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_budget_company ON budget(company_id, status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_budget_item_budget ON budget_item(budget_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_audit_account ON balance_audit_log(account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_recurring_due ON recurring_schedule(company_id, status, next_due_date)")
