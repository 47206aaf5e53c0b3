"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
요청마다 별도 연결을 사용하며, 잔액 변경은 BEGIN IMMEDIATE로 직렬화.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로 (":memory:" 허용)
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    if db_path_str != ":memory:":
        # 디렉토리가 없으면 생성
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path_str)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    # 읽기 전용: 쓰기 문장 거부 (WAL 파일 공유 가능)
    if readonly:
        await conn.execute("PRAGMA query_only=ON")

    logger.debug(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        async with db.transaction(immediate=True):
            await db.execute("UPDATE financial_account SET ...")
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else db_path
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_depth = 0

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """transaction() 컨텍스트 내부 여부"""
        return self._tx_depth > 0

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.debug("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        return await self._conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋 (transaction() 내부에서는 바깥 컨텍스트가 커밋)"""
        if self._conn is not None and self._tx_depth == 0:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.
        중첩 호출은 바깥 트랜잭션에 합류 (커밋/롤백은 가장 바깥에서만).

        Args:
            immediate: True면 BEGIN IMMEDIATE로 쓰기 잠금을 먼저 획득.
                잔액 read-modify-write 구간은 반드시 immediate 사용.
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield self._conn
            finally:
                self._tx_depth -= 1
            return

        # 암묵적으로 열린 트랜잭션이 있으면 먼저 정리
        if self._conn.in_transaction:
            await self._conn.commit()

        await self._conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        self._tx_depth = 1
        try:
            yield self._conn
            await self._conn.commit()
        except BaseException:
            await self._conn.rollback()
            raise
        finally:
            self._tx_depth = 0

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Ledger 테이블과 알림 테이블을 생성.
    이미 존재하면 건너뜀 (IF NOT EXISTS).

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    from core.ledger.schema import init_ledger_schema

    await init_ledger_schema(adapter)

    # notification (알림 싱크)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS notification (
            id                TEXT PRIMARY KEY,
            company_id        TEXT NOT NULL,
            title             TEXT NOT NULL,
            message           TEXT NOT NULL,
            type              TEXT NOT NULL,
            category          TEXT NOT NULL,
            recipient_id      TEXT,
            recipient_type    TEXT,
            related_item_id   TEXT,
            related_item_type TEXT,
            action_url        TEXT,
            metadata_json     TEXT,
            is_read           INTEGER NOT NULL DEFAULT 0,
            created_at        TEXT NOT NULL,
            FOREIGN KEY (company_id) REFERENCES company(id)
        )
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_notification_recipient
        ON notification(company_id, recipient_id, is_read)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
