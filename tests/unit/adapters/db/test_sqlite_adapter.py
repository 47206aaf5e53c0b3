"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

from pathlib import Path

import pytest
import sqlite3

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection, init_schema


class TestPackageExports:
    """adapters.db 패키지 공개 이름"""

    def test_package_import(self) -> None:
        """패키지 import 시 공개 이름이 모두 존재"""
        import adapters.db as package

        for name in package.__all__:
            assert getattr(package, name) is not None
        assert package.SQLiteAdapter is SQLiteAdapter


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        db_path = tmp_path / "test.db"

        conn = await create_connection(db_path)

        assert conn is not None

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()

    @pytest.mark.asyncio
    async def test_foreign_keys_enabled(self, tmp_path: Path) -> None:
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("PRAGMA foreign_keys")
        row = await cursor.fetchone()
        assert row[0] == 1

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "test.db") as db:
            assert db.is_connected

        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        db = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await db.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """스키마 초기화를 두 번 해도 안전"""
        async with SQLiteAdapter(tmp_path / "test.db") as db:
            await init_schema(db)
            await init_schema(db)

            for table in (
                "company",
                "financial_account",
                "budget_category",
                "ledger_transaction",
                "budget",
                "budget_item",
                "balance_audit_log",
                "notification",
            ):
                assert await db.table_exists(table), table

    @pytest.mark.asyncio
    async def test_readonly_rejects_writes(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        async with SQLiteAdapter(db_path) as db:
            await init_schema(db)

        async with SQLiteAdapter(db_path, readonly=True) as ro:
            row = await ro.fetchone("SELECT COUNT(*) FROM company")
            assert row[0] == 0

            with pytest.raises(sqlite3.OperationalError):
                await ro.execute(
                    "INSERT INTO company (id, name, default_currency, created_at, updated_at) "
                    "VALUES ('c', 'C', 'USD', 'x', 'x')"
                )


class TestTransaction:
    """transaction() 컨텍스트 테스트"""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "test.db") as db:
            await db.execute("CREATE TABLE t (v INTEGER)")
            await db.commit()

            async with db.transaction(immediate=True):
                await db.execute("INSERT INTO t VALUES (1)")

            row = await db.fetchone("SELECT COUNT(*) FROM t")
            assert row[0] == 1

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "test.db") as db:
            await db.execute("CREATE TABLE t (v INTEGER)")
            await db.commit()

            with pytest.raises(ValueError):
                async with db.transaction():
                    await db.execute("INSERT INTO t VALUES (1)")
                    raise ValueError("boom")

            row = await db.fetchone("SELECT COUNT(*) FROM t")
            assert row[0] == 0
            assert not db.in_transaction

    @pytest.mark.asyncio
    async def test_nested_joins_outer(self, tmp_path: Path) -> None:
        """중첩 트랜잭션은 바깥과 함께 롤백"""
        async with SQLiteAdapter(tmp_path / "test.db") as db:
            await db.execute("CREATE TABLE t (v INTEGER)")
            await db.commit()

            with pytest.raises(ValueError):
                async with db.transaction(immediate=True):
                    async with db.transaction(immediate=True):
                        await db.execute("INSERT INTO t VALUES (1)")
                        # 내부 commit()은 바깥 트랜잭션이 끝날 때까지 보류
                        await db.commit()
                    assert db.in_transaction
                    raise ValueError("outer failure")

            row = await db.fetchone("SELECT COUNT(*) FROM t")
            assert row[0] == 0
