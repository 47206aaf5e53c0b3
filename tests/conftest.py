"""
pytest 공통 fixture 정의

임시 설정 파일, 스키마가 적용된 임시 DB, 시드 데이터(회사/계좌/카테고리),
서명된 세션 토큰, ASGI HTTP 클라이언트.
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator

import jwt
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings
from core.constants import CONFIG_ENV_VAR
from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.company_store import CompanyStore
from core.ledger.models import BudgetCategory, Company, FinancialAccount

TEST_SECRET_KEY = "test_jwt_secret_key_0123456789abcdef"
COMPANY_ID = "acme"
OTHER_COMPANY_ID = "globex"


@dataclass
class Seed:
    """시드 데이터 묶음"""

    company: Company
    other_company: Company
    bank: FinancialAccount
    cash: FinancialAccount
    sales: BudgetCategory
    inventory: BudgetCategory
    office: BudgetCategory
    travel: BudgetCategory


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    return temp_dir / "ledgerline_test.db"


@pytest.fixture
def settings_file(temp_dir: Path, db_path: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    content = f"""# 테스트용 settings.yaml
database:
  path: "{db_path.as_posix()}"

web:
  secret_key: "{TEST_SECRET_KEY}"

currency:
  default: USD

cache:
  ttl_seconds: 300
  max_size: 50

budget:
  alert_threshold: 90
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def settings(settings_file: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """설정 싱글턴 (테스트마다 초기화)"""
    from web.dependencies import reset_result_cache

    monkeypatch.setenv(CONFIG_ENV_VAR, str(settings_file))
    Settings.reset()
    reset_result_cache()
    yield Settings(settings_file)
    Settings.reset()
    reset_result_cache()


@pytest_asyncio.fixture
async def db(db_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 적용된 임시 DB"""
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def seed(db: SQLiteAdapter) -> Seed:
    """회사 2개, 계좌 2개, 카테고리 4개"""
    companies = CompanyStore(db)
    company = await companies.create_company("Acme Inc.", "USD", company_id=COMPANY_ID)
    other = await companies.create_company("Globex", "EUR", company_id=OTHER_COMPANY_ID)

    accounts = AccountStore(db)
    bank = await accounts.create(COMPANY_ID, "Main Bank", "bank", "USD", account_id="acc-bank")
    cash = await accounts.create(COMPANY_ID, "Petty Cash", "cash", "USD", account_id="acc-cash")

    categories = CategoryStore(db)
    sales = await categories.create(COMPANY_ID, "Sales Revenue", "income", category_id="cat-sales")
    inventory = await categories.create(
        COMPANY_ID, "Inventory Purchases", "expense", category_id="cat-inventory"
    )
    office = await categories.create(COMPANY_ID, "Office Supplies", "expense", category_id="cat-office")
    travel = await categories.create(COMPANY_ID, "Travel", "expense", category_id="cat-travel")

    return Seed(
        company=company,
        other_company=other,
        bank=bank,
        cash=cash,
        sales=sales,
        inventory=inventory,
        office=office,
        travel=travel,
    )


def make_token(claims: dict, secret: str = TEST_SECRET_KEY) -> str:
    """HS256 세션 토큰 서명"""
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def owner_token() -> str:
    return make_token({"sub": "user-1", "company_id": COMPANY_ID, "type": "owner"})


@pytest.fixture
def employee_token() -> str:
    return make_token({
        "sub": "emp-1",
        "company_id": COMPANY_ID,
        "type": "employee",
        "role": "accountant",
        "department": "finance",
        "permissions": ["finance:read"],
    })


@pytest_asyncio.fixture
async def client(settings: Settings, seed: Seed):
    """ASGI 테스트 클라이언트 (처리되지 않은 예외는 500 응답으로 확인)"""
    import httpx

    from web.app import app

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
def auth_headers(owner_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {owner_token}"}
