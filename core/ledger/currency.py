"""
통화 환산 서비스

USD 기준 환율표(1 USD = r CODE)로 통화 간 금액 환산.
- USD → X: r[X]
- X → USD: 1 / r[X]
- X → Y: r[Y] / r[X] (USD 경유)

환율표는 settings.yaml의 currency.rates로 덮어쓸 수 있음.
계산된 환율은 주입된 ResultCache에 fx:{from}:{to} 키로 저장.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Mapping

from core.cache import ResultCache
from core.constants import Money
from core.errors import UnsupportedCurrency, ValidationError
from core.ledger.company_store import CompanyStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# (코드, 이름, 1 USD 당 환율) - 목록 순서가 곧 노출 순서
SUPPORTED_CURRENCIES: tuple[tuple[str, str, str], ...] = (
    ("USD", "US Dollar", "1.0"),
    ("EUR", "Euro", "0.93"),
    ("GBP", "British Pound", "0.79"),
    ("JPY", "Japanese Yen", "150.59"),
    ("CAD", "Canadian Dollar", "1.38"),
    ("AUD", "Australian Dollar", "1.53"),
    ("CHF", "Swiss Franc", "0.90"),
    ("CNY", "Chinese Yuan", "7.24"),
    ("INR", "Indian Rupee", "83.36"),
    ("MXN", "Mexican Peso", "16.82"),
    ("BRL", "Brazilian Real", "5.16"),
    ("RUB", "Russian Ruble", "92.14"),
    ("KRW", "South Korean Won", "1370.23"),
    ("SGD", "Singapore Dollar", "1.35"),
    ("NZD", "New Zealand Dollar", "1.65"),
    ("THB", "Thai Baht", "36.12"),
    ("SEK", "Swedish Krona", "10.52"),
    ("ZAR", "South African Rand", "18.65"),
    ("TRY", "Turkish Lira", "32.15"),
    ("NOK", "Norwegian Krone", "10.72"),
)

BASE_CURRENCY = "USD"

# conversion_rates() 표시 정밀도
RATE_QUANT = Decimal("0.000001")


def build_rate_table(overrides: Mapping[str, Decimal] | None = None) -> dict[str, Decimal]:
    """기본 환율표 + 설정 덮어쓰기

    지원 목록에 없는 코드와 USD 덮어쓰기는 무시.
    """
    table = {code: Decimal(rate) for code, _, rate in SUPPORTED_CURRENCIES}
    for code, rate in (overrides or {}).items():
        code = code.upper()
        if code not in table:
            logger.warning(f"지원하지 않는 통화의 환율 설정 무시: {code}")
            continue
        if code == BASE_CURRENCY:
            logger.warning("기준 통화(USD) 환율은 변경할 수 없음, 설정 무시")
            continue
        table[code] = Decimal(rate)
    return table


class CurrencyService:
    """통화 환산 서비스

    환율 조회는 캐시 채우기 외의 부작용이 없으므로 동시 호출에 안전.

    Args:
        db: SQLite 어댑터 (회사 기본 통화 조회/변경용, 환산만 할 때는 None)
        cache: 환율 캐시 (None이면 캐시 없이 매번 계산)
        rate_overrides: 1 USD 기준 환율 덮어쓰기
    """

    def __init__(
        self,
        db: SQLiteAdapter | None = None,
        cache: ResultCache | None = None,
        rate_overrides: Mapping[str, Decimal] | None = None,
    ):
        self.db = db
        self.cache = cache
        self._rates = build_rate_table(rate_overrides)

    # -------------------------------------------------------------------------
    # 환율 / 환산
    # -------------------------------------------------------------------------

    def is_supported(self, currency: str) -> bool:
        return currency.upper() in self._rates

    def list_supported_currencies(self) -> list[dict[str, str]]:
        """지원 통화 목록 [{code, name}] (고정 순서)"""
        return [{"code": code, "name": name} for code, name, _ in SUPPORTED_CURRENCIES]

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """환율 조회 (1 from = rate to)

        Raises:
            UnsupportedCurrency: 지원하지 않는 통화 코드
        """
        src = self._normalize(from_currency)
        dst = self._normalize(to_currency)

        if src == dst:
            return Decimal("1")

        key = f"fx:{src}:{dst}"
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        if src == BASE_CURRENCY:
            rate = self._rates[dst]
        elif dst == BASE_CURRENCY:
            rate = Decimal("1") / self._rates[src]
        else:
            rate = self._rates[dst] / self._rates[src]

        if self.cache is not None:
            self.cache.set(key, rate)
        return rate

    def convert(self, amount: Any, from_currency: str, to_currency: str) -> Decimal:
        """금액 환산

        같은 통화면 조회/반올림 없이 그대로 반환.
        그 외에는 소수점 2자리 반올림 (ROUND_HALF_UP).

        Raises:
            ValidationError: 음수 또는 숫자가 아닌 금액
            UnsupportedCurrency: 지원하지 않는 통화 코드
        """
        value = self._to_decimal(amount)
        if value < 0:
            raise ValidationError(
                "Amount must not be negative",
                details={"amount": "must be >= 0"},
            )

        if from_currency.upper() == to_currency.upper():
            return value

        rate = self.get_rate(from_currency, to_currency)
        return (value * rate).quantize(Money.QUANT, rounding=ROUND_HALF_UP)

    def conversion_rates(self, base: str) -> dict[str, Decimal]:
        """1 base를 나머지 지원 통화로 환산한 값 맵"""
        base = self._normalize(base)
        return {
            code: self.get_rate(base, code).quantize(RATE_QUANT, rounding=ROUND_HALF_UP)
            for code, _, _ in SUPPORTED_CURRENCIES
            if code != base
        }

    # -------------------------------------------------------------------------
    # 회사 기본 통화
    # -------------------------------------------------------------------------

    async def get_company_default_currency(self, company_id: str) -> str:
        """회사 기본 통화

        Raises:
            CompanyNotFound: 회사 없음
        """
        company = await CompanyStore(self._require_db()).require_company(company_id)
        return company.default_currency

    async def set_company_default_currency(self, company_id: str, currency: str) -> str:
        """회사 기본 통화 변경 (같은 값으로 재설정해도 안전)

        Raises:
            UnsupportedCurrency: 지원하지 않는 통화 코드
            CompanyNotFound: 회사 없음
        """
        code = self._normalize(currency)
        company = await CompanyStore(self._require_db()).set_default_currency(company_id, code)
        return company.default_currency

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    def _normalize(self, currency: str) -> str:
        code = (currency or "").strip().upper()
        if code not in self._rates:
            raise UnsupportedCurrency(currency)
        return code

    def _require_db(self) -> SQLiteAdapter:
        if self.db is None:
            raise RuntimeError("CurrencyService에 DB가 주입되지 않았습니다")
        return self.db

    @staticmethod
    def _to_decimal(amount: Any) -> Decimal:
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise ValidationError("Invalid amount", details={"amount": "must be a number"}) from e
        if not value.is_finite():
            raise ValidationError("Invalid amount", details={"amount": "must be finite"})
        return value
