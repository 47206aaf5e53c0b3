"""
재무 리포트

기간 내 완료 거래를 pandas DataFrame으로 집계.
- cash-flow: 일별 수입/지출/순현금흐름
- profit-loss: 수입/지출 카테고리별 손익
- expenses-by-category: 지출 카테고리 분포
- balance-sheet: 현재 계좌 잔액 기준 자산/부채 (기간 무관, 캐시하지 않음)

금액은 회사 기본 통화로 환산 후 합산 (Decimal 유지, object dtype).
결과는 ResultCache에 저장 (TTL 동안은 새 거래가 반영되지 않음).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Callable

import pandas as pd

from core.cache import ResultCache
from core.constants import UNCATEGORIZED_ID, UNCATEGORIZED_NAME, Money
from core.errors import ValidationError
from core.ledger.account_store import AccountStore, CategoryStore
from core.ledger.budget import percent_of
from core.ledger.company_store import CompanyStore
from core.ledger.currency import CurrencyService
from core.ledger.transaction_store import TransactionStore
from core.types import ReportType, TransactionType
from core.utils.timezone import to_date

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_FRAME_COLUMNS = ["date", "type", "category_id", "amount"]


def _decimal_sum(series: pd.Series) -> Decimal:
    return sum(series, Money.ZERO)


def _money(value: Decimal) -> Decimal:
    return value.quantize(Money.QUANT, rounding=ROUND_HALF_UP)


class ReportService:
    """재무 리포트 생성기

    Args:
        db: SQLite 어댑터
        currency: 통화 환산 서비스
        cache: 결과 캐시 (None이면 매번 계산)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        currency: CurrencyService | None = None,
        cache: ResultCache | None = None,
    ):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.cache = cache
        self.transactions = TransactionStore(db)
        self.accounts = AccountStore(db)
        self.categories = CategoryStore(db)
        self.companies = CompanyStore(db)

    async def generate(
        self,
        company_id: str,
        report_type: str,
        start_date: Any,
        end_date: Any,
    ) -> dict[str, Any]:
        """리포트 생성 (캐시 우선)

        Raises:
            ValidationError: 알 수 없는 리포트 종류 또는 잘못된 기간
        """
        builders: dict[str, Callable[..., Any]] = {
            ReportType.CASH_FLOW.value: self.cash_flow,
            ReportType.PROFIT_LOSS.value: self.profit_loss,
            ReportType.EXPENSES_BY_CATEGORY.value: self.expenses_by_category,
            ReportType.BALANCE_SHEET.value: self.balance_sheet,
        }
        builder = builders.get(report_type)
        if builder is None:
            raise ValidationError(
                "Invalid report type",
                details={"report_type": f"must be one of {list(builders)}"},
            )

        start, end = self._window(start_date, end_date)
        if report_type == ReportType.BALANCE_SHEET.value:
            report = await builder(company_id, start, end)
            report["report_type"] = report_type
            return report

        key = ResultCache.make_key({
            "report": report_type,
            "company_id": company_id,
            "start_date": start,
            "end_date": end,
        })
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"리포트 캐시 적중: {report_type} {start}~{end}")
                return cached

        report = await builder(company_id, start, end)
        report["report_type"] = report_type

        if self.cache is not None:
            self.cache.set(key, report)
        return report

    # -------------------------------------------------------------------------
    # 리포트
    # -------------------------------------------------------------------------

    async def cash_flow(self, company_id: str, start_date: Any, end_date: Any) -> dict[str, Any]:
        """일별 현금흐름 (기간 내 모든 날짜 포함)"""
        start, end = self._window(start_date, end_date)
        currency, frame = await self._load_frame(company_id, start, end)

        days = pd.date_range(start, end, freq="D").strftime("%Y-%m-%d")
        daily = pd.DataFrame(index=days)
        for column, txn_type in (
            ("income", TransactionType.INCOME.value),
            ("expenses", TransactionType.EXPENSE.value),
        ):
            subset = frame[frame["type"] == txn_type]
            if subset.empty:
                daily[column] = [Money.ZERO] * len(days)
            else:
                sums = subset.groupby("date")["amount"].apply(_decimal_sum)
                daily[column] = sums.reindex(days, fill_value=Money.ZERO)
        daily["net_cash_flow"] = daily["income"] - daily["expenses"]

        total_income = _decimal_sum(daily["income"])
        total_expenses = _decimal_sum(daily["expenses"])
        net = total_income - total_expenses
        day_count = Decimal(max(len(days), 1))

        return {
            "currency": currency,
            "start_date": start,
            "end_date": end,
            "daily_cash_flow": [
                {
                    "date": day,
                    "income": row["income"],
                    "expenses": row["expenses"],
                    "net_cash_flow": row["net_cash_flow"],
                }
                for day, row in daily.iterrows()
            ],
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_cash_flow": net,
            "average_daily_income": _money(total_income / day_count),
            "average_daily_expenses": _money(total_expenses / day_count),
            "average_daily_net_cash_flow": _money(net / day_count),
        }

    async def profit_loss(self, company_id: str, start_date: Any, end_date: Any) -> dict[str, Any]:
        """손익 (수입/지출 카테고리별, 금액 내림차순)"""
        start, end = self._window(start_date, end_date)
        currency, frame = await self._load_frame(company_id, start, end)
        names = await self.categories.names_by_id(company_id)

        sections: dict[str, dict[str, Any]] = {}
        for section, txn_type in (
            ("income", TransactionType.INCOME.value),
            ("expenses", TransactionType.EXPENSE.value),
        ):
            grouped = self._by_category(frame[frame["type"] == txn_type])
            total = _decimal_sum(grouped["amount"]) if not grouped.empty else Money.ZERO
            sections[section] = {
                "categories": [
                    {
                        "id": category_id,
                        "name": names.get(category_id, UNCATEGORIZED_NAME),
                        "amount": row["amount"],
                        "percentage": percent_of(row["amount"], total),
                    }
                    for category_id, row in grouped.iterrows()
                ],
                "total": total,
            }

        total_income = sections["income"]["total"]
        net = total_income - sections["expenses"]["total"]
        return {
            "currency": currency,
            "start_date": start,
            "end_date": end,
            **sections,
            "net_profit_loss": net,
            "profit_margin": percent_of(net, total_income) if total_income > 0 else Money.ZERO,
        }

    async def expenses_by_category(
        self,
        company_id: str,
        start_date: Any,
        end_date: Any,
    ) -> dict[str, Any]:
        """지출 카테고리 분포"""
        start, end = self._window(start_date, end_date)
        currency, frame = await self._load_frame(company_id, start, end)
        names = await self.categories.names_by_id(company_id)

        grouped = self._by_category(frame[frame["type"] == TransactionType.EXPENSE.value])
        total = _decimal_sum(grouped["amount"]) if not grouped.empty else Money.ZERO

        categories = [
            {
                "id": category_id,
                "name": names.get(category_id, UNCATEGORIZED_NAME),
                "amount": row["amount"],
                "transactions": int(row["transactions"]),
                "percentage": percent_of(row["amount"], total),
            }
            for category_id, row in grouped.iterrows()
        ]
        empty = {"name": "None", "amount": Money.ZERO, "percentage": Money.ZERO}

        return {
            "currency": currency,
            "start_date": start,
            "end_date": end,
            "categories": categories,
            "total_expenses": total,
            "largest_category": categories[0] if categories else empty,
            "smallest_category": categories[-1] if categories else empty,
            "average_category_spend": (
                _money(total / len(categories)) if categories else Money.ZERO
            ),
        }

    async def balance_sheet(
        self,
        company_id: str,
        start_date: Any = None,
        end_date: Any = None,
    ) -> dict[str, Any]:
        """현재 계좌 잔액 기준 재무상태

        잔액 >= 0 계좌는 자산, 음수 계좌는 부채(절대값).
        잔액은 이력 없이 현재 값만 저장하므로 기간은 표시용(as_of)으로만 사용.
        """
        company = await self.companies.require_company(company_id)
        currency = company.default_currency
        accounts = await self.accounts.list(company_id)

        frame = pd.DataFrame.from_records(
            [
                {
                    "id": account.id,
                    "name": account.name,
                    "type": account.type,
                    "currency": account.currency,
                    "balance": account.balance,
                    "value": self._signed_convert(account.balance, account.currency, currency),
                }
                for account in accounts
            ],
            columns=["id", "name", "type", "currency", "balance", "value"],
        )
        assets = frame[frame["value"] >= 0].copy()
        liabilities = frame[frame["value"] < 0].copy()
        liabilities["value"] = liabilities["value"].map(abs)

        total_assets = _decimal_sum(assets["value"])
        total_liabilities = _decimal_sum(liabilities["value"])

        def _allocation(part: pd.DataFrame, total: Decimal) -> list[dict[str, Any]]:
            rows = [
                {
                    "id": row["id"],
                    "name": row["name"],
                    "value": row["value"],
                    "percentage": percent_of(row["value"], total),
                }
                for _, row in part.iterrows()
            ]
            rows.sort(key=lambda r: r["value"], reverse=True)
            return rows

        return {
            "currency": currency,
            "as_of": end_date,
            "accounts": [
                {**row, "is_asset": row["value"] >= 0} for row in frame.to_dict("records")
            ],
            "total_assets": total_assets,
            "total_liabilities": total_liabilities,
            "net_worth": total_assets - total_liabilities,
            "asset_allocation": _allocation(assets, total_assets),
            "liability_allocation": _allocation(liabilities, total_liabilities),
        }

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    def _signed_convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """음수 잔액 환산 (convert는 음수를 거부하므로 크기만 환산 후 부호 복원)"""
        magnitude = self.currency.convert(abs(amount), from_currency, to_currency)
        return magnitude if amount >= 0 else -magnitude

    @staticmethod
    def _window(start_date: Any, end_date: Any) -> tuple[str, str]:
        try:
            start = to_date(start_date)
            end = to_date(end_date)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Invalid report period",
                details={"start_date": "ISO date required", "end_date": "ISO date required"},
            ) from e
        if end < start:
            raise ValidationError(
                "Invalid report period",
                details={"end_date": "must be on or after start_date"},
            )
        return start.isoformat(), end.isoformat()

    async def _load_frame(self, company_id: str, start: str, end: str) -> tuple[str, pd.DataFrame]:
        """기간 내 완료 거래 → DataFrame (금액은 회사 기본 통화)"""
        company = await self.companies.require_company(company_id)
        currency = company.default_currency
        txns = await self.transactions.list_completed_in_window(company_id, start, end)

        records = [
            {
                "date": txn.date,
                "type": txn.type,
                "category_id": txn.category_id or UNCATEGORIZED_ID,
                "amount": self.currency.convert(txn.amount, txn.currency, currency),
            }
            for txn in txns
        ]
        frame = pd.DataFrame.from_records(records, columns=_FRAME_COLUMNS)
        return currency, frame

    @staticmethod
    def _by_category(frame: pd.DataFrame) -> pd.DataFrame:
        """카테고리별 금액 합계 + 건수 (금액 내림차순)"""
        if frame.empty:
            return pd.DataFrame(columns=["amount", "transactions"])
        grouped = frame.groupby("category_id").agg(
            amount=("amount", _decimal_sum),
            transactions=("amount", "size"),
        )
        order = sorted(grouped.index, key=lambda cid: grouped.at[cid, "amount"], reverse=True)
        return grouped.loc[order]
