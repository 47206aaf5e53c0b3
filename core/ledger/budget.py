"""
예산 추적 엔진 (Budget Tracking Engine)

완료된 지출 거래를 예산 카테고리별로 집계해 집행률 계산 및 임계값 알림 생성.
집행액은 조회할 때마다 거래에서 다시 계산 (증분 유지하지 않음).

금액은 예산 통화로 환산해 합산.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from adapters.interfaces import INotificationSink
from adapters.models import Notification, NotificationPayload
from core.constants import UNCATEGORIZED_ID, UNCATEGORIZED_NAME, Defaults, Money
from core.errors import ValidationError
from core.ledger.account_store import CategoryStore
from core.ledger.budget_store import BudgetStore
from core.ledger.currency import CurrencyService
from core.ledger.models import Budget, Transaction
from core.ledger.transaction_store import TransactionStore
from core.types import AlertSeverity, BudgetHealth, Caller, TransactionType
from core.utils.timezone import now_utc, to_date

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

PERCENT_QUANT = Decimal("0.01")


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100 (whole이 0 이하면 0)"""
    if whole <= 0:
        return Money.ZERO
    return (part / whole * Money.HUNDRED).quantize(PERCENT_QUANT, rounding=ROUND_HALF_UP)


def budget_health(percent_used: Decimal) -> BudgetHealth:
    """집행률 → 상태 (≥100 over-budget, ≥90 warning)"""
    if percent_used >= Defaults.OVER_BUDGET_PERCENT:
        return BudgetHealth.OVER_BUDGET
    if percent_used >= Defaults.WARNING_PERCENT:
        return BudgetHealth.WARNING
    return BudgetHealth.GOOD


class BudgetTracker:
    """예산 추적 엔진

    비교/집행/알림 계산은 모두 읽기 전용.
    알림 저장은 create_alert_notification() 명시 호출로만 수행.

    Args:
        db: SQLite 어댑터
        currency: 통화 환산 서비스
        sink: 알림 싱크 (create_alert_notification 사용 시 필요)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        currency: CurrencyService | None = None,
        sink: INotificationSink | None = None,
    ):
        self.db = db
        self.currency = currency or CurrencyService(db)
        self.sink = sink
        self.budgets = BudgetStore(db)
        self.transactions = TransactionStore(db)
        self.categories = CategoryStore(db)

    # -------------------------------------------------------------------------
    # 예산 대비 실적
    # -------------------------------------------------------------------------

    async def compute_budget_comparison(
        self,
        company_id: str,
        budget_id: str,
        period: str = "month",
    ) -> dict[str, Any]:
        """예산 대비 실적 비교

        예산 기간 내 완료 지출 거래를 카테고리별로 집계.
        카테고리 없는 거래는 uncategorized 버킷으로 모음.
        예산 항목만 있는 카테고리는 actual=0으로 포함.
        variance 내림차순 정렬 (초과 집행이 큰 순).

        Raises:
            BudgetNotFound: 예산이 없거나 다른 회사 소유
        """
        budget = await self.budgets.require(company_id, budget_id)
        expenses = await self._window_expenses(budget)
        category_names = await self.categories.names_by_id(company_id)

        rows: dict[str, dict[str, Any]] = {}

        def _bucket(category_id: str, name: str) -> dict[str, Any]:
            if category_id not in rows:
                rows[category_id] = {
                    "id": category_id,
                    "name": name,
                    "actual": Money.ZERO,
                    "budgeted": Money.ZERO,
                }
            return rows[category_id]

        for txn in expenses:
            category_id = txn.category_id or UNCATEGORIZED_ID
            name = category_names.get(category_id, UNCATEGORIZED_NAME)
            bucket = _bucket(category_id, name)
            bucket["actual"] += self._to_budget_currency(txn, budget)

        for item in budget.items:
            category_id = item.category_id or UNCATEGORIZED_ID
            name = category_names.get(category_id, item.name)
            bucket = _bucket(category_id, name)
            bucket["budgeted"] += item.amount

        categories = []
        for bucket in rows.values():
            variance = bucket["actual"] - bucket["budgeted"]
            categories.append({
                **bucket,
                "variance": variance,
                "percent_used": percent_of(bucket["actual"], bucket["budgeted"]),
            })
        categories.sort(key=lambda c: c["variance"], reverse=True)

        total_budgeted = budget.total_budget
        total_actual = sum((c["actual"] for c in categories), Money.ZERO)
        total_percent = percent_of(total_actual, total_budgeted)

        return {
            "budget": {
                "id": budget.id,
                "name": budget.name,
                "type": budget.type,
                "start_date": budget.start_date,
                "end_date": budget.end_date,
                "status": budget.status,
                "currency": budget.currency,
            },
            "summary": {
                "total_budgeted": total_budgeted,
                "total_actual": total_actual,
                "total_variance": total_actual - total_budgeted,
                "total_percent_used": total_percent,
                "status": budget_health(total_percent).value,
            },
            "categories": categories,
            "period": period,
        }

    # -------------------------------------------------------------------------
    # 집행액
    # -------------------------------------------------------------------------

    async def compute_budget_spend(self, company_id: str, budget_id: str) -> Budget:
        """예산 항목별 집행액 계산

        item.spent = 기간 내 완료 지출 중 category_id가 같은 거래 합계 (예산 통화)
        카테고리 없는 항목은 카테고리 없는 거래와 매칭.
        total_spent = Σ item.spent

        Raises:
            BudgetNotFound: 예산이 없거나 다른 회사 소유
        """
        budget = await self.budgets.require(company_id, budget_id)
        return await self._fill_spend(budget)

    async def _fill_spend(self, budget: Budget) -> Budget:
        expenses = await self._window_expenses(budget)

        spent_by_category: dict[str | None, Decimal] = {}
        for txn in expenses:
            amount = self._to_budget_currency(txn, budget)
            spent_by_category[txn.category_id] = (
                spent_by_category.get(txn.category_id, Money.ZERO) + amount
            )

        for item in budget.items:
            item.spent = spent_by_category.get(item.category_id, Money.ZERO)
        budget.total_spent = sum((item.spent for item in budget.items), Money.ZERO)
        return budget

    # -------------------------------------------------------------------------
    # 알림
    # -------------------------------------------------------------------------

    async def compute_budget_alerts(
        self,
        company_id: str,
        threshold: int | Decimal = Defaults.ALERT_THRESHOLD,
        now: date | datetime | None = None,
        severity: str | None = None,
    ) -> list[dict[str, Any]]:
        """예산 임계값 알림 계산 (읽기 전용, 알림 발송 없음)

        오늘이 기간에 포함된 active 예산의 전체/항목별 집행률이
        threshold 이상이면 알림 1건. 100% 이상은 critical, 그 외 warning.
        정렬: critical 먼저, 같은 심각도 안에서는 집행률 내림차순.

        Args:
            threshold: 알림 임계값 (%)
            now: 기준 시각 (None이면 현재 UTC)
            severity: 심각도 필터 (critical / warning)
        """
        today = to_date(now) if now is not None else now_utc().date()
        threshold_value = Decimal(str(threshold))
        created_at = now_utc().isoformat()

        alerts: list[dict[str, Any]] = []
        for budget in await self.budgets.list_active(company_id, today):
            await self._fill_spend(budget)

            percent = percent_of(budget.total_spent, budget.total_budget)
            if budget.total_budget > 0 and percent >= threshold_value:
                alerts.append(self._alert(
                    alert_type="budget",
                    budget=budget,
                    item_id=None,
                    item_name=None,
                    message=(
                        f'Budget "{budget.name}" has reached {percent:.1f}% '
                        f"of its total allocation"
                    ),
                    percent=percent,
                    threshold=threshold_value,
                    created_at=created_at,
                ))

            for item in budget.items:
                item_percent = percent_of(item.spent, item.amount)
                if item.amount > 0 and item_percent >= threshold_value:
                    alerts.append(self._alert(
                        alert_type="budget-item",
                        budget=budget,
                        item_id=item.id,
                        item_name=item.name,
                        message=(
                            f'Budget item "{item.name}" in "{budget.name}" has reached '
                            f"{item_percent:.1f}% of its allocation"
                        ),
                        percent=item_percent,
                        threshold=threshold_value,
                        created_at=created_at,
                    ))

        if severity:
            alerts = [a for a in alerts if a["severity"] == severity]

        alerts.sort(key=lambda a: (
            0 if a["severity"] == AlertSeverity.CRITICAL.value else 1,
            -a["percent_spent"],
        ))
        return alerts

    async def create_alert_notification(
        self,
        company_id: str,
        caller: Caller,
        alert: dict[str, Any],
    ) -> Notification:
        """예산 알림 1건을 호출자에게 알림으로 저장

        Args:
            alert: {"id", "budget_id", "message", "severity", "item_id"?}
        """
        if self.sink is None:
            raise RuntimeError("BudgetTracker에 알림 싱크가 주입되지 않았습니다")

        # 다른 회사 예산에 대한 알림 차단
        await self.budgets.require(company_id, alert["budget_id"])

        severity = alert.get("severity") or AlertSeverity.WARNING.value
        title = "Critical" if severity == AlertSeverity.CRITICAL.value else "Warning"
        payload = NotificationPayload(
            company_id=company_id,
            title=f"Budget Alert: {title}",
            message=alert["message"],
            type="budget-alert",
            category="finance",
            recipient_id=caller.subject_id,
            recipient_type=caller.recipient_type,
            related_item_id=alert["budget_id"],
            related_item_type="budget",
            action_url=f"/dashboard/finance/budgets?id={alert['budget_id']}",
            metadata={
                "alert_id": alert["id"],
                "budget_id": alert["budget_id"],
                "item_id": alert.get("item_id"),
                "severity": severity,
            },
        )
        notification = await self.sink.create_notification(payload)
        logger.info(f"예산 알림 저장: {alert['id']} -> {caller.recipient_type}:{caller.subject_id}")
        return notification

    # -------------------------------------------------------------------------
    # 집행 추적
    # -------------------------------------------------------------------------

    async def track_transaction(
        self,
        company_id: str,
        transaction_id: str,
        budget_item_id: str,
    ) -> dict[str, Any]:
        """지출 거래를 예산 항목에 연결

        연결 = 거래의 category_id를 항목 카테고리로 변경.
        집행액은 여전히 조회 시 계산되므로 별도 집계 컬럼 없음.

        Raises:
            TransactionNotFound: 거래가 없거나 다른 회사 소유
            BudgetItemNotFound: 항목이 없거나 다른 회사 예산 소유
            ValidationError: 지출이 아닌 거래 또는 카테고리 없는 항목
        """
        txn = await self.transactions.require(company_id, transaction_id)
        if txn.type != TransactionType.EXPENSE.value:
            raise ValidationError(
                "Only expense transactions can be tracked against a budget",
                details={"transaction_id": f"not an expense: {txn.type}"},
            )

        item = await self.budgets.require_item(company_id, budget_item_id)
        if item.category_id is None:
            raise ValidationError(
                "Budget item has no category to track against",
                details={"budget_item_id": "item has no category"},
            )

        if txn.category_id != item.category_id:
            await self.transactions.update(company_id, transaction_id, category_id=item.category_id)
            logger.info(f"예산 집행 연결: txn={transaction_id} -> item={budget_item_id} ({item.category_id})")

        budget = await self.compute_budget_spend(company_id, item.budget_id)
        tracked = next(i for i in budget.items if i.id == item.id)
        return {
            "transaction_id": transaction_id,
            "budget_id": budget.id,
            "budget_item_id": tracked.id,
            "category_id": tracked.category_id,
            "budgeted": tracked.amount,
            "spent": tracked.spent,
            "remaining": tracked.amount - tracked.spent,
            "spent_percentage": percent_of(tracked.spent, tracked.amount),
        }

    async def compute_budget_tracking(self, company_id: str, budget_id: str) -> dict[str, Any]:
        """예산 집행 현황 (항목은 집행률 내림차순)

        Raises:
            BudgetNotFound: 예산이 없거나 다른 회사 소유
        """
        budget = await self.compute_budget_spend(company_id, budget_id)
        percent = percent_of(budget.total_spent, budget.total_budget)

        items = [
            {
                "id": item.id,
                "name": item.name,
                "category_id": item.category_id,
                "budgeted": item.amount,
                "spent": item.spent,
                "remaining": item.amount - item.spent,
                "spent_percentage": percent_of(item.spent, item.amount),
            }
            for item in budget.items
        ]
        items.sort(key=lambda i: i["spent_percentage"], reverse=True)

        return {
            "budget_id": budget.id,
            "name": budget.name,
            "currency": budget.currency,
            "total_budget": budget.total_budget,
            "total_spent": budget.total_spent,
            "remaining": budget.total_budget - budget.total_spent,
            "spent_percentage": percent,
            "budget_status": budget_health(percent).value,
            "items": items,
        }

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _window_expenses(self, budget: Budget) -> list[Transaction]:
        return await self.transactions.list_completed_in_window(
            budget.company_id,
            budget.start_date,
            budget.end_date,
            type=TransactionType.EXPENSE.value,
        )

    def _to_budget_currency(self, txn: Transaction, budget: Budget) -> Decimal:
        return self.currency.convert(txn.amount, txn.currency, budget.currency)

    @staticmethod
    def _alert(
        alert_type: str,
        budget: Budget,
        item_id: str | None,
        item_name: str | None,
        message: str,
        percent: Decimal,
        threshold: Decimal,
        created_at: str,
    ) -> dict[str, Any]:
        severity = (
            AlertSeverity.CRITICAL
            if percent >= Defaults.OVER_BUDGET_PERCENT
            else AlertSeverity.WARNING
        )
        alert_id = f"budget-{budget.id}" if item_id is None else f"item-{item_id}"
        return {
            "id": alert_id,
            "type": alert_type,
            "budget_id": budget.id,
            "budget_name": budget.name,
            "item_id": item_id,
            "item_name": item_name,
            "message": message,
            "severity": severity.value,
            "percent_spent": percent,
            "threshold": threshold,
            "created_at": created_at,
        }
