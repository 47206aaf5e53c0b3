"""
동기화 거래 카테고리 정책

정규 카테고리 → 이름 매칭 용어 표.
회사 카테고리를 생성 순으로 훑어 소문자 이름에 용어가 포함된 첫 번째 카테고리 선택.
"""

from dataclasses import dataclass
from typing import Sequence

from core.ledger.models import BudgetCategory
from core.types import TransactionType


@dataclass(frozen=True)
class CategoryRule:
    """정규 카테고리 매칭 규칙"""

    category_type: str
    terms: tuple[str, ...]


SALES = "SALES"
INVENTORY = "INVENTORY"

CATEGORY_POLICY: dict[str, CategoryRule] = {
    SALES: CategoryRule(
        category_type=TransactionType.INCOME.value,
        terms=("sales", "revenue"),
    ),
    INVENTORY: CategoryRule(
        category_type=TransactionType.EXPENSE.value,
        terms=("inventory", "stock", "purchases"),
    ),
}


def match_category(
    candidates: Sequence[BudgetCategory],
    canonical: str,
) -> BudgetCategory | None:
    """정규 카테고리에 해당하는 회사 카테고리 선택

    Args:
        candidates: 회사 카테고리 (생성 순)
        canonical: CATEGORY_POLICY 키 (SALES, INVENTORY)

    Returns:
        첫 번째 일치 카테고리 (없으면 None, 거래는 카테고리 없이 기록)
    """
    rule = CATEGORY_POLICY[canonical]
    for category in candidates:
        if category.type != rule.category_type:
            continue
        name = category.name.lower()
        for term in rule.terms:
            if term in name:
                return category
    return None
