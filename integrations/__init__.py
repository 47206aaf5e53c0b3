"""
소스 문서 동기화

Sales / Inventory 문서 변경을 Ledger 거래로 반영하는 동기화기.
"""

from integrations.category_policy import CATEGORY_POLICY, match_category
from integrations.inventory import InventoryLedgerSync
from integrations.sales import SalesLedgerSync

__all__ = [
    "CATEGORY_POLICY",
    "match_category",
    "InventoryLedgerSync",
    "SalesLedgerSync",
]
