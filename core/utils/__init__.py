"""
유틸리티 패키지

source_key 생성, 날짜/타임존 처리 등 공통 유틸리티
"""

from core.utils.dedup import (
    make_inventory_source_key,
    make_recurring_source_key,
    make_sale_source_key,
)
from core.utils.timezone import (
    date_str,
    now_utc,
    now_utc_iso,
    to_date,
    today_utc,
)

__all__ = [
    "make_sale_source_key",
    "make_inventory_source_key",
    "make_recurring_source_key",
    "now_utc",
    "now_utc_iso",
    "today_utc",
    "to_date",
    "date_str",
]
