"""
타임존 유틸리티

내부 저장: UTC ISO-8601 문자열 | 거래/예산 날짜: YYYY-MM-DD
"""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """현재 UTC 시간을 ISO-8601 문자열로 반환 (created_at/updated_at 저장용)"""
    return now_utc().isoformat()


def today_utc() -> date:
    """오늘 날짜 (UTC 기준)"""
    return now_utc().date()


def to_date(value: date | datetime | str) -> date:
    """date / datetime / ISO 문자열을 date로 변환

    Example:
        >>> to_date("2024-01-15")
        datetime.date(2024, 1, 15)
        >>> to_date("2024-01-15T10:30:00+00:00")
        datetime.date(2024, 1, 15)
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) > 10:
        return to_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    return date.fromisoformat(text)


def date_str(value: date | datetime | str) -> str:
    """저장용 날짜 문자열 (YYYY-MM-DD)"""
    return to_date(value).isoformat()
