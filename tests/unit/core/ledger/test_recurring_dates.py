"""
core/ledger/recurring.py 날짜 계산 테스트
"""

from datetime import date

import pytest

from core.ledger.recurring import advance_due_date, initial_due_date


class TestAdvanceDueDate:
    """주기별 다음 예정일"""

    def test_daily_interval(self) -> None:
        assert advance_due_date(date(2024, 2, 27), "daily", 3) == date(2024, 3, 1)

    def test_weekly_plain(self) -> None:
        assert advance_due_date(date(2024, 3, 6), "weekly", 2) == date(2024, 3, 20)

    def test_weekly_moves_to_day_of_week(self) -> None:
        """2024-03-06은 수요일, 다음 주 금요일(5)로 이동"""
        assert advance_due_date(date(2024, 3, 6), "weekly", 1, day_of_week=5) == date(2024, 3, 15)

    def test_weekly_sunday_is_zero(self) -> None:
        assert advance_due_date(date(2024, 3, 6), "weekly", 1, day_of_week=0) == date(2024, 3, 17)

    def test_monthly_end_of_month(self) -> None:
        assert advance_due_date(date(2024, 1, 31), "monthly") == date(2024, 2, 29)

    def test_monthly_day_of_month_clamped(self) -> None:
        assert advance_due_date(date(2024, 3, 31), "monthly", 1, day_of_month=31) == date(2024, 4, 30)
        assert advance_due_date(date(2024, 4, 30), "monthly", 1, day_of_month=31) == date(2024, 5, 31)

    def test_quarterly_via_interval(self) -> None:
        assert advance_due_date(date(2024, 1, 15), "monthly", 3) == date(2024, 4, 15)

    def test_yearly_fixed_date(self) -> None:
        assert advance_due_date(
            date(2024, 2, 29), "yearly", 1, day_of_month=29, month_of_year=2
        ) == date(2025, 2, 28)

    def test_yearly_month_without_day_ignored(self) -> None:
        assert advance_due_date(date(2024, 6, 1), "yearly", 1, month_of_year=1) == date(2025, 6, 1)

    def test_unknown_frequency(self) -> None:
        with pytest.raises(ValueError):
            advance_due_date(date(2024, 1, 1), "hourly")


class TestInitialDueDate:
    """첫 예정일"""

    def test_future_start_kept(self) -> None:
        assert initial_due_date(
            date(2024, 5, 1), "monthly", today=date(2024, 3, 1)
        ) == date(2024, 5, 1)

    def test_start_today_is_due_today(self) -> None:
        assert initial_due_date(
            date(2024, 3, 1), "monthly", today=date(2024, 3, 1)
        ) == date(2024, 3, 1)

    def test_past_start_skips_to_first_upcoming(self) -> None:
        assert initial_due_date(
            date(2024, 1, 10), "monthly", today=date(2024, 3, 15)
        ) == date(2024, 4, 10)

    def test_past_start_landing_on_today(self) -> None:
        assert initial_due_date(
            date(2024, 3, 1), "weekly", today=date(2024, 3, 15)
        ) == date(2024, 3, 15)
