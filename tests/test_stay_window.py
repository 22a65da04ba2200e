"""
Tests for stay window day and week counting.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from retreat.exceptions import StayWindowError
from retreat.services import StayWindow, CalendarSeasonClassifier


class TestStayWindow:

    def test_one_week_is_seven_inclusive_days(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 7))
        assert window.total_days == 7
        assert window.exact_weeks == Decimal('1')
        assert window.complete_weeks == 1

    def test_same_day_counts_as_one_day(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 1))
        assert window.total_days == 1
        assert window.complete_weeks == 0
        assert window.night_count == 0
        assert list(window.nights()) == []

    def test_short_stay_has_no_complete_weeks(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 6))
        assert window.total_days == 6
        assert window.complete_weeks == 0
        assert window.exact_weeks == Decimal(6) / Decimal(7)

    def test_three_weeks(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 21))
        assert window.total_days == 21
        assert window.exact_weeks == Decimal('3')
        assert window.complete_weeks == 3

    def test_complete_weeks_floor(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 17))
        assert window.total_days == 17
        assert window.complete_weeks == 2

    def test_nights_exclude_checkout_day(self):
        window = StayWindow(date(2025, 9, 29), date(2025, 10, 2))
        assert list(window.nights()) == [date(2025, 9, 29), date(2025, 9, 30), date(2025, 10, 1)]

    def test_accepts_iso_strings_and_datetimes(self):
        window = StayWindow('2025-07-01', datetime(2025, 7, 7, 15, 30))
        assert window.check_in == date(2025, 7, 1)
        assert window.check_out == date(2025, 7, 7)

    def test_aware_datetimes_use_utc_calendar_day(self):
        # 20:00 on Jun 30 in UTC-5 is already Jul 1 in UTC
        eastern = timezone(timedelta(hours=-5))
        window = StayWindow(datetime(2025, 6, 30, 20, 0, tzinfo=eastern), date(2025, 7, 7))

        assert window.check_in == date(2025, 7, 1)
        assert window.total_days == 7
        assert CalendarSeasonClassifier().rate_for_stay(window) == Decimal('0.00')

    def test_iso_string_with_offset_uses_utc(self):
        window = StayWindow('2025-06-30T20:00:00-05:00', '2025-07-07')
        assert window.check_in == date(2025, 7, 1)

    def test_display_weeks_rounds_to_one_decimal(self):
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 9))
        assert window.display_weeks() == Decimal('1.3')

    @pytest.mark.parametrize('check_in, check_out', [
        (None, date(2025, 7, 7)),
        (date(2025, 7, 1), None),
        ('not-a-date', date(2025, 7, 7)),
        (date(2025, 7, 7), date(2025, 7, 1)),
    ])
    def test_invalid_dates_raise(self, check_in, check_out):
        with pytest.raises(StayWindowError):
            StayWindow(check_in, check_out)
