"""
Tests for season classification and stay-level seasonal rates.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from retreat.services import CalendarSeasonClassifier, StayWindow, seasonal_rate_for, PER_NIGHT, CHECK_IN


class TestClassify:

    @pytest.mark.parametrize('month', [11, 12, 1, 2, 3, 4, 5])
    def test_low_season(self, month):
        info = CalendarSeasonClassifier().classify(date(2025, month, 15))
        assert info.name == 'Low Season'
        assert info.rate == Decimal('0.40')

    @pytest.mark.parametrize('month', [6, 10])
    def test_medium_season(self, month):
        info = CalendarSeasonClassifier().classify(date(2025, month, 15))
        assert info.name == 'Medium Season'
        assert info.rate == Decimal('0.15')

    @pytest.mark.parametrize('month', [7, 8, 9])
    def test_summer_season(self, month):
        info = CalendarSeasonClassifier().classify(date(2025, month, 15))
        assert info.name == 'Summer Season'
        assert info.rate == Decimal('0.00')

    def test_year_does_not_matter(self):
        classifier = CalendarSeasonClassifier()
        assert classifier.classify(date(2019, 6, 1)) == classifier.classify(date(2031, 6, 30))


class TestStayRate:

    def test_per_night_average_across_season_boundary(self):
        # Sep 28 - Oct 11: 3 summer nights, 10 medium nights
        classifier = CalendarSeasonClassifier()
        window = StayWindow(date(2025, 9, 28), date(2025, 10, 11))

        rate = classifier.rate_for_stay(window, PER_NIGHT)

        nightly = [classifier.classify(night).rate for night in window.nights()]
        assert rate == sum(nightly) / Decimal(len(nightly))
        assert rate == Decimal('1.50') / Decimal(13)
        assert rate != classifier.rate_for_stay(window, CHECK_IN)

    def test_check_in_strategy_uses_first_date_only(self):
        window = StayWindow(date(2025, 9, 28), date(2025, 10, 11))
        assert CalendarSeasonClassifier().rate_for_stay(window, CHECK_IN) == Decimal('0.00')

    def test_same_day_stay_uses_check_in_rate(self):
        window = StayWindow(date(2025, 1, 10), date(2025, 1, 10))
        assert CalendarSeasonClassifier().rate_for_stay(window) == Decimal('0.40')

    def test_unknown_strategy(self):
        window = StayWindow(date(2025, 1, 10), date(2025, 1, 12))
        with pytest.raises(ValueError):
            CalendarSeasonClassifier().rate_for_stay(window, 'weekly')

    def test_season_breakdown_merges_same_season_months(self):
        # Dec, Jan and Feb are all low season
        window = StayWindow(date(2024, 12, 20), date(2025, 2, 10))
        segments = CalendarSeasonClassifier().season_breakdown(window)

        assert len(segments) == 1
        assert segments[0]['season'] == 'Low Season'
        assert segments[0]['nights'] == window.night_count

    def test_season_breakdown_splits_on_change(self):
        window = StayWindow(date(2025, 5, 25), date(2025, 7, 5))
        segments = CalendarSeasonClassifier().season_breakdown(window)

        assert [s['season'] for s in segments] == ['Low Season', 'Medium Season', 'Summer Season']
        assert [s['nights'] for s in segments] == [7, 30, 4]
        assert sum(s['nights'] for s in segments) == window.night_count


class TestDormExemption:

    @pytest.mark.parametrize('title, type', [
        ('6-Bed Dorm', 'dorm'),
        ('3-Bed Dorm', 'room'),
        ('Shared room', 'dorm'),
    ])
    def test_dorms_never_get_seasonal_discount(self, fake_accommodation, title, type):
        dorm = fake_accommodation(title=title, type=type, base_price='125.00')
        start = date(2025, 1, 1)
        for offset in range(0, 365, 11):
            window = StayWindow(start + timedelta(days=offset), start + timedelta(days=offset + 9))
            assert seasonal_rate_for(dorm, window) == Decimal('0.00')
            assert seasonal_rate_for(dorm, window, CHECK_IN) == Decimal('0.00')

    def test_room_gets_seasonal_discount(self, room):
        window = StayWindow(date(2025, 1, 6), date(2025, 1, 12))
        assert seasonal_rate_for(room, window) == Decimal('0.40')
