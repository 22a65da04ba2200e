"""
Season Classification
=====================

Seasonal discounts depend on the calendar month only:

    Nov - May   Low Season      40% off accommodation
    Jun, Oct    Medium Season   15% off accommodation
    Jul - Sep   Summer Season    0%

Two strategies exist for a whole stay:
    per_night  average of every night's rate in [check_in, check_out).
               Used for every new quote and reconciliation.
    check_in   the check-in date's rate applied to the whole stay. Legacy
               behaviour, only for auditing breakdowns stored by old scripts.

The dorm exemption is applied by seasonal_rate_for(), not by the classifier.
"""

from collections import namedtuple
from decimal import Decimal

from dateutil.relativedelta import relativedelta

SeasonInfo = namedtuple('SeasonInfo', ['name', 'rate'])

LOW_SEASON = SeasonInfo('Low Season', Decimal('0.40'))
MEDIUM_SEASON = SeasonInfo('Medium Season', Decimal('0.15'))
SUMMER_SEASON = SeasonInfo('Summer Season', Decimal('0.00'))

LOW_MONTHS = (11, 12, 1, 2, 3, 4, 5)
MEDIUM_MONTHS = (6, 10)

PER_NIGHT = 'per_night'
CHECK_IN = 'check_in'
STRATEGIES = (PER_NIGHT, CHECK_IN)


class CalendarSeasonClassifier:
    """
    Maps calendar dates to season discount rates.

    Usage:
        classifier = CalendarSeasonClassifier()
        classifier.classify(date(2025, 6, 12))
        # SeasonInfo(name='Medium Season', rate=Decimal('0.15'))

        classifier.rate_for_stay(window)  # per-night average
    """

    def classify(self, day):
        if day.month in LOW_MONTHS:
            return LOW_SEASON
        if day.month in MEDIUM_MONTHS:
            return MEDIUM_SEASON
        return SUMMER_SEASON

    def season_breakdown(self, window):
        """
        Nights per season for a stay, walking month by month.

        Returns:
            list of dicts with keys: season, rate, nights, start, end
            (end exclusive). Consecutive months of the same season are merged.
        """
        segments = []
        cursor = window.check_in

        while cursor < window.check_out:
            next_month = cursor.replace(day=1) + relativedelta(months=1)
            end = min(next_month, window.check_out)
            info = self.classify(cursor)
            nights = (end - cursor).days

            if segments and segments[-1]['season'] == info.name:
                segments[-1]['nights'] += nights
                segments[-1]['end'] = end
            else:
                segments.append({
                    'season': info.name,
                    'rate': info.rate,
                    'nights': nights,
                    'start': cursor,
                    'end': end,
                })
            cursor = end

        return segments

    def average_rate(self, window):
        """
        Mean of each night's rate.

        A same-day stay has no nights; it takes the check-in date's rate.
        """
        segments = self.season_breakdown(window)
        total_nights = sum(segment['nights'] for segment in segments)
        if total_nights == 0:
            return self.classify(window.check_in).rate

        weighted = sum(segment['rate'] * segment['nights'] for segment in segments)
        return weighted / Decimal(total_nights)

    def rate_for_stay(self, window, strategy=PER_NIGHT):
        if strategy == PER_NIGHT:
            return self.average_rate(window)
        if strategy == CHECK_IN:
            return self.classify(window.check_in).rate
        raise ValueError(f"Unknown season strategy: {strategy}")


def seasonal_rate_for(accommodation, window, strategy=PER_NIGHT, classifier=None):
    """Seasonal rate for an accommodation's stay; dorms always get 0."""
    if accommodation.is_dorm:
        return Decimal('0.00')
    classifier = classifier or CalendarSeasonClassifier()
    return classifier.rate_for_stay(window, strategy)
