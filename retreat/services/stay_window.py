"""
Stay window: check-in/check-out dates converted into priced days and weeks.

Days are counted inclusively, so a same-day stay counts as one day and
July 1 - July 7 counts as seven.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from dateutil import parser as date_parser

from retreat.exceptions import StayWindowError

DAYS_PER_WEEK = 7


def coerce_date(value, label='date'):
    """Accept a date, datetime or ISO string and return a date."""
    if value is None or value == '':
        raise StayWindowError(f"Missing {label}")
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, datetime):
        try:
            value = date_parser.isoparse(str(value))
        except (ValueError, OverflowError) as e:
            raise StayWindowError(f"Invalid {label} {value!r}: {e}")
    # Seasons follow the UTC calendar day
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


class StayWindow:
    """
    Derived stay length for pricing.

    Usage:
        window = StayWindow(date(2025, 7, 1), date(2025, 7, 21))
        window.total_days      # 21
        window.exact_weeks     # Decimal('3')
        window.complete_weeks  # 3
    """

    def __init__(self, check_in, check_out):
        self.check_in = coerce_date(check_in, 'check-in date')
        self.check_out = coerce_date(check_out, 'check-out date')
        if self.check_out < self.check_in:
            raise StayWindowError(
                f"Check-out {self.check_out} is before check-in {self.check_in}"
            )

    def __repr__(self):
        return f"StayWindow({self.check_in}, {self.check_out})"

    def __eq__(self, other):
        if not isinstance(other, StayWindow):
            return NotImplemented
        return (self.check_in, self.check_out) == (other.check_in, other.check_out)

    @property
    def total_days(self):
        return (self.check_out - self.check_in).days + 1

    @property
    def exact_weeks(self):
        return Decimal(self.total_days) / Decimal(DAYS_PER_WEEK)

    @property
    def complete_weeks(self):
        if self.total_days < DAYS_PER_WEEK:
            return 0
        return self.total_days // DAYS_PER_WEEK

    @property
    def night_count(self):
        return (self.check_out - self.check_in).days

    def nights(self):
        """Yield each night's date in [check_in, check_out)."""
        current = self.check_in
        while current < self.check_out:
            yield current
            current += timedelta(days=1)

    def display_weeks(self):
        """Weeks rounded to one decimal place, as shown to guests."""
        return self.exact_weeks.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
