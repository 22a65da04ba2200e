"""
Retreat models package.

Re-exports all models so Django migrations and existing imports
continue to work unchanged:
    from retreat.models import Accommodation, Booking
"""

# Core: accommodations and discount codes
from .core import (
    Accommodation,
    DiscountCode,
)

# Bookings and their stored breakdown
from .bookings import (
    BREAKDOWN_FIELDS,
    Booking,
)

__all__ = [
    'Accommodation', 'DiscountCode',
    'BREAKDOWN_FIELDS', 'Booking',
]
