"""
Services package.

Re-exports all service classes so existing imports work:
    from retreat.services import ForwardQuoteEngine, BreakdownReconciler
"""

from .stay_window import StayWindow
from .season_service import CalendarSeasonClassifier, seasonal_rate_for, PER_NIGHT, CHECK_IN
from .discount_service import DurationDiscountCalculator, DiscountCodeResolver, duration_discount_rate
from .pricing_service import (
    AccommodationPriceCalculator,
    FoodFacilitiesRangeCalculator,
    CreditsLedger,
    ForwardQuoteEngine,
    Quote,
    format_quote_breakdown,
)
from .reconciliation_service import BreakdownReconciler, BatchResult, Reconciliation, RecordError
from .maintenance_service import BreakdownAudit, DiscountAmountRepair, InferredCodeCleanup

__all__ = [
    'StayWindow',
    'CalendarSeasonClassifier',
    'seasonal_rate_for',
    'PER_NIGHT',
    'CHECK_IN',
    'DurationDiscountCalculator',
    'DiscountCodeResolver',
    'duration_discount_rate',
    'AccommodationPriceCalculator',
    'FoodFacilitiesRangeCalculator',
    'CreditsLedger',
    'ForwardQuoteEngine',
    'Quote',
    'format_quote_breakdown',
    'BreakdownReconciler',
    'BatchResult',
    'Reconciliation',
    'RecordError',
    'BreakdownAudit',
    'DiscountAmountRepair',
    'InferredCodeCleanup',
]
