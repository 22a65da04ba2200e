"""
Breakdown Reconciliation
========================

Rebuilds the price breakdown of bookings created before breakdowns were
stored, starting from the charged total and the accommodation.

Reverse Flow:
1. Total Price + Credits Used = Total Paid Before Credits
2. Accommodation Final (season per night, then duration) from the
   accommodation's current base price
3. Total Paid Before Credits - Accommodation Final = F&F Paid
4. A booking naming a stored discount code is inverted by the code's scope:
     total           F&F base = Paid / (1 - p) - Accommodation Final
     accommodation   F&F base = Paid - Accommodation Final x (1 - p)
     food_facilities F&F base = (Paid - Accommodation Final) / (1 - p)
   Any other booking compares F&F Paid with the F&F band:
     below band  -> a code was applied; F&F base = band minimum
     above band  -> no code; guest paid more than the maximum
     in band     -> no code
5. Recompute the total from the breakdown; drift beyond tolerance is a
   mismatch warning for manual review

Precision limit: without a known code only the F&F amount paid can be
recovered, not the guest's original slider choice. A guest with an
unnamed code is assumed to have chosen the band minimum.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

from django.db import DatabaseError, transaction

from retreat.conf import pricing_setting
from retreat.exceptions import (
    AccommodationNotFoundError,
    ConfigurationError,
    ReconciliationMismatch,
    StayWindowError,
)
from .stay_window import StayWindow
from .season_service import CalendarSeasonClassifier, seasonal_rate_for, PER_NIGHT
from .discount_service import DurationDiscountCalculator, DiscountCodeResolver, UNKNOWN_CODE
from .pricing_service import (
    AccommodationPriceCalculator,
    FoodFacilitiesRangeCalculator,
    CreditsLedger,
    money,
)

logger = logging.getLogger(__name__)

FLAG_LOW_CONFIDENCE_CODE = 'low_confidence_code'
FLAG_ABOVE_FOOD_BAND = 'paid_above_food_band'
FLAG_NEGATIVE_FOOD_PAID = 'negative_food_paid'
FLAG_TOTAL_MISMATCH = 'total_mismatch'
FLAG_STORED_BREAKDOWN_MISMATCH = 'stored_breakdown_mismatch'

ERROR_LOOKUP = 'lookup'
ERROR_COMPUTATION = 'computation'
ERROR_PERSISTENCE = 'persistence'


@dataclass
class RecordError:
    booking_id: Any
    category: str
    message: str

    def __str__(self):
        return f"Booking {self.booking_id}: {self.message}"


@dataclass
class Reconciliation:
    """Derived breakdown for one booking."""
    booking_id: Any
    breakdown: Dict[str, Any]
    accommodation_final: Decimal
    food_paid: Decimal
    food_range: Dict[str, Decimal]
    recomputed_total: Decimal
    mismatch: Decimal
    flags: List[str] = field(default_factory=list)
    within_tolerance: bool = True

    @property
    def code_detected(self):
        return self.breakdown['discount_code_percent'] > 0

    @property
    def needs_review(self):
        return bool(self.flags)


@dataclass
class BatchResult:
    """Outcome of one batch run; replaces console counters."""
    dry_run: bool = True
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[RecordError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    results: List[Any] = field(default_factory=list)

    def add_error(self, booking_id, category, message):
        error = RecordError(booking_id, category, message)
        self.errors.append(error)
        logger.warning("%s (%s)", error, category)
        return error

    def error_counts(self):
        return dict(Counter(error.category for error in self.errors))

    def as_dict(self):
        return {
            'dry_run': self.dry_run,
            'processed': self.processed,
            'updated': self.updated,
            'skipped': self.skipped,
            'errors': len(self.errors),
            'error_counts': self.error_counts(),
            'warnings': len(self.warnings),
        }


class BreakdownReconciler:
    """
    Usage:
        reconciler = BreakdownReconciler()

        # Preview (default)
        result = reconciler.run()

        # Persist
        result = reconciler.run(dry_run=False)
        print(result.as_dict())
    """

    def __init__(self, tolerance=None, low_confidence_threshold=None, classifier=None):
        self.tolerance = tolerance if tolerance is not None else pricing_setting('RECONCILIATION_TOLERANCE')
        if low_confidence_threshold is None:
            low_confidence_threshold = pricing_setting('LOW_CONFIDENCE_CODE_THRESHOLD')

        self.classifier = classifier or CalendarSeasonClassifier()
        self.duration_calculator = DurationDiscountCalculator()
        self.accommodation_calculator = AccommodationPriceCalculator()
        self.food_calculator = FoodFacilitiesRangeCalculator(self.duration_calculator)
        self.code_resolver = DiscountCodeResolver(self.tolerance, low_confidence_threshold)
        self.discount_codes = None

    # =========================================================================
    # SINGLE BOOKING
    # =========================================================================

    def reconcile(self, booking, accommodation, strategy=PER_NIGHT):
        """
        Derive the breakdown of one booking.

        A booking that names a stored discount code is inverted by that
        code's scope and percentage; any other booking goes through the F&F
        band heuristic. Only the code lookup touches the database.

        Raises:
            StayWindowError: missing or inverted dates
        """
        window = StayWindow(booking.check_in, booking.check_out)

        seasonal_rate = seasonal_rate_for(accommodation, window, strategy, self.classifier)
        duration_rate = self.duration_calculator.rate(window.complete_weeks)
        prices = self.accommodation_calculator.calculate(
            accommodation.base_price, window.exact_weeks, seasonal_rate, duration_rate
        )
        accommodation_final = prices['final_price']

        credits_used = Decimal(booking.credits_used or 0)
        total_price = Decimal(booking.total_price or 0)
        paid_before_credits = CreditsLedger.total_paid_before_credits(total_price, credits_used)
        food_paid = paid_before_credits - accommodation_final

        food_range = self.food_calculator.calculate(window.exact_weeks, window.complete_weeks)
        code = self.known_code(booking.applied_discount_code)
        if code is not None:
            inference = self.code_resolver.invert(code, paid_before_credits, accommodation_final, food_range)
        else:
            inference = self.code_resolver.infer(food_paid, food_range)

        flags = []
        # A known code may legitimately bring the charge below accommodation_final
        if code is None and food_paid < 0:
            flags.append(FLAG_NEGATIVE_FOOD_PAID)
        if inference['above_band']:
            flags.append(FLAG_ABOVE_FOOD_BAND)
        if inference['low_confidence']:
            flags.append(FLAG_LOW_CONFIDENCE_CODE)

        food_base = inference['food_base']
        code_percent = inference['percent']
        code_amount = inference['amount']

        if code is not None:
            applied_code = code.code
        else:
            applied_code = booking.applied_discount_code or None
            if inference['code_detected'] and not inference['low_confidence'] and not applied_code:
                applied_code = UNKNOWN_CODE

        recomputed_total = accommodation_final + food_base - code_amount - credits_used
        mismatch = recomputed_total - total_price
        within_tolerance = abs(mismatch) <= self.tolerance
        if not within_tolerance:
            flags.append(FLAG_TOTAL_MISMATCH)

        breakdown = {
            'accommodation_price': money(prices['base_total']),
            'food_contribution': money(food_base),
            'seasonal_adjustment': money(prices['seasonal_adjustment']),
            'duration_discount_percent': money(duration_rate * 100),
            'discount_code_percent': code_percent.quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP),
            'applied_discount_code': applied_code,
            'discount_amount': money(
                prices['seasonal_adjustment'] + prices['duration_adjustment'] + code_amount
            ),
        }

        return Reconciliation(
            booking_id=booking.pk,
            breakdown=breakdown,
            accommodation_final=accommodation_final,
            food_paid=food_paid,
            food_range=food_range,
            recomputed_total=recomputed_total,
            mismatch=mismatch,
            flags=flags,
            within_tolerance=within_tolerance,
        )

    # =========================================================================
    # BATCH
    # =========================================================================

    def load_discount_codes(self):
        """Every stored code, active or not: old bookings keep retired codes."""
        from retreat.models import DiscountCode

        try:
            return {code.code: code for code in DiscountCode.objects.all()}
        except DatabaseError as e:
            raise ConfigurationError(f"Discount code table unreachable: {e}")

    def known_code(self, name):
        """The stored DiscountCode a booking names, or None for unknown and inferred labels."""
        normalized = (name or '').strip().upper()
        if not normalized or normalized == UNKNOWN_CODE:
            return None
        if self.discount_codes is None:
            self.discount_codes = self.load_discount_codes()
        return self.discount_codes.get(normalized)

    def load_accommodations(self):
        """Live accommodation lookup, once per batch."""
        from retreat.models import Accommodation

        try:
            accommodations = {a.pk: a for a in Accommodation.objects.all()}
        except DatabaseError as e:
            raise ConfigurationError(f"Accommodation table unreachable: {e}")

        if not accommodations:
            raise ConfigurationError("No accommodations found; cannot price any booking")
        return accommodations

    @staticmethod
    def lookup_accommodation(accommodations, booking):
        accommodation = accommodations.get(booking.accommodation_id)
        if accommodation is None:
            raise AccommodationNotFoundError(f"Accommodation not found: {booking.accommodation_id}")
        return accommodation

    def candidates(self):
        from retreat.models import Booking
        return Booking.objects.missing_breakdown().order_by('created_at', 'pk')

    def run(self, bookings=None, dry_run=True, include_mismatches=False, limit=None):
        """
        Reconcile every booking that lacks a breakdown.

        Args:
            bookings: iterable of Booking; defaults to all with a missing field
            dry_run: compute only, never write
            include_mismatches: also persist records whose total drifts
                beyond tolerance
            limit: stop after this many candidates

        Returns:
            BatchResult

        Raises:
            ConfigurationError: before any record is processed
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")

        accommodations = self.load_accommodations()
        self.discount_codes = self.load_discount_codes()
        if bookings is None:
            bookings = self.candidates()
        if limit is not None:
            bookings = bookings[:limit]

        result = BatchResult(dry_run=dry_run)
        logger.info("Reconciling breakdowns (%s)", 'dry run' if dry_run else 'live')

        for booking in bookings:
            if booking.has_breakdown:
                result.skipped += 1
                continue

            result.processed += 1

            try:
                accommodation = self.lookup_accommodation(accommodations, booking)
            except AccommodationNotFoundError as e:
                result.add_error(booking.pk, ERROR_LOOKUP, str(e))
                continue

            try:
                reconciliation = self.reconcile(booking, accommodation)
            except StayWindowError as e:
                result.add_error(booking.pk, ERROR_COMPUTATION, str(e))
                continue

            result.results.append(reconciliation)

            if not reconciliation.within_tolerance:
                warning = ReconciliationMismatch(
                    booking.pk, money(reconciliation.recomputed_total), booking.total_price
                )
                result.warnings.append(str(warning))
                if not include_mismatches:
                    result.skipped += 1
                    continue
            elif reconciliation.needs_review:
                result.warnings.append(
                    f"Booking {booking.pk}: needs review ({', '.join(reconciliation.flags)})"
                )

            if dry_run:
                result.updated += 1
                continue

            try:
                if self.persist(booking, reconciliation):
                    result.updated += 1
                else:
                    result.skipped += 1
            except DatabaseError as e:
                logger.exception("Failed to save breakdown for booking %s", booking.pk)
                result.add_error(booking.pk, ERROR_PERSISTENCE, f"Update failed - {e}")

        logger.info("Reconciliation finished: %s", result.as_dict())
        return result

    def persist(self, booking, reconciliation):
        """
        Write one booking's breakdown in its own transaction.

        Returns False when another run filled the breakdown in the meantime.
        """
        from retreat.models import Booking

        with transaction.atomic():
            current = Booking.objects.select_for_update().get(pk=booking.pk)
            if current.has_breakdown:
                return False

            current.apply_breakdown(reconciliation.breakdown)
            current.breakdown_source = 'reconciled'
            for flag in reconciliation.flags:
                current.add_flag(flag)
            current.save(update_fields=list(reconciliation.breakdown) + [
                'breakdown_source', 'reconciliation_flags', 'updated_at',
            ])

        booking.apply_breakdown(reconciliation.breakdown)
        booking.breakdown_source = current.breakdown_source
        booking.reconciliation_flags = current.reconciliation_flags
        return True
