"""
Maintenance passes over bookings that already carry a breakdown.

- BreakdownAudit: recompute and flag stored breakdowns that disagree
- DiscountAmountRepair: recompute discount_amount from the stored breakdown
- InferredCodeCleanup: remove code labels a reconciliation run inferred

All passes are dry runs unless called with dry_run=False.
"""

import logging
from decimal import Decimal

from django.db import DatabaseError, transaction

from retreat.conf import pricing_setting
from .discount_service import UNKNOWN_CODE
from .pricing_service import money
from .reconciliation_service import (
    BreakdownReconciler,
    BatchResult,
    FLAG_LOW_CONFIDENCE_CODE,
    FLAG_STORED_BREAKDOWN_MISMATCH,
    ERROR_LOOKUP,
    ERROR_COMPUTATION,
    ERROR_PERSISTENCE,
)
from .season_service import PER_NIGHT, CHECK_IN
from retreat.exceptions import AccommodationNotFoundError, StayWindowError

logger = logging.getLogger(__name__)

PERCENT_TOLERANCE = Decimal('0.01')


class BreakdownAudit:
    """
    Compare stored breakdowns against a fresh computation.

    Nobody knows which historical script produced each stored breakdown,
    so disagreements are flagged for review, never overwritten.

    Usage:
        result = BreakdownAudit().run()                    # authoritative
        result = BreakdownAudit(strategy=CHECK_IN).run()   # legacy lookup
    """

    def __init__(self, strategy=PER_NIGHT, tolerance=None):
        if strategy not in (PER_NIGHT, CHECK_IN):
            raise ValueError(f"Unknown season strategy: {strategy}")
        self.strategy = strategy
        self.tolerance = tolerance if tolerance is not None else pricing_setting('AUDIT_TOLERANCE')
        self.reconciler = BreakdownReconciler()

    def compare(self, booking, accommodation):
        """
        Returns:
            list of (field, stored, recomputed) tuples that disagree
        """
        reconciliation = self.reconciler.reconcile(booking, accommodation, self.strategy)
        recomputed = reconciliation.breakdown

        differences = []
        for name in ('accommodation_price', 'seasonal_adjustment'):
            if abs(getattr(booking, name) - recomputed[name]) > self.tolerance:
                differences.append((name, getattr(booking, name), recomputed[name]))

        stored_percent = booking.duration_discount_percent
        if abs(stored_percent - recomputed['duration_discount_percent']) > PERCENT_TOLERANCE:
            differences.append(
                ('duration_discount_percent', stored_percent, recomputed['duration_discount_percent'])
            )
        return differences

    def run(self, bookings=None, dry_run=True):
        from retreat.models import Booking

        accommodations = self.reconciler.load_accommodations()
        self.reconciler.discount_codes = self.reconciler.load_discount_codes()
        if bookings is None:
            bookings = Booking.objects.with_breakdown().order_by('created_at', 'pk')

        result = BatchResult(dry_run=dry_run)

        for booking in bookings:
            result.processed += 1

            try:
                accommodation = self.reconciler.lookup_accommodation(accommodations, booking)
            except AccommodationNotFoundError as e:
                result.add_error(booking.pk, ERROR_LOOKUP, str(e))
                continue

            try:
                differences = self.compare(booking, accommodation)
            except StayWindowError as e:
                result.add_error(booking.pk, ERROR_COMPUTATION, str(e))
                continue

            if not differences:
                continue

            result.results.append((booking.pk, differences))
            result.warnings.append(
                f"Booking {booking.pk}: " + "; ".join(
                    f"{name} stored {stored} vs {recomputed}" for name, stored, recomputed in differences
                )
            )

            if FLAG_STORED_BREAKDOWN_MISMATCH in (booking.reconciliation_flags or []):
                continue
            if dry_run:
                result.updated += 1
                continue

            try:
                booking.add_flag(FLAG_STORED_BREAKDOWN_MISMATCH)
                with transaction.atomic():
                    booking.save(update_fields=['reconciliation_flags', 'updated_at'])
                result.updated += 1
            except DatabaseError as e:
                result.add_error(booking.pk, ERROR_PERSISTENCE, f"Update failed - {e}")

        logger.info("Breakdown audit (%s) finished: %s", self.strategy, result.as_dict())
        return result


def correct_discount_amount(booking, scope='food_facilities'):
    """
    Savings implied by a stored breakdown.

    The F&F duration discount is already part of the F&F band, so only
    seasonal, accommodation duration and code savings count. The code
    saving follows the code's scope; inferred codes are F&F-only.
    """
    seasonal = booking.seasonal_adjustment or Decimal('0.00')
    duration_percent = booking.duration_discount_percent or Decimal('0.00')
    code_percent = booking.discount_code_percent or Decimal('0')

    accommodation_after_seasonal = booking.accommodation_price - seasonal
    accommodation_duration = accommodation_after_seasonal * duration_percent / Decimal('100')
    accommodation_final = accommodation_after_seasonal - accommodation_duration

    if scope == 'accommodation':
        code_amount = accommodation_final * code_percent
    elif scope == 'total':
        code_amount = (accommodation_final + booking.food_contribution) * code_percent
    else:
        code_amount = booking.food_contribution * code_percent

    return money(seasonal + accommodation_duration + code_amount)


class DiscountAmountRepair:
    """Recompute discount_amount for bookings with a stored breakdown."""

    def run(self, bookings=None, dry_run=True):
        from retreat.models import Booking

        if bookings is None:
            bookings = Booking.objects.with_breakdown().order_by('created_at', 'pk')
        codes = BreakdownReconciler().load_discount_codes()

        result = BatchResult(dry_run=dry_run)

        for booking in bookings:
            result.processed += 1
            code = codes.get((booking.applied_discount_code or '').strip().upper())
            scope = code.applies_to if code is not None else 'food_facilities'
            correct = correct_discount_amount(booking, scope)
            current = booking.discount_amount or Decimal('0.00')

            if abs(correct - current) <= Decimal('0.01'):
                result.skipped += 1
                continue

            result.results.append((booking.pk, current, correct))
            if dry_run:
                result.updated += 1
                continue

            try:
                with transaction.atomic():
                    Booking.objects.filter(pk=booking.pk).update(discount_amount=correct)
                booking.discount_amount = correct
                result.updated += 1
            except DatabaseError as e:
                result.add_error(booking.pk, ERROR_PERSISTENCE, f"Update failed - {e}")

        logger.info("Discount amount repair finished: %s", result.as_dict())
        return result


class InferredCodeCleanup:
    """
    Clear code labels that reconciliation inferred.

    Cleared bookings lose discount_code_percent, so the next reconciliation
    run picks them up again. Codes a guest actually entered are untouched.
    """

    def candidates(self):
        from retreat.models import Booking
        return Booking.objects.filter(
            breakdown_source='reconciled',
            applied_discount_code=UNKNOWN_CODE,
        ).order_by('created_at', 'pk')

    def run(self, dry_run=True):
        result = BatchResult(dry_run=dry_run)

        for booking in self.candidates():
            result.processed += 1
            result.results.append(booking.pk)
            if dry_run:
                result.updated += 1
                continue

            booking.applied_discount_code = None
            booking.discount_code_percent = None
            booking.reconciliation_flags = [
                flag for flag in (booking.reconciliation_flags or [])
                if flag != FLAG_LOW_CONFIDENCE_CODE
            ]
            try:
                with transaction.atomic():
                    booking.save(update_fields=[
                        'applied_discount_code', 'discount_code_percent',
                        'reconciliation_flags', 'updated_at',
                    ])
                result.updated += 1
            except DatabaseError as e:
                result.add_error(booking.pk, ERROR_PERSISTENCE, f"Update failed - {e}")

        logger.info("Inferred code cleanup finished: %s", result.as_dict())
        return result
