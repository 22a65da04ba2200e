"""
Duration discounts and discount codes.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from retreat.exceptions import DiscountCodeError

logger = logging.getLogger(__name__)

DURATION_MIN_WEEKS = 3
DURATION_BASE_RATE = Decimal('0.10')
DURATION_RATE_PER_EXTRA_WEEK = Decimal('0.0278')
DURATION_MAX_RATE = Decimal('0.35')

UNKNOWN_CODE = 'UNKNOWN'

CENT = Decimal('0.01')


class DurationDiscountCalculator:
    """
    Long-stay discount by complete weeks.

        < 3 weeks   0%
        3 weeks     10%
        each extra  +2.78%, capped at 35% (reached at 12 weeks)
    """

    def rate(self, complete_weeks):
        if complete_weeks < 0:
            raise ValueError(f"complete_weeks must be >= 0, got {complete_weeks}")
        if complete_weeks < DURATION_MIN_WEEKS:
            return Decimal('0.00')

        extra_weeks = complete_weeks - DURATION_MIN_WEEKS
        rate = DURATION_BASE_RATE + extra_weeks * DURATION_RATE_PER_EXTRA_WEEK
        return min(rate, DURATION_MAX_RATE)


def duration_discount_rate(complete_weeks):
    return DurationDiscountCalculator().rate(complete_weeks)


class DiscountCodeResolver:
    """
    Applies discount codes when quoting and infers them when reconciling.

    Forward:
        resolver = DiscountCodeResolver()
        code = resolver.resolve('summer21')
        result = resolver.apply(code, accommodation_amount, food_amount)

    Backward:
        result = resolver.infer(food_paid, food_range)
    """

    def __init__(self, tolerance=Decimal('1.00'), low_confidence_threshold=Decimal('0.05')):
        self.tolerance = tolerance
        self.low_confidence_threshold = low_confidence_threshold

    # =========================================================================
    # FORWARD
    # =========================================================================

    def resolve(self, code):
        """Look up an active code, case-insensitively."""
        from retreat.models import DiscountCode

        normalized = (code or '').strip().upper()
        if not normalized:
            raise DiscountCodeError("Discount code cannot be empty")

        try:
            discount = DiscountCode.objects.get(code=normalized)
        except DiscountCode.DoesNotExist:
            raise DiscountCodeError(f"Invalid discount code: {normalized}")

        if not discount.is_active:
            raise DiscountCodeError(f"Discount code {normalized} is no longer active")
        return discount

    def apply(self, code, accommodation_amount, food_amount):
        """
        Apply a code to the part of the subtotal it covers.

        Args:
            code: DiscountCode or None
            accommodation_amount: accommodation after seasonal + duration
            food_amount: chosen F&F total

        Returns:
            dict with scope, base (amount discounted from), percent
            (fraction), amount (currency saved)
        """
        if code is None:
            return {
                'code': None,
                'scope': None,
                'base': Decimal('0.00'),
                'percent': Decimal('0'),
                'amount': Decimal('0.00'),
            }

        if code.applies_to == 'accommodation':
            base = accommodation_amount
        elif code.applies_to == 'food_facilities':
            base = food_amount
        else:
            base = accommodation_amount + food_amount

        amount = Decimal('0.00')
        if base > 0:
            amount = (base * code.fraction).quantize(CENT, rounding=ROUND_HALF_UP)

        return {
            'code': code.code,
            'scope': code.applies_to,
            'base': base,
            'percent': code.fraction,
            'amount': amount,
        }

    # =========================================================================
    # BACKWARD
    # =========================================================================

    def infer(self, food_paid, food_range):
        """
        Decide from the F&F amount actually paid whether a code was applied.

        Heuristic: a guest with a code is assumed to have picked the cheapest
        F&F tier, so the code percent is the shortfall against the band's
        lower bound. A small code on a near-minimum F&F choice cannot be told
        apart from rounding; detections under the low-confidence threshold
        are reported for manual review instead of being labelled.

        Returns:
            dict with code_detected, percent (fraction), food_base,
            low_confidence, above_band, amount (code saving)
        """
        lower = food_range['lower_bound']
        upper = food_range['upper_bound']

        result = {
            'code_detected': False,
            'percent': Decimal('0'),
            'food_base': food_paid,
            'low_confidence': False,
            'above_band': False,
            'amount': Decimal('0'),
        }

        if food_paid < lower - self.tolerance and lower > 0:
            percent = (lower - food_paid) / lower
            if percent > 1:
                logger.warning(
                    "F&F paid %s is negative against lower bound %s; capping code at 100%%",
                    food_paid, lower,
                )
                percent = Decimal('1')
            result.update({
                'code_detected': True,
                'percent': percent,
                'food_base': lower,
                'low_confidence': percent < self.low_confidence_threshold,
                'amount': lower * percent,
            })
        elif food_paid > upper + self.tolerance:
            result['above_band'] = True

        return result

    def invert(self, code, paid_before_credits, accommodation_final, food_range):
        """
        Recover the F&F base of a booking whose code is known.

        Undoes apply() for the code's scope:
            total           paid = (A + F) x (1 - p)
            accommodation   paid = A x (1 - p) + F
            food_facilities paid = A + F x (1 - p)

        A code that wipes out the F&F part leaves nothing to recover; the
        band minimum is assumed, as for inferred codes.

        Returns:
            same keys as infer()
        """
        percent = code.fraction
        remaining = 1 - percent

        if code.applies_to == 'accommodation':
            food_base = paid_before_credits - accommodation_final * remaining
        elif remaining <= 0:
            food_base = food_range['lower_bound']
        elif code.applies_to == 'food_facilities':
            food_base = (paid_before_credits - accommodation_final) / remaining
        else:
            food_base = paid_before_credits / remaining - accommodation_final

        food_base = max(food_base, Decimal('0'))

        if code.applies_to == 'accommodation':
            amount = accommodation_final * percent
        elif code.applies_to == 'food_facilities':
            amount = food_base * percent
        else:
            amount = (accommodation_final + food_base) * percent

        return {
            'code_detected': True,
            'percent': percent,
            'food_base': food_base,
            'low_confidence': False,
            'above_band': food_base > food_range['upper_bound'] + self.tolerance,
            'amount': amount,
        }
