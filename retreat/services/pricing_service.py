"""
Pricing Calculation Services
============================

Forward pricing of a stay at booking time.

Calculation Flow:
1. Base Price (per week) x Exact Weeks = Base Accommodation Total
2. Base Total x (1 - Seasonal Rate) = After Seasonal     (per-night average)
3. After Seasonal x (1 - Duration Rate) = Accommodation Final
4. F&F band from stay length; guest picks a weekly amount inside it
5. Accommodation Final + F&F = Subtotal
6. Subtotal - Discount Code (on the code's scope) = Amount Due
7. Amount Due - Credits = Total Price (charged)

Discounts are applied one after another, never summed: the duration
discount is a percentage of the already seasonally-discounted amount.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from retreat.exceptions import QuoteError
from .stay_window import StayWindow
from .season_service import CalendarSeasonClassifier, seasonal_rate_for, PER_NIGHT
from .discount_service import DurationDiscountCalculator, DiscountCodeResolver

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

FOOD_UPPER_PER_WEEK = Decimal('390')
FOOD_LOWER_PER_WEEK_SHORT = Decimal('345')
FOOD_LOWER_PER_WEEK_LONG = Decimal('240')
FOOD_LONG_STAY_WEEKS = 2


def money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class AccommodationPriceCalculator:
    """Base accommodation cost with seasonal then duration discount."""

    def calculate(self, base_price, exact_weeks, seasonal_rate, duration_rate):
        """
        Returns:
            dict with base_total, after_seasonal, final_price,
            seasonal_adjustment, duration_adjustment (all unrounded)
        """
        base_total = Decimal(base_price) * exact_weeks
        after_seasonal = base_total * (1 - seasonal_rate)
        final_price = after_seasonal * (1 - duration_rate)

        return {
            'base_total': base_total,
            'after_seasonal': after_seasonal,
            'final_price': final_price,
            'seasonal_adjustment': base_total - after_seasonal,
            'duration_adjustment': after_seasonal - final_price,
        }


class FoodFacilitiesRangeCalculator:
    """
    Food & Facilities contribution band for a stay.

    Guests choose where to sit in the band. The upper bound is never
    discounted; the lower bound drops for stays of two weeks or more and
    takes the duration discount.
    """

    def __init__(self, duration_calculator=None):
        self.duration_calculator = duration_calculator or DurationDiscountCalculator()

    def calculate(self, exact_weeks, complete_weeks):
        if exact_weeks < FOOD_LONG_STAY_WEEKS:
            lower_per_week = FOOD_LOWER_PER_WEEK_SHORT
        else:
            lower_per_week = FOOD_LOWER_PER_WEEK_LONG

        duration_rate = self.duration_calculator.rate(complete_weeks)
        adjusted_lower_per_week = lower_per_week * (1 - duration_rate)

        return {
            'lower_per_week': lower_per_week,
            'adjusted_lower_per_week': adjusted_lower_per_week,
            'upper_per_week': FOOD_UPPER_PER_WEEK,
            'lower_bound': adjusted_lower_per_week * exact_weeks,
            'upper_bound': FOOD_UPPER_PER_WEEK * exact_weeks,
            'duration_rate': duration_rate,
        }

    @staticmethod
    def contains(food_range, amount, tolerance=Decimal('0')):
        return (food_range['lower_bound'] - tolerance
                <= amount
                <= food_range['upper_bound'] + tolerance)


class CreditsLedger:
    """
    Wallet credits are a payment instrument, not a discount: they lower
    what the guest pays out of pocket but not the value of the stay.
    """

    @staticmethod
    def total_paid_before_credits(total_price, credits_used):
        return Decimal(total_price or 0) + Decimal(credits_used or 0)

    @staticmethod
    def apply(amount_due, credits_available):
        """
        Returns:
            (credits_used, total_price); credits never push the charge below 0
        """
        credits_available = Decimal(credits_available or 0)
        if credits_available < 0:
            raise QuoteError(f"Credits cannot be negative: {credits_available}")
        credits_used = min(credits_available, amount_due)
        return credits_used, amount_due - credits_used


class Quote:
    """Result of a forward quote, holding every intermediate value."""

    def __init__(self, accommodation, window, seasonal_rate, duration_rate,
                 accommodation_prices, food_range, food_per_week, food_total,
                 code_result, subtotal, amount_due, credits_used, total_price):
        self.accommodation = accommodation
        self.window = window
        self.seasonal_rate = seasonal_rate
        self.duration_rate = duration_rate
        self.accommodation_prices = accommodation_prices
        self.food_range = food_range
        self.food_per_week = food_per_week
        self.food_total = food_total
        self.code_result = code_result
        self.subtotal = subtotal
        self.amount_due = amount_due
        self.credits_used = credits_used
        self.total_price = total_price

    @property
    def accommodation_final(self):
        return money(self.accommodation_prices['final_price'])

    @property
    def discount_amount(self):
        """Seasonal + accommodation duration + code savings. Credits are not savings."""
        return money(
            self.accommodation_prices['seasonal_adjustment']
            + self.accommodation_prices['duration_adjustment']
            + self.code_result['amount']
        )

    def breakdown(self):
        """Booking fields for this quote."""
        return {
            'accommodation_price': money(self.accommodation_prices['base_total']),
            'food_contribution': self.food_total,
            'seasonal_adjustment': money(self.accommodation_prices['seasonal_adjustment']),
            'duration_discount_percent': money(self.duration_rate * 100),
            'discount_code_percent': self.code_result['percent'].quantize(Decimal('0.0001')),
            'applied_discount_code': self.code_result['code'],
            'discount_amount': self.discount_amount,
            'credits_used': self.credits_used,
            'total_price': self.total_price,
        }

    def as_dict(self):
        return {
            'accommodation': self.accommodation.title,
            'check_in': self.window.check_in,
            'check_out': self.window.check_out,
            'total_days': self.window.total_days,
            'exact_weeks': self.window.exact_weeks,
            'complete_weeks': self.window.complete_weeks,
            'base_price': self.accommodation.base_price,
            'seasonal_rate': self.seasonal_rate,
            'duration_rate': self.duration_rate,
            'accommodation_base_total': money(self.accommodation_prices['base_total']),
            'seasonal_adjustment': money(self.accommodation_prices['seasonal_adjustment']),
            'duration_adjustment': money(self.accommodation_prices['duration_adjustment']),
            'accommodation_final': self.accommodation_final,
            'food_lower_bound': money(self.food_range['lower_bound']),
            'food_upper_bound': money(self.food_range['upper_bound']),
            'food_per_week': self.food_per_week,
            'food_total': self.food_total,
            'subtotal': self.subtotal,
            'discount_code': self.code_result['code'],
            'discount_code_scope': self.code_result['scope'],
            'discount_code_amount': self.code_result['amount'],
            'amount_due': self.amount_due,
            'credits_used': self.credits_used,
            'total_price': self.total_price,
            'discount_amount': self.discount_amount,
        }


class ForwardQuoteEngine:
    """
    Prices a stay at booking time.

    Usage:
        engine = ForwardQuoteEngine()
        quote = engine.quote(
            accommodation,
            check_in=date(2025, 7, 1),
            check_out=date(2025, 7, 21),
            food_per_week=Decimal('300'),
            discount_code='SUMMER21',
            credits=Decimal('50.00'),
        )
        booking = Booking.from_quote(quote)

    Seasonal rates always use the per-night average.
    """

    def __init__(self, classifier=None, duration_calculator=None, code_resolver=None):
        self.classifier = classifier or CalendarSeasonClassifier()
        self.duration_calculator = duration_calculator or DurationDiscountCalculator()
        self.code_resolver = code_resolver or DiscountCodeResolver()
        self.accommodation_calculator = AccommodationPriceCalculator()
        self.food_calculator = FoodFacilitiesRangeCalculator(self.duration_calculator)

    def quote(self, accommodation, check_in, check_out, food_per_week=None,
              discount_code=None, credits=Decimal('0.00')):
        """
        Args:
            accommodation: Accommodation instance
            check_in, check_out: dates (inclusive day count)
            food_per_week: chosen weekly F&F amount; defaults to the band minimum
            discount_code: code string or DiscountCode instance
            credits: wallet credits available to spend

        Returns:
            Quote
        """
        window = StayWindow(check_in, check_out)

        seasonal_rate = seasonal_rate_for(accommodation, window, PER_NIGHT, self.classifier)
        duration_rate = self.duration_calculator.rate(window.complete_weeks)

        accommodation_prices = self.accommodation_calculator.calculate(
            accommodation.base_price, window.exact_weeks, seasonal_rate, duration_rate
        )

        food_range = self.food_calculator.calculate(window.exact_weeks, window.complete_weeks)
        food_per_week = self._choose_food_per_week(food_range, food_per_week)
        food_total = money(food_per_week * window.exact_weeks)

        code = self._resolve_code(discount_code)
        accommodation_final = money(accommodation_prices['final_price'])
        code_result = self.code_resolver.apply(code, accommodation_final, food_total)

        subtotal = accommodation_final + food_total
        amount_due = subtotal - code_result['amount']
        credits_used, total_price = CreditsLedger.apply(amount_due, credits)

        logger.debug(
            "Quoted %s %s-%s: subtotal %s, code %s, credits %s, total %s",
            accommodation.title, window.check_in, window.check_out,
            subtotal, code_result['amount'], credits_used, total_price,
        )

        return Quote(
            accommodation=accommodation,
            window=window,
            seasonal_rate=seasonal_rate,
            duration_rate=duration_rate,
            accommodation_prices=accommodation_prices,
            food_range=food_range,
            food_per_week=food_per_week,
            food_total=food_total,
            code_result=code_result,
            subtotal=subtotal,
            amount_due=amount_due,
            credits_used=credits_used,
            total_price=total_price,
        )

    def _choose_food_per_week(self, food_range, food_per_week):
        if food_per_week is None:
            return food_range['adjusted_lower_per_week']

        food_per_week = Decimal(str(food_per_week))
        lower = food_range['adjusted_lower_per_week']
        upper = food_range['upper_per_week']
        if food_per_week < lower - CENT or food_per_week > upper + CENT:
            raise QuoteError(
                f"F&F contribution {food_per_week}/week is outside "
                f"{money(lower)} - {money(upper)}"
            )
        return food_per_week

    def _resolve_code(self, discount_code):
        if discount_code is None or discount_code == '':
            return None
        if isinstance(discount_code, str):
            return self.code_resolver.resolve(discount_code)
        if not discount_code.is_active:
            raise QuoteError(f"Discount code {discount_code.code} is no longer active")
        return discount_code


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def format_quote_breakdown(quote, currency='€'):
    """
    Format a quote as readable text.

    Args:
        quote: Quote from ForwardQuoteEngine.quote
        currency: Currency symbol

    Returns:
        str: Formatted breakdown
    """
    data = quote.as_dict()
    lines = [
        f"{data['accommodation']}: {data['check_in']} to {data['check_out']}",
        f"Stay: {data['total_days']} days ({data['exact_weeks']:.2f} weeks, "
        f"{data['complete_weeks']} complete)",
        "",
        f"Accommodation:             {currency}{data['accommodation_base_total']:>10.2f}",
        f"- Seasonal ({data['seasonal_rate'] * 100:.1f}%):      {currency}{data['seasonal_adjustment']:>10.2f}",
        f"- Duration ({data['duration_rate'] * 100:.1f}%):      {currency}{data['duration_adjustment']:>10.2f}",
        f"─" * 45,
        f"Accommodation Final:       {currency}{data['accommodation_final']:>10.2f}",
        f"+ Food & Facilities:       {currency}{data['food_total']:>10.2f}",
        f"  (band {currency}{data['food_lower_bound']:.2f} - {currency}{data['food_upper_bound']:.2f})",
        f"─" * 45,
        f"Subtotal:                  {currency}{data['subtotal']:>10.2f}",
    ]

    if data['discount_code']:
        lines.append(
            f"- Code {data['discount_code']} ({data['discount_code_scope']}): "
            f"{currency}{data['discount_code_amount']:>10.2f}"
        )
    if data['credits_used'] > 0:
        lines.append(f"- Credits:                 {currency}{data['credits_used']:>10.2f}")

    lines.extend([
        f"═" * 45,
        f"TOTAL CHARGED:             {currency}{data['total_price']:>10.2f}",
        f"Total saved:               {currency}{data['discount_amount']:>10.2f}",
    ])

    return "\n".join(lines)
