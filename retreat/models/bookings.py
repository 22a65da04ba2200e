"""
Booking model with its stored price breakdown.
"""

from django.db import models
from django.db.models import Q
from decimal import Decimal

from .core import Accommodation


BREAKDOWN_FIELDS = [
    'accommodation_price',
    'food_contribution',
    'seasonal_adjustment',
    'duration_discount_percent',
    'discount_code_percent',
]


class BookingQuerySet(models.QuerySet):

    def missing_breakdown(self):
        """Bookings with at least one breakdown field still empty."""
        condition = Q()
        for field in BREAKDOWN_FIELDS:
            condition |= Q(**{f'{field}__isnull': True})
        return self.filter(condition)

    def with_breakdown(self):
        return self.filter(**{f'{field}__isnull': False for field in BREAKDOWN_FIELDS})


class Booking(models.Model):
    """
    A guest's stay with its charged total and price breakdown.

    Breakdown storage conventions (kept compatible with legacy rows):
        duration_discount_percent: percent, e.g. 10.00 for 10%
        discount_code_percent: fraction, e.g. 0.5000 for 50%
    """
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('cancelled', 'Cancelled'),
    ]

    SOURCE_CHOICES = [
        ('quote', 'Forward quote'),
        ('reconciled', 'Reconciled from total'),
    ]

    # Legacy rows may point at accommodations that no longer exist
    accommodation = models.ForeignKey(
        Accommodation,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='bookings',
    )
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='confirmed')

    total_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        help_text="Amount actually charged, after credits"
    )
    credits_used = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    # Breakdown
    accommodation_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    food_contribution = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    seasonal_adjustment = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    duration_discount_percent = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    discount_code_percent = models.DecimalField(max_digits=6, decimal_places=4, null=True, blank=True)
    applied_discount_code = models.CharField(max_length=50, null=True, blank=True)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    breakdown_source = models.CharField(max_length=20, choices=SOURCE_CHOICES, blank=True, default='')
    reconciliation_flags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"

    def __str__(self):
        return f"Booking {self.pk} ({self.check_in} - {self.check_out})"

    @property
    def has_breakdown(self):
        return all(getattr(self, field) is not None for field in BREAKDOWN_FIELDS)

    @property
    def total_paid_before_credits(self):
        return (self.total_price or Decimal('0.00')) + (self.credits_used or Decimal('0.00'))

    def add_flag(self, flag):
        flags = list(self.reconciliation_flags or [])
        if flag not in flags:
            flags.append(flag)
        self.reconciliation_flags = flags

    def apply_breakdown(self, breakdown):
        """Copy breakdown values (dict from a quote or reconciliation) onto the booking."""
        for field, value in breakdown.items():
            setattr(self, field, value)

    @classmethod
    def from_quote(cls, quote, **extra):
        """
        Build an unsaved booking from a forward quote.

        The breakdown is computed once at creation and stored as-is.
        """
        booking = cls(
            accommodation=quote.accommodation,
            check_in=quote.window.check_in,
            check_out=quote.window.check_out,
            breakdown_source='quote',
            **extra
        )
        booking.apply_breakdown(quote.breakdown())
        return booking
