"""
Core models: Accommodation, DiscountCode.
"""

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
from decimal import Decimal


class Accommodation(models.Model):
    """
    Bookable accommodation priced per 7-day week.

    Example:
        Valleyview Room: 534.00 / week, type room
        6-Bed Dorm: 125.00 / week, type dorm (no seasonal discount)
    """
    TYPE_CHOICES = [
        ('room', 'Room'),
        ('dorm', 'Dorm'),
        ('cabin', 'Cabin'),
        ('tent', 'Tent'),
        ('parking', 'Parking'),
        ('addon', 'Add-on'),
        ('test', 'Test'),
    ]

    title = models.CharField(max_length=200)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Cost per 7-day week before any discount"
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='room')
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['title']
        verbose_name = "Accommodation"
        verbose_name_plural = "Accommodations"

    def __str__(self):
        return f"{self.title} ({self.base_price}/week)"

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_dorm(self):
        """Dorms never get a seasonal discount."""
        return self.type == 'dorm' or 'dorm' in (self.title or '').lower()


class DiscountCodeQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)


class DiscountCode(models.Model):
    """
    Promotional percentage discount.

    Only active codes resolve for new quotes. Historical bookings keep the
    code string even after the code is deactivated.
    """
    APPLIES_TO_CHOICES = [
        ('total', 'Total (accommodation + F&F)'),
        ('accommodation', 'Accommodation only'),
        ('food_facilities', 'Food & Facilities only'),
    ]

    code = models.CharField(max_length=50, unique=True)
    percentage_discount = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(100)],
        help_text="Whole percent, 1-100"
    )
    applies_to = models.CharField(max_length=20, choices=APPLIES_TO_CHOICES, default='total')
    description = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = DiscountCodeQuerySet.as_manager()

    class Meta:
        ordering = ['code']
        verbose_name = "Discount Code"
        verbose_name_plural = "Discount Codes"

    def __str__(self):
        status = "" if self.is_active else " [inactive]"
        return f"{self.code} ({self.percentage_discount}% off {self.applies_to}){status}"

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        # Validators only run through full_clean
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def fraction(self):
        """Discount as a fraction, e.g. Decimal('0.25') for 25%."""
        return Decimal(self.percentage_discount) / Decimal('100')

    def deactivate(self):
        self.is_active = False
        self.deactivated_at = timezone.now()
        self.save(update_fields=['is_active', 'deactivated_at'])
