"""
Retreat admin configuration.

Supports:
- Accommodation management (weekly base prices)
- Discount code management with deactivation
- Booking review with breakdown fields and reconciliation actions
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Accommodation, DiscountCode, Booking


@admin.register(Accommodation)
class AccommodationAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'base_price', 'seasonal_discount_display', 'is_active']
    list_filter = ['type', 'is_active']
    search_fields = ['title']
    ordering = ['title']

    def seasonal_discount_display(self, obj):
        return 'No (dorm)' if obj.is_dorm else 'Yes'
    seasonal_discount_display.short_description = 'Seasonal Discount'


@admin.register(DiscountCode)
class DiscountCodeAdmin(admin.ModelAdmin):
    list_display = ['code', 'percentage_discount', 'applies_to', 'is_active', 'deactivated_at']
    list_filter = ['is_active', 'applies_to']
    search_fields = ['code', 'description']
    readonly_fields = ['deactivated_at', 'created_at']
    actions = ['deactivate_codes']

    @admin.action(description='Deactivate selected codes')
    def deactivate_codes(self, request, queryset):
        count = 0
        for code in queryset.filter(is_active=True):
            code.deactivate()
            count += 1
        self.message_user(request, f"Deactivated {count} code(s)", messages.SUCCESS)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'accommodation', 'check_in', 'check_out', 'status',
        'total_price', 'credits_used', 'discount_amount',
        'breakdown_source', 'flags_display',
    ]
    list_filter = ['status', 'breakdown_source']
    search_fields = ['id', 'applied_discount_code']
    date_hierarchy = 'check_in'
    readonly_fields = ['created_at', 'updated_at']
    actions = ['preview_reconciliation', 'reconcile_bookings']

    fieldsets = (
        (None, {
            'fields': ('accommodation', 'check_in', 'check_out', 'status')
        }),
        ('Payment', {
            'fields': ('total_price', 'credits_used'),
        }),
        ('Breakdown', {
            'fields': (
                'accommodation_price', 'food_contribution', 'seasonal_adjustment',
                'duration_discount_percent', 'discount_code_percent',
                'applied_discount_code', 'discount_amount',
            ),
            'description': 'Duration discount is stored as a percent, code discount as a fraction (0.5 = 50%)'
        }),
        ('Reconciliation', {
            'fields': ('breakdown_source', 'reconciliation_flags', 'created_at', 'updated_at'),
        }),
    )

    def flags_display(self, obj):
        if not obj.reconciliation_flags:
            return '-'
        return format_html('<span style="color: #b45309;">{}</span>', ', '.join(obj.reconciliation_flags))
    flags_display.short_description = 'Review Flags'

    def _reconcile(self, request, queryset, dry_run):
        from .services import BreakdownReconciler
        from .exceptions import ConfigurationError

        try:
            result = BreakdownReconciler().run(bookings=list(queryset), dry_run=dry_run)
        except ConfigurationError as e:
            self.message_user(request, f"Configuration error: {e}", messages.ERROR)
            return

        summary = result.as_dict()
        label = 'would update' if dry_run else 'updated'
        self.message_user(
            request,
            f"Processed {summary['processed']}, {label} {summary['updated']}, "
            f"skipped {summary['skipped']}, errors {summary['errors']}",
            messages.WARNING if result.errors or result.warnings else messages.SUCCESS,
        )
        for warning in result.warnings[:10]:
            self.message_user(request, warning, messages.WARNING)
        for error in result.errors[:10]:
            self.message_user(request, str(error), messages.ERROR)

    @admin.action(description='Preview breakdown reconciliation (dry run)')
    def preview_reconciliation(self, request, queryset):
        self._reconcile(request, queryset, dry_run=True)

    @admin.action(description='Reconcile and save breakdowns')
    def reconcile_bookings(self, request, queryset):
        self._reconcile(request, queryset, dry_run=False)
