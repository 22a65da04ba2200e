import pytest
from datetime import date
from decimal import Decimal

from retreat.models import Booking
from retreat.services import (
    BreakdownAudit,
    DiscountAmountRepair,
    InferredCodeCleanup,
    BreakdownReconciler,
    CHECK_IN,
)
from retreat.services.maintenance_service import correct_discount_amount


def stored_breakdown(**overrides):
    values = {
        'accommodation_price': Decimal('1000.00'),
        'food_contribution': Decimal('480.00'),
        'seasonal_adjustment': Decimal('0.00'),
        'duration_discount_percent': Decimal('0.00'),
        'discount_code_percent': Decimal('0'),
    }
    values.update(overrides)
    return values


@pytest.mark.django_db
class TestBreakdownAudit:

    @pytest.fixture
    def legacy_booking(self, make_accommodation, make_booking):
        # Priced with the check-in date's season: Sep 28 is summer, so no seasonal discount
        accommodation = make_accommodation(base_price='500.00')
        return make_booking(
            accommodation,
            check_in=date(2025, 9, 28), check_out=date(2025, 10, 11),
            total_price='1480.00',
            **stored_breakdown()
        )

    def test_per_night_audit_flags_legacy_breakdown(self, legacy_booking):
        result = BreakdownAudit().run()

        assert result.processed == 1
        assert result.updated == 1
        assert len(result.warnings) == 1
        booking_id, differences = result.results[0]
        assert booking_id == legacy_booking.pk
        assert differences == [('seasonal_adjustment', Decimal('0.00'), Decimal('115.38'))]

    def test_legacy_lookup_agrees(self, legacy_booking):
        result = BreakdownAudit(strategy=CHECK_IN).run()

        assert result.warnings == []
        assert result.results == []

    def test_commit_flags_without_overwriting(self, legacy_booking):
        result = BreakdownAudit().run(dry_run=False)

        assert result.updated == 1
        legacy_booking.refresh_from_db()
        assert legacy_booking.reconciliation_flags == ['stored_breakdown_mismatch']
        assert legacy_booking.seasonal_adjustment == Decimal('0.00')

        again = BreakdownAudit().run(dry_run=False)
        assert again.updated == 0
        assert len(again.warnings) == 1

    def test_missing_accommodation(self, make_accommodation, make_booking):
        make_accommodation()
        make_booking(accommodation_id=4242, **stored_breakdown())

        result = BreakdownAudit().run()

        assert result.error_counts() == {'lookup': 1}

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            BreakdownAudit(strategy='checkout')


class TestCorrectDiscountAmount:

    def test_counts_seasonal_duration_and_code(self):
        booking = Booking(
            accommodation_price=Decimal('1200.00'),
            seasonal_adjustment=Decimal('0.00'),
            duration_discount_percent=Decimal('10.00'),
            food_contribution=Decimal('648.00'),
            discount_code_percent=Decimal('0.5000'),
        )

        # 1200 * 10% + 648 * 50%
        assert correct_discount_amount(booking) == Decimal('444.00')

    def test_seasonal_reduces_duration_base(self):
        booking = Booking(
            accommodation_price=Decimal('2000.00'),
            seasonal_adjustment=Decimal('800.00'),
            duration_discount_percent=Decimal('12.78'),
            food_contribution=Decimal('837.31'),
            discount_code_percent=Decimal('0'),
        )

        assert correct_discount_amount(booking) == Decimal('953.36')


    @pytest.mark.parametrize('scope, expected', [
        ('food_facilities', Decimal('444.00')),
        # 120 + (1080 + 648) * 50%
        ('total', Decimal('984.00')),
        # 120 + 1080 * 50%
        ('accommodation', Decimal('660.00')),
    ])
    def test_code_saving_follows_scope(self, scope, expected):
        booking = Booking(
            accommodation_price=Decimal('1200.00'),
            seasonal_adjustment=Decimal('0.00'),
            duration_discount_percent=Decimal('10.00'),
            food_contribution=Decimal('648.00'),
            discount_code_percent=Decimal('0.5000'),
        )

        assert correct_discount_amount(booking, scope) == expected


@pytest.mark.django_db
class TestDiscountAmountRepair:

    def test_repairs_wrong_amounts_only(self, make_accommodation, make_booking):
        accommodation = make_accommodation()
        wrong = make_booking(
            accommodation, discount_amount=Decimal('500.00'),
            **stored_breakdown(
                accommodation_price=Decimal('1200.00'),
                duration_discount_percent=Decimal('10.00'),
                food_contribution=Decimal('648.00'),
                discount_code_percent=Decimal('0.5000'),
            )
        )
        make_booking(accommodation, discount_amount=Decimal('0.00'), **stored_breakdown())

        preview = DiscountAmountRepair().run()
        assert preview.updated == 1
        assert preview.skipped == 1
        assert preview.results == [(wrong.pk, Decimal('500.00'), Decimal('444.00'))]
        wrong.refresh_from_db()
        assert wrong.discount_amount == Decimal('500.00')

        result = DiscountAmountRepair().run(dry_run=False)
        assert result.updated == 1
        wrong.refresh_from_db()
        assert wrong.discount_amount == Decimal('444.00')

        assert DiscountAmountRepair().run(dry_run=False).updated == 0

    def test_uses_scope_of_named_code(self, make_accommodation, make_booking, make_code):
        make_code(code='SUMMER21', percentage_discount=50, applies_to='total')
        booking = make_booking(
            make_accommodation(), applied_discount_code='SUMMER21', discount_amount=Decimal('444.00'),
            **stored_breakdown(
                accommodation_price=Decimal('1200.00'),
                duration_discount_percent=Decimal('10.00'),
                food_contribution=Decimal('648.00'),
                discount_code_percent=Decimal('0.5000'),
            )
        )

        DiscountAmountRepair().run(dry_run=False)

        booking.refresh_from_db()
        assert booking.discount_amount == Decimal('984.00')

    def test_ignores_bookings_without_breakdown(self, make_accommodation, make_booking):
        make_booking(make_accommodation(), total_price='600.00')

        result = DiscountAmountRepair().run(dry_run=False)

        assert result.processed == 0


@pytest.mark.django_db
class TestInferredCodeCleanup:

    def test_clears_inferred_codes_only(self, make_accommodation, make_booking):
        accommodation = make_accommodation()
        inferred = make_booking(
            accommodation,
            applied_discount_code='UNKNOWN',
            breakdown_source='reconciled',
            reconciliation_flags=['low_confidence_code', 'total_mismatch'],
            **stored_breakdown(discount_code_percent=Decimal('0.2500'))
        )
        entered = make_booking(
            accommodation,
            applied_discount_code='SUMMER21',
            breakdown_source='quote',
            **stored_breakdown(discount_code_percent=Decimal('0.1000'))
        )

        preview = InferredCodeCleanup().run()
        assert preview.results == [inferred.pk]
        inferred.refresh_from_db()
        assert inferred.applied_discount_code == 'UNKNOWN'

        result = InferredCodeCleanup().run(dry_run=False)
        assert result.updated == 1

        inferred.refresh_from_db()
        assert inferred.applied_discount_code is None
        assert inferred.discount_code_percent is None
        assert inferred.reconciliation_flags == ['total_mismatch']
        assert not inferred.has_breakdown

        entered.refresh_from_db()
        assert entered.applied_discount_code == 'SUMMER21'

    def test_cleared_booking_is_reconciled_again(self, make_accommodation, make_booking):
        accommodation = make_accommodation(base_price='250.00')
        booking = make_booking(accommodation, total_price='300.00', credits_used='50.00')

        BreakdownReconciler().run(dry_run=False)
        InferredCodeCleanup().run(dry_run=False)

        assert Booking.objects.missing_breakdown().filter(pk=booking.pk).exists()

        BreakdownReconciler().run(dry_run=False)
        booking.refresh_from_db()
        assert booking.applied_discount_code == 'UNKNOWN'
        assert booking.discount_code_percent == Decimal('0.7101')
