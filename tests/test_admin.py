import pytest
from decimal import Decimal

from django.urls import reverse

from retreat.models import DiscountCode


@pytest.mark.django_db
class TestBookingAdmin:

    def test_changelist(self, admin_client, make_accommodation, make_booking):
        make_booking(make_accommodation(), total_price='845.00', reconciliation_flags=['total_mismatch'])

        response = admin_client.get(reverse('admin:retreat_booking_changelist'))

        assert response.status_code == 200
        assert b'total_mismatch' in response.content

    def test_preview_action_writes_nothing(self, admin_client, make_accommodation, make_booking):
        booking = make_booking(make_accommodation(base_price='250.00'), total_price='300.00', credits_used='50.00')

        response = admin_client.post(
            reverse('admin:retreat_booking_changelist'),
            {'action': 'preview_reconciliation', '_selected_action': [booking.pk]},
            follow=True,
        )

        assert response.status_code == 200
        assert b'would update 1' in response.content
        booking.refresh_from_db()
        assert not booking.has_breakdown

    def test_reconcile_action(self, admin_client, make_accommodation, make_booking):
        booking = make_booking(make_accommodation(base_price='250.00'), total_price='300.00', credits_used='50.00')

        admin_client.post(
            reverse('admin:retreat_booking_changelist'),
            {'action': 'reconcile_bookings', '_selected_action': [booking.pk]},
        )

        booking.refresh_from_db()
        assert booking.food_contribution == Decimal('345.00')
        assert booking.breakdown_source == 'reconciled'

    def test_reconcile_action_reports_configuration_error(self, admin_client, make_booking):
        booking = make_booking(total_price='300.00')

        response = admin_client.post(
            reverse('admin:retreat_booking_changelist'),
            {'action': 'reconcile_bookings', '_selected_action': [booking.pk]},
            follow=True,
        )

        assert b'Configuration error' in response.content


@pytest.mark.django_db
class TestDiscountCodeAdmin:

    def test_deactivate_action(self, admin_client, make_code):
        code = make_code()

        admin_client.post(
            reverse('admin:retreat_discountcode_changelist'),
            {'action': 'deactivate_codes', '_selected_action': [code.pk]},
        )

        code.refresh_from_db()
        assert not code.is_active
        assert not DiscountCode.objects.active().exists()
