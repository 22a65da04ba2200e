import pytest
from datetime import date
from decimal import Decimal


class FakeAccommodation:
    """Stand-in for pure calculations that never touch the database."""

    def __init__(self, title='Valleyview Room', base_price=Decimal('500.00'), type='room', pk=1):
        self.pk = pk
        self.id = pk
        self.title = title
        self.base_price = Decimal(base_price)
        self.type = type

    @property
    def is_dorm(self):
        return self.type == 'dorm' or 'dorm' in self.title.lower()


class FakeBooking:

    def __init__(self, check_in, check_out, total_price, credits_used=Decimal('0.00'),
                 applied_discount_code=None, pk=1):
        self.pk = pk
        self.check_in = check_in
        self.check_out = check_out
        self.total_price = Decimal(total_price)
        self.credits_used = Decimal(credits_used)
        self.applied_discount_code = applied_discount_code


@pytest.fixture
def room():
    return FakeAccommodation()


@pytest.fixture
def fake_accommodation():
    return FakeAccommodation


@pytest.fixture
def fake_booking():
    return FakeBooking


@pytest.fixture
def make_accommodation(db):
    from retreat.models import Accommodation

    def _make(title='Valleyview Room', base_price='500.00', type='room'):
        return Accommodation.objects.create(title=title, base_price=Decimal(base_price), type=type)
    return _make


@pytest.fixture
def make_booking(db):
    from retreat.models import Booking

    def _make(accommodation=None, check_in=date(2025, 7, 1), check_out=date(2025, 7, 7),
              total_price='0.00', credits_used='0.00', **extra):
        booking = Booking(
            check_in=check_in,
            check_out=check_out,
            total_price=Decimal(total_price),
            credits_used=Decimal(credits_used),
            **extra
        )
        if accommodation is not None:
            booking.accommodation_id = accommodation.pk
        booking.save()
        return booking
    return _make


@pytest.fixture
def make_code(db):
    from retreat.models import DiscountCode

    def _make(code='SUMMER21', percentage_discount=10, applies_to='total', is_active=True):
        return DiscountCode.objects.create(
            code=code,
            percentage_discount=percentage_discount,
            applies_to=applies_to,
            is_active=is_active,
        )
    return _make
