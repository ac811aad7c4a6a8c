from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from accountapp.models import User
from bookingapp import states
from bookingapp.models import Booking, Payment
from bookingapp.services import BookingManager, DateRange
from carsapp.models import Car

NOW = datetime(2023, 12, 1, 12, 0, tzinfo=timezone.utc)


def at(day, hour=0):
    """UTC datetime for an ISO date string."""
    return datetime.fromisoformat(day).replace(hour=hour, tzinfo=timezone.utc)


def span(start_day, end_day):
    return DateRange(at(start_day), at(end_day))


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def make(role=User.ROLE_RENTER, **extra):
        counter['n'] += 1
        return User.objects.create_user(
            email=f"user{counter['n']}@example.com",
            password='pass1234',
            role=role,
            **extra
        )
    return make


@pytest.fixture
def owner(make_user):
    return make_user(role=User.ROLE_OWNER)


@pytest.fixture
def renter(make_user):
    return make_user()


@pytest.fixture
def other_renter(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role=User.ROLE_ADMIN)


@pytest.fixture
def car(owner):
    return Car.objects.create(
        owner=owner,
        title='Toyota Axio 2018',
        make='Toyota',
        model='Axio',
        year=2018,
        location='Nairobi',
        price_per_day=Decimal('3500.00'),
        is_active=True,
        is_verified=True,
    )


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def clock():
    return MagicMock(return_value=NOW)


@pytest.fixture
def manager(notifier, clock):
    return BookingManager(
        notifier=notifier,
        clock=clock,
        cancellation_window=timedelta(hours=1),
    )


@pytest.fixture
def make_booking(car, renter):
    """Insert a booking directly, bypassing the lifecycle manager."""
    def make(date_range, status=states.CONFIRMED, user=None, booking_car=None):
        user = user or renter
        booking = Booking.objects.create(
            car=booking_car or car,
            user=user,
            start_date=date_range.start,
            end_date=date_range.end,
            total_price=Decimal('7000.00'),
            status=status,
        )
        Payment.objects.create(
            booking=booking,
            user=user,
            amount=booking.total_price,
            currency='KES',
            payment_method=Payment.METHOD_CASH,
            payment_type=Payment.TYPE_ON_DELIVERY,
        )
        return booking
    return make
