import threading
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError, connection

from accountapp.actors import Actor
from bookingapp.exceptions import ConflictError, StorageError
from bookingapp.models import Booking
from bookingapp.retry import run_in_transaction
from bookingapp.services import BookingManager

from conftest import span


def request_concurrently(car, renters, ranges, clock):
    """Fire one booking request per renter at once; collect Booking or ConflictError."""
    barrier = threading.Barrier(len(renters))
    results = []
    lock = threading.Lock()

    def attempt(user, date_range):
        manager = BookingManager(notifier=MagicMock(), clock=clock)
        try:
            barrier.wait(timeout=10)
            outcome = manager.request_booking(car.id, Actor.from_user(user), date_range, Decimal('7000.00'))
        except ConflictError as exc:
            outcome = exc
        finally:
            connection.close()
        with lock:
            results.append(outcome)

    threads = [
        threading.Thread(target=attempt, args=(user, date_range))
        for user, date_range in zip(renters, ranges)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


@pytest.mark.django_db(transaction=True)
def test_concurrent_overlapping_requests_book_exactly_once(make_user, car, clock):
    ranges = [
        span('2024-01-10', '2024-01-15'),
        span('2024-01-12', '2024-01-14'),
        span('2024-01-11', '2024-01-20'),
        span('2024-01-09', '2024-01-13'),
    ]
    renters = [make_user() for _ in ranges]

    results = request_concurrently(car, renters, ranges, clock)

    assert len(results) == len(ranges)
    assert all(isinstance(r, (Booking, ConflictError)) for r in results)
    # Every pair of requested ranges overlaps, so exactly one wins.
    assert sum(isinstance(r, Booking) for r in results) == 1
    assert Booking.objects.filter(car=car).blocking().count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_disjoint_requests_all_succeed(make_user, car, clock):
    ranges = [
        span('2024-03-01', '2024-03-02'),
        span('2024-03-03', '2024-03-04'),
        span('2024-03-05', '2024-03-06'),
        span('2024-03-07', '2024-03-08'),
    ]
    renters = [make_user() for _ in ranges]

    results = request_concurrently(car, renters, ranges, clock)

    assert len(results) == len(ranges)
    assert all(isinstance(r, Booking) for r in results), results
    stored = sorted(Booking.objects.filter(car=car).values_list('start_date', flat=True))
    assert stored == [r.start for r in ranges]


@pytest.mark.django_db
class TestRunInTransaction:

    def test_returns_result(self):
        assert run_in_transaction(lambda: 42, label="answer", exhausted=StorageError) == 42

    def test_retries_once_on_transient_failure(self):
        operation = MagicMock(side_effect=[OperationalError('database is locked'), 'ok'])

        assert run_in_transaction(operation, label="flaky", exhausted=StorageError) == 'ok'
        assert operation.call_count == 2

    def test_raises_exhausted_after_second_failure(self):
        operation = MagicMock(side_effect=OperationalError('database is locked'))

        with pytest.raises(ConflictError) as excinfo:
            run_in_transaction(operation, label="stuck", exhausted=ConflictError)

        assert operation.call_count == 2
        assert isinstance(excinfo.value.__cause__, OperationalError)

    def test_pauses_between_attempts(self):
        operation = MagicMock(side_effect=OperationalError('database table is locked'))

        with patch('bookingapp.retry.time.sleep') as sleep:
            with pytest.raises(StorageError):
                run_in_transaction(operation, label="paused", exhausted=StorageError, retry_delay=0.2)

        sleep.assert_called_once_with(0.2)

    def test_domain_errors_not_retried(self):
        operation = MagicMock(side_effect=ConflictError())

        with pytest.raises(ConflictError):
            run_in_transaction(operation, label="conflict", exhausted=StorageError)

        assert operation.call_count == 1

    def test_failed_attempt_is_rolled_back(self, car, renter, make_booking):
        attempts = []

        def operation():
            attempts.append(make_booking(span('2024-05-01', '2024-05-03')))
            if len(attempts) == 1:
                raise OperationalError('deadlock detected')
            return attempts[-1]

        booking = run_in_transaction(operation, label="rollback", exhausted=StorageError)

        assert list(Booking.objects.values_list('pk', flat=True)) == [booking.pk]
